"""
Chat client module.

This module handles outbound chat traffic: message envelopes and the local
user's typing pulses. A typing pulse is sent when the user starts typing and
a single stop pulse follows once keystrokes have been quiet for the debounce
period, or as soon as a message is sent.
"""

from typing import Callable, Optional

from groupchat.common.constants import Events, TYPING_DEBOUNCE
from groupchat.common.protocol_definitions import (
    FileInfo, LocalIdentity, create_send_message, create_typing_message
)
from groupchat.utils.logger import logger
from groupchat.utils.timers import CancellableTimer


class ChatClient:
    """Client-side outbound chat functionality."""

    def __init__(self, transport_getter: Callable[[], object], typing_debounce: float = TYPING_DEBOUNCE,
                 scheduler=None):
        self._transport_getter = transport_getter
        self.identity: Optional[LocalIdentity] = None
        self.is_typing = False
        self._typing_timer = CancellableTimer('typing-debounce', typing_debounce, self.stop_typing, scheduler)

    def set_identity(self, identity: Optional[LocalIdentity]):
        """Set the identity used in outbound envelopes."""
        self.identity = identity

    def send_message(self, text: str, file: Optional[FileInfo] = None) -> Optional[dict]:
        """Send a chat message. Returns the envelope handed to the transport."""
        if self.identity is None:
            logger.error("[ERROR] Cannot send without a joined identity")
            return None

        envelope = create_send_message(text, self.identity, file=file)
        if not self._transport_getter().emit(Events.SEND_MESSAGE, envelope):
            return None
        logger.log_chat_sent(envelope['id'])
        self.stop_typing(force=True)
        return envelope

    def keystroke(self):
        """Register a keystroke: announce typing and restart the stop countdown."""
        if self.identity is None:
            return
        if not self.is_typing:
            self.is_typing = True
            self._emit_typing(True)
        self._typing_timer.start()

    def stop_typing(self, force: bool = False):
        """Announce that the local user stopped typing."""
        self._typing_timer.cancel()
        if not self.is_typing and not force:
            return
        self.is_typing = False
        if self.identity is not None:
            self._emit_typing(False)

    def reset(self):
        """Forget identity and typing state without emitting anything."""
        self._typing_timer.cancel()
        self.is_typing = False
        self.identity = None

    @property
    def typing_pending(self) -> bool:
        return self._typing_timer.active

    def _emit_typing(self, is_typing: bool):
        self._transport_getter().emit(Events.TYPING, create_typing_message(self.identity, is_typing))
