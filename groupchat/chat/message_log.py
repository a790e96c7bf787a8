"""
Message log module.

The log keeps server delivery order. Timestamps are generated on each
sender's clock, so they are never used to reorder entries.
"""

from typing import Iterable, List, Tuple

from groupchat.common.protocol_definitions import Message


class MessageLog:
    """Append-only chat history with a bulk replacement per join handshake."""

    def __init__(self):
        self._messages: List[Message] = []

    def replace_all(self, messages: Iterable[Message]):
        """Swap in the history delivered by the server."""
        self._messages = list(messages)

    def append(self, message: Message):
        self._messages.append(message)

    def clear(self):
        self._messages = []

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def last(self):
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self):
        return iter(tuple(self._messages))
