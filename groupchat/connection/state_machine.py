"""
Connection state machine.

Tracks whether the client is connecting, connected or disconnected, the
human-readable reason for the last failure, and the timeout that guards
against a transport that never answers.
"""

from enum import Enum
from typing import Callable, List, Optional

from groupchat.common.constants import CONNECTION_TIMEOUT
from groupchat.utils.logger import logger
from groupchat.utils.timers import CancellableTimer


class ConnectionStatus(str, Enum):
    CONNECTING = 'connecting'
    CONNECTED = 'connected'
    DISCONNECTED = 'disconnected'


TIMEOUT_REASON = 'Connection timeout - the server is not responding'


def lost_reason(reason: str) -> str:
    return f"Connection lost: {reason}"


def error_reason(message: str) -> str:
    return f"Connection error: {message}"


class ConnectionStateMachine:
    """Connection status with a connect timeout.

    Transitions:
        connecting   -> connected     (established)
        connecting   -> disconnected  (lost, failed, timeout)
        connected    -> disconnected  (lost, failed)
        disconnected -> connected     (established by the transport's own reconnect)
        any          -> connecting    (begin, retry, reset)
    """

    def __init__(self, timeout: float = CONNECTION_TIMEOUT, scheduler=None):
        self.status = ConnectionStatus.CONNECTING
        self.error = ''
        self._listeners: List[Callable[[ConnectionStatus, str], None]] = []
        self._timeout_timer = CancellableTimer('connection-timeout', timeout, self._on_timeout, scheduler)

    @property
    def is_connected(self) -> bool:
        return self.status == ConnectionStatus.CONNECTED

    @property
    def timeout_pending(self) -> bool:
        return self._timeout_timer.active

    def add_listener(self, listener: Callable[[ConnectionStatus, str], None]):
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[ConnectionStatus, str], None]):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def begin(self):
        """Enter connecting and arm the connect timeout."""
        self._transition(ConnectionStatus.CONNECTING, '')
        self._timeout_timer.start()

    def established(self):
        self._timeout_timer.cancel()
        self._transition(ConnectionStatus.CONNECTED, '')

    def lost(self, reason: str):
        self._timeout_timer.cancel()
        self._transition(ConnectionStatus.DISCONNECTED, lost_reason(reason))

    def failed(self, message: str):
        self._timeout_timer.cancel()
        self._transition(ConnectionStatus.DISCONNECTED, error_reason(message))

    def retry(self) -> bool:
        """User-initiated retry. Refused while connected."""
        if self.status == ConnectionStatus.CONNECTED:
            logger.warning("[STATE] Retry ignored: already connected")
            return False
        self.begin()
        return True

    def reset(self):
        """Return to connecting after a leave, with the timeout armed."""
        self.begin()

    def stop(self):
        """Cancel the pending timeout without changing state."""
        self._timeout_timer.cancel()

    def _on_timeout(self):
        if self.status == ConnectionStatus.CONNECTING:
            self._transition(ConnectionStatus.DISCONNECTED, TIMEOUT_REASON)

    def _transition(self, status: ConnectionStatus, error: str):
        old = self.status
        if old == status and self.error == error:
            return
        self.status = status
        self.error = error
        logger.log_state_change(old.value, status.value, error)
        for listener in list(self._listeners):
            try:
                listener(status, error)
            except Exception as e:
                logger.log_error("connection state listener", e)
