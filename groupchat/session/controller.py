"""
Session controller module.

The controller owns every piece of client chat state (connection status,
roster, typing set, message log and the local identity) and is the only
writer of it. Inbound transport events are routed to exactly one component
each; outbound user actions are validated here before anything reaches the
transport. Front ends observe the result through immutable snapshots.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from groupchat.chat.chat_client import ChatClient
from groupchat.chat.message_log import MessageLog
from groupchat.chat.presence import PresenceSet
from groupchat.chat.typing_tracker import TypingTracker
from groupchat.common.constants import Events, DEFAULT_AVATAR, MAX_USERNAME_LENGTH
from groupchat.common.protocol_definitions import (
    FileInfo, LocalIdentity, Message, User, create_join_message, parse_messages, parse_users
)
from groupchat.connection.state_machine import ConnectionStateMachine, ConnectionStatus
from groupchat.connection.transport import SubscriptionList, TransportHandle
from groupchat.files.file_client import FileClient
from groupchat.session.notices import LogNotifier, Notifier
from groupchat.utils.config import ClientConfig
from groupchat.utils.logger import logger
from groupchat.utils.timers import CancellableTimer


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the session handed to front ends."""
    status: ConnectionStatus
    error: str
    identity: Optional[LocalIdentity]
    local_user: Optional[User]
    online_users: Tuple[User, ...]
    typing_users: Tuple[User, ...]
    messages: Tuple[Message, ...]
    attached: bool

    @property
    def logged_in(self) -> bool:
        return self.identity is not None

    def is_own(self, message: Message) -> bool:
        if self.local_user is not None and message.user.id == self.local_user.id:
            return True
        return self.identity is not None and message.user.username == self.identity.username


class SessionController:
    """Routes transport events into chat state and user actions out to the transport."""

    def __init__(self, config: Optional[ClientConfig] = None, transport_handle: Optional[TransportHandle] = None,
                 notifier: Optional[Notifier] = None, scheduler=None):
        self.config = config or ClientConfig()
        self.transport_handle = transport_handle or TransportHandle.for_config(self.config)
        self.notifier = notifier or LogNotifier()

        self.presence = PresenceSet()
        self.typing = TypingTracker()
        self.messages = MessageLog()
        self.connection = ConnectionStateMachine(self.config.connection_timeout, scheduler)
        self.chat_client = ChatClient(self.transport_handle.get, self.config.typing_debounce, scheduler)
        self.file_client = FileClient.for_config(self.config)

        self.identity: Optional[LocalIdentity] = None
        self.local_user: Optional[User] = None

        self._connection_subs: Optional[SubscriptionList] = None
        self._session_subs: Optional[SubscriptionList] = None
        self._rejoin_on_connect = False
        self._listeners: List[Callable[[SessionSnapshot], None]] = []

        self._grace_timer = CancellableTimer(
            'disconnect-grace', self.config.disconnect_grace_period, self._on_grace_expired, scheduler
        )
        self._reload_timer = CancellableTimer('reload', self.config.reload_delay, self._reload, scheduler)

        self.connection.add_listener(self._on_connection_state)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def status(self) -> ConnectionStatus:
        return self.connection.status

    @property
    def is_logged_in(self) -> bool:
        return self.identity is not None

    @property
    def is_attached(self) -> bool:
        return self._session_subs is not None

    def add_listener(self, listener: Callable[[SessionSnapshot], None]):
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[SessionSnapshot], None]):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            status=self.connection.status,
            error=self.connection.error,
            identity=self.identity,
            local_user=self.local_user,
            online_users=self.presence.users,
            typing_users=self.typing.users,
            messages=self.messages.messages,
            attached=self.is_attached
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self):
        """Wire the connection listeners and begin connecting."""
        transport = self.transport_handle.get()
        self._release_connection_subs()
        subs = SubscriptionList(transport)
        subs.add(Events.CONNECT, self._on_connect)
        subs.add(Events.DISCONNECT, self._on_disconnect)
        subs.add(Events.CONNECT_ERROR, self._on_connect_error)
        self._connection_subs = subs

        self.connection.begin()
        if transport.connected:
            self.connection.established()
        else:
            transport.connect()

    def retry(self) -> bool:
        """User-initiated retry: rebuild the transport and connect again."""
        if not self.connection.retry():
            return False

        was_attached = self.is_attached
        self.detach()
        self._release_connection_subs()
        self.transport_handle.dispose()
        self.start()
        if was_attached:
            self._bind_session_handlers()
            self._rejoin_on_connect = True
        return True

    def close(self):
        """Release every subscription and timer and dispose the transport."""
        self._grace_timer.cancel()
        self._reload_timer.cancel()
        self.chat_client.reset()
        self.detach()
        self._release_connection_subs()
        self.connection.stop()
        self.transport_handle.dispose()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def join(self, username: str, avatar: str = DEFAULT_AVATAR) -> bool:
        """Store the local identity. The join event is sent by attach()."""
        if not self.connection.is_connected:
            logger.log_rejected("join", "not connected")
            return False

        username = (username or '').strip()
        if not username:
            logger.log_rejected("join", "empty username")
            self.notifier.error("Enter a username to join.")
            return False
        if len(username) > MAX_USERNAME_LENGTH:
            logger.log_rejected("join", "username too long")
            self.notifier.error(f"Username must be at most {MAX_USERNAME_LENGTH} characters.")
            return False

        self.identity = LocalIdentity(username, avatar or DEFAULT_AVATAR)
        self.chat_client.set_identity(self.identity)
        logger.log_join(username, self.identity.avatar)
        self._changed()
        return True

    def attach(self) -> bool:
        """Register the session handlers, then announce the join to the server."""
        if self.identity is None:
            logger.log_rejected("attach", "no identity, join first")
            return False
        if self.is_attached:
            return True

        self._bind_session_handlers()
        self._emit_join()
        self._changed()
        return True

    def detach(self):
        """Unregister the session handlers."""
        if self._session_subs is not None:
            self._session_subs.release()
            self._session_subs = None

    def send_message(self, text: str, file: Optional[FileInfo] = None) -> bool:
        """Validate and send a chat message. The log is updated by the server echo."""
        if not self._can_send("send message"):
            return False

        text = (text or '').strip()
        if not text:
            logger.log_rejected("send message", "empty message")
            return False

        if file is not None:
            problem = self.file_client.check_file_info(file)
            if problem:
                logger.log_rejected("send file", problem)
                self.notifier.error(problem)
                return False

        return self.chat_client.send_message(text, file) is not None

    def send_file(self, file_path: str) -> bool:
        """Validate, encode and send a file from disk."""
        if not self._can_send("send file"):
            return False

        problem = self.file_client.check_path(file_path)
        if problem:
            logger.log_rejected("send file", problem)
            self.notifier.error(problem)
            return False

        try:
            info = self.file_client.encode(file_path)
        except OSError as e:
            logger.log_error("file encode", e)
            self.notifier.error("Error uploading the file.")
            return False

        if not self.send_message(f"Shared file: {info.filename}", file=info):
            return False
        self.notifier.success("File sent successfully")
        return True

    def keystroke(self):
        """Typing pulse from the message input."""
        if self.is_attached and self.connection.is_connected:
            self.chat_client.keystroke()

    def leave(self):
        """End the session and rebuild client state shortly after."""
        if self.identity is not None:
            logger.log_leave(self.identity.username)

        self._grace_timer.cancel()
        self.chat_client.reset()
        self.detach()
        self._release_connection_subs()
        self.transport_handle.dispose()

        self.identity = None
        self.local_user = None
        self._rejoin_on_connect = False
        self.messages.clear()
        self.presence.clear()
        self.typing.clear()

        self.connection.reset()
        self._reload_timer.start()
        self._changed()

    # ------------------------------------------------------------------
    # Connection events
    # ------------------------------------------------------------------

    def _on_connect(self, _data=None):
        rejoin = self._rejoin_on_connect
        self._rejoin_on_connect = False
        self._grace_timer.cancel()
        self.connection.established()

        if self.is_attached:
            self.notifier.success("Connected to server")
            if rejoin:
                self._emit_join()

    def _on_disconnect(self, reason):
        # Typing pulses are not replayed after a reconnect
        self.typing.clear()
        self.connection.lost(str(reason))

        if self.is_attached:
            self.notifier.error("Disconnected from server")
        if self.identity is not None:
            self._rejoin_on_connect = True
            self._grace_timer.start()

    def _on_connect_error(self, message):
        self.connection.failed(str(message))

    def _on_connection_state(self, status: ConnectionStatus, error: str):
        self._changed()

    def _on_grace_expired(self):
        logger.warning("[WARN] Connection not restored, ending session")
        self.notifier.error("Session ended: the connection was not restored.")
        self.leave()

    def _reload(self):
        logger.info("[INFO] Reloading client state")
        self.start()

    # ------------------------------------------------------------------
    # Session events
    # ------------------------------------------------------------------

    def _bind_session_handlers(self):
        subs = SubscriptionList(self.transport_handle.get())
        subs.add(Events.RECENT_MESSAGES, self._on_recent_messages)
        subs.add(Events.JOIN_SUCCESS, self._on_join_success)
        subs.add(Events.ONLINE_USERS, self._on_roster)
        subs.add(Events.USERS_UPDATE, self._on_roster)
        subs.add(Events.NEW_MESSAGE, self._on_new_message)
        subs.add(Events.USER_JOINED, self._on_user_joined)
        subs.add(Events.USER_LEFT, self._on_user_left)
        subs.add(Events.USER_TYPING, self._on_user_typing)
        subs.add(Events.ERROR, self._on_error)
        self._session_subs = subs

    def _on_recent_messages(self, data):
        self.messages.replace_all(parse_messages(data or []))
        self.notifier.success("Welcome to the chat!")
        self._changed()

    def _on_join_success(self, data):
        # Parse everything before touching state so a bad payload changes nothing
        user = User.from_dict(data['user'])
        online = parse_users(data.get('onlineUsers') or [])
        history = parse_messages(data.get('recentMessages') or [])

        self.local_user = user
        self.presence.replace(online)
        self.messages.replace_all(history)
        self.typing.clear()
        self.notifier.success("Joined the chat successfully!")
        self._changed()

    def _on_roster(self, data):
        self.presence.replace(parse_users(data or []))
        self._changed()

    def _on_new_message(self, data):
        self.messages.append(Message.from_dict(data))
        self._changed()

    def _on_user_joined(self, data):
        user = User.from_dict(data['user'])
        online = parse_users(data.get('onlineUsers') or [])
        self.presence.replace(online)
        if not self._is_self(user):
            logger.show_user_joined(user.username, user.id)
            self.notifier.info(f"{user.username} joined the chat")
        self._changed()

    def _on_user_left(self, data):
        user = User.from_dict(data['user'])
        online = parse_users(data.get('onlineUsers') or [])
        self.presence.replace(online)
        self.typing.set_typing(user, False)
        if not self._is_self(user):
            logger.show_user_left(user.username, user.id)
            self.notifier.info(f"{user.username} left the chat")
        self._changed()

    def _on_user_typing(self, data):
        user = User.from_dict(data['user'])
        if self.typing.set_typing(user, bool(data.get('isTyping'))):
            self._changed()

    def _on_error(self, data):
        message = data.get('message') if isinstance(data, dict) else data
        logger.warning(f"[WARN] Server error: {message}")
        self.notifier.error(message or 'Unknown error')

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _emit_join(self):
        self.transport_handle.get().emit(Events.JOIN, create_join_message(self.identity))

    def _is_self(self, user: User) -> bool:
        if self.local_user is not None:
            return user.id == self.local_user.id
        return self.identity is not None and user.username == self.identity.username

    def _can_send(self, operation: str) -> bool:
        if not self.connection.is_connected:
            logger.log_rejected(operation, "not connected")
            return False
        if self.identity is None:
            logger.log_rejected(operation, "not joined")
            return False
        return True

    def _release_connection_subs(self):
        if self._connection_subs is not None:
            self._connection_subs.release()
            self._connection_subs = None

    def _changed(self):
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.log_error("session listener", e)
