"""
Event transport module.

This module handles the client side of the event socket: a TCP stream carrying
newline-delimited JSON frames of the form {"event": name, "data": payload}.
Connection lifecycle is reported to listeners as the local events 'connect',
'disconnect' (reason) and 'connect_error' (message).
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Tuple

from groupchat.common.constants import Events, RECONNECT_ATTEMPTS, RECONNECT_DELAY, CLIENT_DISCONNECT_REASON
from groupchat.common.protocol_definitions import encode_frame, decode_frame
from groupchat.utils.logger import logger

Handler = Callable[[Any], None]


class Transport:
    """Client-side event socket with automatic reconnection."""

    def __init__(self, host: str, port: int, attempts: int = RECONNECT_ATTEMPTS,
                 delay: float = RECONNECT_DELAY):
        self.host = host
        self.port = port
        self.reconnect_attempts = attempts
        self.reconnect_delay = delay
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None
        self._handlers: Dict[str, List[Handler]] = {}
        self._task: Optional[asyncio.Task] = None
        self._pending_writes = set()
        self._closing = False

    @property
    def connected(self) -> bool:
        return self.writer is not None and not self._closing

    def on(self, event: str, handler: Handler):
        """Register a handler for an event."""
        self._handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: Optional[Handler] = None):
        """Remove one handler, or every handler of the event when none is given."""
        if handler is None:
            self._handlers.pop(event, None)
            return
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._handlers.pop(event, None)

    def handler_count(self, event: Optional[str] = None) -> int:
        if event is not None:
            return len(self._handlers.get(event, []))
        return sum(len(handlers) for handlers in self._handlers.values())

    def connect(self):
        """Start connecting in the background. Results arrive as events."""
        if self._task is not None and not self._task.done():
            return
        self._closing = False
        self._task = asyncio.get_running_loop().create_task(self._run())

    def emit(self, event: str, data: Any = None) -> bool:
        """Send an event without waiting for it to be flushed."""
        if not self.connected:
            logger.warning(f"[WARN] Not connected, dropping '{event}'")
            return False

        writer = self.writer
        try:
            writer.write(encode_frame(event, data))
        except (OSError, RuntimeError) as e:
            logger.log_error(f"emit '{event}'", e)
            return False

        logger.log_event('->', event)
        task = asyncio.get_running_loop().create_task(self._drain(writer))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)
        return True

    def disconnect(self):
        """Close the connection and stop reconnecting."""
        if self._closing:
            return
        was_connected = self.connected
        self._closing = True
        self._drop_connection()

        task, self._task = self._task, None
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()

        if was_connected:
            self._dispatch(Events.DISCONNECT, CLIENT_DISCONNECT_REASON)

    def close(self):
        """Disconnect and forget every handler."""
        self.disconnect()
        self._handlers.clear()

    async def _drain(self, writer: asyncio.StreamWriter):
        try:
            await writer.drain()
        except (ConnectionError, OSError) as e:
            logger.log_error("drain", e)

    async def _run(self):
        if not await self._open():
            return

        while not self._closing:
            reason = await self._listen()
            if self._closing:
                break
            self._drop_connection()
            self._dispatch(Events.DISCONNECT, reason)
            if not await self._open():
                break

    async def _open(self) -> bool:
        """Open the stream, retrying a fixed number of times."""
        last_error: Optional[Exception] = None
        total = self.reconnect_attempts + 1

        for attempt in range(total):
            if attempt:
                logger.info(f"[INFO] Retrying connection in {self.reconnect_delay}s "
                            f"(attempt {attempt}/{self.reconnect_attempts})...")
                await asyncio.sleep(self.reconnect_delay)
            if self._closing:
                return False

            try:
                self.reader, self.writer = await asyncio.open_connection(self.host, self.port)
            except OSError as e:
                last_error = e
                logger.log_connection(self.host, self.port, False)
                continue

            logger.log_connection(self.host, self.port, True)
            self._dispatch(Events.CONNECT)
            return True

        message = str(last_error) or type(last_error).__name__
        logger.error(f"[ERROR] Failed to connect after {total} attempts: {message}")
        self._dispatch(Events.CONNECT_ERROR, message)
        return False

    async def _listen(self) -> str:
        """Dispatch incoming frames until the stream ends. Returns the reason."""
        reader = self.reader
        while not self._closing:
            try:
                data = await reader.readline()
            except (ConnectionError, OSError) as e:
                return f"transport error: {e}"

            if not data:
                return 'transport close'

            try:
                event, payload = decode_frame(data)
            except (ValueError, UnicodeDecodeError) as e:
                logger.error(f"[ERROR] Malformed frame received: {e}")
                continue

            self._dispatch(event, payload)

        return CLIENT_DISCONNECT_REASON

    def _drop_connection(self):
        if self.writer is not None:
            try:
                self.writer.close()
            except (OSError, RuntimeError) as e:
                logger.log_error("close", e)
        self.reader = None
        self.writer = None

    def _dispatch(self, event: str, data: Any = None):
        logger.log_event('<-', event)
        for handler in list(self._handlers.get(event, ())):
            try:
                handler(data)
            except Exception as e:
                logger.log_error(f"handler for '{event}'", e)


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class SubscriptionList:
    """Handlers registered on one transport, released together."""

    def __init__(self, transport):
        self.transport = transport
        self._entries: List[Tuple[str, Handler]] = []

    def add(self, event: str, handler: Handler):
        self.transport.on(event, handler)
        self._entries.append((event, handler))

    def release(self):
        """Unregister every handler added through this list."""
        while self._entries:
            event, handler = self._entries.pop()
            self.transport.off(event, handler)

    def __len__(self) -> int:
        return len(self._entries)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


class TransportHandle:
    """Owner of the transport: constructed on first use, disposed on leave."""

    def __init__(self, factory: Callable[[], Transport]):
        self._factory = factory
        self._transport = None

    @classmethod
    def for_config(cls, config) -> 'TransportHandle':
        info = config.get_connection_info()
        retry = config.get_retry_settings()
        return cls(lambda: Transport(info['host'], info['port'], retry['attempts'], retry['delay']))

    @property
    def created(self) -> bool:
        return self._transport is not None

    def get(self):
        if self._transport is None:
            self._transport = self._factory()
        return self._transport

    def dispose(self):
        transport, self._transport = self._transport, None
        if transport is not None:
            transport.close()
