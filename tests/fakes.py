"""
Test doubles shared by the unit tests.

FakeScheduler stands in for an event loop's call_later so timer-driven
behaviour can be stepped deterministically. FakeTransport records emitted
events and lets a test play the server side.
"""

from typing import Any, Dict, List


class FakeHandle:
    def __init__(self, when: float, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manual clock with a call_later compatible with asyncio loops."""

    def __init__(self):
        self.now = 0.0
        self._handles: List[FakeHandle] = []

    def call_later(self, delay: float, callback) -> FakeHandle:
        handle = FakeHandle(self.now + delay, callback)
        self._handles.append(handle)
        return handle

    def advance(self, seconds: float):
        """Move the clock forward, firing due callbacks in order."""
        target = self.now + seconds
        while True:
            due = [h for h in self._handles if not h.cancelled and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self._handles.remove(handle)
            self.now = handle.when
            handle.callback()
        self.now = target

    @property
    def pending(self) -> int:
        return len([h for h in self._handles if not h.cancelled])


class FakeTransport:
    """In-memory transport; the test drives the server side."""

    def __init__(self):
        self.connected = False
        self.handlers: Dict[str, list] = {}
        self.emitted: List[tuple] = []
        self.connect_calls = 0
        self.closed = False
        self.handler_errors: List[Exception] = []

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    def off(self, event, handler=None):
        if handler is None:
            self.handlers.pop(event, None)
            return
        handlers = self.handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self.handlers.pop(event, None)

    def handler_count(self, event=None) -> int:
        if event is not None:
            return len(self.handlers.get(event, []))
        return sum(len(h) for h in self.handlers.values())

    def connect(self):
        self.connect_calls += 1

    def emit(self, event, data=None) -> bool:
        if not self.connected:
            return False
        self.emitted.append((event, data))
        return True

    def disconnect(self):
        was_connected = self.connected
        self.connected = False
        if was_connected:
            self.fire('disconnect', 'io client disconnect')

    def close(self):
        self.disconnect()
        self.handlers.clear()
        self.closed = True

    # Server side

    def fire(self, event, data: Any = None):
        # Handler errors are isolated the same way Transport._dispatch does
        for handler in list(self.handlers.get(event, [])):
            try:
                handler(data)
            except Exception as e:
                self.handler_errors.append(e)

    def server_connect(self):
        self.connected = True
        self.fire('connect')

    def server_drop(self, reason='transport close'):
        self.connected = False
        self.fire('disconnect', reason)

    def emitted_payloads(self, event) -> list:
        return [data for name, data in self.emitted if name == event]


class TransportFactory:
    """Builds FakeTransports and remembers every one it built."""

    def __init__(self):
        self.built: List[FakeTransport] = []

    def __call__(self) -> FakeTransport:
        transport = FakeTransport()
        self.built.append(transport)
        return transport

    @property
    def latest(self) -> FakeTransport:
        return self.built[-1]


def user_payload(user_id, username, avatar='👤'):
    return {
        "id": user_id,
        "username": username,
        "avatar": avatar,
        "isOnline": True,
        "lastSeen": "2024-05-01T10:00:00.000Z",
    }


def message_payload(message_id, user, content='hello', created_at='2024-05-01T10:00:00.000Z', **extra):
    data = {
        "id": message_id,
        "content": content,
        "type": "text",
        "userId": user["id"],
        "user": user,
        "createdAt": created_at,
    }
    data.update(extra)
    return data
