"""
Cancellable single-shot timers.

A timer is owned by the component that schedules it. Starting a timer that is
already pending cancels the pending call first, so a timer identity never has
more than one scheduled callback.
"""

import asyncio
from typing import Callable, Optional

from groupchat.utils.logger import logger


class CancellableTimer:
    """Single-shot timer on top of an event loop's call_later."""

    def __init__(self, name: str, delay: float, callback: Callable[[], None], scheduler=None):
        self.name = name
        self.delay = delay
        self.callback = callback
        # Anything with call_later(delay, fn) -> handle.cancel(); defaults to the running loop
        self._scheduler = scheduler
        self._handle = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self, delay: Optional[float] = None):
        """Schedule the callback, replacing any pending one."""
        self.cancel()
        scheduler = self._scheduler or asyncio.get_running_loop()
        self._handle = scheduler.call_later(self.delay if delay is None else delay, self._fire)

    def cancel(self):
        """Cancel the pending callback, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self):
        self._handle = None
        try:
            self.callback()
        except Exception as e:
            logger.log_error(f"timer '{self.name}'", e)
