"""
User-facing notices.

The session controller reports transient notices (joins, leaves, server
errors, rejected input) through a notifier. Front ends supply their own
presentation; the default writes them to the client log.
"""

from groupchat.utils.logger import logger


class Notifier:
    """Notice sink. Subclasses override notify()."""

    SUCCESS = 'success'
    INFO = 'info'
    ERROR = 'error'

    def notify(self, level: str, text: str):
        raise NotImplementedError

    def success(self, text: str):
        self.notify(self.SUCCESS, text)

    def info(self, text: str):
        self.notify(self.INFO, text)

    def error(self, text: str):
        self.notify(self.ERROR, text)


class LogNotifier(Notifier):
    """Writes notices to the client log."""

    def notify(self, level: str, text: str):
        if level == self.ERROR:
            logger.error(f"[NOTICE] {text}")
        else:
            logger.info(f"[NOTICE] {text}")


class CallbackNotifier(Notifier):
    """Forwards notices to a callable taking (level, text)."""

    def __init__(self, callback):
        self.callback = callback

    def notify(self, level: str, text: str):
        self.callback(level, text)
