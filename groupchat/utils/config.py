"""
Client configuration module.

This module handles client-side configuration settings.
"""

import os

from groupchat.common.constants import (
    DEFAULT_HOST, DEFAULT_PORT, CONNECTION_TIMEOUT, RECONNECT_ATTEMPTS, RECONNECT_DELAY,
    DISCONNECT_GRACE_PERIOD, TYPING_DEBOUNCE, RELOAD_DELAY, MAX_FILE_SIZE,
    ALLOWED_MIME_TYPES, AVATARS
)


class ClientConfig:
    """Client configuration class."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT):
        self.host = host
        self.port = port

        # Connection settings (seconds)
        self.connection_timeout = CONNECTION_TIMEOUT
        self.reconnect_attempts = RECONNECT_ATTEMPTS
        self.reconnect_delay = RECONNECT_DELAY
        self.disconnect_grace_period = DISCONNECT_GRACE_PERIOD
        self.reload_delay = RELOAD_DELAY

        # Chat settings
        self.typing_debounce = TYPING_DEBOUNCE
        self.avatars = AVATARS

        # File transfer settings
        self.max_file_size = MAX_FILE_SIZE
        self.allowed_mime_types = ALLOWED_MIME_TYPES

    @classmethod
    def from_env(cls, environ=None) -> 'ClientConfig':
        """Build a configuration from CHAT_* environment variables."""
        environ = os.environ if environ is None else environ
        config = cls(
            host=environ.get('CHAT_SERVER_HOST', DEFAULT_HOST),
            port=int(environ.get('CHAT_SERVER_PORT', DEFAULT_PORT))
        )
        if 'CHAT_CONNECTION_TIMEOUT' in environ:
            config.connection_timeout = float(environ['CHAT_CONNECTION_TIMEOUT'])
        return config

    def update_timeouts(self, connection_timeout: float = None, disconnect_grace_period: float = None,
                        typing_debounce: float = None, reload_delay: float = None):
        """Update timer settings."""
        if connection_timeout is not None:
            self.connection_timeout = connection_timeout
        if disconnect_grace_period is not None:
            self.disconnect_grace_period = disconnect_grace_period
        if typing_debounce is not None:
            self.typing_debounce = typing_debounce
        if reload_delay is not None:
            self.reload_delay = reload_delay

    def get_connection_info(self):
        """Get connection information."""
        return {
            'host': self.host,
            'port': self.port
        }

    def get_retry_settings(self):
        """Get transport retry settings."""
        return {
            'attempts': self.reconnect_attempts,
            'delay': self.reconnect_delay
        }

    def get_file_settings(self):
        """Get file upload settings."""
        return {
            'max_file_size': self.max_file_size,
            'allowed_mime_types': self.allowed_mime_types
        }
