"""
Client logging module.

This module handles client-side logging functionality.
"""

import logging
import sys


class ClientLogger:
    """Client logging class."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger('groupchat_client')
        self.logger.setLevel(log_level)

        # Remove existing handlers
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)

        formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        console_handler.setFormatter(formatter)

        self.logger.addHandler(console_handler)

    def set_level(self, log_level: int):
        """Change the level of the logger and its handlers."""
        self.logger.setLevel(log_level)
        for handler in self.logger.handlers:
            handler.setLevel(log_level)

    def info(self, message: str):
        """Log info message."""
        self.logger.info(message)

    def error(self, message: str):
        """Log error message."""
        self.logger.error(message)

    def warning(self, message: str):
        """Log warning message."""
        self.logger.warning(message)

    def debug(self, message: str):
        """Log debug message."""
        self.logger.debug(message)

    def log_connection(self, host: str, port: int, success: bool):
        """Log connection attempt."""
        status = "Connected" if success else "Failed to connect"
        self.info(f"{status} to {host}:{port}")

    def log_state_change(self, old: str, new: str, reason: str = ""):
        """Log a connection state transition."""
        if reason:
            self.info(f"[STATE] {old} -> {new} ({reason})")
        else:
            self.info(f"[STATE] {old} -> {new}")

    def log_event(self, direction: str, event: str):
        """Log an event crossing the transport."""
        self.debug(f"[EVENT] {direction} {event}")

    def log_join(self, username: str, avatar: str):
        """Log local join."""
        self.info(f"[INFO] Joining as '{username}' {avatar}")

    def log_leave(self, username: str):
        """Log local leave."""
        self.info(f"[INFO] '{username}' left the chat")

    def log_chat_sent(self, message_id: str):
        """Log chat message sent."""
        self.debug(f"Chat sent: id={message_id}")

    def log_rejected(self, operation: str, reason: str):
        """Log an input rejected before reaching the transport."""
        self.warning(f"[REJECTED] {operation}: {reason}")

    def show_user_joined(self, username: str, user_id: str):
        """Show user joined notification."""
        self.info(f"[EVENT] User '{username}' joined (id={user_id})")

    def show_user_left(self, username: str, user_id: str):
        """Show user left notification."""
        self.info(f"[EVENT] User '{username}' left (id={user_id})")

    def show_interactive_mode_info(self):
        """Show interactive mode information."""
        self.info("[INFO] Type messages to chat (Ctrl+C to exit)")
        self.info("[INFO] Commands: /upload <path> /users /leave /help")

    def log_error(self, operation: str, error: Exception):
        """Log error with operation context."""
        self.error(f"Error in {operation}: {error}")


# Global logger instance
logger = ClientLogger()
