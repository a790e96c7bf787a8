"""
Typing tracker module.

Keeps the transient set of remote users currently composing a message.
"""

from typing import Dict, Tuple

from groupchat.common.protocol_definitions import User


class TypingTracker:
    """Users flagged as typing, keyed by id, in the order they started."""

    def __init__(self):
        self._typing: Dict[str, User] = {}

    def set_typing(self, user: User, is_typing: bool) -> bool:
        """Apply a typing notice. Returns True when the set changed."""
        if is_typing:
            if user.id in self._typing:
                return False
            self._typing[user.id] = user
            return True

        return self._typing.pop(user.id, None) is not None

    def clear(self):
        self._typing.clear()

    @property
    def users(self) -> Tuple[User, ...]:
        return tuple(self._typing.values())

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._typing

    def __len__(self) -> int:
        return len(self._typing)
