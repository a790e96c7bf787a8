"""
Presence module.

The roster is replicated wholesale: every presence-affecting server event
carries the complete list of online users, so the set is only ever replaced,
never patched.
"""

from typing import Callable, Hashable, Iterable, List, Tuple, TypeVar

from groupchat.common.protocol_definitions import User

T = TypeVar('T')


def dedupe_by_key(items: Iterable[T], key: Callable[[T], Hashable]) -> List[T]:
    """Collapse items sharing a key, keeping the last occurrence of each.

    The result is ordered by the position of each key's last occurrence, e.g.
    ``[a1, b, a2]`` becomes ``[b, a2]``. A repeated key moves to where it last
    appeared; it does not keep its first slot the way an insert into a keyed
    map would (``[a2, b]``).
    """
    seen = set()
    kept = []
    for item in reversed(list(items)):
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        kept.append(item)
    kept.reverse()
    return kept


class PresenceSet:
    """Deduplicated roster of online users."""

    def __init__(self):
        self._users: Tuple[User, ...] = ()

    def replace(self, users: Iterable[User]) -> Tuple[User, ...]:
        """Replace the roster with one entry per user id."""
        self._users = tuple(dedupe_by_key(users, lambda user: user.id))
        return self._users

    def clear(self):
        self._users = ()

    @property
    def users(self) -> Tuple[User, ...]:
        return self._users

    def get(self, user_id: str):
        for user in self._users:
            if user.id == user_id:
                return user
        return None

    def __contains__(self, user_id: str) -> bool:
        return self.get(user_id) is not None

    def __len__(self) -> int:
        return len(self._users)

    def __iter__(self):
        return iter(self._users)
