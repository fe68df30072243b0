"""Per-user cursor offsets and their (line, column) display positions."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Dict, Hashable, Iterable, Optional

from collab_editor.document.store import utc_now

UserId = Hashable


class UnknownUserError(KeyError):
    """Raised when a cursor update names a user that was never registered."""

    def __init__(self, user_id: UserId) -> None:
        super().__init__(user_id)
        self.user_id = user_id


@dataclass(frozen=True, slots=True)
class CursorPosition:
    line: int
    column: int


@dataclass(slots=True)
class User:
    id: UserId
    display_name: str
    color: str
    cursor_offset: int = 0
    active: bool = True
    updated_at: Optional[datetime] = None


def clamp_offset(offset: int, content: str) -> int:
    return max(0, min(int(offset), len(content)))


def position_of(offset: int, content: str) -> CursorPosition:
    """1-based line and column of ``offset`` within ``content``.

    An offset just past a trailing newline lands on the empty last line.
    """

    head = content[: clamp_offset(offset, content)]
    last_break = head.rfind("\n")
    return CursorPosition(
        line=head.count("\n") + 1,
        column=len(head) - last_break,
    )


class CursorRegistry:
    """Tracks users in registration order and their clamped cursor offsets.

    Updates are last-write-wins per user; there is no ordering across users.
    Stored offsets are clamped on write and again on read, since the document
    may have shrunk in between. Callers only ever get copies of the stored
    users.
    """

    def __init__(
        self,
        content_source: Callable[[], str],
        *,
        local_user_id: Optional[UserId] = None,
        users: Iterable[User] = (),
    ) -> None:
        self._content_source = content_source
        self._users: Dict[UserId, User] = {}
        self.local_user_id = local_user_id
        for user in users:
            self.register(user)

    def __len__(self) -> int:
        return len(self._users)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._users

    def register(self, user: User) -> User:
        if user.id in self._users:
            raise ValueError(f"User '{user.id}' already registered")
        stored = replace(
            user, cursor_offset=clamp_offset(user.cursor_offset, self.content())
        )
        self._users[user.id] = stored
        return replace(stored)

    def unregister(self, user_id: UserId) -> User:
        try:
            return self._users.pop(user_id)
        except KeyError:
            raise UnknownUserError(user_id) from None

    def get(self, user_id: UserId) -> User:
        return self._view((self._lookup(user_id),))[0]

    def update_cursor(
        self,
        user_id: UserId,
        offset: int,
        *,
        timestamp: Optional[datetime] = None,
    ) -> User:
        user = self._lookup(user_id)
        user.cursor_offset = clamp_offset(offset, self.content())
        user.updated_at = timestamp or utc_now()
        return replace(user)

    def set_active(self, user_id: UserId, active: bool) -> User:
        user = self._lookup(user_id)
        user.active = bool(active)
        return self.get(user_id)

    def offset_of(self, user_id: UserId) -> int:
        return clamp_offset(self._lookup(user_id).cursor_offset, self.content())

    def position_for(self, user_id: UserId) -> CursorPosition:
        return position_of(self._lookup(user_id).cursor_offset, self.content())

    def users(self) -> tuple[User, ...]:
        return self._view(self._users.values())

    def active_users(self) -> tuple[User, ...]:
        return self._view(user for user in self._users.values() if user.active)

    def remote_users(self, *, active_only: bool = True) -> tuple[User, ...]:
        pool = self.active_users() if active_only else self.users()
        return tuple(user for user in pool if user.id != self.local_user_id)

    def _lookup(self, user_id: UserId) -> User:
        try:
            return self._users[user_id]
        except KeyError:
            raise UnknownUserError(user_id) from None

    def _view(self, users: Iterable[User]) -> tuple[User, ...]:
        content = self.content()
        return tuple(
            replace(user, cursor_offset=clamp_offset(user.cursor_offset, content))
            for user in users
        )

    def content(self) -> str:
        return self._content_source()
