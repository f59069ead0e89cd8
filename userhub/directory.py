"""In-memory user directory with paginated listing."""

from __future__ import annotations

import math
import re
import threading
from typing import Iterable, List, Optional, Tuple

from .models import User, UserPage

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 5

SEED_USERS: Tuple[Tuple[str, str], ...] = (
    ("Alice Johnson", "alice@example.com"),
    ("Bob Smith", "bob@example.com"),
    ("Charlie Brown", "charlie@example.com"),
    ("Diana Prince", "diana@example.com"),
    ("Eve Davis", "eve@example.com"),
    ("Frank Miller", "frank@example.com"),
    ("Grace Lee", "grace@example.com"),
    ("Henry Wilson", "henry@example.com"),
    ("Iris Taylor", "iris@example.com"),
    ("Jack Anderson", "jack@example.com"),
)

_LEADING_INTEGER = re.compile(r"^\s*([+-]?[0-9]+)")


class UserNotFoundError(KeyError):
    """Raised when a user identifier does not match any record."""

    def __init__(self, user_id: object) -> None:
        super().__init__(f"Unknown user '{user_id}'")
        self.user_id = user_id


def parse_positive_int(value: object, default: int) -> int:
    """Parse the leading integer of ``value``, falling back to ``default``.

    ``"3"`` and ``"3rd"`` both yield 3. Missing values, text without a leading
    integer, zero and negative numbers all yield ``default``.
    """

    if value is None:
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value if value > 0 else default
    match = _LEADING_INTEGER.match(str(value))
    if match is None:
        return default
    parsed = int(match.group(1))
    return parsed if parsed > 0 else default


class UserDirectory:
    """Ordered collection of users guarded by a single lock.

    Identifiers are assigned from a counter that only ever moves forward, so an
    identifier freed by :meth:`delete` is never handed out again.
    """

    def __init__(
        self,
        users: Optional[Iterable[Tuple[str, str]]] = None,
        *,
        default_page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        if default_page_size <= 0:
            raise ValueError("default_page_size must be a positive integer")
        self._default_page_size = default_page_size
        self._users: List[User] = []
        self._next_id = 1
        self._lock = threading.Lock()
        for name, email in SEED_USERS if users is None else users:
            self.create(name, email)

    @property
    def default_page_size(self) -> int:
        return self._default_page_size

    @property
    def next_id(self) -> int:
        with self._lock:
            return self._next_id

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)

    def all(self) -> List[User]:
        with self._lock:
            return list(self._users)

    def get(self, user_id: int) -> User:
        with self._lock:
            for user in self._users:
                if user.id == user_id:
                    return user
        raise UserNotFoundError(user_id)

    def list(self, page: object = None, limit: object = None) -> UserPage:
        """Return one page of users; out-of-range pages are simply empty."""

        page_number = parse_positive_int(page, DEFAULT_PAGE)
        page_size = parse_positive_int(limit, self._default_page_size)
        start = (page_number - 1) * page_size

        with self._lock:
            total = len(self._users)
            selected = tuple(self._users[start : start + page_size])

        return UserPage(
            users=selected,
            page=page_number,
            limit=page_size,
            total_pages=math.ceil(total / page_size),
            total_users=total,
        )

    def create(self, name: Optional[str], email: Optional[str]) -> User:
        if not name or not email:
            raise ValueError("Name and email are required")

        with self._lock:
            user = User(id=self._next_id, name=name, email=email)
            self._next_id += 1
            self._users.append(user)
        return user

    def delete(self, user_id: int) -> User:
        with self._lock:
            for index, user in enumerate(self._users):
                if user.id == user_id:
                    return self._users.pop(index)
        raise UserNotFoundError(user_id)


__all__ = [
    "DEFAULT_PAGE",
    "DEFAULT_PAGE_SIZE",
    "SEED_USERS",
    "UserDirectory",
    "UserNotFoundError",
    "parse_positive_int",
]
