"""Domain models shared by the directory and the HTTP service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class User:
    """Represents a user record held by the directory."""

    id: int
    name: str
    email: str


@dataclass(frozen=True)
class UserPage:
    """A slice of the directory together with its pagination counters."""

    users: Tuple[User, ...]
    page: int
    limit: int
    total_pages: int
    total_users: int


__all__ = ["User", "UserPage"]
