"""Core utilities for the in-memory user directory service."""

from __future__ import annotations

from typing import Any

from .directory import UserDirectory, UserNotFoundError
from .models import User, UserPage


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP application."""

    from .service import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "User",
    "UserDirectory",
    "UserNotFoundError",
    "UserPage",
    "create_app",
]
