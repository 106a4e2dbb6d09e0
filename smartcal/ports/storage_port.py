"""Storage port — abstract interface for the key-value mirror.

Core modules depend on this protocol, never on a specific backend.
"""

from __future__ import annotations

from typing import Protocol

# Keys shared by every backend
EVENTS_KEY = "events"
TODOS_KEY = "todos"
THEME_KEY = "theme"
USERNAME_KEY = "username"
ACCENT_KEY = "accent_color"
ASSISTANT_NAME_KEY = "assistant_name"
ASSISTANT_AVATAR_KEY = "assistant_avatar"


class StorageError(Exception):
    """Raised when a key-value backend cannot read or write a value."""


class KeyValuePort(Protocol):
    """Synchronous string key → string value store."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...
