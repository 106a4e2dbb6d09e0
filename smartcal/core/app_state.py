"""
Smart Calendar — Application State.

Single owner of everything that used to be ambient UI state: the user's
display name, theme, accent color and assistant identity, next to the domain
store and the conversation session. Every setter persists its value.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from smartcal.core.conversation import ConversationSession
from smartcal.core.domain_store import DomainStore
from smartcal.ports.storage_port import (
    ACCENT_KEY,
    ASSISTANT_AVATAR_KEY,
    ASSISTANT_NAME_KEY,
    THEME_KEY,
    USERNAME_KEY,
    StorageError,
)

if TYPE_CHECKING:
    from smartcal.ports.storage_port import KeyValuePort

logger = logging.getLogger(__name__)

THEMES = ("modern", "neon", "pastel")
ACCENT_COLORS = ("blue", "purple", "pink", "orange", "green", "teal")
DEFAULT_THEME = "modern"
DEFAULT_ACCENT = "blue"
DEFAULT_ASSISTANT_NAME = "Olli"
DEFAULT_ASSISTANT_AVATAR = "🦉"


class AppState:
    """Explicit application state passed to the action service and the bot."""

    def __init__(
        self,
        kv: KeyValuePort,
        store: DomainStore | None = None,
        session: ConversationSession | None = None,
    ) -> None:
        self._kv = kv
        self.store = store if store is not None else DomainStore(kv)
        self.session = session if session is not None else ConversationSession()
        self.user_name: str | None = None
        self.theme = DEFAULT_THEME
        self.accent_color = DEFAULT_ACCENT
        self.assistant_name = DEFAULT_ASSISTANT_NAME
        self.assistant_avatar = DEFAULT_ASSISTANT_AVATAR

    @classmethod
    def load(cls, kv: KeyValuePort) -> AppState:
        """Build the state from the key-value store (read once at startup)."""
        state = cls(kv)
        state.store.load()
        state.user_name = state._read(USERNAME_KEY)
        theme = state._read(THEME_KEY)
        state.theme = theme if theme in THEMES else DEFAULT_THEME
        accent = state._read(ACCENT_KEY)
        state.accent_color = accent if accent in ACCENT_COLORS else DEFAULT_ACCENT
        state.assistant_name = state._read(ASSISTANT_NAME_KEY) or DEFAULT_ASSISTANT_NAME
        state.assistant_avatar = state._read(ASSISTANT_AVATAR_KEY) or DEFAULT_ASSISTANT_AVATAR
        return state

    # ------------------------------------------------------------------
    # Persistence helpers (best effort, same policy as the domain store)
    # ------------------------------------------------------------------

    def _read(self, key: str) -> str | None:
        try:
            return self._kv.get(key)
        except StorageError as exc:
            logger.error("Failed to load %s: %s", key, exc)
            return None

    def _persist(self, key: str, value: str) -> None:
        try:
            self._kv.set(key, value)
        except StorageError as exc:
            logger.error("Failed to save %s: %s", key, exc)

    # ------------------------------------------------------------------
    # Mutation entry points
    # ------------------------------------------------------------------

    def set_user_name(self, name: str) -> str:
        name = name.strip()
        if not name:
            raise ValueError("Numele nu poate fi gol.")
        self.user_name = name
        self._persist(USERNAME_KEY, name)
        logger.info("User name set to '%s'", name)
        return name

    def logout(self) -> None:
        self.user_name = None
        try:
            self._kv.delete(USERNAME_KEY)
        except StorageError as exc:
            logger.error("Failed to clear %s: %s", USERNAME_KEY, exc)

    def set_theme(self, theme: str) -> str:
        theme = theme.strip().lower()
        if theme not in THEMES:
            raise ValueError(f"Temă necunoscută: {theme}. Alege din: {', '.join(THEMES)}")
        self.theme = theme
        self._persist(THEME_KEY, theme)
        return theme

    def set_accent_color(self, color: str) -> str:
        color = color.strip().lower()
        if color not in ACCENT_COLORS:
            raise ValueError(f"Culoare necunoscută: {color}. Alege din: {', '.join(ACCENT_COLORS)}")
        self.accent_color = color
        self._persist(ACCENT_KEY, color)
        return color

    def set_assistant_identity(self, name: str, avatar: str | None = None) -> None:
        name = name.strip()
        if not name:
            raise ValueError("Asistentul are nevoie de un nume.")
        self.assistant_name = name
        self._persist(ASSISTANT_NAME_KEY, name)
        if avatar:
            self.assistant_avatar = avatar.strip()
            self._persist(ASSISTANT_AVATAR_KEY, self.assistant_avatar)
        logger.info("Assistant identity: %s %s", self.assistant_name, self.assistant_avatar)
