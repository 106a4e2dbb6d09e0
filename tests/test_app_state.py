"""Tests for smartcal.core.app_state — profile, theme and assistant identity."""

from unittest.mock import MagicMock

import pytest

from smartcal.core.app_state import (
    DEFAULT_ACCENT,
    DEFAULT_ASSISTANT_AVATAR,
    DEFAULT_ASSISTANT_NAME,
    DEFAULT_THEME,
    AppState,
)
from smartcal.ports.storage_port import THEME_KEY, USERNAME_KEY, StorageError


class TestDefaults:
    def test_empty_store(self, state):
        assert state.user_name is None
        assert state.theme == DEFAULT_THEME
        assert state.accent_color == DEFAULT_ACCENT
        assert state.assistant_name == DEFAULT_ASSISTANT_NAME
        assert state.assistant_avatar == DEFAULT_ASSISTANT_AVATAR

    def test_unknown_stored_theme_falls_back(self, kv):
        kv.set(THEME_KEY, "disco")
        assert AppState.load(kv).theme == DEFAULT_THEME


class TestSetters:
    def test_user_name_persists(self, kv, state):
        state.set_user_name("  Ana ")
        assert state.user_name == "Ana"
        assert AppState.load(kv).user_name == "Ana"

    def test_blank_user_name(self, state):
        with pytest.raises(ValueError):
            state.set_user_name("  ")

    def test_logout(self, kv, state):
        state.set_user_name("Ana")
        state.logout()
        assert state.user_name is None
        assert kv.get(USERNAME_KEY) is None

    def test_theme(self, kv, state):
        assert state.set_theme("Pastel") == "pastel"
        assert AppState.load(kv).theme == "pastel"

    def test_unknown_theme(self, state):
        with pytest.raises(ValueError):
            state.set_theme("disco")

    def test_accent(self, kv, state):
        state.set_accent_color("teal")
        assert AppState.load(kv).accent_color == "teal"
        with pytest.raises(ValueError):
            state.set_accent_color("beige")

    def test_assistant_identity(self, kv, state):
        state.set_assistant_identity("Robo", "🤖")
        reloaded = AppState.load(kv)
        assert (reloaded.assistant_name, reloaded.assistant_avatar) == ("Robo", "🤖")

    def test_assistant_keeps_avatar_when_omitted(self, state):
        state.set_assistant_identity("Robo")
        assert state.assistant_avatar == DEFAULT_ASSISTANT_AVATAR

    def test_assistant_needs_name(self, state):
        with pytest.raises(ValueError):
            state.set_assistant_identity("")


class TestStorageFailures:
    def test_failed_reads_use_defaults(self):
        kv = MagicMock()
        kv.get.side_effect = StorageError("locked")
        state = AppState.load(kv)
        assert state.user_name is None
        assert state.theme == DEFAULT_THEME

    def test_failed_write_keeps_value_in_memory(self):
        kv = MagicMock()
        kv.get.return_value = None
        kv.set.side_effect = StorageError("disk full")
        state = AppState.load(kv)
        state.set_user_name("Ana")
        assert state.user_name == "Ana"
