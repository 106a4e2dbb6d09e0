"""
Smart Calendar — Backup export / import.

A backup is one JSON document:
{
    "user": {"name": "Ana"},
    "events": [...],
    "todos": [...],
    "theme": "modern",
    "exportedAt": "2024-05-06T09:00:00",
    "version": "1.0"
}
Import is all-or-nothing for broken JSON, and field-by-field otherwise:
whatever well-shaped fields are present get adopted, the rest stay untouched.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from smartcal.core.app_state import THEMES
from smartcal.data.models import CalendarEvent, Todo

if TYPE_CHECKING:
    from smartcal.core.app_state import AppState

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"
INVALID_FILE_MESSAGE = "Fișier invalid! Te rog încarcă un backup .json valid."


class BackupError(Exception):
    """Raised when a backup document cannot be imported at all."""


def export_backup(state: AppState, now: datetime | None = None) -> dict:
    """Snapshot the application state as a backup document."""
    if now is None:
        now = datetime.now()
    return {
        "user": {"name": state.user_name},
        "events": [ev.to_dict() for ev in state.store.events],
        "todos": [t.to_dict() for t in state.store.todos_in_insertion_order],
        "theme": state.theme,
        "exportedAt": now.isoformat(),
        "version": BACKUP_VERSION,
    }


def dumps_backup(state: AppState, now: datetime | None = None) -> str:
    return json.dumps(export_backup(state, now), ensure_ascii=False, indent=2)


def backup_filename(now: datetime | None = None) -> str:
    if now is None:
        now = datetime.now()
    return f"smart-calendar-backup-{now.date().isoformat()}.json"


def _parse_items(raw_items: list, factory: Callable[[dict], object], label: str) -> list:
    """Convert raw dicts, skipping entries that are not usable."""
    items = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            logger.warning("Skipping non-object %s entry: %r", label, raw)
            continue
        try:
            items.append(factory(raw))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping malformed %s entry (%s): %r", label, exc, raw)
    return items


def import_backup(state: AppState, raw: str | bytes) -> list[str]:
    """Apply a backup document to state.

    Returns:
        Names of the fields that were applied ("user", "events", "todos", "theme").

    Raises:
        BackupError: if raw is not a JSON object with at least `user` or `events`.
            Nothing is applied in that case.
    """
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as exc:
        logger.error("Backup is not valid JSON: %s", exc)
        raise BackupError(INVALID_FILE_MESSAGE) from exc

    if not isinstance(data, dict) or ("user" not in data and "events" not in data):
        logger.error("Backup has an unexpected shape: %s", type(data).__name__)
        raise BackupError(INVALID_FILE_MESSAGE)

    applied: list[str] = []

    user = data.get("user")
    if isinstance(user, dict) and isinstance(user.get("name"), str) and user["name"].strip():
        state.set_user_name(user["name"])
        applied.append("user")

    if isinstance(data.get("events"), list):
        state.store.replace_events(_parse_items(data["events"], CalendarEvent.from_dict, "event"))
        applied.append("events")

    if isinstance(data.get("todos"), list):
        state.store.replace_todos(_parse_items(data["todos"], Todo.from_dict, "todo"))
        applied.append("todos")

    theme = data.get("theme")
    if theme in THEMES:
        state.set_theme(theme)
        applied.append("theme")
    elif theme is not None:
        logger.warning("Ignoring unknown theme in backup: %r", theme)

    logger.info("Backup imported: %s", ", ".join(applied) or "nothing")
    return applied
