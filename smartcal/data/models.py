"""
Smart Calendar — Data Models.

Events and todos are the whole persistent state of the organizer. They are
stored as JSON blobs in the key-value store using the camelCase field names
of the browser version of the app, so backups stay interchangeable.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime

EVENT_TYPES = ("work", "personal", "study", "urgent", "other")

# Display color used when an event has no explicit color override
TYPE_COLORS = {
    "urgent": "red",
    "work": "blue",
    "personal": "emerald",
    "study": "amber",
    "other": "slate",
}


def new_id() -> str:
    return str(uuid.uuid4())


def _required_str(data: dict, key: str) -> str:
    """data[key] as a string; KeyError if missing, TypeError if not a string."""
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


def _optional_str(data: dict, key: str) -> str | None:
    """data[key] as a string, None when missing or empty."""
    value = data.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


@dataclass
class CalendarEvent:
    """A dated calendar entry, optionally with a start/end time."""

    id: str
    title: str
    date: str                      # ISO date YYYY-MM-DD
    time: str | None = None        # HH:MM
    end_time: str | None = None    # HH:MM, strictly after time when both set
    type: str = "personal"
    color: str | None = None       # overrides TYPE_COLORS[type]

    @property
    def display_color(self) -> str:
        return self.color or TYPE_COLORS.get(self.type, TYPE_COLORS["other"])

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "date": self.date,
            "type": self.type,
        }
        if self.time is not None:
            data["time"] = self.time
        if self.end_time is not None:
            data["endTime"] = self.end_time
        if self.color is not None:
            data["color"] = self.color
        return data

    @staticmethod
    def from_dict(data: dict) -> CalendarEvent:
        """Build an event from its stored form.

        Raises:
            KeyError: a required key is missing.
            TypeError: a field has the wrong type.
            ValueError: `date` is not an ISO date.
        """
        iso = _required_str(data, "date")
        date.fromisoformat(iso)
        return CalendarEvent(
            id=_required_str(data, "id"),
            title=_required_str(data, "title"),
            date=iso,
            time=_optional_str(data, "time"),
            end_time=_optional_str(data, "endTime"),
            type=_optional_str(data, "type") or "personal",
            color=_optional_str(data, "color"),
        )


@dataclass
class Todo:
    """A task in the to-do list. Pinned todos sort ahead of unpinned ones."""

    id: str
    text: str
    completed: bool = False
    is_pinned: bool = False
    color: str | None = None        # priority marker (hex)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "isPinned": self.is_pinned,
            "createdAt": self.created_at,
        }
        if self.color is not None:
            data["color"] = self.color
        return data

    @staticmethod
    def from_dict(data: dict) -> Todo:
        return Todo(
            id=_required_str(data, "id"),
            text=_required_str(data, "text"),
            completed=bool(data.get("completed", False)),
            is_pinned=bool(data.get("isPinned", False)),
            color=_optional_str(data, "color"),
            created_at=_optional_str(data, "createdAt") or "",
        )


@dataclass
class ChatMessage:
    """One turn of the assistant conversation. Never mutated after creation."""

    text: str
    sender: str                     # "user" | "bot"
    id: str = field(default_factory=new_id)
    timestamp: datetime = field(default_factory=datetime.now)
