"""
Smart Calendar — Domain Store.

Authoritative in-memory copies of events and todos. Every mutation mirrors
the whole collection to the key-value store; the mirror is best effort, so
a failed write is logged and the in-memory state stays authoritative.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Iterable

from smartcal.core.text import fold_text
from smartcal.data.models import CalendarEvent, Todo
from smartcal.ports.storage_port import EVENTS_KEY, TODOS_KEY, StorageError

if TYPE_CHECKING:
    from smartcal.ports.storage_port import KeyValuePort

logger = logging.getLogger(__name__)


def pinned_first(todos: Iterable[Todo]) -> list[Todo]:
    """Stable partition: pinned todos first, each group in the given order."""
    return sorted(todos, key=lambda t: not t.is_pinned)


def _contains(haystack: str, needle: str) -> bool:
    """Case- and diacritic-insensitive substring test."""
    return fold_text(needle) in fold_text(haystack)


class DomainStore:
    """CRUD surface over events[] and todos[], mirrored to a KeyValuePort."""

    def __init__(self, kv: KeyValuePort) -> None:
        self._kv = kv
        self._events: list[CalendarEvent] = []
        # Insertion order; the pinned-first view is derived on read
        self._todos: list[Todo] = []

    @property
    def events(self) -> list[CalendarEvent]:
        return list(self._events)

    @property
    def todos(self) -> list[Todo]:
        """Pinned todos first, each group in insertion order."""
        return pinned_first(self._todos)

    @property
    def todos_in_insertion_order(self) -> list[Todo]:
        return list(self._todos)

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Read both collections once from the key-value store."""
        self._events = self._read(EVENTS_KEY, CalendarEvent.from_dict)
        self._todos = self._read(TODOS_KEY, Todo.from_dict)
        logger.info("Loaded %d events and %d todos", len(self._events), len(self._todos))

    def _read(self, key: str, factory) -> list:
        try:
            raw = self._kv.get(key)
        except StorageError as exc:
            logger.error("Failed to load %s: %s", key, exc)
            return []
        if not raw:
            return []
        try:
            return [factory(item) for item in json.loads(raw)]
        except (ValueError, TypeError, KeyError) as exc:
            logger.error("Stored %s are unreadable, starting empty: %s", key, exc)
            return []

    # ------------------------------------------------------------------
    # Mirror
    # ------------------------------------------------------------------

    def _mirror(self, key: str, items: list) -> None:
        try:
            self._kv.set(key, json.dumps([item.to_dict() for item in items], ensure_ascii=False))
        except (StorageError, TypeError, ValueError) as exc:
            logger.error("Failed to save %s: %s", key, exc)

    def _save_events(self) -> None:
        self._mirror(EVENTS_KEY, self._events)

    def _save_todos(self) -> None:
        self._mirror(TODOS_KEY, self._todos)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def add_event(self, event: CalendarEvent) -> CalendarEvent:
        self._events.append(event)
        self._save_events()
        logger.info("Event added: '%s' on %s %s", event.title, event.date, event.time or "")
        return event

    def find_event(self, event_id: str) -> CalendarEvent | None:
        return next((ev for ev in self._events if ev.id == event_id), None)

    def find_event_by_title(self, fragment: str) -> CalendarEvent | None:
        """First event whose title contains fragment."""
        return next((ev for ev in self._events if _contains(ev.title, fragment)), None)

    def update_event(self, event_id: str, **changes) -> CalendarEvent | None:
        """Replace fields of an event; returns the updated event or None."""
        for i, ev in enumerate(self._events):
            if ev.id == event_id:
                updated = replace(ev, **changes)
                self._events[i] = updated
                self._save_events()
                logger.info("Event %s updated: %s", event_id, sorted(changes))
                return updated
        return None

    def remove_event(self, event_id: str) -> bool:
        before = len(self._events)
        self._events = [ev for ev in self._events if ev.id != event_id]
        removed = len(self._events) < before
        if removed:
            self._save_events()
            logger.info("Event %s removed", event_id)
        return removed

    def replace_events(self, events: list[CalendarEvent]) -> None:
        self._events = list(events)
        self._save_events()

    # ------------------------------------------------------------------
    # Todos
    # ------------------------------------------------------------------

    def add_todo(self, todo: Todo) -> Todo:
        self._todos.append(todo)
        self._save_todos()
        logger.info("Todo added: '%s'%s", todo.text, " (pinned)" if todo.is_pinned else "")
        return todo

    def find_todo(self, todo_id: str) -> Todo | None:
        return next((t for t in self._todos if t.id == todo_id), None)

    def find_todo_by_text(self, fragment: str, pending_only: bool = False) -> Todo | None:
        """First todo whose text contains fragment."""
        return next(
            (
                t for t in self.todos
                if _contains(t.text, fragment) and not (pending_only and t.completed)
            ),
            None,
        )

    def update_todo(self, todo_id: str, **changes) -> Todo | None:
        """Replace fields of a todo in place; its insertion slot never moves."""
        for i, todo in enumerate(self._todos):
            if todo.id == todo_id:
                updated = replace(todo, **changes)
                self._todos[i] = updated
                self._save_todos()
                return updated
        return None

    def toggle_todo(self, todo_id: str) -> Todo | None:
        todo = self.find_todo(todo_id)
        if todo is None:
            return None
        return self.update_todo(todo_id, completed=not todo.completed)

    def toggle_pin(self, todo_id: str) -> Todo | None:
        todo = self.find_todo(todo_id)
        if todo is None:
            return None
        return self.update_todo(todo_id, is_pinned=not todo.is_pinned)

    def remove_todo(self, todo_id: str) -> bool:
        before = len(self._todos)
        self._todos = [t for t in self._todos if t.id != todo_id]
        removed = len(self._todos) < before
        if removed:
            self._save_todos()
            logger.info("Todo %s removed", todo_id)
        return removed

    def replace_todos(self, todos: list[Todo]) -> None:
        self._todos = list(todos)
        self._save_todos()
