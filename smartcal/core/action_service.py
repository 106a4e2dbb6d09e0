"""
Smart Calendar — UI-Agnostic Action Service.

Service layer that orchestrates all business logic:
parse text -> check conflicts -> create/delete/query events and todos ->
return structured response objects.

The chat adapter calls this service and renders the response objects in its
own way; nothing here talks to Telegram.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Callable

from smartcal.core.conflict_checker import check_conflict, conflict_warning
from smartcal.core.date_resolver import find_date
from smartcal.core.parser import (
    TASK_COLORS,
    ParsedCommand,
    clean_title,
    has_intent_prefix,
    parse_command,
)
from smartcal.core.text import fold, fold_text, tokenize
from smartcal.data.models import CalendarEvent, Todo, new_id

if TYPE_CHECKING:
    from smartcal.core.app_state import AppState
    from smartcal.core.conversation import ConversationSession
    from smartcal.core.domain_store import DomainStore
    from smartcal.core.forms import EventForm

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response types
# ---------------------------------------------------------------------------


class ResponseKind(Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    FALLBACK = "fallback"
    QUERY_RESULT = "query_result"
    FOLLOW_UP = "follow_up"
    NO_ACTION = "no_action"


class DeleteFallback(Enum):
    """What "sterge X" does when no event matches X."""

    TOGGLE_TODO = "toggle"   # complete (or re-open) the first todo matching X
    NONE = "none"            # just report that nothing was found


@dataclass
class ServiceResponse:
    kind: ResponseKind
    message: str


@dataclass
class SuccessResponse(ServiceResponse):
    event: CalendarEvent | None = None
    todo: Todo | None = None
    conflicts: list[CalendarEvent] = field(default_factory=list)


@dataclass
class QueryResultResponse(ServiceResponse):
    events: list[CalendarEvent] = field(default_factory=list)
    todos: list[Todo] = field(default_factory=list)


NOT_UNDERSTOOD_MESSAGE = "Scuze, nu am înțeles. Poți încerca altfel?"


def _celebrations(task_name: str) -> list[str]:
    return [
        "Bravo! 🎉 Încă un task tăiat de pe listă!",
        "Ești pe val! 🌊",
        "Productivitate maximă! 🚀",
        "Excelent! Continuă tot așa! 💪",
        f"Ai terminat \"{task_name}\". Super! ⭐",
    ]


def _event_when(event: CalendarEvent) -> str:
    when = event.date
    if event.time:
        when += f" {event.time}"
        if event.end_time:
            when += f"–{event.end_time}"
    return when


# ---------------------------------------------------------------------------
# Command executor
# ---------------------------------------------------------------------------


def _execute_delete(
    command: ParsedCommand, store: DomainStore, delete_fallback: DeleteFallback,
) -> ServiceResponse:
    if not command.title:
        return ServiceResponse(ResponseKind.NOT_FOUND, "Spune-mi ce să șterg. 🙂")

    event = store.find_event_by_title(command.title)
    if event is not None:
        store.remove_event(event.id)
        return SuccessResponse(
            ResponseKind.SUCCESS, f"Am șters evenimentul \"{event.title}\". 🗑️", event=event,
        )

    # A delete that finds no event toggles a matching todo instead
    if delete_fallback is DeleteFallback.TOGGLE_TODO:
        todo = store.find_todo_by_text(command.title)
        if todo is not None:
            toggled = store.toggle_todo(todo.id)
            verb = "bifat" if toggled.completed else "debifat"
            return SuccessResponse(
                ResponseKind.FALLBACK,
                f"Nu am găsit eveniment, dar am {verb} task-ul \"{toggled.text}\".",
                todo=toggled,
            )

    return ServiceResponse(ResponseKind.NOT_FOUND, f"Nu găsesc \"{command.title}\" să-l șterg.")


def _execute_query(
    command: ParsedCommand,
    store: DomainStore,
    session: ConversationSession,
    today: date,
    rollover_on_same_day: bool,
) -> ServiceResponse:
    work = list(tokenize(command.title))
    target_date = command.date
    if target_date is None:
        match = find_date(work, today, rollover_on_same_day)
        if match is not None:
            del work[match.start:match.end]
            target_date = match.date.isoformat()
    term = clean_title(work)

    found = sorted(
        (
            ev for ev in store.events
            if (target_date is None or ev.date == target_date)
            and fold_text(term) in fold_text(ev.title)
        ),
        key=lambda ev: (ev.date, ev.time or "23:59"),
    )
    session.remember(found)

    if found:
        noun = "eveniment" if len(found) == 1 else "evenimente"
        lines = [f"Am găsit {len(found)} {noun}:"]
        lines += [f"🔹 {ev.title} ({_event_when(ev)})" for ev in found]
        return QueryResultResponse(ResponseKind.QUERY_RESULT, "\n".join(lines), events=found)

    pending = [t for t in store.todos if not t.completed and fold_text(term) in fold_text(t.text)]
    if pending:
        lines = [f"Ai {len(pending)} task-uri:"]
        lines += [f"▫️ {t.text}" for t in pending]
        return QueryResultResponse(ResponseKind.QUERY_RESULT, "\n".join(lines), todos=pending)

    return QueryResultResponse(
        ResponseKind.NOT_FOUND, f"Nu am găsit nimic relevant pentru \"{command.title}\".",
    )


def _insert_event(store: DomainStore, event: CalendarEvent) -> SuccessResponse:
    """Save event, warning (never blocking) about a same-slot conflict."""
    conflict = check_conflict(store.events, event.date, event.time)
    store.add_event(event)

    message = f"Rezolvat! 📅 \"{event.title}\" pe {event.date}"
    if event.time:
        message += f" la {event.time}"
        if event.end_time:
            message += f"–{event.end_time}"
    message += "."
    if conflict.has_conflict:
        message += "\n" + conflict_warning(conflict, event.time)
    return SuccessResponse(
        ResponseKind.SUCCESS, message, event=event, conflicts=conflict.conflicting_events,
    )


def _execute_add_event(command: ParsedCommand, store: DomainStore, today: date) -> SuccessResponse:
    event = CalendarEvent(
        id=new_id(),
        title=command.title,
        date=command.date or today.isoformat(),
        time=command.time,
        end_time=command.end_time,
        type="personal",
        color=command.color,
    )
    return _insert_event(store, event)


def _execute_add_task(command: ParsedCommand, store: DomainStore) -> SuccessResponse:
    todo = store.add_todo(Todo(
        id=new_id(),
        text=command.title,
        is_pinned=command.is_pinned,
        color=command.color,
    ))
    message = f"Am adăugat la to-do: \"{todo.text}\""
    if todo.is_pinned:
        message += " 📌"
    if todo.color:
        message += " 🎨"
    return SuccessResponse(ResponseKind.SUCCESS, message + ".", todo=todo)


def execute_command(
    command: ParsedCommand,
    store: DomainStore,
    session: ConversationSession,
    today: date | None = None,
    delete_fallback: DeleteFallback = DeleteFallback.TOGGLE_TODO,
    rollover_on_same_day: bool = False,
) -> ServiceResponse:
    """Apply a parsed command to the store and describe the outcome.

    Any command clears the remembered query results; a query then records
    its own.
    """
    if today is None:
        today = date.today()
    session.forget()

    if command.intent == "delete":
        return _execute_delete(command, store, delete_fallback)
    if command.intent == "query":
        return _execute_query(command, store, session, today, rollover_on_same_day)
    if command.intent == "add_event":
        return _execute_add_event(command, store, today)
    if command.intent == "add_task":
        return _execute_add_task(command, store)

    logger.info("Unhandled intent '%s'", command.intent)
    return ServiceResponse(ResponseKind.NO_ACTION, NOT_UNDERSTOOD_MESSAGE)


def answer_follow_up(session: ConversationSession) -> ServiceResponse:
    """Answer "la ce oră?" from the events of the previous query."""
    lines = ["Uite când:"]
    for ev in session.last_found:
        when = f"la {ev.time}" if ev.time else "fără oră stabilită"
        if ev.time and ev.end_time:
            when += f"–{ev.end_time}"
        lines.append(f"🕒 {ev.title}: {ev.date} {when}")
    return QueryResultResponse(ResponseKind.FOLLOW_UP, "\n".join(lines), events=list(session.last_found))


# ---------------------------------------------------------------------------
# ActionService
# ---------------------------------------------------------------------------


class ActionService:
    """Entry point for every user action, chat or manual.

    Returns structured response objects — never sends messages directly.
    """

    def __init__(
        self,
        state: AppState,
        delete_fallback: DeleteFallback = DeleteFallback.TOGGLE_TODO,
        rollover_on_same_day: bool = False,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._state = state
        self._delete_fallback = delete_fallback
        self._rollover = rollover_on_same_day
        self._today = today

    @property
    def state(self) -> AppState:
        return self._state

    # ------------------------------------------------------------------
    # Public: chat
    # ------------------------------------------------------------------

    def handle_message(self, text: str) -> ServiceResponse:
        """Process one chat utterance and log both turns in the session."""
        session = self._state.session
        session.add_user_message(text)

        # An explicit command word always wins over the follow-up memory
        if not has_intent_prefix(text) and session.is_follow_up(text):
            response = answer_follow_up(session)
        else:
            today = self._today()
            command = parse_command(text, today, self._rollover)
            response = execute_command(
                command,
                self._state.store,
                session,
                today=today,
                delete_fallback=self._delete_fallback,
                rollover_on_same_day=self._rollover,
            )

        session.add_bot_message(response.message)
        return response

    # ------------------------------------------------------------------
    # Public: manual event actions
    # ------------------------------------------------------------------

    def add_event(self, form: EventForm) -> SuccessResponse:
        return _insert_event(self._state.store, form.to_event())

    def update_event(self, event_id: str, form: EventForm) -> ServiceResponse:
        """Update title and times of an event (date and type stay as they are).

        A clash with another event at the new start time is reported, not blocked.
        """
        store = self._state.store
        current = store.find_event(event_id)
        if current is None:
            return ServiceResponse(ResponseKind.NOT_FOUND, "Nu găsesc evenimentul.")

        conflict = check_conflict(store.events, current.date, form.time, exclude_event_id=event_id)
        updated = store.update_event(
            event_id, title=form.title, time=form.time, end_time=form.end_time,
        )
        message = f"Eveniment actualizat: {updated.title} ✏️"
        if conflict.has_conflict:
            message += "\n" + conflict_warning(conflict, form.time)
        return SuccessResponse(
            ResponseKind.SUCCESS, message, event=updated, conflicts=conflict.conflicting_events,
        )

    def delete_event(self, event_id: str) -> ServiceResponse:
        event = self._state.store.find_event(event_id)
        if event is None or not self._state.store.remove_event(event_id):
            return ServiceResponse(ResponseKind.NOT_FOUND, "Nu găsesc evenimentul.")
        return SuccessResponse(
            ResponseKind.SUCCESS, f"Am șters evenimentul \"{event.title}\". 🗑️", event=event,
        )

    # ------------------------------------------------------------------
    # Public: manual todo actions
    # ------------------------------------------------------------------

    def add_todo(self, text: str, is_pinned: bool = False, color: str | None = None) -> SuccessResponse:
        text = text.strip()
        if not text:
            raise ValueError("Task-ul are nevoie de un text.")
        return _execute_add_task(
            ParsedCommand(intent="add_task", title=text, is_pinned=is_pinned, color=color),
            self._state.store,
        )

    def toggle_todo(self, todo_id: str) -> ServiceResponse:
        """Flip completion; finishing a task earns a celebration message."""
        todo = self._state.store.toggle_todo(todo_id)
        if todo is None:
            return ServiceResponse(ResponseKind.NOT_FOUND, "Nu găsesc task-ul.")
        if todo.completed:
            message = random.choice(_celebrations(todo.text))
        else:
            message = f"Am redeschis task-ul \"{todo.text}\"."
        return SuccessResponse(ResponseKind.SUCCESS, message, todo=todo)

    def toggle_pin(self, todo_id: str) -> ServiceResponse:
        todo = self._state.store.toggle_pin(todo_id)
        if todo is None:
            return ServiceResponse(ResponseKind.NOT_FOUND, "Nu găsesc task-ul.")
        message = f"📌 \"{todo.text}\" e fixat sus." if todo.is_pinned else f"\"{todo.text}\" nu mai e fixat."
        return SuccessResponse(ResponseKind.SUCCESS, message, todo=todo)

    def set_todo_color(self, todo_id: str, color_name: str) -> ServiceResponse:
        """Recolor a todo using a Romanian color name ("rosu") or a hex value."""
        color = TASK_COLORS.get(fold(color_name))
        if color is None and color_name.startswith("#") and len(color_name) in (4, 7):
            color = color_name.lower()
        if color is None:
            return ServiceResponse(ResponseKind.NO_ACTION, f"Nu cunosc culoarea \"{color_name}\".")
        todo = self._state.store.update_todo(todo_id, color=color)
        if todo is None:
            return ServiceResponse(ResponseKind.NOT_FOUND, "Nu găsesc task-ul.")
        return SuccessResponse(ResponseKind.SUCCESS, f"🎨 \"{todo.text}\" are acum culoarea {color}.", todo=todo)

    def delete_todo(self, todo_id: str) -> ServiceResponse:
        todo = self._state.store.find_todo(todo_id)
        if todo is None or not self._state.store.remove_todo(todo_id):
            return ServiceResponse(ResponseKind.NOT_FOUND, "Nu găsesc task-ul.")
        return SuccessResponse(ResponseKind.SUCCESS, f"Am șters task-ul \"{todo.text}\". 🗑️", todo=todo)
