"""Tests for smartcal.core.action_service — UI-agnostic service layer.

Runs the real parser and domain store against a temp key-value DB.
No Telegram dependency anywhere in this file.
"""

from datetime import date

import pytest

from smartcal.core.action_service import (
    NOT_UNDERSTOOD_MESSAGE,
    ActionService,
    DeleteFallback,
    QueryResultResponse,
    ResponseKind,
    SuccessResponse,
    _celebrations,
    execute_command,
)
from smartcal.core.forms import EventForm
from smartcal.core.parser import ParsedCommand
from smartcal.data.models import CalendarEvent, Todo

# Wednesday
WED = date(2024, 5, 1)


def _add(service, title, day, time=None, eid=None):
    event = CalendarEvent(id=eid or title, title=title, date=day, time=time)
    return service.state.store.add_event(event)


# ---------------------------------------------------------------------------
# handle_message: adding
# ---------------------------------------------------------------------------


class TestHandleMessageAdd:
    def test_add_event_from_text(self, service):
        response = service.handle_message("adauga sedinta luni la 10")
        assert isinstance(response, SuccessResponse)
        assert response.kind == ResponseKind.SUCCESS
        assert response.event.date == "2024-05-06"
        assert response.event.time == "10:00"
        assert response.message.startswith("Rezolvat! 📅")
        assert service.state.store.events == [response.event]

    def test_time_only_event_defaults_to_today(self, service):
        response = service.handle_message("sala la 18")
        assert response.event.date == "2024-05-01"

    def test_conflict_warns_but_saves(self, service):
        _add(service, "Sedinta", "2024-05-06", "09:00")
        response = service.handle_message("dentist luni la 9")
        assert response.kind == ResponseKind.SUCCESS
        assert [ev.title for ev in response.conflicts] == ["Sedinta"]
        assert "⚠️ Atenție!" in response.message
        assert len(service.state.store.events) == 2

    def test_add_pinned_task(self, service):
        response = service.handle_message("task cumparaturi urgent")
        assert response.todo.text == "cumparaturi"
        assert response.todo.is_pinned is True
        assert "📌" in response.message

    def test_unknown(self, service):
        response = service.handle_message("!!!")
        assert response.kind == ResponseKind.NO_ACTION
        assert response.message == NOT_UNDERSTOOD_MESSAGE

    def test_both_turns_logged(self, service):
        service.handle_message("task lapte")
        senders = [m.sender for m in service.state.session.messages]
        assert senders == ["user", "bot"]


# ---------------------------------------------------------------------------
# handle_message: deleting
# ---------------------------------------------------------------------------


class TestHandleMessageDelete:
    def test_delete_event(self, service):
        _add(service, "Dentist", "2024-05-02")
        response = service.handle_message("sterge dentist")
        assert response.kind == ResponseKind.SUCCESS
        assert service.state.store.events == []

    def test_delete_without_title(self, service):
        response = service.handle_message("sterge")
        assert response.kind == ResponseKind.NOT_FOUND

    def test_falls_back_to_toggling_todo(self, service):
        service.add_todo("cumparaturi")
        response = service.handle_message("sterge cumparaturi")
        assert response.kind == ResponseKind.FALLBACK
        assert response.todo.completed is True
        assert "bifat" in response.message
        assert len(service.state.store.todos) == 1

    def test_fallback_toggles_back(self, service):
        service.add_todo("cumparaturi")
        service.handle_message("sterge cumparaturi")
        response = service.handle_message("sterge cumparaturi")
        assert response.todo.completed is False
        assert "debifat" in response.message

    def test_fallback_disabled(self, state):
        service = ActionService(state, delete_fallback=DeleteFallback.NONE, today=lambda: WED)
        service.add_todo("cumparaturi")
        response = service.handle_message("sterge cumparaturi")
        assert response.kind == ResponseKind.NOT_FOUND
        assert state.store.todos[0].completed is False

    def test_nothing_matches(self, service):
        assert service.handle_message("sterge zzz").kind == ResponseKind.NOT_FOUND


# ---------------------------------------------------------------------------
# handle_message: queries and follow-ups
# ---------------------------------------------------------------------------


class TestHandleMessageQuery:
    def test_query_by_date(self, service):
        _add(service, "Sedinta", "2024-05-02", "10:00")
        _add(service, "Sala", "2024-05-03")
        response = service.handle_message("ce am maine")
        assert isinstance(response, QueryResultResponse)
        assert response.kind == ResponseKind.QUERY_RESULT
        assert [ev.title for ev in response.events] == ["Sedinta"]

    def test_query_by_title_ignores_diacritics(self, service):
        _add(service, "Ședință echipă", "2024-05-02", "10:00")
        response = service.handle_message("cauta sedinta")
        assert len(response.events) == 1

    def test_query_is_idempotent(self, service):
        _add(service, "Sedinta", "2024-05-02", "10:00")
        first = service.handle_message("ce am maine")
        second = service.handle_message("ce am maine")
        assert first.message == second.message
        assert len(service.state.store.events) == 1

    def test_query_falls_back_to_pending_todos(self, service):
        service.add_todo("cumparaturi piata")
        response = service.handle_message("cauta cumparaturi")
        assert response.kind == ResponseKind.QUERY_RESULT
        assert [t.text for t in response.todos] == ["cumparaturi piata"]

    def test_query_nothing(self, service):
        assert service.handle_message("cauta zzz").kind == ResponseKind.NOT_FOUND

    def test_follow_up_answers_with_times(self, service):
        _add(service, "Sedinta", "2024-05-02", "10:00")
        service.handle_message("cauta sedinta")
        response = service.handle_message("La ce oră?")
        assert response.kind == ResponseKind.FOLLOW_UP
        assert "10:00" in response.message
        assert [ev.title for ev in response.events] == ["Sedinta"]

    def test_other_command_clears_memory(self, service):
        _add(service, "Sedinta", "2024-05-02", "10:00")
        service.handle_message("cauta sedinta")
        service.handle_message("task lapte")
        assert service.state.session.last_found == []

    def test_text_with_number_is_not_follow_up(self, service):
        _add(service, "Sedinta", "2024-05-02", "10:00")
        service.handle_message("cauta sedinta")
        response = service.handle_message("muta la ora 11")
        assert response.kind == ResponseKind.SUCCESS

    def test_delete_command_wins_over_follow_up(self, service):
        service.handle_message("sedinta maine la 10")
        service.handle_message("ora de pian vineri")
        service.handle_message("ce am maine")
        response = service.handle_message("sterge ora de pian")
        assert response.kind == ResponseKind.SUCCESS
        assert [ev.title for ev in service.state.store.events] == ["sedinta"]

    def test_add_command_wins_over_follow_up(self, service):
        service.handle_message("sedinta maine la 10")
        service.handle_message("ce am maine")
        response = service.handle_message("adauga ora de dans vineri")
        assert response.kind == ResponseKind.SUCCESS
        assert response.event.title == "ora de dans"
        assert response.event.date == "2024-05-03"

    def test_query_command_wins_over_follow_up(self, service):
        _add(service, "Sedinta", "2024-05-02", "10:00")
        _add(service, "Ora de pian", "2024-05-03")
        service.handle_message("cauta sedinta")
        response = service.handle_message("cauta ora de pian")
        assert response.kind == ResponseKind.QUERY_RESULT
        assert [ev.title for ev in response.events] == ["Ora de pian"]


# ---------------------------------------------------------------------------
# execute_command directly
# ---------------------------------------------------------------------------


class TestExecuteCommand:
    def test_event_without_date_uses_today(self, state):
        response = execute_command(
            ParsedCommand(intent="add_event", title="Sala", time="18:00"),
            state.store, state.session, today=WED,
        )
        assert response.event.date == "2024-05-01"

    def test_unknown_intent(self, state):
        response = execute_command(ParsedCommand(), state.store, state.session, today=WED)
        assert response.kind == ResponseKind.NO_ACTION


# ---------------------------------------------------------------------------
# Manual actions
# ---------------------------------------------------------------------------


class TestManualEvents:
    def test_add_event_form(self, service):
        form = EventForm(title="Curs", date="2024-05-06", time="10:00", end_time="12:00", type="study")
        response = service.add_event(form)
        assert response.event.type == "study"
        assert "10:00–12:00" in response.message

    def test_update_event(self, service):
        _add(service, "Curs", "2024-05-06", "10:00", eid="e1")
        response = service.update_event("e1", EventForm(title="Curs mutat", date="2024-05-06", time="11:00"))
        assert response.kind == ResponseKind.SUCCESS
        assert service.state.store.find_event("e1").time == "11:00"

    def test_update_unknown(self, service):
        form = EventForm(title="x", date="2024-05-06")
        assert service.update_event("nope", form).kind == ResponseKind.NOT_FOUND

    def test_update_warns_about_new_clash(self, service):
        _add(service, "Sedinta", "2024-05-06", "09:00", eid="e1")
        _add(service, "Curs", "2024-05-06", "10:00", eid="e2")
        response = service.update_event("e2", EventForm(title="Curs", date="2024-05-06", time="09:00"))
        assert response.kind == ResponseKind.SUCCESS
        assert [ev.id for ev in response.conflicts] == ["e1"]
        assert "⚠️ Atenție!" in response.message
        assert service.state.store.find_event("e2").time == "09:00"

    def test_update_does_not_clash_with_itself(self, service):
        _add(service, "Sedinta", "2024-05-06", "09:00", eid="e1")
        response = service.update_event("e1", EventForm(title="Sedinta lunga", date="2024-05-06", time="09:00"))
        assert response.conflicts == []
        assert "Atenție" not in response.message

    def test_delete_event(self, service):
        _add(service, "Curs", "2024-05-06", eid="e1")
        assert service.delete_event("e1").kind == ResponseKind.SUCCESS
        assert service.delete_event("e1").kind == ResponseKind.NOT_FOUND


class TestManualTodos:
    def test_add_todo_blank(self, service):
        with pytest.raises(ValueError):
            service.add_todo("   ")

    def test_toggle_celebrates(self, service):
        todo = service.add_todo("Lapte").todo
        response = service.toggle_todo(todo.id)
        assert response.message in _celebrations("Lapte")
        response = service.toggle_todo(todo.id)
        assert response.message.startswith("Am redeschis")

    def test_toggle_pin(self, service):
        todo = service.add_todo("Lapte").todo
        assert service.toggle_pin(todo.id).todo.is_pinned is True
        assert service.toggle_pin(todo.id).todo.is_pinned is False

    def test_set_color_by_name_or_hex(self, service):
        todo = service.add_todo("Lapte").todo
        assert service.set_todo_color(todo.id, "roșu").todo.color == "#ef4444"
        assert service.set_todo_color(todo.id, "#ABC").todo.color == "#abc"
        assert service.set_todo_color(todo.id, "fucsia").kind == ResponseKind.NO_ACTION

    def test_delete_todo(self, service):
        todo = service.add_todo("Lapte").todo
        assert service.delete_todo(todo.id).kind == ResponseKind.SUCCESS
        assert service.delete_todo(todo.id).kind == ResponseKind.NOT_FOUND
        assert service.toggle_todo(todo.id).kind == ResponseKind.NOT_FOUND

    def test_todo_model_passthrough(self, service):
        response = service.add_todo("Lapte", is_pinned=True, color="#22c55e")
        assert isinstance(response.todo, Todo)
        assert response.todo.color == "#22c55e"
