"""Tests for smartcal.core.parser — rule-based Romanian command parsing."""

from datetime import date

import pytest

from smartcal.core.parser import (
    DEFAULT_TASK_TITLE,
    EVENT_COLORS,
    TASK_COLORS,
    ParsedCommand,
    clean_title,
    has_intent_prefix,
    parse_command,
)

# Wednesday
WED = date(2024, 5, 1)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class TestAddEvent:
    def test_weekday_and_time(self):
        cmd = parse_command("adauga sedinta luni la 10", WED)
        assert cmd == ParsedCommand(
            intent="add_event", title="sedinta", date="2024-05-06", time="10:00",
        )

    def test_diacritics_color_and_minutes(self):
        cmd = parse_command("Pune ședință mâine la 14:30 cu roșu", WED)
        assert cmd.intent == "add_event"
        assert cmd.title == "ședință"
        assert cmd.date == "2024-05-02"
        assert cmd.time == "14:30"
        assert cmd.color == "red"

    def test_compact_time_range(self):
        cmd = parse_command("sedinta 10-12 vineri", WED)
        assert (cmd.date, cmd.time, cmd.end_time) == ("2024-05-03", "10:00", "12:00")
        assert cmd.title == "sedinta"

    def test_de_la_pana_la_range(self):
        cmd = parse_command("curs de la 9 pana la 11 joi", WED)
        assert (cmd.time, cmd.end_time) == ("09:00", "11:00")
        assert cmd.title == "curs"

    def test_reversed_range_is_not_a_range(self):
        cmd = parse_command("curs 12-10 joi", WED)
        assert cmd.end_time is None

    def test_la_ora(self):
        cmd = parse_command("muta sedinta la ora 10", WED)
        assert cmd.time == "10:00"
        assert cmd.title == "muta sedinta"

    def test_time_only_is_event_without_date(self):
        cmd = parse_command("sala la 18", WED)
        assert cmd.intent == "add_event"
        assert cmd.date is None
        assert cmd.time == "18:00"

    def test_pe_day_of_month(self):
        cmd = parse_command("pe 25 la 10 dentist", WED)
        assert (cmd.date, cmd.time, cmd.title) == ("2024-05-25", "10:00", "dentist")

    def test_task_keyword_with_date_becomes_event(self):
        cmd = parse_command("task cumparaturi maine", WED)
        assert cmd.intent == "add_event"
        assert cmd.title == "cumparaturi"

    def test_default_title(self):
        cmd = parse_command("maine la 10", WED)
        assert cmd.title == "Eveniment"


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TestAddTask:
    def test_urgent_task_is_pinned(self):
        cmd = parse_command("task cumparaturi urgent", WED)
        assert cmd.intent == "add_task"
        assert cmd.title == "cumparaturi"
        assert cmd.is_pinned is True
        assert cmd.date is None

    def test_plain_text_is_task(self):
        cmd = parse_command("citeste carte", WED)
        assert cmd.intent == "add_task"
        assert cmd.title == "citeste carte"
        assert cmd.is_pinned is False

    def test_task_color_is_hex(self):
        cmd = parse_command("citeste carte cu verde", WED)
        assert cmd.color == "#22c55e"
        assert cmd.title == "citeste carte"

    def test_culoare_keyword_dropped(self):
        cmd = parse_command("teme cu culoare mov", WED)
        assert cmd.color == TASK_COLORS["mov"]
        assert cmd.title == "teme"

    def test_default_title(self):
        cmd = parse_command("task urgent", WED)
        assert cmd.title == DEFAULT_TASK_TITLE
        assert cmd.is_pinned is True

    def test_lone_add_verb_is_kept_as_title(self):
        assert parse_command("adauga", WED).title == "adauga"


# ---------------------------------------------------------------------------
# Delete / query prefixes
# ---------------------------------------------------------------------------


class TestPrefixes:
    def test_delete(self):
        cmd = parse_command("sterge dentist", WED)
        assert cmd == ParsedCommand(intent="delete", title="dentist")

    def test_delete_with_diacritics(self):
        assert parse_command("Șterge sala", WED).intent == "delete"

    def test_delete_keeps_date_words_in_title(self):
        cmd = parse_command("anuleaza sedinta de maine", WED)
        assert cmd.title == "sedinta de maine"
        assert cmd.date is None

    @pytest.mark.parametrize("title", ["dentist", "sedinta luni la 10", "task urgent cu rosu", ""])
    def test_delete_prefix_always_wins(self, title):
        cmd = parse_command(f"sterge {title}", WED)
        assert cmd.intent == "delete"
        assert cmd.title == title

    def test_prefix_must_be_whole_word(self):
        assert parse_command("stergator nou", WED).intent == "add_task"

    def test_ce_am(self):
        cmd = parse_command("ce am maine", WED)
        assert cmd == ParsedCommand(intent="query", title="maine")

    def test_query_verbs(self):
        assert parse_command("cauta sedinta", WED).intent == "query"
        assert parse_command("Găsește dentist", WED).intent == "query"
        assert parse_command("arata vineri", WED).title == "vineri"


# ---------------------------------------------------------------------------
# Colors (every palette entry, both intents)
# ---------------------------------------------------------------------------


class TestColors:
    @pytest.mark.parametrize("name", sorted(EVENT_COLORS))
    def test_event_palette(self, name):
        cmd = parse_command(f"sedinta maine cu {name}", WED)
        assert cmd.color == EVENT_COLORS[name]
        assert cmd.title == "sedinta"

    @pytest.mark.parametrize("name", sorted(TASK_COLORS))
    def test_task_palette(self, name):
        cmd = parse_command(f"citeste cu {name}", WED)
        assert cmd.color == TASK_COLORS[name]
        assert cmd.title == "citeste"


# ---------------------------------------------------------------------------
# Unknown input / helpers
# ---------------------------------------------------------------------------


class TestUnknown:
    @pytest.mark.parametrize("text", ["", "   ", "!!!", "🙂"])
    def test_nothing_to_parse(self, text):
        assert parse_command(text, WED).intent == "unknown"


class TestCleanTitle:
    def test_drops_prepositions_and_dashes(self):
        assert clean_title(["la", "sedinta", "cu", "-"]) == "sedinta"

    def test_strips_trailing_punctuation(self):
        assert clean_title(["sala,"]) == "sala"


class TestHasIntentPrefix:
    @pytest.mark.parametrize("text", [
        "sterge ora de pian",
        "Șterge sala",
        "ce am mâine",
        "cauta ora",
        "adauga ora de dans vineri",
        "task cand pot",
    ])
    def test_command_words(self, text):
        assert has_intent_prefix(text) is True

    @pytest.mark.parametrize("text", ["la ce oră?", "când?", "ora de pian", "", "ce mai faci"])
    def test_plain_text(self, text):
        assert has_intent_prefix(text) is False
