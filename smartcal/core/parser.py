"""
Smart Calendar — Command Parser.

Brain of the chat assistant: converts one free-text Romanian utterance into
a structured command (add event, add task, delete, query) without any LLM.

The utterance is split once into an immutable token tuple. Each extraction
step (date → time → color → pin) looks at a working copy of that tuple and
removes the tokens it recognised straight away, so no word is ever consumed
twice. Whatever survives becomes the title.
"""

from __future__ import annotations

import logging
from datetime import date

from pydantic import BaseModel

from smartcal.core.clock import normalize_time
from smartcal.core.date_resolver import find_date
from smartcal.core.text import fold, tokenize

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Shared contract: consumed by the action service
# ---------------------------------------------------------------------------

INTENTS = ("add_event", "add_task", "delete", "query", "unknown")


class ParsedCommand(BaseModel):
    """Structured command extracted from one utterance.

    Example for "adauga sedinta luni la 10 cu rosu":
    {
        "intent": "add_event",
        "title": "sedinta",
        "date": "2024-05-06",
        "time": "10:00",
        "end_time": null,
        "color": "red",
        "is_pinned": false
    }
    """
    intent: str = "unknown"
    title: str = ""
    date: str | None = None        # ISO format YYYY-MM-DD
    time: str | None = None        # HH:MM in 24h format
    end_time: str | None = None    # HH:MM, only with a time range
    color: str | None = None
    is_pinned: bool = False


# ---------------------------------------------------------------------------
# Vocabulary (folded: lower-case, no diacritics)
# ---------------------------------------------------------------------------

DELETE_VERBS = frozenset({"sterge", "anuleaza", "delete"})
QUERY_VERBS = frozenset({"gaseste", "cauta", "arata"})
QUERY_PHRASE = ("ce", "am")
ADD_VERBS = frozenset({"adauga", "pune", "creeaza", "baga", "noteaza", "set"})
TASK_WORDS = frozenset({"task", "to-do", "todo"})
PIN_WORDS = frozenset({"urgent", "important", "pin"})
STOP_WORDS = frozenset({"pe", "la", "cu"})

# Events carry a named palette color, todos a hex priority marker
EVENT_COLORS = {
    "rosu": "red",
    "albastru": "blue",
    "verde": "green",
    "galben": "yellow",
    "amber": "amber",
    "portocaliu": "orange",
    "mov": "purple",
    "violet": "purple",
    "roz": "pink",
    "gri": "slate",
    "turcoaz": "teal",
    "indigo": "indigo",
}

TASK_COLORS = {
    "rosu": "#ef4444",
    "albastru": "#3b82f6",
    "verde": "#22c55e",
    "galben": "#eab308",
    "amber": "#f59e0b",
    "portocaliu": "#f97316",
    "mov": "#a855f7",
    "violet": "#a855f7",
    "roz": "#ec4899",
    "gri": "#64748b",
    "turcoaz": "#14b8a6",
    "indigo": "#6366f1",
}

DEFAULT_EVENT_TITLE = "Eveniment"
DEFAULT_TASK_TITLE = "Task nou"

_TIME_PREFIXES = frozenset({"la", "ora", "intre"})
_SINGLE_SEPARATORS = frozenset({"-", "to"})


# ---------------------------------------------------------------------------
# Extraction steps: each one mutates `work` in place
# ---------------------------------------------------------------------------


def _folded(work: list[str]) -> list[str]:
    return [fold(t) for t in work]


def _range_prefix_start(folded: list[str], index: int) -> int:
    """Widen a range start backwards over "la"/"ora"/"intre"/"de la"."""
    start = index
    if start > 0 and folded[start - 1] in _TIME_PREFIXES:
        start -= 1
        if folded[start] == "la" and start > 0 and folded[start - 1] == "de":
            start -= 1
    return start


def _valid_range(start: str | None, end: str | None) -> bool:
    return start is not None and end is not None and end > start


def _extract_time_range(work: list[str]) -> tuple[str, str] | None:
    """Find "10-12", "10 - 12", "10 to 12", "10 pana la 12" (optionally "de la 10 ...")."""
    folded = _folded(work)
    for i, tok in enumerate(folded):
        if "-" in tok and tok.count("-") == 1:
            left, right = tok.split("-")
            start, end = normalize_time(left), normalize_time(right)
            if _valid_range(start, end):
                del work[_range_prefix_start(folded, i):i + 1]
                return start, end

        start = normalize_time(tok)
        if start is None:
            continue
        if i + 2 < len(folded) and folded[i + 1] in _SINGLE_SEPARATORS:
            end, span_end = normalize_time(folded[i + 2]), i + 3
        elif i + 3 < len(folded) and folded[i + 1] == "pana" and folded[i + 2] == "la":
            end, span_end = normalize_time(folded[i + 3]), i + 4
        else:
            continue
        if _valid_range(start, end):
            del work[_range_prefix_start(folded, i):span_end]
            return start, end
    return None


def _extract_time(work: list[str]) -> str | None:
    """Find "la <H[:MM]>", "ora <H[:MM]>" or "la ora <H[:MM]>"."""
    folded = _folded(work)
    for i, tok in enumerate(folded):
        if tok not in ("la", "ora"):
            continue
        if tok == "la" and i + 2 < len(folded) and folded[i + 1] == "ora":
            parsed = normalize_time(folded[i + 2])
            if parsed is not None:
                del work[i:i + 3]
                return parsed
        if i + 1 < len(folded):
            parsed = normalize_time(folded[i + 1])
            if parsed is not None:
                del work[i:i + 2]
                return parsed
    return None


def _extract_color(work: list[str], palette: dict[str, str]) -> str | None:
    """Find a whole-word color name; also drops a leading "cu"/"culoare"."""
    folded = _folded(work)
    for i, tok in enumerate(folded):
        if tok not in palette:
            continue
        start = i
        if start > 0 and folded[start - 1] == "culoare":
            start -= 1
        if start > 0 and folded[start - 1] == "cu":
            start -= 1
        del work[start:i + 1]
        return palette[tok]
    return None


def _extract_pin(work: list[str]) -> bool:
    for i, tok in enumerate(_folded(work)):
        if tok in PIN_WORDS:
            del work[i]
            return True
    return False


def clean_title(work: list[str]) -> str:
    """Drop leftover prepositions and stray punctuation, collapse whitespace."""
    kept = [
        token for token in work
        if fold(token) not in STOP_WORDS and fold(token) not in ("", "-")
    ]
    return " ".join(kept).strip(" ,;:.-")


def _prefix_intent(folded: list[str]) -> str | None:
    """Intent announced by the leading word(s): "delete", "query", "add" or None."""
    if not folded:
        return None
    if folded[0] in DELETE_VERBS:
        return "delete"
    if folded[0] in QUERY_VERBS or tuple(folded[:2]) == QUERY_PHRASE:
        return "query"
    if folded[0] in ADD_VERBS or folded[0] in TASK_WORDS:
        return "add"
    return None


def has_intent_prefix(utterance: str) -> bool:
    """True when the utterance opens with an explicit command word ("sterge", "ce am", "adauga", ...)."""
    return _prefix_intent([fold(t) for t in tokenize(utterance)]) is not None


# ---------------------------------------------------------------------------
# Parser function
# ---------------------------------------------------------------------------


def parse_command(
    utterance: str,
    today: date | None = None,
    rollover_on_same_day: bool = False,
) -> ParsedCommand:
    """Parse one utterance into a ParsedCommand. Never raises.

    Args:
        utterance: Raw text typed by the user (or recognised by OCR/speech).
        today: Reference day for relative dates; defaults to date.today().
        rollover_on_same_day: Weekday policy, see date_resolver.next_weekday.
    """
    if today is None:
        today = date.today()

    text = utterance.lower().strip()
    if not any(ch.isalnum() for ch in text):
        logger.info("Nothing to parse in: '%s'", utterance[:80])
        return ParsedCommand(intent="unknown")

    tokens = tokenize(text)
    folded = [fold(t) for t in tokens]

    # 1. Explicit intent prefixes short-circuit everything else
    prefix = _prefix_intent(folded)
    if prefix == "delete":
        parsed = ParsedCommand(intent="delete", title=" ".join(tokens[1:]).strip())
        logger.info("Parsed delete: '%s'", parsed.title)
        return parsed
    if prefix == "query":
        skip = 2 if tuple(folded[:2]) == QUERY_PHRASE else 1
        parsed = ParsedCommand(intent="query", title=" ".join(tokens[skip:]).strip())
        logger.info("Parsed query: '%s'", parsed.title)
        return parsed

    work = list(tokens)

    # 2. Filler add-verb
    if len(work) > 1 and fold(work[0]) in ADD_VERBS:
        del work[0]

    # 3. Explicit task keyword; otherwise a task until a date/time shows up
    work[:] = [t for t in work if fold(t) not in TASK_WORDS]
    result = ParsedCommand(intent="add_task")

    # 4. Date
    match = find_date(work, today, rollover_on_same_day)
    if match is not None:
        del work[match.start:match.end]
        result.date = match.date.isoformat()
        result.intent = "add_event"

    # 5. Time range, then single time
    time_range = _extract_time_range(work)
    if time_range is not None:
        result.time, result.end_time = time_range
        result.intent = "add_event"
    else:
        single = _extract_time(work)
        if single is not None:
            result.time = single
            result.intent = "add_event"

    # 6. Color (palette depends on what we are creating)
    palette = EVENT_COLORS if result.intent == "add_event" else TASK_COLORS
    result.color = _extract_color(work, palette)

    # 7. Pin / urgency
    result.is_pinned = _extract_pin(work)

    # 8. Title
    result.title = clean_title(work)
    if not result.title:
        result.title = DEFAULT_EVENT_TITLE if result.intent == "add_event" else DEFAULT_TASK_TITLE

    logger.info(
        "Parsed %s: '%s' date=%s time=%s-%s color=%s pinned=%s",
        result.intent, result.title, result.date, result.time,
        result.end_time, result.color, result.is_pinned,
    )
    return result
