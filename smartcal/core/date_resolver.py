"""
Smart Calendar — Date Resolver.

Turns Romanian date phrases into calendar dates relative to a reference day:
"azi", "mâine", "poimâine", weekday names, "pe 25" and bare day-of-month
numbers. Works on token tuples so the parser can consume exactly the tokens
that produced the date.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta

from smartcal.core.text import fold, tokenize

logger = logging.getLogger(__name__)

# Checked in this order; the first group with a hit wins
RELATIVE_DAYS: list[tuple[frozenset[str], int]] = [
    (frozenset({"azi", "astazi"}), 0),
    (frozenset({"maine"}), 1),
    (frozenset({"poimaine"}), 2),
]

# Folded Romanian weekday names → date.weekday()
WEEKDAYS = {
    "luni": 0,
    "marti": 1,
    "miercuri": 2,
    "joi": 3,
    "vineri": 4,
    "sambata": 5,
    "simbata": 5,
    "duminica": 6,
}

# Words that turn a following number into a clock time, not a day
_TIME_MARKERS = frozenset({"la", "ora", "de", "intre"})
# Words that glue two numbers into a time range
_RANGE_SEPARATORS = frozenset({"-", "to", "pana"})


@dataclass(frozen=True)
class DateMatch:
    """A resolved date and the token span [start, end) it came from."""

    date: date
    start: int
    end: int


def next_weekday(reference: date, weekday: int, rollover_on_same_day: bool = False) -> date:
    """Next occurrence of weekday counting from reference.

    offset = (weekday - reference.weekday() + 7) % 7. An offset of 0 means
    "today" unless rollover_on_same_day pushes it to the same day next week.
    """
    offset = (weekday - reference.weekday() + 7) % 7
    if offset == 0 and rollover_on_same_day:
        offset = 7
    return reference + timedelta(days=offset)


def day_of_month(reference: date, day: int) -> date | None:
    """Day `day` of the reference month, or of a later month if it has passed.

    Months too short for `day` are skipped, so "pe 31" in April lands on
    31 May. Returns None for numbers that are never a day of the month.
    """
    if not 1 <= day <= 31:
        return None
    year, month = reference.year, reference.month
    if day < reference.day:
        year, month = _add_month(year, month)
    while day > calendar.monthrange(year, month)[1]:
        year, month = _add_month(year, month)
    return date(year, month, day)


def _add_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def _is_day_number(token: str) -> bool:
    return token.isdigit() and len(token) <= 2


def find_date(
    tokens: tuple[str, ...] | list[str],
    reference: date,
    rollover_on_same_day: bool = False,
) -> DateMatch | None:
    """Locate the first date phrase in tokens, by priority.

    Priority: azi/astazi, maine, poimaine, weekday name, "pe <N>", bare <N>.
    """
    folded = [fold(t) for t in tokens]

    for words, days in RELATIVE_DAYS:
        for i, tok in enumerate(folded):
            if tok in words:
                return DateMatch(reference + timedelta(days=days), i, i + 1)

    for i, tok in enumerate(folded):
        if tok in WEEKDAYS:
            target = next_weekday(reference, WEEKDAYS[tok], rollover_on_same_day)
            return DateMatch(target, i, i + 1)

    for i in range(len(folded) - 1):
        if folded[i] == "pe" and _is_day_number(folded[i + 1]):
            target = day_of_month(reference, int(folded[i + 1]))
            if target is not None:
                return DateMatch(target, i, i + 2)

    for i, tok in enumerate(folded):
        if not _is_day_number(tok):
            continue
        prev_tok = folded[i - 1] if i > 0 else ""
        next_tok = folded[i + 1] if i + 1 < len(folded) else ""
        if prev_tok in _TIME_MARKERS or prev_tok in _RANGE_SEPARATORS:
            continue
        if next_tok in _RANGE_SEPARATORS:
            continue
        target = day_of_month(reference, int(tok))
        if target is not None:
            return DateMatch(target, i, i + 1)

    return None


def resolve_date(
    text: str,
    reference: date | None = None,
    rollover_on_same_day: bool = False,
) -> date | None:
    """Resolve the first date phrase in text; None when there is none.

    None means "no date found", callers must not read it as today.
    """
    if reference is None:
        reference = date.today()
    match = find_date(tokenize(text), reference, rollover_on_same_day)
    if match is None:
        return None
    logger.debug("Resolved date %s from '%s'", match.date, text)
    return match.date
