"""
Smart Calendar — Event Conflict Checker.

Two events conflict when they share the same date and start time. Conflicts
are advisory: the new event is always saved, the user only gets a warning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from smartcal.core.clock import time_str_to_minutes

if TYPE_CHECKING:
    from smartcal.data.models import CalendarEvent

logger = logging.getLogger(__name__)


@dataclass
class ConflictResult:
    """Result of a conflict check against existing events."""

    has_conflict: bool
    conflicting_events: list[CalendarEvent] = field(default_factory=list)


def check_conflict(
    events: Iterable[CalendarEvent],
    target_date: str,
    start_time: str | None,
    exclude_event_id: str | None = None,
) -> ConflictResult:
    """Check whether an event at target_date/start_time clashes with others.

    Untimed events never conflict.

    Args:
        events: Existing events.
        target_date: ISO date string (YYYY-MM-DD).
        start_time: Proposed start time (HH:MM) or None.
        exclude_event_id: Event ID to skip (self-exclusion when editing).
    """
    start = time_str_to_minutes(start_time)
    if start is None:
        return ConflictResult(has_conflict=False)

    conflicting = [
        ev for ev in events
        if ev.id != exclude_event_id
        and ev.date == target_date
        and time_str_to_minutes(ev.time) == start
    ]
    if not conflicting:
        return ConflictResult(has_conflict=False)

    logger.info(
        "Conflict on %s at %s with: %s",
        target_date, start_time, ", ".join(ev.title for ev in conflicting),
    )
    return ConflictResult(has_conflict=True, conflicting_events=conflicting)


def conflict_warning(result: ConflictResult, start_time: str) -> str:
    """Chat warning naming the first clashing event; empty when no conflict."""
    if not result.has_conflict:
        return ""
    existing = result.conflicting_events[0]
    return (
        f"⚠️ Atenție! Te-ai suprapus cu evenimentul '{existing.title}' "
        f"la ora {start_time}. Sper că te poți clona! 👯"
    )
