"""
Smart Calendar — Agenda views.

Read-only renderings of the event list: a single day sorted by time and the
shareable "next 7 days" schedule.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from smartcal.data.models import CalendarEvent

RO_WEEKDAYS = ("Luni", "Marți", "Miercuri", "Joi", "Vineri", "Sâmbătă", "Duminică")
RO_MONTHS = (
    "ianuarie", "februarie", "martie", "aprilie", "mai", "iunie",
    "iulie", "august", "septembrie", "octombrie", "noiembrie", "decembrie",
)

# Length of the short event reference shown next to each line ("#1a2b3c")
REF_LENGTH = 6

# Untimed events sort after every timed one
_NO_TIME_SORT_KEY = "23:59"


def _time_key(event: CalendarEvent) -> str:
    return event.time or _NO_TIME_SORT_KEY


def events_on(events: Iterable[CalendarEvent], day: date) -> list[CalendarEvent]:
    """Events dated `day`, sorted by start time."""
    iso = day.isoformat()
    return sorted((ev for ev in events if ev.date == iso), key=_time_key)


def format_event_line(event: CalendarEvent, with_ref: bool = False) -> str:
    if event.time and event.end_time:
        when = f"{event.time}–{event.end_time}"
    else:
        when = event.time or "toată ziua"
    line = f"• {when}  {event.title}"
    if with_ref:
        line += f"  [#{event.id[:REF_LENGTH]}]"
    return line


def format_day(events: Iterable[CalendarEvent], day: date, with_refs: bool = False) -> str:
    """Day detail: heading plus one line per event."""
    heading = f"📅 {RO_WEEKDAYS[day.weekday()]}, {day.day} {RO_MONTHS[day.month - 1]} {day.year}"
    todays = events_on(events, day)
    if not todays:
        return f"{heading}\nNimic programat."
    return "\n".join([heading, *(format_event_line(ev, with_refs) for ev in todays)])


def upcoming(events: Iterable[CalendarEvent], today: date, days: int = 7) -> list[CalendarEvent]:
    """Events from today through today + days (inclusive), by date then time."""
    first, last = today.isoformat(), (today + timedelta(days=days)).isoformat()
    return sorted(
        (ev for ev in events if first <= ev.date <= last),
        key=lambda ev: (ev.date, _time_key(ev)),
    )


def build_share_text(events: Iterable[CalendarEvent], today: date) -> str:
    """Plain-text schedule for the next 7 days, ready to paste anywhere."""
    lines = ["📅 Programul meu (Următoarele 7 zile):", ""]
    coming = upcoming(events, today)
    if not coming:
        lines.append("Sunt liber toată săptămâna! 😎")
    for ev in coming:
        day = date.fromisoformat(ev.date)
        when = f" ({ev.time})" if ev.time else ""
        lines.append(f"▫️ {RO_WEEKDAYS[day.weekday()]} {day.day}: {ev.title}{when}")
    return "\n".join(lines)
