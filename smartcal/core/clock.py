"""
Smart Calendar — Clock helpers.

Times are kept as zero-padded "HH:MM" strings everywhere in the project.
"""

from __future__ import annotations

import re

_TIME_RE = re.compile(r"^(\d{1,2})(?:[:.](\d{2}))?$")


def normalize_time(raw: str) -> str | None:
    """Turn "9", "9:30", "09.30" into "09:00"/"09:30"; None if not a clock time."""
    match = _TIME_RE.match(raw.strip())
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def time_str_to_minutes(time_str: str | None) -> int | None:
    """Convert an HH:MM string to minutes from midnight."""
    if not time_str:
        return None
    normalized = normalize_time(time_str)
    if normalized is None:
        return None
    hour, minute = normalized.split(":")
    return int(hour) * 60 + int(minute)
