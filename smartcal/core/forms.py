"""
Smart Calendar — Manual entry forms.

Events typed in through a form (bot commands) are validated here, before they
can reach the domain store. Invalid input raises pydantic.ValidationError.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, field_validator, model_validator

from smartcal.core.clock import normalize_time
from smartcal.data.models import EVENT_TYPES, CalendarEvent, new_id


class EventForm(BaseModel):
    """A manually entered event.

    JSON example:
    {
        "title": "Sedinta",
        "date": "2024-05-06",
        "time": "09:00",
        "end_time": "10:00",
        "type": "work",
        "color": null
    }
    """
    title: str
    date: str                      # ISO format YYYY-MM-DD
    time: str | None = None        # HH:MM
    end_time: str | None = None    # HH:MM, after time
    type: str = "personal"
    color: str | None = None

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Titlul nu poate fi gol.")
        return v

    @field_validator("date")
    @classmethod
    def iso_date(cls, v: str) -> str:
        try:
            return date.fromisoformat(v.strip()).isoformat()
        except ValueError:
            raise ValueError(f"Dată invalidă: {v} (folosește AAAA-LL-ZZ)") from None

    @field_validator("time", "end_time", mode="before")
    @classmethod
    def clock_time(cls, v: str | None) -> str | None:
        if v is None or not str(v).strip():
            return None
        normalized = normalize_time(str(v))
        if normalized is None:
            raise ValueError(f"Oră invalidă: {v} (folosește HH:MM)")
        return normalized

    @field_validator("type")
    @classmethod
    def known_type(cls, v: str) -> str:
        if v not in EVENT_TYPES:
            raise ValueError(f"Tip necunoscut: {v}. Alege din: {', '.join(EVENT_TYPES)}")
        return v

    @model_validator(mode="after")
    def end_after_start(self) -> EventForm:
        if self.end_time is not None:
            if self.time is None:
                raise ValueError("Ora de final cere și o oră de început.")
            if self.end_time <= self.time:
                raise ValueError("Ora de final trebuie să fie după ora de început.")
        return self

    def to_event(self) -> CalendarEvent:
        return CalendarEvent(
            id=new_id(),
            title=self.title,
            date=self.date,
            time=self.time,
            end_time=self.end_time,
            type=self.type,
            color=self.color,
        )


def parse_form_args(args: list[str], default_date: date) -> EventForm:
    """Build an EventForm from command arguments.

    Accepted shape, every part but the title optional:
        [YYYY-MM-DD] [HH:MM[-HH:MM]] [#type] title words...

    Raises:
        pydantic.ValidationError: when the resulting form is invalid.
    """
    rest = list(args)
    fields: dict = {"date": default_date.isoformat()}

    if rest and rest[0].count("-") == 2:
        fields["date"] = rest.pop(0)

    if rest and rest[0][:1].isdigit():
        start, _, end = rest.pop(0).partition("-")
        fields["time"] = start
        if end:
            fields["end_time"] = end

    title_words = []
    for word in rest:
        if word.startswith("#") and len(word) > 1:
            fields["type"] = word[1:].lower()
        else:
            title_words.append(word)
    fields["title"] = " ".join(title_words)

    return EventForm(**fields)
