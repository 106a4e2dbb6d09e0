"""
Smart Calendar — Conversation State.

The message log of one chat session plus the assistant's short-term memory:
the events found by the last query, so "la ce oră?" can be answered without
re-parsing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from smartcal.core.text import fold, tokenize
from smartcal.data.models import CalendarEvent, ChatMessage

logger = logging.getLogger(__name__)

# Folded words that ask "when?" about something already found
FOLLOW_UP_KEYWORDS = frozenset({"ora", "timp", "cand"})


@dataclass
class ConversationSession:
    """Append-only message log and the result set of the last query."""

    messages: list[ChatMessage] = field(default_factory=list)
    last_found: list[CalendarEvent] = field(default_factory=list)

    def add_user_message(self, text: str) -> ChatMessage:
        message = ChatMessage(text=text, sender="user")
        self.messages.append(message)
        return message

    def add_bot_message(self, text: str) -> ChatMessage:
        message = ChatMessage(text=text, sender="bot")
        self.messages.append(message)
        return message

    def remember(self, events: list[CalendarEvent]) -> None:
        self.last_found = list(events)
        logger.debug("Remembering %d events for follow-ups", len(self.last_found))

    def forget(self) -> None:
        self.last_found = []

    def is_follow_up(self, text: str) -> bool:
        """True when text asks about the time of the remembered events.

        Text carrying a number ("muta la ora 10") is a new command, not a question.
        """
        if not self.last_found or any(ch.isdigit() for ch in text):
            return False
        words = {fold(t) for t in tokenize(text)}
        return bool(words & FOLLOW_UP_KEYWORDS)


def greeting(user_name: str | None, assistant_name: str, avatar: str) -> str:
    """First bot message of a session."""
    return (
        f"Salut, {user_name or 'prietene'}! 👋\n"
        f"Eu sunt {assistant_name} {avatar}.\n\n"
        "Poți să-mi vorbești liber! Încearcă:\n"
        "📅 \"Pune ședință luni la 10 cu roșu\"\n"
        "📝 \"Task cumpărături urgent\"\n"
        "❓ \"Ce am mâine?\""
    )
