"""Tokenizing helpers shared by the date resolver and the command parser."""

from __future__ import annotations

import unicodedata

_EDGE_PUNCTUATION = ".,;:!?\"'()[]«»„”“"


def tokenize(text: str) -> tuple[str, ...]:
    """Split lower-cased text into an immutable tuple of whitespace tokens."""
    return tuple(text.lower().split())


def fold(token: str) -> str:
    """Matching form of a token: no diacritics, no surrounding punctuation.

    "mâine," → "maine", "șterge" → "sterge", "sâmbătă" → "sambata".
    """
    decomposed = unicodedata.normalize("NFKD", token.lower())
    plain = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return plain.strip(_EDGE_PUNCTUATION)


def fold_text(text: str) -> str:
    """fold() applied to every token, re-joined with single spaces."""
    return " ".join(filter(None, (fold(t) for t in tokenize(text))))
