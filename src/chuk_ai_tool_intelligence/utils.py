# chuk_ai_tool_intelligence/utils.py
"""Small helpers: clocks and keyword matching over free text."""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Annotated

from pydantic import AfterValidator

Clock = Callable[[], datetime]

_WORD_RE = re.compile(r"[a-z0-9]+")
_SUFFIXES = ("ing", "ion", "ed", "es", "er", "s")


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; aware ones are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# Model field type: every stored timestamp is timezone-aware UTC
UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


def days_since(then: datetime | None, now: datetime) -> float:
    """Days elapsed between two instants; infinity when `then` is unknown."""
    if then is None:
        return float("inf")
    return (ensure_utc(now) - ensure_utc(then)).total_seconds() / 86400.0


def _stem(word: str) -> str:
    for suffix in _SUFFIXES:
        if word.endswith(suffix) and len(word) - len(suffix) >= 3:
            return word[: -len(suffix)]
    return word


def _stems(text: str) -> set[str]:
    return {_stem(w) for w in _WORD_RE.findall(text.lower())}


def mentions(text: str, phrase: str) -> bool:
    """
    True if `phrase` occurs in `text`.

    A plain case-insensitive substring hit counts. Tags such as
    "file-reading" also match on any significant token stem, so
    "read config.json" mentions "file-reading".
    """
    if not phrase:
        return False
    text_lower = text.lower()
    phrase_lower = phrase.lower()
    if phrase_lower in text_lower:
        return True

    tokens = [t for t in _WORD_RE.findall(phrase_lower) if len(t) >= 4]
    if not tokens:
        return False
    text_stems = _stems(text_lower)
    return any(_stem(t) in text_stems for t in tokens)


def contains_any(text: str, keywords: list[str] | tuple[str, ...]) -> bool:
    """Plain substring test against a keyword list."""
    text_lower = text.lower()
    return any(k in text_lower for k in keywords)
