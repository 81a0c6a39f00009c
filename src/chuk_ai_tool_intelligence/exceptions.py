# chuk_ai_tool_intelligence/exceptions.py
"""Exception hierarchy for the tool intelligence engine."""

from __future__ import annotations


class ToolIntelligenceError(Exception):
    """Base class for all engine errors."""


class StorageError(ToolIntelligenceError):
    """A durable storage read, write or parse failed."""

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class InvalidFeedbackError(ToolIntelligenceError, ValueError):
    """Feedback could not be accepted (e.g. rating outside 1-5)."""


class MemoryImportError(ToolIntelligenceError, ValueError):
    """An exported project memory document could not be parsed."""


class RecommendationError(ToolIntelligenceError):
    """
    Wrapped failure surfaced by an engine entry point.

    Carries the operation name so the presentation layer can report
    which request failed without seeing internals.
    """

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} failed{detail}")
        self.operation = operation
        self.cause = cause
