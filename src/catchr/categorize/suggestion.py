"""Categorization suggestion types and the categorizer protocol.

A suggestion is a best-effort enrichment of a transcript: a title, tags, a
category and an optional calendar event hint. Nothing here is persisted on
its own.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

MAX_TAGS = 5

# Categories the categorizers may suggest
CATEGORIES = ("task", "idea", "note", "reminder", "meeting", "learning", "personal")


def normalize_tags(tags: Any, limit: int = MAX_TAGS) -> list[str]:
    """Clean a tag list from an untrusted source.

    Strips whitespace, drops non-strings and blanks, removes
    case-insensitive duplicates (first spelling wins) and caps the count.
    """
    if not isinstance(tags, list):
        return []
    result: list[str] = []
    seen: set[str] = set()
    for tag in tags:
        if not isinstance(tag, str):
            continue
        tag = tag.strip()
        key = tag.casefold()
        if not tag or key in seen:
            continue
        seen.add(key)
        result.append(tag)
        if len(result) >= limit:
            break
    return result


@dataclass
class EventHint:
    """Signal that note content may describe a calendar-worthy event.

    Attributes:
        has_event: True if an event was detected
        natural_language_text: Event description for the calendar service
        confidence: Detection confidence in [0, 1], None if not given
    """

    has_event: bool = False
    natural_language_text: str | None = None
    confidence: float | None = None

    def passes(self, threshold: float) -> bool:
        """Check the confidence gate. A missing confidence never passes."""
        return self.confidence is not None and self.confidence >= threshold

    @classmethod
    def from_dict(cls, data: Any) -> "EventHint | None":
        """Create from a parsed response object."""
        if not isinstance(data, dict):
            return None
        confidence = data.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, int | float):
            confidence = None
        else:
            confidence = min(1.0, max(0.0, float(confidence)))
        text = data.get("naturalLanguageText", data.get("natural_language_text"))
        return cls(
            has_event=data.get("hasEvent", data.get("has_event")) is True,
            natural_language_text=text.strip() if isinstance(text, str) and text.strip() else None,
            confidence=confidence,
        )


@dataclass
class CategorizationSuggestion:
    """Structured suggestion for a transcript.

    Attributes:
        suggested_title: Short title, None if not suggested
        suggested_tags: Tags, None if not suggested
        suggested_category: One of CATEGORIES, None if not suggested
        event_hint: Calendar event hint, None if not given
    """

    suggested_title: str | None = None
    suggested_tags: list[str] | None = None
    suggested_category: str | None = None
    event_hint: EventHint | None = None


class CategorizationError(Enum):
    """Typed categorization failures."""

    UNREACHABLE = "unreachable"
    TIMED_OUT = "timed_out"
    INVALID_RESPONSE = "invalid_response"
    EMPTY_INPUT = "empty_input"


@dataclass
class CategorizationResult:
    """Result of a categorization call.

    Attributes:
        suggestion: Suggestion on success
        error: Failure kind, None on success
        detail: Human-readable failure detail
        latency_ms: Time spent in the call
    """

    suggestion: CategorizationSuggestion | None = None
    error: CategorizationError | None = None
    detail: str = ""
    latency_ms: int = 0

    @property
    def ok(self) -> bool:
        """Check if a suggestion is available."""
        return self.error is None and self.suggestion is not None

    @classmethod
    def failure(cls, error: CategorizationError, detail: str = "") -> "CategorizationResult":
        """Build a failed result."""
        return cls(suggestion=None, error=error, detail=detail)


class Categorizer(Protocol):
    """Interface for transcript categorization.

    Implementations never raise; every outcome is a CategorizationResult.
    """

    def categorize(self, transcript: str) -> CategorizationResult:
        """Suggest title, tags, category and event hint for a transcript.

        Args:
            transcript: Validated transcript text

        Returns:
            CategorizationResult with a suggestion or a typed error
        """
        ...


__all__ = [
    "CATEGORIES",
    "CategorizationError",
    "CategorizationResult",
    "CategorizationSuggestion",
    "Categorizer",
    "EventHint",
    "MAX_TAGS",
    "normalize_tags",
]
