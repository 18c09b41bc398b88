"""Offline keyword categorizer.

Derives a category and tags from fixed keyword lists. Never suggests a
title or an event hint, so the note keeps its derived title and the
calendar bridge stays idle.
"""

import logging
import time

from .suggestion import (
    MAX_TAGS,
    CategorizationError,
    CategorizationResult,
    CategorizationSuggestion,
)

logger = logging.getLogger(__name__)

# Keyword mappings for fast categorization (<10ms)
CATEGORY_KEYWORDS: dict[str, list[str]] = {
    "meeting": [
        "meeting",
        "standup",
        "sync",
        "call with",
        "1:1",
        "one on one",
        "interview",
        "conference",
        "presentation",
        "agenda",
    ],
    "reminder": [
        "remind",
        "reminder",
        "don't forget",
        "remember to",
        "tomorrow",
        "tonight",
        "deadline",
        "due",
        "appointment",
        "pick up",
    ],
    "task": [
        "todo",
        "to do",
        "buy",
        "call",
        "email",
        "send",
        "finish",
        "fix",
        "book",
        "schedule",
        "pay",
        "groceries",
        "errand",
    ],
    "idea": [
        "idea",
        "what if",
        "maybe we",
        "could build",
        "brainstorm",
        "concept",
        "startup",
        "feature",
    ],
    "learning": [
        "learn",
        "read",
        "reading",
        "book about",
        "course",
        "tutorial",
        "study",
        "research",
        "article",
        "podcast",
    ],
    "personal": [
        "family",
        "friend",
        "dinner",
        "birthday",
        "anniversary",
        "vacation",
        "trip",
        "workout",
        "gym",
        "doctor",
        "health",
    ],
}


def match_categories(text: str) -> list[tuple[str, int]]:
    """Count keyword matches per category.

    Args:
        text: Text to categorize

    Returns:
        (category, match count) pairs with at least one match, best first.
        Ties keep the declaration order of CATEGORY_KEYWORDS.
    """
    text_lower = text.lower()
    matches = []
    for category, keywords in CATEGORY_KEYWORDS.items():
        count = sum(1 for kw in keywords if kw in text_lower)
        if count > 0:
            matches.append((category, count))
    matches.sort(key=lambda m: -m[1])
    return matches


class KeywordCategorizer:
    """Categorizer that needs no network."""

    def categorize(self, transcript: str) -> CategorizationResult:
        """Categorize a transcript by keyword matching."""
        if not transcript.strip():
            return CategorizationResult.failure(CategorizationError.EMPTY_INPUT)

        start_time = time.time()
        matches = match_categories(transcript)
        latency_ms = int((time.time() - start_time) * 1000)

        if not matches:
            logger.debug("No category match for '%s'", transcript[:50])
            return CategorizationResult(
                suggestion=CategorizationSuggestion(suggested_category="note"),
                latency_ms=latency_ms,
            )

        tags = [category for category, _ in matches][:MAX_TAGS]
        logger.debug("Categorized '%s' as %s", transcript[:50], tags[0])
        return CategorizationResult(
            suggestion=CategorizationSuggestion(
                suggested_tags=tags,
                suggested_category=tags[0],
            ),
            latency_ms=latency_ms,
        )


__all__ = ["CATEGORY_KEYWORDS", "KeywordCategorizer", "match_categories"]
