"""Shared prompt and response parser for LLM categorizers."""

import json
import logging
from typing import Any

from .suggestion import (
    CATEGORIES,
    CategorizationSuggestion,
    EventHint,
    normalize_tags,
)

logger = logging.getLogger(__name__)

CATEGORIZE_PROMPT = """You organize quick voice notes. Analyze this transcript and return ONLY a JSON object.

Transcript: "{transcript}"

Extract:
- suggestedTitle: A concise, descriptive title (5-8 words max)
- suggestedTags: 3-5 short tags (strings only)
- category: ONE of task, idea, note, reminder, meeting, learning, personal
- eventHint: Whether the note describes something to put on a calendar:
  - hasEvent (boolean): true if calendar-worthy (meeting, appointment, deadline with a time)
  - naturalLanguageText (string): event description with date and time, e.g. "Lunch with Sarah tomorrow at 1pm"
  - confidence (number): 0-1 confidence score

Return ONLY valid JSON:
{{"suggestedTitle": "", "suggestedTags": [], "category": "note", "eventHint": {{"hasEvent": false}}}}"""


def build_prompt(transcript: str) -> str:
    """Fill the categorization prompt with a transcript."""
    return CATEGORIZE_PROMPT.format(transcript=transcript.replace('"', "'"))


def parse_response(response_text: str) -> CategorizationSuggestion:
    """Parse an LLM response into a suggestion.

    Tolerates text around the JSON object. Unknown categories are dropped.

    Args:
        response_text: Raw LLM response (expected to contain JSON)

    Returns:
        Parsed suggestion

    Raises:
        ValueError: If no JSON object can be read from the response
    """
    json_start = response_text.find("{")
    json_end = response_text.rfind("}") + 1
    if json_start < 0 or json_end <= json_start:
        raise ValueError("No JSON object in categorization response")

    try:
        data: Any = json.loads(response_text[json_start:json_end])
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid categorization JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Categorization response is not an object")

    title = data.get("suggestedTitle")
    title = title.strip() if isinstance(title, str) and title.strip() else None

    tags = normalize_tags(data.get("suggestedTags")) if "suggestedTags" in data else None

    category = data.get("category")
    if isinstance(category, str) and category.strip().lower() in CATEGORIES:
        category = category.strip().lower()
    else:
        if category:
            logger.debug("Ignoring unknown category %r", category)
        category = None

    return CategorizationSuggestion(
        suggested_title=title,
        suggested_tags=tags,
        suggested_category=category,
        event_hint=EventHint.from_dict(data.get("eventHint")),
    )


__all__ = ["CATEGORIZE_PROMPT", "build_prompt", "parse_response"]
