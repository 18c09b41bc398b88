"""Categorization module for Catchr.

Suggests a title, tags, category and calendar event hint for a transcript
using Claude, a local Ollama model, keyword matching, or a mock.
"""

import logging
import os
from typing import TYPE_CHECKING

from .keyword import KeywordCategorizer
from .mock import MockCategorizer
from .prompt import parse_response
from .suggestion import (
    CATEGORIES,
    CategorizationError,
    CategorizationResult,
    CategorizationSuggestion,
    Categorizer,
    EventHint,
    normalize_tags,
)

if TYPE_CHECKING:
    from ..config import CategorizationConfig

logger = logging.getLogger(__name__)

ANTHROPIC_API_KEY_ENV = "ANTHROPIC_API_KEY"


def create_categorizer(
    config: "CategorizationConfig | None" = None,
    use_mock: bool = False,
) -> Categorizer:
    """Create a categorizer instance.

    Args:
        config: Categorization configuration
        use_mock: If True, return mock implementation for testing

    Returns:
        Categorizer implementation

    Raises:
        ValueError: If the provider is unknown
    """
    from ..config import CategorizationConfig

    config = config or CategorizationConfig()

    if use_mock or config.provider == "mock":
        return MockCategorizer()

    if config.provider == "keyword":
        return KeywordCategorizer()

    if config.provider == "ollama":
        from .ollama import OllamaCategorizer

        return OllamaCategorizer(
            model=config.model,
            host=config.host,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            timeout_seconds=config.timeout_seconds,
        )

    if config.provider == "anthropic":
        api_key = os.environ.get(ANTHROPIC_API_KEY_ENV)
        if not api_key:
            # Without a key the cloud provider degrades to keyword matching
            logger.warning(
                "%s not set, using keyword categorization", ANTHROPIC_API_KEY_ENV
            )
            return KeywordCategorizer()

        from .claude import ClaudeCategorizer

        return ClaudeCategorizer(
            api_key=api_key,
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            timeout_seconds=config.timeout_seconds,
        )

    raise ValueError(f"Unknown categorization provider: {config.provider}")


__all__ = [
    "CATEGORIES",
    "CategorizationError",
    "CategorizationResult",
    "CategorizationSuggestion",
    "Categorizer",
    "EventHint",
    "KeywordCategorizer",
    "MockCategorizer",
    "create_categorizer",
    "normalize_tags",
    "parse_response",
]
