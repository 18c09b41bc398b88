"""Categorization using the Anthropic Claude API."""

import logging
import time

import anthropic

from .prompt import build_prompt, parse_response
from .suggestion import CategorizationError, CategorizationResult

logger = logging.getLogger(__name__)


class ClaudeCategorizer:
    """Cloud categorizer backed by Claude.

    Errors are returned as CategorizationResult, never raised.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-haiku-20240307",
        max_tokens: int = 400,
        temperature: float = 0.3,
        timeout_seconds: float = 8.0,
        client: anthropic.Anthropic | None = None,
    ) -> None:
        """Initialize the Claude categorizer.

        Args:
            api_key: Anthropic API key
            model: Claude model name
            max_tokens: Response token ceiling
            temperature: Sampling temperature
            timeout_seconds: Per-request timeout
            client: Preconfigured client (tests)
        """
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._client = client or anthropic.Anthropic(
            api_key=api_key,
            timeout=timeout_seconds,
            max_retries=1,
        )

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._model

    def categorize(self, transcript: str) -> CategorizationResult:
        """Categorize a transcript with Claude."""
        if not transcript.strip():
            return CategorizationResult.failure(CategorizationError.EMPTY_INPUT)

        start_time = time.time()
        try:
            response = self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                messages=[{"role": "user", "content": build_prompt(transcript)}],
            )
        except anthropic.APITimeoutError as e:
            logger.warning("Claude categorization timed out: %s", e)
            return CategorizationResult.failure(CategorizationError.TIMED_OUT, str(e))
        except anthropic.APIError as e:
            logger.warning("Claude categorization failed: %s", e)
            return CategorizationResult.failure(CategorizationError.UNREACHABLE, str(e))

        latency_ms = int((time.time() - start_time) * 1000)
        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )

        try:
            suggestion = parse_response(text)
        except ValueError as e:
            logger.warning("Claude categorization unreadable: %s", e)
            return CategorizationResult.failure(CategorizationError.INVALID_RESPONSE, str(e))

        logger.debug("Categorized in %dms: %s", latency_ms, suggestion)
        return CategorizationResult(suggestion=suggestion, latency_ms=latency_ms)


__all__ = ["ClaudeCategorizer"]
