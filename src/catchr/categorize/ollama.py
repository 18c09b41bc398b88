"""Categorization using a local Ollama model.

Uses Ollama for local LLM inference with models like Llama 3.2.
"""

import logging
import time

import httpx
import ollama

from .prompt import build_prompt, parse_response
from .suggestion import CategorizationError, CategorizationResult

logger = logging.getLogger(__name__)


class OllamaCategorizer:
    """Local categorizer backed by an Ollama server.

    Errors are returned as CategorizationResult, never raised.
    """

    def __init__(
        self,
        model: str = "llama3.2:3b",
        host: str = "http://localhost:11434",
        max_tokens: int = 400,
        temperature: float = 0.3,
        timeout_seconds: float = 8.0,
        client: ollama.Client | None = None,
    ) -> None:
        """Initialize the Ollama categorizer.

        Args:
            model: Ollama model name
            host: Ollama server URL
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            timeout_seconds: Per-request timeout
            client: Preconfigured client (tests)
        """
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._client = client or ollama.Client(host=host, timeout=timeout_seconds)

        logger.info("Ollama categorizer using model %s at %s", model, host)

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._model

    def categorize(self, transcript: str) -> CategorizationResult:
        """Categorize a transcript with the local model."""
        if not transcript.strip():
            return CategorizationResult.failure(CategorizationError.EMPTY_INPUT)

        start_time = time.time()
        try:
            response = self._client.chat(
                model=self._model,
                messages=[{"role": "user", "content": build_prompt(transcript)}],
                format="json",
                options={
                    "num_predict": self._max_tokens,
                    "temperature": self._temperature,
                },
            )
        except httpx.TimeoutException as e:
            logger.warning("Ollama categorization timed out: %s", e)
            return CategorizationResult.failure(CategorizationError.TIMED_OUT, str(e))
        except (ollama.ResponseError, httpx.HTTPError, ConnectionError) as e:
            logger.warning("Ollama categorization failed: %s", e)
            return CategorizationResult.failure(CategorizationError.UNREACHABLE, str(e))

        latency_ms = int((time.time() - start_time) * 1000)

        try:
            suggestion = parse_response(response["message"]["content"])
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ollama categorization unreadable: %s", e)
            return CategorizationResult.failure(CategorizationError.INVALID_RESPONSE, str(e))

        logger.debug("Categorized in %dms: %s", latency_ms, suggestion)
        return CategorizationResult(suggestion=suggestion, latency_ms=latency_ms)


__all__ = ["OllamaCategorizer"]
