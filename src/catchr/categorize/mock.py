"""Mock categorizer for testing."""

import time

from .suggestion import (
    CategorizationError,
    CategorizationResult,
    CategorizationSuggestion,
)


class MockCategorizer:
    """Mock categorizer for testing.

    Returns a preset suggestion or error, optionally after a delay so
    callers' timeouts can be exercised.
    """

    def __init__(self) -> None:
        """Initialize mock categorizer."""
        self._suggestion: CategorizationSuggestion | None = CategorizationSuggestion()
        self._error: CategorizationError | None = None
        self._latency_ms: int = 0
        self._calls: list[str] = []

    def set_response(self, suggestion: CategorizationSuggestion) -> None:
        """Set the suggestion to return.

        Args:
            suggestion: Suggestion to return
        """
        self._suggestion = suggestion
        self._error = None

    def set_error(self, error: CategorizationError) -> None:
        """Set a failure to return.

        Args:
            error: Failure kind
        """
        self._error = error

    def set_latency(self, latency_ms: int) -> None:
        """Set simulated latency.

        Args:
            latency_ms: Latency in milliseconds
        """
        self._latency_ms = latency_ms

    def categorize(self, transcript: str) -> CategorizationResult:
        """Return the preset result."""
        self._calls.append(transcript)

        if self._latency_ms:
            time.sleep(self._latency_ms / 1000)

        if self._error is not None:
            return CategorizationResult.failure(self._error, "Mock categorization error")
        return CategorizationResult(suggestion=self._suggestion, latency_ms=self._latency_ms)

    @property
    def calls(self) -> list[str]:
        """Get transcripts passed to categorize()."""
        return self._calls.copy()

    @property
    def call_count(self) -> int:
        """Get number of categorize calls."""
        return len(self._calls)


__all__ = ["MockCategorizer"]
