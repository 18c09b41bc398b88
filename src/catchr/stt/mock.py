"""Mock transcriber for testing.

Provides a controllable mock implementation for unit and integration testing.
"""

import time

from .transcriber import (
    AudioPayload,
    TranscriptionError,
    TranscriptionResult,
    check_payload,
)


class MockTranscriber:
    """Mock transcriber for testing.

    Allows setting predetermined responses for predictable testing.
    """

    def __init__(self, max_audio_bytes: int = 25 * 1024 * 1024) -> None:
        """Initialize mock transcriber."""
        self._max_audio_bytes = max_audio_bytes
        self._response_text: str = ""
        self._error: TranscriptionError | None = None
        self._call_count: int = 0
        self._latency_ms: int = 0
        self._last_payload: AudioPayload | None = None

    def set_response(self, text: str) -> None:
        """Set the text to return on the next transcription.

        Args:
            text: Transcript to return
        """
        self._response_text = text
        self._error = None

    def set_error(self, error: TranscriptionError) -> None:
        """Set a failure to return on the next transcription.

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

    def transcribe(self, payload: AudioPayload) -> TranscriptionResult:
        """Return preset transcription result."""
        self._call_count += 1
        self._last_payload = payload

        rejected = check_payload(payload, self._max_audio_bytes)
        if rejected is not None:
            return rejected

        if self._latency_ms:
            time.sleep(self._latency_ms / 1000)

        if self._error is not None:
            return TranscriptionResult.failure(self._error, "Mock transcription error")

        text = self._response_text.strip()
        if not text:
            return TranscriptionResult(
                text="",
                error=TranscriptionError.EMPTY_RESULT,
                detail="No speech detected",
                duration_ms=self._latency_ms,
            )
        return TranscriptionResult(text=self._response_text, duration_ms=self._latency_ms)

    @property
    def call_count(self) -> int:
        """Get number of transcribe calls."""
        return self._call_count

    @property
    def last_payload(self) -> AudioPayload | None:
        """Get the payload of the most recent call."""
        return self._last_payload

    def clear(self) -> None:
        """Reset mock state."""
        self._response_text = ""
        self._error = None
        self._call_count = 0
        self._last_payload = None


__all__ = ["MockTranscriber"]
