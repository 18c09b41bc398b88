"""Transcriber protocol and data classes.

Defines the interface for speech-to-text transcription of recorded audio
payloads, the failure taxonomy, and the MIME type to file extension map
used when uploading audio.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

# Declared MIME type (codec parameters stripped) -> upload file extension
MIME_EXTENSIONS: dict[str, str] = {
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/mp4": "m4a",
    "audio/x-m4a": "m4a",
    "audio/m4a": "m4a",
    "audio/aac": "m4a",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/flac": "flac",
    "video/webm": "webm",
    "video/mp4": "mp4",
}

# Broadly supported fallback for unknown audio types
DEFAULT_EXTENSION = "mp3"


def normalize_mime(mime_type: str | None) -> str:
    """Lower-case a MIME type and drop parameters such as ";codecs=opus"."""
    return (mime_type or "").split(";", 1)[0].strip().lower()


def extension_for_mime(mime_type: str | None) -> str | None:
    """Map a declared MIME type to an upload file extension.

    Args:
        mime_type: Declared content type, possibly with codec parameters

    Returns:
        File extension without the dot, the mp3 default for unknown or
        ambiguous audio types, or None for a type that is not audio.
    """
    mime = normalize_mime(mime_type)
    if mime in MIME_EXTENSIONS:
        return MIME_EXTENSIONS[mime]
    if not mime or mime.startswith("audio/") or mime == "application/octet-stream":
        return DEFAULT_EXTENSION
    return None


@dataclass
class AudioPayload:
    """A recorded audio buffer with its declared content type.

    Attributes:
        data: Encoded audio bytes (container format, not raw PCM)
        mime_type: Declared MIME type, e.g. "audio/webm;codecs=opus"
        duration_ms: Recording length if known
    """

    data: bytes
    mime_type: str = "audio/webm"
    duration_ms: int = 0

    @property
    def size(self) -> int:
        """Payload size in bytes."""
        return len(self.data)

    @property
    def extension(self) -> str | None:
        """Upload file extension for the declared type."""
        return extension_for_mime(self.mime_type)


class TranscriptionError(Enum):
    """Typed transcription failures."""

    UNREACHABLE = "unreachable"
    UNSUPPORTED_FORMAT = "unsupported_format"
    EMPTY_RESULT = "empty_result"
    TIMED_OUT = "timed_out"


@dataclass
class TranscriptionResult:
    """Result of speech-to-text transcription.

    Exactly one of a usable text or an error is meaningful. EMPTY_RESULT
    still carries the (blank) text the service returned.

    Attributes:
        text: Transcribed text
        error: Failure kind, None on success
        detail: Human-readable failure detail
        duration_ms: Time spent in the call
    """

    text: str = ""
    error: TranscriptionError | None = None
    detail: str = ""
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        """Check if the service returned a transcript."""
        return self.error is None

    @property
    def is_transport_failure(self) -> bool:
        """Check if no transcript came back at all."""
        return self.error not in (None, TranscriptionError.EMPTY_RESULT)

    @classmethod
    def failure(cls, error: TranscriptionError, detail: str = "") -> "TranscriptionResult":
        """Build a failed result."""
        return cls(text="", error=error, detail=detail)


def check_payload(payload: AudioPayload, max_bytes: int) -> TranscriptionResult | None:
    """Reject payloads that cannot be sent.

    Returns:
        An UNSUPPORTED_FORMAT result, or None if the payload may be sent.
    """
    if not payload.data:
        return TranscriptionResult.failure(
            TranscriptionError.UNSUPPORTED_FORMAT, "Audio payload is empty"
        )
    if max_bytes > 0 and payload.size > max_bytes:
        return TranscriptionResult.failure(
            TranscriptionError.UNSUPPORTED_FORMAT,
            f"Audio payload is {payload.size} bytes, limit is {max_bytes}",
        )
    if payload.extension is None:
        return TranscriptionResult.failure(
            TranscriptionError.UNSUPPORTED_FORMAT,
            f"Not an audio type: {payload.mime_type}",
        )
    return None


class Transcriber(Protocol):
    """Interface for speech-to-text transcription.

    Implementations never raise; every outcome is a TranscriptionResult.
    """

    def transcribe(self, payload: AudioPayload) -> TranscriptionResult:
        """Transcribe an audio payload to text.

        Args:
            payload: Recorded audio

        Returns:
            TranscriptionResult with text or a typed error
        """
        ...


__all__ = [
    "AudioPayload",
    "DEFAULT_EXTENSION",
    "MIME_EXTENSIONS",
    "TranscriptionError",
    "TranscriptionResult",
    "Transcriber",
    "check_payload",
    "extension_for_mime",
    "normalize_mime",
]
