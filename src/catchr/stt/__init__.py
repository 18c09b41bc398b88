"""Speech-to-text module for Catchr.

Provides transcription using the OpenAI Whisper API or a mock implementation.
"""

import logging
import os
from typing import TYPE_CHECKING

from .mock import MockTranscriber
from .transcriber import (
    AudioPayload,
    TranscriptionError,
    TranscriptionResult,
    Transcriber,
    extension_for_mime,
)

if TYPE_CHECKING:
    from ..config import TranscriptionConfig

logger = logging.getLogger(__name__)

OPENAI_API_KEY_ENV = "OPENAI_API_KEY"


def create_transcriber(
    config: "TranscriptionConfig | None" = None,
    use_mock: bool = False,
) -> Transcriber:
    """Create a transcriber instance.

    Args:
        config: Transcription configuration
        use_mock: If True, return mock implementation for testing

    Returns:
        Transcriber implementation

    Raises:
        ValueError: If the provider is unknown or its API key is not set
    """
    from ..config import TranscriptionConfig

    config = config or TranscriptionConfig()

    if use_mock or config.provider == "mock":
        return MockTranscriber(max_audio_bytes=config.max_audio_bytes)

    if config.provider != "openai":
        raise ValueError(f"Unknown transcription provider: {config.provider}")

    api_key = os.environ.get(OPENAI_API_KEY_ENV)
    if not api_key:
        raise ValueError(
            f"{OPENAI_API_KEY_ENV} environment variable is not set. "
            "Set it to use voice transcription."
        )

    from .openai_whisper import OpenAIWhisperTranscriber

    logger.info("Using OpenAI transcription model %s", config.model)
    return OpenAIWhisperTranscriber(
        api_key=api_key,
        model=config.model,
        language=config.language,
        timeout_seconds=config.timeout_seconds,
        max_retries=config.max_retries,
        max_audio_bytes=config.max_audio_bytes,
    )


__all__ = [
    "AudioPayload",
    "MockTranscriber",
    "TranscriptionError",
    "TranscriptionResult",
    "Transcriber",
    "create_transcriber",
    "extension_for_mime",
]
