"""Speech-to-text using the OpenAI Whisper API.

Uploads the recorded container file as-is; the service handles decoding.
"""

import logging
import time

import openai

from .transcriber import (
    AudioPayload,
    TranscriptionError,
    TranscriptionResult,
    check_payload,
)

logger = logging.getLogger(__name__)

# Status codes the service uses for audio it cannot decode
UNSUPPORTED_STATUS_CODES = frozenset({400, 413, 415, 422})


class OpenAIWhisperTranscriber:
    """Transcriber backed by the hosted Whisper model.

    Requests are bounded by the client timeout and the SDK's own retry
    policy. Errors are returned as TranscriptionResult, never raised.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "whisper-1",
        language: str = "en",
        timeout_seconds: float = 15.0,
        max_retries: int = 2,
        max_audio_bytes: int = 25 * 1024 * 1024,
        client: openai.OpenAI | None = None,
    ) -> None:
        """Initialize the Whisper transcriber.

        Args:
            api_key: OpenAI API key
            model: Transcription model name
            language: Expected language code
            timeout_seconds: Per-request timeout
            max_retries: SDK-level retries on transient errors
            max_audio_bytes: Service upload ceiling
            client: Preconfigured client (tests)
        """
        self._model = model
        self._language = language
        self._max_audio_bytes = max_audio_bytes
        self._client = client or openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            max_retries=max_retries,
        )

    def transcribe(self, payload: AudioPayload) -> TranscriptionResult:
        """Transcribe an audio payload."""
        rejected = check_payload(payload, self._max_audio_bytes)
        if rejected is not None:
            logger.warning("Audio rejected before upload: %s", rejected.detail)
            return rejected

        filename = f"recording.{payload.extension}"
        start_time = time.time()

        try:
            response = self._client.audio.transcriptions.create(
                model=self._model,
                file=(filename, payload.data, payload.mime_type),
                language=self._language,
                temperature=0,
            )
        except openai.APITimeoutError as e:
            logger.error("Transcription timed out: %s", e)
            return TranscriptionResult.failure(TranscriptionError.TIMED_OUT, str(e))
        except openai.APIConnectionError as e:
            logger.error("Transcription service unreachable: %s", e)
            return TranscriptionResult.failure(TranscriptionError.UNREACHABLE, str(e))
        except openai.APIStatusError as e:
            logger.error("Transcription failed with status %s: %s", e.status_code, e)
            if e.status_code in UNSUPPORTED_STATUS_CODES:
                return TranscriptionResult.failure(
                    TranscriptionError.UNSUPPORTED_FORMAT, str(e)
                )
            return TranscriptionResult.failure(TranscriptionError.UNREACHABLE, str(e))
        except openai.OpenAIError as e:
            logger.error("Transcription failed: %s", e)
            return TranscriptionResult.failure(TranscriptionError.UNREACHABLE, str(e))

        duration_ms = int((time.time() - start_time) * 1000)
        text = (getattr(response, "text", "") or "").strip()

        if not text:
            logger.info("Transcription returned no speech (%dms)", duration_ms)
            return TranscriptionResult(
                text="",
                error=TranscriptionError.EMPTY_RESULT,
                detail="No speech detected",
                duration_ms=duration_ms,
            )

        logger.debug("Transcribed in %dms: '%s'", duration_ms, text[:50])
        return TranscriptionResult(text=text, duration_ms=duration_ms)


__all__ = ["OpenAIWhisperTranscriber"]
