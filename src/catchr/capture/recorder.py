"""Audio recorder protocol, mock implementation and factory.

A recorder owns the input device between start() and stop() and hands
back one encoded payload.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from ..stt.transcriber import AudioPayload

if TYPE_CHECKING:
    from ..config import AudioConfig

# File suffix -> declared MIME type for recordings read from disk
SUFFIX_MIME_TYPES: dict[str, str] = {
    ".webm": "audio/webm",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
    ".mp4": "audio/mp4",
    ".aac": "audio/aac",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".flac": "audio/flac",
}


class CaptureDeviceError(RuntimeError):
    """Raised when the input device cannot be acquired or read."""

    pass


class AudioRecorder(Protocol):
    """Interface for recording one capture."""

    def start(self) -> None:
        """Acquire the device and begin recording.

        Raises:
            CaptureDeviceError: If the device is unavailable or permission is denied
        """
        ...

    def stop(self) -> AudioPayload:
        """Stop recording and return the captured audio.

        Raises:
            CaptureDeviceError: If the recording could not be finalized
        """
        ...

    def discard(self) -> None:
        """Stop recording and drop captured audio. Safe when not recording."""
        ...


def load_audio_file(path: Path | str, mime_type: str | None = None) -> AudioPayload:
    """Read a recording from disk.

    Args:
        path: Audio file path
        mime_type: Declared type; guessed from the suffix when omitted

    Returns:
        AudioPayload with the file's bytes

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Audio file not found: {path}")
    if mime_type is None:
        mime_type = SUFFIX_MIME_TYPES.get(path.suffix.lower(), "application/octet-stream")
    return AudioPayload(data=path.read_bytes(), mime_type=mime_type)


class MockAudioRecorder:
    """Mock recorder for testing.

    Returns a preset payload and can simulate device failures.
    """

    def __init__(self, payload: AudioPayload | None = None) -> None:
        """Initialize mock recorder.

        Args:
            payload: Payload returned by stop()
        """
        self._payload = payload or AudioPayload(data=b"\x00" * 1024, mime_type="audio/webm")
        self._start_error: str | None = None
        self._is_recording = False
        self._discard_count = 0

    def set_payload(self, payload: AudioPayload) -> None:
        """Set the payload returned by stop()."""
        self._payload = payload

    def set_start_error(self, message: str | None) -> None:
        """Make start() fail with CaptureDeviceError."""
        self._start_error = message

    def start(self) -> None:
        """Begin a simulated recording."""
        if self._start_error:
            raise CaptureDeviceError(self._start_error)
        self._is_recording = True

    def stop(self) -> AudioPayload:
        """End the simulated recording."""
        if not self._is_recording:
            raise CaptureDeviceError("Recorder is not recording")
        self._is_recording = False
        return self._payload

    def discard(self) -> None:
        """Drop the simulated recording."""
        if self._is_recording:
            self._discard_count += 1
        self._is_recording = False

    @property
    def is_recording(self) -> bool:
        """Check if currently recording."""
        return self._is_recording

    @property
    def discard_count(self) -> int:
        """Get number of recordings discarded."""
        return self._discard_count


def create_recorder(
    config: "AudioConfig | None" = None,
    use_mock: bool = False,
) -> AudioRecorder:
    """Create an audio recorder.

    Args:
        config: Audio configuration (uses defaults if None)
        use_mock: If True, return mock implementation for testing

    Returns:
        AudioRecorder implementation

    Raises:
        CaptureDeviceError: If PyAudio is not installed
        ValueError: If the configured provider is unknown
    """
    provider = config.provider if config is not None else "pyaudio"

    if use_mock or provider == "mock":
        return MockAudioRecorder()

    if provider != "pyaudio":
        raise ValueError(f"Unknown audio provider: {provider}")

    try:
        from .microphone import PyAudioRecorder
    except ImportError as e:
        raise CaptureDeviceError(
            "PyAudio not available. Install with: pip install 'catchr[audio]'"
        ) from e

    if config is None:
        return PyAudioRecorder()
    return PyAudioRecorder(
        device_name=config.input_device,
        sample_rate=config.sample_rate,
        channels=config.channels,
        chunk_size=config.chunk_size,
    )


__all__ = [
    "AudioRecorder",
    "CaptureDeviceError",
    "MockAudioRecorder",
    "SUFFIX_MIME_TYPES",
    "create_recorder",
    "load_audio_file",
]
