"""Microphone recorder using PyAudio.

Records 16-bit PCM from an input device in callback mode and hands the
capture back as a WAV payload.
"""

import io
import logging
import threading
import wave
from typing import Any

import pyaudio

from ..stt.transcriber import AudioPayload
from .recorder import CaptureDeviceError

logger = logging.getLogger(__name__)

SAMPLE_WIDTH = 2  # 16-bit audio


class PyAudioRecorder:
    """Audio recorder backed by PyAudio (PortAudio).

    Implements the AudioRecorder protocol. The device is held only between
    start() and stop() / discard().
    """

    def __init__(
        self,
        device_name: str = "default",
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_size: int = 1024,
    ) -> None:
        """Initialize the recorder.

        Args:
            device_name: Input device name (substring match) or "default"
            sample_rate: Sample rate in Hz
            channels: Number of channels (1 for mono)
            chunk_size: Frames per buffer
        """
        self._device_name = device_name
        self._sample_rate = sample_rate
        self._channels = channels
        self._chunk_size = chunk_size

        self._pa: Any = None
        self._stream: Any = None
        self._frames: list[bytes] = []
        self._lock = threading.Lock()
        self._is_recording = False

    def _get_device_index(self) -> int | None:
        """Get device index for configured device name."""
        if self._device_name == "default":
            return None

        for i in range(self._pa.get_device_count()):
            info = self._pa.get_device_info_by_index(i)
            if self._device_name.lower() in info["name"].lower() and info["maxInputChannels"] > 0:
                return i

        raise CaptureDeviceError(f"No input device matching {self._device_name!r}")

    def _on_audio(self, in_data: bytes | None, frame_count: int, time_info: Any, status: int) -> tuple[None, int]:
        """Stream callback, runs on the PortAudio thread."""
        if in_data:
            with self._lock:
                self._frames.append(in_data)
        return None, pyaudio.paContinue

    def start(self) -> None:
        """Open the input device and begin recording.

        Raises:
            CaptureDeviceError: If already recording, the device is missing,
                or the host denies microphone access
        """
        if self._is_recording:
            raise CaptureDeviceError("Recorder is already recording")

        with self._lock:
            self._frames = []

        try:
            self._pa = pyaudio.PyAudio()
            self._stream = self._pa.open(
                format=pyaudio.paInt16,
                channels=self._channels,
                rate=self._sample_rate,
                input=True,
                input_device_index=self._get_device_index(),
                frames_per_buffer=self._chunk_size,
                stream_callback=self._on_audio,
            )
            self._stream.start_stream()
        except CaptureDeviceError:
            self._release()
            raise
        except (OSError, ValueError) as e:
            self._release()
            raise CaptureDeviceError(f"Could not open input device: {e}") from e

        self._is_recording = True
        logger.info("Recording from %s at %d Hz", self._device_name, self._sample_rate)

    def stop(self) -> AudioPayload:
        """Stop recording and return the captured audio as WAV.

        Raises:
            CaptureDeviceError: If not recording or the stream failed to close
        """
        if not self._is_recording:
            raise CaptureDeviceError("Recorder is not recording")

        self._is_recording = False
        try:
            self._stream.stop_stream()
        except OSError as e:
            raise CaptureDeviceError(f"Could not finalize recording: {e}") from e
        finally:
            self._release()

        with self._lock:
            frames, self._frames = self._frames, []
        data = self._encode_wav(frames)
        logger.debug("Recorded %d bytes", len(data))
        return AudioPayload(data=data, mime_type="audio/wav")

    def discard(self) -> None:
        """Stop recording and drop captured audio. Safe when not recording."""
        if not self._is_recording:
            return
        self._is_recording = False
        try:
            self._stream.stop_stream()
        except OSError as e:
            logger.warning("Error stopping discarded recording: %s", e)
        finally:
            self._release()
        with self._lock:
            self._frames = []

    def _release(self) -> None:
        """Close the stream and terminate PortAudio."""
        if self._stream is not None:
            try:
                self._stream.close()
            except OSError as e:
                logger.warning("Error closing input stream: %s", e)
            self._stream = None
        if self._pa is not None:
            self._pa.terminate()
            self._pa = None

    def _encode_wav(self, frames: list[bytes]) -> bytes:
        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as wf:
            wf.setnchannels(self._channels)
            wf.setsampwidth(SAMPLE_WIDTH)
            wf.setframerate(self._sample_rate)
            wf.writeframes(b"".join(frames))
        return buffer.getvalue()

    @property
    def is_recording(self) -> bool:
        """Check if currently recording."""
        return self._is_recording


__all__ = ["PyAudioRecorder"]
