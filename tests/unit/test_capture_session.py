"""Unit tests for the capture state machine and recorder helpers."""

import sys
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from catchr.capture import (
    CaptureDeviceError,
    CaptureOutcome,
    CaptureSession,
    CaptureState,
    FailureKind,
    InvalidTransition,
    MockAudioRecorder,
    create_recorder,
    load_audio_file,
)
from catchr.capture.session import FAILURE_MESSAGES, TRANSITIONS
from catchr.config import AudioConfig


class TestCaptureSession:
    """Tests for CaptureSession transitions."""

    def test_voice_path(self) -> None:
        """Test the full voice path is allowed."""
        session = CaptureSession(owner_id="owner-a")
        for state in (
            CaptureState.RECORDING,
            CaptureState.TRANSCRIBING,
            CaptureState.CATEGORIZING,
            CaptureState.PERSISTING,
            CaptureState.COMPLETED,
        ):
            session.advance(state)

        assert session.history == [
            CaptureState.IDLE,
            CaptureState.RECORDING,
            CaptureState.TRANSCRIBING,
            CaptureState.CATEGORIZING,
            CaptureState.PERSISTING,
            CaptureState.COMPLETED,
        ]
        assert session.is_active is False

    def test_cannot_skip_to_persisting(self) -> None:
        """Test undeclared edges raise."""
        session = CaptureSession(owner_id="owner-a")
        session.advance(CaptureState.RECORDING)
        with pytest.raises(InvalidTransition):
            session.advance(CaptureState.PERSISTING)

    def test_persisting_cannot_return_to_idle(self) -> None:
        """Test a save in progress cannot be cancelled."""
        assert CaptureState.IDLE not in TRANSITIONS[CaptureState.PERSISTING]

    @pytest.mark.parametrize("state", [CaptureState.COMPLETED, CaptureState.FAILED])
    def test_terminal_states(self, state: CaptureState) -> None:
        """Test terminal states have no outgoing edges."""
        assert TRANSITIONS[state] == frozenset()

    @pytest.mark.parametrize(
        "state",
        [CaptureState.RECORDING, CaptureState.TRANSCRIBING, CaptureState.CATEGORIZING, CaptureState.PERSISTING],
    )
    def test_failed_reachable_from_active_states(self, state: CaptureState) -> None:
        """Test every active state can fail."""
        assert CaptureState.FAILED in TRANSITIONS[state]

    def test_sessions_have_unique_ids(self) -> None:
        """Test session ids."""
        assert CaptureSession(owner_id="a").session_id != CaptureSession(owner_id="a").session_id


class TestCaptureOutcome:
    """Tests for CaptureOutcome helpers."""

    def test_every_failure_has_a_message(self) -> None:
        """Test user-facing messages exist for each failure kind."""
        assert set(FAILURE_MESSAGES) == set(FailureKind)
        assert all(kind.message for kind in FailureKind)

    def test_failed_uses_standard_message(self) -> None:
        """Test the failed() constructor."""
        outcome = CaptureOutcome.failed(FailureKind.TRANSCRIPTION_FAILED, owner_id="owner-a")
        assert outcome.state == CaptureState.FAILED
        assert outcome.message == FailureKind.TRANSCRIPTION_FAILED.message
        assert not outcome.succeeded
        assert not outcome.cancelled

    def test_retryable_needs_draft(self) -> None:
        """Test a persistence failure without a draft is not retryable."""
        outcome = CaptureOutcome.failed(FailureKind.PERSISTENCE_FAILED)
        assert outcome.retryable is False


class TestMockAudioRecorder:
    """Tests for MockAudioRecorder."""

    def test_start_stop(self) -> None:
        """Test a simulated recording."""
        recorder = MockAudioRecorder()
        recorder.start()
        assert recorder.is_recording
        payload = recorder.stop()
        assert payload.size > 0
        assert not recorder.is_recording

    def test_stop_without_start(self) -> None:
        """Test stop when idle."""
        with pytest.raises(CaptureDeviceError):
            MockAudioRecorder().stop()

    def test_start_error(self) -> None:
        """Test simulated permission failure."""
        recorder = MockAudioRecorder()
        recorder.set_start_error("Permission denied")
        with pytest.raises(CaptureDeviceError):
            recorder.start()

    def test_discard_when_idle(self) -> None:
        """Test discard is safe when not recording."""
        recorder = MockAudioRecorder()
        recorder.discard()
        assert recorder.discard_count == 0


class TestLoadAudioFile:
    """Tests for load_audio_file()."""

    def test_guesses_mime_from_suffix(self) -> None:
        """Test suffix mapping."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "memo.m4a"
            path.write_bytes(b"\x00\x00\x00\x18ftypM4A ")
            payload = load_audio_file(path)
        assert payload.mime_type == "audio/mp4"
        assert payload.extension == "m4a"

    def test_explicit_mime(self) -> None:
        """Test a declared type overrides the suffix."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "memo.bin"
            path.write_bytes(b"OggS")
            payload = load_audio_file(path, mime_type="audio/ogg")
        assert payload.mime_type == "audio/ogg"

    def test_missing_file(self) -> None:
        """Test FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_audio_file("/nonexistent/memo.webm")


class TestCreateRecorder:
    """Tests for create_recorder()."""

    def test_mock_flag(self) -> None:
        """Test use_mock returns the mock recorder."""
        assert isinstance(create_recorder(AudioConfig(), use_mock=True), MockAudioRecorder)

    def test_mock_provider(self) -> None:
        """Test the mock provider from configuration."""
        assert isinstance(create_recorder(AudioConfig(provider="mock")), MockAudioRecorder)

    def test_unknown_provider(self) -> None:
        """Test an unknown provider is rejected."""
        with pytest.raises(ValueError):
            create_recorder(AudioConfig(provider="tape-deck"))

    def test_missing_pyaudio_is_device_error(self) -> None:
        """Test a host without PyAudio reports a device error."""
        with patch.dict(sys.modules, {"catchr.capture.microphone": None}):
            with pytest.raises(CaptureDeviceError, match="PyAudio"):
                create_recorder(AudioConfig())
