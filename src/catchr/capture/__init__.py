"""Capture module for Catchr.

Turns a recording or typed text into a persisted note.
"""

from .orchestrator import CaptureOrchestrator, OutcomeListener
from .recorder import (
    AudioRecorder,
    CaptureDeviceError,
    MockAudioRecorder,
    create_recorder,
    load_audio_file,
)
from .session import (
    CaptureOutcome,
    CaptureSession,
    CaptureState,
    FailureKind,
    InvalidTransition,
)
from .validation import MIN_CONTENT_LENGTH, validate_content

__all__ = [
    "AudioRecorder",
    "CaptureDeviceError",
    "CaptureOrchestrator",
    "CaptureOutcome",
    "CaptureSession",
    "CaptureState",
    "FailureKind",
    "InvalidTransition",
    "MIN_CONTENT_LENGTH",
    "MockAudioRecorder",
    "OutcomeListener",
    "create_recorder",
    "load_audio_file",
    "validate_content",
]
