"""Capture session state and outcomes.

Defines the capture state machine states, the user-facing failure kinds
and the outcome emitted when a session ends.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..categorize.suggestion import EventHint
    from ..notes.models import Note, NoteDraft


class CaptureState(Enum):
    """States of one capture session."""

    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"
    CATEGORIZING = "categorizing"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    FAILED = "failed"


# Allowed transitions; FAILED is reachable from any active state
TRANSITIONS: dict[CaptureState, frozenset[CaptureState]] = {
    CaptureState.IDLE: frozenset(
        {CaptureState.RECORDING, CaptureState.TRANSCRIBING, CaptureState.FAILED}
    ),
    CaptureState.RECORDING: frozenset(
        {CaptureState.TRANSCRIBING, CaptureState.IDLE, CaptureState.FAILED}
    ),
    CaptureState.TRANSCRIBING: frozenset(
        {CaptureState.CATEGORIZING, CaptureState.IDLE, CaptureState.FAILED}
    ),
    CaptureState.CATEGORIZING: frozenset(
        {CaptureState.PERSISTING, CaptureState.IDLE, CaptureState.FAILED}
    ),
    CaptureState.PERSISTING: frozenset({CaptureState.COMPLETED, CaptureState.FAILED}),
    CaptureState.COMPLETED: frozenset(),
    CaptureState.FAILED: frozenset(),
}


class FailureKind(Enum):
    """User-facing reasons a capture produced no note."""

    NO_SPEECH_DETECTED = "no_speech_detected"
    TRANSCRIPTION_FAILED = "transcription_failed"
    PERSISTENCE_FAILED = "persistence_failed"
    AUTHORIZATION_DENIED = "authorization_denied"
    DEVICE_ERROR = "device_error"
    SESSION_ACTIVE = "session_active"

    @property
    def message(self) -> str:
        """Actionable message for the user."""
        return FAILURE_MESSAGES[self]


FAILURE_MESSAGES: dict[FailureKind, str] = {
    FailureKind.NO_SPEECH_DETECTED: "No speech detected. Please try again.",
    FailureKind.TRANSCRIPTION_FAILED: "Could not transcribe the recording. Please try again.",
    FailureKind.PERSISTENCE_FAILED: "Could not save the note. Your text was kept, try saving again.",
    FailureKind.AUTHORIZATION_DENIED: "You are not allowed to save this note.",
    FailureKind.DEVICE_ERROR: "Microphone unavailable. Check permissions and try again.",
    FailureKind.SESSION_ACTIVE: "A capture is already in progress.",
}


class InvalidTransition(RuntimeError):
    """Raised when a session is moved along an edge the machine lacks."""

    def __init__(self, current: CaptureState, target: CaptureState) -> None:
        super().__init__(f"Cannot move capture from {current.value} to {target.value}")
        self.current = current
        self.target = target


@dataclass
class CaptureSession:
    """One capture from start to a terminal state.

    Attributes:
        owner_id: Resolved identity of the capturing user
        session_id: Unique session identifier
        state: Current state
        cancelled: Set by cancel(); checked at each checkpoint
        started_at: Session start time
        history: States visited, in order
    """

    owner_id: str
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: CaptureState = CaptureState.IDLE
    cancelled: bool = False
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    history: list[CaptureState] = field(default_factory=lambda: [CaptureState.IDLE])

    def advance(self, target: CaptureState) -> None:
        """Move to target state.

        Raises:
            InvalidTransition: If the edge is not part of the machine
        """
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransition(self.state, target)
        self.state = target
        self.history.append(target)

    @property
    def is_active(self) -> bool:
        """Check if the session has not reached a resting state."""
        return self.state not in (CaptureState.IDLE, CaptureState.COMPLETED, CaptureState.FAILED)


@dataclass
class CaptureOutcome:
    """How a capture (voice or typed) ended.

    Attributes:
        state: COMPLETED, FAILED, or IDLE for a cancelled session
        owner_id: Owner the note was for
        note: Persisted note on success
        failure: Failure kind on FAILED
        message: User-facing message
        transcript: Original transcript or typed text, kept for retry
        degraded: Categorization failed or timed out and defaults were used
        draft: Exact draft sent to the store, kept for retry
        event_hint: Gated event hint, if any
        session_id: Session that produced this outcome
    """

    state: CaptureState
    owner_id: str = ""
    note: "Note | None" = None
    failure: FailureKind | None = None
    message: str = ""
    transcript: str | None = None
    degraded: bool = False
    draft: "NoteDraft | None" = None
    event_hint: "EventHint | None" = None
    session_id: str | None = None

    @property
    def succeeded(self) -> bool:
        """Check if a note was persisted."""
        return self.state == CaptureState.COMPLETED and self.note is not None

    @property
    def cancelled(self) -> bool:
        """Check if the user cancelled the session."""
        return self.state == CaptureState.IDLE

    @property
    def retryable(self) -> bool:
        """Check if retry_persist() can be offered."""
        return self.failure == FailureKind.PERSISTENCE_FAILED and self.draft is not None

    @classmethod
    def failed(
        cls,
        failure: FailureKind,
        owner_id: str = "",
        transcript: str | None = None,
        draft: "NoteDraft | None" = None,
        event_hint: "EventHint | None" = None,
        degraded: bool = False,
        session_id: str | None = None,
    ) -> "CaptureOutcome":
        """Build a FAILED outcome with the failure's standard message."""
        return cls(
            state=CaptureState.FAILED,
            owner_id=owner_id,
            failure=failure,
            message=failure.message,
            transcript=transcript,
            degraded=degraded,
            draft=draft,
            event_hint=event_hint,
            session_id=session_id,
        )


__all__ = [
    "CaptureOutcome",
    "CaptureSession",
    "CaptureState",
    "FAILURE_MESSAGES",
    "FailureKind",
    "InvalidTransition",
    "TRANSITIONS",
]
