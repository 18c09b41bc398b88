"""Capture orchestrator.

Drives one capture session from recording to a persisted note:
transcription, best-effort categorization, the content gate, the store
insert, and a fire-and-forget calendar hand-off. Every collaborator is
injected; every external failure becomes a CaptureOutcome.
"""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING

from ..calendar.bridge import CONFIDENCE_THRESHOLD
from ..categorize.suggestion import (
    CategorizationResult,
    CategorizationSuggestion,
    EventHint,
    normalize_tags,
)
from ..config import CaptureConfig
from ..notes.models import NOTE_CATEGORY, VOICE_NOTE_CATEGORY, Category, NoteDraft, derive_title
from ..storage.errors import AuthorizationDenied, StorageError
from ..stt.transcriber import AudioPayload, TranscriptionError, TranscriptionResult
from .recorder import CaptureDeviceError
from .session import CaptureOutcome, CaptureSession, CaptureState, FailureKind
from .validation import validate_content

if TYPE_CHECKING:
    from ..calendar.bridge import CalendarEventBridge
    from ..categorize.suggestion import Categorizer
    from ..config import CatchrConfig
    from ..storage.client import MongoStorageClient
    from ..storage.notes import NoteStore
    from ..stt.transcriber import Transcriber
    from .recorder import AudioRecorder

logger = logging.getLogger(__name__)

TOO_SHORT_MESSAGE = "Note is too short. Type at least a few characters."

OutcomeListener = Callable[[CaptureOutcome], None]


class CaptureOrchestrator:
    """Runs capture sessions, at most one at a time.

    Voice captures pass through RECORDING, TRANSCRIBING, CATEGORIZING and
    PERSISTING. Typed text enters at the content gate and goes straight to
    the store. Outcomes are returned to the caller and also sent to
    registered listeners (e.g. a note list projection).
    """

    def __init__(
        self,
        store: "NoteStore",
        transcriber: "Transcriber",
        categorizer: "Categorizer",
        calendar_bridge: "CalendarEventBridge | None" = None,
        recorder: "AudioRecorder | None" = None,
        config: CaptureConfig | None = None,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            store: Owner-scoped note store
            transcriber: Speech-to-text client
            categorizer: Categorization client
            calendar_bridge: Calendar bridge, None to skip event creation
            recorder: Audio recorder for start/stop captures
            config: Capture settings (content gate, categorization timeout)
            executor: Pool for categorization and calendar work
        """
        self._store = store
        self._transcriber = transcriber
        self._categorizer = categorizer
        self._bridge = calendar_bridge
        self._recorder = recorder
        self._config = config or CaptureConfig()

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=4, thread_name_prefix="catchr-capture"
        )

        self._lock = threading.Lock()
        self._session: CaptureSession | None = None
        self._last_outcome: CaptureOutcome | None = None
        self._listeners: list[OutcomeListener] = []
        self._background: list[Future] = []

    @classmethod
    def from_config(
        cls,
        config: "CatchrConfig",
        storage: "MongoStorageClient",
        recorder: "AudioRecorder | None" = None,
        use_mock: bool = False,
        transcriber: "Transcriber | None" = None,
    ) -> "CaptureOrchestrator":
        """Create an orchestrator wired from configuration.

        Args:
            config: Catchr configuration
            storage: Connected storage client
            recorder: Audio recorder, if the host has one
            use_mock: If True, use mock service clients
            transcriber: Transcriber to use instead of the configured one

        Returns:
            Configured CaptureOrchestrator
        """
        from ..calendar import CalendarEventBridge, create_calendar_client
        from ..categorize import create_categorizer
        from ..stt import create_transcriber

        bridge = CalendarEventBridge(
            settings=storage.settings,
            client=create_calendar_client(config.calendar, use_mock=use_mock),
            confidence_threshold=config.calendar.confidence_threshold,
        )
        return cls(
            store=storage.notes,
            transcriber=transcriber or create_transcriber(config.transcription, use_mock=use_mock),
            categorizer=create_categorizer(config.categorization, use_mock=use_mock),
            calendar_bridge=bridge,
            recorder=recorder,
            config=config.capture,
        )

    # -- session control ---------------------------------------------------

    @property
    def state(self) -> CaptureState:
        """Get the state of the current or most recent session."""
        with self._lock:
            return self._session.state if self._session else CaptureState.IDLE

    @property
    def is_active(self) -> bool:
        """Check if a session is in progress."""
        with self._lock:
            return self._session is not None and self._session.is_active

    @property
    def last_outcome(self) -> CaptureOutcome | None:
        """Get the most recent outcome."""
        return self._last_outcome

    def start_recording(self, owner_id: str) -> bool:
        """Start a voice capture.

        Args:
            owner_id: Resolved identity of the capturing user

        Returns:
            True if recording started. False if a session is already active
            (the active session is left alone) or the device failed.
        """
        with self._lock:
            if self._session is not None and self._session.is_active:
                logger.warning("Capture %s already active, rejecting start", self._session.session_id)
                return False
            session = CaptureSession(owner_id=owner_id)
            session.advance(CaptureState.RECORDING)
            self._session = session

        if self._recorder is None:
            self._fail(session, FailureKind.DEVICE_ERROR)
            return False

        try:
            self._recorder.start()
        except CaptureDeviceError as e:
            logger.error("Could not start recording: %s", e)
            self._fail(session, FailureKind.DEVICE_ERROR)
            return False

        logger.info("Capture %s recording", session.session_id)
        return True

    def stop_recording(self) -> CaptureOutcome | None:
        """Stop recording and run the pipeline to a terminal state.

        Returns:
            The outcome, or None if nothing was recording
        """
        with self._lock:
            session = self._session
            if session is None or session.state != CaptureState.RECORDING:
                return None
            session.advance(CaptureState.TRANSCRIBING)

        try:
            payload = self._recorder.stop()  # type: ignore[union-attr]
        except CaptureDeviceError as e:
            logger.error("Could not finalize recording: %s", e)
            return self._fail(session, FailureKind.DEVICE_ERROR)

        return self._run_pipeline(session, payload)

    def cancel(self) -> bool:
        """Cancel the active session.

        During RECORDING the audio is discarded at once. During
        TRANSCRIBING or CATEGORIZING the session ends at its next
        checkpoint and in-flight results are dropped. Once PERSISTING has
        begun the note is saved regardless.

        Returns:
            True if a session was cancelled
        """
        with self._lock:
            session = self._session
            if session is None or not session.is_active:
                return False
            if session.state == CaptureState.PERSISTING:
                return False
            session.cancelled = True
            discard = session.state == CaptureState.RECORDING
            if discard:
                session.advance(CaptureState.IDLE)

        logger.info("Capture %s cancelled", session.session_id)
        if discard:
            if self._recorder is not None:
                self._recorder.discard()
            self._finish(session, self._cancelled_outcome(session))
        return True

    def capture_audio(self, owner_id: str, payload: AudioPayload) -> CaptureOutcome:
        """Run the pipeline on an already-recorded payload.

        Args:
            owner_id: Resolved identity of the capturing user
            payload: Recorded audio

        Returns:
            The session outcome
        """
        with self._lock:
            if self._session is not None and self._session.is_active:
                logger.warning("Capture already active, rejecting audio payload")
                return CaptureOutcome.failed(FailureKind.SESSION_ACTIVE, owner_id=owner_id)
            session = CaptureSession(owner_id=owner_id)
            session.advance(CaptureState.TRANSCRIBING)
            self._session = session

        return self._run_pipeline(session, payload)

    # -- typed path and retry ----------------------------------------------

    def submit_text(self, owner_id: str, text: str) -> CaptureOutcome:
        """Create a note from typed text.

        Args:
            owner_id: Resolved identity of the author
            text: Typed note text

        Returns:
            COMPLETED with the note, or FAILED with the text kept
        """
        content = validate_content(text, self._config.min_content_length)
        if content is None:
            outcome = CaptureOutcome.failed(
                FailureKind.NO_SPEECH_DETECTED, owner_id=owner_id, transcript=text
            )
            outcome.message = TOO_SHORT_MESSAGE
            self._notify(outcome)
            return outcome

        draft = NoteDraft(
            content=content,
            title=derive_title(content),
            tags=[],
            category=NOTE_CATEGORY,
        )
        return self._persist(owner_id, draft, transcript=content)

    def retry_persist(self, outcome: CaptureOutcome) -> CaptureOutcome:
        """Retry the store insert of a failed capture.

        Args:
            outcome: A PERSISTENCE_FAILED outcome

        Returns:
            A new outcome for the retry

        Raises:
            ValueError: If the outcome has no retained draft to retry
        """
        if not outcome.retryable or outcome.draft is None:
            raise ValueError("Only a persistence failure with a retained draft can be retried")
        logger.info("Retrying save of '%s'", (outcome.transcript or "")[:50])
        return self._persist(
            outcome.owner_id,
            outcome.draft,
            transcript=outcome.transcript,
            degraded=outcome.degraded,
            event_hint=outcome.event_hint,
        )

    # -- listeners and background work -------------------------------------

    def add_listener(self, listener: OutcomeListener) -> None:
        """Register a callback for every outcome."""
        self._listeners.append(listener)

    def remove_listener(self, listener: OutcomeListener) -> None:
        """Unregister a callback."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def wait_for_background(self, timeout: float | None = None) -> bool:
        """Wait for scheduled calendar work.

        Returns:
            True if all background work finished within the timeout
        """
        with self._lock:
            pending = list(self._background)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self) -> None:
        """Wait for background work and release the worker pool."""
        self.wait_for_background()
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def __enter__(self) -> "CaptureOrchestrator":
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.shutdown()

    # -- pipeline ------------------------------------------------------------

    def _run_pipeline(self, session: CaptureSession, payload: AudioPayload) -> CaptureOutcome:
        """Advance a session from TRANSCRIBING to a terminal state."""
        result = self._transcribe(payload)

        if self._checkpoint(session):
            return self._finish(session, self._cancelled_outcome(session))

        if result.is_transport_failure:
            logger.error(
                "Transcription failed (%s): %s",
                result.error.value if result.error else "unknown",
                result.detail,
            )
            return self._fail(session, FailureKind.TRANSCRIPTION_FAILED)

        transcript = result.text if result.ok else ""
        content = validate_content(transcript, self._config.min_content_length)
        if content is None:
            logger.info("No speech detected in capture %s", session.session_id)
            return self._fail(session, FailureKind.NO_SPEECH_DETECTED, transcript=transcript)

        logger.info("Transcribed: '%s'", content[:50])
        self._advance(session, CaptureState.CATEGORIZING)
        suggestion, degraded = self._categorize(content)

        if self._checkpoint(session):
            return self._finish(session, self._cancelled_outcome(session, content))

        draft, hint = self._build_voice_draft(content, suggestion)
        self._advance(session, CaptureState.PERSISTING)
        return self._persist(
            session.owner_id,
            draft,
            transcript=content,
            degraded=degraded,
            event_hint=hint,
            session=session,
        )

    def _transcribe(self, payload: AudioPayload) -> TranscriptionResult:
        try:
            return self._transcriber.transcribe(payload)
        except Exception as e:
            logger.error("Transcriber raised: %s", e)
            return TranscriptionResult.failure(TranscriptionError.UNREACHABLE, str(e))

    def _categorize(self, content: str) -> tuple[CategorizationSuggestion | None, bool]:
        """Categorize within the configured timeout.

        Returns:
            (suggestion or None, degraded flag)
        """
        timeout = self._config.categorization_timeout_seconds
        future = self._executor.submit(self._categorizer.categorize, content)
        try:
            result = future.result(timeout=timeout)
        except TimeoutError:
            future.cancel()
            logger.warning("Categorization timed out after %.1fs, using defaults", timeout)
            return None, True
        except Exception as e:
            logger.warning("Categorization raised, using defaults: %s", e)
            return None, True

        if not isinstance(result, CategorizationResult):
            logger.warning("Categorizer returned %s, using defaults", type(result).__name__)
            return None, True
        if not result.ok:
            logger.warning(
                "Categorization unavailable (%s), using defaults",
                result.error.value if result.error else "no suggestion",
            )
            return None, True
        return result.suggestion, False

    def _build_voice_draft(
        self, content: str, suggestion: CategorizationSuggestion | None
    ) -> tuple[NoteDraft, EventHint | None]:
        """Apply suggestion values over the voice-note defaults."""
        title = derive_title(content)
        tags = list(self._config.default_voice_tags)
        sub: str | None = None
        hint: EventHint | None = None

        if suggestion is not None:
            if suggestion.suggested_title and suggestion.suggested_title.strip():
                title = suggestion.suggested_title.strip()
            suggested_tags = normalize_tags(suggestion.suggested_tags)
            if suggested_tags:
                tags = suggested_tags
            sub = suggestion.suggested_category
            hint = self._gate_event_hint(suggestion.event_hint)

        draft = NoteDraft(
            content=content,
            title=title,
            tags=tags,
            category=Category(main=VOICE_NOTE_CATEGORY.main, sub=sub),
        )
        return draft, hint

    def _gate_event_hint(self, hint: EventHint | None) -> EventHint | None:
        """Keep a hint only if it reports an event above the confidence gate."""
        if hint is None or not hint.has_event:
            return None
        threshold = self._bridge.confidence_threshold if self._bridge else CONFIDENCE_THRESHOLD
        if not hint.passes(threshold):
            logger.info("Discarding event hint with confidence %s", hint.confidence)
            return None
        return hint

    def _persist(
        self,
        owner_id: str,
        draft: NoteDraft,
        transcript: str | None,
        degraded: bool = False,
        event_hint: EventHint | None = None,
        session: CaptureSession | None = None,
    ) -> CaptureOutcome:
        """Insert a draft and build the outcome."""
        session_id = session.session_id if session else None
        try:
            note = self._store.insert(owner_id, draft)
        except AuthorizationDenied as e:
            logger.error("Save denied: %s", e)
            return self._fail(
                session,
                FailureKind.AUTHORIZATION_DENIED,
                owner_id=owner_id,
                transcript=transcript,
            )
        except StorageError as e:
            logger.error("Failed to save note '%s': %s", (transcript or "")[:50], e)
            return self._fail(
                session,
                FailureKind.PERSISTENCE_FAILED,
                owner_id=owner_id,
                transcript=transcript,
                draft=draft,
                event_hint=event_hint,
                degraded=degraded,
            )
        except Exception as e:
            logger.exception("Unexpected error saving note '%s': %s", (transcript or "")[:50], e)
            return self._fail(
                session,
                FailureKind.PERSISTENCE_FAILED,
                owner_id=owner_id,
                transcript=transcript,
                draft=draft,
                event_hint=event_hint,
                degraded=degraded,
            )

        logger.info("Saved note %s (%s)", note.id, note.category.main)
        outcome = CaptureOutcome(
            state=CaptureState.COMPLETED,
            owner_id=owner_id,
            note=note,
            message="Note saved",
            transcript=transcript,
            degraded=degraded,
            draft=draft,
            event_hint=event_hint,
            session_id=session_id,
        )
        self._schedule_calendar(owner_id, event_hint)
        return self._finish(session, outcome)

    def _schedule_calendar(self, owner_id: str, hint: EventHint | None) -> None:
        """Hand a gated hint to the calendar bridge without waiting."""
        if hint is None or self._bridge is None:
            return
        future = self._executor.submit(self._bridge.maybe_create_event, owner_id, hint)
        with self._lock:
            self._background.append(future)
        future.add_done_callback(self._on_background_done)

    def _on_background_done(self, future: Future) -> None:
        with self._lock:
            if future in self._background:
                self._background.remove(future)
        if not future.cancelled() and future.exception() is not None:
            logger.warning("Calendar hand-off failed: %s", future.exception())

    # -- state helpers -------------------------------------------------------

    def _advance(self, session: CaptureSession, target: CaptureState) -> None:
        with self._lock:
            session.advance(target)
        logger.debug("Capture %s -> %s", session.session_id, target.value)

    def _checkpoint(self, session: CaptureSession) -> bool:
        """Return True (and move to IDLE) if the session was cancelled."""
        with self._lock:
            if not session.cancelled:
                return False
            session.advance(CaptureState.IDLE)
        logger.info("Capture %s dropped after cancel", session.session_id)
        return True

    @staticmethod
    def _cancelled_outcome(session: CaptureSession, transcript: str | None = None) -> CaptureOutcome:
        return CaptureOutcome(
            state=CaptureState.IDLE,
            owner_id=session.owner_id,
            message="Capture cancelled",
            transcript=transcript,
            session_id=session.session_id,
        )

    def _fail(
        self,
        session: CaptureSession | None,
        failure: FailureKind,
        owner_id: str | None = None,
        transcript: str | None = None,
        draft: NoteDraft | None = None,
        event_hint: EventHint | None = None,
        degraded: bool = False,
    ) -> CaptureOutcome:
        outcome = CaptureOutcome.failed(
            failure,
            owner_id=owner_id if owner_id is not None else (session.owner_id if session else ""),
            transcript=transcript,
            draft=draft,
            event_hint=event_hint,
            degraded=degraded,
            session_id=session.session_id if session else None,
        )
        return self._finish(session, outcome)

    def _finish(self, session: CaptureSession | None, outcome: CaptureOutcome) -> CaptureOutcome:
        """Move the session to the outcome's state and notify listeners."""
        if session is not None:
            with self._lock:
                if session.state != outcome.state:
                    session.advance(outcome.state)
        self._last_outcome = outcome
        self._notify(outcome)
        return outcome

    def _notify(self, outcome: CaptureOutcome) -> None:
        for listener in list(self._listeners):
            try:
                listener(outcome)
            except Exception as e:
                logger.warning("Capture listener failed: %s", e)


__all__ = ["CaptureOrchestrator", "OutcomeListener", "TOO_SHORT_MESSAGE"]
