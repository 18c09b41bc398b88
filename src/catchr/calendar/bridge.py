"""Calendar event bridge.

Turns a detected event hint into a calendar event when the owner has
opted in. Runs after a note is persisted and never raises to its caller.
"""

import logging
from typing import TYPE_CHECKING

from ..storage.errors import StorageError
from .client import CalendarClient, CalendarEventResult

if TYPE_CHECKING:
    from ..categorize.suggestion import EventHint
    from ..storage.settings import UserSettingsRepository

logger = logging.getLogger(__name__)

CONFIDENCE_THRESHOLD = 0.7


class CalendarEventBridge:
    """Conditionally creates calendar events from event hints."""

    def __init__(
        self,
        settings: "UserSettingsRepository",
        client: CalendarClient,
        confidence_threshold: float = CONFIDENCE_THRESHOLD,
    ) -> None:
        """Initialize the bridge.

        Args:
            settings: Repository for per-owner calendar settings
            client: Calendar client used when every precondition holds
            confidence_threshold: Minimum hint confidence
        """
        self._settings = settings
        self._client = client
        self._threshold = confidence_threshold

    @property
    def confidence_threshold(self) -> float:
        """Get the minimum hint confidence."""
        return self._threshold

    def maybe_create_event(
        self, owner_id: str, hint: "EventHint | None"
    ) -> CalendarEventResult | None:
        """Create an event if the owner and hint allow it.

        Preconditions, in order: integration enabled, automatic creation
        enabled, hint reports an event, confidence passes the gate, hint
        carries a description. The first failing check ends the call with
        no external request.

        Args:
            owner_id: Resolved identity of the note's owner
            hint: Event hint from categorization

        Returns:
            The client's result, or None when nothing was attempted
        """
        try:
            settings = self._settings.get(owner_id)
        except StorageError as e:
            logger.warning("Calendar settings unavailable for %s: %s", owner_id, e)
            return None

        if settings is None or not settings.calendar_integration_enabled:
            logger.debug("Calendar integration disabled for %s", owner_id)
            return None
        if not settings.auto_create_events:
            logger.debug("Automatic events disabled for %s", owner_id)
            return None
        if hint is None or not hint.has_event:
            return None
        if not hint.passes(self._threshold):
            logger.info(
                "Event hint confidence %s below %.2f, skipping", hint.confidence, self._threshold
            )
            return None
        if not hint.natural_language_text:
            logger.debug("Event hint has no description, skipping")
            return None

        try:
            result = self._client.quick_add(settings, hint.natural_language_text)
        except Exception as e:
            logger.warning("Calendar event creation raised: %s", e)
            return CalendarEventResult(success=False, error=str(e))

        if result.success:
            logger.info("Created calendar event %s for %s", result.event_id, owner_id)
        else:
            logger.warning("Calendar event not created for %s: %s", owner_id, result.error)
        return result


__all__ = ["CONFIDENCE_THRESHOLD", "CalendarEventBridge"]
