"""Calendar client protocol and result type."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..storage.models import UserSettings


@dataclass
class CalendarEventResult:
    """Result of creating a calendar event.

    Attributes:
        success: True if the event was created
        event_id: Created event identifier
        event_link: Browser link to the event
        start: Event start, ISO 8601 in the owner's timezone
        end: Event end, ISO 8601 in the owner's timezone
        error: User-facing failure message
    """

    success: bool
    event_id: str | None = None
    event_link: str | None = None
    start: str | None = None
    end: str | None = None
    error: str | None = None


class CalendarClient(Protocol):
    """Interface for natural-language event creation.

    Implementations never raise; failures come back in the result.
    """

    def quick_add(self, settings: "UserSettings", text: str) -> CalendarEventResult:
        """Create an event from a natural-language description.

        Args:
            settings: Owner settings carrying credentials, calendar and timezone
            text: Event description, e.g. "Lunch with Sam Friday 1pm"

        Returns:
            CalendarEventResult
        """
        ...


__all__ = ["CalendarClient", "CalendarEventResult"]
