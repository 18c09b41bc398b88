"""Calendar module for Catchr.

Creates calendar events from notes that describe one, when the owner
has connected a calendar and opted in.
"""

from typing import TYPE_CHECKING

from .bridge import CONFIDENCE_THRESHOLD, CalendarEventBridge
from .client import CalendarClient, CalendarEventResult
from .google import GoogleCalendarClient
from .mock import MockCalendarClient

if TYPE_CHECKING:
    from ..config import CalendarConfig


def create_calendar_client(
    config: "CalendarConfig | None" = None,
    use_mock: bool = False,
) -> CalendarClient:
    """Create a calendar client instance.

    Args:
        config: Calendar configuration
        use_mock: If True, return mock implementation for testing

    Returns:
        CalendarClient implementation

    Raises:
        ValueError: If the provider is unknown
    """
    from ..config import CalendarConfig

    config = config or CalendarConfig()

    if use_mock or config.provider == "mock":
        return MockCalendarClient()
    if config.provider == "google":
        return GoogleCalendarClient(
            api_base=config.api_base,
            timeout=config.timeout_seconds,
            default_timezone=config.default_timezone,
        )
    raise ValueError(f"Unknown calendar provider: {config.provider}")


__all__ = [
    "CONFIDENCE_THRESHOLD",
    "CalendarClient",
    "CalendarEventBridge",
    "CalendarEventResult",
    "GoogleCalendarClient",
    "MockCalendarClient",
    "create_calendar_client",
]
