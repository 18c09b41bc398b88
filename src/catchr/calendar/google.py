"""Google Calendar integration using the quickAdd endpoint.

Google parses the natural-language text itself; the owner's timezone is
only used to present the created event's start and end times.
"""

import logging
from datetime import datetime
from typing import Any
from urllib.parse import quote
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

from ..storage.models import DEFAULT_CALENDAR_ID, DEFAULT_TIMEZONE, UserSettings
from .client import CalendarEventResult

logger = logging.getLogger(__name__)

GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"
AUTH_EXPIRED_MESSAGE = "Calendar authorization expired. Please reconnect your Google Calendar."
NOT_CONNECTED_MESSAGE = "Google Calendar is not connected."


def resolve_timezone(name: str | None, default: str = DEFAULT_TIMEZONE) -> ZoneInfo:
    """Look up an IANA timezone, falling back to the default."""
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r, using %s", name, default)
    return ZoneInfo(default)


def format_event_time(value: dict[str, Any] | None, tz: ZoneInfo) -> str | None:
    """Render an event start/end object in the given timezone.

    All-day events carry a plain date and are returned unchanged.
    """
    if not value:
        return None
    if value.get("dateTime"):
        try:
            moment = datetime.fromisoformat(value["dateTime"])
        except ValueError:
            return value["dateTime"]
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=tz)
        return moment.astimezone(tz).isoformat()
    return value.get("date")


class GoogleCalendarClient:
    """Creates events on the owner's Google Calendar."""

    def __init__(
        self,
        api_base: str = GOOGLE_CALENDAR_API,
        timeout: float = 10.0,
        default_timezone: str = DEFAULT_TIMEZONE,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the Google Calendar client.

        Args:
            api_base: Calendar API base URL
            timeout: Request timeout in seconds
            default_timezone: Timezone when the owner has none
            transport: Custom httpx transport (tests)
        """
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._default_timezone = default_timezone
        self._transport = transport

    def quick_add(self, settings: UserSettings, text: str) -> CalendarEventResult:
        """Create an event from natural-language text."""
        if not settings.calendar_access_token:
            return CalendarEventResult(success=False, error=NOT_CONNECTED_MESSAGE)

        calendar_id = settings.default_calendar_id or DEFAULT_CALENDAR_ID
        url = f"{self._api_base}/calendars/{quote(calendar_id, safe='')}/events/quickAdd"
        headers = {"Authorization": f"Bearer {settings.calendar_access_token}"}

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(url, params={"text": text}, headers=headers)
                response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.warning("Calendar request timed out: %s", e)
            return CalendarEventResult(success=False, error="Calendar request timed out")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 401:
                logger.warning("Calendar token rejected for owner %s", settings.owner_id)
                return CalendarEventResult(success=False, error=AUTH_EXPIRED_MESSAGE)
            logger.warning("Calendar HTTP error %d", e.response.status_code)
            return CalendarEventResult(
                success=False,
                error=f"Calendar API error {e.response.status_code}",
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Calendar request failed: %s", e)
            return CalendarEventResult(success=False, error=str(e))

        tz = resolve_timezone(settings.timezone, self._default_timezone)
        return CalendarEventResult(
            success=True,
            event_id=data.get("id"),
            event_link=data.get("htmlLink"),
            start=format_event_time(data.get("start"), tz),
            end=format_event_time(data.get("end"), tz),
        )


__all__ = [
    "AUTH_EXPIRED_MESSAGE",
    "GOOGLE_CALENDAR_API",
    "GoogleCalendarClient",
    "NOT_CONNECTED_MESSAGE",
    "format_event_time",
    "resolve_timezone",
]
