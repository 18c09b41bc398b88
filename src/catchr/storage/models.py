"""Data models for per-owner settings storage."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

DEFAULT_TIMEZONE = "America/Los_Angeles"
DEFAULT_CALENDAR_ID = "primary"


@dataclass
class UserSettings:
    """Calendar-related settings for one owner.

    Attributes:
        owner_id: Owning user
        calendar_integration_enabled: Calendar account connected and enabled
        auto_create_events: Owner opted into events created from notes
        timezone: IANA timezone used for created event times
        default_calendar_id: Target calendar ("primary" when unset)
        calendar_access_token: OAuth bearer token for the calendar API
        updated_at: Last change time
    """

    owner_id: str
    calendar_integration_enabled: bool = False
    auto_create_events: bool = False
    timezone: str = DEFAULT_TIMEZONE
    default_calendar_id: str = DEFAULT_CALENDAR_ID
    calendar_access_token: str | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for MongoDB storage."""
        return {
            "owner_id": self.owner_id,
            "calendar_integration_enabled": self.calendar_integration_enabled,
            "auto_create_events": self.auto_create_events,
            "timezone": self.timezone,
            "default_calendar_id": self.default_calendar_id,
            "calendar_access_token": self.calendar_access_token,
            "updated_at": self.updated_at or datetime.now(UTC),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserSettings":
        """Create from MongoDB document."""
        return cls(
            owner_id=data.get("owner_id", ""),
            calendar_integration_enabled=bool(data.get("calendar_integration_enabled", False)),
            auto_create_events=bool(data.get("auto_create_events", False)),
            timezone=data.get("timezone") or DEFAULT_TIMEZONE,
            default_calendar_id=data.get("default_calendar_id") or DEFAULT_CALENDAR_ID,
            calendar_access_token=data.get("calendar_access_token"),
            updated_at=data.get("updated_at"),
        )

    @property
    def calendar_ready(self) -> bool:
        """Check if events may be created automatically for this owner."""
        return self.calendar_integration_enabled and self.auto_create_events


__all__ = ["DEFAULT_CALENDAR_ID", "DEFAULT_TIMEZONE", "UserSettings"]
