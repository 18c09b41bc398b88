"""Mock calendar client for testing."""

from typing import TYPE_CHECKING

from .client import CalendarEventResult

if TYPE_CHECKING:
    from ..storage.models import UserSettings


class MockCalendarClient:
    """Records quick_add calls and returns a preset result."""

    def __init__(self) -> None:
        """Initialize mock client."""
        self._result = CalendarEventResult(success=True, event_id="mock-event")
        self._calls: list[tuple[str, str]] = []

    def set_result(self, result: CalendarEventResult) -> None:
        """Set the result to return.

        Args:
            result: Result for subsequent calls
        """
        self._result = result

    def quick_add(self, settings: "UserSettings", text: str) -> CalendarEventResult:
        """Record the call and return the preset result."""
        self._calls.append((settings.owner_id, text))
        return self._result

    @property
    def calls(self) -> list[tuple[str, str]]:
        """Get (owner_id, text) pairs passed to quick_add()."""
        return self._calls.copy()


__all__ = ["MockCalendarClient"]
