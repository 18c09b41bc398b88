"""Unit tests for calendar event creation."""

from unittest.mock import MagicMock

import httpx
import pytest

from catchr.calendar import (
    CalendarEventBridge,
    CalendarEventResult,
    GoogleCalendarClient,
    MockCalendarClient,
    create_calendar_client,
)
from catchr.calendar.google import (
    AUTH_EXPIRED_MESSAGE,
    NOT_CONNECTED_MESSAGE,
    format_event_time,
    resolve_timezone,
)
from catchr.categorize import EventHint
from catchr.config import CalendarConfig
from catchr.storage import PersistenceFailed, UserSettings, UserSettingsRepository

OWNER = "owner-a"
HINT = EventHint(has_event=True, natural_language_text="Lunch with Sarah tomorrow at 1pm", confidence=0.9)


def connected_settings(**overrides) -> UserSettings:
    """Settings for an owner who opted in."""
    values = {
        "owner_id": OWNER,
        "calendar_integration_enabled": True,
        "auto_create_events": True,
        "timezone": "America/New_York",
        "calendar_access_token": "token-abc",
    }
    values.update(overrides)
    return UserSettings(**values)


class TestGoogleCalendarClient:
    """Tests for GoogleCalendarClient using a mock transport."""

    def make_client(self, handler) -> GoogleCalendarClient:
        """Client whose requests go to handler."""
        return GoogleCalendarClient(transport=httpx.MockTransport(handler))

    def test_quick_add_request(self) -> None:
        """Test the endpoint, query text and bearer token."""
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(
                200,
                json={
                    "id": "evt-1",
                    "htmlLink": "https://calendar.google.com/event?eid=evt-1",
                    "start": {"dateTime": "2026-10-20T20:00:00Z"},
                    "end": {"dateTime": "2026-10-20T21:00:00Z"},
                },
            )

        result = self.make_client(handler).quick_add(connected_settings(), HINT.natural_language_text)

        assert result.success
        assert result.event_id == "evt-1"
        request = captured[0]
        assert request.method == "POST"
        assert request.url.path == "/calendar/v3/calendars/primary/events/quickAdd"
        assert request.url.params["text"] == "Lunch with Sarah tomorrow at 1pm"
        assert request.headers["Authorization"] == "Bearer token-abc"

    def test_times_rendered_in_owner_timezone(self) -> None:
        """Test start and end are shown in the owner's zone."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "id": "evt-2",
                    "start": {"dateTime": "2026-10-20T20:00:00Z"},
                    "end": {"dateTime": "2026-10-20T21:00:00Z"},
                },
            )

        client = self.make_client(handler)

        eastern = client.quick_add(connected_settings(), "Call at 4pm")
        pacific = client.quick_add(connected_settings(timezone="America/Los_Angeles"), "Call at 1pm")

        assert eastern.start == "2026-10-20T16:00:00-04:00"
        assert eastern.end == "2026-10-20T17:00:00-04:00"
        assert pacific.start == "2026-10-20T13:00:00-07:00"

    def test_custom_calendar_id(self) -> None:
        """Test the owner's default calendar is targeted."""
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json={"id": "evt-3"})

        self.make_client(handler).quick_add(connected_settings(default_calendar_id="work"), "Standup 9am")

        assert paths == ["/calendar/v3/calendars/work/events/quickAdd"]

    def test_expired_token(self) -> None:
        """Test the reconnect message on 401."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": {"code": 401}})

        result = self.make_client(handler).quick_add(connected_settings(), "Dentist Friday")

        assert result.success is False
        assert result.error == AUTH_EXPIRED_MESSAGE

    def test_other_http_error(self) -> None:
        """Test non-auth errors."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        result = self.make_client(handler).quick_add(connected_settings(), "Dentist Friday")

        assert result.success is False
        assert result.error == "Calendar API error 500"

    def test_timeout(self) -> None:
        """Test request timeouts."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        result = self.make_client(handler).quick_add(connected_settings(), "Dentist Friday")

        assert result.success is False
        assert result.error == "Calendar request timed out"

    def test_no_token_makes_no_request(self) -> None:
        """Test an unconnected calendar."""
        handler = MagicMock()

        result = self.make_client(handler).quick_add(
            connected_settings(calendar_access_token=None), "Dentist Friday"
        )

        assert result.error == NOT_CONNECTED_MESSAGE
        handler.assert_not_called()


class TestTimeHelpers:
    """Tests for timezone helpers."""

    def test_unknown_timezone_falls_back(self) -> None:
        """Test the default zone is used for bad names."""
        assert resolve_timezone("Mars/Olympus_Mons").key == "America/Los_Angeles"
        assert resolve_timezone(None, default="UTC").key == "UTC"

    def test_all_day_event_unchanged(self) -> None:
        """Test plain dates pass through."""
        assert format_event_time({"date": "2026-10-21"}, resolve_timezone("UTC")) == "2026-10-21"

    def test_missing_value(self) -> None:
        """Test absent start or end."""
        assert format_event_time(None, resolve_timezone("UTC")) is None


class TestCalendarEventBridge:
    """Tests for the precondition chain in CalendarEventBridge."""

    @pytest.fixture
    def settings_repo(self) -> MagicMock:
        """Settings repository double for an opted-in owner."""
        repo = MagicMock(spec=UserSettingsRepository)
        repo.get.return_value = connected_settings()
        return repo

    @pytest.fixture
    def client(self) -> MockCalendarClient:
        """Recording calendar client."""
        return MockCalendarClient()

    @pytest.fixture
    def bridge(self, settings_repo: MagicMock, client: MockCalendarClient) -> CalendarEventBridge:
        """Bridge with the default threshold."""
        return CalendarEventBridge(settings_repo, client)

    def test_creates_event_when_all_conditions_hold(
        self, bridge: CalendarEventBridge, client: MockCalendarClient
    ) -> None:
        """Test the happy path calls the client once."""
        result = bridge.maybe_create_event(OWNER, HINT)

        assert result is not None and result.success
        assert client.calls == [(OWNER, "Lunch with Sarah tomorrow at 1pm")]

    def test_no_settings(
        self, bridge: CalendarEventBridge, settings_repo: MagicMock, client: MockCalendarClient
    ) -> None:
        """Test owners who never saved settings."""
        settings_repo.get.return_value = None
        assert bridge.maybe_create_event(OWNER, HINT) is None
        assert client.calls == []

    def test_integration_disabled(
        self, bridge: CalendarEventBridge, settings_repo: MagicMock, client: MockCalendarClient
    ) -> None:
        """Test integration must be enabled."""
        settings_repo.get.return_value = connected_settings(calendar_integration_enabled=False)
        assert bridge.maybe_create_event(OWNER, HINT) is None
        assert client.calls == []

    def test_auto_create_disabled(
        self, bridge: CalendarEventBridge, settings_repo: MagicMock, client: MockCalendarClient
    ) -> None:
        """Test the owner must opt into automatic events."""
        settings_repo.get.return_value = connected_settings(auto_create_events=False)
        assert bridge.maybe_create_event(OWNER, HINT) is None
        assert client.calls == []

    @pytest.mark.parametrize(
        "hint",
        [
            None,
            EventHint(has_event=False, natural_language_text="Lunch", confidence=0.99),
            EventHint(has_event=True, natural_language_text="Lunch", confidence=0.5),
            EventHint(has_event=True, natural_language_text="Lunch", confidence=None),
            EventHint(has_event=True, natural_language_text=None, confidence=0.95),
        ],
    )
    def test_hint_rejected(
        self, bridge: CalendarEventBridge, client: MockCalendarClient, hint: EventHint | None
    ) -> None:
        """Test hints that fail a precondition never reach the client."""
        assert bridge.maybe_create_event(OWNER, hint) is None
        assert client.calls == []

    def test_threshold_is_inclusive(
        self, bridge: CalendarEventBridge, client: MockCalendarClient
    ) -> None:
        """Test a hint exactly at the threshold passes."""
        hint = EventHint(has_event=True, natural_language_text="Dentist 9am", confidence=0.7)
        assert bridge.maybe_create_event(OWNER, hint) is not None
        assert len(client.calls) == 1

    def test_settings_lookup_failure(
        self, bridge: CalendarEventBridge, settings_repo: MagicMock, client: MockCalendarClient
    ) -> None:
        """Test a storage failure ends the attempt quietly."""
        settings_repo.get.side_effect = PersistenceFailed("down")
        assert bridge.maybe_create_event(OWNER, HINT) is None
        assert client.calls == []

    def test_client_exception_becomes_result(self, settings_repo: MagicMock) -> None:
        """Test a raising client does not escape the bridge."""
        client = MagicMock()
        client.quick_add.side_effect = RuntimeError("boom")
        bridge = CalendarEventBridge(settings_repo, client)

        result = bridge.maybe_create_event(OWNER, HINT)

        assert result == CalendarEventResult(success=False, error="boom")

    def test_failed_result_returned(
        self, bridge: CalendarEventBridge, client: MockCalendarClient
    ) -> None:
        """Test client failures are passed back."""
        client.set_result(CalendarEventResult(success=False, error=AUTH_EXPIRED_MESSAGE))
        result = bridge.maybe_create_event(OWNER, HINT)
        assert result is not None and result.error == AUTH_EXPIRED_MESSAGE


class TestCreateCalendarClient:
    """Tests for create_calendar_client factory."""

    def test_mock(self) -> None:
        """Test use_mock."""
        assert isinstance(create_calendar_client(use_mock=True), MockCalendarClient)

    def test_google(self) -> None:
        """Test the default provider."""
        assert isinstance(create_calendar_client(CalendarConfig()), GoogleCalendarClient)

    def test_unknown(self) -> None:
        """Test unknown providers are rejected."""
        with pytest.raises(ValueError):
            create_calendar_client(CalendarConfig(provider="outlook"))
