"""Unit tests for MongoDB storage client.

Tests connection management, retry logic, and driver error translation.
"""

from unittest.mock import MagicMock, patch

import pytest
from bson.errors import InvalidDocument
from pymongo.errors import ConnectionFailure, OperationFailure

from catchr.config import StorageConfig
from catchr.notes.models import NoteDraft
from catchr.storage import (
    MongoStorageClient,
    NoteNotFound,
    NoteStore,
    PersistenceFailed,
    UserSettings,
    UserSettingsRepository,
    persistence_boundary,
    retry_on_connection_failure,
)


class TestRetryDecorator:
    """Tests for retry_on_connection_failure decorator."""

    def test_success_first_try(self) -> None:
        """Test no retry needed on success."""
        call_count = 0

        @retry_on_connection_failure(max_retries=3, base_delay=0.01)
        def succeed() -> str:
            nonlocal call_count
            call_count += 1
            return "ok"

        assert succeed() == "ok"
        assert call_count == 1

    def test_retry_then_success(self) -> None:
        """Test transient failures are retried."""
        call_count = 0

        @retry_on_connection_failure(max_retries=3, base_delay=0.01)
        def flaky() -> str:
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise ConnectionFailure("Connection refused")
            return "ok"

        assert flaky() == "ok"
        assert call_count == 3

    def test_max_retries_exceeded(self) -> None:
        """Test the last error is raised after all attempts."""

        @retry_on_connection_failure(max_retries=2, base_delay=0.01)
        def always_fail() -> str:
            raise ConnectionFailure("Connection refused")

        with pytest.raises(ConnectionFailure):
            always_fail()

    def test_other_errors_not_retried(self) -> None:
        """Test only connection failures are retried."""
        call_count = 0

        @retry_on_connection_failure(max_retries=3, base_delay=0.01)
        def bad_query() -> str:
            nonlocal call_count
            call_count += 1
            raise OperationFailure("bad query")

        with pytest.raises(OperationFailure):
            bad_query()
        assert call_count == 1


class TestPersistenceBoundary:
    """Tests for persistence_boundary decorator."""

    def test_driver_error_translated(self) -> None:
        """Test PyMongoError becomes PersistenceFailed."""

        @persistence_boundary
        def write() -> None:
            raise OperationFailure("not primary")

        with pytest.raises(PersistenceFailed):
            write()

    def test_encoding_errors_translated(self) -> None:
        """Test documents that cannot be encoded fail like driver errors."""

        @persistence_boundary
        def write() -> None:
            raise UnicodeEncodeError("utf-8", "\udcff", 0, 1, "surrogates not allowed")

        with pytest.raises(PersistenceFailed):
            write()

    def test_bson_errors_translated(self) -> None:
        """Test BSON encoding errors become PersistenceFailed."""

        @persistence_boundary
        def write() -> None:
            raise InvalidDocument("cannot encode object")

        with pytest.raises(PersistenceFailed):
            write()

    def test_storage_errors_pass_through(self) -> None:
        """Test deliberate storage errors are not rewrapped."""

        @persistence_boundary
        def read() -> None:
            raise NoteNotFound("abc")

        with pytest.raises(NoteNotFound):
            read()


class TestNoteStoreFailures:
    """Tests for NoteStore against a failing collection."""

    @patch("catchr.storage.client.time.sleep")
    def test_insert_retries_then_fails(self, mock_sleep: MagicMock) -> None:
        """Test an unreachable database surfaces as PersistenceFailed."""
        collection = MagicMock()
        collection.insert_one.side_effect = ConnectionFailure("no route to host")
        store = NoteStore(collection)

        with pytest.raises(PersistenceFailed):
            store.insert("owner-a", NoteDraft(content="will not be saved"))

        assert collection.insert_one.call_count == 3
        assert mock_sleep.call_count == 2

    def test_unencodable_note_fails_cleanly(self) -> None:
        """Test text the driver cannot encode surfaces as PersistenceFailed."""
        collection = MagicMock()
        collection.insert_one.side_effect = UnicodeEncodeError(
            "utf-8", "\udcff", 0, 1, "surrogates not allowed"
        )
        store = NoteStore(collection)

        with pytest.raises(PersistenceFailed):
            store.insert("owner-a", NoteDraft(content="bad \udcff text"))
        assert collection.insert_one.call_count == 1

    def test_settings_write_failure(self) -> None:
        """Test settings writes use the same boundary."""
        collection = MagicMock()
        collection.replace_one.side_effect = OperationFailure("write concern")
        repo = UserSettingsRepository(collection)

        with pytest.raises(PersistenceFailed):
            repo.save(UserSettings(owner_id="owner-a"))


class TestMongoStorageClient:
    """Tests for MongoStorageClient connection management."""

    def test_from_config(self) -> None:
        """Test construction from StorageConfig."""
        client = MongoStorageClient.from_config(
            StorageConfig(uri="mongodb://db.example:27017", database="catchr_test")
        )
        assert client._uri == "mongodb://db.example:27017"
        assert client._database_name == "catchr_test"

    def test_not_connected_initially(self) -> None:
        """Test client is not connected on init."""
        client = MongoStorageClient()
        assert client.is_connected() is False

    def test_repositories_require_connection(self) -> None:
        """Test accessing stores before connect() raises."""
        client = MongoStorageClient()
        with pytest.raises(RuntimeError):
            _ = client.notes
        with pytest.raises(RuntimeError):
            _ = client.settings

    @patch("catchr.storage.client.MongoClient")
    def test_connect_success(self, mock_mongo_client: MagicMock) -> None:
        """Test successful connection wires both repositories."""
        mock_instance = MagicMock()
        mock_mongo_client.return_value = mock_instance
        mock_instance.admin.command.return_value = {"ok": 1}

        client = MongoStorageClient()
        client.connect()

        assert client.is_connected() is True
        assert isinstance(client.notes, NoteStore)
        assert isinstance(client.settings, UserSettingsRepository)
        assert mock_mongo_client.call_args.kwargs["tz_aware"] is True

    @patch("catchr.storage.client.MongoClient")
    def test_connect_failure(self, mock_mongo_client: MagicMock) -> None:
        """Test connection failure is raised."""
        mock_instance = MagicMock()
        mock_mongo_client.return_value = mock_instance
        mock_instance.admin.command.side_effect = ConnectionFailure("Connection refused")

        client = MongoStorageClient()
        with pytest.raises(ConnectionFailure):
            client.connect()
        assert client.is_connected() is False

    @patch("catchr.storage.client.MongoClient")
    def test_disconnect(self, mock_mongo_client: MagicMock) -> None:
        """Test disconnect clears connection."""
        mock_instance = MagicMock()
        mock_mongo_client.return_value = mock_instance
        mock_instance.admin.command.return_value = {"ok": 1}

        client = MongoStorageClient()
        client.connect()
        client.disconnect()

        assert client.is_connected() is False
        mock_instance.close.assert_called_once()

    @patch("catchr.storage.client.MongoClient")
    def test_context_manager(self, mock_mongo_client: MagicMock) -> None:
        """Test context manager connects and disconnects."""
        mock_instance = MagicMock()
        mock_mongo_client.return_value = mock_instance
        mock_instance.admin.command.return_value = {"ok": 1}

        with MongoStorageClient() as client:
            assert client.is_connected() is True

        mock_instance.close.assert_called_once()
