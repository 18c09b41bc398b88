"""MongoDB storage client for Catchr.

Provides connection management, retry logic, and repository access.
"""

import logging
import time
from collections.abc import Callable
from functools import wraps
from typing import TYPE_CHECKING, Any, TypeVar

from bson.errors import BSONError
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from .errors import PersistenceFailed

if TYPE_CHECKING:
    from ..config import StorageConfig
    from .notes import NoteStore
    from .settings import UserSettingsRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_on_connection_failure(
    max_retries: int = 3,
    base_delay: float = 0.2,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator for exponential backoff retry on connection failures.

    Args:
        max_retries: Maximum number of attempts.
        base_delay: Base delay in seconds (doubles each retry).

    Returns:
        Decorated function with retry logic.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            last_exception: Exception | None = None

            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                    last_exception = e
                    if attempt < max_retries - 1:
                        delay = base_delay * (2**attempt)
                        logger.warning(
                            "Connection failed (attempt %d/%d), retrying in %.1fs: %s",
                            attempt + 1,
                            max_retries,
                            delay,
                            str(e),
                        )
                        time.sleep(delay)
                    else:
                        logger.error(
                            "Connection failed after %d attempts: %s",
                            max_retries,
                            str(e),
                        )

            if last_exception:
                raise last_exception
            raise RuntimeError("Unexpected retry loop exit")

        return wrapper

    return decorator


def persistence_boundary(func: Callable[..., T]) -> Callable[..., T]:
    """Translate driver and encoding errors into PersistenceFailed.

    Storage errors raised on purpose (authorization, not found) pass through.
    Documents that cannot be encoded to BSON (e.g. text holding a lone
    surrogate) fail the same way as an unreachable server.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return func(*args, **kwargs)
        except (PyMongoError, BSONError, UnicodeError) as e:
            logger.error("%s failed: %s", func.__name__, e)
            raise PersistenceFailed(f"{func.__name__} failed: {e}") from e

    return wrapper


class MongoStorageClient:
    """High-level MongoDB storage client.

    Manages connection and provides access to repositories.
    """

    def __init__(
        self,
        uri: str = "mongodb://localhost:27017",
        database_name: str = "catchr",
        connect_timeout_ms: int = 5000,
        server_selection_timeout_ms: int = 5000,
        socket_timeout_ms: int = 10000,
    ) -> None:
        """Initialize the storage client.

        Args:
            uri: MongoDB connection URI.
            database_name: Name of the database to use.
            connect_timeout_ms: Connection timeout in milliseconds.
            server_selection_timeout_ms: Server selection timeout in milliseconds.
            socket_timeout_ms: Per-operation socket timeout in milliseconds.
        """
        self._uri = uri
        self._database_name = database_name
        self._connect_timeout_ms = connect_timeout_ms
        self._server_selection_timeout_ms = server_selection_timeout_ms
        self._socket_timeout_ms = socket_timeout_ms

        self._client: MongoClient[dict[str, Any]] | None = None
        self._db: Database[dict[str, Any]] | None = None
        self._notes: "NoteStore | None" = None
        self._settings: "UserSettingsRepository | None" = None
        self._connected = False

    @classmethod
    def from_config(cls, config: "StorageConfig") -> "MongoStorageClient":
        """Create a client from storage configuration."""
        return cls(
            uri=config.uri,
            database_name=config.database,
            connect_timeout_ms=config.connect_timeout_ms,
            server_selection_timeout_ms=config.server_selection_timeout_ms,
            socket_timeout_ms=config.socket_timeout_ms,
        )

    def connect(self) -> None:
        """Connect to MongoDB.

        Raises:
            ConnectionFailure: If connection fails.
        """
        if self._connected:
            return

        from .notes import NoteStore
        from .settings import UserSettingsRepository

        try:
            self._client = MongoClient(
                self._uri,
                connectTimeoutMS=self._connect_timeout_ms,
                serverSelectionTimeoutMS=self._server_selection_timeout_ms,
                socketTimeoutMS=self._socket_timeout_ms,
                tz_aware=True,
            )

            # Verify connection
            self._client.admin.command("ping")

            self._db = self._client[self._database_name]
            self._notes = NoteStore(self._db["notes"])
            self._settings = UserSettingsRepository(self._db["user_settings"])
            self._connected = True

            logger.info("Connected to MongoDB at %s", self._uri)

        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error("Failed to connect to MongoDB: %s", str(e))
            self._connected = False
            raise

    def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self._client is not None:
            self._client.close()
            self._client = None
            self._db = None
            self._notes = None
            self._settings = None
            self._connected = False
            logger.info("Disconnected from MongoDB")

    def is_connected(self) -> bool:
        """Check if connected to MongoDB.

        Returns:
            True if connected, False otherwise.
        """
        if not self._connected or self._client is None:
            return False

        try:
            self._client.admin.command("ping")
            return True
        except PyMongoError:
            self._connected = False
            return False

    def health_check(self) -> bool:
        """Perform a health check on the database."""
        return self.is_connected()

    @property
    def notes(self) -> "NoteStore":
        """Get the owner-scoped note store.

        Raises:
            RuntimeError: If not connected.
        """
        if self._notes is None:
            raise RuntimeError("Not connected to MongoDB. Call connect() first.")
        return self._notes

    @property
    def settings(self) -> "UserSettingsRepository":
        """Get the user settings repository.

        Raises:
            RuntimeError: If not connected.
        """
        if self._settings is None:
            raise RuntimeError("Not connected to MongoDB. Call connect() first.")
        return self._settings

    def __enter__(self) -> "MongoStorageClient":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.disconnect()


__all__ = [
    "MongoStorageClient",
    "persistence_boundary",
    "retry_on_connection_failure",
]
