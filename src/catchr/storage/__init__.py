"""MongoDB storage module for Catchr.

Provides the owner-scoped note store and per-owner settings, with
connection management and retry on transient failures.
"""

from .client import MongoStorageClient, persistence_boundary, retry_on_connection_failure
from .errors import (
    AuthorizationDenied,
    InvalidNote,
    NoteNotFound,
    PersistenceFailed,
    StorageError,
)
from .models import DEFAULT_CALENDAR_ID, DEFAULT_TIMEZONE, UserSettings
from .notes import NoteStore
from .settings import UserSettingsRepository

__all__ = [
    "AuthorizationDenied",
    "DEFAULT_CALENDAR_ID",
    "DEFAULT_TIMEZONE",
    "InvalidNote",
    "MongoStorageClient",
    "NoteNotFound",
    "NoteStore",
    "PersistenceFailed",
    "StorageError",
    "UserSettings",
    "UserSettingsRepository",
    "persistence_boundary",
    "retry_on_connection_failure",
]
