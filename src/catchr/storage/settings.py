"""Repository for per-owner settings."""

import logging
from datetime import UTC, datetime
from typing import Any

from pymongo import ASCENDING
from pymongo.collection import Collection

from .client import persistence_boundary, retry_on_connection_failure
from .errors import AuthorizationDenied
from .models import UserSettings

logger = logging.getLogger(__name__)


class UserSettingsRepository:
    """Repository for user settings, one document per owner."""

    def __init__(self, collection: Collection[dict[str, Any]]) -> None:
        """Initialize repository with MongoDB collection.

        Args:
            collection: MongoDB collection for user settings.
        """
        self._collection = collection
        self._collection.create_index([("owner_id", ASCENDING)], unique=True)

    @persistence_boundary
    @retry_on_connection_failure()
    def get(self, owner_id: str) -> UserSettings | None:
        """Get settings for an owner.

        Args:
            owner_id: Resolved identity of the caller.

        Returns:
            The owner's settings, or None if never saved.
        """
        if not owner_id:
            raise AuthorizationDenied(str(owner_id), "settings")
        doc = self._collection.find_one({"owner_id": owner_id})
        if doc is None:
            return None
        return UserSettings.from_dict(doc)

    @persistence_boundary
    @retry_on_connection_failure()
    def save(self, settings: UserSettings) -> UserSettings:
        """Create or replace an owner's settings.

        Args:
            settings: Settings to store.

        Returns:
            The stored settings with updated_at refreshed.
        """
        if not settings.owner_id:
            raise AuthorizationDenied(str(settings.owner_id), "settings")
        settings.updated_at = datetime.now(UTC)
        self._collection.replace_one(
            {"owner_id": settings.owner_id},
            settings.to_dict(),
            upsert=True,
        )
        logger.info("Saved settings for owner %s", settings.owner_id)
        return settings


__all__ = ["UserSettingsRepository"]
