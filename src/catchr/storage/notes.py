"""Owner-scoped note store backed by MongoDB.

Every operation takes the caller's resolved owner id. Reads are filtered by
owner and writes first check the stored owner, so a caller can never see or
change another owner's note through this module.
"""

import logging
import re
from collections.abc import Mapping
from datetime import UTC, datetime, time, timedelta
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection

from ..notes.models import (
    MUTABLE_FIELDS,
    NOTE_CATEGORY,
    VOICE_NOTE_CATEGORY,
    Category,
    DailyCount,
    Note,
    NoteDraft,
    NoteFilters,
    NoteStats,
    SortKey,
    SortSpec,
    as_utc,
    derive_title,
)
from ..notes.ordering import order_notes
from .client import persistence_boundary, retry_on_connection_failure
from .errors import AuthorizationDenied, InvalidNote, NoteNotFound, PersistenceFailed

logger = logging.getLogger(__name__)

# Compare-and-set attempts for toggle_pin before giving up
TOGGLE_ATTEMPTS = 5

STATS_WEEK_DAYS = 7
STATS_MONTH_DAYS = 30
STATS_TOP_TAGS = 5


def _now() -> datetime:
    """Current UTC time at BSON (millisecond) precision."""
    now = datetime.now(UTC)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def _object_id(note_id: str) -> ObjectId:
    try:
        return ObjectId(note_id)
    except (InvalidId, TypeError) as e:
        raise NoteNotFound(str(note_id)) from e


def _clean_tags(tags: list[str] | None) -> list[str]:
    if not tags:
        return []
    return [t.strip() for t in tags if isinstance(t, str) and t.strip()]


def _require_owner(owner_id: str, note_id: str = "*") -> None:
    if not owner_id or not isinstance(owner_id, str):
        raise AuthorizationDenied(str(owner_id), note_id)


class NoteStore:
    """Repository for owner-scoped note operations."""

    def __init__(self, collection: Collection[dict[str, Any]]) -> None:
        """Initialize store with MongoDB collection.

        Args:
            collection: MongoDB collection for notes.
        """
        self._collection = collection
        self._ensure_indexes()

    def _ensure_indexes(self) -> None:
        """Create indexes for efficient queries."""
        self._collection.create_index(
            [("owner_id", ASCENDING), ("is_pinned", DESCENDING), ("updated_at", DESCENDING)]
        )
        self._collection.create_index([("owner_id", ASCENDING), ("created_at", DESCENDING)])
        self._collection.create_index([("owner_id", ASCENDING), ("category.main", ASCENDING)])

    def _load_owned(self, owner_id: str, note_id: str) -> dict[str, Any]:
        """Fetch a note document and check it belongs to owner_id.

        Raises:
            NoteNotFound: If the id does not exist.
            AuthorizationDenied: If the note belongs to another owner.
        """
        _require_owner(owner_id, note_id)
        doc = self._collection.find_one({"_id": _object_id(note_id)})
        if doc is None:
            raise NoteNotFound(note_id)
        if doc.get("owner_id") != owner_id:
            logger.warning("Owner %s denied access to note %s", owner_id, note_id)
            raise AuthorizationDenied(owner_id, note_id)
        return doc

    @staticmethod
    def _touch(doc: dict[str, Any]) -> datetime:
        """New updated_at value, never earlier than created_at."""
        now = _now()
        created_at = as_utc(doc.get("created_at"))
        if created_at is not None and created_at > now:
            return created_at
        return now

    @persistence_boundary
    @retry_on_connection_failure()
    def insert(self, owner_id: str, draft: NoteDraft) -> Note:
        """Insert a new note for owner_id.

        Args:
            owner_id: Resolved identity of the caller.
            draft: Content and optional metadata.

        Returns:
            The persisted note with its generated id.

        Raises:
            InvalidNote: If content is empty after trimming.
            AuthorizationDenied: If owner_id is empty.
        """
        _require_owner(owner_id)
        content = (draft.content or "").strip()
        if not content:
            raise InvalidNote("Note content must not be empty")

        now = _now()
        doc: dict[str, Any] = {
            "owner_id": owner_id,
            "content": content,
            "title": (draft.title or "").strip() or derive_title(content),
            "tags": _clean_tags(draft.tags),
            "category": (draft.category or NOTE_CATEGORY).to_dict(),
            "is_pinned": bool(draft.is_pinned),
            "created_at": now,
            "updated_at": now,
        }
        result = self._collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("Inserted note %s for owner %s", result.inserted_id, owner_id)
        return Note.from_dict(doc)

    @persistence_boundary
    @retry_on_connection_failure()
    def get(self, owner_id: str, note_id: str) -> Note:
        """Get a single note owned by owner_id."""
        return Note.from_dict(self._load_owned(owner_id, note_id))

    @persistence_boundary
    @retry_on_connection_failure()
    def update(self, owner_id: str, note_id: str, changes: Mapping[str, Any]) -> Note:
        """Replace the given mutable fields of a note.

        Args:
            owner_id: Resolved identity of the caller.
            note_id: Note to change.
            changes: Subset of content, title, tags, category, is_pinned.

        Returns:
            The updated note.

        Raises:
            InvalidNote: On unknown or immutable fields, or empty content.
            NoteNotFound: If the note does not exist.
            AuthorizationDenied: If the note belongs to another owner.
        """
        unknown = set(changes) - MUTABLE_FIELDS
        if unknown:
            raise InvalidNote(f"Fields cannot be updated: {sorted(unknown)}")

        doc = self._load_owned(owner_id, note_id)
        update_doc: dict[str, Any] = {}

        if "content" in changes:
            content = (changes["content"] or "").strip()
            if not content:
                raise InvalidNote("Note content must not be empty")
            update_doc["content"] = content
        if "title" in changes:
            content = update_doc.get("content", doc.get("content", ""))
            update_doc["title"] = (changes["title"] or "").strip() or derive_title(content)
        if "tags" in changes:
            update_doc["tags"] = _clean_tags(changes["tags"])
        if "category" in changes:
            category = changes["category"]
            if isinstance(category, Mapping):
                category = Category.from_dict(dict(category))
            update_doc["category"] = (category or NOTE_CATEGORY).to_dict()
        if "is_pinned" in changes:
            update_doc["is_pinned"] = bool(changes["is_pinned"])

        update_doc["updated_at"] = self._touch(doc)

        updated = self._collection.find_one_and_update(
            {"_id": doc["_id"], "owner_id": owner_id},
            {"$set": update_doc},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise NoteNotFound(note_id)
        return Note.from_dict(updated)

    @persistence_boundary
    @retry_on_connection_failure()
    def delete(self, owner_id: str, note_id: str) -> None:
        """Delete a note owned by owner_id.

        Raises:
            NoteNotFound: If the note does not exist.
            AuthorizationDenied: If the note belongs to another owner.
        """
        doc = self._load_owned(owner_id, note_id)
        result = self._collection.delete_one({"_id": doc["_id"], "owner_id": owner_id})
        if result.deleted_count == 0:
            raise NoteNotFound(note_id)
        logger.info("Deleted note %s for owner %s", note_id, owner_id)

    @persistence_boundary
    @retry_on_connection_failure()
    def list(
        self,
        owner_id: str,
        filters: NoteFilters | None = None,
        sort: SortSpec | None = None,
    ) -> list[Note]:
        """List the owner's notes, pinned notes first.

        Args:
            owner_id: Resolved identity of the caller.
            filters: Optional category / search / limit filters.
            sort: Ordering within the pinned and unpinned groups.

        Returns:
            Ordered notes belonging to owner_id only.
        """
        _require_owner(owner_id)
        filters = filters or NoteFilters()
        sort = sort or SortSpec()

        query: dict[str, Any] = {"owner_id": owner_id}
        if filters.category:
            query["category.main"] = filters.category
        if filters.search and filters.search.strip():
            pattern = re.compile(re.escape(filters.search.strip()), re.IGNORECASE)
            query["$or"] = [{"content": pattern}, {"title": pattern}]

        direction = DESCENDING if sort.descending else ASCENDING
        cursor = self._collection.find(query).sort(
            [("is_pinned", DESCENDING), (sort.key.value, direction), ("_id", direction)]
        )
        # Titles order case-insensitively, which the server's binary sort does
        # not match, so a title-sorted limit is applied after ordering.
        db_limit = filters.limit > 0 and sort.key is not SortKey.TITLE
        if db_limit:
            cursor = cursor.limit(filters.limit)

        notes = order_notes((Note.from_dict(doc) for doc in cursor), sort)
        if filters.limit > 0 and not db_limit:
            notes = notes[: filters.limit]
        return notes

    @persistence_boundary
    @retry_on_connection_failure()
    def toggle_pin(self, owner_id: str, note_id: str) -> Note:
        """Flip is_pinned as a single read-modify-write.

        The write only applies if the pin state is still the one that was
        read, so concurrent toggles on the same note serialize here.

        Returns:
            The updated note.

        Raises:
            NoteNotFound: If the note does not exist.
            AuthorizationDenied: If the note belongs to another owner.
            PersistenceFailed: If the note kept changing underneath.
        """
        for _ in range(TOGGLE_ATTEMPTS):
            doc = self._load_owned(owner_id, note_id)
            current = bool(doc.get("is_pinned", False))
            pin_filter: Any = True if current else {"$ne": True}

            updated = self._collection.find_one_and_update(
                {"_id": doc["_id"], "owner_id": owner_id, "is_pinned": pin_filter},
                {"$set": {"is_pinned": not current, "updated_at": self._touch(doc)}},
                return_document=ReturnDocument.AFTER,
            )
            if updated is not None:
                logger.info("Note %s pinned=%s", note_id, not current)
                return Note.from_dict(updated)
            logger.debug("Pin state of %s changed concurrently, retrying", note_id)

        raise PersistenceFailed(f"Could not toggle pin on note {note_id!r}")

    @persistence_boundary
    @retry_on_connection_failure()
    def stats(self, owner_id: str, now: datetime | None = None) -> NoteStats:
        """Summarize the owner's notes for a dashboard.

        The week and month windows are rolling (7 and 30 days back from
        now). Daily activity is bucketed by UTC calendar day.

        Args:
            owner_id: Resolved identity of the caller.
            now: Reference time, defaults to the current time.

        Returns:
            NoteStats covering owner_id's notes only.
        """
        _require_owner(owner_id)
        now = as_utc(now) or datetime.now(UTC)
        week_start = now - timedelta(days=STATS_WEEK_DAYS)
        month_start = now - timedelta(days=STATS_MONTH_DAYS)
        days = [(now - timedelta(days=offset)).date() for offset in range(STATS_WEEK_DAYS - 1, -1, -1)]
        activity_start = datetime.combine(days[0], time.min, tzinfo=UTC)

        recent = {"created_at": {"$gte": week_start}}
        voice = {"category.main": VOICE_NOTE_CATEGORY.main}
        pipeline: list[dict[str, Any]] = [
            {"$match": {"owner_id": owner_id}},
            {
                "$facet": {
                    "total": [{"$count": "n"}],
                    "week": [{"$match": recent}, {"$count": "n"}],
                    "voice": [{"$match": voice}, {"$count": "n"}],
                    "voice_week": [{"$match": {**voice, **recent}}, {"$count": "n"}],
                    "month": [{"$match": {"created_at": {"$gte": month_start}}}, {"$count": "n"}],
                    "tags": [
                        {"$match": recent},
                        {"$unwind": "$tags"},
                        {"$group": {"_id": "$tags", "count": {"$sum": 1}}},
                        {"$sort": {"count": -1, "_id": 1}},
                        {"$limit": STATS_TOP_TAGS},
                    ],
                    "activity": [
                        {"$match": {"created_at": {"$gte": activity_start}}},
                        {
                            "$group": {
                                "_id": {"$dateToString": {"format": "%Y-%m-%d", "date": "$created_at"}},
                                "count": {"$sum": 1},
                            }
                        },
                    ],
                }
            },
        ]
        facets = next(iter(self._collection.aggregate(pipeline)), {})

        def count(name: str) -> int:
            # $count emits no document for an empty input
            rows = facets.get(name) or []
            return int(rows[0]["n"]) if rows else 0

        per_day = {row["_id"]: int(row["count"]) for row in facets.get("activity") or []}
        stats = NoteStats(
            total_notes=count("total"),
            notes_this_week=count("week"),
            total_voice_notes=count("voice"),
            voice_notes_this_week=count("voice_week"),
            average_notes_per_day=round(count("month") / STATS_MONTH_DAYS, 1),
            most_used_tags=[row["_id"] for row in facets.get("tags") or []],
            recent_activity=[
                DailyCount(date=day.isoformat(), count=per_day.get(day.isoformat(), 0)) for day in days
            ],
        )
        logger.debug("Stats for owner %s: %d notes", owner_id, stats.total_notes)
        return stats


__all__ = ["NoteStore", "TOGGLE_ATTEMPTS"]
