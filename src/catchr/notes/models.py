"""Data models for notes.

Defines the Note entity, its Category value, drafts for insertion and the
list query types (filters and sort order).
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

UNTITLED = "Untitled"
TITLE_MAX_LENGTH = 50

# Fields a caller may change through NoteStore.update()
MUTABLE_FIELDS = frozenset({"content", "title", "tags", "category", "is_pinned"})


def derive_title(content: str) -> str:
    """Derive a display title from note content.

    Uses the first non-empty line, truncated to 50 characters with an
    ellipsis. Falls back to "Untitled" when the content is blank.

    Args:
        content: Note content

    Returns:
        Non-empty title string
    """
    for line in (content or "").splitlines():
        line = line.strip()
        if line:
            if len(line) > TITLE_MAX_LENGTH:
                return line[:TITLE_MAX_LENGTH] + "..."
            return line
    return UNTITLED


@dataclass(frozen=True)
class Category:
    """Tagged note category with a required main discriminator.

    Attributes:
        main: Primary kind ("note", "voice-note", "task", ...)
        sub: Optional refinement
    """

    main: str
    sub: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for MongoDB storage."""
        data: dict[str, Any] = {"main": self.main}
        if self.sub:
            data["sub"] = self.sub
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Category":
        """Create from stored sub-document."""
        if not data or not data.get("main"):
            return NOTE_CATEGORY
        return cls(main=data["main"], sub=data.get("sub"))


NOTE_CATEGORY = Category(main="note")
VOICE_NOTE_CATEGORY = Category(main="voice-note")


@dataclass
class NoteDraft:
    """Caller-supplied fields for a new note.

    The store fills in id, owner, timestamps and defaults.
    """

    content: str
    title: str | None = None
    tags: list[str] | None = None
    category: Category | None = None
    is_pinned: bool = False


@dataclass
class Note:
    """A persisted note owned by exactly one user.

    Attributes:
        id: Store-generated identifier
        owner_id: Owning user (immutable)
        content: Canonical note text
        title: Display label, never empty
        tags: Ordered tags
        category: Category value
        is_pinned: Sorts ahead of unpinned notes when True
        created_at: Creation time (immutable)
        updated_at: Last mutation time
    """

    id: str
    owner_id: str
    content: str
    title: str
    tags: list[str] = field(default_factory=list)
    category: Category = NOTE_CATEGORY
    is_pinned: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for MongoDB storage (without _id)."""
        return {
            "owner_id": self.owner_id,
            "content": self.content,
            "title": self.title,
            "tags": list(self.tags),
            "category": self.category.to_dict(),
            "is_pinned": self.is_pinned,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Note":
        """Create from MongoDB document."""
        created_at = as_utc(data.get("created_at"))
        updated_at = as_utc(data.get("updated_at")) or created_at
        now = datetime.now(UTC)
        content = data.get("content", "")

        return cls(
            id=str(data.get("_id", "")),
            owner_id=data.get("owner_id", ""),
            content=content,
            title=data.get("title") or derive_title(content),
            tags=list(data.get("tags") or []),
            category=Category.from_dict(data.get("category")),
            is_pinned=bool(data.get("is_pinned", False)),
            created_at=created_at or now,
            updated_at=updated_at or now,
        )


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes returned by the driver."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class SortKey(Enum):
    """Secondary sort keys for note lists."""

    TITLE = "title"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


@dataclass(frozen=True)
class SortSpec:
    """Requested list ordering within the pinned and unpinned groups."""

    key: SortKey = SortKey.UPDATED_AT
    descending: bool = True


@dataclass(frozen=True)
class NoteFilters:
    """Optional list filters.

    Attributes:
        category: Match on category.main
        search: Case-insensitive substring of content or title
        limit: Maximum number of notes (0 for no limit)
    """

    category: str | None = None
    search: str | None = None
    limit: int = 0


@dataclass(frozen=True)
class DailyCount:
    """Notes created on one UTC calendar day."""

    date: str
    count: int


@dataclass
class NoteStats:
    """Dashboard figures for one owner's notes.

    Attributes:
        total_notes: All notes
        notes_this_week: Notes created in the last 7 days
        total_voice_notes: Notes with category.main "voice-note"
        voice_notes_this_week: Voice notes created in the last 7 days
        average_notes_per_day: Notes created in the last 30 days / 30, one decimal
        most_used_tags: Up to 5 tags from the last 7 days, most frequent first
        recent_activity: One entry per day for the last 7 days, oldest first
    """

    total_notes: int = 0
    notes_this_week: int = 0
    total_voice_notes: int = 0
    voice_notes_this_week: int = 0
    average_notes_per_day: float = 0.0
    most_used_tags: list[str] = field(default_factory=list)
    recent_activity: list[DailyCount] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display or export."""
        return {
            "total_notes": self.total_notes,
            "notes_this_week": self.notes_this_week,
            "total_voice_notes": self.total_voice_notes,
            "voice_notes_this_week": self.voice_notes_this_week,
            "average_notes_per_day": self.average_notes_per_day,
            "most_used_tags": list(self.most_used_tags),
            "recent_activity": [{"date": d.date, "count": d.count} for d in self.recent_activity],
        }


__all__ = [
    "Category",
    "DailyCount",
    "MUTABLE_FIELDS",
    "NOTE_CATEGORY",
    "Note",
    "NoteDraft",
    "NoteFilters",
    "NoteStats",
    "SortKey",
    "SortSpec",
    "UNTITLED",
    "VOICE_NOTE_CATEGORY",
    "as_utc",
    "derive_title",
]
