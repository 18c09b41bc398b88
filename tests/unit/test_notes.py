"""Unit tests for the note model, title derivation and ordering."""

from datetime import UTC, datetime, timedelta

from catchr.notes.models import (
    NOTE_CATEGORY,
    UNTITLED,
    Category,
    Note,
    SortKey,
    SortSpec,
    derive_title,
)
from catchr.notes.ordering import order_notes

BASE_TIME = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def make_note(
    note_id: str,
    title: str = "Note",
    pinned: bool = False,
    created_offset: int = 0,
    updated_offset: int | None = None,
) -> Note:
    """Build a note with timestamps relative to BASE_TIME (minutes)."""
    created = BASE_TIME + timedelta(minutes=created_offset)
    updated = BASE_TIME + timedelta(
        minutes=created_offset if updated_offset is None else updated_offset
    )
    return Note(
        id=note_id,
        owner_id="owner-a",
        content=title,
        title=title,
        is_pinned=pinned,
        created_at=created,
        updated_at=updated,
    )


class TestDeriveTitle:
    """Tests for derive_title()."""

    def test_first_line(self) -> None:
        """Test the first line becomes the title."""
        assert derive_title("Buy milk\nand eggs") == "Buy milk"

    def test_skips_blank_leading_lines(self) -> None:
        """Test that leading blank lines are skipped."""
        assert derive_title("\n   \n  Call mom  \nlater") == "Call mom"

    def test_truncates_long_line(self) -> None:
        """Test truncation to 50 characters plus an ellipsis."""
        line = "x" * 80
        title = derive_title(line)
        assert title == "x" * 50 + "..."

    def test_exactly_fifty_not_truncated(self) -> None:
        """Test that a 50 character line is kept whole."""
        line = "y" * 50
        assert derive_title(line) == line

    def test_blank_falls_back_to_untitled(self) -> None:
        """Test the literal fallback."""
        assert derive_title("") == UNTITLED
        assert derive_title("   \n\t") == UNTITLED


class TestCategory:
    """Tests for Category serialization."""

    def test_to_dict_omits_empty_sub(self) -> None:
        """Test that sub is only stored when set."""
        assert Category(main="voice-note").to_dict() == {"main": "voice-note"}
        assert Category(main="voice-note", sub="task").to_dict() == {
            "main": "voice-note",
            "sub": "task",
        }

    def test_from_dict_defaults_to_note(self) -> None:
        """Test that a missing category reads as a plain note."""
        assert Category.from_dict(None) == NOTE_CATEGORY
        assert Category.from_dict({}) == NOTE_CATEGORY


class TestNoteFromDict:
    """Tests for Note.from_dict()."""

    def test_from_document(self) -> None:
        """Test building a note from a stored document."""
        doc = {
            "_id": "abc123",
            "owner_id": "owner-a",
            "content": "Team sync at 3pm",
            "title": "Team sync",
            "tags": ["work"],
            "category": {"main": "voice-note", "sub": "meeting"},
            "is_pinned": True,
            "created_at": datetime(2026, 1, 1, 12, 0),
            "updated_at": datetime(2026, 1, 1, 12, 5),
        }

        note = Note.from_dict(doc)

        assert note.id == "abc123"
        assert note.title == "Team sync"
        assert note.category == Category(main="voice-note", sub="meeting")
        assert note.is_pinned is True
        assert note.created_at.tzinfo is UTC
        assert note.updated_at >= note.created_at

    def test_missing_title_is_derived(self) -> None:
        """Test that a stored note never reads back untitled by accident."""
        note = Note.from_dict({"_id": "1", "owner_id": "o", "content": "Hello there\nmore"})
        assert note.title == "Hello there"


class TestOrderNotes:
    """Tests for pinned-first ordering."""

    def test_pinned_before_unpinned(self) -> None:
        """Test all pinned notes precede all unpinned notes."""
        notes = [
            make_note("old-unpinned", created_offset=0),
            make_note("new-unpinned", created_offset=30),
            make_note("old-pinned", pinned=True, created_offset=-60),
            make_note("mid-pinned", pinned=True, created_offset=10),
        ]

        ordered = order_notes(notes)

        assert [n.id for n in ordered] == ["mid-pinned", "old-pinned", "new-unpinned", "old-unpinned"]

    def test_secondary_key_ascending(self) -> None:
        """Test the requested key applies within each group."""
        notes = [
            make_note("c", pinned=True, created_offset=3),
            make_note("a", created_offset=1),
            make_note("b", pinned=True, created_offset=2),
            make_note("d", created_offset=0),
        ]

        ordered = order_notes(notes, SortSpec(key=SortKey.CREATED_AT, descending=False))

        assert [n.id for n in ordered] == ["b", "c", "d", "a"]

    def test_title_sort_is_case_insensitive(self) -> None:
        """Test title ordering ignores case."""
        notes = [
            make_note("1", title="banana"),
            make_note("2", title="Apple"),
            make_note("3", title="cherry", pinned=True),
        ]

        ordered = order_notes(notes, SortSpec(key=SortKey.TITLE, descending=False))

        assert [n.title for n in ordered] == ["cherry", "Apple", "banana"]

    def test_default_is_updated_descending(self) -> None:
        """Test the default ordering."""
        notes = [
            make_note("stale", created_offset=0, updated_offset=1),
            make_note("fresh", created_offset=0, updated_offset=50),
        ]
        assert [n.id for n in order_notes(notes)] == ["fresh", "stale"]

    def test_does_not_mutate_input(self) -> None:
        """Test that a new list is returned."""
        notes = [make_note("a"), make_note("b", pinned=True)]
        order_notes(notes)
        assert [n.id for n in notes] == ["a", "b"]
