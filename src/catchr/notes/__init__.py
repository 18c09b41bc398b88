"""Notes module for Catchr.

Provides the note entity, title derivation and list ordering.
"""

from .models import (
    NOTE_CATEGORY,
    UNTITLED,
    VOICE_NOTE_CATEGORY,
    Category,
    DailyCount,
    Note,
    NoteDraft,
    NoteFilters,
    NoteStats,
    SortKey,
    SortSpec,
    derive_title,
)
from .ordering import order_notes

__all__ = [
    "Category",
    "DailyCount",
    "NOTE_CATEGORY",
    "Note",
    "NoteDraft",
    "NoteFilters",
    "NoteStats",
    "SortKey",
    "SortSpec",
    "UNTITLED",
    "VOICE_NOTE_CATEGORY",
    "derive_title",
    "order_notes",
]
