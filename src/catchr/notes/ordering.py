"""Pinned-first ordering for note lists."""

from collections.abc import Iterable
from typing import Any

from .models import Note, SortKey, SortSpec


def _sort_value(note: Note, key: SortKey) -> Any:
    if key is SortKey.TITLE:
        return note.title.casefold()
    if key is SortKey.CREATED_AT:
        return note.created_at
    return note.updated_at


def order_notes(notes: Iterable[Note], sort: SortSpec | None = None) -> list[Note]:
    """Order notes with pinned notes first.

    Within the pinned and unpinned groups the requested sort key applies.
    Both passes are stable, so ties keep their incoming order.

    Args:
        notes: Notes to order
        sort: Secondary ordering (defaults to updated_at descending)

    Returns:
        New ordered list
    """
    sort = sort or SortSpec()
    ordered = sorted(notes, key=lambda n: _sort_value(n, sort.key), reverse=sort.descending)
    ordered.sort(key=lambda n: not n.is_pinned)
    return ordered


__all__ = ["order_notes"]
