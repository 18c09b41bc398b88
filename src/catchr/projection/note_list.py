"""Note list projection with optimistic updates.

Keeps two layers: the authoritative list last confirmed by the store, and
an ordered queue of pending local mutations keyed by correlation id. The
visible list is the authoritative list with pending mutations applied,
sorted pinned-first. A confirmed mutation folds into the authoritative
layer; a failed one is dropped, which restores the pre-mutation value.
"""

import logging
import threading
import uuid
from collections import OrderedDict
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..notes.models import (
    MUTABLE_FIELDS,
    NOTE_CATEGORY,
    Category,
    Note,
    NoteDraft,
    NoteFilters,
    SortSpec,
    derive_title,
)
from ..notes.ordering import order_notes
from ..storage.errors import AuthorizationDenied, InvalidNote, NoteNotFound, StorageError

if TYPE_CHECKING:
    from ..capture.session import CaptureOutcome
    from ..storage.notes import NoteStore

logger = logging.getLogger(__name__)


class MutationKind(Enum):
    """Kinds of optimistic mutations."""

    PIN = "pin"
    EDIT = "edit"
    DELETE = "delete"


@dataclass
class PendingMutation:
    """A local change awaiting store confirmation.

    Attributes:
        correlation_id: Key in the pending queue
        kind: Mutation kind
        note_id: Target note
        before: Value shown before the mutation
        after: Value shown while pending (None for a delete)
    """

    correlation_id: str
    kind: MutationKind
    note_id: str
    before: Note
    after: Note | None


def describe_error(error: StorageError) -> str:
    """User-facing message for a store failure."""
    if isinstance(error, AuthorizationDenied):
        return "You are not allowed to change this note."
    if isinstance(error, NoteNotFound):
        return "This note no longer exists."
    if isinstance(error, InvalidNote):
        return f"Invalid note: {error}"
    return "Could not save changes. Please try again."


def apply_changes(note: Note, changes: Mapping[str, Any]) -> Note:
    """Return a copy of note with mutable fields replaced.

    Mirrors the store's normalization so the optimistic value matches what
    the store will confirm.
    """
    fields: dict[str, Any] = {}
    if "content" in changes:
        fields["content"] = (changes["content"] or "").strip()
    if "title" in changes:
        content = fields.get("content", note.content)
        fields["title"] = (changes["title"] or "").strip() or derive_title(content)
    if "tags" in changes:
        fields["tags"] = [t.strip() for t in changes["tags"] or [] if t and t.strip()]
    if "category" in changes:
        category = changes["category"]
        if isinstance(category, Mapping):
            category = Category.from_dict(dict(category))
        fields["category"] = category or NOTE_CATEGORY
    if "is_pinned" in changes:
        fields["is_pinned"] = bool(changes["is_pinned"])
    return replace(note, updated_at=max(datetime.now(UTC), note.created_at), **fields)


class NoteListProjection:
    """One owner's note list as the UI should show it."""

    def __init__(
        self,
        store: "NoteStore",
        owner_id: str,
        sort: SortSpec | None = None,
        filters: NoteFilters | None = None,
    ) -> None:
        """Initialize the projection.

        Args:
            store: Owner-scoped note store
            owner_id: Owner whose notes are shown
            sort: Ordering within the pinned and unpinned groups
            filters: Filters passed to the store on refresh
        """
        self._store = store
        self._owner_id = owner_id
        self._sort = sort or SortSpec()
        self._filters = filters
        self._authoritative: list[Note] = []
        self._pending: OrderedDict[str, PendingMutation] = OrderedDict()
        self._last_error: str | None = None
        self._lock = threading.RLock()

    @property
    def owner_id(self) -> str:
        """Get the owner shown by this projection."""
        return self._owner_id

    @property
    def last_error(self) -> str | None:
        """Get the most recent user-facing error."""
        return self._last_error

    def clear_error(self) -> None:
        """Dismiss the current error."""
        self._last_error = None

    @property
    def pending_count(self) -> int:
        """Get number of mutations awaiting confirmation."""
        with self._lock:
            return len(self._pending)

    @property
    def notes(self) -> list[Note]:
        """Visible notes: authoritative state with pending mutations applied."""
        with self._lock:
            visible = list(self._authoritative)
            for mutation in self._pending.values():
                visible = self._apply(visible, mutation)
            return order_notes(visible, self._sort)

    def set_sort(self, sort: SortSpec) -> None:
        """Change the visible ordering."""
        with self._lock:
            self._sort = sort

    def get(self, note_id: str) -> Note | None:
        """Get a visible note by id."""
        for note in self.notes:
            if note.id == note_id:
                return note
        return None

    def refresh(self) -> bool:
        """Reload the authoritative list from the store.

        Returns:
            True on success; on failure the previous list is kept
        """
        try:
            notes = self._store.list(self._owner_id, self._filters, self._sort)
        except StorageError as e:
            logger.error("Failed to load notes: %s", e)
            self._last_error = describe_error(e)
            return False
        with self._lock:
            self._authoritative = notes
        return True

    def apply_created(self, note: Note) -> None:
        """Prepend a note the store just confirmed, without a re-fetch."""
        if note.owner_id != self._owner_id:
            return
        with self._lock:
            if any(n.id == note.id for n in self._authoritative):
                return
            self._authoritative.insert(0, note)
        logger.debug("Projected new note %s", note.id)

    def handle_capture_outcome(self, outcome: "CaptureOutcome") -> None:
        """Listener for capture outcomes."""
        if outcome.owner_id != self._owner_id:
            return
        if outcome.succeeded and outcome.note is not None:
            self.apply_created(outcome.note)
        elif outcome.failure is not None:
            self._last_error = outcome.message

    def create(
        self,
        content: str,
        title: str | None = None,
        tags: list[str] | None = None,
        category: Category | None = None,
    ) -> Note | None:
        """Insert a note and show it at once.

        Returns:
            The new note, or None (with last_error set) if the insert failed.
            A failed insert adds nothing to the list.
        """
        draft = NoteDraft(content=content, title=title, tags=tags, category=category)
        try:
            note = self._store.insert(self._owner_id, draft)
        except StorageError as e:
            logger.error("Failed to create note: %s", e)
            self._last_error = describe_error(e)
            return None
        self.apply_created(note)
        return note

    def toggle_pin(self, note_id: str) -> Note | None:
        """Flip a note's pin optimistically.

        Returns:
            The confirmed note, or None after rolling back
        """
        with self._lock:
            current = self.get(note_id)
            if current is None:
                self._last_error = "This note no longer exists."
                return None
            optimistic = replace(current, is_pinned=not current.is_pinned)
            cid = self._push(MutationKind.PIN, current, optimistic)

        try:
            confirmed = self._store.toggle_pin(self._owner_id, note_id)
        except StorageError as e:
            self._rollback(cid, e)
            return None
        self._confirm(cid, confirmed)
        return confirmed

    def edit(self, note_id: str, changes: Mapping[str, Any]) -> Note | None:
        """Replace mutable fields optimistically.

        Returns:
            The confirmed note, or None after rolling back
        """
        unknown = set(changes) - MUTABLE_FIELDS
        if unknown:
            self._last_error = f"Fields cannot be changed: {sorted(unknown)}"
            return None

        with self._lock:
            current = self.get(note_id)
            if current is None:
                self._last_error = "This note no longer exists."
                return None
            cid = self._push(MutationKind.EDIT, current, apply_changes(current, changes))

        try:
            confirmed = self._store.update(self._owner_id, note_id, changes)
        except StorageError as e:
            self._rollback(cid, e)
            return None
        self._confirm(cid, confirmed)
        return confirmed

    def delete(self, note_id: str) -> bool:
        """Hide a note optimistically and delete it.

        Returns:
            True if deleted; False after rolling back
        """
        with self._lock:
            current = self.get(note_id)
            if current is None:
                self._last_error = "This note no longer exists."
                return False
            cid = self._push(MutationKind.DELETE, current, None)

        try:
            self._store.delete(self._owner_id, note_id)
        except StorageError as e:
            self._rollback(cid, e)
            return False
        self._confirm(cid, None)
        return True

    # -- layers ------------------------------------------------------------

    def _push(self, kind: MutationKind, before: Note, after: Note | None) -> str:
        cid = uuid.uuid4().hex
        self._pending[cid] = PendingMutation(
            correlation_id=cid,
            kind=kind,
            note_id=before.id,
            before=before,
            after=after,
        )
        return cid

    def _confirm(self, cid: str, confirmed: Note | None) -> None:
        """Drop the pending entry and fold the store's answer in."""
        with self._lock:
            mutation = self._pending.pop(cid, None)
            if mutation is None:
                return
            if confirmed is None:
                self._authoritative = [
                    n for n in self._authoritative if n.id != mutation.note_id
                ]
            else:
                self._authoritative = [
                    confirmed if n.id == mutation.note_id else n for n in self._authoritative
                ]

    def _rollback(self, cid: str, error: StorageError) -> None:
        """Drop the pending entry; the authoritative value shows again."""
        with self._lock:
            mutation = self._pending.pop(cid, None)
        if mutation is not None:
            logger.warning(
                "Rolled back %s on note %s: %s", mutation.kind.value, mutation.note_id, error
            )
        self._last_error = describe_error(error)

    @staticmethod
    def _apply(notes: list[Note], mutation: PendingMutation) -> list[Note]:
        if mutation.after is None:
            return [n for n in notes if n.id != mutation.note_id]
        return [mutation.after if n.id == mutation.note_id else n for n in notes]


__all__ = [
    "MutationKind",
    "NoteListProjection",
    "PendingMutation",
    "apply_changes",
    "describe_error",
]
