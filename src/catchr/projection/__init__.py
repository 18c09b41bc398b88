"""Read-side note list for Catchr."""

from .note_list import MutationKind, NoteListProjection, PendingMutation

__all__ = ["MutationKind", "NoteListProjection", "PendingMutation"]
