"""Error types for the storage module.

Raised at the store boundary; callers above it translate them into
user-facing outcomes.
"""


class StorageError(Exception):
    """Base exception for storage errors."""

    pass


class AuthorizationDenied(StorageError):
    """Raised when a caller acts on a note owned by someone else."""

    def __init__(self, owner_id: str, note_id: str) -> None:
        """Initialize authorization error.

        Args:
            owner_id: The caller's resolved identity.
            note_id: The note that was targeted.
        """
        super().__init__(f"Owner {owner_id!r} may not access note {note_id!r}")
        self.owner_id = owner_id
        self.note_id = note_id


class NoteNotFound(StorageError):
    """Raised when a note id does not exist."""

    def __init__(self, note_id: str) -> None:
        super().__init__(f"Note {note_id!r} not found")
        self.note_id = note_id


class InvalidNote(StorageError):
    """Raised when note fields fail validation."""

    pass


class PersistenceFailed(StorageError):
    """Raised when the database rejects an operation or is unreachable."""

    pass


__all__ = [
    "AuthorizationDenied",
    "InvalidNote",
    "NoteNotFound",
    "PersistenceFailed",
    "StorageError",
]
