"""Content gate shared by the voice and typed capture paths."""

MIN_CONTENT_LENGTH = 3


def validate_content(text: str | None, min_length: int = MIN_CONTENT_LENGTH) -> str | None:
    """Trim text and check it is long enough to become a note.

    Args:
        text: Transcript or typed text, possibly None or blank
        min_length: Minimum trimmed length

    Returns:
        The trimmed text, or None if it is rejected
    """
    trimmed = (text or "").strip()
    if not trimmed or len(trimmed) < min_length:
        return None
    return trimmed


__all__ = ["MIN_CONTENT_LENGTH", "validate_content"]
