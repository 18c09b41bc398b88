"""Catchr - capture a thought by voice or text and keep it as a note.

Catchr turns a short recording (or typed text) into a persisted note:
- Speech-to-text (OpenAI Whisper)
- Auto title, tags and category (Claude, Ollama or keywords)
- Optional calendar event from the note (Google Calendar)
- Owner-scoped note storage (MongoDB)

Usage:
    python -m catchr add "Buy milk tomorrow"
    python -m catchr capture recording.webm --profile prod
"""

__version__ = "0.1.0"

from .config import CatchrConfig
from .config.loader import load_config

__all__ = [
    "CatchrConfig",
    "__version__",
    "load_config",
]
