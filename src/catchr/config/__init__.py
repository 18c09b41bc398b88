"""Configuration module for Catchr.

This module provides configuration loading and profile management.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol


@dataclass
class StorageConfig:
    """MongoDB storage configuration."""

    uri: str = "mongodb://localhost:27017"
    database: str = "catchr"
    connect_timeout_ms: int = 5000
    server_selection_timeout_ms: int = 5000
    socket_timeout_ms: int = 10000


@dataclass
class TranscriptionConfig:
    """Speech-to-text configuration."""

    provider: str = "openai"
    model: str = "whisper-1"
    language: str = "en"
    timeout_seconds: float = 15.0
    max_retries: int = 2
    max_audio_bytes: int = 25 * 1024 * 1024


@dataclass
class CategorizationConfig:
    """Categorization (title, tags, event hint) configuration."""

    provider: str = "anthropic"
    model: str = "claude-3-haiku-20240307"
    host: str = "http://localhost:11434"
    max_tokens: int = 400
    temperature: float = 0.3
    timeout_seconds: float = 8.0


@dataclass
class CalendarConfig:
    """Calendar integration configuration."""

    provider: str = "google"
    api_base: str = "https://www.googleapis.com/calendar/v3"
    timeout_seconds: float = 10.0
    confidence_threshold: float = 0.7
    default_timezone: str = "America/Los_Angeles"


@dataclass
class AudioConfig:
    """Microphone input configuration."""

    provider: str = "pyaudio"
    input_device: str = "default"
    sample_rate: int = 16000
    channels: int = 1
    chunk_size: int = 1024


@dataclass
class CaptureConfig:
    """Capture pipeline configuration."""

    min_content_length: int = 3
    categorization_timeout_seconds: float = 5.0
    default_voice_tags: list[str] = field(default_factory=lambda: ["voice"])


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"


@dataclass
class CatchrConfig:
    """Main Catchr configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    transcription: TranscriptionConfig = field(default_factory=TranscriptionConfig)
    categorization: CategorizationConfig = field(default_factory=CategorizationConfig)
    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigLoader(Protocol):
    """Protocol for configuration loading."""

    def load(self, path: Path) -> CatchrConfig:
        """Load configuration from file path."""
        ...

    def load_profile(self, profile: str) -> CatchrConfig:
        """Load configuration by profile name (dev, prod, test)."""
        ...

    def get_config_dir(self) -> Path:
        """Get the configuration directory path."""
        ...


# Public API
__all__ = [
    "AudioConfig",
    "CalendarConfig",
    "CaptureConfig",
    "CatchrConfig",
    "CategorizationConfig",
    "ConfigLoader",
    "LoggingConfig",
    "StorageConfig",
    "TranscriptionConfig",
]
