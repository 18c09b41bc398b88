"""Catchr entry point.

Usage:
    python -m catchr [OPTIONS] COMMAND [ARGS]

Commands:
    add TEXT         Save a typed note
    list             List notes, pinned first
    pin ID           Toggle a note's pin
    delete ID        Delete a note
    capture FILE     Transcribe a recording and save it as a voice note
    record           Record from the microphone and save a voice note
    stats            Show note statistics

Options:
    --owner ID       Owner identity (or CATCHR_OWNER_ID)
    --config PATH    Path to YAML config file
    --profile NAME   Profile name (dev, prod, test)
    --mock           Use mock transcription, categorization and calendar
    --dry-run        Load config and exit
    --version        Show version
"""

import argparse
import json
import logging
import os
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from . import __version__
from .config.loader import load_config
from .config.profiles import detect_profile

if TYPE_CHECKING:
    from .config import CatchrConfig
    from .notes.models import Note, NoteStats
    from .storage.client import MongoStorageClient

OWNER_ENV = "CATCHR_OWNER_ID"

logger = logging.getLogger("catchr")


def load_env() -> None:
    """Load .env from the project root, else the current directory."""
    env_file = Path(__file__).parent.parent.parent / ".env"
    if env_file.exists():
        load_dotenv(env_file)
    else:
        load_dotenv()


def setup_logging(level: str) -> None:
    """Configure logging based on config."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="catchr",
        description="Catchr - capture thoughts as notes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  catchr --owner alice add "Buy milk tomorrow"
  catchr --owner alice list --sort title --ascending
  catchr --owner alice capture memo.webm
  catchr --owner alice record --seconds 15
  catchr --owner alice stats
  catchr --profile test --dry-run

Environment:
  CATCHR_PROFILE      Set profile (dev, prod, test)
  CATCHR_OWNER_ID     Default owner identity
  CATCHR_MONGODB_URI  MongoDB connection string
  OPENAI_API_KEY      Transcription
  ANTHROPIC_API_KEY   Categorization
""",
    )

    parser.add_argument("--owner", help="Owner identity", metavar="ID")
    parser.add_argument("--config", type=Path, help="Path to YAML config file", metavar="PATH")
    parser.add_argument(
        "--profile",
        choices=["dev", "prod", "test"],
        help="Configuration profile to use",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use mock service clients (no network calls besides MongoDB)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Load config and exit (for testing)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Catchr v{__version__}",
    )

    commands = parser.add_subparsers(dest="command")

    add = commands.add_parser("add", help="Save a typed note")
    add.add_argument("text", help="Note text")

    list_cmd = commands.add_parser("list", help="List notes, pinned first")
    list_cmd.add_argument("--category", help="Only notes whose category is CATEGORY")
    list_cmd.add_argument("--search", help="Case-insensitive text to look for")
    list_cmd.add_argument(
        "--sort",
        choices=["title", "created_at", "updated_at"],
        default="updated_at",
        help="Sort key within pinned and unpinned groups",
    )
    list_cmd.add_argument("--ascending", action="store_true", help="Sort ascending")
    list_cmd.add_argument("--limit", type=int, default=0, help="Maximum notes to show")

    pin = commands.add_parser("pin", help="Toggle a note's pin")
    pin.add_argument("note_id", metavar="ID")

    delete = commands.add_parser("delete", help="Delete a note")
    delete.add_argument("note_id", metavar="ID")

    capture = commands.add_parser("capture", help="Transcribe a recording into a voice note")
    capture.add_argument("file", type=Path, help="Audio file")
    capture.add_argument("--mime", help="Declared MIME type (guessed from the suffix if omitted)")
    capture.add_argument(
        "--mock-transcript",
        default="",
        help="Transcript returned by the mock transcriber (with --mock)",
    )

    record = commands.add_parser("record", help="Record from the microphone into a voice note")
    record.add_argument(
        "--seconds",
        type=float,
        help="Stop after SECONDS (default: stop when Enter is pressed)",
    )
    record.add_argument(
        "--mock-transcript",
        default="",
        help="Transcript returned by the mock transcriber (with --mock)",
    )

    stats = commands.add_parser("stats", help="Show note statistics")
    stats.add_argument("--json", action="store_true", help="Print as JSON")

    return parser


def format_note(note: "Note") -> str:
    """Render one note as a list line."""
    pin = "*" if note.is_pinned else " "
    tags = ", ".join(note.tags)
    category = note.category.main + (f"/{note.category.sub}" if note.category.sub else "")
    return f"{pin} {note.id}  {note.title}  [{category}]  {tags}".rstrip()


def format_stats(stats: "NoteStats") -> list[str]:
    """Render note statistics as display lines."""
    lines = [
        f"Total notes:      {stats.total_notes}",
        f"This week:        {stats.notes_this_week}",
        f"Voice notes:      {stats.total_voice_notes} ({stats.voice_notes_this_week} this week)",
        f"Average per day:  {stats.average_notes_per_day:.1f}",
        f"Top tags:         {', '.join(stats.most_used_tags) or '-'}",
        "Last 7 days:",
    ]
    lines.extend(f"  {day.date}  {day.count}" for day in stats.recent_activity)
    return lines


def wait_for_stop(seconds: float | None) -> None:
    """Block until the recording should stop."""
    if seconds is not None:
        time.sleep(max(seconds, 0.0))
        return
    try:
        input("Recording... press Enter to stop. ")
    except EOFError:
        logger.debug("Input closed, stopping recording")


def run_command(
    args: argparse.Namespace,
    config: "CatchrConfig",
    storage: "MongoStorageClient",
    owner_id: str,
) -> int:
    """Dispatch a subcommand against a connected store.

    Returns:
        Exit code
    """
    from .capture import CaptureDeviceError, CaptureOrchestrator, create_recorder, load_audio_file
    from .notes.models import NoteFilters, SortKey, SortSpec
    from .projection import NoteListProjection
    from .storage import StorageError

    if args.command == "stats":
        try:
            stats = storage.notes.stats(owner_id)
        except StorageError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        if args.json:
            print(json.dumps(stats.to_dict(), indent=2))
        else:
            print("\n".join(format_stats(stats)))
        return 0

    if args.command == "list":
        projection = NoteListProjection(
            storage.notes,
            owner_id,
            sort=SortSpec(key=SortKey(args.sort), descending=not args.ascending),
            filters=NoteFilters(category=args.category, search=args.search, limit=args.limit),
        )
        if not projection.refresh():
            print(f"Error: {projection.last_error}", file=sys.stderr)
            return 1
        for note in projection.notes:
            print(format_note(note))
        return 0

    if args.command in ("pin", "delete"):
        projection = NoteListProjection(storage.notes, owner_id)
        if not projection.refresh():
            print(f"Error: {projection.last_error}", file=sys.stderr)
            return 1
        if args.command == "pin":
            note = projection.toggle_pin(args.note_id)
            if note is None:
                print(f"Error: {projection.last_error}", file=sys.stderr)
                return 1
            print(format_note(note))
            return 0
        if not projection.delete(args.note_id):
            print(f"Error: {projection.last_error}", file=sys.stderr)
            return 1
        print(f"Deleted {args.note_id}")
        return 0

    transcriber = None
    if args.command in ("capture", "record") and args.mock:
        from .stt import MockTranscriber

        transcriber = MockTranscriber(max_audio_bytes=config.transcription.max_audio_bytes)
        transcriber.set_response(args.mock_transcript)

    recorder = None
    if args.command == "record":
        try:
            recorder = create_recorder(config.audio, use_mock=args.mock)
        except CaptureDeviceError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    orchestrator = CaptureOrchestrator.from_config(
        config, storage, recorder=recorder, use_mock=args.mock, transcriber=transcriber
    )
    try:
        if args.command == "add":
            outcome = orchestrator.submit_text(owner_id, args.text)
        elif args.command == "record":
            if not orchestrator.start_recording(owner_id):
                failed = orchestrator.last_outcome
                print(f"Error: {failed.message if failed else 'Could not start recording'}", file=sys.stderr)
                return 1
            try:
                wait_for_stop(args.seconds)
            except KeyboardInterrupt:
                orchestrator.cancel()
                print("Recording cancelled", file=sys.stderr)
                return 1
            recorded = orchestrator.stop_recording()
            if recorded is None:
                print("Error: recording ended unexpectedly", file=sys.stderr)
                return 1
            outcome = recorded
        else:
            try:
                payload = load_audio_file(args.file, args.mime)
            except FileNotFoundError as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1
            outcome = orchestrator.capture_audio(owner_id, payload)

        if not outcome.succeeded or outcome.note is None:
            print(f"Error: {outcome.message}", file=sys.stderr)
            return 1
        print(format_note(outcome.note))
        if outcome.degraded:
            logger.info("Saved without categorization")
        return 0
    finally:
        orchestrator.wait_for_background(timeout=config.calendar.timeout_seconds)
        orchestrator.shutdown()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for Catchr.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.config:
            config = load_config(path=args.config)
        elif args.profile:
            config = load_config(profile=args.profile)
        else:
            config = load_config(profile=detect_profile().value)
    except FileNotFoundError as e:
        print(f"Error: Config file not found: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    setup_logging(config.logging.level)
    logger.debug("Catchr v%s, profile %s", __version__, args.profile or detect_profile().value)

    if args.dry_run:
        logger.info("Dry run mode - exiting after config load")
        logger.info("MongoDB: %s/%s", config.storage.uri, config.storage.database)
        logger.info(
            "Transcription: %s:%s", config.transcription.provider, config.transcription.model
        )
        logger.info(
            "Categorization: %s:%s", config.categorization.provider, config.categorization.model
        )
        logger.info("Calendar: %s", config.calendar.provider)
        logger.info("Audio: %s (%s)", config.audio.provider, config.audio.input_device)
        return 0

    if args.command is None:
        parser.print_help()
        return 2

    owner_id = args.owner or os.environ.get(OWNER_ENV, "")
    if not owner_id:
        print(f"Error: an owner is required (--owner or {OWNER_ENV})", file=sys.stderr)
        return 2

    from pymongo.errors import PyMongoError

    from .storage import MongoStorageClient

    storage = MongoStorageClient.from_config(config.storage)
    try:
        storage.connect()
    except PyMongoError as e:
        print(f"Error: cannot reach MongoDB at {config.storage.uri}: {e}", file=sys.stderr)
        return 1

    try:
        return run_command(args, config, storage, owner_id)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        storage.disconnect()


if __name__ == "__main__":
    sys.exit(main())
