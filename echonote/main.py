"""Main application entry point for EchoNote."""

import sys
import time
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .ai.summarizer import SummarizationError
from .audio.ingestion import AudioRecorder, IngestionError, load_audio_file
from .audio.playback import open_playback
from .config import EchoNoteConfig
from .context.builder import format_transcript
from .models.chat import SessionState
from .models.notes import Note, NoteCollection
from .services.notes_service import NotesService
from .services.session_manager import ConversationSession, FAILURE_NOTICE

logger = logging.getLogger(__name__)

console = Console()


def setup_logging(config: EchoNoteConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/echonote.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("EchoNote starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def render_note_table(notes, title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Created", style="dim")
    for note in notes:
        table.add_row(note.id, f"{note.title_emoji} {note.title}", note.created_at.strftime("%Y-%m-%d %H:%M"))
    return table


def render_note(note: Note) -> None:
    console.print(Panel(note.summary, title=f"{note.title_emoji} {note.title}", subtitle=note.created_at.isoformat()))
    console.print(Panel(format_transcript(note) or "(empty transcript)", title="Transcript"))


def print_warnings(service: NotesService, start: int = 0) -> None:
    for warning in service.storage_warnings[start:]:
        console.print(f"[yellow]Warning:[/yellow] {warning}")


class StreamPrinter:
    """Echoes reply fragments to the console as a session streams them."""

    def __init__(self):
        self.message = None
        self.printed = 0

    def __call__(self, session: ConversationSession) -> None:
        pending = session.pending_message
        if pending is None or session.state is SessionState.ERROR:
            return
        if pending is not self.message:
            self.message = pending
            self.printed = 0
        console.print(pending.text[self.printed:], end="", soft_wrap=True, highlight=False)
        self.printed = len(pending.text)


async def chat_once(session: ConversationSession, message: str) -> None:
    if not await session.send(message):
        console.print("[red]The assistant is busy, try again.[/red]")
        return
    reply = session.messages[-1]
    if reply.text == FAILURE_NOTICE:
        console.print(f"[red]{reply.text}[/red]")
    else:
        console.print()


def record_payload(config: EchoNoteConfig, duration: Optional[int]):
    recorder = AudioRecorder(
        sample_rate=config.get('audio.sample_rate', 16000),
        chunk_size=config.get('audio.chunk_size', 1024),
        channels=config.get('audio.channels', 1),
    )
    recorder.start_recording()
    try:
        if duration:
            console.print(f"Recording for {duration} seconds...")
            time.sleep(duration)
        else:
            console.input("Recording... press Enter to stop ")
    finally:
        recorder.stop_recording()
    console.print(f"Peak level: {recorder.get_recording_stats().peak_level:.0%}")
    return recorder.get_payload()


def open_note_view(service: NotesService, note: Note) -> None:
    """Interactive view of one note with its own assistant."""
    render_note(note)
    session = service.open_note(note.id)
    with open_playback(note) as playback:
        console.print(f"Audio: {playback.path}")
        try:
            while True:
                message = console.input(f"[bold]Ask about \"{note.title}\"[/bold] (blank to close): ")
                if not message.strip():
                    break
                asyncio.run(chat_once(session, message))
        finally:
            service.close_note(note.id)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="EchoNote - audio notes with AI summaries",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in settings)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="EchoNote v0.1.0"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    upload = commands.add_parser("upload", help="Create a note from an audio file")
    upload.add_argument("file")

    record = commands.add_parser("record", help="Record from the microphone and create a note")
    record.add_argument("--duration", type=int, help="Seconds to record (default: until Enter)")

    commands.add_parser("list", help="List active notes")
    commands.add_parser("trash", help="List notes in the recycle bin")

    for name, help_text in [
        ("show", "Show a note's summary and transcript"),
        ("open", "Open a note and chat about it"),
        ("delete", "Move a note to the recycle bin"),
        ("restore", "Restore a note from the recycle bin"),
        ("purge", "Permanently delete a note from the recycle bin"),
    ]:
        command = commands.add_parser(name, help=help_text)
        command.add_argument("note_id")

    chat = commands.add_parser("chat", help="Ask the assistant about your notes")
    chat.add_argument("--note", dest="note_id", help="Ask about a single note instead")
    chat.add_argument("message", nargs="+")

    return parser


def run_command(args, service: NotesService, config: EchoNoteConfig) -> int:
    warnings_before = len(service.storage_warnings)

    if args.command == "list":
        console.print(render_note_table(service.list_notes(NoteCollection.ACTIVE), "Summaries"))
    elif args.command == "trash":
        console.print(render_note_table(service.list_notes(NoteCollection.TRASHED), "Recycle Bin"))
    elif args.command in ("upload", "record"):
        if args.command == "upload":
            payload = load_audio_file(args.file)
        else:
            payload = record_payload(config, args.duration)
        with console.status("Transcribing and summarizing..."):
            note = asyncio.run(service.create_note_from_payload(payload))
        render_note(note)
    elif args.command in ("show", "open"):
        note = service.get_note(args.note_id)
        if note is None:
            console.print(f"[red]No note with id {args.note_id}[/red]")
            return 1
        if args.command == "show":
            render_note(note)
        else:
            open_note_view(service, note)
    elif args.command in ("delete", "restore", "purge"):
        action = {
            "delete": service.delete_note,
            "restore": service.restore_note,
            "purge": service.purge_note,
        }[args.command]
        if not action(args.note_id):
            console.print(f"[red]Cannot {args.command} note {args.note_id}[/red]")
            return 1
        console.print(f"{args.command.capitalize()}d note {args.note_id}")
    elif args.command == "chat":
        message = " ".join(args.message)
        if args.note_id:
            session = service.open_note(args.note_id)
            if session is None:
                console.print(f"[red]No note with id {args.note_id}[/red]")
                return 1
        else:
            session = service.global_session
        asyncio.run(chat_once(session, message))

    print_warnings(service, warnings_before)
    return 0


def main() -> None:
    """Main entry point for EchoNote application."""
    args = build_parser().parse_args()

    try:
        config = EchoNoteConfig(args.config)
        setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))
        service = NotesService(config, on_update=StreamPrinter())
    except (OSError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    print_warnings(service)

    try:
        exit_code = run_command(args, service, config)
    except (IngestionError, SummarizationError) as e:
        logging.error(f"Failed to create note: {e}")
        console.print(f"[red]Failed to process audio: {e}[/red]")
        exit_code = 1
    except KeyboardInterrupt:
        console.print("\nGoodbye!")
        exit_code = 130
    finally:
        service.shutdown()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
