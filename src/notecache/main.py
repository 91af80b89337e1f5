#!/usr/bin/env python
"""Main entry point for the notes CLI."""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from notecache import __version__
from notecache.cli import COMMANDS, ask_yes_no
from notecache.config import config
from notecache.exceptions import NotesError
from notecache.observability import configure_logging
from notecache.services.note_service import NoteService
from notecache.storage.cache_store import CacheStore

logger = logging.getLogger(__name__)


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid count: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"count must be >= 0, got {number}")
    return number


def _add_tags_arg(parser: argparse.ArgumentParser, help_text: str) -> None:
    parser.add_argument(
        "-g", "--tags",
        nargs="+",
        action="extend",
        metavar="TAG",
        help=help_text,
    )


def _add_filter_args(parser: argparse.ArgumentParser) -> None:
    """Options shared by every command that selects notes with a query."""
    parser.add_argument("-t", "--title", help="Regular expression matched against titles")
    parser.add_argument(
        "-b", "--body",
        dest="bodies",
        action="append",
        metavar="PATH",
        help="Body path to match (repeatable, any may match)",
    )
    parser.add_argument(
        "-i", "--id",
        dest="ids",
        action="append",
        metavar="ID",
        help="Hexadecimal note id to match (repeatable, any may match)",
    )
    _add_tags_arg(parser, "Tags the notes must all have (comma-delimited allowed)")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="notes",
        description="Index notes kept in external documents",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--cache",
        help="Notes cache file (default: ~/.notes-cache or NOTES_CACHE_PATH)",
        type=str,
    )
    parser.add_argument(
        "--log-level",
        help="Logging level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=config.log_level,
    )
    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    new = subparsers.add_parser("new", help="Create a note")
    new.add_argument("-t", "--title", required=True, help="Title of the note")
    new.add_argument("-b", "--body", required=True, help="Path of the document holding the note")
    _add_tags_arg(new, "Tags of the note (comma-delimited allowed)")

    for name, help_text in (("list", "List matching notes"), ("open", "Open matching notes")):
        sub = subparsers.add_parser(name, help=help_text)
        _add_filter_args(sub)
        sub.add_argument(
            "-n", "--lines",
            type=_non_negative_int,
            default=None,
            help=f"Maximum number of notes (default: {config.default_lines})",
        )

    update = subparsers.add_parser("update", help="Change fields of a note")
    update.add_argument("-i", "--id", required=True, help="Hexadecimal id of the note")
    update.add_argument("-t", "--title", help="New title")
    update.add_argument("-b", "--body", help="New body path")
    _add_tags_arg(update, "New tags, replacing the current ones")

    drop = subparsers.add_parser("drop", help="Remove matching notes")
    _add_filter_args(drop)
    drop.add_argument("-f", "--force", action="store_true", help="Do not ask for confirmation")

    export = subparsers.add_parser("export", help="Write matching notes to a JSON file")
    _add_filter_args(export)
    export.add_argument("-p", "--path", required=True, help="Export file")
    export.add_argument(
        "-r", "--relative",
        action="store_true",
        help="Store body paths relative to the export file's directory",
    )

    import_ = subparsers.add_parser("import", help="Read notes from a JSON file")
    import_.add_argument("-p", "--path", required=True, help="File to import")
    import_.add_argument(
        "-r", "--relative",
        action="store_true",
        help="Resolve relative body paths against the import file's directory",
    )
    import_.add_argument(
        "-f", "--force",
        action="store_true",
        help="Overwrite notes with the same id without asking",
    )

    args = parser.parse_args(argv)
    if getattr(args, "lines", "") is None:
        args.lines = config.default_lines
    return args


def update_config(args: argparse.Namespace) -> None:
    """Update the global config with command line arguments."""
    if args.cache:
        config.cache_path = Path(args.cache)
    if args.log_level:
        config.log_level = args.log_level


def main(argv: Optional[List[str]] = None) -> int:
    """Run one notes command and return the exit status."""
    args = parse_args(argv)
    update_config(args)

    log_level = getattr(logging, config.log_level.upper(), logging.WARNING)
    try:
        configure_logging(level=log_level, log_dir=config.log_dir, console=True)
    except OSError as e:
        # Fall back to basic console logging if file logging fails
        logging.basicConfig(level=log_level)
        logger.warning(f"Failed to configure file logging: {e}")

    try:
        store = CacheStore(config.get_cache_path())
        service = NoteService(store, confirm=ask_yes_no)
        logger.debug(f"Running '{args.command}' against {store.location}")
        return COMMANDS[args.command](service, args)
    except NotesError as e:
        logger.debug(f"Command '{args.command}' failed: {e.to_dict()}")
        print(e.message, file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
