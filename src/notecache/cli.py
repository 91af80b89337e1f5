"""Command handlers for the notes CLI.

Each handler takes the service and the parsed arguments, prints its
report to stdout and returns the process exit status. Errors are raised
as NotesError and reported by main.
"""

import argparse
import logging
from typing import Callable, Dict, Optional

from notecache.services.note_service import ListResult, NoteService
from notecache.services.query import NoteQuery
from notecache.utils import format_note_row, table_header

logger = logging.getLogger(__name__)

_YES = ("y", "yes")
_NO = ("n", "no")


def ask_yes_no(question: str, input_fn: Optional[Callable[[str], str]] = None) -> bool:
    """Ask a yes/no question until it gets an answer.

    Only the exact answers y, yes, n and no are accepted. End of input
    counts as no.
    """
    input_fn = input_fn or input
    while True:
        try:
            answer = input_fn(f"{question} [y/n] ")
        except EOFError:
            logger.debug(f"No answer to {question!r}, assuming no")
            return False
        if answer in _YES:
            return True
        if answer in _NO:
            return False


def query_from_args(args: argparse.Namespace) -> NoteQuery:
    """Build the note query from the shared filter options."""
    return NoteQuery(
        title=args.title,
        bodies=args.bodies or [],
        ids=args.ids or [],
        tags=args.tags or [],
    )


def _print_table(result: ListResult, verb: str) -> None:
    for line in table_header():
        print(line)
    for note in result.shown:
        print(format_note_row(note))
    if result.remaining > 0:
        print(f"There are {result.remaining} matching notes not {verb}.")


def cmd_new(service: NoteService, args: argparse.Namespace) -> int:
    note = service.create_note(title=args.title, body=args.body, tags=args.tags)
    print(f"Note {note.display_id} written. There are now {service.count_notes()} notes.")
    return 0


def cmd_list(service: NoteService, args: argparse.Namespace) -> int:
    result = service.list_notes(query_from_args(args), limit=args.lines)
    _print_table(result, "listed")
    return 0


def cmd_open(service: NoteService, args: argparse.Namespace) -> int:
    result = service.open_notes(query_from_args(args), limit=args.lines)
    _print_table(result, "opened")
    for note in result.failed:
        print(f"Failed to open note {note.display_id}.")
    return 0


def cmd_update(service: NoteService, args: argparse.Namespace) -> int:
    service.update_note(args.id, title=args.title, body=args.body, tags=args.tags)
    print("Note updated.")
    return 0


def cmd_drop(service: NoteService, args: argparse.Namespace) -> int:
    dropped = service.drop_notes(query_from_args(args), force=args.force)
    print(f"Dropped {len(dropped)} notes.")
    return 0


def cmd_export(service: NoteService, args: argparse.Namespace) -> int:
    exported = service.export_notes(args.path, query_from_args(args), relative=args.relative)
    print(f"Exported {len(exported)} notes to {args.path}.")
    return 0


def cmd_import(service: NoteService, args: argparse.Namespace) -> int:
    result = service.import_notes(args.path, relative=args.relative, force=args.force)
    print(f"Imported {len(result.imported)} notes ({len(result.skipped)} skipped).")
    return 0


COMMANDS: Dict[str, Callable[[NoteService, argparse.Namespace], int]] = {
    "new": cmd_new,
    "list": cmd_list,
    "open": cmd_open,
    "update": cmd_update,
    "drop": cmd_drop,
    "export": cmd_export,
    "import": cmd_import,
}
