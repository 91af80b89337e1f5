"""Service layer for note operations.

Each operation is one read-modify-write pass over the cache: resolve the
inputs, load the cache, compute the result, save the cache. Nothing is
retried; any failure aborts the operation before the cache is written.
"""

import itertools
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from notecache.exceptions import (
    CanonicalizeError,
    ErrorCode,
    ExchangeError,
    NoteNotFoundError,
    NoteValidationError,
    RelativePathError,
)
from notecache.models.schema import Note, generate_id, parse_id, parse_tags
from notecache.observability import timed_operation
from notecache.services.opener import open_with_default_app
from notecache.services.query import NoteQuery
from notecache.storage.cache_store import CacheStore
from notecache.storage.exchange import read_import, write_export
from notecache.storage.paths import canonicalize, relative_from, resolve_relative

logger = logging.getLogger(__name__)

# Answers a yes/no question, e.g. by prompting on the terminal
Confirm = Callable[[str], bool]
# Opens a body path with an external application, returns success
Opener = Callable[[str], bool]


def decline(question: str) -> bool:
    """Confirmation policy that answers no to everything."""
    return False


def _validation_error(e: PydanticValidationError) -> NoteValidationError:
    """Convert the first pydantic error into a NoteValidationError."""
    first = e.errors()[0]
    loc = first.get("loc") or ("note",)
    return NoteValidationError(first.get("msg", "invalid note"), field=str(loc[0]))


@dataclass
class ListResult:
    """Notes selected by list/open.

    Attributes:
        shown: The matching notes within the limit, in cache order.
        remaining: How many further notes matched but were not shown.
        failed: Shown notes whose body could not be opened (open only).
    """

    shown: List[Note]
    remaining: int
    failed: List[Note] = field(default_factory=list)


@dataclass
class ImportResult:
    """Outcome of an import.

    Attributes:
        imported: Notes written to the cache.
        skipped: Notes whose id already existed and were not overwritten.
    """

    imported: List[Note] = field(default_factory=list)
    skipped: List[Note] = field(default_factory=list)


class NoteService:
    """Service for managing the notes in one cache."""

    def __init__(
        self,
        store: CacheStore,
        confirm: Optional[Confirm] = None,
        opener: Optional[Opener] = None,
    ):
        """Initialize the service.

        Args:
            store: Cache the operations read and write.
            confirm: Asked before dropping a note or overwriting one on import
                (unless forced). Declines everything when None.
            opener: Used by open_notes. Defaults to the OS default application.
        """
        self.store = store
        self.confirm = confirm or decline
        self.opener = opener or open_with_default_app

    def create_note(
        self,
        title: str,
        body: str,
        tags: Optional[Iterable[str]] = None,
    ) -> Note:
        """Create a new note with a fresh random id.

        A missing cache is treated as empty and created.

        Args:
            title: Note title (required).
            body: Path of the body document; must exist.
            tags: Tag values, each possibly comma-delimited.

        Returns:
            The created note.
        """
        with timed_operation("create_note", title=title[:50]) as op:
            canonical_body = canonicalize(body)
            notes = self.store.load_or_empty()
            try:
                note = Note(
                    id=generate_id(notes),
                    title=title,
                    tags=parse_tags(tags),
                    body=canonical_body,
                )
            except PydanticValidationError as e:
                raise _validation_error(e) from e

            notes[note.id] = note
            self.store.save(notes)
            op["note_id"] = note.display_id
            logger.info(f"Created note {note.display_id} '{note.title}'")
            return note

    def count_notes(self) -> int:
        """Count the notes in the cache (0 when there is no cache yet)."""
        return len(self.store.load_or_empty())

    def list_notes(self, query: NoteQuery, limit: int = 10) -> ListResult:
        """Select up to ``limit`` matching notes.

        Raises:
            CacheNotFoundError: If there is no cache yet.
        """
        with timed_operation("list_notes", query=query.describe(), limit=limit) as op:
            notes = self.store.load()
            matching = query.apply(notes.values())
            shown = list(itertools.islice(matching, max(limit, 0)))
            remaining = sum(1 for _ in matching)
            op["result_count"] = len(shown)
            return ListResult(shown=shown, remaining=remaining)

    def open_notes(self, query: NoteQuery, limit: int = 10) -> ListResult:
        """Select matching notes like list_notes and open each shown body.

        A body that fails to open is logged and reported in ``failed``.
        """
        result = self.list_notes(query, limit)
        for note in result.shown:
            if not self.opener(note.body):
                logger.warning(f"Failed to open note {note.display_id}: {note.body}")
                result.failed.append(note)
        return result

    def update_note(
        self,
        note_id: str,
        title: Optional[str] = None,
        body: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> Note:
        """Replace the supplied fields of an existing note.

        Args:
            note_id: Hexadecimal id of the note.
            title: New title (optional).
            body: New body path (optional); must exist.
            tags: New tags, replacing the old ones (optional).

        Returns:
            The updated note.

        Raises:
            MalformedIdError: If note_id is not a valid id.
            NoteNotFoundError: If no such note exists; the cache is not written.
        """
        with timed_operation("update_note", note_id=note_id):
            parsed_id = parse_id(note_id)
            notes = self.store.load_or_empty()
            existing = notes.get(parsed_id)
            if existing is None:
                raise NoteNotFoundError(parsed_id)

            fields = existing.model_dump()
            if title is not None:
                fields["title"] = title
            if tags is not None:
                fields["tags"] = parse_tags(tags)
            if body is not None:
                fields["body"] = canonicalize(body)

            try:
                updated = Note(**fields)
            except PydanticValidationError as e:
                raise _validation_error(e) from e

            notes[parsed_id] = updated
            self.store.save(notes)
            logger.info(f"Updated note {updated.display_id}")
            return updated

    def drop_notes(self, query: NoteQuery, force: bool = False) -> List[Note]:
        """Remove matching notes.

        Each match is removed when ``force`` is set or ``confirm`` agrees.
        The cache is only written when something was removed.

        Returns:
            The removed notes.

        Raises:
            CacheNotFoundError: If there is no cache yet.
        """
        with timed_operation("drop_notes", query=query.describe(), force=force) as op:
            notes = self.store.load()
            dropped: List[Note] = []
            for note in list(query.apply(notes.values())):
                if force or self.confirm(
                    f"Drop note {note.display_id} '{note.title}' ({note.body})?"
                ):
                    del notes[note.id]
                    dropped.append(note)

            if dropped:
                self.store.save(notes)
            op["result_count"] = len(dropped)
            logger.info(f"Dropped {len(dropped)} notes")
            return dropped

    def export_notes(
        self,
        path: Path,
        query: NoteQuery,
        relative: bool = False,
    ) -> List[Note]:
        """Write matching notes to a JSON export file.

        Args:
            path: Export file, replaced if it exists.
            query: Which notes to export.
            relative: Rewrite bodies relative to the export file's directory.

        Returns:
            The notes as written.

        Raises:
            CacheNotFoundError: If there is no cache yet.
            RelativePathError: If a body cannot be made relative.
        """
        target = Path(path).expanduser()
        with timed_operation("export_notes", path=target, relative=relative) as op:
            notes = self.store.load()
            exported = list(query.apply(notes.values()))

            if relative:
                try:
                    base = canonicalize(target.absolute().parent)
                except CanonicalizeError as e:
                    raise ExchangeError(
                        ErrorCode.EXPORT_CREATE_FAILED, path=str(target), original_error=e
                    ) from e
                exported = [self._relative_to(note, base) for note in exported]

            write_export(target, exported)
            op["result_count"] = len(exported)
            logger.info(f"Exported {len(exported)} notes to {target}")
            return exported

    def import_notes(
        self,
        path: Path,
        relative: bool = False,
        force: bool = False,
    ) -> ImportResult:
        """Read notes from a JSON export file into the cache.

        A missing cache is treated as empty. The whole batch is resolved
        before anything is written: one unresolvable body aborts the import.

        Args:
            path: File to import.
            relative: Resolve bodies against the import file's directory.
            force: Overwrite existing notes with the same id without asking.

        Returns:
            Which notes were imported and which were skipped.
        """
        source = Path(path).expanduser()
        with timed_operation("import_notes", path=source, relative=relative) as op:
            incoming = read_import(source)

            if relative:
                base = canonicalize(source.absolute().parent)
                incoming = [
                    note.model_copy(update={"body": resolve_relative(note.body, base)})
                    for note in incoming
                ]

            notes = self.store.load_or_empty()
            result = ImportResult()
            for note in incoming:
                existing = notes.get(note.id)
                if existing is not None and not force and not self.confirm(
                    f"Note {note.display_id} '{existing.title}' already exists. Overwrite?"
                ):
                    result.skipped.append(note)
                    continue
                notes[note.id] = note
                result.imported.append(note)

            if result.imported:
                self.store.save(notes)
            op["result_count"] = len(result.imported)
            logger.info(
                f"Imported {len(result.imported)} notes from {source} "
                f"({len(result.skipped)} skipped)"
            )
            return result

    @staticmethod
    def _relative_to(note: Note, base: str) -> Note:
        rel = relative_from(note.body, base)
        if rel is None:
            raise RelativePathError(note.id, base=base)
        return note.model_copy(update={"body": str(rel)})
