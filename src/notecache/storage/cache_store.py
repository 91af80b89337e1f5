"""The notes cache: the whole note collection in one file.

The cache is always read and written as a unit. Callers load it, change the
mapping in memory and save it back; the store itself never merges. There
is no locking, so two processes saving at the same time means the last
one wins.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Mapping

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from notecache.exceptions import CacheError, CacheNotFoundError, ErrorCode
from notecache.models.db_models import (
    Base,
    DBNote,
    DBTag,
    create_cache_engine,
    get_session_factory,
)
from notecache.models.schema import Note, format_id
from notecache.observability import traced

logger = logging.getLogger(__name__)

# Every SQLite 3 database file starts with this header
_SQLITE_HEADER = b"SQLite format 3\x00"


class CacheStore:
    """Loads and saves the full set of notes from a single cache file.

    The file is a small SQLite database. Saving writes a fresh database to
    a temporary file next to the cache and renames it over the old one, so
    an interrupted save leaves the previous cache intact.
    """

    def __init__(self, location: Path):
        """Initialize the store.

        Args:
            location: Path of the cache file. It does not need to exist yet.
        """
        self.location = Path(location)

    def exists(self) -> bool:
        """Check whether the cache file exists."""
        return self.location.exists()

    @traced("load_cache")
    def load(self) -> Dict[int, Note]:
        """Load every note, keyed and ordered by id.

        Raises:
            CacheNotFoundError: If the cache file does not exist.
            CacheError: If the file cannot be opened (CACHE_OPEN_FAILED) or
                is not a valid notes cache (CACHE_DECODE_FAILED).
        """
        if not self.location.exists():
            raise CacheNotFoundError(str(self.location))

        try:
            with open(self.location, "rb") as fh:
                header = fh.read(len(_SQLITE_HEADER))
        except OSError as e:
            logger.error(f"Failed to open notes cache {self.location}: {e}")
            raise CacheError(
                ErrorCode.CACHE_OPEN_FAILED, path=str(self.location), original_error=e
            ) from e

        if header != _SQLITE_HEADER:
            logger.error(f"Notes cache {self.location} is not a SQLite database")
            raise CacheError(ErrorCode.CACHE_DECODE_FAILED, path=str(self.location))

        engine = create_cache_engine(self.location)
        try:
            with get_session_factory(engine)() as session:
                db_notes = session.scalars(
                    select(DBNote).options(selectinload(DBNote.tags)).order_by(DBNote.id)
                ).all()
                notes = [self._from_db(db_note) for db_note in db_notes]
        except (SQLAlchemyError, PydanticValidationError) as e:
            logger.error(f"Failed to decode notes cache {self.location}: {e}")
            raise CacheError(
                ErrorCode.CACHE_DECODE_FAILED, path=str(self.location), original_error=e
            ) from e
        finally:
            engine.dispose()

        logger.debug(f"Loaded {len(notes)} notes from {self.location}")
        return {note.id: note for note in notes}

    def load_or_empty(self) -> Dict[int, Note]:
        """Load every note, treating a missing cache file as an empty cache."""
        try:
            return self.load()
        except CacheNotFoundError:
            logger.info(f"No notes cache at {self.location}, starting empty")
            return {}

    @traced("save_cache")
    def save(self, notes: Mapping[int, Note]) -> None:
        """Replace the cache with ``notes``.

        Raises:
            CacheError: CACHE_CREATE_FAILED if the file cannot be created or
                moved into place, CACHE_ENCODE_FAILED if writing fails.
        """
        directory = self.location.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.location.name}.", suffix=".tmp", dir=directory
            )
            os.close(fd)
        except OSError as e:
            logger.error(f"Failed to create notes cache in {directory}: {e}")
            raise CacheError(
                ErrorCode.CACHE_CREATE_FAILED, path=str(self.location), original_error=e
            ) from e

        tmp_path = Path(tmp_name)
        try:
            self._write_database(tmp_path, notes)
            # POSIX atomic rename (same directory, same filesystem)
            tmp_path.replace(self.location)
        except SQLAlchemyError as e:
            self._discard(tmp_path)
            logger.error(f"Failed to encode notes cache {self.location}: {e}")
            raise CacheError(
                ErrorCode.CACHE_ENCODE_FAILED, path=str(self.location), original_error=e
            ) from e
        except OSError as e:
            self._discard(tmp_path)
            logger.error(f"Failed to replace notes cache {self.location}: {e}")
            raise CacheError(
                ErrorCode.CACHE_CREATE_FAILED, path=str(self.location), original_error=e
            ) from e

        logger.debug(f"Saved {len(notes)} notes to {self.location}")

    def _write_database(self, path: Path, notes: Mapping[int, Note]) -> None:
        engine = create_cache_engine(path)
        try:
            Base.metadata.create_all(engine)
            with get_session_factory(engine)() as session:
                session.add_all(self._to_db(note) for note in notes.values())
                session.commit()
        finally:
            engine.dispose()

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to remove temporary cache file {path}: {e}")

    @staticmethod
    def _to_db(note: Note) -> DBNote:
        db_id = format_id(note.id)
        return DBNote(
            id=db_id,
            title=note.title,
            body=note.body,
            tags=[DBTag(note_id=db_id, name=tag) for tag in note.tags],
        )

    @staticmethod
    def _from_db(db_note: DBNote) -> Note:
        return Note(
            id=db_note.id,
            title=db_note.title,
            tags=[tag.name for tag in db_note.tags],
            body=db_note.body,
        )
