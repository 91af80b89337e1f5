"""Export and import files: notes as a human-readable JSON array.

Example::

    [
      {
        "id": "00C0FFEE00C0FFEE",
        "title": "Reading list",
        "tags": ["books", "todo"],
        "body": "docs/reading.md"
      }
    ]

``body`` is absolute, or relative to the directory holding the file when
the export was made in relative mode.
"""

import logging
from pathlib import Path
from typing import Iterable, List

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError

from notecache.exceptions import ErrorCode, ExchangeError
from notecache.models.schema import Note

logger = logging.getLogger(__name__)

_NOTE_LIST = TypeAdapter(List[Note])


def dump_notes(notes: Iterable[Note]) -> str:
    """Encode notes as a pretty-printed JSON array."""
    try:
        return _NOTE_LIST.dump_json(list(notes), indent=2).decode("utf-8") + "\n"
    except (PydanticSerializationError, UnicodeDecodeError) as e:
        raise ExchangeError(ErrorCode.JSON_ENCODE_FAILED, original_error=e) from e


def load_notes(text: str) -> List[Note]:
    """Decode a JSON array of notes.

    Raises:
        ExchangeError: JSON_DECODE_FAILED if the text is not valid JSON or
            a record is not a valid note.
    """
    try:
        return _NOTE_LIST.validate_json(text)
    except PydanticValidationError as e:
        raise ExchangeError(ErrorCode.JSON_DECODE_FAILED, original_error=e) from e


def write_export(path: Path, notes: Iterable[Note]) -> None:
    """Write notes to ``path``, replacing any existing file."""
    text = dump_notes(notes)
    try:
        fh = open(path, "w", encoding="utf-8")
    except OSError as e:
        logger.error(f"Failed to create export file {path}: {e}")
        raise ExchangeError(
            ErrorCode.EXPORT_CREATE_FAILED, path=str(path), original_error=e
        ) from e
    with fh:
        try:
            fh.write(text)
        except OSError as e:
            logger.error(f"Failed to write export file {path}: {e}")
            raise ExchangeError(
                ErrorCode.EXPORT_WRITE_FAILED, path=str(path), original_error=e
            ) from e


def read_import(path: Path) -> List[Note]:
    """Read and decode the notes in an import file."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read import file {path}: {e}")
        raise ExchangeError(
            ErrorCode.IMPORT_READ_FAILED, path=str(path), original_error=e
        ) from e
    return load_notes(text)
