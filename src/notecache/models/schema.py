"""Data models for notecache."""

import logging
import random
import re
from typing import Any, Container, Iterable, List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

from notecache.exceptions import CanonicalizeError, MalformedIdError
from notecache.storage.paths import canonicalize

logger = logging.getLogger(__name__)

# Note ids are unsigned 64-bit integers, shown and parsed as hexadecimal
ID_BITS = 64
MAX_ID = 2**ID_BITS - 1
ID_WIDTH = 16
_HEX_ID_PATTERN = re.compile(r"[0-9A-Fa-f]{1,16}")


def format_id(note_id: int) -> str:
    """Format a note id as 16 upper-case, zero-padded hex digits."""
    return f"{note_id:0{ID_WIDTH}X}"


def parse_id(value: str) -> int:
    """Parse a hexadecimal note id.

    Accepts 1 to 16 hex digits in either case. Prefixes, signs and
    whitespace are rejected.

    Raises:
        MalformedIdError: If the value is not a valid id.
    """
    if not isinstance(value, str) or not _HEX_ID_PATTERN.fullmatch(value):
        raise MalformedIdError(str(value))
    return int(value, 16)


def generate_id(existing: Container[int] = ()) -> int:
    """Generate a random note id that is not already in ``existing``.

    Ids are drawn uniformly from the 64-bit range. A collision is
    vanishingly unlikely but is detected and redrawn rather than silently
    overwriting a note.
    """
    while True:
        note_id = random.getrandbits(ID_BITS)
        if note_id not in existing:
            return note_id
        logger.debug(f"Generated id {format_id(note_id)} already in use, redrawing")


def parse_tags(values: Optional[Iterable[str]]) -> List[str]:
    """Turn raw tag arguments into a canonical tag list.

    Each value may hold several comma-delimited tags. Tags are stripped,
    empty ones dropped, duplicates removed and the result sorted.
    """
    if not values:
        return []
    tags = set()
    for value in values:
        for tag in value.split(","):
            tag = tag.strip()
            if tag:
                tags.add(tag)
    return sorted(tags)


class Note(BaseModel):
    """A note record: metadata pointing at an external body document."""

    id: int = Field(..., ge=0, le=MAX_ID, description="Unique ID of the note")
    title: str = Field(..., description="Title of the note")
    tags: List[str] = Field(default_factory=list, description="Tags for categorization")
    body: str = Field(..., description="Path of the document holding the note's content")

    model_config = {"validate_assignment": True, "extra": "forbid"}

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        """Accept ids written as hex strings (the export format)."""
        if isinstance(v, str):
            try:
                return parse_id(v)
            except MalformedIdError as e:
                raise ValueError(e.message) from e
        return v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Validate that the title is not empty."""
        if not v.strip():
            raise ValueError("Title cannot be empty")
        return v

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        """Split comma-delimited tags and keep them unique, non-empty and sorted."""
        return parse_tags(v)

    @field_validator("body")
    @classmethod
    def validate_body(cls, v: str) -> str:
        if not v:
            raise ValueError("Body path cannot be empty")
        return v

    @field_serializer("id", when_used="json")
    def serialize_id(self, v: int) -> str:
        return format_id(v)

    @property
    def display_id(self) -> str:
        """The note id as shown to the user."""
        return format_id(self.id)

    def filter_id(self, query: str) -> bool:
        """Check whether ``query`` is this note's id. Malformed ids never match."""
        try:
            return parse_id(query) == self.id
        except MalformedIdError:
            return False

    def filter_title(self, pattern: str) -> bool:
        """Check whether the regular expression ``pattern`` matches the title.

        The pattern may match anywhere. An invalid pattern never matches.
        """
        try:
            return re.search(pattern, self.title) is not None
        except re.error:
            return False

    def filter_tags(self, query: Iterable[str]) -> bool:
        """Check that the note carries every tag in ``query``."""
        return set(query).issubset(self.tags)

    def filter_body(self, query_path: str) -> bool:
        """Check whether ``query_path`` refers to this note's body.

        The query is canonicalized the same way bodies are when written, so
        relative paths and symlinks match. A path that cannot be resolved
        never matches.
        """
        try:
            return canonicalize(query_path) == self.body
        except CanonicalizeError:
            return False
