"""Note queries shared by list, open, drop and export."""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional

from notecache.models.schema import Note, parse_tags


@dataclass
class NoteQuery:
    """A combination of optional filters over notes.

    Criteria combine with AND. Several bodies or several ids are
    alternatives (any may match); tags are a required subset. A criterion
    left empty is not applied, so an empty query matches every note.

    Attributes:
        title: Regular expression searched for in the title.
        bodies: Body paths, canonicalized before comparison.
        ids: Hexadecimal note ids.
        tags: Tags the note must all carry (comma-delimited values allowed).
    """

    title: Optional[str] = None
    bodies: List[str] = field(default_factory=list)
    ids: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.tags = parse_tags(self.tags)

    @property
    def is_empty(self) -> bool:
        """True when no criterion was given."""
        return self.title is None and not self.bodies and not self.ids and not self.tags

    def matches(self, note: Note) -> bool:
        """Check a single note against every criterion."""
        if self.title is not None and not note.filter_title(self.title):
            return False
        if self.bodies and not any(note.filter_body(body) for body in self.bodies):
            return False
        if self.ids and not any(note.filter_id(note_id) for note_id in self.ids):
            return False
        if self.tags and not note.filter_tags(self.tags):
            return False
        return True

    def apply(self, notes: Iterable[Note]) -> Iterator[Note]:
        """Yield the matching notes, keeping their order."""
        return (note for note in notes if self.matches(note))

    def describe(self) -> str:
        """Short description of the criteria, for log messages."""
        if self.is_empty:
            return "all notes"
        parts = []
        if self.title is not None:
            parts.append(f"title={self.title!r}")
        if self.bodies:
            parts.append(f"bodies={self.bodies}")
        if self.ids:
            parts.append(f"ids={self.ids}")
        if self.tags:
            parts.append(f"tags={self.tags}")
        return ", ".join(parts)
