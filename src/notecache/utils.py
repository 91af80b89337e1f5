"""Console formatting helpers for notecache."""

from typing import Iterable, List

from notecache.models.schema import ID_WIDTH, Note

TITLE_WIDTH = 20
TAGS_WIDTH = 23


def truncate(text: str, width: int) -> str:
    """Shorten text to at most ``width`` characters, marking the cut.

    Examples:
        truncate("Architecture plan", 10) -> "Archite..."
        truncate("short", 10) -> "short"
    """
    if len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[: width - 3] + "..."


def format_tags(tags: Iterable[str]) -> str:
    """Join tags with single spaces."""
    return " ".join(tags)


def table_header() -> List[str]:
    """Header lines of the note table."""
    return [
        f"{'Note ID':<{ID_WIDTH}} | {'Title':<{TITLE_WIDTH}} | {'Tags':<{TAGS_WIDTH}} | Body",
        f"{'-' * ID_WIDTH}-+-{'-' * TITLE_WIDTH}-+-{'-' * TAGS_WIDTH}-+-{'-' * 17}",
    ]


def format_note_row(note: Note) -> str:
    """One table line for a note. Title and tags are cut to their column."""
    title = truncate(note.title.replace("\n", " "), TITLE_WIDTH)
    tags = truncate(format_tags(note.tags), TAGS_WIDTH)
    return f"{note.display_id} | {title:<{TITLE_WIDTH}} | {tags:<{TAGS_WIDTH}} | {note.body}"
