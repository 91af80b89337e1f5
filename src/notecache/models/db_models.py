"""SQLAlchemy database models for the notes cache file."""
from pathlib import Path

from sqlalchemy import Column, ForeignKey, String, Text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

# Create base class for SQLAlchemy models
Base = declarative_base()


class DBNote(Base):
    """Database model for a note.

    Ids are stored as 16-digit hex text: SQLite integers are signed, so the
    upper half of the 64-bit id range would not fit an INTEGER column.
    Fixed-width hex also sorts the same way as the numeric id.
    """
    __tablename__ = "notes"
    id = Column(String(16), primary_key=True)
    title = Column(Text, nullable=False)
    body = Column(Text, nullable=False)

    # Relationships
    tags = relationship(
        "DBTag",
        back_populates="note",
        cascade="all, delete-orphan",
        order_by="DBTag.name",
    )

    def __repr__(self) -> str:
        """Return string representation of note."""
        return f"<Note(id='{self.id}', title='{self.title}')>"


class DBTag(Base):
    """Database model for one tag of one note."""
    __tablename__ = "note_tags"
    note_id = Column(String(16), ForeignKey("notes.id"), primary_key=True)
    name = Column(String(255), primary_key=True)

    note = relationship("DBNote", back_populates="tags")

    def __repr__(self) -> str:
        """Return string representation of tag."""
        return f"<Tag(note_id='{self.note_id}', name='{self.name}')>"


def create_cache_engine(path: Path) -> Engine:
    """Create an engine for the cache database at ``path``.

    The cache is used by one short-lived process at a time, so no
    connection pooling is needed.
    """
    from sqlalchemy.pool import NullPool

    return create_engine(f"sqlite:///{path}", poolclass=NullPool)


def get_session_factory(engine: Engine):
    """Get a session factory for the cache database."""
    return sessionmaker(bind=engine)
