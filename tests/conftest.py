"""Common test fixtures for notecache."""

import logging
from pathlib import Path
from typing import Dict

import pytest

from notecache.config import config
from notecache.models.schema import Note
from notecache.observability import ROOT_LOGGER_NAME
from notecache.services.note_service import NoteService
from notecache.storage.cache_store import CacheStore
from notecache.storage.paths import canonicalize
from tests.fakes import RecordingOpener, ScriptedConfirm


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop handlers added by configure_logging so tests stay isolated."""
    yield
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.NOTSET)


@pytest.fixture
def docs(tmp_path) -> Dict[str, str]:
    """Body documents on disk, keyed by name, as canonical paths."""
    docs_dir = tmp_path / "docs"
    docs_dir.mkdir()
    result = {}
    for name in ("a.txt", "b.txt", "c.txt"):
        path = docs_dir / name
        path.write_text(f"contents of {name}\n", encoding="utf-8")
        result[name] = canonicalize(path)
    return result


@pytest.fixture
def cache_path(tmp_path) -> Path:
    """Location of the notes cache (not created)."""
    return tmp_path / "home" / ".notes-cache"


@pytest.fixture
def store(cache_path) -> CacheStore:
    """A cache store on an empty temporary location."""
    return CacheStore(cache_path)


@pytest.fixture
def sample_notes(docs) -> Dict[int, Note]:
    """The two-note collection used across scenarios."""
    return {
        1: Note(id=1, title="Alpha", tags=["x"], body=docs["a.txt"]),
        2: Note(id=2, title="Beta", tags=["x", "y"], body=docs["b.txt"]),
    }


@pytest.fixture
def populated_store(store, sample_notes) -> CacheStore:
    """A cache store already holding the sample notes."""
    store.save(sample_notes)
    return store


@pytest.fixture
def confirm() -> ScriptedConfirm:
    return ScriptedConfirm()


@pytest.fixture
def opener() -> RecordingOpener:
    return RecordingOpener()


@pytest.fixture
def service(store, confirm, opener) -> NoteService:
    """A NoteService with scripted confirmation and a recording opener."""
    return NoteService(store, confirm=confirm, opener=opener)


@pytest.fixture
def test_config(cache_path, monkeypatch):
    """Configure with test paths (auto-restored even on crash)."""
    monkeypatch.setattr(config, "cache_path", cache_path)
    monkeypatch.setattr(config, "log_level", "WARNING")
    monkeypatch.setattr(config, "log_dir", None)
    monkeypatch.setattr(config, "default_lines", 10)
    yield config
