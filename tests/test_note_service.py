# tests/test_note_service.py
"""Tests for the NoteService class."""
import json
import shutil

import pytest

from notecache.exceptions import (
    CacheNotFoundError,
    CanonicalizeError,
    ErrorCode,
    ExchangeError,
    MalformedIdError,
    NoteNotFoundError,
    NoteValidationError,
    RelativePathError,
)
from notecache.models.schema import Note
from notecache.services.note_service import NoteService, decline
from notecache.services.query import NoteQuery
from notecache.storage.cache_store import CacheStore
from notecache.storage.paths import canonicalize
from tests.fakes import RecordingOpener, ScriptedConfirm


class TestCreateNote:
    """Tests for creating notes."""

    def test_create_into_missing_cache(self, service, store, docs):
        note = service.create_note("Alpha", docs["a.txt"], ["x,y", "x"])
        assert note.title == "Alpha"
        assert note.tags == ["x", "y"]
        assert note.body == docs["a.txt"]
        assert store.load() == {note.id: note}
        assert service.count_notes() == 1

    def test_create_adds_to_existing(self, populated_store, service, docs):
        note = service.create_note("Gamma", docs["c.txt"])
        notes = populated_store.load()
        assert len(notes) == 3
        assert notes[note.id].tags == []

    def test_body_is_canonicalized(self, service, docs, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        note = service.create_note("Relative", "docs/./a.txt")
        assert note.body == docs["a.txt"]

    def test_missing_body_writes_nothing(self, service, store, tmp_path):
        with pytest.raises(CanonicalizeError):
            service.create_note("Nope", str(tmp_path / "missing.txt"))
        assert not store.exists()

    def test_blank_title_rejected(self, service, store, docs):
        with pytest.raises(NoteValidationError) as exc_info:
            service.create_note("   ", docs["a.txt"])
        assert exc_info.value.field == "title"
        assert not store.exists()

    def test_count_without_cache(self, service):
        assert service.count_notes() == 0


class TestListNotes:
    """Tests for listing and opening notes."""

    def test_list_all(self, populated_store, service):
        result = service.list_notes(NoteQuery())
        assert [note.title for note in result.shown] == ["Alpha", "Beta"]
        assert result.remaining == 0

    def test_limit_reports_remaining(self, populated_store, service):
        result = service.list_notes(NoteQuery(), limit=1)
        assert [note.id for note in result.shown] == [1]
        assert result.remaining == 1

    def test_zero_limit(self, populated_store, service):
        result = service.list_notes(NoteQuery(tags=["x"]), limit=0)
        assert result.shown == []
        assert result.remaining == 2

    def test_list_does_not_write(self, populated_store, service):
        before = populated_store.location.stat().st_mtime_ns
        service.list_notes(NoteQuery())
        assert populated_store.location.stat().st_mtime_ns == before

    def test_list_without_cache(self, service, store):
        with pytest.raises(CacheNotFoundError):
            service.list_notes(NoteQuery())
        assert not store.exists()

    def test_open_shown_notes(self, populated_store, service, opener, docs):
        result = service.open_notes(NoteQuery(), limit=1)
        assert opener.opened == [docs["a.txt"]]
        assert result.failed == []

    def test_open_records_failures(self, populated_store, docs):
        opener = RecordingOpener(failing=[docs["b.txt"]])
        service = NoteService(populated_store, opener=opener)
        result = service.open_notes(NoteQuery())
        assert opener.opened == [docs["a.txt"], docs["b.txt"]]
        assert [note.id for note in result.failed] == [2]

    def test_open_without_cache(self, service, opener):
        with pytest.raises(CacheNotFoundError):
            service.open_notes(NoteQuery())
        assert opener.opened == []


class TestUpdateNote:
    """Tests for updating notes."""

    def test_only_supplied_fields_change(self, populated_store, service, sample_notes):
        updated = service.update_note("1", title="Alpha v2")
        assert updated.title == "Alpha v2"
        assert updated.tags == sample_notes[1].tags
        assert updated.body == sample_notes[1].body
        notes = populated_store.load()
        assert notes[1] == updated
        assert notes[2] == sample_notes[2]

    def test_replace_tags_and_body(self, populated_store, service, docs):
        updated = service.update_note("0000000000000002", body=docs["c.txt"], tags=["new"])
        assert updated.tags == ["new"]
        assert updated.body == docs["c.txt"]
        assert updated.title == "Beta"

    def test_unknown_id(self, populated_store, service):
        before = populated_store.location.read_bytes()
        with pytest.raises(NoteNotFoundError) as exc_info:
            service.update_note("ABC", title="x")
        assert exc_info.value.message == "no note with id '0000000000000ABC' found"
        assert populated_store.location.read_bytes() == before

    def test_malformed_id(self, populated_store, service):
        with pytest.raises(MalformedIdError):
            service.update_note("not-an-id", title="x")

    def test_missing_cache_is_not_found(self, service, store):
        with pytest.raises(NoteNotFoundError):
            service.update_note("1", title="x")
        assert not store.exists()

    def test_missing_body_keeps_note(self, populated_store, service, sample_notes, tmp_path):
        with pytest.raises(CanonicalizeError):
            service.update_note("1", body=str(tmp_path / "missing.txt"))
        assert populated_store.load()[1] == sample_notes[1]

    def test_blank_title_rejected(self, populated_store, service):
        with pytest.raises(NoteValidationError):
            service.update_note("1", title="")


class TestDropNotes:
    """Tests for dropping notes."""

    def test_force_drops_without_asking(self, populated_store, service, confirm):
        dropped = service.drop_notes(NoteQuery(tags=["x"]), force=True)
        assert [note.id for note in dropped] == [1, 2]
        assert confirm.questions == []
        assert populated_store.load() == {}

    def test_force_drop_of_one_keeps_the_rest(self, populated_store, service, sample_notes):
        dropped = service.drop_notes(NoteQuery(title="^Be"), force=True)
        assert [note.id for note in dropped] == [2]
        assert populated_store.load() == {1: sample_notes[1]}

    def test_confirmation_per_note(self, populated_store, sample_notes):
        confirm = ScriptedConfirm(answers=[False, True])
        service = NoteService(populated_store, confirm=confirm)
        dropped = service.drop_notes(NoteQuery())
        assert [note.id for note in dropped] == [2]
        assert confirm.questions[0] == (
            f"Drop note 0000000000000001 'Alpha' ({sample_notes[1].body})?"
        )
        assert len(confirm.questions) == 2
        assert populated_store.load() == {1: sample_notes[1]}

    def test_declined_leaves_cache_untouched(self, populated_store, service):
        before = populated_store.location.stat().st_mtime_ns
        assert service.drop_notes(NoteQuery()) == []
        assert populated_store.location.stat().st_mtime_ns == before

    def test_no_match_asks_nothing(self, populated_store, service, confirm):
        assert service.drop_notes(NoteQuery(title="^Nothing")) == []
        assert confirm.questions == []

    def test_drop_without_cache(self, service, store):
        with pytest.raises(CacheNotFoundError):
            service.drop_notes(NoteQuery(), force=True)
        assert not store.exists()

    def test_default_confirmation_declines(self):
        assert decline("anything?") is False


class TestExportNotes:
    """Tests for exporting notes."""

    def test_export_absolute(self, populated_store, service, sample_notes, tmp_path):
        target = tmp_path / "export.json"
        exported = service.export_notes(target, NoteQuery(tags=["y"]))
        assert exported == [sample_notes[2]]
        data = json.loads(target.read_text(encoding="utf-8"))
        assert data == [
            {
                "id": "0000000000000002",
                "title": "Beta",
                "tags": ["x", "y"],
                "body": sample_notes[2].body,
            }
        ]

    def test_export_replaces_existing_file(self, populated_store, service, tmp_path):
        target = tmp_path / "export.json"
        target.write_text("old contents", encoding="utf-8")
        service.export_notes(target, NoteQuery())
        assert len(json.loads(target.read_text(encoding="utf-8"))) == 2

    def test_export_relative(self, populated_store, service, tmp_path):
        out = tmp_path / "out"
        out.mkdir()
        exported = service.export_notes(out / "export.json", NoteQuery(), relative=True)
        assert [note.body for note in exported] == ["../docs/a.txt", "../docs/b.txt"]
        # The cache keeps absolute bodies
        assert populated_store.load()[1].body.endswith("a.txt")
        assert populated_store.load()[1].body.startswith("/")

    def test_relative_body_cannot_be_made_relative(self):
        note = Note(id=0x10, title="Odd", body="not/absolute.txt")
        with pytest.raises(RelativePathError) as exc_info:
            NoteService._relative_to(note, "/some/base")
        assert exc_info.value.code == ErrorCode.RELATIVE_PATH_FAILED
        assert exc_info.value.message == (
            "failed to get relative path of note '0000000000000010'"
        )

    def test_export_into_missing_directory(self, populated_store, service, tmp_path):
        with pytest.raises(ExchangeError) as exc_info:
            service.export_notes(tmp_path / "nope" / "export.json", NoteQuery())
        assert exc_info.value.code == ErrorCode.EXPORT_CREATE_FAILED

    def test_relative_export_into_missing_directory(self, populated_store, service, tmp_path):
        target = tmp_path / "nope" / "export.json"
        with pytest.raises(ExchangeError) as exc_info:
            service.export_notes(target, NoteQuery(), relative=True)
        assert exc_info.value.code == ErrorCode.EXPORT_CREATE_FAILED
        assert exc_info.value.message == "failed to create export file"

    def test_export_without_cache(self, service, tmp_path):
        target = tmp_path / "export.json"
        with pytest.raises(CacheNotFoundError):
            service.export_notes(target, NoteQuery())
        assert not target.exists()


class TestImportNotes:
    """Tests for importing notes."""

    def test_export_then_import_reproduces_notes(
        self, populated_store, service, sample_notes, tmp_path
    ):
        target = tmp_path / "export.json"
        service.export_notes(target, NoteQuery())

        fresh = CacheStore(tmp_path / "fresh" / "cache")
        result = NoteService(fresh).import_notes(target)
        assert result.imported == list(sample_notes.values())
        assert result.skipped == []
        assert fresh.load() == sample_notes

    def test_relative_round_trip_survives_moving_the_tree(self, tmp_path):
        tree = tmp_path / "tree"
        (tree / "docs").mkdir(parents=True)
        (tree / "docs" / "one.md").write_text("one", encoding="utf-8")
        (tree / "docs" / "two.md").write_text("two", encoding="utf-8")
        source = NoteService(CacheStore(tmp_path / "source-cache"))
        source.create_note("One", str(tree / "docs" / "one.md"), ["t"])
        source.create_note("Two", str(tree / "docs" / "two.md"))
        source.export_notes(tree / "export.json", NoteQuery(), relative=True)

        moved = tmp_path / "moved"
        shutil.move(str(tree), str(moved))

        target_store = CacheStore(tmp_path / "target-cache")
        result = NoteService(target_store).import_notes(moved / "export.json", relative=True)
        assert len(result.imported) == 2
        bodies = sorted(note.body for note in target_store.load().values())
        assert bodies == [
            canonicalize(moved / "docs" / "one.md"),
            canonicalize(moved / "docs" / "two.md"),
        ]

    def test_conflict_declined_is_skipped(self, populated_store, service, confirm, docs, tmp_path):
        incoming = tmp_path / "in.json"
        incoming.write_text(
            json.dumps([{"id": "1", "title": "Replaced", "tags": [], "body": docs["c.txt"]}]),
            encoding="utf-8",
        )
        before = populated_store.location.read_bytes()
        result = service.import_notes(incoming)
        assert result.imported == []
        assert [note.id for note in result.skipped] == [1]
        assert confirm.questions == [
            "Note 0000000000000001 'Alpha' already exists. Overwrite?"
        ]
        assert populated_store.location.read_bytes() == before

    def test_conflict_confirmed_overwrites(self, populated_store, docs, tmp_path):
        incoming = tmp_path / "in.json"
        incoming.write_text(
            json.dumps([
                {"id": "1", "title": "Replaced", "tags": [], "body": docs["c.txt"]},
                {"id": "2", "title": "Also", "tags": [], "body": docs["c.txt"]},
            ]),
            encoding="utf-8",
        )
        confirm = ScriptedConfirm(answers=[True, False])
        result = NoteService(populated_store, confirm=confirm).import_notes(incoming)
        assert [note.id for note in result.imported] == [1]
        assert [note.id for note in result.skipped] == [2]
        notes = populated_store.load()
        assert notes[1].title == "Replaced"
        assert notes[2].title == "Beta"

    def test_force_overwrites_without_asking(self, populated_store, service, confirm, docs, tmp_path):
        incoming = tmp_path / "in.json"
        incoming.write_text(
            json.dumps([{"id": "2", "title": "Forced", "tags": ["f"], "body": docs["a.txt"]}]),
            encoding="utf-8",
        )
        result = service.import_notes(incoming, force=True)
        assert len(result.imported) == 1
        assert confirm.questions == []
        assert populated_store.load()[2].title == "Forced"

    def test_new_ids_need_no_confirmation(self, populated_store, service, confirm, docs, tmp_path):
        incoming = tmp_path / "in.json"
        incoming.write_text(
            json.dumps([{"id": "FF", "title": "New", "tags": [], "body": docs["c.txt"]}]),
            encoding="utf-8",
        )
        service.import_notes(incoming)
        assert confirm.questions == []
        assert set(populated_store.load()) == {1, 2, 0xFF}

    def test_unresolvable_relative_body_aborts_batch(self, populated_store, service, docs, tmp_path):
        incoming = tmp_path / "in.json"
        incoming.write_text(
            json.dumps([
                {"id": "A", "title": "Fine", "tags": [], "body": "docs/a.txt"},
                {"id": "B", "title": "Broken", "tags": [], "body": "docs/missing.txt"},
            ]),
            encoding="utf-8",
        )
        before = populated_store.location.read_bytes()
        with pytest.raises(CanonicalizeError):
            service.import_notes(incoming, relative=True)
        assert populated_store.location.read_bytes() == before

    def test_null_byte_in_relative_body_aborts_batch(self, populated_store, service, tmp_path):
        incoming = tmp_path / "in.json"
        incoming.write_text(
            json.dumps([{"id": "A", "title": "Bad", "tags": [], "body": "a\u0000b"}]),
            encoding="utf-8",
        )
        before = populated_store.location.read_bytes()
        with pytest.raises(CanonicalizeError):
            service.import_notes(incoming, relative=True)
        assert populated_store.location.read_bytes() == before

    def test_comma_delimited_tags_are_queryable(self, service, store, docs, tmp_path):
        incoming = tmp_path / "in.json"
        incoming.write_text(
            json.dumps([{"id": "C", "title": "Tagged", "tags": ["a,b"], "body": docs["a.txt"]}]),
            encoding="utf-8",
        )
        service.import_notes(incoming)
        assert store.load()[0xC].tags == ["a", "b"]
        shown = service.list_notes(NoteQuery(tags=["a,b"])).shown
        assert [note.id for note in shown] == [0xC]

    def test_invalid_json(self, service, store, tmp_path):
        incoming = tmp_path / "in.json"
        incoming.write_text("{not json", encoding="utf-8")
        with pytest.raises(ExchangeError) as exc_info:
            service.import_notes(incoming)
        assert exc_info.value.code == ErrorCode.JSON_DECODE_FAILED
        assert exc_info.value.message == "failed to decode json"
        assert not store.exists()

    def test_invalid_record(self, service, tmp_path):
        incoming = tmp_path / "in.json"
        incoming.write_text(json.dumps([{"id": "zz", "title": "T", "body": "/x"}]), encoding="utf-8")
        with pytest.raises(ExchangeError) as exc_info:
            service.import_notes(incoming)
        assert exc_info.value.code == ErrorCode.JSON_DECODE_FAILED

    def test_missing_import_file(self, service, tmp_path):
        with pytest.raises(ExchangeError) as exc_info:
            service.import_notes(tmp_path / "missing.json")
        assert exc_info.value.code == ErrorCode.IMPORT_READ_FAILED

    def test_empty_import_writes_nothing(self, service, store, tmp_path):
        incoming = tmp_path / "in.json"
        incoming.write_text("[]", encoding="utf-8")
        result = service.import_notes(incoming)
        assert result.imported == []
        assert not store.exists()
