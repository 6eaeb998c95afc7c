"""
EduVi Store -- Load / Save Boundary Tests

Covers:
  - Load from memory and from a directory of <id>.json files
  - A load fully replaces the document and resets history
  - A failed load leaves document and history untouched, records the error
  - parse_document rejects malformed trees
  - Stale activeCardId is dropped, not fatal
  - Export sinks write <slug>-<date>.eduvi
"""

import json
from pathlib import Path

import pytest

from eduvi.kernel.exporter import validate_export
from eduvi.kernel.storage import (
    DirectoryExportSink,
    DocumentLoadError,
    DocumentNotFound,
    FileDocumentSource,
    MemoryDocumentSource,
    MemoryExportSink,
    parse_document,
)
from eduvi.kernel.store import DocumentStore
from eduvi.kernel.tests.builders import sample_document


@pytest.fixture
def wire():
    return sample_document().to_dict()


@pytest.fixture
def source(wire):
    return MemoryDocumentSource({"doc-1": wire})


# ============================================================================
# Loading
# ============================================================================


class TestLoad:
    @pytest.mark.asyncio
    async def test_load_from_memory(self, source):
        store = DocumentStore()
        document = await store.load(source, "doc-1")
        assert store.document == document == sample_document()
        assert store.active_card_id == "card-1"
        assert not store.is_loading
        assert store.error is None

    @pytest.mark.asyncio
    async def test_load_resets_history(self, source):
        store = DocumentStore()
        await store.load(source, "doc-1")
        store.update_card_title("card-1", "Edited")
        assert store.can_undo
        await store.load(source, "doc-1")
        assert not store.can_undo
        assert store.active_card.title == "Welcome"

    @pytest.mark.asyncio
    async def test_load_from_directory(self, tmp_path, wire):
        (tmp_path / "doc-1.json").write_text(json.dumps(wire), encoding="utf-8")
        store = DocumentStore()
        await store.load(FileDocumentSource(tmp_path), "doc-1")
        assert [c.id for c in store.cards] == ["card-1", "card-2"]

    @pytest.mark.asyncio
    async def test_missing_document_leaves_state(self, source):
        store = DocumentStore()
        await store.load(source, "doc-1")
        store.update_card_title("card-1", "Edited")
        before = store.document

        with pytest.raises(DocumentNotFound):
            await store.load(source, "ghost")

        assert store.document is before
        assert store.can_undo
        assert store.error.startswith("DocumentNotFound")
        assert not store.is_loading

    @pytest.mark.asyncio
    async def test_malformed_file_leaves_state(self, tmp_path):
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
        store = DocumentStore()
        with pytest.raises(DocumentLoadError):
            await store.load(FileDocumentSource(tmp_path), "broken")
        assert store.document is None
        assert store.error.startswith("DocumentLoadError")

    @pytest.mark.asyncio
    async def test_non_utf8_file_is_a_load_error(self, tmp_path):
        (tmp_path / "garbled.json").write_bytes(b"\xff\xfe{")
        store = DocumentStore()
        with pytest.raises(DocumentLoadError):
            await store.load(FileDocumentSource(tmp_path), "garbled")
        assert store.document is None
        assert store.error.startswith("DocumentLoadError")
        assert not store.is_loading

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentNotFound):
            await FileDocumentSource(tmp_path).get("nope")


# ============================================================================
# parse_document
# ============================================================================


class TestParseDocument:
    def test_round_trip(self, wire):
        assert parse_document(wire) == sample_document()

    def test_not_an_object(self):
        with pytest.raises(DocumentLoadError):
            parse_document(["cards"])

    def test_missing_id(self, wire):
        del wire["id"]
        with pytest.raises(DocumentLoadError):
            parse_document(wire)

    def test_no_cards(self, wire):
        wire["cards"] = []
        with pytest.raises(DocumentLoadError):
            parse_document(wire)

    def test_duplicate_ids(self, wire):
        wire["cards"][1]["children"][0]["children"][0]["id"] = "block-a"
        with pytest.raises(DocumentLoadError, match="Duplicate node id: block-a"):
            parse_document(wire)

    def test_block_with_children(self, wire):
        wire["cards"][0]["children"][0]["children"] = [{"id": "x", "type": "BLOCK"}]
        with pytest.raises(DocumentLoadError):
            parse_document(wire)

    def test_nested_card(self, wire):
        wire["cards"][0]["children"].append({"id": "card-9", "type": "CARD"})
        with pytest.raises(DocumentLoadError):
            parse_document(wire)

    def test_stale_active_card_dropped(self, wire):
        wire["activeCardId"] = "card-gone"
        assert parse_document(wire).active_card_id is None

    def test_unknown_content_kept(self, wire):
        wire["cards"][0]["children"][0]["content"] = {"type": "TABLE", "rows": [["a"]]}
        document = parse_document(wire)
        assert document.cards[0].children[0].content.to_dict() == {"type": "TABLE", "rows": [["a"]]}


# ============================================================================
# Export sinks
# ============================================================================


class TestExportSinks:
    @pytest.mark.asyncio
    async def test_memory_sink(self, source):
        store = DocumentStore()
        await store.load(source, "doc-1")
        sink = MemoryExportSink()
        name = await sink.put(store.document.title, store.export_json())
        assert name.startswith("intro-to-python-")
        assert validate_export(json.loads(sink.files[name])) == (True, [])

    @pytest.mark.asyncio
    async def test_directory_sink(self, tmp_path, source):
        store = DocumentStore()
        await store.load(source, "doc-1")
        path = await DirectoryExportSink(tmp_path / "out").put(store.document.title, store.export_json())
        written = tmp_path / "out" / Path(path).name
        assert written.exists()
        assert json.loads(written.read_text(encoding="utf-8"))["metadata"]["title"] == "Intro to Python"
