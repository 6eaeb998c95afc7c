"""
EduVi Kernel -- Storage Boundary

Sits between the pure kernel and the outside world: where documents come
from and where exported .eduvi files go.

This is where IO happens. The tree, reducer, and exporter are pure.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any

from eduvi.kernel.exporter import export_filename
from eduvi.kernel.tree import iter_nodes
from eduvi.kernel.types import Document

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DocumentNotFound(Exception):
    """Document does not exist in the source."""

    pass


class DocumentLoadError(Exception):
    """Document exists but its payload is not a valid document tree."""

    pass


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_document(data: Any) -> Document:
    """
    Build a Document from its wire dict, enforcing the tree shape.

    Raises DocumentLoadError for anything that would break the kernel's
    assumptions: missing fields, Blocks with children, Cards below the
    root, repeated ids, or no cards at all. A stale activeCardId is not an
    error; it is dropped.
    """
    if not isinstance(data, dict):
        raise DocumentLoadError("Document payload must be an object")
    try:
        document = Document.from_dict(data)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise DocumentLoadError(f"Malformed document: {e}") from e

    if not document.cards:
        raise DocumentLoadError(f"Document {document.id} has no cards")

    seen: set[str] = set()
    for node in iter_nodes(document.cards):
        if node.id in seen:
            raise DocumentLoadError(f"Duplicate node id: {node.id}")
        seen.add(node.id)

    if document.active_card_id and document.active_card_id not in {c.id for c in document.cards}:
        logger.warning("storage: activeCardId %s is not a card of %s, ignoring", document.active_card_id, document.id)
        document = replace(document, active_card_id=None)
    return document


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class DocumentSource:
    """
    Abstract document source.
    Implement with the backend API for production, or in-memory for tests.
    """

    async def get(self, document_id: str) -> Document:
        """Fetch a complete document. Raises DocumentNotFound / DocumentLoadError."""
        raise NotImplementedError


class MemoryDocumentSource(DocumentSource):
    """In-memory source for testing. Holds wire dicts, not parsed documents."""

    def __init__(self, documents: dict[str, dict[str, Any]] | None = None) -> None:
        self.documents: dict[str, dict[str, Any]] = dict(documents or {})

    async def get(self, document_id: str) -> Document:
        data = self.documents.get(document_id)
        if data is None:
            raise DocumentNotFound(document_id)
        return parse_document(data)


class FileDocumentSource(DocumentSource):
    """One <id>.json file per document in a directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    async def get(self, document_id: str) -> Document:
        path = self.directory / f"{document_id}.json"
        if not path.is_file():
            raise DocumentNotFound(document_id)
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentLoadError(f"Failed to read {path.name}: {e}") from e
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise DocumentLoadError(f"Failed to parse {path.name}: {e}") from e
        return parse_document(data)


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------


class ExportSink:
    """Abstract destination for serialized .eduvi files."""

    async def put(self, title: str, contents: str) -> str:
        """Store an export. Returns the name it was stored under."""
        raise NotImplementedError


class MemoryExportSink(ExportSink):
    """In-memory sink for testing."""

    def __init__(self) -> None:
        self.files: dict[str, str] = {}

    async def put(self, title: str, contents: str) -> str:
        name = export_filename(title)
        self.files[name] = contents
        return name


class DirectoryExportSink(ExportSink):
    """Writes <slug>-<date>.eduvi files into a directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    async def put(self, title: str, contents: str) -> str:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / export_filename(title)
        await asyncio.to_thread(path.write_text, contents, encoding="utf-8")
        logger.info("storage: wrote %s (%d bytes)", path, len(contents))
        return str(path)
