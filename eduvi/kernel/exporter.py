"""
EduVi Kernel -- Export Transformer

Pure function: (document, options?) → interchange dict
No IO. Deterministic once `exported_at` is pinned.

Walks a finalized document and produces the versioned .eduvi structure a
viewer consumes without ever seeing the internal node types:

  {version, exportedAt,
   metadata: {title, description, createdAt, updatedAt},
   cards: [{id, title, order,
            layouts: [{id, variant, order,
                       blocks: [{id, type, columnIndex, order, content}]}]}]}

Column assignment is positional: the block at position p of a layout goes
to column p % column_count(variant). A Layout nested inside a layout takes
one column slot; its blocks are flattened into the parent's block list,
all in that slot's column.

Blocks sitting directly on a card have no layout. By default each run of
them becomes an implicit SINGLE layout; ExportOptions can drop them instead.

The transformer is total: content with an unknown tag is copied through as
an opaque record and never fails the export.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import UTC, date, datetime
from typing import Any

from pydantic import ValidationError

from eduvi.config import settings
from eduvi.kernel.columns import column_count
from eduvi.kernel.schema import ExportFile
from eduvi.kernel.types import Block, Card, Document, ExportOptions, Layout, is_block, now_iso

logger = logging.getLogger(__name__)

IMPLICIT_VARIANT = "SINGLE"
DEFAULT_TITLE = "Untitled"

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def transform_document(document: Document, options: ExportOptions | None = None) -> dict[str, Any]:
    """
    Build the interchange dict for a document.
    Pure function. The document is never modified.
    """
    opts = options or ExportOptions()
    return {
        "version": opts.version or settings.SCHEMA_VERSION,
        "exportedAt": opts.exported_at or now_iso(),
        "metadata": {
            "title": document.title or DEFAULT_TITLE,
            "description": document.description,
            "createdAt": document.created_at,
            "updatedAt": document.updated_at,
        },
        "cards": [_transform_card(card, i, opts) for i, card in enumerate(document.cards)],
    }


def serialize(document: Document, options: ExportOptions | None = None) -> str:
    """The .eduvi file contents: pretty-printed JSON."""
    return json.dumps(transform_document(document, options), indent=2, ensure_ascii=False)


def validate_export(data: Any) -> tuple[bool, list[str]]:
    """
    Check a parsed .eduvi payload.
    Returns (valid, errors). Never raises.

    The mandatory top-level fields are checked by name first so a consumer
    gets a readable message; the rest of the structure is checked against
    the pydantic models.
    """
    if not isinstance(data, dict):
        return False, ["Data must be an object"]

    errors: list[str] = []
    if not data.get("version"):
        errors.append("Missing required field: version")
    if not data.get("metadata"):
        errors.append("Missing required field: metadata")
    if "cards" not in data:
        errors.append("Missing required field: cards")
    if not isinstance(data.get("cards"), list):
        errors.append("cards must be an array")
    meta = data.get("metadata")
    if isinstance(meta, dict) and not meta.get("title"):
        errors.append("Missing required field: metadata.title")
    if errors:
        return False, errors

    try:
        ExportFile.model_validate(data)
    except ValidationError as e:
        for err in e.errors():
            loc = ".".join(str(part) for part in err["loc"])
            errors.append(f"{loc}: {err['msg']}")
    return not errors, errors


def slugify(title: str) -> str:
    """
    Lower-case, runs of anything non-alphanumeric become one hyphen.

    Examples:
      "Intro to Python!"   → "intro-to-python"
      "  --Week 3: Loops"  → "week-3-loops"
      "???"                → "untitled"
    """
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug or "untitled"


def export_filename(title: str, on: date | None = None, extension: str | None = None) -> str:
    """<slug>-<YYYY-MM-DD><ext>, e.g. intro-to-python-2024-03-01.eduvi"""
    day = on or datetime.now(UTC).date()
    return f"{slugify(title)}-{day.isoformat()}{extension or settings.FILE_EXTENSION}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _transform_card(card: Card, order: int, opts: ExportOptions) -> dict[str, Any]:
    layouts: list[dict[str, Any]] = []
    standalone: list[Block] = []

    def flush() -> None:
        if not standalone:
            return
        if opts.include_standalone_blocks:
            implicit = Layout(id=f"{standalone[0].id}-layout", variant=IMPLICIT_VARIANT, children=tuple(standalone))
            layouts.append(_transform_layout(implicit, len(layouts)))
        else:
            logger.debug("exporter: dropping %d standalone block(s) on card %s", len(standalone), card.id)
        standalone.clear()

    for child in card.children:
        if is_block(child):
            standalone.append(child)
            continue
        flush()
        layouts.append(_transform_layout(child, len(layouts)))
    flush()

    return {"id": card.id, "title": card.title, "order": order, "layouts": layouts}


def _transform_layout(layout: Layout, order: int) -> dict[str, Any]:
    count = column_count(layout.variant)
    blocks: list[dict[str, Any]] = []
    for position, child in enumerate(layout.children):
        column = position % count
        for block in _leaf_blocks(child):
            blocks.append(_transform_block(block, len(blocks), column))
    return {"id": layout.id, "variant": layout.variant, "order": order, "blocks": blocks}


def _leaf_blocks(node: Layout | Block) -> list[Block]:
    if is_block(node):
        return [node]
    blocks: list[Block] = []
    for child in node.children:
        blocks.extend(_leaf_blocks(child))
    return blocks


def _transform_block(block: Block, order: int, column: int) -> dict[str, Any]:
    content = block.content.to_dict()
    return {
        "id": block.id,
        "type": content.get("type") or "UNKNOWN",
        "columnIndex": column,
        "order": order,
        "content": content,
    }
