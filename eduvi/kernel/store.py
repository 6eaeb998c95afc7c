"""
EduVi Kernel -- Document Store

The one stateful object of the engine: the current document, the editor's
navigation state, and the undo/redo history.

Every edit goes the same way:

  editor action → command → validate → reduce → history.commit → new state

Navigation (active card, selection) changes the store but never the
document, so it never reaches the history. Loading replaces the document
wholesale and resets the history to a single entry.

Operations never raise for stale ids or raced indices. They return None or
False and leave the state alone; the rejection is logged and kept on
`last_result` for callers that want the reason.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from eduvi.config import settings
from eduvi.kernel.commands import make_command, new_id
from eduvi.kernel.exporter import serialize, transform_document
from eduvi.kernel.history import History
from eduvi.kernel.materials import Material, get_material
from eduvi.kernel.primitives import validate_command
from eduvi.kernel.reducer import reduce
from eduvi.kernel.storage import DocumentLoadError, DocumentNotFound, DocumentSource
from eduvi.kernel.tree import contains, find_node
from eduvi.kernel.types import (
    Block,
    Card,
    Document,
    ExportOptions,
    Node,
    ReduceResult,
    TextContent,
    now_iso,
)

logger = logging.getLogger(__name__)

NEW_CARD_TEXT = "<p>New slide content...</p>"


class DocumentStore:
    """
    Holds the current document and routes every edit through the reducer
    and the history log.
    """

    def __init__(
        self,
        history_limit: int | None = None,
        clock: Callable[[], str] = now_iso,
        id_factory: Callable[[str], str] = new_id,
    ):
        self.history_limit = history_limit or settings.HISTORY_LIMIT
        self._clock = clock
        self._new_id = id_factory

        self.document: Document | None = None
        self.history: History[Document] | None = None
        self.active_card_id: str | None = None
        self.selected_node_id: str | None = None
        self.is_loading = False
        self.error: str | None = None
        self.last_result: ReduceResult | None = None

    # -- loading --

    async def load(self, source: DocumentSource, document_id: str) -> Document:
        """
        Fetch a document and make it current.
        On failure the current document and history are untouched; the
        error is recorded and re-raised.
        """
        self.is_loading = True
        self.error = None
        try:
            document = await source.get(document_id)
        except (DocumentNotFound, DocumentLoadError) as e:
            self.error = f"{type(e).__name__}: {e}"
            logger.warning("store: failed to load %s: %s", document_id, e)
            raise
        finally:
            self.is_loading = False

        self.set_document(document)
        logger.info("store: loaded %s (%d cards)", document.id, len(document.cards))
        return document

    def set_document(self, document: Document) -> None:
        """Replace the document wholesale. History restarts from it."""
        self.document = document
        if self.history is None:
            self.history = History(document, limit=self.history_limit)
        else:
            self.history.reset(document)
        card_ids = {c.id for c in document.cards}
        if document.active_card_id in card_ids:
            self.active_card_id = document.active_card_id
        else:
            self.active_card_id = document.cards[0].id if document.cards else None
        self.selected_node_id = None
        self.error = None

    # -- navigation --

    def set_active_card(self, card_id: str) -> bool:
        if self.document is None or not any(c.id == card_id for c in self.document.cards):
            return False
        self.active_card_id = card_id
        self.selected_node_id = None
        return True

    def set_selected_node(self, node_id: str | None) -> None:
        self.selected_node_id = node_id

    # -- commands --

    def apply(self, type: str, payload: dict[str, Any]) -> ReduceResult:
        """
        Validate, reduce, and commit one command.
        The returned result says whether anything changed and why not.
        """
        if self.document is None:
            result = ReduceResult(document=None, applied=False, error="NO_DOCUMENT: nothing loaded")
            return self._rejected(type, result)

        errors = validate_command(type, payload)
        if errors:
            result = ReduceResult(document=self.document, applied=False, error=f"INVALID_COMMAND: {'; '.join(errors)}")
            return self._rejected(type, result)

        result = reduce(self.document, make_command(type, payload, timestamp=self._clock()))
        if not result.applied:
            return self._rejected(type, result)

        self.last_result = result
        self.document = result.document
        self.history.commit(result.document)
        if result.created is not None:
            self.selected_node_id = result.created
            if type == "card.add":
                self.active_card_id = result.created
        self._repair_navigation()
        return result

    def _rejected(self, type: str, result: ReduceResult) -> ReduceResult:
        logger.warning("store: %s rejected: %s", type, result.error)
        self.last_result = result
        return result

    def _created(self, type: str, payload: dict[str, Any]) -> str | None:
        result = self.apply(type, payload)
        return result.created if result.applied else None

    def _repair_navigation(self) -> None:
        """Point active/selected state at nodes that still exist."""
        if self.document is None:
            return
        cards = self.document.cards
        if not any(c.id == self.active_card_id for c in cards):
            self.active_card_id = cards[0].id if cards else None
        if self.selected_node_id is not None and find_node(cards, self.selected_node_id) is None:
            self.selected_node_id = None

    # -- cards --

    def add_card(self, title: str | None = None, index: int | None = None) -> str | None:
        """New slide with one starter text block. Becomes the active card."""
        starter = Block(id=self._new_id("block"), content=TextContent(html=NEW_CARD_TEXT))
        payload: dict[str, Any] = {"id": self._new_id("card"), "children": [starter.to_dict()]}
        if title is not None:
            payload["title"] = title
        if index is not None:
            payload["index"] = index
        return self._created("card.add", payload)

    def update_card_title(self, card_id: str, title: str) -> bool:
        return self.update_node(card_id, {"title": title})

    def reorder_cards(self, active_id: str, over_id: str) -> bool:
        return self.apply("card.reorder", {"active": active_id, "over": over_id}).applied

    # -- nodes --

    def add_block(
        self,
        parent_id: str,
        block_type: str,
        column: int | None = None,
        content: dict[str, Any] | None = None,
    ) -> str | None:
        payload: dict[str, Any] = {"id": self._new_id("block"), "parent": parent_id, "block_type": block_type}
        if column is not None:
            payload["column"] = column
        if content is not None:
            payload["content"] = content
        return self._created("block.add", payload)

    def add_layout(
        self,
        parent_id: str,
        variant: str = "SINGLE",
        gap: int | None = None,
        column: int | None = None,
    ) -> str | None:
        payload: dict[str, Any] = {
            "id": self._new_id("layout"),
            "parent": parent_id,
            "variant": variant,
            "gap": settings.DEFAULT_GAP if gap is None else gap,
        }
        if column is not None:
            payload["column"] = column
        return self._created("layout.add", payload)

    def update_node(self, node_id: str, props: dict[str, Any]) -> bool:
        return self.apply("node.update", {"id": node_id, "props": props}).applied

    def update_block_content(self, block_id: str, content: dict[str, Any]) -> bool:
        return self.apply("block.content", {"id": block_id, "content": content}).applied

    def update_block_styles(self, block_id: str, styles: dict[str, Any]) -> bool:
        return self.apply("block.styles", {"id": block_id, "styles": styles}).applied

    def delete_node(self, node_id: str) -> bool:
        """Remove a node and its subtree. The last card is never removed."""
        return self.apply("node.remove", {"id": node_id}).applied

    def reorder_nodes(self, parent_id: str, active_id: str, over_id: str) -> bool:
        return self.apply("node.reorder", {"parent": parent_id, "active": active_id, "over": over_id}).applied

    def move_node_to(
        self,
        node_id: str,
        parent_id: str,
        index: int | None = None,
        column: int | None = None,
    ) -> bool:
        payload: dict[str, Any] = {"id": node_id, "parent": parent_id}
        if index is not None:
            payload["index"] = index
        if column is not None:
            payload["column"] = column
        return self.apply("node.move", payload).applied

    # -- materials --

    def drop_material(
        self,
        parent_id: str,
        material: Material | str,
        column: int | None = None,
        custom_data: dict[str, Any] | None = None,
    ) -> str | None:
        """Instantiate a catalog material (or a material id) under parent_id."""
        resolved = self._material(material)
        if resolved is None:
            return None
        payload: dict[str, Any] = {"id": self._new_id("block"), "parent": parent_id, "material": resolved.to_dict()}
        if column is not None:
            payload["column"] = column
        if custom_data is not None:
            payload["data"] = custom_data
        return self._created("material.drop", payload)

    def create_widget_group(
        self,
        card_id: str,
        variant: str,
        materials: list[Material | str],
        gap: int | None = None,
    ) -> str | None:
        """One layout holding a fresh block per material, appended to the card."""
        resolved = [self._material(m) for m in materials]
        if not resolved or any(m is None for m in resolved):
            return None
        return self._created(
            "layout.group",
            {
                "id": self._new_id("layout"),
                "card": card_id,
                "variant": variant,
                "gap": settings.DEFAULT_GAP if gap is None else gap,
                "materials": [m.to_dict() for m in resolved],
                "block_ids": [self._new_id("block") for _ in resolved],
            },
        )

    def wrap_blocks_in_layout(
        self,
        card_id: str,
        node_ids: list[str],
        variant: str,
        gap: int | None = None,
    ) -> str | None:
        return self._created(
            "layout.wrap",
            {
                "id": self._new_id("layout"),
                "card": card_id,
                "variant": variant,
                "gap": settings.DEFAULT_GAP if gap is None else gap,
                "ids": list(node_ids),
            },
        )

    def _material(self, material: Material | str) -> Material | None:
        if isinstance(material, Material):
            return material
        found = get_material(material)
        if found is None:
            logger.warning("store: unknown material %s", material)
        return found

    # -- document --

    def update_meta(self, title: str | None = None, description: str | None = None) -> bool:
        payload: dict[str, Any] = {}
        if title is not None:
            payload["title"] = title
        if description is not None:
            payload["description"] = description
        return self.apply("meta.update", payload).applied

    # -- history --

    @property
    def can_undo(self) -> bool:
        return self.history is not None and self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history is not None and self.history.can_redo

    def undo(self) -> bool:
        if self.history is None:
            return False
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self.document = snapshot
        self._repair_navigation()
        return True

    def redo(self) -> bool:
        if self.history is None:
            return False
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self.document = snapshot
        self._repair_navigation()
        return True

    # -- selectors --

    @property
    def cards(self) -> tuple[Card, ...]:
        return self.document.cards if self.document is not None else ()

    @property
    def active_card(self) -> Card | None:
        for card in self.cards:
            if card.id == self.active_card_id:
                return card
        return None

    def find_node(self, node_id: str) -> Node | None:
        return find_node(self.cards, node_id)

    def is_in_active_card(self, node_id: str) -> bool:
        card = self.active_card
        return card is not None and contains(card, node_id)

    def export(self, options: ExportOptions | None = None) -> dict[str, Any] | None:
        """Interchange dict for the current document, or None before a load."""
        if self.document is None:
            return None
        return transform_document(self.document, options)

    def export_json(self, options: ExportOptions | None = None) -> str | None:
        if self.document is None:
            return None
        return serialize(self.document, options)
