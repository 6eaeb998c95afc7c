"""
EduVi Kernel -- Reducer

Pure function: (document, command) → ReduceResult
No side effects. No IO. Deterministic.

Ids and timestamps arrive inside the command, so the same document and the
same command always produce the same result. The input document is never
modified: the tree functions rebuild only the edited path.

A command that cannot apply is rejected, not raised: the result carries the
unchanged document, applied=False and an error "CODE: detail". The editor
fires commands speculatively from UI handlers, so a stale id or a raced
index must end as "no state change" and nothing worse.

Error codes:
  UNKNOWN_COMMAND   no handler for the command type
  NOT_FOUND         an id in the payload does not exist
  DUPLICATE_ID      a new node would reuse an existing id
  INVALID_PARENT    the target cannot hold the node (a Block, or a Card below root)
  LAST_CARD         removing the only card
  COLUMN_NOT_FOUND  the drop column does not exist on the target layout
  CYCLE             moving a node into its own subtree
  INVALID_VALUE     a payload value the node cannot take
  NO_CHANGE         the command would leave the document as it is
"""

from __future__ import annotations

import copy
from dataclasses import replace
from typing import Any

from eduvi.kernel.columns import Placement, resolve_insertion
from eduvi.kernel.materials import Material, block_from_material, new_block
from eduvi.kernel.tree import (
    collect_ids,
    contains,
    delete_node,
    find_node,
    insert_card,
    insert_node,
    reorder_by_id,
    update_node,
)
from eduvi.kernel.types import (
    DEFAULT_LAYOUT_GAP,
    LAYOUT_VARIANTS,
    Block,
    BlockStyles,
    Card,
    Command,
    Document,
    Layout,
    ReduceResult,
    child_from_dict,
    content_from_dict,
    is_block,
    is_card,
    is_layout,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def reduce(document: Document, command: Command) -> ReduceResult:
    """
    Apply one command to the current document.
    Returns new document + applied flag + error.

    Pure function. The input document is never modified.
    """
    handler = _HANDLERS.get(command.type)
    if handler is None:
        return _reject(document, "UNKNOWN_COMMAND", command.type)
    return handler(document, command)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _reject(doc: Document, code: str, msg: str) -> ReduceResult:
    return ReduceResult(document=doc, applied=False, error=f"{code}: {msg}")


def _ok(doc: Document, command: Command, cards: tuple[Card, ...], created: str | None = None) -> ReduceResult:
    if cards is doc.cards:
        return _reject(doc, "NO_CHANGE", command.type)
    return ReduceResult(
        document=replace(doc, cards=cards, updated_at=command.timestamp),
        applied=True,
        created=created,
    )


def _taken_id(doc: Document, node: Card | Layout | Block) -> str | None:
    """First id in node's subtree that repeats within it or already exists in the document."""
    seen: set[str] = set()
    for node_id in collect_ids(node):
        if node_id in seen or find_node(doc.cards, node_id) is not None:
            return node_id
        seen.add(node_id)
    return None


def _container(doc: Document, node_id: str) -> tuple[Card | Layout | None, ReduceResult | None]:
    """Lookup a node that can hold children. Returns (node, None) or (None, rejection)."""
    node = find_node(doc.cards, node_id)
    if node is None:
        return None, _reject(doc, "NOT_FOUND", node_id)
    if is_block(node):
        return None, _reject(doc, "INVALID_PARENT", f"Block '{node_id}' cannot have children")
    return node, None


def _resolve(doc: Document, parent: Card | Layout, column: int | None) -> tuple[Placement | None, ReduceResult | None]:
    """
    Cards take new nodes at the end; layouts go through the column resolver.
    """
    if is_card(parent):
        return Placement(parent_id=parent.id), None
    placement = resolve_insertion(parent, column)
    if placement is None:
        return None, _reject(doc, "COLUMN_NOT_FOUND", f"Column {column} on layout '{parent.id}'")
    return placement, None


def _place(doc: Document, command: Command, node: Layout | Block, parent_id: str, column: int | None) -> ReduceResult:
    taken = _taken_id(doc, node)
    if taken is not None:
        return _reject(doc, "DUPLICATE_ID", taken)
    parent, rejection = _container(doc, parent_id)
    if rejection:
        return rejection
    placement, rejection = _resolve(doc, parent, column)
    if rejection:
        return rejection
    cards = insert_node(doc.cards, placement.parent_id, node, placement.index)
    return _ok(doc, command, cards, created=node.id)


def _parse_material(doc: Document, data: dict[str, Any]) -> tuple[Material | None, ReduceResult | None]:
    try:
        return Material.from_dict(data), None
    except (KeyError, TypeError, ValueError) as e:
        return None, _reject(doc, "INVALID_VALUE", f"Malformed material: {e}")


# ---------------------------------------------------------------------------
# Card handlers
# ---------------------------------------------------------------------------


def _handle_card_add(doc: Document, command: Command) -> ReduceResult:
    p = command.payload
    try:
        children = tuple(child_from_dict(c) for c in p.get("children", []))
    except (KeyError, TypeError, ValueError) as e:
        return _reject(doc, "INVALID_VALUE", f"Malformed card children: {e}")

    card = Card(
        id=p["id"],
        title=p.get("title") or f"Slide {len(doc.cards) + 1}",
        children=children,
    )
    taken = _taken_id(doc, card)
    if taken is not None:
        return _reject(doc, "DUPLICATE_ID", taken)
    return _ok(doc, command, insert_card(doc.cards, card, p.get("index")), created=card.id)


def _handle_card_reorder(doc: Document, command: Command) -> ReduceResult:
    p = command.payload
    ids = {card.id for card in doc.cards}
    for key in ("active", "over"):
        if p[key] not in ids:
            return _reject(doc, "NOT_FOUND", p[key])
    return _ok(doc, command, reorder_by_id(doc.cards, p["active"], p["over"]))


# ---------------------------------------------------------------------------
# Node handlers
# ---------------------------------------------------------------------------


def _handle_layout_add(doc: Document, command: Command) -> ReduceResult:
    p = command.payload
    layout = Layout(
        id=p["id"],
        variant=p["variant"],
        gap=p.get("gap", DEFAULT_LAYOUT_GAP),
    )
    return _place(doc, command, layout, p["parent"], p.get("column"))


def _handle_block_add(doc: Document, command: Command) -> ReduceResult:
    p = command.payload
    block = new_block(p["id"], p["block_type"])
    if "content" in p:
        try:
            block = replace(block, content=content_from_dict({"type": p["block_type"], **p["content"]}))
        except (KeyError, TypeError, ValueError) as e:
            return _reject(doc, "INVALID_VALUE", f"Malformed content: {e}")
    return _place(doc, command, block, p["parent"], p.get("column"))


# wire prop → attribute, per node kind
_UPDATABLE: dict[str, dict[str, str]] = {
    "CARD": {
        "title": "title",
        "backgroundColor": "background_color",
        "backgroundImage": "background_image",
        "meta": "meta",
    },
    "LAYOUT": {"variant": "variant", "gap": "gap", "meta": "meta"},
    "BLOCK": {"isResizable": "is_resizable", "meta": "meta"},
}


def _handle_node_update(doc: Document, command: Command) -> ReduceResult:
    p = command.payload
    node = find_node(doc.cards, p["id"])
    if node is None:
        return _reject(doc, "NOT_FOUND", p["id"])

    allowed = _UPDATABLE[node.kind]
    changes: dict[str, Any] = {}
    for key, value in p["props"].items():
        if key not in allowed:
            return _reject(doc, "INVALID_VALUE", f"'{key}' cannot be set on {node.kind}")
        changes[allowed[key]] = copy.deepcopy(value)

    if "variant" in changes and changes["variant"] not in LAYOUT_VARIANTS:
        return _reject(doc, "INVALID_VALUE", f"Unknown layout variant '{changes['variant']}'")
    if "title" in changes and not isinstance(changes["title"], str):
        return _reject(doc, "INVALID_VALUE", "title must be a string")
    if "gap" in changes and changes["gap"] is not None:
        gap = changes["gap"]
        if not isinstance(gap, int) or isinstance(gap, bool) or gap < 0:
            return _reject(doc, "INVALID_VALUE", "gap must be a non-negative integer")

    return _ok(doc, command, update_node(doc.cards, node.id, lambda n: replace(n, **changes)))


def _handle_block_content(doc: Document, command: Command) -> ReduceResult:
    p = command.payload
    node = find_node(doc.cards, p["id"])
    if node is None:
        return _reject(doc, "NOT_FOUND", p["id"])
    if not is_block(node):
        return _reject(doc, "INVALID_VALUE", f"'{node.id}' is a {node.kind}, not a BLOCK")
    try:
        content = content_from_dict(p["content"])
    except (KeyError, TypeError, ValueError) as e:
        return _reject(doc, "INVALID_VALUE", f"Malformed content: {e}")
    return _ok(doc, command, update_node(doc.cards, node.id, lambda n: replace(n, content=content)))


def _handle_block_styles(doc: Document, command: Command) -> ReduceResult:
    p = command.payload
    node = find_node(doc.cards, p["id"])
    if node is None:
        return _reject(doc, "NOT_FOUND", p["id"])
    if not is_block(node):
        return _reject(doc, "INVALID_VALUE", f"'{node.id}' is a {node.kind}, not a BLOCK")
    for key, value in p["styles"].items():
        if value is not None and not isinstance(value, str):
            return _reject(doc, "INVALID_VALUE", f"style '{key}' must be a string or null")
    styles = (node.styles or BlockStyles()).patch(p["styles"])
    return _ok(doc, command, update_node(doc.cards, node.id, lambda n: replace(n, styles=styles)))


def _handle_node_remove(doc: Document, command: Command) -> ReduceResult:
    node_id = command.payload["id"]
    node = find_node(doc.cards, node_id)
    if node is None:
        return _reject(doc, "NOT_FOUND", node_id)
    if is_card(node) and len(doc.cards) <= 1:
        return _reject(doc, "LAST_CARD", "A document keeps at least one card")
    return _ok(doc, command, delete_node(doc.cards, node_id))


def _handle_node_reorder(doc: Document, command: Command) -> ReduceResult:
    p = command.payload
    parent, rejection = _container(doc, p["parent"])
    if rejection:
        return rejection
    ids = {child.id for child in parent.children}
    for key in ("active", "over"):
        if p[key] not in ids:
            return _reject(doc, "NOT_FOUND", f"'{p[key]}' is not a child of '{parent.id}'")

    children = reorder_by_id(parent.children, p["active"], p["over"])
    return _ok(doc, command, update_node(doc.cards, parent.id, lambda n: replace(n, children=children)))


def _handle_node_move(doc: Document, command: Command) -> ReduceResult:
    """
    Move a Layout or Block under another parent (or elsewhere in the same one).
    The target index/column is resolved against the tree with the node
    already taken out.
    """
    p = command.payload
    node = find_node(doc.cards, p["id"])
    if node is None:
        return _reject(doc, "NOT_FOUND", p["id"])
    if is_card(node):
        return _reject(doc, "INVALID_PARENT", "Cards only move with card.reorder")
    if contains(node, p["parent"]):
        return _reject(doc, "CYCLE", f"'{p['parent']}' is inside '{node.id}'")

    detached = replace(doc, cards=delete_node(doc.cards, node.id))
    parent, rejection = _container(detached, p["parent"])
    if rejection:
        return replace(rejection, document=doc)

    if p.get("index") is not None:
        placement = Placement(parent_id=parent.id, index=p["index"])
    else:
        placement, rejection = _resolve(detached, parent, p.get("column"))
        if rejection:
            return replace(rejection, document=doc)

    cards = insert_node(detached.cards, placement.parent_id, node, placement.index)
    if cards == doc.cards:
        return _reject(doc, "NO_CHANGE", command.type)
    return _ok(doc, command, cards)


# ---------------------------------------------------------------------------
# Material handlers
# ---------------------------------------------------------------------------


def _handle_material_drop(doc: Document, command: Command) -> ReduceResult:
    p = command.payload
    material, rejection = _parse_material(doc, p["material"])
    if rejection:
        return rejection
    block = block_from_material(p["id"], material, p.get("data"))
    return _place(doc, command, block, p["parent"], p.get("column"))


def _handle_layout_group(doc: Document, command: Command) -> ReduceResult:
    """Create a multi-column layout holding one block per material."""
    p = command.payload
    card = find_node(doc.cards, p["card"])
    if card is None:
        return _reject(doc, "NOT_FOUND", p["card"])
    if not is_card(card):
        return _reject(doc, "INVALID_PARENT", f"'{card.id}' is not a card")

    blocks: list[Block] = []
    for block_id, data in zip(p["block_ids"], p["materials"]):
        material, rejection = _parse_material(doc, data)
        if rejection:
            return rejection
        blocks.append(block_from_material(block_id, material))

    layout = Layout(
        id=p["id"],
        variant=p["variant"],
        gap=p.get("gap", DEFAULT_LAYOUT_GAP),
        children=tuple(blocks),
    )
    return _place(doc, command, layout, card.id, None)


def _handle_layout_wrap(doc: Document, command: Command) -> ReduceResult:
    """
    Group existing direct children of a card into a new layout.
    The wrapped nodes keep their relative order; the layout goes last.
    """
    p = command.payload
    card = find_node(doc.cards, p["card"])
    if card is None:
        return _reject(doc, "NOT_FOUND", p["card"])
    if not is_card(card):
        return _reject(doc, "INVALID_PARENT", f"'{card.id}' is not a card")
    if find_node(doc.cards, p["id"]) is not None:
        return _reject(doc, "DUPLICATE_ID", p["id"])

    wanted = set(p["ids"])
    wrapped = tuple(c for c in card.children if c.id in wanted)
    remaining = tuple(c for c in card.children if c.id not in wanted)
    if len(wrapped) < 2:
        return _reject(doc, "NOT_FOUND", "Fewer than two of the nodes are direct children of the card")

    wrapper = Layout(
        id=p["id"],
        variant=p["variant"],
        gap=p.get("gap", DEFAULT_LAYOUT_GAP),
        children=wrapped,
    )
    cards = update_node(doc.cards, card.id, lambda n: replace(n, children=remaining + (wrapper,)))
    return _ok(doc, command, cards, created=wrapper.id)


# ---------------------------------------------------------------------------
# Document handlers
# ---------------------------------------------------------------------------


def _handle_meta_update(doc: Document, command: Command) -> ReduceResult:
    p = command.payload
    title = p.get("title", doc.title)
    description = p.get("description", doc.description)
    if "title" in p and not (isinstance(title, str) and title.strip()):
        return _reject(doc, "INVALID_VALUE", "title must not be empty")
    if title == doc.title and description == doc.description:
        return _reject(doc, "NO_CHANGE", command.type)
    return ReduceResult(
        document=replace(doc, title=title, description=description, updated_at=command.timestamp),
        applied=True,
    )


_HANDLERS = {
    "card.add": _handle_card_add,
    "card.reorder": _handle_card_reorder,
    "layout.add": _handle_layout_add,
    "block.add": _handle_block_add,
    "node.update": _handle_node_update,
    "block.content": _handle_block_content,
    "block.styles": _handle_block_styles,
    "node.remove": _handle_node_remove,
    "node.reorder": _handle_node_reorder,
    "node.move": _handle_node_move,
    "material.drop": _handle_material_drop,
    "layout.group": _handle_layout_group,
    "layout.wrap": _handle_layout_wrap,
    "meta.update": _handle_meta_update,
}
