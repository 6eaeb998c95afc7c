"""
EduVi Kernel -- Tree Query/Mutation Library

Pure functions over a snapshot: the tuple of Cards owned by a Document.
No side effects. No IO. Inputs are never modified.

Every mutation rebuilds only the path from the root to the target and
shares every untouched subtree with the input. A miss is not an error:
lookups return None and mutations hand back the input tuple itself, so a
caller can detect "nothing happened" with `is`.

The UI races selection state against tree state, so stale ids are normal
traffic here, not a bug.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, replace
from typing import TypeVar

from eduvi.kernel.types import Block, Card, Layout, Node, is_card, is_layout

T = TypeVar("T")

Cards = tuple[Card, ...]


@dataclass(frozen=True)
class ParentRef:
    """Where a node sits. `parent` is None for Cards (the Document is the parent)."""

    parent: Card | Layout | None
    index: int


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def iter_nodes(cards: Sequence[Card]) -> Iterator[Node]:
    """Depth-first, pre-order walk over every node in the snapshot."""
    for card in cards:
        yield card
        yield from _iter_children(card.children)


def _iter_children(children: Sequence[Layout | Block]) -> Iterator[Node]:
    for child in children:
        yield child
        yield from _iter_children(child.children)


def collect_ids(node: Node) -> list[str]:
    """Ids of a node and its whole subtree, pre-order."""
    ids = [node.id]
    for child in node.children:
        ids.extend(collect_ids(child))
    return ids


def contains(node: Node, node_id: str) -> bool:
    """True if node_id is the node itself or anywhere below it."""
    if node.id == node_id:
        return True
    return any(contains(child, node_id) for child in node.children)


def find_node(cards: Sequence[Card], node_id: str) -> Node | None:
    """Card ids are checked first, then each card's subtree in order."""
    for card in cards:
        if card.id == node_id:
            return card
    for card in cards:
        found = _find_in(card.children, node_id)
        if found is not None:
            return found
    return None


def _find_in(children: Sequence[Layout | Block], node_id: str) -> Node | None:
    for child in children:
        if child.id == node_id:
            return child
        if is_layout(child):
            found = _find_in(child.children, node_id)
            if found is not None:
                return found
    return None


def find_parent(cards: Sequence[Card], node_id: str) -> ParentRef | None:
    for i, card in enumerate(cards):
        if card.id == node_id:
            return ParentRef(parent=None, index=i)
    for card in cards:
        ref = _parent_in(card, node_id)
        if ref is not None:
            return ref
    return None


def _parent_in(parent: Card | Layout, node_id: str) -> ParentRef | None:
    for i, child in enumerate(parent.children):
        if child.id == node_id:
            return ParentRef(parent=parent, index=i)
        if is_layout(child):
            ref = _parent_in(child, node_id)
            if ref is not None:
                return ref
    return None


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def update_node(cards: Cards, node_id: str, updater: Callable[[Node], Node]) -> Cards:
    """
    Replace the node with updater(node), rebuilding its ancestors.

    The updater must keep the node's id and kind. A result that changes
    either, or that returns the node unchanged, leaves the snapshot as is.
    """
    for i, card in enumerate(cards):
        if card.id == node_id:
            new = _checked(card, updater(card))
            if new is card:
                return cards
            return cards[:i] + (new,) + cards[i + 1 :]

    for i, card in enumerate(cards):
        children = _update_children(card.children, node_id, updater)
        if children is not card.children:
            return cards[:i] + (replace(card, children=children),) + cards[i + 1 :]
    return cards


def _update_children(children: tuple, node_id: str, updater: Callable[[Node], Node]) -> tuple:
    for i, child in enumerate(children):
        if child.id == node_id:
            new = _checked(child, updater(child))
            if new is child:
                return children
            return children[:i] + (new,) + children[i + 1 :]
        if is_layout(child):
            grandchildren = _update_children(child.children, node_id, updater)
            if grandchildren is not child.children:
                return children[:i] + (replace(child, children=grandchildren),) + children[i + 1 :]
    return children


def _checked(old: Node, new: Node) -> Node:
    if new is None or new.kind != old.kind or new.id != old.id or new == old:
        return old
    return new


def delete_node(cards: Cards, node_id: str) -> Cards:
    """
    Remove the node and its subtree.
    Deleting the last remaining Card is refused (the snapshot comes back as is).
    """
    for i, card in enumerate(cards):
        if card.id == node_id:
            if len(cards) <= 1:
                return cards
            return cards[:i] + cards[i + 1 :]

    for i, card in enumerate(cards):
        children = _delete_in(card.children, node_id)
        if children is not card.children:
            return cards[:i] + (replace(card, children=children),) + cards[i + 1 :]
    return cards


def _delete_in(children: tuple, node_id: str) -> tuple:
    for i, child in enumerate(children):
        if child.id == node_id:
            return children[:i] + children[i + 1 :]
        if is_layout(child):
            grandchildren = _delete_in(child.children, node_id)
            if grandchildren is not child.children:
                return children[:i] + (replace(child, children=grandchildren),) + children[i + 1 :]
    return children


def move_node(seq: Sequence[T], from_index: int, to_index: int) -> Sequence[T]:
    """
    Take the element at from_index out and put it back at to_index.
    Equal or out-of-range indices return the input unchanged.
    """
    n = len(seq)
    if from_index == to_index or not (0 <= from_index < n and 0 <= to_index < n):
        return seq
    items = list(seq)
    item = items.pop(from_index)
    items.insert(to_index, item)
    return type(seq)(items)


def reorder_by_id(seq: Sequence[T], active_id: str, over_id: str) -> Sequence[T]:
    """Drag-and-drop reorder: move `active_id` to where `over_id` currently is."""
    if active_id == over_id:
        return seq
    ids = [item.id for item in seq]
    if active_id not in ids or over_id not in ids:
        return seq
    return move_node(seq, ids.index(active_id), ids.index(over_id))


def insert_card(cards: Cards, card: Card, index: int | None = None) -> Cards:
    if not is_card(card) or _has_any_id(cards, collect_ids(card)):
        return cards
    return _insert_at(cards, card, index)


def insert_node(cards: Cards, parent_id: str, node: Layout | Block, index: int | None = None) -> Cards:
    """
    Insert a Layout or Block into the children of a Card or Layout.

    `index` outside [0, len(children)] (or None) appends. Refused when the
    parent is missing or a Block, when `node` is a Card, or when any id in
    `node`'s subtree is already in use.
    """
    if is_card(node) or _has_any_id(cards, collect_ids(node)):
        return cards
    parent = find_node(cards, parent_id)
    if parent is None or not (is_card(parent) or is_layout(parent)):
        return cards

    def add(target: Node) -> Node:
        return replace(target, children=_insert_at(target.children, node, index))

    return update_node(cards, parent_id, add)


def _insert_at(seq: tuple, item: object, index: int | None) -> tuple:
    if index is not None and 0 <= index <= len(seq):
        return seq[:index] + (item,) + seq[index:]
    return seq + (item,)


def _has_any_id(cards: Sequence[Card], ids: list[str]) -> bool:
    if len(set(ids)) != len(ids):
        return True
    wanted = set(ids)
    return any(node.id in wanted for node in iter_nodes(cards))
