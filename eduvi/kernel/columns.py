"""
EduVi Kernel -- Column Distribution Resolver

Pure function: (layout, column_index) → Placement | None
No side effects. Deterministic: same input → same output, always.

Decides where a dropped item lands inside a multi-column Layout.
Two topologies exist and are never mixed:

  nested: every child is a Layout, one per column. The new node is
          appended to the child Layout at column_index.
  flat:   children are distributed round-robin: child i sits in
          column i % column_count. The new node is spliced into the
          flat list after the target column's tail.

Rules for the flat topology:
  - column_index omitted, or a one-column variant → append
  - target column empty → insert at column_index (clamped to the length)
  - otherwise → one row below the column's last item
    (last + column_count), clamped to the current length; when the
    target column is shorter than the fullest column the clamp stops
    at the last existing slot instead

Worked example (THREE_COLUMN, 5 children):
  columns: col0 = [0, 3], col1 = [1, 4], col2 = [2]
  target col2 → last = 2, 2 + 3 = 5, col2 is short, clamp to 4 → insert at 4

  TWO_COLUMN, 2 children: target col0 → last = 0, 0 + 2 = 2 → append,
  which is column 0 again
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from eduvi.kernel.types import COLUMN_COUNTS, Block, Layout, is_layout


@dataclass(frozen=True)
class Placement:
    """Resolved drop target. index None means append."""

    parent_id: str
    index: int | None = None


def column_count(variant: str) -> int:
    return COLUMN_COUNTS.get(variant, 1)


def column_of(position: int, variant: str) -> int:
    """Round-robin column of the child at `position`."""
    return position % column_count(variant)


def is_nested_columns(layout: Layout) -> bool:
    """True when the layout holds one child Layout per column."""
    return bool(layout.children) and all(is_layout(c) for c in layout.children)


def column_sizes(variant: str, children: Sequence[Layout | Block]) -> list[int]:
    """Item count per column under round-robin distribution."""
    count = column_count(variant)
    sizes = [0] * count
    for i in range(len(children)):
        sizes[i % count] += 1
    return sizes


def resolve_flat_index(
    variant: str,
    children: Sequence[Layout | Block],
    column_index: int | None,
) -> int | None:
    """
    Insertion index for a new item joining `column_index` of a flat layout.
    Returns None when column_index is outside the variant's columns.
    """
    n = len(children)
    count = column_count(variant)
    if column_index is None or count == 1:
        return n
    if not 0 <= column_index < count:
        return None

    sizes = column_sizes(variant, children)
    if sizes[column_index] == 0:
        return min(column_index, n)

    last = max(i for i in range(n) if i % count == column_index)
    if sizes[column_index] < max(sizes):
        return min(last + count, n - 1)
    return min(last + count, n)


def resolve_insertion(layout: Layout, column_index: int | None = None) -> Placement | None:
    """
    Where a new node dropped on `layout` (optionally on one of its columns) goes.
    None means the drop has no valid target and must be ignored.
    """
    if column_index is None:
        return Placement(parent_id=layout.id)

    if is_nested_columns(layout):
        if not 0 <= column_index < len(layout.children):
            return None
        return Placement(parent_id=layout.children[column_index].id)

    index = resolve_flat_index(layout.variant, layout.children, column_index)
    if index is None:
        return None
    return Placement(parent_id=layout.id, index=index)
