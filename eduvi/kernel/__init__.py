"""
EduVi Kernel -- the document tree engine.

Pure components:
  types      -- node model (Card, Layout, Block) and content variants
  tree       -- find/update/delete/move over immutable snapshots
  columns    -- where a drop lands inside a multi-column layout
  reducer    -- (document, command) → document  (pure, deterministic)
  exporter   -- document → versioned .eduvi interchange dict

Stateful / IO:
  history    -- bounded undo/redo log of snapshots
  store      -- current document + navigation + history
  storage    -- document sources and export sinks
"""

from eduvi.kernel.columns import resolve_flat_index, resolve_insertion
from eduvi.kernel.exporter import export_filename, serialize, slugify, transform_document, validate_export
from eduvi.kernel.history import History
from eduvi.kernel.primitives import validate_command
from eduvi.kernel.reducer import reduce
from eduvi.kernel.store import DocumentStore
from eduvi.kernel.tree import delete_node, find_node, find_parent, move_node, update_node

__all__ = [
    "find_node",
    "find_parent",
    "update_node",
    "delete_node",
    "move_node",
    "resolve_flat_index",
    "resolve_insertion",
    "History",
    "validate_command",
    "reduce",
    "transform_document",
    "serialize",
    "validate_export",
    "slugify",
    "export_filename",
    "DocumentStore",
]
