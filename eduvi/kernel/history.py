"""
EduVi Kernel -- History

Linear undo/redo over whole-document snapshots.

The log holds snapshots oldest → newest and a cursor points at the present
one. Snapshots are immutable values, so the log stores them as is, with no
copying.

  commit(new)  no-op if new == present; otherwise drop everything after the
               cursor (the redo branch), append, move the cursor to the end,
               and evict the oldest entries past the limit
  undo()       cursor - 1, returns that snapshot (None at the start)
  redo()       cursor + 1, returns that snapshot (None at the end)

History is linear, not a tree of edits: committing after an undo discards
the undone future for good.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

S = TypeVar("S")

DEFAULT_LIMIT = 50


class History(Generic[S]):
    """Bounded snapshot log with a cursor."""

    def __init__(self, initial: S, limit: int = DEFAULT_LIMIT):
        if limit < 1:
            raise ValueError("history limit must be at least 1")
        self.limit = limit
        self._log: list[S] = [initial]
        self._cursor = 0

        # Callbacks
        self.on_change: Callable[[], None] | None = None

    @property
    def present(self) -> S:
        return self._log[self._cursor]

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._log) - 1

    def __len__(self) -> int:
        return len(self._log)

    def commit(self, snapshot: S) -> bool:
        """Record a new present. Returns False when nothing changed."""
        if snapshot == self.present:
            return False

        del self._log[self._cursor + 1 :]
        self._log.append(snapshot)
        while len(self._log) > self.limit:
            self._log.pop(0)
        self._cursor = len(self._log) - 1

        self._notify_changed()
        return True

    def undo(self) -> S | None:
        if not self.can_undo:
            return None
        self._cursor -= 1
        self._notify_changed()
        return self._log[self._cursor]

    def redo(self) -> S | None:
        if not self.can_redo:
            return None
        self._cursor += 1
        self._notify_changed()
        return self._log[self._cursor]

    def reset(self, snapshot: S) -> None:
        """Forget everything; the log becomes [snapshot]."""
        self._log = [snapshot]
        self._cursor = 0
        self._notify_changed()

    def _notify_changed(self) -> None:
        if self.on_change:
            self.on_change()
