"""
EduVi Kernel -- Command Construction

Factory functions for creating well-formed commands.
Used by the document store to wrap editor actions before feeding them to
the reducer, and by tests to build commands concisely.
"""

from __future__ import annotations

import uuid
from typing import Any

from eduvi.kernel.types import Command, now_iso


def make_command(
    type: str,
    payload: dict[str, Any],
    *,
    timestamp: str | None = None,
) -> Command:
    """
    Build a complete Command from minimal inputs.
    The timestamp defaults to now; tests pin it for deterministic snapshots.
    """
    return Command(type=type, payload=payload, timestamp=timestamp or now_iso())


def new_id(prefix: str) -> str:
    """Fresh node id, e.g. block-1b4e28ba-2fa1-11d2-883f-0016d3cca427."""
    return f"{prefix}-{uuid.uuid4()}"
