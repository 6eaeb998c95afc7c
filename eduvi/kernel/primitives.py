"""
EduVi Kernel -- Command Validation

Validates command payloads before they reach the reducer.
Validation is structural (well-formed?) not semantic (will it apply?).
The reducer handles semantic checks (does the parent exist? is it the
last card? etc.).
"""

from __future__ import annotations

from typing import Any

from eduvi.kernel.types import BLOCK_TYPES, COMMAND_TYPES, LAYOUT_VARIANTS

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_command(type: str, payload: dict[str, Any]) -> list[str]:
    """
    Validate a command's type and payload structure.
    Returns a list of error strings. Empty list = valid.

    This checks structural validity only:
    - Is the type recognized?
    - Is the payload a dict?
    - Are required fields present and of the right shape?

    It does NOT check whether referenced nodes exist.
    That's the reducer's job.
    """
    errors: list[str] = []

    if type not in COMMAND_TYPES:
        errors.append(f"Unknown command type: {type}")
        return errors  # can't validate payload for unknown type

    if not isinstance(payload, dict):
        errors.append("Payload must be a non-null object")
        return errors

    validator = _VALIDATORS.get(type)
    if validator:
        errors.extend(validator(payload))

    return errors


# ---------------------------------------------------------------------------
# Field checks
# ---------------------------------------------------------------------------


def _is_id(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _require_ids(p: dict, cmd: str, *keys: str) -> list[str]:
    errors: list[str] = []
    for key in keys:
        if key not in p:
            errors.append(f"{cmd} requires '{key}'")
        elif not _is_id(p[key]):
            errors.append(f"{cmd}: '{key}' must be a non-empty string")
    return errors


def _optional_index(p: dict, cmd: str, *keys: str) -> list[str]:
    return [
        f"{cmd}: '{key}' must be a non-negative integer"
        for key in keys
        if p.get(key) is not None and not _is_index(p[key])
    ]


def _require_dict(p: dict, cmd: str, key: str) -> list[str]:
    if key not in p:
        return [f"{cmd} requires '{key}'"]
    if not isinstance(p[key], dict):
        return [f"{cmd}: '{key}' must be an object"]
    return []


def _variant(p: dict, cmd: str) -> list[str]:
    if "variant" not in p:
        return [f"{cmd} requires 'variant'"]
    if p["variant"] not in LAYOUT_VARIANTS:
        return [f"{cmd}: unknown layout variant '{p['variant']}'"]
    return []


def _gap(p: dict, cmd: str) -> list[str]:
    gap = p.get("gap")
    if gap is not None and not _is_index(gap):
        return [f"{cmd}: 'gap' must be a non-negative integer"]
    return []


def _material(value: Any, cmd: str) -> list[str]:
    if not isinstance(value, dict):
        return [f"{cmd}: material must be an object"]
    errors: list[str] = []
    for key in ("id", "widgetType"):
        if not _is_id(value.get(key)):
            errors.append(f"{cmd}: material requires '{key}'")
    return errors


# ---------------------------------------------------------------------------
# Per-command validators
# ---------------------------------------------------------------------------


def _validate_card_add(p: dict) -> list[str]:
    errors = _require_ids(p, "card.add", "id")
    if "title" in p and not isinstance(p["title"], str):
        errors.append("card.add: 'title' must be a string")
    errors.extend(_optional_index(p, "card.add", "index"))
    children = p.get("children", [])
    if not isinstance(children, list) or not all(isinstance(c, dict) for c in children):
        errors.append("card.add: 'children' must be a list of node objects")
    return errors


def _validate_card_reorder(p: dict) -> list[str]:
    return _require_ids(p, "card.reorder", "active", "over")


def _validate_layout_add(p: dict) -> list[str]:
    errors = _require_ids(p, "layout.add", "id", "parent")
    errors.extend(_variant(p, "layout.add"))
    errors.extend(_gap(p, "layout.add"))
    errors.extend(_optional_index(p, "layout.add", "column"))
    return errors


def _validate_block_add(p: dict) -> list[str]:
    errors = _require_ids(p, "block.add", "id", "parent")
    if "block_type" not in p:
        errors.append("block.add requires 'block_type'")
    elif p["block_type"] not in BLOCK_TYPES:
        errors.append(f"block.add: unknown block type '{p['block_type']}'")
    if "content" in p and not isinstance(p["content"], dict):
        errors.append("block.add: 'content' must be an object")
    errors.extend(_optional_index(p, "block.add", "column"))
    return errors


def _validate_node_update(p: dict) -> list[str]:
    errors = _require_ids(p, "node.update", "id")
    errors.extend(_require_dict(p, "node.update", "props"))
    if not errors and not p["props"]:
        errors.append("node.update: 'props' must not be empty")
    return errors


def _validate_block_content(p: dict) -> list[str]:
    return _require_ids(p, "block.content", "id") + _require_dict(p, "block.content", "content")


def _validate_block_styles(p: dict) -> list[str]:
    return _require_ids(p, "block.styles", "id") + _require_dict(p, "block.styles", "styles")


def _validate_node_remove(p: dict) -> list[str]:
    return _require_ids(p, "node.remove", "id")


def _validate_node_reorder(p: dict) -> list[str]:
    return _require_ids(p, "node.reorder", "parent", "active", "over")


def _validate_node_move(p: dict) -> list[str]:
    errors = _require_ids(p, "node.move", "id", "parent")
    errors.extend(_optional_index(p, "node.move", "index", "column"))
    return errors


def _validate_material_drop(p: dict) -> list[str]:
    errors = _require_ids(p, "material.drop", "id", "parent")
    if "material" not in p:
        errors.append("material.drop requires 'material'")
    else:
        errors.extend(_material(p["material"], "material.drop"))
    if p.get("data") is not None and not isinstance(p["data"], dict):
        errors.append("material.drop: 'data' must be an object")
    errors.extend(_optional_index(p, "material.drop", "column"))
    return errors


def _validate_layout_group(p: dict) -> list[str]:
    errors = _require_ids(p, "layout.group", "id", "card")
    errors.extend(_variant(p, "layout.group"))
    errors.extend(_gap(p, "layout.group"))
    materials = p.get("materials")
    block_ids = p.get("block_ids")
    if not isinstance(materials, list) or not materials:
        errors.append("layout.group requires a non-empty 'materials' list")
        return errors
    for m in materials:
        errors.extend(_material(m, "layout.group"))
    if not isinstance(block_ids, list) or not all(_is_id(b) for b in block_ids):
        errors.append("layout.group requires 'block_ids' (list of ids)")
    elif len(block_ids) != len(materials):
        errors.append("layout.group: 'block_ids' and 'materials' must have the same length")
    return errors


def _validate_layout_wrap(p: dict) -> list[str]:
    errors = _require_ids(p, "layout.wrap", "id", "card")
    errors.extend(_variant(p, "layout.wrap"))
    errors.extend(_gap(p, "layout.wrap"))
    ids = p.get("ids")
    if not isinstance(ids, list) or not all(_is_id(i) for i in ids):
        errors.append("layout.wrap requires 'ids' (list of ids)")
    elif len(ids) < 2:
        errors.append("layout.wrap needs at least two nodes to wrap")
    return errors


def _validate_meta_update(p: dict) -> list[str]:
    errors: list[str] = []
    if "title" not in p and "description" not in p:
        errors.append("meta.update requires 'title' or 'description'")
    for key in ("title", "description"):
        if key in p and not isinstance(p[key], str):
            errors.append(f"meta.update: '{key}' must be a string")
    if isinstance(p.get("title"), str) and not p["title"].strip():
        errors.append("meta.update: 'title' must not be empty")
    return errors


_VALIDATORS = {
    "card.add": _validate_card_add,
    "card.reorder": _validate_card_reorder,
    "layout.add": _validate_layout_add,
    "block.add": _validate_block_add,
    "node.update": _validate_node_update,
    "block.content": _validate_block_content,
    "block.styles": _validate_block_styles,
    "node.remove": _validate_node_remove,
    "node.reorder": _validate_node_reorder,
    "node.move": _validate_node_move,
    "material.drop": _validate_material_drop,
    "layout.group": _validate_layout_group,
    "layout.wrap": _validate_layout_wrap,
    "meta.update": _validate_meta_update,
}
