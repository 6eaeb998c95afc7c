"""
EduVi Kernel -- Shared Types (Node Model)

Data classes used across tree, columns, history, reducer, and exporter.
These are the contracts that bind the kernel together.

Tree shape:
- Document owns an ordered tuple of Cards (slides, the X axis)
- Card children are Layouts or Blocks (the Y axis)
- Layout children are Layouts or Blocks (nesting, the Z axis)
- Block is a leaf: its children are always empty

Every node is a frozen dataclass and every child sequence is a tuple, so a
snapshot is an immutable value. Two snapshots compare with ==, which is what
the history log uses to drop no-change commits.
Dict-valued fields (meta, material data, opaque content) are deep-copied
by from_dict and to_dict, so no caller holds a reference into a snapshot.

Wire shape (to_dict / from_dict) is camelCase, matching the document JSON
returned by the backend and the interchange file.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------

COMMAND_TYPES: set[str] = {
    # Cards
    "card.add",
    "card.reorder",
    # Tree nodes
    "layout.add",
    "block.add",
    "node.update",
    "node.remove",
    "node.reorder",
    "node.move",
    # Block payloads
    "block.content",
    "block.styles",
    # Materials / grouping
    "material.drop",
    "layout.group",
    "layout.wrap",
    # Document
    "meta.update",
}

NODE_TYPES: set[str] = {"CARD", "LAYOUT", "BLOCK"}

BLOCK_TYPES: set[str] = {
    "TEXT",
    "HEADING",
    "IMAGE",
    "VIDEO",
    "MATERIAL",
    # Interactive blocks for learning
    "QUIZ",
    "FLASHCARD",
    "FILL_BLANK",
}

WIDGET_TYPES: set[str] = {
    "MATERIAL_PDF",
    "MATERIAL_VIDEO",
    "MATERIAL_YOUTUBE",
    "MATERIAL_QUIZ",
    "MATERIAL_CHART",
    "MATERIAL_AUDIO",
    "MATERIAL_EMBED",
    "MATERIAL_CODE",
}

MATERIAL_CATEGORIES: set[str] = {"MEDIA", "INTERACTIVE", "DATA", "EMBED"}

VIDEO_PROVIDERS: set[str] = {"youtube", "vimeo", "direct"}

# Variant → column count. Anything not listed renders as one column.
COLUMN_COUNTS: dict[str, int] = {
    "SINGLE": 1,
    "TWO_COLUMN": 2,
    "THREE_COLUMN": 3,
    "SIDEBAR_LEFT": 2,
    "SIDEBAR_RIGHT": 2,
    "MASONRY": 1,
}

LAYOUT_VARIANTS: set[str] = set(COLUMN_COUNTS)

DEFAULT_LAYOUT_GAP = 4

BLANK_PATTERN = re.compile(r"\[([^\[\]]+)\]")


# ---------------------------------------------------------------------------
# Block content (tagged union)
# ---------------------------------------------------------------------------


def _drop_none(d: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


@dataclass(frozen=True)
class TextContent:
    """Rich text as HTML."""

    type: str = field(default="TEXT", init=False)
    html: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "html": self.html}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TextContent:
        return cls(html=d.get("html", ""))


@dataclass(frozen=True)
class HeadingContent:
    type: str = field(default="HEADING", init=False)
    html: str = ""
    level: int = 2

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "html": self.html, "level": self.level}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> HeadingContent:
        level = d.get("level", 2)
        if not isinstance(level, int) or not 1 <= level <= 6:
            raise ValueError(f"Heading level must be 1-6, got {level!r}")
        return cls(html=d.get("html", ""), level=level)


@dataclass(frozen=True)
class ImageContent:
    type: str = field(default="IMAGE", init=False)
    src: str = ""
    alt: str = ""
    caption: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({"type": self.type, "src": self.src, "alt": self.alt, "caption": self.caption})

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ImageContent:
        return cls(src=d.get("src", ""), alt=d.get("alt", ""), caption=d.get("caption"))


@dataclass(frozen=True)
class VideoContent:
    type: str = field(default="VIDEO", init=False)
    src: str = ""
    provider: str = "youtube"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "src": self.src, "provider": self.provider}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> VideoContent:
        provider = d.get("provider", "youtube")
        if provider not in VIDEO_PROVIDERS:
            raise ValueError(f"Unknown video provider: {provider!r}")
        return cls(src=d.get("src", ""), provider=provider)


@dataclass(frozen=True)
class MaterialContent:
    """A library widget. `data` is the widget-specific payload, kept opaque."""

    type: str = field(default="MATERIAL", init=False)
    widget_type: str = ""
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "widgetType": self.widget_type, "data": copy.deepcopy(self.data)}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> MaterialContent:
        return cls(widget_type=d.get("widgetType", ""), data=copy.deepcopy(d.get("data") or {}))


@dataclass(frozen=True)
class QuizOption:
    id: str
    text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> QuizOption:
        return cls(id=d["id"], text=d.get("text", ""))


@dataclass(frozen=True)
class QuizQuestion:
    id: str
    question: str = ""
    options: tuple[QuizOption, ...] = ()
    correct_index: int = 0
    explanation: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "question": self.question,
                "options": [o.to_dict() for o in self.options],
                "correctIndex": self.correct_index,
                "explanation": self.explanation,
            }
        )

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> QuizQuestion:
        return cls(
            id=d["id"],
            question=d.get("question", ""),
            options=tuple(QuizOption.from_dict(o) for o in d.get("options", [])),
            correct_index=d.get("correctIndex", 0),
            explanation=d.get("explanation"),
        )


@dataclass(frozen=True)
class QuizContent:
    type: str = field(default="QUIZ", init=False)
    title: str = ""
    questions: tuple[QuizQuestion, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "title": self.title,
            "questions": [q.to_dict() for q in self.questions],
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> QuizContent:
        return cls(
            title=d.get("title", ""),
            questions=tuple(QuizQuestion.from_dict(q) for q in d.get("questions", [])),
        )


@dataclass(frozen=True)
class FlashcardContent:
    type: str = field(default="FLASHCARD", init=False)
    front: str = ""
    back: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "front": self.front, "back": self.back}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> FlashcardContent:
        return cls(front=d.get("front", ""), back=d.get("back", ""))


@dataclass(frozen=True)
class FillBlankContent:
    """
    Sentence with [bracketed] answers that become blanks in the viewer.
    Example: "Java is a [programming] language" → blanks ("programming",)
    """

    type: str = field(default="FILL_BLANK", init=False)
    sentence: str = ""
    blanks: tuple[str, ...] = ()
    hint: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {"type": self.type, "sentence": self.sentence, "blanks": list(self.blanks), "hint": self.hint}
        )

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> FillBlankContent:
        sentence = d.get("sentence", "")
        blanks = d.get("blanks")
        if blanks is None:
            blanks = extract_blanks(sentence)
        return cls(sentence=sentence, blanks=tuple(blanks), hint=d.get("hint"))


@dataclass(frozen=True)
class OpaqueContent:
    """
    Content with a tag this kernel does not know.
    Kept verbatim so newer documents survive a load → export cycle.
    """

    type: str = "UNKNOWN"
    fields: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {**copy.deepcopy(self.fields), "type": self.type}


Content = (
    TextContent
    | HeadingContent
    | ImageContent
    | VideoContent
    | MaterialContent
    | QuizContent
    | FlashcardContent
    | FillBlankContent
    | OpaqueContent
)

_CONTENT_CLASSES: dict[str, Any] = {
    "TEXT": TextContent,
    "HEADING": HeadingContent,
    "IMAGE": ImageContent,
    "VIDEO": VideoContent,
    "MATERIAL": MaterialContent,
    "QUIZ": QuizContent,
    "FLASHCARD": FlashcardContent,
    "FILL_BLANK": FillBlankContent,
}


def content_from_dict(d: dict[str, Any]) -> Content:
    """
    Parse a content payload. Unknown or missing tags become OpaqueContent,
    never an error.
    """
    tag = d.get("type")
    cls = _CONTENT_CLASSES.get(tag) if isinstance(tag, str) else None
    if cls is None:
        rest = {k: copy.deepcopy(v) for k, v in d.items() if k != "type"}
        return OpaqueContent(type=tag if isinstance(tag, str) and tag else "UNKNOWN", fields=rest)
    return cls.from_dict(d)


# ---------------------------------------------------------------------------
# Block styles
# ---------------------------------------------------------------------------

_STYLE_KEYS = {
    "width": "width",
    "height": "height",
    "max_width": "maxWidth",
    "max_height": "maxHeight",
    "min_width": "minWidth",
    "min_height": "minHeight",
    "aspect_ratio": "aspectRatio",
}


@dataclass(frozen=True)
class BlockStyles:
    """Size constraints applied to a resizable block wrapper."""

    width: str | None = None
    height: str | None = None
    max_width: str | None = None
    max_height: str | None = None
    min_width: str | None = None
    min_height: str | None = None
    aspect_ratio: str | None = None

    def merge(self, other: BlockStyles) -> BlockStyles:
        """Values set on `other` (anything but None) win; unset ones keep ours."""
        merged = {}
        for attr in _STYLE_KEYS:
            value = getattr(other, attr)
            merged[attr] = value if value is not None else getattr(self, attr)
        return BlockStyles(**merged)

    def patch(self, d: dict[str, Any]) -> BlockStyles:
        """
        Apply a wire-shaped patch. Keys present in `d` win, an explicit
        null clears the value, absent keys keep ours.
        """
        patched = {attr: d[wire] if wire in d else getattr(self, attr) for attr, wire in _STYLE_KEYS.items()}
        return BlockStyles(**patched)

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({wire: getattr(self, attr) for attr, wire in _STYLE_KEYS.items()})

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> BlockStyles:
        return cls(**{attr: d.get(wire) for attr, wire in _STYLE_KEYS.items()})


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Block:
    """Leaf content node. Has no children field; `children` is always ()."""

    id: str
    content: Content = field(default_factory=TextContent)
    styles: BlockStyles | None = None
    is_resizable: bool | None = None
    meta: dict[str, Any] | None = None

    @property
    def kind(self) -> str:
        return "BLOCK"

    @property
    def children(self) -> tuple[()]:
        return ()

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "type": "BLOCK",
            "content": self.content.to_dict(),
            "children": [],
        }
        if self.styles is not None:
            d["styles"] = self.styles.to_dict()
        if self.is_resizable is not None:
            d["isResizable"] = self.is_resizable
        if self.meta is not None:
            d["meta"] = copy.deepcopy(self.meta)
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Block:
        if d.get("children"):
            raise ValueError(f"Block '{d.get('id')}' has children; blocks are leaf nodes")
        styles = d.get("styles")
        return cls(
            id=d["id"],
            content=content_from_dict(d.get("content") or {}),
            styles=BlockStyles.from_dict(styles) if styles is not None else None,
            is_resizable=d.get("isResizable"),
            meta=copy.deepcopy(d.get("meta")),
        )


@dataclass(frozen=True)
class Layout:
    """Structural container. The variant fixes the column count."""

    id: str
    variant: str = "SINGLE"
    children: tuple[Layout | Block, ...] = ()
    gap: int | None = DEFAULT_LAYOUT_GAP
    meta: dict[str, Any] | None = None

    @property
    def kind(self) -> str:
        return "LAYOUT"

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "type": "LAYOUT",
            "variant": self.variant,
            "children": [c.to_dict() for c in self.children],
        }
        if self.gap is not None:
            d["gap"] = self.gap
        if self.meta is not None:
            d["meta"] = copy.deepcopy(self.meta)
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Layout:
        return cls(
            id=d["id"],
            variant=d.get("variant", "SINGLE"),
            children=tuple(child_from_dict(c) for c in d.get("children", [])),
            gap=d.get("gap"),
            meta=copy.deepcopy(d.get("meta")),
        )


@dataclass(frozen=True)
class Card:
    """One slide. Only ever a direct child of the Document."""

    id: str
    title: str = ""
    children: tuple[Layout | Block, ...] = ()
    background_color: str | None = None
    background_image: str | None = None
    meta: dict[str, Any] | None = None

    @property
    def kind(self) -> str:
        return "CARD"

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "type": "CARD",
            "title": self.title,
            "children": [c.to_dict() for c in self.children],
        }
        if self.background_color is not None:
            d["backgroundColor"] = self.background_color
        if self.background_image is not None:
            d["backgroundImage"] = self.background_image
        if self.meta is not None:
            d["meta"] = copy.deepcopy(self.meta)
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Card:
        if d.get("type", "CARD") != "CARD":
            raise ValueError(f"Expected a CARD at document root, got {d.get('type')!r}")
        return cls(
            id=d["id"],
            title=d.get("title", ""),
            children=tuple(child_from_dict(c) for c in d.get("children", [])),
            background_color=d.get("backgroundColor"),
            background_image=d.get("backgroundImage"),
            meta=copy.deepcopy(d.get("meta")),
        )


Node = Card | Layout | Block
ChildNode = Layout | Block


@dataclass(frozen=True)
class Document:
    """
    Root aggregate. Owns its Cards exclusively.
    `active_card_id` is the card that was active when the document was saved.
    """

    id: str
    title: str = "Untitled"
    cards: tuple[Card, ...] = ()
    active_card_id: str | None = None
    created_at: str = ""
    updated_at: str = ""
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "cards": [c.to_dict() for c in self.cards],
            "activeCardId": self.active_card_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.description:
            d["description"] = self.description
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Document:
        return cls(
            id=d["id"],
            title=d.get("title", "Untitled"),
            cards=tuple(Card.from_dict(c) for c in d.get("cards", [])),
            active_card_id=d.get("activeCardId") or None,
            created_at=d.get("createdAt", ""),
            updated_at=d.get("updatedAt", ""),
            description=d.get("description", ""),
        )


@dataclass
class Command:
    """
    One granular edit requested by the editor.
    The reducer reads `type` and `payload`; `timestamp` becomes updated_at.
    """

    type: str
    payload: dict[str, Any]
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Command:
        return cls(type=d["type"], payload=d["payload"], timestamp=d["timestamp"])


@dataclass
class ReduceResult:
    """
    Result of applying one command to a document.
    The reducer never throws; it always returns one of these.
    """

    document: Document
    applied: bool
    error: str | None = None
    created: str | None = None  # id of the node the command created, if any


@dataclass
class ExportOptions:
    """Options controlling what the export transformer emits."""

    version: str | None = None  # None → configured schema version
    exported_at: str | None = None  # None → now
    include_standalone_blocks: bool = True  # False drops blocks sitting directly on a card


def child_from_dict(d: dict[str, Any]) -> Layout | Block:
    """Parse a Card/Layout child. Cards are rejected here: they only live at the root."""
    node_type = d.get("type")
    if node_type == "LAYOUT":
        return Layout.from_dict(d)
    if node_type == "BLOCK":
        return Block.from_dict(d)
    if node_type == "CARD":
        raise ValueError(f"Card '{d.get('id')}' cannot be nested inside another node")
    raise ValueError(f"Unknown node type: {node_type!r}")


def node_from_dict(d: dict[str, Any]) -> Node:
    if d.get("type") == "CARD":
        return Card.from_dict(d)
    return child_from_dict(d)


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def is_card(node: Any) -> bool:
    return isinstance(node, Card)


def is_layout(node: Any) -> bool:
    return isinstance(node, Layout)


def is_block(node: Any) -> bool:
    return isinstance(node, Block)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def extract_blanks(sentence: str) -> list[str]:
    """
    Pull bracketed answers out of a fill-in-the-blank sentence.

    Examples:
      "Java is a [programming] language" → ["programming"]
      "[H2O] is [water]"                  → ["H2O", "water"]
    """
    return [m.strip() for m in BLANK_PATTERN.findall(sentence)]


def now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
