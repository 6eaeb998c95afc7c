"""
EduVi Reducer -- Happy Path Tests

One test per command type, applied to the sample document.
Each test verifies: applied=True, the tree change, and updated_at stamped
from the command timestamp.

Covers:
  - card.add / card.reorder
  - layout.add / block.add (with column resolution and content override)
  - node.update / block.content / block.styles
  - node.remove / node.reorder / node.move
  - material.drop / layout.group / layout.wrap
  - meta.update
  - Purity: the input document is never modified
  - Determinism: same document + same command → equal results
"""

import pytest

from eduvi.kernel.commands import make_command
from eduvi.kernel.materials import get_material
from eduvi.kernel.reducer import reduce
from eduvi.kernel.tests.builders import TS, text
from eduvi.kernel.tree import find_node
from eduvi.kernel.types import (
    BlockStyles,
    Card,
    Document,
    HeadingContent,
    Layout,
    MaterialContent,
    QuizContent,
    TextContent,
)


def cmd(type: str, payload: dict):
    return make_command(type, payload, timestamp=TS)


def apply(doc, type, payload):
    r = reduce(doc, cmd(type, payload))
    assert r.applied, r.error
    assert r.document.updated_at == TS
    return r


def child_ids(document, node_id):
    return [c.id for c in find_node(document.cards, node_id).children]


# ============================================================================
# Cards
# ============================================================================


class TestCards:
    def test_card_add_at_index(self, doc):
        r = apply(doc, "card.add", {"id": "card-new", "title": "Recap", "index": 0})
        assert [c.id for c in r.document.cards] == ["card-new", "card-1", "card-2"]
        assert r.created == "card-new"

    def test_card_add_default_title(self, doc):
        r = apply(doc, "card.add", {"id": "card-new"})
        assert r.document.cards[-1].title == "Slide 3"

    def test_card_add_with_children(self, doc):
        r = apply(doc, "card.add", {"id": "card-new", "children": [text("block-new").to_dict()]})
        assert child_ids(r.document, "card-new") == ["block-new"]

    def test_card_reorder(self, doc):
        r = apply(doc, "card.reorder", {"active": "card-2", "over": "card-1"})
        assert [c.id for c in r.document.cards] == ["card-2", "card-1"]


# ============================================================================
# Adding nodes
# ============================================================================


class TestAdd:
    def test_layout_add_to_card(self, doc):
        r = apply(doc, "layout.add", {"id": "layout-new", "parent": "card-1", "variant": "THREE_COLUMN"})
        layout = find_node(r.document.cards, "layout-new")
        assert layout.variant == "THREE_COLUMN"
        assert layout.gap == 4
        assert child_ids(r.document, "card-1")[-1] == "layout-new"

    def test_layout_add_with_gap(self, doc):
        r = apply(doc, "layout.add", {"id": "layout-new", "parent": "layout-2", "variant": "SINGLE", "gap": 8})
        assert find_node(r.document.cards, "layout-new").gap == 8

    def test_block_add_default_content(self, doc):
        r = apply(doc, "block.add", {"id": "block-new", "parent": "card-2", "block_type": "HEADING"})
        block = find_node(r.document.cards, "block-new")
        assert block.content == HeadingContent(html="New Heading", level=2)
        assert r.created == "block-new"

    def test_block_add_content_override(self, doc):
        r = apply(
            doc,
            "block.add",
            {"id": "block-new", "parent": "card-2", "block_type": "HEADING", "content": {"html": "Hi", "level": 3}},
        )
        assert find_node(r.document.cards, "block-new").content == HeadingContent(html="Hi", level=3)

    def test_block_add_into_column(self):
        layout = Layout(id="grid", variant="THREE_COLUMN", children=tuple(text(f"b{i}") for i in range(5)))
        doc = Document(id="d", cards=(Card(id="c", children=(layout,)),))
        r = apply(doc, "block.add", {"id": "new", "parent": "grid", "block_type": "TEXT", "column": 2})
        assert child_ids(r.document, "grid") == ["b0", "b1", "b2", "b3", "new", "b4"]

    def test_block_add_into_nested_column(self):
        layout = Layout(
            id="grid",
            variant="TWO_COLUMN",
            children=(Layout(id="col-0", children=(text("x"),)), Layout(id="col-1")),
        )
        doc = Document(id="d", cards=(Card(id="c", children=(layout,)),))
        r = apply(doc, "block.add", {"id": "new", "parent": "grid", "block_type": "TEXT", "column": 1})
        assert child_ids(r.document, "col-1") == ["new"]
        assert child_ids(r.document, "col-0") == ["x"]

    def test_column_ignored_on_card(self, doc):
        r = apply(doc, "block.add", {"id": "block-new", "parent": "card-1", "block_type": "TEXT", "column": 1})
        assert child_ids(r.document, "card-1")[-1] == "block-new"


# ============================================================================
# Updates
# ============================================================================


class TestUpdate:
    def test_card_title(self, doc):
        r = apply(doc, "node.update", {"id": "card-1", "props": {"title": "Hello"}})
        assert r.document.cards[0].title == "Hello"

    def test_card_background(self, doc):
        r = apply(doc, "node.update", {"id": "card-2", "props": {"backgroundColor": "#fafafa"}})
        assert r.document.cards[1].background_color == "#fafafa"

    def test_layout_variant(self, doc):
        r = apply(doc, "node.update", {"id": "layout-1", "props": {"variant": "SIDEBAR_LEFT", "gap": 2}})
        layout = find_node(r.document.cards, "layout-1")
        assert (layout.variant, layout.gap) == ("SIDEBAR_LEFT", 2)

    def test_block_resizable(self, doc):
        r = apply(doc, "node.update", {"id": "block-a", "props": {"isResizable": True}})
        assert find_node(r.document.cards, "block-a").is_resizable is True

    def test_block_content_replaced(self, doc):
        r = apply(doc, "block.content", {"id": "block-a", "content": {"type": "TEXT", "html": "<p>new</p>"}})
        assert find_node(r.document.cards, "block-a").content == TextContent(html="<p>new</p>")

    def test_block_content_changes_variant(self, doc):
        quiz = {"type": "QUIZ", "title": "Check", "questions": []}
        r = apply(doc, "block.content", {"id": "block-a", "content": quiz})
        assert isinstance(find_node(r.document.cards, "block-a").content, QuizContent)

    def test_block_styles_merge(self, doc):
        r = apply(doc, "block.styles", {"id": "block-a", "styles": {"width": "50%"}})
        r = apply(r.document, "block.styles", {"id": "block-a", "styles": {"aspectRatio": "16/9"}})
        styles = find_node(r.document.cards, "block-a").styles
        assert styles == BlockStyles(width="50%", aspect_ratio="16/9")

    def test_block_styles_null_clears(self, doc):
        r = apply(doc, "block.styles", {"id": "block-a", "styles": {"width": "50%", "height": "10px"}})
        r = apply(r.document, "block.styles", {"id": "block-a", "styles": {"width": None, "height": "0"}})
        assert find_node(r.document.cards, "block-a").styles == BlockStyles(height="0")


# ============================================================================
# Remove / reorder / move
# ============================================================================


class TestStructure:
    def test_remove_subtree(self, doc):
        r = apply(doc, "node.remove", {"id": "layout-2"})
        assert find_node(r.document.cards, "block-d") is None

    def test_remove_card(self, doc):
        r = apply(doc, "node.remove", {"id": "card-1"})
        assert [c.id for c in r.document.cards] == ["card-2"]

    def test_reorder_in_layout(self, doc):
        r = apply(doc, "node.reorder", {"parent": "layout-1", "active": "block-b", "over": "block-a"})
        assert child_ids(r.document, "layout-1") == ["block-b", "block-a"]

    def test_reorder_in_card(self, doc):
        r = apply(doc, "node.reorder", {"parent": "card-1", "active": "block-title", "over": "layout-1"})
        assert child_ids(r.document, "card-1") == ["layout-1", "block-title"]

    def test_move_to_other_card(self, doc):
        r = apply(doc, "node.move", {"id": "block-a", "parent": "card-2", "index": 0})
        assert child_ids(r.document, "card-2") == ["block-a", "layout-2"]
        assert child_ids(r.document, "layout-1") == ["block-b"]

    def test_move_within_parent(self, doc):
        r = apply(doc, "node.move", {"id": "block-b", "parent": "layout-1", "index": 0})
        assert child_ids(r.document, "layout-1") == ["block-b", "block-a"]

    def test_move_layout_with_subtree(self, doc):
        r = apply(doc, "node.move", {"id": "layout-inner", "parent": "card-1"})
        assert child_ids(r.document, "card-1") == ["block-title", "layout-1", "layout-inner"]
        assert child_ids(r.document, "layout-inner") == ["block-d"]

    def test_move_into_column(self, doc):
        r = apply(doc, "node.move", {"id": "block-c", "parent": "layout-1", "column": 0})
        # TWO_COLUMN [a, b]: a full row, so c starts the next row in column 0
        assert child_ids(r.document, "layout-1") == ["block-a", "block-b", "block-c"]


# ============================================================================
# Materials
# ============================================================================


class TestMaterials:
    def test_drop_material(self, doc):
        material = get_material("material-quiz")
        r = apply(doc, "material.drop", {"id": "block-quiz", "parent": "card-2", "material": material.to_dict()})
        block = find_node(r.document.cards, "block-quiz")
        assert isinstance(block.content, MaterialContent)
        assert block.content.widget_type == "MATERIAL_QUIZ"
        assert block.content.data == material.default_data
        assert block.content.data is not material.default_data
        assert block.styles == material.default_styles
        assert block.is_resizable is True

    def test_drop_with_custom_data(self, doc):
        material = get_material("material-youtube")
        r = apply(
            doc,
            "material.drop",
            {"id": "yt", "parent": "layout-1", "material": material.to_dict(), "data": {"videoId": "abc"}},
        )
        assert find_node(r.document.cards, "yt").content.data == {"videoId": "abc"}

    def test_layout_group(self, doc):
        materials = [get_material("material-chart-bar").to_dict(), get_material("material-chart-pie").to_dict()]
        r = apply(
            doc,
            "layout.group",
            {"id": "group", "card": "card-1", "variant": "TWO_COLUMN", "materials": materials, "block_ids": ["g1", "g2"]},
        )
        assert child_ids(r.document, "card-1")[-1] == "group"
        assert child_ids(r.document, "group") == ["g1", "g2"]
        assert r.created == "group"

    def test_layout_wrap(self):
        card = Card(id="c", children=(text("x"), text("y"), text("z")))
        doc = Document(id="d", cards=(card,))
        r = apply(doc, "layout.wrap", {"id": "wrap", "card": "c", "variant": "TWO_COLUMN", "ids": ["z", "x"]})
        assert child_ids(r.document, "c") == ["y", "wrap"]
        assert child_ids(r.document, "wrap") == ["x", "z"]
        assert find_node(r.document.cards, "wrap").variant == "TWO_COLUMN"


# ============================================================================
# Document / purity
# ============================================================================


class TestDocument:
    def test_meta_update(self, doc):
        r = apply(doc, "meta.update", {"title": "Python 101", "description": "Week one"})
        assert (r.document.title, r.document.description) == ("Python 101", "Week one")

    def test_input_untouched(self, doc):
        before = doc.to_dict()
        reduce(doc, cmd("node.remove", {"id": "layout-2"}))
        reduce(doc, cmd("meta.update", {"title": "x"}))
        assert doc.to_dict() == before

    @pytest.mark.parametrize(
        "type, payload",
        [
            ("card.add", {"id": "card-new"}),
            ("block.add", {"id": "b", "parent": "layout-1", "block_type": "TEXT", "column": 0}),
            ("node.move", {"id": "block-d", "parent": "card-1"}),
        ],
    )
    def test_deterministic(self, doc, type, payload):
        first = reduce(doc, cmd(type, payload))
        second = reduce(doc, cmd(type, payload))
        assert first.applied
        assert first.document == second.document
