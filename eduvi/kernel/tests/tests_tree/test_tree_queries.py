"""
EduVi Tree -- Query Tests

find_node / find_parent / iter_nodes / collect_ids / contains over the
sample document.

Covers:
  - Lookup at every depth (card, direct child, nested layout, leaf)
  - Card-level ids are checked before any subtree
  - Misses return None, never raise
  - Parent references carry the index inside the parent
  - Pre-order walk order
"""

from eduvi.kernel.tree import collect_ids, contains, find_node, find_parent, iter_nodes
from eduvi.kernel.types import Block, Card, Layout, TextContent, is_block, is_card, is_layout

# ============================================================================
# find_node
# ============================================================================


class TestFindNode:
    def test_finds_card(self, cards):
        node = find_node(cards, "card-2")
        assert is_card(node)
        assert node.title == "Loops"

    def test_finds_direct_child(self, cards):
        node = find_node(cards, "layout-1")
        assert is_layout(node)
        assert node.variant == "TWO_COLUMN"

    def test_finds_deeply_nested_block(self, cards):
        node = find_node(cards, "block-d")
        assert is_block(node)
        assert node.content.html == "<p>block-d</p>"

    def test_miss_returns_none(self, cards):
        assert find_node(cards, "block-zzz") is None

    def test_empty_tree(self):
        assert find_node((), "card-1") is None

    def test_card_ids_checked_before_subtrees(self):
        # Same id on a nested block of the first card and on the second card.
        shadow = Block(id="dup", content=TextContent(html="<p>inner</p>"))
        cards = (Card(id="card-1", children=(shadow,)), Card(id="dup", title="the card"))
        node = find_node(cards, "dup")
        assert is_card(node)
        assert node.title == "the card"


# ============================================================================
# find_parent
# ============================================================================


class TestFindParent:
    def test_card_has_no_parent_node(self, cards):
        ref = find_parent(cards, "card-2")
        assert ref.parent is None
        assert ref.index == 1

    def test_block_in_layout(self, cards):
        ref = find_parent(cards, "block-b")
        assert ref.parent.id == "layout-1"
        assert ref.index == 1

    def test_direct_card_child(self, cards):
        ref = find_parent(cards, "block-title")
        assert ref.parent.id == "card-1"
        assert ref.index == 0

    def test_nested_layout_parent(self, cards):
        ref = find_parent(cards, "block-d")
        assert ref.parent.id == "layout-inner"
        assert ref.index == 0

    def test_miss_returns_none(self, cards):
        assert find_parent(cards, "nope") is None


# ============================================================================
# Walks
# ============================================================================


class TestWalks:
    def test_iter_nodes_is_pre_order(self, cards):
        assert [n.id for n in iter_nodes(cards)] == [
            "card-1",
            "block-title",
            "layout-1",
            "block-a",
            "block-b",
            "card-2",
            "layout-2",
            "block-c",
            "layout-inner",
            "block-d",
        ]

    def test_collect_ids_of_subtree(self, cards):
        layout = find_node(cards, "layout-2")
        assert collect_ids(layout) == ["layout-2", "block-c", "layout-inner", "block-d"]

    def test_collect_ids_of_block(self, cards):
        assert collect_ids(find_node(cards, "block-a")) == ["block-a"]

    def test_contains(self, cards):
        layout = find_node(cards, "layout-2")
        assert contains(layout, "layout-2")
        assert contains(layout, "block-d")
        assert not contains(layout, "block-a")

    def test_block_children_always_empty(self, cards):
        for node in iter_nodes(cards):
            if is_block(node):
                assert node.children == ()
                assert node.to_dict()["children"] == []

    def test_layout_is_not_a_card(self):
        layout = Layout(id="l")
        assert not is_card(layout)
        assert layout.kind == "LAYOUT"
