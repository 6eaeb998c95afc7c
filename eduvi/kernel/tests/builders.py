"""
Document builders shared by the kernel tests.

Timestamps are pinned so snapshots compare exactly.
"""

from eduvi.kernel.types import Block, Card, Document, HeadingContent, Layout, TextContent

CREATED = "2024-03-01T09:00:00Z"
TS = "2024-03-02T10:00:00Z"


def text(block_id: str, html: str | None = None) -> Block:
    return Block(id=block_id, content=TextContent(html=html or f"<p>{block_id}</p>"))


def sample_document() -> Document:
    """
    card-1  Welcome
      block-title            HEADING
      layout-1  TWO_COLUMN
        block-a, block-b
    card-2  Loops
      layout-2  SINGLE
        block-c
        layout-inner  SINGLE
          block-d
    """
    return Document(
        id="doc-1",
        title="Intro to Python",
        created_at=CREATED,
        updated_at=CREATED,
        active_card_id="card-1",
        cards=(
            Card(
                id="card-1",
                title="Welcome",
                children=(
                    Block(id="block-title", content=HeadingContent(html="Welcome", level=1)),
                    Layout(id="layout-1", variant="TWO_COLUMN", children=(text("block-a"), text("block-b"))),
                ),
            ),
            Card(
                id="card-2",
                title="Loops",
                children=(
                    Layout(
                        id="layout-2",
                        variant="SINGLE",
                        children=(
                            text("block-c"),
                            Layout(id="layout-inner", variant="SINGLE", children=(text("block-d"),)),
                        ),
                    ),
                ),
            ),
        ),
    )


def single_card_document(card_id: str = "c1") -> Document:
    return Document(id="doc-single", title="One slide", created_at=CREATED, updated_at=CREATED, cards=(Card(id=card_id),))
