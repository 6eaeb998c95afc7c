"""
EduVi Kernel -- Material Catalog

Library entries a user can drag onto a slide, and the factories that turn a
drop (or an "add block" click) into a fresh Block.

A Material is not a tree node. It is only a template: dropping one copies
its default data and styles into a new resizable MATERIAL block, so edits
to the block never reach back into the catalog.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from eduvi.kernel.types import (
    Block,
    BlockStyles,
    Content,
    FillBlankContent,
    FlashcardContent,
    HeadingContent,
    ImageContent,
    MaterialContent,
    QuizContent,
    QuizOption,
    QuizQuestion,
    TextContent,
    VideoContent,
    extract_blanks,
)


@dataclass(frozen=True)
class Material:
    id: str
    name: str
    widget_type: str
    category: str
    description: str = ""
    icon: str = ""
    preview_url: str | None = None
    default_data: dict[str, Any] = field(default_factory=dict)
    default_styles: BlockStyles = field(default_factory=BlockStyles)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "widgetType": self.widget_type,
            "icon": self.icon,
            "category": self.category,
            "defaultData": copy.deepcopy(self.default_data),
            "defaultStyles": self.default_styles.to_dict(),
        }
        if self.preview_url is not None:
            d["previewUrl"] = self.preview_url
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Material:
        return cls(
            id=d["id"],
            name=d.get("name", d["id"]),
            widget_type=d["widgetType"],
            category=d.get("category", "EMBED"),
            description=d.get("description", ""),
            icon=d.get("icon", ""),
            preview_url=d.get("previewUrl"),
            default_data=copy.deepcopy(d.get("defaultData") or {}),
            default_styles=BlockStyles.from_dict(d.get("defaultStyles") or {}),
        )


# ---------------------------------------------------------------------------
# Default catalog
# ---------------------------------------------------------------------------

DEFAULT_MATERIALS: tuple[Material, ...] = (
    # MEDIA
    Material(
        id="material-pdf-viewer",
        name="PDF Viewer",
        description="Embed and display PDF documents",
        widget_type="MATERIAL_PDF",
        icon="FileText",
        category="MEDIA",
        preview_url="/previews/pdf-viewer.png",
        default_data={
            "src": "https://www.w3.org/WAI/WCAG21/Techniques/pdf/img/table-word.pdf",
            "title": "Sample PDF Document",
            "totalPages": 3,
        },
        default_styles=BlockStyles(width="100%", max_width="800px", aspect_ratio="3/4"),
    ),
    Material(
        id="material-video-player",
        name="Video Player",
        description="Embed custom video content",
        widget_type="MATERIAL_VIDEO",
        icon="Video",
        category="MEDIA",
        preview_url="/previews/video-player.png",
        default_data={
            "src": "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/BigBuckBunny.mp4",
            "title": "Sample Video",
            "poster": "https://images.unsplash.com/photo-1611162616475-46b635cb6868?w=800",
        },
        default_styles=BlockStyles(width="100%", max_width="800px", aspect_ratio="16/9"),
    ),
    Material(
        id="material-youtube",
        name="YouTube Embed",
        description="Embed YouTube videos",
        widget_type="MATERIAL_YOUTUBE",
        icon="Youtube",
        category="MEDIA",
        preview_url="/previews/youtube.png",
        default_data={"videoId": "dQw4w9WgXcQ", "title": "YouTube Video", "autoplay": False},
        default_styles=BlockStyles(width="100%", max_width="800px", aspect_ratio="16/9"),
    ),
    Material(
        id="material-audio-player",
        name="Audio Player",
        description="Embed audio content",
        widget_type="MATERIAL_AUDIO",
        icon="Music",
        category="MEDIA",
        preview_url="/previews/audio.png",
        default_data={
            "src": "https://www.soundhelix.com/examples/mp3/SoundHelix-Song-1.mp3",
            "title": "Sample Audio Track",
            "artist": "SoundHelix",
        },
        default_styles=BlockStyles(width="100%", max_width="500px"),
    ),
    # INTERACTIVE
    Material(
        id="material-quiz",
        name="Quiz",
        description="Interactive multiple choice quiz",
        widget_type="MATERIAL_QUIZ",
        icon="HelpCircle",
        category="INTERACTIVE",
        preview_url="/previews/quiz.png",
        default_data={
            "title": "Knowledge Check",
            "questions": [
                {
                    "id": "q1",
                    "question": "What is the capital of France?",
                    "options": ["London", "Berlin", "Paris", "Madrid"],
                    "correctIndex": 2,
                },
                {
                    "id": "q2",
                    "question": "Which planet is known as the Red Planet?",
                    "options": ["Venus", "Mars", "Jupiter", "Saturn"],
                    "correctIndex": 1,
                },
            ],
        },
        default_styles=BlockStyles(width="100%", max_width="600px"),
    ),
    # DATA
    Material(
        id="material-chart-bar",
        name="Bar Chart",
        description="Display data as bar chart",
        widget_type="MATERIAL_CHART",
        icon="BarChart3",
        category="DATA",
        preview_url="/previews/bar-chart.png",
        default_data={
            "title": "Sales by Region",
            "type": "bar",
            "data": [
                {"label": "North", "value": 420},
                {"label": "South", "value": 380},
                {"label": "East", "value": 290},
                {"label": "West", "value": 350},
            ],
        },
        default_styles=BlockStyles(width="100%", max_width="600px"),
    ),
    Material(
        id="material-chart-pie",
        name="Pie Chart",
        description="Display data as pie chart",
        widget_type="MATERIAL_CHART",
        icon="PieChart",
        category="DATA",
        preview_url="/previews/pie-chart.png",
        default_data={
            "title": "Market Share",
            "type": "pie",
            "data": [
                {"label": "Product A", "value": 35},
                {"label": "Product B", "value": 25},
                {"label": "Product C", "value": 20},
                {"label": "Others", "value": 20},
            ],
        },
        default_styles=BlockStyles(width="100%", max_width="500px"),
    ),
    Material(
        id="material-chart-line",
        name="Line Chart",
        description="Display trends with line chart",
        widget_type="MATERIAL_CHART",
        icon="TrendingUp",
        category="DATA",
        preview_url="/previews/line-chart.png",
        default_data={
            "title": "Monthly Growth",
            "type": "line",
            "data": [
                {"label": "Jan", "value": 100},
                {"label": "Feb", "value": 120},
                {"label": "Mar", "value": 115},
                {"label": "Apr", "value": 140},
            ],
        },
        default_styles=BlockStyles(width="100%", max_width="600px"),
    ),
    # EMBED
    Material(
        id="material-embed",
        name="Web Embed",
        description="Embed external web content",
        widget_type="MATERIAL_EMBED",
        icon="ExternalLink",
        category="EMBED",
        preview_url="/previews/embed.png",
        default_data={"src": "https://example.com", "title": "Embedded Content"},
        default_styles=BlockStyles(width="100%", max_width="800px", aspect_ratio="16/9"),
    ),
    Material(
        id="material-code",
        name="Code Snippet",
        description="Display code with syntax highlighting",
        widget_type="MATERIAL_CODE",
        icon="Code",
        category="EMBED",
        preview_url="/previews/code.png",
        default_data={
            "code": "function greet(name) {\n  console.log(`Hello, ${name}!`);\n}\n\ngreet('EduVi');",
            "language": "javascript",
            "filename": "example.js",
        },
        default_styles=BlockStyles(width="100%", max_width="700px"),
    ),
)

_BY_ID: dict[str, Material] = {m.id: m for m in DEFAULT_MATERIALS}


def get_material(material_id: str) -> Material | None:
    return _BY_ID.get(material_id)


def list_materials(category: str | None = None) -> list[Material]:
    """All catalog entries, optionally filtered by category (case-insensitive)."""
    if category is None:
        return list(DEFAULT_MATERIALS)
    wanted = category.upper()
    return [m for m in DEFAULT_MATERIALS if m.category == wanted]


# ---------------------------------------------------------------------------
# Block factories
# ---------------------------------------------------------------------------

PLACEHOLDER_IMAGE = "https://images.unsplash.com/photo-1618005182384-a83a8bd57fbe?w=800"
PLACEHOLDER_VIDEO = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


def default_content(block_type: str) -> Content:
    """Placeholder content for a block added from the toolbar."""
    if block_type == "TEXT":
        return TextContent(html="<p>Start typing...</p>")
    if block_type == "HEADING":
        return HeadingContent(html="New Heading", level=2)
    if block_type == "IMAGE":
        return ImageContent(src=PLACEHOLDER_IMAGE, alt="Placeholder image")
    if block_type == "VIDEO":
        return VideoContent(src=PLACEHOLDER_VIDEO, provider="youtube")
    if block_type == "QUIZ":
        return QuizContent(
            title="Quick Quiz",
            questions=(
                QuizQuestion(
                    id="q1",
                    question="New question",
                    options=(QuizOption(id="a", text="Option A"), QuizOption(id="b", text="Option B")),
                    correct_index=0,
                ),
            ),
        )
    if block_type == "FLASHCARD":
        return FlashcardContent(front="Front", back="Back")
    if block_type == "FILL_BLANK":
        sentence = "Java is a [programming] language"
        return FillBlankContent(sentence=sentence, blanks=tuple(extract_blanks(sentence)))
    # MATERIAL needs a catalog entry (see block_from_material)
    return TextContent(html="<p>New block</p>")


def new_block(block_id: str, block_type: str) -> Block:
    return Block(id=block_id, content=default_content(block_type))


def block_from_material(
    block_id: str,
    material: Material,
    custom_data: dict[str, Any] | None = None,
) -> Block:
    """Instantiate a dropped material. custom_data replaces the default payload."""
    data = custom_data if custom_data is not None else material.default_data
    return Block(
        id=block_id,
        content=MaterialContent(widget_type=material.widget_type, data=copy.deepcopy(data)),
        styles=material.default_styles,
        is_resizable=True,
    )
