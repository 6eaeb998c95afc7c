"""
Pydantic models for the .eduvi interchange file.

The exporter builds plain dicts; these models are the contract a consumer
checks them against. Field names follow the wire format (camelCase) so a
model dumps straight back to the file layout.

Content is kept as a dict: only its `type` tag is checked. Tags this
version does not know are accepted as opaque records.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


class ExportBlock(BaseModel):
    """A content block pinned to one column of its layout."""

    id: str = Field(min_length=1)
    type: str = Field(min_length=1)
    columnIndex: int = Field(ge=0)
    order: int = Field(ge=0)
    content: dict[str, Any]

    @field_validator("content")
    @classmethod
    def content_has_type(cls, v: dict[str, Any]) -> dict[str, Any]:
        tag = v.get("type")
        if not isinstance(tag, str) or not tag:
            raise ValueError("content requires a 'type' tag")
        return v


class ExportLayout(BaseModel):
    id: str = Field(min_length=1)
    variant: str = Field(min_length=1)
    order: int = Field(ge=0)
    blocks: list[ExportBlock]


class ExportCard(BaseModel):
    id: str = Field(min_length=1)
    title: str
    order: int = Field(ge=0)
    layouts: list[ExportLayout]


class ExportMetadata(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    author: str | None = None
    tags: list[str] | None = None
    createdAt: str = ""
    updatedAt: str = ""


class ExportFile(BaseModel):
    """Top-level .eduvi document."""

    version: str = Field(min_length=1)
    exportedAt: str = ""
    metadata: ExportMetadata
    cards: list[ExportCard]
