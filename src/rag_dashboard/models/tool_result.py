"""Data models for tool results that may carry UI components.

A tool answers with an ordered list of content entries; entries of type
`ui` hold a component tree for the renderer.
"""

from collections.abc import Iterator
from typing import Optional

from pydantic import Field

from .base import WireModel
from .component import UIComponent
from .enums import ToolContentType


class ToolResource(WireModel):
    """An addressable resource returned by a tool.

    Attributes:
        uri: Resource location.
        mime_type: MIME type of the resource.
        blob: Optional base64-encoded body.
    """

    uri: str
    mime_type: str
    blob: Optional[str] = None


class ToolContent(WireModel):
    type: ToolContentType
    text: Optional[str] = None
    resource: Optional[ToolResource] = None
    ui: Optional[UIComponent] = None


class ToolResult(WireModel):
    """The full answer of a tool invocation."""

    content: list[ToolContent] = Field(default_factory=list)
    is_error: bool = False

    def components(self) -> Iterator[UIComponent]:
        """Yields the UI components carried by `ui` entries, in order."""
        for entry in self.content:
            if entry.type == ToolContentType.UI and entry.ui is not None:
                yield entry.ui

    def texts(self) -> list[str]:
        return [
            entry.text
            for entry in self.content
            if entry.type == ToolContentType.TEXT and entry.text
        ]
