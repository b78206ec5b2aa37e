"""
Tool Base Classes (MCP-Aligned).

This module defines the contract every capability exposed to an agent
follows:
- Tool: Base class for all tools
- ToolResult: Result from tool execution
- ContentBlock: Content blocks in tool results

Browser actions (navigate, click, screenshot) are provided by an external
capability service and wrapped as Tool subclasses; the orchestration core
only ever sees this interface.

Usage:
    class NavigateTool(Tool):
        @property
        def name(self) -> str:
            return "navigate_page"

        @property
        def description(self) -> str:
            return "Open a URL in the current tab"

        @property
        def input_schema(self) -> dict:
            return {
                "type": "object",
                "properties": {"url": {"type": "string"}},
                "required": ["url"],
            }

        async def execute(self, arguments: dict) -> ToolResult:
            await browser.goto(arguments["url"])
            return ToolResult.success(f"Opened {arguments['url']}")
"""

from __future__ import annotations

import base64
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ContentType(Enum):
    """Type of content in a tool result (MCP-aligned)."""

    TEXT = "text"
    IMAGE = "image"


@dataclass(frozen=True, slots=True)
class ContentBlock:
    """
    Content block in tool result (MCP-aligned).

    Example:
        ContentBlock.from_text("Clicked 'Add to cart'")
        ContentBlock.from_image(png_bytes)
    """

    type: ContentType
    text_content: str | None = None
    data: bytes | None = None
    mime_type: str | None = None

    @classmethod
    def from_text(cls, content: str) -> ContentBlock:
        """Create a text content block."""
        return cls(type=ContentType.TEXT, text_content=content)

    @classmethod
    def from_image(cls, data: bytes, mime_type: str = "image/png") -> ContentBlock:
        """Create an image content block."""
        return cls(type=ContentType.IMAGE, data=data, mime_type=mime_type)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {"type": self.type.value}

        if self.text_content is not None:
            result["text"] = self.text_content
        if self.data is not None:
            result["data"] = base64.b64encode(self.data).decode()
        if self.mime_type is not None:
            result["mimeType"] = self.mime_type

        return result


@dataclass(frozen=True, slots=True)
class ToolResult:
    """
    Result from tool execution (MCP-aligned).

    Error Handling:
        Tool execution errors are reported IN the result, not as
        exceptions. The agent reads the error and can retry or change
        strategy.

    Example:
        ToolResult.success("Cart shows 1 item", structured={"count": 1})
        ToolResult.error("Element uid=42 not found")
    """

    content: tuple[ContentBlock, ...]
    is_error: bool = False
    structured_content: dict[str, Any] | None = None

    @classmethod
    def success(
        cls,
        text: str,
        *,
        structured: dict[str, Any] | None = None,
        additional_content: tuple[ContentBlock, ...] | None = None,
    ) -> ToolResult:
        """
        Create a successful result.

        Args:
            text: Human-readable result text
            structured: Optional structured data for programmatic use
            additional_content: Additional content blocks (screenshots, etc.)
        """
        content = [ContentBlock.from_text(text)]
        if additional_content:
            content.extend(additional_content)

        return cls(content=tuple(content), is_error=False, structured_content=structured)

    @classmethod
    def error(cls, message: str, *, structured: dict[str, Any] | None = None) -> ToolResult:
        """Create an error result."""
        return cls(
            content=(ContentBlock.from_text(f"Error: {message}"),),
            is_error=True,
            structured_content=structured,
        )

    @property
    def text(self) -> str:
        """Get the primary text content (convenience accessor)."""
        for block in self.content:
            if block.type == ContentType.TEXT and block.text_content:
                return block.text_content
        return ""

    def to_model_text(self) -> str:
        """
        Render the result for a model tool turn.

        Binary content is summarised rather than inlined.
        """
        lines = []
        for block in self.content:
            if block.type == ContentType.TEXT and block.text_content:
                lines.append(block.text_content)
            elif block.type == ContentType.IMAGE:
                size = len(block.data or b"")
                lines.append(f"[{block.mime_type or 'image'} attachment, {size} bytes]")
        if self.structured_content is not None:
            lines.append(json.dumps(self.structured_content, default=str))
        return "\n".join(lines)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ToolResult:
        """
        Parse an MCP-shaped result ({"content": [...], "isError": ...}).

        Unknown content block types are kept as text descriptions.
        """
        blocks = []
        for raw in data.get("content") or []:
            if raw.get("type") == "image" and raw.get("data"):
                blocks.append(
                    ContentBlock.from_image(
                        base64.b64decode(raw["data"]),
                        raw.get("mimeType", "image/png"),
                    )
                )
            elif raw.get("type") == "text":
                blocks.append(ContentBlock.from_text(str(raw.get("text", ""))))
            else:
                blocks.append(ContentBlock.from_text(f"[{raw.get('type', 'unknown')} content]"))

        return cls(
            content=tuple(blocks),
            is_error=bool(data.get("isError", False)),
            structured_content=data.get("structuredContent"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "content": [block.to_dict() for block in self.content],
        }

        if self.is_error:
            result["isError"] = True
        if self.structured_content is not None:
            result["structuredContent"] = self.structured_content

        return result


class Tool(ABC):
    """
    Base class for all tools (MCP-aligned).

    Contract:
        - name: Unique identifier (snake_case recommended)
        - description: Clear description for LLM understanding
        - input_schema: JSON Schema for arguments
        - execute: Async method that performs the action

    Tools do NOT know they are called by an agent.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for the tool."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """What the tool does, written for the model."""
        ...

    @property
    @abstractmethod
    def input_schema(self) -> dict[str, Any]:
        """
        JSON Schema defining expected input arguments.

        Must be an object schema with "properties" (and optionally
        "required").
        """
        ...

    @abstractmethod
    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        """
        Execute the tool with the given arguments.

        Important:
            - Report errors with ToolResult.error(), don't raise
            - Exceptions are reserved for unexpected failures
        """
        ...

    def to_llm_schema(self) -> dict[str, Any]:
        """Schema format for LLM tool use."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }

    def __repr__(self) -> str:
        return f"<Tool {self.name}>"
