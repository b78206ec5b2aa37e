"""
Tool Registry (Capability Provider).

The registry is the single entry point through which agents reach their
capabilities:
- Registration with validation
- Lookup by name
- Schema export for the model
- execute(name, arguments) with a uniform failure contract

Any failure (unknown tool, missing required argument, error result, or a
raised exception) comes back as an error ToolResult. Callers never have to
catch exceptions from execute().

Usage:
    registry = ToolRegistry()
    registry.register(NavigateTool(browser))
    registry.register(ScreenshotTool(browser))

    result = await registry.execute("navigate_page", {"url": "https://example.com"})
    if result.is_error:
        ...
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from scout.errors import ToolExecutionFailure

from .base import ToolResult

if TYPE_CHECKING:
    from .base import Tool

logger = logging.getLogger(__name__)


class ToolRegistryError(Exception):
    """Error in tool registry operations."""

    pass


class ToolRegistry:
    """
    Registry of available tools for one agent role.

    Tools are registered by name and are immutable during a run.

    Example:
        registry = ToolRegistry([NavigateTool(browser), ClickTool(browser)])
        doer = DoerLoop(llm=model, tools=registry)
    """

    def __init__(self, tools: Iterable["Tool"] = ()) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: "Tool") -> None:
        """
        Register a tool.

        Raises:
            ToolRegistryError: If the name is taken or the tool is invalid
        """
        if tool.name in self._tools:
            raise ToolRegistryError(
                f"Tool '{tool.name}' already registered. Use a unique name or unregister first."
            )

        self._validate_tool(tool)

        self._tools[tool.name] = tool
        logger.debug(f"[tool_registry] Registered tool: {tool.name}")

    def unregister(self, name: str) -> bool:
        """Unregister a tool by name. Returns False if it was not registered."""
        if name in self._tools:
            del self._tools[name]
            logger.debug(f"[tool_registry] Unregistered tool: {name}")
            return True
        return False

    def get(self, name: str) -> "Tool | None":
        return self._tools.get(name)

    def list_tools(self) -> list["Tool"]:
        return list(self._tools.values())

    def list_names(self) -> list[str]:
        return list(self._tools.keys())

    def merged(self, other: "ToolRegistry") -> "ToolRegistry":
        """New registry containing the tools of both registries."""
        return ToolRegistry([*self.list_tools(), *other.list_tools()])

    def to_llm_schemas(self) -> list[dict[str, Any]]:
        """All tool schemas for LLM tool use."""
        return [tool.to_llm_schema() for tool in self._tools.values()]

    async def execute(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        """
        Execute a tool by name.

        Args:
            name: Tool name
            arguments: Tool input

        Returns:
            ToolResult; failures are error results, never exceptions
        """
        arguments = arguments or {}
        tool = self._tools.get(name)

        if tool is None:
            logger.warning(f"[tool_registry] Unknown tool requested: {name}")
            return ToolResult.error(
                f"Unknown tool: {name}. Available tools: {self.list_names()}"
            )

        missing = self._missing_required(tool, arguments)
        if missing:
            return ToolResult.error(f"Missing required arguments for {name}: {missing}")

        try:
            return await tool.execute(arguments)
        except Exception as e:
            failure = ToolExecutionFailure(name, str(e) or type(e).__name__)
            logger.warning(f"[tool_registry] {failure}")
            return ToolResult.error(str(failure))

    @staticmethod
    def _missing_required(tool: "Tool", arguments: dict[str, Any]) -> list[str]:
        required = tool.input_schema.get("required", [])
        return [key for key in required if key not in arguments]

    def _validate_tool(self, tool: "Tool") -> None:
        """
        Validate tool has required properties.

        Raises:
            ToolRegistryError: If tool is invalid
        """
        if not tool.name or not isinstance(tool.name, str):
            raise ToolRegistryError(f"Tool must have a valid name: {tool}")

        if not tool.description or not isinstance(tool.description, str):
            raise ToolRegistryError(f"Tool '{tool.name}' must have a description")

        schema = tool.input_schema
        if not isinstance(schema, dict):
            raise ToolRegistryError(f"Tool '{tool.name}' input_schema must be a dict")

        if schema.get("type") != "object":
            raise ToolRegistryError(f"Tool '{tool.name}' input_schema must have type: 'object'")

        if "properties" not in schema:
            raise ToolRegistryError(f"Tool '{tool.name}' input_schema must have 'properties'")

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __repr__(self) -> str:
        return f"<ToolRegistry tools={list(self._tools.keys())}>"
