"""
Session Document Tools.

Tools that let an agent read and write the documents attached to a
conversation's metadata record:

- UpdateTestBriefTool: store the test brief written by the explorer
- UpdateTestProtocolTool: store the test protocol written by the tester
- GetSessionMetaTool: read the metadata record (brief, protocol, counters)

Each tool is bound to one store and one service key when it is built.
The test brief is shared: it always lives in the metadata record of the
brief key ("default", where the explorer works), so the tester on another
service key reads the brief the explorer wrote.

Usage:
    tools = create_session_tools(store, "default")
    registry = ToolRegistry([*browser_tools, *tools])
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from scout.errors import PersistenceFailure

from .base import Tool, ToolResult

if TYPE_CHECKING:
    from scout.conversation.store import ConversationStore

logger = logging.getLogger(__name__)

# Service key whose metadata record holds the shared test brief
BRIEF_KEY = "default"


class _SessionTool(Tool):
    """Base for tools bound to a (store, key) pair."""

    def __init__(self, *, store: ConversationStore, key: str, brief_key: str = BRIEF_KEY):
        self._store = store
        self._key = key
        self._brief_key = brief_key


class _UpdateDocumentTool(_SessionTool):
    """Writes one markdown document into the metadata record."""

    field_name: str = ""
    document_label: str = ""

    @property
    def target_key(self) -> str:
        return self._key

    @property
    def description(self) -> str:
        return (
            f"Create or update the {self.document_label} markdown content in the "
            "session metadata. Send the complete document; it replaces the "
            "previous version."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "content": {
                    "type": "string",
                    "description": f"The complete {self.document_label} markdown content",
                },
            },
            "required": ["content"],
        }

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        content = arguments.get("content")
        if not isinstance(content, str) or not content.strip():
            return ToolResult.error(f"{self.document_label.capitalize()} content is required")

        try:
            meta = await self._store.update_meta(self.target_key, **{self.field_name: content})
        except PersistenceFailure as e:
            logger.error(f"[{self.name}] {e}")
            return ToolResult.error(f"Failed to update session metadata: {e}")

        logger.info(f"[{self.name}] Stored {self.document_label} for {self.target_key} ({len(content)} chars)")
        return ToolResult.success(
            "Session metadata updated",
            structured={"success": True, "meta": meta.to_json_dict()},
        )


class UpdateTestBriefTool(_UpdateDocumentTool):
    """Stores the test brief document (explorer role)."""

    field_name = "test_brief"
    document_label = "test brief"

    @property
    def target_key(self) -> str:
        return self._brief_key

    @property
    def name(self) -> str:
        return "update_test_brief"


class UpdateTestProtocolTool(_UpdateDocumentTool):
    """Stores the test protocol document (tester role)."""

    field_name = "test_protocol"
    document_label = "test protocol"

    @property
    def name(self) -> str:
        return "update_test_protocol"


class GetSessionMetaTool(_SessionTool):
    """Reads the session metadata, including the test brief."""

    @property
    def name(self) -> str:
        return "get_session_meta"

    @property
    def description(self) -> str:
        return "Get the current session metadata, including the test brief and test protocol."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {"type": "object", "properties": {}}

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        meta = await self._store.get_meta(self._key)
        data = meta.to_json_dict() if meta is not None else {}

        if self._brief_key != self._key:
            brief_meta = await self._store.get_meta(self._brief_key)
            if brief_meta is not None and brief_meta.test_brief:
                data["testBrief"] = brief_meta.test_brief

        if not data:
            return ToolResult.success("No session metadata yet", structured={"meta": {}})
        return ToolResult.success("Current session metadata", structured={"meta": data})


def create_session_tools(
    store: ConversationStore, key: str, *, brief_key: str = BRIEF_KEY
) -> list[Tool]:
    """
    All session document tools bound to one service key.

    The brief is read from and written to brief_key; everything else uses key.
    """
    return [
        UpdateTestBriefTool(store=store, key=key, brief_key=brief_key),
        UpdateTestProtocolTool(store=store, key=key, brief_key=brief_key),
        GetSessionMetaTool(store=store, key=key, brief_key=brief_key),
    ]
