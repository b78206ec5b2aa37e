"""
Tests for the Tool layer.

Tests cover:
- ToolResult construction and model rendering
- ToolRegistry registration and the execute() failure contract
- Session document tools
- Remote capability tools (mocked HTTP client)
"""

import base64
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from scout.tools import (
    ContentBlock,
    GetSessionMetaTool,
    RemoteCapabilityTool,
    RemoteToolkit,
    ToolRegistry,
    ToolRegistryError,
    ToolResult,
    UpdateTestBriefTool,
    UpdateTestProtocolTool,
    create_session_tools,
)

# =============================================================================
# ToolResult Tests
# =============================================================================


class TestToolResult:
    """Tests for ToolResult."""

    def test_success(self):
        result = ToolResult.success("Clicked", structured={"uid": "42"})

        assert result.is_error is False
        assert result.text == "Clicked"
        assert result.structured_content == {"uid": "42"}

    def test_error(self):
        result = ToolResult.error("Element uid=42 not found")

        assert result.is_error is True
        assert result.text == "Error: Element uid=42 not found"

    def test_model_text_summarizes_images(self):
        result = ToolResult.success(
            "Screenshot taken",
            additional_content=(ContentBlock.from_image(b"\x89PNG1234"),),
        )

        assert result.to_model_text() == "Screenshot taken\n[image/png attachment, 8 bytes]"

    def test_from_dict(self):
        data = {
            "content": [
                {"type": "text", "text": "Page loaded"},
                {"type": "image", "data": base64.b64encode(b"png").decode(), "mimeType": "image/png"},
                {"type": "resource", "uri": "file:///x"},
            ],
            "isError": False,
            "structuredContent": {"title": "Swag Labs"},
        }

        result = ToolResult.from_dict(data)

        assert result.text == "Page loaded"
        assert result.content[1].data == b"png"
        assert result.content[2].text_content == "[resource content]"
        assert result.structured_content == {"title": "Swag Labs"}

    def test_to_dict_roundtrip(self):
        result = ToolResult.error("boom", structured={"code": 500})
        assert ToolResult.from_dict(result.to_dict()) == result


# =============================================================================
# Registry Tests
# =============================================================================


class TestToolRegistry:
    """Tests for ToolRegistry."""

    def test_register_and_lookup(self, echo_tool):
        registry = ToolRegistry()
        registry.register(echo_tool)

        assert "echo" in registry
        assert registry.get("echo") is echo_tool
        assert registry.list_names() == ["echo"]
        assert len(registry) == 1

    def test_duplicate_rejected(self, echo_tool):
        registry = ToolRegistry([echo_tool])

        with pytest.raises(ToolRegistryError):
            registry.register(echo_tool)

    def test_unregister(self, tool_registry):
        assert tool_registry.unregister("echo") is True
        assert tool_registry.unregister("echo") is False
        assert len(tool_registry) == 0

    def test_schemas(self, tool_registry):
        schemas = tool_registry.to_llm_schemas()

        assert schemas == [
            {
                "name": "echo",
                "description": "Echo the input back",
                "input_schema": {
                    "type": "object",
                    "properties": {"text": {"type": "string"}},
                    "required": ["text"],
                },
            }
        ]

    def test_merged(self, tool_registry, broken_tool):
        merged = tool_registry.merged(ToolRegistry([broken_tool]))

        assert merged.list_names() == ["echo", "navigate_page"]
        assert len(tool_registry) == 1

    @pytest.mark.asyncio
    async def test_execute(self, tool_registry, echo_tool):
        result = await tool_registry.execute("echo", {"text": "hi"})

        assert result.text == "echo: hi"
        assert echo_tool.last_arguments == {"text": "hi"}

    @pytest.mark.asyncio
    async def test_execute_unknown_tool(self, tool_registry):
        result = await tool_registry.execute("fly", {})

        assert result.is_error is True
        assert "Unknown tool: fly" in result.text

    @pytest.mark.asyncio
    async def test_execute_missing_argument(self, tool_registry, echo_tool):
        result = await tool_registry.execute("echo", {})

        assert result.is_error is True
        assert "text" in result.text
        assert echo_tool.call_count == 0

    @pytest.mark.asyncio
    async def test_execute_exception_becomes_error_result(self, raising_tool):
        registry = ToolRegistry([raising_tool])

        result = await registry.execute("raising_tool", {})

        assert result.is_error is True
        assert "browser crashed" in result.text


# =============================================================================
# Session Tool Tests
# =============================================================================


class TestSessionTools:
    """Tests for session document tools."""

    @pytest.mark.asyncio
    async def test_update_test_brief(self, store):
        tool = UpdateTestBriefTool(store=store, key="default")

        result = await tool.execute({"content": "# Brief\n- Goal: checkout"})

        assert result.is_error is False
        assert result.structured_content["success"] is True
        assert result.structured_content["meta"]["testBrief"] == "# Brief\n- Goal: checkout"
        assert (await store.get_meta("default")).test_brief == "# Brief\n- Goal: checkout"

    @pytest.mark.asyncio
    async def test_update_test_protocol_targets_own_key(self, store):
        tool = UpdateTestProtocolTool(store=store, key="testing")

        await tool.execute({"content": "# Protocol"})

        assert (await store.get_meta("testing")).test_protocol == "# Protocol"
        assert await store.get_meta("default") is None

    @pytest.mark.asyncio
    async def test_empty_content_rejected(self, store):
        result = await UpdateTestBriefTool(store=store, key="default").execute({"content": "  "})

        assert result.is_error is True
        assert await store.get_meta("default") is None

    @pytest.mark.asyncio
    async def test_get_session_meta(self, store):
        tool = GetSessionMetaTool(store=store, key="default")

        empty = await tool.execute({})
        await store.update_meta("default", test_brief="# Brief")
        filled = await tool.execute({})

        assert empty.structured_content == {"meta": {}}
        assert filled.structured_content["meta"]["testBrief"] == "# Brief"

    @pytest.mark.asyncio
    async def test_tester_reads_brief_written_by_explorer(self, store):
        explorer = ToolRegistry(create_session_tools(store, "default"))
        tester = ToolRegistry(create_session_tools(store, "testing"))

        await explorer.execute("update_test_brief", {"content": "# Brief: add priciest item"})
        await tester.execute("update_test_protocol", {"content": "# Protocol"})
        result = await tester.execute("get_session_meta", {})

        meta = result.structured_content["meta"]
        assert meta["testBrief"] == "# Brief: add priciest item"
        assert meta["testProtocol"] == "# Protocol"
        assert meta["conversationId"] == "testing"
        assert "add priciest item" in result.to_model_text()

    @pytest.mark.asyncio
    async def test_brief_written_from_any_key_is_shared(self, store):
        await UpdateTestBriefTool(store=store, key="testing").execute({"content": "# Brief"})

        assert (await store.get_meta("default")).test_brief == "# Brief"
        assert await store.get_meta("testing") is None

    @pytest.mark.asyncio
    async def test_custom_brief_key(self, store):
        await store.update_meta("shop", test_brief="# Shop brief")
        tool = GetSessionMetaTool(store=store, key="testing", brief_key="shop")

        result = await tool.execute({})

        assert result.structured_content["meta"] == {"testBrief": "# Shop brief"}

    def test_create_session_tools(self, store):
        registry = ToolRegistry(create_session_tools(store, "default"))

        assert registry.list_names() == ["update_test_brief", "update_test_protocol", "get_session_meta"]


# =============================================================================
# Remote Tool Tests
# =============================================================================


def _response(status_code=200, json_data=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data
    response.text = text
    return response


class TestRemoteCapabilityTool:
    """Tests for RemoteCapabilityTool with a mocked HTTP client."""

    def _tool(self, client):
        return RemoteCapabilityTool(
            base_url="http://capabilities:8931/",
            name="navigate_page",
            description="Open a URL",
            input_schema={"type": "object", "properties": {"url": {"type": "string"}}},
            http_client=client,
        )

    @pytest.mark.asyncio
    async def test_success(self):
        mock_client = AsyncMock()
        mock_client.post = AsyncMock(
            return_value=_response(json_data={"content": [{"type": "text", "text": "Opened"}]})
        )

        result = await self._tool(mock_client).execute({"url": "https://example.com"})

        assert result.text == "Opened"
        mock_client.post.assert_called_once_with(
            "http://capabilities:8931/tools/navigate_page",
            json={"arguments": {"url": "https://example.com"}},
        )

    @pytest.mark.asyncio
    async def test_tool_error_result(self):
        mock_client = AsyncMock()
        mock_client.post = AsyncMock(
            return_value=_response(
                json_data={"content": [{"type": "text", "text": "Error: timeout"}], "isError": True}
            )
        )

        result = await self._tool(mock_client).execute({"url": "https://example.com"})

        assert result.is_error is True

    @pytest.mark.asyncio
    async def test_http_error(self):
        mock_client = AsyncMock()
        mock_client.post = AsyncMock(return_value=_response(status_code=502, text="Bad gateway"))

        result = await self._tool(mock_client).execute({})

        assert result.is_error is True
        assert "502" in result.text
        assert result.structured_content == {"status_code": 502}

    @pytest.mark.asyncio
    async def test_timeout(self):
        mock_client = AsyncMock()
        mock_client.post = AsyncMock(side_effect=httpx.TimeoutException("Timeout"))

        result = await self._tool(mock_client).execute({})

        assert result.is_error is True
        assert "timed out" in result.text

    @pytest.mark.asyncio
    async def test_shared_client_not_closed(self):
        mock_client = AsyncMock()
        mock_client.post = AsyncMock(return_value=_response(json_data={"content": []}))

        await self._tool(mock_client).execute({})

        mock_client.aclose.assert_not_called()


class TestRemoteToolkit:
    """Tests for tool discovery."""

    @pytest.mark.asyncio
    async def test_discovery(self):
        mock_client = AsyncMock()
        discovery = _response(
            json_data={
                "tools": [
                    {
                        "name": "take_screenshot",
                        "description": "Capture the page",
                        "inputSchema": {"type": "object", "properties": {}},
                    },
                    {"name": "click"},
                ]
            }
        )
        mock_client.get = AsyncMock(return_value=discovery)

        toolkit = await RemoteToolkit.from_url(
            "http://capabilities:8931", role="tester", http_client=mock_client
        )

        assert toolkit.list_names() == ["take_screenshot", "click"]
        click = toolkit.get_tools()[1]
        assert click.description == "click"
        assert click.input_schema == {"type": "object", "properties": {}}
        mock_client.get.assert_called_once_with(
            "http://capabilities:8931/tools", params={"role": "tester"}
        )

        # Caller-owned client is left open
        await toolkit.close()
        mock_client.aclose.assert_not_called()

    @pytest.mark.asyncio
    async def test_discovery_failure_propagates(self):
        mock_client = AsyncMock()
        failing = _response()
        failing.raise_for_status.side_effect = httpx.HTTPError("503")
        mock_client.get = AsyncMock(return_value=failing)

        with pytest.raises(httpx.HTTPError):
            await RemoteToolkit.from_url("http://capabilities:8931", http_client=mock_client)
