"""
Remote Capability Tools.

Browser primitives (navigate, click, fill, screenshot, snapshot) are
served by an external capability service. This module turns that service
into ordinary Tool instances, so agents never know the tools are remote.

Capability service protocol (HTTP, JSON):
    GET  {base_url}/tools
        → {"tools": [{"name": ..., "description": ..., "inputSchema": {...}}]}
    POST {base_url}/tools/{name}   body: {"arguments": {...}}
        → {"content": [...], "isError": false, "structuredContent": {...}}

Results use the MCP result shape and are parsed with ToolResult.from_dict.

Usage:
    toolkit = await RemoteToolkit.from_url("http://localhost:8931", role="tester")
    registry = ToolRegistry(toolkit.get_tools())
    ...
    await toolkit.close()
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .base import Tool, ToolResult

logger = logging.getLogger(__name__)


class RemoteCapabilityTool(Tool):
    """
    Tool backed by one operation of the capability service.

    HTTP Client Lifecycle:
        - If http_client was provided: use it (caller manages lifecycle)
        - Otherwise: create a fresh client per execute() and close it
    """

    def __init__(
        self,
        *,
        base_url: str,
        name: str,
        description: str,
        input_schema: dict[str, Any],
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._name = name
        self._description = description
        self._input_schema = input_schema
        self._timeout = timeout
        self._shared_client = http_client

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def input_schema(self) -> dict[str, Any]:
        return self._input_schema

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        if self._shared_client is not None:
            client = self._shared_client
            close_after = False
        else:
            client = httpx.AsyncClient(timeout=self._timeout)
            close_after = True

        url = f"{self._base_url}/tools/{self._name}"

        try:
            logger.info(f"[remote_tool:{self.name}] POST {url}")
            response = await client.post(url, json={"arguments": arguments})

            if response.status_code >= 400:
                error_text = response.text[:500]
                logger.warning(f"[remote_tool:{self.name}] Error {response.status_code}: {error_text}")
                return ToolResult.error(
                    f"Capability service error {response.status_code}: {error_text}",
                    structured={"status_code": response.status_code},
                )

            return ToolResult.from_dict(response.json())

        except httpx.TimeoutException:
            logger.error(f"[remote_tool:{self.name}] Timeout after {self._timeout}s")
            return ToolResult.error(f"Request timed out after {self._timeout}s")

        except httpx.ConnectError as e:
            logger.error(f"[remote_tool:{self.name}] Connection error: {e}")
            return ToolResult.error(f"Connection failed: {e}")

        except ValueError as e:
            logger.error(f"[remote_tool:{self.name}] Invalid response: {e}")
            return ToolResult.error(f"Invalid response from capability service: {e}")

        finally:
            if close_after:
                await client.aclose()


class RemoteToolkit:
    """
    Tool set discovered from a capability service.

    Example:
        toolkit = await RemoteToolkit.from_url("http://localhost:8931")
        print(toolkit.list_names())
    """

    def __init__(self, tools: list[RemoteCapabilityTool], http_client: httpx.AsyncClient | None = None):
        self._tools = tools
        self._owned_client = http_client

    @classmethod
    async def from_url(
        cls,
        base_url: str,
        *,
        role: str | None = None,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> RemoteToolkit:
        """
        Discover the tools of a capability service.

        Args:
            base_url: Service base URL
            role: Optional role hint ("explorer", "tester", "doer") passed as
                  a query parameter so the service can restrict its tool set
            timeout: Per-request timeout in seconds
            http_client: Shared client (caller manages lifecycle); a private
                         client is created and owned by the toolkit otherwise

        Raises:
            httpx.HTTPError: If discovery fails
        """
        base_url = base_url.rstrip("/")
        owned = http_client is None
        client = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        try:
            response = await client.get(
                f"{base_url}/tools",
                params={"role": role} if role else None,
            )
            response.raise_for_status()
            payload = response.json()
        except Exception:
            if owned:
                await client.aclose()
            raise

        tools = [
            RemoteCapabilityTool(
                base_url=base_url,
                name=spec["name"],
                description=spec.get("description") or spec["name"],
                input_schema=spec.get("inputSchema") or {"type": "object", "properties": {}},
                timeout=timeout,
                http_client=client,
            )
            for spec in payload.get("tools", [])
        ]
        logger.info(f"[remote_toolkit] Discovered {len(tools)} tools at {base_url}")
        return cls(tools, http_client=client if owned else None)

    def get_tools(self) -> list[RemoteCapabilityTool]:
        return list(self._tools)

    def list_names(self) -> list[str]:
        return [tool.name for tool in self._tools]

    async def close(self) -> None:
        """Close the shared HTTP client."""
        if self._owned_client is not None:
            await self._owned_client.aclose()
            self._owned_client = None
