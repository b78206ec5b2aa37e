"""
Scout Tools

Capabilities exposed to agents. Browser primitives come from an external
capability service wrapped as Tool subclasses; session document tools are
provided here.
"""

from .base import ContentBlock, ContentType, Tool, ToolResult
from .registry import ToolRegistry, ToolRegistryError
from .remote import RemoteCapabilityTool, RemoteToolkit
from .session import (
    GetSessionMetaTool,
    UpdateTestBriefTool,
    UpdateTestProtocolTool,
    create_session_tools,
)

__all__ = [
    "ContentBlock",
    "ContentType",
    "GetSessionMetaTool",
    "RemoteCapabilityTool",
    "RemoteToolkit",
    "Tool",
    "ToolRegistry",
    "ToolRegistryError",
    "ToolResult",
    "UpdateTestBriefTool",
    "UpdateTestProtocolTool",
    "create_session_tools",
]
