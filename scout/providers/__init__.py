"""
Scout Providers

Model invocation port, vendor adapters, and the role/model registry.
"""

from .llm import (
    AnthropicLLMProvider,
    BaseLLMProvider,
    LLMConfig,
    LLMProvider,
    LLMResponse,
    Message,
    MessageRole,
    OpenAILLMProvider,
    ToolCall,
    generate,
)
from .registry import BoundModel, ModelRegistry, ModelRoles

__all__ = [
    "AnthropicLLMProvider",
    "BaseLLMProvider",
    "BoundModel",
    "LLMConfig",
    "LLMProvider",
    "LLMResponse",
    "Message",
    "MessageRole",
    "ModelRegistry",
    "ModelRoles",
    "OpenAILLMProvider",
    "ToolCall",
    "generate",
]
