"""
LLM Providers for Scout.

Provides the model invocation port and its implementations:
- OpenAILLMProvider: OpenAI and OpenAI-compatible endpoints (OpenRouter, Mistral)
- AnthropicLLMProvider: Claude models
"""

from .base import (
    BaseLLMProvider,
    LLMConfig,
    LLMProvider,
    LLMResponse,
    Message,
    MessageRole,
    ToolCall,
    generate,
)
from .openai import AnthropicLLMProvider, OpenAILLMProvider

__all__ = [
    # Anthropic
    "AnthropicLLMProvider",
    "BaseLLMProvider",
    "LLMConfig",
    # Protocol and base
    "LLMProvider",
    "LLMResponse",
    "Message",
    "MessageRole",
    "ToolCall",
    "generate",
    # OpenAI
    "OpenAILLMProvider",
]
