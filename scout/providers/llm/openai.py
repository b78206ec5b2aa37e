"""
OpenAI and Anthropic LLM Providers for Scout.

Both providers translate the provider-neutral Message/ToolCall types into
the vendor request format and back, including tool calling.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from .base import BaseLLMProvider, LLMConfig, LLMResponse, Message, MessageRole, ToolCall

logger = logging.getLogger(__name__)


class OpenAILLMProvider(BaseLLMProvider):
    """
    OpenAI-based LLM provider.

    Uses the Chat Completions API. Works with any OpenAI-compatible
    endpoint (OpenRouter, Mistral) via base_url.

    Requirements:
    - openai package
    - SCOUT_OPENAI_API_KEY environment variable
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        organization: str | None = None,
        provider_name: str = "openai",
    ):
        """
        Initialize OpenAI LLM provider.

        Args:
            api_key: API key
            model: Default model to use
            base_url: Optional OpenAI-compatible endpoint
            organization: Optional OpenAI organization ID
            provider_name: Name reported in responses and logs
        """
        super().__init__(default_model=model)
        self._api_key = api_key
        self._base_url = base_url
        self._organization = organization
        self._provider_name = provider_name
        self._client = None  # Lazy initialization

    @property
    def name(self) -> str:
        return self._provider_name

    def _get_client(self):
        """Lazy initialization of OpenAI client."""
        if self._client is None:
            try:
                from openai import AsyncOpenAI

                self._client = AsyncOpenAI(
                    api_key=self._api_key,
                    base_url=self._base_url,
                    organization=self._organization,
                )
            except ImportError:
                raise ImportError(
                    "openai package is required for OpenAI LLM. Install with: pip install openai"
                )
        return self._client

    def _convert_messages(self, messages: list[Message]) -> list[dict[str, Any]]:
        """Convert Message objects to OpenAI format."""
        converted: list[dict[str, Any]] = []
        for msg in messages:
            if msg.role == MessageRole.TOOL:
                converted.append(
                    {
                        "role": "tool",
                        "tool_call_id": msg.tool_call_id,
                        "content": msg.content,
                    }
                )
            elif msg.role == MessageRole.ASSISTANT and msg.tool_calls:
                converted.append(
                    {
                        "role": "assistant",
                        "content": msg.content or None,
                        "tool_calls": [
                            {
                                "id": call.id,
                                "type": "function",
                                "function": {
                                    "name": call.name,
                                    "arguments": json.dumps(call.arguments),
                                },
                            }
                            for call in msg.tool_calls
                        ],
                    }
                )
            else:
                converted.append({"role": msg.role.value, "content": msg.content})
        return converted

    @staticmethod
    def _convert_tools(tools: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": tool["name"],
                    "description": tool.get("description", ""),
                    "parameters": tool.get("input_schema", {"type": "object", "properties": {}}),
                },
            }
            for tool in tools
        ]

    @staticmethod
    def _parse_tool_calls(raw_calls: Any) -> list[ToolCall]:
        calls = []
        for raw in raw_calls or []:
            try:
                arguments = json.loads(raw.function.arguments or "{}")
            except json.JSONDecodeError:
                logger.warning(
                    f"[llm:openai] Tool call {raw.function.name} had non-JSON arguments"
                )
                arguments = {"_raw": raw.function.arguments}
            calls.append(ToolCall(id=raw.id, name=raw.function.name, arguments=arguments))
        return calls

    async def complete(
        self,
        messages: list[Message],
        config: LLMConfig | None = None,
        tools: Sequence[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        """
        Generate a completion using OpenAI.

        Args:
            messages: List of conversation messages
            config: Optional configuration overrides
            tools: Optional tool schemas the model may call

        Returns:
            LLMResponse with generated content and tool calls
        """
        if config is None:
            config = LLMConfig()

        try:
            client = self._get_client()

            params: dict[str, Any] = {
                "model": config.model or self.default_model,
                "messages": self._convert_messages(messages),
                "temperature": config.temperature,
                "max_tokens": config.max_tokens,
                "top_p": config.top_p,
            }
            if tools:
                params["tools"] = self._convert_tools(tools)

            response = await client.chat.completions.create(**params)

            choice = response.choices[0]
            content = choice.message.content or ""

            usage = {}
            if response.usage:
                usage = {
                    "input_tokens": response.usage.prompt_tokens,
                    "output_tokens": response.usage.completion_tokens,
                    "total_tokens": response.usage.total_tokens,
                }

            return LLMResponse(
                content=content,
                tool_calls=self._parse_tool_calls(choice.message.tool_calls),
                model=response.model,
                usage=usage,
                finish_reason=choice.finish_reason or "stop",
                provider=self.name,
            )

        except Exception as e:
            logger.error(f"OpenAI completion error: {e}", exc_info=True)
            raise


class AnthropicLLMProvider(BaseLLMProvider):
    """
    Anthropic-based LLM provider.

    Uses the Messages API. System messages that appear after the first
    non-system turn (e.g. sub-agent results) are sent as user turns, since
    the API accepts a single system prompt only.

    Requirements:
    - anthropic package
    - SCOUT_ANTHROPIC_API_KEY environment variable
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-haiku-latest",
    ):
        """
        Initialize Anthropic LLM provider.

        Args:
            api_key: Anthropic API key
            model: Default model to use
        """
        super().__init__(default_model=model)
        self._api_key = api_key
        self._client = None

    @property
    def name(self) -> str:
        return "anthropic"

    def _get_client(self):
        """Lazy initialization of Anthropic client."""
        if self._client is None:
            try:
                from anthropic import AsyncAnthropic

                self._client = AsyncAnthropic(api_key=self._api_key)
            except ImportError:
                raise ImportError(
                    "anthropic package is required for Anthropic LLM. "
                    "Install with: pip install anthropic"
                )
        return self._client

    @staticmethod
    def _convert_messages(messages: list[Message]) -> tuple[str, list[dict[str, Any]]]:
        """Split out the system prompt and merge consecutive same-role turns."""
        system_parts: list[str] = []
        turns: list[dict[str, Any]] = []

        for msg in messages:
            if msg.role == MessageRole.SYSTEM and not turns:
                system_parts.append(msg.content)
                continue

            if msg.role == MessageRole.TOOL:
                role = "user"
                blocks: list[dict[str, Any]] = [
                    {
                        "type": "tool_result",
                        "tool_use_id": msg.tool_call_id,
                        "content": msg.content,
                    }
                ]
            elif msg.role == MessageRole.ASSISTANT:
                role = "assistant"
                blocks = [{"type": "text", "text": msg.content}] if msg.content else []
                blocks.extend(
                    {"type": "tool_use", "id": call.id, "name": call.name, "input": call.arguments}
                    for call in msg.tool_calls
                )
            else:
                role = "user"
                blocks = [{"type": "text", "text": msg.content}]

            if turns and turns[-1]["role"] == role:
                turns[-1]["content"].extend(blocks)
            else:
                turns.append({"role": role, "content": blocks})

        return "\n\n".join(system_parts), turns

    async def complete(
        self,
        messages: list[Message],
        config: LLMConfig | None = None,
        tools: Sequence[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        """
        Generate a completion using Anthropic.

        Args:
            messages: List of conversation messages
            config: Optional configuration overrides
            tools: Optional tool schemas the model may call

        Returns:
            LLMResponse with generated content and tool calls
        """
        if config is None:
            config = LLMConfig()

        try:
            client = self._get_client()

            system_prompt, conversation = self._convert_messages(messages)

            params: dict[str, Any] = {
                "model": config.model or self.default_model,
                "max_tokens": config.max_tokens,
                "temperature": config.temperature,
                "messages": conversation,
            }
            if system_prompt:
                params["system"] = system_prompt
            if tools:
                params["tools"] = [
                    {
                        "name": tool["name"],
                        "description": tool.get("description", ""),
                        "input_schema": tool.get("input_schema", {"type": "object", "properties": {}}),
                    }
                    for tool in tools
                ]

            response = await client.messages.create(**params)

            text_chunks = []
            tool_calls = []
            for block in response.content or []:
                if block.type == "text":
                    text_chunks.append(block.text)
                elif block.type == "tool_use":
                    tool_calls.append(
                        ToolCall(id=block.id, name=block.name, arguments=dict(block.input or {}))
                    )

            usage = {
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens,
            }

            return LLMResponse(
                content="".join(text_chunks),
                tool_calls=tool_calls,
                model=response.model,
                usage=usage,
                finish_reason=response.stop_reason or "end_turn",
                provider=self.name,
            )

        except Exception as e:
            logger.error(f"Anthropic completion error: {e}", exc_info=True)
            raise
