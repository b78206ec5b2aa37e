"""
Pytest configuration and fixtures for Scout tests.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from scout.agent import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from scout.conversation import (  # noqa: E402
    InMemoryConversationStore,
    Message,
    StepBoundaryPart,
    TextPart,
    ToolCallPart,
    ToolCallState,
)
from scout.providers.llm import LLMResponse, ToolCall  # noqa: E402
from scout.tools import Tool, ToolRegistry, ToolResult  # noqa: E402

# =============================================================================
# Fake Model
# =============================================================================


class ScriptedLLM:
    """
    LLM provider that replays queued responses.

    Strings become plain text responses. With repeat_last=True the final
    response is returned forever once the queue is drained.
    """

    def __init__(self, responses, *, repeat_last: bool = False, name: str = "scripted"):
        self._responses = [
            LLMResponse(content=r) if isinstance(r, str) else r for r in responses
        ]
        self._repeat_last = repeat_last
        self._name = name
        self.calls = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def complete(self, messages, config=None, tools=None):
        self.calls.append({"messages": list(messages), "config": config, "tools": tools})
        if len(self._responses) > 1 or (self._responses and not self._repeat_last):
            return self._responses.pop(0)
        if self._responses:
            return self._responses[0]
        raise AssertionError("ScriptedLLM ran out of responses")


def tool_call_response(name: str, arguments: dict | None = None, call_id: str = "call-1", content: str = ""):
    """An LLMResponse that requests one tool call."""
    return LLMResponse(
        content=content,
        tool_calls=[ToolCall(id=call_id, name=name, arguments=arguments or {})],
        finish_reason="tool_calls",
    )


# =============================================================================
# Fake Tools
# =============================================================================


class EchoTool(Tool):
    """Returns its input text."""

    def __init__(self, name: str = "echo"):
        self._name = name
        self.call_count = 0
        self.last_arguments = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return "Echo the input back"

    @property
    def input_schema(self) -> dict:
        return {
            "type": "object",
            "properties": {"text": {"type": "string"}},
            "required": ["text"],
        }

    async def execute(self, arguments: dict) -> ToolResult:
        self.call_count += 1
        self.last_arguments = arguments
        return ToolResult.success(f"echo: {arguments['text']}")


class BrokenTool(Tool):
    """Always reports an error result."""

    def __init__(self, name: str = "navigate_page", message: str = "Navigation timeout"):
        self._name = name
        self._message = message
        self.call_count = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return "A tool that always fails"

    @property
    def input_schema(self) -> dict:
        return {"type": "object", "properties": {}}

    async def execute(self, arguments: dict) -> ToolResult:
        self.call_count += 1
        return ToolResult.error(self._message)


class RaisingTool(Tool):
    """Raises instead of returning a result."""

    @property
    def name(self) -> str:
        return "raising_tool"

    @property
    def description(self) -> str:
        return "A tool that raises"

    @property
    def input_schema(self) -> dict:
        return {"type": "object", "properties": {}}

    async def execute(self, arguments: dict) -> ToolResult:
        raise RuntimeError("browser crashed")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def make_llm():
    """Factory for scripted LLM providers."""

    def factory(*responses, repeat_last: bool = False, name: str = "scripted"):
        return ScriptedLLM(responses, repeat_last=repeat_last, name=name)

    return factory


@pytest.fixture
def echo_tool():
    return EchoTool()


@pytest.fixture
def broken_tool():
    return BrokenTool()


@pytest.fixture
def raising_tool():
    return RaisingTool()


@pytest.fixture
def tool_registry(echo_tool):
    """Registry with the echo tool."""
    return ToolRegistry([echo_tool])


@pytest.fixture
def store():
    """In-memory conversation store."""
    return InMemoryConversationStore()


def tool_part(call_id: str, output="page snapshot", name: str = "take_snapshot") -> ToolCallPart:
    """A completed tool-call part."""
    return ToolCallPart(
        tool_call_id=call_id,
        tool_name=name,
        state=ToolCallState.OUTPUT_AVAILABLE,
        input={},
        output=output,
    )


@pytest.fixture
def sample_history():
    """User question, assistant tool step, assistant answer."""
    return [
        Message.user_text("Check https://www.saucedemo.com/"),
        Message(
            role="assistant",
            parts=(
                StepBoundaryPart(),
                tool_part("call-1", output="login form visible"),
                StepBoundaryPart(),
                TextPart("The login form is visible."),
            ),
        ),
    ]

