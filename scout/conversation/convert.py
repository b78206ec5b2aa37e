"""
Conversion from transcript Messages to model-facing messages.

Transcript messages carry UI-shaped parts; the Language-Model Invocation
Port takes role/content messages with tool calls and tool turns. The
conversion is exhaustive over the Part union:

- TextPart: appended to the message content
- ReasoningPart: dropped (reasoning is never fed back to a model)
- ToolCallPart: an assistant tool call plus a tool turn carrying the
  output or error; calls without a terminal state are dropped, since
  there is nothing to answer them with
- StepBoundaryPart: closes the current assistant step
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from scout.errors import PartValidationError
from scout.providers.llm.base import Message as ModelMessage
from scout.providers.llm.base import ToolCall

from .message import Message
from .parts import ReasoningPart, StepBoundaryPart, TextPart, ToolCallPart, ToolCallState


def _render_output(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


class _StepBuffer:
    """Collects the parts of one assistant step."""

    def __init__(self) -> None:
        self.text: list[str] = []
        self.calls: list[ToolCallPart] = []

    def flush(self, out: list[ModelMessage]) -> None:
        if not self.text and not self.calls:
            return

        out.append(
            ModelMessage.assistant(
                "".join(self.text),
                tool_calls=[
                    ToolCall(
                        id=call.tool_call_id,
                        name=call.tool_name,
                        arguments=call.input if isinstance(call.input, dict) else {},
                    )
                    for call in self.calls
                ],
            )
        )
        for call in self.calls:
            if call.state == ToolCallState.OUTPUT_ERROR:
                content = f"Error: {call.error_text or 'tool failed'}"
            else:
                content = _render_output(call.output)
            out.append(ModelMessage.tool(call.tool_call_id, call.tool_name, content))

        self.text = []
        self.calls = []


def to_model_messages(messages: Sequence[Message]) -> list[ModelMessage]:
    """
    Convert a (compacted) transcript into model-facing messages.

    Raises:
        PartValidationError: If a message holds something that is not a Part
    """
    result: list[ModelMessage] = []

    for message in messages:
        if message.role != "assistant":
            text = "".join(p.text for p in message.parts if isinstance(p, TextPart))
            for part in message.parts:
                _check_part(part)
            if not text:
                continue
            if message.role == "system":
                result.append(ModelMessage.system(text))
            else:
                result.append(ModelMessage.user(text))
            continue

        step = _StepBuffer()
        for part in message.parts:
            _check_part(part)
            if isinstance(part, TextPart):
                step.text.append(part.text)
            elif isinstance(part, ToolCallPart):
                if part.is_terminal:
                    step.calls.append(part)
            elif isinstance(part, StepBoundaryPart):
                step.flush(result)
        step.flush(result)

    return result


def _check_part(part: Any) -> None:
    if not isinstance(part, (TextPart, ReasoningPart, ToolCallPart, StepBoundaryPart)):
        raise PartValidationError(f"Cannot convert message part: {type(part).__name__}")
