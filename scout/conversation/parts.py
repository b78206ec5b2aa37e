"""
Message Parts.

A Message is an ordered sequence of parts. The set of part variants is
closed:

- TextPart: plain text
- ReasoningPart: model reasoning text
- ToolCallPart: one tool invocation and (eventually) its output
- StepBoundaryPart: marks the start of a new model step

Wire format follows the UI-message shape used by the chat client:

    {"type": "text", "text": "..."}
    {"type": "reasoning", "text": "..."}
    {"type": "tool-<name>", "toolCallId": "...", "state": "...",
     "input": {...}, "output": ...}
    {"type": "dynamic-tool", "toolName": "...", ...}
    {"type": "step-start"}

Unknown variants raise PartValidationError. There is no pass-through for
unsupported parts.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Union

from scout.errors import PartValidationError


class ToolCallState(str, Enum):
    """Lifecycle state of a tool-call part."""

    INPUT_STREAMING = "input-streaming"
    INPUT_AVAILABLE = "input-available"
    EXECUTING = "executing"
    OUTPUT_AVAILABLE = "output-available"
    OUTPUT_ERROR = "output-error"
    APPROVAL_REQUESTED = "approval-requested"

    @property
    def is_terminal(self) -> bool:
        return self in (ToolCallState.OUTPUT_AVAILABLE, ToolCallState.OUTPUT_ERROR)


@dataclass(frozen=True, slots=True)
class TextPart:
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True, slots=True)
class ReasoningPart:
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "reasoning", "text": self.text}


@dataclass(frozen=True, slots=True)
class ToolCallPart:
    """
    A tool invocation recorded in a message.

    Attributes:
        tool_call_id: Provider-assigned call identifier
        tool_name: Name of the invoked tool
        state: Lifecycle state
        input: Arguments passed to the tool
        output: Tool output (present once state is output-available)
        error_text: Failure description (present once state is output-error)
        dynamic: True when serialised as "dynamic-tool" rather than "tool-<name>"
    """

    tool_call_id: str
    tool_name: str
    state: ToolCallState
    input: Any = None
    output: Any = None
    error_text: str | None = None
    dynamic: bool = False

    @property
    def has_output(self) -> bool:
        return self.state == ToolCallState.OUTPUT_AVAILABLE

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def with_output(self, output: Any) -> ToolCallPart:
        """Copy of this part with a different output."""
        return replace(self, output=output)

    def to_dict(self) -> dict[str, Any]:
        if self.dynamic:
            data: dict[str, Any] = {"type": "dynamic-tool", "toolName": self.tool_name}
        else:
            data = {"type": f"tool-{self.tool_name}"}
        data["toolCallId"] = self.tool_call_id
        data["state"] = self.state.value
        data["input"] = self.input
        if self.state == ToolCallState.OUTPUT_AVAILABLE:
            data["output"] = self.output
        if self.error_text is not None:
            data["errorText"] = self.error_text
        return data


@dataclass(frozen=True, slots=True)
class StepBoundaryPart:
    def to_dict(self) -> dict[str, Any]:
        return {"type": "step-start"}


Part = Union[TextPart, ReasoningPart, ToolCallPart, StepBoundaryPart]

PART_TYPES = (TextPart, ReasoningPart, ToolCallPart, StepBoundaryPart)


def part_to_dict(part: Part) -> dict[str, Any]:
    """Serialize a part to its wire form."""
    if not isinstance(part, PART_TYPES):
        raise PartValidationError(f"Not a message part: {type(part).__name__}")
    return part.to_dict()


def part_from_dict(data: dict[str, Any]) -> Part:
    """
    Parse a wire-form part.

    Raises:
        PartValidationError: If the part type is unknown or a required
            field is missing
    """
    if not isinstance(data, dict):
        raise PartValidationError(f"Message part must be an object, got {type(data).__name__}")

    part_type = data.get("type")
    if not isinstance(part_type, str):
        raise PartValidationError("Message part is missing 'type'")

    if part_type == "text":
        return TextPart(text=_require_str(data, "text"))
    if part_type == "reasoning":
        return ReasoningPart(text=_require_str(data, "text"))
    if part_type == "step-start":
        return StepBoundaryPart()
    if part_type == "dynamic-tool":
        return _tool_call_from_dict(data, _require_str(data, "toolName"), dynamic=True)
    if part_type.startswith("tool-") and len(part_type) > len("tool-"):
        return _tool_call_from_dict(data, part_type[len("tool-") :], dynamic=False)

    raise PartValidationError(f"Unsupported message part type: {part_type}")


def _tool_call_from_dict(data: dict[str, Any], tool_name: str, *, dynamic: bool) -> ToolCallPart:
    raw_state = _require_str(data, "state")
    try:
        state = ToolCallState(raw_state)
    except ValueError:
        raise PartValidationError(f"Unknown tool-call state: {raw_state}") from None

    return ToolCallPart(
        tool_call_id=_require_str(data, "toolCallId"),
        tool_name=tool_name,
        state=state,
        input=data.get("input"),
        output=data.get("output"),
        error_text=data.get("errorText"),
        dynamic=dynamic,
    )


def _require_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise PartValidationError(f"Message part field '{key}' must be a string")
    return value
