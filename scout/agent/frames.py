"""
Agent Frames.

Frames are immutable records of every decision an agent makes. The doer
records its tool calls and steps as frames (its transcript), and the
orchestrator reports its lifecycle as frames, which the streaming
emitter forwards to the client in order.

Doer frames:
- ToolCallFrame: the model asked for a tool
- ToolResultFrame: the tool answered (successfully or not)
- DoerStepFrame: one model call finished

Orchestrator frames (frame_type is the stream event name):
- PlanningStartedFrame: "planning-started"
- DecisionFrame: "decision-made"
- DelegationStartedFrame: "delegation-started"
- DelegationCompletedFrame: "delegation-completed"
- FinishedFrame: "finished"
- OrchestrationErrorFrame: "error"

Design Principle:
    If an execution cannot be explained by looking only at the frame
    stream, a frame is missing.

Usage:
    call = ToolCallFrame(tool_name="navigate_page", tool_arguments={"url": url}, step=1)
    result = create_tool_result_frame(call, tool_result, execution_time_ms=12.5)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeVar
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from scout.tools.base import ToolResult

F = TypeVar("F", bound="Frame")

FrameCallback = Callable[["Frame"], Awaitable[None]]


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, kw_only=True, slots=True)
class Frame:
    """
    Base class for all frames.

    Frames are immutable data containers with:
    - Unique ID for tracking
    - Creation timestamp
    - Source frame ID for lineage tracking
    - Metadata for extensibility
    """

    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)
    source_frame_id: UUID | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def frame_type(self) -> str:
        """Frame type name for logging and streaming."""
        return self.__class__.__name__

    def derive(self: F, **changes: Any) -> F:
        """New frame with a fresh id whose source_frame_id points at this one."""
        return replace(
            self,
            id=uuid4(),
            created_at=_utc_now(),
            source_frame_id=self.id,
            **changes,
        )

    def payload(self) -> dict[str, Any]:
        """Frame-specific fields (overridden by subclasses)."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize frame to dictionary for logging/streaming."""
        return {
            "id": str(self.id),
            "frame_type": self.frame_type,
            "created_at": self.created_at.isoformat(),
            "source_frame_id": str(self.source_frame_id) if self.source_frame_id else None,
            "metadata": self.metadata,
            **self.payload(),
        }

    def __repr__(self) -> str:
        return f"{self.frame_type}(id={str(self.id)[:8]}...)"


# =============================================================================
# Doer Frames
# =============================================================================


@dataclass(frozen=True, kw_only=True, slots=True)
class ToolCallFrame(Frame):
    """
    The doer's decision to call a tool.

    Emitted BEFORE tool execution.
    """

    tool_name: str
    tool_call_id: str = ""
    tool_arguments: dict[str, Any] = field(default_factory=dict)
    step: int = 0

    @property
    def frame_type(self) -> str:
        return "tool_call"

    def payload(self) -> dict[str, Any]:
        return {
            "tool_name": self.tool_name,
            "tool_call_id": self.tool_call_id,
            "tool_arguments": self.tool_arguments,
            "step": self.step,
        }


@dataclass(frozen=True, kw_only=True, slots=True)
class ToolResultFrame(Frame):
    """
    Result from tool execution.

    Emitted AFTER tool execution; failures are results too.
    """

    tool_name: str
    success: bool
    result_text: str
    tool_call_id: str = ""
    structured_result: dict[str, Any] | None = None
    error_message: str = ""
    execution_time_ms: float = 0.0
    step: int = 0

    @property
    def frame_type(self) -> str:
        return "tool_result"

    def payload(self) -> dict[str, Any]:
        return {
            "tool_name": self.tool_name,
            "tool_call_id": self.tool_call_id,
            "success": self.success,
            "result_text": self.result_text,
            "error_message": self.error_message,
            "execution_time_ms": self.execution_time_ms,
            "step": self.step,
        }


@dataclass(frozen=True, kw_only=True, slots=True)
class DoerStepFrame(Frame):
    """One model call of the doer loop."""

    step: int
    max_steps: int
    text: str = ""
    tool_calls: tuple[str, ...] = ()
    finish_reason: str = ""

    @property
    def frame_type(self) -> str:
        return "doer_step"

    @property
    def is_final(self) -> bool:
        return not self.tool_calls

    def payload(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "max_steps": self.max_steps,
            "text": self.text,
            "tool_calls": list(self.tool_calls),
            "finish_reason": self.finish_reason,
        }


# =============================================================================
# Orchestrator Frames
# =============================================================================


@dataclass(frozen=True, kw_only=True, slots=True)
class PlanningStartedFrame(Frame):
    """A planning (or single-agent) model call is about to happen."""

    step: int
    max_steps: int
    role: str = "planner"

    @property
    def frame_type(self) -> str:
        return "planning-started"

    def payload(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "max_steps": self.max_steps,
            "role": self.role,
            "message": f"{self.role.capitalize()} step {self.step}/{self.max_steps}",
        }


@dataclass(frozen=True, kw_only=True, slots=True)
class DecisionFrame(Frame):
    """
    The planner's raw output, classified.

    decision is "TASK", "FINISH" or "UNKNOWN"; content keeps the raw text.
    """

    step: int
    decision: str
    content: str

    @property
    def frame_type(self) -> str:
        return "decision-made"

    def payload(self) -> dict[str, Any]:
        return {"step": self.step, "decision": self.decision, "content": self.content}


@dataclass(frozen=True, kw_only=True, slots=True)
class DelegationStartedFrame(Frame):
    """A task was handed to the doer."""

    step: int
    task: str

    @property
    def frame_type(self) -> str:
        return "delegation-started"

    def payload(self) -> dict[str, Any]:
        return {"step": self.step, "task": self.task}


@dataclass(frozen=True, kw_only=True, slots=True)
class DelegationCompletedFrame(Frame):
    """The doer returned."""

    step: int
    result: str
    best_effort: bool = False
    doer_steps: int = 0
    tools_called: tuple[str, ...] = ()

    @property
    def frame_type(self) -> str:
        return "delegation-completed"

    def payload(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "result": self.result,
            "best_effort": self.best_effort,
            "doer_steps": self.doer_steps,
            "tools_called": list(self.tools_called),
        }


@dataclass(frozen=True, kw_only=True, slots=True)
class FinishedFrame(Frame):
    """The orchestrator produced its final answer."""

    step: int
    final_answer: str

    @property
    def frame_type(self) -> str:
        return "finished"

    def payload(self) -> dict[str, Any]:
        return {"step": self.step, "final_answer": self.final_answer}


@dataclass(frozen=True, kw_only=True, slots=True)
class OrchestrationErrorFrame(Frame):
    """The invocation failed; error_kind is the ScoutError kind."""

    error_kind: str
    error_message: str
    step: int = 0

    @property
    def frame_type(self) -> str:
        return "error"

    def payload(self) -> dict[str, Any]:
        return {"step": self.step, "error_kind": self.error_kind, "error": self.error_message}

    @classmethod
    def from_exception(cls, exc: Exception, step: int = 0) -> OrchestrationErrorFrame:
        return cls(
            error_kind=getattr(exc, "kind", "internal"),
            error_message=str(exc) or type(exc).__name__,
            step=step,
        )


# =============================================================================
# Factory Functions
# =============================================================================


def create_tool_result_frame(
    call_frame: ToolCallFrame,
    result: "ToolResult",
    execution_time_ms: float,
) -> ToolResultFrame:
    """
    Create a ToolResultFrame from a ToolResult.

    Args:
        call_frame: The ToolCallFrame that triggered the execution
        result: ToolResult from the registry
        execution_time_ms: How long execution took
    """
    return ToolResultFrame(
        tool_name=call_frame.tool_name,
        tool_call_id=call_frame.tool_call_id,
        success=not result.is_error,
        result_text=result.to_model_text(),
        structured_result=result.structured_content,
        error_message=result.text if result.is_error else "",
        execution_time_ms=execution_time_ms,
        step=call_frame.step,
        source_frame_id=call_frame.id,
    )
