"""
Doer (Sub-Agent Execution Loop).

The DoerLoop runs one bounded tool-calling loop for one task:
1. Call the model with the doer instructions and the conversation so far
2. If the model requested tools, execute each through the registry and
   feed the results back as tool turns, then loop
3. If the model answered without tool calls, done

Design Principle:
    - Bounded iteration (max_steps); the budget is never an exception
    - Tool failures are results: the model reads them and adapts
    - Every step emits a frame; the frames are the doer's transcript

The doer starts from a fresh conversation for every delegated task. It
never sees the planner's history, only the task text.

Usage:
    doer = DoerLoop(llm=registry.resolve(roles.doer), tools=browser_tools)

    result = await doer.run("open https://example.com and report the page title")
    print(result.result_text)

    # Audit: every tool call is in result.transcript
    for frame in result.transcript:
        print(frame.frame_type)
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Sequence

from scout.conversation.parts import Part, StepBoundaryPart, TextPart, ToolCallPart, ToolCallState
from scout.providers.llm.base import LLMConfig, Message
from scout.tools.registry import ToolRegistry

from .frames import (
    DoerStepFrame,
    Frame,
    FrameCallback,
    ToolCallFrame,
    ToolResultFrame,
    create_tool_result_frame,
)
from .prompts import DOER_PROMPT

if TYPE_CHECKING:
    from scout.providers.llm.base import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 10

StopReason = Literal["completed", "max_steps"]


@dataclass(frozen=True, slots=True)
class DoerResult:
    """
    Result from one doer run.

    Contains:
    - result_text: Final answer, or a failure report
    - transcript: Every frame emitted during the run, in order
    - steps: Model calls made
    - best_effort: True when the loop was cut off by its step budget, or
      produced no answer of its own
    - tools_called: Tool names in call order
    - stop_reason: "completed" or "max_steps"
    """

    result_text: str
    transcript: tuple[Frame, ...] = ()
    steps: int = 0
    best_effort: bool = False
    tools_called: tuple[str, ...] = ()
    stop_reason: StopReason = "completed"

    @property
    def tool_results(self) -> tuple[ToolResultFrame, ...]:
        return tuple(f for f in self.transcript if isinstance(f, ToolResultFrame))

    def to_parts(self) -> tuple[Part, ...]:
        """
        Message parts for the assistant message that records this run.

        Each step opens with a StepBoundaryPart, followed by its tool
        calls (always terminal) and, at the end, the result text.
        """
        parts: list[Part] = []
        calls: dict[str, ToolCallFrame] = {}

        for frame in self.transcript:
            if isinstance(frame, DoerStepFrame):
                parts.append(StepBoundaryPart())
            elif isinstance(frame, ToolCallFrame):
                calls[frame.tool_call_id] = frame
            elif isinstance(frame, ToolResultFrame):
                call = calls.get(frame.tool_call_id)
                parts.append(
                    ToolCallPart(
                        tool_call_id=frame.tool_call_id,
                        tool_name=frame.tool_name,
                        state=(
                            ToolCallState.OUTPUT_AVAILABLE
                            if frame.success
                            else ToolCallState.OUTPUT_ERROR
                        ),
                        input=call.tool_arguments if call else {},
                        output=frame.result_text if frame.success else None,
                        error_text=None if frame.success else frame.error_message,
                    )
                )

        if self.result_text:
            parts.append(TextPart(self.result_text))
        return tuple(parts)


class DoerLoop:
    """
    Executes one task with bounded tool calling.

    Invariants:
    - At most max_steps model calls per run
    - Tool calls of one model step run sequentially, in the order requested
    - No exception for tool failures or an exhausted budget; model-call
      errors propagate

    Example:
        doer = DoerLoop(llm=model, tools=ToolRegistry([NavigateTool(browser)]))
        result = await doer.run("find the most expensive product", max_steps=5)

        if result.best_effort:
            print(f"Stopped after {result.steps} steps")
    """

    def __init__(
        self,
        *,
        llm: "LLMProvider",
        tools: ToolRegistry | None = None,
        instructions: str = DOER_PROMPT,
        max_steps: int = DEFAULT_MAX_STEPS,
        config: LLMConfig | None = None,
        role: str = "doer",
    ):
        """
        Initialize the loop.

        Args:
            llm: Model used for every step
            tools: Default capabilities (a run may override them)
            instructions: System instructions for the model
            max_steps: Default step budget
            config: Model call settings
            role: Name used in logs and frames
        """
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")

        self._llm = llm
        self._tools = tools if tools is not None else ToolRegistry()
        self._instructions = instructions
        self._max_steps = max_steps
        self._config = config or LLMConfig(temperature=0.2)
        self._role = role

    @property
    def max_steps(self) -> int:
        return self._max_steps

    async def run(
        self,
        task: str,
        tools: ToolRegistry | None = None,
        max_steps: int | None = None,
        on_frame: FrameCallback | None = None,
    ) -> DoerResult:
        """
        Execute a single task in a fresh conversation.

        Args:
            task: The exact task text; it is the only user turn
            tools: Capabilities for this run (defaults to the loop's)
            max_steps: Step budget for this run
            on_frame: Awaited with every frame as it is emitted

        Returns:
            DoerResult; best_effort=True if the budget ran out
        """
        return await self.run_messages(
            [Message.user(task)],
            tools=tools,
            max_steps=max_steps,
            on_frame=on_frame,
        )

    async def run_messages(
        self,
        messages: Sequence[Message],
        tools: ToolRegistry | None = None,
        max_steps: int | None = None,
        on_frame: FrameCallback | None = None,
    ) -> DoerResult:
        """
        Run the loop over an existing model conversation.

        The conversation is copied; the caller's list is never modified.
        """
        registry = tools if tools is not None else self._tools
        budget = max_steps if max_steps is not None else self._max_steps
        if budget < 1:
            raise ValueError("max_steps must be at least 1")

        conversation: list[Message] = [Message.system(self._instructions), *messages]
        schemas = registry.to_llm_schemas() or None

        transcript: list[Frame] = []
        tools_called: list[str] = []
        last_text = ""
        last_tool_error: str | None = None

        async def emit(frame: Frame) -> None:
            transcript.append(frame)
            if on_frame is not None:
                await on_frame(frame)

        logger.info(
            f"[{self._role}] Starting loop. "
            f"Tools: {registry.list_names()}, max steps: {budget}"
        )

        try:
            for step in range(1, budget + 1):
                response = await self._llm.complete(conversation, config=self._config, tools=schemas)

                text = (response.content or "").strip()
                if text:
                    last_text = text

                await emit(
                    DoerStepFrame(
                        step=step,
                        max_steps=budget,
                        text=text,
                        tool_calls=tuple(call.name for call in response.tool_calls),
                        finish_reason=response.finish_reason,
                    )
                )

                if not response.has_tool_calls:
                    logger.info(f"[{self._role}] Completed in {step} step(s)")
                    return DoerResult(
                        result_text=text or self._no_result_report(step, last_tool_error),
                        transcript=tuple(transcript),
                        steps=step,
                        best_effort=not text,
                        tools_called=tuple(tools_called),
                        stop_reason="completed",
                    )

                conversation.append(Message.assistant(response.content or "", response.tool_calls))

                for call in response.tool_calls:
                    call_frame = ToolCallFrame(
                        tool_name=call.name,
                        tool_call_id=call.id,
                        tool_arguments=dict(call.arguments),
                        step=step,
                    )
                    await emit(call_frame)

                    start = time.perf_counter()
                    result = await registry.execute(call.name, call.arguments)
                    duration = (time.perf_counter() - start) * 1000

                    result_frame = create_tool_result_frame(call_frame, result, duration)
                    await emit(result_frame)
                    tools_called.append(call.name)

                    if result.is_error:
                        last_tool_error = result.text
                        logger.warning(f"[{self._role}] Tool {call.name} failed: {result.text}")
                    else:
                        logger.debug(f"[{self._role}] Tool {call.name} succeeded in {duration:.0f}ms")

                    conversation.append(Message.tool(call.id, call.name, result.to_model_text()))

        except asyncio.CancelledError:
            logger.info(f"[{self._role}] Execution cancelled")
            raise

        logger.warning(f"[{self._role}] Step budget ({budget}) exhausted")
        return DoerResult(
            result_text=last_text or self._budget_report(budget, last_tool_error),
            transcript=tuple(transcript),
            steps=budget,
            best_effort=True,
            tools_called=tuple(tools_called),
            stop_reason="max_steps",
        )

    @staticmethod
    def _budget_report(max_steps: int, last_tool_error: str | None) -> str:
        report = f"Task not completed: step budget of {max_steps} steps exhausted."
        if last_tool_error:
            report += f" Last tool error: {last_tool_error}"
        return report

    @staticmethod
    def _no_result_report(steps: int, last_tool_error: str | None) -> str:
        report = f"Task not completed: no result was produced after {steps} step(s)."
        if last_tool_error:
            report += f" Last tool error: {last_tool_error}"
        return report
