"""
Single-Agent Orchestrator.

One tool-calling role drives the whole conversation: the explorer for the
"default" service (it writes the test brief), the tester for "testing"
(it writes the test protocol). The loop mechanics are the DoerLoop's; the
difference is that this role sees the full conversation history instead
of a single task.

Usage:
    orchestrator = SingleAgentOrchestrator.for_service(
        "testing",
        llm=registry.resolve(roles.primary_model),
        tools=ToolRegistry([*browser_tools, *create_session_tools(store, "testing")]),
    )
    result = await orchestrator.orchestrate(history)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from scout.conversation.convert import to_model_messages
from scout.conversation.message import Message

from .doer import DEFAULT_MAX_STEPS, DoerLoop
from .frames import FinishedFrame, Frame, FrameCallback, PlanningStartedFrame
from .orchestrator import OrchestrationResult
from .prompts import instructions_for_service

if TYPE_CHECKING:
    from scout.providers.llm.base import LLMConfig, LLMProvider
    from scout.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class SingleAgentOrchestrator:
    """
    Runs one role's tool loop over the conversation.

    The step budget is not an error here: a cut-off run answers with its
    best-effort text, as the doer does.
    """

    def __init__(self, *, agent: DoerLoop, role: str = "agent"):
        self._agent = agent
        self._role = role

    @classmethod
    def for_service(
        cls,
        service: str,
        *,
        llm: "LLMProvider",
        tools: "ToolRegistry | None" = None,
        max_steps: int = DEFAULT_MAX_STEPS,
        config: "LLMConfig | None" = None,
    ) -> SingleAgentOrchestrator:
        """Tester for the "testing" service, explorer for everything else."""
        role = "tester" if service == "testing" else "explorer"
        agent = DoerLoop(
            llm=llm,
            tools=tools,
            instructions=instructions_for_service(service),
            max_steps=max_steps,
            config=config,
            role=role,
        )
        return cls(agent=agent, role=role)

    @property
    def role(self) -> str:
        return self._role

    async def orchestrate(
        self,
        messages: Sequence[Message],
        max_steps: int | None = None,
        on_event: FrameCallback | None = None,
    ) -> OrchestrationResult:
        budget = max_steps if max_steps is not None else self._agent.max_steps
        frames: list[Frame] = []

        async def emit(frame: Frame) -> None:
            frames.append(frame)
            if on_event is not None:
                await on_event(frame)

        await emit(PlanningStartedFrame(step=1, max_steps=budget, role=self._role))

        result = await self._agent.run_messages(
            to_model_messages(messages),
            max_steps=budget,
            on_frame=emit,
        )

        if result.best_effort:
            logger.warning(f"[{self._role}] Best-effort answer after {result.steps} step(s)")

        await emit(FinishedFrame(step=result.steps, final_answer=result.result_text))
        return OrchestrationResult(
            final_text=result.result_text,
            steps=result.steps,
            frames=tuple(frames),
            parts=result.to_parts(),
        )
