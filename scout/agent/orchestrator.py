"""
Thinker-Doer Orchestrator.

The orchestrator runs the planning loop:
1. Ask the planner for a decision (raw text, translated by parse_decision)
2. Delegate(task) → run the doer once with that exact task, feed its
   result back to the planner as a system turn → loop back
3. Finish(answer) → done

States: PLANNING → (DELEGATING → PLANNING)* → DONE

Design Principle:
    - Bounded iteration (max_steps); running out is StepBudgetExhausted
    - Output contract enforced in one place (parse_decision); any other
      shape is a ContractViolation and is never retried
    - Strictly sequential: at most one delegation per step
    - Every transition emits a frame through on_event

Runtime guard:
    With require_delegation=True (default) a Finish before any completed
    delegation is a ContractViolation. With False, the rule is left to
    the planner instructions alone.

Usage:
    orchestrator = ThinkerDoerOrchestrator(
        planner=registry.resolve(roles.planner),
        doer=DoerLoop(llm=registry.resolve(roles.doer), tools=browser_tools),
    )

    result = await orchestrator.orchestrate(history, on_event=send_to_client)
    print(result.final_text)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Sequence

from scout.conversation.convert import to_model_messages
from scout.conversation.message import Message
from scout.conversation.parts import Part, TextPart
from scout.errors import ContractViolation, StepBudgetExhausted
from scout.providers.llm.base import LLMConfig, generate
from scout.providers.llm.base import Message as ModelMessage

from .decision import Delegate, decision_label, parse_decision
from .doer import DoerResult
from .frames import (
    DecisionFrame,
    DelegationCompletedFrame,
    DelegationStartedFrame,
    FinishedFrame,
    Frame,
    FrameCallback,
    PlanningStartedFrame,
)
from .prompts import THINKER_PROMPT, summarize_delegation

if TYPE_CHECKING:
    from scout.providers.llm.base import LLMProvider

    from .doer import DoerLoop

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 10


@dataclass(frozen=True, slots=True)
class OrchestrationResult:
    """
    Result from one orchestrator invocation.

    Contains:
    - final_text: The answer for the user
    - steps: Planner (or agent) steps used
    - delegations: Every doer run, in order
    - frames: Every lifecycle frame, in order
    - parts: Parts of the assistant message that records the turn
    """

    final_text: str
    steps: int = 0
    delegations: tuple[DoerResult, ...] = ()
    frames: tuple[Frame, ...] = ()
    parts: tuple[Part, ...] = ()

    def to_message(self, **kwargs) -> Message:
        """The complete assistant message for the conversation store."""
        parts = self.parts or (TextPart(self.final_text),)
        return Message(role="assistant", parts=parts, **kwargs)


class Orchestrator(Protocol):
    """Anything the chat service can run for one request."""

    async def orchestrate(
        self,
        messages: Sequence[Message],
        max_steps: int | None = None,
        on_event: FrameCallback | None = None,
    ) -> OrchestrationResult:
        ...


class ThinkerDoerOrchestrator:
    """
    Planner/doer controller loop.

    Invariants:
    - The doer runs exactly once per Delegate decision, with the exact task
    - A doer result reaches the planner only as a system turn
    - Planner and doer are injected; nothing is module-level state

    Example:
        orchestrator = ThinkerDoerOrchestrator(planner=planner, doer=doer, max_steps=10)
        result = await orchestrator.orchestrate(messages)
        for run in result.delegations:
            print(run.result_text)
    """

    def __init__(
        self,
        *,
        planner: "LLMProvider",
        doer: "DoerLoop",
        max_steps: int = DEFAULT_MAX_STEPS,
        require_delegation: bool = True,
        instructions: str = THINKER_PROMPT,
        config: LLMConfig | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            planner: Model for the planning role
            doer: Execution loop used for every delegation
            max_steps: Planner step budget
            require_delegation: Reject Finish before the first delegation
            instructions: Planner system instructions
            config: Planner call settings
        """
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")

        self._planner = planner
        self._doer = doer
        self._max_steps = max_steps
        self._require_delegation = require_delegation
        self._instructions = instructions
        self._config = config or LLMConfig(temperature=0.2)

    async def orchestrate(
        self,
        messages: Sequence[Message],
        max_steps: int | None = None,
        on_event: FrameCallback | None = None,
    ) -> OrchestrationResult:
        """
        Run the planning loop until Finish or the step budget runs out.

        Args:
            messages: Conversation so far (already compacted)
            max_steps: Planner step budget for this invocation
            on_event: Awaited with every lifecycle frame

        Raises:
            ContractViolation: Planner output broke the TASK/FINISH contract
            StepBudgetExhausted: No Finish within max_steps
        """
        budget = max_steps if max_steps is not None else self._max_steps
        model_messages: list[ModelMessage] = to_model_messages(messages)
        frames: list[Frame] = []
        delegations: list[DoerResult] = []

        async def emit(frame: Frame) -> None:
            frames.append(frame)
            if on_event is not None:
                await on_event(frame)

        logger.info(
            f"[orchestrator] Starting. History: {len(model_messages)} messages, "
            f"max steps: {budget}, require delegation: {self._require_delegation}"
        )

        try:
            for step in range(1, budget + 1):
                await emit(PlanningStartedFrame(step=step, max_steps=budget))

                output = (
                    await generate(self._planner, self._instructions, model_messages, self._config)
                ).strip()
                await emit(DecisionFrame(step=step, decision=decision_label(output), content=output))

                decision = parse_decision(output)

                if isinstance(decision, Delegate):
                    logger.info(f"[orchestrator] Step {step}: delegating {decision.task[:80]!r}")
                    await emit(DelegationStartedFrame(step=step, task=decision.task))

                    result = await self._doer.run(decision.task)
                    delegations.append(result)

                    await emit(
                        DelegationCompletedFrame(
                            step=step,
                            result=result.result_text,
                            best_effort=result.best_effort,
                            doer_steps=result.steps,
                            tools_called=result.tools_called,
                        )
                    )
                    model_messages.append(ModelMessage.system(summarize_delegation(result.result_text)))
                    continue

                if self._require_delegation and not delegations:
                    raise ContractViolation(output, reason="finish_before_delegation")

                logger.info(
                    f"[orchestrator] Finished in {step} step(s) with {len(delegations)} delegation(s)"
                )
                await emit(FinishedFrame(step=step, final_answer=decision.answer))
                return OrchestrationResult(
                    final_text=decision.answer,
                    steps=step,
                    delegations=tuple(delegations),
                    frames=tuple(frames),
                )

        except asyncio.CancelledError:
            logger.info("[orchestrator] Execution cancelled")
            raise

        logger.warning(f"[orchestrator] Step budget ({budget}) exhausted")
        raise StepBudgetExhausted("orchestrator", budget)
