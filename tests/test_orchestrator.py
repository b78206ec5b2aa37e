"""
Tests for the Thinker-Doer Orchestrator and the single-agent mode.

Tests cover:
- Delegation then finish
- The finish-before-delegation guard (on and off)
- Contract violations and step budget exhaustion
- Lifecycle frame stream (every decision visible)
- Single-agent explorer/tester orchestration
"""

import pytest
from conftest import tool_call_response

from scout.agent import (
    DecisionFrame,
    DelegationCompletedFrame,
    DelegationStartedFrame,
    DoerLoop,
    FinishedFrame,
    PlanningStartedFrame,
    SingleAgentOrchestrator,
    ThinkerDoerOrchestrator,
)
from scout.agent.frames import DoerStepFrame, ToolCallFrame, ToolResultFrame
from scout.agent.prompts import EXPLORER_PROMPT, TESTER_PROMPT, THINKER_PROMPT
from scout.conversation import Message, StepBoundaryPart, TextPart, ToolCallPart
from scout.errors import ContractViolation, StepBudgetExhausted
from scout.providers.llm import MessageRole
from scout.tools import ToolRegistry

WEATHER_TASK = "get current weather in Prague"
DOER_RESULT = "Prague: 18°C, light rain"


@pytest.fixture
def doer_llm(make_llm):
    return make_llm(DOER_RESULT, repeat_last=True, name="doer")


def build(planner, doer_llm, **kwargs):
    return ThinkerDoerOrchestrator(planner=planner, doer=DoerLoop(llm=doer_llm), **kwargs)


# =============================================================================
# Delegation Tests
# =============================================================================


class TestThinkerDoer:
    """Tests for ThinkerDoerOrchestrator.orchestrate()."""

    @pytest.mark.asyncio
    async def test_delegate_then_finish(self, make_llm, doer_llm):
        """TASK then FINISH: one doer run, answer returned, two planner calls."""
        planner = make_llm(f"TASK: {WEATHER_TASK}", "FINISH: It is 18°C with light rain in Prague.")
        orchestrator = build(planner, doer_llm)

        result = await orchestrator.orchestrate([Message.user_text("What's the weather in Prague?")])

        assert result.final_text == "It is 18°C with light rain in Prague."
        assert result.steps == 2
        assert planner.call_count == 2
        assert doer_llm.call_count == 1
        assert len(result.delegations) == 1
        assert result.delegations[0].result_text == DOER_RESULT

    @pytest.mark.asyncio
    async def test_doer_receives_exact_task(self, make_llm, doer_llm):
        planner = make_llm(f"TASK: {WEATHER_TASK}", "FINISH: done")

        await build(planner, doer_llm).orchestrate([Message.user_text("weather?")])

        doer_messages = doer_llm.calls[0]["messages"]
        assert doer_messages[-1].role == MessageRole.USER
        assert doer_messages[-1].content == WEATHER_TASK
        # The doer never sees the user's conversation
        assert all(m.content != "weather?" for m in doer_messages)

    @pytest.mark.asyncio
    async def test_doer_result_returned_as_system_turn(self, make_llm, doer_llm):
        planner = make_llm(f"TASK: {WEATHER_TASK}", "FINISH: done")

        await build(planner, doer_llm).orchestrate([Message.user_text("weather?")])

        second = planner.calls[1]["messages"]
        assert second[0].role == MessageRole.SYSTEM
        assert second[0].content == THINKER_PROMPT
        assert second[-1].role == MessageRole.SYSTEM
        assert second[-1].content == (
            f"RESULT FROM SUB-AGENT:\n{DOER_RESULT}\nUse this to produce a FINISH response."
        )

    @pytest.mark.asyncio
    async def test_one_doer_run_per_task(self, make_llm, doer_llm):
        planner = make_llm("TASK: open the shop", "TASK: add the most expensive item", "FINISH: added")

        result = await build(planner, doer_llm).orchestrate([Message.user_text("buy")])

        assert doer_llm.call_count == 2
        assert len(result.delegations) == 2
        assert result.steps == 3

    @pytest.mark.asyncio
    async def test_history_reaches_planner(self, make_llm, doer_llm, sample_history):
        planner = make_llm(f"TASK: {WEATHER_TASK}", "FINISH: done")
        history = [*sample_history, Message.user_text("and the weather?")]

        await build(planner, doer_llm).orchestrate(history)

        first = planner.calls[0]["messages"]
        assert first[1].content == "Check https://www.saucedemo.com/"
        assert first[-1].content == "and the weather?"


# =============================================================================
# Guard Tests
# =============================================================================


class TestDelegationGuard:
    """Tests for the finish-before-delegation guard."""

    @pytest.mark.asyncio
    async def test_finish_without_delegation_rejected(self, make_llm, doer_llm):
        planner = make_llm("FINISH: The weather is sunny.")

        with pytest.raises(ContractViolation) as exc:
            await build(planner, doer_llm).orchestrate([Message.user_text("weather?")])

        assert exc.value.reason == "finish_before_delegation"
        assert doer_llm.call_count == 0

    @pytest.mark.asyncio
    async def test_finish_without_delegation_allowed_when_guard_off(self, make_llm, doer_llm):
        planner = make_llm("FINISH: Hello! What should I test?")

        result = await build(planner, doer_llm, require_delegation=False).orchestrate(
            [Message.user_text("hi")]
        )

        assert result.final_text == "Hello! What should I test?"
        assert result.delegations == ()
        assert doer_llm.call_count == 0


# =============================================================================
# Failure Tests
# =============================================================================


class TestOrchestratorFailures:
    """Tests for contract violations and budget exhaustion."""

    @pytest.mark.asyncio
    async def test_free_text_is_contract_violation(self, make_llm, doer_llm):
        planner = make_llm("The weather in Prague is usually mild.")

        with pytest.raises(ContractViolation) as exc:
            await build(planner, doer_llm).orchestrate([Message.user_text("weather?")])

        assert exc.value.reason == "grammar"
        # Never retried
        assert planner.call_count == 1

    @pytest.mark.asyncio
    async def test_violation_after_delegation(self, make_llm, doer_llm):
        planner = make_llm(f"TASK: {WEATHER_TASK}", "It rains.")

        with pytest.raises(ContractViolation):
            await build(planner, doer_llm).orchestrate([Message.user_text("weather?")])

        assert doer_llm.call_count == 1

    @pytest.mark.asyncio
    async def test_budget_exhausted(self, make_llm, doer_llm):
        planner = make_llm("TASK: look again", repeat_last=True)

        with pytest.raises(StepBudgetExhausted) as exc:
            await build(planner, doer_llm, max_steps=3).orchestrate([Message.user_text("x")])

        assert exc.value.max_steps == 3
        assert planner.call_count == 3
        assert doer_llm.call_count == 3

    @pytest.mark.asyncio
    async def test_per_invocation_budget(self, make_llm, doer_llm):
        planner = make_llm("TASK: look again", repeat_last=True)

        with pytest.raises(StepBudgetExhausted):
            await build(planner, doer_llm).orchestrate([Message.user_text("x")], max_steps=1)

        assert planner.call_count == 1

    @pytest.mark.asyncio
    async def test_best_effort_doer_result_still_reported(self, make_llm, broken_tool):
        planner = make_llm("TASK: open https://example.com", "FINISH: The site did not load.")
        doer_llm = make_llm(tool_call_response("navigate_page"), repeat_last=True)
        doer = DoerLoop(llm=doer_llm, tools=ToolRegistry([broken_tool]), max_steps=2)

        result = await ThinkerDoerOrchestrator(planner=planner, doer=doer).orchestrate(
            [Message.user_text("is it up?")]
        )

        assert result.delegations[0].best_effort is True
        assert "Navigation timeout" in planner.calls[1]["messages"][-1].content
        assert result.final_text == "The site did not load."

    def test_invalid_budget(self, make_llm, doer_llm):
        with pytest.raises(ValueError):
            build(make_llm("x"), doer_llm, max_steps=0)


# =============================================================================
# Frame Stream Tests
# =============================================================================


class TestLifecycleFrames:
    """Every decision must be visible in the frame stream."""

    @pytest.mark.asyncio
    async def test_event_order(self, make_llm, doer_llm):
        planner = make_llm(f"TASK: {WEATHER_TASK}", "FINISH: done")
        events = []

        async def on_event(frame):
            events.append(frame)

        result = await build(planner, doer_llm).orchestrate(
            [Message.user_text("weather?")], on_event=on_event
        )

        assert [f.frame_type for f in events] == [
            "planning-started",
            "decision-made",
            "delegation-started",
            "delegation-completed",
            "planning-started",
            "decision-made",
            "finished",
        ]
        assert list(result.frames) == events

    @pytest.mark.asyncio
    async def test_frame_contents(self, make_llm, doer_llm):
        planner = make_llm(f"TASK: {WEATHER_TASK}", "FINISH: done")

        result = await build(planner, doer_llm, max_steps=5).orchestrate([Message.user_text("x")])
        started, decision, delegation, completed, _, _, finished = result.frames

        assert isinstance(started, PlanningStartedFrame)
        assert started.to_dict()["max_steps"] == 5
        assert isinstance(decision, DecisionFrame) and decision.decision == "TASK"
        assert isinstance(delegation, DelegationStartedFrame) and delegation.task == WEATHER_TASK
        assert isinstance(completed, DelegationCompletedFrame) and completed.result == DOER_RESULT
        assert isinstance(finished, FinishedFrame) and finished.final_answer == "done"

    @pytest.mark.asyncio
    async def test_violation_decision_is_visible(self, make_llm, doer_llm):
        planner = make_llm("no prefix here")
        events = []

        async def on_event(frame):
            events.append(frame)

        with pytest.raises(ContractViolation):
            await build(planner, doer_llm).orchestrate([Message.user_text("x")], on_event=on_event)

        assert events[-1].frame_type == "decision-made"
        assert events[-1].decision == "UNKNOWN"
        assert events[-1].content == "no prefix here"

    @pytest.mark.asyncio
    async def test_result_to_message(self, make_llm, doer_llm):
        planner = make_llm(f"TASK: {WEATHER_TASK}", "FINISH: done")

        result = await build(planner, doer_llm).orchestrate([Message.user_text("x")])
        message = result.to_message(id="assistant-1")

        assert message.id == "assistant-1"
        assert message.role == "assistant"
        assert message.parts == (TextPart("done"),)


# =============================================================================
# Single-Agent Tests
# =============================================================================


class TestSingleAgent:
    """Tests for SingleAgentOrchestrator."""

    @pytest.mark.parametrize(
        "service, role, prompt",
        [("default", "explorer", EXPLORER_PROMPT), ("testing", "tester", TESTER_PROMPT)],
    )
    @pytest.mark.asyncio
    async def test_role_by_service(self, make_llm, service, role, prompt):
        llm = make_llm("Hi! What should I test?")

        orchestrator = SingleAgentOrchestrator.for_service(service, llm=llm)
        await orchestrator.orchestrate([Message.user_text("hi")])

        assert orchestrator.role == role
        assert llm.calls[0]["messages"][0].content == prompt

    @pytest.mark.asyncio
    async def test_sees_full_history(self, make_llm, sample_history):
        llm = make_llm("ok")

        await SingleAgentOrchestrator.for_service("default", llm=llm).orchestrate(sample_history)

        roles = [m.role for m in llm.calls[0]["messages"]]
        assert roles == [
            MessageRole.SYSTEM,
            MessageRole.USER,
            MessageRole.ASSISTANT,
            MessageRole.TOOL,
            MessageRole.ASSISTANT,
        ]

    @pytest.mark.asyncio
    async def test_tool_loop_and_parts(self, make_llm, tool_registry):
        llm = make_llm(tool_call_response("echo", {"text": "brief"}), "Brief stored.")
        events = []

        async def on_event(frame):
            events.append(frame)

        result = await SingleAgentOrchestrator.for_service(
            "default", llm=llm, tools=tool_registry
        ).orchestrate([Message.user_text("go")], on_event=on_event)

        assert result.final_text == "Brief stored."
        assert [type(f) for f in events] == [
            PlanningStartedFrame,
            DoerStepFrame,
            ToolCallFrame,
            ToolResultFrame,
            DoerStepFrame,
            FinishedFrame,
        ]
        assert [type(p) for p in result.parts] == [
            StepBoundaryPart,
            ToolCallPart,
            StepBoundaryPart,
            TextPart,
        ]
        assert result.to_message().is_complete is True

    @pytest.mark.asyncio
    async def test_budget_is_not_an_error(self, make_llm, tool_registry):
        llm = make_llm(tool_call_response("echo", {"text": "again"}), repeat_last=True)

        result = await SingleAgentOrchestrator.for_service(
            "testing", llm=llm, tools=tool_registry, max_steps=3
        ).orchestrate([Message.user_text("go")])

        assert llm.call_count == 3
        assert result.final_text.startswith("Task not completed")
