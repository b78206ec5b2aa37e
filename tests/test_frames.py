"""
Tests for agent frames.

Frames are immutable; serialization must carry everything needed to
explain a run from the frame stream alone.
"""

import pytest

from scout.agent.frames import (
    DelegationCompletedFrame,
    DoerStepFrame,
    OrchestrationErrorFrame,
    PlanningStartedFrame,
    ToolCallFrame,
    create_tool_result_frame,
)
from scout.errors import ContractViolation
from scout.tools import ToolResult


class TestFrameBase:
    """Tests for shared frame behaviour."""

    def test_frames_are_immutable(self):
        frame = PlanningStartedFrame(step=1, max_steps=10)

        with pytest.raises(Exception):  # FrozenInstanceError
            frame.step = 2

    def test_derive_links_lineage(self):
        frame = PlanningStartedFrame(step=1, max_steps=10)
        derived = frame.derive(step=2)

        assert derived.id != frame.id
        assert derived.source_frame_id == frame.id
        assert derived.step == 2

    def test_to_dict_merges_payload(self):
        data = PlanningStartedFrame(step=3, max_steps=10, role="tester").to_dict()

        assert data["frame_type"] == "planning-started"
        assert data["step"] == 3
        assert data["role"] == "tester"
        assert data["message"] == "Tester step 3/10"
        assert data["source_frame_id"] is None


class TestDoerFrames:
    """Tests for doer frames."""

    def test_tool_result_from_success(self):
        call = ToolCallFrame(tool_name="take_snapshot", tool_call_id="c1", step=2)
        result = create_tool_result_frame(call, ToolResult.success("uid=1 button 'Login'"), 12.5)

        assert result.success is True
        assert result.result_text == "uid=1 button 'Login'"
        assert result.error_message == ""
        assert result.source_frame_id == call.id
        assert result.step == 2
        assert result.to_dict()["execution_time_ms"] == 12.5

    def test_tool_result_from_error(self):
        call = ToolCallFrame(tool_name="click", tool_call_id="c2")
        result = create_tool_result_frame(call, ToolResult.error("Element not found"), 1.0)

        assert result.success is False
        assert result.error_message == "Error: Element not found"

    def test_step_frame_final(self):
        assert DoerStepFrame(step=1, max_steps=10).is_final is True
        assert DoerStepFrame(step=1, max_steps=10, tool_calls=("click",)).is_final is False

    def test_delegation_completed_payload(self):
        frame = DelegationCompletedFrame(step=1, result="ok", tools_called=("click", "click"))
        assert frame.to_dict()["tools_called"] == ["click", "click"]


class TestErrorFrame:
    """Tests for OrchestrationErrorFrame."""

    def test_from_scout_error(self):
        frame = OrchestrationErrorFrame.from_exception(ContractViolation("hello"))

        assert frame.frame_type == "error"
        assert frame.error_kind == "contract_violation"
        assert "hello" in frame.to_dict()["error"]

    def test_from_unexpected_error(self):
        frame = OrchestrationErrorFrame.from_exception(KeyError())

        assert frame.error_kind == "internal"
        assert frame.error_message == "KeyError"
