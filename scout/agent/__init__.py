"""
Scout Agent

Bounded agent loops:
- DoerLoop: executes one task with tool calling
- ThinkerDoerOrchestrator: planner that delegates tasks to the doer
- SingleAgentOrchestrator: explorer/tester role over the whole conversation
- stream_orchestration: live event + text stream for one run
"""

from .decision import Delegate, Finish, parse_decision
from .doer import DoerLoop, DoerResult
from .emitter import OrchestrationStream, StreamChunk, stream_orchestration, to_sse
from .frames import (
    DecisionFrame,
    DelegationCompletedFrame,
    DelegationStartedFrame,
    DoerStepFrame,
    FinishedFrame,
    Frame,
    OrchestrationErrorFrame,
    PlanningStartedFrame,
    ToolCallFrame,
    ToolResultFrame,
)
from .orchestrator import OrchestrationResult, Orchestrator, ThinkerDoerOrchestrator
from .prompts import DOER_PROMPT, EXPLORER_PROMPT, TESTER_PROMPT, THINKER_PROMPT
from .single import SingleAgentOrchestrator

__all__ = [
    # Decisions
    "Delegate",
    "Finish",
    "parse_decision",
    # Loops
    "DoerLoop",
    "DoerResult",
    "OrchestrationResult",
    "Orchestrator",
    "SingleAgentOrchestrator",
    "ThinkerDoerOrchestrator",
    # Streaming
    "OrchestrationStream",
    "StreamChunk",
    "stream_orchestration",
    "to_sse",
    # Frames
    "DecisionFrame",
    "DelegationCompletedFrame",
    "DelegationStartedFrame",
    "DoerStepFrame",
    "FinishedFrame",
    "Frame",
    "OrchestrationErrorFrame",
    "PlanningStartedFrame",
    "ToolCallFrame",
    "ToolResultFrame",
    # Prompts
    "DOER_PROMPT",
    "EXPLORER_PROMPT",
    "TESTER_PROMPT",
    "THINKER_PROMPT",
]
