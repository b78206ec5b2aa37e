"""
Scout - a Thinker-Doer orchestration core for agentic web testing.

A user describes a loose web-testing goal. A planning role turns it into
delegated tasks, an execution role carries them out with browser tools,
and every turn is kept as a durable, replayable transcript.

- **Orchestrator Loop**: planner with a strict TASK | FINISH contract
- **Doer**: bounded tool-calling loop for one delegated task
- **Compaction**: older tool outputs are redacted from the model context
- **Conversation Store**: append-only transcripts per service key
- **Streaming**: ordered lifecycle events followed by the answer text

Quick Start:
    >>> from scout.agent import DoerLoop, ThinkerDoerOrchestrator
    >>> from scout.conversation import Message
    >>>
    >>> orchestrator = ThinkerDoerOrchestrator(
    ...     planner=planner_model,
    ...     doer=DoerLoop(llm=doer_model, tools=browser_tools),
    ... )
    >>> result = await orchestrator.orchestrate([Message.user_text("Is example.com up?")])
"""

__version__ = "0.1.0"

from scout.errors import (
    ContractViolation,
    PartValidationError,
    PersistenceFailure,
    ScoutError,
    StepBudgetExhausted,
    ToolExecutionFailure,
)

__all__ = [
    "ContractViolation",
    "PartValidationError",
    "PersistenceFailure",
    "ScoutError",
    "StepBudgetExhausted",
    "ToolExecutionFailure",
    "__version__",
]
