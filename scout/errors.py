"""
Error Taxonomy for Scout.

Every failure the orchestration core can surface derives from ScoutError.

- ContractViolation: planner output does not match the TASK/FINISH grammar
- StepBudgetExhausted: a bounded loop ran out of steps
- ToolExecutionFailure: a capability call failed (recovered in-band)
- PersistenceFailure: conversation store read/write failed
- PartValidationError: malformed message part on the wire

Only ContractViolation and StepBudgetExhausted are fatal for an
orchestrator invocation. The others are converted into in-band results
by the layer that catches them.
"""

from __future__ import annotations


class ScoutError(Exception):
    """Base class for all Scout errors."""

    kind: str = "internal"


class ContractViolation(ScoutError):
    """
    Planner output broke the two-branch output contract.

    Attributes:
        text: The offending raw output (kept for diagnosis)
        reason: Machine-readable reason ("grammar", "empty_payload",
                "finish_before_delegation")
    """

    kind = "contract_violation"

    def __init__(self, text: str, reason: str = "grammar") -> None:
        self.text = text
        self.reason = reason
        if reason == "finish_before_delegation":
            message = f"Planner finished before any delegation completed: {text}"
        else:
            message = f"Planner violated contract (TASK | FINISH): {text}"
        super().__init__(message)


class StepBudgetExhausted(ScoutError):
    """A bounded loop reached max_steps without a terminal state."""

    kind = "step_budget_exhausted"

    def __init__(self, loop: str, max_steps: int) -> None:
        self.loop = loop
        self.max_steps = max_steps
        super().__init__(f"{loop.capitalize()} did not complete the task in {max_steps} steps")


class ToolExecutionFailure(ScoutError):
    """A Tool Capability Provider call failed."""

    kind = "tool_execution_failure"

    def __init__(self, tool_name: str, message: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Tool '{tool_name}' failed: {message}")


class PersistenceFailure(ScoutError):
    """Conversation store I/O failed or existing data was malformed."""

    kind = "persistence_failure"

    def __init__(self, key: str, operation: str, cause: Exception | None = None) -> None:
        self.key = key
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to {operation} conversation '{key}'{detail}")


class PartValidationError(ScoutError, ValueError):
    """A message part could not be validated."""

    kind = "validation"
