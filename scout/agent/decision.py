"""
Planner Decision Parser.

The planning role answers with raw text in one of two shapes:

    TASK: <self-contained instruction for the doer>
    FINISH: <final answer for the user>

parse_decision() is the single place where that grammar is enforced. It
translates raw text into a tagged decision (Delegate | Finish); the
orchestrator only ever branches on the tag.

Security:
    Parsed decisions are validated with Pydantic, so an empty payload
    ("TASK:" with nothing after it) is a contract violation rather than
    an empty delegation.

Usage:
    decision = parse_decision("TASK: open https://example.com and read the title")
    if isinstance(decision, Delegate):
        result = await doer.run(decision.task)
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from scout.errors import ContractViolation

logger = logging.getLogger(__name__)

TASK_PREFIX = "TASK:"
FINISH_PREFIX = "FINISH:"


class Delegate(BaseModel):
    """Planner decided to hand a sub-task to the doer."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["task"] = "task"
    task: str = Field(..., min_length=1, description="Exact instruction for the doer")


class Finish(BaseModel):
    """Planner decided the conversation turn is complete."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["finish"] = "finish"
    answer: str = Field(..., min_length=1, description="Final answer for the user")


def parse_decision(text: str) -> Delegate | Finish:
    """
    Translate raw planner output into a tagged decision.

    Leading and trailing whitespace is ignored; the prefix is
    case-sensitive.

    Raises:
        ContractViolation: If the text matches neither branch, or the
            matching branch has an empty payload
    """
    output = (text or "").strip()

    try:
        if output.startswith(TASK_PREFIX):
            return Delegate(task=output[len(TASK_PREFIX) :].strip())
        if output.startswith(FINISH_PREFIX):
            return Finish(answer=output[len(FINISH_PREFIX) :].strip())
    except ValidationError:
        logger.warning(f"[decision] Empty decision payload: {output!r}")
        raise ContractViolation(output, reason="empty_payload") from None

    logger.warning(f"[decision] Output matches neither TASK nor FINISH: {output[:200]!r}")
    raise ContractViolation(output)


def decision_label(text: str) -> str:
    """Classify raw output for observability ("TASK", "FINISH" or "UNKNOWN")."""
    output = (text or "").strip()
    if output.startswith(TASK_PREFIX):
        return "TASK"
    if output.startswith(FINISH_PREFIX):
        return "FINISH"
    return "UNKNOWN"
