"""
Message History Compaction.

Older tool outputs (screenshots, DOM snapshots) dominate token cost while
adding little once a few steps have passed. compact() keeps the outputs of
the most recent tool calls and replaces every earlier output with a fixed
sentinel.

Compaction only ever produces the model-facing copy of a history. Stored
transcripts are never touched.

Usage:
    model_view = compact(filter_valid(messages), keep_last=2)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .message import Message
from .parts import ToolCallPart

logger = logging.getLogger(__name__)

DEFAULT_KEEP_LAST = 2
REDACTED_OUTPUT = "removed"


def filter_valid(messages: Sequence[Message]) -> list[Message]:
    """Drop messages with no parts; they are not valid model input."""
    return [m for m in messages if m.parts]


def compact(
    messages: Sequence[Message],
    keep_last: int = DEFAULT_KEEP_LAST,
    sentinel: str = REDACTED_OUTPUT,
) -> list[Message]:
    """
    Redact all but the last `keep_last` tool outputs.

    Only tool-call parts in state output-available count. Their order is
    the document order across the whole list. Redaction replaces `output`
    and nothing else.

    Args:
        messages: Conversation history (not modified)
        keep_last: Number of most recent tool outputs to keep intact
        sentinel: Replacement value for redacted outputs

    Returns:
        New list of messages
    """
    if keep_last < 0:
        raise ValueError(f"keep_last must be >= 0, got {keep_last}")

    positions = [
        (m_index, p_index)
        for m_index, message in enumerate(messages)
        for p_index, part in enumerate(message.parts)
        if isinstance(part, ToolCallPart) and part.has_output
    ]

    cutoff = max(len(positions) - keep_last, 0)
    redact = set(positions[:cutoff])
    if not redact:
        return list(messages)

    logger.debug(
        f"[compaction] Redacting {len(redact)} of {len(positions)} tool outputs "
        f"(keeping last {keep_last})"
    )

    result: list[Message] = []
    for m_index, message in enumerate(messages):
        if not any((m_index, p_index) in redact for p_index in range(len(message.parts))):
            result.append(message)
            continue

        parts = tuple(
            part.with_output(sentinel) if (m_index, p_index) in redact else part
            for p_index, part in enumerate(message.parts)
        )
        result.append(message.with_parts(parts))

    return result
