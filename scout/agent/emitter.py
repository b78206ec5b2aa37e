"""
Streaming Emitter.

Turns one orchestrator invocation into an ordered stream of chunks for
the client:

    <lifecycle events, in occurrence order>
    text-start / text-delta / text-end     (always last)

On failure the stream carries an "error" event followed by the text
triple with "Error: <message>". The run happens in its own task and
reports through an asyncio.Queue; if the consumer stops reading, the
task is cancelled.

Usage:
    stream = stream_orchestration(
        lambda on_event: orchestrator.orchestrate(history, on_event=on_event),
        message_id=assistant_id,
    )
    async for chunk in stream:
        yield to_sse(chunk)

    if stream.result is not None:
        await store.append(service, stream.result.to_message(id=assistant_id))
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, AsyncIterator, Awaitable, Callable

from .frames import Frame, FrameCallback, OrchestrationErrorFrame

if TYPE_CHECKING:
    from .orchestrator import OrchestrationResult

logger = logging.getLogger(__name__)

SSE_DONE = "data: [DONE]\n\n"

RunFunction = Callable[[FrameCallback], Awaitable["OrchestrationResult"]]


@dataclass(frozen=True, slots=True)
class StreamChunk:
    """
    One element of the client stream.

    Lifecycle chunks carry the frame as data; text chunks carry the
    message id and, for text-delta, the text.
    """

    type: str
    data: dict[str, Any] | None = None
    id: str | None = None
    delta: str | None = None

    @classmethod
    def from_frame(cls, frame: Frame) -> StreamChunk:
        return cls(type=frame.frame_type, data=frame.to_dict())

    @property
    def is_text(self) -> bool:
        return self.type in ("text-start", "text-delta", "text-end")

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type}
        if self.id is not None:
            result["id"] = self.id
        if self.delta is not None:
            result["delta"] = self.delta
        if self.data is not None:
            result["data"] = self.data
        return result


def text_chunks(message_id: str, text: str) -> tuple[StreamChunk, StreamChunk, StreamChunk]:
    """The text-start / text-delta / text-end triple for one message."""
    return (
        StreamChunk(type="text-start", id=message_id),
        StreamChunk(type="text-delta", id=message_id, delta=text),
        StreamChunk(type="text-end", id=message_id),
    )


def to_sse(chunk: StreamChunk) -> str:
    """Server-Sent-Events line for a chunk."""
    return f"data: {json.dumps(chunk.to_dict(), default=str)}\n\n"


@dataclass
class OrchestrationStream:
    """
    Async-iterable stream of one orchestrator run.

    After iteration finishes, result holds the OrchestrationResult on
    success and error the exception on failure. A stream can be iterated
    only once.
    """

    run: RunFunction
    message_id: str = "response"
    result: "OrchestrationResult | None" = None
    error: Exception | None = None
    _started: bool = field(default=False, repr=False)

    def __aiter__(self) -> AsyncIterator[StreamChunk]:
        if self._started:
            raise RuntimeError("OrchestrationStream can only be iterated once")
        self._started = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[StreamChunk]:
        queue: asyncio.Queue[StreamChunk | None] = asyncio.Queue()

        async def on_event(frame: Frame) -> None:
            await queue.put(StreamChunk.from_frame(frame))

        async def runner() -> None:
            try:
                self.result = await self.run(on_event)
                chunks = text_chunks(self.message_id, self.result.final_text)
            except Exception as e:
                self.error = e
                logger.error(f"[emitter] Orchestration failed: {e}")
                await queue.put(StreamChunk.from_frame(OrchestrationErrorFrame.from_exception(e)))
                chunks = text_chunks(f"{self.message_id}-error", f"Error: {e}")

            for chunk in chunks:
                await queue.put(chunk)
            await queue.put(None)

        task = asyncio.create_task(runner())
        try:
            while True:
                chunk = await queue.get()
                if chunk is None:
                    break
                yield chunk
            await task
        finally:
            if not task.done():
                logger.info("[emitter] Consumer went away, cancelling orchestration")
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task


def stream_orchestration(run: RunFunction, message_id: str = "response") -> OrchestrationStream:
    """
    Stream an orchestrator run.

    Args:
        run: Called with the event callback; returns the orchestration result
        message_id: Id of the text chunks (the assistant message id)
    """
    return OrchestrationStream(run=run, message_id=message_id)
