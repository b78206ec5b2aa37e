"""
Chat API.

    POST   /api/chat            stream one orchestrated turn (Server-Sent Events)
    GET    /api/chat?service=   full transcript of a service key
    DELETE /api/chat?service=   truncate the transcript

The legacy query parameter name "conversationType" is accepted as an
alias of "service".
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from scout.agent.emitter import SSE_DONE, StreamChunk, to_sse
from scout.app.dependencies import get_chat_service
from scout.config.schemas import ChatRequest
from scout.errors import PartValidationError, PersistenceFailure
from scout.service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

SERVICE_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"


def service_param(
    service: str | None = Query(None, pattern=SERVICE_PATTERN),
    conversation_type: str | None = Query(None, alias="conversationType", pattern=SERVICE_PATTERN),
) -> str:
    """Service key from ?service= (or the legacy ?conversationType=)."""
    value = service or conversation_type
    if not value:
        raise HTTPException(status_code=400, detail="Missing service parameter")
    return value


async def _sse(chunks: AsyncIterator[StreamChunk]) -> AsyncIterator[str]:
    async for chunk in chunks:
        yield to_sse(chunk)
    yield SSE_DONE


@router.post("")
async def post_chat(
    request: ChatRequest,
    chat: ChatService = Depends(get_chat_service),
) -> StreamingResponse:
    """Run one turn and stream lifecycle events and the answer."""
    try:
        turn = chat.prepare(request)
    except PartValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return StreamingResponse(
        _sse(chat.stream(turn)),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("")
async def get_chat(
    service: str = Depends(service_param),
    chat: ChatService = Depends(get_chat_service),
) -> list[dict[str, Any]]:
    """Full transcript of a service key, in insertion order."""
    messages = await chat.history(service)
    return [m.to_dict() for m in messages]


@router.delete("")
async def delete_chat(
    service: str = Depends(service_param),
    chat: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    """Truncate the transcript of a service key."""
    try:
        await chat.reset(service)
    except PersistenceFailure as e:
        logger.error(f"[chat_api] {e}")
        raise HTTPException(status_code=500, detail="Failed to clear conversation")
    return {"success": True}
