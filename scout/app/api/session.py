"""
Session API.

    GET  /api/session?service=   metadata record of a service key
    POST /api/session?service=   merge fields into the metadata record

Fields are accepted in either camelCase (testBrief) or snake_case
(test_brief). Store-managed fields (conversationId, messageCount,
lastUpdated) are ignored on write.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from scout.app.api.chat import service_param
from scout.app.dependencies import get_chat_service
from scout.conversation.store import SessionMeta
from scout.errors import PersistenceFailure
from scout.service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["session"])

_ALIASES = {info.alias: name for name, info in SessionMeta.model_fields.items() if info.alias}
_MANAGED = {"conversation_id", "message_count", "last_updated"}


def _normalize(fields: dict[str, Any]) -> dict[str, Any]:
    normalized = {_ALIASES.get(key, key): value for key, value in fields.items()}
    return {key: value for key, value in normalized.items() if key not in _MANAGED}


@router.get("")
async def get_session(
    service: str = Depends(service_param),
    chat: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    """Metadata record ({} if the key was never written)."""
    meta = await chat.get_meta(service)
    return meta.to_json_dict() if meta is not None else {}


@router.post("")
async def post_session(
    fields: dict[str, Any] = Body(...),
    service: str = Depends(service_param),
    chat: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    """Merge fields into the metadata record."""
    try:
        meta = await chat.update_meta(service, **_normalize(fields))
    except PersistenceFailure as e:
        logger.error(f"[session_api] {e}")
        raise HTTPException(status_code=500, detail="Failed to update session data")
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {"success": True, "meta": meta.to_json_dict()}
