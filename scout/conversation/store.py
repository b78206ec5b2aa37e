"""
Conversation Store.

Durable, append-only transcripts keyed by service/session key
("default", "testing", ...). Every key owns its own transcript and its own
metadata record; keys never share storage.

Design:
    - ConversationStore protocol defines the interface
    - BaseConversationStore owns the invariants (key validation, per-key
      locking, write ordering, completeness check); backends only move bytes
    - Backends: InMemory (tests), File (development), Redis (production)

Write ordering:
    append() writes the message first and the metadata record second, so
    a reader can never see refreshed metadata for a message that is not
    yet visible.

Failure semantics:
    - load()/get_meta() log unreadable or malformed data and return empty
      results; they never rewrite what is on disk
    - append()/clear()/update_meta() raise PersistenceFailure and leave
      existing data untouched

Usage:
    store = create_store("file", root="public/session")

    await store.append("default", Message.user_text("Test the checkout flow"))
    history = await store.load("default")
    await store.clear("default")
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from scout.errors import PartValidationError, PersistenceFailure

from .message import Message

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def _utc_now() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# Metadata
# =============================================================================


class SessionMeta(BaseModel):
    """
    Metadata record that accompanies each transcript.

    Serialized with camelCase keys (lastUpdated, messageCount, ...).
    Unknown fields are preserved.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    conversation_id: str
    last_updated: datetime = Field(default_factory=_utc_now)
    status: Literal["active", "cleared"] = "active"
    message_count: int = Field(0, ge=0)
    test_brief: str | None = None
    test_protocol: str | None = None

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def validate_key(key: str) -> str:
    """
    Check a service/session key.

    Raises:
        ValueError: If the key is empty or contains characters outside
            [A-Za-z0-9_-]
    """
    if not isinstance(key, str) or not _KEY_PATTERN.match(key):
        raise ValueError(f"Invalid conversation key: {key!r}")
    return key


# =============================================================================
# Store Protocol
# =============================================================================


class ConversationStore(Protocol):
    """Protocol for conversation store backends."""

    async def append(self, key: str, message: Message) -> None:
        """Append one message and refresh the metadata record."""
        ...

    async def load(self, key: str) -> list[Message]:
        """Full transcript in insertion order ([] if never written)."""
        ...

    async def clear(self, key: str) -> None:
        """Truncate the transcript to empty. Idempotent."""
        ...

    async def get_meta(self, key: str) -> SessionMeta | None:
        """Metadata record, or None if the key was never written."""
        ...

    async def update_meta(self, key: str, **fields: Any) -> SessionMeta:
        """Merge fields into the metadata record."""
        ...


class BaseConversationStore(ABC):
    """
    Shared store logic. Subclasses implement the raw storage primitives.

    Appends, clears and metadata updates for the same key are serialized
    with an asyncio.Lock, so concurrent requests cannot lose updates.
    """

    backend_name = "base"

    def __init__(self) -> None:
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    # ==================== Public API ====================

    async def append(self, key: str, message: Message) -> None:
        validate_key(key)
        if not message.is_complete and not message.is_marked_incomplete:
            raise ValueError(
                f"Refusing to store message {message.id}: it has pending tool calls "
                "and is not marked incomplete"
            )

        async with self._locks[key]:
            try:
                count = await self._append_message(key, message)
                meta = await self._read_meta_or_new(key, recover=True)
                meta = meta.model_copy(
                    update={
                        "last_updated": _utc_now(),
                        "status": "active",
                        "message_count": count,
                    }
                )
                await self._write_meta(key, meta)
            except PersistenceFailure:
                raise
            except Exception as e:
                raise PersistenceFailure(key, "append to", e) from e

        logger.debug(
            f"[store:{self.backend_name}] Appended {message.role} message {message.id} to {key}"
        )

    async def load(self, key: str) -> list[Message]:
        validate_key(key)
        try:
            return await self._load_messages(key)
        except Exception as e:
            failure = e if isinstance(e, PersistenceFailure) else PersistenceFailure(key, "load", e)
            logger.warning(f"[store:{self.backend_name}] {failure}; treating as no history")
            return []

    async def clear(self, key: str) -> None:
        validate_key(key)
        async with self._locks[key]:
            try:
                await self._truncate(key)
                meta = await self._read_meta_or_new(key, recover=True)
                await self._write_meta(
                    key,
                    meta.model_copy(
                        update={"last_updated": _utc_now(), "status": "cleared", "message_count": 0}
                    ),
                )
            except PersistenceFailure:
                raise
            except Exception as e:
                raise PersistenceFailure(key, "clear", e) from e

        logger.info(f"[store:{self.backend_name}] Cleared conversation {key}")

    async def get_meta(self, key: str) -> SessionMeta | None:
        validate_key(key)
        try:
            return await self._read_meta(key)
        except Exception as e:
            logger.warning(f"[store:{self.backend_name}] Failed to read metadata for {key}: {e}")
            return None

    async def update_meta(self, key: str, **fields: Any) -> SessionMeta:
        validate_key(key)
        protected = {"conversation_id", "message_count"} & fields.keys()
        if protected:
            raise ValueError(f"Metadata fields are managed by the store: {sorted(protected)}")

        async with self._locks[key]:
            try:
                meta = await self._read_meta_or_new(key)
                merged = SessionMeta.model_validate(
                    {
                        **meta.model_dump(),
                        **fields,
                        "last_updated": _utc_now(),
                    }
                )
                await self._write_meta(key, merged)
            except PersistenceFailure:
                raise
            except (ValidationError, ValueError) as e:
                raise ValueError(f"Invalid metadata update for {key}: {e}") from e
            except Exception as e:
                raise PersistenceFailure(key, "update metadata of", e) from e

        return merged

    # ==================== Helpers ====================

    async def _read_meta_or_new(self, key: str, *, recover: bool = False) -> SessionMeta:
        """
        Read the metadata record, or a fresh one if there is none.

        With recover=True an unreadable record is also replaced by a fresh
        one. The transcript has already been written by then and the
        counters are rebuilt from it.
        """
        try:
            meta = await self._read_meta(key)
        except Exception as e:
            if not recover:
                raise
            logger.warning(
                f"[store:{self.backend_name}] Unreadable metadata for {key}, starting fresh: {e}"
            )
            meta = None
        return meta if meta is not None else SessionMeta(conversation_id=key, message_count=0)

    # ==================== Backend primitives ====================

    @abstractmethod
    async def _append_message(self, key: str, message: Message) -> int:
        """Durably append; return the new transcript length."""

    @abstractmethod
    async def _load_messages(self, key: str) -> list[Message]:
        """Read the transcript; raise on malformed data."""

    @abstractmethod
    async def _truncate(self, key: str) -> None:
        """Make the transcript empty."""

    @abstractmethod
    async def _read_meta(self, key: str) -> SessionMeta | None:
        """Read the metadata record; None if absent."""

    @abstractmethod
    async def _write_meta(self, key: str, meta: SessionMeta) -> None:
        """Replace the metadata record."""


# =============================================================================
# In-Memory Implementation
# =============================================================================


class InMemoryConversationStore(BaseConversationStore):
    """
    In-memory store for testing and development.

    Messages are kept in serialized form so load() returns fresh objects,
    exactly as a durable backend would. Data is lost on restart.
    """

    backend_name = "inmemory"

    def __init__(self) -> None:
        super().__init__()
        self._transcripts: dict[str, list[dict[str, Any]]] = {}
        self._meta: dict[str, dict[str, Any]] = {}

    async def _append_message(self, key: str, message: Message) -> int:
        transcript = self._transcripts.setdefault(key, [])
        transcript.append(message.to_dict())
        return len(transcript)

    async def _load_messages(self, key: str) -> list[Message]:
        return [Message.from_dict(m) for m in self._transcripts.get(key, [])]

    async def _truncate(self, key: str) -> None:
        self._transcripts[key] = []

    async def _read_meta(self, key: str) -> SessionMeta | None:
        data = self._meta.get(key)
        return SessionMeta.model_validate(data) if data is not None else None

    async def _write_meta(self, key: str, meta: SessionMeta) -> None:
        self._meta[key] = meta.to_json_dict()

    def keys(self) -> list[str]:
        """Keys that have been written (for testing)."""
        return list(self._transcripts)


# =============================================================================
# File Implementation
# =============================================================================


class FileConversationStore(BaseConversationStore):
    """
    JSON-file store.

    Layout:
        <root>/<key>/conversation.json   ordered list of messages
        <root>/<key>/session_meta.json   metadata record

    Files are replaced atomically (write to a temp file, then os.replace),
    so a crash mid-write never leaves a truncated transcript.
    """

    backend_name = "file"

    TRANSCRIPT_FILE = "conversation.json"
    META_FILE = "session_meta.json"

    def __init__(self, root: str | os.PathLike[str] = "public/session") -> None:
        super().__init__()
        self._root = Path(root)

    def _dir(self, key: str) -> Path:
        return self._root / key

    async def _append_message(self, key: str, message: Message) -> int:
        return await asyncio.to_thread(self._append_sync, key, message)

    def _append_sync(self, key: str, message: Message) -> int:
        path = self._dir(key) / self.TRANSCRIPT_FILE
        existing = self._read_json(key, path, default=[])
        if not isinstance(existing, list):
            raise PersistenceFailure(key, "append to", ValueError("transcript is not a list"))

        existing.append(message.to_dict())
        self._write_json(path, existing)
        return len(existing)

    async def _load_messages(self, key: str) -> list[Message]:
        return await asyncio.to_thread(self._load_sync, key)

    def _load_sync(self, key: str) -> list[Message]:
        data = self._read_json(key, self._dir(key) / self.TRANSCRIPT_FILE, default=[])
        if not isinstance(data, list):
            raise PersistenceFailure(key, "load", ValueError("transcript is not a list"))
        try:
            return [Message.from_dict(m) for m in data]
        except (PartValidationError, ValueError, TypeError) as e:
            raise PersistenceFailure(key, "load", e) from e

    async def _truncate(self, key: str) -> None:
        await asyncio.to_thread(self._write_json, self._dir(key) / self.TRANSCRIPT_FILE, [])

    async def _read_meta(self, key: str) -> SessionMeta | None:
        data = await asyncio.to_thread(
            self._read_json, key, self._dir(key) / self.META_FILE, None
        )
        return SessionMeta.model_validate(data) if data is not None else None

    async def _write_meta(self, key: str, meta: SessionMeta) -> None:
        await asyncio.to_thread(self._write_json, self._dir(key) / self.META_FILE, meta.to_json_dict())

    @staticmethod
    def _read_json(key: str, path: Path, default: Any) -> Any:
        if not path.exists():
            return default
        try:
            with path.open(encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceFailure(key, f"read {path.name} of", e) from e

    @staticmethod
    def _write_json(path: Path, data: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise


# =============================================================================
# Redis Implementation
# =============================================================================


class RedisConversationStore(BaseConversationStore):
    """
    Redis-backed store.

    Storage Format:
        - f"{prefix}:{key}:messages"  Redis list, one JSON message per item (RPUSH)
        - f"{prefix}:{key}:meta"      JSON metadata record

    Transcripts never expire; clearing is explicit.
    """

    backend_name = "redis"

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        key_prefix: str = "scout:conversation",
    ) -> None:
        super().__init__()
        self._redis_url = redis_url
        self._key_prefix = key_prefix
        self._client: Any = None  # redis.asyncio.Redis

    async def _get_client(self) -> Any:
        """Get or create Redis client."""
        if self._client is None:
            try:
                import redis.asyncio as aioredis

                self._client = aioredis.from_url(
                    self._redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                )
            except ImportError:
                raise ImportError(
                    "redis package required for RedisConversationStore. "
                    "Install with: pip install redis"
                )
        return self._client

    def _messages_key(self, key: str) -> str:
        return f"{self._key_prefix}:{key}:messages"

    def _meta_key(self, key: str) -> str:
        return f"{self._key_prefix}:{key}:meta"

    async def _append_message(self, key: str, message: Message) -> int:
        client = await self._get_client()
        return int(await client.rpush(self._messages_key(key), json.dumps(message.to_dict())))

    async def _load_messages(self, key: str) -> list[Message]:
        client = await self._get_client()
        raw_items = await client.lrange(self._messages_key(key), 0, -1)
        try:
            return [Message.from_dict(json.loads(item)) for item in raw_items]
        except (json.JSONDecodeError, PartValidationError, ValueError, TypeError) as e:
            raise PersistenceFailure(key, "load", e) from e

    async def _truncate(self, key: str) -> None:
        client = await self._get_client()
        await client.delete(self._messages_key(key))

    async def _read_meta(self, key: str) -> SessionMeta | None:
        client = await self._get_client()
        data = await client.get(self._meta_key(key))
        if data is None:
            return None
        return SessionMeta.model_validate(json.loads(data))

    async def _write_meta(self, key: str, meta: SessionMeta) -> None:
        client = await self._get_client()
        await client.set(self._meta_key(key), json.dumps(meta.to_json_dict()))

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# =============================================================================
# Convenience Functions
# =============================================================================


def create_store(
    backend: Literal["inmemory", "file", "redis"] = "inmemory",
    **kwargs: Any,
) -> BaseConversationStore:
    """
    Create a conversation store backend.

    Example:
        store = create_store("file", root="public/session")
        store = create_store("redis", redis_url="redis://localhost:6379")
    """
    if backend == "inmemory":
        return InMemoryConversationStore(**kwargs)
    elif backend == "file":
        return FileConversationStore(**kwargs)
    elif backend == "redis":
        return RedisConversationStore(**kwargs)
    else:
        raise ValueError(f"Unknown backend: {backend}")
