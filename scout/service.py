"""
Chat Service (request pipeline).

One POST /api/chat request flows through:
1. validate: messages parsed into Message objects, roles resolved
2. filter_valid + compact: the model-facing copy of the history
3. persist the latest user message (best effort)
4. build the orchestrator for the mode ("agent" or "thinker-doer")
5. stream events and text; on success persist one complete assistant
   message, on failure persist nothing

Validation happens in prepare(), before any streaming starts, so request
errors can still become HTTP errors. Persistence failures never break a
live interaction: they are logged and the write is skipped.

Usage:
    service = ChatService(store=store, models=model_registry, browser_tools=tools,
                          default_roles=ModelRoles(planner="...", doer="..."))

    async for chunk in service.handle(request):
        yield to_sse(chunk)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, AsyncIterator
from uuid import uuid4

from scout.agent.doer import DoerLoop
from scout.agent.emitter import StreamChunk, stream_orchestration
from scout.agent.orchestrator import Orchestrator, ThinkerDoerOrchestrator
from scout.agent.single import SingleAgentOrchestrator
from scout.conversation.compaction import DEFAULT_KEEP_LAST, REDACTED_OUTPUT, compact, filter_valid
from scout.conversation.message import Message
from scout.conversation.store import SessionMeta, validate_key
from scout.errors import PartValidationError, PersistenceFailure
from scout.providers.llm.base import LLMConfig
from scout.providers.registry import ModelRoles
from scout.tools.registry import ToolRegistry
from scout.tools.session import create_session_tools

if TYPE_CHECKING:
    from scout.config.schemas import ChatRequest
    from scout.conversation.store import ConversationStore
    from scout.providers.registry import ModelRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatTurn:
    """A validated request, ready to stream."""

    service: str
    mode: str
    roles: ModelRoles
    history: tuple[Message, ...]
    model_view: tuple[Message, ...]
    orchestrator: Orchestrator
    message_id: str

    @property
    def user_message(self) -> Message | None:
        """The latest message, if it came from the user."""
        if self.history and self.history[-1].role == "user":
            return self.history[-1]
        return None


class ChatService:
    """
    Runs chat requests against the orchestration core.

    Example:
        turn = service.prepare(request)       # raises on invalid input
        async for chunk in service.stream(turn):
            ...
    """

    def __init__(
        self,
        *,
        store: "ConversationStore",
        models: "ModelRegistry",
        default_roles: ModelRoles,
        browser_tools: ToolRegistry | None = None,
        orchestrator_max_steps: int = 10,
        doer_max_steps: int = 10,
        agent_max_steps: int = 20,
        require_delegation: bool = True,
        keep_last: int = DEFAULT_KEEP_LAST,
        sentinel: str = REDACTED_OUTPUT,
        llm_config: LLMConfig | None = None,
    ):
        self._store = store
        self._models = models
        self._default_roles = default_roles
        self._browser_tools = browser_tools if browser_tools is not None else ToolRegistry()
        self._orchestrator_max_steps = orchestrator_max_steps
        self._doer_max_steps = doer_max_steps
        self._agent_max_steps = agent_max_steps
        self._require_delegation = require_delegation
        self._keep_last = keep_last
        self._sentinel = sentinel
        self._llm_config = llm_config or LLMConfig(temperature=0.2)

    @property
    def store(self) -> "ConversationStore":
        return self._store

    # ==================== Request pipeline ====================

    def prepare(self, request: "ChatRequest") -> ChatTurn:
        """
        Validate a request and build its orchestrator.

        Raises:
            PartValidationError: If a message or part is malformed
            ValueError: If the request has no usable messages or a model
                cannot be resolved
        """
        service = validate_key(request.service)
        messages = [Message.from_dict(m) for m in request.messages]

        history = filter_valid(messages)
        if not history:
            raise PartValidationError("Request contains no messages with content")

        model_view = compact(history, keep_last=self._keep_last, sentinel=self._sentinel)
        roles = self._resolve_roles(request)
        orchestrator = self._build_orchestrator(request.mode, service, roles)

        logger.info(
            f"[chat_service] {service}: mode={request.mode}, "
            f"{len(history)} messages, roles={roles.to_dict()}"
        )
        return ChatTurn(
            service=service,
            mode=request.mode,
            roles=roles,
            history=tuple(history),
            model_view=tuple(model_view),
            orchestrator=orchestrator,
            message_id=str(uuid4()),
        )

    async def stream(self, turn: ChatTurn) -> AsyncIterator[StreamChunk]:
        """Persist the user message, stream the run, persist the answer."""
        if turn.user_message is not None:
            await self._persist(turn.service, turn.user_message)

        stream = stream_orchestration(
            lambda on_event: turn.orchestrator.orchestrate(list(turn.model_view), on_event=on_event),
            message_id=turn.message_id,
        )
        async for chunk in stream:
            yield chunk

        if stream.result is not None:
            await self._persist(turn.service, stream.result.to_message(id=turn.message_id))
        else:
            logger.info(f"[chat_service] {turn.service}: run failed, nothing persisted")

    async def handle(self, request: "ChatRequest") -> AsyncIterator[StreamChunk]:
        """prepare() and stream() in one call."""
        turn = self.prepare(request)
        async for chunk in self.stream(turn):
            yield chunk

    # ==================== Conversation access ====================

    async def history(self, service: str) -> list[Message]:
        return await self._store.load(service)

    async def reset(self, service: str) -> None:
        await self._store.clear(service)

    async def get_meta(self, service: str) -> SessionMeta | None:
        return await self._store.get_meta(service)

    async def update_meta(self, service: str, **fields) -> SessionMeta:
        return await self._store.update_meta(service, **fields)

    # ==================== Helpers ====================

    def _resolve_roles(self, request: "ChatRequest") -> ModelRoles:
        defaults = self._default_roles
        return ModelRoles(
            planner=request.role_models.planner or request.model or defaults.planner,
            doer=request.role_models.doer or request.model or defaults.doer,
            primary=request.model or defaults.primary_model,
        )

    def _build_orchestrator(self, mode: str, service: str, roles: ModelRoles) -> Orchestrator:
        if mode == "thinker-doer":
            doer = DoerLoop(
                llm=self._models.resolve(roles.doer),
                tools=self._browser_tools,
                max_steps=self._doer_max_steps,
                config=self._llm_config,
            )
            return ThinkerDoerOrchestrator(
                planner=self._models.resolve(roles.planner),
                doer=doer,
                max_steps=self._orchestrator_max_steps,
                require_delegation=self._require_delegation,
                config=self._llm_config,
            )

        tools = self._browser_tools.merged(ToolRegistry(create_session_tools(self._store, service)))
        return SingleAgentOrchestrator.for_service(
            service,
            llm=self._models.resolve(roles.primary_model),
            tools=tools,
            max_steps=self._agent_max_steps,
            config=self._llm_config,
        )

    async def _persist(self, service: str, message: Message) -> None:
        try:
            await self._store.append(service, message)
        except (PersistenceFailure, ValueError) as e:
            logger.error(f"[chat_service] Skipping write of {message.role} message to {service}: {e}")

