"""
Dependency Injection for Scout.

Provides singleton instances of settings, store, model registry, browser
tools and the chat service. Routes receive the chat service through
FastAPI's Depends(get_chat_service), so tests can override it.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Optional

from scout.config.schemas import AppSettings
from scout.conversation.store import BaseConversationStore, create_store
from scout.providers.llm.base import LLMConfig
from scout.providers.llm.openai import AnthropicLLMProvider, OpenAILLMProvider
from scout.providers.registry import ModelRegistry, ModelRoles
from scout.service import ChatService
from scout.tools.registry import ToolRegistry
from scout.tools.remote import RemoteToolkit

logger = logging.getLogger(__name__)

MISTRAL_BASE_URL = "https://api.mistral.ai/v1"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get application settings from environment.

    Uses lru_cache for singleton pattern.
    """
    return AppSettings(
        # Service
        service_name=os.getenv("SCOUT_SERVICE_NAME", "scout"),
        environment=os.getenv("SCOUT_ENVIRONMENT", "development"),
        debug=_env_bool("SCOUT_DEBUG", "false"),
        # Storage
        storage_backend=os.getenv("SCOUT_STORAGE_BACKEND", "file"),
        session_root=os.getenv("SCOUT_SESSION_ROOT", "public/session"),
        redis_url=os.getenv("SCOUT_REDIS_URL", "redis://localhost:6379"),
        redis_key_prefix=os.getenv("SCOUT_REDIS_KEY_PREFIX", "scout:conversation"),
        # Provider API keys
        openai_api_key=os.getenv("SCOUT_OPENAI_API_KEY"),
        anthropic_api_key=os.getenv("SCOUT_ANTHROPIC_API_KEY"),
        mistral_api_key=os.getenv("SCOUT_MISTRAL_API_KEY"),
        openrouter_api_key=os.getenv("SCOUT_OPENROUTER_API_KEY"),
        default_llm_provider=os.getenv("SCOUT_DEFAULT_LLM_PROVIDER", "openrouter"),
        # Capability service
        capability_url=os.getenv("SCOUT_CAPABILITY_URL"),
        capability_timeout=float(os.getenv("SCOUT_CAPABILITY_TIMEOUT", "60")),
        # Role models
        planner_model=os.getenv("SCOUT_PLANNER_MODEL", "mistral/devstral-latest"),
        doer_model=os.getenv("SCOUT_DOER_MODEL", "mistral/devstral-latest"),
        primary_model=os.getenv("SCOUT_PRIMARY_MODEL", "mistral/devstral-latest"),
        # Loop budgets
        orchestrator_max_steps=int(os.getenv("SCOUT_ORCHESTRATOR_MAX_STEPS", "10")),
        doer_max_steps=int(os.getenv("SCOUT_DOER_MAX_STEPS", "10")),
        agent_max_steps=int(os.getenv("SCOUT_AGENT_MAX_STEPS", "20")),
        require_delegation=_env_bool("SCOUT_REQUIRE_DELEGATION", "true"),
        # Compaction
        compaction_keep_last=int(os.getenv("SCOUT_COMPACTION_KEEP_LAST", "2")),
        compaction_sentinel=os.getenv("SCOUT_COMPACTION_SENTINEL", "removed"),
        # Model call settings
        temperature=float(os.getenv("SCOUT_TEMPERATURE", "0.2")),
        max_tokens=int(os.getenv("SCOUT_MAX_TOKENS", "2048")),
    )


# Global instances (initialized on first access)
_store: Optional[BaseConversationStore] = None
_models: Optional[ModelRegistry] = None
_toolkit: Optional[RemoteToolkit] = None
_chat_service: Optional[ChatService] = None


def get_store() -> BaseConversationStore:
    """Get the conversation store for the configured backend."""
    global _store
    if _store is None:
        settings = get_settings()
        if settings.storage_backend == "file":
            _store = create_store("file", root=settings.session_root)
        elif settings.storage_backend == "redis":
            _store = create_store(
                "redis",
                redis_url=settings.redis_url,
                key_prefix=settings.redis_key_prefix,
            )
        else:
            _store = create_store("inmemory")
        logger.info(f"[dependencies] Conversation store: {settings.storage_backend}")
    return _store


def get_model_registry() -> ModelRegistry:
    """
    Get the model registry with configured providers.

    Model identities are "<provider>/<model>"; identities with an unknown
    prefix go to the default provider with the full identity.
    """
    global _models
    if _models is None:
        settings = get_settings()
        _models = ModelRegistry()

        if settings.openrouter_api_key:
            _models.register(
                "openrouter",
                OpenAILLMProvider(
                    api_key=settings.openrouter_api_key.get_secret_value(),
                    base_url=OPENROUTER_BASE_URL,
                    provider_name="openrouter",
                ),
            )
        if settings.mistral_api_key:
            _models.register(
                "mistral",
                OpenAILLMProvider(
                    api_key=settings.mistral_api_key.get_secret_value(),
                    base_url=MISTRAL_BASE_URL,
                    provider_name="mistral",
                ),
            )
        if settings.openai_api_key:
            _models.register(
                "openai",
                OpenAILLMProvider(api_key=settings.openai_api_key.get_secret_value()),
            )
        if settings.anthropic_api_key:
            _models.register(
                "anthropic",
                AnthropicLLMProvider(api_key=settings.anthropic_api_key.get_secret_value()),
            )

        if settings.default_llm_provider in _models:
            _models.set_default(settings.default_llm_provider)

        if not len(_models):
            logger.warning("[dependencies] No LLM provider configured; chat requests will fail")
    return _models


def get_browser_tools() -> ToolRegistry:
    """Browser tools discovered at startup (empty without a capability service)."""
    if _toolkit is None:
        return ToolRegistry()
    return ToolRegistry(_toolkit.get_tools())


def get_chat_service() -> ChatService:
    """Get the chat service (created on first call)."""
    global _chat_service
    if _chat_service is None:
        settings = get_settings()
        _chat_service = ChatService(
            store=get_store(),
            models=get_model_registry(),
            default_roles=ModelRoles(
                planner=settings.planner_model,
                doer=settings.doer_model,
                primary=settings.primary_model,
            ),
            browser_tools=get_browser_tools(),
            orchestrator_max_steps=settings.orchestrator_max_steps,
            doer_max_steps=settings.doer_max_steps,
            agent_max_steps=settings.agent_max_steps,
            require_delegation=settings.require_delegation,
            keep_last=settings.compaction_keep_last,
            sentinel=settings.compaction_sentinel,
            llm_config=LLMConfig(temperature=settings.temperature, max_tokens=settings.max_tokens),
        )
    return _chat_service


async def initialize_services() -> None:
    """
    Initialize all services on application startup.

    Called from FastAPI lifespan.
    """
    global _toolkit
    settings = get_settings()

    if settings.capability_url:
        try:
            _toolkit = await RemoteToolkit.from_url(
                settings.capability_url,
                timeout=settings.capability_timeout,
            )
        except Exception as e:
            logger.warning(f"[dependencies] Capability service unavailable, continuing without browser tools: {e}")

    get_store()
    get_model_registry()
    get_chat_service()


async def shutdown_services() -> None:
    """
    Cleanup all services on application shutdown.

    Called from FastAPI lifespan.
    """
    global _toolkit, _store, _chat_service
    if _toolkit is not None:
        await _toolkit.close()
        _toolkit = None
    if _store is not None and hasattr(_store, "close"):
        await _store.close()
    _store = None
    _chat_service = None
