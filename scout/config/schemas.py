"""
Configuration Schemas for Scout.

Pydantic models for application settings and HTTP request bodies.

Security:
    Sensitive fields use SecretStr to prevent accidental logging
    of credentials. Access the value with `.get_secret_value()`.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr

OrchestrationMode = Literal["agent", "thinker-doer"]
StorageBackend = Literal["inmemory", "file", "redis"]


class RoleModelsConfig(BaseModel):
    """Role → model identity mapping as sent by the client."""

    model_config = ConfigDict(populate_by_name=True)

    planner: str | None = Field(None, alias="thinker", description="Planning role model")
    doer: str | None = Field(None, description="Execution role model")


class ChatRequest(BaseModel):
    """
    Body of POST /api/chat.

    messages are UI-shaped transcript messages; they are validated into
    Message objects by the chat service.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    messages: list[dict[str, Any]] = Field(default_factory=list)
    model: str | None = Field(None, description="Primary model (single-agent mode)")
    service: str = Field("default", alias="conversationType", pattern=r"^[A-Za-z0-9_-]{1,64}$")
    mode: OrchestrationMode = "agent"
    role_models: RoleModelsConfig = Field(default_factory=RoleModelsConfig, alias="roleModels")


class AppSettings(BaseModel):
    """
    Application settings model.

    Used for type-safe settings access.

    Security:
        API keys use SecretStr to prevent accidental logging.
        Access secret values with: settings.openai_api_key.get_secret_value()
    """

    # Service identity
    service_name: str = "scout"
    environment: str = "development"
    debug: bool = False

    # Storage
    storage_backend: StorageBackend = "file"
    session_root: str = Field("public/session", description="Root directory of the file store")
    redis_url: str = "redis://localhost:6379"
    redis_key_prefix: str = "scout:conversation"

    # Provider API keys (SecretStr prevents accidental logging)
    openai_api_key: SecretStr | None = None
    anthropic_api_key: SecretStr | None = None
    mistral_api_key: SecretStr | None = None
    openrouter_api_key: SecretStr | None = None
    default_llm_provider: str = "openrouter"

    # Capability service (browser tools)
    capability_url: str | None = Field(None, description="Base URL of the browser capability service")
    capability_timeout: float = Field(60.0, gt=0)

    # Role models
    planner_model: str = "mistral/devstral-latest"
    doer_model: str = "mistral/devstral-latest"
    primary_model: str = "mistral/devstral-latest"

    # Loop budgets
    orchestrator_max_steps: int = Field(10, ge=1)
    doer_max_steps: int = Field(10, ge=1)
    agent_max_steps: int = Field(20, ge=1)
    require_delegation: bool = True

    # Compaction
    compaction_keep_last: int = Field(2, ge=0)
    compaction_sentinel: str = "removed"

    # Model call settings
    temperature: float = Field(0.2, ge=0, le=2)
    max_tokens: int = Field(2048, ge=1)
