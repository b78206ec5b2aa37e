"""
Model Registry for Scout.

Maps model identities ("mistral/devstral-latest", "anthropic/claude-3-5-haiku-latest")
to configured LLM providers, and role names ("planner", "doer", "primary")
to model identities.

A model identity is "<provider>/<model>". Identities without a provider
prefix use the default provider.

Usage:
    registry = ModelRegistry()
    registry.register("openai", OpenAILLMProvider(api_key=...))
    registry.register("anthropic", AnthropicLLMProvider(api_key=...))

    roles = ModelRoles(planner="openai/gpt-4o", doer="anthropic/claude-3-5-haiku-latest")
    planner = registry.resolve(roles.planner)
    response = await planner.complete(messages)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from .llm.base import LLMConfig, LLMProvider, LLMResponse, Message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelRoles:
    """
    Role → model identity mapping for one request.

    Attributes:
        planner: Model for the planning (thinker) role
        doer: Model for the execution (doer) role
        primary: Model for single-agent mode (explorer/tester)
    """

    planner: str
    doer: str
    primary: str | None = None

    @property
    def primary_model(self) -> str:
        return self.primary or self.planner

    def to_dict(self) -> dict[str, Any]:
        return {"planner": self.planner, "doer": self.doer, "primary": self.primary_model}


class BoundModel:
    """
    An LLM provider pinned to one model.

    Implements the LLMProvider protocol; every call uses the bound model
    unless the caller's config names another one explicitly.
    """

    def __init__(self, provider: "LLMProvider", model: str) -> None:
        self._provider = provider
        self.model = model

    @property
    def name(self) -> str:
        return f"{self._provider.name}/{self.model}"

    async def complete(
        self,
        messages: list["Message"],
        config: "LLMConfig | None" = None,
        tools: Sequence[dict[str, Any]] | None = None,
    ) -> "LLMResponse":
        from .llm.base import LLMConfig

        config = replace(config) if config is not None else LLMConfig()
        if config.model is None:
            config.model = self.model
        return await self._provider.complete(messages, config=config, tools=tools)

    def __repr__(self) -> str:
        return f"<BoundModel {self.name}>"


class ModelRegistry:
    """
    Registry of LLM providers keyed by provider name.

    Resolves model identities to BoundModel instances.
    """

    def __init__(self) -> None:
        self._providers: dict[str, LLMProvider] = {}
        self._default: str | None = None

    def _validate_provider(self, provider: "LLMProvider") -> None:
        """Validate LLM provider has required interface."""
        if not hasattr(provider, "name"):
            raise ValueError("LLM provider must have 'name' property")
        if not hasattr(provider, "complete") or not callable(provider.complete):
            raise ValueError("LLM provider must have 'complete' method")

    def register(self, name: str, provider: "LLMProvider") -> None:
        """
        Register a provider under a name (the model identity prefix).

        The first registered provider becomes the default.
        """
        self._validate_provider(provider)
        self._providers[name] = provider
        if self._default is None:
            self._default = name
        logger.debug(f"[model_registry] Registered LLM provider: {name}")

    def set_default(self, name: str) -> None:
        """Set the provider used for identities without a prefix."""
        if name not in self._providers:
            raise ValueError(f"LLM provider '{name}' not registered")
        self._default = name

    def resolve(self, model_id: str) -> BoundModel:
        """
        Resolve a model identity to a bound provider.

        Raises:
            ValueError: If no matching provider is registered
        """
        if not model_id:
            raise ValueError("Empty model identity")

        prefix, sep, model = model_id.partition("/")
        if sep and prefix in self._providers:
            return BoundModel(self._providers[prefix], model)

        if self._default is None:
            raise ValueError(f"No LLM provider registered for model '{model_id}'")
        return BoundModel(self._providers[self._default], model_id)

    def list_providers(self) -> list[str]:
        return list(self._providers)

    def __contains__(self, name: str) -> bool:
        return name in self._providers

    def __len__(self) -> int:
        return len(self._providers)
