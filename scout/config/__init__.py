"""
Scout Configuration

Environment-driven settings (SCOUT_* variables) and request schemas.
"""

from .schemas import AppSettings, ChatRequest, OrchestrationMode, RoleModelsConfig, StorageBackend

__all__ = [
    "AppSettings",
    "ChatRequest",
    "OrchestrationMode",
    "RoleModelsConfig",
    "StorageBackend",
]
