"""
Scout HTTP API routers.
"""

from .chat import router as chat_router
from .session import router as session_router

__all__ = ["chat_router", "session_router"]
