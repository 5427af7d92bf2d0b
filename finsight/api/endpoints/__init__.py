"""
API endpoints module initialization.

Exports all endpoint routers.
"""

from .health import router as health_router
from .research import router as research_router
from .streaming import router as streaming_router
from .websocket import router as websocket_router
from .system import router as system_router

__all__ = [
    "health_router",
    "research_router",
    "streaming_router",
    "websocket_router",
    "system_router"
]
