"""
API models module initialization.

Exports all Pydantic models for API communication.
"""

from .schemas import (
    ChatRequest,
    AnalysisRequest,
    FollowUpRequest,
    SourceDocument,
    ChatResponse,
    AnalysisResponse,
    FollowUpResponse,
    HealthResponse,
    StatsResponse,
    MessageResponse,
    ErrorResponse
)

from .streaming import (
    SocketMessage,
    StreamEventMessage
)

__all__ = [
    "ChatRequest",
    "AnalysisRequest",
    "FollowUpRequest",
    "SourceDocument",
    "ChatResponse",
    "AnalysisResponse",
    "FollowUpResponse",
    "HealthResponse",
    "StatsResponse",
    "MessageResponse",
    "ErrorResponse",
    "SocketMessage",
    "StreamEventMessage"
]
