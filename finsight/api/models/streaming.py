"""
Streaming message models.

Pydantic models for WebSocket messages and streamed events.
"""

from typing import Any, Optional
from pydantic import BaseModel, Field


class SocketMessage(BaseModel):
    """Inbound WebSocket message."""
    type: str = Field(..., description="chat, analysis or chat_about_analysis")
    query: Optional[str] = Field(default=None, description="Question for chat messages")
    subject: Optional[str] = Field(default=None, description="Subject for analysis messages")
    time_horizon: Optional[str] = Field(default=None, description="Investment horizon")
    analysis: Optional[str] = Field(default=None, description="Previous analysis for follow-ups")
    message: Optional[str] = Field(default=None, description="Follow-up question")


class StreamEventMessage(BaseModel):
    """Outbound event: ``event`` is one of the session event types."""
    event: str = Field(..., description="sources, processing, content, metrics, done or error")
    data: Any = Field(default=None, description="Event payload")
