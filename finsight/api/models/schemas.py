"""
API models for request/response schemas.

Pydantic models for type-safe API communication. Required text fields are
optional here so that blank and missing values get the same 400 response.
"""

from typing import Dict, Any, Optional, List
from datetime import datetime
from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Request model for free-text queries."""
    query: Optional[str] = Field(default=None, description="The question to answer")


class AnalysisRequest(BaseModel):
    """Request model for subject analyses."""
    subject: Optional[str] = Field(default=None, description="Ticker symbol or company name")
    time_horizon: Optional[str] = Field(default=None, description="Investment horizon, medium-term by default")


class FollowUpRequest(BaseModel):
    """Request model for questions about a previous analysis."""
    subject: Optional[str] = Field(default=None, description="Subject of the analysis")
    analysis: Optional[str] = Field(default=None, description="Previous analysis text")
    message: Optional[str] = Field(default=None, description="Follow-up question")


class SourceDocument(BaseModel):
    """Ranked source document."""
    title: str = Field(default="", description="Document title")
    url: str = Field(default="", description="Document URL")
    content: str = Field(default="", description="Extracted content")
    relevance_score: Optional[float] = Field(default=None, description="Relevance score")


class ChatResponse(BaseModel):
    """Response model for free-text queries."""
    sources: List[SourceDocument] = Field(..., description="Top ranked sources")
    text: str = Field(..., description="Generated answer")
    provider: Optional[str] = Field(default=None, description="Provider that generated the answer")
    cached: bool = Field(..., description="Whether the answer came from the cache")
    cache_age: Optional[int] = Field(default=None, description="Age of the cached answer in seconds")
    timestamp: str = Field(default_factory=lambda: str(datetime.now()), description="Response timestamp")


class AnalysisResponse(ChatResponse):
    """Response model for subject analyses."""
    subject: str = Field(..., description="Analyzed subject")
    time_horizon: str = Field(..., description="Investment horizon")
    metrics: Optional[Dict[str, str]] = Field(default=None, description="Key metrics, N/A when unknown")
    recommendation: Optional[str] = Field(default=None, description="Buy, Hold, Sell or Neutral")
    document: Optional[str] = Field(default=None, description="Uploaded document name")


class FollowUpResponse(BaseModel):
    """Response model for follow-up questions."""
    response: str = Field(..., description="Answer to the question")
    provider: str = Field(..., description="Provider that generated the answer")
    timestamp: str = Field(default_factory=lambda: str(datetime.now()), description="Response timestamp")


class HealthResponse(BaseModel):
    """Response model for health checks."""
    status: str = Field(..., description="Overall system status")
    components: Dict[str, Any] = Field(..., description="Component health status")
    timestamp: str = Field(..., description="Health check timestamp")


class StatsResponse(BaseModel):
    """Response model for system statistics."""
    usage: Dict[str, Any] = Field(..., description="Request and cache counters")
    cache: Dict[str, Any] = Field(..., description="Cache statistics")
    providers: List[Dict[str, Any]] = Field(..., description="Provider usage against daily quotas")
    embeddings: Dict[str, Any] = Field(default_factory=dict, description="Embedding cache statistics")


class MessageResponse(BaseModel):
    """Response model for maintenance operations."""
    message: str = Field(..., description="Operation status message")
    timestamp: str = Field(default_factory=lambda: str(datetime.now()), description="Operation timestamp")


class ErrorResponse(BaseModel):
    """Response model for errors."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(default=None, description="Error details")
    timestamp: str = Field(default_factory=lambda: str(datetime.now()), description="Error timestamp")
