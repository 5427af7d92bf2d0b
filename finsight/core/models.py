"""
Pydantic models shared across the pipeline.
"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


class Document(BaseModel):
    """Retrieved external content."""

    title: str = ""
    url: str = ""
    content: str = ""
    relevance_score: Optional[float] = None

    def has_content(self) -> bool:
        """True when the body holds something other than whitespace."""
        return bool(self.content and self.content.strip())

    def with_score(self, score: float) -> "Document":
        """Return a scored copy, leaving the original untouched."""
        return self.model_copy(update={"relevance_score": score})


def documents_to_payload(documents: List[Document]) -> List[Dict[str, Any]]:
    """Serialize documents for events, responses and cache entries."""
    return [doc.model_dump() for doc in documents]


def documents_from_payload(items: List[Dict[str, Any]]) -> List[Document]:
    """Rebuild documents from a cached payload."""
    return [Document(**item) for item in items or []]


class ProviderResponse(BaseModel):
    """Complete text returned by a generative provider."""

    text: str
    provider_name: str
    usage: Dict[str, Any] = Field(default_factory=dict)
