"""
Custom exceptions for Finsight.

Provides specific exception types for different error scenarios.
"""

from typing import Optional


class FinsightException(Exception):
    """Base exception for Finsight errors."""
    pass


class ConfigurationError(FinsightException):
    """Raised when configuration is invalid or missing."""
    pass


class ValidationError(FinsightException):
    """Raised when a request is missing a required field."""
    pass


class RateLimitExceeded(FinsightException):
    """Raised when an identity exhausts its request window."""

    def __init__(self, message: str, profile: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.profile = profile
        self.retry_after = retry_after


class CollaboratorUnavailable(FinsightException):
    """Raised when an external collaborator cannot serve a request."""
    pass


class SearchError(CollaboratorUnavailable):
    """Raised when content acquisition fails."""
    pass


class EmbeddingError(CollaboratorUnavailable):
    """Raised when embedding operations fail."""
    pass


class GenerationError(CollaboratorUnavailable):
    """Raised when text generation fails."""
    pass


class NoProvidersAvailable(GenerationError):
    """Raised when every generative provider is uncredentialed or over quota."""
    pass


class CacheUnavailable(FinsightException):
    """Raised by cache backends on connectivity failures. Never surfaced to callers."""
    pass


class DocumentExtractionError(FinsightException):
    """Raised when an uploaded document cannot be turned into text."""
    pass


class SessionStateError(FinsightException):
    """Raised on an illegal stream session state transition."""
    pass
