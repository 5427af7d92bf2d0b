"""
Embedding module initialization.

Exports the embedding collaborator interface and its factory.
"""

from .providers import (
    EmbeddingModel,
    OpenAIEmbeddingModel,
    create_embedding_model
)

__all__ = [
    "EmbeddingModel",
    "OpenAIEmbeddingModel",
    "create_embedding_model"
]
