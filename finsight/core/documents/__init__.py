"""
Uploaded document extraction.
"""

from .extractor import DocumentExtractor, PlainTextExtractor

__all__ = ["DocumentExtractor", "PlainTextExtractor"]
