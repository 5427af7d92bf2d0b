"""
Uploaded document text extraction.
"""

import os
from abc import ABC, abstractmethod
from typing import Iterable
from finsight.utils.logging import get_logger
from finsight.utils.exceptions import DocumentExtractionError

logger = get_logger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class DocumentExtractor(ABC):
    """Turns an uploaded file into plain text."""

    @abstractmethod
    def extract(self, filename: str, data: bytes) -> str:
        """
        Raises:
            DocumentExtractionError: If the file type is unsupported or unreadable
        """
        pass


class PlainTextExtractor(DocumentExtractor):
    """Extractor for UTF-8 text formats."""

    def __init__(self, extensions: Iterable[str] = (".txt", ".md", ".csv")):
        self.extensions = tuple(ext.lower() for ext in extensions)

    def extract(self, filename: str, data: bytes) -> str:
        extension = os.path.splitext(filename or "")[1].lower()
        if extension not in self.extensions:
            raise DocumentExtractionError(f"Unsupported file type: {extension or 'unknown'}")
        if len(data) > MAX_UPLOAD_BYTES:
            raise DocumentExtractionError("File too large")

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DocumentExtractionError(f"Could not decode {filename}: {str(e)}") from e

        text = text.strip()
        if not text:
            raise DocumentExtractionError(f"No text found in {filename}")

        logger.info(f"📄 Extracted {len(text)} characters from {filename}")
        return text
