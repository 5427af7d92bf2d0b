"""
Content acquisition collaborators.

Turns a search phrase into candidate documents. Page fetching and text
cleanup are delegated to the Tavily search API.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from langchain_community.utilities.tavily_search import TavilySearchAPIWrapper
from finsight.core.models import Document
from finsight.config.settings import get_config, FinsightConfig
from finsight.utils.logging import get_logger, preview
from finsight.utils.exceptions import SearchError, ConfigurationError
from finsight.utils.decorators import async_timing_decorator, wrap_errors

logger = get_logger(__name__)

MAX_CONTENT_CHARS = 5000


class ContentAcquisition(ABC):
    """Source of candidate documents for a phrase."""

    @abstractmethod
    async def search(self, phrase: str) -> List[Document]:
        """
        Search for documents.

        Raises:
            SearchError: If the search backend is unreachable
        """
        pass


class TavilyContentAcquisition(ContentAcquisition):
    """Web search through Tavily, returning extracted page content."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        max_results: Optional[int] = None,
        search_depth: Optional[str] = None,
        api_wrapper: Optional[TavilySearchAPIWrapper] = None
    ):
        """
        Args:
            api_key: Tavily API key
            max_results: Maximum results per search
            search_depth: ``basic`` or ``advanced``
            api_wrapper: Pre-built wrapper (tests)

        Raises:
            ConfigurationError: If no API key is available
        """
        config = get_config()
        self.max_results = max_results or config.search.max_results
        self.search_depth = search_depth or config.search.search_depth

        if api_wrapper is None:
            api_key = api_key or config.tavily_api_key
            if not api_key:
                raise ConfigurationError("Tavily API key is required for web search")
            api_wrapper = TavilySearchAPIWrapper(tavily_api_key=api_key)
        self.api_wrapper = api_wrapper

        logger.info(f"🔎 Initialized Tavily search (max_results={self.max_results})")

    @staticmethod
    def _to_document(result: Dict[str, Any]) -> Document:
        content = " ".join((result.get("raw_content") or result.get("content") or "").split())
        if len(content) > MAX_CONTENT_CHARS:
            content = content[:MAX_CONTENT_CHARS] + "..."
        return Document(
            title=result.get("title") or "",
            url=result.get("url") or "",
            content=content
        )

    @async_timing_decorator
    @wrap_errors(SearchError, "Search failed")
    async def search(self, phrase: str) -> List[Document]:
        logger.info(f"🔎 Searching web for: {preview(phrase)}")
        response = await self.api_wrapper.raw_results_async(
            query=phrase,
            max_results=self.max_results,
            search_depth=self.search_depth,
            include_raw_content=True
        )

        documents = [self._to_document(result) for result in response.get("results", [])]
        logger.info(f"📚 Search returned {len(documents)} documents")
        return documents


def create_content_acquisition(config: Optional[FinsightConfig] = None) -> ContentAcquisition:
    """Build the configured content acquisition collaborator."""
    config = config or get_config()
    return TavilyContentAcquisition(
        api_key=config.tavily_api_key,
        max_results=config.search.max_results,
        search_depth=config.search.search_depth
    )
