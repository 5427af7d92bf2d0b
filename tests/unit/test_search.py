"""
Tests for Tavily content acquisition.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from finsight.core.search import TavilyContentAcquisition
from finsight.utils.exceptions import SearchError


def make_search(response=None, error=None):
    wrapper = MagicMock()
    wrapper.raw_results_async = AsyncMock(return_value=response, side_effect=error)
    return TavilyContentAcquisition(max_results=3, search_depth="basic", api_wrapper=wrapper), wrapper


class TestTavilyContentAcquisition:

    def test_results_become_documents(self):
        search, wrapper = make_search({"results": [
            {"title": "NVDA rallies", "url": "https://a.example", "raw_content": "Shares  rose\n10%"},
            {"title": None, "url": "https://b.example", "content": "fallback content"},
        ]})

        documents = asyncio.run(search.search("NVDA news"))

        assert [d.url for d in documents] == ["https://a.example", "https://b.example"]
        assert documents[0].content == "Shares rose 10%"
        assert documents[1].title == ""
        assert documents[1].content == "fallback content"
        assert wrapper.raw_results_async.await_args.kwargs["query"] == "NVDA news"

    def test_backend_errors_become_search_errors(self):
        search, _ = make_search(error=ConnectionError("timeout"))

        with pytest.raises(SearchError, match="Search failed: timeout"):
            asyncio.run(search.search("NVDA news"))
