"""
Tests for metrics extraction, recommendations and document extraction.
"""

import asyncio

import pytest

from finsight.chains.prompts import METRIC_NAMES, build_analysis_prompt, build_metrics_prompt
from finsight.core.analysis import (
    MetricsExtractor,
    parse_metrics,
    placeholder_metrics,
    derive_recommendation,
    NOT_AVAILABLE
)
from finsight.core.documents import PlainTextExtractor
from finsight.core.models import Document
from finsight.core.providers import ProviderManager
from finsight.utils.exceptions import DocumentExtractionError, NoProvidersAvailable
from tests.conftest import FakeProvider, make_registry


class TestParseMetrics:

    def test_known_metrics_are_parsed(self):
        text = "- PE Ratio: 65.2\n**EPS**: $2.13\nmarket cap: 3.1T\nFavorite color: green"

        metrics = parse_metrics(text)

        assert metrics["PE Ratio"] == "65.2"
        assert metrics["EPS"] == "$2.13"
        assert metrics["Market Cap"] == "3.1T"
        assert "Favorite color" not in metrics

    def test_missing_metrics_are_not_available(self):
        metrics = parse_metrics("nothing useful")

        assert set(metrics) == set(METRIC_NAMES)
        assert all(value == NOT_AVAILABLE for value in metrics.values())

    def test_placeholder(self):
        metrics = placeholder_metrics()

        assert all(metrics[name] == NOT_AVAILABLE for name in METRIC_NAMES)
        assert "_note" in metrics


class TestMetricsExtractor:

    def test_extracts_through_provider(self):
        provider = FakeProvider("a", completion="Revenue: $60.9B\nDividend Yield: 0.03%")
        extractor = MetricsExtractor(ProviderManager(make_registry(provider)))

        metrics = asyncio.run(extractor.extract("NVDA", [Document(content="context")]))

        assert metrics["Revenue"] == "$60.9B"
        assert metrics["Dividend Yield"] == "0.03%"
        assert metrics["EPS"] == NOT_AVAILABLE
        assert provider.generate_calls == 1

    def test_propagates_provider_failure(self):
        extractor = MetricsExtractor(ProviderManager(make_registry(FakeProvider("a"), quotas={"a": 0})))

        with pytest.raises(NoProvidersAvailable):
            asyncio.run(extractor.extract("NVDA", []))


class TestRecommendation:

    @pytest.mark.parametrize("text,expected", [
        ("We rate the stock a Buy.", "Buy"),
        ("Don't buy now; we recommend to hold.", "Hold"),
        ("Investors should sell.", "Sell"),
        ("Don't sell, but don't buy either.", "Neutral"),
        ("No view.", "Neutral"),
        ("", "Neutral"),
    ])
    def test_keywords(self, text, expected):
        assert derive_recommendation(text) == expected

    def test_curly_apostrophe_negation(self):
        assert derive_recommendation("Don’t buy. Sell.") == "Sell"


class TestPrompts:

    def test_analysis_prompt_includes_truncated_document(self):
        prompt = build_analysis_prompt("NVDA", "long-term", [Document(content="web")], "x" * 4000)

        assert "long-term" in prompt
        assert "Uploaded Document Content:" in prompt
        assert "x" * 3000 + "..." in prompt
        assert "x" * 3001 not in prompt

    def test_metrics_prompt_lists_every_metric(self):
        prompt = build_metrics_prompt("NVDA", [Document(content="web")])

        for name in METRIC_NAMES:
            assert f"- {name}: [value]" in prompt


class TestPlainTextExtractor:

    def test_extracts_utf8_text(self):
        assert PlainTextExtractor().extract("notes.TXT", "  Revenue up 20%  ".encode()) == "Revenue up 20%"

    @pytest.mark.parametrize("filename,data", [
        ("report.exe", b"text"),
        ("report", b"text"),
        ("report.txt", b"\xff\xfe\xfa"),
        ("report.md", b"   "),
    ])
    def test_rejects_unusable_uploads(self, filename, data):
        with pytest.raises(DocumentExtractionError):
            PlainTextExtractor().extract(filename, data)
