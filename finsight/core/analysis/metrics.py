"""
Key financial metrics extraction.

Asks a generative provider for a fixed set of metrics and parses its
``name: value`` lines. Missing metrics are reported as ``N/A``.
"""

import re
from typing import Dict, List
from finsight.chains.prompts import METRIC_NAMES, build_metrics_prompt
from finsight.core.models import Document
from finsight.core.providers.manager import ProviderManager
from finsight.utils.logging import get_logger
from finsight.utils.decorators import async_timing_decorator

logger = get_logger(__name__)

NOT_AVAILABLE = "N/A"
PLACEHOLDER_NOTE = "Metrics unavailable due to timeout"

_LINE_PATTERN = re.compile(r"^\s*[-*•]?\s*([^:]+?)\s*:\s*(.+?)\s*$")


def placeholder_metrics() -> Dict[str, str]:
    """Fixed metric set used when extraction times out or fails."""
    metrics = {name: NOT_AVAILABLE for name in METRIC_NAMES}
    metrics["_note"] = PLACEHOLDER_NOTE
    return metrics


def parse_metrics(text: str) -> Dict[str, str]:
    """
    Parse ``name: value`` lines into a metrics mapping.

    Names are matched case-insensitively against the known metrics; unknown
    lines are ignored and every known metric is present in the result.
    """
    known = {name.lower(): name for name in METRIC_NAMES}
    metrics = {name: NOT_AVAILABLE for name in METRIC_NAMES}

    for line in text.splitlines():
        match = _LINE_PATTERN.match(line)
        if not match:
            continue
        name = match.group(1).strip().strip("*").strip().lower()
        value = match.group(2).strip().strip("*").strip()
        if name in known and value:
            metrics[known[name]] = value

    return metrics


class MetricsExtractor:
    """Extracts key metrics for a subject from ranked sources."""

    def __init__(self, provider_manager: ProviderManager):
        self.provider_manager = provider_manager

    @async_timing_decorator
    async def extract(self, subject: str, sources: List[Document]) -> Dict[str, str]:
        """
        Args:
            subject: Ticker or company name
            sources: Ranked documents used as context

        Returns:
            Mapping of metric name to value or ``N/A``

        Raises:
            GenerationError: If no provider could answer
        """
        logger.info(f"📊 Extracting key metrics for {subject}")
        response = await self.provider_manager.make_request(build_metrics_prompt(subject, sources))
        metrics = parse_metrics(response.text)
        found = sum(1 for value in metrics.values() if value != NOT_AVAILABLE)
        logger.info(f"✅ Extracted {found}/{len(METRIC_NAMES)} metrics via {response.provider_name}")
        return metrics
