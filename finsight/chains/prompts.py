"""
Prompt templates for the generative providers.
"""

from typing import List, Optional
from langchain_core.prompts import PromptTemplate
from finsight.core.models import Document

SOURCE_CHARS_ANALYSIS = 2000
SOURCE_CHARS_METRICS = 1000
DOCUMENT_CHARS = 3000

METRIC_NAMES = [
    "PE Ratio", "EPS", "Revenue", "Market Cap",
    "Profit Margin", "Debt-to-Equity", "Current Ratio", "Dividend Yield"
]


def format_sources(documents: List[Document], max_chars: Optional[int] = None, with_urls: bool = True) -> str:
    """Number documents as ``Source N`` blocks for prompt context."""
    blocks = []
    for index, doc in enumerate(documents, start=1):
        content = doc.content
        if max_chars and len(content) > max_chars:
            content = content[:max_chars] + "..."
        header = f"Source {index} {doc.url}:" if with_urls else f"Source {index}:"
        blocks.append(f"{header}\n{content}")
    return "\n\n".join(blocks)


def get_chat_prompt() -> PromptTemplate:
    """Prompt answering a free-text query from web context."""
    template = """Context from web search:
{context}

Query: {query}

Please provide a comprehensive, detailed, well-cited accurate response using the above context. Ensure it answers the query the user is asking. Only rely on your own knowledge when the context is insufficient."""
    return PromptTemplate.from_template(template)


def get_analysis_prompt() -> PromptTemplate:
    """Prompt producing an investment report for a subject."""
    template = """Context from web search:
{context}

Write a well-structured investment report on {subject} for a {time_horizon} investment horizon.

Cover:
1. Executive Summary
2. Company Background
3. Financial Analysis
4. Technical Analysis
5. Sector Context
6. Risk Assessment
7. Growth Catalysts
8. Valuation Analysis
9. Investment Recommendation
10. Conclusion

Support every claim with the search results and end with a clear Buy/Hold/Sell recommendation, a target price or range if available, the suitable investment horizon and investor suitability."""
    return PromptTemplate.from_template(template)


def get_metrics_prompt() -> PromptTemplate:
    """Prompt extracting key metrics as ``name: value`` lines."""
    metric_lines = "\n".join(f"- {name}: [value]" for name in METRIC_NAMES)
    template = """Context from web search:
{context}

Extract the following key metrics for {subject} from the search results.
If a metric is not available, use "N/A" as the value.

""" + metric_lines + """

Format the output as a simple list with the metric name followed by its value.
Do not attempt to create JSON."""
    return PromptTemplate.from_template(template)


def get_followup_prompt() -> PromptTemplate:
    """Prompt answering a question about a previous analysis."""
    template = """Previous Stock Analysis for {subject}:
{analysis}

User Question: {message}

Answer the question about {subject} using the analysis above. Reference specific points from it, say so when it does not contain enough information, and keep the answer under 200 words unless more detail is requested."""
    return PromptTemplate.from_template(template)


def build_chat_prompt(query: str, sources: List[Document]) -> str:
    return get_chat_prompt().format(context=format_sources(sources), query=query)


def build_analysis_prompt(
    subject: str,
    time_horizon: str,
    sources: List[Document],
    document_text: Optional[str] = None
) -> str:
    context = format_sources(sources, SOURCE_CHARS_ANALYSIS, with_urls=False)
    if document_text:
        truncated = document_text[:DOCUMENT_CHARS]
        if len(document_text) > DOCUMENT_CHARS:
            truncated += "..."
        context += f"\n\nUploaded Document Content:\n{truncated}"
    return get_analysis_prompt().format(context=context, subject=subject, time_horizon=time_horizon)


def build_metrics_prompt(subject: str, sources: List[Document]) -> str:
    context = format_sources(sources[:5], SOURCE_CHARS_METRICS, with_urls=False)
    return get_metrics_prompt().format(context=context, subject=subject)


def build_followup_prompt(subject: str, analysis: str, message: str) -> str:
    return get_followup_prompt().format(subject=subject, analysis=analysis, message=message)
