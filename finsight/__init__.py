"""
Finsight: streaming financial research answers over web search,
relevance ranking and generative providers.
"""

__version__ = "1.0.0"
