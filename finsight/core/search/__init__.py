"""
Content acquisition module initialization.
"""

from .acquisition import ContentAcquisition, TavilyContentAcquisition, create_content_acquisition

__all__ = [
    "ContentAcquisition",
    "TavilyContentAcquisition",
    "create_content_acquisition"
]
