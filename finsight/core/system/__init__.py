"""
System module initialization.
"""

from .pipeline import FinsightPipeline, create_pipeline

__all__ = ["FinsightPipeline", "create_pipeline"]
