"""
API services module initialization.

Exports all service classes.
"""

from .pipeline_service import PipelineService, pipeline_service

__all__ = [
    "PipelineService",
    "pipeline_service"
]
