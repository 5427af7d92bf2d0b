"""
Stream orchestration module initialization.

Exports session events, the event channel, sessions and the orchestrator.
"""

from . import events
from .events import StreamEvent, EventChannel
from .session import StreamSession, SessionKind, SessionState, DEFAULT_TIME_HORIZON
from .orchestrator import StreamOrchestrator, split_word_groups, split_slices

__all__ = [
    "events",
    "StreamEvent",
    "EventChannel",
    "StreamSession",
    "SessionKind",
    "SessionState",
    "DEFAULT_TIME_HORIZON",
    "StreamOrchestrator",
    "split_word_groups",
    "split_slices"
]
