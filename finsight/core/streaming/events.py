"""
Session events and the cancellable channel that carries them.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional

SOURCES = "sources"
PROCESSING = "processing"
CONTENT = "content"
METRICS = "metrics"
DONE = "done"
ERROR = "error"

EVENT_TYPES = (SOURCES, PROCESSING, CONTENT, METRICS, DONE, ERROR)
TERMINAL_EVENTS = frozenset({DONE, ERROR})


@dataclass(frozen=True)
class StreamEvent:
    """One event of a session: ``event`` names it, ``data`` is its payload."""

    event: str
    data: Any = None

    def __post_init__(self):
        if self.event not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {self.event}")

    @property
    def is_terminal(self) -> bool:
        return self.event in TERMINAL_EVENTS

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.event, "data": self.data}

    def to_sse(self) -> str:
        """Format as a Server-Sent Events frame."""
        return f"event: {self.event}\ndata: {json.dumps(self.data)}\n\n"


class EventChannel:
    """
    Unbounded single-consumer event queue.

    Once a terminal event was sent, or the consumer closed the channel,
    further sends are silent no-ops.
    """

    def __init__(self):
        self._queue: "asyncio.Queue[Optional[StreamEvent]]" = asyncio.Queue()
        self._closed = False
        self._finished = False

    @property
    def closed(self) -> bool:
        """True once the consumer went away."""
        return self._closed

    @property
    def finished(self) -> bool:
        return self._finished

    def send(self, event: str, data: Any = None) -> bool:
        """
        Queue an event.

        Returns:
            False when the event was dropped
        """
        if self._closed or self._finished:
            return False
        item = StreamEvent(event, data)
        if item.is_terminal:
            self._finished = True
        self._queue.put_nowait(item)
        return True

    def close(self) -> None:
        """Consumer side cancellation."""
        if self._closed:
            return
        self._closed = True
        # Wake a consumer blocked on an empty queue
        self._queue.put_nowait(None)

    async def __aiter__(self) -> AsyncIterator[StreamEvent]:
        while True:
            item = await self._queue.get()
            if item is None or self._closed:
                return
            yield item
            if item.is_terminal:
                return
