"""
Stream session: one end-to-end request and its state machine.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional
from finsight.core.cache.keys import query_key, analysis_key
from finsight.utils.exceptions import ValidationError, SessionStateError

DEFAULT_TIME_HORIZON = "medium-term"


class SessionKind(str, Enum):
    QUERY = "query"
    SUBJECT = "subject"


class SessionState(str, Enum):
    INIT = "init"
    CACHE_CHECK = "cache_check"
    CACHE_HIT_REPLAY = "cache_hit_replay"
    SEARCHING = "searching"
    RANKING = "ranking"
    GENERATING = "generating"
    METRICS = "metrics"
    DONE = "done"
    ERROR = "error"


_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.INIT: frozenset({SessionState.CACHE_CHECK}),
    SessionState.CACHE_CHECK: frozenset({SessionState.CACHE_HIT_REPLAY, SessionState.SEARCHING}),
    SessionState.CACHE_HIT_REPLAY: frozenset({SessionState.DONE}),
    SessionState.SEARCHING: frozenset({SessionState.RANKING}),
    SessionState.RANKING: frozenset({SessionState.GENERATING}),
    SessionState.GENERATING: frozenset({SessionState.METRICS, SessionState.DONE}),
    SessionState.METRICS: frozenset({SessionState.DONE}),
    SessionState.DONE: frozenset(),
    SessionState.ERROR: frozenset(),
}


@dataclass
class StreamSession:
    """
    One request for a free-text query or a subject analysis.

    Build sessions with ``for_query`` / ``for_subject``, which reject blank
    input before any collaborator is involved. ``document_text`` attaches
    uploaded content to a subject analysis; such sessions bypass the cache.
    """

    kind: SessionKind
    query_or_subject: str
    time_horizon: Optional[str] = None
    identity: Optional[str] = None
    document_text: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    state: SessionState = SessionState.INIT
    started_at: float = field(default_factory=time.time)

    @classmethod
    def for_query(cls, query: Optional[str], identity: Optional[str] = None) -> "StreamSession":
        if not query or not query.strip():
            raise ValidationError("Query is required")
        return cls(kind=SessionKind.QUERY, query_or_subject=query.strip(), identity=identity)

    @classmethod
    def for_subject(
        cls,
        subject: Optional[str],
        time_horizon: Optional[str] = None,
        identity: Optional[str] = None,
        document_text: Optional[str] = None
    ) -> "StreamSession":
        if not subject or not subject.strip():
            raise ValidationError("Stock symbol or company name is required")
        return cls(
            kind=SessionKind.SUBJECT,
            query_or_subject=subject.strip(),
            time_horizon=(time_horizon or "").strip() or DEFAULT_TIME_HORIZON,
            identity=identity,
            document_text=document_text
        )

    @property
    def is_subject(self) -> bool:
        return self.kind == SessionKind.SUBJECT

    @property
    def cacheable(self) -> bool:
        return self.document_text is None

    @property
    def is_terminal(self) -> bool:
        return self.state in (SessionState.DONE, SessionState.ERROR)

    def cache_key(self) -> str:
        if self.is_subject:
            return analysis_key(self.query_or_subject, self.time_horizon)
        return query_key(self.query_or_subject)

    def search_phrase(self) -> str:
        if self.is_subject:
            return f"{self.query_or_subject} stock financial analysis investor information"
        return self.query_or_subject

    def transition(self, state: SessionState) -> None:
        """
        Move to ``state``.

        Raises:
            SessionStateError: If the transition is not allowed
        """
        allowed = _TRANSITIONS[self.state]
        if state == SessionState.ERROR and not self.is_terminal:
            allowed = allowed | {SessionState.ERROR}
        if state not in allowed:
            raise SessionStateError(f"Illegal transition {self.state.value} -> {state.value}")
        self.state = state
