"""
Append-only audit log of coaching decisions and prompt responses.

Every candidate evaluation is recorded with the same structure whether
it was shown or suppressed, together with the full gate trace, so the
log can answer "why was (or wasn't) I prompted?" after the session.
"""

import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from interview_coach.models.decisions import CoachingDecision, GateCheck, PromptResponse

logger = logging.getLogger(__name__)

EventSink = Callable[[List["EventLogEntry"]], None]


class EventKind(str, Enum):
    """Kind of log entry."""
    DECISION = "decision"
    RESPONSE = "response"


class EventLogEntry(BaseModel):
    """One immutable audit record."""
    index: int = Field(ge=0)
    session_id: str
    at: float
    kind: EventKind
    candidate: Optional[Dict[str, Any]] = None
    decision: Optional[CoachingDecision] = None
    trace: List[GateCheck] = Field(default_factory=list)
    sequence: Optional[int] = None
    response: Optional[PromptResponse] = None

    class Config:
        """Pydantic configuration."""
        from_attributes = True
        frozen = True


class EventLog:
    """
    Append-only, in-memory event log for one session.

    Entries are handed to an optional ``sink`` callable on ``flush()``.
    After ``close()`` further appends are dropped with a warning.

    Example:
        >>> log = EventLog("session-1")
        >>> len(log)
        0
    """

    def __init__(self, session_id: str = "", sink: Optional[EventSink] = None):
        """
        Initialize event log.

        Args:
            session_id: Session the log belongs to
            sink: Callable receiving each batch of flushed entries
        """
        self.session_id = session_id
        self.sink = sink
        self._entries: List[EventLogEntry] = []
        self._flushed = 0
        self._closed = False
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> Tuple[EventLogEntry, ...]:
        """Read-only view of all entries."""
        return tuple(self._entries)

    @property
    def closed(self) -> bool:
        return self._closed

    def append_decision(
        self,
        at: float,
        decision: CoachingDecision,
        trace: List[GateCheck],
        candidate: Optional[Dict[str, Any]] = None,
        session_id: Optional[str] = None,
    ) -> Optional[EventLogEntry]:
        """
        Record one coaching decision with its gate trace.

        Returns:
            The new entry, or None if the log is closed
        """
        return self._append(
            session_id=session_id or self.session_id,
            at=at,
            kind=EventKind.DECISION,
            candidate=candidate,
            decision=decision,
            trace=list(trace),
        )

    def append_response(
        self,
        at: float,
        sequence: int,
        response: PromptResponse,
        session_id: Optional[str] = None,
    ) -> Optional[EventLogEntry]:
        """
        Record the interviewer's response to a shown prompt.

        Returns:
            The new entry, or None if the log is closed
        """
        return self._append(
            session_id=session_id or self.session_id,
            at=at,
            kind=EventKind.RESPONSE,
            sequence=sequence,
            response=response,
        )

    def _append(self, **fields: Any) -> Optional[EventLogEntry]:
        with self._lock:
            if self._closed:
                logger.warning(
                    "Dropping %s entry for closed event log '%s'",
                    fields["kind"].value, self.session_id,
                )
                return None
            entry = EventLogEntry(index=len(self._entries), **fields)
            self._entries.append(entry)
            return entry

    def decisions(self) -> List[EventLogEntry]:
        """Decision entries in append order."""
        return [e for e in self._entries if e.kind == EventKind.DECISION]

    def responses(self) -> List[EventLogEntry]:
        """Response entries in append order."""
        return [e for e in self._entries if e.kind == EventKind.RESPONSE]

    def flush(self) -> int:
        """
        Hand entries appended since the last flush to the sink.

        Returns:
            Number of entries delivered (0 without a sink)
        """
        with self._lock:
            pending = self._entries[self._flushed:]
            if self.sink is None or not pending:
                return 0
            self.sink(list(pending))
            self._flushed += len(pending)
        logger.debug("Flushed %d event log entries for '%s'", len(pending), self.session_id)
        return len(pending)

    def close(self) -> None:
        """Flush remaining entries and refuse further appends."""
        if self._closed:
            return
        self.flush()
        with self._lock:
            self._closed = True

    def to_dicts(self) -> List[Dict[str, Any]]:
        """Serialize all entries to JSON-compatible dicts."""
        return [e.model_dump(mode="json") for e in self._entries]


__all__ = [
    "EventKind",
    "EventLogEntry",
    "EventLog",
    "EventSink",
]
