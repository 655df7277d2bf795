"""
Pydantic data models for utterances, topics and insights.

Defines type-safe data models for the inputs and session-scoped outputs
of the coaching core. Input models clamp malformed values instead of
rejecting them so that a single bad segment never blocks the stream.
"""

import math
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class Speaker(str, Enum):
    """Speaker role in an interview."""
    INTERVIEWER = "interviewer"
    PARTICIPANT = "participant"
    UNKNOWN = "unknown"


class TopicStatus(str, Enum):
    """Coverage status of a research topic. There is no terminal state."""
    UNTOUCHED = "untouched"
    TOUCHED = "touched"
    EXPLORED = "explored"

    @property
    def rank(self) -> int:
        """Ordinal used to enforce forward-only automatic transitions."""
        return _TOPIC_STATUS_RANK[self]

    @property
    def progress(self) -> float:
        """Contribution of this status to overall coverage (0.0-1.0)."""
        return self.rank / 2.0


_TOPIC_STATUS_RANK = {
    TopicStatus.UNTOUCHED: 0,
    TopicStatus.TOUCHED: 1,
    TopicStatus.EXPLORED: 2,
}


def _finite_or_zero(value) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    return result if math.isfinite(result) else 0.0


class Utterance(BaseModel):
    """
    A single speaker-attributed speech segment.

    Immutable once created. Negative timings are clamped to zero and the
    transcription confidence is clamped to [0, 1].
    """
    id: str
    speaker: Speaker = Speaker.UNKNOWN
    text: str = ""
    start_seconds: float = 0.0
    duration_seconds: float = 0.0
    transcription_confidence: float = 1.0

    class Config:
        """Pydantic configuration."""
        from_attributes = True
        frozen = True

    @field_validator("speaker", mode="before")
    @classmethod
    def coerce_speaker(cls, v):
        """Map unrecognised speaker labels to UNKNOWN."""
        if isinstance(v, Speaker):
            return v
        try:
            return Speaker(str(v).strip().lower())
        except ValueError:
            return Speaker.UNKNOWN

    @field_validator("text", mode="before")
    @classmethod
    def coerce_text(cls, v) -> str:
        """Treat missing text as empty."""
        return "" if v is None else str(v)

    @field_validator("start_seconds", "duration_seconds", mode="before")
    @classmethod
    def clamp_non_negative(cls, v) -> float:
        """Clamp negative, missing or non-finite timings to zero."""
        return max(0.0, _finite_or_zero(v))

    @field_validator("transcription_confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v) -> float:
        """Clamp confidence into [0, 1]; non-finite values become 0."""
        return max(0.0, min(1.0, _finite_or_zero(v)))

    @property
    def end_seconds(self) -> float:
        """Time at which the segment ends."""
        return self.start_seconds + self.duration_seconds

    @property
    def word_count(self) -> int:
        """Number of whitespace-separated words in the text."""
        return len(self.text.split())


class TopicState(BaseModel):
    """
    Awareness state of one research topic within a session.

    Automatic updates only move ``status`` forward. ``is_manual_override``
    pins the status until the user clears it.
    """
    topic_id: str
    name: str
    keywords: List[str] = Field(default_factory=list)
    status: TopicStatus = TopicStatus.UNTOUCHED
    last_updated: Optional[float] = None
    mention_count: int = Field(default=0, ge=0)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    is_manual_override: bool = False
    related_utterance_ids: List[str] = Field(default_factory=list)

    class Config:
        """Pydantic configuration."""
        from_attributes = True


class InsightSource(str, Enum):
    """Analyzer signal that promoted an utterance to an insight."""
    SENTIMENT = "sentiment"
    BIAS_ALERT = "bias_alert"
    STATEMENT = "statement"


class InsightFlag(BaseModel):
    """
    An utterance auto-flagged as a notable research insight.

    Flags are append-only within the core; user edits happen downstream.
    """
    id: str
    utterance_id: str
    timestamp: float = Field(ge=0.0)
    quote: str
    source: InsightSource
    reason: str
    confidence: float = Field(ge=0.0, le=1.0)
    themes: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)

    class Config:
        """Pydantic configuration."""
        from_attributes = True


__all__ = [
    "Speaker",
    "TopicStatus",
    "Utterance",
    "TopicState",
    "InsightSource",
    "InsightFlag",
]
