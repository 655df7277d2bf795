"""
Inbound boundary events from the external reasoning service.

The upstream language model speaks in loosely-typed function calls. This
module is the only place those dynamic payloads are seen: each one is
validated and coerced into the strict tagged variant
``NudgeCandidate | TopicRelevance`` (discriminated on ``kind``), or
rejected as ``None``. Nothing past this boundary handles raw dicts.

Example:
    >>> event = parse_event({"kind": "nudge_candidate", "text": "Ask why",
    ...                      "confidence": 0.9, "timestamp": 42.0})
    >>> isinstance(event, NudgeCandidate)
    True
"""

import logging
import math
import uuid
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
#  Function types
# ---------------------------------------------------------------------------

class CoachingFunctionType(str, Enum):
    """Kinds of coaching proposal the reasoning service can make."""
    SUGGEST_FOLLOW_UP = "suggest_follow_up"
    EXPLORE_DEEPER = "explore_deeper"
    UNCOVERED_TOPIC = "uncovered_topic"
    SUGGEST_PIVOT = "suggest_pivot"
    ENCOURAGEMENT = "encouragement"
    GENERAL_TIP = "general_tip"

    @property
    def priority(self) -> int:
        """Display priority (lower is more important)."""
        return _FUNCTION_PRIORITY[self]


_FUNCTION_PRIORITY = {
    CoachingFunctionType.UNCOVERED_TOPIC: 1,
    CoachingFunctionType.SUGGEST_FOLLOW_UP: 2,
    CoachingFunctionType.EXPLORE_DEEPER: 3,
    CoachingFunctionType.SUGGEST_PIVOT: 4,
    CoachingFunctionType.ENCOURAGEMENT: 5,
    CoachingFunctionType.GENERAL_TIP: 6,
}

# Keyword hints used when the function name is not an exact type.
_NAME_HINTS = [
    (("follow", "question"), CoachingFunctionType.SUGGEST_FOLLOW_UP),
    (("deep", "explore"), CoachingFunctionType.EXPLORE_DEEPER),
    (("topic", "uncovered"), CoachingFunctionType.UNCOVERED_TOPIC),
    (("pivot", "redirect"), CoachingFunctionType.SUGGEST_PIVOT),
    (("encourage", "good"), CoachingFunctionType.ENCOURAGEMENT),
    (("tip", "hint"), CoachingFunctionType.GENERAL_TIP),
]

TOPIC_RELEVANCE_FUNCTIONS = frozenset({"topic_relevance", "mark_topic", "update_topic"})


def _to_float(value: Any, default: float = 0.0) -> float:
    """Parse a float; unparseable, NaN and infinite values give ``default``."""
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(result):
        return default
    return result


# ---------------------------------------------------------------------------
#  Event variants
# ---------------------------------------------------------------------------

class NudgeCandidate(BaseModel):
    """
    A proposed coaching prompt awaiting gate evaluation.

    Confidence is clamped into [0, 1]. An unparseable confidence becomes
    0.0 so that a garbled proposal is suppressed by the confidence gate
    rather than shown.
    """
    kind: Literal["nudge_candidate"] = "nudge_candidate"
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    text: str = Field(min_length=1)
    reason: str = ""
    confidence: float = 0.0
    function_type: CoachingFunctionType = CoachingFunctionType.GENERAL_TIP
    timestamp: float = 0.0

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, v):
        """Strip surrounding whitespace; empty text fails validation."""
        return str(v).strip() if v is not None else v

    @field_validator("reason", mode="before")
    @classmethod
    def coerce_reason(cls, v) -> str:
        """Treat a missing reason as empty."""
        return "" if v is None else str(v)

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v) -> float:
        """Parse and clamp confidence into [0, 1]."""
        return max(0.0, min(1.0, _to_float(v)))

    @field_validator("timestamp", mode="before")
    @classmethod
    def clamp_timestamp(cls, v) -> float:
        """Clamp negative or missing timestamps to zero."""
        return max(0.0, _to_float(v))


class TopicRelevance(BaseModel):
    """A per-utterance, per-topic relevance judgment."""
    kind: Literal["topic_relevance"] = "topic_relevance"
    topic_id: str = Field(min_length=1)
    utterance_id: Optional[str] = None
    relevance: float = 0.0
    timestamp: float = 0.0

    @field_validator("relevance", mode="before")
    @classmethod
    def clamp_relevance(cls, v) -> float:
        """Parse and clamp relevance into [0, 1]."""
        return max(0.0, min(1.0, _to_float(v)))

    @field_validator("timestamp", mode="before")
    @classmethod
    def clamp_timestamp(cls, v) -> float:
        """Clamp negative or missing timestamps to zero."""
        return max(0.0, _to_float(v))


BoundaryEvent = Annotated[
    Union[NudgeCandidate, TopicRelevance],
    Field(discriminator="kind"),
]

_BOUNDARY_ADAPTER: TypeAdapter = TypeAdapter(BoundaryEvent)


# ---------------------------------------------------------------------------
#  Coercion
# ---------------------------------------------------------------------------

def parse_event(payload: Any) -> Optional[Union[NudgeCandidate, TopicRelevance]]:
    """
    Validate an inbound payload into a boundary event.

    Accepts an already-typed event, a dict tagged with ``kind``, or a
    function-call shaped dict (``name`` plus ``arguments``).

    Args:
        payload: Raw inbound event

    Returns:
        NudgeCandidate or TopicRelevance, or None if the shape is not
        recognised
    """
    if isinstance(payload, (NudgeCandidate, TopicRelevance)):
        return payload
    if not isinstance(payload, Mapping):
        logger.debug("Ignoring non-mapping boundary payload: %r", type(payload).__name__)
        return None

    if "kind" not in payload and "name" in payload:
        arguments = payload.get("arguments")
        return event_from_function_call(
            str(payload.get("name", "")),
            arguments if isinstance(arguments, Mapping) else {},
            _to_float(payload.get("timestamp")),
        )

    try:
        return _BOUNDARY_ADAPTER.validate_python(dict(payload))
    except ValidationError as exc:
        logger.debug("Rejected boundary payload (%d errors)", exc.error_count())
        return None


def infer_function_type(name: str) -> Optional[CoachingFunctionType]:
    """
    Resolve a function name to a coaching function type.

    Exact type values win; otherwise the first keyword hint found in the
    lowercased name decides.

    Args:
        name: Function name from the reasoning service

    Returns:
        Matching CoachingFunctionType, or None
    """
    lowered = name.strip().lower()
    try:
        return CoachingFunctionType(lowered)
    except ValueError:
        pass
    for hints, function_type in _NAME_HINTS:
        if any(hint in lowered for hint in hints):
            return function_type
    return None


def event_from_function_call(
    name: str,
    arguments: Mapping[str, Any],
    timestamp: float = 0.0,
) -> Optional[Union[NudgeCandidate, TopicRelevance]]:
    """
    Coerce a model function call into a boundary event.

    Text is read from ``text``, ``prompt`` or ``message``; the internal
    reason from ``reason`` or ``context``; confidence from ``confidence``
    (string or number).

    Args:
        name: Function name
        arguments: Function arguments as sent by the model
        timestamp: Session time the call arrived

    Returns:
        The coerced event, or None if the call is not recognised
    """
    lowered = name.strip().lower()
    if lowered in TOPIC_RELEVANCE_FUNCTIONS:
        data: Dict[str, Any] = {
            "kind": "topic_relevance",
            "topic_id": arguments.get("topic_id") or arguments.get("topic"),
            "utterance_id": arguments.get("utterance_id"),
            "relevance": arguments.get("relevance", arguments.get("confidence")),
            "timestamp": timestamp,
        }
    else:
        function_type = infer_function_type(name)
        if function_type is None:
            logger.debug("Unrecognised coaching function '%s'", name)
            return None
        data = {
            "kind": "nudge_candidate",
            "text": arguments.get("text") or arguments.get("prompt") or arguments.get("message"),
            "reason": arguments.get("reason") or arguments.get("context") or "",
            "confidence": arguments.get("confidence"),
            "function_type": function_type,
            "timestamp": timestamp,
        }

    try:
        return _BOUNDARY_ADAPTER.validate_python(data)
    except ValidationError as exc:
        logger.debug("Rejected function call '%s' (%d errors)", name, exc.error_count())
        return None


__all__ = [
    "CoachingFunctionType",
    "NudgeCandidate",
    "TopicRelevance",
    "BoundaryEvent",
    "parse_event",
    "infer_function_type",
    "event_from_function_call",
]
