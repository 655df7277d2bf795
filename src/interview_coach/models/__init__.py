"""Data models for the Interview Coach core."""

from interview_coach.models.decisions import (
    GATE_ORDER,
    CoachingDecision,
    GateCheck,
    GateReason,
    NoCandidateDecision,
    PromptResponse,
    SessionGateState,
    ShowDecision,
    SuppressDecision,
)
from interview_coach.models.entities import (
    InsightFlag,
    InsightSource,
    Speaker,
    TopicState,
    TopicStatus,
    Utterance,
)

__all__ = [
    "GATE_ORDER",
    "CoachingDecision",
    "GateCheck",
    "GateReason",
    "NoCandidateDecision",
    "PromptResponse",
    "SessionGateState",
    "ShowDecision",
    "SuppressDecision",
    "InsightFlag",
    "InsightSource",
    "Speaker",
    "TopicState",
    "TopicStatus",
    "Utterance",
]
