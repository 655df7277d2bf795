"""
Coaching decision types and per-session gate state.

A coaching decision is a tagged variant: ``ShowDecision``,
``SuppressDecision`` or ``NoCandidateDecision``, discriminated on
``kind``. Suppression reasons form the closed ``GateReason`` set; adding
a gate means extending that enum and every place that matches on it.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class GateReason(str, Enum):
    """Closed set of suppression reason codes, in evaluation order."""
    COACHING_DISABLED = "coaching_disabled"
    MAX_PROMPTS_REACHED = "max_prompts_reached"
    INTERVIEWER_SPEAKING = "interviewer_speaking"
    POST_SPEECH_COOLDOWN = "post_speech_cooldown"
    SESSION_COOLDOWN = "session_cooldown"
    LOW_CONFIDENCE = "low_confidence"


GATE_ORDER: List[GateReason] = list(GateReason)


class PromptResponse(str, Enum):
    """Interviewer response to a shown prompt."""
    ACCEPTED = "accepted"
    DISMISSED = "dismissed"
    SNOOZED = "snoozed"
    AUTO_DISMISSED = "auto_dismissed"


class GateCheck(BaseModel):
    """Outcome of one gate for one candidate."""
    gate: GateReason
    passed: bool
    detail: str = ""


class ShowDecision(BaseModel):
    """Surface the candidate prompt to the interviewer."""
    kind: Literal["show"] = "show"
    text: str
    reason_internal: str = ""
    sequence: int = Field(ge=1)
    candidate_id: Optional[str] = None
    at: float


class SuppressDecision(BaseModel):
    """Stay quiet; ``reason_code`` is the first failing gate."""
    kind: Literal["suppress"] = "suppress"
    reason_code: GateReason
    candidate_id: Optional[str] = None
    at: float


class NoCandidateDecision(BaseModel):
    """The inbound payload was not a usable candidate nudge."""
    kind: Literal["no_candidate"] = "no_candidate"
    detail: str = ""
    at: float


CoachingDecision = Annotated[
    Union[ShowDecision, SuppressDecision, NoCandidateDecision],
    Field(discriminator="kind"),
]


@dataclass
class SessionGateState:
    """
    Mutable gate memory for one interview session.

    Created at session start and discarded at session end. Only the
    policy engine mutates it, always while holding ``lock`` so that
    candidates for one session are evaluated one at a time.

    Attributes:
        session_id: Owning session identifier
        coaching_enabled: Session-level opt-in (off for a first-ever session)
        prompts_shown: Number of Show decisions so far
        last_prompt_at: Session time of the last Show (or snooze)
        last_speech_end_at: Session time the most recent speech ended
        is_speech_active: True while the interviewer is speaking
        next_sequence: Sequence number the next Show will carry
    """

    session_id: str
    coaching_enabled: bool = False
    prompts_shown: int = 0
    last_prompt_at: Optional[float] = None
    last_speech_end_at: Optional[float] = None
    is_speech_active: bool = False
    next_sequence: int = 1
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "session_id": self.session_id,
            "coaching_enabled": self.coaching_enabled,
            "prompts_shown": self.prompts_shown,
            "last_prompt_at": self.last_prompt_at,
            "last_speech_end_at": self.last_speech_end_at,
            "is_speech_active": self.is_speech_active,
        }


__all__ = [
    "GateReason",
    "GATE_ORDER",
    "PromptResponse",
    "GateCheck",
    "ShowDecision",
    "SuppressDecision",
    "NoCandidateDecision",
    "CoachingDecision",
    "SessionGateState",
]
