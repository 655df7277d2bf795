"""
Adaptive thresholds from prompt response history.

After enough prompt responses, a researcher who mostly dismisses prompts
gets stricter thresholds and one who mostly accepts them gets slightly
looser ones. Adaptation produces thresholds for the *next* session; a
running session's gates never change underneath it.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable

from interview_coach.coaching.event_log import EventLog
from interview_coach.coaching.thresholds import CoachingThresholds
from interview_coach.models.decisions import PromptResponse

logger = logging.getLogger(__name__)

MIN_RESPONSES_FOR_ADAPTATION = 10
HIGH_DISMISSAL_RATE = 0.7
HIGH_ACCEPTANCE_RATE = 0.8


@dataclass
class ResponseStats:
    """Counts of interviewer responses to shown prompts."""

    accepted: int = 0
    dismissed: int = 0
    snoozed: int = 0
    auto_dismissed: int = 0

    @property
    def total(self) -> int:
        return self.accepted + self.dismissed + self.snoozed + self.auto_dismissed

    @property
    def dismissal_rate(self) -> float:
        """Share of responses that were dismissals (manual or automatic)."""
        if self.total == 0:
            return 0.0
        return (self.dismissed + self.auto_dismissed) / self.total

    @property
    def acceptance_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.accepted / self.total

    def record(self, response: PromptResponse) -> None:
        """Count one response."""
        response = PromptResponse(response)
        if response == PromptResponse.ACCEPTED:
            self.accepted += 1
        elif response == PromptResponse.DISMISSED:
            self.dismissed += 1
        elif response == PromptResponse.SNOOZED:
            self.snoozed += 1
        else:
            self.auto_dismissed += 1

    @classmethod
    def from_responses(cls, responses: Iterable[PromptResponse]) -> "ResponseStats":
        stats = cls()
        for response in responses:
            stats.record(response)
        return stats

    @classmethod
    def from_event_log(cls, event_log: EventLog) -> "ResponseStats":
        """Count the response entries of a session's event log."""
        return cls.from_responses(
            e.response for e in event_log.responses() if e.response is not None
        )

    def merge(self, other: "ResponseStats") -> "ResponseStats":
        """Combine counts across sessions."""
        return ResponseStats(
            accepted=self.accepted + other.accepted,
            dismissed=self.dismissed + other.dismissed,
            snoozed=self.snoozed + other.snoozed,
            auto_dismissed=self.auto_dismissed + other.auto_dismissed,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["total"] = self.total
        return data


def adapt_thresholds(thresholds: CoachingThresholds, stats: ResponseStats) -> CoachingThresholds:
    """
    Derive next-session thresholds from response history.

    With fewer than 10 responses the thresholds are returned unchanged.
    A dismissal rate above 70% raises the confidence bar by 0.05 (max
    0.95), lengthens the cooldown by 20% and lowers the prompt cap by one
    (min 2). An acceptance rate above 80% lowers the confidence bar by
    0.03 (min 0.70) and shortens the cooldown by 10%. A value already
    past a limit is kept, so a cap of 0 (coaching off) stays 0.

    Args:
        thresholds: Current thresholds
        stats: Accumulated response counts

    Returns:
        New thresholds (the input is not modified)
    """
    if stats.total < MIN_RESPONSES_FOR_ADAPTATION:
        return thresholds

    # Tightening never loosens a value and relaxing never tightens one.
    confidence = thresholds.minimum_confidence
    max_prompts = thresholds.max_prompts_per_session

    if stats.dismissal_rate > HIGH_DISMISSAL_RATE:
        adapted = thresholds.model_copy(update={
            "minimum_confidence": max(confidence, min(0.95, confidence + 0.05)),
            "session_cooldown_seconds": thresholds.session_cooldown_seconds * 1.2,
            "max_prompts_per_session": min(max_prompts, max(2, max_prompts - 1)),
        })
        logger.info("High dismissal rate (%.0f%%): tightening thresholds",
                    stats.dismissal_rate * 100)
        return adapted

    if stats.acceptance_rate > HIGH_ACCEPTANCE_RATE:
        adapted = thresholds.model_copy(update={
            "minimum_confidence": min(confidence, max(0.70, confidence - 0.03)),
            "session_cooldown_seconds": thresholds.session_cooldown_seconds * 0.9,
        })
        logger.info("High acceptance rate (%.0f%%): relaxing thresholds",
                    stats.acceptance_rate * 100)
        return adapted

    return thresholds


__all__ = [
    "MIN_RESPONSES_FOR_ADAPTATION",
    "ResponseStats",
    "adapt_thresholds",
]
