"""
Speaking-time balance between interviewer and participant.

Computes:
- Total interviewer and participant talk time
- Interviewer share of speech with a good/warning/over status
- A rolling-window time series of the same ratios for the talk-time bar

A good research interview lets the participant drive: under 30%
interviewer talk time is good, 30-40% is a warning, above 40% is over.
"""

import json
import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Sequence

import numpy as np

from interview_coach.models.entities import Speaker, Utterance

logger = logging.getLogger(__name__)


class TalkTimeStatus(str, Enum):
    """Interviewer talk-time status."""
    GOOD = "good"
    WARNING = "warning"
    OVER = "over"
    NO_DATA = "no_data"


@dataclass
class TalkTimeResult:
    """Talk-time totals and ratios for a set of utterances."""

    interviewer_time: float = 0.0
    participant_time: float = 0.0
    total_time: float = 0.0
    interviewer_ratio: float = 0.0
    participant_ratio: float = 0.0
    status: TalkTimeStatus = TalkTimeStatus.NO_DATA

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["status"] = self.status.value
        return data

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


@dataclass
class TalkTimeWindowPoint:
    """One point of the rolling-window series, stamped at the window end."""

    timestamp: float
    interviewer_ratio: float
    participant_ratio: float
    status: TalkTimeStatus

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["status"] = self.status.value
        return data


def _pct(ratio: float) -> int:
    return int(ratio * 100 + 0.5)


class TalkTimeAnalyzer:
    """
    Interviewer/participant speaking-time analyzer.

    Example:
        >>> analyzer = TalkTimeAnalyzer()
        >>> result = analyzer.analyze(utterances)
        >>> print(analyzer.summarize(result))
    """

    def __init__(
        self,
        good_threshold: float = 0.30,
        warning_threshold: float = 0.40,
        window_size: float = 300.0,
        window_step: float = 30.0,
    ):
        """
        Initialize talk-time analyzer.

        Args:
            good_threshold: Interviewer ratio below which status is good
            warning_threshold: Interviewer ratio up to which status is warning
            window_size: Rolling window width in seconds
            window_step: Rolling window step in seconds
        """
        self.good_threshold = good_threshold
        self.warning_threshold = warning_threshold
        self.window_size = window_size
        self.window_step = max(1e-6, window_step)

    def status_for(self, interviewer_ratio: float) -> TalkTimeStatus:
        """Map an interviewer ratio to a status."""
        if interviewer_ratio < self.good_threshold:
            return TalkTimeStatus.GOOD
        if interviewer_ratio <= self.warning_threshold:
            return TalkTimeStatus.WARNING
        return TalkTimeStatus.OVER

    def analyze(self, utterances: Sequence[Utterance]) -> TalkTimeResult:
        """
        Compute talk-time totals and status.

        Speakers other than interviewer and participant are ignored.

        Args:
            utterances: Utterances to total

        Returns:
            TalkTimeResult (status NO_DATA when there is no speech)
        """
        interviewer = sum(
            u.duration_seconds for u in utterances if u.speaker == Speaker.INTERVIEWER
        )
        participant = sum(
            u.duration_seconds for u in utterances if u.speaker == Speaker.PARTICIPANT
        )
        total = interviewer + participant
        if total <= 0:
            return TalkTimeResult()

        interviewer_ratio = interviewer / total
        return TalkTimeResult(
            interviewer_time=interviewer,
            participant_time=participant,
            total_time=total,
            interviewer_ratio=interviewer_ratio,
            participant_ratio=participant / total,
            status=self.status_for(interviewer_ratio),
        )

    def rolling_window(self, utterances: Sequence[Utterance]) -> List[TalkTimeWindowPoint]:
        """
        Compute talk-time ratios over a sliding window.

        Window ends run from the first utterance start plus one step up to
        the last utterance end, which always closes the series (a session
        shorter than one step gets a single point). Each utterance
        contributes only the part of its span that falls inside the window.

        Args:
            utterances: Utterances to window

        Returns:
            Time series of TalkTimeWindowPoint; windows without speech
            have status NO_DATA
        """
        relevant = [
            u for u in utterances
            if u.speaker in (Speaker.INTERVIEWER, Speaker.PARTICIPANT)
        ]
        if not relevant:
            return []

        starts = np.array([u.start_seconds for u in relevant], dtype=float)
        ends = np.array([u.end_seconds for u in relevant], dtype=float)
        is_interviewer = np.array(
            [u.speaker == Speaker.INTERVIEWER for u in relevant], dtype=bool
        )
        first, last = float(starts.min()), float(ends.max())

        points: List[TalkTimeWindowPoint] = []
        # The final window always ends at ``last``, even when it is a partial step.
        steps = int(np.ceil((last - first) / self.window_step - 1e-9))
        for i in range(1, steps + 1):
            window_end = min(first + i * self.window_step, last)
            window_start = max(first, window_end - self.window_size)
            overlap = np.clip(
                np.minimum(ends, window_end) - np.maximum(starts, window_start), 0.0, None
            )
            interviewer = float(overlap[is_interviewer].sum())
            participant = float(overlap[~is_interviewer].sum())
            total = interviewer + participant
            if total <= 0:
                points.append(TalkTimeWindowPoint(window_end, 0.0, 0.0, TalkTimeStatus.NO_DATA))
                continue
            ratio = interviewer / total
            points.append(TalkTimeWindowPoint(
                timestamp=window_end,
                interviewer_ratio=ratio,
                participant_ratio=participant / total,
                status=self.status_for(ratio),
            ))
        return points

    def summarize(self, result: TalkTimeResult) -> str:
        """
        Render a one-line human summary of a talk-time result.

        Args:
            result: Result from ``analyze``

        Returns:
            Summary sentence
        """
        if result.status == TalkTimeStatus.NO_DATA:
            return "No talk time data available yet."

        interviewer = _pct(result.interviewer_ratio)
        participant = _pct(result.participant_ratio)
        if result.status == TalkTimeStatus.GOOD:
            return (
                f"Good balance: interviewer {interviewer}%, participant {participant}%. "
                "The participant is driving the conversation."
            )
        if result.status == TalkTimeStatus.WARNING:
            return (
                f"Slightly high: interviewer {interviewer}%, participant {participant}%. "
                "Consider asking more open-ended questions."
            )
        return (
            f"Interviewer talking too much: {interviewer}% vs participant {participant}%. "
            "Let the participant lead more."
        )


__all__ = [
    "TalkTimeStatus",
    "TalkTimeResult",
    "TalkTimeWindowPoint",
    "TalkTimeAnalyzer",
]
