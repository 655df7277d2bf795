"""
Interviewer bias detection over the classified questions of a session.

Runs six independent, composable checks over ``(utterance_id, text,
question_type)`` entries:

- gendered language
- age/generational stereotypes
- confirmation seeking (fires at 3+ matches)
- systemic leading questions (above 30% of 3+ questions)
- closed-question overuse (above 60% of 3+ questions)
- assumptive language

Each check yields zero or one alert. Alerts describe the session so far,
so ``analyze()`` recomputes and replaces the whole set.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)


class BiasSeverity(str, Enum):
    """Severity tier for a bias alert."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BiasType(str, Enum):
    """Kinds of interviewer bias."""
    GENDER_BIAS = "gender_bias"
    AGE_BIAS = "age_bias"
    CONFIRMATION_BIAS = "confirmation_bias"
    LEADING_PATTERN = "leading_pattern"
    CLOSED_QUESTION_OVERUSE = "closed_overuse"
    ASSUMPTIVE_LANGUAGE = "assumptive"

    @property
    def default_severity(self) -> BiasSeverity:
        return _DEFAULT_SEVERITY[self]


_DEFAULT_SEVERITY = {
    BiasType.GENDER_BIAS: BiasSeverity.HIGH,
    BiasType.AGE_BIAS: BiasSeverity.MEDIUM,
    BiasType.CONFIRMATION_BIAS: BiasSeverity.HIGH,
    BiasType.LEADING_PATTERN: BiasSeverity.MEDIUM,
    BiasType.CLOSED_QUESTION_OVERUSE: BiasSeverity.LOW,
    BiasType.ASSUMPTIVE_LANGUAGE: BiasSeverity.MEDIUM,
}

_WORD_GAPS = re.compile(r"[^a-z']+")

# Matched against space-padded, punctuation-free text: whole words only.
GENDER_KEYWORDS = [
    " he ", " she ", " guys ", " girls ", " men ", " women ",
    " his ", " her ", " him ", " himself ", " herself ",
    " man ", " woman ", " boy ", " girl ", " boys ",
    " gentlemen ", " ladies ",
]

AGE_KEYWORDS = [
    "young people", "older users", "old people", "elderly",
    "millennials", "boomers", "gen z", "gen x",
    "your generation", "your age group", "kids these days",
    "back in your day", "at your age", "senior citizens",
    "the younger generation", "the older generation",
]

CONFIRMATION_PHRASES = [
    "right?", "isn't it?", "don't you think?",
    "wouldn't you agree?", "correct?", "isn't that so?",
    "you'd agree that", "surely you", "obviously ",
]

ASSUMPTIVE_PHRASES = [
    "obviously", "clearly", "of course",
    "everyone knows", "most people",
    "as you know", "naturally",
    "it's clear that", "it's obvious that",
    "without a doubt", "undoubtedly",
    "as we all know", "everybody thinks",
]


@dataclass
class BiasEntry:
    """One classified interviewer question fed to the detector."""

    utterance_id: str
    text: str
    question_type: str


@dataclass
class BiasAlert:
    """
    A session-scoped bias alert.

    Attributes:
        bias_type: Kind of bias detected
        description: Human-readable explanation with counts
        utterance_ids: Supporting utterances
        confidence: Match ratio plus a fixed offset, clamped to 1.0
        suggestion: How to rephrase
        severity: Review priority tier
        ratio: Share of questions that matched (0.0-1.0)
    """

    bias_type: BiasType
    description: str
    utterance_ids: List[str] = field(default_factory=list)
    confidence: float = 0.0
    suggestion: str = ""
    severity: BiasSeverity = BiasSeverity.MEDIUM
    ratio: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "bias_type": self.bias_type.value,
            "description": self.description,
            "utterance_ids": list(self.utterance_ids),
            "confidence": round(self.confidence, 4),
            "suggestion": self.suggestion,
            "severity": self.severity.value,
            "ratio": round(self.ratio, 4),
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


def _pct(ratio: float) -> int:
    return int(ratio * 100 + 0.5)


def _match_ids(
    entries: Sequence[BiasEntry],
    phrases: List[str],
    pad: bool = False,
) -> List[str]:
    matched: List[str] = []
    for entry in entries:
        text = entry.text.lower()
        if pad:
            text = f" {_WORD_GAPS.sub(' ', text)} "
        if any(p in text for p in phrases):
            matched.append(entry.utterance_id)
    return matched


# ---------------------------------------------------------------------------
#  Individual checks
# ---------------------------------------------------------------------------

def detect_gender_bias(entries: Sequence[BiasEntry]) -> Optional[BiasAlert]:
    """Gendered pronouns or nouns in questions."""
    matched = _match_ids(entries, GENDER_KEYWORDS, pad=True)
    if not matched:
        return None
    ratio = len(matched) / len(entries)
    return BiasAlert(
        bias_type=BiasType.GENDER_BIAS,
        description=(
            f"Gendered language detected in {len(matched)} question(s). "
            "This may unconsciously frame responses around gender assumptions."
        ),
        utterance_ids=matched,
        confidence=min(1.0, ratio + 0.5),
        suggestion=(
            "Use gender-neutral language in questions. Replace gendered pronouns "
            "with 'they/them' or 'the user/participant' when not quoting."
        ),
        severity=BiasType.GENDER_BIAS.default_severity,
        ratio=ratio,
    )


def detect_age_bias(entries: Sequence[BiasEntry]) -> Optional[BiasAlert]:
    """Age group or generational references in questions."""
    matched = _match_ids(entries, AGE_KEYWORDS)
    if not matched:
        return None
    ratio = len(matched) / len(entries)
    return BiasAlert(
        bias_type=BiasType.AGE_BIAS,
        description=(
            f"Age-related assumptions detected in {len(matched)} question(s). "
            "Generational references may introduce stereotyping."
        ),
        utterance_ids=matched,
        confidence=min(1.0, ratio + 0.4),
        suggestion=(
            "Avoid referencing age groups or generations. Ask about individual "
            "experiences rather than generational traits."
        ),
        severity=BiasType.AGE_BIAS.default_severity,
        ratio=ratio,
    )


def detect_confirmation_bias(
    entries: Sequence[BiasEntry],
    threshold: int = 3,
) -> Optional[BiasAlert]:
    """Repeated agreement-seeking phrases."""
    matched = _match_ids(entries, CONFIRMATION_PHRASES)
    if len(matched) < threshold:
        return None
    ratio = len(matched) / len(entries)
    return BiasAlert(
        bias_type=BiasType.CONFIRMATION_BIAS,
        description=(
            f"Confirmation-seeking language detected in {len(matched)} question(s). "
            "Repeated agreement-seeking may bias participant responses."
        ),
        utterance_ids=matched,
        confidence=min(1.0, ratio + 0.3),
        suggestion=(
            "Replace confirmation-seeking phrases with open-ended alternatives. "
            "Instead of 'This is better, right?' try 'How does this compare to "
            "your previous experience?'"
        ),
        severity=BiasType.CONFIRMATION_BIAS.default_severity,
        ratio=ratio,
    )


def detect_leading_pattern(
    entries: Sequence[BiasEntry],
    min_questions: int = 3,
    ratio_threshold: float = 0.3,
) -> Optional[BiasAlert]:
    """A systematic share of leading questions."""
    total = len(entries)
    if total < min_questions:
        return None
    leading = [e.utterance_id for e in entries if e.question_type == "leading"]
    ratio = len(leading) / total
    if ratio <= ratio_threshold:
        return None
    return BiasAlert(
        bias_type=BiasType.LEADING_PATTERN,
        description=(
            f"{len(leading)} of {total} questions ({_pct(ratio)}%) are leading. "
            "This systematic pattern may steer participant responses."
        ),
        utterance_ids=leading,
        confidence=min(1.0, ratio + 0.3),
        suggestion=(
            "Rephrase leading questions as neutral, open-ended inquiries. Instead "
            "of 'Don't you think X is better?' try 'How do you compare X and Y?'"
        ),
        severity=BiasType.LEADING_PATTERN.default_severity,
        ratio=ratio,
    )


def detect_closed_overuse(
    entries: Sequence[BiasEntry],
    min_questions: int = 3,
    ratio_threshold: float = 0.6,
) -> Optional[BiasAlert]:
    """Closed questions dominating the session."""
    total = len(entries)
    if total < min_questions:
        return None
    closed = [e.utterance_id for e in entries if e.question_type == "closed"]
    ratio = len(closed) / total
    if ratio <= ratio_threshold:
        return None
    return BiasAlert(
        bias_type=BiasType.CLOSED_QUESTION_OVERUSE,
        description=(
            f"{len(closed)} of {total} questions ({_pct(ratio)}%) are closed. "
            "This limits the depth of participant responses."
        ),
        utterance_ids=closed,
        confidence=min(1.0, ratio),
        suggestion=(
            "Balance closed questions with open-ended ones. For every closed "
            "question, follow up with 'Tell me more about that' or 'How did that "
            "make you feel?'"
        ),
        severity=BiasType.CLOSED_QUESTION_OVERUSE.default_severity,
        ratio=ratio,
    )


def detect_assumptive_language(entries: Sequence[BiasEntry]) -> Optional[BiasAlert]:
    """Qualifiers that presume shared understanding."""
    matched = _match_ids(entries, ASSUMPTIVE_PHRASES)
    if not matched:
        return None
    ratio = len(matched) / len(entries)
    return BiasAlert(
        bias_type=BiasType.ASSUMPTIVE_LANGUAGE,
        description=(
            f"Assumptive language detected in {len(matched)} question(s). Words like "
            "'obviously' or 'everyone knows' presume shared understanding."
        ),
        utterance_ids=matched,
        confidence=min(1.0, ratio + 0.4),
        suggestion=(
            "Remove assumptive qualifiers from questions. Instead of 'Obviously this "
            "is frustrating, how do you cope?' try 'Can you describe your experience "
            "with this?'"
        ),
        severity=BiasType.ASSUMPTIVE_LANGUAGE.default_severity,
        ratio=ratio,
    )


# ---------------------------------------------------------------------------
#  Detector
# ---------------------------------------------------------------------------

class BiasDetector:
    """
    Session-level bias detector.

    Example:
        >>> detector = BiasDetector()
        >>> alerts = detector.analyze(entries)
        >>> [a.bias_type.value for a in alerts]
        ['closed_overuse']
    """

    def __init__(
        self,
        confirmation_threshold: int = 3,
        min_questions_for_pattern: int = 3,
        leading_ratio_threshold: float = 0.3,
        closed_ratio_threshold: float = 0.6,
    ):
        self.confirmation_threshold = confirmation_threshold
        self.min_questions_for_pattern = min_questions_for_pattern
        self.leading_ratio_threshold = leading_ratio_threshold
        self.closed_ratio_threshold = closed_ratio_threshold
        self._alerts: List[BiasAlert] = []

    @property
    def alerts(self) -> List[BiasAlert]:
        return list(self._alerts)

    def _checks(self) -> List[Callable[[Sequence[BiasEntry]], Optional[BiasAlert]]]:
        return [
            detect_gender_bias,
            detect_age_bias,
            lambda e: detect_confirmation_bias(e, self.confirmation_threshold),
            lambda e: detect_leading_pattern(
                e, self.min_questions_for_pattern, self.leading_ratio_threshold
            ),
            lambda e: detect_closed_overuse(
                e, self.min_questions_for_pattern, self.closed_ratio_threshold
            ),
            detect_assumptive_language,
        ]

    def analyze(self, entries: Iterable[Any]) -> List[BiasAlert]:
        """
        Recompute the alert set from the full question history.

        Entries may be ``BiasEntry`` objects, ``(id, text, type)`` tuples,
        or objects with ``utterance_id``/``text``/``question_type``
        attributes (such as question classifications). Empty input keeps
        the previous alerts.

        Args:
            entries: Classified interviewer questions so far

        Returns:
            The new alert list (also stored on the detector)
        """
        normalized = [_to_entry(e) for e in entries]
        if not normalized:
            return self.alerts

        alerts: List[BiasAlert] = []
        for check in self._checks():
            alert = check(normalized)
            if alert is not None:
                alerts.append(alert)
        self._alerts = alerts
        if alerts:
            logger.debug(
                "Bias alerts over %d questions: %s",
                len(normalized),
                ", ".join(a.bias_type.value for a in alerts),
            )
        return self.alerts

    def clear(self) -> None:
        """Drop all alerts."""
        self._alerts = []


def _to_entry(item: Any) -> BiasEntry:
    if isinstance(item, BiasEntry):
        return item
    if isinstance(item, (tuple, list)):
        utterance_id, text, question_type = item
    else:
        utterance_id = getattr(item, "utterance_id")
        text = getattr(item, "text")
        question_type = getattr(item, "question_type")
    if isinstance(question_type, Enum):
        question_type = question_type.value
    return BiasEntry(str(utterance_id), str(text or ""), str(question_type))


__all__ = [
    "BiasSeverity",
    "BiasType",
    "BiasEntry",
    "BiasAlert",
    "BiasDetector",
    "detect_gender_bias",
    "detect_age_bias",
    "detect_confirmation_bias",
    "detect_leading_pattern",
    "detect_closed_overuse",
    "detect_assumptive_language",
]
