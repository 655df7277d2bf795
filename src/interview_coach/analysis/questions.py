"""
Question type classification for interviewer utterances.

Classifies each interviewer question with rule-based lexical cues
(prefixes, leading phrases, conjunctions) and tracks interviewing
anti-patterns such as runs of closed questions. Only interviewer
utterances that look like questions are classified; everything else
yields ``None``.

The fine-grained ``QuestionType`` folds into five reporting categories
(open, closed, leading, double-barreled, other) via ``category``.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from interview_coach.models.entities import Speaker, Utterance

logger = logging.getLogger(__name__)


class QuestionCategory(str, Enum):
    """Reporting category for a classified question."""
    OPEN = "open"
    CLOSED = "closed"
    LEADING = "leading"
    DOUBLE_BARRELED = "double_barreled"
    OTHER = "other"


class QuestionType(str, Enum):
    """Fine-grained question type."""
    OPEN_ENDED = "open_ended"
    CLOSED = "closed"
    LEADING = "leading"
    DOUBLE_BARRELED = "double_barreled"
    PROBING = "probing"
    CLARIFYING = "clarifying"
    HYPOTHETICAL = "hypothetical"
    NOT_A_QUESTION = "not_a_question"

    @property
    def category(self) -> QuestionCategory:
        return _CATEGORY[self]

    @property
    def is_desirable(self) -> bool:
        return self in DESIRABLE_TYPES


_CATEGORY = {
    QuestionType.OPEN_ENDED: QuestionCategory.OPEN,
    QuestionType.PROBING: QuestionCategory.OPEN,
    QuestionType.CLARIFYING: QuestionCategory.OPEN,
    QuestionType.HYPOTHETICAL: QuestionCategory.OPEN,
    QuestionType.CLOSED: QuestionCategory.CLOSED,
    QuestionType.LEADING: QuestionCategory.LEADING,
    QuestionType.DOUBLE_BARRELED: QuestionCategory.DOUBLE_BARRELED,
    QuestionType.NOT_A_QUESTION: QuestionCategory.OTHER,
}

DESIRABLE_TYPES = frozenset({
    QuestionType.OPEN_ENDED,
    QuestionType.PROBING,
    QuestionType.CLARIFYING,
    QuestionType.HYPOTHETICAL,
})


class AntiPattern(str, Enum):
    """Interviewing anti-patterns surfaced per question."""
    LEADING_QUESTION = "leading_question"
    DOUBLE_BARRELED_QUESTION = "double_barreled_question"
    CLOSED_QUESTION_RUN = "closed_question_run"
    ASSUMPTIVE_LANGUAGE = "assumptive_language"

    @property
    def severity(self) -> int:
        return ANTI_PATTERN_SEVERITY[self]


ANTI_PATTERN_SEVERITY = {
    AntiPattern.LEADING_QUESTION: 3,
    AntiPattern.DOUBLE_BARRELED_QUESTION: 2,
    AntiPattern.CLOSED_QUESTION_RUN: 1,
    AntiPattern.ASSUMPTIVE_LANGUAGE: 2,
}


# ---------------------------------------------------------------------------
#  Cue lists
# ---------------------------------------------------------------------------

OPEN_ENDED_PREFIXES = [
    "how ", "how do ", "how did ", "how would ", "how does ",
    "what ", "what do ", "what did ", "what was ", "what is ", "what are ",
    "tell me about", "tell me ", "describe ", "explain ",
    "walk me through", "share with me", "help me understand",
    "in what ways", "what has been", "what were",
]

CLOSED_PREFIXES = [
    "do you ", "did you ", "is it ", "is that ", "is there ",
    "are you ", "are there ", "have you ", "has it ",
    "can you ", "could you ", "was it ", "was that ",
    "will you ", "would you ", "were you ", "should ",
    "does it ", "does that ", "doesn't ", "isn't ",
]

LEADING_PHRASES = [
    "don't you think", "wouldn't you agree", "wouldn't you say",
    "isn't it true", "isn't it obvious", "isn't it clear",
    "surely ", "obviously ", "clearly ",
    "you would agree", "you must think", "you must feel",
    "most people think", "everyone knows",
    "it's obvious that", "it's clear that",
    "right?", "correct?", "isn't it?", "don't you?",
]

ASSUMPTIVE_PHRASES = [
    "you must have felt", "you probably think",
    "i'm sure you", "i assume you", "i bet you",
    "you obviously", "you clearly", "you definitely",
    "of course you", "naturally you",
]

PROBING_PREFIXES = [
    "why ", "why do ", "why did ", "why is ", "why was ",
    "tell me more", "can you elaborate", "could you elaborate",
    "what else", "how so", "in what way",
    "what makes you", "what led you", "what prompted",
    "can you give me an example", "could you give me an example",
    "what do you mean when you say",
]

CLARIFYING_PHRASES = [
    "what do you mean", "what does that mean",
    "could you explain", "can you explain",
    "what does that", "what did you mean",
    "clarify", "help me understand what",
    "when you say", "by that do you mean",
    "i want to make sure i understand",
]

HYPOTHETICAL_PREFIXES = [
    "what if ", "what would ", "imagine ",
    "suppose ", "let's say ", "lets say ",
    "hypothetically", "if you could ", "if you were ",
    "in an ideal world", "if there were no constraints",
]

DOUBLE_BARREL_CONJUNCTIONS = [
    " and do you ", " and how ", " and what ", " and why ",
    " and did you ", " and are you ", " and is it ",
    " or do you ", " or would you ", " as well as ",
]

INTERROGATIVE_PREFIXES = [
    "how ", "what ", "when ", "where ", "why ", "who ", "which ",
    "do ", "did ", "is ", "are ", "have ", "has ", "can ", "could ",
    "was ", "were ", "will ", "would ", "should ", "shall ",
    "does ", "tell me", "describe ", "explain ",
]

INTERROGATIVE_WORDS = [
    "how", "what", "when", "where", "why", "who", "which",
    "do ", "did ", "is ", "are ", "have ", "can ", "could ",
    "would ", "should ",
]


# ---------------------------------------------------------------------------
#  Results
# ---------------------------------------------------------------------------

@dataclass
class QuestionClassification:
    """
    Classification of one interviewer question.

    Attributes:
        utterance_id: Source utterance
        question_type: Fine-grained type
        confidence: Classifier confidence (0.0-1.0)
        text: Trimmed question text
        timestamp: Utterance start time in seconds
        anti_patterns: Anti-patterns detected on this question
    """

    utterance_id: str
    question_type: QuestionType
    confidence: float
    text: str
    timestamp: float = 0.0
    anti_patterns: List[AntiPattern] = field(default_factory=list)

    @property
    def category(self) -> QuestionCategory:
        return self.question_type.category

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["question_type"] = self.question_type.value
        data["category"] = self.category.value
        data["anti_patterns"] = [p.value for p in self.anti_patterns]
        return data


@dataclass
class QuestionStats:
    """Running question-quality statistics for a session."""

    total_questions: int = 0
    open_ended_count: int = 0
    closed_count: int = 0
    leading_count: int = 0
    double_barreled_count: int = 0
    probing_count: int = 0
    open_ended_percentage: float = 0.0
    quality_score: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


# ---------------------------------------------------------------------------
#  Analyzer
# ---------------------------------------------------------------------------

def _starts_with_any(text: str, prefixes: List[str]) -> bool:
    return any(text.startswith(p) for p in prefixes)


def _contains_any(text: str, phrases: List[str]) -> bool:
    return any(p in text for p in phrases)


def is_question(text: str) -> bool:
    """True if text ends with '?' or opens with an interrogative."""
    stripped = text.strip()
    return stripped.endswith("?") or _starts_with_any(stripped.lower(), INTERROGATIVE_PREFIXES)


def classify_question_type(lowered: str) -> QuestionType:
    """
    Base classification before leading/double-barrel overrides.

    Checked in order: hypothetical, clarifying, probing, open-ended
    prefixes, closed prefixes. Anything else defaults to closed.
    """
    if _contains_any(lowered, HYPOTHETICAL_PREFIXES):
        return QuestionType.HYPOTHETICAL
    if _contains_any(lowered, CLARIFYING_PHRASES):
        return QuestionType.CLARIFYING
    if _contains_any(lowered, PROBING_PREFIXES):
        return QuestionType.PROBING
    if _starts_with_any(lowered, OPEN_ENDED_PREFIXES):
        return QuestionType.OPEN_ENDED
    return QuestionType.CLOSED


def base_confidence(question_type: QuestionType, lowered: str) -> float:
    """Confidence for a base classification."""
    if question_type == QuestionType.OPEN_ENDED:
        if lowered.startswith("tell me about") or lowered.startswith("walk me through"):
            return 0.95
        if lowered.startswith("how ") or lowered.startswith("what "):
            return 0.85
        return 0.75
    if question_type == QuestionType.CLOSED:
        if lowered.startswith("do you ") or lowered.startswith("did you "):
            return 0.90
        if lowered.startswith("is ") or lowered.startswith("are "):
            return 0.85
        return 0.70
    if question_type == QuestionType.PROBING:
        if lowered.startswith("why ") or "tell me more" in lowered:
            return 0.90
        return 0.80
    if question_type == QuestionType.CLARIFYING:
        return 0.95 if "what do you mean" in lowered else 0.85
    if question_type == QuestionType.HYPOTHETICAL:
        if lowered.startswith("what if ") or lowered.startswith("imagine "):
            return 0.90
        return 0.80
    if question_type == QuestionType.LEADING:
        return 0.90
    if question_type == QuestionType.DOUBLE_BARRELED:
        return 0.80
    return 0.60


def is_double_barreled(lowered: str) -> bool:
    """True if the question asks about two things at once."""
    if _contains_any(lowered, DOUBLE_BARREL_CONJUNCTIONS):
        return True
    if lowered.count("?") >= 2:
        return True
    if " and " in lowered:
        first, second = lowered.split(" and ", 1)
        if _contains_any(first.strip(), INTERROGATIVE_WORDS) and _contains_any(
            second.split(" and ")[0].strip(), INTERROGATIVE_WORDS
        ):
            return True
    return False


class QuestionTypeAnalyzer:
    """
    Session-scoped question classifier.

    Keeps the classification history so that closed-question runs,
    recent anti-patterns and quality statistics reflect the session so
    far.

    Example:
        >>> analyzer = QuestionTypeAnalyzer()
        >>> c = analyzer.classify_text("Tell me about your last trip?")
        >>> c.question_type
        <QuestionType.OPEN_ENDED: 'open_ended'>
    """

    RECENT_WINDOW = 5

    def __init__(self, closed_run_threshold: int = 3):
        self.closed_run_threshold = closed_run_threshold
        self._classifications: List[QuestionClassification] = []
        self._consecutive_closed = 0

    @property
    def classifications(self) -> List[QuestionClassification]:
        return list(self._classifications)

    def classify(self, utterance: Utterance) -> Optional[QuestionClassification]:
        """
        Classify an utterance if it is an interviewer question.

        Args:
            utterance: Utterance to classify

        Returns:
            QuestionClassification, or None for participant speech,
            empty text and non-questions
        """
        if utterance.speaker != Speaker.INTERVIEWER:
            return None
        return self.classify_text(
            utterance.text,
            utterance_id=utterance.id,
            timestamp=utterance.start_seconds,
        )

    def classify_text(
        self,
        text: str,
        utterance_id: str = "",
        timestamp: float = 0.0,
    ) -> Optional[QuestionClassification]:
        """
        Classify interviewer text and record it in the session history.

        Args:
            text: Interviewer utterance text
            utterance_id: Identifier to attach to the result
            timestamp: Time to attach to the result

        Returns:
            QuestionClassification, or None if the text is not a question
        """
        stripped = (text or "").strip()
        if not stripped:
            return None
        if not is_question(stripped):
            self._consecutive_closed = 0
            return None

        lowered = stripped.lower()
        question_type = classify_question_type(lowered)
        confidence = base_confidence(question_type, lowered)
        anti_patterns: List[AntiPattern] = []

        if _contains_any(lowered, LEADING_PHRASES):
            question_type = QuestionType.LEADING
            confidence = max(confidence, 0.85)
            anti_patterns.append(AntiPattern.LEADING_QUESTION)

        if _contains_any(lowered, ASSUMPTIVE_PHRASES):
            anti_patterns.append(AntiPattern.ASSUMPTIVE_LANGUAGE)
            if question_type != QuestionType.LEADING:
                confidence = max(confidence, 0.75)

        if is_double_barreled(lowered):
            question_type = QuestionType.DOUBLE_BARRELED
            confidence = max(confidence, 0.80)
            anti_patterns.append(AntiPattern.DOUBLE_BARRELED_QUESTION)

        if question_type == QuestionType.CLOSED:
            self._consecutive_closed += 1
            if self._consecutive_closed >= self.closed_run_threshold:
                anti_patterns.append(AntiPattern.CLOSED_QUESTION_RUN)
        else:
            self._consecutive_closed = 0

        classification = QuestionClassification(
            utterance_id=utterance_id,
            question_type=question_type,
            confidence=confidence,
            text=stripped,
            timestamp=timestamp,
            anti_patterns=anti_patterns,
        )
        self._classifications.append(classification)
        logger.debug(
            "Classified %s as %s (%.2f)", utterance_id, question_type.value, confidence
        )
        return classification

    def current_anti_patterns(self) -> List[AntiPattern]:
        """
        Anti-patterns present in the most recent questions.

        Returns:
            Distinct anti-patterns from the last 5 classifications,
            most severe first
        """
        seen: List[AntiPattern] = []
        for c in self._classifications[-self.RECENT_WINDOW:]:
            for pattern in c.anti_patterns:
                if pattern not in seen:
                    seen.append(pattern)
        return sorted(seen, key=lambda p: p.severity, reverse=True)

    def stats(self) -> QuestionStats:
        """
        Compute question-quality statistics for the session so far.

        The quality score rewards desirable question types and penalises
        leading and double-barreled questions, clamped to [0, 100].

        Returns:
            QuestionStats
        """
        total = len(self._classifications)
        if total == 0:
            return QuestionStats()

        counts: Dict[QuestionType, int] = {t: 0 for t in QuestionType}
        for c in self._classifications:
            counts[c.question_type] += 1

        desirable = sum(counts[t] for t in DESIRABLE_TYPES)
        penalty = (counts[QuestionType.LEADING] + counts[QuestionType.DOUBLE_BARRELED]) / total * 30.0
        quality = max(0.0, min(100.0, desirable / total * 100.0 - penalty))

        return QuestionStats(
            total_questions=total,
            open_ended_count=counts[QuestionType.OPEN_ENDED],
            closed_count=counts[QuestionType.CLOSED],
            leading_count=counts[QuestionType.LEADING],
            double_barreled_count=counts[QuestionType.DOUBLE_BARRELED],
            probing_count=counts[QuestionType.PROBING],
            open_ended_percentage=counts[QuestionType.OPEN_ENDED] / total * 100.0,
            quality_score=quality,
        )

    def reset(self) -> None:
        """Forget all classifications."""
        self._classifications = []
        self._consecutive_closed = 0


__all__ = [
    "QuestionCategory",
    "QuestionType",
    "AntiPattern",
    "QuestionClassification",
    "QuestionStats",
    "QuestionTypeAnalyzer",
    "is_question",
    "classify_question_type",
    "is_double_barreled",
]
