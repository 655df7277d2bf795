"""
Automatic insight flagging.

Promotes an utterance to an ``InsightFlag`` when one of three signals
fires:
- Sentiment intensity at or above the threshold (default 0.7)
- A bias alert newly raised by this utterance
- An explicit statement of need, pain or strong opinion, scored from
  keywords and emphatic phrases

Flags are capped per session (default 5) and never duplicated: an
utterance with the same text as an existing flag, or within 2 seconds of
one, is skipped.
"""

import logging
import re
import uuid
from typing import List, Optional, Sequence, Tuple

from interview_coach.analysis.bias import BiasAlert
from interview_coach.analysis.sentiment import SentimentResult
from interview_coach.models.entities import InsightFlag, InsightSource, Utterance

logger = logging.getLogger(__name__)

DUPLICATE_WINDOW_SECONDS = 2.0
MIN_STATEMENT_WORDS = 10
LONG_STATEMENT_WORDS = 25

INSIGHT_KEYWORDS = [
    "pain point", "frustrating", "love", "hate", "wish", "need", "want",
    "problem", "difficult", "easy", "confused", "surprised", "expected",
    "unexpected", "always", "never", "important", "critical", "worry",
    "concern", "delight", "amazing", "terrible", "perfect", "ideal",
    "worst", "best",
]

INSIGHT_PHRASES = [
    "i really", "i absolutely", "i definitely", "i strongly", "this is why",
    "the main reason", "most important", "biggest challenge", "biggest problem",
    "game changer", "deal breaker", "must have", "can't live without",
]

_KEYWORD_PATTERNS = [
    (k, re.compile(r"\b" + re.escape(k) + r"\b")) for k in INSIGHT_KEYWORDS
]

# (substrings, theme) checked in order; first hit wins.
_THEMES = [
    (("pain point", "frustrat"), "Pain Point"),
    (("wish", "want", "need"), "User Need"),
    (("love", "delight", "amazing"), "Positive Moment"),
    (("confus", "unclear"), "Confusion Point"),
    (("suggest", "idea"), "User Suggestion"),
    (("expect",), "Expectation"),
    (("surprise",), "Surprising Finding"),
]

_TAGS = [
    (("pain", "frustrat", "difficult"), "pain-point"),
    (("need", "want", "wish"), "user-need"),
    (("love", "great", "perfect"), "positive"),
    (("confus", "unclear", "don't understand"), "confusion"),
    (("suggest", "idea", "what if"), "suggestion"),
    (("workflow", "process", "step"), "workflow"),
]

_KEYWORD_REASONS = {
    "pain point": "Pain Point", "frustrating": "Pain Point",
    "difficult": "Pain Point", "problem": "Pain Point",
    "love": "Positive Moment", "delight": "Positive Moment",
    "amazing": "Positive Moment", "perfect": "Positive Moment",
    "need": "User Need", "want": "User Need", "wish": "User Need",
    "important": "Important Point", "critical": "Important Point",
}


def generate_theme(text: str) -> str:
    """Short theme title for a quote; falls back to its first five words."""
    lowered = text.lower()
    for needles, theme in _THEMES:
        if any(n in lowered for n in needles):
            return theme
    words = text.split()
    preview = " ".join(words[:5])
    return preview + ("..." if len(words) > 5 else "")


def extract_tags(text: str) -> List[str]:
    """Thematic tags for a quote."""
    lowered = text.lower()
    return [tag for needles, tag in _TAGS if any(n in lowered for n in needles)]


def statement_reason(keywords: Sequence[str], phrases: Sequence[str]) -> str:
    """Reason title for an explicit-statement flag."""
    if "biggest challenge" in phrases or "biggest problem" in phrases:
        return "Key Challenge"
    if "most important" in phrases or "must have" in phrases:
        return "Critical Need"
    if "i really" in phrases or "i absolutely" in phrases:
        return "Strong Opinion"
    if keywords:
        return _KEYWORD_REASONS.get(keywords[0], "Notable Moment")
    return "Notable Moment"


def score_statement(text: str) -> Tuple[float, List[str], List[str]]:
    """
    Score how explicitly a statement expresses an insight.

    Needs at least 10 words. Score = min(keywords * 0.2, 0.6) +
    min(phrases * 0.3, 0.6) + 0.1 for statements over 25 words.

    Args:
        text: Utterance text

    Returns:
        Tuple of (score, matched keywords, matched phrases)
    """
    word_count = len(text.split())
    if word_count < MIN_STATEMENT_WORDS:
        return 0.0, [], []

    lowered = text.lower()
    keywords = [k for k, pattern in _KEYWORD_PATTERNS if pattern.search(lowered)]
    phrases = [p for p in INSIGHT_PHRASES if p in lowered]
    score = min(len(keywords) * 0.2, 0.6) + min(len(phrases) * 0.3, 0.6)
    if word_count > LONG_STATEMENT_WORDS:
        score += 0.1
    return min(1.0, score), keywords, phrases


class InsightAutoFlagger:
    """
    Per-session automatic insight flagger.

    Example:
        >>> flagger = InsightAutoFlagger()
        >>> flag = flagger.evaluate(utterance, sentiment_result)
        >>> flag.reason if flag else None
        'Strong negative sentiment (frustration)'
    """

    def __init__(
        self,
        max_flags: int = 5,
        intensity_threshold: float = 0.7,
        statement_threshold: float = 0.6,
    ):
        """
        Initialize flagger.

        Args:
            max_flags: Per-session cap on flags (5-7)
            intensity_threshold: Sentiment intensity that triggers a flag
            statement_threshold: Statement score that triggers a flag
        """
        self.max_flags = max(5, min(7, max_flags))
        self.intensity_threshold = intensity_threshold
        self.statement_threshold = statement_threshold
        self._flags: List[InsightFlag] = []

    @property
    def flags(self) -> List[InsightFlag]:
        return list(self._flags)

    @property
    def remaining(self) -> int:
        return self.max_flags - len(self._flags)

    def is_duplicate(self, utterance: Utterance) -> bool:
        """True if an existing flag has the same text or is within 2 seconds."""
        quote = utterance.text.strip()
        return any(
            f.quote == quote
            or abs(f.timestamp - utterance.start_seconds) < DUPLICATE_WINDOW_SECONDS
            for f in self._flags
        )

    def evaluate(
        self,
        utterance: Utterance,
        sentiment: Optional[SentimentResult] = None,
        new_bias_alerts: Sequence[BiasAlert] = (),
    ) -> Optional[InsightFlag]:
        """
        Decide whether to flag an utterance.

        Signals are checked in order: sentiment intensity, new bias
        alerts, explicit statement score.

        Args:
            utterance: Candidate utterance
            sentiment: Its sentiment result, if available
            new_bias_alerts: Bias alerts first raised by this utterance

        Returns:
            The new InsightFlag, or None
        """
        quote = utterance.text.strip()
        if not quote:
            return None
        if len(self._flags) >= self.max_flags:
            logger.debug("Insight cap (%d) reached; skipping %s", self.max_flags, utterance.id)
            return None
        if self.is_duplicate(utterance):
            return None

        if sentiment is not None and sentiment.intensity >= self.intensity_threshold:
            emotion = f" ({sentiment.dominant_emotion})" if sentiment.dominant_emotion else ""
            return self._add(
                utterance,
                InsightSource.SENTIMENT,
                f"Strong {sentiment.polarity.value} sentiment{emotion}",
                sentiment.intensity,
            )

        if new_bias_alerts:
            alert = max(new_bias_alerts, key=lambda a: a.confidence)
            return self._add(
                utterance,
                InsightSource.BIAS_ALERT,
                f"Bias alert: {alert.bias_type.value.replace('_', ' ')}",
                alert.confidence,
            )

        score, keywords, phrases = score_statement(quote)
        if score >= self.statement_threshold:
            return self._add(
                utterance,
                InsightSource.STATEMENT,
                statement_reason(keywords, phrases),
                score,
            )
        return None

    def _add(
        self,
        utterance: Utterance,
        source: InsightSource,
        reason: str,
        confidence: float,
    ) -> InsightFlag:
        quote = utterance.text.strip()
        flag = InsightFlag(
            id=uuid.uuid4().hex,
            utterance_id=utterance.id,
            timestamp=utterance.start_seconds,
            quote=quote,
            source=source,
            reason=reason,
            confidence=max(0.0, min(1.0, confidence)),
            themes=[generate_theme(quote)],
            tags=extract_tags(quote),
        )
        self._flags.append(flag)
        logger.info(
            "Flagged insight %d/%d at %.1fs (%s: %s)",
            len(self._flags), self.max_flags, flag.timestamp, source.value, reason,
        )
        return flag


__all__ = [
    "InsightAutoFlagger",
    "score_statement",
    "statement_reason",
    "generate_theme",
    "extract_tags",
]
