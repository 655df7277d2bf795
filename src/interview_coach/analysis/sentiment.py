"""
Sentiment analysis for interview utterances.

Rules-based lexicon scoring: no model download, no network, fully
deterministic for a fixed lexicon. Each utterance gets a polarity, a
score in [-1, 1], an intensity in [0, 1] and an optional dominant
emotion. Session-level analysis adds emotional shift detection and an
arc summary for the sentiment sparkline.

Scoring:
- Tokens are looked up in disjoint positive/negative lexicons
- A negator in the preceding 3 tokens flips the sign
- An intensifier in the preceding 2 tokens multiplies by 1.5
- Tokens in the final sentence get 1.3x (recency)
- Per-token scores are clamped, averaged, then clamped again
"""

import json
import logging
import re
from collections import Counter
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

import numpy as np

from interview_coach.models.entities import Utterance

logger = logging.getLogger(__name__)


POSITIVE_WORDS: Dict[str, float] = {
    "love": 0.9, "great": 0.7, "amazing": 0.9, "perfect": 0.85, "helpful": 0.6,
    "enjoy": 0.7, "easy": 0.5, "awesome": 0.8, "fantastic": 0.85, "wonderful": 0.8,
    "excellent": 0.85, "intuitive": 0.6, "smooth": 0.5, "fast": 0.4, "efficient": 0.5,
    "simple": 0.4, "convenient": 0.5, "nice": 0.4, "happy": 0.7, "pleased": 0.6,
    "satisfied": 0.6, "impressed": 0.7, "favorite": 0.7, "comfortable": 0.5,
    "appreciate": 0.6, "glad": 0.6, "excited": 0.8, "delighted": 0.85,
    "relieved": 0.5, "confident": 0.5, "trust": 0.5, "recommend": 0.6,
    "better": 0.4, "best": 0.7, "good": 0.4, "like": 0.3, "prefer": 0.3,
    "clear": 0.4, "useful": 0.5, "valuable": 0.6, "straightforward": 0.5,
    "reliable": 0.5, "beautiful": 0.7, "elegant": 0.6, "powerful": 0.5,
    "quick": 0.4, "responsive": 0.5, "seamless": 0.6, "brilliant": 0.8,
    "outstanding": 0.85, "superb": 0.85, "terrific": 0.8, "lovely": 0.6,
    "pleasant": 0.5, "enjoyable": 0.6, "handy": 0.4,
}

NEGATIVE_WORDS: Dict[str, float] = {
    "hate": -0.9, "terrible": -0.85, "awful": -0.85, "frustrate": -0.8,
    "frustrating": -0.8, "frustrated": -0.8, "difficult": -0.6, "confuse": -0.6,
    "confusing": -0.6, "confused": -0.6, "annoying": -0.7, "annoyed": -0.7,
    "problem": -0.5, "issue": -0.4, "broken": -0.7, "slow": -0.5,
    "complicated": -0.6, "tedious": -0.6, "cumbersome": -0.6, "overwhelming": -0.7,
    "stressful": -0.7, "nightmare": -0.9, "impossible": -0.8, "worst": -0.85,
    "pain": -0.6, "struggle": -0.6, "hard": -0.5, "worry": -0.5, "worried": -0.5,
    "concern": -0.4, "disappointed": -0.7, "ugly": -0.6, "useless": -0.8,
    "fail": -0.7, "failed": -0.7, "bad": -0.5, "wrong": -0.5, "poor": -0.5,
    "clunky": -0.6, "buggy": -0.7, "unreliable": -0.6, "error": -0.5,
    "crash": -0.7, "crashes": -0.7, "crashed": -0.7, "lag": -0.5, "laggy": -0.6,
    "awkward": -0.5, "unintuitive": -0.6, "cluttered": -0.5, "messy": -0.5,
    "dislike": -0.6, "horrible": -0.85, "dreadful": -0.8, "miserable": -0.7,
    "painful": -0.6, "tiresome": -0.5, "boring": -0.4,
}

INTENSIFIERS: Set[str] = {
    "very", "extremely", "absolutely", "totally", "completely", "really",
    "incredibly", "exceptionally", "tremendously", "utterly", "highly",
    "super", "seriously", "genuinely", "truly", "remarkably",
}

NEGATORS: Set[str] = {
    "not", "never", "don't", "doesn't", "didn't", "can't", "cannot",
    "won't", "wouldn't", "couldn't", "shouldn't", "isn't", "aren't",
    "wasn't", "weren't", "hardly", "barely", "scarcely", "no", "nor",
}

EMOTION_KEYWORDS: Dict[str, str] = {
    "frustrate": "frustration", "frustrating": "frustration", "frustrated": "frustration",
    "annoying": "frustration", "annoyed": "frustration", "irritating": "frustration",
    "love": "delight", "amazing": "delight", "wonderful": "delight",
    "delighted": "delight", "fantastic": "delight", "awesome": "delight",
    "confuse": "confusion", "confusing": "confusion", "confused": "confusion",
    "unclear": "confusion", "lost": "confusion", "puzzled": "confusion",
    "worry": "anxiety", "worried": "anxiety", "nervous": "anxiety",
    "anxious": "anxiety", "stressful": "anxiety", "overwhelm": "anxiety",
    "overwhelming": "anxiety",
    "satisfied": "satisfaction", "pleased": "satisfaction", "happy": "satisfaction",
    "glad": "satisfaction", "content": "satisfaction",
    "disappointed": "disappointment", "letdown": "disappointment",
    "underwhelming": "disappointment", "expected": "disappointment",
    "relieved": "relief", "finally": "relief", "phew": "relief",
    "excited": "excitement", "thrilled": "excitement", "eager": "excitement",
}

_NON_WORD = re.compile(r"[^a-zA-Z']")
_SENTENCE_END = re.compile(r"[.!?]")

NEGATOR_WINDOW = 3
INTENSIFIER_WINDOW = 2
INTENSIFIER_WEIGHT = 1.5
FINAL_CLAUSE_WEIGHT = 1.3


class SentimentPolarity(str, Enum):
    """Polarity classification for an utterance."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"
    MIXED = "mixed"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


# ---------------------------------------------------------------------------
#  Result types
# ---------------------------------------------------------------------------

@dataclass
class SentimentResult:
    """
    Sentiment judgment for one utterance.

    Attributes:
        utterance_id: Utterance this result describes
        polarity: Positive, negative, neutral or mixed
        score: Averaged score in [-1, 1]
        intensity: Absolute strength in [0, 1]
        dominant_emotion: Most frequent emotion label, if any
        timestamp: Utterance start time in seconds
    """

    utterance_id: str
    polarity: SentimentPolarity
    score: float
    intensity: float
    dominant_emotion: Optional[str] = None
    timestamp: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["polarity"] = self.polarity.value
        return data


@dataclass
class EmotionalShift:
    """A large score change between two consecutive results."""

    from_result: SentimentResult
    to_result: SentimentResult
    magnitude: float
    description: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "from_utterance_id": self.from_result.utterance_id,
            "to_utterance_id": self.to_result.utterance_id,
            "magnitude": round(self.magnitude, 4),
            "description": self.description,
        }


@dataclass
class EmotionalArcSummary:
    """Aggregate sentiment over a session."""

    average_score: float
    min_score: float
    max_score: float
    dominant_polarity: SentimentPolarity
    intensity_peaks: List[SentimentResult] = field(default_factory=list)
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "average_score": round(self.average_score, 4),
            "min_score": round(self.min_score, 4),
            "max_score": round(self.max_score, 4),
            "dominant_polarity": self.dominant_polarity.value,
            "intensity_peaks": [p.to_dict() for p in self.intensity_peaks],
            "description": self.description,
        }


@dataclass
class SessionSentiment:
    """Full session sentiment: per-utterance results, shifts and arc."""

    results: List[SentimentResult] = field(default_factory=list)
    shifts: List[EmotionalShift] = field(default_factory=list)
    arc: Optional[EmotionalArcSummary] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "results": [r.to_dict() for r in self.results],
            "shifts": [s.to_dict() for s in self.shifts],
            "arc": self.arc.to_dict() if self.arc else None,
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


# ---------------------------------------------------------------------------
#  Analyzer
# ---------------------------------------------------------------------------

def tokenize(text: str) -> List[str]:
    """Split text into lowercase word tokens, keeping apostrophes."""
    return [w.lower() for w in _NON_WORD.sub(" ", text).split() if w]


def _final_clause_indices(words: List[str], lowered: str) -> Set[int]:
    """Indices of ``words`` that belong to the last sentence."""
    sentences = [s.strip() for s in _SENTENCE_END.split(lowered) if s.strip()]
    if len(sentences) <= 1:
        return set(range(len(words)))

    # Walk the last sentence's tokens backwards against the full token list.
    last_tokens = tokenize(sentences[-1])
    indices: Set[int] = set()
    search = len(words) - 1
    for token in reversed(last_tokens):
        while search >= 0:
            if words[search] == token:
                indices.add(search)
                search -= 1
                break
            search -= 1
    return indices


class SentimentAnalyzer:
    """
    Lexicon-based sentiment analyzer.

    Computes sentiment at the utterance level and summarises the
    emotional arc of a session.

    Example:
        >>> analyzer = SentimentAnalyzer()
        >>> result = analyzer.analyze_text("This is really great!")
        >>> result.polarity
        <SentimentPolarity.POSITIVE: 'positive'>
    """

    def __init__(
        self,
        positive_threshold: float = 0.15,
        negative_threshold: float = -0.15,
        mixed_strength_threshold: float = 0.3,
        shift_threshold: float = 0.4,
    ):
        """
        Initialize sentiment analyzer.

        Args:
            positive_threshold: Score above which polarity is positive
            negative_threshold: Score below which polarity is negative
            mixed_strength_threshold: Per-token magnitude that counts as
                strong for mixed detection
            shift_threshold: Minimum score delta between consecutive
                results to record an emotional shift
        """
        self.positive_threshold = positive_threshold
        self.negative_threshold = negative_threshold
        self.mixed_strength_threshold = mixed_strength_threshold
        self.shift_threshold = shift_threshold

    def analyze(self, utterance: Utterance) -> SentimentResult:
        """
        Analyze sentiment of one utterance.

        Args:
            utterance: Utterance to score

        Returns:
            SentimentResult keyed by the utterance id
        """
        return self.analyze_text(
            utterance.text,
            utterance_id=utterance.id,
            timestamp=utterance.start_seconds,
        )

    def analyze_text(
        self,
        text: str,
        utterance_id: str = "",
        timestamp: float = 0.0,
    ) -> SentimentResult:
        """
        Analyze sentiment of raw text.

        Args:
            text: Input text
            utterance_id: Identifier to attach to the result
            timestamp: Time to attach to the result

        Returns:
            SentimentResult with polarity, score, intensity and emotion
        """
        score, intensity, has_mixed = self._score(text or "")
        return SentimentResult(
            utterance_id=utterance_id,
            polarity=self._classify(score, has_mixed),
            score=score,
            intensity=intensity,
            dominant_emotion=self._dominant_emotion(text or "", score),
            timestamp=timestamp,
        )

    def analyze_session(self, utterances: Iterable[Utterance]) -> SessionSentiment:
        """
        Analyze an ordered sequence of utterances.

        Args:
            utterances: Utterances in session order

        Returns:
            SessionSentiment with results, emotional shifts and arc summary
        """
        results = [self.analyze(u) for u in utterances]
        return self.summarize_results(results)

    def summarize_results(self, results: List[SentimentResult]) -> SessionSentiment:
        """
        Build shifts and arc summary from existing per-utterance results.

        Args:
            results: Sentiment results in session order

        Returns:
            SessionSentiment
        """
        shifts = self.detect_shifts(results)
        return SessionSentiment(
            results=list(results),
            shifts=shifts,
            arc=self._arc_summary(results),
        )

    def detect_shifts(self, results: List[SentimentResult]) -> List[EmotionalShift]:
        """
        Find consecutive result pairs whose score delta meets the threshold.

        Args:
            results: Sentiment results in session order

        Returns:
            List of EmotionalShift in session order
        """
        shifts: List[EmotionalShift] = []
        for previous, current in zip(results, results[1:]):
            magnitude = abs(current.score - previous.score)
            if magnitude < self.shift_threshold:
                continue
            suffix = f" ({current.dominant_emotion})" if current.dominant_emotion else ""
            description = (
                f"{previous.polarity.display_name} -> "
                f"{current.polarity.display_name}{suffix}"
            )
            shifts.append(EmotionalShift(previous, current, magnitude, description))
        return shifts

    # ------------------------------------------------------------------ #
    # Scoring internals
    # ------------------------------------------------------------------ #

    def _score(self, text: str) -> Tuple[float, float, bool]:
        lowered = text.lower()
        words = tokenize(lowered)
        if not words:
            return 0.0, 0.0, False

        final_clause = _final_clause_indices(words, lowered)
        scored: List[float] = []
        max_positive = 0.0
        max_negative = 0.0

        for index, word in enumerate(words):
            base = NEGATIVE_WORDS.get(word, POSITIVE_WORDS.get(word))
            if base is None:
                continue

            word_score = base
            if any(w in NEGATORS for w in words[max(0, index - NEGATOR_WINDOW):index]):
                word_score = -word_score
            if any(w in INTENSIFIERS for w in words[max(0, index - INTENSIFIER_WINDOW):index]):
                word_score *= INTENSIFIER_WEIGHT
            if index in final_clause:
                word_score *= FINAL_CLAUSE_WEIGHT
            word_score = max(-1.0, min(1.0, word_score))

            scored.append(word_score)
            if word_score > 0:
                max_positive = max(max_positive, word_score)
            elif word_score < 0:
                max_negative = max(max_negative, -word_score)

        if not scored:
            return 0.0, 0.0, False

        score = max(-1.0, min(1.0, sum(scored) / len(scored)))
        intensity = min(1.0, abs(score))
        has_mixed = (
            max_positive >= self.mixed_strength_threshold
            and max_negative >= self.mixed_strength_threshold
        )
        return score, intensity, has_mixed

    def _classify(self, score: float, has_mixed: bool) -> SentimentPolarity:
        if has_mixed:
            return SentimentPolarity.MIXED
        if score > self.positive_threshold:
            return SentimentPolarity.POSITIVE
        if score < self.negative_threshold:
            return SentimentPolarity.NEGATIVE
        return SentimentPolarity.NEUTRAL

    def _dominant_emotion(self, text: str, score: float) -> Optional[str]:
        counts = Counter(
            EMOTION_KEYWORDS[w] for w in tokenize(text) if w in EMOTION_KEYWORDS
        )
        if counts:
            # Counter preserves first-seen order, so ties go to the earliest emotion.
            return max(counts, key=counts.get)
        if score > 0.5:
            return "delight"
        if score < -0.5:
            return "frustration"
        return None

    # ------------------------------------------------------------------ #
    # Arc summary
    # ------------------------------------------------------------------ #

    def _arc_summary(self, results: List[SentimentResult]) -> Optional[EmotionalArcSummary]:
        if not results:
            return None

        scores = np.array([r.score for r in results], dtype=float)
        average = float(scores.mean())
        if average > self.positive_threshold:
            dominant = SentimentPolarity.POSITIVE
        elif average < self.negative_threshold:
            dominant = SentimentPolarity.NEGATIVE
        else:
            dominant = SentimentPolarity.NEUTRAL

        peaks = sorted(results, key=lambda r: r.intensity, reverse=True)[:3]
        return EmotionalArcSummary(
            average_score=average,
            min_score=float(scores.min()),
            max_score=float(scores.max()),
            dominant_polarity=dominant,
            intensity_peaks=peaks,
            description=self.describe_arc(results),
        )

    def _level(self, score: float) -> str:
        if score > 0.3:
            return "positive"
        if score > self.positive_threshold:
            return "slightly positive"
        if score < -0.3:
            return "negative"
        if score < self.negative_threshold:
            return "slightly negative"
        return "neutral"

    def describe_arc(self, results: List[SentimentResult]) -> str:
        """
        Describe the start, middle and end trend of a session.

        Args:
            results: Sentiment results in session order

        Returns:
            Narrative such as "Started positive, shifted negative
            mid-session, recovered to neutral"
        """
        if not results:
            return "No data available"
        if len(results) < 2:
            return f"Single data point: {results[0].polarity.value} sentiment"

        n = len(results)
        third = max(1, n // 3)
        start = results[:third]
        if n >= 3:
            middle = results[third:min(third * 2, n)]
            end = results[min(third * 2, n):]
        else:
            middle = results[1:]
            end = results[-1:]

        def _mean(chunk: List[SentimentResult]) -> float:
            return sum(r.score for r in chunk) / len(chunk) if chunk else 0.0

        start_avg, mid_avg, end_avg = _mean(start), _mean(middle), _mean(end)
        start_desc, mid_desc, end_desc = (
            self._level(start_avg), self._level(mid_avg), self._level(end_avg)
        )

        parts = [f"Started {start_desc}"]
        if mid_desc != start_desc:
            parts.append(f"shifted {mid_desc} mid-session")
        else:
            parts.append(f"remained {mid_desc} mid-session")

        if end_desc != mid_desc and end_avg > mid_avg + 0.1:
            parts.append(f"recovered to {end_desc}")
        elif end_desc != mid_desc and end_avg < mid_avg - 0.1:
            parts.append(f"declined to {end_desc}")
        else:
            parts.append(f"ended {end_desc}")
        return ", ".join(parts)


__all__ = [
    "SentimentPolarity",
    "SentimentResult",
    "EmotionalShift",
    "EmotionalArcSummary",
    "SessionSentiment",
    "SentimentAnalyzer",
    "tokenize",
    "POSITIVE_WORDS",
    "NEGATIVE_WORDS",
    "INTENSIFIERS",
    "NEGATORS",
    "EMOTION_KEYWORDS",
]
