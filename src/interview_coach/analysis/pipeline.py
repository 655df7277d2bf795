"""
Parallel per-utterance analysis.

Runs the stateless analyzers (sentiment and PII) over a batch of
utterances on a thread pool and reassembles the results in input order,
so that downstream session-scoped trackers always see the stream in
sequence. An analyzer that fails on one utterance degrades to a neutral
or empty result for that utterance only.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from interview_coach.analysis.pii import PIIDetection, PIIDetector
from interview_coach.analysis.sentiment import (
    SentimentAnalyzer,
    SentimentPolarity,
    SentimentResult,
)
from interview_coach.models.entities import Utterance

logger = logging.getLogger(__name__)


@dataclass
class UtteranceAnalysis:
    """Stateless analysis results for one utterance."""

    utterance: Utterance
    sentiment: SentimentResult
    pii: List[PIIDetection] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "utterance_id": self.utterance.id,
            "sentiment": self.sentiment.to_dict(),
            "pii": [d.to_dict() for d in self.pii],
        }


def neutral_sentiment(utterance: Utterance) -> SentimentResult:
    """Fallback result used when sentiment scoring fails."""
    return SentimentResult(
        utterance_id=utterance.id,
        polarity=SentimentPolarity.NEUTRAL,
        score=0.0,
        intensity=0.0,
        timestamp=utterance.start_seconds,
    )


def analyze_utterance(
    utterance: Utterance,
    sentiment_analyzer: Optional[SentimentAnalyzer] = None,
    pii_detector: Optional[PIIDetector] = None,
) -> UtteranceAnalysis:
    """
    Run the stateless analyzers on one utterance.

    Args:
        utterance: Utterance to analyze
        sentiment_analyzer: Analyzer to use (default: a new one)
        pii_detector: Detector to use (default: a new one)

    Returns:
        UtteranceAnalysis; failed analyzers contribute neutral results
    """
    sentiment_analyzer = sentiment_analyzer or SentimentAnalyzer()
    pii_detector = pii_detector or PIIDetector()

    try:
        sentiment = sentiment_analyzer.analyze(utterance)
    except Exception as exc:
        logger.warning("Sentiment analysis failed for %s: %s", utterance.id, exc)
        sentiment = neutral_sentiment(utterance)

    try:
        pii = pii_detector.detect(utterance.text, utterance_id=utterance.id)
    except Exception as exc:
        logger.warning("PII detection failed for %s: %s", utterance.id, exc)
        pii = []

    return UtteranceAnalysis(utterance=utterance, sentiment=sentiment, pii=pii)


def analyze_batch(
    utterances: Sequence[Utterance],
    max_workers: int = 4,
    sentiment_analyzer: Optional[SentimentAnalyzer] = None,
    pii_detector: Optional[PIIDetector] = None,
) -> List[UtteranceAnalysis]:
    """
    Analyze a batch of utterances in parallel.

    Args:
        utterances: Utterances in session order
        max_workers: Thread pool size
        sentiment_analyzer: Shared sentiment analyzer (stateless)
        pii_detector: Shared PII detector (stateless)

    Returns:
        One UtteranceAnalysis per utterance, in input order
    """
    if not utterances:
        return []

    sentiment_analyzer = sentiment_analyzer or SentimentAnalyzer()
    pii_detector = pii_detector or PIIDetector()

    def _run(utterance: Utterance) -> UtteranceAnalysis:
        return analyze_utterance(utterance, sentiment_analyzer, pii_detector)

    workers = max(1, min(max_workers, len(utterances)))
    logger.debug("Analyzing %d utterances on %d workers", len(utterances), workers)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(_run, utterances))


__all__ = [
    "UtteranceAnalysis",
    "neutral_sentiment",
    "analyze_utterance",
    "analyze_batch",
]
