"""
Tests for lexicon-based sentiment analysis.

Covers:
- Polarity, score and intensity for positive, negative, neutral and mixed text
- Negation, intensifier and final-clause weighting
- Dominant emotion detection and its score fallback
- Determinism
- Emotional shifts and arc summaries
"""

import json

import pytest

from interview_coach.analysis.sentiment import (
    SentimentAnalyzer,
    SentimentPolarity,
    tokenize,
)
from interview_coach.models.entities import Speaker, Utterance


@pytest.fixture
def analyzer():
    return SentimentAnalyzer()


def _make_utterance(utterance_id: str, text: str, start: float = 0.0) -> Utterance:
    return Utterance(
        id=utterance_id, speaker=Speaker.PARTICIPANT, text=text,
        start_seconds=start, duration_seconds=3.0,
    )


class TestTokenize:
    def test_lowercases_and_strips_punctuation(self):
        assert tokenize("It's GREAT, really!") == ["it's", "great", "really"]

    def test_empty(self):
        assert tokenize("   ") == []


class TestUtteranceScoring:
    def test_positive_with_intensifier(self, analyzer):
        result = analyzer.analyze_text("This is really great!")
        assert result.polarity == SentimentPolarity.POSITIVE
        assert result.score == pytest.approx(1.0)
        assert result.intensity == pytest.approx(1.0)
        assert result.dominant_emotion == "delight"

    def test_negation_flips_sign(self, analyzer):
        result = analyzer.analyze_text("The setup was not easy.")
        assert result.polarity == SentimentPolarity.NEGATIVE
        assert result.score == pytest.approx(-0.65)
        assert result.dominant_emotion == "frustration"

    def test_neutral_text(self, analyzer):
        result = analyzer.analyze_text("We met on Tuesday.")
        assert result.polarity == SentimentPolarity.NEUTRAL
        assert result.score == 0.0
        assert result.intensity == 0.0
        assert result.dominant_emotion is None

    @pytest.mark.parametrize("text", ["", "   ", "...", None])
    def test_empty_text_is_neutral(self, analyzer, text):
        result = analyzer.analyze_text(text)
        assert result.polarity == SentimentPolarity.NEUTRAL
        assert result.score == 0.0

    def test_mixed_sentiment(self, analyzer):
        """Strong praise and strong frustration in one utterance."""
        result = analyzer.analyze_text(
            "I love the new dashboard, but the export is really frustrating."
        )
        assert result.polarity == SentimentPolarity.MIXED
        assert result.score == pytest.approx(0.0)
        assert result.dominant_emotion == "delight"

    def test_final_clause_weighs_more(self, analyzer):
        early = analyzer.analyze_text("It was good. It was fine.")
        late = analyzer.analyze_text("It was fine. It was good.")
        assert early.score == pytest.approx(0.4)
        assert late.score == pytest.approx(0.52)

    def test_emotion_keyword_wins_over_fallback(self, analyzer):
        result = analyzer.analyze_text("I was so confused by the settings")
        assert result.dominant_emotion == "confusion"

    def test_score_is_clamped(self, analyzer):
        result = analyzer.analyze_text("absolutely love love love it")
        assert -1.0 <= result.score <= 1.0
        assert 0.0 <= result.intensity <= 1.0

    def test_analyze_uses_utterance_identity(self, analyzer):
        result = analyzer.analyze(_make_utterance("u7", "It is great", start=12.5))
        assert result.utterance_id == "u7"
        assert result.timestamp == 12.5

    def test_deterministic(self, analyzer):
        text = "Honestly the sync is slow and a bit clunky, but support was helpful."
        first = analyzer.analyze_text(text)
        second = SentimentAnalyzer().analyze_text(text)
        assert first == second


class TestSessionSentiment:
    def test_shift_detection(self, analyzer):
        session = analyzer.analyze_session([
            _make_utterance("u1", "This is really great!"),
            _make_utterance("u2", "The setup was not easy."),
        ])
        assert len(session.shifts) == 1
        shift = session.shifts[0]
        assert shift.description == "Positive -> Negative (frustration)"
        assert shift.magnitude == pytest.approx(1.65)

    def test_small_change_is_not_a_shift(self, analyzer):
        session = analyzer.analyze_session([
            _make_utterance("u1", "It was good."),
            _make_utterance("u2", "It was nice."),
        ])
        assert session.shifts == []

    def test_arc_narrative(self, analyzer):
        session = analyzer.analyze_session([
            _make_utterance("u1", "This is really great!"),
            _make_utterance("u2", "We met on Tuesday."),
            _make_utterance("u3", "The setup was not easy."),
        ])
        arc = session.arc
        assert arc.description == (
            "Started positive, shifted neutral mid-session, declined to negative"
        )
        assert arc.dominant_polarity == SentimentPolarity.NEUTRAL
        assert arc.max_score == pytest.approx(1.0)
        assert arc.min_score == pytest.approx(-0.65)
        assert [p.utterance_id for p in arc.intensity_peaks] == ["u1", "u3", "u2"]

    def test_single_result_arc(self, analyzer):
        session = analyzer.analyze_session([_make_utterance("u1", "This is really great!")])
        assert session.arc.description == "Single data point: positive sentiment"

    def test_empty_session(self, analyzer):
        session = analyzer.analyze_session([])
        assert session.results == []
        assert session.arc is None
        assert analyzer.describe_arc([]) == "No data available"

    def test_json_serialization(self, analyzer):
        session = analyzer.analyze_session([
            _make_utterance("u1", "This is really great!"),
            _make_utterance("u2", "The setup was not easy."),
        ])
        data = json.loads(session.to_json())
        assert data["results"][0]["polarity"] == "positive"
        assert data["arc"]["dominant_polarity"] in {"positive", "neutral", "negative"}
        assert data["shifts"][0]["to_utterance_id"] == "u2"
