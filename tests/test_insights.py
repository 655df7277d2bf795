"""
Tests for automatic insight flagging.

Covers:
- Sentiment, bias-alert and explicit-statement triggers (in that order)
- The per-session cap and its 5-7 clamp
- Duplicate suppression by text and by time window
- Statement scoring, themes and tags
"""

import pytest

from interview_coach.analysis.bias import BiasAlert, BiasType
from interview_coach.analysis.sentiment import SentimentAnalyzer
from interview_coach.insights.flagger import (
    InsightAutoFlagger,
    extract_tags,
    generate_theme,
    score_statement,
)
from interview_coach.models.entities import InsightSource, Speaker, Utterance

CHALLENGE = "The biggest challenge for me is that the export is always difficult to find"


@pytest.fixture
def flagger():
    return InsightAutoFlagger()


@pytest.fixture
def sentiment():
    return SentimentAnalyzer()


def _make_utterance(utterance_id: str, text: str, start: float = 0.0) -> Utterance:
    return Utterance(
        id=utterance_id, speaker=Speaker.PARTICIPANT, text=text,
        start_seconds=start, duration_seconds=4.0,
    )


def _make_alert(bias_type=BiasType.GENDER_BIAS, confidence=1.0) -> BiasAlert:
    return BiasAlert(bias_type=bias_type, description="test", confidence=confidence)


class TestTriggers:
    def test_strong_sentiment(self, flagger, sentiment):
        utterance = _make_utterance("u1", "This is really great!", 30.0)
        flag = flagger.evaluate(utterance, sentiment.analyze(utterance))

        assert flag.source == InsightSource.SENTIMENT
        assert flag.reason == "Strong positive sentiment (delight)"
        assert flag.confidence == pytest.approx(1.0)
        assert flag.utterance_id == "u1"
        assert flag.timestamp == 30.0
        assert flag.quote == "This is really great!"
        assert flag.tags == ["positive"]
        assert flag.id

    def test_weak_sentiment_does_not_flag(self, flagger, sentiment):
        utterance = _make_utterance("u1", "It was good.")
        assert flagger.evaluate(utterance, sentiment.analyze(utterance)) is None

    def test_new_bias_alert(self, flagger, sentiment):
        utterance = _make_utterance("u1", "Did you ask him about it?")
        flag = flagger.evaluate(
            utterance,
            sentiment.analyze(utterance),
            [_make_alert(BiasType.AGE_BIAS, 0.6), _make_alert(BiasType.GENDER_BIAS, 1.0)],
        )
        assert flag.source == InsightSource.BIAS_ALERT
        assert flag.reason == "Bias alert: gender bias"
        assert flag.confidence == pytest.approx(1.0)

    def test_sentiment_wins_over_bias(self, flagger, sentiment):
        utterance = _make_utterance("u1", "This is really great!")
        flag = flagger.evaluate(utterance, sentiment.analyze(utterance), [_make_alert()])
        assert flag.source == InsightSource.SENTIMENT

    def test_explicit_statement(self, flagger):
        flag = flagger.evaluate(_make_utterance("u1", CHALLENGE))

        assert flag.source == InsightSource.STATEMENT
        assert flag.reason == "Key Challenge"
        assert flag.confidence == pytest.approx(0.7)
        assert flag.themes == ["The biggest challenge for me..."]
        assert flag.tags == ["pain-point"]

    def test_empty_text(self, flagger, sentiment):
        utterance = _make_utterance("u1", "   ")
        assert flagger.evaluate(utterance, sentiment.analyze(utterance), [_make_alert()]) is None


class TestCapAndDuplicates:
    def test_cap(self, flagger, sentiment):
        flags = []
        for i in range(7):
            utterance = _make_utterance(f"u{i}", f"This is really great, take {i}!", i * 10.0)
            flags.append(flagger.evaluate(utterance, sentiment.analyze(utterance)))

        assert sum(f is not None for f in flags) == 5
        assert flags[5] is None and flags[6] is None
        assert flagger.remaining == 0
        assert len(flagger.flags) == 5

    @pytest.mark.parametrize("requested,expected", [(1, 5), (6, 6), (10, 7)])
    def test_cap_is_clamped(self, requested, expected):
        assert InsightAutoFlagger(max_flags=requested).max_flags == expected

    def test_same_text_is_duplicate(self, flagger, sentiment):
        first = _make_utterance("u1", "This is really great!", 0.0)
        later = _make_utterance("u2", "  This is really great!  ", 60.0)
        assert flagger.evaluate(first, sentiment.analyze(first)) is not None
        assert flagger.evaluate(later, sentiment.analyze(later)) is None

    def test_time_window(self, flagger, sentiment):
        first = _make_utterance("u1", "This is really great!", 10.0)
        close = _make_utterance("u2", "I love it, absolutely love it", 11.5)
        edge = _make_utterance("u3", "I love it, absolutely love it", 12.0)
        flagger.evaluate(first, sentiment.analyze(first))

        assert flagger.evaluate(close, sentiment.analyze(close)) is None
        assert flagger.evaluate(edge, sentiment.analyze(edge)) is not None


class TestStatementScoring:
    def test_short_statement_scores_zero(self):
        assert score_statement("I really love it") == (0.0, [], [])

    def test_keywords_and_phrases(self):
        score, keywords, phrases = score_statement(CHALLENGE)
        assert score == pytest.approx(0.7)
        assert keywords == ["difficult", "always"]
        assert phrases == ["biggest challenge"]

    def test_keywords_match_whole_words(self):
        score, keywords, _ = score_statement(
            "We needed a new approach to the weekly report for the whole team"
        )
        assert keywords == []
        assert score == 0.0

    def test_long_statement_bonus(self):
        text = CHALLENGE + " and it takes me ages every single week when I prepare the monthly numbers"
        score, _, _ = score_statement(text)
        assert score == pytest.approx(0.8)

    def test_themes_and_tags(self):
        assert generate_theme("I wish it synced") == "User Need"
        assert generate_theme("So frustrating") == "Pain Point"
        assert generate_theme("We met on Tuesday") == "We met on Tuesday"
        assert extract_tags("I want a simpler workflow") == ["user-need", "workflow"]
