"""
Tests for talk-time balance.

Covers:
- Totals, ratios and status thresholds (boundaries included)
- Unknown speakers and empty input
- Rolling-window series with clipped overlap and silent windows
- Human-readable summaries
"""

import json

import pytest

from interview_coach.analysis.talk_time import TalkTimeAnalyzer, TalkTimeStatus
from interview_coach.models.entities import Speaker, Utterance


def _make_utterance(speaker, start, duration, utterance_id="u"):
    return Utterance(
        id=utterance_id, speaker=speaker, text="...",
        start_seconds=start, duration_seconds=duration,
    )


def _session(interviewer_seconds, participant_seconds):
    return [
        _make_utterance(Speaker.INTERVIEWER, 0.0, interviewer_seconds, "i"),
        _make_utterance(Speaker.PARTICIPANT, interviewer_seconds, participant_seconds, "p"),
    ]


@pytest.fixture
def analyzer():
    return TalkTimeAnalyzer()


class TestAnalyze:
    def test_totals_and_ratios(self, analyzer):
        result = analyzer.analyze(_session(20.0, 80.0))
        assert result.interviewer_time == pytest.approx(20.0)
        assert result.participant_time == pytest.approx(80.0)
        assert result.total_time == pytest.approx(100.0)
        assert result.interviewer_ratio == pytest.approx(0.2)
        assert result.participant_ratio == pytest.approx(0.8)
        assert result.status == TalkTimeStatus.GOOD

    @pytest.mark.parametrize("interviewer,expected", [
        (29.0, TalkTimeStatus.GOOD),
        (30.0, TalkTimeStatus.WARNING),
        (35.0, TalkTimeStatus.WARNING),
        (40.0, TalkTimeStatus.WARNING),
        (45.0, TalkTimeStatus.OVER),
    ])
    def test_status_thresholds(self, analyzer, interviewer, expected):
        result = analyzer.analyze(_session(interviewer, 100.0 - interviewer))
        assert result.status == expected

    def test_unknown_speaker_is_ignored(self, analyzer):
        utterances = _session(20.0, 80.0) + [
            _make_utterance(Speaker.UNKNOWN, 100.0, 500.0, "x")
        ]
        result = analyzer.analyze(utterances)
        assert result.total_time == pytest.approx(100.0)
        assert result.status == TalkTimeStatus.GOOD

    def test_no_speech(self, analyzer):
        assert analyzer.analyze([]).status == TalkTimeStatus.NO_DATA
        zero = [_make_utterance(Speaker.INTERVIEWER, 5.0, -3.0)]
        assert analyzer.analyze(zero).status == TalkTimeStatus.NO_DATA

    def test_to_json(self, analyzer):
        data = json.loads(analyzer.analyze(_session(20.0, 80.0)).to_json())
        assert data["status"] == "good"


class TestRollingWindow:
    def test_series_over_growing_window(self, analyzer):
        utterances = [
            _make_utterance(Speaker.INTERVIEWER, 0.0, 30.0, "i"),
            _make_utterance(Speaker.PARTICIPANT, 30.0, 60.0, "p"),
        ]
        points = analyzer.rolling_window(utterances)

        assert [p.timestamp for p in points] == [30.0, 60.0, 90.0]
        assert [p.interviewer_ratio for p in points] == pytest.approx([1.0, 0.5, 1 / 3])
        assert [p.status for p in points] == [
            TalkTimeStatus.OVER, TalkTimeStatus.OVER, TalkTimeStatus.WARNING,
        ]

    def test_window_clips_old_speech(self):
        analyzer = TalkTimeAnalyzer(window_size=60.0, window_step=30.0)
        utterances = [
            _make_utterance(Speaker.INTERVIEWER, 0.0, 30.0, "i"),
            _make_utterance(Speaker.PARTICIPANT, 30.0, 60.0, "p"),
        ]
        last = analyzer.rolling_window(utterances)[-1]
        assert last.timestamp == 90.0
        assert last.interviewer_ratio == pytest.approx(0.0)
        assert last.participant_ratio == pytest.approx(1.0)
        assert last.status == TalkTimeStatus.GOOD

    def test_silent_windows_have_no_data(self):
        analyzer = TalkTimeAnalyzer(window_size=30.0, window_step=30.0)
        utterances = [
            _make_utterance(Speaker.INTERVIEWER, 0.0, 10.0, "i"),
            _make_utterance(Speaker.PARTICIPANT, 100.0, 10.0, "p"),
        ]
        points = analyzer.rolling_window(utterances)

        assert [p.timestamp for p in points] == [30.0, 60.0, 90.0, 110.0]
        assert points[0].status == TalkTimeStatus.OVER
        assert [p.status for p in points[1:3]] == [TalkTimeStatus.NO_DATA] * 2
        assert points[3].participant_ratio == pytest.approx(1.0)

    def test_empty_session(self, analyzer):
        assert analyzer.rolling_window([]) == []

    def test_session_shorter_than_one_step(self, analyzer):
        utterances = [
            _make_utterance(Speaker.INTERVIEWER, 0.0, 5.0, "i"),
            _make_utterance(Speaker.PARTICIPANT, 5.0, 20.0, "p"),
        ]
        points = analyzer.rolling_window(utterances)

        assert len(points) == 1
        assert points[0].timestamp == 25.0
        assert points[0].interviewer_ratio == pytest.approx(0.2)
        assert points[0].status == TalkTimeStatus.GOOD

    def test_trailing_partial_window_is_kept(self, analyzer):
        utterances = [
            _make_utterance(Speaker.INTERVIEWER, 0.0, 30.0, "i"),
            _make_utterance(Speaker.PARTICIPANT, 30.0, 29.0, "p"),
        ]
        points = analyzer.rolling_window(utterances)

        assert [p.timestamp for p in points] == [30.0, 59.0]
        assert points[-1].interviewer_ratio == pytest.approx(30.0 / 59.0)
        assert points[-1].participant_ratio == pytest.approx(29.0 / 59.0)


class TestSummary:
    def test_good(self, analyzer):
        assert analyzer.summarize(analyzer.analyze(_session(20.0, 80.0))) == (
            "Good balance: interviewer 20%, participant 80%. "
            "The participant is driving the conversation."
        )

    def test_warning(self, analyzer):
        assert analyzer.summarize(analyzer.analyze(_session(35.0, 65.0))) == (
            "Slightly high: interviewer 35%, participant 65%. "
            "Consider asking more open-ended questions."
        )

    def test_over(self, analyzer):
        assert analyzer.summarize(analyzer.analyze(_session(45.0, 55.0))) == (
            "Interviewer talking too much: 45% vs participant 55%. "
            "Let the participant lead more."
        )

    def test_no_data(self, analyzer):
        assert analyzer.summarize(analyzer.analyze([])) == "No talk time data available yet."
