"""
Shared test fixtures.

Provides pytest fixtures for common test resources including:
- A clean coaching configuration (no environment leakage)
- A policy engine with default thresholds and an open gate state
- Sample utterances and research topics
"""

from typing import Any, Dict, List

import pytest

from interview_coach.coaching.event_log import EventLog
from interview_coach.coaching.policy import CoachingPolicyEngine
from interview_coach.coaching.thresholds import CoachingThresholds
from interview_coach.config import ENV_PREFIX, CoachConfig
from interview_coach.events import NudgeCandidate
from interview_coach.models.decisions import SessionGateState
from interview_coach.models.entities import Speaker, Utterance


def make_utterance(
    utterance_id: str = "u1",
    speaker: Speaker = Speaker.PARTICIPANT,
    text: str = "",
    start: float = 0.0,
    duration: float = 2.0,
) -> Utterance:
    """Build an utterance with sensible defaults."""
    return Utterance(
        id=utterance_id,
        speaker=speaker,
        text=text,
        start_seconds=start,
        duration_seconds=duration,
    )


def make_candidate(confidence: float = 0.9, text: str = "Ask what made that hard") -> NudgeCandidate:
    """Build a candidate nudge."""
    return NudgeCandidate(text=text, reason="participant mentioned a struggle", confidence=confidence)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """
    Isolate tests from INTERVIEW_COACH_* variables and any .env file.

    Runs every test from an empty temporary working directory.
    """
    import os

    for key in list(os.environ):
        if key.upper().startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def config() -> CoachConfig:
    """Default coaching configuration."""
    return CoachConfig()


@pytest.fixture
def event_log() -> EventLog:
    return EventLog("test-session")


@pytest.fixture
def engine(event_log: EventLog) -> CoachingPolicyEngine:
    """Policy engine with the silence-first default thresholds."""
    return CoachingPolicyEngine(CoachingThresholds(), event_log)


@pytest.fixture
def open_state(engine: CoachingPolicyEngine) -> SessionGateState:
    """
    Gate state in which every gate passes at ``now=300``.

    Coaching enabled, no prompts shown, quiet for 10 s, last prompt 200 s ago.
    """
    state = engine.start_state("test-session", enabled=True)
    state.last_speech_end_at = 290.0
    state.last_prompt_at = 100.0
    return state


@pytest.fixture
def sample_utterances() -> List[Utterance]:
    """A short interview exchange."""
    return [
        make_utterance("u1", Speaker.INTERVIEWER, "Tell me about how you plan your trips?", 0.0, 4.0),
        make_utterance(
            "u2", Speaker.PARTICIPANT,
            "I usually start with a spreadsheet because the booking app is so confusing.",
            5.0, 20.0,
        ),
        make_utterance("u3", Speaker.INTERVIEWER, "Do you use the app daily?", 26.0, 3.0),
        make_utterance("u4", Speaker.PARTICIPANT, "No, only when I have to.", 30.0, 6.0),
    ]


@pytest.fixture
def sample_topics() -> List[Dict[str, Any]]:
    """Research topics for a travel-planning study."""
    return [
        {"id": "planning", "name": "Trip planning", "keywords": ["spreadsheet", "itinerary"]},
        {"id": "booking", "name": "Booking", "keywords": ["booking app", "reservation"]},
        {"id": "pricing", "name": "Pricing", "keywords": ["price", "cost"]},
    ]
