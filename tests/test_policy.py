"""
Tests for the coaching policy engine.

Covers:
- Gate ordering over every combination of passing and failing gates
- The per-session prompt cap and sequence numbering
- Post-speech and session cooldown scenarios
- Event log symmetry (one decision entry per candidate)
- NoCandidate handling for missing and malformed candidates
- Prompt responses, snooze and opt-in toggles
- Serialised evaluation under concurrent submission
"""

import itertools
from concurrent.futures import ThreadPoolExecutor

import pytest

from interview_coach.coaching.event_log import EventKind, EventLog
from interview_coach.coaching.policy import CoachingPolicyEngine
from interview_coach.coaching.thresholds import CoachingThresholds
from interview_coach.events import NudgeCandidate
from interview_coach.models.decisions import (
    GATE_ORDER,
    GateReason,
    NoCandidateDecision,
    PromptResponse,
    ShowDecision,
    SuppressDecision,
)

NOW = 300.0


def _make_candidate(confidence: float = 0.9) -> NudgeCandidate:
    return NudgeCandidate(text="Ask what made that hard", reason="struggle", confidence=confidence)


# ---------------------------------------------------------------------------
#  Gate ordering
# ---------------------------------------------------------------------------

ALL_COMBINATIONS = list(itertools.product([False, True], repeat=len(GATE_ORDER)))


class TestGateOrdering:
    @pytest.mark.parametrize("failing", ALL_COMBINATIONS)
    def test_first_failing_gate_wins(self, engine, failing):
        fails = dict(zip(GATE_ORDER, failing))
        state = engine.start_state("s", enabled=not fails[GateReason.COACHING_DISABLED])
        state.prompts_shown = 3 if fails[GateReason.MAX_PROMPTS_REACHED] else 0
        state.is_speech_active = fails[GateReason.INTERVIEWER_SPEAKING]
        state.last_speech_end_at = NOW - (3.0 if fails[GateReason.POST_SPEECH_COOLDOWN] else 10.0)
        state.last_prompt_at = NOW - (60.0 if fails[GateReason.SESSION_COOLDOWN] else 200.0)
        candidate = _make_candidate(0.5 if fails[GateReason.LOW_CONFIDENCE] else 0.9)

        decision = engine.evaluate(state, candidate, NOW)

        expected = next((gate for gate in GATE_ORDER if fails[gate]), None)
        if expected is None:
            assert isinstance(decision, ShowDecision)
        else:
            assert isinstance(decision, SuppressDecision)
            assert decision.reason_code == expected

    @pytest.mark.parametrize("failing", ALL_COMBINATIONS)
    def test_trace_evaluates_every_gate(self, engine, failing):
        fails = dict(zip(GATE_ORDER, failing))
        state = engine.start_state("s", enabled=not fails[GateReason.COACHING_DISABLED])
        state.prompts_shown = 3 if fails[GateReason.MAX_PROMPTS_REACHED] else 0
        state.is_speech_active = fails[GateReason.INTERVIEWER_SPEAKING]
        state.last_speech_end_at = NOW - (3.0 if fails[GateReason.POST_SPEECH_COOLDOWN] else 10.0)
        state.last_prompt_at = NOW - (60.0 if fails[GateReason.SESSION_COOLDOWN] else 200.0)
        candidate = _make_candidate(0.5 if fails[GateReason.LOW_CONFIDENCE] else 0.9)

        trace = engine.evaluate_gates(state, candidate, NOW)

        assert [check.gate for check in trace] == GATE_ORDER
        assert [not check.passed for check in trace] == list(failing)

    def test_evaluate_gates_does_not_mutate_state(self, engine, open_state):
        engine.evaluate_gates(open_state, _make_candidate(), NOW)
        assert open_state.prompts_shown == 0
        assert open_state.last_prompt_at == 100.0


# ---------------------------------------------------------------------------
#  Scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    def test_open_state_shows(self, engine, open_state):
        """Quiet 10 s, last prompt 200 s ago, 0 prompts, enabled."""
        decision = engine.evaluate(open_state, _make_candidate(), NOW)

        assert isinstance(decision, ShowDecision)
        assert decision.sequence == 1
        assert decision.text == "Ask what made that hard"
        assert decision.reason_internal == "struggle"
        assert open_state.prompts_shown == 1
        assert open_state.last_prompt_at == NOW
        assert open_state.next_sequence == 2

    def test_three_seconds_after_speech_suppresses(self, engine, open_state):
        open_state.last_speech_end_at = NOW - 3.0
        decision = engine.evaluate(open_state, _make_candidate(), NOW)

        assert isinstance(decision, SuppressDecision)
        assert decision.reason_code == GateReason.POST_SPEECH_COOLDOWN
        assert open_state.prompts_shown == 0

    def test_first_session_defaults_to_disabled(self, engine):
        state = engine.start_state("first")
        decision = engine.evaluate(state, _make_candidate(), NOW)
        assert decision.reason_code == GateReason.COACHING_DISABLED

    def test_cap_of_three_prompts(self, engine, open_state):
        decisions = [
            engine.evaluate(open_state, _make_candidate(), NOW + i * 200.0) for i in range(4)
        ]

        shown = [d for d in decisions if isinstance(d, ShowDecision)]
        assert [d.sequence for d in shown] == [1, 2, 3]
        assert isinstance(decisions[3], SuppressDecision)
        assert decisions[3].reason_code == GateReason.MAX_PROMPTS_REACHED
        assert open_state.prompts_shown == 3

    def test_session_cooldown_after_show(self, engine, open_state):
        engine.evaluate(open_state, _make_candidate(), NOW)
        decision = engine.evaluate(open_state, _make_candidate(), NOW + 60.0)
        assert decision.reason_code == GateReason.SESSION_COOLDOWN

    def test_unparseable_confidence_is_suppressed(self, engine, open_state):
        candidate = NudgeCandidate(text="Dig deeper", confidence="very high")
        decision = engine.evaluate(open_state, candidate, NOW)
        assert decision.reason_code == GateReason.LOW_CONFIDENCE

    @pytest.mark.parametrize("confidence", ["nan", float("nan"), "inf"])
    def test_non_finite_confidence_is_suppressed(self, engine, open_state, confidence):
        candidate = NudgeCandidate(text="Dig deeper", confidence=confidence)
        decision = engine.evaluate(open_state, candidate, NOW)

        assert isinstance(decision, SuppressDecision)
        assert decision.reason_code == GateReason.LOW_CONFIDENCE
        assert open_state.prompts_shown == 0

    def test_raw_dict_candidate_is_validated(self, engine, open_state):
        payload = {"kind": "nudge_candidate", "text": "Dig deeper", "confidence": 0.95}
        decision = engine.evaluate(open_state, payload, NOW)
        assert isinstance(decision, ShowDecision)
        assert decision.text == "Dig deeper"


# ---------------------------------------------------------------------------
#  NoCandidate and the event log
# ---------------------------------------------------------------------------

class TestEventLogSymmetry:
    def test_none_yields_no_candidate(self, engine, open_state, event_log):
        decision = engine.evaluate(open_state, None, NOW)

        assert isinstance(decision, NoCandidateDecision)
        assert len(event_log.decisions()) == 1
        assert event_log.entries[0].candidate is None

    def test_malformed_payload_yields_no_candidate(self, engine, open_state, event_log):
        decision = engine.evaluate(open_state, {"text": "missing kind"}, NOW)

        assert isinstance(decision, NoCandidateDecision)
        entry = event_log.entries[0]
        assert entry.candidate == {"payload_type": "mapping", "keys": ["text"]}
        assert entry.trace == []

    def test_one_entry_per_candidate(self, engine, open_state, event_log):
        candidates = [
            _make_candidate(), None, _make_candidate(0.2), "garbage",
            {"kind": "nudge_candidate", "text": ""}, _make_candidate(),
        ]
        for i, candidate in enumerate(candidates):
            engine.evaluate(open_state, candidate, NOW + i)

        assert len(event_log.decisions()) == len(candidates)
        assert [e.index for e in event_log.entries] == list(range(len(candidates)))

    def test_show_and_suppress_share_structure(self, engine, open_state, event_log):
        engine.evaluate(open_state, _make_candidate(), NOW)
        engine.evaluate(open_state, _make_candidate(), NOW + 1.0)

        shown, suppressed = event_log.decisions()
        assert shown.decision.kind == "show"
        assert suppressed.decision.kind == "suppress"
        assert len(shown.trace) == len(suppressed.trace) == len(GATE_ORDER)
        assert shown.candidate["text"] == suppressed.candidate["text"]
        assert shown.session_id == "test-session"


# ---------------------------------------------------------------------------
#  Responses and toggles
# ---------------------------------------------------------------------------

class TestResponses:
    def test_snooze_restarts_cooldown(self, engine, open_state, event_log):
        engine.evaluate(open_state, _make_candidate(), NOW)
        engine.record_response(open_state, 1, PromptResponse.SNOOZED, NOW + 100.0)

        assert open_state.last_prompt_at == NOW + 100.0
        decision = engine.evaluate(open_state, _make_candidate(), NOW + 150.0)
        assert decision.reason_code == GateReason.SESSION_COOLDOWN

    def test_response_is_logged(self, engine, open_state, event_log):
        engine.evaluate(open_state, _make_candidate(), NOW)
        engine.record_response(open_state, 1, PromptResponse.DISMISSED, NOW + 5.0)

        responses = event_log.responses()
        assert len(responses) == 1
        assert responses[0].kind == EventKind.RESPONSE
        assert responses[0].sequence == 1
        assert responses[0].response == PromptResponse.DISMISSED
        assert open_state.last_prompt_at == NOW

    def test_enable_and_disable(self, engine):
        state = engine.start_state("s")
        engine.enable(state)
        assert state.coaching_enabled is True
        engine.disable(state)
        assert state.coaching_enabled is False

    def test_speech_transitions(self, engine, open_state):
        engine.speech_started(open_state)
        decision = engine.evaluate(open_state, _make_candidate(), NOW)
        assert decision.reason_code == GateReason.INTERVIEWER_SPEAKING

        engine.speech_ended(open_state, NOW + 1.0)
        assert open_state.is_speech_active is False
        assert open_state.last_speech_end_at == NOW + 1.0


# ---------------------------------------------------------------------------
#  Concurrency
# ---------------------------------------------------------------------------

class TestConcurrency:
    def test_concurrent_candidates_respect_cap(self):
        thresholds = CoachingThresholds(session_cooldown_seconds=0, speech_cooldown_seconds=0)
        log = EventLog("busy")
        engine = CoachingPolicyEngine(thresholds, log)
        state = engine.start_state("busy", enabled=True)

        with ThreadPoolExecutor(max_workers=8) as pool:
            decisions = list(pool.map(
                lambda _: engine.evaluate(state, _make_candidate(), NOW), range(40)
            ))

        shown = [d for d in decisions if isinstance(d, ShowDecision)]
        assert sorted(d.sequence for d in shown) == [1, 2, 3]
        assert len(log.decisions()) == 40

    def test_sessions_have_independent_state(self, engine):
        a = engine.start_state("a", enabled=True)
        b = engine.start_state("b", enabled=True)
        engine.evaluate(a, _make_candidate(), NOW)

        assert a.prompts_shown == 1
        assert b.prompts_shown == 0
        assert a.lock is not b.lock
