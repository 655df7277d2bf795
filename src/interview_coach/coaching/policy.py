"""
Silence-first coaching policy.

Decides whether a candidate nudge is shown or suppressed. Gates are
evaluated in a fixed order and can only suppress:

1. coaching_disabled     - coaching is off for this session
2. max_prompts_reached   - the per-session cap has been hit
3. interviewer_speaking  - the interviewer is currently talking
4. post_speech_cooldown  - speech ended too recently
5. session_cooldown      - a prompt was shown too recently
6. low_confidence        - the candidate is not confident enough

Every gate is evaluated for the audit trace; the first failing gate is
the suppression reason. Decisions for one session are serialised on the
session's ``SessionGateState.lock``.
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from interview_coach.coaching.event_log import EventLog
from interview_coach.coaching.thresholds import CoachingThresholds
from interview_coach.events import NudgeCandidate, parse_event
from interview_coach.models.decisions import (
    CoachingDecision,
    GateCheck,
    GateReason,
    NoCandidateDecision,
    PromptResponse,
    SessionGateState,
    ShowDecision,
    SuppressDecision,
)

logger = logging.getLogger(__name__)


def _describe_payload(payload: Any) -> Dict[str, Any]:
    if isinstance(payload, Mapping):
        return {"payload_type": "mapping", "keys": sorted(str(k) for k in payload)}
    return {"payload_type": type(payload).__name__}


class CoachingPolicyEngine:
    """
    Gate pipeline for candidate coaching prompts.

    Example:
        >>> engine = CoachingPolicyEngine()
        >>> state = engine.start_state("s1", enabled=True)
        >>> decision = engine.evaluate(state, candidate, now=300.0)
        >>> decision.kind
        'show'
    """

    def __init__(
        self,
        thresholds: Optional[CoachingThresholds] = None,
        event_log: Optional[EventLog] = None,
    ):
        """
        Initialize policy engine.

        Args:
            thresholds: Gate thresholds (default: silence-first defaults)
            event_log: Log receiving every decision and response
        """
        self.thresholds = thresholds or CoachingThresholds()
        self.event_log = event_log if event_log is not None else EventLog()

    def start_state(self, session_id: str, enabled: bool = False) -> SessionGateState:
        """Create fresh gate state for a new session."""
        logger.info("Starting gate state for session '%s' (coaching %s)",
                    session_id, "on" if enabled else "off")
        return SessionGateState(session_id=session_id, coaching_enabled=enabled)

    # ------------------------------------------------------------------
    #  Gates
    # ------------------------------------------------------------------

    def evaluate_gates(
        self,
        state: SessionGateState,
        candidate: NudgeCandidate,
        now: float,
    ) -> List[GateCheck]:
        """
        Evaluate every gate against the current state.

        Does not mutate ``state`` and does not take its lock.

        Args:
            state: Session gate state
            candidate: Candidate nudge
            now: Current session time in seconds

        Returns:
            One GateCheck per gate, in evaluation order
        """
        t = self.thresholds
        checks = [
            GateCheck(
                gate=GateReason.COACHING_DISABLED,
                passed=state.coaching_enabled,
                detail="enabled" if state.coaching_enabled else "disabled",
            ),
            GateCheck(
                gate=GateReason.MAX_PROMPTS_REACHED,
                passed=state.prompts_shown < t.max_prompts_per_session,
                detail=f"{state.prompts_shown}/{t.max_prompts_per_session} shown",
            ),
            GateCheck(
                gate=GateReason.INTERVIEWER_SPEAKING,
                passed=not state.is_speech_active,
                detail="speaking" if state.is_speech_active else "quiet",
            ),
        ]

        if state.last_speech_end_at is None:
            checks.append(GateCheck(
                gate=GateReason.POST_SPEECH_COOLDOWN, passed=True, detail="no speech yet",
            ))
        else:
            since_speech = now - state.last_speech_end_at
            checks.append(GateCheck(
                gate=GateReason.POST_SPEECH_COOLDOWN,
                passed=since_speech >= t.speech_cooldown_seconds,
                detail=f"{since_speech:.1f}s since speech (need {t.speech_cooldown_seconds:.1f}s)",
            ))

        cooldown = t.effective_session_cooldown
        if state.last_prompt_at is None:
            checks.append(GateCheck(
                gate=GateReason.SESSION_COOLDOWN, passed=True, detail="no prompt yet",
            ))
        else:
            since_prompt = now - state.last_prompt_at
            checks.append(GateCheck(
                gate=GateReason.SESSION_COOLDOWN,
                passed=since_prompt >= cooldown,
                detail=f"{since_prompt:.1f}s since prompt (need {cooldown:.1f}s)",
            ))

        threshold = t.effective_confidence_threshold
        checks.append(GateCheck(
            gate=GateReason.LOW_CONFIDENCE,
            passed=candidate.confidence >= threshold,
            detail=f"confidence {candidate.confidence:.2f} (need {threshold:.2f})",
        ))
        return checks

    # ------------------------------------------------------------------
    #  Decisions
    # ------------------------------------------------------------------

    def evaluate(self, state: SessionGateState, candidate: Any, now: float) -> CoachingDecision:
        """
        Decide whether to show a candidate and record the decision.

        Anything that does not validate as a ``NudgeCandidate`` yields a
        ``NoCandidateDecision``; it is logged all the same, so the log
        holds exactly one decision per evaluated candidate.

        Args:
            state: Session gate state (mutated on Show)
            candidate: NudgeCandidate, raw payload or None
            now: Current session time in seconds

        Returns:
            ShowDecision, SuppressDecision or NoCandidateDecision
        """
        if candidate is not None and not isinstance(candidate, NudgeCandidate):
            parsed = parse_event(candidate)
            if isinstance(parsed, NudgeCandidate):
                candidate = parsed

        with state.lock:
            if not isinstance(candidate, NudgeCandidate):
                decision: CoachingDecision = NoCandidateDecision(
                    detail="no candidate" if candidate is None else "unrecognised payload",
                    at=now,
                )
                logger.debug("Session '%s': no candidate at %.1fs", state.session_id, now)
                self.event_log.append_decision(
                    now, decision, [],
                    candidate=None if candidate is None else _describe_payload(candidate),
                    session_id=state.session_id,
                )
                return decision

            trace = self.evaluate_gates(state, candidate, now)
            failed = next((check for check in trace if not check.passed), None)
            if failed is None:
                decision = ShowDecision(
                    text=candidate.text,
                    reason_internal=candidate.reason,
                    sequence=state.next_sequence,
                    candidate_id=candidate.id,
                    at=now,
                )
                state.prompts_shown += 1
                state.last_prompt_at = now
                state.next_sequence += 1
                logger.info(
                    "Session '%s': showing prompt #%d at %.1fs",
                    state.session_id, decision.sequence, now,
                )
            else:
                decision = SuppressDecision(
                    reason_code=failed.gate, candidate_id=candidate.id, at=now,
                )
                logger.debug(
                    "Session '%s': suppressed at %.1fs (%s: %s)",
                    state.session_id, now, failed.gate.value, failed.detail,
                )

            self.event_log.append_decision(
                now, decision, trace,
                candidate=candidate.model_dump(mode="json"),
                session_id=state.session_id,
            )
            return decision

    def record_response(
        self,
        state: SessionGateState,
        sequence: int,
        response: PromptResponse,
        now: float,
    ) -> None:
        """
        Record the interviewer's response to a shown prompt.

        A snooze restarts the session cooldown from ``now``.

        Args:
            state: Session gate state
            sequence: Sequence number of the shown prompt
            response: Interviewer response
            now: Current session time in seconds
        """
        response = PromptResponse(response)
        with state.lock:
            if response == PromptResponse.SNOOZED:
                state.last_prompt_at = now
            self.event_log.append_response(
                now, sequence, response, session_id=state.session_id,
            )
        logger.debug(
            "Session '%s': prompt #%d %s", state.session_id, sequence, response.value,
        )

    # ------------------------------------------------------------------
    #  State transitions
    # ------------------------------------------------------------------

    def enable(self, state: SessionGateState) -> None:
        """Turn coaching on for the session."""
        with state.lock:
            state.coaching_enabled = True
        logger.info("Coaching enabled for session '%s'", state.session_id)

    def disable(self, state: SessionGateState) -> None:
        """Turn coaching off for the session."""
        with state.lock:
            state.coaching_enabled = False
        logger.info("Coaching disabled for session '%s'", state.session_id)

    def speech_started(self, state: SessionGateState) -> None:
        """Mark the interviewer as speaking."""
        with state.lock:
            state.is_speech_active = True

    def speech_ended(self, state: SessionGateState, at: float) -> None:
        """Mark the interviewer as quiet from session time ``at``."""
        with state.lock:
            state.is_speech_active = False
            state.last_speech_end_at = at


__all__ = ["CoachingPolicyEngine"]
