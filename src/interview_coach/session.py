"""
Interview session orchestration.

An ``InterviewSession`` owns everything that lives for one interview:
the gate state, the event log, the policy engine and the session-scoped
trackers (questions, bias, topics, insights). Utterances pass through a
small reorder buffer so that segments arriving slightly out of order are
still analysed in start-time order.

A ``SessionRegistry`` maps session ids to sessions for hosts running
several interviews in parallel.

Example:
    >>> session = InterviewSession("s1", topics=["Onboarding"], enabled=True)
    >>> session.ingest_utterance({"id": "u1", "speaker": "participant",
    ...                           "text": "Onboarding was fine", "start_seconds": 0})
    []
    >>> summary = session.close()
"""

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from interview_coach.analysis.bias import BiasAlert, BiasDetector
from interview_coach.analysis.pii import PIIDetection, PIIDetector
from interview_coach.analysis.pipeline import UtteranceAnalysis, analyze_batch, analyze_utterance
from interview_coach.analysis.questions import QuestionClassification, QuestionTypeAnalyzer
from interview_coach.analysis.sentiment import SentimentAnalyzer, SessionSentiment
from interview_coach.analysis.talk_time import TalkTimeAnalyzer, TalkTimeResult, TalkTimeWindowPoint
from interview_coach.coaching.event_log import EventLog, EventSink
from interview_coach.coaching.policy import CoachingPolicyEngine
from interview_coach.coaching.thresholds import CoachingThresholds
from interview_coach.config import CoachConfig
from interview_coach.errors import InterviewCoachError, SessionClosedError
from interview_coach.events import NudgeCandidate, TopicRelevance, parse_event
from interview_coach.insights.flagger import InsightAutoFlagger
from interview_coach.models.decisions import CoachingDecision, PromptResponse, SessionGateState
from interview_coach.models.entities import InsightFlag, TopicState, TopicStatus, Utterance
from interview_coach.topics.tracker import TopicAwarenessTracker

logger = logging.getLogger(__name__)


class InterviewSession:
    """
    One live interview: analysis, topic awareness, insights and coaching.

    All public methods are safe to call from multiple threads; calls on
    one session are serialised. After ``close()`` every method except
    ``close()`` itself raises ``SessionClosedError``.
    """

    def __init__(
        self,
        session_id: str,
        config: Optional[CoachConfig] = None,
        topics: Iterable[Any] = (),
        enabled: Optional[bool] = None,
        sink: Optional[EventSink] = None,
        thresholds: Optional[CoachingThresholds] = None,
    ):
        """
        Start a session.

        Args:
            session_id: Session identifier
            config: Coaching configuration (default: CoachConfig())
            topics: Research topic definitions
            enabled: Whether coaching starts on (default: the config's
                first-session setting)
            sink: Callable receiving flushed event log entries
            thresholds: Gate thresholds (default: built from ``config``)
        """
        self.session_id = session_id
        self.config = config or CoachConfig()
        self.thresholds = thresholds or CoachingThresholds.from_config(self.config)

        self.event_log = EventLog(session_id, sink)
        self.policy = CoachingPolicyEngine(self.thresholds, self.event_log)
        if enabled is None:
            enabled = self.config.first_session_coaching_enabled
        self.gate_state: Optional[SessionGateState] = self.policy.start_state(session_id, enabled)

        self.sentiment_analyzer = SentimentAnalyzer()
        self.pii_detector = PIIDetector()
        self.question_analyzer = QuestionTypeAnalyzer()
        self.bias_detector = BiasDetector()
        self.talk_time_analyzer = TalkTimeAnalyzer(
            window_size=self.config.talk_time_window_seconds,
            window_step=self.config.talk_time_step_seconds,
        )
        self.topic_tracker = TopicAwarenessTracker(topics)
        self.insight_flagger = InsightAutoFlagger(
            max_flags=self.config.insight_max_flags,
            intensity_threshold=self.config.insight_intensity_threshold,
        )

        self.jitter_window = self.config.jitter_window_seconds
        self._pending: List[Utterance] = []
        self._latest_start: Optional[float] = None
        self._utterances: List[Utterance] = []
        self._analyses: Dict[str, UtteranceAnalysis] = {}
        self._clock = 0.0
        self._closed = False
        self._lock = threading.RLock()

        logger.info(
            "Session '%s' started (%d topics, coaching %s)",
            session_id, len(self.topic_tracker.topic_ids), "on" if enabled else "off",
        )

    # ------------------------------------------------------------------
    #  Lifecycle
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def clock(self) -> float:
        """Latest session time seen on the stream."""
        return self._clock

    def _ensure_open(self) -> SessionGateState:
        if self._closed or self.gate_state is None:
            raise SessionClosedError(self.session_id)
        return self.gate_state

    def flush(self) -> List[Utterance]:
        """Release and process every buffered utterance."""
        with self._lock:
            self._ensure_open()
            return self._release(force=True)

    def close(self) -> Dict[str, Any]:
        """
        End the session.

        Releases buffered utterances, flushes and closes the event log
        and discards the gate state. Closing twice is a no-op.

        Returns:
            Final session snapshot
        """
        with self._lock:
            if self._closed:
                logger.debug("Session '%s' already closed", self.session_id)
                return {}
            self._release(force=True)
            summary = self._snapshot()
            self.event_log.close()
            self.gate_state = None
            self._closed = True
        logger.info(
            "Session '%s' closed: %d utterances, %d prompts shown, %d insights",
            self.session_id, len(self._utterances),
            summary["gate_state"]["prompts_shown"], len(summary["insights"]),
        )
        return summary

    # ------------------------------------------------------------------
    #  Utterance stream
    # ------------------------------------------------------------------

    def ingest_utterance(self, utterance: Union[Utterance, Dict[str, Any]]) -> List[Utterance]:
        """
        Add one utterance to the stream.

        The utterance is held until the newest start time seen is more
        than the jitter window past its own start; released utterances
        are analysed in start-time order.

        Args:
            utterance: Utterance or dict of utterance fields

        Returns:
            Utterances released and processed by this call
        """
        with self._lock:
            self._ensure_open()
            if not isinstance(utterance, Utterance):
                try:
                    utterance = Utterance.model_validate(utterance)
                except ValidationError as exc:
                    logger.warning(
                        "Session '%s': dropping malformed utterance (%d errors)",
                        self.session_id, exc.error_count(),
                    )
                    return []

            self._pending.append(utterance)
            if self._latest_start is None or utterance.start_seconds > self._latest_start:
                self._latest_start = utterance.start_seconds
            return self._release(force=False)

    def ingest_many(self, utterances: Iterable[Union[Utterance, Dict[str, Any]]]) -> List[Utterance]:
        """
        Ingest a batch and flush it.

        The stateless analyzers run in parallel on a thread pool
        (``analysis_workers``); session trackers still see the batch in
        start-time order.

        Returns:
            All utterances processed, in order
        """
        with self._lock:
            self._ensure_open()
            for item in utterances:
                if not isinstance(item, Utterance):
                    try:
                        item = Utterance.model_validate(item)
                    except ValidationError as exc:
                        logger.warning(
                            "Session '%s': dropping malformed utterance (%d errors)",
                            self.session_id, exc.error_count(),
                        )
                        continue
                self._pending.append(item)

            batch = sorted(self._pending, key=lambda u: u.start_seconds)
            self._pending = []
            analyses = analyze_batch(
                batch,
                max_workers=self.config.analysis_workers,
                sentiment_analyzer=self.sentiment_analyzer,
                pii_detector=self.pii_detector,
            )
            for utterance, analysis in zip(batch, analyses):
                self._process(utterance, analysis)
            if batch:
                latest = max(u.start_seconds for u in batch)
                if self._latest_start is None or latest > self._latest_start:
                    self._latest_start = latest
            return batch

    def _release(self, force: bool) -> List[Utterance]:
        if not self._pending:
            return []
        if force:
            ready = self._pending
            self._pending = []
        else:
            latest = self._latest_start if self._latest_start is not None else 0.0
            ready, held = [], []
            for u in self._pending:
                if self.jitter_window <= 0 or latest - u.start_seconds > self.jitter_window:
                    ready.append(u)
                else:
                    held.append(u)
            if not ready:
                return []
            self._pending = held

        ready = sorted(ready, key=lambda u: u.start_seconds)
        for utterance in ready:
            self._process(utterance)
        return ready

    def _process(self, utterance: Utterance, analysis: Optional[UtteranceAnalysis] = None) -> None:
        if analysis is None:
            analysis = analyze_utterance(utterance, self.sentiment_analyzer, self.pii_detector)
        self._utterances.append(utterance)
        self._analyses[utterance.id] = analysis
        self._clock = max(self._clock, utterance.end_seconds)

        new_alerts: List[BiasAlert] = []
        try:
            classification = self.question_analyzer.classify(utterance)
        except Exception as exc:
            logger.warning("Question classification failed for %s: %s", utterance.id, exc)
            classification = None

        if classification is not None:
            try:
                before = {a.bias_type for a in self.bias_detector.alerts}
                alerts = self.bias_detector.analyze(self.question_analyzer.classifications)
                new_alerts = [a for a in alerts if a.bias_type not in before]
            except Exception as exc:
                logger.warning("Bias detection failed for %s: %s", utterance.id, exc)

        try:
            self.topic_tracker.observe_utterance(utterance)
        except Exception as exc:
            logger.warning("Topic tracking failed for %s: %s", utterance.id, exc)

        try:
            self.insight_flagger.evaluate(utterance, analysis.sentiment, new_alerts)
        except Exception as exc:
            logger.warning("Insight flagging failed for %s: %s", utterance.id, exc)

    # ------------------------------------------------------------------
    #  Coaching
    # ------------------------------------------------------------------

    def set_speech_activity(self, active: bool, at: Optional[float] = None) -> None:
        """
        Report voice activity for the interviewer.

        Args:
            active: True when speech starts, False when it ends
            at: Session time of the change (default: stream clock)
        """
        with self._lock:
            state = self._ensure_open()
            if active:
                self.policy.speech_started(state)
            else:
                self.policy.speech_ended(state, self._clock if at is None else at)

    def handle_event(
        self, payload: Any, now: Optional[float] = None
    ) -> Union[CoachingDecision, Optional[TopicState]]:
        """
        Route an inbound boundary event.

        Nudge candidates are evaluated by the policy engine; topic
        relevance updates the topic tracker; anything else is recorded
        as a NoCandidate decision.

        Args:
            payload: Raw or typed boundary event
            now: Session time of arrival (default: event timestamp or
                stream clock)

        Returns:
            The coaching decision, or the updated topic for relevance events
        """
        with self._lock:
            self._ensure_open()
            event = parse_event(payload)
            if isinstance(event, TopicRelevance):
                return self.topic_tracker.apply_relevance(event)
            if event is None:
                logger.debug("Session '%s': unrecognised event payload", self.session_id)
                return self.submit_candidate(payload, now)
            return self.submit_candidate(event, now)

    def submit_candidate(self, candidate: Any, now: Optional[float] = None) -> CoachingDecision:
        """
        Evaluate a candidate nudge against the gates.

        Args:
            candidate: NudgeCandidate, raw payload or None
            now: Session time (default: candidate timestamp, else stream clock)

        Returns:
            ShowDecision, SuppressDecision or NoCandidateDecision
        """
        with self._lock:
            state = self._ensure_open()
            if now is None:
                if isinstance(candidate, NudgeCandidate) and candidate.timestamp > 0:
                    now = candidate.timestamp
                else:
                    now = self._clock
            return self.policy.evaluate(state, candidate, now)

    def record_response(
        self, sequence: int, response: PromptResponse, now: Optional[float] = None
    ) -> None:
        """Record the interviewer's response to shown prompt ``sequence``."""
        with self._lock:
            state = self._ensure_open()
            self.policy.record_response(state, sequence, response, self._clock if now is None else now)

    def enable_coaching(self) -> None:
        with self._lock:
            self.policy.enable(self._ensure_open())

    def disable_coaching(self) -> None:
        with self._lock:
            self.policy.disable(self._ensure_open())

    # ------------------------------------------------------------------
    #  Topics
    # ------------------------------------------------------------------

    def set_topic_status(self, topic_id: str, status: TopicStatus) -> TopicState:
        """Pin a topic's status (raises UnknownTopicError for unknown ids)."""
        with self._lock:
            self._ensure_open()
            return self.topic_tracker.set_manual_status(topic_id, status, at=self._clock)

    def reset_topic(self, topic_id: str) -> TopicState:
        """Return a topic to untouched (raises UnknownTopicError for unknown ids)."""
        with self._lock:
            self._ensure_open()
            return self.topic_tracker.reset(topic_id)

    # ------------------------------------------------------------------
    #  Views
    # ------------------------------------------------------------------

    @property
    def utterances(self) -> List[Utterance]:
        """Processed utterances in start-time order."""
        return list(self._utterances)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def analysis_for(self, utterance_id: str) -> Optional[UtteranceAnalysis]:
        return self._analyses.get(utterance_id)

    def pii_detections(self) -> List[PIIDetection]:
        """PII spans proposed so far, in stream order."""
        return [d for u in self._utterances for d in self._analyses[u.id].pii]

    def sentiment(self) -> SessionSentiment:
        """Emotional arc over processed utterances."""
        results = [self._analyses[u.id].sentiment for u in self._utterances]
        return self.sentiment_analyzer.summarize_results(results)

    def talk_time(self) -> TalkTimeResult:
        return self.talk_time_analyzer.analyze(self._utterances)

    def talk_time_series(self) -> List[TalkTimeWindowPoint]:
        return self.talk_time_analyzer.rolling_window(self._utterances)

    def questions(self) -> List[QuestionClassification]:
        return self.question_analyzer.classifications

    def bias_alerts(self) -> List[BiasAlert]:
        return self.bias_detector.alerts

    def topics(self) -> List[TopicState]:
        return self.topic_tracker.snapshot()

    def insights(self) -> List[InsightFlag]:
        return self.insight_flagger.flags

    def snapshot(self) -> Dict[str, Any]:
        """
        JSON-compatible view of the session so far.

        Raises:
            SessionClosedError: If the session has been closed
        """
        with self._lock:
            self._ensure_open()
            return self._snapshot()

    def _snapshot(self) -> Dict[str, Any]:
        talk_time = self.talk_time()
        return {
            "session_id": self.session_id,
            "clock": self._clock,
            "utterance_count": len(self._utterances),
            "pending_count": len(self._pending),
            "gate_state": self.gate_state.to_dict() if self.gate_state else None,
            "talk_time": talk_time.to_dict(),
            "talk_time_summary": self.talk_time_analyzer.summarize(talk_time),
            "question_stats": self.question_analyzer.stats().to_dict(),
            "anti_patterns": [p.value for p in self.question_analyzer.current_anti_patterns()],
            "bias_alerts": [a.to_dict() for a in self.bias_detector.alerts],
            "topics": [t.model_dump(mode="json") for t in self.topic_tracker.snapshot()],
            "topic_coverage": self.topic_tracker.coverage(),
            "insights": [f.model_dump(mode="json") for f in self.insight_flagger.flags],
            "pii_count": len(self.pii_detections()),
            "decision_count": len(self.event_log.decisions()),
        }


class SessionRegistry:
    """
    Thread-safe map of session id to ``InterviewSession``.

    Example:
        >>> registry = SessionRegistry()
        >>> session = registry.create("s1")
        >>> "s1" in registry
        True
    """

    def __init__(self, config: Optional[CoachConfig] = None):
        self.config = config or CoachConfig()
        self._sessions: Dict[str, InterviewSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    @property
    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def create(self, session_id: str, **kwargs: Any) -> InterviewSession:
        """
        Start and register a new session.

        Keyword arguments are passed to ``InterviewSession``.

        Raises:
            InterviewCoachError: If the id is already registered
        """
        with self._lock:
            if session_id in self._sessions:
                raise InterviewCoachError(f"Session '{session_id}' already exists")
            kwargs.setdefault("config", self.config)
            session = InterviewSession(session_id, **kwargs)
            self._sessions[session_id] = session
            return session

    def get(self, session_id: str) -> Optional[InterviewSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def close(self, session_id: str) -> Dict[str, Any]:
        """
        Close and unregister a session.

        Returns:
            The session's final snapshot, or an empty dict if unknown
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return {}
        return session.close()

    def close_all(self) -> Dict[str, Dict[str, Any]]:
        """Close every registered session."""
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions = {}
        return {s.session_id: s.close() for s in sessions}


__all__ = ["InterviewSession", "SessionRegistry"]
