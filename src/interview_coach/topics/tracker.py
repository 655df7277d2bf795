"""
Research topic awareness tracking.

Tracks whether each configured research topic has been touched or
explored during a session. Automatic updates only ever move a topic
forward one step at a time (untouched -> touched -> explored); there is
no "complete" state and regression only happens through an explicit
manual reset.

Relevance arrives either from the external reasoning service as
``TopicRelevance`` events or from local keyword matching of utterances.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional

from interview_coach.errors import UnknownTopicError
from interview_coach.events import TopicRelevance
from interview_coach.models.entities import TopicState, TopicStatus, Utterance

logger = logging.getLogger(__name__)

TOUCH_THRESHOLD = 0.5
EXPLORE_THRESHOLD = 0.8

KEYWORD_MATCH_CONFIDENCE = 0.8
NAME_MATCH_CONFIDENCE = 0.7
# Local matches without depth evidence only ever touch a topic.
SHALLOW_RELEVANCE_CAP = 0.6
DEPTH_BONUS = 0.1
MIN_DEPTH_WORDS = 50

FOLLOW_UP_PHRASES = [
    "tell me more", "can you elaborate", "what do you mean", "could you explain",
    "how does that", "why do you", "what happens when",
    "can you give me an example", "walk me through",
]

DETAIL_PHRASES = [
    "for example", "specifically", "in particular", "what i mean is",
    "let me explain", "the reason is", "because",
]

_SLUG = re.compile(r"[^a-z0-9]+")
_WORD = re.compile(r"[a-z0-9']+")


def slugify(name: str) -> str:
    """Lowercase identifier for a topic name."""
    return _SLUG.sub("_", name.lower()).strip("_")


def _to_topic(item: Any) -> TopicState:
    if isinstance(item, TopicState):
        return item.model_copy(deep=True)
    if isinstance(item, str):
        return TopicState(topic_id=slugify(item), name=item)
    if isinstance(item, Mapping):
        name = str(item.get("name") or item.get("topic_id") or item.get("id") or "")
        topic_id = str(item.get("topic_id") or item.get("id") or slugify(name))
        keywords = [str(k) for k in (item.get("keywords") or [])]
        return TopicState(topic_id=topic_id, name=name or topic_id, keywords=keywords)
    raise TypeError(f"Cannot build a topic from {type(item).__name__}")


def has_depth_evidence(text: str, word_count: Optional[int] = None) -> bool:
    """
    True if the text shows the topic being explored in depth.

    Depth evidence is a follow-up prompt, a detail phrase or a long
    (50+ word) answer.
    """
    lowered = text.lower()
    if word_count is None:
        word_count = len(text.split())
    if word_count >= MIN_DEPTH_WORDS:
        return True
    return any(p in lowered for p in FOLLOW_UP_PHRASES) or any(
        p in lowered for p in DETAIL_PHRASES
    )


def match_confidence(topic: TopicState, text: str) -> float:
    """
    Local match confidence of a topic against utterance text.

    Keyword substring matches score 0.8 and topic-name words (longer
    than two characters) score 0.7; the best match wins.
    """
    lowered = text.lower()
    confidence = 0.0
    if any(k.lower() in lowered for k in topic.keywords if k.strip()):
        confidence = KEYWORD_MATCH_CONFIDENCE
    words = set(_WORD.findall(lowered))
    name_words = [w for w in _WORD.findall(topic.name.lower()) if len(w) > 2]
    if any(w in words for w in name_words):
        confidence = max(confidence, NAME_MATCH_CONFIDENCE)
    return confidence


class TopicAwarenessTracker:
    """
    Per-session topic awareness.

    Example:
        >>> tracker = TopicAwarenessTracker([{"id": "pricing", "name": "Pricing"}])
        >>> _ = tracker.apply_relevance(TopicRelevance(topic_id="pricing", relevance=0.9))
        >>> tracker.get("pricing").status
        <TopicStatus.TOUCHED: 'touched'>
    """

    def __init__(self, topics: Iterable[Any] = ()):
        """
        Initialize tracker.

        Args:
            topics: Topic definitions as TopicState objects, names, or
                dicts with ``id``/``topic_id``, ``name`` and ``keywords``
        """
        self._topics: Dict[str, TopicState] = {}
        for item in topics:
            self.add_topic(item)

    def add_topic(self, topic: Any) -> TopicState:
        """Register a topic definition; an existing id is replaced."""
        state = _to_topic(topic)
        self._topics[state.topic_id] = state
        return state.model_copy(deep=True)

    @property
    def topic_ids(self) -> List[str]:
        return list(self._topics)

    def _require(self, topic_id: str) -> TopicState:
        if topic_id not in self._topics:
            raise UnknownTopicError(topic_id)
        return self._topics[topic_id]

    def get(self, topic_id: str) -> TopicState:
        """
        Copy of one topic's state.

        Raises:
            UnknownTopicError: If the topic is not configured
        """
        return self._require(topic_id).model_copy(deep=True)

    # ------------------------------------------------------------------
    #  Automatic updates
    # ------------------------------------------------------------------

    def apply_relevance(self, event: TopicRelevance) -> Optional[TopicState]:
        """
        Apply one relevance judgment.

        Relevance >= 0.5 moves an untouched topic to touched; relevance
        >= 0.8 moves a touched topic to explored. One event advances at
        most one step. Pinned topics and unknown topic ids are ignored.

        Args:
            event: Relevance judgment

        Returns:
            Copy of the updated topic, or None if nothing was applied
        """
        topic = self._topics.get(event.topic_id)
        if topic is None:
            logger.debug("Relevance for unknown topic '%s' ignored", event.topic_id)
            return None
        if topic.is_manual_override:
            logger.debug("Topic '%s' is pinned; relevance ignored", event.topic_id)
            return None
        if event.relevance < TOUCH_THRESHOLD:
            return None

        previous = topic.status
        if previous == TopicStatus.UNTOUCHED:
            topic.status = TopicStatus.TOUCHED
        elif previous == TopicStatus.TOUCHED and event.relevance >= EXPLORE_THRESHOLD:
            topic.status = TopicStatus.EXPLORED

        topic.mention_count += 1
        topic.confidence = max(topic.confidence, event.relevance)
        topic.last_updated = event.timestamp
        if event.utterance_id and event.utterance_id not in topic.related_utterance_ids:
            topic.related_utterance_ids.append(event.utterance_id)

        if topic.status != previous:
            logger.info("Topic '%s': %s -> %s", topic.topic_id, previous.value, topic.status.value)
        return topic.model_copy(deep=True)

    def observe_utterance(self, utterance: Utterance) -> List[TopicState]:
        """
        Derive relevance for every topic from one utterance.

        Matches without depth evidence are capped at 0.6 so they can only
        touch a topic; with depth evidence the match confidence gets a
        0.1 bonus, which is enough to explore an already touched topic.

        Args:
            utterance: Utterance to match against topics

        Returns:
            Copies of the topics that were updated
        """
        if not utterance.text.strip():
            return []

        deep = has_depth_evidence(utterance.text, utterance.word_count)
        updated: List[TopicState] = []
        for topic_id, topic in self._topics.items():
            confidence = match_confidence(topic, utterance.text)
            if confidence <= 0.0:
                continue
            if deep:
                relevance = min(1.0, confidence + DEPTH_BONUS)
            else:
                relevance = min(confidence, SHALLOW_RELEVANCE_CAP)
            result = self.apply_relevance(TopicRelevance(
                topic_id=topic_id,
                utterance_id=utterance.id,
                relevance=relevance,
                timestamp=utterance.start_seconds,
            ))
            if result is not None:
                updated.append(result)
        return updated

    # ------------------------------------------------------------------
    #  Manual control
    # ------------------------------------------------------------------

    def set_manual_status(
        self, topic_id: str, status: TopicStatus, at: Optional[float] = None
    ) -> TopicState:
        """
        Pin a topic to a status chosen by the interviewer.

        Raises:
            UnknownTopicError: If the topic is not configured
        """
        topic = self._require(topic_id)
        topic.status = TopicStatus(status)
        topic.is_manual_override = True
        if at is not None:
            topic.last_updated = at
        logger.info("Topic '%s' pinned to %s", topic_id, topic.status.value)
        return topic.model_copy(deep=True)

    def reset(self, topic_id: str) -> TopicState:
        """
        Return a topic to untouched and unpin it.

        Raises:
            UnknownTopicError: If the topic is not configured
        """
        topic = self._require(topic_id)
        topic.status = TopicStatus.UNTOUCHED
        topic.is_manual_override = False
        topic.mention_count = 0
        topic.confidence = 0.0
        topic.last_updated = None
        topic.related_utterance_ids = []
        logger.info("Topic '%s' reset", topic_id)
        return topic.model_copy(deep=True)

    def clear_override(self, topic_id: str) -> TopicState:
        """
        Unpin a topic, keeping its current status.

        Raises:
            UnknownTopicError: If the topic is not configured
        """
        topic = self._require(topic_id)
        topic.is_manual_override = False
        return topic.model_copy(deep=True)

    # ------------------------------------------------------------------
    #  Views
    # ------------------------------------------------------------------

    def coverage(self) -> float:
        """Mean topic progress (untouched 0, touched 0.5, explored 1.0)."""
        if not self._topics:
            return 0.0
        return sum(t.status.progress for t in self._topics.values()) / len(self._topics)

    def uncovered(self) -> List[str]:
        """Ids of topics that are still untouched."""
        return [t.topic_id for t in self._topics.values() if t.status == TopicStatus.UNTOUCHED]

    def snapshot(self) -> List[TopicState]:
        """Copies of all topic states in configuration order."""
        return [t.model_copy(deep=True) for t in self._topics.values()]


__all__ = [
    "TopicAwarenessTracker",
    "has_depth_evidence",
    "match_confidence",
    "slugify",
]
