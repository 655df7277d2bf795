"""
Topics module for research topic awareness.

Tracks soft, forward-only coverage of the research topics configured
for a session.
"""

from interview_coach.topics.tracker import TopicAwarenessTracker

__all__ = ["TopicAwarenessTracker"]
