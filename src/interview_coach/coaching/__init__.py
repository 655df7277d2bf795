"""
Coaching module for the silence-first prompt policy.

Provides the gate pipeline that decides whether candidate prompts are
shown, its thresholds and presets, the audit event log and adaptive
thresholds derived from prompt responses.
"""

from interview_coach.coaching.adaptation import ResponseStats, adapt_thresholds
from interview_coach.coaching.event_log import EventLog, EventLogEntry
from interview_coach.coaching.policy import CoachingPolicyEngine
from interview_coach.coaching.thresholds import CoachingLevel, CoachingThresholds, CulturalPreset

__all__ = [
    "ResponseStats",
    "adapt_thresholds",
    "EventLog",
    "EventLogEntry",
    "CoachingPolicyEngine",
    "CoachingLevel",
    "CoachingThresholds",
    "CulturalPreset",
]
