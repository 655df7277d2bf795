"""
Interview Coach

A silence-first coaching core for human-centred design research
interviews. Analyses the live utterance stream (sentiment, question
quality, bias, PII, talk time), tracks research topic coverage, flags
insights and decides when, if ever, a coaching prompt may be shown.
"""

__version__ = "0.1.0"
__author__ = "Interview Coach Team"

from interview_coach.config import CoachConfig
from interview_coach.session import InterviewSession, SessionRegistry

__all__ = ["CoachConfig", "InterviewSession", "SessionRegistry", "__version__"]
