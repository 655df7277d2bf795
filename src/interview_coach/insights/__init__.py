"""
Insights module for automatic flagging of notable participant moments.
"""

from interview_coach.insights.flagger import InsightAutoFlagger

__all__ = ["InsightAutoFlagger"]
