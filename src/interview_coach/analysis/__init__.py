"""
Analysis module for utterance-level and session-level interview signals.

Provides sentiment scoring, question classification, bias detection,
PII detection, talk-time balance and parallel batch analysis.
"""

from interview_coach.analysis.bias import BiasAlert, BiasDetector
from interview_coach.analysis.pii import PIIDetection, PIIDetector
from interview_coach.analysis.pipeline import UtteranceAnalysis, analyze_batch
from interview_coach.analysis.questions import QuestionClassification, QuestionTypeAnalyzer
from interview_coach.analysis.sentiment import SentimentAnalyzer, SentimentResult
from interview_coach.analysis.talk_time import TalkTimeAnalyzer, TalkTimeResult

__all__ = [
    "BiasAlert",
    "BiasDetector",
    "PIIDetection",
    "PIIDetector",
    "UtteranceAnalysis",
    "analyze_batch",
    "QuestionClassification",
    "QuestionTypeAnalyzer",
    "SentimentAnalyzer",
    "SentimentResult",
    "TalkTimeAnalyzer",
    "TalkTimeResult",
]
