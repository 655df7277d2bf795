"""
Exception types for the Interview Coach core.

Stream data (utterances, candidates, relevance judgments) never raises:
malformed values are clamped or degraded to a neutral result. These
exceptions are reserved for caller misuse of the session API.
"""


class InterviewCoachError(Exception):
    """Base class for all Interview Coach errors."""


class SessionClosedError(InterviewCoachError):
    """Raised when a session is used after ``close()``."""

    def __init__(self, session_id: str):
        super().__init__(f"Session '{session_id}' has already been closed")
        self.session_id = session_id


class UnknownTopicError(InterviewCoachError, KeyError):
    """Raised when a manual topic operation names an unconfigured topic."""

    def __init__(self, topic_id: str):
        super().__init__(f"Unknown topic '{topic_id}'")
        self.topic_id = topic_id

    def __str__(self) -> str:
        return self.args[0]


class ConfigError(InterviewCoachError):
    """Raised when a configuration file exists but cannot be read."""


__all__ = [
    "InterviewCoachError",
    "SessionClosedError",
    "UnknownTopicError",
    "ConfigError",
]
