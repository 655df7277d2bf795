"""
Personally identifying information (PII) detection.

Proposes typed spans for review; never redacts silently. Detection is a
union of fixed-format regexes (email, phone, SSN, credit card), heuristic
name detection, heuristic company detection and street-address matching.
Each type carries a severity tier used to prioritise review.

Overlapping spans from different detectors are resolved by keeping the
higher-confidence span (then the longer one), so results never overlap.
"""

import logging
import re
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Pattern, Set, Tuple

logger = logging.getLogger(__name__)


class PIIType(str, Enum):
    """Kinds of personally identifying information."""
    EMAIL = "email"
    PHONE = "phone"
    SSN = "ssn"
    CREDIT_CARD = "credit_card"
    NAME = "name"
    COMPANY = "company"
    ADDRESS = "address"

    @property
    def severity(self) -> "PIISeverity":
        return PII_TYPE_SEVERITY[self]

    @property
    def redaction_label(self) -> str:
        return f"[{self.value.upper()}]"


class PIISeverity(int, Enum):
    """Review priority tier (higher is more sensitive)."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


PII_TYPE_SEVERITY = {
    PIIType.SSN: PIISeverity.HIGH,
    PIIType.CREDIT_CARD: PIISeverity.HIGH,
    PIIType.EMAIL: PIISeverity.MEDIUM,
    PIIType.PHONE: PIISeverity.MEDIUM,
    PIIType.NAME: PIISeverity.MEDIUM,
    PIIType.ADDRESS: PIISeverity.MEDIUM,
    PIIType.COMPANY: PIISeverity.LOW,
}


# ---------------------------------------------------------------------------
#  Patterns
# ---------------------------------------------------------------------------

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}")
PHONE_PATTERN = re.compile(r"\b(\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b")
SSN_PATTERN = re.compile(r"\b\d{3}-\d{2}-\d{4}\b")
CREDIT_CARD_PATTERN = re.compile(r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b")

_NAME = r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)"
INTRO_NAME_PATTERNS = [
    re.compile(r"\b(?:I'm|I am|[Mm]y name is|[Nn]ame's|[Tt]hey call me|called)\s+" + _NAME),
    re.compile(r"\b(?:[Tt]his is|[Mm]eet|[Ii]ntroducing)\s+" + _NAME),
]
MULTI_CAP_PATTERN = re.compile(r"(?<=[a-z,;:]\s)([A-Z][a-z]+(?:\s+[A-Z][a-z]+)+)")
COMMON_PROPER_PHRASES = {
    "United States", "New York", "San Francisco", "Los Angeles",
    "United Kingdom", "New Zealand", "South Africa",
}

_ORG = r"[A-Z][A-Za-z&.']+(?:\s+[A-Z][A-Za-z&.']+)*"
COMPANY_SUFFIX_PATTERN = re.compile(
    r"(" + _ORG + r")\s+(?:Inc\.?|Corp\.?|LLC|Ltd\.?|Company|Co\.?|Corporation"
    r"|Incorporated|Limited|Group|Holdings|Partners|Associates)"
)
COMPANY_CONTEXT_PATTERN = re.compile(
    r"\b(?:[Ww]ork(?:s|ed|ing)? (?:at|for)|[Ee]mployed (?:at|by))\s+(" + _ORG + r")"
)

ADDRESS_PATTERN = re.compile(
    r"\b\d{1,5}\s+[A-Z][a-zA-Z]+(?:\s+[A-Z][a-zA-Z]+)*\s+"
    r"(?:Street|St\.?|Avenue|Ave\.?|Boulevard|Blvd\.?|Drive|Dr\.?|Road|Rd\.?"
    r"|Lane|Ln\.?|Court|Ct\.?|Place|Pl\.?|Way|Circle|Cir\.?|Trail|Trl\.?)"
    r"(?:\s+(?:Apt\.?|Suite|Ste\.?|Unit|#)\s*\w+)?\b"
)

# Fixed-format detectors: (type, pattern, confidence).
FIXED_FORMAT_DETECTORS: List[Tuple[PIIType, Pattern, float]] = [
    (PIIType.EMAIL, EMAIL_PATTERN, 0.95),
    (PIIType.PHONE, PHONE_PATTERN, 0.9),
    (PIIType.SSN, SSN_PATTERN, 0.95),
    (PIIType.CREDIT_CARD, CREDIT_CARD_PATTERN, 0.9),
    (PIIType.ADDRESS, ADDRESS_PATTERN, 0.85),
]


@dataclass
class PIIDetection:
    """
    A proposed PII span.

    Attributes:
        pii_type: Kind of PII
        value: Matched text
        start: Start offset in the source text
        end: End offset (exclusive)
        confidence: Detector confidence (0.0-1.0)
        utterance_id: Source utterance, if known
    """

    pii_type: PIIType
    value: str
    start: int
    end: int
    confidence: float
    utterance_id: Optional[str] = None

    @property
    def severity(self) -> PIISeverity:
        return self.pii_type.severity

    def overlaps(self, other: "PIIDetection") -> bool:
        return self.start < other.end and other.start < self.end

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["pii_type"] = self.pii_type.value
        data["severity"] = self.severity.name.lower()
        return data


# ---------------------------------------------------------------------------
#  Detector
# ---------------------------------------------------------------------------

class PIIDetector:
    """
    Regex and heuristic PII detector.

    Example:
        >>> detector = PIIDetector()
        >>> [d.pii_type.value for d in detector.detect("Mail me at a@b.io")]
        ['email']
        >>> detector.redact("Mail me at a@b.io")
        'Mail me at [EMAIL]'
    """

    def __init__(self, enabled_types: Optional[Iterable[PIIType]] = None):
        """
        Initialize PII detector.

        Args:
            enabled_types: Restrict detection to these types (default: all)
        """
        self.enabled_types: Set[PIIType] = (
            set(enabled_types) if enabled_types is not None else set(PIIType)
        )

    def detect(self, text: str, utterance_id: Optional[str] = None) -> List[PIIDetection]:
        """
        Detect PII spans in text.

        Args:
            text: Text to scan
            utterance_id: Identifier to attach to each detection

        Returns:
            Non-overlapping detections sorted by start offset
        """
        if not text:
            return []

        candidates: List[PIIDetection] = []
        for pii_type, pattern, confidence in FIXED_FORMAT_DETECTORS:
            if pii_type in self.enabled_types:
                candidates.extend(
                    PIIDetection(pii_type, m.group(0), m.start(), m.end(), confidence, utterance_id)
                    for m in pattern.finditer(text)
                )
        if PIIType.NAME in self.enabled_types:
            candidates.extend(self._detect_names(text, utterance_id))
        if PIIType.COMPANY in self.enabled_types:
            candidates.extend(self._detect_companies(text, utterance_id))

        return _resolve_overlaps(candidates)

    def contains_pii(self, text: str) -> bool:
        """True if any enabled detector matches."""
        return bool(self.detect(text))

    def redact(self, text: str) -> str:
        """
        Replace each detection with its type label.

        Replacements are applied from the end of the text backwards so
        earlier offsets stay valid.

        Args:
            text: Text to redact

        Returns:
            Text with spans replaced by labels such as ``[EMAIL]``
        """
        result = text
        for detection in sorted(self.detect(text), key=lambda d: d.start, reverse=True):
            result = (
                result[:detection.start]
                + detection.pii_type.redaction_label
                + result[detection.end:]
            )
        return result

    def _detect_names(self, text: str, utterance_id: Optional[str]) -> List[PIIDetection]:
        detections: List[PIIDetection] = []
        for pattern in INTRO_NAME_PATTERNS:
            for match in pattern.finditer(text):
                name = match.group(1)
                confidence = 0.8 if " " in name else 0.7
                detections.append(PIIDetection(
                    PIIType.NAME, name, match.start(1), match.end(1), confidence, utterance_id
                ))

        captured = {(d.start, d.end) for d in detections}
        for match in MULTI_CAP_PATTERN.finditer(text):
            name = match.group(1)
            if name in COMMON_PROPER_PHRASES or (match.start(1), match.end(1)) in captured:
                continue
            detections.append(PIIDetection(
                PIIType.NAME, name, match.start(1), match.end(1), 0.6, utterance_id
            ))
        return detections

    def _detect_companies(self, text: str, utterance_id: Optional[str]) -> List[PIIDetection]:
        detections = [
            PIIDetection(PIIType.COMPANY, m.group(0), m.start(), m.end(), 0.7, utterance_id)
            for m in COMPANY_SUFFIX_PATTERN.finditer(text)
        ]
        captured = {(d.start, d.end) for d in detections}
        for match in COMPANY_CONTEXT_PATTERN.finditer(text):
            span = (match.start(1), match.end(1))
            if span in captured:
                continue
            detections.append(PIIDetection(
                PIIType.COMPANY, match.group(1), span[0], span[1], 0.5, utterance_id
            ))
        return detections


def _resolve_overlaps(candidates: List[PIIDetection]) -> List[PIIDetection]:
    """Keep the strongest of any overlapping spans, then order by offset."""
    ranked = sorted(
        candidates,
        key=lambda d: (-d.confidence, -(d.end - d.start), d.start),
    )
    kept: List[PIIDetection] = []
    for detection in ranked:
        if any(detection.overlaps(k) for k in kept):
            continue
        kept.append(detection)
    return sorted(kept, key=lambda d: d.start)


def highest_severity(detections: Iterable[PIIDetection]) -> Optional[PIISeverity]:
    """Most sensitive severity tier among detections, or None."""
    severities = [d.severity for d in detections]
    return max(severities) if severities else None


__all__ = [
    "PIIType",
    "PIISeverity",
    "PIIDetection",
    "PIIDetector",
    "highest_severity",
]
