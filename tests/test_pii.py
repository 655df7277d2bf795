"""
Tests for PII detection and redaction.

Covers:
- Fixed-format detectors (email, phone, SSN, credit card, address)
- Heuristic name and company detection
- Overlap resolution and ordering
- Type filtering, severity tiers and redaction labels
"""

import pytest

from interview_coach.analysis.pii import (
    PIIDetection,
    PIIDetector,
    PIISeverity,
    PIIType,
    highest_severity,
)


@pytest.fixture
def detector():
    return PIIDetector()


CONTACT_TEXT = "Contact john.doe@example.com or call 555-123-4567"
INTRO_TEXT = "Hi, my name is Sarah Connor and I work at Acme Corp."


class TestFixedFormats:
    def test_email_and_phone(self, detector):
        detections = detector.detect(CONTACT_TEXT, utterance_id="u9")

        assert [d.pii_type for d in detections] == [PIIType.EMAIL, PIIType.PHONE]
        email, phone = detections
        assert email.value == "john.doe@example.com"
        assert email.confidence == pytest.approx(0.95)
        assert phone.value == "555-123-4567"
        assert phone.confidence == pytest.approx(0.9)
        assert all(d.utterance_id == "u9" for d in detections)
        assert not email.overlaps(phone)

    def test_ssn(self, detector):
        detections = detector.detect("My SSN is 123-45-6789")
        assert [(d.pii_type, d.value) for d in detections] == [(PIIType.SSN, "123-45-6789")]

    def test_credit_card(self, detector):
        detections = detector.detect("Card number 4111 1111 1111 1111")
        assert [d.pii_type for d in detections] == [PIIType.CREDIT_CARD]
        assert detections[0].value == "4111 1111 1111 1111"

    def test_address(self, detector):
        detections = detector.detect("I live at 42 Maple Street near the park")
        assert [(d.pii_type, d.value) for d in detections] == [
            (PIIType.ADDRESS, "42 Maple Street")
        ]

    @pytest.mark.parametrize("text", ["", "The onboarding flow felt slow."])
    def test_clean_text(self, detector, text):
        assert detector.detect(text) == []
        assert detector.contains_pii(text) is False


class TestHeuristics:
    def test_name_and_company(self, detector):
        detections = detector.detect(INTRO_TEXT)

        assert [(d.pii_type, d.value) for d in detections] == [
            (PIIType.NAME, "Sarah Connor"),
            (PIIType.COMPANY, "Acme Corp."),
        ]
        assert detections[0].confidence == pytest.approx(0.8)

    def test_single_word_intro(self, detector):
        detections = detector.detect("Hello, I'm Priya")
        assert [(d.pii_type, d.value) for d in detections] == [(PIIType.NAME, "Priya")]
        assert detections[0].confidence == pytest.approx(0.7)

    @pytest.mark.parametrize("text", [
        "He works for Initech these days",
        "I worked at Initech for years",
        "She was employed by Initech",
    ])
    def test_company_from_work_context(self, detector, text):
        detections = detector.detect(text)
        assert [(d.pii_type, d.value) for d in detections] == [(PIIType.COMPANY, "Initech")]
        assert detections[0].confidence == pytest.approx(0.5)

    @pytest.mark.parametrize("text", [
        "I was at Denver last week",
        "We met at Starbucks",
        "She joined Globex in May",
    ])
    def test_other_context_is_not_a_company(self, detector, text):
        assert detector.detect(text) == []

    def test_common_place_names_are_not_names(self, detector):
        assert detector.detect("I moved to New York last year") == []


class TestResolutionAndRedaction:
    def test_results_never_overlap(self, detector):
        detections = detector.detect(INTRO_TEXT + " " + CONTACT_TEXT)
        for i, a in enumerate(detections):
            for b in detections[i + 1:]:
                assert not a.overlaps(b)
        assert [d.start for d in detections] == sorted(d.start for d in detections)

    def test_redact(self, detector):
        assert detector.redact(CONTACT_TEXT) == "Contact [EMAIL] or call [PHONE]"
        assert detector.redact(INTRO_TEXT) == "Hi, my name is [NAME] and I work at [COMPANY]"

    def test_redact_without_pii_is_identity(self, detector):
        assert detector.redact("Nothing to see here.") == "Nothing to see here."

    def test_enabled_types_filter(self):
        detections = PIIDetector(enabled_types=[PIIType.EMAIL]).detect(CONTACT_TEXT)
        assert [d.pii_type for d in detections] == [PIIType.EMAIL]

    def test_severity(self, detector):
        assert PIIType.SSN.severity == PIISeverity.HIGH
        assert PIIType.COMPANY.severity == PIISeverity.LOW
        detections = detector.detect("My SSN is 123-45-6789, mail a@b.io")
        assert highest_severity(detections) == PIISeverity.HIGH
        assert highest_severity([]) is None

    def test_to_dict(self):
        detection = PIIDetection(PIIType.PHONE, "555-123-4567", 0, 12, 0.9, "u1")
        data = detection.to_dict()
        assert data["pii_type"] == "phone"
        assert data["severity"] == "medium"
        assert data["utterance_id"] == "u1"
