"""
Command-line interface for the Interview Coach core.

Usage:
    interview-coach replay session.yaml           # Replay a recorded session
    interview-coach replay session.yaml --enable  # ... with coaching switched on
    interview-coach replay session.yaml --json    # JSON output for automation
    interview-coach analyze transcript.yaml       # Post-session analysis
    interview-coach redact "Call me on 555-123-4567"

Transcript files are YAML or JSON. A replay file holds ``session_id``,
``topics`` and an ordered ``events`` list; each event has a ``type`` of
utterance, speech, candidate, function_call, relevance or response.
"""

import argparse
import json
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List

import yaml

from interview_coach.analysis.pii import PIIDetector
from interview_coach.config import get_config
from interview_coach.errors import ConfigError
from interview_coach.models.decisions import (
    NoCandidateDecision,
    PromptResponse,
    ShowDecision,
    SuppressDecision,
)
from interview_coach.session import InterviewSession

logger = logging.getLogger(__name__)

_DECISION_TYPES = (ShowDecision, SuppressDecision, NoCandidateDecision)


def _load_transcript(path: str) -> Dict[str, Any]:
    """
    Load a YAML or JSON transcript file.

    A bare list is treated as a list of events.

    Raises:
        SystemExit: If the file is missing or unreadable
    """
    file_path = Path(path)
    if not file_path.exists():
        print(f"ERROR: File not found: {path}")
        sys.exit(1)
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        print(f"ERROR: Could not parse {path}: {exc}")
        sys.exit(1)

    if data is None:
        return {"events": []}
    if isinstance(data, list):
        return {"events": data}
    if not isinstance(data, dict):
        print(f"ERROR: {path} must contain a mapping or a list of events")
        sys.exit(1)
    return data


def _setup(path: str):
    try:
        config = get_config(Path(path).resolve().parent)
    except ConfigError as exc:
        print(f"ERROR: {exc}")
        sys.exit(1)
    logging.basicConfig(
        level=getattr(logging, str(config.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return config


def _utterance_events(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    if data.get("utterances"):
        return [dict(u) for u in data["utterances"]]
    return [
        {k: v for k, v in e.items() if k != "type"}
        for e in data.get("events") or []
        if isinstance(e, dict) and e.get("type", "utterance") == "utterance"
    ]


def _format_decision(decision: Any) -> str:
    if isinstance(decision, ShowDecision):
        return f"[{decision.at:7.1f}s] SHOW #{decision.sequence}: {decision.text}"
    if isinstance(decision, SuppressDecision):
        return f"[{decision.at:7.1f}s] SUPPRESS ({decision.reason_code.value})"
    return f"[{decision.at:7.1f}s] NO CANDIDATE ({decision.detail})"


# ---------------------------------------------------------------------------
#  Commands
# ---------------------------------------------------------------------------

def _replay_event(session: InterviewSession, event: Dict[str, Any]) -> Any:
    event_type = event.get("type", "utterance")
    fields = {k: v for k, v in event.items() if k not in ("type", "at")}
    at = event.get("at")
    now = float(at) if at is not None else None

    if event_type == "utterance":
        session.ingest_utterance(fields)
        return None
    if event_type == "speech":
        session.set_speech_activity(bool(fields.get("active", False)), at=now)
        return None
    if event_type == "candidate":
        fields.setdefault("kind", "nudge_candidate")
        if now is not None:
            fields.setdefault("timestamp", now)
        return session.handle_event(fields, now=now)
    if event_type == "function_call":
        if now is not None:
            fields.setdefault("timestamp", now)
        return session.handle_event(fields, now=now)
    if event_type == "relevance":
        fields.setdefault("kind", "topic_relevance")
        if now is not None:
            fields.setdefault("timestamp", now)
        return session.handle_event(fields, now=now)
    if event_type == "response":
        try:
            response = PromptResponse(fields.get("response"))
        except ValueError:
            logger.warning("Skipping response event with unknown response %r", fields.get("response"))
            return None
        session.record_response(int(fields.get("sequence", 0)), response, now=now)
        return None

    logger.warning("Skipping unknown event type '%s'", event_type)
    return None


def cmd_replay(args):
    """Replay a recorded session through the coaching core."""
    data = _load_transcript(args.file)
    config = _setup(args.file)

    session = InterviewSession(
        str(data.get("session_id") or Path(args.file).stem),
        config=config,
        topics=data.get("topics") or [],
        enabled=True if args.enable else None,
    )

    decisions = []
    for event in data.get("events") or []:
        if not isinstance(event, dict):
            logger.warning("Skipping malformed event: %r", event)
            continue
        result = _replay_event(session, event)
        if isinstance(result, _DECISION_TYPES):
            decisions.append(result)

    summary = session.close()

    if args.output_json:
        print(json.dumps({
            "decisions": [d.model_dump(mode="json") for d in decisions],
            "summary": summary,
            "event_log": session.event_log.to_dicts(),
        }, indent=2, ensure_ascii=False))
        return

    print(f"Session: {summary['session_id']}")
    print(f"Decisions ({len(decisions)}):")
    for decision in decisions:
        print(f"  {_format_decision(decision)}")
    print()
    print(f"Prompts shown: {summary['gate_state']['prompts_shown']}")
    print(f"Talk time: {summary['talk_time_summary']}")
    print(f"Question quality: {summary['question_stats']['quality_score']:.0f}/100")
    print(f"Topic coverage: {summary['topic_coverage'] * 100:.0f}%")
    for topic in summary["topics"]:
        print(f"  - {topic['name']}: {topic['status']}")
    print(f"Insights flagged: {len(summary['insights'])}")
    for flag in summary["insights"]:
        print(f"  - [{flag['timestamp']:.1f}s] {flag['reason']}: \"{flag['quote']}\"")
    if summary["bias_alerts"]:
        print("Bias alerts:")
        for alert in summary["bias_alerts"]:
            print(f"  - {alert['bias_type']}: {alert['description']}")


def cmd_analyze(args):
    """Run post-session analysis on a transcript."""
    data = _load_transcript(args.file)
    config = _setup(args.file)

    session = InterviewSession(
        str(data.get("session_id") or Path(args.file).stem),
        config=config,
        topics=data.get("topics") or [],
        enabled=False,
    )
    session.ingest_many(_utterance_events(data))
    sentiment = session.sentiment()
    pii_counts = Counter(d.pii_type.value for d in session.pii_detections())
    summary = session.close()

    if args.output_json:
        print(json.dumps({
            "sentiment": sentiment.to_dict(),
            "talk_time": summary["talk_time"],
            "question_stats": summary["question_stats"],
            "bias_alerts": summary["bias_alerts"],
            "pii_counts": dict(pii_counts),
            "insights": summary["insights"],
        }, indent=2, ensure_ascii=False))
        return

    print(f"Utterances analyzed: {summary['utterance_count']}")
    if sentiment.arc is not None:
        print(f"Sentiment arc: {sentiment.arc.description}")
        print(f"Emotional shifts: {len(sentiment.shifts)}")
        for shift in sentiment.shifts:
            print(f"  - {shift.description}")
    print(f"Talk time: {summary['talk_time_summary']}")
    stats = summary["question_stats"]
    print(
        f"Questions: {stats['total_questions']} "
        f"({stats['open_ended_percentage']:.0f}% open-ended, "
        f"quality {stats['quality_score']:.0f}/100)"
    )
    if summary["bias_alerts"]:
        print("Bias alerts:")
        for alert in summary["bias_alerts"]:
            print(f"  - [{alert['severity']}] {alert['description']}")
            print(f"    Suggestion: {alert['suggestion']}")
    if pii_counts:
        print("PII detected (review before sharing):")
        for pii_type, count in sorted(pii_counts.items()):
            print(f"  - {pii_type}: {count}")
    else:
        print("PII detected: none")


def cmd_redact(args):
    """Redact PII from a piece of text."""
    detector = PIIDetector()
    if args.output_json:
        print(json.dumps({
            "redacted": detector.redact(args.text),
            "detections": [d.to_dict() for d in detector.detect(args.text)],
        }, indent=2, ensure_ascii=False))
        return
    print(detector.redact(args.text))


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="interview-coach",
        description="Interview Coach -- silence-first coaching core for research interviews",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # replay
    sub_replay = subparsers.add_parser("replay", help="Replay a recorded session")
    sub_replay.add_argument("file", help="YAML or JSON session file")
    sub_replay.add_argument(
        "--enable",
        action="store_true",
        default=False,
        help="Start with coaching enabled (default: first-session setting)",
    )
    sub_replay.add_argument(
        "--json",
        dest="output_json",
        action="store_true",
        default=False,
        help="Output result as JSON",
    )
    sub_replay.set_defaults(func=cmd_replay)

    # analyze
    sub_analyze = subparsers.add_parser("analyze", help="Run post-session analysis")
    sub_analyze.add_argument("file", help="YAML or JSON transcript file")
    sub_analyze.add_argument(
        "--json",
        dest="output_json",
        action="store_true",
        default=False,
        help="Output result as JSON",
    )
    sub_analyze.set_defaults(func=cmd_analyze)

    # redact
    sub_redact = subparsers.add_parser("redact", help="Redact PII from text")
    sub_redact.add_argument("text", help="Text to redact")
    sub_redact.add_argument(
        "--json",
        dest="output_json",
        action="store_true",
        default=False,
        help="Output redaction and detections as JSON",
    )
    sub_redact.set_defaults(func=cmd_redact)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    args.func(args)


if __name__ == "__main__":
    main()
