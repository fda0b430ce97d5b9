"""
FocusLog CLI

Usage:
    focuslog analyze --input records.json [--now 2024-05-06T18:00:00] [--ai]
    focuslog serve [--host 127.0.0.1] [--port 8080] [--reload]

``analyze`` reads a JSON list of activity records (or {"records": [...]})
and prints metrics, focus score, patterns and the suggested routine.
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

from focuslog.config_models import load_config
from focuslog.insights.classification import ClassificationRules
from focuslog.insights.focus_metrics import calculate_focus_metrics
from focuslog.insights.focus_score import calculate_focus_score
from focuslog.insights.models import ActivityRecord
from focuslog.insights.pattern_analyzer import analyze_patterns
from focuslog.insights.routine_builder import build_routine
from focuslog.logging_config import setup_logging


def load_records(path: Path) -> list[ActivityRecord]:
    with open(path) as f:
        raw = json.load(f)
    if isinstance(raw, dict):
        raw = raw.get("records", [])
    if not isinstance(raw, list):
        raise ValueError("Expected a list of records")
    return [ActivityRecord.from_dict(item) for item in raw]


def analyze(records: list[ActivityRecord], now: datetime | None = None, use_ai: bool = False) -> dict[str, Any]:
    config = load_config()
    rules = ClassificationRules.from_config(config.classification)

    metrics = calculate_focus_metrics(records, rules, now=now)
    patterns = analyze_patterns(records, rules, config.patterns, now=now)
    routine = build_routine(patterns)
    ai_enriched = False

    if use_ai:
        from focuslog.ai.client import AnthropicTextGenerator
        from focuslog.ai.coach import run_routine_coach

        generator = AnthropicTextGenerator.from_config(config.ai)
        coached = asyncio.run(run_routine_coach(generator, patterns, routine))
        routine, ai_enriched = coached.routine, coached.ai_enriched

    return {
        "success": True,
        "record_count": len(records),
        "metrics": metrics.to_dict(),
        "focus_score": calculate_focus_score(metrics),
        "patterns": patterns.to_dict(),
        "routine": routine.to_dict(),
        "ai_enriched": ai_enriched,
    }


def serve(host: str | None, port: int | None, reload: bool) -> None:
    import uvicorn

    config = load_config()
    uvicorn.run(
        "focuslog.api.main:create_app",
        factory=True,
        host=host or config.api.host,
        port=port or config.api.port,
        reload=reload,
    )


def main():
    parser = argparse.ArgumentParser(
        prog="focuslog",
        description="FocusLog - Focus analytics and routine suggestions",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze", help="Analyze a JSON file of activity records")
    analyze_parser.add_argument("--input", required=True, type=Path, help="Path to records JSON")
    analyze_parser.add_argument("--now", help="Reference time for open records (ISO-8601)")
    analyze_parser.add_argument("--ai", action="store_true", help="Refine the routine with the language model")

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", help="Bind address (default from config)")
    serve_parser.add_argument("--port", type=int, help="Port (default from config)")
    serve_parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes")

    args = parser.parse_args()

    if args.command == "serve":
        serve(args.host, args.port, args.reload)
        return

    setup_logging(load_config().logging)
    try:
        records = load_records(args.input)
        now = datetime.fromisoformat(args.now) if args.now else None
    except (OSError, ValueError) as e:
        print(json.dumps({"success": False, "error": str(e)}))
        sys.exit(1)

    result = analyze(records, now=now, use_ai=args.ai)
    print(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    main()
