"""Command-line access to the analytics cache.

Usage::

    python -m feedback360.cli analyze feedback.json
    python -m feedback360.cli analyze feedback.json --collection-id cycle-7 --force
    python -m feedback360.cli analyze feedback.json --json
    python -m feedback360.cli invalidate cycle-7

The input file is JSON: either a list of feedback items, or an object with
``feedback`` plus optional ``collection_id``, ``employee_name`` and
``employee_role``.  Without ``--collection-id`` the id comes from the file,
then from the file name.

Uses the same settings and store as the API server, so a CLI run warms the
cache the server reads (with the SQLite backend).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from feedback360.models.analysis import AnalysisResult
from feedback360.models.feedback import FeedbackItem
from feedback360.services.aggregation_engine import display_score
from feedback360.utils.errors import ConfigurationError, Feedback360Error, InsightGenerationError
from feedback360.utils.logging import configure_logging


# ---------------------------------------------------------------------------
# Input / output helpers
# ---------------------------------------------------------------------------


def _load_input(path: Path) -> dict[str, Any]:
    """Read the feedback file into ``{"feedback": [...], ...}`` form."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(message=f"{path} is not valid JSON: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(message=f"Cannot read {path}: {exc}") from exc

    if isinstance(payload, list):
        payload = {"feedback": payload}
    if not isinstance(payload, dict) or not isinstance(payload.get("feedback", []), list):
        raise ConfigurationError(
            message=f"{path} must hold a list of feedback items or an object with 'feedback'"
        )
    try:
        payload["feedback"] = [
            FeedbackItem.model_validate(item) for item in payload.get("feedback", [])
        ]
    except ValidationError as exc:
        raise ConfigurationError(message=f"Invalid feedback item in {path}: {exc}") from exc
    return payload


def _format_text_output(result: AnalysisResult) -> str:
    lines: list[str] = [
        f"Collection: {result.collection_id}",
        f"Source:     {result.source.value}" + ("  (STALE)" if result.stale else ""),
    ]
    if result.computed_at is not None:
        lines.append(f"Computed:   {result.computed_at.isoformat()}")
    if result.responses_needed:
        lines.append(f"Needs {result.responses_needed} more response(s) before analysis.")

    for insight in result.insights:
        lines.append("")
        lines.append(f"== {insight.relationship.value} ({insight.response_count} responses) ==")
        for theme in insight.themes:
            lines.append(f"  - {theme}")
        for competency in insight.competencies:
            lines.append(
                f"  {competency.name}: {competency.score:g}/5 "
                f"[{competency.confidence.value}, {competency.evidence_count} evidence]"
            )

    if result.aggregate is not None and result.aggregate.competencies:
        lines.append("")
        lines.append("== aggregate ==")
        for competency in result.aggregate.competencies:
            reporters = ", ".join(rel.value for rel in competency.reporting_relationships)
            lines.append(
                f"  {competency.name}: {display_score(competency.weighted_score)} "
                f"({competency.confidence.value}; {reporters})"
            )
    return "\n".join(lines)


def _format_json_output(result: AnalysisResult) -> str:
    return json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _run_analyze(args: argparse.Namespace) -> int:
    # Deferred: building providers pulls in the SDKs.
    from feedback360.config.settings import Settings
    from feedback360.main import build_coordinator

    path = Path(args.file)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1

    payload = _load_input(path)
    collection_id = args.collection_id or payload.get("collection_id") or path.stem

    components = build_coordinator(Settings())
    await components["insight_store"].initialize()
    coordinator = components["coordinator"]

    print(
        f"Analyzing: {collection_id} ({len(payload['feedback'])} responses)",
        file=sys.stderr,
    )
    start = time.monotonic()
    result = await coordinator.analyze(
        str(collection_id),
        payload["feedback"],
        args.force,
        employee_name=str(payload.get("employee_name", "")),
        employee_role=str(payload.get("employee_role", "")),
    )
    print(f"Done in {time.monotonic() - start:.1f}s", file=sys.stderr)

    print(_format_json_output(result) if args.json_output else _format_text_output(result))
    return 0


async def _run_invalidate(args: argparse.Namespace) -> int:
    from feedback360.config.settings import Settings
    from feedback360.main import build_coordinator

    components = build_coordinator(Settings())
    await components["insight_store"].initialize()
    await components["coordinator"].invalidate(args.collection_id)
    print(f"Invalidated: {args.collection_id}", file=sys.stderr)
    return 0


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m feedback360.cli",
        description="Analyze 360-degree feedback through the analytics cache.",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log warnings and errors (implied by --json).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Serve or compute insights for a feedback file.")
    analyze.add_argument("file", type=str, help="JSON file with the feedback set.")
    analyze.add_argument(
        "--collection-id",
        type=str,
        default=None,
        help="Collection id (defaults to the file's collection_id, then its name).",
    )
    analyze.add_argument(
        "--force",
        action="store_true",
        help="Recompute even when the stored analysis is fresh.",
    )
    analyze.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output the result as JSON instead of formatted text.",
    )

    invalidate = subparsers.add_parser("invalidate", help="Delete a stored analysis.")
    invalidate.add_argument("collection_id", type=str, help="Collection id to invalidate.")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the command, and return the process exit code."""
    args = _build_parser().parse_args(argv)
    # stdout is reserved for results; JSON output also implies quiet.
    quiet = args.quiet or getattr(args, "json_output", False)
    configure_logging(log_level="WARNING" if quiet else "INFO", stream=sys.stderr)

    handler = _run_analyze if args.command == "analyze" else _run_invalidate
    try:
        return asyncio.run(handler(args))
    except InsightGenerationError as exc:
        hint = "retry later" if exc.retryable else "not retryable"
        print(f"Error: {exc} ({hint})", file=sys.stderr)
        return 2
    except Feedback360Error as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
