"""Worktrail diagnostics CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
from dataclasses import asdict

from worktrail_mcp.activity import (
    ContextOptimizer,
    LogRotator,
    WorkflowAnalyzer,
    render_workflow_summary,
)
from worktrail_mcp.config import WorktrailSettings
from worktrail_mcp.patterns import PatternLoadError, PatternRuleLoader


def load_settings() -> WorktrailSettings:
    return WorktrailSettings()


def build_optimizer(settings: WorktrailSettings) -> ContextOptimizer:
    try:
        rules = PatternRuleLoader(settings.pattern_paths).rules()
    except PatternLoadError as exc:
        print(f"Pattern rules unavailable: {exc}")
        raise SystemExit(1)
    analyzer = WorkflowAnalyzer(
        rules=rules,
        gap_ms=settings.sequence_gap_ms,
        max_length=settings.max_sequence_length,
    )
    return ContextOptimizer(
        max_entries=settings.max_log_entries,
        top_n=settings.top_activities,
        analyzer=analyzer,
    )


def build_rotator(settings: WorktrailSettings) -> LogRotator:
    return LogRotator(
        max_bytes=settings.max_log_bytes,
        max_entries=settings.max_log_entries,
        max_backups=settings.max_backups,
    )


def cmd_summary(args: argparse.Namespace) -> None:
    settings = load_settings()
    payload = asyncio.run(build_optimizer(settings).optimize(settings.activity_log_path))
    if args.json:
        top = payload.top_activities[: args.limit] if args.limit else payload.top_activities
        print(
            json.dumps(
                {
                    "total_entries": payload.total_entries,
                    "top_activities": [{"activity": a, "count": c} for a, c in top],
                },
                indent=2,
            )
        )
    else:
        print(payload.summary)


def cmd_workflow(args: argparse.Namespace) -> None:
    settings = load_settings()
    analysis = asyncio.run(build_optimizer(settings).analyze_recent(settings.activity_log_path))
    if args.json:
        print(json.dumps(analysis.to_dict(), indent=2))
    else:
        print(render_workflow_summary(analysis))


def cmd_optimize(args: argparse.Namespace) -> None:
    settings = load_settings()
    payload = asyncio.run(build_optimizer(settings).optimize(settings.activity_log_path))
    print(json.dumps(payload.to_dict(), indent=2))


def cmd_rotate(args: argparse.Namespace) -> None:
    settings = load_settings()
    result = asyncio.run(build_rotator(settings).rotate_if_needed(settings.activity_log_path))
    print(json.dumps(asdict(result), indent=2))
    if not result.ok:
        raise SystemExit(1)


def cmd_backups(args: argparse.Namespace) -> None:
    settings = load_settings()
    backups = asyncio.run(build_rotator(settings).list_backups(settings.activity_log_path))
    payload = [{"timestamp_ms": millis, "path": str(path)} for millis, path in backups]
    if args.limit is not None and args.limit > 0:
        payload = payload[: args.limit]
    print(json.dumps(payload, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Worktrail activity log diagnostics")
    sub = parser.add_subparsers(dest="cmd")

    p_summary = sub.add_parser("summary", help="Show frequency-ranked activities")
    p_summary.add_argument("--json", action="store_true", help="Output JSON")
    p_summary.add_argument("--limit", type=int, default=None)
    p_summary.set_defaults(func=cmd_summary)

    p_workflow = sub.add_parser("workflow", help="Show reconstructed command sequences")
    p_workflow.add_argument("--json", action="store_true", help="Output JSON")
    p_workflow.set_defaults(func=cmd_workflow)

    p_optimize = sub.add_parser("optimize", help="Print the optimized context payload")
    p_optimize.set_defaults(func=cmd_optimize)

    p_rotate = sub.add_parser("rotate", help="Rotate the activity log if it exceeds its caps")
    p_rotate.set_defaults(func=cmd_rotate)

    p_backups = sub.add_parser("backups", help="List rotation backups, newest first")
    p_backups.add_argument(
        "--limit",
        type=int,
        default=None,
        help="If provided, show only the newest N backups",
    )
    p_backups.set_defaults(func=cmd_backups)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
