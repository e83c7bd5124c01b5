"""FastMCP server bootstrap for Worktrail."""

import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from fastmcp import Context, FastMCP

from . import __version__
from .activity import (
    ActivityLogWriter,
    ActivityObserver,
    ContextOptimizer,
    DirectoryTracker,
    LogRotator,
    RotationScheduler,
    WorkflowAnalyzer,
    bookkeeping_prefixes,
)
from .config import WorktrailSettings, get_settings
from .patterns import BUILTIN_RULES, PatternLoadError, PatternRuleLoader
from .tools import register_tools


def configure_logging(level: str) -> None:
    """Configure root logging for the Worktrail server."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def _run_sync(coro):
    """Execute an async coroutine on a dedicated event loop."""

    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def create_server(
    settings: Optional[WorktrailSettings] = None,
    *,
    clock: Callable[[], datetime] | None = None,
    tracker: DirectoryTracker | None = None,
) -> FastMCP:
    """Instantiate the FastMCP server with the activity pipeline wired in."""

    settings = settings or get_settings()
    clock = clock or (lambda: datetime.now(timezone.utc))
    log_path = settings.activity_log_path

    pattern_loader = PatternRuleLoader(settings.pattern_paths)
    pattern_metadata: dict[str, Any] = {
        "search_paths": [str(path) for path in pattern_loader.search_paths],
        "error": None,
    }
    try:
        rules = pattern_loader.rules()
    except PatternLoadError as exc:
        pattern_metadata["error"] = str(exc)
        rules = list(BUILTIN_RULES)
        logging.getLogger(__name__).warning(
            "Falling back to built-in pattern rules", extra={"error": str(exc)}
        )
    pattern_metadata["rules"] = [rule.name for rule in rules]

    rotator = LogRotator(
        max_bytes=settings.max_log_bytes,
        max_entries=settings.max_log_entries,
        max_backups=settings.max_backups,
        clock=clock,
    )
    scheduler = RotationScheduler(
        rotator,
        log_path,
        interval=timedelta(hours=settings.rotation_interval_hours),
        clock=clock,
    )
    analyzer = WorkflowAnalyzer(
        rules=rules,
        gap_ms=settings.sequence_gap_ms,
        max_length=settings.max_sequence_length,
    )
    optimizer = ContextOptimizer(
        max_entries=settings.max_log_entries,
        top_n=settings.top_activities,
        analyzer=analyzer,
    )
    observer = ActivityObserver(
        ActivityLogWriter(
            log_path,
            self_command_prefixes=bookkeeping_prefixes(log_path, settings.workspace_path),
        ),
        workspace_path=settings.workspace_path,
        tracker=tracker,
        scheduler=scheduler,
        clock=clock,
    )

    startup_rotation = _run_sync(scheduler.tick())

    server = FastMCP(
        name="Worktrail MCP",
        version=__version__,
        instructions=(
            "Worktrail records terminal commands, file operations, tasks and debug sessions "
            "in a bounded workspace activity log. Use optimize_context and analyze_workflow "
            "to obtain compact views of recent developer activity."
        ),
    )

    handles = register_tools(
        server,
        settings=settings,
        observer=observer,
        rotator=rotator,
        optimizer=optimizer,
    )

    async def status_snapshot(request_id: str | None = None) -> dict[str, Any]:
        backups = await rotator.list_backups(log_path)
        size = log_path.stat().st_size if log_path.exists() else 0
        return {
            "timestamp": clock().isoformat(),
            "server_version": __version__,
            "log_level": settings.log_level,
            "workspace": str(settings.workspace_path),
            "activity_log": {
                "path": str(log_path),
                "exists": log_path.exists(),
                "size": size,
                "max_bytes": settings.max_log_bytes,
                "max_entries": settings.max_log_entries,
            },
            "backups": [str(path) for _, path in backups],
            "rotation": {
                "runs": scheduler.runs,
                "last_run": scheduler.last_run.isoformat() if scheduler.last_run else None,
                "interval_hours": settings.rotation_interval_hours,
                "startup": startup_rotation.action if startup_rotation else None,
            },
            "patterns": pattern_metadata,
            "tracked_terminals": observer.tracker.store.snapshot(),
            "recent_results": handles.last_results[-5:],
            "request_id": request_id,
        }

    @server.resource(
        "resource://worktrail/status",
        name="worktrail_status",
        title="Worktrail MCP Status",
        description="Provides the current runtime status for the Worktrail MCP server.",
        mime_type="application/json",
        tags={"status", "health"},
    )
    async def status_resource(context: Context) -> str:
        """Return a JSON string summarizing basic runtime state."""

        payload = await status_snapshot(getattr(context, "request_id", None))
        return json.dumps(payload)

    setattr(server, "observer", observer)
    setattr(server, "rotator", rotator)
    setattr(server, "scheduler", scheduler)
    setattr(server, "optimizer", optimizer)
    setattr(server, "pattern_metadata", pattern_metadata)
    setattr(server, "startup_rotation", startup_rotation)
    setattr(server, "tool_handles", handles)
    setattr(server, "status_snapshot", status_snapshot)
    return server


def main() -> None:
    """Entry point for running the Worktrail MCP server via CLI."""

    settings = get_settings()
    configure_logging(settings.log_level)

    server = create_server(settings)
    logging.getLogger(__name__).info(
        "Launching Worktrail MCP server",
        extra={
            "version": __version__,
            "log_level": settings.log_level,
            "activity_log": str(settings.activity_log_path),
        },
    )
    server.run()


if __name__ == "__main__":
    main()
