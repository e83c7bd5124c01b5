"""Tool registration for Worktrail MCP."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from fastmcp import Context, FastMCP

from ..activity import (
    ActivityObserver,
    ContextOptimizer,
    HostNotification,
    LogRotator,
    OperationResult,
    render_workflow_summary,
)
from ..activity.observer import TERMINAL_CLOSE
from ..config import WorktrailSettings
from ..suggestions import fallback_suggestions


@dataclass(slots=True)
class ToolHandles:
    record_activity: Any
    close_terminal: Any
    mark_tool_command: Any
    summarize_activity: Any
    analyze_workflow: Any
    optimize_context: Any
    rotate_log: Any
    suggest_buttons: Any
    last_results: list[dict[str, Any]]


def _result_payload(result: OperationResult) -> dict[str, Any]:
    return asdict(result)


def register_tools(
    server: FastMCP,
    *,
    settings: WorktrailSettings,
    observer: ActivityObserver,
    rotator: LogRotator,
    optimizer: ContextOptimizer,
) -> ToolHandles:
    """Register Worktrail's MCP tools on the server."""

    log_path = settings.activity_log_path
    last_results: list[dict[str, Any]] = []

    def _remember(result: OperationResult) -> dict[str, Any]:
        payload = _result_payload(result)
        last_results.append(payload)
        del last_results[:-20]
        return payload

    async def _record_activity(
        event_kind: str,
        detail: str = "",
        terminal_id: str | None = None,
        terminal_name: str | None = None,
        shell: str | None = None,
        execution_cwd: str | None = None,
        exit_code: int | None = None,
        task_name: str | None = None,
        task_source: str | None = None,
        debug_session_name: str | None = None,
        debug_session_type: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Record one host notification in the activity log."""

        notification = HostNotification(
            event_kind=event_kind,
            detail=detail,
            terminal_id=terminal_id,
            terminal_name=terminal_name,
            shell=shell,
            execution_cwd=execution_cwd,
            exit_code=exit_code,
            task_name=task_name,
            task_source=task_source,
            debug_session_name=debug_session_name,
            debug_session_type=debug_session_type,
        )
        result = await observer.handle(notification)
        _emit_log(
            context,
            "debug" if result.ok else "warning",
            "Recorded activity",
            extra={"event_kind": event_kind, "action": result.action, "ok": result.ok},
        )
        return _remember(result)

    async def _close_terminal(terminal_id: str, context: Context | None = None) -> dict[str, Any]:
        """Forget the tracked working directory of a closed terminal."""

        result = await observer.handle(HostNotification(event_kind=TERMINAL_CLOSE, terminal_id=terminal_id))
        _emit_log(context, "debug", "Closed terminal", extra={"terminal_id": terminal_id})
        return _remember(result)

    def _mark_tool_command(command: str, context: Context | None = None) -> dict[str, Any]:
        """Exclude the next run of a tool-issued command from the activity log."""

        observer.mark_tool_executed(command)
        _emit_log(context, "debug", "Marked tool command", extra={"command": command})
        return {"command": command.strip(), "pending": sorted(observer.pending_tool_commands())}

    async def _summarize_activity(limit: int = 10, context: Context | None = None) -> dict[str, Any]:
        """Return the most frequent activities in the log."""

        payload = await optimizer.optimize(log_path)
        top = payload.top_activities[: max(limit, 0)]
        _emit_log(
            context,
            "debug",
            "Summarized activity",
            extra={"total_entries": payload.total_entries, "returned": len(top)},
        )
        return {
            "total_entries": payload.total_entries,
            "top_activities": [{"activity": activity, "count": count} for activity, count in top],
        }

    async def _analyze_workflow(context: Context | None = None) -> dict[str, Any]:
        """Reconstruct recent command sequences, directory usage and pattern hints."""

        analysis = await optimizer.analyze_recent(log_path)
        _emit_log(
            context,
            "debug",
            "Analyzed workflow",
            extra={"sequences": len(analysis.sequences), "patterns": analysis.detected_patterns},
        )
        payload = analysis.to_dict()
        payload["summary"] = render_workflow_summary(analysis)
        return payload

    async def _optimize_context(context: Context | None = None) -> dict[str, Any]:
        """Return the frequency summary plus the ordered window of recent log lines."""

        payload = await optimizer.optimize(log_path)
        _emit_log(
            context,
            "info",
            "Optimized activity context",
            extra={"total_entries": payload.total_entries, "recent": len(payload.recent_lines)},
        )
        return payload.to_dict()

    async def _rotate_log(context: Context | None = None) -> dict[str, Any]:
        """Trim the activity log now if it exceeds its caps."""

        result = await rotator.rotate_if_needed(log_path)
        _emit_log(context, "info", "Rotation requested", extra={"action": result.action, "ok": result.ok})
        return _remember(result)

    async def _suggest_buttons(limit: int = 10, context: Context | None = None) -> list[dict[str, Any]]:
        """Offline button suggestions derived from the most frequent activities."""

        payload = await optimizer.optimize(log_path)
        activities = [activity for activity, _ in payload.top_activities[: max(limit, 0)]]
        buttons = fallback_suggestions(activities)
        _emit_log(context, "debug", "Suggested fallback buttons", extra={"count": len(buttons)})
        return [button.model_dump() for button in buttons]

    tool_record = server.tool(
        name="record_activity",
        description=(
            "Record a host notification (Create, Delete, Rename, Command, TaskStart, TaskEnd, "
            "DebugStart, DebugEnd, TerminalClose) in the workspace activity log."
        ),
    )(_record_activity)

    tool_close = server.tool(
        name="close_terminal",
        description="Drop the tracked working directory for a terminal that was closed.",
    )(_close_terminal)

    tool_mark = server.tool(
        name="mark_tool_command",
        description="Mark a command about to be run by a tool so its execution is not logged.",
    )(_mark_tool_command)

    tool_summarize = server.tool(
        name="summarize_activity",
        description="Frequency-ranked activities from the workspace activity log.",
    )(_summarize_activity)

    tool_analyze = server.tool(
        name="analyze_workflow",
        description="Time-windowed command sequences, directory usage and workflow pattern hints.",
    )(_analyze_workflow)

    tool_optimize = server.tool(
        name="optimize_context",
        description=(
            "Compact activity payload for suggestion generation: a ranked summary plus the "
            "most recent log lines in chronological order."
        ),
    )(_optimize_context)

    tool_rotate = server.tool(
        name="rotate_log",
        description="Run log rotation immediately; a no-op unless both size and entry caps are exceeded.",
    )(_rotate_log)

    tool_suggest = server.tool(
        name="suggest_buttons",
        description="Deterministic command button suggestions for when no language model is configured.",
    )(_suggest_buttons)

    return ToolHandles(
        record_activity=tool_record,
        close_terminal=tool_close,
        mark_tool_command=tool_mark,
        summarize_activity=tool_summarize,
        analyze_workflow=tool_analyze,
        optimize_context=tool_optimize,
        rotate_log=tool_rotate,
        suggest_buttons=tool_suggest,
        last_results=last_results,
    )


__all__ = ["register_tools", "ToolHandles"]

logger = logging.getLogger(__name__)


def _emit_log(
    context: Context | None,
    level: str,
    message: str,
    *,
    extra: dict[str, Any] | None = None,
) -> None:
    """Logging that prefers the MCP context logger when available."""

    payload = extra or {}

    if context is not None:
        ctx_logger = getattr(context, "logger", None)
        if ctx_logger is not None:
            log_method = getattr(ctx_logger, level, None)
            if callable(log_method):
                log_method(message, extra=payload)
                return

    fallback = getattr(logger, level, logger.info)
    fallback(message, extra=payload)
