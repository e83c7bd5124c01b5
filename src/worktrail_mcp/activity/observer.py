"""Adapter from host notifications to logged activity events."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from .models import (
    ActivityContext,
    ActivityEvent,
    ExecutionInfo,
    OperationResult,
    TerminalInfo,
    WorkspaceInfo,
)
from .rotation import RotationScheduler
from .tracker import DirectoryTracker
from .writer import ActivityLogWriter

logger = logging.getLogger(__name__)

# 126: not executable, 127: command not found
SKIPPED_EXIT_CODES = frozenset({126, 127})
TERMINAL_CLOSE = "TerminalClose"
FILE_EVENTS = frozenset({"Create", "Delete", "Rename"})


@dataclass(slots=True)
class HostNotification:
    """A discrete notification from the host environment."""

    event_kind: str
    detail: str = ""
    terminal_id: str | None = None
    terminal_name: str | None = None
    shell: str | None = None
    execution_cwd: str | None = None
    exit_code: int | None = None
    task_name: str | None = None
    task_source: str | None = None
    debug_session_name: str | None = None
    debug_session_type: str | None = None


class ActivityObserver:
    """Turns host notifications into enriched log lines."""

    def __init__(
        self,
        writer: ActivityLogWriter,
        *,
        workspace_path: str | Path,
        tracker: DirectoryTracker | None = None,
        scheduler: RotationScheduler | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._writer = writer
        self._tracker = tracker or DirectoryTracker()
        self._scheduler = scheduler
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._workspace_path = str(workspace_path)
        self._tool_commands: dict[str, set[str]] = {}

    @property
    def tracker(self) -> DirectoryTracker:
        return self._tracker

    @property
    def workspace_path(self) -> str:
        return self._workspace_path

    def switch_workspace(self, workspace_path: str | Path) -> None:
        self._workspace_path = str(workspace_path)

    def mark_tool_executed(self, command: str) -> None:
        """Exclude the next execution of ``command`` in this workspace from the log."""

        self._tool_commands.setdefault(self._workspace_path, set()).add(command.strip())

    def pending_tool_commands(self) -> set[str]:
        return set(self._tool_commands.get(self._workspace_path, set()))

    def _consume_tool_command(self, command: str) -> bool:
        pending = self._tool_commands.get(self._workspace_path)
        if not pending or command not in pending:
            return False
        pending.discard(command)
        if not pending:
            del self._tool_commands[self._workspace_path]
        return True

    def _workspace_info(self) -> WorkspaceInfo:
        name = os.path.basename(self._workspace_path.rstrip("/\\")) or self._workspace_path
        return WorkspaceInfo(path=self._workspace_path, name=name)

    async def handle(self, notification: HostNotification) -> OperationResult:
        kind = notification.event_kind

        if kind == TERMINAL_CLOSE:
            if notification.terminal_id is not None:
                self._tracker.forget(notification.terminal_id)
            return OperationResult.success("terminal_closed", terminal_id=notification.terminal_id)

        if kind == "Command":
            event = self._command_event(notification)
        elif kind in FILE_EVENTS:
            event = ActivityEvent(
                type=kind,
                detail=notification.detail,
                timestamp=self._clock(),
                context=ActivityContext(workspace=self._workspace_info()),
            )
        elif kind in {"TaskStart", "TaskEnd"}:
            event = self._labelled_event(
                kind,
                notification.task_name,
                notification.task_source,
                notification.exit_code if kind == "TaskEnd" else None,
            )
        elif kind in {"DebugStart", "DebugEnd"}:
            event = self._labelled_event(
                kind, notification.debug_session_name, notification.debug_session_type, None
            )
        else:
            logger.debug("Ignoring unknown notification", extra={"event_kind": kind})
            return OperationResult.skipped("unknown event kind", event_kind=kind)

        if isinstance(event, OperationResult):
            return event

        result = await self._writer.append(event)
        if self._scheduler is not None:
            await self._scheduler.tick()
        return result

    def _command_event(self, notification: HostNotification) -> ActivityEvent | OperationResult:
        command = notification.detail.strip()
        if not command:
            return OperationResult.skipped("empty type or detail")
        if self._consume_tool_command(command):
            logger.debug("Skipping tool-executed command", extra={"command": command})
            return OperationResult.skipped("tool-executed command", command=command)
        if notification.exit_code in SKIPPED_EXIT_CODES:
            logger.debug(
                "Skipping invalid command",
                extra={"command": command, "exit_code": notification.exit_code},
            )
            return OperationResult.skipped("invalid command", exit_code=notification.exit_code)

        terminal_id = notification.terminal_id or "default"
        cwd = self._tracker.resolve_cwd(
            terminal_id,
            notification.execution_cwd,
            command,
            self._workspace_path,
        )
        context = ActivityContext(
            workspace=self._workspace_info(),
            terminal=TerminalInfo(
                id=terminal_id,
                name=notification.terminal_name or "",
                shell=notification.shell or "unknown",
                cwd=cwd,
            ),
            execution=ExecutionInfo(exit_code=notification.exit_code),
        )
        return ActivityEvent(type="Command", detail=command, timestamp=self._clock(), context=context)

    def _labelled_event(
        self,
        kind: str,
        name: str | None,
        qualifier: str | None,
        exit_code: int | None,
    ) -> ActivityEvent | OperationResult:
        label = (name or "").strip()
        if not label:
            return OperationResult.skipped("empty type or detail")
        if qualifier:
            label = f"{label} ({qualifier})"
        execution = ExecutionInfo(exit_code=exit_code) if exit_code is not None else None
        return ActivityEvent(
            type=kind,
            detail=label,
            timestamp=self._clock(),
            context=ActivityContext(workspace=self._workspace_info(), execution=execution),
        )


__all__ = ["ActivityObserver", "HostNotification", "SKIPPED_EXIT_CODES", "TERMINAL_CLOSE"]
