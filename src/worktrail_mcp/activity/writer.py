"""Append-only writer for the activity log."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

import aiofiles
import aiofiles.os

from .diagnostics import DiagnosticSink, LoggingDiagnosticSink
from .models import ActivityEvent, OperationResult, format_timestamp

LOG_READ_COMMANDS = ("cat", "tail", "tail -f")
DIAG_COMMANDS = ("python3 scripts/worktrail_diag.py", "python scripts/worktrail_diag.py")


def bookkeeping_prefixes(log_path: str | Path, workspace_path: str | Path | None = None) -> tuple[str, ...]:
    """Command prefixes that only read the activity log or run the diagnostics CLI.

    Both the workspace-relative and the absolute spelling of ``log_path`` are
    covered when the log lives inside the workspace.
    """

    log_path = Path(log_path)
    targets: list[str] = []
    if workspace_path is not None:
        try:
            targets.append(log_path.relative_to(workspace_path).as_posix())
        except ValueError:
            pass
    if log_path.is_absolute() or not targets:
        targets.append(str(log_path) if log_path.is_absolute() else log_path.as_posix())
    reads = tuple(f"{command} {target}" for target in targets for command in LOG_READ_COMMANDS)
    return reads + DIAG_COMMANDS


DEFAULT_SELF_COMMAND_PREFIXES: tuple[str, ...] = bookkeeping_prefixes(Path(".vscode/devBoost/activity.log"))


def serialize_event(event: ActivityEvent) -> str:
    """Render an event as a single enhanced-format log line (no trailing newline)."""

    context = json.dumps(event.context.to_dict(), separators=(",", ":"), ensure_ascii=False)
    detail = " ".join(event.detail.strip().splitlines())
    return f"{format_timestamp(event.timestamp)} | {event.type_name.strip()}: {detail} | Context: {context}"


class ActivityLogWriter:
    """Appends activity events to a workspace-scoped log file.

    Failures never propagate: they are handed to the diagnostic sink and
    returned as a failed :class:`OperationResult`.
    """

    def __init__(
        self,
        path: Path,
        *,
        diagnostics: DiagnosticSink | None = None,
        self_command_prefixes: Iterable[str] | None = None,
    ) -> None:
        self._path = Path(path)
        self._diagnostics = diagnostics or LoggingDiagnosticSink()
        prefixes = DEFAULT_SELF_COMMAND_PREFIXES if self_command_prefixes is None else self_command_prefixes
        self._self_prefixes = tuple(prefix.strip() for prefix in prefixes if prefix.strip())

    @property
    def path(self) -> Path:
        return self._path

    def is_self_command(self, event: ActivityEvent) -> bool:
        if event.type_name != "Command":
            return False
        command = event.detail.strip()
        return any(command == prefix or command.startswith(prefix + " ") for prefix in self._self_prefixes)

    async def append(self, event: ActivityEvent) -> OperationResult:
        if not event.type_name.strip() or not event.detail.strip():
            return OperationResult.skipped("empty type or detail")
        if self.is_self_command(event):
            return OperationResult.skipped("bookkeeping command", detail=event.detail.strip())

        line = serialize_event(event) + "\n"
        try:
            await aiofiles.os.makedirs(self._path.parent, exist_ok=True)
            async with aiofiles.open(self._path, "a", encoding="utf-8") as handle:
                await handle.write(line)
        except OSError as exc:
            self._diagnostics.report("append", exc, path=str(self._path))
            return OperationResult.failure("append", exc, path=str(self._path))

        return OperationResult.success("appended", path=str(self._path))


__all__ = [
    "ActivityLogWriter",
    "DEFAULT_SELF_COMMAND_PREFIXES",
    "bookkeeping_prefixes",
    "serialize_event",
]
