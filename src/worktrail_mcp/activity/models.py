"""Data models for activity tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ActivityType(str, Enum):
    CREATE = "Create"
    DELETE = "Delete"
    RENAME = "Rename"
    COMMAND = "Command"
    TASK_START = "TaskStart"
    TASK_END = "TaskEnd"
    DEBUG_START = "DebugStart"
    DEBUG_END = "DebugEnd"


@dataclass(frozen=True, slots=True)
class WorkspaceInfo:
    path: str
    name: str


@dataclass(frozen=True, slots=True)
class TerminalInfo:
    id: str
    name: str
    shell: str
    cwd: str


@dataclass(frozen=True, slots=True)
class ExecutionInfo:
    exit_code: int | None


@dataclass(frozen=True, slots=True)
class ActivityContext:
    """Structured metadata attached to a logged activity."""

    workspace: WorkspaceInfo | None = None
    terminal: TerminalInfo | None = None
    execution: ExecutionInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.workspace is not None:
            payload["workspace"] = {"path": self.workspace.path, "name": self.workspace.name}
        if self.terminal is not None:
            payload["terminal"] = {
                "id": self.terminal.id,
                "name": self.terminal.name,
                "shell": self.terminal.shell,
                "cwd": self.terminal.cwd,
            }
        if self.execution is not None:
            payload["execution"] = {"exitCode": self.execution.exit_code}
        return payload


def format_timestamp(moment: datetime) -> str:
    """Render an ISO-8601 UTC timestamp with millisecond precision and a trailing ``Z``."""

    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


@dataclass(frozen=True, slots=True)
class ActivityEvent:
    """One observed developer action, immutable once written."""

    type: str
    detail: str
    timestamp: datetime
    context: ActivityContext = field(default_factory=ActivityContext)

    @property
    def type_name(self) -> str:
        return self.type.value if isinstance(self.type, ActivityType) else str(self.type)


@dataclass(slots=True)
class ActivityRecord:
    """A log line parsed back into typed fields."""

    timestamp: datetime | None
    type: str
    detail: str
    context: dict[str, Any] | None
    raw: str
    format: str = "enhanced"

    @property
    def activity(self) -> str:
        return f"{self.type}: {self.detail}"

    def _section(self, name: str) -> dict[str, Any]:
        if not self.context:
            return {}
        section = self.context.get(name)
        return section if isinstance(section, dict) else {}

    @property
    def workspace(self) -> dict[str, Any]:
        return self._section("workspace")

    @property
    def terminal(self) -> dict[str, Any]:
        return self._section("terminal")

    @property
    def execution(self) -> dict[str, Any]:
        return self._section("execution")

    @property
    def cwd(self) -> str | None:
        value = self.terminal.get("cwd")
        return value if isinstance(value, str) and value else None

    @property
    def terminal_id(self) -> str | None:
        value = self.terminal.get("id")
        return None if value is None else str(value)


@dataclass(frozen=True, slots=True)
class WorkflowStep:
    """One command inside a reconstructed workflow sequence."""

    command: str
    directory: str
    terminal_id: str | None = None
    timestamp: datetime | None = None


@dataclass(slots=True)
class OperationResult:
    """Outcome of a log operation; failures are reported here instead of raised."""

    ok: bool
    action: str
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, action: str, **details: Any) -> "OperationResult":
        return cls(ok=True, action=action, details=details)

    @classmethod
    def skipped(cls, reason: str, **details: Any) -> "OperationResult":
        return cls(ok=True, action="skipped", details={"reason": reason, **details})

    @classmethod
    def failure(cls, action: str, error: BaseException | str, **details: Any) -> "OperationResult":
        return cls(ok=False, action=action, error=str(error), details=details)


__all__ = [
    "ActivityContext",
    "ActivityEvent",
    "ActivityRecord",
    "ActivityType",
    "ExecutionInfo",
    "OperationResult",
    "TerminalInfo",
    "WorkflowStep",
    "WorkspaceInfo",
    "format_timestamp",
]
