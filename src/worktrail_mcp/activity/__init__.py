"""Activity tracking, log lifecycle and analysis."""

from .models import (
    ActivityContext,
    ActivityEvent,
    ActivityRecord,
    ActivityType,
    ExecutionInfo,
    OperationResult,
    TerminalInfo,
    WorkflowStep,
    WorkspaceInfo,
)
from .diagnostics import DiagnosticSink, LoggingDiagnosticSink
from .tracker import DirectoryTracker, InMemoryTerminalState
from .writer import ActivityLogWriter, bookkeeping_prefixes, serialize_event
from .rotation import LogRotator, RotationScheduler
from .parser import parse_line, parse_lines, parse_log
from .summary import activity_key, get_top, summarize
from .workflow import WorkflowAnalysis, WorkflowAnalyzer, render_workflow_summary
from .optimizer import ContextOptimizer, OptimizedContext, optimize
from .observer import ActivityObserver, HostNotification

__all__ = [
    "ActivityContext",
    "ActivityEvent",
    "ActivityLogWriter",
    "ActivityObserver",
    "ActivityRecord",
    "ActivityType",
    "ContextOptimizer",
    "DiagnosticSink",
    "DirectoryTracker",
    "ExecutionInfo",
    "HostNotification",
    "InMemoryTerminalState",
    "LogRotator",
    "LoggingDiagnosticSink",
    "OperationResult",
    "OptimizedContext",
    "RotationScheduler",
    "TerminalInfo",
    "WorkflowAnalysis",
    "WorkflowAnalyzer",
    "WorkflowStep",
    "WorkspaceInfo",
    "activity_key",
    "bookkeeping_prefixes",
    "get_top",
    "optimize",
    "parse_line",
    "parse_lines",
    "parse_log",
    "render_workflow_summary",
    "serialize_event",
    "summarize",
]
