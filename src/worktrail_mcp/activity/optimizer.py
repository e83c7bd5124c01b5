"""Compact payload of the activity log for downstream consumers."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import aiofiles

from .diagnostics import DiagnosticSink, LoggingDiagnosticSink
from .parser import is_comment, parse_lines, split_log_lines
from .rotation import DEFAULT_MAX_ENTRIES
from .summary import get_top, summarize
from .workflow import WorkflowAnalysis, WorkflowAnalyzer


@dataclass(slots=True)
class OptimizedContext:
    summary: str
    recent_lines: list[str] = field(default_factory=list)
    total_entries: int = 0
    top_activities: list[tuple[str, int]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.total_entries == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "recent_lines": list(self.recent_lines),
            "total_entries": self.total_entries,
            "top_activities": [
                {"activity": activity, "count": count} for activity, count in self.top_activities
            ],
        }


def render_summary(total: int, top: list[tuple[str, int]]) -> str:
    lines = [f"Total logged activities: {total}", f"Top {len(top)} activities:"]
    for index, (activity, count) in enumerate(top, start=1):
        lines.append(f"{index}. {activity} ({count}x)")
    return "\n".join(lines)


class ContextOptimizer:
    """Pairs a frequency summary with an ordered window of the newest lines.

    The summary gives breadth across the whole log; the window keeps the
    ordering needed to spot multi-step workflows.
    """

    def __init__(
        self,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        top_n: int = 10,
        analyzer: WorkflowAnalyzer | None = None,
        diagnostics: DiagnosticSink | None = None,
    ) -> None:
        self._window = max(1, max_entries // 2)
        self._top_n = top_n
        self._analyzer = analyzer or WorkflowAnalyzer()
        self._diagnostics = diagnostics or LoggingDiagnosticSink()

    @property
    def window(self) -> int:
        return self._window

    async def read_lines(self, log_path: Path) -> list[str]:
        try:
            async with aiofiles.open(log_path, "r", encoding="utf-8", errors="replace") as handle:
                content = await handle.read()
        except FileNotFoundError:
            return []
        except OSError as exc:
            self._diagnostics.report("read", exc, path=str(log_path))
            return []
        return [line for line in split_log_lines(content) if line.strip()]

    def build(self, lines: list[str]) -> OptimizedContext:
        records = parse_lines(lines)
        top = get_top(summarize(records), self._top_n)
        recent = [line for line in lines if not is_comment(line)][-self._window :]
        return OptimizedContext(
            summary=render_summary(len(lines), top),
            recent_lines=recent,
            total_entries=len(lines),
            top_activities=top,
        )

    async def optimize(self, log_path: Path) -> OptimizedContext:
        return self.build(await self.read_lines(Path(log_path)))

    async def analyze_recent(self, log_path: Path) -> WorkflowAnalysis:
        lines = await self.read_lines(Path(log_path))
        recent = [line for line in lines if not is_comment(line)][-self._window :]
        return self._analyzer.analyze(parse_lines(recent))


async def optimize(log_path: Path, *, max_entries: int = DEFAULT_MAX_ENTRIES, top_n: int = 10) -> OptimizedContext:
    """Convenience wrapper around :class:`ContextOptimizer`."""

    return await ContextOptimizer(max_entries=max_entries, top_n=top_n).optimize(log_path)


__all__ = ["ContextOptimizer", "OptimizedContext", "optimize", "render_summary"]
