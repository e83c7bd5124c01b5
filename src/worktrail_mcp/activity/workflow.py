"""Reconstruction of command workflows from recent activity."""

from __future__ import annotations

import ntpath
import posixpath
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from ..patterns import BUILTIN_RULES, PatternRule
from ..patterns.models import ROOT_DIRECTORY
from .models import ActivityRecord, WorkflowStep

DEFAULT_SEQUENCE_GAP_MS = 120_000
DEFAULT_MAX_SEQUENCE_LENGTH = 5
MIN_SEQUENCE_LENGTH = 2


@dataclass(slots=True)
class DirectoryUsage:
    count: int = 0
    commands: list[str] = field(default_factory=list)


@dataclass(slots=True)
class WorkflowAnalysis:
    sequences: list[list[WorkflowStep]]
    directory_usage: dict[str, DirectoryUsage]
    patterns: dict[str, bool]
    complexity: dict[str, bool]

    @property
    def detected_patterns(self) -> list[str]:
        return [name for name, hit in self.patterns.items() if hit]

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequences": [
                [
                    {
                        "command": step.command,
                        "directory": step.directory,
                        "terminal_id": step.terminal_id,
                        "timestamp": step.timestamp.isoformat() if step.timestamp else None,
                    }
                    for step in sequence
                ]
                for sequence in self.sequences
            ],
            "directory_usage": {
                name: {"count": usage.count, "commands": list(usage.commands)}
                for name, usage in self.directory_usage.items()
            },
            "patterns": dict(self.patterns),
            "complexity": dict(self.complexity),
        }


def relative_directory(cwd: str | None, workspace_path: str | None) -> str:
    """Directory of ``cwd`` relative to the workspace; the root itself is ``"root"``."""

    if not cwd:
        return ROOT_DIRECTORY
    if not workspace_path:
        return cwd
    flavor = ntpath if "\\" in cwd or "\\" in workspace_path else posixpath
    current = flavor.normpath(cwd)
    root = flavor.normpath(workspace_path)
    if current == root:
        return ROOT_DIRECTORY
    prefix = root.rstrip(flavor.sep) + flavor.sep
    if current.startswith(prefix):
        return current[len(prefix) :].replace("\\", "/")
    return current


def directory_tag(record: ActivityRecord) -> str:
    """Last path segment of the record's execution directory."""

    relative = relative_directory(record.cwd, record.workspace.get("path"))
    if relative == ROOT_DIRECTORY:
        return ROOT_DIRECTORY
    tail = relative.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]
    return tail or ROOT_DIRECTORY


class WorkflowAnalyzer:
    """Groups recent commands into time-windowed sequences and derives signals."""

    def __init__(
        self,
        *,
        rules: Iterable[PatternRule] | None = None,
        gap_ms: int = DEFAULT_SEQUENCE_GAP_MS,
        max_length: int = DEFAULT_MAX_SEQUENCE_LENGTH,
        per_terminal: bool = False,
    ) -> None:
        self._rules: list[PatternRule] = list(rules) if rules is not None else list(BUILTIN_RULES)
        self._gap_ms = gap_ms
        self._max_length = max_length
        self._per_terminal = per_terminal

    @property
    def rules(self) -> list[PatternRule]:
        return list(self._rules)

    def analyze(self, records: Sequence[ActivityRecord]) -> WorkflowAnalysis:
        commands = [
            record for record in records if record.type == "Command" and record.timestamp is not None
        ]
        commands.sort(key=lambda record: record.timestamp)

        if self._per_terminal:
            lanes: dict[str | None, list[ActivityRecord]] = {}
            for record in commands:
                lanes.setdefault(record.terminal_id, []).append(record)
            sequences = [seq for lane in lanes.values() for seq in self.build_sequences(lane)]
        else:
            sequences = self.build_sequences(commands)

        usage = self.directory_usage(records)
        patterns = {
            rule.name: any(rule.matches(sequence) for sequence in sequences) for rule in self._rules
        }
        complexity = {
            "multi_directory": len(usage) > 2,
            "long_sequences": any(len(sequence) >= 3 for sequence in sequences),
            "repeated_commands": any(
                len({step.command for step in sequence}) < len(sequence) for sequence in sequences
            ),
        }
        return WorkflowAnalysis(
            sequences=sequences,
            directory_usage=usage,
            patterns=patterns,
            complexity=complexity,
        )

    def build_sequences(self, records: Sequence[ActivityRecord]) -> list[list[WorkflowStep]]:
        """Split chronologically ordered commands on time gaps and length caps."""

        sequences: list[list[WorkflowStep]] = []
        current: list[WorkflowStep] = []
        previous = None

        for record in records:
            step = WorkflowStep(
                command=record.detail,
                directory=directory_tag(record),
                terminal_id=record.terminal_id,
                timestamp=record.timestamp,
            )
            if current and previous is not None:
                gap_ms = (record.timestamp - previous).total_seconds() * 1000
                if gap_ms < self._gap_ms and len(current) < self._max_length:
                    current.append(step)
                    previous = record.timestamp
                    continue
                if len(current) >= MIN_SEQUENCE_LENGTH:
                    sequences.append(current)
            current = [step]
            previous = record.timestamp

        if len(current) >= MIN_SEQUENCE_LENGTH:
            sequences.append(current)
        return sequences

    @staticmethod
    def directory_usage(records: Iterable[ActivityRecord]) -> dict[str, DirectoryUsage]:
        usage: dict[str, DirectoryUsage] = {}
        for record in records:
            if record.cwd is None:
                continue
            name = relative_directory(record.cwd, record.workspace.get("path"))
            entry = usage.setdefault(name, DirectoryUsage())
            entry.count += 1
            if record.type == "Command":
                entry.commands.append(record.detail)
        return usage


def render_workflow_summary(analysis: WorkflowAnalysis, *, limit: int = 10) -> str:
    """Plain-text workflow section for the downstream suggestion generator."""

    lines = ["WORKFLOW SEQUENCES:"]
    if not analysis.sequences:
        lines.append("- none detected")
    for index, sequence in enumerate(analysis.sequences[-limit:], start=1):
        chain = " -> ".join(f"[{step.directory}] {step.command}" for step in sequence)
        lines.append(f"{index}. {chain}")

    lines.append("DIRECTORY USAGE:")
    ranked = sorted(analysis.directory_usage.items(), key=lambda item: item[1].count, reverse=True)
    for name, usage in ranked[:limit]:
        lines.append(f"- {name}: {usage.count}")

    detected = analysis.detected_patterns
    lines.append("PATTERNS: " + (", ".join(detected) if detected else "none"))
    flags = [name for name, value in analysis.complexity.items() if value]
    lines.append("COMPLEXITY: " + (", ".join(flags) if flags else "simple"))
    return "\n".join(lines)


__all__ = [
    "DirectoryUsage",
    "WorkflowAnalysis",
    "WorkflowAnalyzer",
    "directory_tag",
    "relative_directory",
    "render_workflow_summary",
]
