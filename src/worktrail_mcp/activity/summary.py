"""Frequency ranking of logged activities."""

from __future__ import annotations

from typing import Iterable, Mapping

from .models import ActivityRecord


def activity_key(record: ActivityRecord) -> str:
    """Identity of an activity for counting.

    Identical commands run in a different workspace, shell or with a
    different exit code count as distinct activities.
    """

    qualifiers: list[str] = []
    workspace_name = record.workspace.get("name")
    if workspace_name:
        qualifiers.append(f"workspace={workspace_name}")
    shell = record.terminal.get("shell")
    if shell:
        qualifiers.append(f"shell={shell}")
    execution = record.execution
    if "exitCode" in execution and execution["exitCode"] is not None:
        qualifiers.append(f"exit={execution['exitCode']}")

    key = record.activity
    if qualifiers:
        key += " [" + ", ".join(qualifiers) + "]"
    return key


def summarize(records: Iterable[ActivityRecord]) -> dict[str, int]:
    """Count activities, keeping first-encounter order."""

    counts: dict[str, int] = {}
    for record in records:
        key = activity_key(record)
        counts[key] = counts.get(key, 0) + 1
    return counts


def get_top(activities: Mapping[str, int], n: int) -> list[tuple[str, int]]:
    # sorted() is stable, so ties keep encounter order
    ranked = sorted(activities.items(), key=lambda item: item[1], reverse=True)
    return ranked[: max(n, 0)]


__all__ = ["activity_key", "get_top", "summarize"]
