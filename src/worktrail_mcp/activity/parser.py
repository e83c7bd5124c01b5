"""Parsing of activity log lines into typed records."""

from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Iterable

from .models import ActivityRecord

_TIMESTAMP = r"(?P<timestamp>\d{4}-\d{2}-\d{2}T[\d:.]+Z)"
_ENHANCED = re.compile(
    _TIMESTAMP + r"\s*\|\s*(?P<type>[^:|]+?)\s*:\s*(?P<detail>.+)\s*\|\s*Context:\s*(?P<context>.*?)\s*$"
)
_LEGACY = re.compile(_TIMESTAMP + r"\s*\|\s*(?P<type>[^:|]+?)\s*:\s*(?P<detail>.+?)\s*$")


def parse_timestamp(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def split_log_lines(content: str) -> list[str]:
    """Split log text on newlines only, dropping a trailing carriage return.

    ``str.splitlines`` also breaks on characters such as U+2028 that can sit
    unescaped inside a context block.
    """

    return [line[:-1] if line.endswith("\r") else line for line in content.split("\n")]


def is_comment(line: str) -> bool:
    return line.lstrip().startswith("#")


def parse_line(raw: str) -> ActivityRecord | None:
    """Parse one log line, trying the enhanced grammar before the legacy one.

    A context block that is not a valid JSON object degrades the record to
    ``Type: detail`` with no context. Unrecognized lines return ``None``.
    """

    line = raw.rstrip("\r\n")
    if not line.strip() or is_comment(line):
        return None

    match = _ENHANCED.match(line)
    if match is not None:
        try:
            context = json.loads(match.group("context"))
        except ValueError:
            context = None
        if not isinstance(context, dict):
            context = None
        return ActivityRecord(
            timestamp=parse_timestamp(match.group("timestamp")),
            type=match.group("type").strip(),
            detail=match.group("detail").strip(),
            context=context,
            raw=line,
            format="enhanced" if context is not None else "degraded",
        )

    match = _LEGACY.match(line)
    if match is not None:
        return ActivityRecord(
            timestamp=parse_timestamp(match.group("timestamp")),
            type=match.group("type").strip(),
            detail=match.group("detail").strip(),
            context=None,
            raw=line,
            format="legacy",
        )
    return None


def parse_lines(lines: Iterable[str]) -> list[ActivityRecord]:
    records: list[ActivityRecord] = []
    for line in lines:
        record = parse_line(line)
        if record is not None:
            records.append(record)
    return records


def parse_log(content: str) -> list[ActivityRecord]:
    return parse_lines(split_log_lines(content))


__all__ = [
    "is_comment",
    "parse_line",
    "parse_lines",
    "parse_log",
    "parse_timestamp",
    "split_log_lines",
]
