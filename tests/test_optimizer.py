from __future__ import annotations

import asyncio
import json
from pathlib import Path

from worktrail_mcp.activity.optimizer import ContextOptimizer, optimize

CONTEXT = json.dumps(
    {
        "workspace": {"path": "/proj", "name": "proj"},
        "terminal": {"id": "1", "name": "bash", "shell": "bash", "cwd": "/proj"},
        "execution": {"exitCode": 0},
    }
)


def _line(index: int, detail: str) -> str:
    minute, second = divmod(index, 60)
    return f"2025-01-01T10:{minute:02d}:{second:02d}.000Z | Command: {detail} | Context: {CONTEXT}"


def test_recent_window_is_half_the_entry_cap(tmp_path: Path) -> None:
    log_path = tmp_path / "activity.log"
    lines = [_line(index, f"echo {index}") for index in range(400)]
    log_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    payload = asyncio.run(ContextOptimizer(max_entries=500).optimize(log_path))

    assert payload.total_entries == 400
    assert len(payload.recent_lines) == 250
    assert payload.recent_lines[0] == lines[150]
    assert payload.recent_lines[-1] == lines[-1]
    assert payload.summary.startswith("Total logged activities: 400\nTop 10 activities:\n1. ")


def test_summary_ranks_frequent_activities(tmp_path: Path) -> None:
    log_path = tmp_path / "activity.log"
    lines = [_line(index, "npm test") for index in range(5)]
    lines += [_line(index + 5, "git status") for index in range(3)]
    lines.append(_line(9, "ls"))
    log_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    payload = asyncio.run(optimize(log_path, top_n=2))

    assert payload.top_activities == [
        ("Command: npm test [workspace=proj, shell=bash, exit=0]", 5),
        ("Command: git status [workspace=proj, shell=bash, exit=0]", 3),
    ]
    assert "1. Command: npm test [workspace=proj, shell=bash, exit=0] (5x)" in payload.summary
    assert payload.to_dict()["top_activities"][1]["count"] == 3


def test_comment_and_blank_lines_stay_out_of_window(tmp_path: Path) -> None:
    log_path = tmp_path / "activity.log"
    content = "\n".join(
        [
            "# activity log",
            _line(0, "npm install"),
            "",
            "   ",
            "# checkpoint",
            _line(1, "npm start"),
        ]
    )
    log_path.write_text(content + "\n", encoding="utf-8")

    payload = asyncio.run(ContextOptimizer(max_entries=4).optimize(log_path))

    assert payload.recent_lines == [_line(0, "npm install"), _line(1, "npm start")]


def test_missing_log_gives_empty_payload(tmp_path: Path) -> None:
    payload = asyncio.run(ContextOptimizer().optimize(tmp_path / "nothing.log"))

    assert payload.is_empty
    assert payload.recent_lines == []
    assert payload.top_activities == []
    assert payload.summary.startswith("Total logged activities: 0")


def test_analyze_recent_uses_window(tmp_path: Path) -> None:
    log_path = tmp_path / "activity.log"
    lines = [_line(0, "git add ."), _line(1, "git commit -m one")]
    lines += [_line(index + 300, f"echo {index}") for index in range(3)]
    log_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    analysis = asyncio.run(ContextOptimizer(max_entries=6).analyze_recent(log_path))

    assert [step.command for seq in analysis.sequences for step in seq] == [
        "echo 0",
        "echo 1",
        "echo 2",
    ]
    assert "version_control_workflow" not in analysis.detected_patterns


def test_line_separator_in_context_keeps_one_entry(tmp_path: Path) -> None:
    log_path = tmp_path / "activity.log"
    odd_context = json.dumps({"terminal": {"name": "a\u2028b"}}, ensure_ascii=False)
    line = f"2025-01-01T10:00:00.000Z | Command: ls | Context: {odd_context}"
    log_path.write_text(line + "\n" + _line(1, "pwd") + "\n", encoding="utf-8")

    payload = asyncio.run(ContextOptimizer().optimize(log_path))

    assert payload.total_entries == 2
    assert payload.recent_lines[0] == line
