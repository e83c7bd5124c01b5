from __future__ import annotations

import json
from pathlib import Path

import importlib.util

import pytest

from worktrail_mcp.config import WorktrailSettings

CONTEXT = json.dumps(
    {
        "workspace": {"path": "/repo", "name": "repo"},
        "terminal": {"id": "1", "name": "bash", "shell": "bash", "cwd": "/repo/web"},
        "execution": {"exitCode": 0},
    }
)


def load_diag_module():
    module_path = Path(__file__).resolve().parents[1] / "scripts" / "worktrail_diag.py"
    spec = importlib.util.spec_from_file_location("worktrail_diag_test_module", module_path)
    assert spec and spec.loader
    diag = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(diag)
    return diag


@pytest.fixture
def diag(tmp_path: Path, monkeypatch):
    settings = WorktrailSettings()
    settings.workspace_path = tmp_path
    settings.pattern_paths = (tmp_path / "patterns",)
    module = load_diag_module()
    monkeypatch.setattr(module, "load_settings", lambda: settings)
    module.test_settings = settings
    return module


def write_log(settings: WorktrailSettings, details: list[str]) -> Path:
    log_path = settings.activity_log_path
    log_path.parent.mkdir(parents=True, exist_ok=True)
    lines = [
        f"2025-01-01T00:00:{index:02d}.000Z | Command: {detail} | Context: {CONTEXT}"
        for index, detail in enumerate(details)
    ]
    log_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return log_path


def test_summary_json_respects_limit(diag, capsys) -> None:
    write_log(diag.test_settings, ["npm install", "npm start", "npm start"])

    diag.main(["summary", "--json", "--limit", "1"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["total_entries"] == 3
    assert payload["top_activities"] == [
        {"activity": "Command: npm start [workspace=repo, shell=bash, exit=0]", "count": 2}
    ]


def test_summary_text(diag, capsys) -> None:
    write_log(diag.test_settings, ["ls"])

    diag.main(["summary"])

    assert capsys.readouterr().out.startswith("Total logged activities: 1")


def test_workflow_reports_patterns(diag, capsys) -> None:
    write_log(diag.test_settings, ["npm install", "npm start"])

    diag.main(["workflow", "--json"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["patterns"]["subdirectory_package_workflow"] is True
    assert payload["sequences"][0][0]["directory"] == "web"


def test_rotate_and_backups(diag, capsys) -> None:
    settings = diag.test_settings
    settings.max_log_bytes = 10
    settings.max_log_entries = 1
    write_log(settings, ["one", "two", "three"])

    diag.main(["rotate"])
    rotated = json.loads(capsys.readouterr().out)
    diag.main(["backups", "--limit", "5"])
    backups = json.loads(capsys.readouterr().out)

    assert rotated["ok"] is True
    assert rotated["action"] == "rotated"
    assert len(backups) == 1
    assert backups[0]["path"] == rotated["details"]["backup"]


def test_optimize_on_missing_log(diag, capsys) -> None:
    diag.main(["optimize"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["total_entries"] == 0
    assert payload["recent_lines"] == []


def test_broken_patterns_exit_nonzero(diag, capsys) -> None:
    patterns = diag.test_settings.pattern_paths[0]
    patterns.mkdir()
    (patterns / "bad.yaml").write_text("name: x\nall_of: [git]\nmin_matches: 0\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        diag.main(["summary"])

    assert excinfo.value.code == 1
    assert "Pattern rules unavailable" in capsys.readouterr().out


def test_no_command_prints_help(diag, capsys) -> None:
    diag.main([])

    assert "usage:" in capsys.readouterr().out
