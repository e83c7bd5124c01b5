from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path

from worktrail_mcp.activity.observer import ActivityObserver, HostNotification
from worktrail_mcp.activity.parser import parse_log
from worktrail_mcp.activity.rotation import LogRotator, RotationScheduler
from worktrail_mcp.activity.tracker import DirectoryTracker
from worktrail_mcp.activity.writer import ActivityLogWriter

NOW = datetime(2025, 3, 4, 8, 30, tzinfo=timezone.utc)


def build_observer(tmp_path: Path, **kwargs) -> tuple[ActivityObserver, Path]:
    log_path = tmp_path / "activity.log"
    tracker = DirectoryTracker(home_dir=lambda: "/home/dev", process_cwd=lambda: "/proc-cwd")
    observer = ActivityObserver(
        ActivityLogWriter(log_path),
        workspace_path="/work/app",
        tracker=tracker,
        clock=lambda: NOW,
        **kwargs,
    )
    return observer, log_path


def records(log_path: Path):
    if not log_path.exists():
        return []
    return parse_log(log_path.read_text(encoding="utf-8"))


def test_command_is_logged_with_terminal_context(tmp_path: Path) -> None:
    observer, log_path = build_observer(tmp_path)

    result = asyncio.run(
        observer.handle(
            HostNotification(
                event_kind="Command",
                detail="cd api && npm test",
                terminal_id="7",
                terminal_name="zsh",
                shell="zsh",
                exit_code=0,
            )
        )
    )

    assert result.action == "appended"
    [record] = records(log_path)
    assert record.detail == "cd api && npm test"
    assert record.workspace == {"path": "/work/app", "name": "app"}
    assert record.terminal == {"id": "7", "name": "zsh", "shell": "zsh", "cwd": "/work/app/api"}
    assert record.execution == {"exitCode": 0}


def test_missing_terminal_metadata_uses_defaults(tmp_path: Path) -> None:
    observer, log_path = build_observer(tmp_path)

    asyncio.run(observer.handle(HostNotification(event_kind="Command", detail="ls")))

    [record] = records(log_path)
    assert record.terminal["id"] == "default"
    assert record.terminal["shell"] == "unknown"
    assert record.cwd == "/work/app"
    assert record.execution == {"exitCode": None}


def test_tool_executed_commands_are_skipped_once(tmp_path: Path) -> None:
    observer, log_path = build_observer(tmp_path)
    observer.mark_tool_executed("npm run build ")

    first = asyncio.run(observer.handle(HostNotification(event_kind="Command", detail="npm run build")))
    second = asyncio.run(observer.handle(HostNotification(event_kind="Command", detail="npm run build")))

    assert first.details["reason"] == "tool-executed command"
    assert second.action == "appended"
    assert observer.pending_tool_commands() == set()
    assert len(records(log_path)) == 1


def test_tool_commands_are_scoped_to_workspace(tmp_path: Path) -> None:
    observer, log_path = build_observer(tmp_path)
    observer.mark_tool_executed("make")
    observer.switch_workspace("/work/other")

    result = asyncio.run(observer.handle(HostNotification(event_kind="Command", detail="make")))

    assert result.action == "appended"
    assert records(log_path)[0].workspace["name"] == "other"


def test_invalid_command_exit_codes_are_skipped(tmp_path: Path) -> None:
    observer, log_path = build_observer(tmp_path)

    for code in (126, 127):
        result = asyncio.run(
            observer.handle(HostNotification(event_kind="Command", detail="nope", exit_code=code))
        )
        assert result.details["reason"] == "invalid command"

    assert not log_path.exists()


def test_terminal_close_forgets_directory(tmp_path: Path) -> None:
    observer, log_path = build_observer(tmp_path)
    asyncio.run(observer.handle(HostNotification(event_kind="Command", detail="cd /srv", terminal_id="1")))

    result = asyncio.run(observer.handle(HostNotification(event_kind="TerminalClose", terminal_id="1")))

    assert result.action == "terminal_closed"
    assert observer.tracker.last_known("1") is None
    assert len(records(log_path)) == 1


def test_file_task_and_debug_events(tmp_path: Path) -> None:
    observer, log_path = build_observer(tmp_path)
    notifications = [
        HostNotification(event_kind="Create", detail="/work/app/src/new.ts"),
        HostNotification(event_kind="Rename", detail="/work/app/a.ts -> /work/app/b.ts"),
        HostNotification(event_kind="TaskStart", task_name="build", task_source="npm"),
        HostNotification(event_kind="TaskEnd", task_name="build", task_source="npm", exit_code=2),
        HostNotification(event_kind="DebugStart", debug_session_name="Launch API", debug_session_type="node"),
        HostNotification(event_kind="DebugEnd", debug_session_name="Launch API", debug_session_type="node"),
    ]

    for notification in notifications:
        asyncio.run(observer.handle(notification))

    logged = records(log_path)
    assert [record.activity for record in logged] == [
        "Create: /work/app/src/new.ts",
        "Rename: /work/app/a.ts -> /work/app/b.ts",
        "TaskStart: build (npm)",
        "TaskEnd: build (npm)",
        "DebugStart: Launch API (node)",
        "DebugEnd: Launch API (node)",
    ]
    assert logged[0].terminal == {}
    assert logged[2].execution == {}
    assert logged[3].execution == {"exitCode": 2}


def test_unknown_kind_is_skipped(tmp_path: Path) -> None:
    observer, log_path = build_observer(tmp_path)

    result = asyncio.run(observer.handle(HostNotification(event_kind="Telemetry", detail="x")))

    assert result.details["reason"] == "unknown event kind"
    assert not log_path.exists()


def test_scheduler_is_ticked_after_writes(tmp_path: Path) -> None:
    now = {"value": NOW}
    scheduler = RotationScheduler(
        LogRotator(),
        tmp_path / "activity.log",
        interval=timedelta(hours=24),
        clock=lambda: now["value"],
    )
    observer, _ = build_observer(tmp_path, scheduler=scheduler)

    asyncio.run(observer.handle(HostNotification(event_kind="Command", detail="ls")))
    asyncio.run(observer.handle(HostNotification(event_kind="Command", detail="pwd")))
    now["value"] = NOW + timedelta(hours=25)
    asyncio.run(observer.handle(HostNotification(event_kind="Command", detail="whoami")))

    assert scheduler.runs == 2
    assert scheduler.last_run == NOW + timedelta(hours=25)
