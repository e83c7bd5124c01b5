"""Size and entry-count rotation for the activity log."""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Awaitable, Callable

import aiofiles
import aiofiles.os

from .diagnostics import DiagnosticSink, LoggingDiagnosticSink
from .models import OperationResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_MAX_ENTRIES = 500
DEFAULT_MAX_BACKUPS = 3


def backup_path_for(path: Path, millis: int) -> Path:
    return path.with_name(f"{path.name}.backup.{millis}")


def _backup_pattern(path: Path) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(path.name)}\.backup\.(\d+)$")


class LogRotator:
    """Trims an overflowing log to its newest entries and archives the rest.

    A trim happens only when the file is both larger than ``max_bytes`` and
    holds more than ``max_entries`` non-blank lines.
    """

    def __init__(
        self,
        *,
        max_bytes: int = DEFAULT_MAX_BYTES,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        max_backups: int = DEFAULT_MAX_BACKUPS,
        clock: Callable[[], datetime] | None = None,
        diagnostics: DiagnosticSink | None = None,
    ) -> None:
        self._max_bytes = max_bytes
        self._max_entries = max_entries
        self._max_backups = max_backups
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._diagnostics = diagnostics or LoggingDiagnosticSink()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    async def rotate_if_needed(self, path: Path) -> OperationResult:
        path = Path(path)
        try:
            if not await aiofiles.os.path.exists(path):
                return OperationResult.skipped("missing log", path=str(path))

            stat = await aiofiles.os.stat(path)
            if stat.st_size <= self._max_bytes:
                return OperationResult.skipped("under size cap", size=stat.st_size)

            async with aiofiles.open(path, "rb") as handle:
                content = await handle.read()
            # entries are delimited by "\n" alone; bytes are never decoded
            lines = [line for line in content.split(b"\n") if line.strip()]
            if len(lines) <= self._max_entries:
                return OperationResult.skipped("under entry cap", size=stat.st_size, entries=len(lines))

            backup = await self._free_backup_path(path)
            async with aiofiles.open(backup, "wb") as handle:
                await handle.write(content)

            kept = lines[-self._max_entries :]
            tmp_path = path.with_name(f".{path.name}.tmp")
            async with aiofiles.open(tmp_path, "wb") as handle:
                await handle.write(b"\n".join(kept) + b"\n")
            await aiofiles.os.replace(tmp_path, path)
        except OSError as exc:
            self._diagnostics.report("rotate", exc, path=str(path))
            return OperationResult.failure("rotate", exc, path=str(path))

        logger.info(
            "Rotated activity log",
            extra={"log_path": str(path), "backup": str(backup), "dropped": len(lines) - len(kept)},
        )
        pruned = await self.prune_backups(path)
        return OperationResult.success(
            "rotated",
            backup=str(backup),
            kept=len(kept),
            dropped=len(lines) - len(kept),
            pruned=[str(item) for item in pruned],
        )

    async def list_backups(self, path: Path) -> list[tuple[int, Path]]:
        """Return ``(millis, path)`` pairs for sibling backups, newest first."""

        path = Path(path)
        pattern = _backup_pattern(path)
        try:
            names = await aiofiles.os.listdir(path.parent)
        except FileNotFoundError:
            return []
        backups: list[tuple[int, Path]] = []
        for name in names:
            match = pattern.match(name)
            if match:
                backups.append((int(match.group(1)), path.parent / name))
        backups.sort(key=lambda item: item[0], reverse=True)
        return backups

    async def prune_backups(self, path: Path) -> list[Path]:
        removed: list[Path] = []
        try:
            backups = await self.list_backups(path)
            for _, stale in backups[self._max_backups :]:
                try:
                    await aiofiles.os.remove(stale)
                except FileNotFoundError:
                    continue
                removed.append(stale)
        except OSError as exc:
            self._diagnostics.report("prune", exc, path=str(path))
        return removed

    async def _free_backup_path(self, path: Path) -> Path:
        millis = int(self._clock().timestamp() * 1000)
        candidate = backup_path_for(path, millis)
        while await aiofiles.os.path.exists(candidate):
            millis += 1
            candidate = backup_path_for(path, millis)
        return candidate


class RotationScheduler:
    """Runs the rotator once at startup and then on a fixed interval.

    Time comes from the injected ``clock`` and waiting from ``sleep`` so the
    schedule can be driven with virtual time.
    """

    def __init__(
        self,
        rotator: LogRotator,
        path: Path,
        *,
        interval: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self._rotator = rotator
        self._path = Path(path)
        self._interval = interval
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._sleep = sleep or asyncio.sleep
        self._last_run: datetime | None = None
        self.runs = 0

    @property
    def last_run(self) -> datetime | None:
        return self._last_run

    def is_due(self) -> bool:
        if self._last_run is None:
            return True
        return self._clock() - self._last_run >= self._interval

    async def tick(self) -> OperationResult | None:
        """Rotate if the interval has elapsed; returns ``None`` when not due."""

        if not self.is_due():
            return None
        self._last_run = self._clock()
        self.runs += 1
        return await self._rotator.rotate_if_needed(self._path)

    async def run(self, stop: asyncio.Event) -> None:
        while not stop.is_set():
            await self.tick()
            await self._sleep(self._interval.total_seconds())


__all__ = [
    "DEFAULT_MAX_BACKUPS",
    "DEFAULT_MAX_BYTES",
    "DEFAULT_MAX_ENTRIES",
    "LogRotator",
    "RotationScheduler",
    "backup_path_for",
]
