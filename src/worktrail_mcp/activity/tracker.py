"""Per-terminal working directory tracking."""

from __future__ import annotations

import ntpath
import os
import posixpath
import re
from typing import Callable, Protocol

_WINDOWS_PATH = re.compile(r"^[A-Za-z]:[\\/]")
_CD_PATTERN = re.compile(
    r"""^\s*cd(?:\s+(?P<path>"[^"]*"|'[^']*'|[^\s;&|]+))?\s*(?:$|&&|\|\||;)"""
)


class TerminalStateStore(Protocol):
    """Storage for the last known CWD of each live terminal."""

    def get(self, terminal_id: str) -> str | None:
        ...

    def set(self, terminal_id: str, cwd: str) -> None:
        ...

    def delete(self, terminal_id: str) -> None:
        ...

    def snapshot(self) -> dict[str, str]:
        ...


class InMemoryTerminalState:
    """Volatile terminal state, rebuilt for every process lifetime."""

    def __init__(self) -> None:
        self._cwds: dict[str, str] = {}

    def get(self, terminal_id: str) -> str | None:
        return self._cwds.get(terminal_id)

    def set(self, terminal_id: str, cwd: str) -> None:
        self._cwds[terminal_id] = cwd

    def delete(self, terminal_id: str) -> None:
        self._cwds.pop(terminal_id, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._cwds)

    def __len__(self) -> int:
        return len(self._cwds)


def extract_leading_cd(command_line: str) -> str | None:
    """Return the target of a ``cd`` that opens the command line, if any.

    Only a ``cd`` at the very start counts; one buried mid-chain does not.
    A bare ``cd`` yields ``"~"``.
    """

    match = _CD_PATTERN.match(command_line)
    if match is None:
        return None
    target = match.group("path")
    if target is None:
        return "~"
    if len(target) >= 2 and target[0] == target[-1] and target[0] in {"'", '"'}:
        target = target[1:-1]
    return target or "~"


class DirectoryTracker:
    """Infers the working directory of each terminal across command executions."""

    def __init__(
        self,
        store: TerminalStateStore | None = None,
        *,
        home_dir: Callable[[], str] | None = None,
        process_cwd: Callable[[], str] | None = None,
    ) -> None:
        self._store = store if store is not None else InMemoryTerminalState()
        self._home_dir = home_dir or (lambda: os.path.expanduser("~"))
        self._process_cwd = process_cwd or os.getcwd

    @property
    def store(self) -> TerminalStateStore:
        return self._store

    def last_known(self, terminal_id: str) -> str | None:
        return self._store.get(terminal_id)

    def resolve_cwd(
        self,
        terminal_id: str,
        execution_cwd_hint: str | None,
        command_line: str,
        fallback_workspace_path: str | None,
    ) -> str:
        """Resolve the CWD a command ran in and remember it for the terminal."""

        if execution_cwd_hint:
            cwd = execution_cwd_hint
        else:
            previous = self._store.get(terminal_id)
            base = previous or fallback_workspace_path or self._process_cwd()
            target = extract_leading_cd(command_line or "")
            if target is not None and target != "-":
                cwd = self._join(base, target)
            else:
                cwd = base

        self._store.set(terminal_id, cwd)
        return cwd

    def forget(self, terminal_id: str) -> None:
        """Drop state for a closed terminal."""

        self._store.delete(terminal_id)

    def _join(self, base: str, target: str) -> str:
        if target == "~" or target.startswith("~/"):
            target = self._home_dir() + target[1:]
        flavor = ntpath if _WINDOWS_PATH.match(base) or _WINDOWS_PATH.match(target) else posixpath
        if flavor.isabs(target):
            return flavor.normpath(target)
        return flavor.normpath(flavor.join(base, target))


__all__ = [
    "DirectoryTracker",
    "InMemoryTerminalState",
    "TerminalStateStore",
    "extract_leading_cd",
]
