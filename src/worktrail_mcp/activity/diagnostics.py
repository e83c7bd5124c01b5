"""Diagnostic sinks for non-fatal activity log failures."""

from __future__ import annotations

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class DiagnosticSink(Protocol):
    """Receives failures that must not interrupt the observed action."""

    def report(self, operation: str, error: BaseException, **details: Any) -> None:
        ...


class LoggingDiagnosticSink:
    """Default sink that forwards failures to the standard logger."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._logger = log or logger

    def report(self, operation: str, error: BaseException, **details: Any) -> None:
        self._logger.warning(
            "Activity log operation failed",
            extra={"operation": operation, "error": str(error), **details},
        )


__all__ = ["DiagnosticSink", "LoggingDiagnosticSink"]
