"""Selective logging of suite results.

Emits at most one record per non-OK severity present, most severe first:
ERROR results go out as a single ALERT record, WARNING results as a single
WARNING record. Each severity has its own opt-in switch.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .report import aggregate
from .runner import CheckResult
from .severity import Severity

logger = logging.getLogger(__name__)


class ResultLogger:
    """Consolidates a suite's non-OK results into per-severity log records."""

    def __init__(
        self,
        log: logging.Logger | None = None,
        log_on_warning: bool = False,
        log_on_error: bool = False,
    ) -> None:
        self.log = log or logger
        self.log_on_warning = log_on_warning
        self.log_on_error = log_on_error

    def _enabled(self, severity: Severity) -> bool:
        if severity == Severity.ERROR:
            return self.log_on_error
        if severity == Severity.WARNING:
            return self.log_on_warning
        return False

    def emit(self, results: Sequence[CheckResult], title: str = "") -> int:
        """Log the results and return how many records were emitted."""
        if not (self.log_on_warning or self.log_on_error):
            return 0

        groups = aggregate(results).groups
        emitted = 0
        for severity in sorted(groups, reverse=True):
            if not self._enabled(severity):
                continue
            self.log.log(severity.log_level, _format(title, severity, groups[severity]))
            emitted += 1
        return emitted


def _format(title: str, severity: Severity, results: list[CheckResult]) -> str:
    details = "; ".join(f"{r.description}: {r.message}" for r in results)
    prefix = f"{title}: " if title else ""
    noun = "check" if len(results) == 1 else "checks"
    return f"{prefix}{len(results)} {noun} reported {severity.label}: {details}"
