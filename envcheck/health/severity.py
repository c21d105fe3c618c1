"""Severity levels shared by check results, aggregation and logging."""

from __future__ import annotations

import logging
from enum import IntEnum

# Above CRITICAL, matching syslog where "alert" outranks "critical"
ALERT = 55
logging.addLevelName(ALERT, "ALERT")


class Severity(IntEnum):
    OK = 0
    WARNING = 1
    ERROR = 2

    @property
    def label(self) -> str:
        return self.name.lower()

    @property
    def log_level(self) -> int | None:
        """Logging level for this severity; OK is never logged."""
        return _LOG_LEVELS.get(self)


_LOG_LEVELS = {
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: ALERT,
}
