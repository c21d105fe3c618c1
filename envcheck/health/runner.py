"""Check runner — executes a suite and converts faults into ERROR results."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from .checks import CheckOutcome, execute
from .registry import CheckEntry, CheckRegistry
from .severity import Severity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckResult:
    """Result of a single check within a suite run."""

    description: str
    severity: Severity
    message: str


class CheckRunner:
    """Runs every entry of a suite, in registration order.

    Checks run sequentially unless ``max_workers`` > 1, in which case they
    run in a bounded thread pool. Result order is registration order either
    way, and a check that raises only affects its own result.
    """

    def __init__(self, registry: CheckRegistry, max_workers: int = 1) -> None:
        self.registry = registry
        self.max_workers = max(1, max_workers)

    def run(self, suite: str) -> list[CheckResult]:
        entries = self.registry.entries_for(suite)
        if not entries:
            logger.debug("Suite '%s' has no checks", suite)
            return []

        if self.max_workers == 1 or len(entries) == 1:
            outcomes = [execute(e.check) for e in entries]
        else:
            workers = min(self.max_workers, len(entries))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                outcomes = list(pool.map(lambda e: execute(e.check), entries))

        return [_to_result(entry, outcome) for entry, outcome in zip(entries, outcomes)]


def _to_result(entry: CheckEntry, outcome: CheckOutcome) -> CheckResult:
    if outcome.is_fault:
        fault = outcome.fault
        logger.warning(
            "Check '%s' raised %s: %s", entry.description, type(fault).__name__, fault,
        )
        return CheckResult(
            description=entry.description,
            severity=Severity.ERROR,
            message=f"{type(fault).__name__}: {fault}",
        )
    return CheckResult(
        description=entry.description,
        severity=outcome.severity,
        message=outcome.message,
    )
