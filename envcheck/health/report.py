"""Aggregation of suite results into one verdict and a renderable report."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from .runner import CheckResult
from .severity import Severity


@dataclass(frozen=True)
class Aggregate:
    overall: Severity
    groups: dict[Severity, list[CheckResult]]


def aggregate(results: Sequence[CheckResult]) -> Aggregate:
    """Overall severity is the max over results (OK when empty).

    ``groups`` holds every severity present, each list in run order.
    """
    groups: dict[Severity, list[CheckResult]] = {}
    for r in results:
        groups.setdefault(r.severity, []).append(r)
    overall = max((r.severity for r in results), default=Severity.OK)
    return Aggregate(overall=overall, groups=groups)


@dataclass
class HealthReport:
    """Results of one suite run, ready for JSON or console rendering."""

    title: str
    suite: str
    results: list[CheckResult] = field(default_factory=list)

    @property
    def summary(self) -> Aggregate:
        return aggregate(self.results)

    @property
    def overall(self) -> Severity:
        return self.summary.overall

    def status_code(self, error_code: int = 500) -> int:
        return 200 if self.overall == Severity.OK else error_code

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "suite": self.suite,
            "status": self.overall.label,
            "checks": [
                {
                    "description": r.description,
                    "status": r.severity.label,
                    "message": r.message,
                }
                for r in self.results
            ],
        }
