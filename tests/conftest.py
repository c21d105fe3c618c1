"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest

from envcheck.config import Settings
from envcheck.health.registry import CheckRegistry
from envcheck.health.severity import Severity


class StaticCheck:
    """Returns a fixed verdict and counts how often it ran."""

    def __init__(self, severity: Severity, message: str = "") -> None:
        self.severity = severity
        self.message = message
        self.calls = 0

    def check(self) -> tuple[Severity, str]:
        self.calls += 1
        return self.severity, self.message


class RaisingCheck:
    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or RuntimeError("probe crashed")
        self.calls = 0

    def check(self) -> tuple[Severity, str]:
        self.calls += 1
        raise self.exc


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the real environment and .env file."""
    defaults: dict[str, Any] = {
        "envcheck_mode": "live",
        "envcheck_log_results_warning": False,
        "envcheck_log_results_error": False,
        "envcheck_basicauth_username": "",
        "envcheck_basicauth_password": "",
        "envcheck_notify_webhook_url": "",
        "envcheck_checks_file": "does-not-exist.yaml",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


@pytest.fixture
def registry() -> Iterator[CheckRegistry]:
    reg = CheckRegistry()
    yield reg
    reg.reset()


@pytest.fixture
def mixed_registry(registry: CheckRegistry) -> CheckRegistry:
    """A "test suite" with one OK, two WARNING and two ERROR checks."""
    registry.register("test suite", "db", StaticCheck(Severity.OK, "db fine"))
    registry.register("test suite", "cache", StaticCheck(Severity.WARNING, "cache slow"))
    registry.register("test suite", "smtp", StaticCheck(Severity.ERROR, "smtp down"))
    registry.register("test suite", "queue", StaticCheck(Severity.WARNING, "queue backlog"))
    registry.register("test suite", "disk", StaticCheck(Severity.ERROR, "disk full"))
    return registry
