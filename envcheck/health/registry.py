"""Check registry — named suites of (description, check) entries.

Populated once at startup (code or ``checks.yaml``) and read-only while
requests are served. ``reset()`` exists for test isolation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .checks import Check, build_check

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckEntry:
    description: str
    check: Check


class CheckRegistry:
    """Maps suite name to its checks in registration order."""

    def __init__(self) -> None:
        self._suites: dict[str, list[CheckEntry]] = {}

    def register(self, suite: str, description: str, check: Check) -> None:
        """Append a check to ``suite``, creating the suite if needed.

        Registering the same check twice runs it twice.
        """
        self._suites.setdefault(suite, []).append(CheckEntry(description, check))

    def entries_for(self, suite: str) -> tuple[CheckEntry, ...]:
        """Entries of ``suite`` in order; empty for an unknown suite."""
        return tuple(self._suites.get(suite, ()))

    def suites(self) -> list[str]:
        return list(self._suites)

    def reset(self) -> None:
        self._suites.clear()

    def load_yaml(self, path: Path) -> int:
        """Register the suites defined in a checks.yaml file.

        Returns the number of checks registered. Malformed entries are
        skipped with a warning; a missing or unparseable file registers
        nothing.
        """
        if not path.exists():
            logger.warning("Checks file not found: %s", path)
            return 0

        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            logger.error("Failed to parse %s: %s", path, e)
            return 0

        if not isinstance(raw, dict) or not isinstance(raw.get("suites") or {}, dict):
            logger.warning("Ignoring %s: expected a 'suites' mapping", path)
            return 0

        count = 0
        for suite, entries in (raw.get("suites") or {}).items():
            if not isinstance(entries, list):
                logger.warning("Skipping suite '%s': entries must be a list", suite)
                continue
            for entry in entries:
                try:
                    description, check = _parse_entry(entry)
                except (KeyError, ValueError, TypeError) as e:
                    logger.warning("Skipping malformed check in suite '%s': %s", suite, e)
                    continue
                self.register(suite, description, check)
                count += 1

        logger.info("Loaded %d checks in %d suites from %s", count, len(self._suites), path)
        return count


def _parse_entry(raw: dict[str, Any]) -> tuple[str, Check]:
    options = dict(raw)
    check_type = options.pop("type")
    description = options.pop("description", check_type)
    return description, build_check(check_type, options)
