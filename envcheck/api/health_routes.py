"""API routes for running check suites.

Endpoints:
  GET  /dev/health          — "health" suite (site health)
  GET  /dev/check           — default "check" suite
  GET  /dev/check/{suite}   — any registered suite

All three sit behind the access gate. Status is 200 when every check is OK,
otherwise the configured error code (500 by default).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response

from envcheck.api.checker import EnvironmentChecker

logger = logging.getLogger(__name__)

health_router = APIRouter(prefix="/dev", tags=["checks"])


def _checker(request: Request, suite: str, title: str) -> EnvironmentChecker:
    state = request.app.state
    return EnvironmentChecker(
        registry=state.registry,
        suite=suite,
        title=title,
        settings=state.settings,
        notifier=getattr(state, "notifier", None),
    )


@health_router.get("/health")
async def site_health(request: Request) -> Response:
    """Run the "health" suite."""
    return await _checker(request, "health", "Site health").handle(request)


@health_router.get("/check")
async def environment_check(request: Request) -> Response:
    """Run the default "check" suite."""
    return await _checker(request, "check", "Environment status").handle(request)


@health_router.get("/check/{suite}")
async def suite_check(suite: str, request: Request) -> Response:
    """Run a named suite. Unknown suites report OK with no checks."""
    return await _checker(request, suite, f"Environment status: {suite}").handle(request)
