"""Environment checker — the gated entry point that runs a suite.

Composition: access gate -> runner -> aggregate -> result logging ->
notification -> JSON response. A denied caller never reaches the runner.
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode

from fastapi import HTTPException, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.security import HTTPBasic
from starlette.concurrency import run_in_threadpool

from envcheck.access.gate import (
    ANONYMOUS,
    AccessDecision,
    AccessGate,
    AccessRequest,
    Denial,
    EnvCredentials,
    SessionInfo,
)
from envcheck.config import Settings, settings as default_settings
from envcheck.health.log_policy import ResultLogger
from envcheck.health.registry import CheckRegistry
from envcheck.health.report import HealthReport
from envcheck.health.runner import CheckRunner
from envcheck.notifications import NotificationManager

logger = logging.getLogger(__name__)

REALM = "Environment Checker"

_basic = HTTPBasic(auto_error=False, realm=REALM)


def session_from_request(request: Request) -> SessionInfo:
    """Read the host's session from Starlette's AuthenticationMiddleware scope.

    Without that middleware every request is anonymous.
    """
    user = request.scope.get("user")
    if user is None or not getattr(user, "is_authenticated", False):
        return ANONYMOUS
    auth = request.scope.get("auth")
    scopes = getattr(auth, "scopes", None) or []
    return SessionInfo(authenticated=True, permissions=frozenset(scopes))


async def credentials_from_request(request: Request) -> tuple[str | None, str | None]:
    """Supplied basic-auth pair, or (None, None) if absent or malformed."""
    try:
        creds = await _basic(request)
    except HTTPException:
        return None, None
    if creds is None:
        return None, None
    return creds.username, creds.password


class EnvironmentChecker:
    """Runs one suite on behalf of a request, behind the access gate."""

    def __init__(
        self,
        registry: CheckRegistry,
        suite: str,
        title: str,
        error_code: int | None = None,
        settings: Settings | None = None,
        notifier: NotificationManager | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.registry = registry
        self.suite = suite
        self.title = title
        self.error_code = error_code or self.settings.envcheck_error_code
        self.runner = CheckRunner(registry, max_workers=self.settings.envcheck_max_workers)
        self.result_logger = ResultLogger(
            log_on_warning=self.settings.envcheck_log_results_warning,
            log_on_error=self.settings.envcheck_log_results_error,
        )
        self.notifier = notifier or NotificationManager(self.settings.envcheck_notify_webhook_url)

    def gate(self) -> AccessGate:
        return AccessGate(
            EnvCredentials.from_settings(self.settings),
            permission=self.settings.envcheck_permission,
        )

    def run(self) -> HealthReport:
        """Run the suite, log the outcome and notify if configured."""
        results = self.runner.run(self.suite)
        report = HealthReport(title=self.title, suite=self.suite, results=results)
        self.result_logger.emit(results, title=self.title)
        if self.notifier.is_enabled:
            self.notifier.notify_results(report)
        return report

    async def decide(self, request: Request) -> AccessDecision:
        username, password = await credentials_from_request(request)
        return self.gate().decide(
            AccessRequest(
                cli=False,
                mode=self.settings.envcheck_mode,
                session=session_from_request(request),
                username=username,
                password=password,
            )
        )

    async def handle(self, request: Request) -> Response:
        decision = await self.decide(request)
        if not decision.allowed:
            logger.info(
                "Denied %s for suite '%s': %s", request.url.path, self.suite, decision.reason,
            )
            return self.deny(request, decision)

        report = await run_in_threadpool(self.run)
        return JSONResponse(report.to_dict(), status_code=report.status_code(self.error_code))

    def deny(self, request: Request, decision: AccessDecision) -> Response:
        if decision.denial == Denial.CHALLENGE:
            raise HTTPException(
                status_code=401,
                detail="Authentication required",
                headers={"WWW-Authenticate": f'Basic realm="{REALM}"'},
            )
        back_url = request.url.path
        if request.url.query:
            back_url = f"{back_url}?{request.url.query}"
        query = urlencode({"BackURL": back_url})
        return RedirectResponse(f"{self.settings.envcheck_login_url}?{query}", status_code=302)
