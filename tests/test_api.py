"""Tests for the gated check endpoints."""

from __future__ import annotations

import base64
import logging
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from starlette.authentication import AuthCredentials, AuthenticationBackend, SimpleUser
from starlette.middleware.authentication import AuthenticationMiddleware

from conftest import RaisingCheck, StaticCheck, make_settings
from envcheck.api.server import create_app
from envcheck.health.registry import CheckRegistry
from envcheck.health.severity import ALERT, Severity


class HeaderSessionBackend(AuthenticationBackend):
    """Stands in for the host's session: X-Test-User / X-Test-Perms headers."""

    async def authenticate(self, conn):
        user = conn.headers.get("X-Test-User")
        if not user:
            return None
        perms = [p for p in conn.headers.get("X-Test-Perms", "").split(",") if p]
        return AuthCredentials(["authenticated", *perms]), SimpleUser(user)


def _basic(username: str, password: str) -> dict[str, str]:
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


ADMIN = {"X-Test-User": "root", "X-Test-Perms": "ADMIN"}
MEMBER = {"X-Test-User": "jo"}


@pytest.fixture
def make_client(registry: CheckRegistry):
    def _make(**overrides) -> TestClient:
        app = create_app(registry=registry, settings=make_settings(**overrides))
        app.add_middleware(AuthenticationMiddleware, backend=HeaderSessionBackend())
        return TestClient(app)

    return _make


@pytest.fixture
def counted(registry: CheckRegistry) -> StaticCheck:
    check = StaticCheck(Severity.OK, "fine")
    registry.register("health", "heartbeat", check)
    return check


# ── Access ───────────────────────────────────────────────────────────────────


class TestAccess:
    def test_dev_mode_logged_out_allowed(self, make_client, counted: StaticCheck) -> None:
        resp = make_client(envcheck_mode="dev").get("/dev/health")
        assert resp.status_code == 200
        assert counted.calls == 1

    def test_admin_session_with_wrong_credentials_allowed(self, make_client, counted: StaticCheck) -> None:
        client = make_client(envcheck_basicauth_username="foo", envcheck_basicauth_password="bar")
        resp = client.get("/dev/health", headers={**ADMIN, **_basic("foo", "wrong")})
        assert resp.status_code == 200

    def test_matching_credentials_allowed(self, make_client, counted: StaticCheck) -> None:
        client = make_client(envcheck_basicauth_username="foo", envcheck_basicauth_password="bar")
        resp = client.get("/dev/health", headers={**MEMBER, **_basic("foo", "bar")})
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    @pytest.mark.parametrize(
        "headers",
        [
            MEMBER,
            {**MEMBER, **_basic("foo", "wrong")},
            {},
            {"Authorization": "Basic not-base64!!"},
        ],
    )
    def test_wrong_or_absent_credentials_challenged(self, make_client, counted: StaticCheck, headers) -> None:
        client = make_client(envcheck_basicauth_username="foo", envcheck_basicauth_password="bar")
        resp = client.get("/dev/health", headers=headers)
        assert resp.status_code == 401
        assert resp.headers["WWW-Authenticate"] == 'Basic realm="Environment Checker"'
        assert "heartbeat" not in resp.text
        assert counted.calls == 0

    def test_logged_out_without_configured_credentials_redirected(
        self, make_client, counted: StaticCheck,
    ) -> None:
        client = make_client(envcheck_basicauth_username="foo")
        resp = client.get("/dev/health", follow_redirects=False)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/Security/login?BackURL=%2Fdev%2Fhealth"
        assert counted.calls == 0

    def test_logged_in_without_configured_credentials_allowed(self, make_client, counted: StaticCheck) -> None:
        resp = make_client().get("/dev/health", headers=MEMBER)
        assert resp.status_code == 200

    def test_custom_login_url(self, make_client, counted: StaticCheck) -> None:
        client = make_client(envcheck_login_url="/login")
        resp = client.get("/dev/check/health", follow_redirects=False)
        assert resp.headers["location"] == "/login?BackURL=%2Fdev%2Fcheck%2Fhealth"

    def test_redirect_keeps_query_string(self, make_client, counted: StaticCheck) -> None:
        resp = make_client().get("/dev/health?verbose=1&x=2", follow_redirects=False)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/Security/login?BackURL=%2Fdev%2Fhealth%3Fverbose%3D1%26x%3D2"

    def test_works_without_auth_middleware(self, registry: CheckRegistry, counted: StaticCheck) -> None:
        app = create_app(registry=registry, settings=make_settings())
        resp = TestClient(app).get("/dev/health", follow_redirects=False)
        assert resp.status_code == 302


# ── Reports ──────────────────────────────────────────────────────────────────


class TestReports:
    def test_report_lists_every_check(self, make_client, registry: CheckRegistry) -> None:
        registry.register("check", "db", StaticCheck(Severity.OK, "db fine"))
        registry.register("check", "broken", RaisingCheck(RuntimeError("kaput")))
        registry.register("check", "cache", StaticCheck(Severity.WARNING, "slow"))

        resp = make_client(envcheck_mode="dev").get("/dev/check")

        assert resp.status_code == 500
        data = resp.json()
        assert data["title"] == "Environment status"
        assert data["status"] == "error"
        assert [c["description"] for c in data["checks"]] == ["db", "broken", "cache"]
        assert data["checks"][1]["status"] == "error"
        assert "kaput" in data["checks"][1]["message"]

    def test_warning_uses_configured_error_code(self, make_client, registry: CheckRegistry) -> None:
        registry.register("health", "cache", StaticCheck(Severity.WARNING, "slow"))
        resp = make_client(envcheck_mode="dev", envcheck_error_code=503).get("/dev/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "warning"

    def test_unknown_suite_is_ok(self, make_client) -> None:
        resp = make_client(envcheck_mode="dev").get("/dev/check/nope")
        assert resp.status_code == 200
        assert resp.json() == {
            "title": "Environment status: nope",
            "suite": "nope",
            "status": "ok",
            "checks": [],
        }

    def test_health_title(self, make_client, counted: StaticCheck) -> None:
        resp = make_client(envcheck_mode="dev").get("/dev/health")
        assert resp.json()["title"] == "Site health"


# ── Logging + notification ───────────────────────────────────────────────────


class TestSideEffects:
    def test_logs_alert_when_enabled(
        self, make_client, registry: CheckRegistry, caplog: pytest.LogCaptureFixture,
    ) -> None:
        registry.register("health", "smtp", StaticCheck(Severity.ERROR, "down"))
        registry.register("health", "cache", StaticCheck(Severity.WARNING, "slow"))
        caplog.set_level(logging.WARNING, logger="envcheck.health.log_policy")

        make_client(envcheck_mode="dev", envcheck_log_results_error=True).get("/dev/health")

        records = [r for r in caplog.records if r.name == "envcheck.health.log_policy"]
        assert [r.levelno for r in records] == [ALERT]
        assert "Site health" in records[0].getMessage()

    def test_denied_request_logs_nothing(
        self, make_client, registry: CheckRegistry, caplog: pytest.LogCaptureFixture,
    ) -> None:
        registry.register("health", "smtp", StaticCheck(Severity.ERROR, "down"))
        caplog.set_level(logging.WARNING, logger="envcheck.health.log_policy")

        make_client(envcheck_log_results_error=True).get("/dev/health", follow_redirects=False)

        assert not [r for r in caplog.records if r.name == "envcheck.health.log_policy"]

    def test_notifier_called_when_not_ok(self, make_client, registry: CheckRegistry) -> None:
        registry.register("health", "smtp", StaticCheck(Severity.ERROR, "down"))
        client = make_client(envcheck_mode="dev")
        notifier = MagicMock()
        notifier.is_enabled = True
        client.app.state.notifier = notifier

        client.get("/dev/health")

        notifier.notify_results.assert_called_once()
        report = notifier.notify_results.call_args.args[0]
        assert report.overall == Severity.ERROR
