"""Access gate for the check endpoints.

Rules, first match wins:

1. Non-interactive execution (CLI / cron)           -> allow
2. Deployment mode is "dev"                         -> allow
3. Session holds the admin permission               -> allow
4. Basic-auth pair configured in the environment:
     supplied credentials match                     -> allow
     otherwise                                      -> challenge (401)
   Not configured:
     any authenticated session                      -> allow
     otherwise                                      -> redirect to login

The denial shape depends only on whether the credential pair is configured,
never on what the caller sent.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class Denial(str, Enum):
    CHALLENGE = "challenge"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    denial: Denial | None = None
    reason: str = ""

    @classmethod
    def allow(cls, reason: str) -> AccessDecision:
        return cls(allowed=True, reason=reason)

    @classmethod
    def challenge(cls, reason: str) -> AccessDecision:
        return cls(allowed=False, denial=Denial.CHALLENGE, reason=reason)

    @classmethod
    def redirect(cls, reason: str) -> AccessDecision:
        return cls(allowed=False, denial=Denial.REDIRECT, reason=reason)


@dataclass(frozen=True)
class EnvCredentials:
    """Basic-auth pair sourced from ENVCHECK_BASICAUTH_USERNAME / _PASSWORD."""

    username: str = ""
    password: str = ""

    @property
    def configured(self) -> bool:
        return bool(self.username) and bool(self.password)

    @classmethod
    def from_settings(cls, settings: Any) -> EnvCredentials:
        return cls(
            username=settings.envcheck_basicauth_username or "",
            password=settings.envcheck_basicauth_password or "",
        )

    def matches(self, username: str | None, password: str | None) -> bool:
        if username is None or password is None:
            return False
        # Both comparisons always run
        user_ok = secrets.compare_digest(username.encode(), self.username.encode())
        pass_ok = secrets.compare_digest(password.encode(), self.password.encode())
        return user_ok and pass_ok


@dataclass(frozen=True)
class SessionInfo:
    authenticated: bool = False
    permissions: frozenset[str] = field(default_factory=frozenset)

    def has(self, permission: str) -> bool:
        return self.authenticated and permission in self.permissions


ANONYMOUS = SessionInfo()


@dataclass(frozen=True)
class AccessRequest:
    """The trust signals available for one request."""

    cli: bool = False
    mode: str = "live"
    session: SessionInfo = ANONYMOUS
    username: str | None = None
    password: str | None = None


class AccessGate:
    """Pure decision function over an AccessRequest."""

    def __init__(self, credentials: EnvCredentials, permission: str = "ADMIN") -> None:
        self.credentials = credentials
        self.permission = permission

    def decide(self, request: AccessRequest) -> AccessDecision:
        if request.cli:
            return AccessDecision.allow("cli")

        if request.mode.strip().lower() == "dev":
            return AccessDecision.allow("dev mode")

        if self.permission and request.session.has(self.permission):
            return AccessDecision.allow(f"session has {self.permission}")

        if self.credentials.configured:
            if self.credentials.matches(request.username, request.password):
                return AccessDecision.allow("basic auth")
            return AccessDecision.challenge("basic auth required")

        if request.session.authenticated:
            return AccessDecision.allow("authenticated session")

        return AccessDecision.redirect("login required")
