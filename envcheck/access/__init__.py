"""Access control for the check endpoints."""

from .gate import (
    ANONYMOUS,
    AccessDecision,
    AccessGate,
    AccessRequest,
    Denial,
    EnvCredentials,
    SessionInfo,
)
