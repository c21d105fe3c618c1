"""Check capability and built-in probes.

Every probe implements ``check() -> (Severity, message)`` and bounds its own
I/O time; the runner imposes no timeout of its own.

Supports: SMTP handshake, HTTP(S) URL, TCP connect, DNS resolve, SQLite
ping, disk usage, file writeability and file age.
"""

from __future__ import annotations

import os
import shutil
import socket
import sqlite3
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import httpx

from .severity import Severity


@runtime_checkable
class Check(Protocol):
    """A named probe. Implementations may raise; the runner copes."""

    def check(self) -> tuple[Severity, str]: ...


# ── Result-or-fault ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CheckOutcome:
    """What calling a check produced: a verdict, or the exception it raised."""

    severity: Severity | None = None
    message: str = ""
    fault: BaseException | None = None

    @property
    def is_fault(self) -> bool:
        return self.fault is not None


def execute(check: Check) -> CheckOutcome:
    """Call ``check.check()`` and capture either its verdict or its fault."""
    try:
        severity, message = check.check()
        return CheckOutcome(severity=Severity(severity), message=message or "")
    except Exception as exc:
        return CheckOutcome(fault=exc)


# ── Probes ───────────────────────────────────────────────────────────────────


class SMTPConnectCheck:
    """Connects to an SMTP server and expects a 220 banner after HELO.

    Only the socket handshake is exercised; no mail is sent.
    """

    def __init__(self, host: str = "", port: int = 0, timeout: float = 15) -> None:
        self.host = host or "localhost"
        self.port = port or 25
        self.timeout = timeout

    def check(self) -> tuple[Severity, str]:
        try:
            sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
        except OSError as e:
            return (
                Severity.ERROR,
                f"Couldn't connect to SMTP on {self.host}:{self.port} (Error: {e})",
            )
        with sock:
            sock.sendall(b"HELO its_me\r\n")
            response = sock.recv(26).decode("ascii", errors="replace")
        if not response.startswith("220"):
            return Severity.ERROR, f"Invalid mail server response: {response}"
        return Severity.OK, ""


class URLCheck:
    """HTTP(S) check — status code must match; slow responses degrade."""

    def __init__(
        self,
        url: str,
        expected_status: int = 200,
        timeout_ms: int = 10_000,
        slow_ms: int = 3_000,
        method: str = "GET",
    ) -> None:
        self.url = url
        self.expected_status = expected_status
        self.timeout_ms = timeout_ms
        self.slow_ms = slow_ms
        self.method = method

    def check(self) -> tuple[Severity, str]:
        t0 = time.perf_counter()
        try:
            with httpx.Client(timeout=self.timeout_ms / 1000, follow_redirects=True) as client:
                resp = client.request(self.method, self.url)
        except httpx.TimeoutException:
            return Severity.ERROR, f"{self.url}: timed out ({self.timeout_ms}ms)"
        except httpx.HTTPError as e:
            return Severity.ERROR, f"{self.url}: connection error: {e}"
        latency = (time.perf_counter() - t0) * 1000

        if resp.status_code != self.expected_status:
            return (
                Severity.ERROR,
                f"{self.url}: expected {self.expected_status}, got {resp.status_code}",
            )
        if latency > self.slow_ms:
            return Severity.WARNING, f"{self.url}: slow response ({latency:.0f}ms)"
        return Severity.OK, f"{self.url}: {resp.status_code} OK"


class TCPConnectCheck:
    """Raw TCP port connectivity check."""

    def __init__(self, host: str, port: int, timeout_ms: int = 5_000) -> None:
        self.host = host
        self.port = port
        self.timeout_ms = timeout_ms

    def check(self) -> tuple[Severity, str]:
        try:
            sock = socket.create_connection((self.host, self.port), timeout=self.timeout_ms / 1000)
        except OSError as e:
            return Severity.ERROR, f"TCP connect to {self.host}:{self.port} failed: {e}"
        sock.close()
        return Severity.OK, f"Port {self.port} open"


class DNSResolveCheck:
    def __init__(self, hostname: str) -> None:
        self.hostname = hostname

    def check(self) -> tuple[Severity, str]:
        try:
            addrs = socket.getaddrinfo(self.hostname, None)
        except socket.gaierror as e:
            return Severity.ERROR, f"DNS resolution failed for {self.hostname}: {e}"
        ips = sorted({a[4][0] for a in addrs})
        return Severity.OK, f"Resolved to {', '.join(ips[:3])}"


class DatabaseCheck:
    """Opens a SQLite database and reads its schema table."""

    def __init__(self, path: str, timeout: float = 5.0) -> None:
        self.path = path
        self.timeout = timeout

    def check(self) -> tuple[Severity, str]:
        if not Path(self.path).exists():
            return Severity.ERROR, f"Database file not found: {self.path}"
        try:
            conn = sqlite3.connect(self.path, timeout=self.timeout)
            try:
                conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            return Severity.ERROR, f"Database query failed: {e}"
        return Severity.OK, "Database connection OK"


class DiskSpaceCheck:
    def __init__(self, path: str = "/", warn_percent: float = 80, error_percent: float = 95) -> None:
        self.path = path
        self.warn_percent = warn_percent
        self.error_percent = error_percent

    def check(self) -> tuple[Severity, str]:
        usage = shutil.disk_usage(self.path)
        pct = usage.used / usage.total * 100 if usage.total else 0.0
        msg = f"{self.path} is {pct:.1f}% full ({usage.free // (1024 * 1024)} MB free)"
        if pct >= self.error_percent:
            return Severity.ERROR, msg
        if pct >= self.warn_percent:
            return Severity.WARNING, msg
        return Severity.OK, msg


class FileWriteableCheck:
    def __init__(self, path: str) -> None:
        self.path = path

    def check(self) -> tuple[Severity, str]:
        if not os.path.exists(self.path):
            return Severity.ERROR, f"{self.path} does not exist"
        if not os.access(self.path, os.W_OK):
            return Severity.ERROR, f"{self.path} is not writeable"
        return Severity.OK, f"{self.path} is writeable"


class FileAgeCheck:
    """Flags a file that has not been modified within ``max_age_seconds``."""

    def __init__(
        self,
        path: str,
        max_age_seconds: int,
        severity: Severity = Severity.WARNING,
    ) -> None:
        self.path = path
        self.max_age_seconds = max_age_seconds
        self.severity = Severity(severity)

    def check(self) -> tuple[Severity, str]:
        try:
            mtime = os.path.getmtime(self.path)
        except OSError:
            return Severity.ERROR, f"{self.path} does not exist"
        age = time.time() - mtime
        if age > self.max_age_seconds:
            return self.severity, f"{self.path} last modified {age:.0f}s ago (max {self.max_age_seconds}s)"
        return Severity.OK, f"{self.path} is fresh"


# ── YAML dispatcher ──────────────────────────────────────────────────────────


def _severity_option(value: Any) -> Severity:
    if isinstance(value, str):
        return Severity[value.upper()]
    return Severity(value)


CHECK_BUILDERS: dict[str, Callable[[dict[str, Any]], Check]] = {
    "smtp": lambda o: SMTPConnectCheck(o.get("host", ""), o.get("port", 0), o.get("timeout", 15)),
    "url": lambda o: URLCheck(
        o["url"],
        o.get("expected_status", 200),
        o.get("timeout_ms", 10_000),
        o.get("slow_ms", 3_000),
        o.get("method", "GET"),
    ),
    "tcp": lambda o: TCPConnectCheck(o["host"], o["port"], o.get("timeout_ms", 5_000)),
    "dns": lambda o: DNSResolveCheck(o["hostname"]),
    "database": lambda o: DatabaseCheck(o["path"], o.get("timeout", 5.0)),
    "disk": lambda o: DiskSpaceCheck(
        o.get("path", "/"), o.get("warn_percent", 80), o.get("error_percent", 95)
    ),
    "writeable": lambda o: FileWriteableCheck(o["path"]),
    "file_age": lambda o: FileAgeCheck(
        o["path"], o["max_age_seconds"], _severity_option(o.get("severity", "warning"))
    ),
}


def build_check(check_type: str, options: dict[str, Any]) -> Check:
    """Build a probe from a ``checks.yaml`` entry. Raises ValueError on unknown types."""
    builder = CHECK_BUILDERS.get(check_type)
    if builder is None:
        raise ValueError(f"Unknown check type: {check_type}")
    return builder(options)
