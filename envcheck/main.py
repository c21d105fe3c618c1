"""Entry point for envcheck — `envcheck serve` / `envcheck check [SUITE]`."""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from envcheck.access.gate import AccessGate, AccessRequest, EnvCredentials
from envcheck.api.checker import EnvironmentChecker
from envcheck.api.server import checks_path
from envcheck.config import settings
from envcheck.health.registry import CheckRegistry
from envcheck.health.report import HealthReport
from envcheck.health.severity import Severity

console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)

_STYLE = {
    Severity.OK: "green",
    Severity.WARNING: "yellow",
    Severity.ERROR: "bold red",
}


def run_server() -> None:
    """Start the FastAPI server."""
    console.print(Panel("Starting envcheck API Server", style="bold green"))
    uvicorn.run(
        "envcheck.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


def render_report(report: HealthReport) -> Table:
    table = Table(title=f"{report.title} — {report.overall.label.upper()}")
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Message")
    for r in report.results:
        table.add_row(r.description, f"[{_STYLE[r.severity]}]{r.severity.label}[/]", r.message)
    return table


def run_cli(suite: str) -> int:
    """Run a suite in-process and print the report. Returns the exit code."""
    gate = AccessGate(EnvCredentials.from_settings(settings), settings.envcheck_permission)
    decision = gate.decide(AccessRequest(cli=True, mode=settings.envcheck_mode))
    if not decision.allowed:
        console.print(f"[red]Access denied: {decision.reason}[/red]")
        return 2

    registry = CheckRegistry()
    registry.load_yaml(checks_path(settings))

    checker = EnvironmentChecker(registry, suite, f"Environment status: {suite}", settings=settings)
    report = checker.run()

    if not report.results:
        console.print(f"[dim]Suite '{suite}' has no checks registered[/dim]")
    else:
        console.print(render_report(report))
    return 0 if report.overall == Severity.OK else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="envcheck environment checker")
    sub = parser.add_subparsers(dest="command")

    # Server mode
    sub.add_parser("serve", help="Start the API server")

    # CLI mode
    check_parser = sub.add_parser("check", help="Run a check suite")
    check_parser.add_argument("suite", nargs="?", default="check", help="Suite name")

    args = parser.parse_args()

    if args.command == "serve":
        run_server()
    elif args.command == "check":
        sys.exit(run_cli(args.suite))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
