"""FastAPI server exposing the check suites."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from envcheck import __version__
from envcheck.api.health_routes import health_router
from envcheck.config import Settings, settings as default_settings
from envcheck.health.registry import CheckRegistry
from envcheck.notifications import NotificationManager

logger = logging.getLogger(__name__)


def checks_path(settings: Settings) -> Path:
    path = Path(settings.envcheck_checks_file)
    if not path.is_absolute():
        path = Path.cwd() / path
    return path


def _make_lifespan(registry: CheckRegistry | None):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Populate the check registry on startup unless one was injected."""
        if registry is None:
            loaded = CheckRegistry()
            try:
                loaded.load_yaml(checks_path(app.state.settings))
            except Exception:
                logger.exception("Failed to load checks file — suites will be empty")
            app.state.registry = loaded
        yield

    return lifespan


def create_app(
    registry: CheckRegistry | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create the application. An injected registry is used as-is."""
    settings = settings or default_settings
    app = FastAPI(
        title="envcheck — Environment Checks",
        version=__version__,
        lifespan=_make_lifespan(registry),
    )
    app.state.settings = settings
    app.state.registry = registry if registry is not None else CheckRegistry()
    app.state.notifier = NotificationManager(settings.envcheck_notify_webhook_url)

    app.include_router(health_router)
    return app


app = create_app()
