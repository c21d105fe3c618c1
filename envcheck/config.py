from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Deployment mode: "dev" | "test" | "live"
    # dev = health endpoints are open without credentials
    envcheck_mode: str = "live"

    # Result logging (opt-in, independent switches)
    envcheck_log_results_warning: bool = False
    envcheck_log_results_error: bool = False

    # Basic auth gate — only active when BOTH are set
    envcheck_basicauth_username: str = ""
    envcheck_basicauth_password: str = ""

    # Session permission that bypasses the credential gate
    envcheck_permission: str = "ADMIN"

    # Where logged-out callers are sent when no basic auth is configured
    envcheck_login_url: str = "/Security/login"

    # HTTP status returned when a suite reports WARNING or ERROR
    envcheck_error_code: int = 500

    # Suite definitions (absolute or relative to CWD)
    envcheck_checks_file: str = "checks.yaml"

    # 1 = run checks sequentially
    envcheck_max_workers: int = 1

    # Optional Slack-style webhook fired when a suite is not OK
    envcheck_notify_webhook_url: str = ""

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"


settings = Settings()
