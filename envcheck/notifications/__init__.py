"""Failure notifications — Slack-style incoming webhook.

Fires when a suite run finishes with WARNING or ERROR and a webhook URL is
configured. Delivery problems are logged and never affect the check
response.
"""

from __future__ import annotations

import logging

import httpx

from envcheck.health.report import HealthReport
from envcheck.health.severity import Severity

logger = logging.getLogger(__name__)

# Emoji/icon mapping
_EMOJI = {
    Severity.WARNING: "⚠️",
    Severity.ERROR: "🔴",
}


class NotificationManager:
    """Posts a summary of non-OK suite runs to a webhook."""

    def __init__(self, webhook_url: str = "", timeout: float = 10) -> None:
        self.webhook_url = webhook_url
        self.timeout = timeout

    @property
    def is_enabled(self) -> bool:
        return bool(self.webhook_url)

    def notify_results(self, report: HealthReport) -> bool:
        """Send the report if it is not OK. Returns True if a message was delivered."""
        overall = report.overall
        if not self.is_enabled or overall == Severity.OK:
            return False

        lines = [f"{_EMOJI[overall]} *{report.title}* — {overall.label.upper()}"]
        for r in report.results:
            if r.severity != Severity.OK:
                lines.append(f"• {r.description}: {r.severity.label} {r.message}".rstrip())
        return self._send("\n".join(lines))

    # -- Low-level dispatch -------------------------------------------------

    def _send(self, text: str) -> bool:
        """POST to the incoming webhook."""
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.post(self.webhook_url, json={"text": text, "mrkdwn": True})
        except httpx.HTTPError as exc:
            logger.warning("Webhook notification failed: %s", exc)
            return False
        if resp.status_code != 200:
            logger.warning("Webhook returned %d: %s", resp.status_code, resp.text[:200])
            return False
        return True
