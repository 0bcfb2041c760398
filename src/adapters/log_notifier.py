"""Dry-run notification adapter.

Formats alerts exactly like the Slack adapter but writes them to the log.
"""

from __future__ import annotations

import logging

from adapters.notification_formatting import format_endpoint_failure, format_overdue_alert
from core.config import NotificationConfig
from core.models import AlertEvent, EndpointFailure

LOGGER = logging.getLogger(__name__)


class LoggingNotifier:
    """Notifier adapter that logs messages instead of delivering them."""

    def __init__(self, notification_config: NotificationConfig) -> None:
        self._config = notification_config

    async def send_overdue(self, event: AlertEvent) -> None:
        message = format_overdue_alert(event, self._config.timezone)
        LOGGER.info("[DRY RUN] Would send to %s:\n%s", self._config.slack_channel, message)

    async def send_endpoint_failure(self, failure: EndpointFailure) -> None:
        message = format_endpoint_failure(failure, self._config.timezone)
        LOGGER.info("[DRY RUN] Would send to %s:\n%s", self._config.slack_channel, message)
