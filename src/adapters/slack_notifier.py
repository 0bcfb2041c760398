"""Slack Web API notification adapter.

Posts alerts to a single channel with chat.postMessage using a bot token.
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.request

from adapters.notification_formatting import format_endpoint_failure, format_overdue_alert
from core.config import NotificationConfig
from core.errors import NotifyError
from core.models import AlertEvent, EndpointFailure

LOGGER = logging.getLogger(__name__)

SLACK_POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"


class SlackNotifier:
    """Notifier adapter that sends messages via the Slack Web API."""

    def __init__(
        self,
        token: str,
        notification_config: NotificationConfig,
        timeout_seconds: float = 10,
        api_url: str = SLACK_POST_MESSAGE_URL,
    ) -> None:
        self._token = token
        self._config = notification_config
        self._timeout = timeout_seconds
        self._api_url = api_url

    async def send_overdue(self, event: AlertEvent) -> None:
        await self._post(format_overdue_alert(event, self._config.timezone))

    async def send_endpoint_failure(self, failure: EndpointFailure) -> None:
        await self._post(format_endpoint_failure(failure, self._config.timezone))

    async def _post(self, text: str) -> None:
        payload = {
            "channel": self._config.slack_channel,
            "text": text,
            "unfurl_links": False,
        }
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self._api_url, data=data, method="POST")
        request.add_header("Content-Type", "application/json; charset=utf-8")
        request.add_header("Authorization", f"Bearer {self._token}")
        # We use a blocking HTTP call; the pass is sequential so nothing else
        # is waiting on the event loop meanwhile.
        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                body = response.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as e:
            error_body = e.read().decode("utf-8", errors="replace")
            raise NotifyError(f"Slack API error {e.code}: {error_body}") from e
        except (OSError, http.client.HTTPException) as e:
            raise NotifyError(f"Slack API unreachable: {e!r}") from e

        # Slack answers 200 even for rejected messages; the verdict is in "ok".
        try:
            result = json.loads(body)
        except json.JSONDecodeError as e:
            raise NotifyError(f"Slack API returned non-JSON body: {body[:200]}") from e
        if not isinstance(result, dict):
            raise NotifyError(f"Slack API returned unexpected body: {body[:200]}")
        if not result.get("ok", False):
            raise NotifyError(
                f"Slack API rejected message: {result.get('error', 'unknown error')}",
                details={"channel": self._config.slack_channel},
            )
        LOGGER.info("Slack alert sent to %s", self._config.slack_channel)
