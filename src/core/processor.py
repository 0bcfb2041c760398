"""Core polling pass.

This module is integration-agnostic. It only relies on ports for polling,
dedup storage and notifications, so the pass can be driven by fakes in tests.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable

from core.errors import NetworkError, NotifyError
from core.models import AlertEvent, Endpoint, EndpointFailure
from core.overdue import alert_key, select_new_alerts
from core.ports import DedupStorePort, NotifierPort, PollerPort

LOGGER = logging.getLogger(__name__)


@dataclass
class PassSummary:
    """Counters for one pass over all endpoints."""

    endpoints_ok: int = 0
    endpoints_failed: int = 0
    alerts_sent: int = 0
    alerts_failed: int = 0


class PassProcessor:
    """Orchestrates polling, overdue filtering, notification and dedup."""

    def __init__(
        self,
        endpoints: Iterable[Endpoint],
        poller: PollerPort,
        store: DedupStorePort,
        notifier: NotifierPort,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._endpoints = list(endpoints)
        self._poller = poller
        self._store = store
        self._notifier = notifier
        self._clock = clock

    async def run_pass(self) -> PassSummary:
        """Visit every endpoint once, in configured order.

        Failures are isolated per endpoint and per alert; nothing raised by an
        adapter escapes this method.
        """

        summary = PassSummary()
        for endpoint in self._endpoints:
            now = int(self._clock())
            LOGGER.info("Querying endpoint %s: %s", endpoint.name, endpoint.url)
            try:
                bids = self._poller.fetch_overdue(endpoint, now)
            except NetworkError as exc:
                LOGGER.warning("Failed to query endpoint %s: %s", endpoint.url, exc)
                summary.endpoints_failed += 1
                await self._report_failure(endpoint, exc.message, now)
                continue
            except Exception as exc:
                LOGGER.exception("Unexpected error while querying %s", endpoint.url)
                summary.endpoints_failed += 1
                await self._report_failure(endpoint, str(exc) or type(exc).__name__, now)
                continue

            summary.endpoints_ok += 1
            if not bids:
                LOGGER.info("No overdue bids found on %s.", endpoint.name)
                continue

            LOGGER.info(
                "Found %s overdue bid(s) on %s, checking for new alerts...",
                len(bids),
                endpoint.name,
            )
            for event in select_new_alerts(endpoint, bids, self._store, now):
                if await self._deliver(event):
                    summary.alerts_sent += 1
                else:
                    summary.alerts_failed += 1

        LOGGER.info(
            "Pass complete: endpoints ok=%s failed=%s, alerts sent=%s failed=%s",
            summary.endpoints_ok,
            summary.endpoints_failed,
            summary.alerts_sent,
            summary.alerts_failed,
        )
        return summary

    async def _deliver(self, event: AlertEvent) -> bool:
        key = alert_key(event.endpoint, event.bid)
        try:
            await self._notifier.send_overdue(event)
        except NotifyError as exc:
            # Left unrecorded so the next pass tries again.
            LOGGER.error("Failed to send alert for %s: %s", key, exc)
            return False
        except Exception:
            LOGGER.exception("Unexpected error while sending alert for %s", key)
            return False

        # Record only after the send succeeded: a crash here means a duplicate
        # alert on restart, never a lost one.
        try:
            self._store.record(key)
        except Exception:
            LOGGER.exception("Alert for %s was sent but could not be recorded", key)
        else:
            LOGGER.info("Alert sent and recorded for %s", key)
        return True

    async def _report_failure(self, endpoint: Endpoint, error: str, now: int) -> None:
        failure = EndpointFailure(
            endpoint=endpoint,
            error=error,
            timestamp=datetime.fromtimestamp(now, tz=timezone.utc),
        )
        try:
            await self._notifier.send_endpoint_failure(failure)
        except NotifyError as exc:
            LOGGER.error("Failed to send endpoint failure alert for %s: %s", endpoint.name, exc)
        except Exception:
            LOGGER.exception("Unexpected error while sending endpoint failure alert for %s", endpoint.name)
