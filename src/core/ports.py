"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for storage, polling and notification
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Protocol

from core.models import AlertEvent, Endpoint, EndpointFailure, LoanBid


class DedupStorePort(Protocol):
    """Persisted set of alert keys that have already been sent."""

    def contains(self, key: str) -> bool:
        ...

    def record(self, key: str) -> None:
        ...


class PollerPort(Protocol):
    """Fetches recently overdue bids from one endpoint.

    Implementations raise NetworkError subclasses on failure.
    """

    def fetch_overdue(self, endpoint: Endpoint, now: int) -> list[LoanBid]:
        ...


class NotifierPort(Protocol):
    """Notification operations required by the core pipeline.

    Implementations raise NotifyError when delivery fails.
    """

    async def send_overdue(self, event: AlertEvent) -> None:
        ...

    async def send_endpoint_failure(self, failure: EndpointFailure) -> None:
        ...
