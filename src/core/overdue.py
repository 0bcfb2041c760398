"""Overdue detection and alert selection (core domain)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List

from core.models import AlertEvent, Endpoint, LoanBid
from core.ports import DedupStorePort


def is_overdue(bid: LoanBid, now: int) -> bool:
    """A bid is overdue once its next due date is strictly in the past."""

    return bid.next_due_date < now


def alert_key(endpoint: Endpoint, bid: LoanBid) -> str:
    """Return the dedup key for a bid, scoped by chain.

    Bid ids are only unique per indexer, so the chain id is part of the key.
    """

    return f"{endpoint.chain_id}:{bid.bid_id}"


def select_new_alerts(
    endpoint: Endpoint,
    bids: Iterable[LoanBid],
    store: DedupStorePort,
    now: int,
) -> List[AlertEvent]:
    """Return one AlertEvent per bid that is overdue and not yet alerted.

    The store is only read here; recording happens after a successful send.
    """

    timestamp = datetime.fromtimestamp(now, tz=timezone.utc)
    events: List[AlertEvent] = []
    seen_in_batch: set[str] = set()
    for bid in bids:
        if not is_overdue(bid, now):
            continue
        key = alert_key(endpoint, bid)
        if key in seen_in_batch or store.contains(key):
            continue
        seen_in_batch.add(key)
        events.append(AlertEvent(endpoint=endpoint, bid=bid, timestamp=timestamp))
    return events
