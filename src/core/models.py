"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to the indexer's JSON shape or to Slack.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Endpoint:
    """One chain-specific indexer polled every pass."""

    name: str
    url: str
    chain_id: int
    # Name of the environment variable holding the bearer token, not the token.
    auth_key: Optional[str] = None


@dataclass(frozen=True)
class LoanBid:
    """A loan bid as returned by the indexer for a single pass."""

    bid_id: str
    borrower: str
    principal: str
    next_due_date: int
    status: str
    token_symbol: str = "unknown"
    token_decimals: int = 0


@dataclass(frozen=True)
class AlertEvent:
    """A newly overdue bid that should be announced."""

    endpoint: Endpoint
    bid: LoanBid
    timestamp: datetime


@dataclass(frozen=True)
class EndpointFailure:
    """A failed endpoint query that should be announced."""

    endpoint: Endpoint
    error: str
    timestamp: datetime
