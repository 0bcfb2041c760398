"""Shared notification formatting helpers.

Keeping formatting here prevents drift between adapters and keeps messages
consistent regardless of delivery channel.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from zoneinfo import ZoneInfo

from core.models import AlertEvent, EndpointFailure, LoanBid

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %Z"


def format_timestamp(moment: datetime, timezone_name: str) -> str:
    """Render an aware datetime in the display timezone."""

    return moment.astimezone(ZoneInfo(timezone_name)).strftime(TIMESTAMP_FORMAT)


def format_principal(bid: LoanBid) -> str:
    """Scale the raw on-chain principal by token decimals, two places."""

    try:
        raw = Decimal(bid.principal)
    except InvalidOperation:
        raw = Decimal(0)
    amount = raw.scaleb(-bid.token_decimals)
    return f"{amount:.2f}"


def format_overdue_alert(event: AlertEvent, timezone_name: str) -> str:
    """Create the plain-text body for a newly overdue bid."""

    bid = event.bid
    lines = [
        "🚨 Overdue Loan Alert!",
        f"Timestamp: {format_timestamp(event.timestamp, timezone_name)}",
        f"Chain ID: {event.endpoint.chain_id}",
        f"Bid ID: {bid.bid_id}",
        f"Borrower: {bid.borrower}",
        f"Principal Token: {bid.token_symbol}",
        f"Principal Amount: {format_principal(bid)}",
        f"Next Due Date: {bid.next_due_date}",
        f"Status: {bid.status}",
    ]
    return "\n".join(lines)


def format_endpoint_failure(failure: EndpointFailure, timezone_name: str) -> str:
    """Create the plain-text body for an endpoint that could not be queried."""

    lines = [
        "⚠️ GraphQL Endpoint Failed!",
        f"Timestamp: {format_timestamp(failure.timestamp, timezone_name)}",
        f"Endpoint: {failure.endpoint.name} {failure.endpoint.url}",
        f"Error: {failure.error}",
    ]
    return "\n".join(lines)
