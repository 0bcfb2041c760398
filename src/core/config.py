"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PollConfig:
    """Scheduling and query window settings."""

    interval_seconds: float = 3600
    lookback_seconds: int = 86400
    page_size: int = 5
    request_timeout_seconds: float = 30


@dataclass(frozen=True)
class NotificationConfig:
    """Notification settings consumed by notifier adapters."""

    slack_channel: str = "#webserver-alerts"
    timezone: str = "America/New_York"


@dataclass(frozen=True)
class DedupConfig:
    """Where alerted bids are remembered."""

    path: str = "alerted_bids.txt"
    compact_on_start: bool = False
