"""Exception types for loanwatch.

Hierarchy:
    LoanwatchError (base)
    ├── ConfigError - invalid or missing startup configuration (fatal)
    ├── NetworkError - an endpoint query failed
    │   ├── EndpointQueryError - timeout, connection failure, non-2xx
    │   └── ParseError - the response could not be used
    │       └── ResponseParseError - bad JSON, GraphQL errors, missing data
    └── NotifyError - the messaging service did not accept a message

Only ConfigError is allowed to stop the process. Everything else is caught
per endpoint or per alert inside the pass.
"""

from __future__ import annotations

from typing import Any, Optional

from core.models import Endpoint


class LoanwatchError(Exception):
    """Base exception carrying a message and optional structured details."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigError(LoanwatchError):
    """Startup configuration is missing or malformed."""


class NetworkError(LoanwatchError):
    """An endpoint query failed.

    The endpoint is kept on the exception so a failure alert can name it.
    """

    def __init__(self, endpoint: Endpoint, message: str) -> None:
        super().__init__(message, details={"endpoint": endpoint.name, "url": endpoint.url})
        self.endpoint = endpoint


class EndpointQueryError(NetworkError):
    """Timeout, connection failure or non-2xx status from an endpoint."""


class ParseError(NetworkError):
    """An endpoint answered but the body was unusable."""


class ResponseParseError(ParseError):
    """Body was not JSON, carried GraphQL errors, or lacked data.bids."""


class NotifyError(LoanwatchError):
    """The messaging service was unreachable or rejected a message."""
