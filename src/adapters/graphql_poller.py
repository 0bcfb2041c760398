"""GraphQL indexer adapter.

Queries a lending-protocol subgraph for accepted bids whose next due date
fell inside the lookback window, and maps them to core LoanBid values.
"""

from __future__ import annotations

import http.client
import json
import logging
import os
import urllib.error
import urllib.request
from typing import Any, Optional

from core.config import PollConfig
from core.errors import EndpointQueryError, ResponseParseError
from core.models import Endpoint, LoanBid

LOGGER = logging.getLogger(__name__)

_BIDS_QUERY = """
{{
  bids(
    where: {{
      nextDueDate_lt: "{due_before}",
      nextDueDate_gt: "{due_after}",
      status: "Accepted"
    }}
    first: {first}
  ) {{
    id
    bidId
    nextDueDate
    borrowerAddress
    status
    principal
    lendingToken {{
      id
      symbol
      decimals
    }}
  }}
}}
"""

# Error bodies can be whole HTML pages; keep alerts readable.
_MAX_ERROR_BODY_CHARS = 500


def build_query(now: int, lookback_seconds: int, page_size: int) -> str:
    """Return the bids query bounded to (now - lookback, now)."""

    return _BIDS_QUERY.format(
        due_before=now,
        due_after=now - lookback_seconds,
        first=page_size,
    )


def resolve_auth_token(endpoint: Endpoint) -> Optional[str]:
    """Look up the endpoint's bearer token in the environment, if configured."""

    if not endpoint.auth_key:
        return None
    token = os.getenv(endpoint.auth_key)
    if not token:
        LOGGER.warning(
            "auth_key '%s' specified for %s but the environment variable is not set",
            endpoint.auth_key,
            endpoint.name,
        )
        return None
    return token


def _text_field(raw: dict, key: str, default: str = "unknown") -> str:
    value = raw.get(key)
    if value is None:
        return default
    return str(value)


def _int_field(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_bid(raw: dict) -> LoanBid:
    """Map one indexer bid object to a LoanBid.

    Display fields fall back to placeholders, but the due date is required
    because overdue detection depends on it.
    """

    try:
        next_due_date = int(raw["nextDueDate"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"bid {raw.get('bidId')!r} has no usable nextDueDate") from exc

    token = raw.get("lendingToken")
    if not isinstance(token, dict):
        token = {}
    return LoanBid(
        bid_id=_text_field(raw, "bidId"),
        borrower=_text_field(raw, "borrowerAddress"),
        principal=_text_field(raw, "principal", default="0"),
        next_due_date=next_due_date,
        status=_text_field(raw, "status"),
        token_symbol=_text_field(token, "symbol"),
        token_decimals=_int_field(token.get("decimals")),
    )


class GraphQLPoller:
    """Poller adapter that POSTs the bids query to each endpoint."""

    def __init__(self, poll_config: PollConfig) -> None:
        self._config = poll_config

    def fetch_overdue(self, endpoint: Endpoint, now: int) -> list[LoanBid]:
        """Return bids due in the lookback window; raise NetworkError on failure."""

        query = build_query(now, self._config.lookback_seconds, self._config.page_size)
        LOGGER.debug("Query body for %s: %s", endpoint.name, query)
        body = self._post(endpoint, {"query": query})
        return self._parse(endpoint, body)

    def _post(self, endpoint: Endpoint, payload: dict) -> str:
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(endpoint.url, data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        request.add_header("Accept", "application/json")
        token = resolve_auth_token(endpoint)
        if token:
            request.add_header("Authorization", f"Bearer {token}")

        # Blocking call: passes are sequential, so only the current pass waits.
        try:
            with urllib.request.urlopen(request, timeout=self._config.request_timeout_seconds) as response:
                status = response.status
                text = response.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as exc:
            error_body = exc.read().decode("utf-8", errors="replace")[:_MAX_ERROR_BODY_CHARS]
            raise EndpointQueryError(endpoint, f"HTTP {exc.code}: {error_body}") from exc
        except urllib.error.URLError as exc:
            raise EndpointQueryError(endpoint, f"request failed: {exc.reason}") from exc
        except TimeoutError as exc:
            raise EndpointQueryError(
                endpoint,
                f"request timed out after {self._config.request_timeout_seconds}s",
            ) from exc
        except (OSError, http.client.HTTPException) as exc:
            raise EndpointQueryError(endpoint, f"request failed: {exc!r}") from exc

        if not 200 <= status < 300:
            raise EndpointQueryError(endpoint, f"HTTP {status}: {text[:_MAX_ERROR_BODY_CHARS]}")
        return text

    def _parse(self, endpoint: Endpoint, text: str) -> list[LoanBid]:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ResponseParseError(endpoint, f"invalid JSON response: {exc}") from exc

        if not isinstance(payload, dict):
            raise ResponseParseError(endpoint, "response is not a JSON object")

        # GraphQL reports query errors with a 200 status.
        if payload.get("errors"):
            raise ResponseParseError(endpoint, json.dumps(payload["errors"])[:_MAX_ERROR_BODY_CHARS])

        data = payload.get("data")
        raw_bids = data.get("bids") if isinstance(data, dict) else None
        if not isinstance(raw_bids, list):
            raise ResponseParseError(endpoint, "response has no data.bids list")

        bids: list[LoanBid] = []
        for raw in raw_bids:
            if not isinstance(raw, dict):
                raise ResponseParseError(endpoint, "bid entry is not an object")
            try:
                bids.append(parse_bid(raw))
            except ValueError as exc:
                raise ResponseParseError(endpoint, str(exc)) from exc
        return bids
