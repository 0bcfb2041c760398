"""Static configuration for loanwatch.

All user-editable settings (endpoints, polling, notifications, dedup,
logging) live in a single JSON file for quick edits without touching Python.
Secrets never go in the file: endpoints name the environment variable that
holds their token.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.config import DedupConfig, NotificationConfig, PollConfig
from core.errors import ConfigError
from core.models import Endpoint

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Default config location; override with --config or LOANWATCH_CONFIG.
CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")

# Environment variable holding the Slack bot token.
SLACK_TOKEN_ENV = "SLACK_OAUTH_TOKEN"


@dataclass(frozen=True)
class AppSettings:
    """Everything the entry point needs, parsed once at startup."""

    endpoints: tuple[Endpoint, ...]
    poll: PollConfig
    notifications: NotificationConfig
    dedup: DedupConfig
    logging: dict = field(default_factory=dict)

    def secret_env_names(self) -> list[str]:
        """Environment variable names whose values must never be logged."""

        names = [SLACK_TOKEN_ENV]
        names.extend(endpoint.auth_key for endpoint in self.endpoints if endpoint.auth_key)
        return names


def default_config_path() -> str:
    return os.getenv("LOANWATCH_CONFIG") or CONFIG_PATH


def _load_json_config(path: str) -> dict:
    """Load the JSON config file, failing loudly on anything unusable."""

    if not os.path.exists(path):
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as handle:
            raw = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file is not valid JSON: {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Config file could not be read: {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file must contain a JSON object: {path}")
    return raw


def _section(raw: dict, name: str) -> dict:
    value = raw.get(name, {})
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be an object")
    return value


def _logging_section(raw: dict) -> dict:
    """Validate the nested logging objects app.py reads with .get()."""

    logging_cfg = _section(raw, "logging")
    for name in ("file", "redact"):
        value = logging_cfg.get(name, {})
        if not isinstance(value, dict):
            raise ConfigError(f"'logging.{name}' must be an object")
    patterns = logging_cfg.get("redact", {}).get("patterns", [])
    if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
        raise ConfigError("logging.redact.patterns must be a list of strings")
    return logging_cfg


def _parse_endpoint(index: int, entry: Any) -> Endpoint:
    where = f"endpoints[{index}]"
    if not isinstance(entry, dict):
        raise ConfigError(f"{where} must be an object")

    name = entry.get("name")
    url = entry.get("url")
    chain_id = entry.get("chain_id")
    auth_key = entry.get("auth_key")

    if not isinstance(name, str) or not name.strip():
        raise ConfigError(f"{where}.name is required")
    if not isinstance(url, str) or not url.startswith(("http://", "https://")):
        raise ConfigError(f"{where}.url must be an http(s) URL")
    # bool is an int subclass; reject it explicitly.
    if not isinstance(chain_id, int) or isinstance(chain_id, bool):
        raise ConfigError(f"{where}.chain_id must be an integer")
    if auth_key is not None and (not isinstance(auth_key, str) or not auth_key.strip()):
        raise ConfigError(f"{where}.auth_key must be a non-empty string when set")

    return Endpoint(name=name.strip(), url=url, chain_id=chain_id, auth_key=auth_key)


def _number(section: dict, key: str, default: float, where: str) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{where}.{key} must be a positive number")
    return value


def load_settings(path: Optional[str] = None) -> AppSettings:
    """Parse the config file into AppSettings or raise ConfigError."""

    path = path or default_config_path()
    raw = _load_json_config(path)

    raw_endpoints = raw.get("endpoints")
    if not isinstance(raw_endpoints, list) or not raw_endpoints:
        raise ConfigError("'endpoints' must be a non-empty list")
    endpoints = tuple(_parse_endpoint(i, entry) for i, entry in enumerate(raw_endpoints))

    names = [endpoint.name for endpoint in endpoints]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ConfigError(f"Duplicate endpoint names: {', '.join(duplicates)}")

    _poll = _section(raw, "poll")
    poll = PollConfig(
        interval_seconds=_number(_poll, "interval_seconds", 3600, "poll"),
        lookback_seconds=int(_number(_poll, "lookback_seconds", 86400, "poll")),
        page_size=int(_number(_poll, "page_size", 5, "poll")),
        request_timeout_seconds=_number(_poll, "request_timeout_seconds", 30, "poll"),
    )

    _notifications = _section(raw, "notifications")
    timezone_name = _notifications.get("timezone", NotificationConfig.timezone)
    try:
        ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as exc:
        raise ConfigError(f"Unknown notifications.timezone: {timezone_name!r}") from exc
    channel = _notifications.get("slack_channel", NotificationConfig.slack_channel)
    if not isinstance(channel, str) or not channel.strip():
        raise ConfigError("notifications.slack_channel must be a non-empty string")
    notifications = NotificationConfig(slack_channel=channel, timezone=timezone_name)

    _dedup = _section(raw, "dedup")
    dedup_path = _dedup.get("path", DedupConfig.path)
    if not isinstance(dedup_path, str) or not dedup_path:
        raise ConfigError("dedup.path must be a non-empty string")
    # Relative paths are anchored at the project root, like log files.
    if not os.path.isabs(dedup_path):
        dedup_path = os.path.join(PROJECT_ROOT, dedup_path)
    compact_on_start = _dedup.get("compact_on_start", False)
    if not isinstance(compact_on_start, bool):
        raise ConfigError("dedup.compact_on_start must be true or false")
    dedup = DedupConfig(path=dedup_path, compact_on_start=compact_on_start)

    return AppSettings(
        endpoints=endpoints,
        poll=poll,
        notifications=notifications,
        dedup=dedup,
        logging=_logging_section(raw),
    )
