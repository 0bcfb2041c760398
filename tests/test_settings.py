from __future__ import annotations

import json
import os

import pytest

import settings
from core.errors import ConfigError
from core.models import Endpoint


def _write(tmp_path, payload) -> str:
    path = tmp_path / "config.json"
    if isinstance(payload, str):
        path.write_text(payload, encoding="utf-8")
    else:
        path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


MINIMAL = {
    "endpoints": [
        {"name": "mainnet", "url": "https://indexer.example/1", "chain_id": 1},
        {"name": "polygon", "url": "https://indexer.example/137", "chain_id": 137, "auth_key": "POLY_KEY"},
    ]
}


def test_loads_endpoints_in_order_with_defaults(tmp_path) -> None:
    loaded = settings.load_settings(_write(tmp_path, MINIMAL))

    assert loaded.endpoints == (
        Endpoint(name="mainnet", url="https://indexer.example/1", chain_id=1),
        Endpoint(name="polygon", url="https://indexer.example/137", chain_id=137, auth_key="POLY_KEY"),
    )
    assert loaded.poll.interval_seconds == 3600
    assert loaded.poll.lookback_seconds == 86400
    assert loaded.notifications.slack_channel == "#webserver-alerts"
    assert loaded.notifications.timezone == "America/New_York"
    assert loaded.dedup.path == os.path.join(settings.PROJECT_ROOT, "alerted_bids.txt")


def test_secret_env_names_include_auth_keys(tmp_path) -> None:
    loaded = settings.load_settings(_write(tmp_path, MINIMAL))
    assert loaded.secret_env_names() == ["SLACK_OAUTH_TOKEN", "POLY_KEY"]


def test_absolute_dedup_path_is_kept(tmp_path) -> None:
    dedup_path = str(tmp_path / "state.txt")
    payload = dict(MINIMAL, dedup={"path": dedup_path, "compact_on_start": True})
    loaded = settings.load_settings(_write(tmp_path, payload))
    assert loaded.dedup.path == dedup_path
    assert loaded.dedup.compact_on_start is True


def test_missing_file_is_config_error(tmp_path) -> None:
    with pytest.raises(ConfigError):
        settings.load_settings(str(tmp_path / "nope.json"))


def test_invalid_json_is_config_error(tmp_path) -> None:
    with pytest.raises(ConfigError):
        settings.load_settings(_write(tmp_path, "{not json"))


@pytest.mark.parametrize(
    "endpoints",
    [
        [],
        [{"url": "https://indexer.example", "chain_id": 1}],
        [{"name": "x", "url": "indexer.example", "chain_id": 1}],
        [{"name": "x", "url": "https://indexer.example", "chain_id": "1"}],
        [{"name": "x", "url": "https://indexer.example", "chain_id": True}],
        [{"name": "x", "url": "https://indexer.example", "chain_id": 1, "auth_key": ""}],
        [
            {"name": "x", "url": "https://a.example", "chain_id": 1},
            {"name": "x", "url": "https://b.example", "chain_id": 2},
        ],
    ],
)
def test_malformed_endpoints_are_config_errors(tmp_path, endpoints) -> None:
    with pytest.raises(ConfigError):
        settings.load_settings(_write(tmp_path, {"endpoints": endpoints}))


def test_unknown_timezone_is_config_error(tmp_path) -> None:
    payload = dict(MINIMAL, notifications={"timezone": "Mars/Olympus_Mons"})
    with pytest.raises(ConfigError):
        settings.load_settings(_write(tmp_path, payload))


def test_non_positive_interval_is_config_error(tmp_path) -> None:
    payload = dict(MINIMAL, poll={"interval_seconds": 0})
    with pytest.raises(ConfigError):
        settings.load_settings(_write(tmp_path, payload))


def test_env_var_overrides_default_path(tmp_path, monkeypatch) -> None:
    path = _write(tmp_path, MINIMAL)
    monkeypatch.setenv("LOANWATCH_CONFIG", path)
    assert len(settings.load_settings().endpoints) == 2


@pytest.mark.parametrize("value", ["false", "true", 0, 1, None])
def test_compact_on_start_must_be_boolean(tmp_path, value) -> None:
    payload = dict(MINIMAL, dedup={"compact_on_start": value})
    with pytest.raises(ConfigError):
        settings.load_settings(_write(tmp_path, payload))


@pytest.mark.parametrize(
    "logging_cfg",
    [
        "verbose",
        {"file": True},
        {"redact": "SLACK_OAUTH_TOKEN"},
        {"redact": {"patterns": "SLACK_OAUTH_TOKEN"}},
        {"redact": {"patterns": [1]}},
    ],
)
def test_malformed_logging_section_is_config_error(tmp_path, logging_cfg) -> None:
    payload = dict(MINIMAL, logging=logging_cfg)
    with pytest.raises(ConfigError):
        settings.load_settings(_write(tmp_path, payload))


def test_valid_logging_section_is_passed_through(tmp_path) -> None:
    logging_cfg = {"level": "DEBUG", "file": {"enabled": False}, "redact": {"patterns": ["EXTRA"]}}
    loaded = settings.load_settings(_write(tmp_path, dict(MINIMAL, logging=logging_cfg)))
    assert loaded.logging == logging_cfg
