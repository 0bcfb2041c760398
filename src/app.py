"""Application entry point for the loanwatch overdue-loan monitor."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv

import settings
from adapters.file_dedup_store import FileDedupStore
from adapters.graphql_poller import GraphQLPoller
from adapters.log_notifier import LoggingNotifier
from adapters.slack_notifier import SlackNotifier
from core.errors import ConfigError
from core.processor import PassProcessor
from core.scheduler import Scheduler

NAME = "LOANWATCH"
FONT = "tarty-1"

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict, secret_env_names: list[str]) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", True):
        return []
    names = set(secret_env_names) | set(redact_cfg.get("patterns", []))
    values = []
    for name in names:
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(config: dict, secret_env_names: list[str]) -> None:
    if not config.get("enabled", True):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config, secret_env_names)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/loanwatch.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers, force=True)


def _build_notifier(app_settings: settings.AppSettings, dry_run: bool):
    # Select the notification adapter here to keep the core processor
    # independent from delivery details.
    if dry_run:
        LOGGER.info("Dry run: alerts are logged, not sent to Slack")
        return LoggingNotifier(app_settings.notifications)

    token = os.getenv(settings.SLACK_TOKEN_ENV)
    # Fail fast on missing credentials rather than silently dropping alerts.
    if not token:
        raise ConfigError(f"{settings.SLACK_TOKEN_ENV} is required (or use --dry-run)")
    return SlackNotifier(token, app_settings.notifications)


def build_processor(app_settings: settings.AppSettings, dry_run: bool = False) -> PassProcessor:
    """Wire adapters into a PassProcessor; raises ConfigError on bad setup."""

    store = FileDedupStore(app_settings.dedup.path)
    if app_settings.dedup.compact_on_start:
        removed = store.compact()
        LOGGER.info("Dedup compaction removed %s redundant lines", removed)
    store.load()
    LOGGER.info("%s previously alerted bids loaded from %s", len(store), store.path)

    return PassProcessor(
        endpoints=app_settings.endpoints,
        poller=GraphQLPoller(app_settings.poll),
        store=store,
        notifier=_build_notifier(app_settings, dry_run),
    )


async def _serve(scheduler: Scheduler, max_passes: Optional[int]) -> None:
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    try:
        loop.add_signal_handler(signal.SIGTERM, task.cancel)
    except NotImplementedError:
        # Windows event loops have no signal handlers; Ctrl-C still works.
        pass

    try:
        await scheduler.run(max_passes=max_passes)
    except asyncio.CancelledError:
        LOGGER.info("Termination requested, shutting down")


def _run(config_path: Optional[str], once: bool, dry_run: bool) -> int:
    _print_banner()
    load_dotenv()

    try:
        app_settings = settings.load_settings(config_path)
    except ConfigError as exc:
        logging.basicConfig(level=logging.INFO)
        LOGGER.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG_ERROR

    _configure_logging(app_settings.logging, app_settings.secret_env_names())
    LOGGER.info("Starting loanwatch with %s endpoints", len(app_settings.endpoints))

    try:
        processor = build_processor(app_settings, dry_run=dry_run)
    except ConfigError as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG_ERROR

    scheduler = Scheduler(processor.run_pass, app_settings.poll.interval_seconds)
    try:
        asyncio.run(_serve(scheduler, max_passes=1 if once else None))
    except KeyboardInterrupt:
        LOGGER.info("Interrupted, shutting down")
    return EXIT_OK


def _check_config(config_path: Optional[str]) -> int:
    try:
        app_settings = settings.load_settings(config_path)
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    for endpoint in app_settings.endpoints:
        auth = f" auth_key={endpoint.auth_key}" if endpoint.auth_key else ""
        print(f"{endpoint.name} | chain {endpoint.chain_id} | {endpoint.url}{auth}")
    print(f"poll every {app_settings.poll.interval_seconds}s, dedup file {app_settings.dedup.path}")
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    config_help = "Path to config.json (default: project root or $LOANWATCH_CONFIG)"
    parser = argparse.ArgumentParser(prog="loanwatch")
    parser.add_argument("--config", help=config_help)
    # Accept --config after the subcommand too, without clobbering an earlier value.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default=argparse.SUPPRESS, help=config_help)
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", parents=[common], help="Start the monitor")
    run_parser.add_argument("--once", action="store_true", help="Run a single pass and exit")
    run_parser.add_argument("--dry-run", action="store_true", help="Log alerts instead of sending them")
    subparsers.add_parser("check-config", parents=[common], help="Validate the config file and list endpoints")

    args = parser.parse_args(argv)
    if args.command == "check-config":
        return _check_config(args.config)
    return _run(
        args.config,
        once=getattr(args, "once", False),
        dry_run=getattr(args, "dry_run", False),
    )


if __name__ == "__main__":
    sys.exit(main())
