"""Application entry point for notifhub."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

from art import tprint
from dotenv import load_dotenv

from notifhub.runtime import Hub, open_hub, run_ingestion
from notifhub.settings import Settings, load_settings

NAME = "NOTIFHUB"
FONT = "tarty-1"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    """Mask secret values (API hash, phone, 2FA) in every formatted line."""

    def __init__(self, secrets: list[str]) -> None:
        super().__init__(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        for secret in self._secrets:
            text = text.replace(secret, "***")
        return text


def _redaction_values(redact: dict[str, Any]) -> list[str]:
    if not redact.get("enabled", False):
        return []
    found = {os.getenv(name) for name in redact.get("patterns", [])}
    # Longest first so a secret containing another is masked whole.
    return sorted((value for value in found if value), key=len, reverse=True)


def _file_handler(file_cfg: dict[str, Any], config_path: str) -> logging.Handler:
    path = file_cfg.get("path", "logs/notifhub.log")
    if not os.path.isabs(path):
        path = os.path.join(os.path.dirname(config_path), path)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )


def _configure_logging(settings: Settings, console: bool = True) -> None:
    """Install console/file handlers from the logging section of config.json.

    The viewer passes ``console=False`` so log lines never draw over the TUI.
    """

    config: dict[str, Any] = settings.logging or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    formatter = _RedactingFormatter(_redaction_values(config.get("redact") or {}))

    handlers: list[logging.Handler] = []
    if console and config.get("console", True):
        handlers.append(logging.StreamHandler())
    file_cfg = config.get("file") or {}
    if file_cfg.get("enabled", False):
        handlers.append(_file_handler(file_cfg, settings.config_path))
    if not handlers:
        return

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=handlers, force=True)


async def _watch(hub: Hub) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, stop.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops do not support signal handlers.
            pass
    await run_ingestion(hub, stop, interactive=True)


def _run(settings: Settings) -> None:
    _print_banner()
    _configure_logging(settings)
    logger = logging.getLogger(__name__)
    logger.info("Starting notifhub")

    hub = open_hub(settings)
    try:
        asyncio.run(_watch(hub))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


def _view(settings: Settings) -> None:
    _configure_logging(settings, console=False)
    from notifhub.frontend.app import NotificationHubApp

    NotificationHubApp(open_hub(settings)).run()


def _sweep(settings: Settings) -> None:
    _configure_logging(settings)
    hub = open_hub(settings)
    print(f"{hub.storage.count()} notifications retained in {hub.storage.db_path}")


def _login() -> None:
    _print_banner()
    from notifhub.client import authorize, build_client

    async def _run_login() -> None:
        client = build_client()
        await client.connect()
        await authorize(client)
        me = await client.get_me()
        print(f"Logged in as: {me.first_name}")
        await client.disconnect()

    asyncio.run(_run_login())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="notifhub")
    parser.add_argument(
        "--config",
        help=(
            "Path to config.json. Defaults to NOTIFHUB_CONFIG, then config.json in the "
            "source checkout; set one of them when notifhub is installed from a wheel."
        ),
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Capture notifications without a UI")
    subparsers.add_parser("view", help="Browse notifications while capturing them")
    subparsers.add_parser("sweep", help="Evict expired notifications and print the count")
    subparsers.add_parser("login", help="Authorize the Telegram session")

    args = parser.parse_args(argv)
    if args.command == "login":
        _login()
        return

    settings = load_settings(args.config)
    if args.command == "view":
        _view(settings)
        return
    if args.command == "sweep":
        _sweep(settings)
        return
    _run(settings)


if __name__ == "__main__":
    main()
