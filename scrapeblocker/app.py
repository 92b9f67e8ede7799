"""Entry point: identify the user, fetch the configuration and start monitoring."""

from __future__ import annotations

import argparse
import logging
import threading
from pathlib import Path

from scrapeblocker.config import ConfigError, ConfigResponse, fetch_configuration
from scrapeblocker.domain import User
from scrapeblocker.monitor import monitor_processes
from scrapeblocker.system import SystemManager
from scrapeblocker.users import connect_and_keep_open, get_user

log = logging.getLogger(__name__)

CLIENT = "latam"
BASE_WS_URL = "ws://10.96.16.67:8080/api/v1/ws"
ICON_PATH = "resources/icono.ico"
TITLE = "ScrapeBlocker"
STATUS_TEXT = "ScrapeBlocker - LATAM Airlines v1.0.2 - Almacontact"


def get_icon(path: str | Path) -> bytes:
    """Return the raw bytes of the icon file."""
    return Path(path).read_bytes()


def build_ws_url(base_url: str, user_name: str, client: str) -> str:
    """Return the control channel URL for a user of a client."""
    return f"{base_url}/{user_name}/{client}"


def _keep_control_channel(ws_url: str, user: User) -> None:
    try:
        connect_and_keep_open(ws_url, user)
    except ConnectionError as exc:
        log.error("WebSocket error: %s", exc)


def run() -> None:
    """Start the control channel and the monitor; return when interrupted."""
    try:
        user = get_user()
    except OSError as exc:
        log.critical("Could not get the user: %s", exc)
        raise SystemExit(1) from exc
    user.client = CLIENT

    try:
        config = fetch_configuration(CLIENT)
    except ConfigError as exc:
        log.error("Error fetching the configuration: %s", exc)
        config = ConfigResponse()

    ws_url = build_ws_url(BASE_WS_URL, user.name, CLIENT)
    system_manager = SystemManager()

    try:
        get_icon(ICON_PATH)
    except OSError as exc:
        log.error("Error loading icon: %s", exc)
        return

    log.info("%s: %s", TITLE, STATUS_TEXT)
    threading.Thread(
        target=_keep_control_channel, args=(ws_url, user), daemon=True
    ).start()

    log.info("Starting the monitor with config %s and user %s", config, user)
    try:
        monitor_processes(
            system_manager, config.processes_to_monitor, config.urls_to_block, user
        )
    except KeyboardInterrupt:
        pass
    finally:
        log.info("Leaving the application...")


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(prog="scrapeblocker", description=STATUS_TEXT)
    parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())