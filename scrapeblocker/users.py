"""The local user and the control channel that switches it on and off."""

from __future__ import annotations

import getpass
import json
import logging
from datetime import datetime, timezone

import websocket

from scrapeblocker.config import ConfigError, fetch_configuration
from scrapeblocker.configstore import set_current_config
from scrapeblocker.domain import User

log = logging.getLogger(__name__)


def get_user() -> User:
    """Return the logged-in user, without any domain prefix, marked active."""
    try:
        full_name = getpass.getuser()
    except (OSError, KeyError) as exc:
        log.error("Could not get the current user: %s", exc)
        raise OSError(f"could not get the current user: {exc}") from exc
    user = User(
        name=full_name.split("\\")[-1],
        active=True,
        last_connection=datetime.now(timezone.utc),
    )
    log.info("Current user: %s", user)
    return user


def connect_and_keep_open(ws_url: str, user: User) -> None:
    """Listen on the control WebSocket and apply its messages until it closes."""
    try:
        conn = websocket.create_connection(ws_url)
    except (websocket.WebSocketException, OSError) as exc:
        log.error("Could not connect to the WebSocket: %s", exc)
        raise ConnectionError(f"could not connect to the WebSocket: {exc}") from exc
    try:
        log.info("WebSocket connection established")
        while True:
            try:
                message = conn.recv()
            except (websocket.WebSocketException, OSError) as exc:
                log.info("Error reading message from the server: %s", exc)
                break
            if not message:
                break
            log.info("Message received from the server: %s", message)
            try:
                handle_websocket_message(message, user)
            except ValueError as exc:
                log.warning("Error handling the WebSocket message: %s", exc)
    finally:
        conn.close()
    log.info("Connection closed")


def handle_websocket_message(message: str | bytes, user: User) -> None:
    """Apply one control message: user state updates or configuration refreshes."""
    try:
        payload = json.loads(message)
    except ValueError as exc:
        raise ValueError(f"could not decode WebSocket message: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("WebSocket message must be a JSON object")

    kind = payload.get("type") or ""
    if not isinstance(kind, str):
        raise ValueError("field 'type' must be a string")
    raw_users = payload.get("active_users") or []
    if not isinstance(raw_users, list) or not all(isinstance(u, dict) for u in raw_users):
        raise ValueError("field 'active_users' must be a list of objects")
    try:
        active_users = [User.from_dict(item) for item in raw_users]
    except (ValueError, TypeError) as exc:
        raise ValueError(f"invalid user in WebSocket message: {exc}") from exc

    if kind == "update":
        for active_user in active_users:
            if active_user.name == user.name:
                user.active = active_user.active
                log.info("State of user %r updated to: %s", user.name, user.active)
                break
    elif kind in ("refresh", "configuracion"):
        log.info("Configuration refresh message received: %s", kind)
        try:
            config = fetch_configuration(user.client)
        except ConfigError as exc:
            log.warning("Could not fetch the new configuration: %s", exc)
        else:
            set_current_config(config)
            log.info("New configuration stored: %s", config)
    else:
        log.info("Unknown message type: %s", kind)