"""Fetching the list of processes and URLs to block from the control server."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

import requests

log = logging.getLogger(__name__)

DEFAULT_APPS_URL = "http://10.96.16.67:8080/api/v1/apps"


class ConfigError(Exception):
    """The configuration could not be fetched or understood."""


def _string_list(data: Mapping[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"field {key!r} must be a list of strings")
    return list(value)


@dataclass
class ConfigResponse:
    """The processes to watch and the URLs to block for one client."""

    processes_to_monitor: list[str] = field(default_factory=list)
    urls_to_block: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "ConfigResponse":
        """Build the configuration from the server's JSON object."""
        if not isinstance(data, Mapping):
            raise ConfigError("configuration must be a JSON object")
        return cls(
            processes_to_monitor=_string_list(data, "processes"),
            urls_to_block=_string_list(data, "urls"),
        )


def fetch_configuration(
    client: str, base_url: str = DEFAULT_APPS_URL, timeout: float = 10.0
) -> ConfigResponse:
    """Download the configuration for ``client``."""
    url = f"{base_url.rstrip('/')}/{client}"
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise ConfigError(f"GET request failed: {exc}") from exc
    with response:
        if response.status_code != 200:
            raise ConfigError(
                f"server responded with {response.status_code} {response.reason}"
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise ConfigError(f"could not decode JSON response: {exc}") from exc
    config = ConfigResponse.from_dict(data)
    log.info("Configuration fetched: %s", config)
    return config