"""Driving Chrome tabs through the DevTools protocol."""

from __future__ import annotations

import contextlib
import json
import logging
from typing import Any, Callable

import requests
import websocket

from scrapeblocker.hosts import HOSTS_FILE_PATH, add_urls_to_hosts_file

log = logging.getLogger(__name__)

DEVTOOLS_URL = "http://localhost:9222/json"
BLANK_PAGE = "about:blank"

_SOCKET_ERRORS = (websocket.WebSocketException, OSError)


class ChromeError(Exception):
    """Chrome could not be reached or answered in an unexpected way."""


def _default_connect(url: str) -> Any:
    return websocket.create_connection(url)


def _call(conn: Any, request_id: int, method: str, params: dict | None = None) -> dict:
    """Send one DevTools command and return the decoded reply."""
    request: dict[str, Any] = {"id": request_id, "method": method}
    if params is not None:
        request["params"] = params
    try:
        conn.send(json.dumps(request))
    except _SOCKET_ERRORS as exc:
        raise ChromeError(f"error sending {method}: {exc}") from exc
    try:
        raw = conn.recv()
    except _SOCKET_ERRORS as exc:
        raise ChromeError(f"error reading response to {method}: {exc}") from exc
    try:
        response = json.loads(raw)
    except ValueError as exc:
        raise ChromeError(f"error decoding response to {method}: {exc}") from exc
    if not isinstance(response, dict):
        raise ChromeError(f"unexpected response format: {response!r}")
    return response


class ChromeService:
    """Reads the monitored page and redirects tabs showing blocked URLs."""

    def __init__(
        self,
        url_to_monitor: str,
        devtools_url: str = DEVTOOLS_URL,
        hosts_path: str = HOSTS_FILE_PATH,
        connect: Callable[[str], Any] | None = None,
        timeout: float | None = None,
    ) -> None:
        self.url_to_monitor = url_to_monitor
        self.devtools_url = devtools_url
        self.hosts_path = hosts_path
        self.timeout = timeout
        self._connect = connect or _default_connect
        self._conn: Any = None
        self._tab_prev_urls: dict[str, str] = {}

    @property
    def connected(self) -> bool:
        """Whether a connection to the monitored tab is open."""
        return self._conn is not None

    def _dial(self, ws_url: str) -> Any:
        try:
            return self._connect(ws_url)
        except _SOCKET_ERRORS as exc:
            raise ChromeError(f"error connecting to WebSocket: {exc}") from exc

    def _targets(self) -> list[dict[str, Any]]:
        try:
            response = requests.get(self.devtools_url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ChromeError(f"error connecting to Chrome DevTools: {exc}") from exc
        with response:
            try:
                data = response.json()
            except ValueError as exc:
                raise ChromeError(f"error decoding targets: {exc}") from exc
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise ChromeError("error decoding targets: expected a list of objects")
        return data

    def connect(self) -> None:
        """Open a connection to the first page whose URL holds the monitored URL."""
        page = next(
            (
                target
                for target in self._targets()
                if target.get("type") == "page"
                and isinstance(target.get("url"), str)
                and self.url_to_monitor in target["url"]
            ),
            None,
        )
        ws_url = page.get("webSocketDebuggerUrl") if page else None
        if not isinstance(ws_url, str) or not ws_url:
            raise ChromeError(
                f"no suitable tab found with URL containing: {self.url_to_monitor}"
            )
        self._conn = self._dial(ws_url)

    def close(self) -> None:
        """Close the connection to the monitored tab, if one is open."""
        if self._conn is None:
            return
        try:
            self._conn.close()
        except _SOCKET_ERRORS as exc:
            log.warning("Error closing the connection: %s", exc)
        else:
            log.info("Connection to Chrome closed")
        self._conn = None

    def get_full_page_html(self) -> str:
        """Return the outer HTML of the monitored page's document."""
        self.connect()
        try:
            response = _call(self._conn, 1, "DOM.getDocument")
            result = response.get("result")
            if not isinstance(result, dict):
                raise ChromeError(f"unexpected response format: {response}")
            root = result.get("root")
            if not isinstance(root, dict):
                raise ChromeError(f"unexpected root format: {result}")
            node_id = root.get("nodeId")
            if isinstance(node_id, bool) or not isinstance(node_id, (int, float)):
                raise ChromeError(f"unexpected nodeId format: {root}")

            response = _call(self._conn, 2, "DOM.getOuterHTML", {"nodeId": node_id})
            result = response.get("result")
            if not isinstance(result, dict):
                raise ChromeError(f"unexpected response format: {response}")
            html = result.get("outerHTML")
            if not isinstance(html, str):
                raise ChromeError(f"unexpected outerHTML format: {result}")
        finally:
            self.close()
        log.info("Page HTML fetched")
        return html

    def _navigate_tab(self, ws_url: str, url: str) -> None:
        conn = self._dial(ws_url)
        try:
            for request_id, method, params in (
                (1, "Page.enable", None),
                (2, "Page.navigate", {"url": url}),
            ):
                response = _call(conn, request_id, method, params)
                if "error" in response:
                    raise ChromeError(f"CDP error in {method}: {response['error']}")
        finally:
            with contextlib.suppress(*_SOCKET_ERRORS):
                conn.close()

    def block_urls_in_hosts(self, urls_to_block: list[str]) -> None:
        """Block the URLs in the hosts file and blank every tab that shows one."""
        urls_to_block = list(urls_to_block)
        add_urls_to_hosts_file(urls_to_block, self.hosts_path)

        for target in self._targets():
            page_url = target.get("url")
            tab_id = target.get("id")
            if not isinstance(page_url, str) or not isinstance(tab_id, str):
                continue
            for blocked in urls_to_block:
                if blocked not in page_url:
                    continue
                ws_url = target.get("webSocketDebuggerUrl")
                if not isinstance(ws_url, str):
                    log.warning("No WebSocket URL for tab with URL %s", page_url)
                    continue
                self._tab_prev_urls[tab_id] = page_url
                try:
                    self._navigate_tab(ws_url, BLANK_PAGE)
                except ChromeError as exc:
                    log.warning("Could not redirect tab with URL %s: %s", page_url, exc)
                else:
                    log.info("Redirected tab with URL %s", page_url)
                break

    def navigate_back_to_previous_urls(self) -> None:
        """Send every redirected tab back to the URL it showed before."""
        for target in self._targets():
            tab_id = target.get("id")
            if not isinstance(tab_id, str) or tab_id not in self._tab_prev_urls:
                continue
            prev_url = self._tab_prev_urls[tab_id]
            ws_url = target.get("webSocketDebuggerUrl")
            if not isinstance(ws_url, str):
                log.warning("No WebSocket URL for tab with id %s", tab_id)
                continue
            try:
                self._navigate_tab(ws_url, prev_url)
            except ChromeError as exc:
                log.warning("Could not navigate back in tab %s: %s", tab_id, exc)
            else:
                log.info("Navigated back to %s in tab %s", prev_url, tab_id)
            del self._tab_prev_urls[tab_id]