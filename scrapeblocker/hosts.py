"""Blocking URLs through the hosts file, and killing Chrome processes that show them."""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Iterable, Iterator

log = logging.getLogger(__name__)

HOSTS_FILE_PATH = r"C:\Windows\System32\drivers\etc\hosts"
BLOCK_ADDRESS = "0.0.0.0"


class HostsError(Exception):
    """The hosts file or the Chrome process list could not be handled."""


def add_urls_to_hosts_file(urls: Iterable[str], path: str = HOSTS_FILE_PATH) -> None:
    """Append a blocking entry for each URL that the file does not hold yet."""
    try:
        with open(path, "r+", encoding="utf-8", errors="surrogateescape", newline="") as handle:
            existing = {line.removesuffix("\r") for line in handle.read().split("\n")}
            handle.seek(0, os.SEEK_END)
            for url in urls:
                entry = f"{BLOCK_ADDRESS} {url}"
                if entry in existing:
                    log.info("URL already in hosts file: %s", entry)
                    continue
                handle.write(entry + "\n")
                log.info("URL added to hosts file: %s", entry)
    except OSError as exc:
        raise HostsError(f"could not update hosts file {path}: {exc}") from exc


def remove_urls_from_hosts_file(urls: Iterable[str], path: str = HOSTS_FILE_PATH) -> None:
    """Drop every line of the hosts file that mentions one of the URLs."""
    urls = list(urls)
    try:
        with open(path, encoding="utf-8", errors="surrogateescape", newline="") as handle:
            lines = handle.read().split("\n")
    except OSError as exc:
        raise HostsError(f"could not read hosts file {path}: {exc}") from exc

    kept = []
    for line in lines:
        if any(url in line for url in urls):
            log.info("URL removed from hosts file: %s", line)
        else:
            kept.append(line)

    try:
        with open(path, "w", encoding="utf-8", errors="surrogateescape", newline="") as handle:
            handle.write("\n".join(kept))
    except OSError as exc:
        raise HostsError(f"could not write hosts file {path}: {exc}") from exc


def _run(args: list[str]) -> str:
    completed = subprocess.run(args, capture_output=True, check=True)
    return completed.stdout.decode("utf-8", errors="replace")


def _chrome_pids() -> list[str]:
    try:
        output = _run(["tasklist", "/FI", "IMAGENAME eq chrome.exe", "/FO", "CSV", "/NH"])
    except (OSError, subprocess.CalledProcessError) as exc:
        raise HostsError(f"could not list Chrome processes: {exc}") from exc
    pids = []
    for line in output.split("\n"):
        fields = line.split(",")
        if len(fields) >= 2:
            pids.append(fields[1].strip('"'))
    return pids


def _chrome_processes_showing(urls: list[str]) -> Iterator[tuple[str, str]]:
    """Yield (pid, url) for each Chrome process whose command line names a URL."""
    for pid in _chrome_pids():
        try:
            command_line = _run(
                ["wmic", "process", "where", f"ProcessId={pid}", "get", "CommandLine"]
            )
        except (OSError, subprocess.CalledProcessError) as exc:
            log.warning("Could not read the URLs of process %s: %s", pid, exc)
            continue
        url = next((url for url in urls if url in command_line), None)
        if url is not None:
            yield pid, url


def _kill(pid: str) -> None:
    try:
        subprocess.run(["taskkill", "/PID", pid, "/F"], capture_output=True, check=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise HostsError(f"could not kill process {pid}: {exc}") from exc


def close_chrome_tabs_with_urls(urls: Iterable[str]) -> None:
    """Kill the Chrome processes that show one of the URLs."""
    for pid, url in _chrome_processes_showing(list(urls)):
        try:
            _kill(pid)
        except HostsError as exc:
            log.warning("Could not close process %s: %s", pid, exc)
        else:
            log.info("Closed tab with URL: %s", url)


def hard_reload_tabs_with_urls(urls: Iterable[str]) -> None:
    """Force a reload of the Chrome processes showing one of the URLs by killing them."""
    urls = list(urls)
    for pid, url in _chrome_processes_showing(urls):
        try:
            _kill(pid)
        except HostsError as exc:
            log.warning("Hard reload of tab with URL %s failed: %s", url, exc)
        else:
            log.info("Hard reload done for tab with URL: %s", url)
    log.info("Hard reload of tabs completed: %s", urls)