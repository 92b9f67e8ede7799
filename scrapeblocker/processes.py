"""Listing, suspending and resuming the processes of the current session."""

from __future__ import annotations

import csv
import io
import logging
import os
import subprocess
import sys
from dataclasses import dataclass
from typing import Any, Iterable

import psutil

from scrapeblocker.system import SystemManager

log = logging.getLogger(__name__)

_IS_WINDOWS = sys.platform == "win32"


@dataclass(frozen=True)
class ProcessInfo:
    """A process name and, when known, its id."""

    name: str
    id: int = 0


class ProcessError(Exception):
    """A process could not be found, suspended or resumed."""


def _session_table() -> dict[int, int] | None:
    """Map every pid to its session on Windows; None elsewhere."""
    if not _IS_WINDOWS:
        return None
    try:
        completed = subprocess.run(
            ["tasklist", "/FO", "CSV", "/NH"], capture_output=True, check=True
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        raise ProcessError(f"could not list processes: {exc}") from exc
    table = {}
    output = completed.stdout.decode("utf-8", errors="replace")
    for row in csv.reader(io.StringIO(output)):
        if len(row) >= 4 and row[1].isdigit() and row[3].isdigit():
            table[int(row[1])] = int(row[3])
    return table


def _session_of(pid: int, table: dict[int, int] | None) -> int | None:
    if table is not None:
        return table.get(pid)
    try:
        return os.getsid(pid)
    except OSError:
        return None


class ApplicationManager:
    """Works on the processes running in the caller's session."""

    def __init__(self, system_manager: SystemManager) -> None:
        self._system = system_manager

    def suspend_process(self, process: Any) -> None:
        """Suspend a process."""
        log.info("Suspending process %s", process.pid)
        try:
            process.suspend()
        except psutil.Error as exc:
            raise ProcessError(f"failed to suspend process: {exc}") from exc

    def resume_process(self, process: Any) -> None:
        """Resume a suspended process."""
        log.info("Resuming process %s", process.pid)
        try:
            process.resume()
        except psutil.Error as exc:
            raise ProcessError(f"failed to resume process: {exc}") from exc

    def _session_processes(self):
        current = self._system.current_session_id()
        table = _session_table()
        for process in psutil.process_iter(["pid", "name"]):
            pid = process.info["pid"]
            if _session_of(pid, table) == current:
                yield process

    def list_applications_in_current_session(self) -> list[ProcessInfo]:
        """Return every process of the current session."""
        apps = [
            ProcessInfo(name=process.info.get("name") or "", id=process.info["pid"])
            for process in self._session_processes()
        ]
        if not apps:
            raise ProcessError("no applications found in the current session")
        return apps

    def get_processes_in_current_session(self, process_name: str) -> list[Any]:
        """Return the processes of the current session with the given name."""
        found = []
        for process in self._session_processes():
            if (process.info.get("name") or "") == process_name:
                log.info("Found process %s (PID: %d) in current session.",
                         process_name, process.info["pid"])
                found.append(process)
        if not found:
            raise ProcessError(
                f"no instances of process {process_name} found in the current session"
            )
        return found


def intersect(a: Iterable[ProcessInfo], b: Iterable[ProcessInfo]) -> list[ProcessInfo]:
    """Return the entries of ``a`` whose name appears in ``b``, in ``a``'s order."""
    names = {item.name for item in b}
    return [item for item in a if item.name in names]


def equal_process_lists(a: list[ProcessInfo], b: list[ProcessInfo]) -> bool:
    """Tell whether both lists have the same length and ``b``'s ids all occur in ``a``."""
    if len(a) != len(b):
        return False
    ids = {item.id for item in a}
    return all(item.id in ids for item in b)