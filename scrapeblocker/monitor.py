"""The loop that blocks or releases URLs and processes depending on the monitored page."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable

from scrapeblocker.chrome import ChromeError, ChromeService
from scrapeblocker.configstore import get_current_config
from scrapeblocker.domain import User
from scrapeblocker.hosts import HOSTS_FILE_PATH, HostsError, remove_urls_from_hosts_file
from scrapeblocker.processes import (
    ApplicationManager,
    ProcessError,
    ProcessInfo,
    equal_process_lists,
    intersect,
)
from scrapeblocker.system import SystemManager

log = logging.getLogger(__name__)

MONITORED_URL = "https://apps.mypurecloud.com"
POLL_INTERVAL = 2.0

SELECTORS = (
    "participant call-participant text-center ember-view",
    "sms-textarea message-input form-control",
    "interaction-icon roster-email ember-view",
)


def difference(
    old_list: Iterable[ProcessInfo], new_list: Iterable[ProcessInfo]
) -> list[ProcessInfo]:
    """Return the entries of ``old_list`` whose name no longer appears in ``new_list``."""
    names = {item.name for item in new_list}
    return [item for item in old_list if item.name not in names]


def names_to_process_infos(names: Iterable[str]) -> list[ProcessInfo]:
    """Wrap bare process names as process records without ids."""
    return [ProcessInfo(name=name) for name in names]


def page_allows_access(html: str) -> bool:
    """Tell whether the page shows one of the markers of an active interaction."""
    return any(selector in html for selector in SELECTORS)


class ProcessMonitor:
    """Keeps URLs and processes blocked unless the monitored page shows an interaction."""

    def __init__(
        self,
        system_manager: SystemManager,
        initial_processes: Iterable[str],
        initial_urls: Iterable[str],
        user: User,
        chrome_service: Any = None,
        app_manager: Any = None,
        hosts_path: str = HOSTS_FILE_PATH,
    ) -> None:
        self.user = user
        self.initial_processes = list(initial_processes or [])
        self.initial_urls = list(initial_urls or [])
        self.hosts_path = hosts_path
        self.chrome = chrome_service or ChromeService(MONITORED_URL, hosts_path=hosts_path)
        self.apps = app_manager or ApplicationManager(system_manager)
        self.previous_matching: list[ProcessInfo] = []
        self.previous_should_block = False

    def _current_lists(self) -> tuple[list[str], list[str]]:
        cfg = get_current_config()
        processes = cfg.processes_to_monitor or self.initial_processes
        urls = cfg.urls_to_block or self.initial_urls
        return list(processes), list(urls)

    def _apply(
        self, processes: Iterable[ProcessInfo], action: Callable[[Any], None], verb: str
    ) -> None:
        for info in processes:
            try:
                handles = self.apps.get_processes_in_current_session(info.name)
            except (ProcessError, OSError) as exc:
                log.warning("Could not get the processes named %s: %s", info.name, exc)
                continue
            for handle in handles:
                try:
                    action(handle)
                except ProcessError as exc:
                    log.warning("Could not %s process %s: %s", verb, info.name, exc)
                else:
                    log.info("Process %s: %s done", info.name, verb)

    def _remove_hosts_entries(self, urls: list[str]) -> None:
        try:
            remove_urls_from_hosts_file(urls, self.hosts_path)
        except HostsError as exc:
            log.warning("Could not remove the URLs from the hosts file: %s", exc)
        else:
            log.info("URLs removed from the hosts file.")

    def _unblock_everything(self, processes: list[str], urls: list[str]) -> None:
        log.info("The user is not active. Unblocking all applications.")
        self._remove_hosts_entries(urls)
        try:
            active = self.apps.list_applications_in_current_session()
        except (ProcessError, OSError) as exc:
            log.warning("Could not list the applications: %s", exc)
            return
        matching = intersect(active, names_to_process_infos(processes))
        log.info("Processes to release: %s", matching)
        self._apply(matching, self.apps.resume_process, "resume")

    def _should_block(self) -> bool:
        try:
            html = self.chrome.get_full_page_html()
        except ChromeError as exc:
            log.warning("Could not get the page HTML: %s", exc)
            return True
        return not page_allows_access(html)

    def step(self) -> bool | None:
        """Run one round; return whether access is blocked, or None for an inactive user."""
        processes, urls = self._current_lists()

        if not self.user.active:
            self._unblock_everything(processes, urls)
            self.previous_matching = []
            self.previous_should_block = False
            return None

        should_block = self._should_block()
        if should_block:
            try:
                self.chrome.block_urls_in_hosts(urls)
            except (ChromeError, HostsError) as exc:
                log.warning("Could not block the URLs in the hosts file: %s", exc)
            else:
                log.info("URLs blocked in the hosts file.")
        else:
            self._remove_hosts_entries(urls)
            try:
                self.chrome.navigate_back_to_previous_urls()
            except ChromeError as exc:
                log.warning("Could not navigate back to the previous URLs: %s", exc)
            else:
                log.info("Navigated back to the previous URLs.")

        try:
            active = self.apps.list_applications_in_current_session()
        except (ProcessError, OSError) as exc:
            log.warning("Could not list the applications: %s", exc)
            return should_block

        matching = intersect(active, names_to_process_infos(processes))
        log.info("Matching processes: %s", matching)

        gone = difference(self.previous_matching, matching)
        if gone:
            log.info("Processes no longer configured: %s", gone)
            self._apply(gone, self.apps.resume_process, "resume")

        if (
            not equal_process_lists(matching, self.previous_matching)
            or should_block != self.previous_should_block
        ):
            if should_block:
                self._apply(matching, self.apps.suspend_process, "suspend")
            else:
                self._apply(matching, self.apps.resume_process, "resume")

        self.previous_matching = matching
        self.previous_should_block = should_block
        return should_block

    def run(self, interval: float = POLL_INTERVAL) -> None:
        """Run rounds forever, pausing ``interval`` seconds between them."""
        while True:
            self.step()
            time.sleep(interval)


def monitor_processes(
    system_manager: SystemManager,
    initial_processes: Iterable[str],
    initial_urls: Iterable[str],
    user: User,
) -> None:
    """Monitor the session forever with the default services."""
    ProcessMonitor(system_manager, initial_processes, initial_urls, user).run()