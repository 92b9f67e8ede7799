import os

import psutil
import pytest

import scrapeblocker.processes as processes
from scrapeblocker.processes import (
    ApplicationManager,
    ProcessError,
    ProcessInfo,
    equal_process_lists,
    intersect,
)
from scrapeblocker.system import SystemManager


class FakeSystem:
    def __init__(self, session):
        self.session = session

    def current_session_id(self):
        return self.session


class FakeProcess:
    def __init__(self, pid, name, error=None):
        self.pid = pid
        self.info = {"pid": pid, "name": name}
        self.calls = []
        self.error = error

    def suspend(self):
        if self.error:
            raise self.error
        self.calls.append("suspend")

    def resume(self):
        if self.error:
            raise self.error
        self.calls.append("resume")


@pytest.fixture
def fake_session(monkeypatch):
    procs = [
        FakeProcess(10, "app.exe"),
        FakeProcess(11, "other.exe"),
        FakeProcess(12, "app.exe"),
        FakeProcess(13, "app.exe"),
    ]
    sessions = {10: 5, 11: 5, 12: 5, 13: 9}
    monkeypatch.setattr(processes, "_IS_WINDOWS", False)
    monkeypatch.setattr(os, "getsid", lambda pid: sessions[pid], raising=False)
    monkeypatch.setattr(psutil, "process_iter", lambda *a, **k: iter(procs))
    return procs


def test_list_only_current_session(fake_session):
    apps = ApplicationManager(FakeSystem(5)).list_applications_in_current_session()
    assert apps == [
        ProcessInfo("app.exe", 10),
        ProcessInfo("other.exe", 11),
        ProcessInfo("app.exe", 12),
    ]


def test_list_empty_session_raises(fake_session):
    with pytest.raises(ProcessError):
        ApplicationManager(FakeSystem(99)).list_applications_in_current_session()


def test_get_processes_by_name(fake_session):
    found = ApplicationManager(FakeSystem(5)).get_processes_in_current_session("app.exe")
    assert found == [fake_session[0], fake_session[2]]


def test_get_processes_missing_name_raises(fake_session):
    with pytest.raises(ProcessError, match="absent.exe"):
        ApplicationManager(FakeSystem(5)).get_processes_in_current_session("absent.exe")


def test_suspend_and_resume_call_the_process():
    manager = ApplicationManager(FakeSystem(1))
    proc = FakeProcess(1, "app.exe")
    manager.suspend_process(proc)
    manager.resume_process(proc)
    assert proc.calls == ["suspend", "resume"]


def test_suspend_and_resume_failures_raise():
    manager = ApplicationManager(FakeSystem(1))
    proc = FakeProcess(1, "app.exe", error=psutil.NoSuchProcess(1))
    with pytest.raises(ProcessError, match="suspend"):
        manager.suspend_process(proc)
    with pytest.raises(ProcessError, match="resume"):
        manager.resume_process(proc)


def test_real_session_includes_this_process():
    apps = ApplicationManager(SystemManager()).list_applications_in_current_session()
    assert any(app.id == os.getpid() for app in apps)


def test_intersect_keeps_order_and_matches_by_name():
    a = [ProcessInfo("x", 1), ProcessInfo("y", 2), ProcessInfo("x", 3)]
    b = [ProcessInfo("x")]
    assert intersect(a, b) == [ProcessInfo("x", 1), ProcessInfo("x", 3)]
    assert intersect(a, []) == []


def test_equal_process_lists():
    a = [ProcessInfo("x", 1), ProcessInfo("y", 2)]
    assert equal_process_lists(a, list(reversed(a)))
    assert not equal_process_lists(a, a[:1])
    assert not equal_process_lists(a, [ProcessInfo("x", 1), ProcessInfo("z", 3)])
    assert equal_process_lists([], [])