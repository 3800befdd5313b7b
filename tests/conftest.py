# tests/conftest.py
from __future__ import annotations

from typing import List, Optional

import pytest

from wg_watchdog.config import WatchdogSettings
from wg_watchdog.errors import ProbeInconclusive, RestartCommandError
from wg_watchdog.models import PeerStatus
from wg_watchdog.state import MemoryRestartStore
from wg_watchdog.system.probe import ReachabilityProbe
from wg_watchdog.system.service import RestartCommand
from wg_watchdog.system.wireguard import StatusQuery

NOW = 1_700_000_000


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep host WG_WATCHDOG_* / LOG_* variables out of the tests."""
    import os

    for key in list(os.environ):
        if key.startswith("WG_WATCHDOG_") or key.startswith("LOG_"):
            monkeypatch.delenv(key, raising=False)
    yield


class FakeStatus(StatusQuery):
    def __init__(self, peer: Optional[PeerStatus] = None, error: Optional[Exception] = None) -> None:
        self.peer = peer
        self.error = error
        self.calls: List[str] = []

    def query(self, interface: str) -> PeerStatus:
        self.calls.append(interface)
        if self.error:
            raise self.error
        assert self.peer is not None
        return self.peer


class FakeProbe(ReachabilityProbe):
    def __init__(self, result: Optional[bool] = True) -> None:
        # None -> inconclusive
        self.result = result
        self.calls: List[tuple] = []

    def probe(self, ip: str, attempts: int, timeout_seconds: int) -> bool:
        self.calls.append((ip, attempts, timeout_seconds))
        if self.result is None:
            raise ProbeInconclusive("ping exploded")
        return self.result


class FakeRestart(RestartCommand):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[str] = []

    def restart(self, interface: str) -> None:
        self.calls.append(interface)
        if self.fail:
            raise RestartCommandError(f"systemctl restart wg-quick@{interface} failed rc=1")


class FakeClock:
    def __init__(self, now: int = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return float(self.now)

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> MemoryRestartStore:
    return MemoryRestartStore()


@pytest.fixture()
def settings() -> WatchdogSettings:
    return WatchdogSettings(interface_name="wg0", state_dir="/nonexistent")
