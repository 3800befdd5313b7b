# wg_watchdog/engine.py
"""
Watchdog decision engine: one run, one policy.

  detection mode: peer status -> reachability probe -> decide_detection -> restart?
  forced mode:    RestartRecord -> decide_cooldown -> restart -> record_restart

Errors propagate to the caller (see wg_watchdog.cli) after the run is logged;
nothing is retried inside a run, the scheduler re-invokes us.
"""
from __future__ import annotations

import contextlib
import logging
import time
from typing import Callable, Optional

from wg_watchdog.config import WatchdogSettings
from wg_watchdog.errors import StateError
from wg_watchdog.models import Decision, Mode, RunReport
from wg_watchdog.policy import decide_cooldown, decide_detection, record_restart
from wg_watchdog.state import RestartRecordStore
from wg_watchdog.system.probe import ReachabilityProbe
from wg_watchdog.system.service import RestartCommand
from wg_watchdog.system.wireguard import StatusQuery

log = logging.getLogger("wg_watchdog.engine")

Clock = Callable[[], float]


def select_mode(settings: WatchdogSettings) -> Mode:
    return Mode.FORCED if settings.force_restart else Mode.DETECTION


class Watchdog:
    def __init__(
        self,
        settings: WatchdogSettings,
        status_query: StatusQuery,
        probe: ReachabilityProbe,
        restarter: RestartCommand,
        store: RestartRecordStore,
        clock: Optional[Clock] = None,
    ) -> None:
        self.settings = settings
        self.status_query = status_query
        self.probe = probe
        self.restarter = restarter
        self.store = store
        self.clock = clock or time.time

    @property
    def interface(self) -> str:
        return self.settings.interface_name

    def _now(self) -> int:
        return int(self.clock())

    def run(self) -> RunReport:
        mode = select_mode(self.settings)
        if mode is Mode.FORCED:
            return self.run_forced()
        return self.run_detection()

    def run_detection(self) -> RunReport:
        s = self.settings
        peer = self.status_query.query(self.interface)
        reachable = self.probe.reachable(peer.peer_ip_address, s.ping_attempts, s.ping_timeout_seconds)
        now = self._now()
        decision = decide_detection(peer, reachable, now, s.handshake_threshold_minutes)
        log.info(
            "detection: peer=%s reachable=%s last_handshake=%d -> %s (%s)",
            peer.peer_ip_address,
            reachable,
            peer.last_handshake_epoch_seconds,
            decision.action.value,
            decision.reason,
        )
        restarted = self._apply(decision)
        return RunReport(self.interface, Mode.DETECTION, decision, restarted=restarted, reachable=reachable)

    def run_forced(self) -> RunReport:
        s = self.settings
        guard = self.store.locked(self.interface) if s.state_lock else contextlib.nullcontext()
        with guard:
            record = self.store.read(self.interface)
            now = self._now()
            decision = decide_cooldown(record, now, s.restart_interval_minutes)
            log.info("forced: -> %s (%s)", decision.action.value, decision.reason)
            restarted = self._apply(decision)
            if restarted:
                # only after a confirmed restart, so a failure is retried on the next run
                try:
                    self.store.write(record_restart(self.interface, now))
                except StateError:
                    log.error("tunnel %s restarted but restart record not saved; next run restarts again", self.interface)
                    raise
        return RunReport(self.interface, Mode.FORCED, decision, restarted=restarted)

    def _apply(self, decision: Decision) -> bool:
        if not decision.restart:
            return False
        log.warning("restarting tunnel %s: %s", self.interface, decision.reason)
        self.restarter.restart(self.interface)
        log.info("tunnel %s restarted", self.interface)
        return True
