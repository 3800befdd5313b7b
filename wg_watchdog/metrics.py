# wg_watchdog/metrics.py
"""
Per-run Prometheus metrics for the node_exporter textfile collector.

A fresh CollectorRegistry is built each run: the process is short-lived, so
counters would reset anyway. Gauges describe the outcome of the last run.
"""
from __future__ import annotations

import logging
from typing import Optional

from prometheus_client import CollectorRegistry, Gauge, write_to_textfile

from wg_watchdog.models import RunReport

log = logging.getLogger("wg_watchdog.metrics")


class RunMetrics:
    def __init__(self) -> None:
        self.registry = CollectorRegistry()
        labels = ["interface"]
        self.last_run = Gauge(
            "wg_watchdog_last_run_timestamp_seconds", "Unix time of the last watchdog run", labels, registry=self.registry
        )
        self.success = Gauge(
            "wg_watchdog_run_success", "Whether the last run completed without error (1/0)", labels, registry=self.registry
        )
        self.handshake_age = Gauge(
            "wg_watchdog_handshake_age_seconds", "Age of the latest peer handshake", labels, registry=self.registry
        )
        self.reachable = Gauge(
            "wg_watchdog_peer_reachable", "Peer endpoint reachability (1/0)", labels, registry=self.registry
        )
        self.restart = Gauge(
            "wg_watchdog_restart_triggered", "Whether the last run restarted the tunnel (1/0)", labels, registry=self.registry
        )
        self.cooldown_remaining = Gauge(
            "wg_watchdog_cooldown_remaining_minutes", "Minutes until the next forced restart is due", labels, registry=self.registry
        )

    def observe(self, interface: str, now: float, report: Optional[RunReport] = None, error: bool = False) -> None:
        self.last_run.labels(interface).set(now)
        self.success.labels(interface).set(0 if error else 1)
        if report is None:
            return
        self.restart.labels(interface).set(1 if report.restarted else 0)
        if report.reachable is not None:
            self.reachable.labels(interface).set(1 if report.reachable else 0)
        if report.decision.handshake_age_seconds is not None:
            self.handshake_age.labels(interface).set(report.decision.handshake_age_seconds)
        if report.decision.remaining_minutes is not None:
            self.cooldown_remaining.labels(interface).set(report.decision.remaining_minutes)

    def write(self, path: Optional[str]) -> bool:
        if not path:
            return False
        try:
            write_to_textfile(path, self.registry)
        except OSError as e:
            log.warning("failed to write metrics textfile %s: %s", path, e)
            return False
        return True
