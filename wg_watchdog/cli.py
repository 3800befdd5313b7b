# wg_watchdog/cli.py
# wg-watchdog: restart a WireGuard tunnel whose handshake froze while the peer is still reachable.
# Meant to be run by cron or a systemd timer.
from __future__ import annotations

import argparse
import logging
import os
import sys
import time
import uuid
from typing import List, Optional

from wg_watchdog import __version__
from wg_watchdog.config import WatchdogSettings, load_settings
from wg_watchdog.engine import Watchdog, select_mode
from wg_watchdog.errors import EXIT_OK, ConfigError, WatchdogError
from wg_watchdog.logging_setup import set_context, setup_logging
from wg_watchdog.metrics import RunMetrics
from wg_watchdog.state import FileRestartStore
from wg_watchdog.system import PingProbe, SystemdRestart, WgStatusQuery, ensure_interface, ensure_privileged

log = logging.getLogger("wg_watchdog.cli")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="wg-watchdog",
        description="Restart a WireGuard tunnel when its handshake is stale but the peer is reachable",
    )
    p.add_argument("interface", nargs="?", default=None, help="WireGuard interface (default: wg0)")
    p.add_argument("--config", default=os.getenv("WG_WATCHDOG_CONFIG"), help="path to YAML config")
    p.add_argument("--env-file", default=None, help="path to a .env file")
    p.add_argument(
        "--force",
        action="store_const",
        const=True,
        default=None,
        help="forced mode: restart every restart_interval_minutes regardless of health",
    )
    p.add_argument("--log-level", default=None, help="DEBUG|INFO|WARNING|ERROR")
    p.add_argument("--log-json", action="store_true", default=None, help="JSON log lines")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def build_watchdog(settings: WatchdogSettings) -> Watchdog:
    return Watchdog(
        settings=settings,
        status_query=WgStatusQuery(timeout=settings.command_timeout_seconds),
        probe=PingProbe(),
        restarter=SystemdRestart(unit_template=settings.service_template),
        store=FileRestartStore(settings.state_dir),
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level, "json" if args.log_json else None)

    try:
        settings = load_settings(
            config_path=args.config,
            dotenv_path=args.env_file,
            interface_name=args.interface,
            force_restart=args.force,
        )
    except ConfigError as e:
        log.error("config error: %s", e)
        return e.exit_code

    set_context(
        interface=settings.interface_name,
        mode=select_mode(settings).value,
        run_id=uuid.uuid4().hex[:12],
    )
    metrics = RunMetrics()

    try:
        ensure_privileged()
        ensure_interface(settings.interface_name, timeout=settings.command_timeout_seconds)
        report = build_watchdog(settings).run()
    except WatchdogError as e:
        log.error("%s: %s", type(e).__name__, e)
        metrics.observe(settings.interface_name, time.time(), error=True)
        metrics.write(settings.metrics_textfile)
        return e.exit_code

    metrics.observe(settings.interface_name, time.time(), report)
    metrics.write(settings.metrics_textfile)
    if report.restarted:
        log.info("run finished: tunnel restarted")
    else:
        log.info("run finished: no action (%s)", report.decision.reason)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
