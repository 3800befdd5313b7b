"""Thin wrappers around the wg, ip, ping and systemctl commands."""
from wg_watchdog.system.commands import ensure_interface, ensure_privileged
from wg_watchdog.system.probe import PingProbe, ReachabilityProbe
from wg_watchdog.system.service import RestartCommand, SystemdRestart
from wg_watchdog.system.wireguard import StatusQuery, WgStatusQuery

__all__ = [
    "ensure_interface",
    "ensure_privileged",
    "PingProbe",
    "ReachabilityProbe",
    "RestartCommand",
    "SystemdRestart",
    "StatusQuery",
    "WgStatusQuery",
]
