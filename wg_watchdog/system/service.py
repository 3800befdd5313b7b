# wg_watchdog/system/service.py
from __future__ import annotations

import logging

from wg_watchdog.errors import CommandError, RestartCommandError
from wg_watchdog.system import commands

log = logging.getLogger("wg_watchdog.service")


class RestartCommand:
    def restart(self, interface: str) -> None:
        """Blocking restart. Raises RestartCommandError on failure."""
        raise NotImplementedError


class SystemdRestart(RestartCommand):
    """systemctl restart wg-quick@<iface>; wg-quick re-resolves the endpoint on the way up."""

    def __init__(self, unit_template: str = "wg-quick@{interface}", systemctl_bin: str = "systemctl") -> None:
        self.unit_template = unit_template
        self.systemctl_bin = systemctl_bin

    def unit(self, interface: str) -> str:
        return self.unit_template.format(interface=interface)

    def restart(self, interface: str) -> None:
        unit = self.unit(interface)
        log.info("restarting %s", unit)
        try:
            rc, _, err = commands._run([self.systemctl_bin, "restart", unit])
        except CommandError as e:
            raise RestartCommandError(str(e)) from e
        if rc != 0:
            raise RestartCommandError(f"systemctl restart {unit} failed rc={rc}: {err}")
