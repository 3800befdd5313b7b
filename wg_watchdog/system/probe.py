# wg_watchdog/system/probe.py
from __future__ import annotations

import ipaddress
import logging
import subprocess

from wg_watchdog.errors import CommandError, ProbeInconclusive
from wg_watchdog.system import commands

log = logging.getLogger("wg_watchdog.probe")


class ReachabilityProbe:
    def probe(self, ip: str, attempts: int, timeout_seconds: int) -> bool:
        raise NotImplementedError

    def reachable(self, ip: str, attempts: int, timeout_seconds: int) -> bool:
        """probe() with an inconclusive result counted as unreachable."""
        try:
            return self.probe(ip, attempts, timeout_seconds)
        except ProbeInconclusive as e:
            log.warning("reachability probe to %s inconclusive, treating as unreachable: %s", ip, e)
            return False


class PingProbe(ReachabilityProbe):
    """ICMP echo via iputils ping. rc 0: reply, rc 1: no reply, other: error."""

    def __init__(self, ping_bin: str = "ping", grace_seconds: float = 2.0) -> None:
        self.ping_bin = ping_bin
        self.grace_seconds = grace_seconds

    def build_cmd(self, ip: str, attempts: int, timeout_seconds: int) -> list:
        cmd = [self.ping_bin, "-n", "-q", "-c", str(attempts), "-W", str(timeout_seconds)]
        if ipaddress.ip_address(ip).version == 6:
            cmd.append("-6")
        cmd.append(ip)
        return cmd

    def probe(self, ip: str, attempts: int, timeout_seconds: int) -> bool:
        try:
            cmd = self.build_cmd(ip, attempts, timeout_seconds)
        except ValueError as e:
            raise ProbeInconclusive(f"bad address {ip!r}") from e
        deadline = attempts * timeout_seconds + self.grace_seconds
        try:
            rc, out, err = commands._run(cmd, timeout=deadline)
        except subprocess.TimeoutExpired as e:
            raise ProbeInconclusive(f"ping timed out after {deadline}s") from e
        except CommandError as e:
            raise ProbeInconclusive(str(e)) from e
        if rc == 0:
            return True
        if rc == 1:
            log.info("no reply from %s after %d attempt(s)", ip, attempts)
            return False
        raise ProbeInconclusive(f"ping rc={rc}: {err or out}")
