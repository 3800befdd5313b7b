# wg_watchdog/system/wireguard.py
"""
WireGuard peer status via `wg show <iface> dump`.

Dump format (tab separated):
  line 1 (interface): private-key  public-key  listen-port  fwmark
  peer lines:         public-key  preshared-key  endpoint  allowed-ips  latest-handshake  rx  tx  keepalive
"""
from __future__ import annotations

import ipaddress
import logging
import subprocess
from typing import List, Optional

from wg_watchdog.errors import CommandError, InterfaceNotFoundError, NoPeerError, PrivilegeError
from wg_watchdog.models import PeerStatus
from wg_watchdog.system import commands

log = logging.getLogger("wg_watchdog.wireguard")


class StatusQuery:
    """Read-only peer status lookup for an interface."""

    def query(self, interface: str) -> PeerStatus:
        raise NotImplementedError


def parse_endpoint_ip(endpoint: str) -> Optional[str]:
    """'203.0.113.10:51820' / '[2001:db8::1]:51820' -> bare IP; None for '(none)' or garbage."""
    endpoint = (endpoint or "").strip()
    if not endpoint or endpoint == "(none)":
        return None
    if endpoint.startswith("["):
        host, sep, _ = endpoint[1:].partition("]")
        if not sep:
            return None
    else:
        host = endpoint.rsplit(":", 1)[0] if ":" in endpoint else endpoint
    # drop IPv6 zone id
    host = host.split("%", 1)[0]
    try:
        return str(ipaddress.ip_address(host))
    except ValueError:
        return None


def parse_dump(interface: str, out: str) -> List[PeerStatus]:
    peers: List[PeerStatus] = []
    lines = [ln for ln in out.splitlines() if ln.strip()]
    # first line describes the interface itself
    for line in lines[1:]:
        parts = line.split("\t")
        if len(parts) < 5:
            log.debug("skipping malformed dump line for %s: %r", interface, line)
            continue
        ip = parse_endpoint_ip(parts[2])
        if ip is None:
            log.warning("peer %s on %s has no endpoint", parts[0], interface)
            continue
        try:
            last_hs = max(0, int(parts[4]))
        except ValueError:
            last_hs = 0
        peers.append(PeerStatus(public_key=parts[0], peer_ip_address=ip, last_handshake_epoch_seconds=last_hs))
    return peers


class WgStatusQuery(StatusQuery):
    def __init__(self, timeout: float = 10.0, wg_bin: str = "wg") -> None:
        self.timeout = timeout
        self.wg_bin = wg_bin

    def query(self, interface: str) -> PeerStatus:
        try:
            rc, out, err = commands._run([self.wg_bin, "show", interface, "dump"], timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise CommandError(f"timeout querying {interface} status") from e
        if rc != 0:
            low = err.lower()
            if "operation not permitted" in low or "permission denied" in low:
                raise PrivilegeError(f"not permitted to query {interface}: {err}")
            if "no such device" in low or "unable to access interface" in low:
                raise InterfaceNotFoundError(f"wireguard interface {interface} not found: {err}")
            raise CommandError(f"wg show {interface} dump failed rc={rc}: {err}")

        peers = parse_dump(interface, out)
        if not peers:
            raise NoPeerError(f"no peer with an endpoint configured on {interface}")
        if len(peers) > 1:
            log.warning("interface %s has %d peers, monitoring only %s", interface, len(peers), peers[0].public_key)
        return peers[0]
