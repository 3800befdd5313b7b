# tests/test_system.py
from __future__ import annotations

import subprocess
from typing import List

import pytest

import wg_watchdog.system.commands as cmds
from wg_watchdog.errors import (
    CommandError,
    InterfaceNotFoundError,
    NoPeerError,
    PrivilegeError,
    ProbeInconclusive,
    RestartCommandError,
)
from wg_watchdog.system.probe import PingProbe
from wg_watchdog.system.service import SystemdRestart
from wg_watchdog.system.wireguard import WgStatusQuery, parse_dump, parse_endpoint_ip

IFACE_LINE = "PRIVKEY\tPUBKEY\t51820\toff"


def _dump(*peers: str) -> str:
    return "\n".join([IFACE_LINE, *peers]) + "\n"


def _peer_line(pub="PEERPUB", endpoint="203.0.113.10:51820", hs="1700000000") -> str:
    return "\t".join([pub, "(none)", endpoint, "0.0.0.0/0,::/0", hs, "1234", "5678", "25"])


@pytest.fixture()
def fake_run(monkeypatch):
    """
    Replaces commands._run; each test sets `responses[argv0]` to (rc, out, err)
    or to an exception instance to raise.
    """
    executed: List[List[str]] = []
    responses = {}

    def _fake(cmd, timeout=None):
        executed.append(list(cmd))
        resp = responses.get(cmd[0], (0, "", ""))
        if isinstance(resp, BaseException):
            raise resp
        return resp

    monkeypatch.setattr(cmds, "_run", _fake, raising=True)
    return executed, responses


# ---------- endpoint / dump parsing ----------


@pytest.mark.parametrize(
    "endpoint,expected",
    [
        ("203.0.113.10:51820", "203.0.113.10"),
        ("[2001:db8::1]:51820", "2001:db8::1"),
        ("[fe80::1%eth0]:51820", "fe80::1"),
        ("(none)", None),
        ("", None),
        ("vpn.example.com:51820", None),
        ("[2001:db8::1", None),
    ],
)
def test_parse_endpoint_ip(endpoint, expected):
    assert parse_endpoint_ip(endpoint) == expected


def test_parse_dump_skips_interface_line_and_peers_without_endpoint():
    out = _dump(_peer_line(pub="A", endpoint="(none)"), _peer_line(pub="B", hs="0"))
    peers = parse_dump("wg0", out)
    assert len(peers) == 1
    assert peers[0].public_key == "B"
    assert peers[0].peer_ip_address == "203.0.113.10"
    assert peers[0].never_handshaked


def test_parse_dump_empty_interface():
    assert parse_dump("wg0", IFACE_LINE + "\n") == []
    assert parse_dump("wg0", "") == []


# ---------- WgStatusQuery ----------


def test_status_query_returns_first_peer(fake_run):
    executed, responses = fake_run
    responses["wg"] = (0, _dump(_peer_line(pub="A"), _peer_line(pub="B", endpoint="[2001:db8::2]:51820")), "")
    peer = WgStatusQuery().query("wg0")
    assert peer.public_key == "A"
    assert peer.last_handshake_epoch_seconds == 1700000000
    assert executed == [["wg", "show", "wg0", "dump"]]


def test_status_query_no_peer(fake_run):
    _, responses = fake_run
    responses["wg"] = (0, _dump(), "")
    with pytest.raises(NoPeerError):
        WgStatusQuery().query("wg0")


@pytest.mark.parametrize(
    "err,exc",
    [
        ("Unable to access interface: Operation not permitted", PrivilegeError),
        ("Unable to access interface: No such device", InterfaceNotFoundError),
        ("something odd", CommandError),
    ],
)
def test_status_query_errors(fake_run, err, exc):
    _, responses = fake_run
    responses["wg"] = (1, "", err)
    with pytest.raises(exc):
        WgStatusQuery().query("wg0")


def test_status_query_timeout(fake_run):
    _, responses = fake_run
    responses["wg"] = subprocess.TimeoutExpired(["wg"], 10)
    with pytest.raises(CommandError):
        WgStatusQuery().query("wg0")


# ---------- PingProbe ----------


def test_ping_command_line():
    p = PingProbe()
    assert p.build_cmd("203.0.113.10", 3, 2) == ["ping", "-n", "-q", "-c", "3", "-W", "2", "203.0.113.10"]
    assert p.build_cmd("2001:db8::1", 1, 2)[-2:] == ["-6", "2001:db8::1"]


@pytest.mark.parametrize("rc,expected", [(0, True), (1, False)])
def test_ping_exit_codes(fake_run, rc, expected):
    _, responses = fake_run
    responses["ping"] = (rc, "", "")
    assert PingProbe().probe("203.0.113.10", 1, 2) is expected


@pytest.mark.parametrize(
    "resp",
    [
        (2, "", "ping: connect: Network is unreachable"),
        subprocess.TimeoutExpired(["ping"], 4),
        CommandError("command not found: ping"),
    ],
)
def test_ping_inconclusive(fake_run, resp):
    _, responses = fake_run
    responses["ping"] = resp
    with pytest.raises(ProbeInconclusive):
        PingProbe().probe("203.0.113.10", 1, 2)
    assert PingProbe().reachable("203.0.113.10", 1, 2) is False


def test_ping_bad_address_is_inconclusive(fake_run):
    executed, _ = fake_run
    with pytest.raises(ProbeInconclusive):
        PingProbe().probe("not-an-ip", 1, 2)
    assert executed == []


# ---------- SystemdRestart ----------


def test_restart_runs_systemctl(fake_run):
    executed, _ = fake_run
    SystemdRestart().restart("wg0")
    assert executed == [["systemctl", "restart", "wg-quick@wg0"]]


def test_restart_custom_unit(fake_run):
    executed, _ = fake_run
    SystemdRestart(unit_template="wireguard-{interface}.service").restart("wg1")
    assert executed == [["systemctl", "restart", "wireguard-wg1.service"]]


def test_restart_failure(fake_run):
    _, responses = fake_run
    responses["systemctl"] = (1, "", "Job for wg-quick@wg0.service failed")
    with pytest.raises(RestartCommandError):
        SystemdRestart().restart("wg0")


def test_restart_missing_systemctl(fake_run):
    _, responses = fake_run
    responses["systemctl"] = CommandError("command not found: systemctl")
    with pytest.raises(RestartCommandError):
        SystemdRestart().restart("wg0")


# ---------- preflight ----------


def test_ensure_interface(fake_run):
    executed, responses = fake_run
    cmds.ensure_interface("wg0")
    assert executed == [["ip", "link", "show", "dev", "wg0"]]
    responses["ip"] = (1, "", 'Device "wg9" does not exist.')
    with pytest.raises(InterfaceNotFoundError):
        cmds.ensure_interface("wg9")


def test_ensure_privileged(monkeypatch):
    monkeypatch.setattr(cmds.os, "geteuid", lambda: 1000)
    with pytest.raises(PrivilegeError, match="root"):
        cmds.ensure_privileged()
    monkeypatch.setattr(cmds.os, "geteuid", lambda: 0)
    cmds.ensure_privileged()


def test_run_missing_binary():
    with pytest.raises(CommandError):
        cmds._run(["definitely-not-a-real-binary-xyz"])
