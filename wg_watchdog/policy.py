# wg_watchdog/policy.py
"""
Restart decision policies.

Both functions are pure: they take the observed facts and the current time and
return a Decision. Side effects (restart, persisting the RestartRecord) belong
to the caller, see wg_watchdog.engine.
"""
from __future__ import annotations

from typing import Optional

from wg_watchdog.models import Action, Decision, PeerStatus, RestartRecord


def _div_toward_zero(a: int, b: int) -> int:
    q = abs(a) // b
    return q if a >= 0 else -q


def decide_detection(peer: PeerStatus, reachable: bool, now: int, threshold_minutes: int) -> Decision:
    """
    Restart only when the path to the peer is up and the handshake is stale.

    Unreachability alone is inconclusive (could be a real outage), so it never
    triggers a restart.
    """
    now = int(now)
    stale_cutoff = now - threshold_minutes * 60
    last_hs = 0 if peer.never_handshaked else int(peer.last_handshake_epoch_seconds)
    age = None if peer.never_handshaked else max(0, now - last_hs)
    stale = last_hs < stale_cutoff

    if not reachable:
        return Decision(Action.NO_ACTION, "peer unreachable", handshake_age_seconds=age)
    if not stale:
        return Decision(Action.NO_ACTION, "handshake fresh", handshake_age_seconds=age)
    if peer.never_handshaked:
        reason = "peer reachable, never handshaked"
    else:
        reason = f"peer reachable, handshake stale for {age}s"
    return Decision(Action.RESTART, reason, handshake_age_seconds=age)


def decide_cooldown(record: Optional[RestartRecord], now: int, interval_minutes: int) -> Decision:
    if record is None:
        return Decision(Action.RESTART, "no previous forced restart")

    elapsed_minutes = _div_toward_zero(int(now) - int(record.last_restart_epoch_seconds), 60)
    if elapsed_minutes >= interval_minutes:
        return Decision(Action.RESTART, f"last forced restart {elapsed_minutes}m ago")
    remaining = interval_minutes - elapsed_minutes
    return Decision(
        Action.NO_ACTION,
        f"cooldown active, {remaining}m remaining",
        remaining_minutes=remaining,
    )


def record_restart(interface: str, now: int) -> RestartRecord:
    return RestartRecord(interface_name=interface, last_restart_epoch_seconds=int(now))
