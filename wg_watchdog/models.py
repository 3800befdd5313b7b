# wg_watchdog/models.py
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class Action(str, enum.Enum):
    NO_ACTION = "no_action"
    RESTART = "restart"


class Mode(str, enum.Enum):
    DETECTION = "detection"
    FORCED = "forced"


@dataclass(frozen=True)
class PeerStatus:
    public_key: str
    peer_ip_address: str
    # 0 means the peer never completed a handshake
    last_handshake_epoch_seconds: int = 0

    @property
    def never_handshaked(self) -> bool:
        return self.last_handshake_epoch_seconds <= 0


@dataclass(frozen=True)
class RestartRecord:
    interface_name: str
    last_restart_epoch_seconds: int


@dataclass(frozen=True)
class Decision:
    action: Action
    reason: str
    remaining_minutes: Optional[int] = None
    handshake_age_seconds: Optional[int] = None

    @property
    def restart(self) -> bool:
        return self.action is Action.RESTART


@dataclass(frozen=True)
class RunReport:
    interface: str
    mode: Mode
    decision: Decision
    restarted: bool = False
    reachable: Optional[bool] = None
