# wg_watchdog/system/commands.py
from __future__ import annotations

import logging
import os
import subprocess
from typing import List, Optional, Tuple

from wg_watchdog.errors import CommandError, InterfaceNotFoundError, PrivilegeError

log = logging.getLogger("wg_watchdog.system")

DEFAULT_PATH = "/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin"


def _run(cmd: List[str], timeout: Optional[float] = None) -> Tuple[int, str, str]:
    """
    Run a command with a restricted environment, returning (code, stdout, stderr).

    Raises CommandError if the binary is missing, subprocess.TimeoutExpired on timeout.
    """
    env = {"PATH": os.getenv("PATH", DEFAULT_PATH), "LC_ALL": "C"}
    log.debug("exec: %s", " ".join(cmd))
    try:
        proc = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=env,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise CommandError(f"command not found: {cmd[0]}") from e
    return proc.returncode, proc.stdout.strip(), proc.stderr.strip()


def ensure_privileged() -> None:
    if os.geteuid() != 0:
        raise PrivilegeError("wg-watchdog must run as root to query and restart tunnels")


def ensure_interface(interface: str, timeout: float = 10.0) -> None:
    try:
        rc, _, err = _run(["ip", "link", "show", "dev", interface], timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise CommandError(f"timeout checking interface {interface}") from e
    if rc != 0:
        raise InterfaceNotFoundError(f"interface {interface} does not exist: {err or 'ip link failed'}")
