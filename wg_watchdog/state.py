# wg_watchdog/state.py
"""
RestartRecord persistence, keyed by interface name.

The default FileRestartStore keeps one file per interface under a tmpfs
directory (/run/wg-watchdog), so records reset on reboot. Reads and writes
are not serialized across processes unless the caller holds locked(): two
overlapping forced runs may both see an expired cooldown and both restart.
"""
from __future__ import annotations

import contextlib
import logging
import os
import pathlib
import threading
from typing import Dict, Iterator, Optional

from wg_watchdog.config import validate_interface_name
from wg_watchdog.errors import StateError
from wg_watchdog.models import RestartRecord

log = logging.getLogger("wg_watchdog.state")


class RestartRecordStore:
    def read(self, interface: str) -> Optional[RestartRecord]:
        raise NotImplementedError

    def write(self, record: RestartRecord) -> None:
        raise NotImplementedError

    @contextlib.contextmanager
    def locked(self, interface: str) -> Iterator[None]:
        yield


class MemoryRestartStore(RestartRecordStore):
    def __init__(self) -> None:
        self._records: Dict[str, RestartRecord] = {}
        self._lock = threading.RLock()
        self.writes = 0

    def read(self, interface: str) -> Optional[RestartRecord]:
        return self._records.get(interface)

    def write(self, record: RestartRecord) -> None:
        self._records[record.interface_name] = record
        self.writes += 1

    @contextlib.contextmanager
    def locked(self, interface: str) -> Iterator[None]:
        with self._lock:
            yield


class FileRestartStore(RestartRecordStore):
    SUFFIX = ".last_restart"

    def __init__(self, directory: str = "/run/wg-watchdog") -> None:
        self.directory = pathlib.Path(directory)

    def path_for(self, interface: str) -> pathlib.Path:
        return self.directory / f"{validate_interface_name(interface)}{self.SUFFIX}"

    def read(self, interface: str) -> Optional[RestartRecord]:
        path = self.path_for(interface)
        try:
            raw = path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StateError(f"cannot read restart record {path}: {e}") from e
        try:
            ts = int(raw)
        except ValueError:
            log.warning("ignoring unparsable restart record %s: %r", path, raw[:64])
            return None
        return RestartRecord(interface_name=interface, last_restart_epoch_seconds=ts)

    def write(self, record: RestartRecord) -> None:
        path = self.path_for(record.interface_name)
        tmp = path.with_name(f"{path.name}.{os.getpid()}.tmp")
        try:
            self.directory.mkdir(mode=0o700, parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(f"{int(record.last_restart_epoch_seconds)}\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise StateError(f"cannot write restart record {path}: {e}") from e
        log.debug("restart record written: %s=%d", path, record.last_restart_epoch_seconds)

    @contextlib.contextmanager
    def locked(self, interface: str) -> Iterator[None]:
        """Exclusive advisory flock on <iface>.lock for the duration of the block."""
        import fcntl

        lock_path = self.directory / f"{validate_interface_name(interface)}.lock"
        try:
            self.directory.mkdir(mode=0o700, parents=True, exist_ok=True)
            lock_file = open(lock_path, "a+")
        except OSError as e:
            raise StateError(f"cannot open lock file {lock_path}: {e}") from e
        with lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
