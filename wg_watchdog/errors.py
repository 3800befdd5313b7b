# wg_watchdog/errors.py
from __future__ import annotations

# sysexits(3)
EXIT_OK = 0
EXIT_UNAVAILABLE = 69
EXIT_SOFTWARE = 70
EXIT_CANTCREAT = 73
EXIT_TEMPFAIL = 75
EXIT_NOPERM = 77
EXIT_CONFIG = 78


class WatchdogError(RuntimeError):
    """Base class for fatal errors; aborts the current run."""

    exit_code = EXIT_SOFTWARE


class ConfigError(WatchdogError, ValueError):
    exit_code = EXIT_CONFIG


class CommandError(WatchdogError):
    """External command failed in a way not covered by a narrower error."""

    exit_code = EXIT_SOFTWARE


class PrivilegeError(WatchdogError):
    exit_code = EXIT_NOPERM


class InterfaceNotFoundError(WatchdogError):
    exit_code = EXIT_UNAVAILABLE


class NoPeerError(WatchdogError):
    """Status query returned no usable peer for an interface expected to have one."""

    exit_code = EXIT_CONFIG


class RestartCommandError(WatchdogError):
    exit_code = EXIT_TEMPFAIL


class StateError(WatchdogError):
    """RestartRecord store could not be read or written."""

    exit_code = EXIT_CANTCREAT


class ProbeInconclusive(Exception):
    """Reachability probe could not complete. Never fatal: callers map it to unreachable."""
