"""wg_watchdog: self-healing watchdog for frozen WireGuard tunnels."""

__version__ = "0.1.0"
