# -*- coding: utf-8 -*-
"""
Logging setup for wg_watchdog.

One run of the watchdog is a handful of log lines, so every line carries the
run context (interface, mode, run_id) kept in contextvars.

Environment:
  LOG_LEVEL            DEBUG|INFO|WARNING|ERROR (default INFO)
  LOG_FORMAT           json|text (default text)
  LOG_FILE             path; adds a RotatingFileHandler (10MB x 5)
  LOG_SYSLOG_ADDRESS   "/dev/log" or "host:514"; adds a SysLogHandler
  LOG_SYSLOG_FACILITY  default "daemon"
"""
from __future__ import annotations

import contextvars
import datetime as _dt
import json
import logging
import logging.config
import logging.handlers
import os
import socket
from typing import Any, Dict, Optional

__all__ = [
    "setup_logging",
    "set_context",
    "clear_context",
    "SERVICE_NAME",
]

SERVICE_NAME = "wg-watchdog"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
FILE_MAX_BYTES = 10 * 1024 * 1024
FILE_BACKUP_COUNT = 5

_cv_interface = contextvars.ContextVar("interface", default=None)
_cv_mode = contextvars.ContextVar("mode", default=None)
_cv_run_id = contextvars.ContextVar("run_id", default=None)
_RUN_VARS = (("interface", _cv_interface), ("mode", _cv_mode), ("run_id", _cv_run_id))


def set_context(
    interface: Optional[str] = None,
    mode: Optional[str] = None,
    run_id: Optional[str] = None,
) -> None:
    """Set run context for subsequent log records."""
    for value, (_, var) in zip((interface, mode, run_id), _RUN_VARS):
        if value is not None:
            var.set(value)


def clear_context() -> None:
    for _, var in _RUN_VARS:
        var.set(None)


# attributes every LogRecord has; anything else came in through extra=
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _run_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Run context first, then extra= fields of the record."""
    fields = {name: var.get() for name, var in _RUN_VARS if var.get()}
    fields.update((k, v) for k, v in vars(record).items() if k not in _RECORD_ATTRS)
    return fields


def _utc_timestamp(record: logging.LogRecord) -> str:
    ts = _dt.datetime.fromtimestamp(record.created, _dt.timezone.utc)
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    host = socket.gethostname()

    def format(self, record: logging.LogRecord) -> str:
        doc: Dict[str, Any] = {
            "ts": _utc_timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "service": SERVICE_NAME,
            "host": self.host,
            "pid": record.process,
            "message": record.getMessage(),
        }
        fields = _run_fields(record)
        for name, _ in _RUN_VARS:
            if name in fields:
                doc[name] = fields.pop(name)
        if fields:
            doc["extra"] = fields
        if record.exc_info:
            doc["exc"] = self.formatException(record.exc_info)
        return json.dumps(doc, ensure_ascii=False, default=repr)


class TextFormatter(logging.Formatter):
    """`<ts> <level> <logger>: <message> [k=v ...]` for terminals and cron mail."""

    def format(self, record: logging.LogRecord) -> str:
        line = f"{_utc_timestamp(record)} {record.levelname:<7} {record.name}: {record.getMessage()}"
        fields = _run_fields(record)
        if fields:
            line += " [" + " ".join(f"{k}={v}" for k, v in fields.items()) + "]"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class SyslogFormatter(logging.Formatter):
    """Compact single-line format; syslog adds its own timestamp and host."""

    def format(self, record: logging.LogRecord) -> str:
        msg = f"{SERVICE_NAME}[{record.process}]: {record.levelname} {record.getMessage()}"
        fields = _run_fields(record)
        if fields:
            msg += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        return msg


def _syslog_address(addr: str) -> Any:
    if "/" in addr:
        return addr
    host, _, port = addr.partition(":")
    return (host, int(port or "514"))


def _handlers(level: str, formatter: str) -> Dict[str, Dict[str, Any]]:
    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": formatter,
            "stream": "ext://sys.stdout",
        },
    }
    log_file = os.getenv("LOG_FILE", "").strip()
    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": level,
            "formatter": formatter,
            "filename": log_file,
            "maxBytes": FILE_MAX_BYTES,
            "backupCount": FILE_BACKUP_COUNT,
            "encoding": "utf-8",
        }
    syslog_addr = os.getenv("LOG_SYSLOG_ADDRESS", "").strip()
    if syslog_addr:
        facility = os.getenv("LOG_SYSLOG_FACILITY", "daemon").upper()
        handlers["syslog"] = {
            "class": "logging.handlers.SysLogHandler",
            "level": level,
            "address": _syslog_address(syslog_addr),
            "facility": getattr(logging.handlers.SysLogHandler, f"LOG_{facility}", logging.handlers.SysLogHandler.LOG_DAEMON),
            "formatter": "syslog",
        }
    return handlers


_configured = False


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None, force: bool = False) -> None:
    """Configure root logging. Safe to call multiple times; pass force=True to reconfigure."""
    global _configured
    if _configured and not force:
        return

    level_str = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if level_str not in LEVELS:
        level_str = "INFO"
    formatter = "json" if (fmt or os.getenv("LOG_FORMAT", "text")).lower() == "json" else "text"
    handlers = _handlers(level_str, formatter)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"()": JSONFormatter},
                "text": {"()": TextFormatter},
                "syslog": {"()": SyslogFormatter},
            },
            "handlers": handlers,
            "root": {"level": level_str, "handlers": list(handlers)},
        }
    )
    _configured = True
