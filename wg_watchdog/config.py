# wg_watchdog/config.py
"""
Settings loader for wg_watchdog.

Sources priority: explicit overrides (CLI) > env vars (WG_WATCHDOG_*) > .env (optional) > YAML file > defaults.
Settings are frozen; build them once at startup and pass them down.
"""
from __future__ import annotations

import pathlib
import re
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wg_watchdog.errors import ConfigError

ENV_PREFIX = "WG_WATCHDOG_"

# IFNAMSIZ is 16 including the trailing NUL
_IFACE_RE = re.compile(r"^[A-Za-z0-9_.=+-]{1,15}$")


def validate_interface_name(name: str) -> str:
    if not name or not _IFACE_RE.match(name) or name in (".", ".."):
        raise ConfigError(f"invalid interface name: {name!r}")
    return name


class WatchdogSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    interface_name: str = "wg0"
    handshake_threshold_minutes: int = Field(default=15, gt=0)
    ping_timeout_seconds: int = Field(default=2, gt=0)
    ping_attempts: int = Field(default=1, gt=0)
    force_restart: bool = False
    restart_interval_minutes: int = Field(default=30, gt=0)

    command_timeout_seconds: float = Field(default=10.0, gt=0)
    state_dir: str = "/run/wg-watchdog"
    state_lock: bool = False
    service_template: str = "wg-quick@{interface}"
    metrics_textfile: Optional[str] = None

    @field_validator("interface_name")
    def _iface(cls, v: str) -> str:  # noqa: N805
        try:
            return validate_interface_name(v)
        except ConfigError as e:
            raise ValueError(str(e)) from e

    @field_validator("service_template")
    def _template(cls, v: str) -> str:  # noqa: N805
        if "{interface}" not in v:
            raise ValueError("service_template must contain '{interface}'")
        return v


def _read_yaml(path: Union[str, pathlib.Path]) -> Dict[str, Any]:
    p = pathlib.Path(path)
    if not p.exists():
        raise ConfigError(f"config not found: {path}")
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"YAML root must be a mapping: {path}")
    return data


def load_settings(
    config_path: Optional[str] = None,
    dotenv_path: Optional[str] = None,
    **overrides: Any,
) -> WatchdogSettings:
    """
    Build settings from all sources. None-valued overrides are ignored so
    argparse defaults can be passed straight through.
    """
    if dotenv_path:
        if not pathlib.Path(dotenv_path).exists():
            raise ConfigError(f"env file not found: {dotenv_path}")
        load_dotenv(dotenv_path, override=False)
    else:
        load_dotenv(".env", override=False)

    file_data = _read_yaml(config_path) if config_path else {}
    unknown = set(file_data) - set(WatchdogSettings.model_fields)
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(sorted(unknown))}")

    try:
        from_env = WatchdogSettings()
        env_data = from_env.model_dump(include=from_env.model_fields_set)
        merged: Dict[str, Any] = {**file_data, **env_data}
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return WatchdogSettings(**merged)
    except ValidationError as e:
        raise ConfigError(f"invalid settings: {e}") from e
