"""Application-wide settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    return normalized in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_str(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip()
    return normalized or default


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class DispatchSettings:
    """Deadline policy applied by the dispatcher."""

    tool_timeout_seconds: float | None
    cancel_grace_seconds: float

    @classmethod
    def from_env(cls) -> "DispatchSettings":
        timeout = _env_float("TOOL_TIMEOUT_SECONDS", 0.0)
        return cls(
            tool_timeout_seconds=timeout if timeout > 0 else None,
            cancel_grace_seconds=max(0.0, _env_float("TOOL_CANCEL_GRACE_SECONDS", 1.0)),
        )


@dataclass(frozen=True)
class IntrospectionSettings:
    history_limit: int
    log_path: str | None
    enabled_log: bool

    @classmethod
    def from_env(cls) -> "IntrospectionSettings":
        log_path = _env_str("INTROSPECTION_LOG_PATH")
        return cls(
            history_limit=max(1, _env_int("INTROSPECTION_HISTORY_LIMIT", 1000)),
            log_path=log_path,
            enabled_log=_env_bool("INTROSPECTION_LOG_ENABLED", log_path is not None),
        )


@dataclass(frozen=True)
class PluginSettings:
    """Which plugins load at startup and their outbound endpoints."""

    enabled: tuple[str, ...]
    laserfocus_url: str
    laserfocus_timeout_seconds: float

    @classmethod
    def from_env(cls) -> "PluginSettings":
        return cls(
            enabled=_env_list(
                "AGENTCALL_PLUGINS", ("laserfocus-api", "ui-component-generator")
            ),
            laserfocus_url=(
                _env_str("LASERFOCUS_API_URL", "http://127.0.0.1:5002")
                or "http://127.0.0.1:5002"
            ).rstrip("/"),
            laserfocus_timeout_seconds=max(
                0.1, _env_float("LASERFOCUS_TIMEOUT_SECONDS", 10.0)
            ),
        )


class Settings:
    """Container for application settings."""

    def __init__(
        self,
        *,
        dispatch: DispatchSettings,
        introspection: IntrospectionSettings,
        plugins: PluginSettings,
    ) -> None:
        self.dispatch = dispatch
        self.introspection = introspection
        self.plugins = plugins

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            dispatch=DispatchSettings.from_env(),
            introspection=IntrospectionSettings.from_env(),
            plugins=PluginSettings.from_env(),
        )

    @classmethod
    def defaults(cls) -> "Settings":
        """Settings that ignore the environment; handy for tests and embedding."""
        return cls(
            dispatch=DispatchSettings(tool_timeout_seconds=None, cancel_grace_seconds=1.0),
            introspection=IntrospectionSettings(
                history_limit=1000, log_path=None, enabled_log=False
            ),
            plugins=PluginSettings(
                enabled=("laserfocus-api", "ui-component-generator"),
                laserfocus_url="http://127.0.0.1:5002",
                laserfocus_timeout_seconds=10.0,
            ),
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Return a cached Settings instance built from the current environment."""

    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS


def reset_settings() -> None:
    global _SETTINGS
    _SETTINGS = None
