"""Runtime settings for mempal.

Values come from ``config/mempal.yaml`` (or the file named by
``MEMPAL_CONFIG``) and are overridden by environment variables, which may in
turn be seeded from a ``.env`` file. The result is an immutable
:class:`Settings` snapshot; :class:`SettingsStore` holds the current one so
callers can change the endpoint between fetches.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .errors import ConfigError

load_dotenv(override=False)

DEFAULT_API_URL = "https://mempool.space"
DEFAULT_TOR_PROXY = "socks5h://127.0.0.1:9050"

CONFIG_ENV = "MEMPAL_CONFIG"
HOME_ENV = "MEMPAL_HOME"
API_URL_ENV = "MEMPAL_API_URL"
USE_PRECISE_FEES_ENV = "MEMPAL_USE_PRECISE_FEES"
TIMEOUT_ENV = "MEMPAL_TIMEOUT_SEC"
TOR_TIMEOUT_ENV = "MEMPAL_TOR_TIMEOUT_SEC"
TOR_PROXY_ENV = "MEMPAL_TOR_PROXY"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True, slots=True)
class Settings:
    """Resolved settings snapshot.

    Attributes:
        api_url: Configured mempool endpoint, custom or canonical.
        use_precise_fees: Whether fee rates should use the precise endpoint.
        timeout_sec: Per-request timeout for clear-net endpoints.
        tor_timeout_sec: Per-request timeout for onion endpoints over Tor.
        histogram_fallback_timeout_sec: Timeout for the clear-net histogram fallback.
        histogram_fallback_tor_timeout_sec: Timeout for the onion histogram fallback.
        tor_proxy: SOCKS proxy URL used when Tor is in use.
    """

    api_url: str = DEFAULT_API_URL
    use_precise_fees: bool = False
    timeout_sec: float = 10.0
    tor_timeout_sec: float = 60.0
    histogram_fallback_timeout_sec: float = 5.0
    histogram_fallback_tor_timeout_sec: float = 30.0
    tor_proxy: str = DEFAULT_TOR_PROXY

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Settings":
        """Create settings from a parsed YAML mapping."""

        timeouts = data.get("timeouts") or {}
        if not isinstance(timeouts, Mapping):
            raise ConfigError("'timeouts' must be a mapping")
        tor = data.get("tor") or {}
        if not isinstance(tor, Mapping):
            raise ConfigError("'tor' must be a mapping")

        base = cls()
        return cls(
            api_url=_clean_url(data.get("api_url", base.api_url)),
            use_precise_fees=_coerce_bool("use_precise_fees", data.get("use_precise_fees", base.use_precise_fees)),
            timeout_sec=_coerce_float("timeouts.clear", timeouts.get("clear", base.timeout_sec)),
            tor_timeout_sec=_coerce_float("timeouts.tor", timeouts.get("tor", base.tor_timeout_sec)),
            histogram_fallback_timeout_sec=_coerce_float(
                "timeouts.histogram_fallback",
                timeouts.get("histogram_fallback", base.histogram_fallback_timeout_sec),
            ),
            histogram_fallback_tor_timeout_sec=_coerce_float(
                "timeouts.histogram_fallback_tor",
                timeouts.get("histogram_fallback_tor", base.histogram_fallback_tor_timeout_sec),
            ),
            tor_proxy=str(tor.get("proxy", base.tor_proxy)),
        )


class SettingsStore:
    """Holds the current settings snapshot.

    Readers call :meth:`snapshot` once per operation and work from that copy.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings()

    def snapshot(self) -> Settings:
        return self._settings

    @property
    def api_url(self) -> str:
        return self._settings.api_url

    @property
    def use_precise_fees(self) -> bool:
        return self._settings.use_precise_fees

    def update(self, **changes: Any) -> Settings:
        """Replace fields of the current snapshot and return the new one."""

        known = {item.name for item in fields(Settings)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ConfigError(f"Unknown settings: {', '.join(unknown)}")
        if "api_url" in changes:
            changes["api_url"] = _clean_url(changes["api_url"])
        self._settings = replace(self._settings, **changes)
        return self._settings


def _project_root() -> Path:
    # In source layout, this file is under <root>/mempal/core
    return Path(__file__).resolve().parents[2]


def default_config_path() -> Path:
    env = os.getenv(CONFIG_ENV)
    if env:
        return Path(env).expanduser()
    return _project_root() / "config" / "mempal.yaml"


def work_dir() -> Path:
    """Writable base for runtime files such as logs."""

    env = os.getenv(HOME_ENV)
    if env:
        return Path(env).expanduser()
    return Path.home() / ".mempal"


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from YAML and apply environment overrides.

    A missing default config file yields the built-in defaults; a missing
    explicitly requested file is an error.
    """

    cfg_path = Path(path) if path else default_config_path()
    if cfg_path.exists():
        settings = Settings.from_mapping(_load_yaml(cfg_path))
    elif path is not None:
        raise ConfigError(f"Config file not found: {cfg_path}")
    else:
        settings = Settings()
    return apply_env_overrides(settings)


def apply_env_overrides(settings: Settings) -> Settings:
    changes: dict[str, Any] = {}
    api_url = _read_env(API_URL_ENV)
    if api_url:
        changes["api_url"] = _clean_url(api_url)
    precise = _read_env(USE_PRECISE_FEES_ENV)
    if precise:
        changes["use_precise_fees"] = _coerce_bool(USE_PRECISE_FEES_ENV, precise)
    timeout = _read_env(TIMEOUT_ENV)
    if timeout:
        changes["timeout_sec"] = _coerce_float(TIMEOUT_ENV, timeout)
    tor_timeout = _read_env(TOR_TIMEOUT_ENV)
    if tor_timeout:
        changes["tor_timeout_sec"] = _coerce_float(TOR_TIMEOUT_ENV, tor_timeout)
    proxy = _read_env(TOR_PROXY_ENV)
    if proxy:
        changes["tor_proxy"] = proxy
    return replace(settings, **changes) if changes else settings


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    section = data.get("mempal", data)
    if not isinstance(section, dict):
        raise ConfigError("'mempal' section must be a mapping")
    return section


def _read_env(key: str) -> str | None:
    value = os.getenv(key)
    if value is None:
        return None
    return value.strip()


def _clean_url(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError("api_url must be a non-empty string")
    return value.strip()


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"{key} must be a boolean, got {value!r}")


def _coerce_float(key: str, value: Any) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number") from exc
    if result <= 0:
        raise ConfigError(f"{key} must be positive")
    return result


__all__ = [
    "DEFAULT_API_URL",
    "DEFAULT_TOR_PROXY",
    "Settings",
    "SettingsStore",
    "apply_env_overrides",
    "default_config_path",
    "load_settings",
    "work_dir",
]
