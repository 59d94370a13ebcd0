# core/config.py
import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from .errors import ConfigError
from .models import DisplayFormat, ServiceType


CONFIG_PATH = Path(__file__).resolve().parents[1] / "config.json"

INTERVAL_MARKERS = (5, 10, 15, 30, 60)


@dataclass(frozen=True)
class Settings:
    """
    hide_when_other_activity only sees activities the sink can report.
    Discord RPC (DiscordSink) can't read other applications' activities,
    so over RPC the flag has no effect.
    """

    server_type: ServiceType = ServiceType.JELLYFIN
    server_url: str = ""
    api_key: str = ""  # Jellyfin API key or Plex token
    episode_format: DisplayFormat = DisplayFormat.NATURAL
    show_timestamps: bool = True
    server_name: str = ""
    update_interval: int = 10  # seconds, one of INTERVAL_MARKERS
    hide_when_paused: bool = True
    hide_when_other_activity: bool = False  # no effect over Discord RPC
    request_timeout: float = 5.0

    @property
    def is_complete(self) -> bool:
        return bool(self.server_url and self.api_key)


def clamp_interval(value) -> int:
    """Snap to the nearest of INTERVAL_MARKERS (ties go to the shorter one)."""
    try:
        seconds = int(value)
    except (TypeError, ValueError):
        return Settings.update_interval
    return min(INTERVAL_MARKERS, key=lambda marker: abs(marker - seconds))


def _as_bool(value, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _as_enum(enum_cls, value, default):
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return default


def settings_from_dict(raw: dict) -> Settings:
    defaults = Settings()
    try:
        timeout = float(raw.get("request_timeout", defaults.request_timeout))
    except (TypeError, ValueError):
        timeout = defaults.request_timeout

    return Settings(
        server_type=_as_enum(ServiceType, raw.get("server_type", ""), defaults.server_type),
        server_url=str(raw.get("server_url") or "").strip().rstrip("/"),
        api_key=str(raw.get("api_key") or "").strip(),
        episode_format=_as_enum(DisplayFormat, raw.get("episode_format", ""), defaults.episode_format),
        show_timestamps=_as_bool(raw.get("show_timestamps"), defaults.show_timestamps),
        server_name=str(raw.get("server_name") or "").strip(),
        update_interval=clamp_interval(raw.get("update_interval", defaults.update_interval)),
        hide_when_paused=_as_bool(raw.get("hide_when_paused"), defaults.hide_when_paused),
        hide_when_other_activity=_as_bool(
            raw.get("hide_when_other_activity"), defaults.hide_when_other_activity
        ),
        request_timeout=timeout if timeout > 0 else defaults.request_timeout,
    )


_ENV_KEYS = {
    "MSP_SERVER_TYPE": "server_type",
    "MSP_SERVER_URL": "server_url",
    "MSP_API_KEY": "api_key",
    "MSP_SERVER_NAME": "server_name",
    "MSP_UPDATE_INTERVAL": "update_interval",
}


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Read config.json (or MSP_CONFIG / the given path) and apply MSP_* env
    overrides on top. A missing file means defaults.
    """
    if path is None:
        path = Path(os.getenv("MSP_CONFIG") or CONFIG_PATH)
    path = Path(path)

    raw = {}
    if path.exists():
        try:
            with path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Could not read {path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"{path} must contain a JSON object")

    for env_key, field in _ENV_KEYS.items():
        value = os.getenv(env_key)
        if value:
            raw[field] = value

    return settings_from_dict(raw)


def with_interval(settings: Settings, seconds) -> Settings:
    return replace(settings, update_interval=clamp_interval(seconds))
