"""Configuration management for the user records dashboard."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

DEFAULT_API_BASE_URL = "http://127.0.0.1:8000"
DEFAULT_DATE_FORMAT = "%d %b %Y • %H:%M %Z"
BACKEND_VERSIONS = ("auto", "structured", "flat")

_ENV_FIELDS: Dict[str, str] = {
    "USERDASH_API_BASE_URL": "api_base_url",
    "USERDASH_API_VERSION": "backend_version",
    "USERDASH_TIMEZONE": "timezone",
    "USERDASH_DATE_FORMAT": "date_format",
    "USERDASH_HTTP_TIMEOUT": "request_timeout",
    "USERDASH_SESSION_SECRET": "session_secret",
}


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the dashboard and its backend client."""

    api_base_url: str = DEFAULT_API_BASE_URL
    backend_version: str = "auto"
    timezone: str = "UTC"
    date_format: str = DEFAULT_DATE_FORMAT
    request_timeout: float = 10.0
    session_secret: Optional[str] = None

    @staticmethod
    def from_dict(data: Mapping[str, object], base: "Settings | None" = None) -> "Settings":
        """Create :class:`Settings` from raw mapping data layered over ``base``."""
        settings = base or Settings()
        unknown = set(data.keys()) - set(Settings.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")

        values: Dict[str, object] = {}
        if data.get("api_base_url") is not None:
            cleaned = str(data["api_base_url"]).strip().rstrip("/")
            if not cleaned:
                raise ValueError("api_base_url must not be empty")
            values["api_base_url"] = cleaned
        if data.get("backend_version") is not None:
            version = str(data["backend_version"]).strip().lower()
            if version not in BACKEND_VERSIONS:
                raise ValueError(
                    f"backend_version must be one of {', '.join(BACKEND_VERSIONS)}, got '{version}'"
                )
            values["backend_version"] = version
        if data.get("timezone") is not None:
            zone = str(data["timezone"]).strip()
            try:
                ZoneInfo(zone)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise ValueError(f"timezone '{zone}' is not a known IANA timezone") from exc
            values["timezone"] = zone
        if data.get("date_format") is not None:
            values["date_format"] = str(data["date_format"])
        if data.get("request_timeout") is not None:
            try:
                timeout = float(data["request_timeout"])  # type: ignore[arg-type]
            except (TypeError, ValueError) as exc:
                raise ValueError("request_timeout must be a number of seconds") from exc
            if timeout <= 0:
                raise ValueError("request_timeout must be positive")
            values["request_timeout"] = timeout
        if data.get("session_secret") is not None:
            values["session_secret"] = str(data["session_secret"]) or None

        return replace(settings, **values)

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the optional YAML configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "dashboard.yaml").resolve(strict=False)
    return candidate


def load_config_file(config_path: Path) -> Dict[str, object]:
    """Load raw settings from a YAML file, returning an empty mapping when absent."""
    if not config_path.is_file():
        return {}
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")
    section = raw.get("dashboard", raw)
    if not isinstance(section, dict):
        raise ValueError("The 'dashboard' section of the configuration file must be a mapping")
    return section


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build settings from defaults, the YAML file and the environment, in that order."""
    env = os.environ if environ is None else environ
    path = config_path or resolve_config_path(env.get("USERDASH_CONFIG"))

    settings = Settings.from_dict(load_config_file(path))
    overrides = {
        field: env[name]
        for name, field in _ENV_FIELDS.items()
        if env.get(name) not in (None, "")
    }
    if overrides:
        settings = Settings.from_dict(overrides, base=settings)
    return settings


__all__ = [
    "BACKEND_VERSIONS",
    "DEFAULT_API_BASE_URL",
    "Settings",
    "load_config_file",
    "load_settings",
    "resolve_config_path",
]
