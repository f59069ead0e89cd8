"""Configuration management for the user directory service."""
from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import yaml

logger = logging.getLogger("userhub.config")

DEFAULT_TOKEN_TTL = 3600
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 4000

_KNOWN_KEYS = {"jwt_secret", "token_ttl", "host", "port", "cors_origins", "default_page_size"}


def _positive_int(value: object, field_name: str) -> int:
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{field_name} must be an integer") from exc
    if parsed <= 0:
        raise ValueError(f"{field_name} must be a positive integer")
    return parsed


def _split_origins(value: object) -> List[str]:
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        raise ValueError("cors_origins must be a list or a comma separated string")
    return [item.strip() for item in items if item.strip()]


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the HTTP service."""

    jwt_secret: str
    token_ttl: int = DEFAULT_TOKEN_TTL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    default_page_size: int = 5

    @staticmethod
    def from_dict(data: Mapping[str, object]) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""
        unknown = set(data.keys()) - _KNOWN_KEYS
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        secret = data.get("jwt_secret")
        kwargs: Dict[str, object] = {
            "jwt_secret": str(secret) if secret else "",
        }
        if data.get("token_ttl") is not None:
            kwargs["token_ttl"] = _positive_int(data["token_ttl"], "token_ttl")
        if data.get("host"):
            kwargs["host"] = str(data["host"])
        if data.get("port") is not None:
            kwargs["port"] = _positive_int(data["port"], "port")
        if data.get("cors_origins") is not None:
            kwargs["cors_origins"] = _split_origins(data["cors_origins"])
        if data.get("default_page_size") is not None:
            kwargs["default_page_size"] = _positive_int(data["default_page_size"], "default_page_size")
        return Settings(**kwargs)  # type: ignore[arg-type]


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the optional YAML configuration file."""
    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    return (Path(__file__).resolve().parent.parent / "config" / "userhub.yaml").resolve(strict=False)


def _read_config_file(config_path: Path) -> Dict[str, object]:
    if not config_path.exists():
        return {}
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")
    return raw


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, object]:
    mapping = {
        "USERHUB_JWT_SECRET": "jwt_secret",
        "USERHUB_TOKEN_TTL": "token_ttl",
        "USERHUB_HOST": "host",
        "USERHUB_PORT": "port",
        "USERHUB_CORS_ORIGINS": "cors_origins",
    }
    overrides: Dict[str, object] = {}
    for env_name, key in mapping.items():
        value = environ.get(env_name)
        if value is not None and value.strip():
            overrides[key] = value.strip()
    return overrides


def load_settings(
    config_path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from defaults, an optional YAML file and the environment."""

    env = os.environ if environ is None else environ
    path = config_path or resolve_config_path(env.get("USERHUB_CONFIG"))

    data = _read_config_file(path)
    data.update(_env_overrides(env))
    settings = Settings.from_dict(data)

    if not settings.jwt_secret:
        logger.warning(
            "No JWT signing secret configured; generated a per-process secret."
            " Issued tokens will not survive a restart."
        )
        settings = replace(settings, jwt_secret=secrets.token_urlsafe(32))
    return settings


__all__ = ["Settings", "load_settings", "resolve_config_path"]
