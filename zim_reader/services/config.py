"""Application configuration helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SEARCH_COUNT = 20
DEFAULT_LISTEN_HOST = "0.0.0.0"
LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def parse_listen_address(value: str) -> Tuple[str, int]:
    """
    Split a ``host:port`` (or ``:port``) listen address.

    An empty host binds all interfaces. Raises ValueError for malformed input.
    """
    host, sep, port_text = value.strip().rpartition(":")
    if not sep:
        raise ValueError(f"Listen address must be host:port or :port, got '{value}'")
    if not port_text.isdigit():
        raise ValueError(f"Listen port must be numeric, got '{port_text}'")
    port = int(port_text)
    if not 0 < port < 65536:
        raise ValueError(f"Listen port out of range: {port}")
    host = host.strip("[]") or DEFAULT_LISTEN_HOST
    return host, port


class AppConfig(BaseModel):
    """Runtime configuration loaded from CLI flags and environment variables."""

    model_config = ConfigDict(frozen=True)

    zim_path: Path = Field(..., description="Path to the .zim archive to serve")
    listen: Optional[str] = Field(
        default=None,
        description="host:port for the streamable HTTP transport; stdio when unset",
    )
    default_search_count: int = Field(
        default=DEFAULT_SEARCH_COUNT,
        ge=1,
        description="Number of search hits returned when the caller omits 'count'",
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    @field_validator("zim_path", mode="before")
    @classmethod
    def _normalize_zim_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            raise ValueError("ZIM archive path is required (-z/--zim or ZIM_PATH)")
        path = value if isinstance(value, Path) else Path(value)
        path = path.expanduser().resolve()
        if not path.is_file():
            raise ValueError(f"ZIM archive not found: {path}")
        return path

    @field_validator("listen", mode="before")
    @classmethod
    def _validate_listen(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        if not cleaned:
            return None
        parse_listen_address(cleaned)
        return cleaned

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: Optional[str]) -> str:
        level = (value or "INFO").strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def listen_address(self) -> Optional[Tuple[str, int]]:
        if self.listen is None:
            return None
        return parse_listen_address(self.listen)


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


def build_config(**overrides: Any) -> AppConfig:
    """Build configuration from the environment, letting non-None overrides win."""
    values: dict[str, Any] = {
        "zim_path": _read_env("ZIM_PATH"),
        "listen": _read_env("MCP_LISTEN"),
        "default_search_count": _read_env(
            "SEARCH_DEFAULT_COUNT", str(DEFAULT_SEARCH_COUNT)
        ),
        "log_level": _read_env("LOG_LEVEL", "INFO"),
    }
    values.update({key: value for key, value in overrides.items() if value is not None})
    return AppConfig(**values)


__all__ = [
    "AppConfig",
    "build_config",
    "parse_listen_address",
    "DEFAULT_SEARCH_COUNT",
]
