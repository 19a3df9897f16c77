"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments
  2. Environment variables  (DOCSCOUT__SERVER__TRANSPORT=http)
  3. docscout.yaml          (searched in cwd, then platform config dir)
  4. Hardcoded defaults

The config file is optional; all fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_CACHE_DIR = str(Path(platformdirs.user_cache_dir("docscout")) / "entries")


def _find_config_file() -> str | None:
    """Return the path of the first docscout.yaml found, or None."""
    candidates = [
        Path("docscout.yaml"),
        Path(platformdirs.user_config_dir("docscout")) / "docscout.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 3000
    path: str = "/mcp"
    keepalive_seconds: float = 15.0


class SourceSettings(BaseModel):
    """Base URL per documentation origin. ``None`` leaves the source unconfigured."""

    electron: str | None = "https://www.electronjs.org"
    react: str | None = "https://react.dev"
    node: str | None = "https://nodejs.org"
    github: str | None = "https://docs.github.com"

    def configured(self) -> dict[str, str]:
        return {name: url for name, url in self.model_dump().items() if url}


class FetcherSettings(BaseModel):
    timeout_seconds: float = 30.0
    rate_limit_per_minute: int | None = Field(default=60, ge=1)
    user_agent: str = "docscout/1.0"
    max_redirects: int = 3
    github_token: str | None = None


class CacheSettings(BaseModel):
    dir: str = _DEFAULT_CACHE_DIR
    storage: Literal["memory", "file", "both"] = "both"
    default_ttl_seconds: int = 3600
    cleanup_interval_hours: int = 1


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: DOCSCOUT__SERVER__PORT=9090
        env_prefix="DOCSCOUT__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    sources: SourceSettings = SourceSettings()
    fetcher: FetcherSettings = FetcherSettings()
    cache: CacheSettings = CacheSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
