"""
Configuration management for AdLink.

Supports loading from environment variables and YAML files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

class DatabaseSettings(BaseSettings):
    """PostgreSQL configuration."""

    model_config = SettingsConfigDict(env_prefix="ADLINK_DATABASE__")

    host: str = "localhost"
    port: int = 5432
    name: str = "adlink"
    user: str = "adlink"
    password: str = ""
    pool_size: int = 10
    max_overflow: int = 20
    # Full SQLAlchemy URL, overrides the fields above (e.g. sqlite+aiosqlite:///adlink.db)
    url: str | None = None

    @property
    def async_url(self) -> str:
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"


class RedisSettings(BaseSettings):
    """Redis configuration. Caching is skipped entirely when disabled."""

    model_config = SettingsConfigDict(env_prefix="ADLINK_REDIS__")

    enabled: bool = True
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str = ""
    pool_size: int = 10

    @property
    def url(self) -> str:
        if self.password:
            return f"redis://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class ServerSettings(BaseSettings):
    """Uvicorn / HTTP server configuration."""

    model_config = SettingsConfigDict(env_prefix="ADLINK_SERVER__")

    host: str = "0.0.0.0"
    port: int = 8000
    # Gateway visits live in process memory, so a visit must come back to
    # the worker that opened it.
    workers: int = 1
    reload: bool = False


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

class GatewaySettings(BaseSettings):
    """Interstitial (gateway page) behaviour."""

    model_config = SettingsConfigDict(env_prefix="ADLINK_GATEWAY__")

    # Seconds the ad is shown before the continue action unlocks
    countdown_seconds: int = Field(7, ge=0)
    tick_interval: float = Field(1.0, gt=0)

    # Follow the continue action automatically at zero instead of
    # waiting for the visitor to click
    auto_navigate: bool = False

    # Count click-throughs on the ad body (metric only, no event row)
    track_ad_clickthrough: bool = False

    visit_ttl_seconds: int = 900
    max_visits: int = 10000

    # Origin used when building short URLs; request base URL if empty
    public_origin: str = ""
    short_code_length: int = 8

    # How long a short-code lookup stays in Redis
    link_cache_ttl: int = 60


class AuthSettings(BaseSettings):
    """Upstream authentication provider integration."""

    model_config = SettingsConfigDict(env_prefix="ADLINK_AUTH__")

    # Header the authenticating proxy sets to the signed-in user id
    user_header: str = "X-User-Id"
    role_cache_ttl: int = 300

    # Idle sessions are signed out after this long; the oldest go first at capacity
    session_ttl_seconds: int = Field(3600, gt=0)
    max_sessions: int = Field(10000, gt=0)


# ---------------------------------------------------------------------------
# Observability
# ---------------------------------------------------------------------------

class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="ADLINK_LOGGING__")

    level: str = "INFO"
    format: Literal["json", "console"] = "json"


class MonitoringSettings(BaseSettings):
    """Prometheus / monitoring configuration."""

    model_config = SettingsConfigDict(env_prefix="ADLINK_MONITORING__")

    enabled: bool = True


# ---------------------------------------------------------------------------
# Root Settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="ADLINK_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Application
    app_name: str = "AdLink"
    app_version: str = "0.3.0"
    debug: bool = False
    env: Literal["dev", "prod", "test"] = "dev"

    # Nested settings
    server: ServerSettings = Field(default_factory=ServerSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        if v not in ("dev", "prod", "test"):
            raise ValueError(f"Invalid environment: {v}")
        return v


# ---------------------------------------------------------------------------
# YAML Loader
# ---------------------------------------------------------------------------

def load_yaml_config(config_path: Path) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}
    with open(config_path) as f:
        return yaml.safe_load(f) or {}


def merge_configs(base: dict, override: dict) -> dict:
    """Deep-merge two configuration dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


_SECTION_CLASSES: dict[str, type[BaseSettings]] = {
    "server": ServerSettings,
    "database": DatabaseSettings,
    "redis": RedisSettings,
    "gateway": GatewaySettings,
    "auth": AuthSettings,
    "logging": LoggingSettings,
    "monitoring": MonitoringSettings,
}


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings.

    Loads from:
    1. configs/base.yaml (base configuration)
    2. configs/{env}.yaml (environment-specific overrides)
    3. Environment variables (highest priority)
    """
    import os

    env = os.getenv("ADLINK_ENV", "dev")

    config_dir = Path(__file__).parent.parent.parent / "configs"

    base_config = load_yaml_config(config_dir / "base.yaml")
    env_config = load_yaml_config(config_dir / f"{env}.yaml")
    merged = merge_configs(base_config, env_config)

    # Flatten nested config for Pydantic
    flat_config: dict = {}
    if "app" in merged:
        flat_config["app_name"] = merged["app"].get("name", "AdLink")
        flat_config["app_version"] = merged["app"].get("version", "0.3.0")
        flat_config["debug"] = merged["app"].get("debug", False)

    flat_config["env"] = env

    # pydantic-settings gives init kwargs higher priority than env vars,
    # so env-var overrides are merged into the YAML dict first.
    for section_key, settings_cls in _SECTION_CLASSES.items():
        section_data = dict(merged.get(section_key, {}))

        # ADLINK_SECTION__FIELD -> field
        prefix = f"ADLINK_{section_key.upper()}__"
        for env_key, env_value in os.environ.items():
            if env_key.startswith(prefix):
                field_name = env_key[len(prefix):].lower()
                section_data[field_name] = env_value

        flat_config[section_key] = settings_cls(**section_data)

    return Settings(**flat_config)


# Convenience alias
settings = get_settings()
