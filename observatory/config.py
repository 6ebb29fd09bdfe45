"""
Observatory — Configuration System

All configuration is Pydantic-validated and loaded from:
1. default.yaml (defaults)
2. Environment variables (overrides)

Every tunable parameter of the gateway lives here.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _require_url(value: str) -> str:
    """Reject addresses without a scheme and host. Raises ValueError."""
    parsed = urlparse(value.strip())
    if not parsed.scheme or not parsed.hostname:
        raise ValueError(f"not a valid address: {value!r}")
    return value.strip()


# ─── Sub-configs ──────────────────────────────────────────────────


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    # Prebuilt dashboard bundle; mounted at / only when the directory exists
    frontend_dir: str = "./frontend/dist"


class RedisConfig(BaseModel):
    url: str = "redis://localhost:6379"
    prefix: str = "daneel"
    password: str = ""
    stream: str = "stream:awake"
    recent_thoughts: int = Field(20, ge=1, le=500)

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        return _require_url(value)

    @property
    def full_url(self) -> str:
        """Build URL with password injected."""
        clean_pw = self.password.strip() if self.password else ""
        if clean_pw and "://" in self.url and "@" not in self.url:
            scheme, rest = self.url.split("://", 1)
            return f"{scheme}://:{clean_pw}@{rest}"
        return self.url


class QdrantConfig(BaseModel):
    url: str = "http://localhost:6333"
    api_key: str | None = None
    prefer_grpc: bool = False
    memories_collection: str = "memories"
    unconscious_collection: str = "unconscious"
    identity_collection: str = "identity"
    identity_point_id: str = "00000000-0000-0000-0000-000000000001"

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        return _require_url(value)


class UpstreamConfig(BaseModel):
    base_url: str = "http://localhost:3030"
    extended_path: str = "/extended_metrics"

    @field_validator("base_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        return _require_url(value)


class CollectorConfig(BaseModel):
    # Stream/identity and vector-count collectors share the fast interval
    fast_interval_ms: int = Field(150, ge=10)
    upstream_interval_ms: int = Field(1000, ge=10)
    call_timeout_ms: int = Field(1000, ge=1)
    error_backoff_ms: int = Field(500, ge=0)
    thought_preview_chars: int = 80


class ConnectionDriveConfig(BaseModel):
    center: float = 0.85
    reversion: float = 0.05
    max_step: float = 0.02
    minimum: float = 0.5
    maximum: float = 1.0
    seed: int | None = None

    @model_validator(mode="after")
    def _check_range(self) -> ConnectionDriveConfig:
        if self.minimum > self.maximum:
            raise ValueError("connection drive minimum exceeds maximum")
        if not self.minimum <= self.center <= self.maximum:
            raise ValueError("connection drive center outside its range")
        return self


class BroadcastConfig(BaseModel):
    interval_ms: int = Field(200, ge=10)


class ManifoldConfig(BaseModel):
    dimension: int = Field(768, ge=1)
    seed: int = 42
    default_limit: int = Field(500, ge=1)
    max_limit: int = Field(2000, ge=1)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "console"  # "console" | "json"


# ─── Root Config ──────────────────────────────────────────────────


class ObservatoryConfig(BaseSettings):
    """
    Root configuration. Loads from YAML, overridable by env vars.
    """

    model_config = SettingsConfigDict(
        env_prefix="OBSERVATORY_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    service_name: str = "observatory"
    instance_name: str = "Timmy"

    server: ServerConfig = Field(default_factory=ServerConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    qdrant: QdrantConfig = Field(default_factory=QdrantConfig)
    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    collectors: CollectorConfig = Field(default_factory=CollectorConfig)
    connection_drive: ConnectionDriveConfig = Field(default_factory=ConnectionDriveConfig)
    broadcast: BroadcastConfig = Field(default_factory=BroadcastConfig)
    manifold: ManifoldConfig = Field(default_factory=ManifoldConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def _check_cadence(self) -> ObservatoryConfig:
        # Observers never tick faster than the data they are shown
        if self.broadcast.interval_ms < self.collectors.fast_interval_ms:
            raise ValueError(
                "broadcast.interval_ms must be >= collectors.fast_interval_ms"
            )
        return self


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ObservatoryConfig:
    """
    Load configuration from YAML file, then apply environment variable overrides.

    Raises pydantic.ValidationError (or ValueError for PORT) when a required
    address cannot be parsed; the process must not start in that case.
    """
    raw: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                raw = yaml.safe_load(f) or {}

    if overrides:
        raw = _deep_merge(raw, overrides)

    # Plain deployment variables shared with the rest of the stack
    if redis_url := os.environ.get("REDIS_URL"):
        raw.setdefault("redis", {})["url"] = redis_url
    if redis_pw := os.environ.get("REDIS_PASSWORD"):
        raw.setdefault("redis", {})["password"] = redis_pw
    if qdrant_url := os.environ.get("QDRANT_URL"):
        raw.setdefault("qdrant", {})["url"] = qdrant_url
    if qdrant_key := os.environ.get("QDRANT_API_KEY"):
        raw.setdefault("qdrant", {})["api_key"] = qdrant_key
    if metrics_url := os.environ.get("METRICS_URL"):
        raw.setdefault("upstream", {})["base_url"] = metrics_url
    if port := os.environ.get("PORT"):
        raw.setdefault("server", {})["port"] = int(port)
    if frontend_dir := os.environ.get("FRONTEND_DIR"):
        raw.setdefault("server", {})["frontend_dir"] = frontend_dir
    if log_level := os.environ.get("LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    return ObservatoryConfig(**raw)
