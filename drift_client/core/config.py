from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Optional
from urllib.parse import urlsplit

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from drift_client.errors import DriftConfigError

# Gateway that rewrites paths itself; requests to it omit the /api/v1 prefix.
HOSTED_GATEWAY_HOST = "api.driftos.dev"
API_PREFIX = "/api/v1"
DEFAULT_TIMEOUT_MS = 10000


class PathPrefixMode(str, Enum):
    """Whether operation paths keep the /api/v1 prefix."""

    WITH_PREFIX = "with_prefix"
    NO_PREFIX = "no_prefix"


def detect_prefix_mode(base_url: str) -> PathPrefixMode:
    """Classify a base URL as hosted gateway or self-hosted service."""

    host = (urlsplit(base_url).hostname or "").lower()
    if host == HOSTED_GATEWAY_HOST:
        return PathPrefixMode.NO_PREFIX
    return PathPrefixMode.WITH_PREFIX


@dataclass(frozen=True)
class ClientConfig:
    """Immutable connection settings for a drift client."""

    base_url: str
    api_key: Optional[str] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    path_prefix_mode: PathPrefixMode = PathPrefixMode.WITH_PREFIX

    @classmethod
    def create(
        cls,
        base_url: str,
        api_key: Optional[str] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        hosted: Optional[bool] = None,
    ) -> "ClientConfig":
        """Validate inputs and resolve the path prefix mode once."""

        base = (base_url or "").strip()
        if base.endswith("/"):
            base = base[:-1]
        if not base:
            raise DriftConfigError("Base URL is required.")
        if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, int) or timeout_ms <= 0:
            raise DriftConfigError(f"Timeout must be a positive integer, got {timeout_ms!r}.")
        if hosted is None:
            mode = detect_prefix_mode(base)
        else:
            mode = PathPrefixMode.NO_PREFIX if hosted else PathPrefixMode.WITH_PREFIX
        return cls(
            base_url=base,
            api_key=api_key or None,
            timeout_ms=timeout_ms,
            path_prefix_mode=mode,
        )

    @property
    def timeout_sec(self) -> float:
        return self.timeout_ms / 1000

    def resolve_path(self, path: str) -> str:
        """Apply the prefix mode to an /api/v1 operation path."""

        if self.path_prefix_mode is PathPrefixMode.NO_PREFIX and path.startswith(API_PREFIX):
            return path[len(API_PREFIX) :] or "/"
        return path


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    base_url: str = Field(default="http://localhost:3000", alias="DRIFT_BASE_URL")
    api_key: str = Field(default="", alias="DRIFT_API_KEY")
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, alias="DRIFT_TIMEOUT_MS")
    # Unset means detect from the base URL.
    hosted: Optional[bool] = Field(default=None, alias="DRIFT_HOSTED")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def to_client_config(self) -> ClientConfig:
        """Build the immutable client configuration from these settings."""

        return ClientConfig.create(
            base_url=self.base_url,
            api_key=self.api_key or None,
            timeout_ms=self.timeout_ms,
            hosted=self.hosted,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached client settings."""

    return Settings()
