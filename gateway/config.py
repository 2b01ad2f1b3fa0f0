"""
LLM Proxy Gateway: Runtime Configuration

Read once at startup from the environment (after `.env` is loaded) and
frozen for the lifetime of the process. Each field is read from the
upper-cased env var of the same name (`port` <- PORT).
"""

from typing import Annotated, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_CORS_ORIGINS: tuple[str, ...] = (
    "http://localhost:3000",
    "http://localhost:4173",
    "http://localhost:5173",
    "https://satlingo.web.app",
    "https://satlingo.firebaseapp.com",
)

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ConfigurationError(RuntimeError):
    """Raised when the gateway cannot start with the given settings."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(frozen=True, case_sensitive=False, extra="ignore")

    host: str = "0.0.0.0"
    port: int = 3000
    claude_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    proxy_api_key: Optional[str] = None
    require_api_key: bool = True
    environment: str = "development"
    # Comma separated in the environment, not JSON
    cors_origins: Annotated[tuple[str, ...], NoDecode] = DEFAULT_CORS_ORIGINS
    upstream_timeout: float = 120.0
    max_body_bytes: int = 10 * 1024 * 1024
    log_level: str = "INFO"

    @field_validator("claude_api_key", "openai_api_key", "proxy_api_key", mode="before")
    @classmethod
    def _blank_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return tuple(o.strip() for o in value.split(",") if o.strip())
        return value

    @field_validator("port")
    @classmethod
    def _valid_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {value}")
        return value

    @field_validator("upstream_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("upstream_timeout must be positive")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return level

    def ensure_startable(self) -> None:
        """Raise ConfigurationError if the process must refuse to start."""
        if self.require_api_key and not self.proxy_api_key:
            raise ConfigurationError(
                "PROXY_API_KEY must be set when REQUIRE_API_KEY is enabled"
            )

    def with_overrides(self, **overrides) -> "Settings":
        """Copy with `overrides` applied, validated like the original."""
        try:
            return Settings.model_validate({**self.model_dump(), **overrides})
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

    def describe(self) -> dict[str, str]:
        """Which secrets are configured, without revealing them."""
        def state(value: Optional[str]) -> str:
            return "set" if value else "NOT_SET"

        return {
            "CLAUDE_API_KEY": state(self.claude_api_key),
            "OPENAI_API_KEY": state(self.openai_api_key),
            "PROXY_API_KEY": state(self.proxy_api_key),
            "REQUIRE_API_KEY": str(self.require_api_key).lower(),
            "ENVIRONMENT": self.environment,
            "PORT": str(self.port),
        }


def load_settings() -> Settings:
    """Read and validate settings; raises ConfigurationError on bad input."""
    try:
        settings = Settings()
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
    settings.ensure_startable()
    return settings
