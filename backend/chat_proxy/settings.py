"""
Service configuration.
Provider credentials are read from the environment on every call to
``load_settings`` so keys injected or rotated at runtime are picked up.
Server options live in ``ServerSettings`` under the ``CHAT_PROXY_`` prefix
and are read once at startup.
"""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")


class Settings(BaseSettings):
    """Provider credential snapshot loaded from environment variables."""

    model_config = SettingsConfigDict(
        extra="ignore",
        case_sensitive=False,
        env_file=".env",
    )

    openai_api_key: str = Field(default="")
    anthropic_api_key: str = Field(default="")
    # Reported by /api/health only; no adapter is wired for it.
    gemini_api_key: str = Field(default="")

    def credential_for(self, provider: str) -> str:
        """Return the stripped API key for ``provider``, or an empty string."""
        value = getattr(self, f"{provider}_api_key", "") or ""
        return value.strip()

    def has_credential(self, provider: str) -> bool:
        return bool(self.credential_for(provider))

    @property
    def demo_mode(self) -> bool:
        """True when no provider credential of any kind is configured."""
        return not any(
            self.has_credential(name) for name in ("openai", "anthropic", "gemini")
        )


class ServerSettings(BaseSettings):
    """Process-level options: logging and the uvicorn bind address."""

    model_config = SettingsConfigDict(
        env_prefix="CHAT_PROXY_",
        extra="ignore",
        case_sensitive=False,
        env_file=".env",
    )

    log_level: str = Field(default="INFO")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level: {value!r}")
        return level


def load_settings() -> Settings:
    """Build a fresh settings snapshot from the current environment."""
    return Settings()


def load_server_settings() -> ServerSettings:
    return ServerSettings()
