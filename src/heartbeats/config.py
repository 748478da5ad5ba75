# ABOUTME: Process settings for heartbeats using pydantic-settings
# ABOUTME: Loads settings from HEARTBEATS_* environment variables and .env files

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from heartbeats.secrets import DEFAULT_PREFIX


class Settings(BaseSettings):
    """Heartbeats process settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="HEARTBEATS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Heartbeat and notification definitions (YAML)
    config_path: Path = Path("./config.yaml")

    # Server settings
    host: str = "127.0.0.1"
    port: int = 8090
    debug: bool = False

    # Seconds of quiet after a config file event before reloading
    watch_debounce: float = 0.5

    # Seconds a provider may take to deliver one alert
    send_timeout: float = 10.0

    # Marker for values that reference an environment variable
    secret_prefix: str = DEFAULT_PREFIX

    @field_validator("watch_debounce", "send_timeout")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @property
    def site_root(self) -> str:
        """Base URL used in usage hints."""
        return f"http://{self.host}:{self.port}"

    def validate_ready(self) -> list[str]:
        """Check if all required settings are configured. Returns list of errors."""
        errors = []

        if not self.config_path.exists():
            errors.append(f"HEARTBEATS_CONFIG_PATH does not exist: {self.config_path}")
        elif not self.config_path.is_file():
            errors.append(f"HEARTBEATS_CONFIG_PATH is not a file: {self.config_path}")

        if not self.secret_prefix:
            errors.append("HEARTBEATS_SECRET_PREFIX must not be empty")

        return errors


def get_settings() -> Settings:
    """Get settings instance."""
    return Settings()
