"""Configuration management for LLM Credit."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration settings for the SDK and CLI."""

    model_config = SettingsConfigDict(
        env_prefix="LLMCREDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    pricing_file_path: Optional[str] = Field(
        default=None,
        description="Path to a JSON/YAML partial pricing config merged onto the defaults"
    )
    log_level: str = Field(
        default="WARNING",
        description="Log level used by the CLI"
    )

    @classmethod
    def load_from_file(cls, config_file: str) -> "Settings":
        """Load settings from a YAML config file.

        Args:
            config_file: Path to YAML config file

        Returns:
            Settings instance
        """
        import yaml

        with open(config_file, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)


class DashboardSyncConfig(BaseSettings):
    """Connection settings for the remote pricing dashboard."""

    model_config = SettingsConfigDict(
        env_prefix="LLMCREDIT_DASHBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(default="", description="Bearer token for the dashboard API")
    endpoint: str = Field(default="", description="Dashboard base URL")
    project_id: Optional[str] = Field(
        default=None,
        description="Project identifier attached to reconciliation logs"
    )

    # Transport tuning
    request_timeout: float = Field(default=5.0, description="Per-attempt request timeout (seconds)")
    max_retries: int = Field(default=3, description="Retries after the first failed attempt")
    retry_base_delay: float = Field(default=0.5, description="First backoff delay, doubled per retry")
    stream_connect_timeout: float = Field(default=10.0, description="Time allowed to open the config stream")
    reconnect_delay: float = Field(default=5.0, description="Delay before reopening a closed stream")
    poll_interval: float = Field(default=30.0, description="Polling interval when streaming is unavailable")
