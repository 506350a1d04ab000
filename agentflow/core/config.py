"""Runtime configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables (AGENTFLOW_*) or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="AGENTFLOW_",
        extra="ignore",
    )

    log_level: Literal["debug", "info", "warning", "error"] = "info"

    # Run defaults
    stop_on_error: bool = True
    debug_include_resolved_inputs: bool = False
    node_timeout_seconds: float | None = None
    summary_max_length: int = 500

    # Expression sandbox
    max_expression_length: int = 4000

    # LLM settings
    openai_api_key: str | None = None
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.0
    llm_json_repair_attempts: int = 2

    # YouTrack action provider
    youtrack_base_url: str | None = None
    youtrack_token: str | None = None
    http_timeout_seconds: float = 30.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
