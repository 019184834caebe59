"""Configuration management for toolrelay."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from toolrelay.types import SamplingParams

DEFAULT_SYSTEM_PROMPT = "You're an AI assistant that provides helpful responses."


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLRELAY_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Model backend
    model: str | None = Field(default=None, description="Model in provider:model format")
    api_key: str | None = Field(default=None, description="API key for the LLM provider")
    api_base: str | None = Field(default=None, description="Optional API base URL")

    # Request assembly
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT, description="System directive for every turn")
    include_history: bool = Field(default=False, description="Send prior session messages with each turn")
    max_history_messages: int = Field(default=20, ge=0, description="Most recent history entries kept per turn")

    # Tool dispatch
    tool_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Cancel a tool call after this many seconds; unset means no timeout",
    )

    # Sampling defaults
    temperature: float | None = Field(default=None, ge=0)
    top_p: float | None = Field(default=None, gt=0, le=1)
    seed: int | None = Field(default=None)
    max_tokens: int | None = Field(default=None, ge=1)
    max_completion_tokens: int | None = Field(default=None, ge=1)

    # Logging
    log_level: str = Field(default="INFO", description="Log level")

    def sampling(self) -> SamplingParams:
        return SamplingParams(
            temperature=self.temperature,
            top_p=self.top_p,
            seed=self.seed,
            max_tokens=self.max_tokens,
            max_completion_tokens=self.max_completion_tokens,
        )


def load_settings(**overrides: object) -> Settings:
    """Load settings from the environment and `.env`, applying explicit overrides."""

    values = {key: value for key, value in overrides.items() if value is not None}
    return Settings(**values)
