"""Configuration schema using Pydantic."""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict


class Base(BaseModel):
    """Accepts both camelCase and snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SplitterConfig(Base):
    """Chunking budget and search tuning for HTML splitting."""

    max_length: int = Field(default=4000, ge=1)
    min_ratio: float = Field(default=0.7, gt=0, le=1)  # floor for split candidates
    fallback_ratio: float = Field(default=0.8, gt=0, le=1)  # degraded cut target
    step: int = Field(default=10, ge=1)
    shrink_factor: float = Field(default=0.9, gt=0, lt=1)
    max_shrink_attempts: int = Field(default=5, ge=0)

    @model_validator(mode="after")
    def _check_ratios(self) -> "SplitterConfig":
        if self.fallback_ratio < self.min_ratio:
            raise ValueError("fallback_ratio must not be below min_ratio")
        return self


class TelegramConfig(Base):
    """Telegram channel configuration."""

    enabled: bool = False
    token: str = ""
    proxy: str | None = None
    hard_limit: int = Field(default=4096, ge=1)  # Telegram's per-message cap
    chunk_delay_ms: int = Field(default=100, ge=0)
    part_indicators: bool = True
    max_retries: int = Field(default=3, ge=1)
    retry_base_delay: float = Field(default=1.0, ge=0)
    read_timeout: float = 30
    write_timeout: float = 30
    splitter: SplitterConfig = Field(default_factory=SplitterConfig)

    @model_validator(mode="after")
    def _check_budget(self) -> "TelegramConfig":
        if self.splitter.max_length > self.hard_limit:
            raise ValueError("splitter.max_length must not exceed hard_limit")
        return self


class Config(BaseSettings):
    """Root configuration for relaybot."""

    telegram: TelegramConfig = Field(default_factory=TelegramConfig)

    model_config = SettingsConfigDict(
        env_prefix="RELAYBOT_",
        env_nested_delimiter="__",
        extra="ignore",
    )
