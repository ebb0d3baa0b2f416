"""
Configuration for the coordination core with Pydantic Settings.

Environment variables use the ``CHIMERA_`` prefix and ``__`` for nesting,
e.g. ``CHIMERA_COORDINATION__STAGE_TIMEOUT=30``.
"""

from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CoordinationConfig(BaseModel):
    """Timeouts, retries and bus sizing for the workflow engine."""

    stage_timeout: float = Field(60.0, gt=0, description="Per-attempt stage budget in seconds")
    max_retries: int = Field(3, ge=0, description="Retries after the first attempt")
    retry_base_delay: float = Field(0.25, ge=0, description="First backoff delay in seconds")
    max_events: int = Field(1000, gt=0, description="Event bus history cap")
    merge_stage_outputs: bool = Field(
        False, description="Fold each stage's output back into the workflow context"
    )


class ObservabilityConfig(BaseModel):
    """Configuration for logging and probes."""

    log_level: str = Field("INFO")
    service_name: str = Field("chimera")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return v.upper()


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="CHIMERA_", env_nested_delimiter="__", case_sensitive=False, extra="ignore"
    )

    coordination: CoordinationConfig = Field(default_factory=CoordinationConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
