"""Configuration management for the training session service."""
from typing import Literal, Mapping, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class TrainingSettings(BaseSettings):
    """Runtime knobs for the session core, loaded from environment variables.

    RETRY_INTERVAL_UNIT_SECONDS is the number of seconds per unit of a
    session's retry interval (1 keeps the cadence in seconds, 60 in minutes).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    # Cost estimation
    tokens_per_iteration: int = Field(default=1000, gt=0)

    # Iteration engine
    success_probability: float = Field(default=0.7, ge=0.0, le=1.0)
    retry_interval_unit_seconds: float = Field(default=1.0, gt=0)

    # Validation bounds
    max_iterations: int = Field(default=100, ge=1)
    max_retry_interval: int = Field(default=60, ge=1)

    log_level: LogLevel = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value):
        return value.strip().upper() if isinstance(value, str) else value

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "TrainingSettings":
        """Load settings, raising RuntimeError that names each invalid variable.

        `env` overrides the process environment; blank values fall back to defaults.
        """
        overrides = {}
        if env is not None:
            for name in cls.model_fields:
                raw = env.get(name.upper())
                if raw is not None and raw.strip():
                    overrides[name] = raw.strip()
        try:
            return cls(**overrides)
        except ValidationError as exc:
            problems = "; ".join(
                f"{str(error['loc'][0]).upper()}: {error['msg']}" for error in exc.errors() if error["loc"]
            )
            raise RuntimeError(f"Invalid environment configuration: {problems}") from exc
