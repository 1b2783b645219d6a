"""
Engine configuration.

Settings are read from PAYMENTS_* environment variables via pydantic-settings.
"""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Payments ledger configuration"""

    model_config = SettingsConfigDict(env_prefix="PAYMENTS_")

    # Logging configuration
    log_level: str = "WARNING"
    log_format: str = "%(levelname)s: %(message)s"

    # 1 runs the sequential driver, more shards clients across worker threads
    num_workers: int = 1

    # Business rules
    dispute_withdrawals: bool = True

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level

    @field_validator("num_workers")
    @classmethod
    def validate_num_workers(cls, value: int) -> int:
        if value < 1:
            raise ValueError("num_workers must be at least 1")
        return value
