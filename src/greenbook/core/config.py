"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class DynamoDBConfig(BaseSettings):
    """DynamoDB configuration."""

    model_config = {"env_prefix": "GREENBOOK_DYNAMO_"}

    table_suffix: str = ""  # "-dev", "-uat", or "" for prod
    region: str = "ap-northeast-1"
    endpoint_url: str | None = None  # LocalStack override


class RedisConfig(BaseSettings):
    """Redis configuration (per-contract locks)."""

    model_config = {"env_prefix": "GREENBOOK_REDIS_"}

    host: str = "localhost"
    port: int = 6379
    db: int = 0


class LockConfig(BaseSettings):
    """Per-contract lock configuration."""

    model_config = {"env_prefix": "GREENBOOK_LOCK_"}

    backend: Literal["memory", "redis", "none"] = "memory"
    timeout_seconds: float = 300.0  # auto-expiry of a held lock
    blocking_timeout_seconds: float = 10.0


class RevenueConfig(BaseSettings):
    """Revenue recognition settings."""

    model_config = {"env_prefix": "GREENBOOK_REVENUE_"}

    timezone: str = "Asia/Tokyo"  # decides "today" for recalculation
    rate_places: int = 6
    hours_places: int = 2
    recalculation_timeout_seconds: float = 120.0


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "GREENBOOK_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"
    store_backend: Literal["memory", "dynamodb"] = "memory"

    dynamodb: DynamoDBConfig = DynamoDBConfig()
    redis: RedisConfig = RedisConfig()
    lock: LockConfig = LockConfig()
    revenue: RevenueConfig = RevenueConfig()
