"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings


class ImportConfig(BaseSettings):
    """Tunables for the import engine."""

    model_config = {"env_prefix": "LEDGERPORT_IMPORT_"}

    day_first: bool = False  # 03/04/2024 -> 3 April when True
    min_year: int = 2000
    max_year: int = 2100
    total_tolerance: Decimal = Decimal("0.01")
    max_rows: int = 5000


class DynamoDBConfig(BaseSettings):
    """DynamoDB configuration."""

    model_config = {"env_prefix": "LEDGERPORT_DYNAMO_"}

    table_suffix: str = ""  # "-dev", "-uat", or "" for prod
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override


class RedisConfig(BaseSettings):
    """Redis cache configuration."""

    model_config = {"env_prefix": "LEDGERPORT_REDIS_"}

    enabled: bool = False
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    lookup_ttl: int = 300


class S3Config(BaseSettings):
    """S3 file storage configuration."""

    model_config = {"env_prefix": "LEDGERPORT_S3_"}

    bucket: str = "ledgerport-imports"
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "LEDGERPORT_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"
    backend: Literal["memory", "aws"] = "memory"
    directory_seed: Path | None = None  # JSON seed loaded into the memory directory

    imports: ImportConfig = ImportConfig()
    dynamodb: DynamoDBConfig = DynamoDBConfig()
    redis: RedisConfig = RedisConfig()
    s3: S3Config = S3Config()
