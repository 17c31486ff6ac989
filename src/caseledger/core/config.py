"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from caseledger.models.slabs import PayoutRules, SlabBand, default_slabs


class PayoutRulesConfig(BaseSettings):
    """Logging slab table and bonus rate.

    ``CASELEDGER_PAYOUT_SLABS`` takes a JSON list, e.g.
    ``[{"lower": 0, "upper": 13, "rate": "0.50"}, {"lower": 13, "rate": "0.65"}]``.
    """

    model_config = {"env_prefix": "CASELEDGER_PAYOUT_"}

    slabs: list[SlabBand] = Field(default_factory=default_slabs)
    complete_logging_rate: Decimal = Decimal("0.65")
    include_datavant_in_logging: bool = True
    default_hours_per_day: Decimal = Decimal("8")  # stored days without hours

    def to_rules(self) -> PayoutRules:
        """Build validated PayoutRules; raises SlabConfigurationError on a bad table."""
        return PayoutRules(
            slabs=self.slabs,
            complete_logging_rate=self.complete_logging_rate,
            include_datavant_in_logging=self.include_datavant_in_logging,
        )


class DynamoDBConfig(BaseSettings):
    """DynamoDB configuration."""

    model_config = {"env_prefix": "CASELEDGER_DYNAMO_"}

    table_suffix: str = ""  # "-dev", "-uat", or "" for prod
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override


class RedisConfig(BaseSettings):
    """Redis cache configuration."""

    model_config = {"env_prefix": "CASELEDGER_REDIS_"}

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    rate_ttl: int = 300  # seconds


class S3Config(BaseSettings):
    """S3 export storage configuration."""

    model_config = {"env_prefix": "CASELEDGER_S3_"}

    bucket: str = "caseledger-payout-exports"
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override
    export_prefix: str = "exports/"


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "CASELEDGER_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"
    storage: Literal["memory", "aws"] = "memory"

    payout: PayoutRulesConfig = PayoutRulesConfig()
    dynamodb: DynamoDBConfig = DynamoDBConfig()
    redis: RedisConfig = RedisConfig()
    s3: S3Config = S3Config()
