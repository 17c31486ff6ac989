"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from typing import NamedTuple

from caseledger.core.config import AppSettings
from caseledger.core.protocols import IActivitySource, IFileStore, IPayoutStore, IRateTable
from caseledger.persistence.dynamodb_backend import (
    DynamoDBActivitySource,
    DynamoDBPayoutStore,
    DynamoDBRateTable,
)
from caseledger.persistence.memory_backend import (
    MemoryActivitySource,
    MemoryFileStore,
    MemoryPayoutStore,
    MemoryRateTable,
)
from caseledger.persistence.redis_backend import RedisCacheBackend
from caseledger.persistence.s3_backend import S3FileStore


class Persistence(NamedTuple):
    activity_source: IActivitySource
    rate_table: IRateTable
    payout_store: IPayoutStore
    file_store: IFileStore


def create_persistence(settings: AppSettings | None = None) -> Persistence:
    """Create wired-up persistence backends from application settings.

    ``storage="memory"`` returns empty in-process backends for local runs.
    """
    if settings is None:
        settings = AppSettings()

    if settings.storage == "memory":
        return Persistence(
            MemoryActivitySource(), MemoryRateTable(), MemoryPayoutStore(), MemoryFileStore(),
        )

    dynamo = settings.dynamodb
    cache = RedisCacheBackend(
        host=settings.redis.host,
        port=settings.redis.port,
        db=settings.redis.db,
    )

    return Persistence(
        activity_source=DynamoDBActivitySource(
            table_suffix=dynamo.table_suffix,
            region=dynamo.region,
            endpoint_url=dynamo.endpoint_url,
            default_hours=settings.payout.default_hours_per_day,
        ),
        rate_table=DynamoDBRateTable(
            table_suffix=dynamo.table_suffix,
            region=dynamo.region,
            endpoint_url=dynamo.endpoint_url,
            cache=cache,
            cache_ttl=settings.redis.rate_ttl,
        ),
        payout_store=DynamoDBPayoutStore(
            table_suffix=dynamo.table_suffix,
            region=dynamo.region,
            endpoint_url=dynamo.endpoint_url,
        ),
        file_store=S3FileStore(
            bucket=settings.s3.bucket,
            region=settings.s3.region,
            endpoint_url=settings.s3.endpoint_url,
        ),
    )
