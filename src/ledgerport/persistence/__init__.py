"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from typing import NamedTuple

from ledgerport.core.config import AppSettings
from ledgerport.core.protocols import ICacheBackend, IDirectoryLookup, IFileStore, IOrderSink
from ledgerport.persistence.dynamodb_backend import DynamoDBDirectory, DynamoDBOrderSink
from ledgerport.persistence.memory_backend import MemoryDirectory, MemoryFileStore, MemoryOrderSink
from ledgerport.persistence.redis_backend import RedisCacheBackend
from ledgerport.persistence.s3_backend import S3FileStore


class Persistence(NamedTuple):
    directory: IDirectoryLookup
    sink: IOrderSink
    file_store: IFileStore
    cache: ICacheBackend | None


def create_persistence(settings: AppSettings | None = None) -> Persistence:
    """Create wired-up persistence backends from application settings.

    ``backend="memory"`` gives dict-backed fakes, with the directory loaded from
    ``settings.directory_seed`` when set. ``backend="aws"`` wires DynamoDB and S3,
    with Redis caching of directory lookups when enabled.
    """
    if settings is None:
        settings = AppSettings()

    if settings.backend == "memory":
        if settings.directory_seed is not None:
            directory = MemoryDirectory.from_seed_file(settings.directory_seed)
        else:
            directory = MemoryDirectory()
        return Persistence(directory, MemoryOrderSink(), MemoryFileStore(), None)

    cache = None
    if settings.redis.enabled:
        cache = RedisCacheBackend(
            host=settings.redis.host,
            port=settings.redis.port,
            db=settings.redis.db,
        )

    directory = DynamoDBDirectory(
        table_suffix=settings.dynamodb.table_suffix,
        region=settings.dynamodb.region,
        endpoint_url=settings.dynamodb.endpoint_url,
        cache=cache,
        cache_ttl=settings.redis.lookup_ttl,
    )

    sink = DynamoDBOrderSink(
        table_suffix=settings.dynamodb.table_suffix,
        region=settings.dynamodb.region,
        endpoint_url=settings.dynamodb.endpoint_url,
    )

    file_store = S3FileStore(
        bucket=settings.s3.bucket,
        region=settings.s3.region,
        endpoint_url=settings.s3.endpoint_url,
    )

    return Persistence(directory, sink, file_store, cache)
