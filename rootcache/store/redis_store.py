"""Redis-backed record store.

Records are msgpack-encoded under ``rootcache:record:{id}``. Enumeration
walks the keyspace with SCAN; conditional updates use WATCH/MULTI so a
concurrent writer aborts the transaction instead of being overwritten.
"""

import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import contextmanager
from typing import Any

import msgpack
from redis.asyncio import Redis
from redis.exceptions import RedisError, WatchError

from rootcache.core import defaults
from rootcache.core.exceptions import (
    ConcurrentUpdateError,
    RecordNotFoundError,
    StoreError,
)
from rootcache.core.models import AnalysisRecord, RecordDraft, RecordUpdate
from rootcache.store.base import RecordStore

logger = logging.getLogger(__name__)


class RedisRecordStore(RecordStore):
    """Redis record store for production.

    Key Pattern:
        rootcache:record:{record_id}
    """

    def __init__(
        self,
        redis: Any,  # Redis async client
        key_prefix: str = defaults.REDIS_RECORD_KEY_PREFIX,
    ):
        """Initialize Redis store.

        Args:
            redis: Redis async client instance (decode_responses=False)
            key_prefix: Key prefix for records
        """
        self.redis = redis
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, redis_url: str, timeout: int = 5) -> "RedisRecordStore":
        """Create a store with its own client."""
        client = Redis.from_url(
            redis_url,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
            retry_on_timeout=True,
            max_connections=10,
            decode_responses=False,  # We handle bytes for msgpack
        )
        logger.info(f"Record store using Redis at {redis_url}")
        return cls(client)

    def _key(self, record_id: str) -> str:
        return f"{self.key_prefix}:{record_id}"

    @property
    def _pattern(self) -> str:
        return f"{self.key_prefix}:*"

    @staticmethod
    def _encode(record: AnalysisRecord) -> bytes:
        return msgpack.packb(record.model_dump(mode="json"), use_bin_type=True)

    @staticmethod
    def _decode(data: bytes) -> AnalysisRecord:
        return AnalysisRecord.model_validate(msgpack.unpackb(data, raw=False))

    def _decode_stored(
        self, data: bytes, record_id: str, operation: str
    ) -> AnalysisRecord:
        try:
            return self._decode(data)
        except Exception as e:
            logger.error(f"Failed to parse analysis record {record_id}: {e}")
            raise StoreError(
                f"Failed to parse analysis record {record_id}: {e}",
                operation=operation,
                record_id=record_id,
            ) from e

    @contextmanager
    def _errors(self, operation: str, record_id: str | None = None) -> Iterator[None]:
        try:
            yield
        except RedisError as e:
            logger.error(f"Redis {operation} failed for {record_id or '*'}: {e}")
            raise StoreError(
                f"Redis {operation} failed: {e}",
                operation=operation,
                record_id=record_id,
            ) from e

    async def add(self, draft: RecordDraft, quality_score: float) -> AnalysisRecord:
        self.validate_draft(draft)
        record = AnalysisRecord.from_draft(draft, quality_score)
        with self._errors("add", record.id):
            await self.redis.set(self._key(record.id), self._encode(record))
        logger.debug(f"Saved analysis record to Redis: {record.id}")
        return record

    async def get_by_id(self, record_id: str) -> AnalysisRecord | None:
        with self._errors("get", record_id):
            data = await self.redis.get(self._key(record_id))

        if data is None:
            return None
        return self._decode_stored(data, record_id, "get")

    async def update(
        self,
        record_id: str,
        changes: RecordUpdate,
        expected_version: int | None = None,
    ) -> AnalysisRecord:
        key = self._key(record_id)
        base_version = expected_version or 0

        with self._errors("update", record_id):
            async with self.redis.pipeline(transaction=True) as pipe:
                try:
                    await pipe.watch(key)
                    data = await pipe.get(key)
                    if data is None:
                        raise RecordNotFoundError(record_id, operation="update")

                    current = self._decode_stored(data, record_id, "update")
                    base_version = expected_version or current.version
                    if (
                        expected_version is not None
                        and current.version != expected_version
                    ):
                        raise ConcurrentUpdateError(
                            record_id, expected_version, current.version
                        )

                    updated = current.apply(changes)
                    pipe.multi()
                    pipe.set(key, self._encode(updated))
                    await pipe.execute()
                except WatchError as e:
                    # Another client wrote the key between WATCH and EXEC
                    raise ConcurrentUpdateError(record_id, base_version, None) from e

        logger.debug(f"Updated analysis record in Redis: {record_id} (v{updated.version})")
        return updated

    async def delete(self, record_id: str) -> bool:
        with self._errors("delete", record_id):
            deleted = await self.redis.delete(self._key(record_id))
        if deleted:
            logger.debug(f"Deleted analysis record from Redis: {record_id}")
        return bool(deleted)

    async def iter_records(
        self, batch_size: int = defaults.LIFECYCLE_SCAN_BATCH_SIZE
    ) -> AsyncIterator[list[AnalysisRecord]]:
        cursor = 0
        seen: set[bytes | str] = set()

        while True:
            with self._errors("scan"):
                cursor, keys = await self.redis.scan(
                    cursor=cursor,
                    match=self._pattern,
                    count=batch_size,
                )
                # SCAN may return a key more than once
                keys = [key for key in keys if key not in seen]
                seen.update(keys)
                values = await self.redis.mget(keys) if keys else []

            batch = []
            for key, data in zip(keys, values):
                if data is None:
                    continue
                try:
                    batch.append(self._decode(data))
                except Exception as e:
                    logger.warning(f"Skipping unparseable record at {key!r}: {e}")

            if batch:
                yield batch

            if cursor == 0:
                break

    async def count(self) -> int:
        cursor = 0
        count = 0

        with self._errors("count"):
            while True:
                cursor, keys = await self.redis.scan(
                    cursor=cursor,
                    match=self._pattern,
                    count=100,
                )
                count += len(keys)

                if cursor == 0:
                    break

        return count

    async def clear(self) -> None:
        cursor = 0
        deleted = 0

        with self._errors("clear"):
            while True:
                cursor, keys = await self.redis.scan(
                    cursor=cursor,
                    match=self._pattern,
                    count=100,
                )
                if keys:
                    deleted += await self.redis.delete(*keys)

                if cursor == 0:
                    break

        if deleted:
            logger.info(f"Cleared {deleted} analysis records from Redis")

    async def close(self) -> None:
        await self.redis.aclose()
