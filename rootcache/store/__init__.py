"""Persisted analysis record stores.

Storage Options:
- InMemoryRecordStore: dict-based storage for testing and embedding
- RedisRecordStore: msgpack records in Redis, SCAN enumeration
- PostgresRecordStore: asyncpg-backed table with keyset enumeration
"""

from rootcache.store.base import RecordStore
from rootcache.store.factory import create_record_store, save_analysis
from rootcache.store.memory_store import InMemoryRecordStore
from rootcache.store.postgres_store import PostgresRecordStore
from rootcache.store.redis_store import RedisRecordStore

__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "RedisRecordStore",
    "PostgresRecordStore",
    "create_record_store",
    "save_analysis",
]
