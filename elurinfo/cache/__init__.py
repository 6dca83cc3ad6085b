"""
Freshness cache and record store contract.
"""
from .categories import CategoryPolicy, DataCategory, build_policies
from .freshness import CacheLookup, CacheStatus, FreshnessCache
from .keys import CacheKey, snow_science_front_key
from .memory import InMemoryRecordStore
from .store import KeyStatistics, RecordFilter, RecordStore, StoredRecord

__all__ = [
    "CacheKey",
    "CacheLookup",
    "CacheStatus",
    "CategoryPolicy",
    "DataCategory",
    "FreshnessCache",
    "InMemoryRecordStore",
    "KeyStatistics",
    "RecordFilter",
    "RecordStore",
    "StoredRecord",
    "build_policies",
    "snow_science_front_key",
]
