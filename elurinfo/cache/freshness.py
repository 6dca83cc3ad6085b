"""
Freshness-gated read-through cache.

One mechanism serves every data category; the CategoryPolicy of a category
decides how long its records stay fresh, whether they expire with their
valid date, and whether new fetches replace or append.

Lookup order for a key:

    stored record fresh?  -> return it (hit)
    upstream fetch ok?    -> persist and return it (fresh)
    previous record?      -> return it flagged degraded
    otherwise             -> None

Snow-science reports add a short-lived front entry (a generic-api-response
record) in front of the store.
"""
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from elurinfo.exceptions import CorruptCacheEntry, UpstreamReason, UpstreamUnavailable
from elurinfo.providers.base import UpstreamPayload

from .categories import CategoryPolicy, DataCategory
from .keys import snow_science_front_key
from .store import KeyStatistics, RecordFilter, RecordStore, StoredRecord

logger = logging.getLogger(__name__)

Category = Union[DataCategory, str]


class CacheStatus(str, Enum):
    FRESH = "fresh"
    HIT = "hit"
    DEGRADED = "degraded"


@dataclass
class CacheLookup:
    """
    Result of a cache lookup.

    Attributes:
        payload: Parsed JSON payload
        record: Stored record metadata
        status: fresh (fetched now), hit (served from storage) or degraded
        source: database, cache, live or mock-data
    """
    payload: Any
    record: StoredRecord
    status: CacheStatus
    source: str

    @property
    def cached(self) -> bool:
        return self.status != CacheStatus.FRESH

    @property
    def valid(self) -> bool:
        return self.status != CacheStatus.DEGRADED

    @property
    def last_update(self) -> datetime:
        return self.record.last_update


class FreshnessCache:
    """
    Read-through cache over a RecordStore and an upstream provider.

    Args:
        store: Record store, built at startup
        provider: Anything with ``async fetch(category, key) -> UpstreamPayload``
        policies: Policy per category
        clock: Returns the current timezone-aware time
        timezone_name: Timezone deciding which calendar day is today
    """

    def __init__(
        self,
        store: RecordStore,
        provider: Any,
        policies: Dict[DataCategory, CategoryPolicy],
        clock: Optional[Callable[[], datetime]] = None,
        timezone_name: str = "Europe/Madrid",
    ):
        self._store = store
        self._provider = provider
        self._policies = policies
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._tz = ZoneInfo(timezone_name)

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def provider(self) -> Any:
        return self._provider

    def policy(self, category: Category) -> CategoryPolicy:
        return self._policies[DataCategory(category)]

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self.now().astimezone(self._tz).date()

    def _local_day(self, value: datetime) -> date:
        return _aware(value).astimezone(self._tz).date()

    def is_stale(self, policy: CategoryPolicy, record: StoredRecord, now: Optional[datetime] = None) -> bool:
        """Check a record against its category's freshness rules."""
        now = now or self.now()
        if policy.expires_explicitly:
            return record.expires_at is None or record.expires_at <= now
        if now - record.last_update > policy.ttl:
            return True
        if policy.has_valid_date and record.valid_date is not None:
            return record.valid_date < now.astimezone(self._tz).date()
        return False

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, category: Category, key: str) -> Optional[CacheLookup]:
        """
        Return the best available record for a key, or None when there is
        no stored record and upstream cannot provide one.
        """
        policy = self.policy(category)
        if policy.front_ttl is not None:
            return await self._get_tiered(policy, key)
        return await self._get_direct(policy, key)

    async def get_many(self, category: Category, keys: List[str]) -> List[CacheLookup]:
        """Sequential get for each key, skipping keys without data."""
        results = []
        for key in keys:
            lookup = await self.get(category, key)
            if lookup is not None:
                results.append(lookup)
        return results

    async def stored(self, category: Category, keys: Optional[List[str]] = None) -> List[CacheLookup]:
        """Latest stored record of each key, without calling upstream."""
        policy = self.policy(category)
        now = self.now()
        results = []
        for record in await self._store.list_latest_per_key(policy.category.value, keys):
            payload = await self._decode_or_discard(record)
            if payload is _CORRUPT:
                continue
            status = CacheStatus.DEGRADED if self.is_stale(policy, record, now) else CacheStatus.HIT
            results.append(CacheLookup(payload, record, status, "database"))
        return results

    async def history(
        self,
        category: Category,
        key: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: int = 30,
    ) -> List[CacheLookup]:
        """
        Stored records of one key issued between since and until, latest issue first.

        Bounds are turned into calendar days in the local timezone. The window
        defaults to the last 30 days.
        """
        policy = self.policy(category)
        today = self.today()
        since_day = self._local_day(since) if since is not None else today - timedelta(days=30)
        until_day = self._local_day(until) if until is not None else today

        results = []
        for record in await self._store.list_history(policy.category.value, key, since_day, until_day, limit):
            payload = await self._decode_or_discard(record)
            if payload is _CORRUPT:
                continue
            results.append(CacheLookup(payload, record, CacheStatus.HIT, "database"))
        return results

    async def statistics(self, category: Category) -> List[KeyStatistics]:
        return await self._store.key_statistics(self.policy(category).category.value)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def invalidate(self, category: Category, key: str) -> int:
        """
        Delete the stored record(s) of a key so the next get goes upstream.

        Snow-science keeps its older history: only the front entry and the
        reports still inside the freshness window are deleted.
        """
        policy = self.policy(category)
        if policy.append_only:
            deleted = await self._store.delete_by_key(
                DataCategory.API_RESPONSE.value, snow_science_front_key(key)
            )
            deleted += await self._store.delete_where(
                policy.category.value,
                RecordFilter(key=key, updated_after=self.now() - policy.ttl),
            )
        else:
            deleted = await self._store.delete_by_key(policy.category.value, key)

        logger.info(f"🗑️ Invalidated {policy.category.value}/{key} ({deleted} rows)")
        return deleted

    async def refresh(self, category: Category, key: str) -> Optional[CacheLookup]:
        """Invalidate a key, then get it again."""
        await self.invalidate(category, key)
        return await self.get(category, key)

    async def sweep(self, category: Category) -> int:
        """
        Delete records past retention, forecasts whose valid date has
        passed and generic entries past their expiry.

        Returns:
            Number of deleted rows
        """
        policy = self.policy(category)
        now = self.now()
        name = policy.category.value
        deleted = 0

        if policy.retention is not None:
            deleted += await self._store.delete_where(name, RecordFilter(updated_before=now - policy.retention))
        if policy.has_valid_date:
            deleted += await self._store.delete_where(name, RecordFilter(valid_before=self.today()))
        if policy.expires_explicitly:
            deleted += await self._store.delete_where(name, RecordFilter(expires_before=now))

        if deleted:
            logger.info(f"🧹 Swept {deleted} {name} records")
        return deleted

    async def sweep_all(self) -> Dict[str, int]:
        results = {}
        for category in self._policies:
            results[category.value] = await self.sweep(category)
        return results

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _get_direct(self, policy: CategoryPolicy, key: str) -> Optional[CacheLookup]:
        now = self.now()
        record, payload = await self._read_current(policy, key)

        if record is not None and not self.is_stale(policy, record, now):
            logger.debug(f"💾 Cache hit {policy.category.value}/{key}")
            return CacheLookup(payload, record, CacheStatus.HIT, "database")

        return await self._refetch(policy, key, record, payload, now)

    async def _get_tiered(self, policy: CategoryPolicy, key: str) -> Optional[CacheLookup]:
        now = self.now()

        front = await self._read_front(key, now)
        if front is not None:
            logger.debug(f"⚡ Front cache hit {policy.category.value}/{key}")
            return front

        record, payload = await self._read_current(policy, key)
        if record is not None and not self.is_stale(policy, record, now):
            logger.debug(f"💾 Cache hit {policy.category.value}/{key}")
            await self._write_front(policy, key, record, payload, now)
            return CacheLookup(payload, record, CacheStatus.HIT, "database")

        lookup = await self._refetch(policy, key, record, payload, now)
        if lookup is not None and lookup.status == CacheStatus.FRESH:
            await self._write_front(policy, key, lookup.record, lookup.payload, now)
        return lookup

    async def _read_current(self, policy: CategoryPolicy, key: str) -> Tuple[Optional[StoredRecord], Any]:
        record = await self._store.get_latest(policy.category.value, key)
        if record is None:
            return None, None

        payload = await self._decode_or_discard(record)
        if payload is _CORRUPT:
            return None, None
        return record, payload

    async def _refetch(
        self,
        policy: CategoryPolicy,
        key: str,
        previous: Optional[StoredRecord],
        previous_payload: Any,
        now: datetime,
    ) -> Optional[CacheLookup]:
        name = policy.category.value
        try:
            upstream = await self._provider.fetch(name, key)
            serialized = self._encode(upstream.data)
        except UpstreamUnavailable as e:
            logger.warning(f"⚠️ Upstream unavailable for {name}/{key} ({e.reason.value}): {e.message}")
            if previous is None:
                return None
            logger.info(f"↩️ Serving degraded {name}/{key} from {previous.last_update.isoformat()}")
            return CacheLookup(previous_payload, previous, CacheStatus.DEGRADED, "database")

        record = await self._persist(policy, key, upstream, serialized, now)
        logger.info(f"🌐 Fetched {name}/{key} from {upstream.source}")
        return CacheLookup(json.loads(serialized), record, CacheStatus.FRESH, upstream.source)

    async def _persist(
        self,
        policy: CategoryPolicy,
        key: str,
        upstream: UpstreamPayload,
        serialized: str,
        now: datetime,
    ) -> StoredRecord:
        valid_date = None
        if policy.has_valid_date:
            valid_date = upstream.valid_date or now.astimezone(self._tz).date()

        issue_date = upstream.issue_date
        if policy.append_only and issue_date is None:
            issue_date = now.astimezone(self._tz).date()

        record = StoredRecord(
            category=policy.category.value,
            key=key,
            payload=serialized,
            last_update=now,
            valid_date=valid_date,
            issue_date=issue_date,
            expires_at=now + policy.ttl if policy.expires_explicitly else None,
        )
        if policy.append_only:
            return await self._store.insert_versioned(record)
        return await self._store.upsert_by_key(record)

    async def _read_front(self, key: str, now: datetime) -> Optional[CacheLookup]:
        front_policy = self.policy(DataCategory.API_RESPONSE)
        front = await self._store.get_latest(front_policy.category.value, snow_science_front_key(key))
        if front is None or self.is_stale(front_policy, front, now):
            return None

        snapshot = await self._decode_or_discard(front)
        if snapshot is _CORRUPT:
            return None
        try:
            record = _record_from_snapshot(snapshot["record"])
            payload = snapshot["payload"]
        except (KeyError, TypeError, ValueError):
            await self._discard(CorruptCacheEntry(front.category, front.key, front.id))
            return None
        return CacheLookup(payload, record, CacheStatus.HIT, "cache")

    async def _write_front(
        self,
        policy: CategoryPolicy,
        key: str,
        record: StoredRecord,
        payload: Any,
        now: datetime,
    ) -> None:
        # Never outlive the freshness of the stored record behind it
        expires_at = min(now + policy.front_ttl, record.last_update + policy.ttl)
        snapshot = {"record": _record_to_snapshot(record), "payload": payload}
        await self._store.upsert_by_key(StoredRecord(
            category=DataCategory.API_RESPONSE.value,
            key=snow_science_front_key(key),
            payload=json.dumps(snapshot, ensure_ascii=False),
            last_update=now,
            expires_at=expires_at,
        ))

    async def _decode_or_discard(self, record: StoredRecord) -> Any:
        try:
            return self._decode(record)
        except CorruptCacheEntry as e:
            await self._discard(e)
            return _CORRUPT

    async def _discard(self, error: CorruptCacheEntry) -> None:
        logger.error(f"❌ {error.message}, deleting record {error.record_id}")
        if error.record_id is not None:
            await self._store.delete_record(error.record_id)
        else:
            await self._store.delete_by_key(error.category, error.key)

    @staticmethod
    def _decode(record: StoredRecord) -> Any:
        try:
            return json.loads(record.payload)
        except (TypeError, ValueError) as e:
            raise CorruptCacheEntry(record.category, record.key, record.id) from e

    @staticmethod
    def _encode(data: Any) -> str:
        try:
            return json.dumps(data, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise UpstreamUnavailable(
                f"Upstream payload is not serializable: {e}",
                reason=UpstreamReason.MALFORMED,
            ) from e


_CORRUPT = object()


def _aware(value: datetime) -> datetime:
    # Naive datetimes are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _record_to_snapshot(record: StoredRecord) -> Dict[str, Any]:
    return {
        "id": record.id,
        "category": record.category,
        "key": record.key,
        "last_update": record.last_update.isoformat(),
        "valid_date": record.valid_date.isoformat() if record.valid_date else None,
        "issue_date": record.issue_date.isoformat() if record.issue_date else None,
    }


def _record_from_snapshot(data: Dict[str, Any]) -> StoredRecord:
    return StoredRecord(
        id=data.get("id"),
        category=data["category"],
        key=data["key"],
        payload="",
        last_update=datetime.fromisoformat(data["last_update"]),
        valid_date=date.fromisoformat(data["valid_date"]) if data.get("valid_date") else None,
        issue_date=date.fromisoformat(data["issue_date"]) if data.get("issue_date") else None,
    )
