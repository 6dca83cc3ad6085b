"""
Tests for the in-memory record store.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from elurinfo.cache.memory import InMemoryRecordStore
from elurinfo.cache.store import RecordFilter, StoredRecord

T0 = datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc)


def record(key="k", last_update=T0, category="avalanche-report", **fields):
    return StoredRecord(category=category, key=key, payload="{}", last_update=last_update, **fields)


class TestInMemoryRecordStore:
    """Tests for InMemoryRecordStore."""

    @pytest.mark.asyncio
    async def test_upsert_replaces_same_key_and_valid_date(self):
        """It should keep one row per (key, valid_date) and preserve its id."""
        store = InMemoryRecordStore()
        first = await store.upsert_by_key(record(valid_date=date(2026, 1, 15)))
        second = await store.upsert_by_key(record(last_update=T0 + timedelta(hours=1), valid_date=date(2026, 1, 15)))

        assert second.id == first.id
        assert len(store.records) == 1
        assert store.records[0].last_update == T0 + timedelta(hours=1)

    @pytest.mark.asyncio
    async def test_upsert_with_new_valid_date_adds_row(self):
        """It should add a row when the valid date differs."""
        store = InMemoryRecordStore()
        await store.upsert_by_key(record(valid_date=date(2026, 1, 15)))
        await store.upsert_by_key(record(valid_date=date(2026, 1, 16)))

        assert len(store.records) == 2

    @pytest.mark.asyncio
    async def test_get_latest_returns_newest(self):
        """It should return the most recently updated row for the key."""
        store = InMemoryRecordStore()
        await store.insert_versioned(record(last_update=T0))
        await store.insert_versioned(record(last_update=T0 + timedelta(hours=2)))

        latest = await store.get_latest("avalanche-report", "k")

        assert latest.last_update == T0 + timedelta(hours=2)
        assert await store.get_latest("avalanche-report", "other") is None

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self):
        """It should not let callers mutate stored rows."""
        store = InMemoryRecordStore()
        stored = await store.insert_versioned(record())
        stored.payload = "changed"

        assert (await store.get_latest("avalanche-report", "k")).payload == "{}"

    @pytest.mark.asyncio
    async def test_delete_where_combines_conditions(self):
        """It should delete only rows matching every condition."""
        store = InMemoryRecordStore()
        await store.insert_versioned(record(key="a", last_update=T0 - timedelta(days=40)))
        await store.insert_versioned(record(key="b", last_update=T0 - timedelta(days=40)))
        await store.insert_versioned(record(key="a", last_update=T0))

        deleted = await store.delete_where(
            "avalanche-report",
            RecordFilter(key="a", updated_before=T0 - timedelta(days=30)),
        )

        assert deleted == 1
        assert sorted((r.key, r.last_update) for r in store.records) == [
            ("a", T0),
            ("b", T0 - timedelta(days=40)),
        ]

    @pytest.mark.asyncio
    async def test_delete_where_requires_a_condition(self):
        """It should refuse to delete a whole category."""
        store = InMemoryRecordStore()

        with pytest.raises(ValueError):
            await store.delete_where("avalanche-report", RecordFilter())

    @pytest.mark.asyncio
    async def test_delete_record(self):
        """It should delete one row by id."""
        store = InMemoryRecordStore()
        stored = await store.insert_versioned(record())

        assert await store.delete_record(stored.id) is True
        assert await store.delete_record(stored.id) is False

    @pytest.mark.asyncio
    async def test_list_latest_per_key(self):
        """It should list one row per key, newest first, optionally filtered by key."""
        store = InMemoryRecordStore()
        await store.insert_versioned(record(key="a", last_update=T0))
        await store.insert_versioned(record(key="a", last_update=T0 + timedelta(hours=3)))
        await store.insert_versioned(record(key="b", last_update=T0 + timedelta(hours=1)))
        await store.insert_versioned(record(key="c", category="mountain-forecast"))

        latest = await store.list_latest_per_key("avalanche-report")
        filtered = await store.list_latest_per_key("avalanche-report", ["b"])

        assert [(r.key, r.last_update) for r in latest] == [
            ("a", T0 + timedelta(hours=3)),
            ("b", T0 + timedelta(hours=1)),
        ]
        assert [r.key for r in filtered] == ["b"]

    @pytest.mark.asyncio
    async def test_list_history_window(self):
        """It should list rows issued within the inclusive window, latest issue first."""
        store = InMemoryRecordStore()
        for days in (0, 1, 2, 3):
            await store.insert_versioned(record(
                category="snow-science-report",
                last_update=T0 + timedelta(days=days),
                issue_date=date(2026, 1, 10) + timedelta(days=days),
            ))

        history = await store.list_history(
            "snow-science-report", "k", since=date(2026, 1, 11), until=date(2026, 1, 13), limit=2
        )

        assert [r.issue_date for r in history] == [date(2026, 1, 13), date(2026, 1, 12)]

    @pytest.mark.asyncio
    async def test_list_history_orders_by_issue_date(self):
        """It should order by issue date before fetch time."""
        store = InMemoryRecordStore()
        await store.insert_versioned(record(
            category="snow-science-report", last_update=T0 + timedelta(hours=5), issue_date=date(2026, 1, 12)
        ))
        await store.insert_versioned(record(
            category="snow-science-report", last_update=T0, issue_date=date(2026, 1, 14)
        ))
        await store.insert_versioned(record(category="snow-science-report", last_update=T0))

        history = await store.list_history("snow-science-report", "k")

        assert [r.issued_on for r in history] == [date(2026, 1, 15), date(2026, 1, 14), date(2026, 1, 12)]

    @pytest.mark.asyncio
    async def test_key_statistics(self):
        """It should aggregate count and latest dates per key."""
        store = InMemoryRecordStore()
        await store.insert_versioned(record(key="a", last_update=T0, valid_date=date(2026, 1, 15)))
        await store.insert_versioned(record(key="a", last_update=T0 + timedelta(hours=1), valid_date=date(2026, 1, 14)))
        await store.insert_versioned(record(key="b", last_update=T0))

        stats = await store.key_statistics("avalanche-report")

        assert [(s.key, s.count) for s in stats] == [("a", 2), ("b", 1)]
        assert stats[0].latest_update == T0 + timedelta(hours=1)
        assert stats[0].latest_valid_date == date(2026, 1, 15)
        assert stats[1].latest_valid_date is None


class TestRecordFilter:
    """Tests for RecordFilter matching."""

    def test_empty_filter(self):
        """It should report an empty filter."""
        assert RecordFilter().is_empty()
        assert not RecordFilter(key="a").is_empty()

    def test_valid_before_skips_rows_without_valid_date(self):
        """It should not match rows that have no valid date."""
        assert not RecordFilter(valid_before=date(2026, 1, 15)).matches(record())
        assert RecordFilter(valid_before=date(2026, 1, 15)).matches(record(valid_date=date(2026, 1, 14)))
        assert not RecordFilter(valid_before=date(2026, 1, 15)).matches(record(valid_date=date(2026, 1, 15)))

    def test_expires_before_is_inclusive(self):
        """It should match rows expiring exactly at the bound."""
        assert RecordFilter(expires_before=T0).matches(record(expires_at=T0))
        assert not RecordFilter(expires_before=T0).matches(record(expires_at=T0 + timedelta(seconds=1)))
        assert not RecordFilter(expires_before=T0).matches(record())
