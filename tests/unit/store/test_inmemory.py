from __future__ import annotations

from datetime import UTC, datetime

import pytest

from red_flag_radar.llm.base import ProviderUsage
from red_flag_radar.store.memory import InMemoryAnalysisStore
from red_flag_radar.usage import ServiceType, UsageEntry
from tests.conftest import dated, make_record


@pytest.fixture()
def store() -> InMemoryAnalysisStore:
    return InMemoryAnalysisStore()


def _usage_entry(owner_id: str, created_at: datetime) -> UsageEntry:
    return UsageEntry(
        owner_id=owner_id,
        service_type=ServiceType.CHAT_ANALYSIS,
        usage=ProviderUsage(provider="p", model="m"),
        cost={"totalCost": 0.0},
        created_at=created_at,
    )


# ── Lifecycle ────────────────────────────────────────────────────────


async def test_context_manager_and_reset(store: InMemoryAnalysisStore) -> None:
    record = make_record()
    async with store:
        await store.save_analysis(record)
        assert await store.get_analysis(record.id, "user-1") is not None

        await store.reset()

        assert await store.get_analysis(record.id, "user-1") is None


# ── Analyses ─────────────────────────────────────────────────────────


async def test_get_analysis_scoped_to_owner(store: InMemoryAnalysisStore) -> None:
    record = make_record(owner_id="alice")
    await store.save_analysis(record)

    assert await store.get_analysis(record.id, "alice") == record
    assert await store.get_analysis(record.id, "mallory") is None
    assert await store.get_analysis("nonexistent", "alice") is None


async def test_get_analyses_oldest_first_and_filtered(
    store: InMemoryAnalysisStore,
) -> None:
    newest = make_record(created_at=dated(9))
    oldest = make_record(created_at=dated(1))
    foreign = make_record(owner_id="someone-else", created_at=dated(5))
    for record in (newest, oldest, foreign):
        await store.save_analysis(record)

    found = await store.get_analyses(
        [newest.id, foreign.id, oldest.id, "missing"], "user-1"
    )

    assert [r.id for r in found] == [oldest.id, newest.id]


async def test_get_analyses_deduplicates(store: InMemoryAnalysisStore) -> None:
    record = make_record()
    await store.save_analysis(record)
    assert len(await store.get_analyses([record.id, record.id], "user-1")) == 1


async def test_list_analyses_newest_first(store: InMemoryAnalysisStore) -> None:
    first = make_record(created_at=dated(1))
    second = make_record(created_at=dated(2))
    await store.save_analysis(first)
    await store.save_analysis(second)
    await store.save_analysis(make_record(owner_id="other"))

    listed = await store.list_analyses("user-1")

    assert [r.id for r in listed] == [second.id, first.id]


async def test_count_analyses_since(store: InMemoryAnalysisStore) -> None:
    for day in (1, 5, 10):
        await store.save_analysis(make_record(created_at=dated(day)))

    assert await store.count_analyses_since("user-1", dated(5)) == 2
    assert await store.count_analyses_since("nobody", dated(1)) == 0


# ── Usage ────────────────────────────────────────────────────────────


async def test_usage_listing(store: InMemoryAnalysisStore) -> None:
    await store.record_usage(_usage_entry("user-1", dated(1)))
    await store.record_usage(_usage_entry("user-1", dated(10)))
    await store.record_usage(_usage_entry("user-2", dated(10)))

    assert len(await store.list_usage("user-1")) == 2
    recent = await store.list_usage("user-1", since=datetime(2024, 1, 5, tzinfo=UTC))
    assert len(recent) == 1
