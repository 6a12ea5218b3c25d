from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from red_flag_radar.analysis.records import AnalysisRecord
from red_flag_radar.store.base import AnalysisStore
from red_flag_radar.usage import UsageEntry


class InMemoryAnalysisStore(AnalysisStore):
    """Store backed by plain Python dicts.

    Safe within a single asyncio event loop (no concurrent mutation).
    Nothing survives the process.
    """

    def __init__(self) -> None:
        self._analyses: dict[str, AnalysisRecord] = {}
        self._usage: list[UsageEntry] = []

    # ── Lifecycle ────────────────────────────────────────────────────

    async def init(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def reset(self) -> None:
        self._analyses.clear()
        self._usage.clear()

    # ── Analyses ─────────────────────────────────────────────────────

    async def save_analysis(self, record: AnalysisRecord) -> AnalysisRecord:
        self._analyses[record.id] = record
        return record

    async def get_analysis(
        self, analysis_id: str, owner_id: str
    ) -> AnalysisRecord | None:
        record = self._analyses.get(analysis_id)
        if record is None or record.owner_id != owner_id:
            return None
        return record

    async def get_analyses(
        self, analysis_ids: Sequence[str], owner_id: str
    ) -> list[AnalysisRecord]:
        found = {
            r.id: r
            for r in (self._analyses.get(i) for i in analysis_ids)
            if r is not None and r.owner_id == owner_id
        }
        return sorted(found.values(), key=lambda r: r.created_at)

    async def list_analyses(self, owner_id: str) -> list[AnalysisRecord]:
        owned = [r for r in self._analyses.values() if r.owner_id == owner_id]
        return sorted(owned, key=lambda r: r.created_at, reverse=True)

    async def count_analyses_since(self, owner_id: str, since: datetime) -> int:
        return sum(
            1
            for r in self._analyses.values()
            if r.owner_id == owner_id and r.created_at >= since
        )

    # ── Usage ────────────────────────────────────────────────────────

    async def record_usage(self, entry: UsageEntry) -> None:
        self._usage.append(entry)

    async def list_usage(
        self, owner_id: str, since: datetime | None = None
    ) -> list[UsageEntry]:
        return [
            e
            for e in self._usage
            if e.owner_id == owner_id and (since is None or e.created_at >= since)
        ]
