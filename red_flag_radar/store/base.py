from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime
from types import TracebackType

from red_flag_radar.analysis.records import AnalysisRecord
from red_flag_radar.usage import UsageEntry


class AnalysisStore(ABC):
    """Abstract store for finished analyses and provider usage.

    Every read is scoped to an owner: records belonging to someone else
    are indistinguishable from missing ones.
    """

    # ── Lifecycle ────────────────────────────────────────────────────

    @abstractmethod
    async def init(self) -> None:
        """Prepare the backing storage (idempotent)."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release any held resources."""
        ...

    async def __aenter__(self) -> AnalysisStore:
        await self.init()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ── Analyses ─────────────────────────────────────────────────────

    @abstractmethod
    async def save_analysis(self, record: AnalysisRecord) -> AnalysisRecord:
        ...

    @abstractmethod
    async def get_analysis(
        self, analysis_id: str, owner_id: str
    ) -> AnalysisRecord | None:
        """Return the record if it exists and belongs to *owner_id*."""
        ...

    @abstractmethod
    async def get_analyses(
        self, analysis_ids: Sequence[str], owner_id: str
    ) -> list[AnalysisRecord]:
        """Return the owned records among *analysis_ids*, oldest first.

        Missing or foreign ids are silently left out.
        """
        ...

    @abstractmethod
    async def list_analyses(self, owner_id: str) -> list[AnalysisRecord]:
        """All of an owner's records, newest first."""
        ...

    @abstractmethod
    async def count_analyses_since(self, owner_id: str, since: datetime) -> int:
        ...

    # ── Usage ────────────────────────────────────────────────────────

    @abstractmethod
    async def record_usage(self, entry: UsageEntry) -> None:
        ...

    @abstractmethod
    async def list_usage(
        self, owner_id: str, since: datetime | None = None
    ) -> list[UsageEntry]:
        ...
