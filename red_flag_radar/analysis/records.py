"""Stored analysis records."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from red_flag_radar.analysis.schemas import AnalysisResult
from red_flag_radar.core.types import (
    ChatStats,
    Platform,
    PlatformMetadata,
    RadarModel,
    generate_id,
    utcnow,
)
from red_flag_radar.llm.base import ProviderUsage


class AnalysisRecord(RadarModel):
    """A finished chat analysis, as handed to and read back from the store."""

    id: str = Field(default_factory=generate_id)
    owner_id: str
    created_at: datetime = Field(default_factory=utcnow)
    platform: Platform
    platform_metadata: PlatformMetadata
    chat_stats: ChatStats = Field(default_factory=ChatStats)
    result: AnalysisResult
    usage: ProviderUsage | None = None
    source_name: str | None = None

    @property
    def risk_score(self) -> int:
        return self.result.risk_score
