"""Public return types for the red_flag_radar API."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from red_flag_radar.analysis.records import AnalysisRecord
from red_flag_radar.analysis.schemas import ComparisonResult
from red_flag_radar.core.types import Platform, PlatformMetadata
from red_flag_radar.llm.base import ProviderUsage

MAX_SAMPLE_LINES = 3
SAMPLE_LINE_CHARS = 200


@dataclass
class AnalysisReport:
    """Result from :meth:`RedFlagRadar.analyze_text` when messages were found."""

    record: AnalysisRecord

    ok = True
    status_code = 200

    def to_response(self) -> dict[str, Any]:
        record = self.record
        analysis = {
            "id": record.id,
            **record.result.to_dict(),
            "chatStats": record.chat_stats.to_dict(),
            "platform": record.platform.value,
            "platformMetadata": record.platform_metadata.to_dict(),
            "createdAt": record.created_at.isoformat(),
        }
        return {
            "ok": True,
            "analysis": analysis,
            "usage": record.usage.to_dict() if record.usage else None,
        }


@dataclass
class UnparseableChat:
    """The input was accepted, but no messages could be read from it."""

    metadata: PlatformMetadata
    sample_lines: list[str] = field(default_factory=list)

    ok = False
    status_code = 400

    @property
    def detected_platform(self) -> Platform:
        return self.metadata.platform

    @property
    def error(self) -> str:
        return (
            f"Could not parse any messages from {self.metadata.detected_format}. "
            "Please check that the file is a chat export."
        )

    @property
    def hint(self) -> str:
        if self.metadata.platform == Platform.UNKNOWN:
            return (
                "Try selecting the correct platform manually or use the "
                "Manual Text option to paste the conversation."
            )
        return (
            f"Detected format: {self.metadata.detected_format}. "
            "If incorrect, try selecting the platform manually."
        )

    @classmethod
    def from_text(cls, raw_text: str, metadata: PlatformMetadata) -> UnparseableChat:
        lines: list[str] = []
        for line in raw_text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
            if line.strip():
                lines.append(line.strip()[:SAMPLE_LINE_CHARS])
            if len(lines) == MAX_SAMPLE_LINES:
                break
        return cls(metadata=metadata, sample_lines=lines)

    def to_response(self) -> dict[str, Any]:
        return {
            "ok": False,
            "error": self.error,
            "hint": self.hint,
            "detectedPlatform": self.detected_platform.value,
            "platformMetadata": self.metadata.to_dict(),
            "sampleLines": list(self.sample_lines),
        }


@dataclass
class ComparisonReport:
    """Result from :meth:`RedFlagRadar.compare`."""

    result: ComparisonResult
    analysis_ids: list[str]
    usage: ProviderUsage

    ok = True
    status_code = 200

    def to_response(self) -> dict[str, Any]:
        return {
            "ok": True,
            "comparison": self.result.to_dict(),
            "analysisIds": list(self.analysis_ids),
            "usage": self.usage.to_dict(),
        }
