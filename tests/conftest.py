from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from red_flag_radar.analysis.records import AnalysisRecord
from red_flag_radar.analysis.schemas import AnalysisResult, RedFlag, Severity
from red_flag_radar.core.types import ChatStats, Platform, PlatformMetadata
from red_flag_radar.facade.core import RedFlagRadar
from red_flag_radar.ratelimit import RateLimiter
from red_flag_radar.store.memory import InMemoryAnalysisStore
from red_flag_radar.testing import ScriptedProvider
from red_flag_radar.testing.scripted_provider import Script

FIXTURES_DIR = Path(__file__).parent / "fixtures"
EXPORTS_DIR = FIXTURES_DIR / "exports"

WHATSAPP_US = (EXPORTS_DIR / "whatsapp_us.txt").read_text(encoding="utf-8")
WHATSAPP_EU = (EXPORTS_DIR / "whatsapp_eu.txt").read_text(encoding="utf-8")
MANUAL_CHAT = (EXPORTS_DIR / "manual.txt").read_text(encoding="utf-8")

ANALYSIS_RESPONSE: dict[str, Any] = {
    "riskScore": 72,
    "redFlags": [
        {
            "type": "Financial Extortion & Demands",
            "severity": "critical",
            "message": "Money demanded under threat of exposure",
            "context": "Send me the money by tomorrow",
            "keyword": "money",
        },
        {
            "type": "Harassment Patterns",
            "severity": "medium",
            "message": "Repeated demands for an immediate answer",
            "context": "Answer me. Now.",
        },
    ],
    "keywordsDetected": ["money", "tell everyone"],
    "summary": "The conversation shows a financial demand paired with a threat.",
    "recommendations": [
        "Keep a dated copy of this conversation.",
        "Do not transfer money under pressure.",
    ],
    "patternsDetected": [
        {
            "pattern": "Conditional threat",
            "description": "A demand is tied to a threat of exposure.",
            "examples": ["or I will tell everyone what you did"],
        }
    ],
}

COMPARISON_RESPONSE: dict[str, Any] = {
    "trend": "worsening",
    "riskTrend": {
        "direction": "increasing",
        "change": 40,
        "description": "Risk rose from 30 to 70.",
    },
    "commonPatterns": [
        {
            "pattern": "Financial demands",
            "frequency": 2,
            "severity": "high",
            "description": "Money is requested in both periods.",
        }
    ],
    "escalationDetected": True,
    "escalationDetails": {
        "severity": "high",
        "description": "Demands now come with threats.",
        "evidence": ["or I will tell everyone"],
    },
    "insights": ["Threats appeared only in the later export."],
    "recommendations": ["Keep documenting every exchange."],
    "summary": "The situation has escalated between the two exports.",
}


def make_record(
    risk_score: int = 50,
    *,
    owner_id: str = "user-1",
    created_at: datetime | None = None,
    red_flags: Iterable[RedFlag] = (),
    summary: str = "Summary of the analysis.",
) -> AnalysisRecord:
    """Build a stored analysis without going through a provider."""
    extra: dict[str, Any] = {}
    if created_at is not None:
        extra["created_at"] = created_at
    return AnalysisRecord(
        owner_id=owner_id,
        platform=Platform.WHATSAPP,
        platform_metadata=PlatformMetadata(
            platform=Platform.WHATSAPP,
            confidence=0.95,
            detected_format="WhatsApp Export",
        ),
        chat_stats=ChatStats(total_messages=10, participants=["Alice", "Bob"]),
        result=AnalysisResult(
            risk_score=risk_score,
            red_flags=list(red_flags),
            summary=summary,
        ),
        **extra,
    )


def dated(day: int) -> datetime:
    return datetime(2024, 1, day, 12, 0, tzinfo=UTC)


def critical_flag(kind: str = "Threats & Intimidation") -> RedFlag:
    return RedFlag(type=kind, severity=Severity.CRITICAL, message="Threat made")


@pytest.fixture()
def store() -> InMemoryAnalysisStore:
    return InMemoryAnalysisStore()


@pytest.fixture()
def scripted() -> Callable[..., ScriptedProvider]:
    """Factory: ``scripted("name", reply, ...)``."""

    def _make(name: str, *script: Script, **kwargs: Any) -> ScriptedProvider:
        return ScriptedProvider(name, script, **kwargs)

    return _make


@pytest.fixture()
def make_radar(
    store: InMemoryAnalysisStore,
) -> Callable[..., RedFlagRadar]:
    def _make(
        *providers: ScriptedProvider,
        rate_limiter: RateLimiter | None = None,
        request_timeout: float | None = None,
        daily_cap: int = 0,
    ) -> RedFlagRadar:
        return RedFlagRadar(
            providers=list(providers),
            store=store,
            rate_limiter=rate_limiter,
            request_timeout=request_timeout,
            daily_cap=daily_cap,
        )

    return _make
