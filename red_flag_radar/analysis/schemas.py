"""Result contracts returned by the reasoning providers.

Every field tolerates loosely structured input: validators coerce what
arrived rather than rejecting it, so any JSON object validates into a
well-formed result.  Serialized with camelCase keys.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import Field, ValidationInfo, field_validator, model_validator

from red_flag_radar.analysis.coerce import (
    as_bool,
    as_choice,
    as_choice_or_none,
    as_count,
    as_number,
    as_object_list,
    as_optional_text,
    as_score,
    as_text,
    as_text_list,
)
from red_flag_radar.core.types import RadarModel

DEFAULT_ANALYSIS_SUMMARY = (
    "Analysis completed. Review red flags and recommendations for details."
)
DEFAULT_COMPARISON_SUMMARY = (
    "Comparison completed. Review the trend and insights for details."
)


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


_SEVERITIES = frozenset(s.value for s in Severity)

Trend = Literal["improving", "worsening", "stable", "mixed"]
TrendDirection = Literal["increasing", "decreasing", "stable"]

TRENDS: frozenset[str] = frozenset({"improving", "worsening", "stable", "mixed"})
DIRECTIONS: frozenset[str] = frozenset({"increasing", "decreasing", "stable"})


def _severity(value: Any) -> str:
    return as_choice(value, _SEVERITIES, Severity.MEDIUM.value)


# ── Chat analysis ───────────────────────────────────────────────────


class RedFlag(RadarModel):
    type: str = Field(default="", description="Category, e.g. 'Financial Extortion'.")
    severity: Severity = Severity.MEDIUM
    message: str = ""
    context: str = Field(default="", description="Quoted evidence from the chat.")
    keyword: str | None = None

    @field_validator("type", "message", "context", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return as_text(v)

    @field_validator("severity", mode="before")
    @classmethod
    def _coerce_severity(cls, v: Any) -> str:
        return _severity(v)

    @field_validator("keyword", mode="before")
    @classmethod
    def _coerce_keyword(cls, v: Any) -> str | None:
        return as_optional_text(v)


class PatternDetected(RadarModel):
    pattern: str = ""
    description: str = ""
    examples: list[str] = Field(default_factory=list)

    @field_validator("pattern", "description", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return as_text(v)

    @field_validator("examples", mode="before")
    @classmethod
    def _coerce_examples(cls, v: Any) -> list[str]:
        return as_text_list(v)


class AnalysisResult(RadarModel):
    risk_score: int = Field(default=0, ge=0, le=100)
    red_flags: list[RedFlag] = Field(default_factory=list)
    keywords_detected: list[str] = Field(default_factory=list)
    summary: str = DEFAULT_ANALYSIS_SUMMARY
    recommendations: list[str] = Field(default_factory=list)
    patterns_detected: list[PatternDetected] = Field(default_factory=list)

    @field_validator("risk_score", mode="before")
    @classmethod
    def _coerce_score(cls, v: Any) -> int:
        return as_score(v)

    @field_validator("red_flags", "patterns_detected", mode="before")
    @classmethod
    def _coerce_objects(cls, v: Any) -> list[dict[str, Any]]:
        return as_object_list(v)

    @field_validator("keywords_detected", "recommendations", mode="before")
    @classmethod
    def _coerce_texts(cls, v: Any) -> list[str]:
        return as_text_list(v)

    @field_validator("summary", mode="before")
    @classmethod
    def _coerce_summary(cls, v: Any) -> str:
        text = v if isinstance(v, str) else ""
        return text if text.strip() else DEFAULT_ANALYSIS_SUMMARY


# ── Comparison ──────────────────────────────────────────────────────


class RiskTrend(RadarModel):
    direction: TrendDirection = "stable"
    change: float = 0.0
    description: str = ""

    @field_validator("direction", mode="before")
    @classmethod
    def _coerce_direction(cls, v: Any) -> str:
        return as_choice(v, DIRECTIONS, "stable")

    @field_validator("change", mode="before")
    @classmethod
    def _coerce_change(cls, v: Any) -> float:
        return as_number(v)

    @field_validator("description", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return as_text(v)


class CommonPattern(RadarModel):
    pattern: str = ""
    frequency: int = Field(default=0, ge=0)
    severity: Severity = Severity.MEDIUM
    description: str = ""

    @field_validator("pattern", "description", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return as_text(v)

    @field_validator("frequency", mode="before")
    @classmethod
    def _coerce_frequency(cls, v: Any) -> int:
        return as_count(v)

    @field_validator("severity", mode="before")
    @classmethod
    def _coerce_severity(cls, v: Any) -> str:
        return _severity(v)


class EscalationDetails(RadarModel):
    severity: Severity = Severity.MEDIUM
    description: str = ""
    evidence: list[str] = Field(default_factory=list)

    @field_validator("severity", mode="before")
    @classmethod
    def _coerce_severity(cls, v: Any) -> str:
        return _severity(v)

    @field_validator("description", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return as_text(v)

    @field_validator("evidence", mode="before")
    @classmethod
    def _coerce_evidence(cls, v: Any) -> list[str]:
        return as_text_list(v)


class ComparisonResult(RadarModel):
    """Trend and escalation view over 2-5 analyses, oldest to newest.

    When validated with a ``baseline`` (:class:`ComparisonBaseline`) in the
    validation context, a missing or invalid ``trend`` / ``riskTrend`` is
    taken from the baseline instead of the static defaults.
    """

    trend: Trend = "stable"
    risk_trend: RiskTrend = Field(default_factory=RiskTrend)
    common_patterns: list[CommonPattern] = Field(default_factory=list)
    escalation_detected: bool = False
    escalation_details: EscalationDetails | None = None
    insights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    summary: str = DEFAULT_COMPARISON_SUMMARY

    @model_validator(mode="before")
    @classmethod
    def _apply_baseline(cls, data: Any, info: ValidationInfo) -> Any:
        if not isinstance(data, dict):
            return data
        baseline: ComparisonBaseline | None = (info.context or {}).get("baseline")
        if baseline is None:
            return data
        data = dict(data)
        if as_choice_or_none(data.get("trend"), TRENDS) is None:
            data["trend"] = baseline.trend
        risk_key = "riskTrend" if "riskTrend" in data else "risk_trend"
        if not isinstance(data.get(risk_key), dict):
            data[risk_key] = baseline.risk_trend.to_dict()
        return data

    @field_validator("trend", mode="before")
    @classmethod
    def _coerce_trend(cls, v: Any) -> str:
        return as_choice(v, TRENDS, "stable")

    @field_validator("risk_trend", mode="before")
    @classmethod
    def _coerce_risk_trend(cls, v: Any) -> Any:
        return v if isinstance(v, dict | RiskTrend) else {}

    @field_validator("common_patterns", mode="before")
    @classmethod
    def _coerce_patterns(cls, v: Any) -> list[dict[str, Any]]:
        return as_object_list(v)

    @field_validator("escalation_detected", mode="before")
    @classmethod
    def _coerce_escalation(cls, v: Any) -> bool:
        return as_bool(v)

    @field_validator("escalation_details", mode="before")
    @classmethod
    def _coerce_details(cls, v: Any) -> Any:
        return v if isinstance(v, dict | EscalationDetails) else None

    @field_validator("insights", "recommendations", mode="before")
    @classmethod
    def _coerce_texts(cls, v: Any) -> list[str]:
        return as_text_list(v)

    @field_validator("summary", mode="before")
    @classmethod
    def _coerce_summary(cls, v: Any) -> str:
        text = v if isinstance(v, str) else ""
        return text if text.strip() else DEFAULT_COMPARISON_SUMMARY


class ComparisonBaseline(RadarModel):
    """Trend derived locally from the chronological risk scores."""

    trend: Trend
    risk_trend: RiskTrend
    scores: list[int] = Field(default_factory=list)
