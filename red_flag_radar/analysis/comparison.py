"""Trend comparison across several stored analyses."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from red_flag_radar.analysis.orchestrator import AnalysisOrchestrator
from red_flag_radar.analysis.prompt import SYSTEM_PROMPT
from red_flag_radar.analysis.records import AnalysisRecord
from red_flag_radar.analysis.schemas import (
    ComparisonBaseline,
    ComparisonResult,
    RiskTrend,
    Trend,
    TrendDirection,
)
from red_flag_radar.core.exceptions import InvalidComparisonInputError
from red_flag_radar.llm.base import PromptItem, ProviderUsage

logger = logging.getLogger(__name__)

MIN_ANALYSES = 2
MAX_ANALYSES = 5

# Score movement within this band counts as stable.
STABLE_BAND = 5

DIGEST_RED_FLAG_LIMIT = 10
DIGEST_PATTERN_LIMIT = 5
DIGEST_SUMMARY_CHARS = 500
DIGEST_RECOMMENDATION_LIMIT = 3

COMPARISON_PROMPT = """\
You are given {{COUNT}} risk analyses of the same relationship's \
communications, ordered from oldest ({{FROM_DATE}}) to newest \
({{TO_DATE}}). Each was produced from a separate chat export.

## Analyses

{{ANALYSES}}

## Your task

Compare the analyses over time and decide whether the situation is \
improving, worsening, stable or mixed.

- Track how the risk score moved and explain what drove the change.
- Identify patterns that recur across analyses and how often they appear.
- Decide whether behaviour is escalating (new categories of threat, \
higher severities, more frequent incidents). Cite the analyses as \
evidence.
- Give practical recommendations for documentation and safety that follow \
from the trend.

## Output format

Return only a JSON object (no Markdown, no code fences) with:
- ``trend``: one of improving|worsening|stable|mixed.
- ``riskTrend``: object with ``direction`` (increasing|decreasing|stable), \
``change`` (newest minus oldest risk score) and ``description``.
- ``commonPatterns``: array of objects with ``pattern``, ``frequency`` \
(number of analyses it appears in), ``severity`` \
(low|medium|high|critical) and ``description``.
- ``escalationDetected``: boolean.
- ``escalationDetails``: object with ``severity``, ``description`` and \
``evidence`` (array of strings), or null when there is no escalation.
- ``insights``: array of strings.
- ``recommendations``: array of strings.
- ``summary``: 2-3 paragraphs describing the overall trajectory.
"""


def validate_count(count: int) -> None:
    if not MIN_ANALYSES <= count <= MAX_ANALYSES:
        raise InvalidComparisonInputError(
            f"Please select between {MIN_ANALYSES} and {MAX_ANALYSES} "
            "analyses to compare."
        )


def compute_baseline(records: Sequence[AnalysisRecord]) -> ComparisonBaseline:
    """Derive a trend from chronologically ordered risk scores alone."""
    scores = [r.risk_score for r in records]
    change = scores[-1] - scores[0]
    spread = max(scores) - min(scores)

    direction: TrendDirection
    trend: Trend
    if change > STABLE_BAND:
        direction, trend = "increasing", "worsening"
    elif change < -STABLE_BAND:
        direction, trend = "decreasing", "improving"
    elif spread > 2 * STABLE_BAND:
        direction, trend = "stable", "mixed"
    else:
        direction, trend = "stable", "stable"

    description = (
        f"Risk score moved from {scores[0]} to {scores[-1]} "
        f"across {len(scores)} analyses."
    )
    return ComparisonBaseline(
        trend=trend,
        risk_trend=RiskTrend(
            direction=direction, change=float(change), description=description
        ),
        scores=scores,
    )


def render_digest(index: int, record: AnalysisRecord) -> str:
    result = record.result
    lines = [
        f"### Analysis {index} ({record.created_at.date().isoformat()}, "
        f"platform: {record.platform})",
        f"- Risk score: {result.risk_score}/100",
    ]

    if result.red_flags:
        flags = ", ".join(
            f"{f.type or 'Unspecified'} ({f.severity})"
            for f in result.red_flags[:DIGEST_RED_FLAG_LIMIT]
        )
        lines.append(f"- Red flags ({len(result.red_flags)}): {flags}")
    else:
        lines.append("- Red flags: none")

    patterns = [p.pattern for p in result.patterns_detected if p.pattern]
    if patterns:
        lines.append(f"- Patterns: {', '.join(patterns[:DIGEST_PATTERN_LIMIT])}")

    summary = result.summary
    if len(summary) > DIGEST_SUMMARY_CHARS:
        summary = summary[:DIGEST_SUMMARY_CHARS].rstrip() + "..."
    lines.append(f"- Summary: {summary}")

    for rec in result.recommendations[:DIGEST_RECOMMENDATION_LIMIT]:
        lines.append(f"- Recommendation: {rec}")

    return "\n".join(lines)


def build_comparison_prompt(records: Sequence[AnalysisRecord]) -> PromptItem:
    """*records* must already be in chronological order."""
    digests = "\n\n".join(
        render_digest(i, record) for i, record in enumerate(records, start=1)
    )
    prompt = (
        COMPARISON_PROMPT.replace("{{COUNT}}", str(len(records)))
        .replace("{{FROM_DATE}}", records[0].created_at.date().isoformat())
        .replace("{{TO_DATE}}", records[-1].created_at.date().isoformat())
        .replace("{{ANALYSES}}", digests)
    )
    return PromptItem(item_id="comparison", prompt=prompt, system_prompt=SYSTEM_PROMPT)


class ComparisonEngine:
    def __init__(self, orchestrator: AnalysisOrchestrator) -> None:
        self._orchestrator = orchestrator

    async def compare(
        self,
        records: Sequence[AnalysisRecord],
    ) -> tuple[ComparisonResult, ProviderUsage]:
        """Compare 2-5 analyses, oldest first.

        The count is checked before any provider is called.
        """
        validate_count(len(records))
        ordered = sorted(records, key=lambda r: r.created_at)
        baseline = compute_baseline(ordered)
        logger.info(
            "Comparing %d analyses (scores %s, baseline trend %s)",
            len(ordered),
            baseline.scores,
            baseline.trend,
        )
        return await self._orchestrator.run(
            build_comparison_prompt(ordered),
            ComparisonResult,
            context={"baseline": baseline},
        )
