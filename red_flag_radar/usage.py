"""Cost accounting for reasoning-provider calls.

Prices are USD per million tokens.  Models missing from the table are
recorded at zero cost.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime
from enum import StrEnum

from pydantic import Field

from red_flag_radar.core.types import RadarModel, generate_id, utcnow
from red_flag_radar.llm.base import ProviderUsage

logger = logging.getLogger(__name__)

# (input, output) USD per 1M tokens, keyed by bare model-name prefix.
# Longer prefixes are matched first.
PRICING: dict[str, tuple[float, float]] = {
    "claude-3-5-sonnet": (3.0, 15.0),
    "claude-3-5-haiku": (0.8, 4.0),
    "claude-3-opus": (15.0, 75.0),
    "claude-3-sonnet": (3.0, 15.0),
    "claude-3-haiku": (0.25, 1.25),
    "claude-sonnet-4": (3.0, 15.0),
    "gpt-4o-mini": (0.15, 0.6),
    "gpt-4o": (5.0, 15.0),
    "gpt-4-turbo": (10.0, 30.0),
    "gpt-4.1": (2.0, 8.0),
    "gpt-4": (30.0, 60.0),
    "gpt-3.5-turbo": (0.5, 1.5),
}

_COST_DECIMALS = 6


class ServiceType(StrEnum):
    CHAT_ANALYSIS = "chat_analysis"
    COMPARISON = "comparison"


class UsageCost(RadarModel):
    input_cost: float = 0.0
    output_cost: float = 0.0
    total_cost: float = 0.0


def _price_for(model: str) -> tuple[float, float] | None:
    bare = model.split("/", 1)[-1].lower()
    for prefix in sorted(PRICING, key=len, reverse=True):
        if bare.startswith(prefix):
            return PRICING[prefix]
    return None


def estimate_cost(model: str, input_tokens: int, output_tokens: int) -> UsageCost:
    price = _price_for(model)
    if price is None:
        logger.debug("No pricing for model %s; recording zero cost", model)
        return UsageCost()
    input_price, output_price = price
    input_cost = input_tokens / 1_000_000 * input_price
    output_cost = output_tokens / 1_000_000 * output_price
    return UsageCost(
        input_cost=round(input_cost, _COST_DECIMALS),
        output_cost=round(output_cost, _COST_DECIMALS),
        total_cost=round(input_cost + output_cost, _COST_DECIMALS),
    )


class UsageEntry(RadarModel):
    id: str = Field(default_factory=generate_id)
    owner_id: str
    service_type: ServiceType
    usage: ProviderUsage
    cost: UsageCost
    resource_id: str | None = None
    created_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_usage(
        cls,
        owner_id: str,
        service_type: ServiceType,
        usage: ProviderUsage,
        resource_id: str | None = None,
    ) -> UsageEntry:
        return cls(
            owner_id=owner_id,
            service_type=service_type,
            usage=usage,
            cost=estimate_cost(usage.model, usage.input_tokens, usage.output_tokens),
            resource_id=resource_id,
        )


class UsageBucket(RadarModel):
    requests: int = 0
    tokens: int = 0
    cost: float = 0.0


class UsageStats(RadarModel):
    total_requests: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_cost: float = 0.0
    average_response_time_ms: int = 0
    by_service: dict[str, UsageBucket] = Field(default_factory=dict)
    by_provider: dict[str, UsageBucket] = Field(default_factory=dict)


def summarize_usage(entries: Iterable[UsageEntry]) -> UsageStats:
    stats = UsageStats()
    by_service: defaultdict[str, UsageBucket] = defaultdict(UsageBucket)
    by_provider: defaultdict[str, UsageBucket] = defaultdict(UsageBucket)
    total_time = 0

    for entry in entries:
        usage = entry.usage
        stats.total_requests += 1
        stats.total_input_tokens += usage.input_tokens
        stats.total_output_tokens += usage.output_tokens
        stats.total_cost += entry.cost.total_cost
        total_time += usage.response_time_ms
        buckets = (by_service[str(entry.service_type)], by_provider[usage.provider])
        for bucket in buckets:
            bucket.requests += 1
            bucket.tokens += usage.total_tokens
            bucket.cost = round(bucket.cost + entry.cost.total_cost, _COST_DECIMALS)

    stats.total_cost = round(stats.total_cost, _COST_DECIMALS)
    if stats.total_requests:
        stats.average_response_time_ms = round(total_time / stats.total_requests)
    stats.by_service = dict(by_service)
    stats.by_provider = dict(by_provider)
    return stats
