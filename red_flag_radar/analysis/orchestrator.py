"""Sequential provider failover around a validated JSON contract.

Providers are tried strictly in the order given.  Each one gets exactly
one attempt; any exception it raises, including malformed JSON, moves on
to the next.  Cancellation still propagates.  Only when the whole list is
exhausted does the request fail.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, TypeVar

from pydantic import BaseModel

from red_flag_radar.analysis.decoding import decode_response
from red_flag_radar.analysis.prompt import build_chat_analysis_prompt
from red_flag_radar.analysis.schemas import AnalysisResult
from red_flag_radar.core.exceptions import (
    AllProvidersFailedError,
    ProviderCallFailedError,
)
from red_flag_radar.core.types import DateRange, SampleMessage
from red_flag_radar.llm.base import PromptItem, ProviderUsage, ReasoningProvider

T = TypeVar("T", bound=BaseModel)

logger = logging.getLogger(__name__)


class AnalysisOrchestrator:
    def __init__(self, providers: Sequence[ReasoningProvider]) -> None:
        self._providers = list(providers)

    @property
    def providers(self) -> list[ReasoningProvider]:
        return list(self._providers)

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self._providers]

    async def run(
        self,
        item: PromptItem,
        schema: type[T],
        *,
        context: dict[str, Any] | None = None,
    ) -> tuple[T, ProviderUsage]:
        """Send *item* down the provider list until one yields a valid *schema*.

        Raises :class:`AllProvidersFailedError` naming every provider tried.
        """
        attempted: list[str] = []
        for provider in self._providers:
            attempted.append(provider.name)
            try:
                reply = await provider.attempt(item)
                result = decode_response(
                    provider.name, reply.text, schema, context=context
                )
            except Exception as exc:
                failure = (
                    exc
                    if isinstance(exc, ProviderCallFailedError)
                    else ProviderCallFailedError(provider.name, str(exc) or repr(exc))
                )
                logger.warning(
                    "[%s] %s failed, trying next provider: %s",
                    item.item_id,
                    provider.name,
                    failure.message,
                )
                continue

            if len(attempted) > 1:
                logger.info(
                    "[%s] Served by fallback provider %s after %d failure(s)",
                    item.item_id,
                    provider.name,
                    len(attempted) - 1,
                )
            return result, reply.usage

        logger.error(
            "[%s] All providers failed (attempted: %s)",
            item.item_id,
            ", ".join(attempted) or "none",
        )
        raise AllProvidersFailedError(attempted)

    async def analyze(
        self,
        chat_text: str,
        participants: list[str],
        total_messages: int,
        date_range: DateRange,
        sample_messages: list[SampleMessage],
    ) -> tuple[AnalysisResult, ProviderUsage]:
        item = build_chat_analysis_prompt(
            chat_text,
            participants,
            total_messages,
            date_range,
            sample_messages,
        )
        return await self.run(item, AnalysisResult)
