"""Main facade for the red_flag_radar library."""

from __future__ import annotations

import asyncio
import codecs
import logging
from collections.abc import Awaitable, Sequence
from datetime import timedelta
from typing import TYPE_CHECKING, Any, TypeVar

from red_flag_radar.analysis.comparison import ComparisonEngine, validate_count
from red_flag_radar.analysis.orchestrator import AnalysisOrchestrator
from red_flag_radar.analysis.records import AnalysisRecord
from red_flag_radar.core.exceptions import (
    AnalysisNotFoundError,
    AnalysisTimeoutError,
    InvalidInputError,
    RateLimitExceededError,
)
from red_flag_radar.core.types import ChatStats, Platform, utcnow
from red_flag_radar.facade.types import (
    AnalysisReport,
    ComparisonReport,
    UnparseableChat,
)
from red_flag_radar.llm.base import ProviderUsage
from red_flag_radar.parsing.detector import resolve_platform
from red_flag_radar.parsing.extractor import (
    extract_text_content,
    sample_recent_messages,
)
from red_flag_radar.parsing.registry import parse
from red_flag_radar.usage import ServiceType, UsageEntry, UsageStats, summarize_usage

if TYPE_CHECKING:
    from red_flag_radar.llm.base import ReasoningProvider
    from red_flag_radar.ratelimit import RateLimiter
    from red_flag_radar.settings import Settings
    from red_flag_radar.store.base import AnalysisStore

logger = logging.getLogger(__name__)

MAX_TEXT_CHARS = 500_000
MAX_FILE_BYTES = 10 * 1024 * 1024
T = TypeVar("T")


def decode_chat_bytes(data: bytes) -> str:
    """Decode an uploaded export.

    UTF-16 is used only when the bytes start with a UTF-16 byte-order
    mark; everything else is UTF-8 with any BOM removed and undecodable
    bytes replaced.
    """
    if data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return data.decode("utf-16", errors="replace")
    return data.decode("utf-8-sig", errors="replace")


class RedFlagRadar:
    """Entry point for chat analysis and comparison.

    Usage::

        from red_flag_radar import RedFlagRadar
        from red_flag_radar.llm import AnthropicProvider, OpenAIProvider
        from red_flag_radar.store import InMemoryAnalysisStore

        radar = RedFlagRadar(
            providers=[
                AnthropicProvider(api_key="sk-ant-..."),
                OpenAIProvider(api_key="sk-..."),
            ],
            store=InMemoryAnalysisStore(),
        )
        report = await radar.analyze_text(chat_text, owner_id="user-1")
    """

    def __init__(
        self,
        providers: Sequence[ReasoningProvider],
        store: AnalysisStore,
        rate_limiter: RateLimiter | None = None,
        *,
        request_timeout: float | None = None,
        daily_cap: int = 0,
    ) -> None:
        self._orchestrator = AnalysisOrchestrator(providers)
        self._comparison = ComparisonEngine(self._orchestrator)
        self._store = store
        self._rate_limiter = rate_limiter
        self._request_timeout = request_timeout
        self._daily_cap = daily_cap

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> RedFlagRadar:
        """Build from a config dict (see :func:`red_flag_radar.config.parse_config`)."""
        from red_flag_radar.config import parse_config

        parsed = parse_config(config)
        return cls(
            providers=parsed.providers,
            store=parsed.store,
            rate_limiter=parsed.rate_limiter,
            request_timeout=parsed.request_timeout,
            daily_cap=parsed.daily_cap,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> RedFlagRadar:
        return cls.from_config(settings.to_config_dict())

    @property
    def store(self) -> AnalysisStore:
        return self._store

    @property
    def orchestrator(self) -> AnalysisOrchestrator:
        return self._orchestrator

    async def init(self) -> None:
        await self._store.init()

    async def close(self) -> None:
        await self._store.close()

    # ── Analysis ─────────────────────────────────────────────────────

    async def analyze_text(
        self,
        text: str,
        *,
        owner_id: str,
        platform: str | Platform | None = None,
        source_name: str | None = None,
    ) -> AnalysisReport | UnparseableChat:
        """Detect, parse and analyze a pasted chat.

        Returns :class:`UnparseableChat` when no message could be read.
        Raises :class:`InvalidInputError` for empty or oversized text,
        :class:`RateLimitExceededError`, :class:`AllProvidersFailedError`
        and :class:`AnalysisTimeoutError`.
        """
        if not text or not text.strip():
            raise InvalidInputError("Chat text is required.")
        if len(text) > MAX_TEXT_CHARS:
            raise InvalidInputError(
                f"Chat text is too large ({len(text)} characters). "
                f"The limit is {MAX_TEXT_CHARS} characters."
            )
        return await self._analyze(
            text, owner_id=owner_id, platform=platform, source_name=source_name
        )

    async def analyze_file(
        self,
        data: bytes,
        *,
        owner_id: str,
        platform: str | Platform | None = None,
        filename: str | None = None,
    ) -> AnalysisReport | UnparseableChat:
        """Like :meth:`analyze_text`, for the raw bytes of an uploaded export."""
        if len(data) > MAX_FILE_BYTES:
            raise InvalidInputError(
                f"Chat file is too large ({len(data)} bytes). "
                f"The limit is {MAX_FILE_BYTES // (1024 * 1024)} MB."
            )
        text = decode_chat_bytes(data)
        if not text.strip():
            raise InvalidInputError("Chat file is empty.")
        return await self._analyze(
            text, owner_id=owner_id, platform=platform, source_name=filename
        )

    async def _analyze(
        self,
        text: str,
        *,
        owner_id: str,
        platform: str | Platform | None,
        source_name: str | None,
    ) -> AnalysisReport | UnparseableChat:
        metadata = resolve_platform(text, platform)
        await self._check_limits(owner_id)

        parsed = parse(text, metadata.platform)
        if parsed.total_messages == 0:
            logger.warning(
                "No messages parsed for owner %s (detected %s)",
                owner_id,
                metadata.detected_format,
            )
            return UnparseableChat.from_text(text, metadata)

        logger.info(
            "Parsed %d messages from %d participants (%s)",
            parsed.total_messages,
            len(parsed.participants),
            metadata.detected_format,
        )

        result, usage = await self._with_timeout(
            self._orchestrator.analyze(
                extract_text_content(parsed),
                parsed.participants,
                parsed.total_messages,
                parsed.date_range,
                sample_recent_messages(parsed),
            )
        )

        record = AnalysisRecord(
            owner_id=owner_id,
            platform=metadata.platform,
            platform_metadata=metadata,
            chat_stats=ChatStats.from_parsed(parsed),
            result=result,
            usage=usage,
            source_name=source_name,
        )
        record = await self._store.save_analysis(record)
        logger.info(
            "Saved analysis %s (risk score %d, provider %s)",
            record.id,
            result.risk_score,
            usage.provider,
        )
        await self._record_usage(owner_id, ServiceType.CHAT_ANALYSIS, usage, record.id)
        return AnalysisReport(record=record)

    # ── Comparison ───────────────────────────────────────────────────

    async def compare(
        self,
        analysis_ids: Sequence[str],
        *,
        owner_id: str,
    ) -> ComparisonReport:
        """Compare 2-5 of an owner's stored analyses.

        Raises :class:`InvalidComparisonInputError` for a bad count and
        :class:`AnalysisNotFoundError` when any id is missing or foreign.
        """
        ids = list(analysis_ids)
        validate_count(len(ids))

        records = await self._store.get_analyses(ids, owner_id)
        if len(records) != len(ids):
            found = {r.id for r in records}
            raise AnalysisNotFoundError([i for i in ids if i not in found])

        result, usage = await self._with_timeout(self._comparison.compare(records))
        await self._record_usage(owner_id, ServiceType.COMPARISON, usage, None)
        return ComparisonReport(
            result=result,
            analysis_ids=[r.id for r in sorted(records, key=lambda r: r.created_at)],
            usage=usage,
        )

    # ── Read-back ────────────────────────────────────────────────────

    async def history(self, owner_id: str) -> list[AnalysisRecord]:
        return await self._store.list_analyses(owner_id)

    async def usage_stats(self, owner_id: str, days: int = 30) -> UsageStats:
        since = utcnow() - timedelta(days=days)
        return summarize_usage(await self._store.list_usage(owner_id, since))

    # ── Helpers ──────────────────────────────────────────────────────

    async def _check_limits(self, owner_id: str) -> None:
        if self._rate_limiter is not None and not self._rate_limiter.check(owner_id):
            logger.warning("Rate limit exceeded for owner %s", owner_id)
            raise RateLimitExceededError()
        if self._daily_cap > 0:
            since = utcnow() - timedelta(days=1)
            count = await self._store.count_analyses_since(owner_id, since)
            if count >= self._daily_cap:
                logger.warning(
                    "Daily cap of %d analyses reached for owner %s",
                    self._daily_cap,
                    owner_id,
                )
                raise RateLimitExceededError()

    async def _with_timeout(self, call: Awaitable[T]) -> T:
        if self._request_timeout is None:
            return await call
        try:
            async with asyncio.timeout(self._request_timeout):
                return await call
        except TimeoutError:
            logger.warning(
                "Analysis abandoned after %.0fs timeout", self._request_timeout
            )
            raise AnalysisTimeoutError() from None

    async def _record_usage(
        self,
        owner_id: str,
        service_type: ServiceType,
        usage: ProviderUsage,
        resource_id: str | None,
    ) -> None:
        entry = UsageEntry.from_usage(owner_id, service_type, usage, resource_id)
        try:
            await self._store.record_usage(entry)
        except Exception:
            logger.error(
                "Failed to record %s usage for owner %s",
                service_type,
                owner_id,
                exc_info=True,
            )
