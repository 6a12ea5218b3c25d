from __future__ import annotations

import logging
from collections.abc import Callable

import pytest

from red_flag_radar import (
    AllProvidersFailedError,
    AnalysisNotFoundError,
    AnalysisReport,
    AnalysisTimeoutError,
    InvalidComparisonInputError,
    InvalidInputError,
    RateLimitExceededError,
    RedFlagRadar,
    UnparseableChat,
    error_response,
)
from red_flag_radar.core.types import Platform
from red_flag_radar.facade.core import MAX_FILE_BYTES, MAX_TEXT_CHARS, decode_chat_bytes
from red_flag_radar.ratelimit import InMemoryRateLimiter
from red_flag_radar.store.memory import InMemoryAnalysisStore
from red_flag_radar.testing import ScriptedProvider
from red_flag_radar.usage import UsageEntry
from tests.conftest import (
    ANALYSIS_RESPONSE,
    COMPARISON_RESPONSE,
    MANUAL_CHAT,
    WHATSAPP_EU,
    WHATSAPP_US,
)

Factory = Callable[..., ScriptedProvider]
RadarFactory = Callable[..., RedFlagRadar]


# ── Analysis ─────────────────────────────────────────────────────────


async def test_analyze_text_end_to_end(
    scripted: Factory, make_radar: RadarFactory, store: InMemoryAnalysisStore
) -> None:
    provider = scripted("anthropic-primary", ANALYSIS_RESPONSE)
    radar = make_radar(provider)

    report = await radar.analyze_text(WHATSAPP_US, owner_id="user-1")

    assert isinstance(report, AnalysisReport)
    response = report.to_response()
    assert response["ok"] is True
    analysis = response["analysis"]
    assert analysis["id"] == report.record.id
    assert analysis["riskScore"] == 72
    assert analysis["redFlags"][0]["severity"] == "critical"
    assert analysis["platform"] == "whatsapp"
    assert analysis["platformMetadata"] == {
        "platform": "whatsapp",
        "confidence": 0.95,
        "detectedFormat": "WhatsApp Export",
    }
    assert analysis["chatStats"]["totalMessages"] == 5
    assert analysis["chatStats"]["participants"] == ["Alice", "Bob"]
    assert analysis["chatStats"]["dateRange"] == {
        "start": "2023-12-25",
        "end": "2023-12-26",
    }
    assert response["usage"]["provider"] == "anthropic-primary"
    assert report.status_code == 200

    assert await store.get_analysis(report.record.id, "user-1") is not None


async def test_transcript_excludes_media(
    scripted: Factory, make_radar: RadarFactory
) -> None:
    provider = scripted("p", ANALYSIS_RESPONSE)
    await make_radar(provider).analyze_text(WHATSAPP_US, owner_id="user-1")

    prompt = provider.calls[0].prompt
    assert "Alice: Send me the money by tomorrow" in prompt
    assert "Bob: <Media omitted>" not in prompt
    assert "Participants: Alice, Bob" in prompt


async def test_usage_recorded(scripted: Factory, make_radar: RadarFactory) -> None:
    radar = make_radar(scripted("p", ANALYSIS_RESPONSE))
    await radar.analyze_text(WHATSAPP_US, owner_id="user-1")

    stats = await radar.usage_stats("user-1")
    assert stats.total_requests == 1
    assert stats.by_service["chat_analysis"].tokens == 150
    assert (await radar.usage_stats("user-2")).total_requests == 0


async def test_platform_hint_overrides_detection(
    scripted: Factory, make_radar: RadarFactory
) -> None:
    radar = make_radar(scripted("p", ANALYSIS_RESPONSE))
    report = await radar.analyze_text(WHATSAPP_EU, owner_id="u", platform="sms_ios")

    assert isinstance(report, AnalysisReport)
    assert report.record.platform == Platform.SMS_IOS
    assert report.record.platform_metadata.confidence == 1.0


async def test_provider_failover(scripted: Factory, make_radar: RadarFactory) -> None:
    first = scripted("anthropic-primary", RuntimeError("overloaded"))
    second = scripted("openai", ANALYSIS_RESPONSE)
    report = await make_radar(first, second).analyze_text(WHATSAPP_US, owner_id="u")

    assert isinstance(report, AnalysisReport)
    assert report.record.usage is not None
    assert report.record.usage.provider == "openai"


async def test_all_providers_fail_nothing_saved(
    scripted: Factory, make_radar: RadarFactory, store: InMemoryAnalysisStore
) -> None:
    radar = make_radar(scripted("a", "nope"), scripted("b", RuntimeError("down")))

    with pytest.raises(AllProvidersFailedError):
        await radar.analyze_text(WHATSAPP_US, owner_id="u")

    assert await store.list_analyses("u") == []
    assert await store.list_usage("u") == []


async def test_history_newest_first(
    scripted: Factory, make_radar: RadarFactory
) -> None:
    radar = make_radar(scripted("p", ANALYSIS_RESPONSE, ANALYSIS_RESPONSE))
    first = await radar.analyze_text(WHATSAPP_US, owner_id="u")
    second = await radar.analyze_text(WHATSAPP_EU, owner_id="u")

    assert isinstance(first, AnalysisReport)
    assert isinstance(second, AnalysisReport)
    history = await radar.history("u")
    assert [r.id for r in history] == [second.record.id, first.record.id]


# ── Unparseable input ────────────────────────────────────────────────


async def test_manual_text_without_timestamps(
    scripted: Factory, make_radar: RadarFactory
) -> None:
    provider = scripted("p", ANALYSIS_RESPONSE)
    report = await make_radar(provider).analyze_text(MANUAL_CHAT, owner_id="u")

    assert isinstance(report, UnparseableChat)
    assert report.status_code == 400
    response = report.to_response()
    assert response["ok"] is False
    assert response["error"] == (
        "Could not parse any messages from Manual Text. "
        "Please check that the file is a chat export."
    )
    assert response["hint"].startswith("Detected format: Manual Text.")
    assert response["detectedPlatform"] == "manual"
    assert response["sampleLines"] == [
        "Alice: You never listen to me",
        "Bob: I am trying my best",
        "Alice: Fine. Whatever.",
    ]
    assert provider.call_count == 0


async def test_unknown_format_hint(make_radar: RadarFactory) -> None:
    text = "\n\n   first line   \n" + "x" * 300 + "\nthird\nfourth\n"
    report = await make_radar().analyze_text(text, owner_id="u")

    assert isinstance(report, UnparseableChat)
    assert report.detected_platform == Platform.UNKNOWN
    assert "Manual Text option" in report.hint
    assert report.sample_lines == ["first line", "x" * 200, "third"]


# ── Input validation ─────────────────────────────────────────────────


@pytest.mark.parametrize("text", ["", "   \n\t "])
async def test_empty_text_rejected(make_radar: RadarFactory, text: str) -> None:
    with pytest.raises(InvalidInputError):
        await make_radar().analyze_text(text, owner_id="u")


async def test_oversized_text_rejected(
    scripted: Factory, make_radar: RadarFactory
) -> None:
    provider = scripted("p", ANALYSIS_RESPONSE)
    with pytest.raises(InvalidInputError, match="too large"):
        await make_radar(provider).analyze_text(
            "a" * (MAX_TEXT_CHARS + 1), owner_id="u"
        )
    assert provider.call_count == 0


async def test_unknown_platform_rejected(
    scripted: Factory, make_radar: RadarFactory
) -> None:
    provider = scripted("p", ANALYSIS_RESPONSE)
    with pytest.raises(InvalidInputError) as exc_info:
        await make_radar(provider).analyze_text(
            WHATSAPP_US, owner_id="u", platform="myspace"
        )
    assert exc_info.value.status_code == 400
    assert provider.call_count == 0


# ── Files ────────────────────────────────────────────────────────────


def test_decode_utf8_with_bom() -> None:
    assert decode_chat_bytes("\ufeffhéllo".encode()) == "héllo"
    assert decode_chat_bytes(b"\xef\xbb\xbfabc") == "abc"


def test_decode_utf16() -> None:
    assert decode_chat_bytes("Alice: hi".encode("utf-16")) == "Alice: hi"


def test_decode_invalid_bytes_replaced() -> None:
    assert decode_chat_bytes(b"ok \xff!") == "ok \ufffd!"


async def test_analyze_file_utf16(scripted: Factory, make_radar: RadarFactory) -> None:
    radar = make_radar(scripted("p", ANALYSIS_RESPONSE))
    report = await radar.analyze_file(
        WHATSAPP_US.encode("utf-16"), owner_id="u", filename="WhatsApp Chat.txt"
    )

    assert isinstance(report, AnalysisReport)
    assert report.record.chat_stats.total_messages == 5
    assert report.record.source_name == "WhatsApp Chat.txt"


async def test_analyze_file_too_large(make_radar: RadarFactory) -> None:
    with pytest.raises(InvalidInputError, match="10 MB"):
        await make_radar().analyze_file(b"a" * (MAX_FILE_BYTES + 1), owner_id="u")


async def test_analyze_file_empty(make_radar: RadarFactory) -> None:
    with pytest.raises(InvalidInputError, match="empty"):
        await make_radar().analyze_file(b"\xef\xbb\xbf  \n", owner_id="u")


# ── Limits ───────────────────────────────────────────────────────────


async def test_rate_limit(scripted: Factory, make_radar: RadarFactory) -> None:
    provider = scripted("p", ANALYSIS_RESPONSE, ANALYSIS_RESPONSE)
    radar = make_radar(
        provider, rate_limiter=InMemoryRateLimiter(max_requests=1, window_seconds=60)
    )
    await radar.analyze_text(WHATSAPP_US, owner_id="alice")

    with pytest.raises(RateLimitExceededError) as exc_info:
        await radar.analyze_text(WHATSAPP_US, owner_id="alice")
    assert exc_info.value.status_code == 429
    assert provider.call_count == 1

    # Other owners have their own budget.
    await radar.analyze_text(WHATSAPP_US, owner_id="bob")


async def test_daily_cap(scripted: Factory, make_radar: RadarFactory) -> None:
    provider = scripted("p", ANALYSIS_RESPONSE, ANALYSIS_RESPONSE)
    radar = make_radar(provider, daily_cap=1)
    await radar.analyze_text(WHATSAPP_US, owner_id="alice")

    with pytest.raises(RateLimitExceededError):
        await radar.analyze_text(WHATSAPP_US, owner_id="alice")
    assert provider.call_count == 1


async def test_request_timeout(scripted: Factory, make_radar: RadarFactory) -> None:
    slow = scripted("slow", ANALYSIS_RESPONSE, delay=5.0)
    radar = make_radar(slow, request_timeout=0.05)

    with pytest.raises(AnalysisTimeoutError) as exc_info:
        await radar.analyze_text(WHATSAPP_US, owner_id="u")
    assert exc_info.value.status_code == 504


async def test_usage_failure_does_not_fail_analysis(
    scripted: Factory, caplog: pytest.LogCaptureFixture
) -> None:
    class BrokenUsageStore(InMemoryAnalysisStore):
        async def record_usage(self, entry: UsageEntry) -> None:
            raise RuntimeError("usage table missing")

    radar = RedFlagRadar(
        providers=[scripted("p", ANALYSIS_RESPONSE)], store=BrokenUsageStore()
    )
    with caplog.at_level(logging.ERROR):
        report = await radar.analyze_text(WHATSAPP_US, owner_id="u")

    assert isinstance(report, AnalysisReport)
    assert "Failed to record chat_analysis usage" in caplog.text


# ── Comparison ───────────────────────────────────────────────────────


async def _two_analyses(radar: RedFlagRadar, owner_id: str = "u") -> list[str]:
    ids = []
    for text in (WHATSAPP_US, WHATSAPP_EU):
        report = await radar.analyze_text(text, owner_id=owner_id)
        assert isinstance(report, AnalysisReport)
        ids.append(report.record.id)
    return ids


async def test_compare(scripted: Factory, make_radar: RadarFactory) -> None:
    provider = scripted(
        "p", ANALYSIS_RESPONSE, ANALYSIS_RESPONSE, COMPARISON_RESPONSE
    )
    radar = make_radar(provider)
    ids = await _two_analyses(radar)

    report = await radar.compare(list(reversed(ids)), owner_id="u")

    response = report.to_response()
    assert response["ok"] is True
    assert response["analysisIds"] == ids
    assert response["comparison"]["trend"] == "worsening"
    assert response["comparison"]["escalationDetected"] is True
    assert provider.calls[-1].item_id == "comparison"

    stats = await radar.usage_stats("u")
    assert stats.by_service["comparison"].requests == 1


async def test_compare_rejects_bad_count(
    scripted: Factory, make_radar: RadarFactory
) -> None:
    provider = scripted("p", COMPARISON_RESPONSE)
    radar = make_radar(provider)

    with pytest.raises(InvalidComparisonInputError):
        await radar.compare(["only-one"], owner_id="u")
    with pytest.raises(InvalidComparisonInputError):
        await radar.compare([f"id-{i}" for i in range(6)], owner_id="u")
    assert provider.call_count == 0


async def test_compare_foreign_analysis(
    scripted: Factory, make_radar: RadarFactory
) -> None:
    provider = scripted("p", ANALYSIS_RESPONSE, ANALYSIS_RESPONSE, COMPARISON_RESPONSE)
    radar = make_radar(provider)
    ids = await _two_analyses(radar, owner_id="alice")

    with pytest.raises(AnalysisNotFoundError) as exc_info:
        await radar.compare(ids, owner_id="mallory")

    err = exc_info.value
    assert err.status_code == 404
    assert err.missing == ids
    assert err.to_response() == {
        "ok": False,
        "error": "One or more analyses not found or not owned by user.",
    }
    assert provider.call_count == 2


async def test_compare_missing_analysis(
    scripted: Factory, make_radar: RadarFactory
) -> None:
    radar = make_radar(scripted("p", ANALYSIS_RESPONSE))
    report = await radar.analyze_text(WHATSAPP_US, owner_id="u")
    assert isinstance(report, AnalysisReport)

    with pytest.raises(AnalysisNotFoundError) as exc_info:
        await radar.compare([report.record.id, "does-not-exist"], owner_id="u")
    assert exc_info.value.missing == ["does-not-exist"]


# ── Error mapping ────────────────────────────────────────────────────


def test_error_response_for_radar_errors() -> None:
    body, status = error_response(RateLimitExceededError())
    assert status == 429
    assert body == {
        "ok": False,
        "error": "Too many analysis requests. Please try again later.",
    }


def test_error_response_hides_provider_details() -> None:
    body, status = error_response(AllProvidersFailedError(["a", "b"]))
    assert status == 503
    assert "a, b" not in body["error"]
    assert body["error"] == (
        "AI analysis is currently unavailable. Please try again later."
    )


def test_error_response_exposes_client_errors() -> None:
    body, status = error_response(InvalidInputError("Chat text is required."))
    assert (body["error"], status) == ("Chat text is required.", 400)


def test_error_response_unexpected(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR):
        body, status = error_response(KeyError("secret-detail"))
    assert status == 500
    assert "secret-detail" not in body["error"]
    assert "Unhandled error" in caplog.text


def test_from_config_without_keys() -> None:
    radar = RedFlagRadar.from_config(
        {"providers": [{"provider": "openai", "api_key": ""}]}
    )
    assert radar.orchestrator.provider_names == []
