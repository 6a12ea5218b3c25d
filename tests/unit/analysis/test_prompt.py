from __future__ import annotations

from red_flag_radar.analysis.prompt import (
    SYSTEM_PROMPT,
    build_chat_analysis_prompt,
    messages_per_day,
    truncate_chat_text,
)
from red_flag_radar.core.types import DateRange, SampleMessage


def _text(length: int) -> str:
    digits = "0123456789"
    return (digits * (length // 10 + 1))[:length]


class TestTruncation:
    def test_short_text_untouched(self) -> None:
        text = _text(5_000)
        assert truncate_chat_text(text) == text

    def test_boundary_is_inclusive(self) -> None:
        text = _text(8_000)
        assert truncate_chat_text(text) == text

    def test_medium_text_keeps_recent_tail(self) -> None:
        text = _text(10_000)
        result = truncate_chat_text(text)
        assert result.startswith("... [earlier messages truncated] ...\n")
        assert result.endswith(text[-8_000:])
        assert len(result) == len("... [earlier messages truncated] ...\n") + 8_000

    def test_fifteen_thousand_is_still_tail_only(self) -> None:
        result = truncate_chat_text(_text(15_000))
        assert result.startswith("... [earlier messages truncated] ...")

    def test_long_text_keeps_head_and_tail(self) -> None:
        text = "H" * 2_000 + "x" * 6_000 + "T" * 12_000
        result = truncate_chat_text(text)
        assert result.startswith("H" * 2_000 + "\n\n")
        assert result.endswith("\n\n" + "T" * 12_000)
        assert (
            "... [6000 characters truncated - showing beginning and most recent "
            "messages] ..." in result
        )
        assert "x" not in result


class TestMessagesPerDay:
    def test_same_day_counts_as_one_day(self) -> None:
        date_range = DateRange(start="2024-01-01", end="2024-01-01")
        assert messages_per_day(10, date_range) == 10

    def test_rounds_average(self) -> None:
        date_range = DateRange(start="2024-01-01", end="2024-01-11")
        assert messages_per_day(32, date_range) == 3

    def test_missing_range_falls_back_to_total(self) -> None:
        assert messages_per_day(7, DateRange()) == 7


class TestBuildPrompt:
    def test_fills_metadata(self) -> None:
        item = build_chat_analysis_prompt(
            "Alice: hi\nBob: hello",
            ["Alice", "Bob"],
            2,
            DateRange(start="2024-01-01", end="2024-01-02"),
            [],
        )
        assert item.item_id == "chat_analysis"
        assert item.system_prompt == SYSTEM_PROMPT
        assert "Participants: Alice, Bob" in item.prompt
        assert "Total messages: 2" in item.prompt
        assert "Date range: 2024-01-01 to 2024-01-02" in item.prompt
        assert "Alice: hi\nBob: hello" in item.prompt
        assert "{{" not in item.prompt

    def test_unknown_dates(self) -> None:
        item = build_chat_analysis_prompt("A: x", ["A"], 1, DateRange(), [])
        assert "Date range: unknown to unknown" in item.prompt

    def test_samples_limited_and_clipped(self) -> None:
        samples = [
            SampleMessage(sender="A", message=f"sample-{i}-" + "z" * 300, date="d")
            for i in range(15)
        ]
        item = build_chat_analysis_prompt("A: x", ["A"], 15, DateRange(), samples)
        assert "Recent sample messages" in item.prompt
        assert "sample-9-" in item.prompt
        assert "sample-10-" not in item.prompt
        assert "z" * 201 not in item.prompt

    def test_no_samples_section_when_empty(self) -> None:
        item = build_chat_analysis_prompt("A: x", ["A"], 1, DateRange(), [])
        assert "Recent sample messages" not in item.prompt

    def test_long_transcript_is_truncated(self) -> None:
        item = build_chat_analysis_prompt("q" * 20_000, ["A"], 1, DateRange(), [])
        assert "characters truncated" in item.prompt
        assert "q" * 12_001 not in item.prompt
