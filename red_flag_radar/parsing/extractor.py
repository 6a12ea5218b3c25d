from __future__ import annotations

from red_flag_radar.core.types import ParsedChat, SampleMessage

RECENT_SAMPLE_SIZE = 20


def extract_text_content(parsed: ParsedChat) -> str:
    """Render the non-media messages as ``sender: message`` lines."""
    return "\n".join(
        f"{m.sender}: {m.message}" for m in parsed.messages if not m.is_media
    )


def sample_recent_messages(
    parsed: ParsedChat,
    limit: int = RECENT_SAMPLE_SIZE,
) -> list[SampleMessage]:
    """The *limit* most recent messages, oldest first."""
    if limit <= 0:
        return []
    return [
        SampleMessage(sender=m.sender, message=m.message, date=f"{m.date} {m.time}")
        for m in parsed.messages[-limit:]
    ]
