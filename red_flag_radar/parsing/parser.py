"""Canonical message-export parser.

Turns the text of a chat export into a :class:`ParsedChat` with a small
line-oriented state machine.  A line that opens a message starts a new
draft; lines that do not are continuation lines of the open draft.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from red_flag_radar.core.types import ChatMessage, DateRange, ParsedChat

logger = logging.getLogger(__name__)

_DATE = r"(\d{1,2}/\d{1,2}/\d{2,4})"

# Tried in order; the first match wins.  Groups: date, time, sender, message.
MESSAGE_PATTERNS: tuple[re.Pattern[str], ...] = (
    # 12/25/23, 10:30 PM - Alice: text
    re.compile(rf"^{_DATE},\s*(\d{{1,2}}:\d{{2}}\s*[ap]m)\s*-\s*(.+?):\s*(.+)$", re.I),
    # 12/25/23, 10:30:15 PM - Alice: text
    re.compile(
        rf"^{_DATE},\s*(\d{{1,2}}:\d{{2}}:\d{{2}}\s*[ap]m)\s*-\s*(.+?):\s*(.+)$", re.I
    ),
    # [12/25/23, 10:30:15 PM] Alice: text
    re.compile(
        rf"^\[{_DATE},\s*(\d{{1,2}}:\d{{2}}:\d{{2}}\s*[ap]m)\]\s*(.+?):\s*(.+)$", re.I
    ),
    # [12/25/23, 10:30 PM] Alice: text
    re.compile(rf"^\[{_DATE},\s*(\d{{1,2}}:\d{{2}}\s*[ap]m)\]\s*(.+?):\s*(.+)$", re.I),
    # 25/12/2023, 22:30(:15) - Alice: text
    re.compile(rf"^{_DATE},\s*(\d{{1,2}}:\d{{2}}(?::\d{{2}})?)\s*-\s*(.+?):\s*(.+)$"),
    # [25/12/2023, 22:30(:15)] Alice: text
    re.compile(rf"^\[{_DATE},\s*(\d{{1,2}}:\d{{2}}(?::\d{{2}})?)\]\s*(.+?):\s*(.+)$"),
)

# A timestamp with no "sender:" part, e.g. "12/25/23, 10:30 PM - You left".
_TIMESTAMP_ONLY = re.compile(
    rf"^\[?{_DATE},\s*\d{{1,2}}:\d{{2}}(?::\d{{2}})?(?:\s*[ap]m)?\]?\s*-?\s*(.+)$",
    re.I,
)

SYSTEM_MARKERS: tuple[str, ...] = (
    "messages and calls are end-to-end encrypted",
    "this chat is end-to-end encrypted",
    "security code changed",
)

# Short enough to occur in ordinary messages, so a sender-attributed body
# must consist of the notice alone.
MEMBERSHIP_MARKERS: tuple[str, ...] = (
    "you joined",
    "you left",
)

MEDIA_MARKERS: tuple[str, ...] = (
    "<media omitted>",
    "image omitted",
    "video omitted",
    "audio omitted",
    "document omitted",
    "sticker omitted",
    "gif omitted",
)

_MEDIA_TYPES: tuple[str, ...] = (
    "image",
    "video",
    "audio",
    "document",
    "sticker",
    "gif",
)

# Invisible marks some exporters put at the start of a line.
_LEADING_MARKS = "\ufeff\u200e\u200f"


def is_system_message(text: str, *, attributed: bool = False) -> bool:
    """Whether *text* is an app notice rather than something a person wrote.

    *attributed* bodies came after a ``sender:`` prefix; join and leave
    notices only count there when they make up the whole body.
    """
    lowered = text.lower().strip()
    if any(marker in lowered for marker in SYSTEM_MARKERS):
        return True
    if attributed:
        return lowered.rstrip(".") in MEMBERSHIP_MARKERS
    return any(marker in lowered for marker in MEMBERSHIP_MARKERS)


def media_type_of(text: str) -> str | None:
    """Return the media kind of a placeholder message, or ``None``."""
    lowered = text.lower()
    if not any(marker in lowered for marker in MEDIA_MARKERS):
        return None
    for kind in _MEDIA_TYPES:
        if kind in lowered:
            return kind
    return "media"


def _date_fields(token: str) -> tuple[int, int, int] | None:
    parts = token.split("/")
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        return None
    first, second, year = (int(p) for p in parts)
    if len(parts[2]) == 2:
        year += 2000
    return first, second, year


def is_month_first(tokens: Iterable[str]) -> bool:
    """Decide the field order for a whole chat.

    Month-first only when some token's second field cannot be a month
    while every first field can.  Day-first otherwise.
    """
    fields = [f for f in (_date_fields(t) for t in tokens) if f is not None]
    return any(second > 12 for _, second, _ in fields) and not any(
        first > 12 for first, _, _ in fields
    )


def parse_message_date(token: str, *, month_first: bool | None = None) -> date | None:
    """Read a ``d/m/y`` date token.

    With *month_first* left as ``None`` a token that is not a valid
    ``d/m/y`` date falls back to ``m/d/y``.  An explicit order is applied
    strictly.  Two-digit years are taken as 2000+.  Returns ``None`` when
    no allowed reading is a real calendar date.
    """
    fields = _date_fields(token)
    if fields is None:
        return None
    first, second, year = fields
    if month_first is None:
        orders = ((first, second), (second, first))
    elif month_first:
        orders = ((second, first),)
    else:
        orders = ((first, second),)
    for day, month in orders:
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return None


def compute_date_range(messages: list[ChatMessage]) -> DateRange:
    tokens = [m.date for m in messages]
    month_first = is_month_first(tokens)
    dates = sorted(
        d
        for d in (parse_message_date(t, month_first=month_first) for t in tokens)
        if d is not None
    )
    if not dates:
        return DateRange()
    return DateRange(start=dates[0].isoformat(), end=dates[-1].isoformat())


@dataclass
class _Draft:
    date: str
    time: str
    sender: str
    first_line: str
    buffer: list[str] = field(default_factory=list)

    def finalize(self) -> ChatMessage:
        text = "\n".join([self.first_line, *self.buffer])
        kind = media_type_of(self.first_line)
        return ChatMessage(
            date=self.date,
            time=self.time,
            sender=self.sender,
            message=text,
            is_media=kind is not None,
            media_type=kind,
        )


def _match_message(line: str) -> re.Match[str] | None:
    for pattern in MESSAGE_PATTERNS:
        match = pattern.match(line)
        if match:
            return match
    return None


def _is_timestamped_notice(line: str) -> bool:
    match = _TIMESTAMP_ONLY.match(line)
    return match is not None and is_system_message(match.group(2))


def parse_message_export(raw_text: str) -> ParsedChat:
    """Parse a timestamped ``sender: message`` export.

    System notices are dropped without closing the open draft.  Lines that
    do not start a message extend the open draft, or are dropped when no
    draft is open.
    """
    text = raw_text.replace("\r\n", "\n").replace("\r", "\n")

    messages: list[ChatMessage] = []
    participants: dict[str, None] = {}
    draft: _Draft | None = None
    dropped = 0

    for raw_line in text.split("\n"):
        line = raw_line.lstrip(_LEADING_MARKS)
        if not line.strip():
            continue

        match = _match_message(line)
        if match is None:
            if _is_timestamped_notice(line):
                continue
            if draft is not None:
                draft.buffer.append(line)
            else:
                dropped += 1
            continue

        msg_date, msg_time, sender, body = match.groups()
        body = body.strip()
        if is_system_message(body, attributed=True):
            continue

        if draft is not None:
            messages.append(draft.finalize())
        participants.setdefault(sender, None)
        draft = _Draft(date=msg_date, time=msg_time, sender=sender, first_line=body)

    if draft is not None:
        messages.append(draft.finalize())

    if dropped:
        logger.debug("Dropped %d lines before the first message", dropped)

    return ParsedChat(
        messages=messages,
        participants=list(participants),
        date_range=compute_date_range(messages),
    )
