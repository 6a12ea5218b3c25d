"""Normalized chat types shared by the parsing and analysis stages."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


def generate_id() -> str:
    """Return a new random UUID string (v4)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


class RadarModel(BaseModel):
    """Base for every model that crosses the JSON boundary.

    Python code uses snake_case attributes; serialized payloads use
    camelCase (``riskScore``, ``totalMessages``).  Both spellings are
    accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Platform(StrEnum):
    WHATSAPP = "whatsapp"
    SMS_ANDROID = "sms_android"
    SMS_IOS = "sms_ios"
    EMAIL = "email"
    MANUAL = "manual"
    UNKNOWN = "unknown"


class ChatMessage(RadarModel):
    """One normalized message.  Immutable once the parser emits it."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    date: str
    time: str
    sender: str
    message: str
    is_media: bool = False
    media_type: str | None = None


class DateRange(RadarModel):
    """Earliest and latest message dates as ISO ``YYYY-MM-DD`` strings.

    Both ends are empty strings when no date could be read.
    """

    start: str = ""
    end: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.start or not self.end


class ParsedChat(RadarModel):
    messages: list[ChatMessage] = Field(default_factory=list)
    participants: list[str] = Field(
        default_factory=list,
        description="Distinct senders in first-encounter order.",
    )
    date_range: DateRange = Field(default_factory=DateRange)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_messages(self) -> int:
        return len(self.messages)


class PlatformMetadata(RadarModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    platform: Platform
    confidence: float = Field(ge=0.0, le=1.0)
    detected_format: str


class SampleMessage(RadarModel):
    sender: str
    message: str
    date: str


class ChatStats(RadarModel):
    """Summary of the parsed chat kept alongside a stored analysis."""

    total_messages: int = 0
    participants: list[str] = Field(default_factory=list)
    date_range: DateRange = Field(default_factory=DateRange)

    @classmethod
    def from_parsed(cls, parsed: ParsedChat) -> ChatStats:
        return cls(
            total_messages=parsed.total_messages,
            participants=list(parsed.participants),
            date_range=parsed.date_range,
        )
