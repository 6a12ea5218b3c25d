"""Parser registry -- maps Platform values to parse functions"""

from __future__ import annotations

from collections.abc import Callable

from red_flag_radar.core.types import ParsedChat, Platform
from red_flag_radar.parsing.parser import parse_message_export

ParseFn = Callable[[str], ParsedChat]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

# Every platform currently shares the canonical message-export parser.
# A platform-specific parser replaces its entry here.
PARSER_REGISTRY: dict[Platform, ParseFn] = {
    Platform.WHATSAPP: parse_message_export,
    Platform.SMS_ANDROID: parse_message_export,
    Platform.SMS_IOS: parse_message_export,
    Platform.EMAIL: parse_message_export,
    Platform.MANUAL: parse_message_export,
    Platform.UNKNOWN: parse_message_export,
}


def get_parser(platform: Platform | None) -> ParseFn:
    """Look up the parser for *platform*, defaulting to the canonical one."""
    if platform is None:
        return parse_message_export
    return PARSER_REGISTRY.get(platform, parse_message_export)


def parse(raw_text: str, platform: Platform | None = None) -> ParsedChat:
    return get_parser(platform)(raw_text)
