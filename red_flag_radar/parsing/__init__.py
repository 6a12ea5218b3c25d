from red_flag_radar.parsing.detector import (
    SIGNATURES,
    FormatSignature,
    detect,
    resolve_platform,
)
from red_flag_radar.parsing.extractor import (
    extract_text_content,
    sample_recent_messages,
)
from red_flag_radar.parsing.parser import parse_message_export
from red_flag_radar.parsing.registry import PARSER_REGISTRY, get_parser, parse

__all__ = [
    "PARSER_REGISTRY",
    "SIGNATURES",
    "FormatSignature",
    "detect",
    "extract_text_content",
    "get_parser",
    "parse",
    "parse_message_export",
    "resolve_platform",
    "sample_recent_messages",
]
