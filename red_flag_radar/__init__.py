"""red_flag_radar: chat-export ingestion and AI-assisted risk analysis."""

from red_flag_radar.analysis import (
    AnalysisRecord,
    AnalysisResult,
    ComparisonResult,
    RedFlag,
    Severity,
)
from red_flag_radar.core import (
    AllProvidersFailedError,
    AnalysisNotFoundError,
    AnalysisTimeoutError,
    ChatMessage,
    DateRange,
    InvalidComparisonInputError,
    InvalidInputError,
    ParsedChat,
    Platform,
    PlatformMetadata,
    RadarError,
    RateLimitExceededError,
    error_response,
)
from red_flag_radar.facade import (
    AnalysisReport,
    ComparisonReport,
    RedFlagRadar,
    UnparseableChat,
)
from red_flag_radar.parsing import detect, extract_text_content, parse

__all__ = [
    "AllProvidersFailedError",
    "AnalysisNotFoundError",
    "AnalysisRecord",
    "AnalysisReport",
    "AnalysisResult",
    "AnalysisTimeoutError",
    "ChatMessage",
    "ComparisonReport",
    "ComparisonResult",
    "DateRange",
    "InvalidComparisonInputError",
    "InvalidInputError",
    "ParsedChat",
    "Platform",
    "PlatformMetadata",
    "RadarError",
    "RateLimitExceededError",
    "RedFlag",
    "RedFlagRadar",
    "Severity",
    "UnparseableChat",
    "detect",
    "error_response",
    "extract_text_content",
    "parse",
]
