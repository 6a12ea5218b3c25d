from red_flag_radar.core.exceptions import (
    AllProvidersFailedError,
    AnalysisNotFoundError,
    AnalysisTimeoutError,
    InvalidComparisonInputError,
    InvalidInputError,
    MalformedProviderJSONError,
    ProviderCallFailedError,
    RadarError,
    RateLimitExceededError,
    error_response,
)
from red_flag_radar.core.types import (
    ChatMessage,
    ChatStats,
    DateRange,
    ParsedChat,
    Platform,
    PlatformMetadata,
    RadarModel,
    SampleMessage,
)

__all__ = [
    "AllProvidersFailedError",
    "AnalysisNotFoundError",
    "AnalysisTimeoutError",
    "ChatMessage",
    "ChatStats",
    "DateRange",
    "InvalidComparisonInputError",
    "InvalidInputError",
    "MalformedProviderJSONError",
    "ParsedChat",
    "Platform",
    "PlatformMetadata",
    "ProviderCallFailedError",
    "RadarError",
    "RadarModel",
    "RateLimitExceededError",
    "SampleMessage",
    "error_response",
]
