from red_flag_radar.facade.core import (
    MAX_FILE_BYTES,
    MAX_TEXT_CHARS,
    RedFlagRadar,
    decode_chat_bytes,
)
from red_flag_radar.facade.types import (
    AnalysisReport,
    ComparisonReport,
    UnparseableChat,
)

__all__ = [
    "MAX_FILE_BYTES",
    "MAX_TEXT_CHARS",
    "AnalysisReport",
    "ComparisonReport",
    "RedFlagRadar",
    "UnparseableChat",
    "decode_chat_bytes",
]
