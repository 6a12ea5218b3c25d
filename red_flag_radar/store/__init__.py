from red_flag_radar.store.base import AnalysisStore
from red_flag_radar.store.memory import InMemoryAnalysisStore

__all__ = [
    "AnalysisStore",
    "InMemoryAnalysisStore",
]
