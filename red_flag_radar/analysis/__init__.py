from red_flag_radar.analysis.comparison import (  # noqa: F401
    MAX_ANALYSES,
    MIN_ANALYSES,
    ComparisonEngine,
    compute_baseline,
)
from red_flag_radar.analysis.orchestrator import AnalysisOrchestrator  # noqa: F401
from red_flag_radar.analysis.prompt import (  # noqa: F401
    SYSTEM_PROMPT,
    build_chat_analysis_prompt,
    truncate_chat_text,
)
from red_flag_radar.analysis.records import AnalysisRecord  # noqa: F401
from red_flag_radar.analysis.schemas import (  # noqa: F401
    DEFAULT_ANALYSIS_SUMMARY,
    DEFAULT_COMPARISON_SUMMARY,
    AnalysisResult,
    CommonPattern,
    ComparisonResult,
    EscalationDetails,
    PatternDetected,
    RedFlag,
    RiskTrend,
    Severity,
)
