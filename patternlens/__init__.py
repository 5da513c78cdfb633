"""Multi-dimensional pattern detection for survey respondent data."""

__version__ = "0.3.0"

from patternlens.analysis import (  # noqa: E402
    AnalysisResult,
    Archetype,
    Dimension,
    Pattern,
    Segment,
    analyze,
    analyze_with_diagnostics,
)
from patternlens.config import AnalysisConfig, load_config  # noqa: E402
from patternlens.errors import (  # noqa: E402
    AnalysisWarning,
    DegenerateTableWarning,
    InsufficientDataWarning,
    InvalidRecordError,
)
from patternlens.models import RespondentRecord  # noqa: E402

__all__ = [
    "AnalysisConfig",
    "AnalysisResult",
    "AnalysisWarning",
    "Archetype",
    "DegenerateTableWarning",
    "Dimension",
    "InsufficientDataWarning",
    "InvalidRecordError",
    "Pattern",
    "RespondentRecord",
    "Segment",
    "__version__",
    "analyze",
    "analyze_with_diagnostics",
    "load_config",
]
