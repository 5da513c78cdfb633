"""Pattern detection: dimension catalog, co-occurrence tables, coupling and ranking."""

from patternlens.analysis.engine import analyze, analyze_with_diagnostics
from patternlens.analysis.models import (
    AnalysisResult,
    Archetype,
    Dimension,
    Pattern,
    Segment,
    SegmentMetric,
)
from patternlens.analysis.summary import pattern_to_dict, serialize_patterns

__all__ = [
    "AnalysisResult",
    "Archetype",
    "Dimension",
    "Pattern",
    "Segment",
    "SegmentMetric",
    "analyze",
    "analyze_with_diagnostics",
    "pattern_to_dict",
    "serialize_patterns",
]
