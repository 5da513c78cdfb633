"""Serialize patterns for the presentation layer and the narrative generator.

Output is plain JSON-friendly dicts with camelCase keys, the shape the
dashboards and report prompts consume.  Floats are rounded for display;
the ``Pattern`` objects themselves keep full precision.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

from patternlens.analysis.models import AnalysisResult, Pattern, Segment


def _round(value: float | int | str, digits: int = 4) -> float | int | str:
    if isinstance(value, float):
        return round(value, digits)
    return value


def segment_to_dict(segment: Segment) -> dict:
    return {
        "name": segment.name,
        "populationShare": round(segment.population_share, 2),
        "sampleSize": segment.sample_size,
        "metrics": [
            {"label": m.label, "value": _round(m.value)} for m in segment.metrics
        ],
    }


def pattern_to_dict(pattern: Pattern) -> dict:
    """Convert one ``Pattern`` to a JSON-friendly dict."""
    data = {
        "id": pattern.id,
        "type": pattern.archetype.value,
        "title": pattern.title,
        "description": pattern.description,
        "dimensions": [d.key for d in pattern.dimensions],
        "confidence": round(pattern.confidence, 4),
        "confidenceLabel": pattern.confidence_label,
        "significance": _round(pattern.significance, 6),
        "strength": round(pattern.strength, 4),
        "sampleSize": pattern.sample_size,
        "impact": round(pattern.impact, 4),
        "impactTier": pattern.impact_tier,
        "segments": [segment_to_dict(s) for s in pattern.segments],
    }
    if pattern.amplitude is not None:
        data["amplitude"] = round(pattern.amplitude, 4)
    return data


def serialize_patterns(patterns: Sequence[Pattern]) -> list[dict]:
    return [pattern_to_dict(p) for p in patterns]


def serialize_result(result: AnalysisResult) -> str:
    """Serialize a full ``AnalysisResult`` (patterns + diagnostics) to JSON."""
    data = {
        "patterns": serialize_patterns(result.patterns),
        "hasPatterns": bool(result.patterns),
        "totalRecords": result.total_records,
        "dimensions": [d.key for d in result.catalog],
        "outcomeBaseline": (
            None if result.outcome_baseline is None else round(result.outcome_baseline, 4)
        ),
        "outcomeStd": None if result.outcome_std is None else round(result.outcome_std, 4),
        "couplingsEvaluated": result.couplings_evaluated,
        "combinationsEvaluated": result.combinations_evaluated,
        "warnings": [
            {"kind": type(w).__name__, "subject": w.subject, "detail": w.detail}
            for w in result.warnings
        ],
    }
    return json.dumps(data, ensure_ascii=False, indent=2)
