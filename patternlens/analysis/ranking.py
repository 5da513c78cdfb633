"""Turn raw findings into reportable patterns and rank them.

Each finding gets a set of named segments (one per non-empty bin
combination for coupling patterns; intersection / first-only / second-only
for interference), a confidence of ``strength x (1 - significance)`` and an
impact of ``confidence x population share x outcome magnitude x scale``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from patternlens.analysis.metrics import (
    adjusted_residual,
    concentration_ratio,
    lift,
    mean,
)
from patternlens.analysis.models import (
    ARCHETYPE_ORDER,
    Archetype,
    CouplingResult,
    InterferenceResult,
    Pattern,
    Segment,
    SegmentMetric,
)
from patternlens.config import AnalysisConfig
from patternlens.models import snake_case

# Impact tiers by |lift| of the lead segment (percent)
_TIER_CRITICAL = 40.0
_TIER_HIGH = 25.0
_TIER_MEDIUM = 10.0


def pattern_confidence(strength: float, significance: float) -> float:
    return min(1.0, max(0.0, strength * (1.0 - significance)))


def confidence_label(confidence: float) -> str:
    if confidence >= 0.5:
        return "strong"
    if confidence >= 0.3:
        return "moderate"
    return "emerging"


def impact_tier(lift_pct: float | None) -> str:
    if lift_pct is None:
        return "low"
    magnitude = abs(lift_pct)
    if magnitude > _TIER_CRITICAL:
        return "critical"
    if magnitude > _TIER_HIGH:
        return "high"
    if magnitude > _TIER_MEDIUM:
        return "medium"
    return "low"


def estimate_impact(
    confidence: float,
    population_share: float,
    outcome_magnitude: float,
    scale: float,
) -> float:
    """``confidence x share x magnitude x scale`` with *population_share* in percent."""
    return confidence * (population_share / 100) * outcome_magnitude * scale


def _share(count: int, total_records: int) -> float:
    return 0.0 if total_records == 0 else count / total_records * 100


def _outcome_metrics(
    outcomes: Sequence[float],
    baseline: float | None,
) -> tuple[list[SegmentMetric], float | None, float | None]:
    """Outcome mean and lift metrics for a segment, plus (mean, lift) for reuse."""
    if baseline is None or not outcomes:
        return [], None, None
    segment_mean = mean(outcomes)
    segment_lift = lift(segment_mean, baseline)
    return (
        [
            SegmentMetric("Outcome mean", segment_mean),
            SegmentMetric("Lift %", segment_lift),
        ],
        segment_mean,
        segment_lift,
    )


# ---------------------------------------------------------------------------
# Coupling patterns (superposition / entanglement)
# ---------------------------------------------------------------------------


def _coupling_magnitude(
    lead_outcomes: Sequence[float],
    cell_outcomes: Sequence[Sequence[float]],
    baseline: float | None,
) -> float:
    """Outcome shift used for impact.

    With no outcome metric at all the magnitude is 1.  Otherwise it is the
    lead segment's distance from *baseline*, or, when the lead has no outcome
    values, the count-weighted mean distance over cells that do (0 if none).
    """
    if baseline is None:
        return 1.0
    if lead_outcomes:
        return abs(mean(lead_outcomes) - baseline)
    observed = [values for values in cell_outcomes if values]
    total = sum(len(values) for values in observed)
    if total == 0:
        return 0.0
    return sum(len(values) * abs(mean(values) - baseline) for values in observed) / total


def synthesize_coupling_pattern(
    coupling: CouplingResult,
    archetype: Archetype,
    total_records: int,
    baseline: float | None,
    config: AnalysisConfig,
    *,
    sequence: int = 0,
) -> Pattern:
    """Build a ``Pattern`` from a qualifying coupling.

    Segments are the non-empty cells of the table, most over-represented
    first (by adjusted residual); the first one is the lead segment that
    drives impact and tier.
    """
    table = coupling.table
    row_dim, col_dim = coupling.row_dimension, coupling.col_dimension

    ranked: list[tuple[float, Segment, list[float]]] = []
    for row in table.row_labels:
        for col in table.col_labels:
            cell = table.cell(row, col)
            if cell.count == 0:
                continue
            residual = adjusted_residual(
                cell.count, table.row_totals[row], table.col_totals[col], table.grand_total,
            )
            concentration = concentration_ratio(
                cell.count, table.row_totals[row], table.col_totals[col], table.grand_total,
            )
            outcome_metrics, _, _ = _outcome_metrics(cell.outcomes, baseline)
            segment = Segment(
                name=f"{row_dim.attribute}={row} & {col_dim.attribute}={col}",
                population_share=_share(cell.count, total_records),
                sample_size=cell.count,
                metrics=(
                    SegmentMetric("Sample count", cell.count),
                    SegmentMetric("Concentration", concentration),
                    SegmentMetric("Residual", residual),
                    *outcome_metrics,
                ),
            )
            ranked.append((residual, segment, cell.outcomes))

    # Stable sort keeps row/column order among equal residuals
    ranked.sort(key=lambda item: item[0], reverse=True)
    segments = tuple(segment for _, segment, _ in ranked)

    confidence = pattern_confidence(coupling.strength, coupling.significance)
    _, lead, lead_outcomes = ranked[0] if ranked else (0.0, None, [])
    _, _, lead_lift = _outcome_metrics(lead_outcomes, baseline)
    magnitude = _coupling_magnitude(
        lead_outcomes, [outcomes for _, _, outcomes in ranked], baseline,
    )
    impact = estimate_impact(
        confidence,
        lead.population_share if lead else 0.0,
        magnitude,
        config.impact_scale_factor,
    )

    if archetype is Archetype.SUPERPOSITION:
        title = f"Multi-State {row_dim.label} / {col_dim.label} Pattern"
        framing = "Respondents occupy several linked combinations of"
    else:
        title = f"Linked {row_dim.label} and {col_dim.label}"
        framing = "Responses move together across"
    description = (
        f"{framing} {row_dim.label} and {col_dim.label} "
        f"(Cramér's V {coupling.strength:.2f}, p={coupling.significance:.3g}, "
        f"n={coupling.sample_size})."
    )
    if lead is not None:
        description += (
            f" {lead.name} is the most over-represented combination "
            f"({lead.metric('Concentration'):.1f}x expected)."
        )

    return Pattern(
        id=f"{archetype.value}:{row_dim.key}:{col_dim.key}",
        archetype=archetype,
        dimensions=(row_dim, col_dim),
        title=title,
        description=description,
        confidence=confidence,
        significance=coupling.significance,
        strength=coupling.strength,
        sample_size=coupling.sample_size,
        segments=segments,
        impact=impact,
        confidence_label=confidence_label(confidence),
        impact_tier=impact_tier(lead_lift),
        sequence=sequence,
    )


# ---------------------------------------------------------------------------
# Interference patterns
# ---------------------------------------------------------------------------


def synthesize_interference_pattern(
    result: InterferenceResult,
    outcomes: Mapping[int, float],
    total_records: int,
    config: AnalysisConfig,
    *,
    sequence: int = 0,
) -> Pattern:
    """Build a ``Pattern`` from a qualifying segment intersection.

    Segments are the three disjoint groups: both, first only, second only.
    """
    first, second = result.first, result.second
    baseline = result.baseline
    groups = [
        (f"{first.name} & {second.name}", result.intersection),
        (f"{first.name} only", first.record_indices - second.record_indices),
        (f"{second.name} only", second.record_indices - first.record_indices),
    ]

    segments: list[Segment] = []
    for position, (name, members) in enumerate(groups):
        if not members:
            continue
        values = [outcomes[i] for i in sorted(members)]
        outcome_metrics, _, _ = _outcome_metrics(values, baseline)
        metrics = [SegmentMetric("Sample count", len(members)), *outcome_metrics]
        if position == 0:
            metrics.append(SegmentMetric("Predicted mean", result.predicted_mean))
            metrics.append(SegmentMetric("Amplitude", result.amplitude))
        segments.append(
            Segment(
                name=name,
                population_share=_share(len(members), total_records),
                sample_size=len(members),
                metrics=tuple(metrics),
            )
        )

    confidence = pattern_confidence(result.strength, result.significance)
    lead = segments[0]
    impact = estimate_impact(
        confidence,
        lead.population_share,
        abs(result.observed_mean - baseline),
        config.impact_scale_factor,
    )

    kind = "Constructive" if result.constructive else "Destructive"
    direction = "above" if result.constructive else "below"
    outcome_name = snake_case(config.outcome_attribute).replace("_", " ")
    description = (
        f"{first.name} and {second.name} together average {result.observed_mean:.2f} "
        f"on {outcome_name}, {abs(result.amplitude):.2f} {direction} the additive "
        f"prediction of {result.predicted_mean:.2f} (baseline {baseline:.2f})."
    )

    return Pattern(
        id=(
            f"interference:{first.dimension.key}={first.value_bin.label}"
            f":{second.dimension.key}={second.value_bin.label}"
        ),
        archetype=Archetype.INTERFERENCE,
        dimensions=result.dimensions,
        title=f"{kind} Interference: {first.name} x {second.name}",
        description=description,
        confidence=confidence,
        significance=result.significance,
        strength=result.strength,
        sample_size=len(result.intersection),
        segments=tuple(segments),
        impact=impact,
        confidence_label=confidence_label(confidence),
        impact_tier=impact_tier(lift(result.observed_mean, baseline)),
        amplitude=result.amplitude,
        sequence=sequence,
    )


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


def rank_patterns(
    patterns: Sequence[Pattern],
    *,
    max_patterns: int | None = None,
) -> list[Pattern]:
    """Sort by ``confidence x |impact|`` descending.

    Ties break on archetype (superposition, entanglement, interference), then
    on canonical enumeration order.
    """
    ordered = sorted(
        patterns,
        key=lambda p: (-p.score, ARCHETYPE_ORDER[p.archetype], p.sequence),
    )
    if max_patterns is not None:
        ordered = ordered[:max_patterns]
    return ordered
