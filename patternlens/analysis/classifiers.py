"""Classify statistical findings into the three pattern archetypes.

- **Superposition** — strong coupling between two attributes of the *same*
  category: the category's sub-populations are not independent, respondents
  occupy several jointly-active attribute combinations.
- **Entanglement** — strong coupling across *different* categories, e.g. a
  behavioral attribute tracking a psychographic one.
- **Interference** — a segment intersection whose outcome deviates from the
  additive combination of the two segments' individual effects.

Candidates are always evaluated in canonical catalog order, so the output
order is reproducible before ranking.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from itertools import combinations

from patternlens.analysis.metrics import (
    additive_prediction,
    effect_strength,
    interference_amplitude,
    mean,
    one_sample_p_value,
)
from patternlens.analysis.models import (
    BinAssignment,
    CouplingResult,
    Dimension,
    InterferenceResult,
    SegmentDefinition,
)
from patternlens.config import AnalysisConfig
from patternlens.errors import AnalysisWarning, InsufficientDataWarning

logger = logging.getLogger(__name__)

Mapper = Callable[..., Iterable]


def qualifies(coupling: CouplingResult, config: AnalysisConfig) -> bool:
    """Strong enough and significant enough to report."""
    return (
        not coupling.degenerate
        and coupling.sample_size >= config.min_sample_size
        and coupling.strength >= config.association_threshold
        and coupling.significance <= config.significance_threshold
    )


def detect_superposition(
    couplings: Sequence[CouplingResult],
    config: AnalysisConfig,
) -> list[CouplingResult]:
    """Qualifying same-category couplings, in input order."""
    return [c for c in couplings if c.same_category and qualifies(c, config)]


def detect_entanglement(
    couplings: Sequence[CouplingResult],
    config: AnalysisConfig,
) -> list[CouplingResult]:
    """Qualifying cross-category couplings, in input order."""
    return [c for c in couplings if not c.same_category and qualifies(c, config)]


# ---------------------------------------------------------------------------
# Interference
# ---------------------------------------------------------------------------


def build_segments(
    catalog: Sequence[Dimension],
    assignments: Mapping[Dimension, BinAssignment],
    outcomes: Mapping[int, float],
    *,
    exclude: Iterable[Dimension] = (),
) -> list[SegmentDefinition]:
    """One segment per (dimension, bin), restricted to records with an outcome.

    The outcome's own dimension is passed in *exclude*: its bins would
    trivially "interfere" with everything.
    """
    skip = set(exclude)
    segments: list[SegmentDefinition] = []
    for dimension in catalog:
        if dimension in skip:
            continue
        assignment = assignments[dimension]
        members: dict[int, set[int]] = {}
        for index, value_bin in assignment.bins.items():
            if index in outcomes:
                members.setdefault(value_bin.index, set()).add(index)
        for value_bin in assignment.binning.bins:
            indices = members.get(value_bin.index)
            if indices:
                segments.append(
                    SegmentDefinition(
                        dimension=dimension,
                        value_bin=value_bin,
                        record_indices=frozenset(indices),
                        outcome_mean=mean([outcomes[i] for i in sorted(indices)]),
                    )
                )
    return segments


def segment_combinations(
    segments: Sequence[SegmentDefinition],
) -> Iterator[tuple[SegmentDefinition, SegmentDefinition]]:
    """Pairs of segments on different dimensions, in canonical order."""
    for first, second in combinations(segments, 2):
        if first.dimension != second.dimension:
            yield first, second


def evaluate_combination(
    first: SegmentDefinition,
    second: SegmentDefinition,
    outcomes: Mapping[int, float],
    baseline: float,
    outcome_std: float,
    min_sample_size: int,
) -> InterferenceResult | None:
    """Compare the intersection's outcome with the additive prediction.

    Returns None when the intersection is smaller than *min_sample_size*.
    """
    intersection = first.record_indices & second.record_indices
    if len(intersection) < min_sample_size:
        return None

    observed_values = [outcomes[i] for i in sorted(intersection)]
    first_mean = first.outcome_mean
    second_mean = second.outcome_mean
    observed_mean = mean(observed_values)
    predicted = additive_prediction(baseline, first_mean, second_mean)
    amplitude = interference_amplitude(observed_mean, baseline, first_mean, second_mean)

    return InterferenceResult(
        first=first,
        second=second,
        intersection=frozenset(intersection),
        baseline=baseline,
        outcome_std=outcome_std,
        first_mean=first_mean,
        second_mean=second_mean,
        observed_mean=observed_mean,
        predicted_mean=predicted,
        amplitude=amplitude,
        strength=effect_strength(amplitude, outcome_std),
        significance=one_sample_p_value(observed_values, predicted),
    )


def detect_interference(
    segments: Sequence[SegmentDefinition],
    outcomes: Mapping[int, float],
    baseline: float,
    outcome_std: float,
    config: AnalysisConfig,
    *,
    mapper: Mapper = map,
    warnings: list[AnalysisWarning] | None = None,
) -> tuple[list[InterferenceResult], int]:
    """Segment intersections whose |amplitude| exceeds the threshold.

    *mapper* runs the per-combination evaluation (``map`` or an executor's
    ``map``; both preserve input order).  Returns the qualifying results and
    the number of combinations evaluated.
    """
    if outcome_std <= 0 or not segments:
        return [], 0

    pairs = list(segment_combinations(segments))
    evaluated = mapper(
        lambda pair: evaluate_combination(
            pair[0], pair[1], outcomes, baseline, outcome_std, config.min_sample_size,
        ),
        pairs,
    )
    cutoff = config.interference_threshold * outcome_std

    found: list[InterferenceResult] = []
    for (first, second), result in zip(pairs, evaluated):
        if result is None:
            if warnings is not None:
                warnings.append(
                    InsufficientDataWarning(
                        f"{first.name} & {second.name}",
                        f"intersection below minimum sample size {config.min_sample_size}",
                    )
                )
            continue
        if abs(result.amplitude) > cutoff:
            found.append(result)

    logger.debug(
        "Interference: %d combination(s), %d above %.3f", len(pairs), len(found), cutoff,
    )
    return found, len(pairs)
