"""Low-level statistical functions for pattern detection.

Pure arithmetic over counts and outcome values: no record access, no
dataclasses.  Higher-level code (coupling estimator, classifiers, ranking)
calls these.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np
from scipy import stats


def pearson_chi_square(counts: Sequence[Sequence[int]]) -> float:
    """Pearson chi-square statistic against the independence expectation.

    Returns 0 when any marginal is zero (the expectation is undefined there).
    """
    observed = np.asarray(counts, dtype=float)
    if observed.size == 0:
        return 0.0
    row_totals = observed.sum(axis=1)
    col_totals = observed.sum(axis=0)
    grand_total = observed.sum()
    if grand_total == 0 or (row_totals == 0).any() or (col_totals == 0).any():
        return 0.0
    expected = np.outer(row_totals, col_totals) / grand_total
    return float(((observed - expected) ** 2 / expected).sum())


def cramers_v(chi_square: float, n: int, rows: int, cols: int) -> float:
    """Cramér's V: ``sqrt(chi2 / (n * (min(r, c) - 1)))``, clipped to [0, 1].

    0 = no association, 1 = perfect association.  Degenerate shapes
    (a single row or column, or no records) return 0.
    """
    k = min(rows, cols) - 1
    if n <= 0 or k <= 0:
        return 0.0
    return min(1.0, math.sqrt(max(chi_square, 0.0) / (n * k)))


def chi_square_p_value(chi_square: float, dof: int) -> float:
    """Upper-tail probability of *chi_square* under ``dof`` degrees of freedom."""
    if dof <= 0:
        return 1.0
    return float(stats.chi2.sf(chi_square, dof))


def concentration_ratio(
    cell_count: int,
    row_total: int,
    col_total: int,
    grand_total: int,
) -> float:
    """How overrepresented a cell is relative to independence.

    Returns observed/expected where:
      expected = row_total * col_total / grand_total
      observed = cell_count

    Result: 1.0 = expected, >1 = overrepresented, <1 = underrepresented.
    """
    if grand_total == 0 or row_total == 0 or col_total == 0:
        return 0.0
    expected = row_total * col_total / grand_total
    return 0.0 if expected == 0 else cell_count / expected


def adjusted_residual(
    observed: int,
    row_total: int,
    col_total: int,
    grand_total: int,
) -> float:
    """Adjusted standardised residual of one cell.

    Measures how much a cell deviates from statistical independence.
    Values > 2 indicate notable concentration; < -2 indicate depletion.
    """
    if grand_total == 0 or row_total == 0 or col_total == 0:
        return 0.0
    expected = (row_total * col_total) / grand_total
    if expected == 0:
        return 0.0
    denom = math.sqrt(
        expected * (1 - row_total / grand_total) * (1 - col_total / grand_total)
    )
    return 0.0 if denom == 0 else (observed - expected) / denom


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean.  Returns 0 for an empty sequence."""
    if not values:
        return 0.0
    return float(np.mean(values))


def population_std(values: Sequence[float]) -> float:
    """Population standard deviation (ddof=0).  Returns 0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    return float(np.std(values))


def lift(segment_mean: float, baseline: float) -> float:
    """Percent difference of a segment's outcome mean from the baseline.

    Returns 0 when the baseline is 0 (a relative change is undefined).
    """
    if baseline == 0:
        return 0.0
    return (segment_mean - baseline) / abs(baseline) * 100


def additive_prediction(baseline: float, first_mean: float, second_mean: float) -> float:
    """Outcome predicted for an intersection if the two segment effects simply add."""
    return baseline + (first_mean - baseline) + (second_mean - baseline)


def interference_amplitude(
    observed_mean: float,
    baseline: float,
    first_mean: float,
    second_mean: float,
) -> float:
    """Observed minus additive-predicted intersection outcome.

    Positive = constructive (the combination beats the sum of its parts),
    negative = destructive.
    """
    return observed_mean - additive_prediction(baseline, first_mean, second_mean)


def effect_strength(amplitude: float, std: float) -> float:
    """Bounded effect size ``d / (1 + d)`` with ``d = |amplitude| / std``."""
    if std <= 0:
        return 0.0
    d = abs(amplitude) / std
    return d / (1 + d)


def one_sample_p_value(values: Sequence[float], target: float) -> float:
    """Two-sided one-sample t-test p-value of *values* against *target*.

    With zero within-sample variance the test is exact: p = 0 when the
    sample mean differs from *target*, else 1.
    """
    n = len(values)
    if n < 2:
        return 1.0
    sample_mean = float(np.mean(values))
    sd = float(np.std(values, ddof=1))
    diff = sample_mean - target
    tolerance = 1e-12 * max(1.0, abs(target))
    if sd <= tolerance:
        return 1.0 if abs(diff) <= tolerance else 0.0
    t_stat = diff / (sd / math.sqrt(n))
    return float(min(1.0, 2 * stats.t.sf(abs(t_stat), n - 1)))
