"""Discretise a dimension's values into bins.

Categorical attributes use their literal values as bins.  Numeric attributes
are cut at quantiles of the sorted observed values, so the result does not
depend on record order.  Heavily tied data can collapse cut points; bins that
end up empty are dropped rather than reported as zero rows.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable, Sequence

import numpy as np

from patternlens.analysis.catalog import collect_values
from patternlens.analysis.models import BinAssignment, Binning, Dimension, ValueBin
from patternlens.models import AttributeValue, RespondentRecord

CATEGORICAL = "categorical"
NUMERIC = "numeric"


def is_numeric(value: AttributeValue) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def category_label(value: AttributeValue) -> str:
    """Literal bin label for a categorical value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def _range_label(lower: float, upper: float) -> str:
    if lower == upper:
        return f"{lower:g}"
    return f"{lower:g} to {upper:g}"


def build_binning(
    dimension: Dimension,
    values: Iterable[AttributeValue],
    bin_count: int = 4,
) -> Binning:
    """Build the bins for *dimension* from every observed value.

    A dimension is numeric only when every observed value is a number;
    anything mixed is treated as categorical on the string form.
    """
    observed = list(values)
    if observed and all(is_numeric(v) for v in observed):
        return _numeric_binning(dimension, observed, bin_count)
    return _categorical_binning(dimension, observed)


def assign_bin(binning: Binning, value: AttributeValue) -> ValueBin:
    """Return the bin *value* falls into.

    *value* must be one of the values the binning was built from (or, for
    numeric bins, lie inside the observed range).
    """
    if binning.kind == NUMERIC:
        return binning.lookup[bisect_right(binning.edges, float(value))]
    return binning.lookup[category_label(value)]


def _categorical_binning(dimension: Dimension, values: list[AttributeValue]) -> Binning:
    labels = sorted({category_label(v) for v in values})
    bins = [ValueBin(index=i, label=label) for i, label in enumerate(labels)]
    return Binning(
        dimension=dimension,
        kind=CATEGORICAL,
        bins=bins,
        lookup={b.label: b for b in bins},
    )


def _numeric_binning(
    dimension: Dimension,
    values: list[AttributeValue],
    bin_count: int,
) -> Binning:
    arr = np.sort(np.asarray(values, dtype=float))
    cuts = np.quantile(arr, np.arange(1, bin_count) / bin_count)
    edges = sorted({float(c) for c in cuts})

    slots = np.searchsorted(np.asarray(edges), arr, side="right")
    bins: list[ValueBin] = []
    lookup: dict[str | int, ValueBin] = {}
    for slot in sorted(set(slots.tolist())):
        members = arr[slots == slot]
        lower, upper = float(members[0]), float(members[-1])
        value_bin = ValueBin(
            index=len(bins),
            label=_range_label(lower, upper),
            lower=lower,
            upper=upper,
        )
        bins.append(value_bin)
        lookup[int(slot)] = value_bin

    return Binning(
        dimension=dimension,
        kind=NUMERIC,
        bins=bins,
        edges=edges,
        lookup=lookup,
    )


def assign_records(
    records: Sequence[RespondentRecord],
    dimension: Dimension,
    bin_count: int = 4,
) -> BinAssignment:
    """Bin *dimension* and assign every record that has it."""
    values = collect_values(records, dimension)
    binning = build_binning(dimension, values.values(), bin_count)
    return BinAssignment(
        binning=binning,
        bins={index: assign_bin(binning, value) for index, value in values.items()},
    )
