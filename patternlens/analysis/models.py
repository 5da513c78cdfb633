"""Data structures for pattern detection.

These are plain dataclasses (not Pydantic).  They're ephemeral, created per
``analyze()`` call and discarded after.  Objects handed to the caller
(``Pattern``, ``Segment``) are frozen so the presentation layer can't mutate
them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from patternlens.errors import AnalysisWarning
from patternlens.models import CATEGORY_LABELS


class Archetype(str, Enum):
    SUPERPOSITION = "superposition"
    ENTANGLEMENT = "entanglement"
    INTERFERENCE = "interference"


# Tie-break order in the final ranking
ARCHETYPE_ORDER = {
    Archetype.SUPERPOSITION: 0,
    Archetype.ENTANGLEMENT: 1,
    Archetype.INTERFERENCE: 2,
}


@dataclass(frozen=True, order=True)
class Dimension:
    """A (category, attribute) pair along which respondents vary.

    Ordering is lexicographic by category then attribute, which is the
    canonical enumeration order for every downstream stage.
    """

    category: str
    attribute: str

    @property
    def key(self) -> str:
        return f"{self.category}.{self.attribute}"

    @property
    def label(self) -> str:
        """Display name, e.g. ``Demographic: age bucket``."""
        category = CATEGORY_LABELS.get(self.category, self.category)
        name = self.attribute.replace("_", " ")
        return f"{category}: {name}"

    def same_category(self, other: Dimension) -> bool:
        return self.category == other.category


@dataclass(frozen=True)
class ValueBin:
    """One discrete cell of a dimension's value domain."""

    index: int
    label: str
    lower: float | None = None  # numeric bins only, inclusive
    upper: float | None = None  # numeric bins only, inclusive


@dataclass
class Binning:
    """Value → bin assignment for one dimension, built from observed values."""

    dimension: Dimension
    kind: str  # "categorical" or "numeric"
    bins: list[ValueBin]
    edges: list[float] = field(default_factory=list)  # numeric cut points
    lookup: dict[str | int, ValueBin] = field(default_factory=dict)  # label or numeric slot


@dataclass
class BinAssignment:
    """Record index → bin for every record that has the dimension."""

    binning: Binning
    bins: dict[int, ValueBin] = field(default_factory=dict)

    @property
    def dimension(self) -> Dimension:
        return self.binning.dimension


@dataclass
class TableCell:
    """One cell of a contingency table."""

    count: int = 0
    record_indices: list[int] = field(default_factory=list)
    outcomes: list[float] = field(default_factory=list)  # outcome values present


@dataclass
class ContingencyTable:
    """A row-bin x column-bin co-occurrence table for one dimension pair.

    Rows and columns hold only the bins observed among the records that have
    both attributes, in bin order.
    """

    row_dimension: Dimension
    col_dimension: Dimension
    row_labels: list[str] = field(default_factory=list)
    col_labels: list[str] = field(default_factory=list)
    cells: dict[tuple[str, str], TableCell] = field(default_factory=dict)
    row_totals: dict[str, int] = field(default_factory=dict)
    col_totals: dict[str, int] = field(default_factory=dict)
    grand_total: int = 0

    def cell(self, row: str, col: str) -> TableCell:
        return self.cells[(row, col)]

    def counts(self) -> list[list[int]]:
        """Counts as a row-major nested list in label order."""
        return [
            [self.cells[(row, col)].count for col in self.col_labels]
            for row in self.row_labels
        ]


@dataclass
class CouplingResult:
    """Association between two dimensions, with the table that produced it."""

    row_dimension: Dimension
    col_dimension: Dimension
    strength: float  # Cramér's V, 0–1
    significance: float  # chi-square p-value, 0–1
    chi_square: float
    degrees_of_freedom: int
    sample_size: int
    table: ContingencyTable
    degenerate: bool = False

    @property
    def same_category(self) -> bool:
        return self.row_dimension.same_category(self.col_dimension)


@dataclass
class SegmentDefinition:
    """A single-dimension segment used in interference analysis."""

    dimension: Dimension
    value_bin: ValueBin
    record_indices: frozenset[int]
    outcome_mean: float = 0.0

    @property
    def name(self) -> str:
        return f"{self.dimension.attribute}={self.value_bin.label}"


@dataclass
class InterferenceResult:
    """Observed vs additive-predicted outcome for a segment intersection."""

    first: SegmentDefinition
    second: SegmentDefinition
    intersection: frozenset[int]
    baseline: float
    outcome_std: float
    first_mean: float
    second_mean: float
    observed_mean: float
    predicted_mean: float
    amplitude: float  # observed - predicted
    strength: float
    significance: float

    @property
    def constructive(self) -> bool:
        return self.amplitude > 0

    @property
    def dimensions(self) -> tuple[Dimension, Dimension]:
        return (self.first.dimension, self.second.dimension)


@dataclass(frozen=True)
class SegmentMetric:
    label: str
    value: float | int | str


@dataclass(frozen=True)
class Segment:
    """A named sub-population with its share of the dataset and metrics."""

    name: str
    population_share: float  # percent of all records, 0–100
    sample_size: int
    metrics: tuple[SegmentMetric, ...] = ()

    def metric(self, label: str) -> float | int | str | None:
        for m in self.metrics:
            if m.label == label:
                return m.value
        return None


@dataclass(frozen=True)
class Pattern:
    """A reportable finding."""

    id: str
    archetype: Archetype
    dimensions: tuple[Dimension, ...]
    title: str
    description: str
    confidence: float  # strength x (1 - significance), 0–1
    significance: float
    strength: float
    sample_size: int
    segments: tuple[Segment, ...]
    impact: float
    confidence_label: str  # "strong", "moderate", "emerging"
    impact_tier: str  # "critical", "high", "medium", "low"
    amplitude: float | None = None  # interference only
    sequence: int = field(default=0, compare=False, repr=False)  # canonical enumeration order

    @property
    def score(self) -> float:
        """Ranking key: confidence x |impact|."""
        return self.confidence * abs(self.impact)


@dataclass
class AnalysisResult:
    """Complete engine output plus run diagnostics."""

    patterns: list[Pattern]
    catalog: list[Dimension]
    total_records: int
    outcome_baseline: float | None = None
    outcome_std: float | None = None
    couplings_evaluated: int = 0
    combinations_evaluated: int = 0
    warnings: list[AnalysisWarning] = field(default_factory=list)
