"""Run the full pattern-detection pass over a respondent dataset.

Stages, leaf-first: dimension catalog → per-dimension binning → pairwise
contingency tables → coupling estimates → classifiers → segment synthesis
and ranking.  Everything is built fresh per call from a ``RunContext``; the
module holds no state between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from itertools import combinations
from typing import Any

from patternlens.analysis.binning import assign_records
from patternlens.analysis.catalog import build_catalog, outcome_dimension, resolve_outcomes
from patternlens.analysis.classifiers import (
    Mapper,
    build_segments,
    detect_entanglement,
    detect_interference,
    detect_superposition,
)
from patternlens.analysis.coupling import estimate_coupling
from patternlens.analysis.matrix import build_contingency_table
from patternlens.analysis.metrics import mean, population_std
from patternlens.analysis.models import (
    AnalysisResult,
    Archetype,
    BinAssignment,
    CouplingResult,
    Dimension,
    Pattern,
)
from patternlens.analysis.ranking import (
    rank_patterns,
    synthesize_coupling_pattern,
    synthesize_interference_pattern,
)
from patternlens.config import AnalysisConfig, load_config
from patternlens.errors import AnalysisWarning, DegenerateTableWarning, InsufficientDataWarning
from patternlens.models import RespondentRecord, validate_records

logger = logging.getLogger(__name__)

ConfigInput = AnalysisConfig | Mapping[str, Any] | None


@dataclass
class RunContext:
    """Everything one ``analyze()`` call derives from its input."""

    records: list[RespondentRecord]
    config: AnalysisConfig
    catalog: list[Dimension]
    assignments: dict[Dimension, BinAssignment]
    outcomes: dict[int, float]
    baseline: float | None = None
    outcome_std: float | None = None
    warnings: list[AnalysisWarning] = field(default_factory=list)


def _resolve_config(config: ConfigInput) -> AnalysisConfig:
    if isinstance(config, AnalysisConfig):
        return config
    if config is None:
        return load_config()
    return load_config(**config)


def build_context(
    records: Sequence[RespondentRecord],
    config: AnalysisConfig,
) -> RunContext:
    """Catalog, bin and resolve outcomes for *records*."""
    catalog = build_catalog(records)
    assignments = {
        dimension: assign_records(records, dimension, config.numeric_bin_count)
        for dimension in catalog
    }
    outcomes = resolve_outcomes(records, config.outcome_source, config.outcome_attribute)

    baseline: float | None = None
    outcome_std: float | None = None
    if outcomes:
        values = [outcomes[i] for i in sorted(outcomes)]
        baseline = mean(values)
        outcome_std = population_std(values)
        # Rounding noise on a constant outcome is not variance
        if outcome_std <= 1e-12 * max(1.0, abs(baseline)):
            outcome_std = 0.0

    return RunContext(
        records=list(records),
        config=config,
        catalog=catalog,
        assignments=assignments,
        outcomes=outcomes,
        baseline=baseline,
        outcome_std=outcome_std,
    )


@contextmanager
def _mapper(max_workers: int) -> Iterator[Mapper]:
    """Order-preserving map: builtin when serial, thread pool otherwise."""
    if max_workers <= 1:
        yield map
        return
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        yield pool.map


def compute_couplings(context: RunContext, mapper: Mapper = map) -> list[CouplingResult]:
    """Coupling estimates for every dimension pair with enough data.

    Pairs are enumerated in catalog order; pairs below ``min_sample_size``
    are skipped and degenerate tables are kept (strength 0) but noted.
    """
    config = context.config
    pairs = list(combinations(context.catalog, 2))

    def evaluate(pair: tuple[Dimension, Dimension]) -> CouplingResult | None:
        table = build_contingency_table(
            context.assignments[pair[0]], context.assignments[pair[1]], context.outcomes,
        )
        if table.grand_total < config.min_sample_size:
            return None
        return estimate_coupling(table)

    couplings: list[CouplingResult] = []
    for (first, second), coupling in zip(pairs, mapper(evaluate, pairs)):
        subject = f"{first.key} x {second.key}"
        if coupling is None:
            _record(context, InsufficientDataWarning(
                subject, f"fewer than {config.min_sample_size} records have both attributes",
            ))
            continue
        if coupling.degenerate:
            _record(context, DegenerateTableWarning(
                subject, "single row/column or zero marginal; treated as no association",
            ))
        couplings.append(coupling)
    return couplings


def _record(context: RunContext, warning: AnalysisWarning) -> None:
    logger.debug("Skipped %s", warning)
    context.warnings.append(warning)


def analyze_with_diagnostics(
    records: Sequence[RespondentRecord | Mapping[str, Any]],
    config: ConfigInput = None,
) -> AnalysisResult:
    """Run the engine and return patterns plus run diagnostics.

    Raises:
        InvalidRecordError: a record failed ingestion validation.
    """
    cfg = _resolve_config(config)
    validated = validate_records(records)
    context = build_context(validated, cfg)
    total = len(validated)

    with _mapper(cfg.max_workers) as mapper:
        couplings = compute_couplings(context, mapper)

        superposition = detect_superposition(couplings, cfg)
        entanglement = detect_entanglement(couplings, cfg)

        interference = []
        combinations_evaluated = 0
        if context.baseline is not None and context.outcome_std:
            excluded = outcome_dimension(cfg.outcome_source, cfg.outcome_attribute)
            segments = build_segments(
                context.catalog,
                context.assignments,
                context.outcomes,
                exclude=[excluded] if excluded is not None else [],
            )
            interference, combinations_evaluated = detect_interference(
                segments,
                context.outcomes,
                context.baseline,
                context.outcome_std,
                cfg,
                mapper=mapper,
                warnings=context.warnings,
            )

    sequence = {id(c): i for i, c in enumerate(couplings)}
    patterns: list[Pattern] = []
    for archetype, found in (
        (Archetype.SUPERPOSITION, superposition),
        (Archetype.ENTANGLEMENT, entanglement),
    ):
        for coupling in found:
            patterns.append(
                synthesize_coupling_pattern(
                    coupling, archetype, total, context.baseline, cfg,
                    sequence=sequence[id(coupling)],
                )
            )
    for i, result in enumerate(interference):
        patterns.append(
            synthesize_interference_pattern(
                result, context.outcomes, total, cfg, sequence=i,
            )
        )

    ranked = rank_patterns(patterns, max_patterns=cfg.max_patterns)
    logger.info(
        "Pattern analysis: %d records, %d dimensions, %d pairs, %d combinations → "
        "%d superposition, %d entanglement, %d interference (%d reported)",
        total,
        len(context.catalog),
        len(couplings),
        combinations_evaluated,
        len(superposition),
        len(entanglement),
        len(interference),
        len(ranked),
    )

    return AnalysisResult(
        patterns=ranked,
        catalog=context.catalog,
        total_records=total,
        outcome_baseline=context.baseline,
        outcome_std=context.outcome_std,
        couplings_evaluated=len(couplings),
        combinations_evaluated=combinations_evaluated,
        warnings=context.warnings,
    )


def analyze(
    records: Sequence[RespondentRecord | Mapping[str, Any]],
    config: ConfigInput = None,
) -> list[Pattern]:
    """Detect, classify and rank patterns in *records*.

    Returns an empty list when nothing qualifies; never raises for "no
    patterns".  Only malformed records raise (``InvalidRecordError``).
    """
    return analyze_with_diagnostics(records, config).patterns
