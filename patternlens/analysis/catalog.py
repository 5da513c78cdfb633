"""Build the dimension catalog and resolve the outcome metric."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from patternlens.analysis.models import Dimension
from patternlens.models import (
    CATEGORIES,
    AttributeValue,
    RespondentRecord,
    camel_case,
    snake_case,
)

logger = logging.getLogger(__name__)


def build_catalog(records: Sequence[RespondentRecord]) -> list[Dimension]:
    """Deduplicated dimensions observed across all records, sorted by (category, attribute)."""
    seen: set[Dimension] = set()
    for record in records:
        for category in CATEGORIES:
            for attribute in record.category(category):
                seen.add(Dimension(category, attribute))
    return sorted(seen)


def collect_values(
    records: Sequence[RespondentRecord],
    dimension: Dimension,
) -> dict[int, AttributeValue]:
    """Map record index → value for every record that has *dimension*."""
    values: dict[int, AttributeValue] = {}
    for index, record in enumerate(records):
        value = record.get(dimension.category, dimension.attribute)
        if value is not None:
            values[index] = value
    return values


def outcome_dimension(source: str, attribute: str) -> Dimension | None:
    """The catalog dimension the outcome lives on, or None for ``response_data``."""
    if source in CATEGORIES:
        return Dimension(source, attribute)
    return None


def outcome_keys(source: str, attribute: str) -> tuple[str, ...]:
    """Attribute spellings tried, in order, when reading the outcome."""
    if source in CATEGORIES:
        return (attribute,)
    return tuple(dict.fromkeys((attribute, snake_case(attribute), camel_case(attribute))))


def _first_present(
    record: RespondentRecord,
    source: str,
    keys: tuple[str, ...],
) -> AttributeValue | None:
    for key in keys:
        value = record.get(source, key)
        if value is not None:
            return value
    return None


def resolve_outcomes(
    records: Sequence[RespondentRecord],
    source: str,
    attribute: str,
) -> dict[int, float]:
    """Map record index → numeric outcome value.

    Records without the attribute, or with a non-numeric value, have no
    outcome and are left out of outcome statistics.  Booleans count as 0/1.
    Survey answers under ``response_data`` are looked up by the literal key
    first, then by its snake_case and camelCase spellings; category
    attributes are matched literally.
    """
    keys = outcome_keys(source, attribute)
    outcomes: dict[int, float] = {}
    skipped = 0
    for index, record in enumerate(records):
        value = _first_present(record, source, keys)
        if value is None:
            continue
        if isinstance(value, str):
            skipped += 1
            continue
        outcomes[index] = float(value)
    if skipped:
        logger.debug(
            "Outcome %s.%s: ignored %d non-numeric value(s)", source, attribute, skipped,
        )
    return outcomes
