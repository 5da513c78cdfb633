"""Build row x column contingency tables from binned dimension pairs."""

from __future__ import annotations

from collections.abc import Mapping

from patternlens.analysis.models import BinAssignment, ContingencyTable, TableCell


def build_contingency_table(
    rows: BinAssignment,
    cols: BinAssignment,
    outcomes: Mapping[int, float] | None = None,
) -> ContingencyTable:
    """Cross-tabulate two binned dimensions.

    Only records that have *both* attributes are counted; exclusion is local
    to this pair.  Rows and columns are the bins actually observed among those
    records, in bin order, so no marginal is ever zero by construction.
    Outcome values (when given) are collected per cell for segment synthesis.
    """
    shared = sorted(rows.bins.keys() & cols.bins.keys())
    row_bins = sorted({rows.bins[i] for i in shared}, key=lambda b: b.index)
    col_bins = sorted({cols.bins[i] for i in shared}, key=lambda b: b.index)

    table = _init_table(
        rows, cols, [b.label for b in row_bins], [b.label for b in col_bins],
    )
    for index in shared:
        outcome = outcomes.get(index) if outcomes is not None else None
        _add_record(table, rows.bins[index].label, cols.bins[index].label, index, outcome)
    return table


def _init_table(
    rows: BinAssignment,
    cols: BinAssignment,
    row_labels: list[str],
    col_labels: list[str],
) -> ContingencyTable:
    """Create an empty table with zeroed cells."""
    table = ContingencyTable(
        row_dimension=rows.dimension,
        col_dimension=cols.dimension,
        row_labels=list(row_labels),
        col_labels=list(col_labels),
    )
    for row in row_labels:
        table.row_totals[row] = 0
    for col in col_labels:
        table.col_totals[col] = 0
    for row in row_labels:
        for col in col_labels:
            table.cells[(row, col)] = TableCell()
    return table


def _add_record(
    table: ContingencyTable,
    row: str,
    col: str,
    index: int,
    outcome: float | None,
) -> None:
    """Add one record to the table, updating cell, row, and column totals."""
    cell = table.cells[(row, col)]
    cell.count += 1
    cell.record_indices.append(index)
    if outcome is not None:
        cell.outcomes.append(outcome)
    table.row_totals[row] += 1
    table.col_totals[col] += 1
    table.grand_total += 1
