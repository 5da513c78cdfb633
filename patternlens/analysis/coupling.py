"""Association strength and significance for a contingency table."""

from __future__ import annotations

from patternlens.analysis.metrics import chi_square_p_value, cramers_v, pearson_chi_square
from patternlens.analysis.models import ContingencyTable, CouplingResult


def is_degenerate(table: ContingencyTable) -> bool:
    """True when the table can't carry an association.

    That is: fewer than two rows or columns, or any zero marginal.
    """
    if len(table.row_labels) < 2 or len(table.col_labels) < 2:
        return True
    if any(total == 0 for total in table.row_totals.values()):
        return True
    return any(total == 0 for total in table.col_totals.values())


def estimate_coupling(table: ContingencyTable) -> CouplingResult:
    """Cramér's V and the chi-square p-value for *table*.

    Degenerate tables report strength 0 and significance 1 rather than
    dividing by zero.  The result is symmetric: transposing the table gives
    the same strength and significance.
    """
    rows, cols = len(table.row_labels), len(table.col_labels)
    dof = max(rows - 1, 0) * max(cols - 1, 0)
    n = table.grand_total

    if is_degenerate(table):
        return CouplingResult(
            row_dimension=table.row_dimension,
            col_dimension=table.col_dimension,
            strength=0.0,
            significance=1.0,
            chi_square=0.0,
            degrees_of_freedom=dof,
            sample_size=n,
            table=table,
            degenerate=True,
        )

    chi2 = pearson_chi_square(table.counts())
    return CouplingResult(
        row_dimension=table.row_dimension,
        col_dimension=table.col_dimension,
        strength=cramers_v(chi2, n, rows, cols),
        significance=chi_square_p_value(chi2, dof),
        chi_square=chi2,
        degrees_of_freedom=dof,
        sample_size=n,
        table=table,
    )
