"""Exceptions and non-fatal analysis warnings.

Only ``InvalidRecordError`` is ever raised to the caller.  The warning classes
are instantiated and *recorded* on the ``AnalysisResult`` so the caller can
inspect why a candidate produced no pattern; they are never raised and never
routed through ``warnings.warn``.
"""

from __future__ import annotations


class InvalidRecordError(ValueError):
    """A respondent record violates the ingestion contract.

    Raised for category values that are neither scalar nor categorical
    (lists, dicts, ``None``, NaN) and for unknown top-level fields.
    """

    def __init__(self, message: str, *, index: int | None = None) -> None:
        self.index = index
        if index is not None:
            message = f"record {index}: {message}"
        super().__init__(message)


class AnalysisWarning(UserWarning):
    """Base class for conditions that exclude a candidate without failing the run."""

    def __init__(self, subject: str, detail: str) -> None:
        self.subject = subject
        self.detail = detail
        super().__init__(f"{subject}: {detail}")


class InsufficientDataWarning(AnalysisWarning):
    """A dimension pair or segment combination fell below ``min_sample_size``."""


class DegenerateTableWarning(AnalysisWarning):
    """A contingency table had a zero marginal or a single row/column."""
