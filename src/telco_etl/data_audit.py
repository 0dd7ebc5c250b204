"""Read-only data-quality audit of the customer table.

The audit never mutates the table and never stops the pipeline. It reports:
- true nulls per column (None/NaN)
- whitespace-only values in the monetary columns, counted apart from nulls
- customer ids that occur more than once
Findings are logged and raised as `IntegrityWarning` so callers can decide
what to do with them before the normalizer runs.
"""

import warnings
from typing import Dict

import pandas as pd
import structlog
from pydantic import BaseModel, Field

from telco_etl.exceptions import IntegrityWarning
from telco_etl.schema import MONETARY_COLUMNS, PRIMARY_KEY

logger = structlog.get_logger(__name__)


class AuditReport(BaseModel):
    """Result of one audit pass."""

    row_count: int = 0
    null_counts: Dict[str, int] = Field(default_factory=dict)
    blank_counts: Dict[str, int] = Field(default_factory=dict)
    duplicate_ids: Dict[str, int] = Field(default_factory=dict)

    @property
    def total_nulls(self) -> int:
        return sum(self.null_counts.values())

    @property
    def total_blanks(self) -> int:
        return sum(self.blank_counts.values())

    @property
    def has_issues(self) -> bool:
        return bool(self.total_nulls or self.total_blanks or self.duplicate_ids)


class DataAudit:
    """Computes an `AuditReport` for a customer table.

    Args:
        df (pd.DataFrame): table to inspect; it is not modified
        emit_warnings (bool): raise `IntegrityWarning` through `warnings.warn`
            for nulls and duplicate ids
    """

    def __init__(self, df: pd.DataFrame, emit_warnings: bool = True):
        self.df = df
        self.emit_warnings = emit_warnings

    def null_counts(self) -> Dict[str, int]:
        return {col: int(count) for col, count in self.df.isna().sum().items()}

    def blank_counts(self) -> Dict[str, int]:
        """Whitespace-only monetary values. Nulls and parsed numbers are not blanks."""
        counts = {}
        for col in MONETARY_COLUMNS:
            if col not in self.df.columns:
                continue
            blank = self.df[col].map(lambda v: isinstance(v, str) and v.strip() == "")
            counts[col] = int(blank.sum())
        return counts

    def duplicate_ids(self) -> Dict[str, int]:
        if PRIMARY_KEY not in self.df.columns:
            return {}
        counts = self.df[PRIMARY_KEY].value_counts(dropna=True)
        duplicates = counts[counts > 1].sort_index()
        return {str(key): int(count) for key, count in duplicates.items()}

    def __call__(self) -> AuditReport:
        report = AuditReport(
            row_count=len(self.df),
            null_counts=self.null_counts(),
            blank_counts=self.blank_counts(),
            duplicate_ids=self.duplicate_ids(),
        )

        logger.info(
            "Audit finished",
            rows=report.row_count,
            nulls=report.total_nulls,
            blank_charges=report.blank_counts,
            duplicate_ids=len(report.duplicate_ids),
        )

        if report.total_nulls:
            columns = {col: n for col, n in report.null_counts.items() if n}
            logger.warning("Null values found", columns=columns)
            if self.emit_warnings:
                warnings.warn(f"Null values found in columns: {columns}", IntegrityWarning, stacklevel=2)

        if report.duplicate_ids:
            logger.warning("Duplicate customer ids found", duplicates=report.duplicate_ids)
            if self.emit_warnings:
                warnings.warn(
                    f"Duplicate customer ids found: {report.duplicate_ids}", IntegrityWarning, stacklevel=2
                )

        return report
