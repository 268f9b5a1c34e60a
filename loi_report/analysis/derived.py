"""Derived column computation.

This module computes the columns appended to each school record:
score change, rank change, name word count and the academy-name flag.
Derived columns are computed once, in a fixed order, and are read-only
afterwards. Missing inputs propagate as missing values.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import pandas as pd

from loi_report.analysis.text import ACADEMY_WORDS, is_academy_name, word_count

logger = logging.getLogger(__name__)

DERIVED_COLUMNS = ("score_change", "rank_change", "name_word_count", "is_academy")


@dataclass
class DerivedColumnResult:
    """Result from computing a derived column.

    Attributes:
        column: Name of the computed column
        values: Computed values as pandas Series
        formula: Formula used for computation
        missing_count: Number of records with insufficient data
        completeness: Fraction of valid results
    """

    column: str
    values: pd.Series
    formula: str
    missing_count: int = 0
    completeness: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (excluding large data)."""
        return {
            "column": self.column,
            "formula": self.formula,
            "missing_count": self.missing_count,
            "completeness": self.completeness,
            "value_count": len(self.values) - self.missing_count,
        }

    def format_for_display(self) -> str:
        """Format as human-readable string."""
        valid = self.values.dropna()
        lines = [f"**{self.column}** (n={len(valid)})", f"  Formula: {self.formula}"]
        if len(valid) > 0 and self.values.dtype != bool:
            lines.append(f"  Range: [{float(valid.min()):.4g}, {float(valid.max()):.4g}]")
        lines.append(f"  Completeness: {self.completeness:.1%}")
        return "\n".join(lines)


def compute_derived_column(
    df: pd.DataFrame,
    column: str,
    academy_words: Iterable[str] | None = None,
) -> DerivedColumnResult:
    """Compute one derived column.

    Args:
        df: DataFrame with canonical LOI columns
        column: Name of the derived column
        academy_words: Word list for ``is_academy`` (default ACADEMY_WORDS)

    Returns:
        DerivedColumnResult with values and metadata

    Raises:
        ValueError: For an unknown column or missing inputs
    """
    if column == "score_change":
        return _compute_difference(df, "score_a", "score_b", column)
    elif column == "rank_change":
        return _compute_difference(df, "rank_a", "rank_b", column)
    elif column == "name_word_count":
        return _compute_word_count(df)
    elif column == "is_academy":
        return _compute_academy_flag(df, academy_words)
    else:
        raise ValueError(
            f"Unknown derived column: {column}. "
            f"Supported: {', '.join(DERIVED_COLUMNS)}"
        )


def add_derived_columns(
    df: pd.DataFrame,
    academy_words: Iterable[str] | None = None,
) -> pd.DataFrame:
    """Return a copy of the frame with every derived column appended.

    Columns are appended in DERIVED_COLUMNS order. Existing columns of the
    same name are replaced.
    """
    enriched = df.drop(columns=[c for c in DERIVED_COLUMNS if c in df.columns])
    for column in DERIVED_COLUMNS:
        result = compute_derived_column(enriched, column, academy_words=academy_words)
        enriched[column] = result.values
        if result.missing_count:
            logger.debug(f"{column}: {result.missing_count} missing values")
    return enriched


def _completeness(values: pd.Series) -> tuple[int, float]:
    missing = int(values.isna().sum())
    completeness = 1.0 - (missing / len(values)) if len(values) > 0 else 0.0
    return missing, completeness


def _compute_difference(
    df: pd.DataFrame,
    before: str,
    after: str,
    column: str,
) -> DerivedColumnResult:
    """Compute ``after - before``. Missing on either side gives missing."""
    for required in (before, after):
        if required not in df.columns:
            raise ValueError(f"{column} requires {before} and {after} columns")

    values = (df[after] - df[before]).rename(column)
    missing, completeness = _completeness(values)

    return DerivedColumnResult(
        column=column,
        values=values,
        formula=f"{after} - {before}",
        missing_count=missing,
        completeness=completeness,
    )


def _compute_word_count(df: pd.DataFrame) -> DerivedColumnResult:
    """Count whitespace-separated words in each name."""
    if "name" not in df.columns:
        raise ValueError("name_word_count requires a name column")

    values = df["name"].map(word_count, na_action="ignore").astype("Int64")
    values = values.rename("name_word_count")
    missing, completeness = _completeness(values)

    return DerivedColumnResult(
        column="name_word_count",
        values=values,
        formula="len(name.split())",
        missing_count=missing,
        completeness=completeness,
    )


def _compute_academy_flag(
    df: pd.DataFrame,
    academy_words: Iterable[str] | None,
) -> DerivedColumnResult:
    """Flag names containing an academy-style word. Missing names are False."""
    if "name" not in df.columns:
        raise ValueError("is_academy requires a name column")

    words = frozenset(academy_words) if academy_words is not None else ACADEMY_WORDS
    values = df["name"].map(lambda n: is_academy_name(n, words)).astype(bool)

    return DerivedColumnResult(
        column="is_academy",
        values=values.rename("is_academy"),
        formula=f"name contains any of {sorted(words)}",
        missing_count=0,
        completeness=1.0 if len(values) > 0 else 0.0,
    )


def get_available_derived_columns() -> dict[str, dict[str, Any]]:
    """Get information about available derived columns.

    Returns:
        Dictionary mapping column names to their metadata
    """
    return {
        "score_change": {
            "description": "Change in LOI score between years",
            "requires": ["score_a", "score_b"],
        },
        "rank_change": {
            "description": "Change in LOI rank between years",
            "requires": ["rank_a", "rank_b"],
        },
        "name_word_count": {
            "description": "Number of words in the school name",
            "requires": ["name"],
        },
        "is_academy": {
            "description": "Name contains Institute, Collegiate or Academy",
            "requires": ["name"],
        },
    }
