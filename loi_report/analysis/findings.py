"""Year-over-year findings: outliers and largest movers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

import pandas as pd

DISPLAY_COLUMNS = ["id", "name", "type", "score_a", "score_b", "score_change", "rank_a", "rank_b", "rank_change"]


@dataclass
class OutlierResult:
    """Schools selected by a change criterion.

    Attributes:
        column: Column the criterion applies to
        criterion: Human-readable criterion, e.g. "score_change > 0.2"
        schools: Matching records, ordered by the column
    """

    column: str
    criterion: str
    schools: pd.DataFrame

    @property
    def count(self) -> int:
        return len(self.schools)

    @property
    def names(self) -> list[str]:
        return self.schools["name"].tolist() if "name" in self.schools.columns else []

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "column": self.column,
            "criterion": self.criterion,
            "count": self.count,
            "schools": self.schools.to_dict(orient="records"),
        }

    def format_for_display(self) -> str:
        """Format as human-readable string."""
        if self.schools.empty:
            return f"No schools with {self.criterion}."

        lines = [f"**{self.count} school(s) with {self.criterion}:**"]
        for _, row in self.schools.iterrows():
            lines.append(f"- {row.get('name', '?')} ({row.get('type', '?')}): {self.column} = {row[self.column]:+.4g}")
        return "\n".join(lines)


def _display_frame(df: pd.DataFrame) -> pd.DataFrame:
    return df[[c for c in DISPLAY_COLUMNS if c in df.columns]]


def find_score_outliers(
    df: pd.DataFrame,
    threshold: float = 0.2,
    column: str = "score_change",
) -> OutlierResult:
    """Schools whose change is strictly above a threshold.

    Records with a missing change are never selected.

    Args:
        df: Enriched LOI records
        threshold: Change above which a school is an outlier
        column: Change column to test

    Returns:
        OutlierResult ordered by change, largest first
    """
    if column not in df.columns:
        raise ValueError(f"Column {column} not found; enrich the dataset first")

    values = pd.to_numeric(df[column], errors="coerce")
    selected = df[values.gt(threshold).fillna(False).astype(bool)]
    selected = selected.sort_values(column, ascending=False)

    return OutlierResult(
        column=column,
        criterion=f"{column} > {threshold:g}",
        schools=_display_frame(selected).reset_index(drop=True),
    )


def largest_movers(
    df: pd.DataFrame,
    column: str = "score_change",
    n: int = 5,
    direction: Literal["up", "down"] = "up",
    school_type: str | None = None,
) -> OutlierResult:
    """The ``n`` schools with the largest change in one direction.

    Args:
        df: Enriched LOI records
        column: Change column to rank by
        n: Number of schools
        direction: "up" for largest increases, "down" for largest decreases
        school_type: Restrict to one type cohort

    Returns:
        OutlierResult with at most ``n`` schools
    """
    if column not in df.columns:
        raise ValueError(f"Column {column} not found; enrich the dataset first")
    if direction not in ("up", "down"):
        raise ValueError(f"direction must be 'up' or 'down', got {direction!r}")

    data = df if school_type is None else df[df["type"] == school_type]
    data = data[data[column].notna()]

    if direction == "up":
        selected = data.sort_values(column, ascending=False).head(n)
        criterion = f"largest {column} increase"
    else:
        selected = data.sort_values(column, ascending=True).head(n)
        criterion = f"largest {column} decrease"
    if school_type:
        criterion += f" ({school_type})"

    return OutlierResult(
        column=column,
        criterion=criterion,
        schools=_display_frame(selected).reset_index(drop=True),
    )


def rank_movers(
    df: pd.DataFrame,
    n: int = 5,
    direction: Literal["up", "down"] = "up",
    school_type: str | None = None,
) -> OutlierResult:
    """Largest rank changes. A negative change means a smaller rank number in the later year."""
    return largest_movers(df, column="rank_change", n=n, direction=direction, school_type=school_type)
