"""Column schema for school Learning Opportunities Index records.

This module provides canonical column definitions, header aliases used to
normalise the published CSV headers, and the school type categories.
The LOI is published per school with a score in [0, 1] and a rank within
the school's type cohort for each year.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar


class SchoolType(str, Enum):
    """School type cohorts. Ranks are only comparable within one cohort."""

    ELEMENTARY = "Elementary"
    SECONDARY = "Secondary"

    @classmethod
    def parse(cls, value: str) -> SchoolType:
        """Parse a type label, ignoring case and surrounding whitespace.

        Raises:
            ValueError: If the label is not a known school type
        """
        text = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        raise ValueError(f"Unknown school type: {value!r}")


class ColumnKind(str, Enum):
    """Classification of columns in the dataset."""

    IDENTIFIER = "identifier"
    TEXT = "text"
    CATEGORICAL = "categorical"
    SCORE = "score"
    RANK = "rank"
    DERIVED = "derived"


@dataclass(frozen=True)
class ColumnDefinition:
    """Definition of a single dataset column."""

    code: str
    description: str
    kind: ColumnKind
    required: bool = True
    valid_range: tuple[float, float] | None = None
    formula: str | None = None


class ColumnSchema:
    """Canonical column definitions and header resolution.

    Example:
        >>> schema = ColumnSchema(year_a_label="2014", year_b_label="2017")
        >>> schema.resolve_header("School Name")
        'name'
        >>> schema.resolve_header("Score (2017)")
        'score_b'
    """

    COLUMNS: ClassVar[dict[str, ColumnDefinition]] = {
        "id": ColumnDefinition(
            code="id",
            description="School number",
            kind=ColumnKind.IDENTIFIER,
        ),
        "name": ColumnDefinition(
            code="name",
            description="School name",
            kind=ColumnKind.TEXT,
        ),
        "type": ColumnDefinition(
            code="type",
            description="School type (Elementary or Secondary)",
            kind=ColumnKind.CATEGORICAL,
        ),
        "score_a": ColumnDefinition(
            code="score_a",
            description="LOI score, earlier year",
            kind=ColumnKind.SCORE,
            valid_range=(0.0, 1.0),
        ),
        "rank_a": ColumnDefinition(
            code="rank_a",
            description="LOI rank within type, earlier year",
            kind=ColumnKind.RANK,
        ),
        "score_b": ColumnDefinition(
            code="score_b",
            description="LOI score, later year",
            kind=ColumnKind.SCORE,
            valid_range=(0.0, 1.0),
        ),
        "rank_b": ColumnDefinition(
            code="rank_b",
            description="LOI rank within type, later year",
            kind=ColumnKind.RANK,
        ),
        # === Derived Columns (appended in this order) ===
        "score_change": ColumnDefinition(
            code="score_change",
            description="Change in LOI score between years",
            kind=ColumnKind.DERIVED,
            required=False,
            valid_range=(-1.0, 1.0),
            formula="score_b - score_a",
        ),
        "rank_change": ColumnDefinition(
            code="rank_change",
            description="Change in LOI rank between years",
            kind=ColumnKind.DERIVED,
            required=False,
            formula="rank_b - rank_a",
        ),
        "name_word_count": ColumnDefinition(
            code="name_word_count",
            description="Number of whitespace-separated words in the name",
            kind=ColumnKind.DERIVED,
            required=False,
            formula="len(name.split())",
        ),
        "is_academy": ColumnDefinition(
            code="is_academy",
            description="Name contains an academy-style word",
            kind=ColumnKind.DERIVED,
            required=False,
            formula="any(word in ACADEMY_WORDS for word in name.split())",
        ),
    }

    # Header aliases; "{year}" is filled with the year label of that column
    ALIASES: ClassVar[dict[str, list[str]]] = {
        "id": ["school id", "school number", "school no", "sch no", "number", "no"],
        "name": ["school name", "school"],
        "type": ["school type", "panel", "level"],
        "score_a": ["score {year}", "{year} score", "loi score {year}", "{year} loi score", "loi {year}"],
        "rank_a": ["rank {year}", "{year} rank", "loi rank {year}", "{year} loi rank"],
        "score_b": ["score {year}", "{year} score", "loi score {year}", "{year} loi score", "loi {year}"],
        "rank_b": ["rank {year}", "{year} rank", "loi rank {year}", "{year} loi rank"],
    }

    def __init__(self, year_a_label: str = "2014", year_b_label: str = "2017") -> None:
        """Initialize the schema.

        Args:
            year_a_label: Label of the earlier year, used in header aliases
            year_b_label: Label of the later year, used in header aliases
        """
        if year_a_label == year_b_label:
            raise ValueError("Year labels must differ")

        self.year_a_label = year_a_label
        self.year_b_label = year_b_label

        # Build reverse alias lookup
        self._alias_to_code: dict[str, str] = {}
        for code, aliases in self.ALIASES.items():
            year = year_a_label if code.endswith("_a") else year_b_label
            for alias in aliases:
                self._alias_to_code[normalize_header(alias.format(year=year))] = code
            self._alias_to_code[normalize_header(code)] = code

    def get_column(self, code: str) -> ColumnDefinition | None:
        """Get column definition by canonical code."""
        return self.COLUMNS.get(code.lower())

    def resolve_header(self, header: str) -> str | None:
        """Resolve a raw CSV header to its canonical column code.

        Args:
            header: Header text as it appears in the file

        Returns:
            Canonical column code if recognised, None otherwise
        """
        return self._alias_to_code.get(normalize_header(header))

    def get_input_columns(self) -> list[str]:
        """Get the input column codes in file order."""
        return [c.code for c in self.COLUMNS.values() if c.kind != ColumnKind.DERIVED]

    def get_derived_columns(self) -> list[str]:
        """Get the derived column codes in the order they are appended."""
        return [c.code for c in self.COLUMNS.values() if c.kind == ColumnKind.DERIVED]

    def get_columns_by_kind(self, kind: ColumnKind) -> list[str]:
        """Get all column codes of a kind."""
        return [c.code for c in self.COLUMNS.values() if c.kind == kind]

    def year_label(self, code: str) -> str | None:
        """Get the year label a score or rank column belongs to."""
        if code.endswith("_a"):
            return self.year_a_label
        if code.endswith("_b"):
            return self.year_b_label
        return None

    def display_name(self, code: str) -> str:
        """Human-readable name for a column, including its year if any."""
        column = self.get_column(code)
        if column is None:
            return code
        if column.kind in (ColumnKind.SCORE, ColumnKind.RANK):
            return f"{column.kind.value.title()} {self.year_label(code)}"
        if code == "score_change":
            return f"Score change {self.year_a_label}-{self.year_b_label}"
        if code == "rank_change":
            return f"Rank change {self.year_a_label}-{self.year_b_label}"
        return column.description


def normalize_header(header: str) -> str:
    """Lower-case a header and collapse punctuation and whitespace."""
    text = re.sub(r"[_\-()\[\]#.:]+", " ", str(header).lower())
    return " ".join(text.split())
