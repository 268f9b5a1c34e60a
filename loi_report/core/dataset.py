"""Dataset interface for school LOI records.

This module provides the data layer for the report. It handles:
- Loading the published CSV with pandas
- Normalising headers to canonical column codes
- Coercing numeric columns (malformed cells become missing values)
- Metadata and per-column coverage tracking
- School lookups and the final snapshot write

Example:
    >>> from loi_report.core.dataset import SchoolDataset
    >>> dataset = SchoolDataset("data/loi.csv")
    >>> print(f"Loaded {dataset.total_schools} schools")

    >>> enriched = dataset.enrich()
    >>> enriched.write_snapshot("output/loi_enriched.csv")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from loi_report.core.schema import ColumnKind, ColumnSchema, SchoolType

logger = logging.getLogger(__name__)


class DatasetError(RuntimeError):
    """Raised when the LOI dataset cannot be loaded."""


@dataclass(frozen=True)
class DatasetMetadata:
    """Metadata about the loaded dataset.

    Attributes:
        source: Where the records were read from
        loaded_at: When the dataset was loaded
        total_schools: Number of records
        columns: Column codes in frame order
        column_coverage: Dict mapping column -> count of non-null values
        type_counts: Dict mapping school type -> number of records
        year_a_label: Label of the earlier year
        year_b_label: Label of the later year
    """

    source: str
    loaded_at: str
    total_schools: int
    columns: tuple[str, ...]
    column_coverage: dict[str, int] = field(default_factory=dict)
    type_counts: dict[str, int] = field(default_factory=dict)
    year_a_label: str = "2014"
    year_b_label: str = "2017"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "source": self.source,
            "loaded_at": self.loaded_at,
            "total_schools": self.total_schools,
            "columns": list(self.columns),
            "column_coverage": self.column_coverage,
            "type_counts": self.type_counts,
            "year_a_label": self.year_a_label,
            "year_b_label": self.year_b_label,
        }


class SchoolDataset:
    """Interface to a table of school LOI records.

    Records are read once and never mutated in place; enrichment returns
    a new dataset.

    Attributes:
        metadata: DatasetMetadata with source and coverage
        schema: ColumnSchema used to resolve headers
        total_schools: Number of records

    Example:
        >>> dataset = SchoolDataset("data/loi.csv")
        >>> dataset.total_schools
        588
        >>> dataset.get_school("East York Collegiate Institute")["type"]
        'Secondary'
    """

    def __init__(
        self,
        path: Path | str | None = None,
        *,
        data: pd.DataFrame | None = None,
        year_a_label: str = "2014",
        year_b_label: str = "2017",
        source: str | None = None,
    ) -> None:
        """Initialize the dataset.

        Args:
            path: CSV file to read (ignored when ``data`` is given)
            data: Already-loaded records with raw or canonical headers
            year_a_label: Label of the earlier year
            year_b_label: Label of the later year
            source: Description of where ``data`` came from
        """
        if path is None and data is None:
            raise ValueError("Either path or data must be provided")

        self.schema = ColumnSchema(year_a_label, year_b_label)
        self._path = Path(path) if path is not None else None
        self._df: pd.DataFrame | None = None
        self._metadata: DatasetMetadata | None = None

        if data is not None:
            self._load_frame(data.copy(), source or "<dataframe>")
        else:
            self._load_csv()

    def _load_csv(self) -> None:
        """Load the records from the CSV file."""
        logger.info(f"Loading LOI records from {self._path}...")
        start_time = datetime.now()

        try:
            # Read everything as text so ids keep leading zeros
            raw = pd.read_csv(self._path, dtype=str, skipinitialspace=True)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            logger.error(f"Failed to read {self._path}: {e}")
            raise DatasetError(f"Failed to load LOI dataset from {self._path}: {e}") from e

        self._load_frame(raw, str(self._path))

        elapsed = (datetime.now() - start_time).total_seconds()
        logger.info(f"Loaded {self.total_schools} schools in {elapsed:.2f}s")

    def _load_frame(self, raw: pd.DataFrame, source: str) -> None:
        """Normalise a raw frame and build metadata."""
        df = raw.rename(columns=self._resolve_headers(list(raw.columns)))
        df = self._coerce_types(df)
        self._df = df.reset_index(drop=True)

        type_counts = {
            str(k): int(v) for k, v in df["type"].value_counts(dropna=True).items()
        }
        self._metadata = DatasetMetadata(
            source=source,
            loaded_at=datetime.now().isoformat(),
            total_schools=len(df),
            columns=tuple(df.columns.tolist()),
            column_coverage={col: int(df[col].notna().sum()) for col in df.columns},
            type_counts=type_counts,
            year_a_label=self.schema.year_a_label,
            year_b_label=self.schema.year_b_label,
        )

    def _resolve_headers(self, headers: list[str]) -> dict[str, str]:
        """Map raw headers to canonical column codes.

        Headers are matched through the schema aliases. If that does not
        cover every required column and the file has exactly one column per
        input field, columns are mapped by position instead.

        Raises:
            DatasetError: If the required columns cannot be identified
        """
        required = self.schema.get_input_columns()
        mapping: dict[str, str] = {}
        seen: set[str] = set()

        for header in headers:
            code = self.schema.resolve_header(header)
            if code is None or code in seen:
                continue
            mapping[header] = code
            seen.add(code)

        missing = [c for c in required if c not in seen]
        if not missing:
            return mapping

        if len(headers) == len(required):
            logger.warning(
                f"Unrecognised headers {headers}; mapping columns by position"
            )
            return dict(zip(headers, required))

        raise DatasetError(f"Dataset is missing required columns: {missing}")

    def _coerce_types(self, df: pd.DataFrame) -> pd.DataFrame:
        """Coerce columns to their schema types.

        Unparseable numeric cells become missing values and are counted
        in a warning rather than failing the load.
        """
        df = df.copy()

        df["id"] = df["id"].map(lambda v: str(v).strip(), na_action="ignore")
        df["name"] = df["name"].map(lambda v: str(v).strip(), na_action="ignore")
        df["type"] = df["type"].map(_normalise_type, na_action="ignore")

        n_unparsed = 0
        numeric = self.schema.get_columns_by_kind(ColumnKind.SCORE) + self.schema.get_columns_by_kind(
            ColumnKind.RANK
        )
        for code in numeric:
            present = df[code].notna() & (df[code].astype(str).str.strip() != "")
            values = pd.to_numeric(df[code], errors="coerce").astype(float)
            n_unparsed += int((present & values.isna()).sum())

            # Keep integral ranks as integers; fractional ones are flagged by validation
            if code.startswith("rank") and (values.dropna() % 1 == 0).all():
                df[code] = values.astype("Int64")
            else:
                df[code] = values

        if n_unparsed:
            logger.warning(f"{n_unparsed} numeric cells could not be parsed and were set to missing")

        return df

    @property
    def metadata(self) -> DatasetMetadata:
        """Get dataset metadata."""
        if self._metadata is None:
            raise RuntimeError("Dataset not loaded")
        return self._metadata

    @property
    def dataframe(self) -> pd.DataFrame:
        """Get the records DataFrame."""
        if self._df is None:
            raise RuntimeError("Dataset not loaded")
        return self._df

    @property
    def total_schools(self) -> int:
        """Get total number of school records."""
        return self.metadata.total_schools

    @property
    def source(self) -> str:
        """Where the records were read from."""
        return self.metadata.source

    @property
    def is_enriched(self) -> bool:
        """Whether the derived columns are present."""
        return all(c in self.dataframe.columns for c in self.schema.get_derived_columns())

    def get_dataset_info(self) -> dict[str, Any]:
        """Get dataset information for display."""
        return self.metadata.to_dict()

    def get_column_coverage(self, columns: list[str] | None = None) -> dict[str, float]:
        """Get coverage (non-null fraction) for columns.

        Args:
            columns: List of column codes (None = all)

        Returns:
            Dict mapping column -> coverage fraction
        """
        coverage = self.metadata.column_coverage
        total = self.metadata.total_schools

        if columns is None:
            columns = list(coverage.keys())
        if total == 0:
            return {c: 0.0 for c in columns if c in coverage}

        return {c: coverage.get(c, 0) / total for c in columns if c in coverage}

    def get_school(self, name_or_id: str) -> pd.Series | None:
        """Get a single school by id or name.

        Tries an exact id match, then an exact (case-insensitive) name match,
        then a unique case-insensitive substring of the name.

        Args:
            name_or_id: School number or (part of) its name

        Returns:
            Series with the school's record, or None if not found or ambiguous
        """
        df = self.dataframe
        key = str(name_or_id).strip()

        matches = df[df["id"] == key]
        if len(matches) == 1:
            return matches.iloc[0]

        names = df["name"].astype("string")
        matches = df[(names.str.lower() == key.lower()).fillna(False)]
        if len(matches) == 1:
            return matches.iloc[0]

        matches = df[names.str.contains(key, case=False, na=False, regex=False)]
        if len(matches) == 1:
            return matches.iloc[0]

        return None

    def search_schools(self, pattern: str, limit: int = 10) -> pd.DataFrame:
        """Search for schools whose name contains a pattern.

        Args:
            pattern: Case-insensitive text to look for
            limit: Maximum results to return

        Returns:
            DataFrame with matching schools
        """
        df = self.dataframe
        names = df["name"].astype("string")
        matches = df[names.str.contains(pattern, case=False, na=False, regex=False)]
        return matches.head(limit)

    def filter_by_type(self, school_type: SchoolType | str) -> pd.DataFrame:
        """Get the records of one school type cohort."""
        label = SchoolType.parse(school_type).value if isinstance(school_type, str) else school_type.value
        return self.dataframe[self.dataframe["type"] == label]

    def enrich(self, academy_words: tuple[str, ...] | list[str] | None = None) -> SchoolDataset:
        """Return a new dataset with the derived columns appended.

        Args:
            academy_words: Words that mark an academy-style name

        Returns:
            New SchoolDataset; this dataset is left unchanged
        """
        from loi_report.analysis.derived import add_derived_columns

        enriched = add_derived_columns(self.dataframe, academy_words=academy_words)
        logger.debug(f"Added derived columns to {self.total_schools} records")

        return SchoolDataset(
            data=enriched,
            year_a_label=self.schema.year_a_label,
            year_b_label=self.schema.year_b_label,
            source=self.source,
        )

    def write_snapshot(self, path: Path | str) -> Path:
        """Write the records to a CSV snapshot.

        Args:
            path: Destination file; parent directories are created

        Returns:
            The written path
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.dataframe.to_csv(path, index=False)
        logger.info(f"Wrote snapshot of {self.total_schools} schools to {path}")
        return path


def _normalise_type(value: Any) -> str:
    """Canonical type label, or the stripped original if unknown."""
    try:
        return SchoolType.parse(value).value
    except ValueError:
        return str(value).strip()


def load_dataset(path: Path | str, **kwargs: Any) -> SchoolDataset:
    """Load a dataset from a CSV file.

    Args:
        path: CSV file to read
        **kwargs: Arguments passed to SchoolDataset

    Returns:
        SchoolDataset instance
    """
    return SchoolDataset(path, **kwargs)
