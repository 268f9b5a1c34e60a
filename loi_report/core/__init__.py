"""Core functionality for LOI Report.

This module contains:
- Column schema and header aliases
- Dataset loading, metadata and snapshot writing
- Record validation and data quality warnings
"""

from loi_report.core.schema import (
    ColumnDefinition,
    ColumnKind,
    ColumnSchema,
    SchoolType,
)

__all__ = [
    "ColumnDefinition",
    "ColumnKind",
    "ColumnSchema",
    "SchoolType",
]


def __getattr__(name: str):
    """Lazy imports for modules that pull in pandas."""
    if name in ("SchoolDataset", "DatasetError", "DatasetMetadata", "load_dataset"):
        from loi_report.core import dataset

        return getattr(dataset, name)
    if name == "RecordValidator":
        from loi_report.core.validation import RecordValidator

        return RecordValidator
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
