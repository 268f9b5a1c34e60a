"""Record validation and data quality checks.

This module checks loaded LOI records against the dataset invariants and
reports problems as warnings instead of failing, so a report can still be
produced and the problems shown to the reader.

Checks:
- Scores outside [0, 1]
- Non-positive or fractional ranks
- Ranks repeated within a school type cohort
- Unknown school types
- Duplicate identifiers
- High missingness per column
"""

from __future__ import annotations

from dataclasses import dataclass, field as dataclass_field
from enum import Enum
from typing import Any

import pandas as pd

from loi_report.core.schema import ColumnKind, ColumnSchema, SchoolType


class WarningType(str, Enum):
    """Types of warnings that can be generated."""

    EMPTY_DATASET = "empty_dataset"
    HIGH_MISSINGNESS = "high_missingness"
    SCORE_RANGE = "score_range"
    RANK_INVALID = "rank_invalid"
    RANK_DUPLICATE = "rank_duplicate"
    UNKNOWN_TYPE = "unknown_type"
    DUPLICATE_ID = "duplicate_id"


class WarningSeverity(str, Enum):
    """Severity levels for warnings."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass
class ValidationWarning:
    """A single validation warning.

    Attributes:
        type: Category of the warning
        severity: How serious the warning is
        column: Column involved (if applicable)
        message: Human-readable warning message
        suggestion: Suggested action to resolve
        details: Additional context, e.g. offending ids
    """

    type: WarningType
    severity: WarningSeverity
    message: str
    column: str | None = None
    suggestion: str | None = None
    details: dict[str, Any] = dataclass_field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "column": self.column,
            "message": self.message,
            "suggestion": self.suggestion,
            "details": self.details,
        }


@dataclass
class ValidationResult:
    """Complete validation result for a dataset.

    Attributes:
        is_valid: Whether the records could be validated at all
        is_safe: Whether no invariant is violated
        warnings: List of warnings generated
    """

    is_valid: bool
    is_safe: bool
    warnings: list[ValidationWarning] = dataclass_field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "is_valid": self.is_valid,
            "is_safe": self.is_safe,
            "warnings": [w.to_dict() for w in self.warnings],
            "warning_count": len(self.warnings),
            "critical_count": len(
                [w for w in self.warnings if w.severity == WarningSeverity.CRITICAL]
            ),
        }

    def get_warnings_by_type(self, warn_type: WarningType) -> list[ValidationWarning]:
        """Get all warnings of a specific type."""
        return [w for w in self.warnings if w.type == warn_type]

    def has_critical_warnings(self) -> bool:
        """Check if there are any critical warnings."""
        return any(w.severity == WarningSeverity.CRITICAL for w in self.warnings)

    def format_for_display(self) -> str:
        """Format as a markdown "Data Quality Notes" block."""
        if not self.warnings:
            return "**Data Quality Notes:** no issues found."

        lines = ["**Data Quality Notes:**"]
        for warning in self.warnings:
            label = warning.severity.value.upper()
            lines.append(f"- [{label}] {warning.message}")
            if warning.suggestion:
                lines.append(f"  *Suggestion: {warning.suggestion}*")

        return "\n".join(lines)


class RecordValidator:
    """Validates LOI records against the dataset invariants.

    Example:
        >>> validator = RecordValidator()
        >>> validation = validator.validate(dataset.dataframe)
        >>> if not validation.is_safe:
        ...     print(validation.format_for_display())
    """

    # Number of offending ids listed in a warning's details
    MAX_EXAMPLES = 10

    def __init__(
        self,
        missingness_threshold: float = 0.5,
        critical_threshold: float = 0.8,
        schema: ColumnSchema | None = None,
    ) -> None:
        """Initialize the validator.

        Args:
            missingness_threshold: Fraction of missing data to trigger warning
            critical_threshold: Fraction of missing data for critical warning
            schema: Column schema (default labels if None)
        """
        self.missingness_threshold = missingness_threshold
        self.critical_threshold = critical_threshold
        self.schema = schema or ColumnSchema()

    def validate(self, df: pd.DataFrame) -> ValidationResult:
        """Validate LOI records.

        Args:
            df: Records with canonical columns

        Returns:
            ValidationResult with warnings
        """
        warnings: list[ValidationWarning] = []

        if len(df) == 0:
            warnings.append(
                ValidationWarning(
                    type=WarningType.EMPTY_DATASET,
                    severity=WarningSeverity.WARNING,
                    message="The dataset contains no records.",
                    suggestion="Check the input file.",
                )
            )
            return ValidationResult(is_valid=True, is_safe=False, warnings=warnings)

        warnings.extend(self._check_missingness(df))
        warnings.extend(self._check_scores(df))
        warnings.extend(self._check_ranks(df))
        warnings.extend(self._check_types(df))
        warnings.extend(self._check_ids(df))

        is_safe = not any(w.severity == WarningSeverity.CRITICAL for w in warnings)

        return ValidationResult(is_valid=True, is_safe=is_safe, warnings=warnings)

    def _examples(self, df: pd.DataFrame, mask: pd.Series) -> list[str]:
        column = "id" if "id" in df.columns else None
        rows = df[mask]
        if column is None:
            return [str(i) for i in rows.index[: self.MAX_EXAMPLES]]
        return [str(v) for v in rows[column].head(self.MAX_EXAMPLES)]

    def _check_missingness(self, df: pd.DataFrame) -> list[ValidationWarning]:
        """Warn about columns with many missing values."""
        warnings = []

        for column in self.schema.get_input_columns():
            if column not in df.columns:
                continue
            missingness = float(df[column].isna().mean())
            if missingness >= self.critical_threshold:
                severity = WarningSeverity.CRITICAL
            elif missingness >= self.missingness_threshold:
                severity = WarningSeverity.WARNING
            else:
                continue

            warnings.append(
                ValidationWarning(
                    type=WarningType.HIGH_MISSINGNESS,
                    severity=severity,
                    column=column,
                    message=f"{column} is missing for {missingness * 100:.0f}% of schools.",
                    suggestion=f"Statistics using {column} will be based on fewer schools.",
                    details={"missingness": missingness, "completeness": 1.0 - missingness},
                )
            )

        return warnings

    def _check_scores(self, df: pd.DataFrame) -> list[ValidationWarning]:
        """Scores must lie in [0, 1]."""
        warnings = []

        for column in self.schema.get_columns_by_kind(ColumnKind.SCORE):
            if column not in df.columns:
                continue
            low, high = self.schema.get_column(column).valid_range
            values = pd.to_numeric(df[column], errors="coerce")
            mask = ((values < low) | (values > high)).fillna(False).astype(bool)
            if not mask.any():
                continue

            warnings.append(
                ValidationWarning(
                    type=WarningType.SCORE_RANGE,
                    severity=WarningSeverity.CRITICAL,
                    column=column,
                    message=(
                        f"{int(mask.sum())} value(s) of {column} lie outside "
                        f"[{low:g}, {high:g}]."
                    ),
                    suggestion="This indicates an upstream data error; check the source file.",
                    details={
                        "count": int(mask.sum()),
                        "min": float(values.min()),
                        "max": float(values.max()),
                        "ids": self._examples(df, mask),
                    },
                )
            )

        return warnings

    def _check_ranks(self, df: pd.DataFrame) -> list[ValidationWarning]:
        """Ranks must be positive integers, unique within a type cohort."""
        warnings = []

        for column in self.schema.get_columns_by_kind(ColumnKind.RANK):
            if column not in df.columns:
                continue
            values = pd.to_numeric(df[column], errors="coerce").astype(float)
            invalid = ((values <= 0) | (values % 1 != 0)) & values.notna()
            if invalid.any():
                warnings.append(
                    ValidationWarning(
                        type=WarningType.RANK_INVALID,
                        severity=WarningSeverity.CRITICAL,
                        column=column,
                        message=f"{int(invalid.sum())} value(s) of {column} are not positive integers.",
                        details={"count": int(invalid.sum()), "ids": self._examples(df, invalid)},
                    )
                )

            if "type" not in df.columns:
                continue
            present = values.notna() & df["type"].notna()
            duplicated = pd.Series(False, index=df.index)
            duplicated[present] = pd.DataFrame(
                {"type": df.loc[present, "type"], "rank": values[present]}
            ).duplicated(keep=False)
            if duplicated.any():
                warnings.append(
                    ValidationWarning(
                        type=WarningType.RANK_DUPLICATE,
                        severity=WarningSeverity.WARNING,
                        column=column,
                        message=(
                            f"{int(duplicated.sum())} school(s) share a value of {column} "
                            "with another school of the same type."
                        ),
                        suggestion="Tied ranks make rank changes ambiguous.",
                        details={"count": int(duplicated.sum()), "ids": self._examples(df, duplicated)},
                    )
                )

        return warnings

    def _check_types(self, df: pd.DataFrame) -> list[ValidationWarning]:
        """Every record must belong to exactly one known type."""
        if "type" not in df.columns:
            return []

        known = {t.value for t in SchoolType}
        mask = ~df["type"].isin(known)
        if not mask.any():
            return []

        unknown = sorted({str(v) for v in df.loc[mask, "type"]})
        return [
            ValidationWarning(
                type=WarningType.UNKNOWN_TYPE,
                severity=WarningSeverity.CRITICAL,
                column="type",
                message=f"{int(mask.sum())} school(s) have an unknown type: {', '.join(unknown)}.",
                suggestion=f"Expected one of: {', '.join(sorted(known))}.",
                details={"values": unknown, "ids": self._examples(df, mask)},
            )
        ]

    def _check_ids(self, df: pd.DataFrame) -> list[ValidationWarning]:
        """Identifiers should not repeat."""
        if "id" not in df.columns:
            return []

        mask = df["id"].notna() & df["id"].duplicated(keep=False)
        if not mask.any():
            return []

        return [
            ValidationWarning(
                type=WarningType.DUPLICATE_ID,
                severity=WarningSeverity.WARNING,
                column="id",
                message=f"{int(mask.sum())} records share an id with another record.",
                details={"ids": self._examples(df, mask)},
            )
        ]
