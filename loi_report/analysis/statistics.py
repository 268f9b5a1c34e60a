"""Statistical analysis of LOI records.

This module provides the statistical procedures used by the report:
- Summary statistics (overall and per group)
- Correlation analysis (Pearson with confidence interval, Spearman)
- Linear regression line fitting
- Welch's two-sample t-test

Missing values are dropped pairwise (correlation, regression) or per group
(t-test) before computing.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
from scipy import stats

# Upper bounds on |r| for each strength label
_STRENGTH_BANDS = (
    (0.1, "negligible"),
    (0.3, "weak"),
    (0.5, "moderate"),
    (0.7, "strong"),
    (float("inf"), "very strong"),
)


@dataclass
class StatisticalSummary:
    """Summary statistics for a column.

    Attributes:
        parameter: Column name
        count: Number of non-null values
        mean: Arithmetic mean
        median: Median value
        std: Sample standard deviation
        min: Minimum value
        max: Maximum value
        q25: 25th percentile
        q75: 75th percentile
        iqr: Interquartile range
        skewness: Distribution skewness
        kurtosis: Distribution kurtosis
    """

    parameter: str
    count: int
    mean: float
    median: float
    std: float
    min: float
    max: float
    q25: float
    q75: float
    iqr: float
    skewness: float | None = None
    kurtosis: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "parameter": self.parameter,
            "count": self.count,
            "mean": self.mean,
            "median": self.median,
            "std": self.std,
            "min": self.min,
            "max": self.max,
            "q25": self.q25,
            "q75": self.q75,
            "iqr": self.iqr,
            "skewness": self.skewness,
            "kurtosis": self.kurtosis,
        }

    def format_for_display(self) -> str:
        """Format as human-readable string."""
        return "\n".join([
            f"**{self.parameter}** (n={self.count})",
            f"  mean {self.mean:.4f}, sd {self.std:.4f}",
            f"  median {self.median:.4f}, IQR {self.q25:.4f} to {self.q75:.4f}",
            f"  min {self.min:.4f}, max {self.max:.4f}",
        ])


@dataclass
class CorrelationResult:
    """Result from correlation analysis.

    Attributes:
        param_x: First column name
        param_y: Second column name
        n_points: Number of complete pairs used
        pearson_r: Pearson correlation coefficient
        pearson_p: Pearson p-value
        spearman_r: Spearman correlation coefficient
        spearman_p: Spearman p-value
        confidence: Confidence level of the interval
        ci_low: Lower bound of the Pearson confidence interval
        ci_high: Upper bound of the Pearson confidence interval
        interpretation: Human-readable interpretation
    """

    param_x: str
    param_y: str
    n_points: int
    pearson_r: float
    pearson_p: float
    spearman_r: float
    spearman_p: float
    confidence: float = 0.95
    ci_low: float | None = None
    ci_high: float | None = None
    interpretation: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "param_x": self.param_x,
            "param_y": self.param_y,
            "n_points": self.n_points,
            "pearson": {
                "r": self.pearson_r,
                "p_value": self.pearson_p,
                "confidence": self.confidence,
                "ci": [self.ci_low, self.ci_high],
            },
            "spearman": {
                "r": self.spearman_r,
                "p_value": self.spearman_p,
            },
            "interpretation": self.interpretation,
        }

    def format_for_display(self) -> str:
        """Format as human-readable string."""
        pearson = f"  Pearson r = {self.pearson_r:.3f} (p = {self.pearson_p:.2e})"
        if self.ci_low is not None and self.ci_high is not None:
            pearson += f", {self.confidence:.0%} CI [{self.ci_low:.3f}, {self.ci_high:.3f}]"
        lines = [
            f"**Correlation: {self.param_x} vs {self.param_y}** (n={self.n_points})",
            pearson,
            f"  Spearman ρ = {self.spearman_r:.3f} (p = {self.spearman_p:.2e})",
        ]
        if self.interpretation:
            lines.append(f"  {self.interpretation}")
        return "\n".join(lines)


@dataclass
class RegressionResult:
    """Least-squares line ``y = slope * x + intercept``.

    Attributes:
        param_x: Predictor column
        param_y: Response column
        n_points: Number of complete pairs used
        slope: Fitted slope
        intercept: Fitted intercept
        r_value: Correlation coefficient
        p_value: Two-sided p-value for a zero slope
        stderr: Standard error of the slope
        intercept_stderr: Standard error of the intercept
    """

    param_x: str
    param_y: str
    n_points: int
    slope: float
    intercept: float
    r_value: float
    p_value: float
    stderr: float
    intercept_stderr: float

    @property
    def r_squared(self) -> float:
        """Coefficient of determination."""
        return self.r_value**2

    def predict(self, x: Any) -> Any:
        """Evaluate the fitted line at ``x`` (scalar or array)."""
        return self.slope * np.asarray(x, dtype=float) + self.intercept

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "param_x": self.param_x,
            "param_y": self.param_y,
            "n_points": self.n_points,
            "slope": self.slope,
            "intercept": self.intercept,
            "r_value": self.r_value,
            "r_squared": self.r_squared,
            "p_value": self.p_value,
            "stderr": self.stderr,
            "intercept_stderr": self.intercept_stderr,
        }

    def format_for_display(self) -> str:
        """Format as human-readable string."""
        sign = "+" if self.intercept >= 0 else "-"
        return "\n".join([
            f"**Regression: {self.param_y} ~ {self.param_x}** (n={self.n_points})",
            f"  {self.param_y} = {self.slope:.4f} × {self.param_x} {sign} {abs(self.intercept):.4f}",
            f"  R² = {self.r_squared:.3f} (slope SE = {self.stderr:.4f}, p = {self.p_value:.2e})",
        ])


@dataclass
class TTestResult:
    """Result of Welch's two-sample t-test.

    Attributes:
        label_a: Name of the first group
        label_b: Name of the second group
        n_a: Size of the first group
        n_b: Size of the second group
        mean_a: Mean of the first group
        mean_b: Mean of the second group
        std_a: Sample standard deviation of the first group
        std_b: Sample standard deviation of the second group
        t_statistic: Welch t statistic
        dof: Welch-Satterthwaite degrees of freedom
        p_value: Two-sided p-value
        confidence: Confidence level of the interval
        ci_low: Lower bound for mean_a - mean_b
        ci_high: Upper bound for mean_a - mean_b
        cohens_d: Effect size using the pooled standard deviation
        parameter: Column compared, if any
    """

    label_a: str
    label_b: str
    n_a: int
    n_b: int
    mean_a: float
    mean_b: float
    std_a: float
    std_b: float
    t_statistic: float
    dof: float
    p_value: float
    confidence: float
    ci_low: float
    ci_high: float
    cohens_d: float
    parameter: str | None = None

    @property
    def mean_difference(self) -> float:
        """``mean_a - mean_b``."""
        return self.mean_a - self.mean_b

    @property
    def significant(self) -> bool:
        """Whether the difference is significant at the result's confidence."""
        return bool(self.p_value < 1.0 - self.confidence)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "test": "Welch two-sample t-test",
            "parameter": self.parameter,
            "groups": {
                self.label_a: {"n": self.n_a, "mean": self.mean_a, "std": self.std_a},
                self.label_b: {"n": self.n_b, "mean": self.mean_b, "std": self.std_b},
            },
            "mean_difference": self.mean_difference,
            "t_statistic": self.t_statistic,
            "dof": self.dof,
            "p_value": self.p_value,
            "confidence": self.confidence,
            "ci": [self.ci_low, self.ci_high],
            "cohens_d": self.cohens_d,
            "significant": self.significant,
        }

    def format_for_display(self) -> str:
        """Format as human-readable string."""
        title = f"**Welch t-test: {self.label_a} vs {self.label_b}**"
        if self.parameter:
            title += f" on {self.parameter}"
        return "\n".join([
            title,
            f"  {self.label_a}: mean = {self.mean_a:.4f} (n={self.n_a})",
            f"  {self.label_b}: mean = {self.mean_b:.4f} (n={self.n_b})",
            f"  t = {self.t_statistic:.3f}, df = {self.dof:.1f}, p = {self.p_value:.3g}",
            f"  {self.confidence:.0%} CI of difference: [{self.ci_low:.4f}, {self.ci_high:.4f}]",
            f"  Cohen's d = {self.cohens_d:.2f}",
        ])


@dataclass
class AnalysisResult:
    """Complete result from statistical analysis.

    Attributes:
        success: Whether analysis completed successfully
        summaries: List of statistical summaries
        correlations: List of correlation results
        regressions: List of regression fits
        ttests: List of t-test results
        error: Error message if failed
    """

    success: bool
    summaries: list[StatisticalSummary] = field(default_factory=list)
    correlations: list[CorrelationResult] = field(default_factory=list)
    regressions: list[RegressionResult] = field(default_factory=list)
    ttests: list[TTestResult] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "summaries": [s.to_dict() for s in self.summaries],
            "correlations": [c.to_dict() for c in self.correlations],
            "regressions": [r.to_dict() for r in self.regressions],
            "ttests": [t.to_dict() for t in self.ttests],
            "error": self.error,
        }

    def format_for_display(self) -> str:
        """Format as human-readable string."""
        if not self.success:
            return f"**Analysis Failed:** {self.error}"

        parts: list[str] = []
        for s in self.summaries:
            parts.append(s.format_for_display())
        for c in self.correlations:
            parts.append(c.format_for_display())
        for r in self.regressions:
            parts.append(r.format_for_display())
        for t in self.ttests:
            parts.append(t.format_for_display())

        return "\n\n".join(parts) if parts else "No analysis results."


def _numeric(values: Any) -> pd.Series:
    """Coerce to a float Series (nullable and bool dtypes included)."""
    series = values if isinstance(values, pd.Series) else pd.Series(list(values))
    return pd.to_numeric(series, errors="coerce").astype(float)


def _summarize(name: str, data: pd.Series) -> StatisticalSummary:
    q25 = float(data.quantile(0.25))
    q75 = float(data.quantile(0.75))
    return StatisticalSummary(
        parameter=name,
        count=len(data),
        mean=float(data.mean()),
        median=float(data.median()),
        std=float(data.std()),
        min=float(data.min()),
        max=float(data.max()),
        q25=q25,
        q75=q75,
        iqr=q75 - q25,
        skewness=float(stats.skew(data)) if len(data) >= 3 else None,
        kurtosis=float(stats.kurtosis(data)) if len(data) >= 4 else None,
    )


def statistical_analysis(
    df: pd.DataFrame,
    parameters: list[str] | None = None,
) -> AnalysisResult:
    """Compute statistical summaries for columns.

    Args:
        df: DataFrame with LOI records
        parameters: List of column names (None = all numeric, non-boolean)

    Returns:
        AnalysisResult with summaries

    Example:
        >>> result = statistical_analysis(df, ["score_a", "score_b"])
        >>> for summary in result.summaries:
        ...     print(summary.format_for_display())
    """
    if parameters is None:
        parameters = [
            c
            for c in df.columns
            if pd.api.types.is_numeric_dtype(df[c]) and not pd.api.types.is_bool_dtype(df[c])
        ]

    summaries = []

    for param in parameters:
        if param not in df.columns:
            continue

        data = _numeric(df[param]).dropna()

        if len(data) < 2:
            continue

        summaries.append(_summarize(param, data))

    return AnalysisResult(success=True, summaries=summaries)


def summarize_by_group(
    df: pd.DataFrame,
    parameter: str,
    group_column: str,
) -> dict[str, StatisticalSummary]:
    """Summary statistics of a column within each group.

    Groups with fewer than two values are omitted.

    Raises:
        ValueError: If either column is missing
    """
    for col in (parameter, group_column):
        if col not in df.columns:
            raise ValueError(f"Column {col} not found in data")

    summaries: dict[str, StatisticalSummary] = {}
    for name, group in df.groupby(group_column, dropna=True)[parameter]:
        data = _numeric(group).dropna()
        if len(data) >= 2:
            summaries[str(name)] = _summarize(parameter, data)
    return summaries


def correlation_analysis(
    df: pd.DataFrame,
    param_x: str,
    param_y: str,
    confidence: float = 0.95,
) -> AnalysisResult:
    """Compute correlation between two columns.

    Uses pairwise-complete observations. The Pearson confidence interval
    is based on the Fisher z transform.

    Args:
        df: DataFrame with LOI records
        param_x: First column name
        param_y: Second column name
        confidence: Confidence level for the Pearson interval

    Returns:
        AnalysisResult with correlation

    Example:
        >>> result = correlation_analysis(df, "score_a", "score_b")
        >>> print(result.correlations[0].format_for_display())
    """
    if param_x not in df.columns:
        return AnalysisResult(
            success=False, error=f"Parameter {param_x} not found in data"
        )
    if param_y not in df.columns:
        return AnalysisResult(
            success=False, error=f"Parameter {param_y} not found in data"
        )

    # Get clean data (both values present)
    clean_df = pd.DataFrame({"x": _numeric(df[param_x]), "y": _numeric(df[param_y])}).dropna()

    if len(clean_df) < 3:
        return AnalysisResult(
            success=False,
            error=f"Insufficient data for correlation (need at least 3 points, got {len(clean_df)})",
        )

    x = clean_df["x"].to_numpy()
    y = clean_df["y"].to_numpy()
    n_points = len(x)

    if np.ptp(x) == 0 or np.ptp(y) == 0:
        return AnalysisResult(
            success=False,
            error="Correlation is undefined for a constant column",
        )

    pearson = stats.pearsonr(x, y)
    spearman_r, spearman_p = stats.spearmanr(x, y)

    ci_low = ci_high = None
    if n_points > 3:
        ci = pearson.confidence_interval(confidence_level=confidence)
        ci_low, ci_high = float(ci.low), float(ci.high)

    interpretation = _interpret_correlation(pearson.statistic, pearson.pvalue, spearman_r, confidence)

    result = CorrelationResult(
        param_x=param_x,
        param_y=param_y,
        n_points=n_points,
        pearson_r=float(pearson.statistic),
        pearson_p=float(pearson.pvalue),
        spearman_r=float(spearman_r),
        spearman_p=float(spearman_p),
        confidence=confidence,
        ci_low=ci_low,
        ci_high=ci_high,
        interpretation=interpretation,
    )

    return AnalysisResult(success=True, correlations=[result])


def _interpret_correlation(
    pearson_r: float,
    pearson_p: float,
    spearman_r: float,
    confidence: float = 0.95,
) -> str:
    """Describe a correlation in words, e.g. "Very strong positive correlation"."""
    strength = next(label for bound, label in _STRENGTH_BANDS if abs(pearson_r) < bound)
    direction = "positive" if pearson_r > 0 else "negative"

    alpha = 1.0 - confidence
    if pearson_p < alpha:
        significance = f"significant at the {confidence:.0%} level (p = {pearson_p:.2g})"
    else:
        significance = f"not significant at the {confidence:.0%} level"

    # Rank correlation well above linear correlation
    note = ""
    if abs(spearman_r) - abs(pearson_r) > 0.1:
        note = " Spearman rank correlation is notably higher, so the trend may not be linear."

    return f"{strength.capitalize()} {direction} correlation, {significance}.{note}"


def multi_correlation_analysis(
    df: pd.DataFrame,
    parameters: list[str],
    confidence: float = 0.95,
) -> AnalysisResult:
    """Compute correlations between multiple columns.

    Pairs that cannot be computed are left out.

    Args:
        df: DataFrame with LOI records
        parameters: List of column names
        confidence: Confidence level for the Pearson intervals

    Returns:
        AnalysisResult with all pairwise correlations
    """
    correlations = []

    for i, param_x in enumerate(parameters):
        for param_y in parameters[i + 1 :]:
            result = correlation_analysis(df, param_x, param_y, confidence=confidence)
            if result.success and result.correlations:
                correlations.extend(result.correlations)

    return AnalysisResult(success=True, correlations=correlations)


def linear_regression(
    df: pd.DataFrame,
    param_x: str,
    param_y: str,
) -> AnalysisResult:
    """Fit a least-squares line of ``param_y`` on ``param_x``.

    Args:
        df: DataFrame with LOI records
        param_x: Predictor column
        param_y: Response column

    Returns:
        AnalysisResult with one RegressionResult

    Example:
        >>> fit = linear_regression(df, "score_a", "score_b").regressions[0]
        >>> fit.predict(0.5)
    """
    for param in (param_x, param_y):
        if param not in df.columns:
            return AnalysisResult(success=False, error=f"Parameter {param} not found in data")

    clean_df = pd.DataFrame({"x": _numeric(df[param_x]), "y": _numeric(df[param_y])}).dropna()

    if len(clean_df) < 3:
        return AnalysisResult(
            success=False,
            error=f"Insufficient data for regression (need at least 3 points, got {len(clean_df)})",
        )
    if clean_df["x"].nunique() < 2:
        return AnalysisResult(
            success=False,
            error=f"Regression is undefined: {param_x} is constant",
        )

    fit = stats.linregress(clean_df["x"].to_numpy(), clean_df["y"].to_numpy())

    result = RegressionResult(
        param_x=param_x,
        param_y=param_y,
        n_points=len(clean_df),
        slope=float(fit.slope),
        intercept=float(fit.intercept),
        r_value=float(fit.rvalue),
        p_value=float(fit.pvalue),
        stderr=float(fit.stderr),
        intercept_stderr=float(fit.intercept_stderr),
    )
    return AnalysisResult(success=True, regressions=[result])


def welch_ttest(
    a: Iterable[Any],
    b: Iterable[Any],
    labels: tuple[str, str] = ("group A", "group B"),
    confidence: float = 0.95,
    parameter: str | None = None,
) -> TTestResult:
    """Welch's unequal-variance two-sample t-test.

    Missing values are dropped from each sample.

    Args:
        a: First sample
        b: Second sample
        labels: Display names of the two samples
        confidence: Confidence level for the interval of the mean difference
        parameter: Name of the compared column, for display

    Returns:
        TTestResult

    Raises:
        ValueError: If either sample has fewer than two values
    """
    x = _numeric(a).dropna().to_numpy()
    y = _numeric(b).dropna().to_numpy()

    if len(x) < 2 or len(y) < 2:
        raise ValueError(
            f"Welch t-test needs at least 2 values per group (got {len(x)} and {len(y)})"
        )

    t_stat, p_value = stats.ttest_ind(x, y, equal_var=False)

    var_x = x.var(ddof=1)
    var_y = y.var(ddof=1)
    se_x = var_x / len(x)
    se_y = var_y / len(y)
    se = np.sqrt(se_x + se_y)

    # Welch-Satterthwaite degrees of freedom
    denom = se_x**2 / (len(x) - 1) + se_y**2 / (len(y) - 1)
    dof = (se_x + se_y) ** 2 / denom if denom > 0 else float(len(x) + len(y) - 2)

    diff = x.mean() - y.mean()
    t_crit = stats.t.ppf(1 - (1 - confidence) / 2, dof)

    pooled_sd = np.sqrt(((len(x) - 1) * var_x + (len(y) - 1) * var_y) / (len(x) + len(y) - 2))
    cohens_d = diff / pooled_sd if pooled_sd > 0 else 0.0

    return TTestResult(
        label_a=labels[0],
        label_b=labels[1],
        n_a=len(x),
        n_b=len(y),
        mean_a=float(x.mean()),
        mean_b=float(y.mean()),
        std_a=float(np.sqrt(var_x)),
        std_b=float(np.sqrt(var_y)),
        t_statistic=float(t_stat),
        dof=float(dof),
        p_value=float(p_value),
        confidence=confidence,
        ci_low=float(diff - t_crit * se),
        ci_high=float(diff + t_crit * se),
        cohens_d=float(cohens_d),
        parameter=parameter,
    )


def compare_groups(
    df: pd.DataFrame,
    parameter: str,
    group_column: str,
    confidence: float = 0.95,
) -> AnalysisResult:
    """Compare a column between the two groups of ``group_column``.

    Args:
        df: DataFrame with LOI records
        parameter: Column to compare
        group_column: Column defining exactly two groups

    Returns:
        AnalysisResult with per-group summaries and a Welch t-test
    """
    if parameter not in df.columns or group_column not in df.columns:
        return AnalysisResult(success=False, error="Required columns not found")

    groups = {
        str(name): _numeric(group).dropna()
        for name, group in df.groupby(group_column, dropna=True)[parameter]
    }

    if len(groups) != 2:
        return AnalysisResult(
            success=False,
            error=f"Need exactly 2 groups in {group_column}, found {len(groups)}",
        )

    (label_a, a), (label_b, b) = groups.items()
    try:
        ttest = welch_ttest(a, b, labels=(label_a, label_b), confidence=confidence, parameter=parameter)
    except ValueError as e:
        return AnalysisResult(success=False, error=str(e))

    summaries = [_summarize(f"{parameter} [{name}]", data) for name, data in groups.items() if len(data) >= 2]
    return AnalysisResult(success=True, summaries=summaries, ttests=[ttest])
