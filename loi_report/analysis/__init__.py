"""Analysis tools for LOI Report.

This module contains:
- Derived columns (score change, rank change, name word count, academy flag)
- Statistical summaries, correlation, regression and Welch t-tests
- School name tokenization and word frequencies
- Outliers and largest movers
"""

from loi_report.analysis.derived import (
    DERIVED_COLUMNS,
    DerivedColumnResult,
    add_derived_columns,
    compute_derived_column,
    get_available_derived_columns,
)
from loi_report.analysis.findings import (
    OutlierResult,
    find_score_outliers,
    largest_movers,
    rank_movers,
)
from loi_report.analysis.statistics import (
    AnalysisResult,
    CorrelationResult,
    RegressionResult,
    StatisticalSummary,
    TTestResult,
    compare_groups,
    correlation_analysis,
    linear_regression,
    multi_correlation_analysis,
    statistical_analysis,
    summarize_by_group,
    welch_ttest,
)
from loi_report.analysis.text import (
    ACADEMY_WORDS,
    WordFrequencyResult,
    is_academy_name,
    partition_by_words,
    tokenize_name,
    word_count,
    word_frequencies,
)

__all__ = [
    # Derived columns
    "DERIVED_COLUMNS",
    "DerivedColumnResult",
    "add_derived_columns",
    "compute_derived_column",
    "get_available_derived_columns",
    # Statistics
    "AnalysisResult",
    "CorrelationResult",
    "RegressionResult",
    "StatisticalSummary",
    "TTestResult",
    "compare_groups",
    "correlation_analysis",
    "linear_regression",
    "multi_correlation_analysis",
    "statistical_analysis",
    "summarize_by_group",
    "welch_ttest",
    # Name text
    "ACADEMY_WORDS",
    "WordFrequencyResult",
    "is_academy_name",
    "partition_by_words",
    "tokenize_name",
    "word_count",
    "word_frequencies",
    # Findings
    "OutlierResult",
    "find_score_outliers",
    "largest_movers",
    "rank_movers",
]
