"""LOI Report: year-over-year analysis of school Learning Opportunities Index data.

This package loads a table of school LOI records for two years, derives
change columns, computes descriptive statistics, correlations and t-tests,
and renders charts and a markdown narrative for a blog post.
"""

__version__ = "0.1.0"


def __getattr__(name: str):
    """Lazy imports for main package exports."""
    if name == "ColumnSchema":
        from loi_report.core.schema import ColumnSchema

        return ColumnSchema
    if name == "SchoolDataset":
        from loi_report.core.dataset import SchoolDataset

        return SchoolDataset
    if name == "build_report":
        from loi_report.report import build_report

        return build_report
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "ColumnSchema",
    "SchoolDataset",
    "build_report",
    "__version__",
]
