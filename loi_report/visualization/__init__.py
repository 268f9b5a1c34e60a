"""Visualization tools for LOI Report.

This module contains:
- Score scatter with regression and identity lines
- Histograms and group comparison plots
- Name word frequency bar chart
"""

from loi_report.visualization.plots import (
    PlotResult,
    create_comparison_plot,
    create_histogram,
    create_score_scatter,
    create_word_frequency_chart,
)

__all__ = [
    "PlotResult",
    "create_score_scatter",
    "create_histogram",
    "create_comparison_plot",
    "create_word_frequency_chart",
]
