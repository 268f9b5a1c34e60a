"""Charts for the LOI report.

This module provides the figures used in the report:
- Year A vs year B score scatter with regression and identity lines
- Histograms of a column (e.g. score change)
- Box/violin comparisons between groups
- Bar chart of the most common words in school names

All plots are generated using Plotly and written as standalone HTML.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import plotly.graph_objects as go

from loi_report.analysis.text import WordFrequencyResult

TYPE_COLORS = {
    "Elementary": "rgba(31, 119, 180, 0.7)",
    "Secondary": "rgba(255, 127, 14, 0.8)",
}


@dataclass
class PlotResult:
    """Result from a plot generation function.

    Attributes:
        figure: Plotly figure object
        title: Plot title
        description: Description of what the plot shows
        data_summary: Summary of data used
    """

    figure: go.Figure
    title: str
    description: str
    data_summary: dict[str, Any]

    def to_html(self, include_plotlyjs: bool = True) -> str:
        """Convert figure to HTML string.

        Args:
            include_plotlyjs: Include Plotly.js library in HTML

        Returns:
            HTML string
        """
        return self.figure.to_html(
            include_plotlyjs="cdn" if include_plotlyjs else False,
            full_html=False,
        )

    def to_json(self) -> str:
        """Convert figure to JSON for frontend rendering."""
        return self.figure.to_json()

    def write_html(self, path: Path | str) -> Path:
        """Write the figure as a standalone HTML page."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.figure.write_html(path, include_plotlyjs="cdn", full_html=True)
        return path


def _hover_names(df: pd.DataFrame, index: pd.Index) -> list[str]:
    if "name" in df.columns:
        return [str(df.loc[idx, "name"]) for idx in index]
    return [f"School {idx}" for idx in index]


def _require(df: pd.DataFrame, columns: list[str]) -> None:
    for column in columns:
        if column not in df.columns:
            raise ValueError(f"Column {column} not found in DataFrame")


def create_score_scatter(
    df: pd.DataFrame,
    x_param: str = "score_a",
    y_param: str = "score_b",
    color_by: str | None = "type",
    show_regression: bool = True,
    show_identity: bool = True,
    x_label: str | None = None,
    y_label: str | None = None,
    title: str | None = None,
) -> PlotResult:
    """Scatter of one score against another.

    Points on the identity line did not change; points above it increased.

    Args:
        df: DataFrame with LOI records
        x_param: X-axis column
        y_param: Y-axis column
        color_by: Categorical column for colour groups (None = single colour)
        show_regression: Add least-squares fit line
        show_identity: Add the y = x line
        x_label: Axis label (defaults to the column name)
        y_label: Axis label (defaults to the column name)
        title: Plot title

    Returns:
        PlotResult with scatter plot
    """
    required = [x_param, y_param]
    if color_by:
        required.append(color_by)
    _require(df, required)

    plot_df = df[required].copy()
    plot_df[x_param] = pd.to_numeric(plot_df[x_param], errors="coerce").astype(float)
    plot_df[y_param] = pd.to_numeric(plot_df[y_param], errors="coerce").astype(float)
    plot_df = plot_df.dropna()

    if len(plot_df) == 0:
        raise ValueError("No valid data for scatter plot")

    x_label = x_label or x_param
    y_label = y_label or y_param
    if title is None:
        title = f"{y_label} vs {x_label}"

    fig = go.Figure()

    groups = plot_df.groupby(color_by) if color_by else [("Schools", plot_df)]
    for name, group in groups:
        hover = [
            f"<b>{school}</b><br>{x_label} = {x:.3f}<br>{y_label} = {y:.3f}"
            for school, x, y in zip(_hover_names(df, group.index), group[x_param], group[y_param])
        ]
        fig.add_trace(go.Scatter(
            x=group[x_param],
            y=group[y_param],
            mode="markers",
            name=str(name),
            marker=dict(size=6, color=TYPE_COLORS.get(str(name))),
            text=hover,
            hoverinfo="text",
        ))

    lo = float(min(plot_df[x_param].min(), plot_df[y_param].min()))
    hi = float(max(plot_df[x_param].max(), plot_df[y_param].max()))

    if show_identity:
        fig.add_trace(go.Scatter(
            x=[lo, hi],
            y=[lo, hi],
            mode="lines",
            line=dict(color="rgba(120, 120, 120, 0.6)", dash="dot"),
            name="No change",
        ))

    summary: dict[str, Any] = {
        "x_param": x_param,
        "y_param": y_param,
        "n_points": len(plot_df),
    }

    if show_regression and len(plot_df) > 2 and plot_df[x_param].nunique() > 1:
        coeffs = np.polyfit(plot_df[x_param].to_numpy(), plot_df[y_param].to_numpy(), 1)
        x_line = np.linspace(plot_df[x_param].min(), plot_df[x_param].max(), 100)
        y_line = np.polyval(coeffs, x_line)

        fig.add_trace(go.Scatter(
            x=x_line,
            y=y_line,
            mode="lines",
            line=dict(color="red", dash="dash"),
            name=f"Fit (slope={coeffs[0]:.2f})",
        ))
        summary["slope"] = float(coeffs[0])
        summary["intercept"] = float(coeffs[1])

    fig.update_layout(
        title=dict(text=title, x=0.5),
        xaxis_title=x_label,
        yaxis_title=y_label,
        template="plotly_white",
        hovermode="closest",
    )

    return PlotResult(
        figure=fig,
        title=title,
        description=f"Scatter plot of {y_label} vs {x_label}.",
        data_summary=summary,
    )


def create_histogram(
    df: pd.DataFrame,
    parameter: str,
    nbins: int = 30,
    color_by: str | None = None,
    x_label: str | None = None,
    title: str | None = None,
) -> PlotResult:
    """Create a histogram for a column.

    Args:
        df: DataFrame with LOI records
        parameter: Column name to plot
        nbins: Number of bins
        color_by: Optional categorical column for overlaid histograms
        x_label: Axis label (defaults to the column name)
        title: Plot title (auto-generated if None)

    Returns:
        PlotResult with histogram figure
    """
    _require(df, [parameter] + ([color_by] if color_by else []))

    data = pd.to_numeric(df[parameter], errors="coerce").astype(float)
    valid = data.notna()

    if not valid.any():
        raise ValueError(f"No valid data for parameter {parameter}")

    x_label = x_label or parameter
    if title is None:
        title = f"Distribution of {x_label}"

    fig = go.Figure()

    if color_by:
        for name, group in data[valid].groupby(df.loc[valid, color_by]):
            fig.add_trace(go.Histogram(
                x=group,
                nbinsx=nbins,
                name=str(name),
                marker_color=TYPE_COLORS.get(str(name)),
                opacity=0.75,
            ))
        fig.update_layout(barmode="overlay")
    else:
        fig.add_trace(go.Histogram(
            x=data[valid],
            nbinsx=nbins,
            name=x_label,
        ))

    fig.update_layout(
        title=dict(text=title, x=0.5),
        xaxis_title=x_label,
        yaxis_title="Schools",
        template="plotly_white",
        bargap=0.05,
    )

    clean = data[valid]
    summary = {
        "parameter": parameter,
        "count": int(valid.sum()),
        "mean": float(clean.mean()),
        "median": float(clean.median()),
        "std": float(clean.std()) if len(clean) > 1 else 0.0,
    }

    return PlotResult(
        figure=fig,
        title=title,
        description=f"Histogram of {x_label}.",
        data_summary=summary,
    )


def create_comparison_plot(
    df: pd.DataFrame,
    parameter: str,
    group_column: str,
    plot_type: str = "box",
    group_labels: dict[Any, str] | None = None,
    y_label: str | None = None,
    title: str | None = None,
) -> PlotResult:
    """Create a comparison plot between groups.

    Args:
        df: DataFrame with LOI records
        parameter: Column to compare
        group_column: Column defining groups
        plot_type: 'box' or 'violin'
        group_labels: Display names for group values (e.g. {True: "Academy"})
        y_label: Axis label (defaults to the column name)
        title: Plot title

    Returns:
        PlotResult with comparison figure
    """
    if parameter not in df.columns:
        raise ValueError(f"Parameter {parameter} not found")
    if group_column not in df.columns:
        raise ValueError(f"Group column {group_column} not found")
    if plot_type not in ("box", "violin"):
        raise ValueError(f"plot_type must be 'box' or 'violin', got {plot_type!r}")

    plot_df = pd.DataFrame({
        "value": pd.to_numeric(df[parameter], errors="coerce").astype(float),
        "group": df[group_column],
    }).dropna()

    if len(plot_df) == 0:
        raise ValueError(f"No valid data for parameter {parameter}")

    group_labels = group_labels or {}
    y_label = y_label or parameter
    if title is None:
        title = f"{y_label} by {group_column}"

    fig = go.Figure()

    groups = list(plot_df["group"].unique())

    for group in groups:
        group_data = plot_df.loc[plot_df["group"] == group, "value"]
        label = group_labels.get(group, str(group))

        if plot_type == "violin":
            fig.add_trace(go.Violin(
                y=group_data,
                name=label,
                box_visible=True,
                meanline_visible=True,
            ))
        else:
            fig.add_trace(go.Box(
                y=group_data,
                name=label,
                boxmean=True,
            ))

    fig.update_layout(
        title=dict(text=title, x=0.5),
        yaxis_title=y_label,
        xaxis_title=group_column,
        template="plotly_white",
    )

    summary = {
        "parameter": parameter,
        "group_column": group_column,
        "n_groups": len(groups),
        "groups": [group_labels.get(g, str(g)) for g in groups],
    }

    return PlotResult(
        figure=fig,
        title=title,
        description=f"Comparison of {y_label} across {group_column} groups.",
        data_summary=summary,
    )


def create_word_frequency_chart(
    frequencies: WordFrequencyResult,
    top_n: int = 15,
    title: str = "Most Common Words in School Names",
) -> PlotResult:
    """Horizontal bar chart of the most common name words.

    Args:
        frequencies: Result of word_frequencies()
        top_n: Number of words to show
        title: Plot title

    Returns:
        PlotResult with bar chart
    """
    top = frequencies.most_common(top_n)
    if not top:
        raise ValueError("No words to plot")

    # Reverse so the most common word is at the top
    words = [w for w, _ in reversed(top)]
    counts = [c for _, c in reversed(top)]

    fig = go.Figure(go.Bar(
        x=counts,
        y=words,
        orientation="h",
        marker_color="rgba(31, 119, 180, 0.8)",
    ))

    fig.update_layout(
        title=dict(text=title, x=0.5),
        xaxis_title="Schools",
        yaxis_title="Word",
        template="plotly_white",
        height=max(400, 25 * len(words)),
    )

    return PlotResult(
        figure=fig,
        title=title,
        description=f"The {len(words)} most common words across {frequencies.total_names} school names.",
        data_summary={
            "total_names": frequencies.total_names,
            "words": dict(top),
        },
    )
