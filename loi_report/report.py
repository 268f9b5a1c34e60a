"""Report pipeline: load, validate, enrich, analyse, plot and write.

Example:
    >>> from loi_report.report import build_report, write_report
    >>> result = build_report(input_path="data/loi.csv")
    >>> print(result.to_markdown())
    >>> write_report(result, "output")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from loi_report.analysis.findings import OutlierResult, find_score_outliers, largest_movers, rank_movers
from loi_report.analysis.statistics import (
    AnalysisResult,
    CorrelationResult,
    RegressionResult,
    StatisticalSummary,
    TTestResult,
    correlation_analysis,
    linear_regression,
    statistical_analysis,
    summarize_by_group,
    welch_ttest,
)
from loi_report.analysis.text import WordFrequencyResult, partition_by_words, word_frequencies
from loi_report.config import Settings, get_settings
from loi_report.core.dataset import SchoolDataset
from loi_report.core.schema import SchoolType
from loi_report.core.validation import RecordValidator, ValidationResult
from loi_report.visualization.plots import (
    PlotResult,
    create_comparison_plot,
    create_histogram,
    create_score_scatter,
    create_word_frequency_chart,
)

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = ["score_a", "score_b", "score_change", "rank_change", "name_word_count"]


@dataclass
class ReportResult:
    """Everything computed for one report run.

    Attributes:
        dataset: Enriched dataset
        validation: Data quality checks on the loaded records
        summaries: Summary statistics of the main columns
        type_summaries: Score change summaries per school type
        correlation: Year A vs year B score correlation (None if not computable)
        type_correlations: The same correlation within each school type
        regression: Year B score regressed on year A score
        outliers: Schools whose score change exceeds the threshold
        movers: Largest score and rank movers, keyed by description
        word_frequencies: Word counts over school names
        academy_ttest: Welch t-test of year B score, academy-named vs other
        word_count_correlation: Name length vs year B score
        plots: Charts keyed by file stem
        academy_words: Word list used for the academy partition
        generated_at: When the report was built
    """

    dataset: SchoolDataset
    validation: ValidationResult
    summaries: list[StatisticalSummary]
    type_summaries: dict[str, StatisticalSummary]
    correlation: CorrelationResult | None
    type_correlations: dict[str, CorrelationResult]
    regression: RegressionResult | None
    outliers: OutlierResult
    movers: dict[str, OutlierResult]
    word_frequencies: WordFrequencyResult
    academy_ttest: TTestResult | None
    word_count_correlation: CorrelationResult | None
    plots: dict[str, PlotResult] = field(default_factory=dict)
    academy_words: tuple[str, ...] = ()
    generated_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def year_a(self) -> str:
        return self.dataset.schema.year_a_label

    @property
    def year_b(self) -> str:
        return self.dataset.schema.year_b_label

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (excluding records and figures)."""
        return {
            "dataset": self.dataset.get_dataset_info(),
            "validation": self.validation.to_dict(),
            "summaries": [s.to_dict() for s in self.summaries],
            "type_summaries": {k: v.to_dict() for k, v in self.type_summaries.items()},
            "correlation": self.correlation.to_dict() if self.correlation else None,
            "type_correlations": {k: v.to_dict() for k, v in self.type_correlations.items()},
            "regression": self.regression.to_dict() if self.regression else None,
            "outliers": self.outliers.to_dict(),
            "movers": {k: v.to_dict() for k, v in self.movers.items()},
            "word_frequencies": self.word_frequencies.to_dict(),
            "academy_ttest": self.academy_ttest.to_dict() if self.academy_ttest else None,
            "word_count_correlation": (
                self.word_count_correlation.to_dict() if self.word_count_correlation else None
            ),
            "plots": sorted(self.plots),
            "generated_at": self.generated_at,
        }

    def to_markdown(self) -> str:
        """Render the narrative report as markdown."""
        info = self.dataset.metadata
        types = ", ".join(f"{count} {name}" for name, count in sorted(info.type_counts.items()))
        sections = [
            f"# Learning Opportunities Index: {self.year_a} vs {self.year_b}",
            "## Overview\n\n"
            f"{info.total_schools} schools ({types}) loaded from `{info.source}`.",
            "## Data quality\n\n" + self.validation.format_for_display(),
            "## Summary statistics\n\n"
            + "\n\n".join(s.format_for_display() for s in self.summaries),
        ]

        if self.type_summaries:
            sections.append(
                "### Score change by school type\n\n"
                + "\n\n".join(
                    s.format_for_display().replace(f"**{s.parameter}**", f"**{name}**", 1)
                    for name, s in self.type_summaries.items()
                )
            )

        trend = [f"## Year over year: {self.year_a} vs {self.year_b}"]
        if self.correlation:
            trend.append(self.correlation.format_for_display())
        else:
            trend.append("Correlation could not be computed.")
        for name, corr in self.type_correlations.items():
            trend.append(f"*{name}:* r = {corr.pearson_r:.3f} (n={corr.n_points})")
        if self.regression:
            trend.append(self.regression.format_for_display())
        sections.append("\n\n".join(trend))

        movers = ["## Biggest changes", self.outliers.format_for_display()]
        movers.extend(m.format_for_display() for m in self.movers.values())
        sections.append("\n\n".join(movers))

        names = ["## What's in a name?", self.word_frequencies.format_for_display()]
        if self.academy_ttest:
            names.append(
                f"Schools named with {', '.join(self.academy_words)}:\n\n"
                + self.academy_ttest.format_for_display()
            )
        else:
            names.append("Academy-named comparison could not be computed.")
        if self.word_count_correlation:
            names.append(self.word_count_correlation.format_for_display())
        sections.append("\n\n".join(names))

        if self.plots:
            sections.append(
                "## Charts\n\n"
                + "\n".join(f"- [{p.title}]({stem}.html)" for stem, p in self.plots.items())
            )

        sections.append(f"*Generated {self.generated_at}*")
        return "\n\n".join(sections) + "\n"


def _first(result: AnalysisResult, attr: str) -> Any:
    if not result.success:
        logger.warning(f"Analysis skipped: {result.error}")
        return None
    items = getattr(result, attr)
    return items[0] if items else None


def build_report(
    settings: Settings | None = None,
    input_path: Path | str | None = None,
    dataset: SchoolDataset | None = None,
    include_plots: bool | None = None,
) -> ReportResult:
    """Run the analysis pipeline.

    Args:
        settings: Settings (default: global settings)
        input_path: CSV to load (default: settings.data_path)
        dataset: Already-loaded dataset; skips loading
        include_plots: Build charts (default: settings.write_charts)

    Returns:
        ReportResult

    Raises:
        DatasetError: If the input cannot be loaded
    """
    settings = settings or get_settings()
    include_plots = settings.write_charts if include_plots is None else include_plots

    if dataset is None:
        dataset = SchoolDataset(
            input_path or settings.data_path,
            year_a_label=settings.year_a_label,
            year_b_label=settings.year_b_label,
        )

    validator = RecordValidator(
        missingness_threshold=settings.missingness_threshold,
        critical_threshold=settings.critical_missingness,
        schema=dataset.schema,
    )
    validation = validator.validate(dataset.dataframe)
    if not validation.is_safe:
        logger.warning(f"Data quality issues found: {len(validation.warnings)} warning(s)")

    enriched = dataset.enrich(settings.academy_words)
    df = enriched.dataframe
    confidence = settings.confidence_level

    summaries = statistical_analysis(df, SUMMARY_COLUMNS).summaries
    type_summaries = summarize_by_group(df, "score_change", "type")

    correlation = _first(correlation_analysis(df, "score_a", "score_b", confidence=confidence), "correlations")
    type_correlations = {}
    for school_type in SchoolType:
        subset = df[df["type"] == school_type.value]
        corr = correlation_analysis(subset, "score_a", "score_b", confidence=confidence)
        if corr.success:
            type_correlations[school_type.value] = corr.correlations[0]

    regression = _first(linear_regression(df, "score_a", "score_b"), "regressions")

    outliers = find_score_outliers(df, threshold=settings.outlier_threshold)
    n = settings.top_n_movers
    movers = {
        "score_up": largest_movers(df, "score_change", n=n, direction="up"),
        "score_down": largest_movers(df, "score_change", n=n, direction="down"),
        "rank_up": rank_movers(df, n=n, direction="up"),
        "rank_down": rank_movers(df, n=n, direction="down"),
    }

    frequencies = word_frequencies(df["name"])
    academy, other = partition_by_words(df, settings.academy_words)
    logger.info(f"{len(academy)} academy-named schools, {len(other)} other")
    try:
        academy_ttest = welch_ttest(
            academy["score_b"],
            other["score_b"],
            labels=("Academy-named", "Other"),
            confidence=confidence,
            parameter=f"score {settings.year_b_label}",
        )
    except ValueError as e:
        logger.warning(f"Academy t-test skipped: {e}")
        academy_ttest = None

    word_count_correlation = _first(
        correlation_analysis(df, "name_word_count", "score_b", confidence=confidence), "correlations"
    )

    plots = _build_plots(enriched, settings, frequencies) if include_plots else {}

    logger.info(f"Report built for {enriched.total_schools} schools")

    return ReportResult(
        dataset=enriched,
        validation=validation,
        summaries=summaries,
        type_summaries=type_summaries,
        correlation=correlation,
        type_correlations=type_correlations,
        regression=regression,
        outliers=outliers,
        movers=movers,
        word_frequencies=frequencies,
        academy_ttest=academy_ttest,
        word_count_correlation=word_count_correlation,
        plots=plots,
        academy_words=tuple(settings.academy_words),
    )


def _build_plots(
    dataset: SchoolDataset,
    settings: Settings,
    frequencies: WordFrequencyResult,
) -> dict[str, PlotResult]:
    """Build the report charts. Charts without data are skipped."""
    df = dataset.dataframe
    schema = dataset.schema
    builders = {
        "score_scatter": lambda: create_score_scatter(
            df,
            x_label=schema.display_name("score_a"),
            y_label=schema.display_name("score_b"),
            title=f"LOI score, {settings.year_a_label} vs {settings.year_b_label}",
        ),
        "score_change_histogram": lambda: create_histogram(
            df,
            "score_change",
            color_by="type",
            x_label=schema.display_name("score_change"),
        ),
        "academy_comparison": lambda: create_comparison_plot(
            df,
            "score_b",
            "is_academy",
            group_labels={True: "Academy-named", False: "Other"},
            y_label=schema.display_name("score_b"),
            title=f"{schema.display_name('score_b')}: academy-named vs other schools",
        ),
        "name_words": lambda: create_word_frequency_chart(frequencies, top_n=settings.top_n_words),
    }

    plots = {}
    for stem, build in builders.items():
        try:
            plots[stem] = build()
        except ValueError as e:
            logger.warning(f"Chart {stem} skipped: {e}")
    return plots


def write_report(
    result: ReportResult,
    output_dir: Path | str,
    snapshot_name: str = "loi_enriched.csv",
    report_name: str = "report.md",
) -> dict[str, Path]:
    """Write the snapshot CSV, the charts and the markdown report.

    Args:
        result: Output of build_report()
        output_dir: Directory to write into (created if needed)
        snapshot_name: File name of the enriched CSV
        report_name: File name of the markdown report

    Returns:
        Dict mapping artifact name -> written path
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = {"snapshot": result.dataset.write_snapshot(output_dir / snapshot_name)}

    for stem, plot in result.plots.items():
        written[stem] = plot.write_html(output_dir / f"{stem}.html")

    report_path = output_dir / report_name
    report_path.write_text(result.to_markdown(), encoding="utf-8")
    written["report"] = report_path

    logger.info(f"Wrote {len(written)} files to {output_dir}")
    return written
