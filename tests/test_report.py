"""Tests for the report pipeline."""

from pathlib import Path
from unittest.mock import patch

import pandas as pd
import pytest
from scipy import stats

from loi_report.config import Settings
from loi_report.core.dataset import DatasetError, SchoolDataset
from loi_report.report import ReportResult, build_report, write_report


@pytest.fixture
def report(settings: Settings) -> ReportResult:
    return build_report(settings)


class TestBuildReport:
    """Tests for build_report."""

    def test_dataset_is_enriched(self, report: ReportResult) -> None:
        assert report.dataset.is_enriched
        assert report.dataset.total_schools == 40
        assert report.validation.is_safe

    def test_year_labels(self, report: ReportResult) -> None:
        assert report.year_a == "2014"
        assert report.year_b == "2017"

    def test_sole_outlier(self, report: ReportResult) -> None:
        assert report.outliers.names == ["East York Collegiate Institute"]

    def test_correlation_and_regression(self, report: ReportResult, loi_df: pd.DataFrame) -> None:
        assert report.correlation.pearson_r > 0.95
        assert report.correlation.ci_low is not None
        assert report.regression.n_points == 40
        assert set(report.type_correlations) == {"Elementary", "Secondary"}

    def test_academy_ttest(self, report: ReportResult) -> None:
        """The t-test compares year B scores of academy-named and other schools."""
        df = report.dataset.dataframe
        expected = stats.ttest_ind(
            df.loc[df["is_academy"], "score_b"],
            df.loc[~df["is_academy"], "score_b"],
            equal_var=False,
        )

        assert report.academy_ttest.n_a == 7
        assert report.academy_ttest.n_b == 33
        assert report.academy_ttest.p_value == pytest.approx(expected.pvalue)

    def test_movers(self, report: ReportResult) -> None:
        assert set(report.movers) == {"score_up", "score_down", "rank_up", "rank_down"}
        assert report.movers["score_up"].count == 5
        assert report.movers["score_up"].names[0] == "East York Collegiate Institute"

    def test_plots(self, report: ReportResult) -> None:
        assert set(report.plots) == {
            "score_scatter", "score_change_histogram", "academy_comparison", "name_words",
        }
        assert report.plots["score_scatter"].figure.layout.xaxis.title.text == "Score 2014"

    def test_failing_chart_skipped(self, settings: Settings) -> None:
        """A chart that cannot be drawn is left out of the report."""
        with patch(
            "loi_report.report.create_word_frequency_chart",
            side_effect=ValueError("No words to plot"),
        ):
            result = build_report(settings)

        assert "name_words" not in result.plots
        assert "score_scatter" in result.plots

    def test_without_plots(self, settings: Settings) -> None:
        assert build_report(settings, include_plots=False).plots == {}

    def test_settings_control_charts(self, settings: Settings) -> None:
        quiet = settings.model_copy(update={"write_charts": False})
        assert build_report(quiet).plots == {}

    def test_custom_threshold(self, settings: Settings) -> None:
        lenient = settings.model_copy(update={"outlier_threshold": 0.5})
        assert build_report(lenient).outliers.count == 0

    def test_preloaded_dataset(self, settings: Settings, loi_df: pd.DataFrame) -> None:
        dataset = SchoolDataset(data=loi_df, source="memory")
        result = build_report(settings, dataset=dataset, include_plots=False)
        assert result.dataset.source == "memory"

    def test_input_path_overrides_settings(self, settings: Settings, loi_csv: Path) -> None:
        broken = settings.model_copy(update={"data_path": Path("missing.csv")})
        result = build_report(broken, input_path=loi_csv, include_plots=False)
        assert result.dataset.total_schools == 40

    def test_missing_input(self, settings: Settings, tmp_path: Path) -> None:
        with pytest.raises(DatasetError):
            build_report(settings, input_path=tmp_path / "missing.csv")

    def test_unsafe_data_still_reported(self, settings: Settings, loi_df: pd.DataFrame) -> None:
        """Invariant violations are reported, not fatal."""
        df = loi_df.copy()
        df.loc[5, "score_b"] = 1.3

        result = build_report(settings, dataset=SchoolDataset(data=df), include_plots=False)

        assert not result.validation.is_safe
        assert "[CRITICAL]" in result.to_markdown()

    def test_to_dict(self, report: ReportResult) -> None:
        d = report.to_dict()
        assert d["dataset"]["total_schools"] == 40
        assert d["outliers"]["count"] == 1
        assert d["academy_ttest"]["groups"]["Academy-named"]["n"] == 7
        assert d["plots"] == sorted(report.plots)


class TestMarkdown:
    """Tests for the narrative report."""

    def test_sections(self, report: ReportResult) -> None:
        text = report.to_markdown()

        assert text.startswith("# Learning Opportunities Index: 2014 vs 2017")
        for heading in (
            "## Overview",
            "## Data quality",
            "## Summary statistics",
            "## Year over year: 2014 vs 2017",
            "## Biggest changes",
            "## What's in a name?",
            "## Charts",
        ):
            assert heading in text

    def test_content(self, report: ReportResult) -> None:
        text = report.to_markdown()

        assert "40 schools (30 Elementary, 10 Secondary)" in text
        assert "East York Collegiate Institute" in text
        assert "Welch t-test" in text
        assert "(score_scatter.html)" in text
        assert "**Elementary**" in text


class TestWriteReport:
    """Tests for write_report."""

    def test_writes_all_files(self, report: ReportResult, tmp_path: Path) -> None:
        written = write_report(report, tmp_path / "out")

        assert set(written) == {
            "snapshot", "score_scatter", "score_change_histogram",
            "academy_comparison", "name_words", "report",
        }
        for path in written.values():
            assert path.exists()
        assert written["snapshot"].name == "loi_enriched.csv"
        assert written["report"].read_text(encoding="utf-8") == report.to_markdown()

    def test_snapshot_contents(self, report: ReportResult, tmp_path: Path) -> None:
        """The snapshot holds the input columns followed by the derived columns."""
        written = write_report(report, tmp_path, snapshot_name="snap.csv", report_name="r.md")

        snapshot = pd.read_csv(written["snapshot"])
        assert list(snapshot.columns) == [
            "id", "name", "type", "score_a", "rank_a", "score_b", "rank_b",
            "score_change", "rank_change", "name_word_count", "is_academy",
        ]
        assert len(snapshot) == 40
        assert written["report"].name == "r.md"
        assert snapshot["score_a"].between(0, 1).all()
