"""Tests for the dataset module."""

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from loi_report.core.dataset import (
    DatasetError,
    DatasetMetadata,
    SchoolDataset,
    load_dataset,
)


class TestDatasetMetadata:
    """Tests for DatasetMetadata dataclass."""

    def test_metadata_to_dict(self) -> None:
        """Test converting metadata to dictionary."""
        metadata = DatasetMetadata(
            source="loi.csv",
            loaded_at="2026-01-15T10:00:00",
            total_schools=2,
            columns=("id", "name"),
            type_counts={"Elementary": 2},
        )
        d = metadata.to_dict()
        assert d["total_schools"] == 2
        assert d["columns"] == ["id", "name"]
        assert d["type_counts"] == {"Elementary": 2}


class TestLoadCsv:
    """Tests for loading the published CSV."""

    def test_loads_published_headers(self, loi_csv: Path) -> None:
        """Published headers map to canonical columns."""
        dataset = SchoolDataset(loi_csv)

        assert dataset.total_schools == 40
        assert list(dataset.dataframe.columns) == [
            "id", "name", "type", "score_a", "rank_a", "score_b", "rank_b",
        ]
        assert dataset.metadata.type_counts == {"Elementary": 30, "Secondary": 10}
        assert dataset.source == str(loi_csv)

    def test_numeric_types(self, loi_csv: Path) -> None:
        """Scores are floats and integral ranks are integers."""
        df = SchoolDataset(loi_csv).dataframe

        assert df["score_a"].dtype == float
        assert str(df["rank_a"].dtype) == "Int64"
        assert df["id"].iloc[0] == "1000"

    def test_positional_fallback(self, tmp_path: Path, loi_df: pd.DataFrame) -> None:
        """Seven unrecognised headers are mapped by position."""
        path = tmp_path / "odd.csv"
        loi_df.set_axis(list("ABCDEFG"), axis=1).to_csv(path, index=False)

        dataset = SchoolDataset(path)

        assert list(dataset.dataframe.columns)[:7] == [
            "id", "name", "type", "score_a", "rank_a", "score_b", "rank_b",
        ]
        assert dataset.dataframe["score_b"].equals(loi_df["score_b"].astype(float))

    def test_missing_columns_raise(self, tmp_path: Path) -> None:
        """A file lacking required columns cannot be loaded."""
        path = tmp_path / "short.csv"
        pd.DataFrame({"School Name": ["A"], "Score 2014": [0.5]}).to_csv(path, index=False)

        with pytest.raises(DatasetError, match="missing required columns"):
            SchoolDataset(path)

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """A missing file raises DatasetError with the cause chained."""
        with pytest.raises(DatasetError) as excinfo:
            SchoolDataset(tmp_path / "nope.csv")
        assert excinfo.value.__cause__ is not None

    def test_malformed_cells_become_missing(self, tmp_path: Path, loi_df: pd.DataFrame) -> None:
        """Unparseable numbers are loaded as missing values."""
        raw = loi_df.astype(str)
        raw.loc[0, "score_a"] = "n/a"
        raw.loc[1, "rank_b"] = "?"
        path = tmp_path / "bad.csv"
        raw.to_csv(path, index=False)

        df = SchoolDataset(path).dataframe

        assert pd.isna(df.loc[0, "score_a"])
        assert pd.isna(df.loc[1, "rank_b"])
        assert df["score_a"].notna().sum() == 39

    def test_type_labels_normalised(self, loi_df: pd.DataFrame) -> None:
        """Type labels are normalised; unknown labels are kept as-is."""
        raw = loi_df.copy()
        raw.loc[0, "type"] = "elementary "
        raw.loc[1, "type"] = "Middle"

        df = SchoolDataset(data=raw).dataframe

        assert df.loc[0, "type"] == "Elementary"
        assert df.loc[1, "type"] == "Middle"

    def test_name_internal_spacing_kept(self, loi_df: pd.DataFrame, tmp_path: Path) -> None:
        """Names are trimmed at the ends only and round-trip through the snapshot."""
        raw = loi_df.copy()
        raw.loc[0, "name"] = "  Agnes  Macphail Junior Public School "

        dataset = SchoolDataset(data=raw)
        written = pd.read_csv(dataset.write_snapshot(tmp_path / "snap.csv"))

        assert dataset.dataframe.loc[0, "name"] == "Agnes  Macphail Junior Public School"
        assert written.loc[0, "name"] == "Agnes  Macphail Junior Public School"
        assert dataset.enrich().dataframe.loc[0, "name_word_count"] == 5

    def test_load_dataset_helper(self, loi_csv: Path) -> None:
        """load_dataset forwards to SchoolDataset."""
        dataset = load_dataset(loi_csv, year_a_label="2014", year_b_label="2017")
        assert dataset.total_schools == 40

    def test_requires_path_or_data(self) -> None:
        with pytest.raises(ValueError):
            SchoolDataset()


class TestSchoolDataset:
    """Tests for dataset lookups and enrichment."""

    @pytest.fixture
    def dataset(self, loi_df: pd.DataFrame) -> SchoolDataset:
        return SchoolDataset(data=loi_df, source="fixture")

    def test_column_coverage(self, loi_df: pd.DataFrame) -> None:
        """Coverage is the non-null fraction per column."""
        raw = loi_df.copy()
        raw.loc[:3, "score_b"] = np.nan
        dataset = SchoolDataset(data=raw)

        coverage = dataset.get_column_coverage(["score_a", "score_b"])
        assert coverage["score_a"] == 1.0
        assert coverage["score_b"] == pytest.approx(36 / 40)

    def test_get_school_by_id(self, dataset: SchoolDataset) -> None:
        school = dataset.get_school("1000")
        assert school is not None
        assert school["name"] == "Agnes Macphail Junior Public School"

    def test_get_school_by_name(self, dataset: SchoolDataset) -> None:
        school = dataset.get_school("east york collegiate institute")
        assert school is not None
        assert school["type"] == "Secondary"

    def test_get_school_by_unique_substring(self, dataset: SchoolDataset) -> None:
        school = dataset.get_school("Ursula")
        assert school is not None
        assert school["name"] == "Ursula Franklin Academy"

    def test_get_school_ambiguous(self, dataset: SchoolDataset) -> None:
        """An ambiguous substring returns None."""
        assert dataset.get_school("Collegiate") is None
        assert dataset.get_school("Nowhere") is None

    def test_search_schools(self, dataset: SchoolDataset) -> None:
        results = dataset.search_schools("collegiate", limit=3)
        assert len(results) == 3
        assert results["name"].str.contains("Collegiate").all()

    def test_filter_by_type(self, dataset: SchoolDataset) -> None:
        secondary = dataset.filter_by_type("secondary")
        assert len(secondary) == 10
        assert (secondary["type"] == "Secondary").all()

    def test_enrich_returns_new_dataset(self, dataset: SchoolDataset) -> None:
        """Enrichment appends derived columns without touching the original."""
        enriched = dataset.enrich()

        assert enriched is not dataset
        assert enriched.is_enriched
        assert not dataset.is_enriched
        assert list(enriched.dataframe.columns)[-4:] == [
            "score_change", "rank_change", "name_word_count", "is_academy",
        ]
        assert enriched.source == "fixture"

    def test_write_snapshot(self, dataset: SchoolDataset, tmp_path: Path) -> None:
        """The snapshot is a CSV with the derived columns."""
        path = dataset.enrich().write_snapshot(tmp_path / "out" / "snapshot.csv")

        assert path.exists()
        written = pd.read_csv(path)
        assert len(written) == 40
        assert "score_change" in written.columns

    def test_snapshot_reloads(self, dataset: SchoolDataset, tmp_path: Path) -> None:
        """A snapshot can be loaded again with the derived columns kept."""
        path = dataset.enrich().write_snapshot(tmp_path / "snapshot.csv")
        reloaded = SchoolDataset(path)

        assert reloaded.total_schools == 40
        assert "is_academy" in reloaded.dataframe.columns

    def test_lookups_with_missing_names(self, loi_df: pd.DataFrame) -> None:
        """Lookups work when every name is missing."""
        dataset = SchoolDataset(data=loi_df.assign(name=np.nan))

        assert dataset.get_school("Ursula") is None
        assert dataset.get_school("1000")["id"] == "1000"
        assert dataset.search_schools("school").empty
