"""Tests for the column schema module."""

import pytest

from loi_report.core.schema import (
    ColumnDefinition,
    ColumnKind,
    ColumnSchema,
    SchoolType,
    normalize_header,
)


class TestColumnSchema:
    """Test suite for ColumnSchema class."""

    @pytest.fixture
    def schema(self) -> ColumnSchema:
        """Create a ColumnSchema instance for testing."""
        return ColumnSchema(year_a_label="2014", year_b_label="2017")

    def test_all_columns_have_required_fields(self, schema: ColumnSchema) -> None:
        """Verify all column definitions are consistent."""
        for code, column in schema.COLUMNS.items():
            assert isinstance(column, ColumnDefinition)
            assert column.code == code
            assert column.description
            assert isinstance(column.kind, ColumnKind)

    def test_input_columns_in_file_order(self, schema: ColumnSchema) -> None:
        """Input columns follow the published file order."""
        assert schema.get_input_columns() == [
            "id", "name", "type", "score_a", "rank_a", "score_b", "rank_b",
        ]

    def test_derived_columns_in_fixed_order(self, schema: ColumnSchema) -> None:
        """Derived columns are appended in a fixed order."""
        assert schema.get_derived_columns() == [
            "score_change", "rank_change", "name_word_count", "is_academy",
        ]

    def test_derived_columns_document_formula(self, schema: ColumnSchema) -> None:
        """Every derived column states how it is computed."""
        for code in schema.get_derived_columns():
            assert schema.get_column(code).formula

    def test_scores_have_unit_range(self, schema: ColumnSchema) -> None:
        """Scores are bounded by [0, 1]."""
        for code in schema.get_columns_by_kind(ColumnKind.SCORE):
            assert schema.get_column(code).valid_range == (0.0, 1.0)

    @pytest.mark.parametrize(
        "header,expected",
        [
            ("School Name", "name"),
            ("school_name", "name"),
            ("School Number", "id"),
            ("School Type", "type"),
            ("Score 2014", "score_a"),
            ("Score (2017)", "score_b"),
            ("2017 LOI Score", "score_b"),
            ("LOI_Rank_2014", "rank_a"),
            ("Rank 2017", "rank_b"),
            ("  score_a ", "score_a"),
        ],
    )
    def test_resolve_header(self, schema: ColumnSchema, header: str, expected: str) -> None:
        """Test resolving published headers to canonical codes."""
        assert schema.resolve_header(header) == expected

    def test_resolve_unknown_header(self, schema: ColumnSchema) -> None:
        """Unknown headers resolve to None."""
        assert schema.resolve_header("Ward") is None
        assert schema.resolve_header("Score 2011") is None

    def test_year_labels_drive_aliases(self) -> None:
        """Aliases follow the configured year labels."""
        schema = ColumnSchema(year_a_label="2011", year_b_label="2014")
        assert schema.resolve_header("Score 2011") == "score_a"
        assert schema.resolve_header("Score 2014") == "score_b"

    def test_identical_year_labels_rejected(self) -> None:
        """Two years with the same label cannot be told apart."""
        with pytest.raises(ValueError, match="differ"):
            ColumnSchema(year_a_label="2017", year_b_label="2017")

    def test_display_name(self, schema: ColumnSchema) -> None:
        """Display names include the year for score and rank columns."""
        assert schema.display_name("score_a") == "Score 2014"
        assert schema.display_name("rank_b") == "Rank 2017"
        assert schema.display_name("score_change") == "Score change 2014-2017"
        assert schema.display_name("unknown") == "unknown"

    def test_get_column_case_insensitive(self, schema: ColumnSchema) -> None:
        """Column lookup ignores case."""
        assert schema.get_column("SCORE_A").code == "score_a"
        assert schema.get_column("nope") is None


class TestSchoolType:
    """Tests for SchoolType parsing."""

    @pytest.mark.parametrize("value", ["Elementary", "elementary", " ELEMENTARY "])
    def test_parse_elementary(self, value: str) -> None:
        assert SchoolType.parse(value) is SchoolType.ELEMENTARY

    def test_parse_secondary(self) -> None:
        assert SchoolType.parse("secondary") is SchoolType.SECONDARY

    def test_parse_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown school type"):
            SchoolType.parse("Middle")


def test_normalize_header() -> None:
    """Punctuation and whitespace collapse to single spaces."""
    assert normalize_header("  LOI_Score (2014) ") == "loi score 2014"
