"""Tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from loi_report.config import DEFAULT_ACADEMY_WORDS, Settings, get_settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self) -> None:
        s = Settings(_env_file=None)

        assert s.data_path == Path("data/loi.csv")
        assert s.year_a_label == "2014"
        assert s.year_b_label == "2017"
        assert s.academy_words == DEFAULT_ACADEMY_WORDS
        assert s.outlier_threshold == 0.2
        assert s.confidence_level == 0.95
        assert s.write_charts

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOI_OUTLIER_THRESHOLD", "0.3")
        monkeypatch.setenv("LOI_YEAR_B_LABEL", "2020")
        monkeypatch.setenv("LOI_ACADEMY_WORDS", '["Academy", "Institute"]')

        s = Settings(_env_file=None)

        assert s.outlier_threshold == 0.3
        assert s.year_b_label == "2020"
        assert s.academy_words == ("Academy", "Institute")

    def test_env_file(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("LOI_DATA_PATH=/srv/loi/loi.csv\nLOI_TOP_N_WORDS=20\n")

        s = Settings(_env_file=env_file)

        assert s.data_path == Path("/srv/loi/loi.csv")
        assert s.top_n_words == 20

    @pytest.mark.parametrize("value", [0.0, 1.0, 1.5])
    def test_invalid_confidence(self, value: float) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, confidence_level=value)

    def test_no_unused_environment_field(self) -> None:
        assert "environment" not in Settings.model_fields

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="LOUD")


def test_get_settings_returns_shared_instance() -> None:
    assert get_settings() is get_settings()
