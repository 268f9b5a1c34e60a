"""Configuration management for LOI Report.

Uses pydantic-settings for type-safe environment variable loading.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ACADEMY_WORDS = ("Institute", "Collegiate", "Academy")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LOI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Input / Output
    data_path: Path = Field(
        default=Path("data/loi.csv"),
        description="CSV file with one row per school",
    )
    output_dir: Path = Field(
        default=Path("output"),
        description="Directory for the snapshot, charts and report",
    )
    snapshot_name: str = Field(
        default="loi_enriched.csv",
        description="File name of the enriched CSV snapshot",
    )
    report_name: str = Field(
        default="report.md",
        description="File name of the markdown report",
    )

    # Dataset labelling
    year_a_label: str = Field(
        default="2014",
        description="Label of the earlier LOI year",
    )
    year_b_label: str = Field(
        default="2017",
        description="Label of the later LOI year",
    )

    # Analysis
    academy_words: tuple[str, ...] = Field(
        default=DEFAULT_ACADEMY_WORDS,
        description="Name words that mark an academy-style school (JSON list in env)",
    )
    outlier_threshold: float = Field(
        default=0.2,
        description="Score change above which a school is reported as an outlier",
    )
    confidence_level: float = Field(
        default=0.95,
        description="Confidence level for intervals",
    )
    top_n_words: int = Field(
        default=15,
        description="Number of words shown in the name frequency chart",
    )
    top_n_movers: int = Field(
        default=5,
        description="Number of schools listed as largest movers",
    )

    # Validation
    missingness_threshold: float = Field(
        default=0.5,
        description="Fraction of missing values that triggers a warning",
    )
    critical_missingness: float = Field(
        default=0.8,
        description="Fraction of missing values that is critical",
    )

    # Application Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    write_charts: bool = Field(
        default=True,
        description="Write chart HTML files alongside the report",
    )

    @field_validator("confidence_level")
    @classmethod
    def _check_confidence(cls, value: float) -> float:
        if not 0.0 < value < 1.0:
            raise ValueError("confidence_level must be between 0 and 1")
        return value


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings
