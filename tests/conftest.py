"""Pytest configuration and fixtures for LOI Report tests."""

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from loi_report.config import Settings

ELEMENTARY_STREETS = [
    "Agnes Macphail", "Alexander Stirling", "Bala Avenue", "Bedford Park", "Blythwood",
    "Brown", "Cedarvale", "Deer Park", "Dovercourt", "Earl Haig",
    "Forest Hill", "Glen Park", "Hillcrest", "Howard", "Island",
    "John Fisher", "Kew Beach", "Lord Dufferin", "Maurice Cody", "Norway",
    "Ossington", "Park", "Queen Victoria", "Regal Road", "Rosedale",
    "Runnymede", "Sprucecourt", "Thorncliffe Park", "Whitney", "Withrow Avenue",
]

SECONDARY_NAMES = [
    "East York Collegiate Institute",
    "Northern Secondary School",
    "Jarvis Collegiate Institute",
    "Central Technical School",
    "Etobicoke School of the Arts",
    "Humberside Collegiate Institute",
    "Oakwood Collegiate Institute",
    "Ursula Franklin Academy",
    "Riverdale Collegiate Institute",
    "Lawrence Park Collegiate Institute",
]

PUBLISHED_HEADERS = {
    "id": "School Number",
    "name": "School Name",
    "type": "School Type",
    "score_a": "Score 2014",
    "rank_a": "Rank 2014",
    "score_b": "Score 2017",
    "rank_b": "Rank 2017",
}


def make_loi_records(seed: int = 7) -> pd.DataFrame:
    """Build a deterministic set of 40 school records with canonical columns.

    East York Collegiate Institute is the only school whose score rises by
    more than 0.2 (it rises by 0.21); every other change lies in [-0.1, 0.1].
    """
    rng = np.random.default_rng(seed)

    names = [
        f"{street} Junior Public School" if i % 3 == 0 else f"{street} Public School"
        for i, street in enumerate(ELEMENTARY_STREETS)
    ] + SECONDARY_NAMES
    types = ["Elementary"] * len(ELEMENTARY_STREETS) + ["Secondary"] * len(SECONDARY_NAMES)
    n = len(names)

    score_a = rng.uniform(0.1, 0.85, n)
    change = np.clip(rng.normal(0.0, 0.03, n), -0.1, 0.1)

    east_york = names.index("East York Collegiate Institute")
    score_a[east_york] = 0.40
    change[east_york] = 0.21

    score_a = np.round(score_a, 4)
    score_b = np.round(np.clip(score_a + change, 0.0, 1.0), 4)

    df = pd.DataFrame({
        "id": [str(1000 + i) for i in range(n)],
        "name": names,
        "type": types,
        "score_a": score_a,
        "score_b": score_b,
    })
    df["rank_a"] = df.groupby("type")["score_a"].rank(ascending=False, method="first").astype(int)
    df["rank_b"] = df.groupby("type")["score_b"].rank(ascending=False, method="first").astype(int)

    return df[["id", "name", "type", "score_a", "rank_a", "score_b", "rank_b"]]


@pytest.fixture
def loi_df() -> pd.DataFrame:
    """Canonical LOI records."""
    return make_loi_records()


@pytest.fixture
def loi_csv(tmp_path: Path, loi_df: pd.DataFrame) -> Path:
    """The records written to CSV with published-style headers."""
    path = tmp_path / "loi.csv"
    loi_df.rename(columns=PUBLISHED_HEADERS).to_csv(path, index=False)
    return path


@pytest.fixture
def settings(tmp_path: Path, loi_csv: Path) -> Settings:
    """Settings pointing at the test CSV and a temporary output directory."""
    return Settings(
        data_path=loi_csv,
        output_dir=tmp_path / "output",
        _env_file=None,
    )
