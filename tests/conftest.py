from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from listings.config import PRESETS, PipelineConfig
from listings.sheet_reader import LOADER

LISTINGS_CSV = """Project Name,Area,BHK,Latitude,Longitude,Price (₹),Possession
Shivalik Greens,Bopal,2 BHK,23.0301,72.4630,45-60,Dec 2027
,,3 BHK,23.0301,72.4630,75,
Riviera Heights,Satellite,2 BHK,23.0258,72.5070,90,Ready
Sky Residency,Prahlad Nagar,4 BHK,23.0120,72.5080,150-180,Jun 2026
Broken Row,Bopal,1 BHK,,72.4000,30,
"""

CREDENTIALS_CSV = """user,password
agent,s3cret
,orphan
viewer,
"""


@pytest.fixture
def extended_config() -> PipelineConfig:
    return PRESETS["extended"]


@pytest.fixture
def basic_config() -> PipelineConfig:
    return PRESETS["basic"]


@pytest.fixture
def listings_csv(tmp_path: Path) -> Path:
    path = tmp_path / "listings.csv"
    path.write_text(LISTINGS_CSV, encoding="utf-8")
    return path


@pytest.fixture
def credentials_csv(tmp_path: Path) -> Path:
    path = tmp_path / "credentials.csv"
    path.write_text(CREDENTIALS_CSV, encoding="utf-8")
    return path


@pytest.fixture
def listings_frame(listings_csv: Path) -> pd.DataFrame:
    return pd.read_csv(listings_csv, dtype=str, keep_default_na=False)


@pytest.fixture(autouse=True)
def fresh_loader():
    LOADER.reset()
    yield
    LOADER.reset()
