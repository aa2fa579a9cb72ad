"""
Load the listings spreadsheet once and keep the prepared dataset in memory.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

import pandas as pd
from django.conf import settings

from .config import LATITUDE_FIELD, LONGITUDE_FIELD, PipelineConfig, get_pipeline_config
from .data_filter import PriceRange, observed_price_range
from .facets import FacetSet, extract_facets
from .normalizer import fill_merged_cells

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = (".xlsx", ".xls")
MAX_LOAD_ATTEMPTS = 3


class IngestionFailure(RuntimeError):
    """The source could not be fetched or parsed."""


@dataclass(frozen=True)
class Dataset:
    frame: pd.DataFrame
    facets: FacetSet
    price_range: PriceRange
    config: PipelineConfig
    generation: int
    source: str


def default_source() -> str:
    return str(
        getattr(settings, "MAP_DATA_SOURCE", Path(settings.BASE_DIR) / "media" / "listings.csv")
    )


def read_table(source: str | Path) -> pd.DataFrame:
    """
    Read a header-first CSV or Excel sheet with every cell as a string.
    """
    source = str(source)
    try:
        if source.lower().endswith(EXCEL_SUFFIXES):
            df = pd.read_excel(source, dtype=str).fillna("")
        else:
            df = pd.read_csv(source, dtype=str, keep_default_na=False)
    except (OSError, ValueError) as exc:
        raise IngestionFailure(f"Could not read listings from {source}: {exc}") from exc

    df.columns = [str(column).strip() for column in df.columns]
    return df


def _coordinate_mask(series: pd.Series) -> pd.Series:
    numeric = pd.to_numeric(series.fillna("").astype(str).str.strip(), errors="coerce")
    return numeric.abs() < float("inf")


def drop_unlocated_rows(df: pd.DataFrame) -> pd.DataFrame:
    """
    Remove rows without a parseable Latitude and Longitude.
    """
    missing = [column for column in (LATITUDE_FIELD, LONGITUDE_FIELD) if column not in df.columns]
    if missing:
        raise IngestionFailure(f"Listings sheet is missing required columns: {', '.join(missing)}")

    mask = _coordinate_mask(df[LATITUDE_FIELD]) & _coordinate_mask(df[LONGITUDE_FIELD])
    rejected = int((~mask).sum())
    if rejected:
        logger.info("Dropped %d rows without usable coordinates", rejected)
    return df[mask].reset_index(drop=True)


def build_dataset(
    df: pd.DataFrame,
    config: PipelineConfig,
    generation: int = 0,
    source: str = "",
) -> Dataset:
    located = drop_unlocated_rows(df)
    normalized = fill_merged_cells(located)
    return Dataset(
        frame=normalized,
        facets=extract_facets(normalized, config),
        price_range=observed_price_range(normalized, config),
        config=config,
        generation=generation,
        source=source,
    )


class DatasetLoader:
    """
    Holds the current dataset. Each fetch carries a generation number and a
    completion from an older generation is discarded.
    """

    def __init__(self) -> None:
        self._generation = 0
        self._dataset: Dataset | None = None
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    def begin_fetch(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def complete_fetch(self, token: int, dataset: Dataset) -> bool:
        with self._lock:
            if token != self._generation:
                logger.info("Discarding stale dataset fetch %d (current %d)", token, self._generation)
                return False
            self._dataset = dataset
            return True

    def load(self, source: str | Path | None = None, config: PipelineConfig | None = None) -> Dataset | None:
        source = str(source or default_source())
        config = config or get_pipeline_config()
        token = self.begin_fetch()
        logger.info("Fetching listings from %s (generation %d)", source, token)
        raw = read_table(source)
        dataset = build_dataset(raw, config, generation=token, source=source)
        if not self.complete_fetch(token, dataset):
            return None
        logger.info(
            "Loaded %d listings with %d filter fields from %s",
            len(dataset.frame),
            len(dataset.facets),
            source,
        )
        return dataset

    def get_dataset(self) -> Dataset:
        """
        Return the current dataset. A lazy load that loses to a newer fetch
        is retried; the newer result is used as soon as it lands.
        """
        for _ in range(MAX_LOAD_ATTEMPTS):
            if self._dataset is not None:
                return self._dataset
            dataset = self.load()
            if dataset is not None:
                return dataset
        if self._dataset is not None:
            return self._dataset
        raise IngestionFailure(
            f"Listings load was superseded {MAX_LOAD_ATTEMPTS} times without completing"
        )

    def reset(self) -> None:
        with self._lock:
            self._dataset = None


LOADER = DatasetLoader()


def get_dataset() -> Dataset:
    """Return the shared dataset, loading the configured source on first use."""
    return LOADER.get_dataset()


def get_dataframe() -> pd.DataFrame:
    """Return a deep copy of the in-memory normalized dataframe."""
    return get_dataset().frame.copy(deep=True)
