from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import pandas as pd

from .config import PipelineConfig
from .facets import FacetSet
from .value_parser import parse_possession, parse_price

DEFAULT_PRICE_RANGE = (0.0, 1000.0)


@dataclass
class PriceRange:
    lo: float
    hi: float

    def to_dict(self) -> dict:
        return {"lo": self.lo, "hi": self.hi}


def _normalize(series: pd.Series) -> pd.Series:
    return series.fillna("").astype(str).str.strip()


def _all_rows(df: pd.DataFrame, value: bool = True) -> pd.Series:
    return pd.Series([value] * len(df), index=df.index, dtype=bool)


def price_bounds_frame(df: pd.DataFrame, config: PipelineConfig) -> pd.DataFrame:
    """
    Parse the price column into low/high columns; unparseable cells become NaN.
    """
    if config.price_field not in df.columns:
        return pd.DataFrame({"low": float("nan"), "high": float("nan")}, index=df.index)

    parsed = [parse_price(value, config.price_grammar) for value in df[config.price_field]]
    return pd.DataFrame(
        {
            "low": [bounds.low if bounds else float("nan") for bounds in parsed],
            "high": [bounds.high if bounds else float("nan") for bounds in parsed],
        },
        index=df.index,
    )


def observed_price_range(df: pd.DataFrame, config: PipelineConfig) -> PriceRange:
    """
    Initial slider bounds: lowest and highest parseable price, with the
    configured margin applied to the top end.
    """
    bounds = price_bounds_frame(df, config).dropna()
    if bounds.empty:
        return PriceRange(*DEFAULT_PRICE_RANGE)
    return PriceRange(
        lo=float(bounds["low"].min()),
        hi=float(bounds["high"].max()) * config.price_max_multiplier,
    )


def _facet_mask(df: pd.DataFrame, facets: FacetSet) -> pd.Series:
    mask = _all_rows(df)
    for field, selected in facets.constraints().items():
        if field not in df.columns:
            mask &= False
            continue
        mask &= _normalize(df[field]).isin(selected)
    return mask


def _price_mask(df: pd.DataFrame, price_range: PriceRange, config: PipelineConfig) -> pd.Series:
    # NaN bounds compare False, so unparseable prices drop out.
    bounds = price_bounds_frame(df, config)
    return (bounds["low"] <= price_range.hi) & (bounds["high"] >= price_range.lo)


def _possession_mask(df: pd.DataFrame, cutoff: date | None, config: PipelineConfig) -> pd.Series:
    if not config.date_cutoff_enabled or cutoff is None or config.possession_field not in df.columns:
        return _all_rows(df)
    passes = []
    for value in df[config.possession_field]:
        possession = parse_possession(value)
        passes.append(possession is None or possession <= cutoff)
    return pd.Series(passes, index=df.index, dtype=bool)


def filter_dataset(
    df: pd.DataFrame,
    facets: FacetSet,
    price_range: PriceRange,
    date_cutoff: date | None = None,
    config: PipelineConfig | None = None,
) -> pd.DataFrame:
    """
    Keep the rows that match every active facet, fall inside the price window
    and, when the cutoff feature is on, are possessed on or before the cutoff.
    """
    config = config or PipelineConfig()
    if df.empty:
        return df.copy()
    mask = (
        _facet_mask(df, facets)
        & _price_mask(df, price_range, config)
        & _possession_mask(df, date_cutoff, config)
    )
    return df[mask].reset_index(drop=True)
