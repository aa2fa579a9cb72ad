"""
Repair spreadsheet exports where merged cells only carry a value on the first
row of the merged block.
"""
from __future__ import annotations

import pandas as pd


def _trimmed(series: pd.Series) -> pd.Series:
    return series.fillna("").astype(str).str.strip()


def fill_merged_cells(df: pd.DataFrame) -> pd.DataFrame:
    """
    Forward-fill every blank cell with the last non-empty value seen above it
    in the same column, or "" when the column has not had a value yet.
    """
    filled = df.copy()
    for column in filled.columns:
        trimmed = _trimmed(filled[column])
        filled[column] = trimmed.mask(trimmed == "").ffill().fillna("").astype(str)
    return filled.reset_index(drop=True)
