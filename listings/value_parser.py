"""
Rule-based parsers for the free-text cells the filters depend on: prices
(single values or dash-separated ranges) and possession month/year tokens.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from .config import PriceGrammar


@dataclass(frozen=True)
class PriceBounds:
    low: float
    high: float


MONTHS = {
    "Jan": 1,
    "Feb": 2,
    "Mar": 3,
    "Apr": 4,
    "May": 5,
    "Jun": 6,
    "Jul": 7,
    "Aug": 8,
    "Sep": 9,
    "Oct": 10,
    "Nov": 11,
    "Dec": 12,
}

_DECIMAL = r"(\d+(?:\.\d+)?|\.\d+)"
SCALAR_PRICE_REGEX = re.compile(rf"^{_DECIMAL}$")
RANGE_PRICE_REGEX = re.compile(rf"^{_DECIMAL}\s*-\s*{_DECIMAL}$")
YEAR_REGEX = re.compile(r"^\d{4}$")
CUTOFF_REGEX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def parse_price(text: str | None, grammar: PriceGrammar = PriceGrammar.RANGE) -> PriceBounds | None:
    """
    Parse a price cell into inclusive bounds; a single number has low == high.
    """
    value = (text or "").strip()
    if not value:
        return None

    scalar_match = SCALAR_PRICE_REGEX.match(value)
    if scalar_match:
        amount = float(scalar_match.group(1))
        return PriceBounds(amount, amount)

    if grammar is PriceGrammar.RANGE:
        range_match = RANGE_PRICE_REGEX.match(value)
        if range_match:
            low, high = sorted(float(part) for part in range_match.groups())
            return PriceBounds(low, high)
    return None


def parse_possession(text: str | None) -> date | None:
    """
    Turn "Dec 2027" (or "December 2027") into the first day of that month.
    """
    tokens = (text or "").split()
    if len(tokens) < 2:
        return None
    month = MONTHS.get(tokens[0][:3].title())
    if month is None or not YEAR_REGEX.match(tokens[1]):
        return None
    return date(int(tokens[1]), month, 1)


def parse_cutoff(text: str | None) -> date | None:
    value = (text or "").strip()
    if not value:
        return None
    match = CUTOFF_REGEX.match(value)
    if not match:
        raise ValueError(f"Cutoff '{value}' is not a YYYY-MM-DD date.")
    year, month, day = (int(part) for part in match.groups())
    return date(year, month, day)
