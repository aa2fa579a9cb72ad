from datetime import date

import pytest

from listings.config import PriceGrammar
from listings.value_parser import PriceBounds, parse_cutoff, parse_possession, parse_price


@pytest.mark.parametrize(
    "text, expected",
    [
        ("80", PriceBounds(80.0, 80.0)),
        (" 72.5 ", PriceBounds(72.5, 72.5)),
        ("50-100", PriceBounds(50.0, 100.0)),
        ("50 - 100", PriceBounds(50.0, 100.0)),
        ("100-50", PriceBounds(50.0, 100.0)),
        ("not-a-number", None),
        ("", None),
        (None, None),
        ("1,200", None),
    ],
)
def test_parse_price_range_grammar(text, expected):
    assert parse_price(text, PriceGrammar.RANGE) == expected


def test_scalar_grammar_rejects_ranges():
    assert parse_price("50-100", PriceGrammar.SCALAR) is None
    assert parse_price("75", PriceGrammar.SCALAR) == PriceBounds(75.0, 75.0)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Dec 2027", date(2027, 12, 1)),
        ("December 2027", date(2027, 12, 1)),
        ("jun 2026", date(2026, 6, 1)),
        ("Foo 2027", None),
        ("Dec", None),
        ("Dec 27", None),
        ("Ready", None),
        ("", None),
    ],
)
def test_parse_possession(text, expected):
    assert parse_possession(text) == expected


def test_parse_cutoff():
    assert parse_cutoff("2026-06-01") == date(2026, 6, 1)
    assert parse_cutoff("") is None
    assert parse_cutoff(None) is None
    with pytest.raises(ValueError):
        parse_cutoff("June 2026")
    with pytest.raises(ValueError):
        parse_cutoff("2026-02-30")
