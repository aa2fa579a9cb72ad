"""
Generate a short natural language summary of an applied filter, without external APIs.
"""
from __future__ import annotations

from math import isfinite

from .session import AppliedView


def _format_value(value: float | int | None) -> str:
    if value is None:
        return "N/A"
    if not isinstance(value, (int, float)):
        return str(value)
    if not isfinite(value):
        return "N/A"

    absolute = abs(value)
    if absolute >= 1_000_000_000:
        return f"{value / 1_000_000_000:.2f}B"
    if absolute >= 1_000_000:
        return f"{value / 1_000_000:.2f}M"
    if absolute >= 1_000:
        return f"{value / 1_000:.1f}K"
    if float(absolute).is_integer():
        return f"{int(value)}"
    return f"{value:.2f}"


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def generate_summary(view: AppliedView) -> str:
    """
    Describe how many listings survived the filters and where they sit.
    """
    snapshot = view.snapshot
    price_phrase = f"priced {_format_value(snapshot.price_lo)} to {_format_value(snapshot.price_hi)}"

    if view.filtered.empty:
        return f"No listings match the selected filters {price_phrase}."

    parts = [
        f"Showing {_plural(len(view.filtered), 'listing')} at {_plural(len(view.groups), 'location')}",
        price_phrase,
    ]
    if snapshot.selections:
        fields = ", ".join(name for name, _ in snapshot.selections)
        parts.append(f"filtered by {fields}")
    if snapshot.date_cutoff:
        parts.append(f"with possession by {snapshot.date_cutoff.strftime('%b %Y')}")
    return " ".join(parts) + "."
