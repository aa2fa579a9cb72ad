"""
Per-user draft filter state and the apply step that turns it into map pins.

Drafts are edited freely; only ``MapSession.apply`` recomputes the filtered
rows and groups, and every apply yields a new frozen ``AppliedView``.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Tuple

import pandas as pd

from .data_filter import PriceRange, filter_dataset
from .facets import FacetSet
from .grouping import Group, group_by_coordinates
from .sheet_reader import Dataset
from .value_parser import parse_cutoff

logger = logging.getLogger(__name__)


class DraftError(ValueError):
    """Raised for draft edits the current configuration does not allow."""


@dataclass(frozen=True)
class FilterSnapshot:
    selections: Tuple[Tuple[str, Tuple[str, ...]], ...]
    price_lo: float
    price_hi: float
    date_cutoff: date | None = None

    def to_dict(self) -> Dict:
        return {
            "selections": {name: list(values) for name, values in self.selections},
            "price": {"lo": self.price_lo, "hi": self.price_hi},
            "date_cutoff": self.date_cutoff.isoformat() if self.date_cutoff else None,
        }


@dataclass(frozen=True)
class AppliedView:
    version: int
    generation: int
    snapshot: FilterSnapshot
    filtered: pd.DataFrame
    groups: Tuple[Group, ...]


def run_pipeline(dataset: Dataset, snapshot: FilterSnapshot) -> Tuple[pd.DataFrame, List[Group]]:
    facets = dataset.facets.copy()
    facets.restore_selections({name: values for name, values in snapshot.selections})
    filtered = filter_dataset(
        dataset.frame,
        facets,
        PriceRange(snapshot.price_lo, snapshot.price_hi),
        date_cutoff=snapshot.date_cutoff,
        config=dataset.config,
    )
    return filtered, group_by_coordinates(filtered)


def default_snapshot(dataset: Dataset) -> FilterSnapshot:
    """No facet constraints and the full observed price range."""
    return FilterSnapshot(
        selections=(),
        price_lo=dataset.price_range.lo,
        price_hi=dataset.price_range.hi,
    )


class MapSession:
    def __init__(
        self,
        dataset: Dataset,
        facets: FacetSet | None = None,
        price_range: PriceRange | None = None,
        date_cutoff: date | None = None,
        version: int = 0,
        applied_snapshot: FilterSnapshot | None = None,
    ):
        self.dataset = dataset
        self.facets = facets or dataset.facets.copy()
        self.price_range = price_range or PriceRange(dataset.price_range.lo, dataset.price_range.hi)
        self.date_cutoff = date_cutoff
        self.version = version
        # Before the first apply the map shows every priced listing.
        self.applied_snapshot = applied_snapshot or default_snapshot(dataset)

    @property
    def config(self):
        return self.dataset.config

    def toggle_option(self, field: str, option: str) -> None:
        self.facets.toggle_option(field, option)

    def select_all(self, field: str) -> None:
        self.facets.select_all(field)

    def clear_all(self, field: str) -> None:
        self.facets.clear_all(field)

    def set_selected(self, field: str, option: str | None) -> None:
        self.facets.set_selected(field, option)

    def set_price_bounds(self, lo, hi) -> None:
        try:
            lo, hi = float(lo), float(hi)
        except (TypeError, ValueError) as exc:
            raise DraftError("Price bounds must be numbers.") from exc
        if not (math.isfinite(lo) and math.isfinite(hi)):
            raise DraftError("Price bounds must be finite numbers.")
        self.price_range = PriceRange(lo, hi)

    def set_date_cutoff(self, cutoff: date | str | None) -> None:
        if not self.config.date_cutoff_enabled:
            raise DraftError("Possession date filtering is disabled.")
        if isinstance(cutoff, str):
            cutoff = parse_cutoff(cutoff)
        self.date_cutoff = cutoff

    def snapshot(self) -> FilterSnapshot:
        return FilterSnapshot(
            selections=tuple(
                (name, tuple(values)) for name, values in self.facets.constraints().items()
            ),
            price_lo=self.price_range.lo,
            price_hi=self.price_range.hi,
            date_cutoff=self.date_cutoff if self.config.date_cutoff_enabled else None,
        )

    def apply(self) -> AppliedView:
        snapshot = self.snapshot()
        filtered, groups = run_pipeline(self.dataset, snapshot)
        self.version += 1
        self.applied_snapshot = snapshot
        logger.info(
            "Applied filters v%d: %d of %d listings in %d groups",
            self.version,
            len(filtered),
            len(self.dataset.frame),
            len(groups),
        )
        return AppliedView(
            version=self.version,
            generation=self.dataset.generation,
            snapshot=snapshot,
            filtered=filtered,
            groups=tuple(groups),
        )

    def applied_view(self) -> AppliedView:
        """Recompute the last applied result without touching the draft."""
        filtered, groups = run_pipeline(self.dataset, self.applied_snapshot)
        return AppliedView(
            version=self.version,
            generation=self.dataset.generation,
            snapshot=self.applied_snapshot,
            filtered=filtered,
            groups=tuple(groups),
        )

    def to_dict(self) -> Dict:
        return {
            "generation": self.dataset.generation,
            "version": self.version,
            "selections": self.facets.selections(),
            "price": self.price_range.to_dict(),
            "date_cutoff": self.date_cutoff.isoformat() if self.date_cutoff else None,
            "applied": self.applied_snapshot.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict | None, dataset: Dataset) -> "MapSession":
        """
        Rebuild a session from stored state. State saved against an older
        dataset generation is dropped and a fresh draft is returned.
        """
        if not data or data.get("generation") != dataset.generation:
            return cls(dataset)

        facets = dataset.facets.copy()
        facets.restore_selections(data.get("selections") or {})
        price = data.get("price") or {}
        price_range = PriceRange(
            float(price.get("lo", dataset.price_range.lo)),
            float(price.get("hi", dataset.price_range.hi)),
        )
        applied = data.get("applied")
        applied_snapshot = None
        if applied:
            applied_price = applied.get("price") or {}
            applied_snapshot = FilterSnapshot(
                selections=tuple(
                    (name, tuple(values)) for name, values in (applied.get("selections") or {}).items()
                ),
                price_lo=float(applied_price.get("lo", price_range.lo)),
                price_hi=float(applied_price.get("hi", price_range.hi)),
                date_cutoff=parse_cutoff(applied.get("date_cutoff")),
            )
        return cls(
            dataset,
            facets=facets,
            price_range=price_range,
            date_cutoff=parse_cutoff(data.get("date_cutoff")),
            version=int(data.get("version", 0)),
            applied_snapshot=applied_snapshot,
        )

    def to_payload(self) -> Dict:
        return {
            "facet_mode": self.config.facet_mode.value,
            "price_grammar": self.config.price_grammar.value,
            "date_cutoff_enabled": self.config.date_cutoff_enabled,
            "filters": self.facets.to_payload(),
            "price_range": self.price_range.to_dict(),
            "date_cutoff": self.date_cutoff.isoformat() if self.date_cutoff else None,
            "version": self.version,
        }
