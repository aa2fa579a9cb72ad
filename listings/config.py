"""
Pipeline configuration resolved once from Django settings.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, FrozenSet, Tuple

from django.conf import settings

LATITUDE_FIELD = "Latitude"
LONGITUDE_FIELD = "Longitude"
POSITION_FIELDS = (LATITUDE_FIELD, LONGITUDE_FIELD)
DEFAULT_PRICE_FIELD = "Price (₹)"
POSSESSION_FIELD = "Possession"
PROJECT_NAME_FIELD = "Project Name"


class FacetMode(str, Enum):
    MULTI = "multi"
    SINGLE = "single"


class PriceGrammar(str, Enum):
    SCALAR = "scalar"
    RANGE = "range"


@dataclass(frozen=True)
class PipelineConfig:
    facet_mode: FacetMode = FacetMode.MULTI
    price_grammar: PriceGrammar = PriceGrammar.RANGE
    date_cutoff_enabled: bool = False
    price_field: str = DEFAULT_PRICE_FIELD
    possession_field: str = POSSESSION_FIELD
    extra_reserved_fields: Tuple[str, ...] = ()
    price_max_multiplier: float = 1.0

    @property
    def reserved_fields(self) -> FrozenSet[str]:
        return frozenset(POSITION_FIELDS + (self.price_field,) + self.extra_reserved_fields)


PRESETS: Dict[str, PipelineConfig] = {
    "basic": PipelineConfig(
        facet_mode=FacetMode.MULTI,
        price_grammar=PriceGrammar.SCALAR,
        date_cutoff_enabled=False,
    ),
    "extended": PipelineConfig(
        facet_mode=FacetMode.MULTI,
        price_grammar=PriceGrammar.RANGE,
        date_cutoff_enabled=True,
        extra_reserved_fields=(PROJECT_NAME_FIELD,),
        price_max_multiplier=1.2,
    ),
}


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def get_pipeline_config() -> PipelineConfig:
    """
    Build the pipeline configuration from the preset and any explicit overrides.
    """
    preset_name = getattr(settings, "MAP_PIPELINE_PRESET", "extended")
    try:
        config = PRESETS[preset_name]
    except KeyError as exc:
        raise ValueError(f"Unknown MAP_PIPELINE_PRESET '{preset_name}'") from exc

    overrides = {}
    facet_mode = getattr(settings, "MAP_FACET_MODE", None)
    if facet_mode:
        overrides["facet_mode"] = FacetMode(facet_mode)
    price_grammar = getattr(settings, "MAP_PRICE_GRAMMAR", None)
    if price_grammar:
        overrides["price_grammar"] = PriceGrammar(price_grammar)
    date_cutoff_enabled = getattr(settings, "MAP_DATE_CUTOFF_ENABLED", None)
    if date_cutoff_enabled is not None:
        overrides["date_cutoff_enabled"] = _as_bool(date_cutoff_enabled)
    price_field = getattr(settings, "MAP_PRICE_FIELD", None)
    if price_field:
        overrides["price_field"] = price_field
    multiplier = getattr(settings, "MAP_PRICE_MAX_MULTIPLIER", None)
    if multiplier is not None:
        overrides["price_max_multiplier"] = float(multiplier)

    return replace(config, **overrides)
