"""
Facet extraction and the selection API used by the filter drawer.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping

import pandas as pd

from .config import FacetMode, PipelineConfig


class SelectionModeError(ValueError):
    """Raised when a selection call does not match the facet set's mode."""


class UnknownFacetError(ValueError):
    """Raised for a field or option the dataset does not contain."""


@dataclass
class FacetDefinition:
    field: str
    options: List[str]
    selected: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {"field": self.field, "options": list(self.options), "selected": list(self.selected)}


class FacetSet:
    """
    Facet definitions for one dataset load, all sharing a single selection mode.
    """

    def __init__(self, mode: FacetMode, definitions: Mapping[str, FacetDefinition]):
        self.mode = mode
        self.definitions: Dict[str, FacetDefinition] = dict(definitions)

    def __iter__(self):
        return iter(self.definitions.values())

    def __len__(self) -> int:
        return len(self.definitions)

    def __getitem__(self, field_name: str) -> FacetDefinition:
        try:
            return self.definitions[field_name]
        except KeyError as exc:
            raise UnknownFacetError(f"Unknown filter field '{field_name}'.") from exc

    def copy(self) -> "FacetSet":
        return FacetSet(
            self.mode,
            {
                name: FacetDefinition(definition.field, definition.options, list(definition.selected))
                for name, definition in self.definitions.items()
            },
        )

    def _require_mode(self, mode: FacetMode) -> None:
        if self.mode is not mode:
            raise SelectionModeError(
                f"Operation requires {mode.value}-select facets; this set is {self.mode.value}-select."
            )

    def _require_option(self, definition: FacetDefinition, option: str) -> None:
        if option not in definition.options:
            raise UnknownFacetError(f"'{option}' is not an option of '{definition.field}'.")

    def toggle_option(self, field_name: str, option: str) -> None:
        self._require_mode(FacetMode.MULTI)
        definition = self[field_name]
        self._require_option(definition, option)
        if option in definition.selected:
            definition.selected = [value for value in definition.selected if value != option]
        else:
            definition.selected = definition.selected + [option]

    def select_all(self, field_name: str) -> None:
        self._require_mode(FacetMode.MULTI)
        definition = self[field_name]
        definition.selected = list(definition.options)

    def clear_all(self, field_name: str) -> None:
        self._require_mode(FacetMode.MULTI)
        self[field_name].selected = []

    def set_selected(self, field_name: str, option: str | None) -> None:
        """
        Single-select mode: pick one option, or None to lift the constraint.
        """
        self._require_mode(FacetMode.SINGLE)
        definition = self[field_name]
        if option is None:
            definition.selected = []
            return
        self._require_option(definition, option)
        definition.selected = [option]

    def constraints(self) -> Dict[str, List[str]]:
        """Only the fields whose selection actually narrows the results."""
        return {
            name: list(definition.selected)
            for name, definition in self.definitions.items()
            if definition.selected
        }

    def selections(self) -> Dict[str, List[str]]:
        return {name: list(definition.selected) for name, definition in self.definitions.items()}

    def restore_selections(self, selections: Mapping[str, Iterable[str]]) -> None:
        """
        Re-apply stored selections, dropping fields or options this dataset lacks.
        """
        for name, values in selections.items():
            definition = self.definitions.get(name)
            if definition is None:
                continue
            kept = [value for value in values if value in definition.options]
            if self.mode is FacetMode.SINGLE:
                kept = kept[:1]
            definition.selected = kept

    def to_payload(self) -> List[Dict]:
        return [definition.to_dict() for definition in self.definitions.values()]


def extract_facets(df: pd.DataFrame, config: PipelineConfig) -> FacetSet:
    """
    Collect the distinct non-empty values of every non-reserved column,
    in first-seen order, with nothing selected.
    """
    definitions: Dict[str, FacetDefinition] = {}
    for column in df.columns:
        if column in config.reserved_fields:
            continue
        values = df[column].fillna("").astype(str).str.strip()
        options = values[values != ""].unique().tolist()
        definitions[column] = FacetDefinition(field=column, options=options)
    return FacetSet(config.facet_mode, definitions)
