"""
Bucket filtered listings into map pins keyed by their exact coordinate strings,
and shape the payloads the map layer renders.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

import pandas as pd

from .config import LATITUDE_FIELD, LONGITUDE_FIELD, POSITION_FIELDS

# Never appears in a numeric coordinate string.
KEY_DELIMITER = "|"


@dataclass
class Group:
    key: str
    lat: float
    lng: float
    members: List[Dict[str, str]] = field(default_factory=list)


def coordinate_key(latitude: str, longitude: str) -> str:
    return f"{latitude}{KEY_DELIMITER}{longitude}"


def group_by_coordinates(df: pd.DataFrame) -> List[Group]:
    """
    One group per distinct raw Latitude/Longitude pair, in first-seen order.
    No rounding is applied, so "23.0" and "23.00" stay separate pins.
    """
    if df.empty:
        return []
    keys = df[LATITUDE_FIELD].astype(str) + KEY_DELIMITER + df[LONGITUDE_FIELD].astype(str)
    groups: List[Group] = []
    for key, members in df.groupby(keys, sort=False):
        latitude, longitude = key.split(KEY_DELIMITER)
        groups.append(
            Group(
                key=key,
                lat=float(latitude),
                lng=float(longitude),
                members=members.to_dict(orient="records"),
            )
        )
    return groups


def build_marker_payload(groups: List[Group]) -> List[Dict]:
    return [
        {"index": idx, "key": group.key, "lat": group.lat, "lng": group.lng, "count": len(group.members)}
        for idx, group in enumerate(groups)
    ]


def build_group_detail(group: Group) -> Dict:
    """
    Member records for the info window, without the position fields.
    """
    return {
        "key": group.key,
        "lat": group.lat,
        "lng": group.lng,
        "items": [
            {name: value for name, value in member.items() if name not in POSITION_FIELDS}
            for member in group.members
        ],
    }
