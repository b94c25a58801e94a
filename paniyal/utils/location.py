# paniyal/utils/location.py
"""
Helpers for the free-form task location string and for date display.

A task stores its location either as ``"lat,lng"`` (what the map picker
produces) or as a JSON blob ``{"lat": .., "lng": .., "name": ..}``. Anything
else is kept as an opaque place name.
"""

import json
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Union

COORDS_PATTERN = re.compile(r"(-?\d+(\.\d+)?),\s*(-?\d+(\.\d+)?)")


@dataclass
class ParsedLocation:
    name: str
    coordinates: Optional[List[float]] = None

    def as_dict(self) -> dict:
        return {"name": self.name, "coordinates": self.coordinates}


def _format_pair(lat: float, lng: float) -> str:
    return f"{lat:.4f}, {lng:.4f}"


def _to_float(value) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def parse_location(value) -> Optional[ParsedLocation]:
    """Parse a stored coordinates string into a display name and lat/lng pair"""
    if not value or not isinstance(value, str):
        return None

    match = COORDS_PATTERN.fullmatch(value)
    if match:
        lat, lng = float(match.group(1)), float(match.group(3))
        return ParsedLocation(name=_format_pair(lat, lng), coordinates=[lat, lng])

    try:
        data = json.loads(value)
    except ValueError:
        data = None

    if isinstance(data, dict):
        lat, lng = _to_float(data.get("lat")), _to_float(data.get("lng"))
        if lat is not None and lng is not None:
            return ParsedLocation(name=data.get("name") or _format_pair(lat, lng), coordinates=[lat, lng])
        if data.get("name"):
            return ParsedLocation(name=data["name"])

    return ParsedLocation(name=value)


def has_coordinates(value) -> bool:
    parsed = parse_location(value)
    return bool(parsed and parsed.coordinates)


def format_date(value: Union[date, datetime, str, None]) -> str:
    """Long-form date, e.g. "October 19, 2026" """
    if not value:
        return "No Date"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return "Invalid Date"
    if not isinstance(value, date):
        return "Invalid Date"
    return f"{value:%B} {value.day}, {value.year}"


def today() -> date:
    return date.today()
