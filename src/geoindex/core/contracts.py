#!/usr/bin/env python3
"""
Immutable Data Contracts

Point and query-result records shared by the index, the adapters and the
service layer. Coordinates are validated once, at construction, so every
GeoPoint that exists is a usable index entry.
"""

import math
import numbers
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from .exceptions import InvalidInputError

LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)


def _is_real_number(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def parse_coordinates(value, error_cls=InvalidInputError) -> Tuple[float, float]:
    """
    Validate a (latitude, longitude) pair in degrees.

    Args:
        value: Any 2-element sequence of real numbers
        error_cls: Exception raised on failure

    Returns:
        The pair as a tuple of floats
    """
    if isinstance(value, (str, bytes)) or not hasattr(value, '__len__'):
        raise error_cls(f"Coordinates must be a [latitude, longitude] pair, got {value!r}")
    if len(value) != 2:
        raise error_cls(f"Coordinates must have exactly 2 elements, got {len(value)}")

    lat, lon = value[0], value[1]
    if not (_is_real_number(lat) and _is_real_number(lon)):
        raise error_cls(f"Coordinates must be numbers, got {value!r}")

    lat, lon = float(lat), float(lon)
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise error_cls(f"Coordinates must be finite, got ({lat}, {lon})")
    if not (LATITUDE_RANGE[0] <= lat <= LATITUDE_RANGE[1]):
        raise error_cls(f"Latitude {lat} outside [{LATITUDE_RANGE[0]}, {LATITUDE_RANGE[1]}]")
    if not (LONGITUDE_RANGE[0] <= lon <= LONGITUDE_RANGE[1]):
        raise error_cls(f"Longitude {lon} outside [{LONGITUDE_RANGE[0]}, {LONGITUDE_RANGE[1]}]")

    return lat, lon


@dataclass(frozen=True)
class GeoPoint:
    """
    A point in the index.

    coordinates are (latitude, longitude) in degrees. properties is an
    application-defined bag carried through untouched; the index never
    reads it.
    """
    id: str
    coordinates: Tuple[float, float]
    properties: Dict[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        """Validate contract invariants."""
        if self.id is None or str(self.id) == "":
            raise InvalidInputError("GeoPoint: empty id not allowed")
        if not isinstance(self.id, str):
            object.__setattr__(self, 'id', str(self.id))

        object.__setattr__(self, 'coordinates', parse_coordinates(self.coordinates))

        if self.properties is None:
            object.__setattr__(self, 'properties', {})
        elif not isinstance(self.properties, Mapping):
            raise InvalidInputError(
                f"GeoPoint {self.id}: properties must be a mapping, got {type(self.properties).__name__}"
            )
        else:
            object.__setattr__(self, 'properties', dict(self.properties))

    @property
    def latitude(self) -> float:
        return self.coordinates[0]

    @property
    def longitude(self) -> float:
        return self.coordinates[1]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], default_id: Optional[str] = None) -> 'GeoPoint':
        """
        Create a point from the upload payload shape.

        Expects {"id": ..., "coordinates": [lat, lon], "properties": {...}}.
        default_id is used when the mapping carries no id.
        """
        if not isinstance(data, Mapping):
            raise InvalidInputError(f"Point must be a mapping, got {type(data).__name__}")
        if 'coordinates' not in data:
            raise InvalidInputError("Point is missing its coordinate pair")

        point_id = data.get('id')
        if point_id is None or point_id == "":
            point_id = default_id

        return cls(
            id=point_id,
            coordinates=data['coordinates'],
            properties=data.get('properties')
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'coordinates': [self.coordinates[0], self.coordinates[1]],
            'properties': dict(self.properties)
        }


@dataclass(frozen=True)
class QueryResult:
    """A matched point and its great-circle distance to the query target."""
    point: GeoPoint
    distance_km: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'point': self.point.to_dict(),
            'distance': self.distance_km
        }
