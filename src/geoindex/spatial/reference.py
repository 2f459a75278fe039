"""
Brute-force radius search.

Checks every point with the vectorised Haversine formula. Used to cross-check
the KD-tree and as a baseline in benchmarks; it has no pruning, so it finds
every point within the radius regardless of latitude or longitude span.
"""

import logging
from typing import List, Sequence

import numpy as np

from ..core.contracts import QueryResult
from .haversine import EARTH_RADIUS_KM, haversine_km_array
from .kdtree import coerce_points, coerce_target, validate_query_limits

logger = logging.getLogger(__name__)


def linear_scan(points: Sequence, target, max_distance_km: float, max_results: int,
                earth_radius_km: float = EARTH_RADIUS_KM) -> List[QueryResult]:
    """Radius search over a plain point list, closest first, capped at max_results."""
    validate_query_limits(max_distance_km, max_results)
    target_lat, target_lon = coerce_target(target)
    points = coerce_points(points)
    if not points:
        return []

    coords = np.array([p.coordinates for p in points], dtype=float)
    distances = haversine_km_array(coords[:, 0], coords[:, 1], target_lat, target_lon,
                                   radius_km=earth_radius_km)

    matches = np.flatnonzero(distances <= max_distance_km)
    # Stable so equal distances keep input order
    order = matches[np.argsort(distances[matches], kind='stable')][:max_results]

    logger.debug(f"Linear scan over {len(points)} points: {len(matches)} within {max_distance_km}km")
    return [QueryResult(point=points[i], distance_km=float(distances[i])) for i in order]
