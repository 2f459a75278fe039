"""
Great-circle distance on a spherical earth.

The scalar and vectorised forms evaluate the same Haversine expression so
that search results and reference scans agree on every reported distance.
"""

import math

import numpy as np

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float,
                 radius_km: float = EARTH_RADIUS_KM) -> float:
    """
    Great-circle distance between two (lat, lon) positions in degrees.

    Returns:
        Distance in kilometers
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (math.sin(d_lat / 2) * math.sin(d_lat / 2) +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(d_lon / 2) * math.sin(d_lon / 2))
    # Rounding can leave a slightly above 1 for antipodal points
    a = min(a, 1.0)
    return 2 * radius_km * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def point_distance_km(p, q, radius_km: float = EARTH_RADIUS_KM) -> float:
    """Haversine distance between two GeoPoints."""
    return haversine_km(p.coordinates[0], p.coordinates[1],
                        q.coordinates[0], q.coordinates[1], radius_km)


def haversine_km_array(lats, lons, target_lat: float, target_lon: float,
                       radius_km: float = EARTH_RADIUS_KM) -> np.ndarray:
    """Vectorised haversine_km from every (lats[i], lons[i]) to one target."""
    lats = np.asarray(lats, dtype=float)
    lons = np.asarray(lons, dtype=float)

    d_lat = np.radians(target_lat - lats)
    d_lon = np.radians(target_lon - lons)
    a = (np.sin(d_lat / 2) * np.sin(d_lat / 2) +
         np.cos(np.radians(lats)) * np.cos(np.radians(target_lat)) *
         np.sin(d_lon / 2) * np.sin(d_lon / 2))
    a = np.minimum(a, 1.0)
    return 2 * radius_km * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
