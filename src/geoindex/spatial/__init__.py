"""
Spatial Operations Module

This module provides the KD-tree index and great-circle distance functions.
"""

from .haversine import EARTH_RADIUS_KM, haversine_km, point_distance_km
from .kdtree import KDNode, KDTree, SearchStats, build, query
from .reference import linear_scan

__all__ = [
    'EARTH_RADIUS_KM',
    'haversine_km',
    'point_distance_km',
    'KDNode',
    'KDTree',
    'SearchStats',
    'build',
    'query',
    'linear_scan',
]
