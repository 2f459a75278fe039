#!/usr/bin/env python3
"""
KD-Tree Spatial Index

Two-dimensional (latitude, longitude) KD-tree built once from a point batch
by recursive median split, queried for every point within a great-circle
radius of a target, closest first, capped at K results.

The tree is immutable after construction. Replacing the data means building
a new tree; see geoindex.service.IndexHandle for the swap.
"""

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Iterator, List, Mapping, Optional, Sequence, Tuple

from ..core.contracts import GeoPoint, QueryResult, parse_coordinates
from ..core.exceptions import InvalidInputError, InvalidQueryError
from .haversine import EARTH_RADIUS_KM, haversine_km

logger = logging.getLogger(__name__)

DIMENSIONS = 2  # latitude, longitude


class KDNode:
    __slots__ = ("point", "axis", "left", "right")

    def __init__(self, point: GeoPoint, axis: int,
                 left: Optional['KDNode'] = None, right: Optional['KDNode'] = None):
        self.point = point
        self.axis = axis  # 0 = latitude, 1 = longitude
        self.left = left
        self.right = right

    def __repr__(self):
        return f"KDNode(id={self.point.id!r}, axis={self.axis})"


@dataclass
class SearchStats:
    """Counters collected during one radius search."""
    nodes_visited: int = 0
    candidates: int = 0
    pruned: int = 0  # far subtrees skipped by the axis bound


def coerce_points(points) -> List[GeoPoint]:
    """
    Turn a build batch into GeoPoints, rejecting the batch on the first bad item.

    Items may be GeoPoint instances or point mappings
    ({"id", "coordinates": [lat, lon], "properties"}); a mapping without an
    id takes its position in the batch as id.
    """
    if points is None:
        raise InvalidInputError("Point batch must be a sequence, got None")
    if isinstance(points, (str, bytes, Mapping)):
        raise InvalidInputError(f"Point batch must be a sequence, got {type(points).__name__}")

    coerced = []
    for position, item in enumerate(points):
        if isinstance(item, GeoPoint):
            coerced.append(item)
            continue
        try:
            coerced.append(GeoPoint.from_dict(item, default_id=str(position)))
        except InvalidInputError as e:
            raise InvalidInputError(f"Invalid point at position {position}: {e}") from e
    return coerced


def coerce_target(target) -> Tuple[float, float]:
    """Extract the (lat, lon) of a query target, raising InvalidQueryError."""
    if isinstance(target, GeoPoint):
        return target.coordinates
    if isinstance(target, Mapping):
        if 'coordinates' not in target:
            raise InvalidQueryError("Target point is missing its coordinate pair")
        target = target['coordinates']
    return parse_coordinates(target, error_cls=InvalidQueryError)


def validate_query_limits(max_distance_km, max_results) -> None:
    if not isinstance(max_results, numbers.Integral) or isinstance(max_results, bool):
        raise InvalidQueryError(f"max_results must be an integer, got {max_results!r}")
    if max_results < 1:
        raise InvalidQueryError(f"max_results must be at least 1, got {max_results}")
    if not isinstance(max_distance_km, numbers.Real) or isinstance(max_distance_km, bool):
        raise InvalidQueryError(f"max_distance_km must be a number, got {max_distance_km!r}")
    if math.isnan(max_distance_km) or max_distance_km < 0:
        raise InvalidQueryError(f"max_distance_km must be non-negative, got {max_distance_km}")


class KDTree:
    """
    Balanced 2-d tree over latitude/longitude points.

    Build is O(N log² N): each level re-sorts its slice on the level's axis.
    The median is the element at index len // 2, so for even counts the left
    slice holds one more point than the right. Tree shape, and therefore
    query cost and tie order, depends on that convention.
    """

    def __init__(self, points: Sequence = (), earth_radius_km: float = EARTH_RADIUS_KM):
        validated = coerce_points(points)
        self.earth_radius_km = earth_radius_km
        self._size = len(validated)
        self.root = self._build_tree(validated, 0)
        logger.debug(f"Built KD-tree with {self._size} points, height {self.height}")

    @classmethod
    def from_features(cls, features, earth_radius_km: float = EARTH_RADIUS_KM) -> 'KDTree':
        """Build from GeoJSON Point features ([lon, lat] coordinates)."""
        from ..serialization import points_from_features
        return cls(points_from_features(features), earth_radius_km=earth_radius_km)

    def _build_tree(self, points: List[GeoPoint], depth: int) -> Optional[KDNode]:
        if not points:
            return None

        axis = depth % DIMENSIONS
        # sorted() is stable: equal keys keep the slice's incoming order
        sorted_points = sorted(points, key=lambda p: p.coordinates[axis])

        median = len(sorted_points) // 2
        node = KDNode(point=sorted_points[median], axis=axis)
        node.left = self._build_tree(sorted_points[:median], depth + 1)
        node.right = self._build_tree(sorted_points[median + 1:], depth + 1)
        return node

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[GeoPoint]:
        return self.points()

    @property
    def is_empty(self) -> bool:
        return self.root is None

    @property
    def height(self) -> int:
        """Number of levels; 0 for an empty tree."""
        def _height(node):
            if node is None:
                return 0
            return 1 + max(_height(node.left), _height(node.right))
        return _height(self.root)

    def points(self) -> Iterator[GeoPoint]:
        """Yield every point depth-first: node, then left subtree, then right."""
        stack = [self.root] if self.root is not None else []
        while stack:
            node = stack.pop()
            yield node.point
            if node.right is not None:
                stack.append(node.right)
            if node.left is not None:
                stack.append(node.left)

    def find_nearest_neighbors(self, target, max_distance_km: float,
                               max_results: int = 10) -> List[QueryResult]:
        """
        All points within max_distance_km of target, closest first, at most max_results.

        Args:
            target: GeoPoint, point mapping or (lat, lon) pair; only the
                coordinates are used
            max_distance_km: Search radius in kilometers, >= 0
            max_results: Result cap, >= 1

        Returns:
            List of QueryResult sorted by ascending distance
        """
        results, _ = self.search(target, max_distance_km, max_results)
        return results

    def search(self, target, max_distance_km: float,
               max_results: int = 10) -> Tuple[List[QueryResult], SearchStats]:
        """Same as find_nearest_neighbors, also returning traversal counters."""
        validate_query_limits(max_distance_km, max_results)
        target_coords = coerce_target(target)

        stats = SearchStats()
        candidates: List[QueryResult] = []
        self._search_nearest(self.root, target_coords, max_distance_km, candidates, stats)

        stats.candidates = len(candidates)
        candidates.sort(key=lambda r: r.distance_km)
        results = candidates[:max_results]

        logger.debug(f"Search at {target_coords} r={max_distance_km}km: "
                     f"visited {stats.nodes_visited}/{self._size} nodes, "
                     f"{stats.candidates} candidates, returning {len(results)}")
        return results, stats

    def _search_nearest(self, node: Optional[KDNode], target: Tuple[float, float],
                        max_distance_km: float, results: List[QueryResult],
                        stats: SearchStats) -> None:
        if node is None:
            return
        stats.nodes_visited += 1

        distance = haversine_km(target[0], target[1],
                                node.point.coordinates[0], node.point.coordinates[1],
                                self.earth_radius_km)
        if distance <= max_distance_km:
            results.append(QueryResult(point=node.point, distance_km=distance))

        # Degrees compared against kilometers: the bound is inexact near the
        # poles and across the antimeridian, and is kept as is.
        axis_delta = target[node.axis] - node.point.coordinates[node.axis]

        if axis_delta < 0:
            near, far = node.left, node.right
        else:
            near, far = node.right, node.left

        self._search_nearest(near, target, max_distance_km, results, stats)

        # A zero delta means points equal to the target on this axis can sit
        # in either subtree
        if abs(axis_delta) < max_distance_km or axis_delta == 0:
            self._search_nearest(far, target, max_distance_km, results, stats)
        elif far is not None:
            stats.pruned += 1


def build(points: Sequence, earth_radius_km: float = EARTH_RADIUS_KM) -> KDTree:
    """
    Build an index from a point batch.

    Raises:
        InvalidInputError: if any point is malformed or out of range; no
            partial index is produced
    """
    return KDTree(points, earth_radius_km=earth_radius_km)


def query(index: KDTree, target, max_distance_km: float, max_results: int) -> List[QueryResult]:
    """
    Radius-bounded nearest-neighbour search against a built index.

    Raises:
        InvalidQueryError: if max_results < 1, max_distance_km < 0 or the
            target is malformed
    """
    return index.find_nearest_neighbors(target, max_distance_km, max_results)
