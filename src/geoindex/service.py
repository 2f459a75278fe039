#!/usr/bin/env python3
"""
Spatial Search Service

Request handling around the index: holds the currently loaded tree in an
explicitly passed IndexHandle, swaps it atomically on upload, and translates
index errors into status codes. Transport (HTTP, sockets) is left to the
caller; handle_request takes and returns plain dicts.
"""

import logging
import threading
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .core.config import GeoIndexConfig, get_default_config
from .core.contracts import QueryResult
from .core.exceptions import InvalidInputError, InvalidQueryError, NoIndexError
from .metrics.performance_tracker import PerformanceTracker
from .serialization import points_from_features, to_feature_collection
from .spatial.haversine import EARTH_RADIUS_KM
from .spatial.kdtree import KDTree

logger = logging.getLogger(__name__)


class IndexHandle:
    """
    Holder for the index currently serving queries.

    Readers call current() and keep the returned tree for the whole query, so
    a concurrent replace() never exposes a half-built index.
    """

    def __init__(self, index: Optional[KDTree] = None):
        self._lock = threading.Lock()
        self._index = index

    def current(self) -> Optional[KDTree]:
        with self._lock:
            return self._index

    def require(self) -> KDTree:
        index = self.current()
        if index is None:
            raise NoIndexError("No data loaded. Please upload points first.")
        return index

    def replace(self, index: Optional[KDTree]) -> Optional[KDTree]:
        """Install a new index, returning the previous one."""
        with self._lock:
            previous, self._index = self._index, index
        return previous

    def load(self, points: Sequence, earth_radius_km: float = EARTH_RADIUS_KM) -> KDTree:
        """Build a tree from points outside the lock, then swap it in."""
        index = KDTree(points, earth_radius_km=earth_radius_km)
        self.replace(index)
        return index


class SpatialSearchService:
    """
    Upload / search / export operations over a shared IndexHandle.
    """

    def __init__(self, handle: Optional[IndexHandle] = None,
                 config: Optional[GeoIndexConfig] = None,
                 tracker: Optional[PerformanceTracker] = None):
        self.handle = handle if handle is not None else IndexHandle()
        self.config = config or get_default_config()
        if tracker is None and self.config.performance.enable_performance_tracking:
            tracker = PerformanceTracker(max_history_size=self.config.performance.max_history_size)
        self.tracker = tracker

    def _install(self, points: Sequence) -> KDTree:
        started = time.perf_counter()
        index = self.handle.load(points, earth_radius_km=self.config.earth.radius_km)
        duration = time.perf_counter() - started

        if self.tracker is not None:
            self.tracker.record_build(len(index), index.height, duration)
        logger.info(f"Loaded index with {len(index)} points in {duration:.3f}s")
        return index

    def upload_points(self, points) -> int:
        """Replace the index with one built from point mappings or GeoPoints."""
        if not isinstance(points, list):
            raise InvalidInputError("Invalid points format")
        return len(self._install(points))

    def upload_features(self, features) -> int:
        """Replace the index with one built from GeoJSON features."""
        return len(self._install(points_from_features(features)))

    def search(self, target, max_distance_km: Optional[float] = None,
               max_results: Optional[int] = None) -> List[QueryResult]:
        """
        Radius search against the current index, with configured defaults.

        Raises:
            NoIndexError: if nothing has been uploaded yet
            InvalidQueryError: on bad limits or target
        """
        if max_distance_km is None:
            max_distance_km = self.config.search.max_distance_km
        if max_results is None:
            max_results = self.config.search.max_results
        limit = self.config.search.max_results_limit
        if isinstance(max_results, int) and max_results > limit:
            raise InvalidQueryError(f"max_results must not exceed {limit}, got {max_results}")

        index = self.handle.require()

        started = time.perf_counter()
        results, stats = index.search(target, max_distance_km, max_results)
        if self.tracker is not None:
            self.tracker.record_query(stats, len(results), time.perf_counter() - started)
        return results

    def export_features(self) -> Dict[str, Any]:
        return to_feature_collection(self.handle.require())

    def handle_request(self, payload: Any) -> Tuple[int, Dict[str, Any]]:
        """
        Dispatch one request body.

        Returns:
            (status_code, response_body)
        """
        try:
            if not isinstance(payload, dict):
                return 400, {'error': 'Request body must be an object'}
            action = payload.get('action')

            if action == 'upload':
                if 'features' in payload:
                    count = self.upload_features(payload['features'])
                else:
                    count = self.upload_points(payload.get('points'))
                return 200, {'message': 'Points uploaded successfully', 'count': count}

            if action == 'search':
                if 'targetPoint' not in payload:
                    raise InvalidQueryError("Invalid target point format")
                results = self.search(
                    payload['targetPoint'],
                    payload.get('maxDistance'),
                    payload.get('maxResults')
                )
                return 200, {'results': [r.to_dict() for r in results]}

            if action == 'export':
                return 200, self.export_features()

            return 400, {'error': 'Invalid action'}

        except (InvalidInputError, InvalidQueryError, NoIndexError) as e:
            logger.warning(f"Rejected {payload.get('action')!r} request: {e}")
            return 400, {'error': str(e)}
        except Exception:
            logger.exception("Unexpected error while handling request")
            return 500, {'error': 'Internal server error'}
