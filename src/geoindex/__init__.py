# Geo Index
# Latitude/longitude KD-tree with great-circle radius search

from .core.contracts import GeoPoint, QueryResult
from .core.exceptions import GeoIndexError, InvalidInputError, InvalidQueryError, NoIndexError
from .spatial.kdtree import KDTree, build, query
from .spatial.haversine import haversine_km
from .serialization import (
    points_from_features, index_from_features, features_from_index,
    to_feature_collection, save_features, load_features
)
from .service import IndexHandle, SpatialSearchService

__all__ = [
    'GeoPoint',
    'QueryResult',
    'GeoIndexError',
    'InvalidInputError',
    'InvalidQueryError',
    'NoIndexError',
    'KDTree',
    'build',
    'query',
    'haversine_km',
    'points_from_features',
    'index_from_features',
    'features_from_index',
    'to_feature_collection',
    'save_features',
    'load_features',
    'IndexHandle',
    'SpatialSearchService',
]

__version__ = "0.1.0"
