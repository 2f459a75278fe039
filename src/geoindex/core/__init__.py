"""
Core Module

Data contracts, error types and configuration for the geo index.
"""

from .config import GeoIndexConfig, get_default_config
from .contracts import GeoPoint, QueryResult
from .exceptions import GeoIndexError, InvalidInputError, InvalidQueryError, NoIndexError

__all__ = [
    'GeoIndexConfig',
    'get_default_config',
    'GeoPoint',
    'QueryResult',
    'GeoIndexError',
    'InvalidInputError',
    'InvalidQueryError',
    'NoIndexError',
]
