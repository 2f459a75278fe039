"""
Error types raised by the geoindex package.

Input and query errors subclass ValueError so callers catching the
standard exception keep working.
"""


class GeoIndexError(Exception):
    """Base class for all geoindex errors."""


class InvalidInputError(GeoIndexError, ValueError):
    """Malformed or out-of-range point data supplied at build/import time."""


class InvalidQueryError(GeoIndexError, ValueError):
    """Malformed query parameters or query target."""


class NoIndexError(GeoIndexError):
    """A search was requested before any index was loaded."""
