#!/usr/bin/env python3
"""
GeoJSON and GeoDataFrame Adapters

Translate between index points and geographic features. Features carry
coordinates as (longitude, latitude); points store (latitude, longitude).
The axis swap happens here and nowhere else.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

import geopandas as gpd
import pandas as pd
from shapely.errors import ShapelyError
from shapely.geometry import Point, mapping, shape

from .core.contracts import GeoPoint, QueryResult, _is_real_number
from .core.exceptions import InvalidInputError
from .spatial.kdtree import KDTree

logger = logging.getLogger(__name__)

WGS84 = "EPSG:4326"


def _feature_list(features) -> List[Any]:
    """Accept a FeatureCollection mapping or a plain sequence of features."""
    if isinstance(features, Mapping):
        if features.get('type') != 'FeatureCollection':
            raise InvalidInputError("Expected a FeatureCollection or a list of features")
        features = features.get('features')
    if features is None or isinstance(features, (str, bytes, Mapping)):
        raise InvalidInputError("Features must be a list")
    return list(features)


def _check_point_coordinates(geometry) -> None:
    """Reject raw Point coordinates that shapely would coerce to floats."""
    if not isinstance(geometry, Mapping) or geometry.get('type') != 'Point':
        return
    coords = geometry.get('coordinates')
    if coords is None or (isinstance(coords, (list, tuple)) and len(coords) == 0):
        raise InvalidInputError("Point geometry has no coordinate pair")
    if not isinstance(coords, (list, tuple)):
        raise InvalidInputError(f"Point coordinates must be a list, got {type(coords).__name__}")
    if not all(_is_real_number(c) for c in coords):
        raise InvalidInputError(f"Point coordinates must be numbers, got {coords!r}")


def _point_from_feature(feature, position: int) -> GeoPoint:
    if not isinstance(feature, Mapping):
        raise InvalidInputError(f"Feature must be a mapping, got {type(feature).__name__}")

    geometry = feature.get('geometry')
    if geometry is None:
        raise InvalidInputError("Feature has no geometry")
    _check_point_coordinates(geometry)
    try:
        geom = shape(geometry)
    except (ShapelyError, ValueError, TypeError, KeyError, IndexError, AttributeError) as e:
        raise InvalidInputError(f"Unreadable geometry: {e}") from e

    if geom.geom_type != 'Point':
        raise InvalidInputError(f"Expected a Point geometry, got {geom.geom_type}")
    if geom.is_empty:
        raise InvalidInputError("Point geometry has no coordinate pair")
    if geom.has_z:
        raise InvalidInputError("Expected a 2D coordinate pair, got 3D")

    feature_id = feature.get('id')
    if feature_id is None or feature_id == "":
        feature_id = str(position)

    return GeoPoint(
        id=str(feature_id),
        coordinates=(geom.y, geom.x),
        properties=feature.get('properties')
    )


def points_from_features(features) -> List[GeoPoint]:
    """
    Convert GeoJSON Point features to index points.

    Identity is the feature's own id when present, otherwise its position in
    the input as a string. Properties are copied unchanged.

    Args:
        features: List of Feature mappings or a FeatureCollection mapping

    Returns:
        Points in input order

    Raises:
        InvalidInputError: if any feature is malformed; nothing is returned
    """
    points = []
    for position, feature in enumerate(_feature_list(features)):
        try:
            points.append(_point_from_feature(feature, position))
        except InvalidInputError as e:
            raise InvalidInputError(f"Invalid feature at position {position}: {e}") from e

    logger.debug(f"Converted {len(points)} features to points")
    return points


def index_from_features(features) -> KDTree:
    """Build an index straight from GeoJSON features."""
    return KDTree(points_from_features(features))


def point_to_feature(point: GeoPoint) -> Dict[str, Any]:
    geometry = mapping(Point(point.longitude, point.latitude))
    return {
        'type': 'Feature',
        'id': point.id,
        'geometry': {
            'type': geometry['type'],
            'coordinates': list(geometry['coordinates'])
        },
        'properties': dict(point.properties)
    }


def features_from_index(index: KDTree) -> List[Dict[str, Any]]:
    """One GeoJSON feature per indexed point, in depth-first pre-order."""
    return [point_to_feature(point) for point in index.points()]


def to_feature_collection(index: KDTree) -> Dict[str, Any]:
    return {
        'type': 'FeatureCollection',
        'features': features_from_index(index)
    }


def results_to_features(results: Iterable[QueryResult]) -> List[Dict[str, Any]]:
    """Query results as features, with the distance added to each feature's properties."""
    features = []
    for result in results:
        feature = point_to_feature(result.point)
        feature['properties']['distance_km'] = result.distance_km
        features.append(feature)
    return features


def save_features(index: KDTree, filepath: str) -> None:
    """
    Write the indexed points to a GeoJSON file.

    Args:
        index: Index to export
        filepath: Path to save to
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        json.dump(to_feature_collection(index), f, indent=2)

    logger.info(f"Saved {len(index)} features to {path}")


def load_features(filepath: str) -> List[GeoPoint]:
    """
    Read points from a GeoJSON file (FeatureCollection or feature list).

    Raises:
        InvalidInputError: if the file is not valid JSON or holds malformed features
    """
    path = Path(filepath)
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidInputError(f"{path} is not valid JSON: {e}") from e

    points = points_from_features(data)
    logger.info(f"Loaded {len(points)} points from {path}")
    return points


def points_from_geodataframe(gdf: gpd.GeoDataFrame) -> List[GeoPoint]:
    """
    Convert a GeoDataFrame of Point geometries (x=longitude, y=latitude) to points.

    The 'id' column supplies identity when present; otherwise the frame
    index does. Remaining non-geometry columns become properties.
    """
    geometry_column = gdf.geometry.name
    has_id = 'id' in gdf.columns
    property_columns = [c for c in gdf.columns if c not in (geometry_column, 'id')]

    points = []
    for position, (idx, row) in enumerate(gdf.iterrows()):
        geom = row[geometry_column]
        if geom is None or geom.is_empty or geom.geom_type != 'Point':
            raise InvalidInputError(f"Invalid geometry at row {position}: expected a Point")

        point_id = row['id'] if has_id and pd.notna(row['id']) else idx
        try:
            points.append(GeoPoint(
                id=str(point_id),
                coordinates=(geom.y, geom.x),
                properties={c: row[c] for c in property_columns}
            ))
        except InvalidInputError as e:
            raise InvalidInputError(f"Invalid point at row {position}: {e}") from e

    logger.debug(f"Converted {len(points)} GeoDataFrame rows to points")
    return points


def index_to_geodataframe(index: KDTree, crs: str = WGS84) -> gpd.GeoDataFrame:
    """Export the indexed points as a GeoDataFrame, one row per point in pre-order."""
    points = list(index.points())

    frame = pd.DataFrame([dict(p.properties) for p in points])
    frame['id'] = [p.id for p in points]
    geometry = [Point(p.longitude, p.latitude) for p in points]

    return gpd.GeoDataFrame(frame, geometry=geometry, crs=crs)
