#!/usr/bin/env python3
"""
Unit tests for GeoJSON and GeoDataFrame adapters.
"""

import json
import os
import sys
import tempfile
import unittest

import geopandas as gpd
from shapely.geometry import LineString, Point

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from geoindex.core.contracts import QueryResult
from geoindex.core.exceptions import InvalidInputError
from geoindex.serialization import (
    features_from_index, index_from_features, index_to_geodataframe, load_features,
    points_from_features, points_from_geodataframe, results_to_features, save_features,
    to_feature_collection
)
from geoindex.spatial.kdtree import KDTree, query


def feature(lon, lat, feature_id=None, **properties):
    data = {
        'type': 'Feature',
        'geometry': {'type': 'Point', 'coordinates': [lon, lat]},
        'properties': properties
    }
    if feature_id is not None:
        data['id'] = feature_id
    return data


class TestFeatureImport(unittest.TestCase):
    """Test cases for GeoJSON -> points."""

    def test_axis_order_is_reversed(self):
        """GeoJSON [lon, lat] becomes (lat, lon)."""
        points = points_from_features([feature(-43.9386, -19.9191, 'bh')])
        self.assertEqual(points[0].coordinates, (-19.9191, -43.9386))

    def test_identity_assignment(self):
        """Declared ids win; missing ids fall back to input position."""
        points = points_from_features([
            feature(0, 0, 'first'),
            feature(1, 1),
            feature(2, 2, 42),
            feature(3, 3, ''),
        ])
        self.assertEqual([p.id for p in points], ['first', '1', '42', '3'])

    def test_properties_copied(self):
        points = points_from_features([feature(0, 0, 'a', name='Bar', tags=['x', 'y'])])
        self.assertEqual(points[0].properties, {'name': 'Bar', 'tags': ['x', 'y']})

    def test_null_properties_become_empty(self):
        data = feature(0, 0, 'a')
        data['properties'] = None
        self.assertEqual(points_from_features([data])[0].properties, {})

    def test_feature_collection_accepted(self):
        collection = {'type': 'FeatureCollection', 'features': [feature(1, 2, 'a')]}
        points = points_from_features(collection)
        self.assertEqual(len(points), 1)

    def test_empty_input(self):
        self.assertEqual(points_from_features([]), [])
        self.assertTrue(index_from_features({'type': 'FeatureCollection', 'features': []}).is_empty)

    def test_malformed_features_rejected(self):
        bad_features = [
            {'type': 'Feature', 'properties': {}},
            {'type': 'Feature', 'geometry': {'type': 'Point', 'coordinates': []}},
            {'type': 'Feature', 'geometry': {'type': 'LineString', 'coordinates': [[0, 0], [1, 1]]}},
            {'type': 'Feature', 'geometry': {'type': 'Point', 'coordinates': [1, 2, 3]}},
            {'type': 'Feature', 'geometry': {'type': 'Point', 'coordinates': [0, 999]}},
            {'type': 'Feature', 'geometry': {'type': 'Unknown', 'coordinates': [0, 0]}},
            "not a feature",
        ]
        for bad in bad_features:
            with self.subTest(feature=bad):
                with self.assertRaises(InvalidInputError):
                    points_from_features([feature(0, 0, 'ok'), bad])

    def test_non_numeric_coordinates_rejected(self):
        """String and boolean coordinates are not coerced to floats."""
        for coords in (["1", "2"], [True, False], [1.0, "2"], [None, None]):
            bad = {'type': 'Feature', 'geometry': {'type': 'Point', 'coordinates': coords}}
            with self.subTest(coordinates=coords):
                with self.assertRaises(InvalidInputError):
                    points_from_features([bad])

    def test_missing_coordinate_pair_message(self):
        for coords in ([], None):
            bad = {'type': 'Feature', 'geometry': {'type': 'Point', 'coordinates': coords}}
            with self.subTest(coordinates=coords):
                with self.assertRaises(InvalidInputError) as ctx:
                    points_from_features([bad])
                self.assertIn("no coordinate pair", str(ctx.exception))
                self.assertNotIn("got Point", str(ctx.exception))

    def test_error_names_position(self):
        with self.assertRaises(InvalidInputError) as ctx:
            points_from_features([feature(0, 0), feature(0, 100)])
        self.assertIn("position 1", str(ctx.exception))

    def test_malformed_container_rejected(self):
        for bad in [None, "features", {'type': 'Feature'}, {'type': 'FeatureCollection'}]:
            with self.subTest(container=bad):
                with self.assertRaises(InvalidInputError):
                    points_from_features(bad)

    def test_kdtree_from_features(self):
        tree = KDTree.from_features([feature(0, 0, 'a'), feature(1, 0, 'b')])
        results = query(tree, (0, 0), 200, 5)
        self.assertEqual([r.point.id for r in results], ['a', 'b'])


class TestFeatureExport(unittest.TestCase):
    """Test cases for points -> GeoJSON."""

    def setUp(self):
        """Set up test fixtures."""
        self.features = [
            feature(-43.9386, -19.9191, 'centro', name='Mercado Central', rating=4.5),
            feature(-43.95, -19.93, None, name='Sem id'),
            feature(-43.92, -19.91, 'savassi', open=True, hours=None),
            feature(0, 0, 'origin'),
        ]

    def test_round_trip_preserves_coordinates_and_properties(self):
        exported = features_from_index(index_from_features(self.features))
        by_id = {f['id']: f for f in exported}

        self.assertEqual(set(by_id), {'centro', '1', 'savassi', 'origin'})
        for position, original in enumerate(self.features):
            key = original.get('id', str(position))
            self.assertEqual(by_id[key]['geometry']['coordinates'], original['geometry']['coordinates'])
            self.assertEqual(by_id[key]['properties'], original['properties'])

    def test_export_shape(self):
        exported = features_from_index(index_from_features([feature(10.5, -3.25, 'p', k='v')]))
        self.assertEqual(exported, [{
            'type': 'Feature',
            'id': 'p',
            'geometry': {'type': 'Point', 'coordinates': [10.5, -3.25]},
            'properties': {'k': 'v'}
        }])

    def test_export_order_is_preorder(self):
        tree = index_from_features(self.features)
        self.assertEqual([f['id'] for f in features_from_index(tree)], [p.id for p in tree.points()])

    def test_feature_collection(self):
        collection = to_feature_collection(index_from_features(self.features))
        self.assertEqual(collection['type'], 'FeatureCollection')
        self.assertEqual(len(collection['features']), 4)

    def test_export_is_json_serializable(self):
        collection = to_feature_collection(index_from_features(self.features))
        self.assertEqual(json.loads(json.dumps(collection)), collection)

    def test_results_to_features(self):
        tree = index_from_features(self.features)
        results = query(tree, (-19.9191, -43.9386), 5, 10)
        features = results_to_features(results)

        self.assertEqual(features[0]['id'], 'centro')
        self.assertEqual(features[0]['properties']['distance_km'], 0.0)
        self.assertEqual(features[0]['properties']['name'], 'Mercado Central')
        # The indexed point keeps its own properties
        self.assertNotIn('distance_km', results[0].point.properties)

    def test_results_to_features_accepts_plain_results(self):
        point = points_from_features([feature(1, 2, 'x')])[0]
        features = results_to_features([QueryResult(point=point, distance_km=1.25)])
        self.assertEqual(features[0]['properties'], {'distance_km': 1.25})


class TestFeatureFiles(unittest.TestCase):
    """Test cases for GeoJSON file I/O."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.tree = index_from_features([feature(1, 2, 'a', n=1), feature(3, 4, 'b', n=2)])

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_save_and_load(self):
        path = os.path.join(self.temp_dir.name, 'nested', 'points.geojson')
        save_features(self.tree, path)

        self.assertTrue(os.path.exists(path))
        loaded = {p.id: p for p in load_features(path)}
        self.assertEqual(loaded['a'].coordinates, (2.0, 1.0))
        self.assertEqual(loaded['b'].properties, {'n': 2})

    def test_load_invalid_json(self):
        path = os.path.join(self.temp_dir.name, 'broken.geojson')
        with open(path, 'w') as f:
            f.write("{not json")
        with self.assertRaises(InvalidInputError):
            load_features(path)

    def test_load_non_utf8_file(self):
        path = os.path.join(self.temp_dir.name, 'binary.geojson')
        with open(path, 'wb') as f:
            f.write(b'\xff\xfe{')
        with self.assertRaises(InvalidInputError):
            load_features(path)

    def test_load_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_features(os.path.join(self.temp_dir.name, 'missing.geojson'))


class TestGeoDataFrameAdapters(unittest.TestCase):
    """Test cases for geopandas conversion."""

    def setUp(self):
        """Set up test fixtures."""
        self.gdf = gpd.GeoDataFrame(
            {'id': ['p1', 'p2'], 'name': ['Bar do Zé', 'Boteco']},
            geometry=[Point(-43.9386, -19.9191), Point(-43.95, -19.93)],
            crs="EPSG:4326"
        )

    def test_points_from_geodataframe(self):
        points = points_from_geodataframe(self.gdf)
        self.assertEqual([p.id for p in points], ['p1', 'p2'])
        self.assertEqual(points[0].coordinates, (-19.9191, -43.9386))
        self.assertEqual(points[1].properties, {'name': 'Boteco'})

    def test_frame_index_used_without_id_column(self):
        gdf = self.gdf.drop(columns=['id'])
        gdf.index = ['x', 'y']
        points = points_from_geodataframe(gdf)
        self.assertEqual([p.id for p in points], ['x', 'y'])

    def test_non_point_geometry_rejected(self):
        gdf = gpd.GeoDataFrame({'id': ['line']}, geometry=[LineString([(0, 0), (1, 1)])])
        with self.assertRaises(InvalidInputError):
            points_from_geodataframe(gdf)

    def test_out_of_range_row_rejected(self):
        gdf = gpd.GeoDataFrame({'id': ['far']}, geometry=[Point(0, 120)])
        with self.assertRaises(InvalidInputError):
            points_from_geodataframe(gdf)

    def test_index_to_geodataframe(self):
        tree = KDTree(points_from_geodataframe(self.gdf))
        gdf = index_to_geodataframe(tree)

        self.assertEqual(len(gdf), 2)
        self.assertEqual(gdf.crs.to_epsg(), 4326)
        rows = {row['id']: row for _, row in gdf.iterrows()}
        self.assertEqual(rows['p1']['name'], 'Bar do Zé')
        self.assertAlmostEqual(rows['p1'].geometry.x, -43.9386)
        self.assertAlmostEqual(rows['p1'].geometry.y, -19.9191)

    def test_empty_index_to_geodataframe(self):
        gdf = index_to_geodataframe(KDTree([]))
        self.assertEqual(len(gdf), 0)


if __name__ == '__main__':
    unittest.main()
