#!/usr/bin/env python3
"""
Radius Search CLI
=================

Load a GeoJSON file of Point features, build the index and list every point
within a radius of a target, closest first.

Usage Examples
--------------

Ten closest points within 5 km:
    python scripts/search_points.py --input bars.geojson \
        --lat -19.9191 --lon -43.9386 --radius 5 --limit 10

Write matches as a FeatureCollection:
    python scripts/search_points.py --input bars.geojson \
        --lat -19.9191 --lon -43.9386 --format geojson > matches.geojson

Environment Variables
---------------------
GEOINDEX_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from geoindex.core.config import create_config_from_file, get_default_config, setup_logging
from geoindex.core.exceptions import GeoIndexError
from geoindex.serialization import load_features, results_to_features
from geoindex.spatial.kdtree import KDTree


def main(argv=None):
    """Main entry point for the search CLI."""
    parser = argparse.ArgumentParser(
        description="Great-circle radius search over a GeoJSON point file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--input', '-i', required=True, help='GeoJSON file of Point features')
    parser.add_argument('--lat', type=float, required=True, help='Target latitude in degrees')
    parser.add_argument('--lon', type=float, required=True, help='Target longitude in degrees')
    parser.add_argument('--radius', type=float, default=None,
                        help='Search radius in km (default: from config, 10)')
    parser.add_argument('--limit', type=int, default=None,
                        help='Maximum number of results (default: from config, 10)')
    parser.add_argument('--format', choices=['json', 'geojson'], default='json',
                        help='Output format (default: json)')
    parser.add_argument('--config', type=str, help='YAML or JSON configuration file')

    logging_group = parser.add_argument_group('Logging')
    logging_group.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                               default=None, help='Logging level (default: INFO)')
    logging_group.add_argument('--log-file', type=str, help='Optional file to write logs')

    args = parser.parse_args(argv)

    config = create_config_from_file(args.config) if args.config else get_default_config()
    # Results go to stdout; keep log lines out of it
    setup_logging(args.log_level, args.log_file, config=config, stream=sys.stderr)
    logger = logging.getLogger(__name__)

    radius = args.radius if args.radius is not None else config.search.max_distance_km
    limit = args.limit if args.limit is not None else config.search.max_results

    try:
        points = load_features(args.input)

        started = time.perf_counter()
        index = KDTree(points, earth_radius_km=config.earth.radius_km)
        logger.info(f"Built index over {len(index)} points in {time.perf_counter() - started:.3f}s")

        results, stats = index.search((args.lat, args.lon), radius, limit)
        logger.info(f"Visited {stats.nodes_visited} nodes, {stats.candidates} within {radius} km")
    except (GeoIndexError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1

    if args.format == 'geojson':
        output = {'type': 'FeatureCollection', 'features': results_to_features(results)}
    else:
        output = {'results': [r.to_dict() for r in results]}

    json.dump(output, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
