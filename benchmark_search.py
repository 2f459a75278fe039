#!/usr/bin/env python3
"""
Performance benchmark for KD-tree radius search against a linear scan.
"""

import time
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent / 'src'))

import numpy as np

from geoindex.core.contracts import GeoPoint
from geoindex.metrics.performance_tracker import PerformanceTracker
from geoindex.spatial.kdtree import KDTree
from geoindex.spatial.reference import linear_scan


def create_benchmark_points(num_points=10000, seed=0):
    """Random points over a city-sized box around Belo Horizonte."""
    print(f'Creating {num_points} benchmark points...')
    rng = np.random.default_rng(seed)
    lats = rng.uniform(-20.05, -19.80, num_points)
    lons = rng.uniform(-44.06, -43.85, num_points)
    return [GeoPoint(id=f'p{i}', coordinates=(float(lat), float(lon)))
            for i, (lat, lon) in enumerate(zip(lats, lons))]


def benchmark_search(sizes=(1000, 10000, 50000), num_queries=200, radius_km=1.0, max_results=10):
    """Benchmark build and query at different scales."""
    print("=" * 60)
    print("KD-Tree Radius Search Benchmark")
    print("=" * 60)

    results = []
    rng = np.random.default_rng(1)

    for size in sizes:
        print(f"\nTesting with {size} points...")
        points = create_benchmark_points(size)
        tracker = PerformanceTracker()

        start_time = time.perf_counter()
        tree = KDTree(points)
        tracker.record_build(len(tree), tree.height, time.perf_counter() - start_time)

        targets = list(zip(rng.uniform(-20.05, -19.80, num_queries),
                           rng.uniform(-44.06, -43.85, num_queries)))
        for target in targets:
            start_time = time.perf_counter()
            found, stats = tree.search(target, radius_km, max_results)
            tracker.record_query(stats, len(found), time.perf_counter() - start_time)

        tracker.start_operation('linear_scan')
        for target in targets:
            linear_scan(points, target, radius_km, max_results)
        scan_time = tracker.end_operation('linear_scan') / num_queries

        summary = tracker.get_summary_stats()
        print(f"  build: {summary['avg_build_time']:.4f}s (height {tree.height})")
        print(f"  kd-tree query: {summary['avg_query_time'] * 1000:.3f}ms, "
              f"{summary['avg_nodes_visited']:.0f} nodes visited")
        print(f"  linear scan:   {scan_time * 1000:.3f}ms")
        results.append((size, summary['avg_build_time'], summary['avg_query_time'], scan_time))

    print("\n" + "=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print(f"{'points':>10} {'build (s)':>12} {'query (ms)':>12} {'scan (ms)':>12}")
    print("-" * 50)
    for size, build_time, query_time, scan_time in results:
        print(f"{size:>10} {build_time:>12.4f} {query_time * 1000:>12.3f} {scan_time * 1000:>12.3f}")

    return results


if __name__ == '__main__':
    benchmark_search()
