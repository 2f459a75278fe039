#!/usr/bin/env python3
"""
Performance Tracker Module

Timing and traversal counters for index builds and radius searches.
Includes bounds checking to prevent unlimited memory growth.
"""

import time
import logging
from typing import Dict, Any, List

logger = logging.getLogger(__name__)


class PerformanceTracker:
    """
    Tracks build and query timings plus per-query traversal counts.

    History lists are capped at max_history_size entries; the oldest
    entries are dropped first.
    """

    def __init__(self, max_history_size: int = 1000):
        """
        Initialize performance tracker with configurable bounds.

        Args:
            max_history_size: Maximum number of entries to keep in history lists
        """
        self.max_history_size = max_history_size
        self.reset()

    def reset(self):
        """Reset all performance metrics."""
        self.start_time = time.perf_counter()
        self.operation_times: Dict[str, List[float]] = {}
        self.build_metrics: List[Dict[str, Any]] = []
        self.query_metrics: List[Dict[str, Any]] = []
        self._current_ops: Dict[str, float] = {}

    def _trim(self, history: List) -> List:
        if len(history) > self.max_history_size:
            return history[-self.max_history_size:]
        return history

    def start_operation(self, operation_name: str):
        """Start timing an operation."""
        self._current_ops[operation_name] = time.perf_counter()

    def end_operation(self, operation_name: str) -> float:
        """End timing an operation. Returns the duration, or 0.0 if it was never started."""
        if operation_name not in self._current_ops:
            return 0.0
        duration = time.perf_counter() - self._current_ops.pop(operation_name)
        times = self.operation_times.setdefault(operation_name, [])
        times.append(duration)
        self.operation_times[operation_name] = self._trim(times)
        return duration

    def record_build(self, point_count: int, height: int, duration: float):
        """Record one index build."""
        self.build_metrics.append({
            'point_count': point_count,
            'height': height,
            'duration': duration
        })
        self.build_metrics = self._trim(self.build_metrics)

    def record_query(self, stats, result_count: int, duration: float):
        """
        Record one radius search.

        Args:
            stats: SearchStats from KDTree.search
            result_count: Number of results returned after truncation
            duration: Wall time in seconds
        """
        self.query_metrics.append({
            'nodes_visited': stats.nodes_visited,
            'candidates': stats.candidates,
            'pruned': stats.pruned,
            'results': result_count,
            'duration': duration
        })
        self.query_metrics = self._trim(self.query_metrics)

    def get_summary_stats(self) -> Dict[str, Any]:
        """Get performance summary."""
        total_time = time.perf_counter() - self.start_time

        operation_stats = {}
        for op_name, times in self.operation_times.items():
            if times:
                operation_stats[op_name] = {
                    'count': len(times),
                    'total_time': sum(times),
                    'avg_time': sum(times) / len(times),
                    'min_time': min(times),
                    'max_time': max(times)
                }

        total_queries = len(self.query_metrics)
        query_time = sum(m['duration'] for m in self.query_metrics)

        return {
            'total_time': total_time,
            'total_builds': len(self.build_metrics),
            'total_queries': total_queries,
            'avg_build_time': (sum(m['duration'] for m in self.build_metrics) / len(self.build_metrics)
                               if self.build_metrics else 0),
            'avg_query_time': query_time / total_queries if total_queries else 0,
            'avg_nodes_visited': (sum(m['nodes_visited'] for m in self.query_metrics) / total_queries
                                  if total_queries else 0),
            'avg_results': (sum(m['results'] for m in self.query_metrics) / total_queries
                            if total_queries else 0),
            'queries_per_second': total_queries / query_time if query_time > 0 else 0,
            'operation_stats': operation_stats
        }

    def log_performance_summary(self):
        """Log a human-readable performance summary."""
        stats = self.get_summary_stats()

        logger.info("=== PERFORMANCE SUMMARY ===")
        logger.info(f"Builds: {stats['total_builds']} (avg {stats['avg_build_time']:.4f}s)")
        logger.info(f"Queries: {stats['total_queries']} (avg {stats['avg_query_time']:.6f}s)")
        logger.info(f"Avg nodes visited per query: {stats['avg_nodes_visited']:.1f}")

        if stats['operation_stats']:
            logger.info("Top operations by time:")
            sorted_ops = sorted(stats['operation_stats'].items(),
                                key=lambda x: x[1]['total_time'], reverse=True)
            for op_name, op_stats in sorted_ops[:5]:
                logger.info(f"  {op_name}: {op_stats['total_time']:.3f}s over {op_stats['count']} calls")
