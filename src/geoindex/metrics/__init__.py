"""
Performance Metrics Module

Timing and traversal statistics for index builds and searches.
"""

from .performance_tracker import PerformanceTracker

__all__ = [
    'PerformanceTracker',
]
