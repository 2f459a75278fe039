#!/usr/bin/env python3
"""
Configuration System for the Geo Index

Centralized configuration for search defaults, the earth model, performance
tracking and logging. Sections are plain dataclasses validated by the master
GeoIndexConfig.
"""

import json
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_LEVEL_ENV_VAR = 'GEOINDEX_LOG_LEVEL'


@dataclass
class SearchDefaults:
    """Defaults applied when a search request omits its limits."""
    max_distance_km: float = 10.0
    max_results: int = 10
    max_results_limit: int = 1000  # upper bound accepted by the service


@dataclass
class EarthModel:
    """Sphere used by the Haversine distance."""
    radius_km: float = 6371.0


@dataclass
class PerformanceConfig:
    """Configuration for build/query timing."""
    enable_performance_tracking: bool = True
    max_history_size: int = 1000


@dataclass
class LoggingConfig:
    """Configuration for logging and debugging."""
    log_level: str = "INFO"
    log_format: str = DEFAULT_LOG_FORMAT
    enable_debug_logging: bool = False


@dataclass
class GeoIndexConfig:
    """
    Master configuration for the index and the service wrapped around it.

    Validates itself on construction; invalid values raise ValueError.
    """
    search: SearchDefaults = field(default_factory=SearchDefaults)
    earth: EarthModel = field(default_factory=EarthModel)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_config()

    def _validate_config(self):
        """Validate configuration parameters."""
        if self.search.max_distance_km < 0:
            raise ValueError("max_distance_km must be non-negative")
        if self.search.max_results < 1:
            raise ValueError("max_results must be at least 1")
        if self.search.max_results_limit < self.search.max_results:
            raise ValueError("max_results_limit must not be smaller than max_results")

        if self.earth.radius_km <= 0:
            raise ValueError("radius_km must be positive")

        if self.performance.max_history_size <= 0:
            raise ValueError("max_history_size must be positive")

        if self.logging.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {VALID_LOG_LEVELS}")

    @property
    def effective_log_level(self) -> str:
        if self.logging.enable_debug_logging:
            return "DEBUG"
        return self.logging.log_level.upper()

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'GeoIndexConfig':
        """
        Create configuration from dictionary.

        Missing sections fall back to their defaults.
        """
        return cls(
            search=SearchDefaults(**config_dict.get('search', {})),
            earth=EarthModel(**config_dict.get('earth', {})),
            performance=PerformanceConfig(**config_dict.get('performance', {})),
            logging=LoggingConfig(**config_dict.get('logging', {}))
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            'search': {
                'max_distance_km': self.search.max_distance_km,
                'max_results': self.search.max_results,
                'max_results_limit': self.search.max_results_limit
            },
            'earth': {
                'radius_km': self.earth.radius_km
            },
            'performance': {
                'enable_performance_tracking': self.performance.enable_performance_tracking,
                'max_history_size': self.performance.max_history_size
            },
            'logging': {
                'log_level': self.logging.log_level,
                'log_format': self.logging.log_format,
                'enable_debug_logging': self.logging.enable_debug_logging
            }
        }

    def log_configuration_summary(self):
        """Log a summary of the current configuration."""
        logger.info("=== GEO INDEX CONFIGURATION SUMMARY ===")
        logger.info(f"Search defaults: max_distance_km={self.search.max_distance_km}, "
                    f"max_results={self.search.max_results}, limit={self.search.max_results_limit}")
        logger.info(f"Earth radius: {self.earth.radius_km} km")
        logger.info(f"Performance tracking: {self.performance.enable_performance_tracking}")


def get_default_config() -> GeoIndexConfig:
    """Get a fresh default configuration instance."""
    return GeoIndexConfig()


def create_config_from_file(config_path: str) -> GeoIndexConfig:
    """
    Create configuration from YAML or JSON file.

    Args:
        config_path: Path to configuration file

    Returns:
        GeoIndexConfig instance
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    if path.suffix in ('.yaml', '.yml'):
        with open(path, 'r') as f:
            config_dict = yaml.safe_load(f) or {}
    elif path.suffix == '.json':
        with open(path, 'r') as f:
            config_dict = json.load(f)
    else:
        raise ValueError("Configuration file must be .yaml, .yml, or .json")

    return GeoIndexConfig.from_dict(config_dict)


def save_config_to_file(config: GeoIndexConfig, config_path: str):
    """
    Save configuration to YAML or JSON file.

    Args:
        config: Configuration to save
        config_path: Path to save configuration
    """
    path = Path(config_path)
    config_dict = config.to_dict()

    if path.suffix in ('.yaml', '.yml'):
        with open(path, 'w') as f:
            yaml.dump(config_dict, f, default_flow_style=False, indent=2)
    elif path.suffix == '.json':
        with open(path, 'w') as f:
            json.dump(config_dict, f, indent=2)
    else:
        raise ValueError("Configuration file must be .yaml, .yml, or .json")

    logger.info(f"Configuration saved to {config_path}")


def setup_logging(log_level: Optional[str] = None, log_file: Optional[str] = None,
                  config: Optional[GeoIndexConfig] = None, stream=None):
    """
    Configure logging for scripts and services.

    Level precedence: explicit argument, then GEOINDEX_LOG_LEVEL, then config.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file path to write logs
        config: Optional configuration supplying level and format
        stream: Console stream, stdout by default
    """
    config = config or get_default_config()
    level_name = log_level or os.environ.get(LOG_LEVEL_ENV_VAR) or config.effective_log_level
    numeric_level = getattr(logging, level_name.upper(), logging.INFO)

    handlers = [logging.StreamHandler(stream or sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=numeric_level,
        format=config.logging.log_format,
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=handlers,
        force=True
    )
