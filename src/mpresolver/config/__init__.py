"""Configuration management for mpresolver.

This module provides configuration management using Pydantic models.
Configuration can be provided via CLI arguments or defaults.

Key classes:
- GeometryConfig: Tolerances and limits for the geometric tests
- ResolverConfig: Tag handling for resolved relations
- ProcessingConfig: Batch processing settings
- LoggingConfig: Logging settings
- ResolverSettings: Main application settings
"""

from mpresolver.config.settings import (
    DEFAULT_POLYGON_TAGS,
    GeometryConfig,
    LoggingConfig,
    ProcessingConfig,
    ResolverConfig,
    ResolverSettings,
    get_default_settings,
)

__all__ = [
    "DEFAULT_POLYGON_TAGS",
    "GeometryConfig",
    "LoggingConfig",
    "ProcessingConfig",
    "ResolverConfig",
    "ResolverSettings",
    "get_default_settings",
]
