"""Utility functions for mpresolver.

This module provides utility functions including:

- Logging setup and configuration
- Processing statistics collected across relations
"""

from mpresolver.utils.logging import (
    ProcessingLogger,
    ProcessingStats,
    configure_logging,
)

__all__ = [
    "ProcessingLogger",
    "ProcessingStats",
    "configure_logging",
]
