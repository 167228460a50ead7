"""OSM I/O layer for mpresolver.

This module handles reading OSM XML files using lxml. It provides a clean
abstraction layer between the XML document and the domain models.

Key responsibilities:
- Stream OSM XML files
- Convert degrees to map units
- Link relation members to their ways

Key classes:
- OsmReader: Load OSM XML files
- OsmData: Ways, relations and bounds of a file
"""

from mpresolver.io.converter import parse_bbox, to_degrees, to_map_unit
from mpresolver.io.reader import OsmData, OsmReader

__all__ = [
    "OsmData",
    "OsmReader",
    "parse_bbox",
    "to_degrees",
    "to_map_unit",
]
