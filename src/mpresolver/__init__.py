"""mpresolver - Resolve OSM multipolygon relations into simple tagged polygons.

mpresolver takes multipolygon relations (unordered, possibly broken member
ways tagged outer/inner) and turns them into closed, hole-free polygons that
a simple map renderer can fill without a winding rule.

Example:
    $ mpresolver tile-63240001.osm

This resolves every multipolygon relation in the tile and reports the
resulting polygons together with diagnostics for malformed relations.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
