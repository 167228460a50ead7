"""Converters between OSM XML elements and domain models.

This module handles the conversion between lxml elements of an OSM XML
document and our domain models (Point, Way, Member, Relation), including
the conversion of degrees to map units.
"""

import math

from lxml import etree

from mpresolver.domain import BoundingBox, Member, Point, Relation, Way

# One full turn is 2^24 map units
MAP_UNITS_PER_TURN = 1 << 24


def to_map_unit(degrees: float) -> int:
    """Convert degrees to map units, rounding halves up."""
    return math.floor(degrees * MAP_UNITS_PER_TURN / 360.0 + 0.5)


def to_degrees(map_units: int) -> float:
    """Convert map units back to degrees."""
    return map_units * 360.0 / MAP_UNITS_PER_TURN


def element_tags(element: etree._Element) -> dict[str, str]:
    """Collect the <tag k=... v=...> children of an element."""
    return {tag.get("k"): tag.get("v", "") for tag in element.iterfind("tag") if tag.get("k")}


def node_to_point(element: etree._Element) -> tuple[int, Point]:
    """Convert a <node> element to its id and position.

    Raises:
        KeyError: If a required attribute is missing
        ValueError: If an attribute is not a number
    """
    node_id = int(element.attrib["id"])
    point = Point(
        lat=to_map_unit(float(element.attrib["lat"])),
        lon=to_map_unit(float(element.attrib["lon"])),
    )
    return node_id, point


def way_to_domain(
    element: etree._Element,
    nodes: dict[int, Point],
) -> tuple[Way, list[int]]:
    """Convert a <way> element to a Way.

    Node references missing from nodes are skipped; extracts clipped to an
    area routinely lack nodes of ways crossing the clip border.

    Args:
        element: The <way> element
        nodes: Positions of the nodes read so far

    Returns:
        Tuple of (way, ids of node references that could not be resolved)
    """
    points: list[Point] = []
    missing: list[int] = []
    for nd in element.iterfind("nd"):
        ref = int(nd.attrib["ref"])
        point = nodes.get(ref)
        if point is None:
            missing.append(ref)
        else:
            points.append(point)
    way = Way(id=int(element.attrib["id"]), points=points, tags=element_tags(element))
    return way, missing


def relation_to_domain(element: etree._Element) -> Relation:
    """Convert a <relation> element to a Relation with unattached members."""
    members = [
        Member(
            member_type=member.attrib["type"],
            ref=int(member.attrib["ref"]),
            role=member.get("role") or None,
        )
        for member in element.iterfind("member")
    ]
    return Relation(
        id=int(element.attrib["id"]),
        members=members,
        tags=element_tags(element),
    )


def bounds_to_bbox(element: etree._Element) -> BoundingBox:
    """Convert a <bounds> element to a BoundingBox in map units."""
    return BoundingBox(
        min_lat=to_map_unit(float(element.attrib["minlat"])),
        min_lon=to_map_unit(float(element.attrib["minlon"])),
        max_lat=to_map_unit(float(element.attrib["maxlat"])),
        max_lon=to_map_unit(float(element.attrib["maxlon"])),
    )


def parse_bbox(value: str) -> BoundingBox:
    """Parse "minlat,minlon,maxlat,maxlon" in degrees.

    Raises:
        ValueError: If the value does not hold four numbers
        InvalidBoundingBoxError: If the box is inverted
    """
    parts = [p.strip() for p in value.split(",")]
    if len(parts) != 4:
        raise ValueError(f"Expected minlat,minlon,maxlat,maxlon, got '{value}'")
    min_lat, min_lon, max_lat, max_lon = (to_map_unit(float(p)) for p in parts)
    return BoundingBox(min_lat, min_lon, max_lat, max_lon)
