"""Planar geometric predicates on map unit points.

This module provides core mathematical utilities for:
- Signed area calculation (shoelace formula)
- Point-in-polygon testing (ray casting algorithm)
- Point to segment distance and "located on line" tests
- Inclusive and strict line segment intersection
- Outcodes of points relative to a rectangle

Longitude is the x axis and latitude the y axis. Coordinates are integers,
so orientation tests are exact. All functions are pure and stateless.
"""

from mpresolver.domain import BoundingBox, Point

# Outcode bits relative to a rectangle
INSIDE = 0
LEFT = 1
RIGHT = 2
BOTTOM = 4
TOP = 8


def signed_area(points: list[Point]) -> float:
    """Calculate signed area of a polygon using the shoelace formula.

    The sign of the area indicates winding direction:
    - Positive area: counter-clockwise winding
    - Negative area: clockwise winding

    Args:
        points: Points forming the polygon boundary, closing point optional

    Returns:
        Signed area in square map units. Returns 0.0 for degenerate polygons.

    Examples:
        >>> square = [Point(0, 0), Point(0, 1), Point(1, 1), Point(1, 0)]
        >>> signed_area(square)  # CCW in (lon, lat)
        1.0
    """
    n = len(points)
    if n < 3:
        return 0.0

    area = 0
    for i in range(n):
        j = (i + 1) % n
        area += points[i].lon * points[j].lat
        area -= points[j].lon * points[i].lat

    return area / 2.0


def point_in_polygon(point: Point, polygon: list[Point]) -> bool:
    """Determine if a point is inside a polygon using ray casting algorithm.

    Casts a horizontal ray from the point towards increasing longitude and
    counts crossings with polygon edges. Points exactly on the boundary may
    be classified either way; callers that care test the boundary first
    with located_on_line().

    Args:
        point: The point to test
        polygon: Points forming the polygon boundary

    Returns:
        True if point is inside polygon, False otherwise
    """
    n = len(polygon)
    if n < 3:
        return False

    inside = False
    x, y = point.lon, point.lat
    j = n - 1

    for i in range(n):
        xi, yi = polygon[i].lon, polygon[i].lat
        xj, yj = polygon[j].lon, polygon[j].lat

        if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
            inside = not inside

        j = i

    return inside


def point_segment_distance_sq(point: Point, seg_start: Point, seg_end: Point) -> float:
    """Squared distance from a point to the closest point of a segment.

    Projects the point onto the infinite line, then clamps to the segment
    endpoints.
    """
    dx = seg_end.lon - seg_start.lon
    dy = seg_end.lat - seg_start.lat
    px = point.lon - seg_start.lon
    py = point.lat - seg_start.lat

    segment_length_sq = dx * dx + dy * dy
    if segment_length_sq == 0:
        return float(px * px + py * py)

    t = (px * dx + py * dy) / segment_length_sq
    t = max(0.0, min(1.0, t))

    ex = px - t * dx
    ey = py - t * dy
    return ex * ex + ey * ey


def located_on_line(point: Point, polygon: list[Point], tolerance: float) -> bool:
    """Check whether a point lies on the boundary of a polygon.

    Args:
        point: The point to test
        polygon: Points of a closed ring
        tolerance: Maximum squared distance to an edge

    Returns:
        True if the point is within tolerance of any edge
    """
    for a, b in zip(polygon, polygon[1:]):
        if point_segment_distance_sq(point, a, b) <= tolerance:
            return True
    return False


def midpoint(a: Point, b: Point) -> Point:
    """Integer midpoint of two points, halves rounded up."""
    return Point(
        a.lat + _round_half_up(b.lat - a.lat, 2),
        a.lon + _round_half_up(b.lon - a.lon, 2),
    )


def _round_half_up(numerator: int, denominator: int) -> int:
    return (2 * numerator + denominator) // (2 * denominator)


def orientation(a: Point, b: Point, c: Point) -> int:
    """Sign of the turn a -> b -> c.

    Returns:
        1 for a counter-clockwise turn, -1 for clockwise, 0 if collinear
    """
    cross = (b.lon - a.lon) * (c.lat - a.lat) - (b.lat - a.lat) * (c.lon - a.lon)
    return (cross > 0) - (cross < 0)


def _within_extent(a: Point, b: Point, p: Point) -> bool:
    return (
        min(a.lon, b.lon) <= p.lon <= max(a.lon, b.lon)
        and min(a.lat, b.lat) <= p.lat <= max(a.lat, b.lat)
    )


def segments_intersect(p1: Point, p2: Point, p3: Point, p4: Point) -> bool:
    """Check if two segments share at least one point.

    Touching endpoints and collinear overlaps count as intersections.
    """
    d1 = orientation(p3, p4, p1)
    d2 = orientation(p3, p4, p2)
    d3 = orientation(p1, p2, p3)
    d4 = orientation(p1, p2, p4)

    if d1 * d2 < 0 and d3 * d4 < 0:
        return True

    if d1 == 0 and _within_extent(p3, p4, p1):
        return True
    if d2 == 0 and _within_extent(p3, p4, p2):
        return True
    if d3 == 0 and _within_extent(p1, p2, p3):
        return True
    if d4 == 0 and _within_extent(p1, p2, p4):
        return True

    return False


def lines_cut_each_other(p1: Point, p2: Point, p3: Point, p4: Point) -> bool:
    """Check if two segments properly cross.

    The crossing point must lie strictly inside both segments. Parallel or
    collinear segments and segments that only touch never cut each other.
    """
    d1 = orientation(p3, p4, p1)
    d2 = orientation(p3, p4, p2)
    d3 = orientation(p1, p2, p3)
    d4 = orientation(p1, p2, p4)
    return d1 * d2 < 0 and d3 * d4 < 0


def outcode(point: Point, bbox: BoundingBox) -> int:
    """Classify a point into one of the nine fields around a rectangle.

    Returns:
        Combination of LEFT/RIGHT (longitude) and BOTTOM/TOP (latitude)
        bits; INSIDE (0) for points within the rectangle.
    """
    code = INSIDE
    if point.lon < bbox.min_lon:
        code |= LEFT
    elif point.lon > bbox.max_lon:
        code |= RIGHT
    if point.lat < bbox.min_lat:
        code |= BOTTOM
    elif point.lat > bbox.max_lat:
        code |= TOP
    return code
