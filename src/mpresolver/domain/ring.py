"""Core geometric types for ring representation.

This module defines the fundamental geometric types used by the resolver:
- Point: An integer (latitude, longitude) pair in map units
- BoundingBox: An axis-aligned integer rectangle
- Ring: A sequence of points assembled from one or more source ways
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mpresolver.domain.ids import make_synthetic_id
from mpresolver.exceptions import InvalidBoundingBoxError

if TYPE_CHECKING:
    from mpresolver.domain.relation import Role, Way


@dataclass(frozen=True, slots=True)
class Point:
    """A point in map units.

    Immutable and hashable for use in sets/dicts. Equality is exact
    integer equality.

    Attributes:
        lat: Latitude in map units
        lon: Longitude in map units
    """

    lat: int
    lon: int

    def to_tuple(self) -> tuple[int, int]:
        """Convert to a (lat, lon) tuple."""
        return (self.lat, self.lon)

    def to_xy(self) -> tuple[int, int]:
        """Convert to planar (x, y) order, i.e. (lon, lat)."""
        return (self.lon, self.lat)


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """An axis-aligned rectangle in map units, bounds inclusive.

    Attributes:
        min_lat: Southern edge
        min_lon: Western edge
        max_lat: Northern edge
        max_lon: Eastern edge
    """

    min_lat: int
    min_lon: int
    max_lat: int
    max_lon: int

    def __post_init__(self) -> None:
        if self.min_lat > self.max_lat or self.min_lon > self.max_lon:
            raise InvalidBoundingBoxError(
                f"Inverted bounding box: lat {self.min_lat}..{self.max_lat}, "
                f"lon {self.min_lon}..{self.max_lon}"
            )

    @classmethod
    def from_points(cls, points: list[Point]) -> "BoundingBox":
        """Calculate the smallest box enclosing the given points.

        Raises:
            ValueError: If points is empty
        """
        if not points:
            raise ValueError("Cannot compute bounding box of no points")
        lats = [p.lat for p in points]
        lons = [p.lon for p in points]
        return cls(min(lats), min(lons), max(lats), max(lons))

    @property
    def width(self) -> int:
        """Extent along the longitude axis."""
        return self.max_lon - self.min_lon

    @property
    def height(self) -> int:
        """Extent along the latitude axis."""
        return self.max_lat - self.min_lat

    def contains(self, point: Point) -> bool:
        return (
            self.min_lat <= point.lat <= self.max_lat
            and self.min_lon <= point.lon <= self.max_lon
        )

    def contains_box(self, other: "BoundingBox") -> bool:
        return (
            self.min_lat <= other.min_lat
            and self.min_lon <= other.min_lon
            and self.max_lat >= other.max_lat
            and self.max_lon >= other.max_lon
        )

    def intersects(self, other: "BoundingBox") -> bool:
        return not (
            other.min_lat > self.max_lat
            or other.max_lat < self.min_lat
            or other.min_lon > self.max_lon
            or other.max_lon < self.min_lon
        )

    def to_xy_bounds(self) -> tuple[int, int, int, int]:
        """Convert to planar (min_x, min_y, max_x, max_y) order."""
        return (self.min_lon, self.min_lat, self.max_lon, self.max_lat)


@dataclass
class Ring:
    """An ordered sequence of points assembled from source ways.

    A ring is created from one segment by the joiner, grows while segments
    are joined onto it and is frozen once closing is finished. A closed
    ring repeats its first point as its last point.

    Attributes:
        points: Points of the ring
        segments: Source ways the ring was assembled from
        role: Declared role (None if undeclared)
        tags: Union of the source way tags, first way wins
        id: Synthetic identifier
        closed_artificially: True if the closing edge was not in the source data
    """

    points: list[Point]
    segments: list["Way"] = field(default_factory=list)
    role: "Role | None" = None
    tags: dict[str, str] = field(default_factory=dict)
    id: int = field(default_factory=make_synthetic_id)
    closed_artificially: bool = False
    _frozen: bool = field(default=False, repr=False, init=False)
    _cached_bbox: BoundingBox | None = field(default=None, repr=False, init=False)

    @classmethod
    def from_segment(cls, segment: "Way", role: "Role | None") -> "Ring":
        """Create a ring holding the points of a single source way."""
        return cls(
            points=list(segment.points),
            segments=[segment],
            role=role,
            tags=dict(segment.tags),
        )

    @property
    def source_ids(self) -> list[int]:
        """Identifiers of the source ways in join order."""
        return [s.id for s in self.segments]

    @property
    def diagnostic_refs(self) -> tuple[str, ...]:
        """Human-locatable references of the source ways."""
        return tuple(s.diagnostic_ref for s in self.segments)

    @property
    def first(self) -> Point:
        return self.points[0]

    @property
    def last(self) -> Point:
        return self.points[-1]

    def is_closed(self) -> bool:
        """Check if the ring ends where it starts."""
        return len(self.points) >= 2 and self.points[0] == self.points[-1]

    def distinct_point_count(self) -> int:
        return len(set(self.points))

    def is_degenerate(self) -> bool:
        """A closed ring needs at least 3 distinct points and 4 points."""
        return len(self.points) < 4 or self.distinct_point_count() < 3

    def bounding_box(self) -> BoundingBox:
        """Calculate bounding box of the ring.

        Result is cached until points are added.
        """
        if self._cached_bbox is None:
            self._cached_bbox = BoundingBox.from_points(self.points)
        return self._cached_bbox

    def extend_front(self, points: list[Point]) -> None:
        """Insert points before the first point, keeping their order."""
        self._check_mutable()
        self.points[0:0] = points
        self._cached_bbox = None

    def extend_back(self, points: list[Point]) -> None:
        """Append points after the last point."""
        self._check_mutable()
        self.points.extend(points)
        self._cached_bbox = None

    def absorb(self, other: "Ring") -> None:
        """Take over provenance, tags and role of a ring joined onto this one.

        Points are spliced by the caller. Tags already present win.
        """
        self._check_mutable()
        self.segments.extend(other.segments)
        for key, value in other.tags.items():
            self.tags.setdefault(key, value)
        if self.role is None:
            self.role = other.role

    def close_artificially(self) -> None:
        """Close the ring by repeating its first point."""
        self.extend_back([self.points[0]])
        self.closed_artificially = True

    def freeze(self) -> None:
        """Forbid further point changes."""
        self._frozen = True

    def _check_mutable(self) -> None:
        if self._frozen:
            raise ValueError(f"Ring {self.id} is frozen")

    def __str__(self) -> str:
        ways = ",".join(f"{s.id}[{len(s.points)}P]" for s in self.segments)
        return f"{self.id}({len(self.points)}P : ({ways}))"
