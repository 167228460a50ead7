"""Ring containment analysis.

This module decides for every ordered pair of closed rings whether the
first fully contains the second, and records pairs whose boundaries
genuinely cross. The result is a transitively closed containment matrix
used to derive the outer/inner hierarchy.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from mpresolver.config import GeometryConfig
from mpresolver.core.geometry import (
    INSIDE,
    lines_cut_each_other,
    located_on_line,
    midpoint,
    outcode,
    point_in_polygon,
    point_segment_distance_sq,
)
from mpresolver.domain import BoundingBox, Point, Ring

logger = logging.getLogger(__name__)


class Containment(Enum):
    """Outcome of testing whether one ring contains another."""

    CONTAINED = "contained"
    NOT_CONTAINED = "not_contained"
    INTERSECTING = "intersecting"


class ContainmentMatrix:
    """Square boolean matrix, entry (i, j) true iff ring i contains ring j.

    Rows are stored as integer bit sets. The diagonal is always false.
    """

    def __init__(self, size: int) -> None:
        self.size = size
        self._rows = [0] * size

    def contains(self, i: int, j: int) -> bool:
        return bool(self._rows[i] >> j & 1)

    def mark(self, i: int, j: int) -> None:
        if i != j:
            self._rows[i] |= 1 << j

    def merge_row(self, i: int, j: int) -> None:
        """Make ring i contain everything ring j contains."""
        self._rows[i] |= self._rows[j] & ~(1 << i)

    def row_mask(self, i: int) -> int:
        """Row i as an integer bit set."""
        return self._rows[i]

    def row(self, i: int) -> set[int]:
        """Indices of all rings contained in ring i."""
        return {j for j in range(self.size) if self._rows[i] >> j & 1}

    def contained_in(self, candidates: set[int], within: set[int]) -> set[int]:
        """Members of within contained in at least one candidate ring."""
        mask = 0
        for i in candidates:
            mask |= self._rows[i]
        return {j for j in within if mask >> j & 1}

    def find_outmost(self, candidates: set[int]) -> set[int]:
        """Rings of candidates not contained in any other candidate."""
        return candidates - self.contained_in(candidates, candidates)

    def close_transitively(self) -> None:
        """Propagate containment until contains(i, k) and contains(k, j) imply contains(i, j)."""
        for k in range(self.size):
            bit = 1 << k
            for i in range(self.size):
                if self._rows[i] & bit:
                    self.merge_row(i, k)

    def __repr__(self) -> str:
        rows = ["".join("1" if self.contains(i, j) else "0" for j in range(self.size))
                for i in range(self.size)]
        return f"ContainmentMatrix({rows})"


@dataclass
class ContainmentResult:
    """Containment matrix plus the ring pairs that cross each other.

    Attributes:
        matrix: Transitively closed containment matrix
        intersecting: Index pairs (i < j) of rings whose boundaries cross
    """

    matrix: ContainmentMatrix
    intersecting: set[tuple[int, int]] = field(default_factory=set)

    def intersecting_rings(self) -> set[int]:
        return {i for pair in self.intersecting for i in pair}


class ContainmentChecker:
    """Tests whether one ring lies within another.

    Points within the overlap tolerance of the outer boundary count as
    touching, so rings sharing edges can still be nested. Tile clipping
    leaves geometry outside the tile incomplete, so points outside the tile
    never decide a test on their own.

    Attributes:
        tile_bbox: Bounding box of the tile
        config: Geometry configuration
    """

    def __init__(self, tile_bbox: BoundingBox, config: GeometryConfig | None = None) -> None:
        self.tile_bbox = tile_bbox
        self.config = config or GeometryConfig()

    def check(self, outer: Ring, inner: Ring) -> Containment:
        """Decide whether outer contains inner.

        Args:
            outer: Candidate container ring
            inner: Candidate contained ring

        Returns:
            CONTAINED, NOT_CONTAINED or INTERSECTING if the boundaries cross
        """
        if not outer.bounding_box().contains_box(inner.bounding_box()):
            return Containment.NOT_CONTAINED

        inside = self._has_inside_point(outer, inner)
        if inside is None:
            return Containment.NOT_CONTAINED
        if not inside and not self._has_inside_midpoint(outer, inner):
            return Containment.NOT_CONTAINED

        if self.config.detect_edge_crossings and self._edges_cross(outer, inner):
            return Containment.INTERSECTING

        return Containment.CONTAINED

    def _has_inside_point(self, outer: Ring, inner: Ring) -> bool | None:
        """Classify inner's points against outer.

        Returns:
            None if a point inside the tile lies outside outer, True if at
            least one point is strictly inside, False if every deciding point
            lies on outer's boundary
        """
        tolerance = self.config.overlap_tolerance
        found = False
        for p in inner.points:
            if located_on_line(p, outer.points, tolerance):
                continue
            if point_in_polygon(p, outer.points):
                found = True
            elif self.tile_bbox.contains(p):
                return None
        return found

    def _has_inside_midpoint(self, outer: Ring, inner: Ring) -> bool:
        """True if no edge midpoint of inner lies outside outer and one lies inside."""
        tolerance = self.config.overlap_tolerance
        found = False
        for a, b in zip(inner.points, inner.points[1:]):
            m = midpoint(a, b)
            if located_on_line(m, outer.points, tolerance):
                continue
            if point_in_polygon(m, outer.points):
                found = True
            elif self.tile_bbox.contains(m):
                return False
        return found

    def _edges_cross(self, outer: Ring, inner: Ring) -> bool:
        """Look for a genuine crossing between outer and inner edges.

        Inner edges are bucketed against each outer edge's bounding box so
        that edges entirely to one side are skipped. Crossings on an
        artificial closing edge, outside the tile or within tolerance of a
        vertex are ignored.
        """
        inner_bbox = inner.bounding_box()
        outer_edges = list(zip(outer.points, outer.points[1:]))
        inner_edges = list(zip(inner.points, inner.points[1:]))

        for index, (a1, a2) in enumerate(outer_edges):
            edge_bbox = BoundingBox.from_points([a1, a2])
            if not edge_bbox.intersects(inner_bbox):
                continue
            outer_closing = outer.closed_artificially and index == len(outer_edges) - 1

            codes = [outcode(p, edge_bbox) for p in inner.points]
            for j, (b1, b2) in enumerate(inner_edges):
                if codes[j] & codes[j + 1]:
                    continue
                if not lines_cut_each_other(a1, a2, b1, b2):
                    continue
                inner_closing = inner.closed_artificially and j == len(inner_edges) - 1
                if outer_closing or inner_closing:
                    logger.debug(
                        "Ignoring crossing on artificial closing edge of %s / %s",
                        outer, inner,
                    )
                    continue
                if not self._inside_tile(a1, a2, b1, b2):
                    continue
                if self._touches(a1, a2, b1, b2):
                    continue
                logger.debug(
                    "Ring %s edge %s-%s crosses ring %s edge %s-%s",
                    outer, a1, a2, inner, b1, b2,
                )
                return True
        return False

    def _inside_tile(self, *points: Point) -> bool:
        return all(outcode(p, self.tile_bbox) == INSIDE for p in points)

    def _touches(self, a1: Point, a2: Point, b1: Point, b2: Point) -> bool:
        tolerance = self.config.overlap_tolerance
        return (
            point_segment_distance_sq(b1, a1, a2) <= tolerance
            or point_segment_distance_sq(b2, a1, a2) <= tolerance
            or point_segment_distance_sq(a1, b1, b2) <= tolerance
            or point_segment_distance_sq(a2, b1, b2) <= tolerance
        )


def _bbox_area(ring: Ring) -> int:
    bbox = ring.bounding_box()
    return bbox.width * bbox.height


def build_containment_matrix(
    rings: list[Ring],
    tile_bbox: BoundingBox,
    config: GeometryConfig | None = None,
) -> ContainmentResult:
    """Compute the containment relation between all rings.

    Rows are filled smallest ring first, so when ring i is found to contain
    ring j the complete row of j is usually known and is merged into row i
    without further geometric tests. Pairs with disjoint bounding boxes are
    never tested. A final pass makes the matrix transitively closed.

    Args:
        rings: Closed rings of one relation
        tile_bbox: Bounding box of the tile
        config: Geometry configuration

    Returns:
        ContainmentResult with the matrix and crossing ring pairs
    """
    n = len(rings)
    checker = ContainmentChecker(tile_bbox, config)
    matrix = ContainmentMatrix(n)
    intersecting: set[tuple[int, int]] = set()
    finished = [1 << i for i in range(n)]
    bboxes = [ring.bounding_box() for ring in rings]

    order = sorted(range(n), key=lambda i: (_bbox_area(rings[i]), i))
    for i in order:
        for j in range(n):
            if finished[i] >> j & 1:
                continue
            finished[i] |= 1 << j

            if not bboxes[i].intersects(bboxes[j]):
                finished[j] |= 1 << i
                continue

            verdict = checker.check(rings[i], rings[j])
            if verdict is Containment.CONTAINED:
                matrix.mark(i, j)
                # j cannot contain its container
                finished[j] |= 1 << i
                matrix.merge_row(i, j)
                finished[i] |= matrix.row_mask(j)
            elif verdict is Containment.INTERSECTING:
                intersecting.add((min(i, j), max(i, j)))
                finished[j] |= 1 << i

    matrix.close_transitively()

    logger.debug(
        "Containment of %d rings: %s, %d intersecting pairs",
        n, matrix, len(intersecting),
    )
    return ContainmentResult(matrix=matrix, intersecting=intersecting)
