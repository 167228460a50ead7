"""Hole cutting: turning an outer ring with holes into hole-free polygons.

Renderers without a winding rule cannot draw holes, so every outer ring
with holes is split into pieces whose boundaries run through the holes.
Polygon clipping (subtract, intersect with a rectangle, decompose into
simple pieces) is delegated to shapely; this module only drives it.

The driver works on a queue of work items, each an outer area with the
holes still to cut. For each item it picks a cut line crossing as many
holes as possible, subtracts those holes and splits what remains along the
cut line. Every split strictly reduces the work left, so the queue drains.
"""

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum

from shapely.geometry import Polygon, box
from shapely.geometry.base import BaseGeometry
from shapely.validation import make_valid

from mpresolver.config import GeometryConfig
from mpresolver.domain import BoundingBox, Point, Ring

logger = logging.getLogger(__name__)


class CoordinateAxis(Enum):
    """Axis a cut line is placed on."""

    LATITUDE = "latitude"
    LONGITUDE = "longitude"

    def start(self, geom: BaseGeometry) -> float:
        min_x, min_y, _, _ = geom.bounds
        return min_x if self is CoordinateAxis.LONGITUDE else min_y

    def stop(self, geom: BaseGeometry) -> float:
        _, _, max_x, max_y = geom.bounds
        return max_x if self is CoordinateAxis.LONGITUDE else max_y

    @property
    def other(self) -> "CoordinateAxis":
        if self is CoordinateAxis.LONGITUDE:
            return CoordinateAxis.LATITUDE
        return CoordinateAxis.LONGITUDE


@dataclass
class CutPoint:
    """A window of holes that a single cut line crosses.

    The window is the intersection of the holes' extents along the axis.
    Adding a hole drops holes that end before the new hole starts, so holes
    must be added in order of their start coordinate.

    Attributes:
        axis: Axis the cut line is placed on
        holes: Holes crossed by the cut line
        start_point: Start of the common extent
        stop_point: End of the common extent
    """

    axis: CoordinateAxis
    holes: list[Polygon] = field(default_factory=list)
    start_point: float = float("-inf")
    stop_point: float = float("inf")

    def add_hole(self, hole: Polygon) -> None:
        start = self.axis.start(hole)
        self.holes = [h for h in self.holes if self.axis.stop(h) >= start]
        self.holes.append(hole)
        self.start_point = max(self.axis.start(h) for h in self.holes)
        self.stop_point = min(self.axis.stop(h) for h in self.holes)

    def copy(self) -> "CutPoint":
        return CutPoint(self.axis, list(self.holes), self.start_point, self.stop_point)

    @property
    def extent(self) -> float:
        return self.stop_point - self.start_point

    @property
    def cut_coordinate(self) -> int:
        """Map unit in the middle of the window.

        The cut line lies on a map unit so the vertices it creates survive
        rounding in to_points() unchanged.
        """
        start = math.ceil(self.start_point)
        stop = math.floor(self.stop_point)
        if stop < start:
            return round(self.start_point + self.extent / 2)
        return start + (stop - start) // 2

    def rank(self) -> tuple[int, float]:
        """More holes rank higher, then a wider window."""
        return (len(self.holes), self.extent)

    def split_boxes(self, bounds: tuple[float, float, float, float]) -> tuple[Polygon, Polygon]:
        """Split a bounding rectangle into two rectangles at the cut line."""
        min_x, min_y, max_x, max_y = bounds
        cut = self.cut_coordinate
        if self.axis is CoordinateAxis.LONGITUDE:
            return box(min_x, min_y, cut, max_y), box(cut, min_y, max_x, max_y)
        return box(min_x, min_y, max_x, cut), box(min_x, cut, max_x, max_y)


@dataclass
class CutWorkItem:
    """An outer area together with the holes still to be cut out of it."""

    outer: Polygon
    holes: list[Polygon] = field(default_factory=list)


def polygons_of(geom: BaseGeometry) -> list[Polygon]:
    """Decompose a geometry into its non-empty polygons.

    Lines and points produced by clipping are discarded.
    """
    if geom.is_empty:
        return []
    if geom.geom_type == "Polygon":
        return [geom]
    if geom.geom_type in ("MultiPolygon", "GeometryCollection"):
        result: list[Polygon] = []
        for part in geom.geoms:
            result.extend(polygons_of(part))
        return result
    return []


def is_singular(geom: BaseGeometry) -> bool:
    """Check if a geometry is a single simple polygon without holes."""
    return (
        geom.geom_type == "Polygon"
        and not geom.is_empty
        and not geom.interiors
        and geom.is_valid
    )


def ring_to_polygons(ring: Ring) -> list[Polygon]:
    """Convert a ring to valid polygons.

    Self-intersecting rings are repaired by splitting them into valid
    pieces.
    """
    poly = Polygon([p.to_xy() for p in ring.points])
    if poly.is_valid:
        return [poly] if not poly.is_empty else []
    return polygons_of(make_valid(poly))


def preferred_axis(geom: BaseGeometry) -> CoordinateAxis:
    """Cut wide shapes along longitude and tall shapes along latitude."""
    min_x, min_y, max_x, max_y = geom.bounds
    if max_x - min_x > max_y - min_y:
        return CoordinateAxis.LONGITUDE
    return CoordinateAxis.LATITUDE


def next_cut_point(item: CutWorkItem) -> CutPoint:
    """Choose the cut line for a work item.

    With a single hole the cut runs through its middle across the outer
    area's longer side. Otherwise both axes are tried and the window
    crossing the most holes wins, then the widest; on a tie the axis that
    suits the outer area's shape is used.
    """
    axis = preferred_axis(item.outer)
    if len(item.holes) == 1:
        cut_point = CutPoint(axis)
        cut_point.add_hole(item.holes[0])
        return cut_point

    best = _best_window(item.holes, axis)
    other = _best_window(item.holes, axis.other)
    if other.rank() > best.rank():
        return other
    return best


def _best_window(holes: list[Polygon], axis: CoordinateAxis) -> CutPoint:
    ordered = sorted(holes, key=lambda h: (axis.start(h), axis.stop(h)))
    current = CutPoint(axis)
    current.add_hole(ordered[0])
    best = current.copy()
    for hole in ordered[1:]:
        current.add_hole(hole)
        if current.rank() > best.rank():
            best = current.copy()
    return best


def to_points(poly: Polygon) -> list[Point] | None:
    """Round a polygon's exterior back to map unit points.

    Returns:
        Closed point list, or None if rounding collapsed the polygon
    """
    points: list[Point] = []
    for x, y in poly.exterior.coords:
        point = Point(lat=round(y), lon=round(x))
        if not points or points[-1] != point:
            points.append(point)
    if points and points[0] != points[-1]:
        points.append(points[0])
    if len(points) < 4 or len(set(points)) < 3:
        return None
    return points


class HoleCutter:
    """Cuts the holes out of outer rings.

    Attributes:
        tile_bbox: Bounding box of the tile; outer areas are clipped to it
        config: Geometry configuration
    """

    def __init__(self, tile_bbox: BoundingBox, config: GeometryConfig | None = None) -> None:
        self.tile_bbox = tile_bbox
        self.config = config or GeometryConfig()
        self._tile_area = box(*tile_bbox.to_xy_bounds())

    def cut(self, outer: Ring, holes: list[Ring]) -> list[list[Point]]:
        """Produce hole-free polygons covering outer minus its holes.

        Without holes the outer ring is returned unchanged.

        Args:
            outer: Outer ring
            holes: Rings directly inside the outer ring

        Returns:
            Closed point lists of the resulting polygons
        """
        if not holes:
            return [list(outer.points)]

        hole_areas: list[Polygon] = []
        for hole in holes:
            hole_areas.extend(ring_to_polygons(hole))

        outer_areas: list[Polygon] = []
        for area in ring_to_polygons(outer):
            if self._tile_area.contains(area):
                outer_areas.append(area)
            else:
                outer_areas.extend(polygons_of(area.intersection(self._tile_area)))

        queue: deque[CutWorkItem] = deque()
        finished: list[Polygon] = []
        for area in outer_areas:
            area_holes = (
                hole_areas
                if len(outer_areas) == 1
                else [h for h in hole_areas if area.intersects(box(*h.bounds))]
            )
            self._schedule(area, area_holes, queue, finished)

        self._drain(queue, finished, outer)

        result: list[list[Point]] = []
        for poly in finished:
            points = to_points(poly)
            if points is None:
                logger.debug("Dropping piece of %s collapsed by rounding", outer)
                continue
            result.append(points)
        return result

    def _drain(self, queue: deque[CutWorkItem], finished: list[Polygon], outer: Ring) -> None:
        iterations = 0
        while queue:
            iterations += 1
            if iterations > self.config.max_cut_iterations:
                logger.warning(
                    "Hole cutting of %s stopped after %d iterations; %d areas left uncut",
                    outer, self.config.max_cut_iterations, len(queue),
                )
                for item in queue:
                    finished.extend(polygons_of(self._subtract(item.outer, item.holes)))
                queue.clear()
                break

            item = queue.popleft()
            cut_point = next_cut_point(item)
            area = self._subtract(item.outer, cut_point.holes)
            if area.is_empty:
                continue

            window = {id(h) for h in cut_point.holes}
            remaining = [h for h in item.holes if id(h) not in window]

            if is_singular(area):
                if remaining:
                    queue.append(CutWorkItem(area, remaining))
                else:
                    finished.append(area)
                continue

            for split_box in cut_point.split_boxes(area.bounds):
                for piece in polygons_of(area.intersection(split_box)):
                    piece_holes = [h for h in remaining if piece.intersects(box(*h.bounds))]
                    self._schedule(piece, piece_holes, queue, finished)

    @staticmethod
    def _subtract(area: BaseGeometry, holes: list[Polygon]) -> BaseGeometry:
        for hole in holes:
            area = area.difference(hole)
        return area

    @staticmethod
    def _schedule(
        area: Polygon,
        holes: list[Polygon],
        queue: deque[CutWorkItem],
        finished: list[Polygon],
    ) -> None:
        """Queue an area with its holes, or finish it if nothing is left to cut.

        Interior rings of the area itself become holes to cut.
        """
        if area.interiors:
            holes = holes + [Polygon(interior) for interior in area.interiors]
            area = Polygon(area.exterior)
        if holes:
            queue.append(CutWorkItem(area, holes))
        else:
            finished.append(area)

