"""Closing of rings left open after joining.

Tiles cut relations at their borders, so rings crossing the tile edge are
usually open. They are closed with an artificial edge from the last point
back to the first when this cannot create a self-intersection.
"""

import logging

from mpresolver.core.geometry import segments_intersect
from mpresolver.domain import BoundingBox, DiagnosticKind, DiagnosticSink, Point, Ring

logger = logging.getLogger(__name__)


def outside_same_side(a: Point, b: Point, bbox: BoundingBox) -> bool:
    """Check if two points lie beyond the same side of a box.

    Points on the box edge count as beyond it.
    """
    return (
        (a.lon <= bbox.min_lon and b.lon <= bbox.min_lon)
        or (a.lon >= bbox.max_lon and b.lon >= bbox.max_lon)
        or (a.lat <= bbox.min_lat and b.lat <= bbox.min_lat)
        or (a.lat >= bbox.max_lat and b.lat >= bbox.max_lat)
    )


def can_close(ring: Ring, tile_bbox: BoundingBox) -> bool:
    """Check whether an open ring may be closed with an artificial edge.

    Rings whose endpoints both lie beyond the same tile side are always
    closable, as the closing edge runs outside the tile. Otherwise the
    closing edge must not touch any ring edge except the two adjacent to it.
    """
    if ring.distinct_point_count() < 3:
        return False

    first, last = ring.first, ring.last
    if outside_same_side(first, last, tile_bbox):
        return True

    inner = ring.points[1:-1]
    for a, b in zip(inner, inner[1:]):
        if segments_intersect(first, last, a, b):
            logger.debug("Closing line of %s intersects edge %s-%s", ring, a, b)
            return False
    return True


def close_rings(
    rings: list[Ring],
    tile_bbox: BoundingBox,
    sink: DiagnosticSink,
) -> list[Ring]:
    """Close open rings and freeze every ring that survives.

    Open rings that cannot be closed get an UnclosableRing diagnostic and
    closed rings with too few points a DegenerateRing diagnostic; both are
    removed.

    Args:
        rings: Rings produced by the joiner
        tile_bbox: Bounding box of the tile
        sink: Collector for closing diagnostics

    Returns:
        Closed, frozen rings in input order
    """
    closed: list[Ring] = []

    for ring in rings:
        if not ring.is_closed():
            if not can_close(ring, tile_bbox):
                sink.report(
                    DiagnosticKind.UNCLOSABLE_RING,
                    f"Cannot close ring {ring} from {ring.first} to {ring.last}",
                    ring_ids=(ring.id,),
                    way_refs=ring.diagnostic_refs,
                )
                continue
            ring.close_artificially()
            logger.info("Closed ring %s artificially", ring)

        if ring.is_degenerate():
            sink.report(
                DiagnosticKind.DEGENERATE_RING,
                f"Ring {ring} has fewer than three distinct points",
                ring_ids=(ring.id,),
                way_refs=ring.diagnostic_refs,
            )
            continue

        ring.freeze()
        closed.append(ring)

    return closed


def drop_rings_outside(rings: list[Ring], tile_bbox: BoundingBox) -> list[Ring]:
    """Remove rings with no point inside the tile that do not cover the tile."""
    kept: list[Ring] = []
    for ring in rings:
        if any(tile_bbox.contains(p) for p in ring.points):
            kept.append(ring)
        elif ring.bounding_box().contains_box(tile_bbox):
            kept.append(ring)
        else:
            logger.info("Dropping ring %s outside the tile", ring)
    return kept
