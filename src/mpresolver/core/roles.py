"""Outer/inner role resolution from ring containment.

Declared member roles are often missing or wrong. The structural role of a
ring follows from the containment hierarchy instead: top-level rings are
outers, rings directly inside an outer are its holes, rings directly inside
a hole are islands (outers again), and so on. Disagreements between
declared and structural roles are reported as diagnostics.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum

from mpresolver.core.containment import ContainmentResult
from mpresolver.domain import BoundingBox, DiagnosticKind, DiagnosticSink, Ring, Role

logger = logging.getLogger(__name__)


class RingStatus(Enum):
    """How a ring ended up in the hierarchy."""

    NORMAL = "normal"
    NESTED_OUTER = "nested_outer"
    NESTED_INNER = "nested_inner"
    ORPHAN_INNER = "orphan_inner"
    UNRESOLVED = "unresolved"


@dataclass
class RoleAssignment:
    """Resolved role of one ring.

    Attributes:
        index: Index of the ring in the relation's ring list
        is_outer: Structural role (True for outer, False for hole)
        status: How the role was reached
        parent: Index of the directly enclosing ring (None for top level)
        holes: Indices of the rings directly inside this one
    """

    index: int
    is_outer: bool
    status: RingStatus = RingStatus.UNRESOLVED
    parent: int | None = None
    holes: list[int] = field(default_factory=list)

    @property
    def is_resolved(self) -> bool:
        return self.status in (RingStatus.NORMAL, RingStatus.NESTED_INNER)


@dataclass
class RoleResolution:
    """Roles of all rings of a relation.

    Attributes:
        assignments: One assignment per ring, by ring index
        order: Indices of resolved rings in traversal order, outermost first
    """

    assignments: list[RoleAssignment]
    order: list[int] = field(default_factory=list)

    def of_status(self, status: RingStatus) -> list[int]:
        return [a.index for a in self.assignments if a.status is status]


def resolve_roles(
    rings: list[Ring],
    containment: ContainmentResult,
    tile_bbox: BoundingBox,
    sink: DiagnosticSink,
) -> RoleResolution:
    """Derive the outer/inner hierarchy of a relation's rings.

    Rings taking part in a crossing are left unresolved. Top-level rings
    tagged inner are orphans. The rest is traversed breadth first from the
    top-level rings; every ring reached is either an outer or a hole of its
    parent. Outer-tagged rings directly inside an outer are nested outers:
    they are dropped and what they contain is reconsidered as holes of the
    enclosing outer. Inner-tagged rings directly inside a hole become
    islands.

    Args:
        rings: Closed rings of the relation
        containment: Containment matrix and crossing pairs of the rings
        tile_bbox: Bounding box of the tile
        sink: Collector for role diagnostics

    Returns:
        RoleResolution with one assignment per ring
    """
    matrix = containment.matrix
    assignments = [
        RoleAssignment(index=i, is_outer=ring.role is not Role.INNER)
        for i, ring in enumerate(rings)
    ]
    resolution = RoleResolution(assignments=assignments)

    tagged_inner = {i for i, ring in enumerate(rings) if ring.role is Role.INNER}
    tagged_outer = {i for i, ring in enumerate(rings) if ring.role is Role.OUTER}

    intersecting = containment.intersecting_rings()
    _report_intersections(rings, containment, tile_bbox, sink)

    unfinished = set(range(len(rings))) - intersecting

    if not unfinished - tagged_inner:
        sink.report(
            DiagnosticKind.NO_OUTER_ROLE,
            "No ring qualifies as outer",
            ring_ids=[rings[i].id for i in sorted(unfinished)],
        )
        for i in sorted(unfinished):
            assignments[i].status = RingStatus.ORPHAN_INNER
        _report_unresolved(rings, resolution, intersecting, unfinished, containment, sink)
        return resolution

    orphans: set[int] = set()
    while True:
        outmost = matrix.find_outmost(unfinished)
        wrong = outmost & tagged_inner
        if not wrong:
            break
        orphans |= wrong
        unfinished -= wrong

    for i in sorted(orphans):
        assignments[i].status = RingStatus.ORPHAN_INNER
        sink.report(
            DiagnosticKind.ORPHAN_INNER,
            f"Inner ring {rings[i]} is not contained in any outer ring",
            ring_ids=(rings[i].id,),
            way_refs=rings[i].diagnostic_refs,
        )

    if not outmost:
        sink.report(
            DiagnosticKind.NO_OUTER_ROLE,
            "No top-level ring remains after removing orphan inner rings",
            ring_ids=[rings[i].id for i in sorted(unfinished)],
        )

    queue = deque(sorted(outmost))
    queued = set(outmost)
    for i in outmost:
        assignments[i].is_outer = True

    while queue:
        current = queue.popleft()
        unfinished.discard(current)
        assignment = assignments[current]
        if assignment.status is RingStatus.UNRESOLVED:
            assignment.status = RingStatus.NORMAL
        resolution.order.append(current)

        contained = matrix.row(current) & (unfinished - queued)
        while True:
            holes = matrix.find_outmost(contained)
            nested = holes & tagged_outer if assignment.is_outer else set()
            if not nested:
                break
            for k in sorted(nested):
                assignments[k].status = RingStatus.NESTED_OUTER
                assignments[k].parent = current
                sink.report(
                    DiagnosticKind.NESTED_OUTER,
                    f"Outer ring {rings[k]} lies inside outer ring {rings[current]}",
                    ring_ids=(rings[current].id, rings[k].id),
                    way_refs=rings[k].diagnostic_refs,
                )
            unfinished -= nested
            contained -= nested

        for h in sorted(holes):
            hole = assignments[h]
            hole.parent = current
            hole.is_outer = not assignment.is_outer
            if hole.is_outer and h in tagged_inner:
                hole.status = RingStatus.NESTED_INNER
                sink.report(
                    DiagnosticKind.NESTED_INNER,
                    f"Inner ring {rings[h]} lies inside inner ring {rings[current]}; "
                    "treating it as an island",
                    ring_ids=(rings[current].id, rings[h].id),
                    way_refs=rings[h].diagnostic_refs,
                )
            queue.append(h)
            queued.add(h)
        assignment.holes = sorted(holes)

    _report_unresolved(rings, resolution, intersecting, unfinished, containment, sink)

    logger.debug(
        "Resolved %d rings: %d outer, %d inner, %d unresolved",
        len(rings),
        sum(1 for i in resolution.order if assignments[i].is_outer),
        sum(1 for i in resolution.order if not assignments[i].is_outer),
        len(resolution.of_status(RingStatus.UNRESOLVED)),
    )
    return resolution


def _report_intersections(
    rings: list[Ring],
    containment: ContainmentResult,
    tile_bbox: BoundingBox,
    sink: DiagnosticSink,
) -> None:
    for i, j in sorted(containment.intersecting):
        message = f"Rings {rings[i]} and {rings[j]} intersect"
        if any(not tile_bbox.contains(p) for p in rings[i].points + rings[j].points):
            message += " (likely an artifact of the tile boundary)"
        sink.report(
            DiagnosticKind.INTERSECTING_POLYGONS,
            message,
            ring_ids=(rings[i].id, rings[j].id),
            way_refs=rings[i].diagnostic_refs + rings[j].diagnostic_refs,
        )


def _report_unresolved(
    rings: list[Ring],
    resolution: RoleResolution,
    intersecting: set[int],
    unfinished: set[int],
    containment: ContainmentResult,
    sink: DiagnosticSink,
) -> None:
    """Report rings the traversal never reached, with their likely cause."""
    for i in sorted(intersecting):
        partners = sorted(
            rings[b if a == i else a].id
            for a, b in containment.intersecting
            if i in (a, b)
        )
        sink.report(
            DiagnosticKind.UNRESOLVED,
            f"Ring {rings[i]} intersects ring(s) {partners}",
            ring_ids=(rings[i].id,),
            way_refs=rings[i].diagnostic_refs,
        )

    for i in sorted(unfinished):
        if resolution.assignments[i].status is not RingStatus.UNRESOLVED:
            continue
        inside = containment.matrix.row(i) & unfinished
        if inside:
            cause = (
                "roles possibly interchanged with "
                + ", ".join(str(rings[k]) for k in sorted(inside))
            )
        else:
            cause = "no qualifying outer ring"
        sink.report(
            DiagnosticKind.UNRESOLVED,
            f"Ring {rings[i]} could not be resolved: {cause}",
            ring_ids=(rings[i].id,),
            way_refs=rings[i].diagnostic_refs,
        )
