"""Resolution of one multipolygon relation into simple polygons.

This module chains the pipeline stages:

1. Join member ways into rings
2. Close open rings and drop rings that stay open
3. Compute the containment matrix
4. Resolve outer/inner roles
5. Cut holes out of every outer ring

The relation and its member ways are never modified. Tag changes for the
member ways are returned alongside the polygons.
"""

import logging
from dataclasses import dataclass, field

from mpresolver.config import GeometryConfig, ResolverConfig
from mpresolver.core.closer import close_rings, drop_rings_outside
from mpresolver.core.containment import build_containment_matrix
from mpresolver.core.cutter import HoleCutter
from mpresolver.core.joiner import join_segments
from mpresolver.core.roles import RoleAssignment, RoleResolution, resolve_roles
from mpresolver.domain import (
    BoundingBox,
    Diagnostic,
    DiagnosticKind,
    DiagnosticSink,
    Relation,
    Ring,
    Role,
    Way,
    make_synthetic_id,
)

logger = logging.getLogger(__name__)


@dataclass
class RelationResult:
    """Outcome of resolving one relation.

    Attributes:
        relation_id: Id of the resolved relation
        polygons: Hole-free output polygons by synthetic id
        member_tag_updates: New tag maps for consumed member ways
        rings: Closed rings the relation was assembled into
        assignments: Resolved role of each ring
        diagnostics: Anomalies found in the relation
    """

    relation_id: int
    polygons: dict[int, Way] = field(default_factory=dict)
    member_tag_updates: dict[int, dict[str, str]] = field(default_factory=dict)
    rings: list[Ring] = field(default_factory=list)
    assignments: list[RoleAssignment] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def polygon_count(self) -> int:
        return len(self.polygons)

    def diagnostics_of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]


class MultipolygonResolver:
    """Turns multipolygon relations into tagged, hole-free polygons.

    A resolver holds configuration only and may be shared between threads.

    Attributes:
        geometry: Geometry configuration
        config: Tag handling configuration
    """

    def __init__(
        self,
        geometry: GeometryConfig | None = None,
        config: ResolverConfig | None = None,
    ) -> None:
        self.geometry = geometry or GeometryConfig()
        self.config = config or ResolverConfig()

    def resolve(self, relation: Relation, tile_bbox: BoundingBox) -> RelationResult:
        """Resolve a relation within a tile.

        Malformed geometry never raises; it is reported in the result's
        diagnostics.

        Args:
            relation: Relation with member ways attached
            tile_bbox: Bounding box of the tile being rendered

        Returns:
            RelationResult with polygons, member tag updates and diagnostics
        """
        sink = DiagnosticSink(relation.to_diagnostic_ref())
        result = RelationResult(relation_id=relation.id)

        segments = self._collect_segments(relation, sink)
        rings = join_segments(segments, sink)
        rings = close_rings(rings, tile_bbox, sink)

        if not rings:
            sink.report(
                DiagnosticKind.EMPTY_MULTIPOLYGON,
                "Multipolygon has no closed rings",
            )
            result.diagnostics = sink.to_list()
            return result

        if self.config.drop_rings_outside_bbox:
            rings = drop_rings_outside(rings, tile_bbox)
            if not rings:
                logger.info("All rings of relation %d lie outside the tile", relation.id)
                result.diagnostics = sink.to_list()
                return result

        containment = build_containment_matrix(rings, tile_bbox, self.geometry)
        resolution = resolve_roles(rings, containment, tile_bbox, sink)

        self._emit_polygons(relation, rings, resolution, tile_bbox, result)

        result.rings = rings
        result.assignments = resolution.assignments
        result.diagnostics = sink.to_list()
        return result

    def _collect_segments(
        self,
        relation: Relation,
        sink: DiagnosticSink,
    ) -> list[tuple[Way, Role | None]]:
        segments: list[tuple[Way, Role | None]] = []
        for member in relation.members:
            if not member.is_way():
                sink.report(
                    DiagnosticKind.NON_WAY_MEMBER,
                    f"Non-way member {member.member_type} {member.ref} ignored",
                )
                continue
            if member.way is None:
                logger.debug("Member way %d of relation %d missing", member.ref, relation.id)
                continue
            if len(member.way.points) < 2:
                logger.debug("Member way %d of relation %d has fewer than 2 points",
                             member.ref, relation.id)
                continue
            segments.append((member.way, Role.parse(member.role)))
        return segments

    def _emit_polygons(
        self,
        relation: Relation,
        rings: list[Ring],
        resolution: RoleResolution,
        tile_bbox: BoundingBox,
        result: RelationResult,
    ) -> None:
        polygon_tags = self.config.polygon_tags
        relation_tags = {}
        if self.config.use_relation_tags and relation.has_any_tag(polygon_tags):
            relation_tags = {k: v for k, v in relation.tags.items() if k != "type"}

        cutter = HoleCutter(tile_bbox, self.geometry)

        for index in resolution.order:
            assignment = resolution.assignments[index]
            ring = rings[index]
            if not assignment.is_outer and not _has_polygon_tag(ring, polygon_tags):
                continue

            tags = dict(ring.tags)
            if assignment.is_outer:
                tags.update(relation_tags)

            holes = [rings[h] for h in assignment.holes]
            for points in cutter.cut(ring, holes):
                polygon = Way(id=make_synthetic_id(), points=points, tags=dict(tags))
                result.polygons[polygon.id] = polygon

            if self.config.strip_member_tags:
                self._strip_member_tags(ring, polygon_tags, result)

        logger.debug(
            "Relation %d resolved into %d polygons",
            relation.id, len(result.polygons),
        )

    @staticmethod
    def _strip_member_tags(
        ring: Ring,
        polygon_tags: list[str],
        result: RelationResult,
    ) -> None:
        for segment in ring.segments:
            current = result.member_tag_updates.get(segment.id, segment.tags)
            remaining = {k: v for k, v in current.items() if k not in polygon_tags}
            if remaining != current:
                result.member_tag_updates[segment.id] = remaining


def _has_polygon_tag(ring: Ring, polygon_tags: list[str]) -> bool:
    return any(key in ring.tags for key in polygon_tags)
