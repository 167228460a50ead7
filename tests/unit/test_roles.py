"""Tests for outer/inner role resolution."""

import pytest

from mpresolver.core.containment import build_containment_matrix
from mpresolver.core.roles import RingStatus, RoleResolution, resolve_roles
from mpresolver.domain import BoundingBox, DiagnosticKind, DiagnosticSink, Point, Ring, Role

TILE = BoundingBox(-1000, -1000, 1000, 1000)


def ring(role: Role | None, *coords: tuple[int, int]) -> Ring:
    """Create a closed ring from (lat, lon) pairs."""
    points = [Point(lat, lon) for lat, lon in coords]
    return Ring(points=points + [points[0]], role=role)


def square(role: Role | None, min_lat: int, min_lon: int, max_lat: int, max_lon: int) -> Ring:
    return ring(role, (min_lat, min_lon), (min_lat, max_lon), (max_lat, max_lon), (max_lat, min_lon))


@pytest.fixture
def sink() -> DiagnosticSink:
    return DiagnosticSink("https://www.openstreetmap.org/relation/1")


def resolve(rings: list[Ring], sink: DiagnosticSink) -> RoleResolution:
    """Run containment and role resolution on rings."""
    containment = build_containment_matrix(rings, TILE)
    return resolve_roles(rings, containment, TILE, sink)


class TestResolveRoles:
    """Tests for resolve_roles function."""

    def test_outer_with_hole(self, sink: DiagnosticSink):
        """Test the simplest multipolygon."""
        rings = [square(Role.OUTER, 0, 0, 100, 100), square(Role.INNER, 10, 10, 50, 50)]

        resolution = resolve(rings, sink)

        outer, hole = resolution.assignments
        assert outer.is_outer and outer.status is RingStatus.NORMAL
        assert outer.holes == [1]
        assert not hole.is_outer and hole.status is RingStatus.NORMAL
        assert hole.parent == 0
        assert resolution.order == [0, 1]
        assert len(sink) == 0

    def test_island_in_hole(self, sink: DiagnosticSink):
        """Test roles alternate with depth."""
        rings = [
            square(Role.INNER, 10, 10, 90, 90),
            square(Role.OUTER, 20, 20, 80, 80),
            square(Role.OUTER, 0, 0, 100, 100),
        ]

        resolution = resolve(rings, sink)

        assert resolution.order == [2, 0, 1]
        assert resolution.assignments[0].parent == 2
        assert not resolution.assignments[0].is_outer
        assert resolution.assignments[1].parent == 0
        assert resolution.assignments[1].is_outer
        assert len(sink) == 0

    def test_undeclared_roles_follow_depth(self, sink: DiagnosticSink):
        """Test rings without roles get their role from nesting."""
        rings = [
            square(None, 0, 0, 100, 100),
            square(None, 10, 10, 90, 90),
            square(None, 20, 20, 80, 80),
            square(None, 200, 200, 300, 300),
        ]

        resolution = resolve(rings, sink)

        assert [a.is_outer for a in resolution.assignments] == [True, False, True, True]
        assert all(a.status is RingStatus.NORMAL for a in resolution.assignments)
        assert len(sink) == 0

    def test_orphan_inner(self, sink: DiagnosticSink):
        """Test an inner ring outside every outer."""
        rings = [square(Role.OUTER, 0, 0, 10, 10), square(Role.INNER, 20, 20, 30, 30)]

        resolution = resolve(rings, sink)

        assert resolution.assignments[1].status is RingStatus.ORPHAN_INNER
        assert resolution.order == [0]
        orphans = sink.of_kind(DiagnosticKind.ORPHAN_INNER)
        assert len(orphans) == 1
        assert orphans[0].ring_ids == (rings[1].id,)

    def test_ring_inside_orphan_becomes_top_level(self, sink: DiagnosticSink):
        """Test removing an orphan exposes the rings it contained."""
        rings = [square(Role.INNER, 0, 0, 100, 100), square(Role.OUTER, 10, 10, 50, 50)]

        resolution = resolve(rings, sink)

        assert resolution.assignments[0].status is RingStatus.ORPHAN_INNER
        assert resolution.assignments[1].is_outer
        assert resolution.assignments[1].parent is None
        assert resolution.order == [1]

    def test_no_outer_role(self, sink: DiagnosticSink):
        """Test a relation with inner rings only."""
        rings = [square(Role.INNER, 0, 0, 10, 10), square(Role.INNER, 20, 20, 30, 30)]

        resolution = resolve(rings, sink)

        assert resolution.order == []
        assert len(sink.of_kind(DiagnosticKind.NO_OUTER_ROLE)) == 1
        assert resolution.of_status(RingStatus.ORPHAN_INNER) == [0, 1]

    def test_nested_outer_dropped(self, sink: DiagnosticSink):
        """Test an outer inside an outer is excluded and its content re-parented."""
        rings = [
            square(Role.OUTER, 0, 0, 100, 100),
            square(Role.OUTER, 10, 10, 80, 80),
            square(None, 20, 20, 30, 30),
        ]

        resolution = resolve(rings, sink)

        assert resolution.assignments[1].status is RingStatus.NESTED_OUTER
        assert not resolution.assignments[1].is_resolved
        assert resolution.assignments[0].holes == [2]
        assert resolution.assignments[2].parent == 0
        assert not resolution.assignments[2].is_outer
        assert resolution.order == [0, 2]
        nested = sink.of_kind(DiagnosticKind.NESTED_OUTER)
        assert len(nested) == 1
        assert nested[0].ring_ids == (rings[0].id, rings[1].id)

    def test_nested_inner_becomes_island(self, sink: DiagnosticSink):
        """Test an inner inside an inner is treated as an island."""
        rings = [
            square(Role.OUTER, 0, 0, 100, 100),
            square(Role.INNER, 10, 10, 80, 80),
            square(Role.INNER, 20, 20, 30, 30),
        ]

        resolution = resolve(rings, sink)

        island = resolution.assignments[2]
        assert island.status is RingStatus.NESTED_INNER
        assert island.is_outer
        assert island.is_resolved
        assert island.parent == 1
        assert resolution.order == [0, 1, 2]
        assert len(sink.of_kind(DiagnosticKind.NESTED_INNER)) == 1

    def test_intersecting_rings_unresolved(self, sink: DiagnosticSink):
        """Test crossing rings are left out of the hierarchy."""
        u_shape = ring(
            Role.OUTER,
            (0, 0), (0, 30), (30, 30), (30, 20), (10, 20), (10, 10), (30, 10), (30, 0),
        )
        bar = square(Role.INNER, 20, 5, 25, 25)
        separate = square(Role.OUTER, 100, 100, 200, 200)

        resolution = resolve([u_shape, bar, separate], sink)

        assert resolution.of_status(RingStatus.UNRESOLVED) == [0, 1]
        assert resolution.order == [2]
        assert len(sink.of_kind(DiagnosticKind.INTERSECTING_POLYGONS)) == 1
        unresolved = sink.of_kind(DiagnosticKind.UNRESOLVED)
        assert [d.ring_ids for d in unresolved] == [(u_shape.id,), (bar.id,)]

    def test_intersection_near_tile_edge_noted(self):
        """Test the tile boundary hint in the intersection message."""
        sink = DiagnosticSink("r")
        u_shape = ring(
            Role.OUTER,
            (0, 0), (0, 30), (30, 30), (30, 20), (10, 20), (10, 10), (30, 10), (30, 0),
        )
        bar = square(Role.INNER, 20, 5, 25, 25)
        rings = [u_shape, bar]
        containment = build_containment_matrix(rings, TILE)
        small_tile = BoundingBox(0, 0, 28, 28)

        resolve_roles(rings, containment, small_tile, sink)

        message = sink.of_kind(DiagnosticKind.INTERSECTING_POLYGONS)[0].message
        assert "tile boundary" in message
