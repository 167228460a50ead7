"""Tests for the multipolygon resolver pipeline."""

import pytest

from mpresolver.config import ResolverConfig
from mpresolver.core.geometry import signed_area
from mpresolver.core.resolver import MultipolygonResolver, RelationResult
from mpresolver.core.roles import RingStatus
from mpresolver.domain import (
    BoundingBox,
    DiagnosticKind,
    Member,
    Point,
    Relation,
    Way,
    is_synthetic_id,
)

TILE = BoundingBox(-1000, -1000, 1000, 1000)


def square_way(way_id: int, min_lat: int, min_lon: int, max_lat: int, max_lon: int,
               **tags: str) -> Way:
    """Create a closed square way."""
    return Way(way_id, [
        Point(min_lat, min_lon),
        Point(min_lat, max_lon),
        Point(max_lat, max_lon),
        Point(max_lat, min_lon),
        Point(min_lat, min_lon),
    ], dict(tags))


def multipolygon(relation_id: int, *members: tuple[str, Way], **tags: str) -> Relation:
    """Create a multipolygon relation from (role, way) pairs."""
    return Relation(
        relation_id,
        members=[Member("way", w.id, role, w) for role, w in members],
        tags={"type": "multipolygon", **tags},
    )


@pytest.fixture
def resolver() -> MultipolygonResolver:
    return MultipolygonResolver()


class TestMultipolygonResolver:
    """Tests for MultipolygonResolver class."""

    def test_single_outer(self, resolver: MultipolygonResolver):
        """Test an outer without holes is passed through."""
        outer = square_way(1, 0, 0, 10, 10, natural="wood")
        relation = multipolygon(100, ("outer", outer))

        result = resolver.resolve(relation, TILE)

        assert isinstance(result, RelationResult)
        assert result.relation_id == 100
        assert result.polygon_count == 1
        (polygon_id, polygon), = result.polygons.items()
        assert is_synthetic_id(polygon_id)
        assert polygon.id == polygon_id
        assert polygon.points == outer.points
        assert polygon.tags == {"natural": "wood"}
        assert result.diagnostics == []

    def test_outer_with_hole(self, resolver: MultipolygonResolver):
        """Test the hole is cut out and member tags are stripped."""
        outer = square_way(1, 0, 0, 10, 10, natural="wood", name="Forest")
        hole = square_way(2, 3, 3, 7, 7)
        relation = multipolygon(100, ("outer", outer), ("inner", hole))

        result = resolver.resolve(relation, TILE)

        polygons = list(result.polygons.values())
        assert len(polygons) == 2
        assert sum(abs(signed_area(p.points)) for p in polygons) == 84
        assert all(p.tags == {"natural": "wood", "name": "Forest"} for p in polygons)
        assert result.member_tag_updates == {1: {"name": "Forest"}}

    def test_relation_tags_applied_to_outers(self, resolver: MultipolygonResolver):
        """Test relation polygon tags override ring tags on outers."""
        outer = square_way(1, 0, 0, 10, 10, natural="scrub", source="survey")
        relation = multipolygon(100, ("outer", outer), natural="water", name="Lake")

        result = resolver.resolve(relation, TILE)

        polygon, = result.polygons.values()
        assert polygon.tags == {"natural": "water", "name": "Lake", "source": "survey"}

    def test_relation_tags_disabled(self):
        """Test relation tags are ignored when configured."""
        resolver = MultipolygonResolver(config=ResolverConfig(use_relation_tags=False))
        outer = square_way(1, 0, 0, 10, 10, natural="scrub")
        relation = multipolygon(100, ("outer", outer), natural="water")

        polygon, = resolver.resolve(relation, TILE).polygons.values()

        assert polygon.tags == {"natural": "scrub"}

    def test_strip_member_tags_disabled(self):
        """Test member tags are kept when configured."""
        resolver = MultipolygonResolver(config=ResolverConfig(strip_member_tags=False))
        relation = multipolygon(100, ("outer", square_way(1, 0, 0, 10, 10, natural="wood")))

        assert resolver.resolve(relation, TILE).member_tag_updates == {}

    def test_tagged_inner_emitted(self, resolver: MultipolygonResolver):
        """Test inner rings with their own polygon tags become polygons."""
        outer = square_way(1, 0, 0, 100, 100, landuse="forest")
        lake = square_way(2, 20, 20, 40, 40, natural="water")
        relation = multipolygon(100, ("outer", outer), ("inner", lake))

        result = resolver.resolve(relation, TILE)

        tags = sorted(p.tags.get("natural", p.tags.get("landuse")) for p in result.polygons.values())
        assert "water" in tags
        assert "forest" in tags
        lake_polygons = [p for p in result.polygons.values() if p.tags == {"natural": "water"}]
        assert len(lake_polygons) == 1
        assert lake_polygons[0].points == lake.points
        assert result.member_tag_updates[2] == {}

    def test_joined_outer_from_open_ways(self, resolver: MultipolygonResolver):
        """Test member ways are joined before resolution."""
        first = Way(1, [Point(0, 0), Point(0, 10), Point(10, 10)], {"natural": "wood"})
        second = Way(2, [Point(10, 10), Point(10, 0), Point(0, 0)])
        relation = multipolygon(100, ("outer", first), ("outer", second))

        result = resolver.resolve(relation, TILE)

        polygon, = result.polygons.values()
        assert polygon.points[0] == polygon.points[-1]
        assert abs(signed_area(polygon.points)) == 100
        assert result.member_tag_updates == {1: {}}

    def test_non_way_member(self, resolver: MultipolygonResolver):
        """Test non-way members are reported and skipped."""
        relation = multipolygon(100, ("outer", square_way(1, 0, 0, 10, 10)))
        relation.members.append(Member("node", 5, "label"))

        result = resolver.resolve(relation, TILE)

        assert result.polygon_count == 1
        assert len(result.diagnostics_of_kind(DiagnosticKind.NON_WAY_MEMBER)) == 1

    def test_missing_member_way_skipped(self, resolver: MultipolygonResolver):
        """Test members without way data are ignored."""
        relation = multipolygon(100, ("outer", square_way(1, 0, 0, 10, 10)))
        relation.members.append(Member("way", 99, "outer"))

        result = resolver.resolve(relation, TILE)

        assert result.polygon_count == 1
        assert result.diagnostics == []

    def test_empty_multipolygon(self, resolver: MultipolygonResolver):
        """Test a relation without closable rings."""
        relation = multipolygon(100)

        result = resolver.resolve(relation, TILE)

        assert result.polygons == {}
        assert len(result.diagnostics_of_kind(DiagnosticKind.EMPTY_MULTIPOLYGON)) == 1

    def test_rings_outside_tile(self, resolver: MultipolygonResolver):
        """Test relations entirely outside the tile produce nothing."""
        relation = multipolygon(100, ("outer", square_way(1, 5000, 5000, 5010, 5010)))

        result = resolver.resolve(relation, TILE)

        assert result.polygons == {}
        assert result.diagnostics == []

    def test_assignments_reported(self, resolver: MultipolygonResolver):
        """Test the result exposes rings and their roles."""
        relation = multipolygon(
            100,
            ("outer", square_way(1, 0, 0, 10, 10)),
            ("inner", square_way(2, 3, 3, 7, 7)),
        )

        result = resolver.resolve(relation, TILE)

        assert len(result.rings) == 2
        assert [a.is_outer for a in result.assignments] == [True, False]
        assert all(a.status is RingStatus.NORMAL for a in result.assignments)

    def test_input_not_modified(self, resolver: MultipolygonResolver):
        """Test the relation and its ways are left untouched."""
        outer = square_way(1, 0, 0, 10, 10, natural="wood")
        hole = square_way(2, 3, 3, 7, 7)
        relation = multipolygon(100, ("outer", outer), ("inner", hole), natural="wood")
        outer_points = list(outer.points)

        resolver.resolve(relation, TILE)

        assert outer.points == outer_points
        assert outer.tags == {"natural": "wood"}
        assert relation.tags == {"type": "multipolygon", "natural": "wood"}
