"""Tests for parallel processing orchestration."""

from unittest.mock import MagicMock, Mock, patch

import pytest

from mpresolver.config import ResolverSettings
from mpresolver.core.processor import TileProcessor, TileResult, resolve_relation
from mpresolver.core.resolver import MultipolygonResolver
from mpresolver.domain import BoundingBox, Member, Point, Relation, Way, is_synthetic_id
from mpresolver.exceptions import InvalidBoundingBoxError, RelationNotFoundError
from mpresolver.io import OsmData

TILE = BoundingBox(-1000, -1000, 1000, 1000)


def square_way(way_id: int, min_lat: int, min_lon: int, max_lat: int, max_lon: int,
               **tags: str) -> Way:
    return Way(way_id, [
        Point(min_lat, min_lon),
        Point(min_lat, max_lon),
        Point(max_lat, max_lon),
        Point(max_lat, min_lon),
        Point(min_lat, min_lon),
    ], dict(tags))


@pytest.fixture
def sample_data() -> OsmData:
    """Create a tile with one multipolygon and one route relation."""
    outer = square_way(1, 0, 0, 10, 10, natural="wood", name="Forest")
    hole = square_way(2, 3, 3, 7, 7)
    track = Way(3, [Point(0, 0), Point(5, 5)], {"highway": "track"})
    forest = Relation(
        100,
        members=[Member("way", 1, "outer", outer), Member("way", 2, "inner", hole)],
        tags={"type": "multipolygon"},
    )
    route = Relation(101, members=[Member("way", 3, None, track)], tags={"type": "route"})
    return OsmData(
        ways={1: outer, 2: hole, 3: track},
        relations={100: forest, 101: route},
        bounds=TILE,
    )


@pytest.fixture
def settings() -> ResolverSettings:
    """Create test settings."""
    return ResolverSettings()


class TestResolveRelation:
    """Tests for resolve_relation function."""

    def test_resolve_relation_success(self, sample_data: OsmData):
        """Test resolving a relation returns its result."""
        outcome = resolve_relation(sample_data.relations[100], TILE, MultipolygonResolver())

        assert "error" not in outcome
        assert outcome["result"].relation_id == 100
        assert outcome["result"].polygon_count == 2
        assert outcome["duration_ms"] >= 0

    def test_resolve_relation_handles_error(self, sample_data: OsmData):
        """Test unexpected failures are returned instead of raised."""
        resolver = Mock(spec=MultipolygonResolver)
        resolver.resolve.side_effect = RuntimeError("boom")

        outcome = resolve_relation(sample_data.relations[100], TILE, resolver)

        assert outcome["error"] == "boom"
        assert outcome["relation_id"] == 100
        assert "RuntimeError" in outcome["traceback"]
        assert "result" not in outcome


class TestTileProcessor:
    """Tests for TileProcessor class."""

    def test_init(self, settings: ResolverSettings):
        """Test TileProcessor initialization."""
        with patch("mpresolver.core.processor.configure_logging") as mock_logging:
            processor = TileProcessor(settings)

        mock_logging.assert_called_once()
        assert processor.config == settings
        assert processor.resolver.geometry == settings.geometry

    @patch("mpresolver.core.processor.configure_logging")
    def test_process_tile(self, _mock_logging, settings: ResolverSettings, sample_data: OsmData):
        """Test polygons are added and member tags updated."""
        processor = TileProcessor(settings)

        tile = processor.process(sample_data, max_workers=2)

        assert isinstance(tile, TileResult)
        assert tile.stats.processed_count == 1
        assert tile.stats.skipped_count == 1
        assert tile.stats.error_count == 0
        assert tile.stats.polygons_created == 2
        assert [r.relation_id for r in tile.results] == [100]

        assert len(tile.polygons) == 2
        assert all(is_synthetic_id(way_id) for way_id in tile.polygons)
        assert all(way_id in tile.ways for way_id in tile.polygons)
        assert tile.ways[1].tags == {"name": "Forest"}
        assert tile.ways[3].tags == {"highway": "track"}

    @patch("mpresolver.core.processor.configure_logging")
    def test_process_does_not_modify_input(
        self, _mock_logging, settings: ResolverSettings, sample_data: OsmData
    ):
        """Test the input way table is copied."""
        TileProcessor(settings).process(sample_data)

        assert sample_data.ways[1].tags == {"natural": "wood", "name": "Forest"}
        assert set(sample_data.ways) == {1, 2, 3}

    @patch("mpresolver.core.processor.configure_logging")
    def test_process_selected_relations(
        self, _mock_logging, settings: ResolverSettings, sample_data: OsmData
    ):
        """Test only the requested relations are resolved."""
        tile = TileProcessor(settings).process(sample_data, relation_ids=[101])

        assert tile.results == []
        assert tile.stats.skipped_count == 1
        assert tile.stats.processed_count == 0

    @patch("mpresolver.core.processor.configure_logging")
    def test_process_unknown_relation(
        self, _mock_logging, settings: ResolverSettings, sample_data: OsmData
    ):
        """Test requesting a relation that does not exist."""
        with pytest.raises(RelationNotFoundError) as exc_info:
            TileProcessor(settings).process(sample_data, relation_ids=[999])
        assert exc_info.value.relation_id == 999

    @patch("mpresolver.core.processor.configure_logging")
    def test_process_without_bbox(
        self, _mock_logging, settings: ResolverSettings, sample_data: OsmData
    ):
        """Test a tile without bounds needs an explicit bbox."""
        sample_data.bounds = None

        with pytest.raises(InvalidBoundingBoxError):
            TileProcessor(settings).process(sample_data)

        tile = TileProcessor(settings).process(sample_data, tile_bbox=TILE)
        assert tile.stats.processed_count == 1

    @patch("mpresolver.core.processor.configure_logging")
    def test_process_handles_errors(
        self, _mock_logging, settings: ResolverSettings, sample_data: OsmData
    ):
        """Test a failing relation is counted and processing continues."""
        processor = TileProcessor(settings)
        progress = MagicMock()

        with patch.object(processor.resolver, "resolve", side_effect=ValueError("bad ring")):
            tile = processor.process(sample_data, progress_callback=progress)

        assert tile.stats.error_count == 1
        assert tile.stats.errors == [(100, "Error processing relation 100: bad ring")]
        assert tile.results == []
        assert tile.ways[1].tags == {"natural": "wood", "name": "Forest"}
        progress.assert_called_once_with(1, 1, 100, False)

    @patch("mpresolver.core.processor.configure_logging")
    def test_process_counts_diagnostics(
        self, _mock_logging, settings: ResolverSettings, sample_data: OsmData
    ):
        """Test diagnostics are aggregated per kind."""
        sample_data.relations[100].members.append(Member("node", 7, "label"))

        tile = TileProcessor(settings).process(sample_data)

        assert tile.stats.diagnostic_counts["NonWayMember"] == 1
        assert tile.stats.diagnostic_total == 1
