"""Parallel processing orchestration for tile resolution.

This module coordinates the resolution of all multipolygon relations of a
tile with parallel processing of individual relations using
ThreadPoolExecutor. Worker threads share the synthetic id counter, which
keeps polygon ids unique across the whole tile.

Key components:
- resolve_relation: Top-level function run by the worker threads
- TileProcessor: Main orchestrator class for tile processing
"""

import time
import traceback
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from typing import Any

from mpresolver.config import ResolverSettings
from mpresolver.core.resolver import MultipolygonResolver, RelationResult
from mpresolver.domain import BoundingBox, Relation, Way
from mpresolver.exceptions import (
    InvalidBoundingBoxError,
    RelationNotFoundError,
    RelationProcessingError,
)
from mpresolver.io import OsmData
from mpresolver.utils import ProcessingLogger, ProcessingStats, configure_logging


def resolve_relation(
    relation: Relation,
    tile_bbox: BoundingBox,
    resolver: MultipolygonResolver,
) -> dict[str, Any]:
    """Resolve a single relation.

    Never raises; unexpected failures are returned so that one bad relation
    does not stop the tile.

    Args:
        relation: Relation with member ways attached
        tile_bbox: Bounding box of the tile
        resolver: Resolver holding the configuration

    Returns:
        Dictionary containing either:
        - Success: {"result": RelationResult, "duration_ms": float}
        - Error: {"error": str, "relation_id": int, "traceback": str, "duration_ms": float}
    """
    start_time = time.time()

    try:
        result = resolver.resolve(relation, tile_bbox)
        duration_ms = (time.time() - start_time) * 1000
        return {
            "result": result,
            "duration_ms": duration_ms,
        }

    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        tb = traceback.format_exc()
        return {
            "error": str(e),
            "relation_id": relation.id,
            "traceback": tb,
            "duration_ms": duration_ms,
        }


@dataclass
class TileResult:
    """Outcome of processing a tile.

    Attributes:
        stats: Counts, timings and diagnostic totals
        results: Per-relation results in relation order
        ways: Way table with member tag updates applied and polygons added
    """

    stats: ProcessingStats
    results: list[RelationResult] = field(default_factory=list)
    ways: dict[int, Way] = field(default_factory=dict)

    @property
    def polygons(self) -> dict[int, Way]:
        """All polygons produced for the tile."""
        merged: dict[int, Way] = {}
        for result in self.results:
            merged.update(result.polygons)
        return merged


class TileProcessor:
    """Orchestrates parallel resolution of a tile's multipolygon relations.

    Manages the complete workflow:
    1. Select the relations to resolve
    2. Resolve relations in parallel using worker threads
    3. Collect results and update statistics
    4. Apply member tag updates and add polygons to the way table

    Example:
        settings = ResolverSettings()
        processor = TileProcessor(settings)
        tile = processor.process(OsmReader(Path("tile.osm")).load())
    """

    def __init__(self, config: ResolverSettings) -> None:
        """Initialize tile processor with configuration.

        Args:
            config: Resolver settings containing geometry, tag and processing config
        """
        self.config = config
        self.logger = configure_logging(
            log_file=config.logging.log_file,
            console_level=config.logging.log_level,
            file_level=config.logging.file_log_level,
            quiet=False,
        )
        self.resolver = MultipolygonResolver(
            geometry=config.geometry,
            config=config.resolver,
        )

    def process(
        self,
        data: OsmData,
        tile_bbox: BoundingBox | None = None,
        relation_ids: list[int] | None = None,
        max_workers: int | None = None,
        progress_callback: Callable[[int, int, int, bool], None] | None = None,
    ) -> TileResult:
        """Resolve the multipolygon relations of a tile.

        Args:
            data: Ways and relations of the tile
            tile_bbox: Tile bounding box (the data's bounds if None)
            relation_ids: Relations to resolve (all multipolygons if None)
            max_workers: Maximum worker threads (None = configured default)
            progress_callback: Optional callback(completed, total, relation_id, success)
                for progress updates

        Returns:
            TileResult with statistics, per-relation results and the way table

        Raises:
            InvalidBoundingBoxError: If no bounding box is given or declared
            RelationNotFoundError: If a requested relation is not in the data
            KeyboardInterrupt: If processing is cancelled by user
        """
        processing_logger = ProcessingLogger(self.logger)
        stats = processing_logger.stats
        stats.start_time = time.time()

        if max_workers is None:
            max_workers = self.config.processing.max_workers

        bbox = tile_bbox or data.bounds
        if bbox is None:
            raise InvalidBoundingBoxError(
                "No tile bounding box given and the input declares no bounds"
            )

        relations = self._select_relations(data, relation_ids, processing_logger)

        self.logger.info(
            "Starting tile processing",
            relations=len(relations),
            ways=len(data.ways),
            max_workers=max_workers,
        )

        results: dict[int, RelationResult] = {}
        if relations:
            results = self._process_relations_parallel(
                relations=relations,
                tile_bbox=bbox,
                max_workers=max_workers,
                processing_logger=processing_logger,
                progress_callback=progress_callback,
            )
        else:
            self.logger.info("No relations to process")

        tile = TileResult(stats=stats, ways=dict(data.ways))
        for relation in relations:
            result = results.get(relation.id)
            if result is None:
                continue
            tile.results.append(result)
            for diagnostic in result.diagnostics:
                processing_logger.log_diagnostic(diagnostic)
            self._apply(result, tile.ways)

        stats.end_time = time.time()

        self.logger.info(
            "Processing complete",
            processed=stats.processed_count,
            skipped=stats.skipped_count,
            errors=stats.error_count,
            polygons=stats.polygons_created,
            diagnostics=stats.diagnostic_total,
            duration_seconds=round(stats.duration_seconds, 2),
        )

        return tile

    def _select_relations(
        self,
        data: OsmData,
        relation_ids: list[int] | None,
        processing_logger: ProcessingLogger,
    ) -> list[Relation]:
        if relation_ids is None:
            candidates = list(data.relations.values())
        else:
            candidates = []
            for relation_id in relation_ids:
                relation = data.relations.get(relation_id)
                if relation is None:
                    raise RelationNotFoundError(relation_id)
                candidates.append(relation)

        selected: list[Relation] = []
        for relation in candidates:
            if relation.is_multipolygon():
                selected.append(relation)
            else:
                processing_logger.log_relation_skipped(relation.id, "not a multipolygon")
        return selected

    def _process_relations_parallel(
        self,
        relations: list[Relation],
        tile_bbox: BoundingBox,
        max_workers: int | None,
        processing_logger: ProcessingLogger,
        progress_callback: Callable[[int, int, int, bool], None] | None = None,
    ) -> dict[int, RelationResult]:
        """Resolve relations in parallel using ThreadPoolExecutor.

        Args:
            relations: Relations to resolve
            tile_bbox: Bounding box of the tile
            max_workers: Maximum worker threads
            processing_logger: Logger accumulating statistics
            progress_callback: Optional callback(completed, total, relation_id, success)
                for progress updates

        Returns:
            Dictionary mapping relation ids to results of successful relations
        """
        results: dict[int, RelationResult] = {}
        stats = processing_logger.stats

        self.logger.info(
            "Starting parallel processing",
            relation_count=len(relations),
            max_workers=max_workers,
        )

        total = len(relations)
        completed = 0
        pending_futures: dict = {}

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            for relation in relations:
                processing_logger.log_relation_start(relation.id)
                future = executor.submit(
                    resolve_relation,
                    relation,
                    tile_bbox,
                    self.resolver,
                )
                pending_futures[future] = relation.id

            try:
                for future in as_completed(pending_futures):
                    relation_id = pending_futures.pop(future)
                    success = False

                    try:
                        outcome = future.result()

                        if "error" in outcome:
                            processing_logger.log_relation_error(
                                relation_id=outcome["relation_id"],
                                error=RelationProcessingError(relation_id, outcome["error"]),
                                traceback=outcome.get("traceback"),
                            )
                        else:
                            success = True
                            result: RelationResult = outcome["result"]
                            results[relation_id] = result
                            processing_logger.log_relation_complete(
                                relation_id=relation_id,
                                polygons_created=result.polygon_count,
                                diagnostics=len(result.diagnostics),
                                duration_ms=outcome.get("duration_ms", 0.0),
                            )
                            processing_logger.log_ring_analysis(
                                relation_id=relation_id,
                                total_rings=len(result.rings),
                                outer_count=sum(
                                    1 for a in result.assignments if a.is_resolved and a.is_outer
                                ),
                                inner_count=sum(
                                    1 for a in result.assignments
                                    if a.is_resolved and not a.is_outer
                                ),
                            )

                    except Exception as e:
                        tb = traceback.format_exc()
                        processing_logger.log_relation_error(
                            relation_id=relation_id,
                            error=e,
                            traceback=tb,
                        )

                    completed += 1
                    if progress_callback is not None:
                        progress_callback(completed, total, relation_id, success)

            except KeyboardInterrupt:
                self.logger.info("Cancellation requested by user")
                for f in pending_futures:
                    f.cancel()

                stats.was_cancelled = True
                stats.cancelled_count = len(pending_futures)

                executor.shutdown(wait=True, cancel_futures=True)
                raise

        return results

    @staticmethod
    def _apply(result: RelationResult, ways: dict[int, Way]) -> None:
        """Apply a relation's member tag updates and add its polygons."""
        for way_id, tags in result.member_tag_updates.items():
            way = ways.get(way_id)
            if way is not None:
                ways[way_id] = replace(way, tags=dict(tags))
        ways.update(result.polygons)
