"""CLI application entry point for mpresolver.

This module provides the main CLI interface using Typer.
"""

import os
from pathlib import Path
from typing import Annotated

import typer

from mpresolver import __version__
from mpresolver.cli.output import (
    console,
    create_progress,
    print_cancellation_notice,
    print_cancellation_summary,
    print_diagnostics,
    print_error,
    print_header,
    print_input_info,
    print_processing_info,
    print_relation_list,
    print_step,
    print_summary,
)
from mpresolver.config import (
    GeometryConfig,
    LoggingConfig,
    ProcessingConfig,
    ResolverSettings,
)
from mpresolver.core import TileProcessor, TileResult
from mpresolver.domain import BoundingBox
from mpresolver.exceptions import MpResolverError, OsmDataError
from mpresolver.io import OsmData, OsmReader, parse_bbox

# Create the Typer app
app = typer.Typer(
    name="mpresolver",
    help="Resolve OSM multipolygon relations into simple, hole-free polygons.",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]mpresolver[/bold blue] v{__version__}")
        raise typer.Exit()


@app.command()
def resolve(
    input_file: Annotated[
        Path,
        typer.Argument(
            help="Path to input OSM XML file",
            show_default=False,
        ),
    ],
    bbox: Annotated[
        str | None,
        typer.Option(
            "--bbox",
            "-b",
            help="Tile bounding box minlat,minlon,maxlat,maxlon in degrees "
            "(default: the file's <bounds>)",
        ),
    ] = None,
    relations: Annotated[
        list[int] | None,
        typer.Option(
            "--relation",
            "-r",
            help="Resolve only this relation (repeatable)",
        ),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers",
            "-j",
            help="Number of parallel workers (default: auto)",
            min=1,
        ),
    ] = None,
    tolerance: Annotated[
        float,
        typer.Option(
            "--tolerance",
            "-t",
            help="Squared distance in map units within which a point lies on an edge",
            min=0.0,
            max=100.0,
        ),
    ] = 2.0,
    list_relations: Annotated[
        bool,
        typer.Option(
            "--list-relations",
            help="List all multipolygon relations and exit",
        ),
    ] = False,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Write detailed logs to file",
        ),
    ] = None,
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            help="Logging level (DEBUG|INFO|WARNING|ERROR)",
        ),
    ] = "WARNING",
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="List every diagnostic",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Minimal console output",
        ),
    ] = False,
    _version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Resolve the multipolygon relations of an OSM tile.

    Joins the member ways of every multipolygon relation into rings, works
    out which rings are outers and which are holes, and cuts the holes out
    so that every resulting polygon can be filled without a winding rule.
    Malformed relations are reported as diagnostics.

    Example:
        mpresolver tile-63240001.osm --bbox 47.0,8.0,47.5,8.5
    """
    if verbose and quiet:
        print_error("Cannot use --verbose and --quiet together")
        raise typer.Exit(code=1)

    if not input_file.exists():
        print_error(
            f"Input file not found: {input_file}",
            details=f"The file '{input_file}' does not exist or is not accessible.",
        )
        raise typer.Exit(code=1)

    if not input_file.is_file():
        print_error(
            f"Input path is not a file: {input_file}",
            details="Please provide a path to an OSM XML file.",
        )
        raise typer.Exit(code=1)

    tile_bbox: BoundingBox | None = None
    if bbox is not None:
        try:
            tile_bbox = parse_bbox(bbox)
        except (ValueError, MpResolverError) as e:
            print_error(f"Invalid bounding box: {bbox}", details=str(e))
            raise typer.Exit(code=1)

    if not quiet:
        print_header(__version__)

    settings = ResolverSettings(
        geometry=GeometryConfig(
            overlap_tolerance=tolerance,
        ),
        processing=ProcessingConfig(
            max_workers=workers,
        ),
        logging=LoggingConfig(
            log_file=log_file,
            log_level=log_level if not quiet else "ERROR",
        ),
    )

    try:
        if not quiet:
            print_step("Loading OSM data")

        data = OsmReader(input_file).load()

        if not quiet:
            print_input_info(
                input_path=str(input_file),
                way_count=len(data.ways),
                relation_count=len(data.relations),
                multipolygon_count=len(data.multipolygons()),
                bbox_source="--bbox" if tile_bbox is not None
                else ("<bounds>" if data.bounds is not None else "nowhere"),
            )

        if list_relations:
            _handle_list_relations(data)
            raise typer.Exit(code=0)

        total = len(relations) if relations else len(data.multipolygons())
        if total == 0:
            if not quiet:
                console.print("\nNo multipolygon relations found. Nothing to process.")
            raise typer.Exit(code=0)

        if not quiet:
            actual_workers = workers if workers else min(32, (os.cpu_count() or 1) + 4)
            print_step("Resolving")
            print_processing_info(actual_workers, is_auto=(workers is None))

        processor = TileProcessor(settings)
        tile: TileResult | None = None

        try:
            if not quiet:
                with create_progress() as progress:
                    task_id = progress.add_task(
                        f"Resolving {total} relations",
                        total=total,
                    )

                    def update_progress(
                        completed: int, *_: object
                    ) -> None:
                        progress.update(task_id, completed=completed)

                    tile = processor.process(
                        data,
                        tile_bbox=tile_bbox,
                        relation_ids=relations or None,
                        max_workers=workers,
                        progress_callback=update_progress,
                    )
            else:
                tile = processor.process(
                    data,
                    tile_bbox=tile_bbox,
                    relation_ids=relations or None,
                    max_workers=workers,
                )
        except KeyboardInterrupt:
            if not quiet:
                print_cancellation_notice()
                print_cancellation_summary(
                    processed=tile.stats.processed_count if tile else 0,
                    cancelled=tile.stats.cancelled_count if tile else 0,
                )
            raise typer.Exit(code=130) from None  # Standard Unix SIGINT exit code

        if verbose:
            print_step("Diagnostics")
            print_diagnostics([d for r in tile.results for d in r.diagnostics])

        if not quiet:
            stats = tile.stats
            print_summary(
                total_time_s=stats.duration_seconds,
                processed=stats.processed_count,
                polygons=stats.polygons_created,
                errors=stats.error_count,
                diagnostic_counts=stats.diagnostic_counts,
                avg_time_ms=stats.avg_relation_time_ms,
                min_time_ms=stats.min_relation_time_ms,
                max_time_ms=stats.max_relation_time_ms,
            )

    except OsmDataError as e:
        print_error(f"Could not load OSM data: {e}")
        raise typer.Exit(code=1)
    except MpResolverError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    except typer.Exit:
        # Re-raise typer.Exit to allow clean exits
        raise
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        raise typer.Exit(code=1)


def _handle_list_relations(data: OsmData) -> None:
    """Handle --list-relations mode.

    Args:
        data: Loaded OSM data
    """
    multipolygons = data.multipolygons()
    console.print(f"\n[bold]{len(multipolygons)} multipolygon relations[/bold]\n")
    print_relation_list(
        [(r.id, len(r.members), r.tags.get("name", "")) for r in multipolygons]
    )


def cli() -> None:
    """Entry point for the CLI application."""
    app()


def main() -> None:
    """Entry point for the CLI application (alias for cli)."""
    cli()


if __name__ == "__main__":
    cli()
