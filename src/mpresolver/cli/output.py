"""Rich console output helpers for the CLI.

This module provides user-friendly console output using Rich library
with progress bars, tables, and formatted messages.
"""

from collections import Counter

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table
from rich.text import Text

from mpresolver.domain import Diagnostic, Severity

console = Console()

# Unicode symbols for consistent visual language
SYM_STEP = "▸"  # Step indicator
SYM_OK = "✓"  # Success
SYM_ERR = "✗"  # Error
SYM_WARN = "!"  # Anomaly
SYM_DOT = "·"  # Separator/secondary info

_SEVERITY_STYLE = {
    Severity.INFO: "dim",
    Severity.WARNING: "yellow",
    Severity.ERROR: "red",
}


def create_progress() -> Progress:
    """Create a rich progress bar for relation processing.

    Returns:
        Configured Progress instance with bar and time elapsed.
    """
    return Progress(
        TextColumn("  "),
        BarColumn(bar_width=40, complete_style="green", finished_style="green"),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    )


def print_header(version: str) -> None:
    """Print application header.

    Args:
        version: Application version string
    """
    console.print(f"\n[bold]mpresolver[/bold] v{version}")
    console.print("─" * 44)


def print_step(message: str) -> None:
    """Print a processing step indicator.

    Args:
        message: Step description message
    """
    console.print(f"\n{SYM_STEP} {message}")


def print_input_info(
    input_path: str,
    way_count: int,
    relation_count: int,
    multipolygon_count: int,
    bbox_source: str,
) -> None:
    """Print input file information.

    Args:
        input_path: Path to the OSM file
        way_count: Number of ways in the file
        relation_count: Number of relations in the file
        multipolygon_count: Number of multipolygon relations
        bbox_source: Where the tile bounding box comes from
    """
    # Use Text to safely handle paths with special characters
    line1 = Text("  ")
    line1.append(input_path)
    console.print(line1)
    console.print(
        f"  {way_count:,} ways {SYM_DOT} {relation_count:,} relations "
        f"{SYM_DOT} {multipolygon_count:,} multipolygons"
    )
    console.print(f"  bbox from {bbox_source}")


def print_relation_list(rows: list[tuple[int, int, str]]) -> None:
    """Print multipolygon relations as a table.

    Args:
        rows: Tuples of (relation id, member count, name or empty string)
    """
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("Relation", justify="right")
    table.add_column("Members", justify="right")
    table.add_column("Name")
    for relation_id, member_count, name in rows:
        table.add_row(str(relation_id), str(member_count), name)
    console.print(table)


def _format_time(seconds: float) -> str:
    """Format seconds into human-readable time string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        mins = int(seconds // 60)
        secs = seconds % 60
        return f"{mins}m {secs:.1f}s"


def print_processing_info(workers: int, is_auto: bool = False) -> None:
    """Print processing configuration.

    Args:
        workers: Number of parallel workers
        is_auto: Whether the count was auto-detected
    """
    auto_suffix = " (auto)" if is_auto else ""
    console.print(f"  {workers} workers{auto_suffix} {SYM_DOT} Ctrl+C to cancel")


def print_diagnostics(diagnostics: list[Diagnostic]) -> None:
    """Print every diagnostic, one per line, styled by severity."""
    for diagnostic in diagnostics:
        style = _SEVERITY_STYLE[diagnostic.severity]
        line = Text(f"  {SYM_WARN} ", style=style)
        line.append(f"[{diagnostic.kind.value}] ", style=f"bold {style}")
        line.append(f"{diagnostic.relation_ref} ")
        line.append(diagnostic.message)
        console.print(line)


def print_summary(
    total_time_s: float,
    processed: int,
    polygons: int,
    errors: int,
    diagnostic_counts: Counter[str],
    avg_time_ms: float | None = None,
    min_time_ms: float | None = None,
    max_time_ms: float | None = None,
) -> None:
    """Print completion message with summary.

    Args:
        total_time_s: Total processing time in seconds
        processed: Number of relations resolved
        polygons: Total number of polygons produced
        errors: Number of relations that failed
        diagnostic_counts: Diagnostics per kind
        avg_time_ms: Average processing time per relation in milliseconds
        min_time_ms: Minimum processing time per relation in milliseconds
        max_time_ms: Maximum processing time per relation in milliseconds
    """
    time_str = _format_time(total_time_s)

    console.print(f"\n[bold green]{SYM_OK} Complete[/bold green] in {time_str}")

    error_style = "red" if errors > 0 else "green"
    console.print(
        f"  {processed} relations {SYM_DOT} {polygons} polygons {SYM_DOT} "
        f"[{error_style}]{errors} errors[/{error_style}]"
    )

    if diagnostic_counts:
        parts = [f"{count} {kind}" for kind, count in sorted(diagnostic_counts.items())]
        console.print(f"  [yellow]{sum(diagnostic_counts.values())} diagnostics[/yellow]: "
                      + f" {SYM_DOT} ".join(parts))

    # Per-relation timing
    if avg_time_ms is not None:
        timing_str = f"{avg_time_ms:.1f}ms avg"
        if min_time_ms is not None and max_time_ms is not None:
            timing_str += f" ({min_time_ms:.1f}–{max_time_ms:.1f}ms range)"
        console.print(f"  {timing_str}")


def print_error(message: str, details: str | None = None) -> None:
    """Print error message.

    Args:
        message: Main error message
        details: Optional detailed error information
    """
    console.print(f"\n[bold red]{SYM_ERR} Error:[/bold red] {message}")
    if details:
        console.print(f"  {details}")


def print_cancellation_notice() -> None:
    """Print cancellation acknowledgment."""
    console.print(f"\n{SYM_DOT} Cancelling... waiting for in-progress relations")


def print_cancellation_summary(processed: int, cancelled: int) -> None:
    """Print cancellation summary.

    Args:
        processed: Number of relations resolved before cancellation
        cancelled: Number of pending tasks that were cancelled
    """
    console.print(f"\n{SYM_DOT} [bold]Cancelled[/bold]")
    console.print(f"  {processed} relations completed {SYM_DOT} {cancelled} tasks cancelled")
