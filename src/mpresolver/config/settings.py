"""Configuration settings for mpresolver."""

from pathlib import Path

from pydantic import BaseModel, Field

# Tags that make a way or relation a rendered area
DEFAULT_POLYGON_TAGS: tuple[str, ...] = (
    "boundary",
    "natural",
    "landuse",
    "land_area",
    "building",
    "waterway",
)


class GeometryConfig(BaseModel):
    """Configuration for the geometric tests.

    All distances are in map units (1/2^24 of a full turn).
    """

    overlap_tolerance: float = Field(
        default=2.0,
        ge=0.0,
        le=100.0,
        description=(
            "Squared distance within which a point is treated as lying on an edge. "
            "2.0 covers rounding when converting degrees to map units"
        ),
    )
    detect_edge_crossings: bool = Field(
        default=True,
        description="Detect genuine mid-segment crossings between rings",
    )
    max_cut_iterations: int = Field(
        default=10000,
        ge=1,
        description="Maximum hole cutter work items processed for one outer ring",
    )


class ResolverConfig(BaseModel):
    """Configuration for tag handling of resolved relations."""

    polygon_tags: list[str] = Field(
        default_factory=lambda: list(DEFAULT_POLYGON_TAGS),
        description="Tag keys that classify a way or relation as a polygon",
    )
    use_relation_tags: bool = Field(
        default=True,
        description="Copy relation tags onto outer polygons if the relation has polygon tags",
    )
    strip_member_tags: bool = Field(
        default=True,
        description="Remove polygon tags from member ways consumed by the relation",
    )
    drop_rings_outside_bbox: bool = Field(
        default=True,
        description="Drop rings lying completely outside the tile bounding box",
    )


class ProcessingConfig(BaseModel):
    """Configuration for batch processing."""

    max_workers: int | None = Field(
        default=None,
        description="Max worker threads (None = auto)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    file_log_level: str = Field(
        default="DEBUG",
        description="File log level (more verbose)",
    )


class ResolverSettings(BaseModel):
    """Main application settings."""

    geometry: GeometryConfig = Field(default_factory=GeometryConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_settings() -> ResolverSettings:
    """Get default application settings."""
    return ResolverSettings()
