"""Domain models for mpresolver.

This module contains the domain models representing relation input,
assembled rings and diagnostics. Models are:

- Immutable where possible (using frozen dataclasses)
- Independent of the OSM file format and of the clipping library

Key classes:
- Point: An integer (lat, lon) position in map units
- BoundingBox: An integer rectangle, used for tiles and ring bounds
- Ring: A point sequence assembled from one or more ways
- Way, Member, Relation: The relation input
- Diagnostic, DiagnosticSink: Structured anomaly reports
"""

from mpresolver.domain.diagnostic import (
    Diagnostic,
    DiagnosticKind,
    DiagnosticSink,
    Severity,
)
from mpresolver.domain.ids import is_synthetic_id, make_synthetic_id
from mpresolver.domain.relation import Member, Relation, Role, Way
from mpresolver.domain.ring import BoundingBox, Point, Ring

__all__: list[str] = [
    # Enums
    "DiagnosticKind",
    "Role",
    "Severity",
    # Core types
    "BoundingBox",
    "Diagnostic",
    "DiagnosticSink",
    "Member",
    "Point",
    "Relation",
    "Ring",
    "Way",
    # Identifiers
    "is_synthetic_id",
    "make_synthetic_id",
]
