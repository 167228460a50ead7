"""Core processing algorithms for mpresolver.

This module contains the core algorithms for:

- Geometry predicates (point-in-polygon, segment intersection, distances)
- Ring assembly (joining member ways, closing open rings)
- Ring analysis (containment matrix, outer/inner role resolution)
- Hole cutting (splitting outer rings into hole-free polygons)

All services are designed to be:
- Stateless apart from configuration (safe for use from worker threads)
- Non-failing on malformed data (anomalies become diagnostics)

Key functions:
- join_segments: Assemble member ways into rings
- close_rings: Close open rings and freeze them
- build_containment_matrix: Compute which ring contains which
- resolve_roles: Derive the outer/inner hierarchy

Key classes:
- HoleCutter: Cuts holes out of an outer ring
- MultipolygonResolver: Runs the full pipeline for one relation
- TileProcessor: Resolves all relations of a tile in parallel
"""

from mpresolver.core.closer import close_rings, drop_rings_outside
from mpresolver.core.containment import (
    Containment,
    ContainmentChecker,
    ContainmentMatrix,
    ContainmentResult,
    build_containment_matrix,
)
from mpresolver.core.cutter import HoleCutter
from mpresolver.core.joiner import join_segments
from mpresolver.core.processor import TileProcessor, TileResult, resolve_relation
from mpresolver.core.resolver import MultipolygonResolver, RelationResult
from mpresolver.core.roles import RingStatus, RoleAssignment, RoleResolution, resolve_roles

__all__ = [
    # Containment
    "Containment",
    "ContainmentChecker",
    "ContainmentMatrix",
    "ContainmentResult",
    # Cutter
    "HoleCutter",
    # Resolver classes
    "MultipolygonResolver",
    "RelationResult",
    # Roles
    "RingStatus",
    "RoleAssignment",
    "RoleResolution",
    # Processor classes
    "TileProcessor",
    "TileResult",
    # Pipeline functions
    "build_containment_matrix",
    "close_rings",
    "drop_rings_outside",
    "join_segments",
    "resolve_relation",
    "resolve_roles",
]
