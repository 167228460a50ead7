"""Structured diagnostics for malformed relations.

The resolver never fails on bad geometry. Every anomaly is recorded as a
Diagnostic carrying enough references (ring ids, source way URLs) to find
the problem in the source data.
"""

from collections import Counter
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum


class Severity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class DiagnosticKind(Enum):
    """Taxonomy of relation anomalies."""

    UNCLOSABLE_RING = "UnclosableRing"
    DEGENERATE_RING = "DegenerateRing"
    ROLE_MISMATCH_JOIN = "RoleMismatchJoin"
    EMPTY_MULTIPOLYGON = "EmptyMultipolygon"
    NO_OUTER_ROLE = "NoOuterRole"
    INTERSECTING_POLYGONS = "IntersectingPolygons"
    NESTED_OUTER = "NestedOuter"
    NESTED_INNER = "NestedInner"
    ORPHAN_INNER = "OrphanInner"
    UNRESOLVED = "Unresolved"
    NON_WAY_MEMBER = "NonWayMember"


DEFAULT_SEVERITY: dict[DiagnosticKind, Severity] = {
    DiagnosticKind.UNCLOSABLE_RING: Severity.WARNING,
    DiagnosticKind.DEGENERATE_RING: Severity.WARNING,
    DiagnosticKind.ROLE_MISMATCH_JOIN: Severity.WARNING,
    DiagnosticKind.EMPTY_MULTIPOLYGON: Severity.INFO,
    DiagnosticKind.NO_OUTER_ROLE: Severity.WARNING,
    DiagnosticKind.INTERSECTING_POLYGONS: Severity.WARNING,
    DiagnosticKind.NESTED_OUTER: Severity.WARNING,
    DiagnosticKind.NESTED_INNER: Severity.WARNING,
    DiagnosticKind.ORPHAN_INNER: Severity.WARNING,
    # residual bug indicator
    DiagnosticKind.UNRESOLVED: Severity.ERROR,
    DiagnosticKind.NON_WAY_MEMBER: Severity.WARNING,
}


@dataclass(frozen=True)
class Diagnostic:
    """A single anomaly found while resolving a relation.

    Attributes:
        kind: Anomaly type
        severity: How serious the anomaly is
        message: Human readable description
        relation_ref: Reference to the relation being resolved
        ring_ids: Synthetic ids of the rings involved
        way_refs: References of the source ways involved
    """

    kind: DiagnosticKind
    severity: Severity
    message: str
    relation_ref: str
    ring_ids: tuple[int, ...] = ()
    way_refs: tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.relation_ref}: {self.message}"


class DiagnosticSink:
    """Append-only collector of diagnostics for one relation."""

    def __init__(self, relation_ref: str) -> None:
        self.relation_ref = relation_ref
        self._items: list[Diagnostic] = []

    def report(
        self,
        kind: DiagnosticKind,
        message: str,
        ring_ids: Iterable[int] = (),
        way_refs: Iterable[str] = (),
        severity: Severity | None = None,
    ) -> Diagnostic:
        """Record a diagnostic and return it."""
        diagnostic = Diagnostic(
            kind=kind,
            severity=severity or DEFAULT_SEVERITY[kind],
            message=message,
            relation_ref=self.relation_ref,
            ring_ids=tuple(ring_ids),
            way_refs=tuple(way_refs),
        )
        self._items.append(diagnostic)
        return diagnostic

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self._items if d.kind == kind]

    def counts(self) -> Counter[DiagnosticKind]:
        return Counter(d.kind for d in self._items)

    def to_list(self) -> list[Diagnostic]:
        return list(self._items)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)
