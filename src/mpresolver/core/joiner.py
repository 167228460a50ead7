"""Ring assembly from relation member ways.

Member ways of a multipolygon arrive in arbitrary order and direction. The
joiner chains open ways sharing an endpoint into longer rings, preferring
partners with a compatible role.
"""

import logging
from enum import Enum

from mpresolver.domain import DiagnosticKind, DiagnosticSink, Ring, Role, Way

logger = logging.getLogger(__name__)


class JoinMatch(Enum):
    """Which endpoints of two rings coincide."""

    FIRST_FIRST = "first-first"
    LAST_FIRST = "last-first"
    FIRST_LAST = "first-last"
    LAST_LAST = "last-last"


def roles_compatible(a: Role | None, b: Role | None) -> bool:
    """Undeclared roles are compatible with everything."""
    return a is None or b is None or a == b


def find_join(ring: Ring, other: Ring) -> JoinMatch | None:
    """Find the endpoints at which other can be attached to ring."""
    if ring.first == other.first:
        return JoinMatch.FIRST_FIRST
    if ring.last == other.first:
        return JoinMatch.LAST_FIRST
    if ring.first == other.last:
        return JoinMatch.FIRST_LAST
    if ring.last == other.last:
        return JoinMatch.LAST_LAST
    return None


def splice(ring: Ring, other: Ring, match: JoinMatch) -> None:
    """Attach the points of other to ring at the matching endpoints.

    The shared endpoint is not duplicated. Other is reversed where needed so
    the result is one continuous point sequence.
    """
    points = other.points
    if match is JoinMatch.FIRST_FIRST:
        ring.extend_front(list(reversed(points[1:])))
    elif match is JoinMatch.LAST_FIRST:
        ring.extend_back(points[1:])
    elif match is JoinMatch.FIRST_LAST:
        ring.extend_front(points[:-1])
    else:
        ring.extend_back(list(reversed(points[:-1])))
    ring.absorb(other)


def join_segments(
    segments: list[tuple[Way, Role | None]],
    sink: DiagnosticSink,
) -> list[Ring]:
    """Assemble rings from member ways.

    Closed ways become rings on their own. Open ways are chained: the first
    unfinished ring is joined with the first open ring of compatible role
    sharing an endpoint. If only rings of a conflicting role fit, the
    longest of them is used and a RoleMismatchJoin diagnostic is recorded.
    A grown ring is rescanned until it closes or nothing fits.

    Args:
        segments: Member ways with their declared roles, in member order
        sink: Collector for join diagnostics

    Returns:
        All rings, closed ones and those that could not be closed by joining
    """
    joined: list[Ring] = []
    unclosed: list[Ring] = []

    for way, role in segments:
        ring = Ring.from_segment(way, role)
        if way.is_closed():
            joined.append(ring)
        else:
            unclosed.append(ring)

    while unclosed:
        ring = unclosed.pop(0)
        if ring.is_closed() or not unclosed:
            joined.append(ring)
            continue

        partner: Ring | None = None
        partner_match: JoinMatch | None = None
        fallback: Ring | None = None
        fallback_match: JoinMatch | None = None

        for candidate in unclosed:
            match = find_join(ring, candidate)
            if match is None:
                continue
            if roles_compatible(ring.role, candidate.role):
                partner, partner_match = candidate, match
                break
            if fallback is None or len(candidate.points) > len(fallback.points):
                fallback, fallback_match = candidate, match

        if partner is None and fallback is not None:
            sink.report(
                DiagnosticKind.ROLE_MISMATCH_JOIN,
                f"Joined ways with different roles: {ring} ({_role_name(ring.role)}) "
                f"and {fallback} ({_role_name(fallback.role)})",
                ring_ids=(ring.id, fallback.id),
                way_refs=ring.diagnostic_refs + fallback.diagnostic_refs,
            )
            partner, partner_match = fallback, fallback_match

        if partner is None or partner_match is None:
            joined.append(ring)
            continue

        logger.debug("Joining %s with %s at %s", ring, partner, partner_match.value)
        splice(ring, partner, partner_match)
        unclosed = [r for r in unclosed if r is not partner]

        if ring.is_closed() or not unclosed:
            joined.append(ring)
        else:
            unclosed.insert(0, ring)

    return joined


def _role_name(role: Role | None) -> str:
    return role.value if role is not None else "no role"
