"""Relation input types.

This module defines the OSM elements consumed by the resolver: ways (the
segments rings are assembled from), relation members and relations.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from mpresolver.domain.ring import Point

BROWSE_URL = "https://www.openstreetmap.org"


class Role(Enum):
    """Declared member role in a multipolygon relation."""

    OUTER = "outer"
    INNER = "inner"

    @classmethod
    def parse(cls, value: str | None) -> "Role | None":
        """Map a raw role string to a Role.

        Any value other than "outer" or "inner" (including the empty
        string) means the role is undeclared.
        """
        if value == "outer":
            return cls.OUTER
        if value == "inner":
            return cls.INNER
        return None


@dataclass
class Way:
    """An ordered point list with tags.

    Attributes:
        id: Source identifier (synthetic for resolver output)
        points: Points of the way
        tags: Tag map
    """

    id: int
    points: list[Point]
    tags: dict[str, str] = field(default_factory=dict)

    def is_closed(self) -> bool:
        """Check if the way ends where it starts."""
        return len(self.points) >= 2 and self.points[0] == self.points[-1]

    def has_any_tag(self, keys: Iterable[str]) -> bool:
        return any(key in self.tags for key in keys)

    @property
    def diagnostic_ref(self) -> str:
        """Browse URL locating the way in the source data."""
        return f"{BROWSE_URL}/way/{self.id}"


@dataclass
class Member:
    """A relation member.

    Attributes:
        member_type: OSM element type ("way", "node" or "relation")
        ref: Identifier of the referenced element
        role: Raw role string (None if absent)
        way: Resolved way for way members (None if not a way or missing)
    """

    member_type: str
    ref: int
    role: str | None = None
    way: Way | None = None

    def is_way(self) -> bool:
        return self.member_type == "way"


@dataclass
class Relation:
    """A relation with ordered members and relation-level tags."""

    id: int
    members: list[Member] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)

    def is_multipolygon(self) -> bool:
        return self.tags.get("type") == "multipolygon"

    def has_any_tag(self, keys: Iterable[str]) -> bool:
        return any(key in self.tags for key in keys)

    def to_diagnostic_ref(self) -> str:
        """Browse URL locating the relation in the source data."""
        return f"{BROWSE_URL}/relation/{self.id}"
