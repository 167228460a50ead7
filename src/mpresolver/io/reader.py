"""OSM XML reader.

This module provides the OsmReader class for streaming an OSM XML file
into domain models. Nodes are only kept as positions; ways and relations
become Way and Relation objects with relation members linked to their ways.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from lxml import etree

from mpresolver.domain import BoundingBox, Point, Relation, Way
from mpresolver.exceptions import OsmFormatError, OsmLoadError
from mpresolver.io.converter import (
    bounds_to_bbox,
    node_to_point,
    relation_to_domain,
    way_to_domain,
)

logger = logging.getLogger(__name__)


@dataclass
class OsmData:
    """Ways and relations of one OSM file.

    Attributes:
        ways: Ways by id, in file order
        relations: Relations by id, in file order
        bounds: Extent declared by the file's <bounds> element, if any
    """

    ways: dict[int, Way] = field(default_factory=dict)
    relations: dict[int, Relation] = field(default_factory=dict)
    bounds: BoundingBox | None = None

    def multipolygons(self) -> list[Relation]:
        """Relations tagged type=multipolygon, in file order."""
        return [r for r in self.relations.values() if r.is_multipolygon()]


class OsmReader:
    """Loads OSM XML files.

    The file is parsed incrementally with lxml's iterparse and elements
    are released as soon as they are converted.

    Example:
        reader = OsmReader(Path("tile.osm"))
        data = reader.load()
        for relation in data.multipolygons():
            print(relation.id)
    """

    def __init__(self, path: Path) -> None:
        """Initialize the reader.

        Args:
            path: Path to the OSM XML file
        """
        self._path = path
        self._data: OsmData | None = None

    @property
    def data(self) -> OsmData:
        """Return the loaded data.

        Raises:
            RuntimeError: If the file has not been loaded yet
        """
        if self._data is None:
            raise RuntimeError("OSM data not loaded. Call load() first.")
        return self._data

    def load(self) -> OsmData:
        """Parse the file.

        Returns:
            OsmData with ways, relations and bounds

        Raises:
            OsmLoadError: If the file does not exist or cannot be read
            OsmFormatError: If the file is not well-formed OSM XML
        """
        if not self._path.exists():
            raise OsmLoadError(str(self._path), "file not found")

        try:
            self._data = self._parse()
        except etree.XMLSyntaxError as e:
            raise OsmFormatError(str(self._path), str(e)) from e
        except (KeyError, ValueError) as e:
            raise OsmFormatError(str(self._path), f"bad element attribute: {e}") from e
        except OSError as e:
            raise OsmLoadError(str(self._path), str(e)) from e

        logger.info(
            "Loaded %s: %d ways, %d relations",
            self._path, len(self._data.ways), len(self._data.relations),
        )
        return self._data

    def _parse(self) -> OsmData:
        data = OsmData()
        nodes: dict[int, Point] = {}
        missing_nodes = 0

        context = etree.iterparse(
            str(self._path),
            events=("end",),
            tag=("bounds", "node", "way", "relation"),
        )
        for _, element in context:
            if element.tag == "node":
                node_id, point = node_to_point(element)
                nodes[node_id] = point
            elif element.tag == "way":
                way, missing = way_to_domain(element, nodes)
                missing_nodes += len(missing)
                data.ways[way.id] = way
            elif element.tag == "relation":
                relation = relation_to_domain(element)
                data.relations[relation.id] = relation
            elif data.bounds is None:
                data.bounds = bounds_to_bbox(element)

            element.clear()
            while element.getprevious() is not None:
                del element.getparent()[0]

        if missing_nodes:
            logger.debug("%d node references could not be resolved", missing_nodes)

        self._attach_members(data)
        return data

    @staticmethod
    def _attach_members(data: OsmData) -> None:
        """Link way members to the ways read from the file."""
        for relation in data.relations.values():
            for member in relation.members:
                if member.is_way():
                    member.way = data.ways.get(member.ref)
