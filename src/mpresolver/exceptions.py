"""Exception hierarchy for mpresolver.

Malformed geometry inside a relation is never an exception; it is reported
as a diagnostic. These exceptions cover input data and batch processing.
"""


class MpResolverError(Exception):
    """Base exception for all mpresolver errors."""

    pass


class OsmDataError(MpResolverError):
    """Errors related to reading OSM input data."""

    pass


class OsmLoadError(OsmDataError):
    """Error loading an OSM file."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load OSM data '{path}': {reason}")


class OsmFormatError(OsmDataError):
    """Malformed OSM XML content."""

    def __init__(self, path: str, details: str) -> None:
        self.path = path
        self.details = details
        super().__init__(f"Invalid OSM data '{path}': {details}")


class RelationError(MpResolverError):
    """Errors related to relation processing."""

    pass


class RelationNotFoundError(RelationError):
    """Requested relation not found in the input data."""

    def __init__(self, relation_id: int) -> None:
        self.relation_id = relation_id
        super().__init__(f"Relation {relation_id} not found")


class RelationProcessingError(RelationError):
    """Unexpected failure while resolving a specific relation."""

    def __init__(self, relation_id: int, reason: str) -> None:
        self.relation_id = relation_id
        self.reason = reason
        super().__init__(f"Error processing relation {relation_id}: {reason}")


class GeometryError(MpResolverError):
    """Errors in geometric input parameters."""

    pass


class InvalidBoundingBoxError(GeometryError):
    """Bounding box with inverted or unparsable extents."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
