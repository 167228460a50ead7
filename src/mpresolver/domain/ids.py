"""Process-wide synthetic identifiers.

Rings and polygons created while resolving a relation do not exist in the
source data and receive identifiers from a shared counter. The counter is
shared by every relation resolved in the process, including relations
resolved concurrently on worker threads.
"""

import itertools
import threading

SYNTHETIC_ID_START = 1 << 62


class SyntheticIdGenerator:
    """Thread-safe monotonically increasing id source."""

    def __init__(self, start: int = SYNTHETIC_ID_START) -> None:
        self._start = start
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            return next(self._counter)

    def is_synthetic(self, identifier: int) -> bool:
        return identifier >= self._start


_generator = SyntheticIdGenerator()


def make_synthetic_id() -> int:
    """Return a fresh identifier that does not collide with source ids."""
    return _generator.next_id()


def is_synthetic_id(identifier: int) -> bool:
    """Check whether an identifier was produced by make_synthetic_id()."""
    return _generator.is_synthetic(identifier)
