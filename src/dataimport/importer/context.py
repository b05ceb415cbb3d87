"""Per-table mutable state of one import job."""

import logging
from contextlib import contextmanager
from typing import Iterator, Protocol, TypeVar

from dataimport.importer.formats import DataFormat

logger = logging.getLogger(__name__)


class Closeable(Protocol):
    def close(self) -> None: ...


R = TypeVar("R", bound=Closeable)


class InsertContext:
    """Row counter and scoped resources for one destination table.

    Not thread-safe: one table's rows are processed strictly in order on a
    single thread. Row i+1 must not start before row(i) has exited.
    """

    def __init__(self, data_format: DataFormat, table: str):
        self.data_format = data_format
        self.table = table
        self.row_index = 0
        self._resources: list[Closeable] = []

    @property
    def resource_count(self) -> int:
        return len(self._resources)

    def register(self, resource: R) -> R:
        """Tie a closeable to the current row; it is closed when the row ends."""
        self._resources.append(resource)
        return resource

    @contextmanager
    def row(self) -> Iterator[int]:
        """Scope one row: yields its index, then advances and releases on any exit."""
        try:
            yield self.row_index
        finally:
            self.row_index += 1
            self.release_resources()

    def release_resources(self) -> int:
        """Close and forget every registered resource. Returns how many were released."""
        resources, self._resources = self._resources, []
        for resource in resources:
            try:
                resource.close()
            except Exception:
                logger.warning(
                    "Failed to close %r for %s row %d",
                    resource,
                    self.table,
                    self.row_index - 1,
                    exc_info=True,
                )
        return len(resources)

    def close(self) -> None:
        released = self.release_resources()
        if released:
            logger.debug("Released %d leftover resources for %s", released, self.table)

    def __enter__(self) -> "InsertContext":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
