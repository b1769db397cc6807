"""Mini README: Decide which scans of a source are exported.

Structure:
    * ScanSelector - filters scans on XYZ availability, size and allow-list.
"""

from __future__ import annotations

from typing import AbstractSet, Iterable, Iterator, Optional, Tuple

from ..logging_utils import get_logger
from ..source.models import ScanEntry

LOGGER = get_logger(__name__)


class ScanSelector:
    """Yield ``(index, scan)`` pairs for scans eligible for export.

    Scans without XYZ fields or without records are reported and skipped.
    Scans missing from ``allowed_scans`` are skipped quietly. ``None`` means
    every scan is allowed.
    """

    def __init__(self, allowed_scans: Optional[AbstractSet[int]] = None) -> None:
        self.allowed_scans = frozenset(allowed_scans) if allowed_scans is not None else None

    def is_allowed(self, index: int) -> bool:
        return self.allowed_scans is None or index in self.allowed_scans

    def select(self, scans: Iterable[ScanEntry]) -> Iterator[Tuple[int, ScanEntry]]:
        for index, scan in enumerate(scans):
            if not scan.has_cartesian:
                LOGGER.info("Point cloud #%s has no XYZ data, skipping...", index)
                continue
            if scan.record_count < 1:
                LOGGER.info("Point cloud #%s is empty, skipping...", index)
                continue
            if not self.is_allowed(index):
                LOGGER.debug("Point cloud #%s is not in the scan allow-list", index)
                continue
            yield index, scan
