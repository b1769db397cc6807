"""Mini README: Export every eligible scan of a point source to a sink.

Structure:
    * ExportSummary - run-level counters for logging and tests.
    * PointCloudExporter - wires selector, transform marker and streamer.

Scans are processed strictly in file order. Fatal errors (``LoaderError``)
propagate to the caller, which owns the source and sink lifetimes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, Dict, List, Optional

from ..configuration import DEFAULT_CHUNK_SIZE, DEFAULT_ENTITY_PATH_PREFIX
from ..logging_utils import get_logger
from ..source.models import PointSource
from .selector import ScanSelector
from .sink import PointSink
from .streamer import ChunkedStreamer
from .transform_logger import TransformLogger

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class ExportSummary:
    """Totals for one export run."""

    scans_total: int = 0
    exported_scans: List[int] = field(default_factory=list)
    markers: int = 0
    chunks: int = 0
    points: int = 0
    invalid_points: int = 0
    skipped_records: int = 0

    @property
    def scans_skipped(self) -> int:
        return self.scans_total - len(self.exported_scans)

    def as_dict(self) -> Dict[str, object]:
        return {
            "scans_total": self.scans_total,
            "exported_scans": list(self.exported_scans),
            "scans_skipped": self.scans_skipped,
            "markers": self.markers,
            "chunks": self.chunks,
            "points": self.points,
            "invalid_points": self.invalid_points,
            "skipped_records": self.skipped_records,
        }


class PointCloudExporter:
    """Stream selected scans of a source to a visualization sink."""

    def __init__(
        self,
        sink: PointSink,
        *,
        entity_path_prefix: str = DEFAULT_ENTITY_PATH_PREFIX,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        allowed_scans: Optional[AbstractSet[int]] = None,
    ) -> None:
        self.selector = ScanSelector(allowed_scans)
        self.transform_logger = TransformLogger(sink, entity_path_prefix=entity_path_prefix)
        self.streamer = ChunkedStreamer(sink, entity_path_prefix=entity_path_prefix, chunk_size=chunk_size)

    def export(self, source: PointSource) -> ExportSummary:
        """Export all eligible scans and return the run totals."""

        scans = source.scans()
        summary = ExportSummary(scans_total=len(scans))
        for index, scan in self.selector.select(scans):
            LOGGER.info(
                "Exporting point cloud #%s%s (%s records)",
                index,
                f" '{scan.name}'" if scan.name else "",
                scan.record_count,
            )
            if self.transform_logger.log_scan_transform(index, scan):
                summary.markers += 1
            result = self.streamer.stream_scan(index, scan)
            summary.exported_scans.append(index)
            summary.chunks += result.chunks
            summary.points += result.points
            summary.invalid_points += result.invalid_points
            summary.skipped_records += result.skipped_records
            LOGGER.debug("Point cloud #%s done: %s", index, result)
        return summary
