"""Mini README: Mark each scan's position with a labelled point.

Structure:
    * TransformLogger - logs the scan pose translation as a single red point.

Only the translation is shown. The pose rotation is read from the file but
not applied to the marker or to the bulk geometry.
"""

from __future__ import annotations

import numpy as np

from ..logging_utils import get_logger
from ..source.models import ScanEntry
from .paths import scan_entity_path
from .sink import PointSink

LOGGER = get_logger(__name__)

MARKER_COLOR = (255, 0, 0)
MARKER_RADIUS = 0.15


class TransformLogger:
    """Emit the pose marker for scans that declare a transform."""

    def __init__(self, sink: PointSink, *, entity_path_prefix: str) -> None:
        self._sink = sink
        self._prefix = entity_path_prefix

    def log_scan_transform(self, index: int, scan: ScanEntry) -> bool:
        """Log the marker and return True, or return False when the scan has no pose."""

        if scan.transform is None:
            return False
        translation = scan.transform.translation
        LOGGER.debug("Scan %s translation %s", index, translation)
        self._sink.log_points(
            f"{scan_entity_path(self._prefix, index)}/point",
            np.asarray([translation], dtype=np.float32),
            np.asarray([MARKER_COLOR], dtype=np.uint8),
            radii=[MARKER_RADIUS],
            labels=[f"Scan {index}"],
        )
        return True
