"""Mini README: Point sources feeding the exporter.

``models`` defines the abstract scan/source interfaces and record types;
``pye57_reader`` implements them for E57 files.
"""

from .models import PointRecord, PointResult, PointSource, ScanEntry, Transform

__all__ = ["PointRecord", "PointResult", "PointSource", "ScanEntry", "Transform"]
