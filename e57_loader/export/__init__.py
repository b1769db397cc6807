"""Mini README: Export scans from a point source to a visualization sink.

``point_cloud_exporter`` orchestrates the run; ``selector``,
``transform_logger`` and ``streamer`` implement the per-scan steps. The Rerun
sink lives in ``rerun_sink`` and is imported explicitly by the CLI.
"""

from .point_cloud_exporter import ExportSummary, PointCloudExporter
from .sink import PointSink

__all__ = ["ExportSummary", "PointCloudExporter", "PointSink"]
