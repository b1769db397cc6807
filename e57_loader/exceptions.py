"""Mini README: Error taxonomy for the E57 loader.

Structure:
    * LoaderError - base class for failures that abort the whole run.
    * SourceOpenError, IterationError, SinkError - fatal setup/write failures.
    * PointDecodeError - a single record failed to decode; yielded in-stream.

Only ``LoaderError`` subclasses are raised. ``PointDecodeError`` instances are
yielded by point streams next to valid records so the streamer can log and
skip them without aborting the scan.
"""

from __future__ import annotations

from typing import Optional


class LoaderError(Exception):
    """Fatal error that aborts the export run."""


class SourceOpenError(LoaderError):
    """The source file could not be opened or its scans enumerated."""

    def __init__(self, path: object, message: str = "Failed to read E57 file") -> None:
        super().__init__(f"{message}: {path}")
        self.path = path


class IterationError(LoaderError):
    """A scan could not produce its point sequence."""

    def __init__(self, scan_index: int, message: str = "Unable to get point iterator") -> None:
        super().__init__(f"{message} for scan {scan_index}")
        self.scan_index = scan_index


class SinkError(LoaderError):
    """The visualization sink could not be created or rejected a write."""


class PointDecodeError(Exception):
    """A single point record failed to decode."""

    def __init__(self, message: str, *, record_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.record_index = record_index


def format_error_chain(error: BaseException) -> str:
    """Render ``error`` and its causes as ``message\\nCaused by: ...`` lines."""

    lines = [str(error) or type(error).__name__]
    cause = error.__cause__ or error.__context__
    while cause is not None:
        lines.append(f"Caused by: {cause or type(cause).__name__}")
        cause = cause.__cause__ or cause.__context__
    return "\n".join(lines)
