"""Mini README: Bounded-memory streaming of scan points to a sink.

Structure:
    * to_rgb8 - maps a normalised colour (or None) to 8-bit channels.
    * ChunkAccumulator - fixed-capacity position/colour buffers that flush
      whenever they fill up and once more when the scope exits cleanly.
    * ScanStreamResult - per-scan counters.
    * ChunkedStreamer - feeds one scan's point stream through an accumulator.

Positions and colours are written into preallocated arrays at the same row,
so both buffers always hold the same number of entries. Chunks are logged to
``{prefix}/scan_{index}/chunk_{n}`` with ``n`` starting at zero for each scan.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from ..configuration import DEFAULT_CHUNK_SIZE
from ..exceptions import PointDecodeError
from ..logging_utils import get_logger
from ..source.models import ScanEntry
from .paths import chunk_entity_path
from .sink import PointSink

LOGGER = get_logger(__name__)

WHITE = (255, 255, 255)

FlushCallback = Callable[[int, np.ndarray, np.ndarray], None]


def _channel(component: float) -> int:
    return min(255, max(0, round(component * 255)))


def to_rgb8(color: Optional[Sequence[float]]) -> Tuple[int, int, int]:
    """Convert ``[0, 1]`` channels to ``0..255``; missing colour becomes opaque white."""

    if color is None:
        return WHITE
    red, green, blue = color
    return (_channel(red), _channel(green), _channel(blue))


class ChunkAccumulator:
    """Collect points into fixed-size chunks handed to ``on_flush``.

    Used as a context manager: leaving the block normally flushes whatever is
    left, leaving it through an exception discards the partial chunk.
    """

    def __init__(self, capacity: int, on_flush: FlushCallback) -> None:
        if capacity < 1:
            raise ValueError("Chunk capacity must be at least 1")
        self.capacity = capacity
        self._on_flush = on_flush
        self._positions = np.empty((capacity, 3), dtype=np.float32)
        self._colors = np.empty((capacity, 3), dtype=np.uint8)
        self._count = 0
        self.chunk_index = 0
        self.points_flushed = 0

    def __len__(self) -> int:
        return self._count

    def __enter__(self) -> "ChunkAccumulator":
        return self

    def __exit__(self, exc_type, exc, traceback) -> None:
        if exc_type is None:
            self.flush()
        else:
            LOGGER.debug("Discarding %s buffered points after error", self._count)
            self._count = 0

    def append(self, position: Sequence[float], color: Sequence[int]) -> None:
        self._positions[self._count] = position
        self._colors[self._count] = color
        self._count += 1
        if self._count >= self.capacity:
            self.flush()

    def flush(self) -> bool:
        """Hand buffered points to the callback; return False when there was nothing to send."""

        if self._count == 0:
            return False
        count = self._count
        # copies: the sink may keep the arrays after the buffers are reused
        positions = self._positions[:count].copy()
        colors = self._colors[:count].copy()
        self._on_flush(self.chunk_index, positions, colors)
        self._count = 0
        self.chunk_index += 1
        self.points_flushed += count
        return True


@dataclass(slots=True)
class ScanStreamResult:
    """Counters describing how a scan was streamed."""

    chunks: int = 0
    points: int = 0
    invalid_points: int = 0
    skipped_records: int = 0


class ChunkedStreamer:
    """Stream every valid point of a scan to the sink in bounded chunks."""

    def __init__(
        self,
        sink: PointSink,
        *,
        entity_path_prefix: str,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self._sink = sink
        self._prefix = entity_path_prefix
        self.chunk_size = chunk_size

    def stream_scan(self, index: int, scan: ScanEntry) -> ScanStreamResult:
        """Stream one scan; ``IterationError`` from ``scan.points()`` propagates."""

        results = scan.points()
        result = ScanStreamResult()

        def emit(chunk_index: int, positions: np.ndarray, colors: np.ndarray) -> None:
            LOGGER.debug("Scan %s chunk %s: %s points", index, chunk_index, len(positions))
            self._sink.log_points(chunk_entity_path(self._prefix, index, chunk_index), positions, colors)

        with ChunkAccumulator(self.chunk_size, emit) as accumulator:
            for record in results:
                if isinstance(record, PointDecodeError):
                    LOGGER.warning("Skipping point due to error: %s", record)
                    result.skipped_records += 1
                    continue
                if record.cartesian is None:
                    result.invalid_points += 1
                    continue
                accumulator.append(record.cartesian, to_rgb8(record.color))

        result.chunks = accumulator.chunk_index
        result.points = accumulator.points_flushed
        return result
