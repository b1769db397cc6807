"""Mini README: Abstract destination for point records.

Structure:
    * PointSink - interface the exporter writes to; a context manager whose
      exit flushes and releases the underlying connection.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

import numpy as np


class PointSink(ABC):
    """Base interface for visualization sinks."""

    @abstractmethod
    def log_points(
        self,
        entity_path: str,
        positions: np.ndarray,
        colors: np.ndarray,
        *,
        radii: Optional[Sequence[float]] = None,
        labels: Optional[Sequence[str]] = None,
    ) -> None:
        """Write one batch of points (``float32`` N x 3) with ``uint8`` N x 3 colours."""

    def close(self) -> None:
        """Flush pending data and release the connection."""

    def __enter__(self) -> "PointSink":
        return self

    def __exit__(self, exc_type, exc, traceback) -> None:
        self.close()
