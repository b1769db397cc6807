"""Mini README: Data model shared by point sources and the exporter.

Structure:
    * Transform - rigid-body pose declared by a scan (translation + quaternion).
    * PointRecord - one decoded point: optional valid XYZ and optional colour.
    * PointResult - a ``PointRecord`` or an in-stream ``PointDecodeError``.
    * ScanEntry - abstract scan exposing metadata and a lazy point stream.
    * PointSource - abstract multi-scan container, usable as a context manager.

Concrete sources (``pye57_reader``) subclass these bases so the exporter and
its tests never depend on the binary reader directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple, Union

from ..exceptions import PointDecodeError

Vector3 = Tuple[float, float, float]


@dataclass(slots=True, frozen=True)
class Transform:
    """Pose of a scan in the file's coordinate system."""

    translation: Vector3
    rotation: Tuple[float, float, float, float] = (1.0, 0.0, 0.0, 0.0)


@dataclass(slots=True)
class PointRecord:
    """A decoded point.

    ``cartesian`` is ``None`` when the file marks the coordinate as invalid or
    direction-only. ``color`` holds normalised channels in ``[0, 1]``.
    """

    cartesian: Optional[Vector3]
    color: Optional[Vector3] = None

    @property
    def is_valid(self) -> bool:
        return self.cartesian is not None


PointResult = Union[PointRecord, PointDecodeError]


class ScanEntry(ABC):
    """Base interface for a single scan inside a point source."""

    def __init__(
        self,
        index: int,
        *,
        record_count: int,
        has_cartesian: bool,
        transform: Optional[Transform] = None,
        name: Optional[str] = None,
    ) -> None:
        self.index = index
        self.record_count = record_count
        self.has_cartesian = has_cartesian
        self.transform = transform
        self.name = name

    @abstractmethod
    def points(self) -> Iterator[PointResult]:
        """Return a fresh single-pass stream of point results.

        Raises ``IterationError`` when the stream cannot be created.
        """

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(index={self.index}, records={self.record_count}, "
            f"cartesian={self.has_cartesian}, transform={self.transform is not None})"
        )


class PointSource(ABC):
    """Base interface for an opened multi-scan container."""

    @abstractmethod
    def scans(self) -> Sequence[ScanEntry]:
        """Return scans in file order; position in the sequence is the scan index."""

    def close(self) -> None:
        """Release the underlying file handle."""

    def __enter__(self) -> "PointSource":
        return self

    def __exit__(self, exc_type, exc, traceback) -> None:
        self.close()
