"""Mini README: E57 point source backed by ``pye57``.

Structure:
    * is_e57_file - checks whether a path is a regular ``.e57`` file.
    * E57Scan - ``ScanEntry`` reading one scan in fixed-size batches.
    * E57Source - ``PointSource`` wrapping an opened ``pye57.E57`` handle.

libE57 compressed-vector readers are forward-only. Each call to
``E57Scan.points`` builds a new reader over preallocated numpy buffers of
``read_batch_size`` records and yields records one at a time, so memory is
bounded by the batch size rather than the scan size. A failed batch read
cannot be resumed; it is reported as a single ``PointDecodeError`` and the
stream ends.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pye57

from ..configuration import DEFAULT_READ_BATCH_SIZE
from ..exceptions import IterationError, PointDecodeError, SourceOpenError
from ..logging_utils import get_logger
from .models import PointRecord, PointResult, PointSource, ScanEntry, Transform

LOGGER = get_logger(__name__)

E57_EXTENSION = ".e57"
CARTESIAN_FIELDS = ("cartesianX", "cartesianY", "cartesianZ")
COLOR_FIELDS = ("colorRed", "colorGreen", "colorBlue")
CARTESIAN_INVALID_FIELD = "cartesianInvalidState"
COLOR_INVALID_FIELD = "isColorInvalid"
OPTIONAL_FIELDS = (CARTESIAN_INVALID_FIELD, COLOR_INVALID_FIELD)
DEFAULT_COLOR_LIMITS = (0.0, 255.0)

E57Error = pye57.libe57.E57Exception


def is_e57_file(path: Path) -> bool:
    """Return True for an existing regular file with a case-insensitive ``.e57`` suffix."""

    return path.is_file() and path.suffix.lower() == E57_EXTENSION


def _node_value(node, name: str) -> Optional[float]:
    if not node.isDefined(name):
        return None
    return float(node[name].value())


def _color_limits(header) -> Tuple[np.ndarray, np.ndarray]:
    """Return per-channel (minimum, span) used to normalise raw colour values."""

    minimum = np.full(3, DEFAULT_COLOR_LIMITS[0])
    maximum = np.full(3, DEFAULT_COLOR_LIMITS[1])
    if header.node.isDefined("colorLimits"):
        limits = header["colorLimits"]
        for channel, colour in enumerate(("Red", "Green", "Blue")):
            low = _node_value(limits, f"color{colour}Minimum")
            high = _node_value(limits, f"color{colour}Maximum")
            if low is not None:
                minimum[channel] = low
            if high is not None:
                maximum[channel] = high
    span = maximum - minimum
    span[span == 0] = 1.0
    return minimum, span


def _components(node, name: str, axes: str, defaults: Tuple[float, ...]) -> Tuple[float, ...]:
    if not node.isDefined(name):
        return defaults
    child = node[name]
    return tuple(
        default if value is None else value
        for value, default in zip((_node_value(child, axis) for axis in axes), defaults)
    )


def _transform(header) -> Optional[Transform]:
    if not header.node.isDefined("pose"):
        return None
    pose = header["pose"]
    translation = _components(pose, "translation", "xyz", (0.0, 0.0, 0.0))
    rotation = _components(pose, "rotation", "wxyz", (1.0, 0.0, 0.0, 0.0))
    return Transform(translation=translation, rotation=rotation)


def _scan_name(header) -> Optional[str]:
    if not header.node.isDefined("name"):
        return None
    return str(header["name"].value())


class E57Scan(ScanEntry):
    """A scan of an opened E57 file."""

    def __init__(self, e57: pye57.E57, index: int, header, *, read_batch_size: int) -> None:
        fields = set(header.point_fields)
        super().__init__(
            index,
            record_count=int(header.point_count),
            has_cartesian=all(field in fields for field in CARTESIAN_FIELDS),
            transform=_transform(header),
            name=_scan_name(header),
        )
        self._e57 = e57
        self._header = header
        self._read_batch_size = read_batch_size
        self._has_color = all(field in fields for field in COLOR_FIELDS)
        self._fields: List[str] = list(CARTESIAN_FIELDS)
        if CARTESIAN_INVALID_FIELD in fields:
            self._fields.append(CARTESIAN_INVALID_FIELD)
        if self._has_color:
            self._fields.extend(COLOR_FIELDS)
            if COLOR_INVALID_FIELD in fields:
                self._fields.append(COLOR_INVALID_FIELD)
            self._color_minimum, self._color_span = _color_limits(header)

    def points(self) -> Iterator[PointResult]:
        capacity = max(1, min(self._read_batch_size, self.record_count))
        data: Dict[str, np.ndarray] = {}
        try:
            buffers = pye57.libe57.VectorSourceDestBuffer()
            for field in self._fields:
                try:
                    array, buffer = self._make_buffer(field, capacity)
                except ValueError:
                    if field not in OPTIONAL_FIELDS:
                        raise
                    LOGGER.debug("Field %s unsupported by pye57; treating all values as valid", field)
                    continue
                data[field] = array
                buffers.append(buffer)
            reader = self._header.points.reader(buffers)
        except (E57Error, ValueError) as error:
            raise IterationError(self.index) from error
        LOGGER.debug("Reading scan %s in batches of %s records", self.index, capacity)
        return self._iterate(reader, data)

    def _make_buffer(self, field: str, capacity: int):
        """Colour channels are read as float64 so 16-bit colour limits stay representable."""

        if field in COLOR_FIELDS:
            array = np.empty(capacity, dtype=np.float64)
            buffer = pye57.libe57.SourceDestBuffer(self._e57.image_file, field, array, capacity, True, True)
            return array, buffer
        return self._e57.make_buffer(field, capacity)

    def _iterate(self, reader, data: Dict[str, np.ndarray]) -> Iterator[PointResult]:
        offset = 0
        try:
            while True:
                try:
                    count = reader.read()
                except E57Error as error:
                    yield PointDecodeError(
                        f"scan {self.index} record {offset}: {error}", record_index=offset
                    )
                    return
                if count == 0:
                    return
                yield from self._decode_batch(data, count)
                offset += count
        finally:
            reader.close()

    def _decode_batch(self, data: Dict[str, np.ndarray], count: int) -> Iterator[PointRecord]:
        x, y, z = (data[field][:count] for field in CARTESIAN_FIELDS)
        valid = np.isfinite(x) & np.isfinite(y) & np.isfinite(z)
        if CARTESIAN_INVALID_FIELD in data:
            valid &= data[CARTESIAN_INVALID_FIELD][:count] == 0
        xyz = np.column_stack((x, y, z)).tolist()
        valid_flags = valid.tolist()

        if not self._has_color:
            for position, is_valid in zip(xyz, valid_flags):
                yield PointRecord(cartesian=tuple(position) if is_valid else None)
            return

        raw = np.column_stack([data[field][:count] for field in COLOR_FIELDS]).astype(np.float64)
        rgb = np.clip((raw - self._color_minimum) / self._color_span, 0.0, 1.0).tolist()
        if COLOR_INVALID_FIELD in data:
            color_flags = (data[COLOR_INVALID_FIELD][:count] == 0).tolist()
        else:
            color_flags = [True] * count
        for position, is_valid, color, has_color in zip(xyz, valid_flags, rgb, color_flags):
            yield PointRecord(
                cartesian=tuple(position) if is_valid else None,
                color=tuple(color) if has_color else None,
            )


class E57Source(PointSource):
    """Opened E57 file exposing its scans in file order."""

    def __init__(self, e57: pye57.E57, path: Path, *, read_batch_size: int = DEFAULT_READ_BATCH_SIZE) -> None:
        self._e57 = e57
        self.path = path
        self._read_batch_size = read_batch_size
        self._scans: Optional[List[E57Scan]] = None

    @classmethod
    def open(cls, path: Path, *, read_batch_size: int = DEFAULT_READ_BATCH_SIZE) -> "E57Source":
        """Open ``path`` for reading, raising ``SourceOpenError`` on failure."""

        try:
            e57 = pye57.E57(str(path), mode="r")
        except (E57Error, OSError, RuntimeError) as error:
            raise SourceOpenError(path) from error
        LOGGER.info("Opened %s with %s scans", path, e57.scan_count)
        return cls(e57, path, read_batch_size=read_batch_size)

    def scans(self) -> Sequence[ScanEntry]:
        if self._scans is None:
            try:
                self._scans = [
                    E57Scan(self._e57, index, self._e57.get_header(index), read_batch_size=self._read_batch_size)
                    for index in range(self._e57.scan_count)
                ]
            except E57Error as error:
                raise SourceOpenError(self.path, "Failed to read scan headers") from error
        return self._scans

    def close(self) -> None:
        LOGGER.debug("Closing %s", self.path)
        self._e57.close()
