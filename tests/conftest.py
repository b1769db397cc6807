"""Mini README: Shared in-memory fakes for exporter tests.

Structure:
    * FakeScan - ``ScanEntry`` yielding a prepared list (or generator factory) of results.
    * FakeSource - ``PointSource`` over a list of fake scans.
    * RecordingSink - ``PointSink`` remembering every logged batch in order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional, Sequence

import numpy as np
import pytest

from e57_loader.exceptions import IterationError
from e57_loader.export.sink import PointSink
from e57_loader.source.models import PointResult, PointSource, ScanEntry, Transform


class FakeScan(ScanEntry):
    def __init__(
        self,
        records: Optional[Sequence[PointResult]] = None,
        *,
        index: int = 0,
        record_count: Optional[int] = None,
        has_cartesian: bool = True,
        transform: Optional[Transform] = None,
        factory: Optional[Callable[[], Iterable[PointResult]]] = None,
        fail: bool = False,
        name: Optional[str] = None,
    ) -> None:
        records = list(records or [])
        super().__init__(
            index,
            record_count=len(records) if record_count is None else record_count,
            has_cartesian=has_cartesian,
            transform=transform,
            name=name,
        )
        self._records = records
        self._factory = factory
        self._fail = fail
        self.points_calls = 0

    def points(self) -> Iterator[PointResult]:
        self.points_calls += 1
        if self._fail:
            raise IterationError(self.index)
        if self._factory is not None:
            return iter(self._factory())
        return iter(self._records)


class FakeSource(PointSource):
    def __init__(self, scans: Sequence[ScanEntry]) -> None:
        self._scans = list(scans)
        self.closed = False

    def scans(self) -> Sequence[ScanEntry]:
        return self._scans

    def close(self) -> None:
        self.closed = True


@dataclass
class LoggedBatch:
    entity_path: str
    positions: np.ndarray
    colors: np.ndarray
    radii: Optional[List[float]] = None
    labels: Optional[List[str]] = None


class RecordingSink(PointSink):
    def __init__(self) -> None:
        self.batches: List[LoggedBatch] = []
        self.closed = False

    def log_points(self, entity_path, positions, colors, *, radii=None, labels=None) -> None:
        assert len(positions) == len(colors)
        self.batches.append(
            LoggedBatch(
                entity_path=entity_path,
                positions=positions,
                colors=colors,
                radii=list(radii) if radii is not None else None,
                labels=list(labels) if labels is not None else None,
            )
        )

    def close(self) -> None:
        self.closed = True

    @property
    def paths(self) -> List[str]:
        return [batch.entity_path for batch in self.batches]


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_scan() -> Callable[..., FakeScan]:
    return FakeScan


@pytest.fixture
def make_source() -> Callable[[Sequence[ScanEntry]], FakeSource]:
    return FakeSource
