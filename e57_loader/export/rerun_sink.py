"""Mini README: Rerun recording stream used as the point sink.

Structure:
    * RecordingOptions - identity and timeline arguments passed by the viewer.
    * parse_timeline_overrides - turns ``name=value`` CLI pairs into tuples.
    * RerunSink - ``PointSink`` that logs ``rerun.Points3D`` records.

The viewer launches external loaders with recommended application and
recording ids and reads the recording from the loader's stdout, so the sink
always streams to stdout.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

import numpy as np
import rerun as rr

from ..configuration import DEFAULT_APPLICATION_ID
from ..exceptions import SinkError
from ..logging_utils import get_logger
from .sink import PointSink

LOGGER = get_logger(__name__)

DEFAULT_TIMELINE = "default"

T = TypeVar("T")


@dataclass(slots=True)
class RecordingOptions:
    """Recording identity and timepoint for one loader run."""

    application_id: str = DEFAULT_APPLICATION_ID
    recording_id: Optional[str] = None
    static: bool = False
    times: Sequence[str] = field(default_factory=tuple)
    sequences: Sequence[str] = field(default_factory=tuple)


def parse_timeline_overrides(values: Sequence[str], convert: Callable[[str], T]) -> List[Tuple[str, T]]:
    """Parse ``timeline=value`` pairs, warning about and dropping malformed ones."""

    parsed: List[Tuple[str, T]] = []
    for value in values:
        name, separator, raw = value.partition("=")
        name = name.strip()
        if not separator or not name:
            LOGGER.warning("Ignoring timeline override without '=': %s", value)
            continue
        try:
            parsed.append((name, convert(raw.strip())))
        except ValueError:
            LOGGER.warning("Invalid time value: %s", value)
    return parsed


class RerunSink(PointSink):
    """Log point batches to a Rerun recording stream."""

    def __init__(self, stream: rr.RecordingStream, *, static: bool = False) -> None:
        self._stream = stream
        self._static = static

    @classmethod
    def to_stdout(cls, options: RecordingOptions) -> "RerunSink":
        """Create a recording streaming to stdout with the run's timepoint applied."""

        try:
            stream = rr.RecordingStream(options.application_id, recording_id=options.recording_id)
            stream.stdout()
        except Exception as error:
            raise SinkError(f"Unable to open Rerun stdout stream for '{options.application_id}'") from error
        LOGGER.debug(
            "Recording stream '%s' (recording id %s) connected to stdout",
            options.application_id,
            options.recording_id or "auto",
        )
        sink = cls(stream, static=options.static)
        sink.set_timepoint(
            times=parse_timeline_overrides(options.times, float),
            sequences=parse_timeline_overrides(options.sequences, int),
        )
        return sink

    def set_timepoint(
        self,
        *,
        times: Sequence[Tuple[str, float]] = (),
        sequences: Sequence[Tuple[str, int]] = (),
    ) -> None:
        """Tag subsequent records with logical time 0 plus any overrides."""

        self._stream.set_time(DEFAULT_TIMELINE, duration=0.0)
        for timeline, seconds in times:
            self._stream.set_time(timeline, timestamp=seconds)
        for timeline, index in sequences:
            self._stream.set_time(timeline, sequence=index)

    def log_points(
        self,
        entity_path: str,
        positions: np.ndarray,
        colors: np.ndarray,
        *,
        radii: Optional[Sequence[float]] = None,
        labels: Optional[Sequence[str]] = None,
    ) -> None:
        archetype = rr.Points3D(positions, colors=colors, radii=radii, labels=labels)
        try:
            self._stream.log(entity_path, archetype, static=self._static)
        except Exception as error:
            raise SinkError(f"Failed to log {entity_path}") from error

    def close(self) -> None:
        LOGGER.debug("Flushing Rerun recording stream")
        self._stream.flush()
