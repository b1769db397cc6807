"""Mini README: Entry point CLI for the ``rerun-loader-e57`` external data loader.

The Rerun viewer runs every ``rerun-loader-*`` executable on ``PATH`` with the
file being opened plus recommended recording arguments. Files that are not
regular ``.e57`` files are declined with Rerun's "incompatible" exit code so
the viewer can try another loader. Otherwise the recording is written to
stdout and diagnostics go to stderr.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import rerun as rr
import typer
from pydantic import ValidationError

from e57_loader.configuration import get_settings
from e57_loader.exceptions import LoaderError, format_error_chain
from e57_loader.export import PointCloudExporter
from e57_loader.export.rerun_sink import RecordingOptions, RerunSink
from e57_loader.logging_utils import configure_root_logger, get_logger
from e57_loader.source.pye57_reader import E57Source, is_e57_file

LOGGER = get_logger("e57_loader.cli")

cli = typer.Typer(help="Load E57 point clouds and stream them to Rerun.", add_completion=False)


@cli.command()
def load(
    filepath: Path = typer.Argument(..., help="E57 file to load."),
    application_id: Optional[str] = typer.Option(None, help="Optional recommended ID for the application."),
    opened_application_id: Optional[str] = typer.Option(
        None, help="Optional recommended ID for the application for existing applications."
    ),
    recording_id: Optional[str] = typer.Option(None, help="Optional recommended ID for the recording."),
    opened_recording_id: Optional[str] = typer.Option(
        None, help="Optional recommended ID for the recording for existing applications."
    ),
    entity_path_prefix: Optional[str] = typer.Option(None, help="Optional prefix for all entity paths."),
    static: bool = typer.Option(False, "--static", help="Optionally mark data to be logged statically."),
    time: List[str] = typer.Option([], help="Optional timestamps to log at (e.g. --time sim_time=1709203426)."),
    sequence: List[str] = typer.Option([], help="Optional sequences to log at (e.g. --sequence sim_frame=42)."),
) -> None:
    """Stream every eligible scan of FILEPATH to stdout as a Rerun recording."""

    if not is_e57_file(filepath):
        raise typer.Exit(code=rr.EXTERNAL_DATA_LOADER_INCOMPATIBLE_EXIT_CODE)

    try:
        settings = get_settings()
    except ValidationError as error:
        LOGGER.error("Error: Invalid loader configuration\nCaused by: %s", error)
        raise typer.Exit(code=1) from error
    configure_root_logger(settings.log_level)

    options = RecordingOptions(
        application_id=opened_application_id or application_id or settings.application_id,
        recording_id=recording_id or opened_recording_id,
        static=static,
        times=time,
        sequences=sequence,
    )
    prefix = (entity_path_prefix or "").strip().rstrip("/") or settings.entity_path_prefix

    try:
        with E57Source.open(filepath, read_batch_size=settings.read_batch_size) as source:
            with RerunSink.to_stdout(options) as sink:
                exporter = PointCloudExporter(
                    sink,
                    entity_path_prefix=prefix,
                    chunk_size=settings.chunk_size,
                    allowed_scans=settings.allowed_scans(),
                )
                summary = exporter.export(source)
    except LoaderError as error:
        LOGGER.error("Error: %s", format_error_chain(error))
        raise typer.Exit(code=1) from error

    LOGGER.info(
        "Exported %s of %s scans from %s: %s points in %s chunks",
        len(summary.exported_scans),
        summary.scans_total,
        filepath,
        summary.points,
        summary.chunks,
    )
    LOGGER.debug("Export summary: %s", summary.as_dict())


if __name__ == "__main__":
    cli()
