"""Mini README: Centralised configuration for the E57 loader.

Structure:
    * LoaderSettings - Pydantic settings model read from ``RERUN_E57_*`` variables.
    * parse_scan_allow_list - tolerant parser for comma separated scan indices.
    * get_settings - cached accessor for environment-aware settings.

Usage:
    The CLI reads ``get_settings()`` once and passes plain values (prefix,
    chunk size, allow-list) into the exporter. Nothing below the CLI reads the
    environment, so the exporter can be driven directly from tests.
"""

from __future__ import annotations

from functools import lru_cache
from typing import FrozenSet, Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings

DEFAULT_APPLICATION_ID = "rerun_e57_loader"
DEFAULT_ENTITY_PATH_PREFIX = "e57_pointcloud"
DEFAULT_CHUNK_SIZE = 1_000_000
DEFAULT_READ_BATCH_SIZE = 65_536


def parse_scan_allow_list(raw: Optional[str]) -> Optional[FrozenSet[int]]:
    """Parse ``"0, 2,5"`` into ``{0, 2, 5}``; malformed entries are dropped.

    ``None`` means no restriction. An empty or fully malformed string yields an
    empty set, which excludes every scan.
    """

    if raw is None:
        return None
    indices = set()
    for token in raw.split(","):
        token = token.strip()
        if token.startswith("+"):
            token = token[1:]
        if token.isascii() and token.isdigit():
            indices.add(int(token))
    return frozenset(indices)


class LoaderSettings(BaseSettings):
    """Runtime configuration for the E57 loader."""

    application_id: str = Field(
        DEFAULT_APPLICATION_ID,
        description="Application id used when the viewer does not recommend one.",
    )
    entity_path_prefix: str = Field(
        DEFAULT_ENTITY_PATH_PREFIX,
        description="Root of every entity path written by the loader.",
    )
    display_scans: Optional[str] = Field(
        None,
        description=(
            "Comma separated zero-based scan indices to export."
            " Leave unset to export every scan with XYZ data."
        ),
    )
    chunk_size: int = Field(
        DEFAULT_CHUNK_SIZE,
        description="Maximum number of points sent in a single Points3D record.",
        ge=1,
    )
    read_batch_size: int = Field(
        DEFAULT_READ_BATCH_SIZE,
        description="Number of records decoded from the E57 file per read call.",
        ge=1,
    )
    log_level: str = Field(
        "INFO",
        description="Logging level for diagnostics written to stderr.",
    )

    class Config:
        env_prefix = "RERUN_E57_"
        env_file = ".env"
        case_sensitive = False

    @validator("entity_path_prefix")
    def _strip_prefix(cls, value: str) -> str:
        """Entity paths are joined with ``/`` so trailing separators are dropped."""

        stripped = value.strip().rstrip("/")
        if not stripped:
            raise ValueError("entity_path_prefix must not be empty")
        return stripped

    @validator("log_level")
    def _normalise_level(cls, value: str) -> str:
        return value.strip().upper()

    def allowed_scans(self) -> Optional[FrozenSet[int]]:
        """Return the parsed scan allow-list, or ``None`` when unrestricted."""

        return parse_scan_allow_list(self.display_scans)


@lru_cache()
def get_settings() -> LoaderSettings:
    """Return cached settings, ensuring consistent configuration across modules."""

    return LoaderSettings()
