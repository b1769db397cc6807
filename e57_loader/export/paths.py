"""Entity path helpers shared by the marker and chunk writers."""

from __future__ import annotations


def scan_entity_path(prefix: str, index: int) -> str:
    return f"{prefix}/scan_{index}"


def chunk_entity_path(prefix: str, index: int, chunk_index: int) -> str:
    return f"{scan_entity_path(prefix, index)}/chunk_{chunk_index}"
