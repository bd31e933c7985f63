"""Utility functions for CLI operations."""

import math
import sys
from pathlib import Path
from typing import Iterator, Tuple

from chunkstore.checksum_validator import compute_checksum, compute_stream_checksum
from cli.constants import GREEN, RESET

_SIZE_SUFFIXES = {"k": 1024, "m": 1024 ** 2, "g": 1024 ** 3}


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"


def parse_size(text: str) -> int:
    """
    Parse a byte count such as "4096", "512k" or "5MiB".

    Raises:
        ValueError: If the text is not a positive size
    """
    value = text.strip().lower()
    for suffix in ("ib", "b"):
        if value.endswith(suffix) and len(value) > len(suffix):
            value = value[:-len(suffix)]
            break
    multiplier = 1
    if value and value[-1] in _SIZE_SUFFIXES:
        multiplier = _SIZE_SUFFIXES[value[-1]]
        value = value[:-1]
    size = int(value) * multiplier
    if size <= 0:
        raise ValueError(f"size must be positive: {text}")
    return size


def compute_file_hash(file_path: Path) -> str:
    """SHA-256 of the whole file; used as the content hash."""
    with open(file_path, 'rb') as f:
        return compute_stream_checksum(f)


def chunk_count(file_size: int, chunk_size: int) -> int:
    return math.ceil(file_size / chunk_size)


def read_chunk(file_path: Path, index: int, chunk_size: int) -> Tuple[str, bytes]:
    """
    Read chunk ``index`` of a file.

    Returns:
        Tuple of (chunk hash, chunk bytes)
    """
    with open(file_path, 'rb') as f:
        f.seek(index * chunk_size)
        data = f.read(chunk_size)
    return compute_checksum(data), data


def iter_missing_chunks(total: int, uploaded: set) -> Iterator[int]:
    for index in range(total):
        if index not in uploaded:
            yield index


def show_progress(filename: str, done_bytes: int, total_bytes: int) -> None:
    """Write a single-line progress indicator to stdout."""
    progress = (done_bytes / total_bytes) * 100 if total_bytes else 100.0
    sys.stdout.write(
        f"\rUploading {filename}: {format_file_size(done_bytes)} / {format_file_size(total_bytes)} "
        f"({GREEN}{progress:.1f}%{RESET})"
    )
    sys.stdout.flush()


def finish_progress() -> None:
    sys.stdout.write('\n')
    sys.stdout.flush()
