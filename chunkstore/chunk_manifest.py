"""ChunkRecord sidecars: per-chunk metadata stored next to the chunk bytes.

A chunk of upload session ``<content_hash>`` lives at
``<content_hash>/<chunk_hash>-<index>``; its record lives at
``<content_hash>/<chunk_hash>-<index>.json``. The name alone is enough to
recover the index, the sidecar adds the size and SHA-256 checksum so the
merge can verify what it concatenates.
"""

import json
import os
import re
import uuid
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional, Tuple

from common.constants import (
    CHUNK_NAME_SEPARATOR,
    CHUNK_SIDECAR_SUFFIX,
    CHUNK_TEMP_SUFFIX,
    MAX_KEY_LENGTH,
)
from common.logging_config import get_logger
from chunkstore.exceptions import InvalidChunkKeyError

logger = get_logger(__name__)

KEY_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")
CHUNK_NAME_PATTERN = re.compile(r"^(?P<chunk_hash>.+)" + re.escape(CHUNK_NAME_SEPARATOR) + r"(?P<index>\d+)$")


@dataclass(frozen=True)
class ChunkRecord:
    """
    Metadata for one stored chunk of an upload session.
    """
    index: int
    chunk_hash: str
    size: int
    checksum: str = ""

    @property
    def name(self) -> str:
        return chunk_name(self.chunk_hash, self.index)


def validate_key(value: str, field: str) -> str:
    """
    Ensure a content hash or chunk hash is usable as a single path segment.

    Raises:
        InvalidChunkKeyError: If the value is empty, too long or unsafe
    """
    if not value:
        raise InvalidChunkKeyError(f"{field} must not be empty")
    if len(value) > MAX_KEY_LENGTH:
        raise InvalidChunkKeyError(f"{field} exceeds {MAX_KEY_LENGTH} characters")
    if not KEY_PATTERN.match(value):
        raise InvalidChunkKeyError(f"{field} contains unsupported characters: {value!r}")
    return value


def chunk_name(chunk_hash: str, index: int) -> str:
    return f"{chunk_hash}{CHUNK_NAME_SEPARATOR}{index}"


def parse_chunk_name(name: str) -> Optional[Tuple[str, int]]:
    """
    Recover (chunk_hash, index) from a stored chunk name.

    Returns:
        Tuple of chunk hash and index, or None for sidecars, temporary files
        and anything else not following the naming convention
    """
    if name.startswith(".") or name.endswith(CHUNK_SIDECAR_SUFFIX) or name.endswith(CHUNK_TEMP_SUFFIX):
        return None
    match = CHUNK_NAME_PATTERN.match(name)
    if match is None:
        return None
    index = match.group("index")
    # only canonical indices; "abc-007" would not round-trip through chunk_name()
    if index != str(int(index)):
        return None
    return match.group("chunk_hash"), int(index)


def sidecar_path(chunk_path: Path) -> Path:
    return chunk_path.with_name(chunk_path.name + CHUNK_SIDECAR_SUFFIX)


def temp_path_for(target: Path) -> Path:
    """Unique hidden temporary name in the same directory as ``target``."""
    return target.with_name(f".{target.name}.{uuid.uuid4().hex}{CHUNK_TEMP_SUFFIX}")


def discard_temp(path: Path) -> None:
    """Best-effort removal of a temporary file left by a failed write."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.debug(f"Could not remove temporary file {path}: {e}")


def write_sidecar(chunk_path: Path, record: ChunkRecord) -> None:
    """
    Atomically write the record for ``chunk_path``.

    Raises:
        OSError: If write operation fails
    """
    target = sidecar_path(chunk_path)
    tmp = temp_path_for(target)
    try:
        with open(tmp, "w") as f:
            json.dump(asdict(record), f)
        os.replace(tmp, target)
    except OSError:
        discard_temp(tmp)
        raise


def read_sidecar(chunk_path: Path) -> Optional[ChunkRecord]:
    """
    Load the record stored next to ``chunk_path``.

    Returns:
        ChunkRecord, or None if the sidecar is missing or unreadable
    """
    path = sidecar_path(chunk_path)
    try:
        with open(path, "r") as f:
            data = json.load(f)
        return ChunkRecord(
            index=int(data["index"]),
            chunk_hash=str(data["chunk_hash"]),
            size=int(data["size"]),
            checksum=str(data.get("checksum", "")),
        )
    except FileNotFoundError:
        return None
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.warning(f"Ignoring unreadable chunk sidecar {path}: {e}")
        return None
