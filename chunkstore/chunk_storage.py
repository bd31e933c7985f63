"""Manages in-progress upload sessions on disk: chunk write, list, read and delete."""

import io
import os
import shutil
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Union

from common.constants import CHUNK_SIDECAR_SUFFIX, DEFAULT_CHUNK_STORAGE_PATH, STREAM_PIECE_SIZE_BYTES
from common.logging_config import get_logger
from chunkstore.checksum_validator import IncrementalChecksumCalculator
from chunkstore.chunk_manifest import (
    ChunkRecord,
    chunk_name,
    discard_temp,
    parse_chunk_name,
    read_sidecar,
    temp_path_for,
    validate_key,
    write_sidecar,
)
from chunkstore.exceptions import InvalidChunkKeyError, StorageReadError, StorageWriteError

logger = get_logger(__name__)

CHUNKS_DIR = Path(os.environ.get("UPLOAD_CHUNK_DIR", DEFAULT_CHUNK_STORAGE_PATH))

ChunkPayload = Union[bytes, bytearray, BinaryIO]


class ChunkStore:
    """
    Filesystem layout for upload sessions.

    Every content hash owns one directory under ``root``; the directory is the
    session and exists only while chunks for that hash are being collected.
    """

    def __init__(self, root: Optional[Path] = None):
        """
        Args:
            root: Directory holding one sub-directory per content hash
                  (default: UPLOAD_CHUNK_DIR env var or ./data/chunks)
        """
        self.root = Path(root) if root is not None else CHUNKS_DIR

    def session_path(self, content_hash: str) -> Path:
        """
        Get the directory holding the chunks of ``content_hash``.

        Raises:
            InvalidChunkKeyError: If the hash is not a safe path segment
        """
        return self.root / validate_key(content_hash, "content hash")

    def session_exists(self, content_hash: str) -> bool:
        return self.session_path(content_hash).is_dir()

    def list_uploaded_indices(self, content_hash: str) -> Iterator[int]:
        """
        Iterate over the chunk indices already stored for ``content_hash``.

        A missing session yields nothing. Each call returns a fresh iterator;
        indices come in directory order and each appears once.
        """
        session_dir = self.session_path(content_hash)
        return self._iter_indices(session_dir)

    def _iter_indices(self, session_dir: Path) -> Iterator[int]:
        seen = set()
        for _, _, index in self._scan(session_dir):
            if index not in seen:
                seen.add(index)
                yield index

    def _scan(self, session_dir: Path) -> Iterator[tuple]:
        """Yield (entry name, chunk hash, index) for every entry following the naming convention."""
        try:
            entries = list(os.scandir(session_dir))
        except FileNotFoundError:
            return
        except NotADirectoryError:
            logger.warning(f"Session path {session_dir} is not a directory")
            return

        for entry in entries:
            parsed = parse_chunk_name(entry.name)
            if parsed is None:
                if not entry.name.startswith(".") and not entry.name.endswith(CHUNK_SIDECAR_SUFFIX):
                    logger.debug(f"Skipping unrecognised entry {entry.name} in {session_dir}")
                continue
            yield entry.name, parsed[0], parsed[1]

    def list_chunks(self, content_hash: str) -> List[ChunkRecord]:
        """
        Describe every chunk stored for ``content_hash``.

        The sidecar record is used when it agrees with the stored name and
        size; otherwise the record is derived from the name and carries no
        checksum.

        Returns:
            List of ChunkRecord in directory order (empty if no session)
        """
        session_dir = self.session_path(content_hash)
        records = []

        for name, chunk_hash, index in self._scan(session_dir):
            path = session_dir / name
            try:
                size = path.stat().st_size
            except FileNotFoundError:
                continue

            sidecar = read_sidecar(path)
            if sidecar is not None and sidecar.index == index and sidecar.chunk_hash == chunk_hash:
                if sidecar.size == size:
                    records.append(sidecar)
                    continue
                logger.warning(
                    f"Sidecar size mismatch for {content_hash}/{name}: recorded {sidecar.size}, on disk {size}"
                )
            records.append(ChunkRecord(index=index, chunk_hash=chunk_hash, size=size))

        return records

    def store_chunk(self, content_hash: str, index: int, chunk_hash: str, data: ChunkPayload) -> ChunkRecord:
        """
        Store one chunk of an upload session.

        The payload is streamed into a private temporary file inside the
        session directory and then renamed over ``<chunk_hash>-<index>``, so
        concurrent writers never see each other's partial bytes and a retried
        upload simply replaces the previous copy.

        Args:
            content_hash: Hash of the complete file (session key)
            index: Zero-based position of the chunk in the file
            chunk_hash: Client-side identifier of the chunk content
            data: Raw bytes or a readable binary stream

        Returns:
            ChunkRecord describing the stored chunk

        Raises:
            InvalidChunkKeyError: If a hash is unusable or index is negative
            StorageWriteError: If the chunk cannot be written
        """
        session_dir = self.session_path(content_hash)
        validate_key(chunk_hash, "chunk hash")
        if index < 0:
            raise InvalidChunkKeyError(f"chunk index must be >= 0, got {index}")

        stream = io.BytesIO(data) if isinstance(data, (bytes, bytearray)) else data
        target = session_dir / chunk_name(chunk_hash, index)
        tmp = temp_path_for(target)
        calculator = IncrementalChecksumCalculator()

        try:
            session_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp, "wb") as f:
                while True:
                    piece = stream.read(STREAM_PIECE_SIZE_BYTES)
                    if not piece:
                        break
                    calculator.update(piece)
                    f.write(piece)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, target)

            record = ChunkRecord(
                index=index,
                chunk_hash=chunk_hash,
                size=calculator.bytes_seen,
                checksum=calculator.finalize(),
            )
            write_sidecar(target, record)
        except OSError as e:
            discard_temp(tmp)
            logger.error(f"Failed to store chunk {index} of {content_hash}: {e}")
            raise StorageWriteError(f"Failed to store chunk {index} of {content_hash}: {e}") from e

        logger.debug(f"Stored chunk {record.name} ({record.size} bytes) for {content_hash}")
        return record

    def read_chunk_streaming(
        self,
        content_hash: str,
        record: ChunkRecord,
        piece_size: int = STREAM_PIECE_SIZE_BYTES,
    ) -> Iterator[bytes]:
        """
        Stream a stored chunk in pieces.

        Raises:
            StorageReadError: If the chunk cannot be opened or read
        """
        path = self.session_path(content_hash) / record.name
        try:
            with open(path, "rb") as f:
                while True:
                    piece = f.read(piece_size)
                    if not piece:
                        break
                    yield piece
        except OSError as e:
            raise StorageReadError(f"Failed to read chunk {record.name} of {content_hash}: {e}") from e

    def delete_session(self, content_hash: str) -> bool:
        """
        Remove the session directory and everything in it.

        Returns:
            True if a session was removed, False if none existed

        Raises:
            StorageWriteError: If the directory exists but cannot be removed
        """
        session_dir = self.session_path(content_hash)
        try:
            shutil.rmtree(session_dir)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageWriteError(f"Failed to delete session {content_hash}: {e}") from e
        logger.debug(f"Deleted upload session {content_hash}")
        return True
