"""Reassembly of uploaded chunks into a final artifact."""

from enum import Enum
from typing import BinaryIO, List, Optional

from chunkstore.checksum_validator import IncrementalChecksumCalculator
from chunkstore.chunk_manifest import ChunkRecord
from chunkstore.chunk_storage import ChunkStore
from common.logging_config import get_logger
from uploader.artifacts import ArtifactStore
from uploader.exceptions import (
    ChunkStoreError,
    DuplicateContentError,
    SessionIncompleteError,
    SessionNotFoundError,
    StorageReadError,
    StorageWriteError,
    UploadException,
)
from uploader.locks import KeyedLock
from uploader.repositories.file_repository import FileRepository
from uploader.types import FileRecordView
from uploader.utils import get_current_timestamp

logger = get_logger(__name__)


class MergeState(str, Enum):
    VALIDATING = "validating"
    ASSEMBLING = "assembling"
    PERSISTING = "persisting"
    CLEANING = "cleaning"
    DONE = "done"
    FAILED = "failed"


class MergeEngine:
    """
    Turns a complete upload session into one stored file and one file record.

    Merges of the same content hash are serialised; at most one record per
    hash is ever created and the session is removed once it is recorded.
    """

    def __init__(
        self,
        chunk_store: ChunkStore,
        artifact_store: ArtifactStore,
        file_repo: Optional[FileRepository] = None,
        locks: Optional[KeyedLock] = None,
    ):
        self.chunk_store = chunk_store
        self.artifact_store = artifact_store
        self.file_repo = file_repo or FileRepository()
        self.locks = locks or KeyedLock()

    def merge(
        self,
        content_hash: str,
        original_name: str,
        declared_size: int,
        mime_type: str,
        total_chunks: Optional[int] = None,
    ) -> FileRecordView:
        """
        Assemble and record the file uploaded under ``content_hash``.

        Args:
            content_hash: Session key
            original_name: Client-side file name (kept on the record, extension reused)
            declared_size: Expected total size in bytes
            mime_type: Content type stored on the record
            total_chunks: Expected chunk count, checked when given

        Returns:
            FileRecordView of the created record

        Raises:
            DuplicateContentError: A record for this hash already exists
            SessionNotFoundError: No chunks were uploaded for this hash
            SessionIncompleteError: Chunks do not cover the declared file
            StorageReadError: A chunk could not be read or failed its checksum
            StorageWriteError: The artifact could not be written
            PersistenceError: The record could not be stored
        """
        with self.locks.hold(content_hash):
            state = MergeState.VALIDATING
            try:
                self._log_state(content_hash, state)
                ordered = self._validate(content_hash, declared_size, total_chunks)

                state = MergeState.ASSEMBLING
                self._log_state(content_hash, state)
                filename, path = self._assemble(content_hash, original_name, ordered)

                state = MergeState.PERSISTING
                self._log_state(content_hash, state)
                try:
                    record = self.file_repo.create_file(
                        filename=filename,
                        original_name=original_name,
                        mime_type=mime_type,
                        size=declared_size,
                        storage_path=str(path),
                        public_url=self.artifact_store.public_url(filename),
                        created_at=get_current_timestamp(),
                        content_hash=content_hash,
                    )
                except Exception:
                    logger.warning(f"Discarding artifact {filename} after failed persist of {content_hash}")
                    self.artifact_store.remove(path)
                    raise

                state = MergeState.CLEANING
                self._log_state(content_hash, state)
                self._cleanup(content_hash)

                state = MergeState.DONE
                self._log_state(content_hash, state)
            except (UploadException, ChunkStoreError) as e:
                logger.warning(f"Merge of {content_hash} failed while {state.value}: {e}")
                self._log_state(content_hash, MergeState.FAILED)
                raise

        logger.info(
            f"Merged {len(ordered)} chunks of {content_hash} into {filename} "
            f"({declared_size} bytes) [id={record.id}]"
        )
        return FileRecordView.from_record(record)

    def _log_state(self, content_hash: str, state: MergeState) -> None:
        logger.debug(f"Merge {content_hash} -> {state.value}")

    def _validate(self, content_hash: str, declared_size: int, total_chunks: Optional[int]) -> List[ChunkRecord]:
        """Check the session is complete and return its chunks in merge order."""
        if self.file_repo.find_by_content_hash(content_hash) is not None:
            raise DuplicateContentError(f"A file with content hash {content_hash} already exists")

        if not self.chunk_store.session_exists(content_hash):
            raise SessionNotFoundError(f"No upload session for content hash {content_hash}")

        records = self.chunk_store.list_chunks(content_hash)
        if not records:
            raise SessionNotFoundError(f"No chunks uploaded for content hash {content_hash}")

        ordered = order_chunks(content_hash, records)

        indices = [r.index for r in ordered]
        if indices != list(range(len(ordered))):
            present = set(indices)
            missing = [i for i in range(indices[-1] + 1) if i not in present]
            raise SessionIncompleteError(f"Missing chunk indices for {content_hash}: {missing}")

        if total_chunks is not None and len(ordered) != total_chunks:
            raise SessionIncompleteError(
                f"Expected {total_chunks} chunks for {content_hash}, found {len(ordered)}"
            )

        stored_size = sum(r.size for r in ordered)
        if stored_size != declared_size:
            raise SessionIncompleteError(
                f"Chunks of {content_hash} hold {stored_size} bytes, declared size is {declared_size}"
            )

        return ordered

    def _assemble(self, content_hash: str, original_name: str, ordered: List[ChunkRecord]):
        """Stream chunks into a new artifact; the artifact is removed on any failure."""
        try:
            filename, path, out = self.artifact_store.open_new(original_name)
        except OSError as e:
            raise StorageWriteError(f"Failed to create artifact for {content_hash}: {e}") from e

        try:
            with out:
                for record in ordered:
                    self._copy_chunk(content_hash, record, out)
        except OSError as e:
            self.artifact_store.remove(path)
            raise StorageWriteError(f"Failed to write artifact {filename}: {e}") from e
        except Exception:
            self.artifact_store.remove(path)
            raise

        return filename, path

    def _copy_chunk(self, content_hash: str, record: ChunkRecord, out: BinaryIO) -> None:
        calculator = IncrementalChecksumCalculator()
        for piece in self.chunk_store.read_chunk_streaming(content_hash, record):
            calculator.update(piece)
            out.write(piece)

        if calculator.bytes_seen != record.size:
            raise StorageReadError(
                f"Chunk {record.name} of {content_hash} changed size during merge "
                f"({calculator.bytes_seen} != {record.size})"
            )
        if record.checksum and calculator.finalize() != record.checksum:
            raise StorageReadError(f"Checksum mismatch for chunk {record.name} of {content_hash}")

    def _cleanup(self, content_hash: str) -> None:
        try:
            self.chunk_store.delete_session(content_hash)
        except StorageWriteError as e:
            logger.warning(f"Merged {content_hash} but could not remove its chunks: {e}")


def order_chunks(content_hash: str, records: List[ChunkRecord]) -> List[ChunkRecord]:
    """
    Sort chunks by index for concatenation.

    When several entries claim one index, the one with the lexicographically
    smallest stored name is used and the rest are skipped.
    """
    ordered = []
    for record in sorted(records, key=lambda r: (r.index, r.name)):
        if ordered and ordered[-1].index == record.index:
            logger.warning(
                f"Data integrity: chunk index {record.index} of {content_hash} claimed by "
                f"{ordered[-1].name} and {record.name}; using {ordered[-1].name}"
            )
            continue
        ordered.append(record)
    return ordered
