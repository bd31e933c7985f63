"""Entry point for the chunked upload protocol."""

from typing import List, Optional

from chunkstore.chunk_manifest import validate_key
from chunkstore.chunk_storage import ChunkPayload, ChunkStore
from common.logging_config import get_logger
from uploader.exceptions import InvalidChunkKeyError, InvalidInputError
from uploader.services.dedup_index import DedupIndex
from uploader.services.merge_engine import MergeEngine
from uploader.types import ChunkUploadResult, ExistsResult, FileRecordView
from uploader.utils import guess_mime_type

logger = get_logger(__name__)


class UploadCoordinator:
    """
    Sequences the four client operations over the chunk store, the dedup
    index and the merge engine.

    Only checks the shape of its inputs; everything else is decided by the
    component it delegates to.
    """

    def __init__(self, chunk_store: ChunkStore, dedup_index: DedupIndex, merge_engine: MergeEngine):
        self.chunk_store = chunk_store
        self.dedup_index = dedup_index
        self.merge_engine = merge_engine

    def check_exists(self, content_hash: str) -> ExistsResult:
        return self.dedup_index.check_exists(_require_key(content_hash, "hash"))

    def list_uploaded_indices(self, content_hash: str) -> List[int]:
        """Indices already stored for the hash, ascending; empty if nothing was uploaded."""
        content_hash = _require_key(content_hash, "hash")
        return sorted(self.chunk_store.list_uploaded_indices(content_hash))

    def store_chunk(
        self,
        content_hash: str,
        index: Optional[int],
        chunk_hash: str,
        data: ChunkPayload,
    ) -> ChunkUploadResult:
        content_hash = _require_key(content_hash, "hash")
        chunk_hash = _require_key(chunk_hash, "chunk_hash")
        if index is None or isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise InvalidInputError(f"index must be a non-negative integer, got {index!r}")
        if data is None:
            raise InvalidInputError("chunk payload is required")

        record = self.chunk_store.store_chunk(content_hash, index, chunk_hash, data)
        logger.info(f"Stored chunk {index} for {content_hash} ({record.size} bytes)")
        return ChunkUploadResult(hash=content_hash, index=index, chunk_hash=chunk_hash, size=record.size)

    def merge(
        self,
        content_hash: str,
        original_name: str,
        declared_size: Optional[int],
        mime_type: Optional[str] = None,
        total_chunks: Optional[int] = None,
    ) -> FileRecordView:
        content_hash = _require_key(content_hash, "hash")
        if not original_name or not original_name.strip():
            raise InvalidInputError("filename is required")
        if declared_size is None or declared_size < 0:
            raise InvalidInputError(f"size must be a non-negative integer, got {declared_size!r}")
        if total_chunks is not None and total_chunks < 1:
            raise InvalidInputError(f"total_chunks must be positive, got {total_chunks!r}")

        return self.merge_engine.merge(
            content_hash,
            original_name.strip(),
            declared_size,
            mime_type or guess_mime_type(original_name),
            total_chunks=total_chunks,
        )


def _require_key(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidInputError(f"{field} is required")
    try:
        return validate_key(str(value).strip(), field)
    except InvalidChunkKeyError as e:
        raise InvalidInputError(str(e)) from e
