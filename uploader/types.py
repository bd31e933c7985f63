"""Result types returned by the upload services."""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Literal, Optional, Tuple, Union

from uploader.repositories.file_repository import FileRecord


@dataclass(frozen=True)
class FileRecordView:
    """
    Snapshot of a stored file as exposed to clients.
    """
    id: int
    filename: str
    original_name: str
    mime_type: str
    size: int
    storage_path: str
    public_url: str
    content_hash: Optional[str]
    created_at: datetime

    @classmethod
    def from_record(cls, record: FileRecord) -> "FileRecordView":
        return cls(
            id=record.id,
            filename=record.filename,
            original_name=record.original_name,
            mime_type=record.mime_type,
            size=record.size,
            storage_path=record.storage_path,
            public_url=record.public_url,
            content_hash=record.content_hash,
            created_at=record.created_at,
        )


@dataclass(frozen=True)
class ExistsResult:
    exists: bool
    file: Optional[FileRecordView] = None


@dataclass(frozen=True)
class ChunkUploadResult:
    hash: str
    index: int
    chunk_hash: str
    size: int


@dataclass(frozen=True)
class UploadSuccess:
    file: FileRecordView
    status: Literal["success"] = "success"


@dataclass(frozen=True)
class UploadFailure:
    original_name: str
    error_code: str
    detail: str
    status: Literal["failure"] = "failure"


UploadOutcome = Union[UploadSuccess, UploadFailure]


@dataclass(frozen=True)
class BatchUploadResult:
    """
    Per-file outcomes of a multiple-file upload, in request order.
    """
    results: Tuple[UploadOutcome, ...]

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if isinstance(r, UploadSuccess))

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if isinstance(r, UploadFailure))


@dataclass(frozen=True)
class FilePage:
    items: List[FileRecordView]
    total: int
    page: int
    page_size: int
