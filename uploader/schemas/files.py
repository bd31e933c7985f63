"""Pydantic schemas for upload and file endpoints."""

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

from uploader.types import FileRecordView, UploadFailure, UploadSuccess


class FileRecordResponse(BaseModel):
    """Response model for a stored file."""
    id: int
    filename: str
    original_name: str
    mime_type: str
    size: int
    storage_path: str
    public_url: str
    content_hash: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_view(cls, view: FileRecordView) -> "FileRecordResponse":
        return cls(
            id=view.id,
            filename=view.filename,
            original_name=view.original_name,
            mime_type=view.mime_type,
            size=view.size,
            storage_path=view.storage_path,
            public_url=view.public_url,
            content_hash=view.content_hash,
            created_at=view.created_at,
        )


class CheckExistsResponse(BaseModel):
    """Response model for the dedup check."""
    exists: bool
    file: Optional[FileRecordResponse] = None


class UploadedChunksResponse(BaseModel):
    """Response model for the resume point query."""
    hash: str
    uploaded_chunks: List[int]


class ChunkUploadResponse(BaseModel):
    """Response model for a stored chunk."""
    hash: str
    index: int
    chunk_hash: str
    size: int


class MergeRequest(BaseModel):
    """Request model for merging an upload session."""
    hash: str = Field(..., min_length=1)
    filename: str = Field(..., min_length=1)
    size: int = Field(..., ge=0)
    mime_type: Optional[str] = None
    total_chunks: Optional[int] = Field(None, ge=1)


class UploadSuccessItem(BaseModel):
    status: Literal["success"] = "success"
    file: FileRecordResponse


class UploadFailureItem(BaseModel):
    status: Literal["failure"] = "failure"
    original_name: str
    error_code: str
    detail: str


class BatchUploadResponse(BaseModel):
    """Response model for multiple-file upload."""
    succeeded: int
    failed: int
    results: List[Union[UploadSuccessItem, UploadFailureItem]]


def to_batch_item(outcome: Union[UploadSuccess, UploadFailure]) -> Union[UploadSuccessItem, UploadFailureItem]:
    if isinstance(outcome, UploadSuccess):
        return UploadSuccessItem(file=FileRecordResponse.from_view(outcome.file))
    return UploadFailureItem(
        original_name=outcome.original_name,
        error_code=outcome.error_code,
        detail=outcome.detail,
    )


class FileListResponse(BaseModel):
    """Response model for paginated file listing."""
    items: List[FileRecordResponse]
    total: int
    page: int
    page_size: int


class DeleteFileResponse(BaseModel):
    """Response model for file deletion."""
    deleted: int
