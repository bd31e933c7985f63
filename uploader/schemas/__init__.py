"""Pydantic schemas for API requests and responses."""

from uploader.schemas.common import ErrorResponse
from uploader.schemas.files import (
    BatchUploadResponse,
    CheckExistsResponse,
    ChunkUploadResponse,
    DeleteFileResponse,
    FileListResponse,
    FileRecordResponse,
    MergeRequest,
    UploadedChunksResponse,
    UploadFailureItem,
    UploadSuccessItem,
)

__all__ = [
    "BatchUploadResponse",
    "CheckExistsResponse",
    "ChunkUploadResponse",
    "DeleteFileResponse",
    "ErrorResponse",
    "FileListResponse",
    "FileRecordResponse",
    "MergeRequest",
    "UploadedChunksResponse",
    "UploadFailureItem",
    "UploadSuccessItem",
]
