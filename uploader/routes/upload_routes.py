"""Upload API routes: chunked protocol plus plain single/multiple uploads."""

from typing import List

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from uploader.schemas.common import ErrorResponse
from uploader.schemas.files import (
    BatchUploadResponse,
    CheckExistsResponse,
    ChunkUploadResponse,
    FileRecordResponse,
    MergeRequest,
    UploadedChunksResponse,
    to_batch_item,
)
from uploader.service_locator import get_file_service, get_upload_coordinator
from uploader.services.file_service import FileService
from uploader.services.upload_coordinator import UploadCoordinator

router = APIRouter(
    prefix="/upload",
    tags=["Upload"],
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 507: {"model": ErrorResponse}},
)


@router.get("/check", response_model=CheckExistsResponse)
def check_exists(
    content_hash: str = Query(..., alias="hash"),
    coordinator: UploadCoordinator = Depends(get_upload_coordinator),
):
    """
    Check whether a file with this content hash was already uploaded.

    Parameters:
        - hash: Content hash of the complete file

    Returns:
        - exists: True if the upload can be skipped
        - file: Stored file metadata when exists is True

    Raises:
        - 400: Missing or malformed hash
    """
    result = coordinator.check_exists(content_hash)
    return CheckExistsResponse(
        exists=result.exists,
        file=FileRecordResponse.from_view(result.file) if result.file else None,
    )


@router.get("/chunks", response_model=UploadedChunksResponse)
def list_uploaded_chunks(
    content_hash: str = Query(..., alias="hash"),
    coordinator: UploadCoordinator = Depends(get_upload_coordinator),
):
    """
    List chunk indices already stored for a content hash (resume point).

    Returns an empty list when nothing was uploaded yet.
    """
    indices = coordinator.list_uploaded_indices(content_hash)
    return UploadedChunksResponse(hash=content_hash, uploaded_chunks=indices)


@router.post("/chunk", response_model=ChunkUploadResponse, status_code=status.HTTP_201_CREATED)
def upload_chunk(
    file: UploadFile = File(...),
    content_hash: str = Form(..., alias="hash"),
    index: int = Form(...),
    chunk_hash: str = Form(...),
    coordinator: UploadCoordinator = Depends(get_upload_coordinator),
):
    """
    Store one chunk (multipart/form-data).

    Parameters:
        - file: Chunk bytes
        - hash: Content hash of the complete file
        - index: Zero-based chunk position
        - chunk_hash: Identifier of this chunk's content

    Re-sending the same chunk replaces the stored copy.

    Raises:
        - 400: Missing or malformed hash, index or chunk_hash
        - 507: Chunk could not be written
    """
    result = coordinator.store_chunk(content_hash, index, chunk_hash, file.file)
    return ChunkUploadResponse(
        hash=result.hash,
        index=result.index,
        chunk_hash=result.chunk_hash,
        size=result.size,
    )


@router.post("/merge", response_model=FileRecordResponse, status_code=status.HTTP_201_CREATED)
def merge_chunks(
    request: MergeRequest,
    coordinator: UploadCoordinator = Depends(get_upload_coordinator),
):
    """
    Assemble all chunks of a content hash into the final file.

    Raises:
        - 404: No chunks uploaded for this hash
        - 409: Chunks incomplete, or the content was already merged
        - 500: Chunk unreadable or record could not be stored
    """
    view = coordinator.merge(
        request.hash,
        request.filename,
        request.size,
        request.mime_type,
        total_chunks=request.total_chunks,
    )
    return FileRecordResponse.from_view(view)


@router.post("/single", response_model=FileRecordResponse, status_code=status.HTTP_201_CREATED)
def upload_single(
    file: UploadFile = File(...),
    file_service: FileService = Depends(get_file_service),
):
    """
    Upload one file in a single request.

    Raises:
        - 400: No file selected
        - 413: File too large
    """
    view = file_service.save_upload(file.filename, file.content_type, file.file)
    return FileRecordResponse.from_view(view)


@router.post("/multiple", response_model=BatchUploadResponse)
def upload_multiple(
    files: List[UploadFile] = File(...),
    file_service: FileService = Depends(get_file_service),
):
    """
    Upload several files in one request.

    Each file succeeds or fails on its own; the response lists one result
    per file in request order.

    Raises:
        - 400: No files, or more files than allowed
    """
    batch = file_service.save_uploads(
        (f.filename, f.content_type, f.file) for f in files
    )
    return BatchUploadResponse(
        succeeded=batch.succeeded,
        failed=batch.failed,
        results=[to_batch_item(outcome) for outcome in batch.results],
    )
