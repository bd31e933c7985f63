"""Stored file listing and deletion routes."""

from fastapi import APIRouter, Depends, Query

from uploader import config
from uploader.schemas.common import ErrorResponse
from uploader.schemas.files import DeleteFileResponse, FileListResponse, FileRecordResponse
from uploader.service_locator import get_file_service
from uploader.services.file_service import FileService

router = APIRouter(prefix="/files", tags=["Files"], responses={404: {"model": ErrorResponse}})


@router.get("", response_model=FileListResponse)
def list_files(
    page: int = Query(1),
    page_size: int = Query(config.DEFAULT_PAGE_SIZE),
    file_service: FileService = Depends(get_file_service),
):
    """
    List stored files, newest first.

    Raises:
        - 400: page < 1 or page_size out of range
    """
    result = file_service.list_files(page, page_size)
    return FileListResponse(
        items=[FileRecordResponse.from_view(v) for v in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
    )


@router.get("/{file_id}", response_model=FileRecordResponse)
def get_file(file_id: int, file_service: FileService = Depends(get_file_service)):
    return FileRecordResponse.from_view(file_service.get_file(file_id))


@router.delete("/{file_id}", response_model=DeleteFileResponse)
def delete_file(file_id: int, file_service: FileService = Depends(get_file_service)):
    """
    Delete a stored file and its record.

    Raises:
        - 404: File not found
    """
    view = file_service.delete_file(file_id)
    return DeleteFileResponse(deleted=view.id)
