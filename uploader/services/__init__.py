"""Service layer for business logic."""

from uploader.services.dedup_index import DedupIndex
from uploader.services.file_service import FileService
from uploader.services.merge_engine import MergeEngine
from uploader.services.upload_coordinator import UploadCoordinator

__all__ = [
    "DedupIndex",
    "FileService",
    "MergeEngine",
    "UploadCoordinator",
]
