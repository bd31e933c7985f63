"""Process-wide service instances shared by the HTTP routes."""

import threading
from pathlib import Path
from typing import Optional

from chunkstore.chunk_storage import ChunkStore
from uploader import config
from uploader.artifacts import ArtifactStore
from uploader.locks import KeyedLock
from uploader.repositories.file_repository import FileRepository
from uploader.services.dedup_index import DedupIndex
from uploader.services.file_service import FileService
from uploader.services.merge_engine import MergeEngine
from uploader.services.upload_coordinator import UploadCoordinator

_upload_coordinator: Optional[UploadCoordinator] = None
_file_service: Optional[FileService] = None
_services_lock = threading.Lock()


def build_upload_coordinator(
    chunk_dir: Optional[Path] = None,
    upload_dir: Optional[Path] = None,
    file_repo: Optional[FileRepository] = None,
) -> UploadCoordinator:
    """Wire a coordinator over the configured (or given) directories."""
    file_repo = file_repo or FileRepository()
    chunk_store = ChunkStore(Path(chunk_dir) if chunk_dir is not None else Path(config.CHUNK_DIR))
    merge_engine = MergeEngine(
        chunk_store=chunk_store,
        artifact_store=ArtifactStore(upload_dir),
        file_repo=file_repo,
        locks=KeyedLock(),
    )
    return UploadCoordinator(
        chunk_store=chunk_store,
        dedup_index=DedupIndex(file_repo),
        merge_engine=merge_engine,
    )


def get_upload_coordinator() -> UploadCoordinator:
    """Get global upload coordinator, creating it on first use."""
    global _upload_coordinator
    if _upload_coordinator is None:
        with _services_lock:
            if _upload_coordinator is None:
                _upload_coordinator = build_upload_coordinator()
    return _upload_coordinator


def set_upload_coordinator(coordinator: Optional[UploadCoordinator]) -> None:
    """Set (or with None, reset) global upload coordinator"""
    global _upload_coordinator
    _upload_coordinator = coordinator


def get_file_service() -> FileService:
    """Get global file service, creating it on first use."""
    global _file_service
    if _file_service is None:
        with _services_lock:
            if _file_service is None:
                _file_service = FileService(ArtifactStore())
    return _file_service


def set_file_service(service: Optional[FileService]) -> None:
    """Set (or with None, reset) global file service"""
    global _file_service
    _file_service = service
