"""Repository layer for data access."""

from uploader.repositories.file_repository import FileRecord, FileRepository

__all__ = [
    "FileRecord",
    "FileRepository",
]
