"""File record repository for database operations."""

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from common.logging_config import get_logger
from uploader.database import get_db_connection
from uploader.exceptions import DuplicateContentError, PersistenceError

logger = get_logger(__name__)

_COLUMNS = "id, filename, original_name, mime_type, size, storage_path, public_url, content_hash, created_at"


@dataclass
class FileRecord:
    id: int
    filename: str
    original_name: str
    mime_type: str
    size: int
    storage_path: str
    public_url: str
    content_hash: Optional[str]
    created_at: datetime


def _row_to_file(row: sqlite3.Row) -> FileRecord:
    return FileRecord(
        id=row["id"],
        filename=row["filename"],
        original_name=row["original_name"],
        mime_type=row["mime_type"],
        size=row["size"],
        storage_path=row["storage_path"],
        public_url=row["public_url"],
        content_hash=row["content_hash"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class FileRepository:
    @staticmethod
    def create_file(
        filename: str,
        original_name: str,
        mime_type: str,
        size: int,
        storage_path: str,
        public_url: str,
        created_at: datetime,
        content_hash: Optional[str] = None,
    ) -> FileRecord:
        """
        Insert a file record.

        Raises:
            DuplicateContentError: If a record with the same content hash exists
            PersistenceError: For any other database failure
        """
        try:
            with get_db_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO files (filename, original_name, mime_type, size, storage_path, public_url, content_hash, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (filename, original_name, mime_type, size, storage_path, public_url, content_hash, created_at.isoformat())
                )
                file_id = cursor.lastrowid
                conn.commit()

            logger.info(f"Created file record [id={file_id}] [filename={filename}] [content_hash={content_hash}]")
            return FileRecord(
                id=file_id,
                filename=filename,
                original_name=original_name,
                mime_type=mime_type,
                size=size,
                storage_path=storage_path,
                public_url=public_url,
                content_hash=content_hash,
                created_at=created_at,
            )
        except sqlite3.IntegrityError as e:
            if content_hash is not None and "content_hash" in str(e):
                raise DuplicateContentError(f"A file with content hash {content_hash} already exists") from e
            logger.error(f"Integrity error creating file record [filename={filename}]: {e}")
            raise PersistenceError(f"Failed to create file record: {e}") from e
        except sqlite3.Error as e:
            logger.error(f"Failed to create file record [filename={filename}]: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create file record: {e}") from e

    @staticmethod
    def get_by_id(file_id: int) -> Optional[FileRecord]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {_COLUMNS} FROM files WHERE id = ?", (file_id,))
            row = cursor.fetchone()
            return _row_to_file(row) if row is not None else None

    @staticmethod
    def find_by_content_hash(content_hash: str) -> Optional[FileRecord]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {_COLUMNS} FROM files WHERE content_hash = ?", (content_hash,))
            row = cursor.fetchone()
            return _row_to_file(row) if row is not None else None

    @staticmethod
    def list_files(offset: int, limit: int) -> List[FileRecord]:
        """Newest first."""
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_COLUMNS} FROM files ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
                (limit, offset)
            )
            return [_row_to_file(row) for row in cursor.fetchall()]

    @staticmethod
    def count_files() -> int:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM files")
            return cursor.fetchone()[0]

    @staticmethod
    def delete_file(file_id: int) -> bool:
        """
        Delete a file record.

        Returns:
            True if a record was deleted, False if it did not exist
        """
        logger.debug(f"Deleting file record [id={file_id}]")
        try:
            with get_db_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM files WHERE id = ?", (file_id,))
                deleted = cursor.rowcount > 0
                conn.commit()
            if deleted:
                logger.info(f"File record deleted [id={file_id}]")
            return deleted
        except sqlite3.Error as e:
            logger.error(f"Failed to delete file record [id={file_id}]: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete file record {file_id}: {e}") from e
