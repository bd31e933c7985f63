"""Lookup of completed files by content hash."""

from typing import Optional

from common.logging_config import get_logger
from uploader.exceptions import InvalidInputError
from uploader.repositories.file_repository import FileRepository
from uploader.types import ExistsResult, FileRecordView

logger = get_logger(__name__)


class DedupIndex:
    """
    Answers "has this exact content already been uploaded?" from the file
    records. Never touches chunk storage.
    """

    def __init__(self, file_repo: Optional[FileRepository] = None):
        self.file_repo = file_repo or FileRepository()

    def check_exists(self, content_hash: str) -> ExistsResult:
        if not content_hash:
            raise InvalidInputError("hash is required")

        record = self.file_repo.find_by_content_hash(content_hash)
        if record is None:
            return ExistsResult(exists=False)

        logger.info(f"Dedup hit for content hash {content_hash} [id={record.id}]")
        return ExistsResult(exists=True, file=FileRecordView.from_record(record))
