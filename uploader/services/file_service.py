"""Plain (non-chunked) uploads, listing and deletion of stored files."""

from typing import BinaryIO, Iterable, Optional, Tuple

from common.constants import STREAM_PIECE_SIZE_BYTES
from common.logging_config import get_logger
from uploader import config
from uploader.artifacts import ArtifactStore
from uploader.exceptions import (
    ChunkStoreError,
    FileRecordNotFoundError,
    FileTooLargeError,
    InvalidInputError,
    StorageWriteError,
    UploadException,
    error_code_for,
)
from uploader.repositories.file_repository import FileRepository
from uploader.types import (
    BatchUploadResult,
    FilePage,
    FileRecordView,
    UploadFailure,
    UploadSuccess,
)
from uploader.utils import get_current_timestamp, guess_mime_type

logger = get_logger(__name__)

# (original name, mime type or None, readable binary stream)
IncomingFile = Tuple[str, Optional[str], BinaryIO]


class FileService:
    def __init__(
        self,
        artifact_store: ArtifactStore,
        file_repo: Optional[FileRepository] = None,
        max_file_size: Optional[int] = None,
        max_files: Optional[int] = None,
    ):
        self.artifact_store = artifact_store
        self.file_repo = file_repo or FileRepository()
        self.max_file_size = max_file_size if max_file_size is not None else config.MAX_FILE_SIZE_BYTES
        self.max_files = max_files if max_files is not None else config.MAX_FILES_PER_REQUEST

    def save_upload(self, original_name: str, mime_type: Optional[str], stream: BinaryIO) -> FileRecordView:
        """
        Store one uploaded file and create its record.

        Raises:
            InvalidInputError: If no file name was given
            FileTooLargeError: If the file exceeds the size limit
            StorageWriteError: If the file cannot be written
            PersistenceError: If the record cannot be stored
        """
        if not original_name:
            raise InvalidInputError("Please select a file to upload")

        try:
            filename, path, out = self.artifact_store.open_new(original_name)
        except OSError as e:
            raise StorageWriteError(f"Failed to create file for {original_name}: {e}") from e

        size = 0
        try:
            with out:
                while True:
                    piece = stream.read(STREAM_PIECE_SIZE_BYTES)
                    if not piece:
                        break
                    size += len(piece)
                    if size > self.max_file_size:
                        raise FileTooLargeError(
                            f"{original_name} exceeds the {self.max_file_size} byte upload limit"
                        )
                    out.write(piece)
        except OSError as e:
            self.artifact_store.remove(path)
            raise StorageWriteError(f"Failed to write {original_name}: {e}") from e
        except Exception:
            self.artifact_store.remove(path)
            raise

        try:
            record = self.file_repo.create_file(
                filename=filename,
                original_name=original_name,
                mime_type=mime_type or guess_mime_type(original_name),
                size=size,
                storage_path=str(path),
                public_url=self.artifact_store.public_url(filename),
                created_at=get_current_timestamp(),
            )
        except Exception:
            self.artifact_store.remove(path)
            raise

        return FileRecordView.from_record(record)

    def save_uploads(self, files: Iterable[IncomingFile]) -> BatchUploadResult:
        """
        Store several files independently; one failure does not stop the rest.

        Raises:
            InvalidInputError: If no files were given or too many were given
        """
        files = list(files)
        if not files:
            raise InvalidInputError("Please select files to upload")
        if len(files) > self.max_files:
            raise InvalidInputError(f"At most {self.max_files} files can be uploaded at once")

        results = []
        for original_name, mime_type, stream in files:
            try:
                results.append(UploadSuccess(file=self.save_upload(original_name, mime_type, stream)))
            except (UploadException, ChunkStoreError) as e:
                logger.warning(f"Upload of {original_name} failed: {e}")
                results.append(UploadFailure(
                    original_name=original_name or "",
                    error_code=error_code_for(e),
                    detail=str(e),
                ))

        batch = BatchUploadResult(results=tuple(results))
        logger.info(f"Batch upload finished: {batch.succeeded} succeeded, {batch.failed} failed")
        return batch

    def list_files(self, page: int, page_size: int) -> FilePage:
        if page < 1:
            raise InvalidInputError("page must be >= 1")
        if page_size < 1 or page_size > config.MAX_PAGE_SIZE:
            raise InvalidInputError(f"page_size must be between 1 and {config.MAX_PAGE_SIZE}")

        records = self.file_repo.list_files(offset=(page - 1) * page_size, limit=page_size)
        return FilePage(
            items=[FileRecordView.from_record(r) for r in records],
            total=self.file_repo.count_files(),
            page=page,
            page_size=page_size,
        )

    def get_file(self, file_id: int) -> FileRecordView:
        record = self.file_repo.get_by_id(file_id)
        if record is None:
            raise FileRecordNotFoundError(f"File {file_id} not found")
        return FileRecordView.from_record(record)

    def delete_file(self, file_id: int) -> FileRecordView:
        """
        Delete the record, then its stored file. A leftover file is logged.
        """
        view = self.get_file(file_id)
        if not self.file_repo.delete_file(file_id):
            raise FileRecordNotFoundError(f"File {file_id} not found")
        self.artifact_store.remove(view.storage_path)
        return view
