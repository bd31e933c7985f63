"""Tests for plain uploads, listing and deletion."""

import io
from pathlib import Path

import pytest

from uploader.exceptions import FileRecordNotFoundError, FileTooLargeError, InvalidInputError
from uploader.repositories.file_repository import FileRepository
from uploader.types import UploadFailure, UploadSuccess


def _stored(artifact_store):
    if not artifact_store.root.exists():
        return []
    return sorted(p.name for p in artifact_store.root.iterdir())


class TestSaveUpload:
    def test_save_single_file(self, file_service, artifact_store):
        view = file_service.save_upload('report.pdf', None, io.BytesIO(b'%PDF-1.4 data'))

        assert view.original_name == 'report.pdf'
        assert view.mime_type == 'application/pdf'
        assert view.size == 13
        assert view.content_hash is None
        assert view.filename.endswith('.pdf')
        assert Path(view.storage_path).read_bytes() == b'%PDF-1.4 data'
        assert _stored(artifact_store) == [view.filename]

    def test_client_mime_type_kept(self, file_service):
        view = file_service.save_upload('notes', 'text/markdown', io.BytesIO(b'# hi'))
        assert view.mime_type == 'text/markdown'

    def test_too_large_file_leaves_nothing(self, file_service, artifact_store):
        with pytest.raises(FileTooLargeError):
            file_service.save_upload('big.bin', None, io.BytesIO(b'x' * 2048))

        assert _stored(artifact_store) == []
        assert FileRepository.count_files() == 0

    def test_file_at_limit_accepted(self, file_service):
        view = file_service.save_upload('exact.bin', None, io.BytesIO(b'x' * 1024))
        assert view.size == 1024

    def test_missing_name(self, file_service):
        with pytest.raises(InvalidInputError):
            file_service.save_upload('', None, io.BytesIO(b'data'))


class TestSaveUploads:
    def test_results_are_tagged_per_file(self, file_service):
        batch = file_service.save_uploads([
            ('a.txt', 'text/plain', io.BytesIO(b'aaa')),
            ('huge.bin', None, io.BytesIO(b'x' * 4096)),
            ('c.txt', 'text/plain', io.BytesIO(b'ccc')),
        ])

        assert batch.succeeded == 2
        assert batch.failed == 1
        first, second, third = batch.results
        assert isinstance(first, UploadSuccess) and first.file.original_name == 'a.txt'
        assert isinstance(second, UploadFailure)
        assert second.original_name == 'huge.bin'
        assert second.error_code == 'FILE_TOO_LARGE'
        assert second.status == 'failure'
        assert isinstance(third, UploadSuccess) and third.status == 'success'

    def test_no_files(self, file_service):
        with pytest.raises(InvalidInputError):
            file_service.save_uploads([])

    def test_too_many_files(self, file_service):
        files = [(f'{i}.txt', None, io.BytesIO(b'x')) for i in range(4)]

        with pytest.raises(InvalidInputError):
            file_service.save_uploads(files)
        assert FileRepository.count_files() == 0


class TestListingAndDeletion:
    def test_pagination(self, file_service):
        for i in range(5):
            file_service.save_upload(f'{i}.txt', None, io.BytesIO(b'x'))

        page = file_service.list_files(page=2, page_size=2)

        assert page.total == 5
        assert page.page == 2
        assert page.page_size == 2
        assert len(page.items) == 2

    @pytest.mark.parametrize('page, page_size', [(0, 10), (1, 0), (1, 101)])
    def test_invalid_paging(self, file_service, page, page_size):
        with pytest.raises(InvalidInputError):
            file_service.list_files(page, page_size)

    def test_get_missing(self, file_service):
        with pytest.raises(FileRecordNotFoundError):
            file_service.get_file(42)

    def test_delete_removes_record_and_file(self, file_service, artifact_store):
        view = file_service.save_upload('gone.txt', None, io.BytesIO(b'bye'))

        deleted = file_service.delete_file(view.id)

        assert deleted.id == view.id
        assert _stored(artifact_store) == []
        with pytest.raises(FileRecordNotFoundError):
            file_service.get_file(view.id)

    def test_delete_missing(self, file_service):
        with pytest.raises(FileRecordNotFoundError):
            file_service.delete_file(42)
