"""Integration tests for the file repository."""

import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from uploader.database import get_db_connection, init_database
from uploader.exceptions import DuplicateContentError, PersistenceError
from uploader.repositories.file_repository import FileRecord, FileRepository

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _create(n, content_hash=None, **overrides):
    fields = dict(
        filename=f"stored-{n}.txt",
        original_name=f"original-{n}.txt",
        mime_type="text/plain",
        size=10 * n,
        storage_path=f"/data/uploads/stored-{n}.txt",
        public_url=f"/uploads/stored-{n}.txt",
        created_at=BASE_TIME + timedelta(minutes=n),
        content_hash=content_hash,
    )
    fields.update(overrides)
    return FileRepository.create_file(**fields)


class TestDatabaseSetup:
    def test_init_creates_files_table(self, test_db):
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='files'")
            assert cursor.fetchone() is not None

    def test_init_is_idempotent(self, test_db):
        _create(1)
        init_database()
        assert FileRepository.count_files() == 1

    def test_rows_use_row_factory(self, test_db):
        _create(1)
        with get_db_connection() as conn:
            row = conn.execute("SELECT * FROM files").fetchone()
        assert isinstance(row, sqlite3.Row)
        assert row["filename"] == "stored-1.txt"


class TestFileRepository:
    def test_create_and_get(self, test_db):
        created = _create(1, content_hash="abc")

        assert isinstance(created, FileRecord)
        fetched = FileRepository.get_by_id(created.id)
        assert fetched == created

    def test_get_missing(self, test_db):
        assert FileRepository.get_by_id(999) is None

    def test_find_by_content_hash(self, test_db):
        created = _create(1, content_hash="abc")

        assert FileRepository.find_by_content_hash("abc").id == created.id
        assert FileRepository.find_by_content_hash("other") is None

    def test_duplicate_content_hash(self, test_db):
        _create(1, content_hash="abc")

        with pytest.raises(DuplicateContentError):
            _create(2, content_hash="abc")
        assert FileRepository.count_files() == 1

    def test_many_records_without_content_hash(self, test_db):
        _create(1)
        _create(2)
        _create(3)

        assert FileRepository.count_files() == 3

    def test_duplicate_filename_is_persistence_error(self, test_db):
        _create(1)

        with pytest.raises(PersistenceError) as exc_info:
            _create(2, filename="stored-1.txt")
        assert not isinstance(exc_info.value, DuplicateContentError)

    def test_list_newest_first_with_paging(self, test_db):
        for n in range(1, 6):
            _create(n)

        first_page = FileRepository.list_files(offset=0, limit=2)
        second_page = FileRepository.list_files(offset=2, limit=2)
        last_page = FileRepository.list_files(offset=4, limit=2)

        assert [f.filename for f in first_page] == ["stored-5.txt", "stored-4.txt"]
        assert [f.filename for f in second_page] == ["stored-3.txt", "stored-2.txt"]
        assert [f.filename for f in last_page] == ["stored-1.txt"]

    def test_delete(self, test_db):
        created = _create(1)

        assert FileRepository.delete_file(created.id) is True
        assert FileRepository.get_by_id(created.id) is None
        assert FileRepository.delete_file(created.id) is False

    def test_create_is_committed_for_other_connections(self, test_db):
        created = _create(1, content_hash="abc")

        with get_db_connection() as conn:
            row = conn.execute("SELECT filename, content_hash FROM files WHERE id = ?", (created.id,)).fetchone()

        assert row["filename"] == "stored-1.txt"
        assert row["content_hash"] == "abc"

    def test_delete_is_committed_for_other_connections(self, test_db):
        created = _create(1)
        FileRepository.delete_file(created.id)

        with get_db_connection() as conn:
            count = conn.execute("SELECT COUNT(*) FROM files").fetchone()[0]

        assert count == 0

    def test_repeated_creates_each_use_a_fresh_connection(self, test_db):
        records = [_create(n) for n in range(1, 4)]

        assert [r.id for r in records] == sorted({r.id for r in records})
        assert FileRepository.count_files() == 3
