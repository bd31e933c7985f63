"""Shared pytest fixtures for all tests."""

import os
import tempfile

# Point the server at a throwaway data directory before any uploader module
# reads its configuration.
_TEST_DATA_DIR = tempfile.mkdtemp(prefix='chunkup-tests-')
os.environ.setdefault('UPLOAD_DATABASE_PATH', os.path.join(_TEST_DATA_DIR, 'metadata.db'))
os.environ.setdefault('UPLOAD_DIR', os.path.join(_TEST_DATA_DIR, 'uploads'))
os.environ.setdefault('UPLOAD_CHUNK_DIR', os.path.join(_TEST_DATA_DIR, 'chunks'))

from typing import Callable, List, Tuple  # noqa: E402

import pytest  # noqa: E402

from chunkstore.checksum_validator import compute_checksum  # noqa: E402
from chunkstore.chunk_storage import ChunkStore  # noqa: E402
from cli.config import Config  # noqa: E402
from uploader.artifacts import ArtifactStore  # noqa: E402
from uploader.database import init_database  # noqa: E402
from uploader.locks import KeyedLock  # noqa: E402
from uploader.repositories.file_repository import FileRepository  # noqa: E402
from uploader.services.dedup_index import DedupIndex  # noqa: E402
from uploader.services.file_service import FileService  # noqa: E402
from uploader.services.merge_engine import MergeEngine  # noqa: E402
from uploader.services.upload_coordinator import UploadCoordinator  # noqa: E402


@pytest.fixture
def test_db(tmp_path, monkeypatch):
    """
    Create a temporary test database for each test.
    """
    db_path = tmp_path / 'test.db'
    monkeypatch.setattr('uploader.database.DATABASE_PATH', str(db_path))
    monkeypatch.setattr('uploader.config.DATABASE_PATH', str(db_path))
    init_database()
    return db_path


@pytest.fixture
def chunk_store(tmp_path):
    return ChunkStore(tmp_path / 'chunks')


@pytest.fixture
def artifact_store(tmp_path):
    return ArtifactStore(tmp_path / 'uploads', '/uploads')


@pytest.fixture
def merge_engine(test_db, chunk_store, artifact_store):
    return MergeEngine(chunk_store, artifact_store, FileRepository(), KeyedLock())


@pytest.fixture
def coordinator(test_db, chunk_store, merge_engine):
    return UploadCoordinator(chunk_store, DedupIndex(FileRepository()), merge_engine)


@pytest.fixture
def file_service(test_db, artifact_store):
    return FileService(artifact_store, FileRepository(), max_file_size=1024, max_files=3)


def split_into_chunks(data: bytes, chunk_size: int) -> List[Tuple[int, str, bytes]]:
    """(index, chunk hash, bytes) for every chunk of ``data``."""
    chunks = []
    for index, offset in enumerate(range(0, len(data), chunk_size)):
        piece = data[offset:offset + chunk_size]
        chunks.append((index, compute_checksum(piece), piece))
    return chunks


@pytest.fixture
def upload_chunks(chunk_store) -> Callable:
    """
    Store ``data`` as chunks of ``content_hash``.

    Returns:
        Function (content_hash, data, chunk_size, order=None) -> number of chunks;
        ``order`` lists the chunk indices to store, in sending order
    """
    def _upload(content_hash: str, data: bytes, chunk_size: int, order=None) -> int:
        chunks = split_into_chunks(data, chunk_size)
        indices = order if order is not None else range(len(chunks))
        for index in indices:
            _, chunk_hash, piece = chunks[index]
            chunk_store.store_chunk(content_hash, index, chunk_hash, piece)
        return len(chunks)

    return _upload


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Returns:
        Path to temporary .chunkup directory
    """
    config_dir = tmp_path / '.chunkup'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Retries are disabled so error paths return immediately.
    """
    config = Config(temp_config_dir / 'config.json')
    config.data['max_retries'] = 0
    return config


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file spanning several small chunks.

    Returns:
        Path to sample binary file
    """
    file_path = tmp_path / 'sample.bin'
    file_path.write_bytes(bytes(range(256)) * 10)
    return file_path
