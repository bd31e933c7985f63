"""Tests for the on-disk chunk store."""

import io
import json
import os
import threading

import pytest

from chunkstore.checksum_validator import compute_checksum
from chunkstore.chunk_manifest import ChunkRecord, parse_chunk_name, sidecar_path, validate_key
from chunkstore.chunk_storage import ChunkStore
from chunkstore.exceptions import InvalidChunkKeyError, StorageWriteError


class TestStoreChunk:
    def test_store_returns_record_with_checksum(self, chunk_store):
        record = chunk_store.store_chunk('filehash', 0, 'c0', b'hello')

        assert record == ChunkRecord(index=0, chunk_hash='c0', size=5, checksum=compute_checksum(b'hello'))
        assert (chunk_store.root / 'filehash' / 'c0-0').read_bytes() == b'hello'

    def test_store_accepts_stream(self, chunk_store):
        payload = b'x' * (200 * 1024)
        record = chunk_store.store_chunk('filehash', 3, 'big', io.BytesIO(payload))

        assert record.size == len(payload)
        assert (chunk_store.root / 'filehash' / 'big-3').read_bytes() == payload

    def test_writes_sidecar(self, chunk_store):
        chunk_store.store_chunk('filehash', 1, 'c1', b'abc')

        sidecar = sidecar_path(chunk_store.root / 'filehash' / 'c1-1')
        data = json.loads(sidecar.read_text())
        assert data == {'index': 1, 'chunk_hash': 'c1', 'size': 3, 'checksum': compute_checksum(b'abc')}

    def test_reupload_is_idempotent(self, chunk_store):
        chunk_store.store_chunk('filehash', 0, 'c0', b'first')
        chunk_store.store_chunk('filehash', 0, 'c0', b'first')

        assert list(chunk_store.list_uploaded_indices('filehash')) == [0]
        entries = sorted(p.name for p in (chunk_store.root / 'filehash').iterdir())
        assert entries == ['c0-0', 'c0-0.json']

    def test_reupload_replaces_content(self, chunk_store):
        chunk_store.store_chunk('filehash', 0, 'c0', b'old')
        chunk_store.store_chunk('filehash', 0, 'c0', b'newer')

        [record] = chunk_store.list_chunks('filehash')
        assert record.size == 5
        assert (chunk_store.root / 'filehash' / 'c0-0').read_bytes() == b'newer'

    def test_negative_index_rejected(self, chunk_store):
        with pytest.raises(InvalidChunkKeyError):
            chunk_store.store_chunk('filehash', -1, 'c0', b'data')

    @pytest.mark.parametrize('bad_hash', ['', '../escape', 'a/b', '..', '.hidden', 'x' * 129])
    def test_unsafe_content_hash_rejected(self, chunk_store, bad_hash):
        with pytest.raises(InvalidChunkKeyError):
            chunk_store.store_chunk(bad_hash, 0, 'c0', b'data')
        assert not (chunk_store.root.parent / 'escape').exists()

    def test_unsafe_chunk_hash_rejected(self, chunk_store):
        with pytest.raises(InvalidChunkKeyError):
            chunk_store.store_chunk('filehash', 0, '../c0', b'data')

    def test_unwritable_root_raises_storage_write_error(self, tmp_path):
        blocker = tmp_path / 'not-a-dir'
        blocker.write_text('file in the way')
        store = ChunkStore(blocker)

        with pytest.raises(StorageWriteError):
            store.store_chunk('filehash', 0, 'c0', b'data')


class TestListing:
    def test_missing_session_lists_nothing(self, chunk_store):
        assert list(chunk_store.list_uploaded_indices('unknown')) == []
        assert chunk_store.list_chunks('unknown') == []
        assert not chunk_store.session_exists('unknown')

    def test_resume_reports_exactly_uploaded_indices(self, chunk_store):
        for index in (0, 2, 5):
            chunk_store.store_chunk('filehash', index, f'c{index}', b'data')

        assert set(chunk_store.list_uploaded_indices('filehash')) == {0, 2, 5}

    def test_listing_is_restartable(self, chunk_store):
        chunk_store.store_chunk('filehash', 0, 'c0', b'data')
        chunk_store.store_chunk('filehash', 1, 'c1', b'data')

        first = sorted(chunk_store.list_uploaded_indices('filehash'))
        second = sorted(chunk_store.list_uploaded_indices('filehash'))
        assert first == second == [0, 1]

    def test_non_matching_entries_are_skipped(self, chunk_store):
        chunk_store.store_chunk('filehash', 4, 'c4', b'data')
        session = chunk_store.root / 'filehash'
        (session / 'README').write_text('not a chunk')
        (session / 'abc-').write_text('no index')
        (session / 'abc-007').write_text('non canonical index')
        (session / '.c9-9.1234.part').write_text('in flight')
        (session / 'c8-8.json').write_text('{}')

        assert list(chunk_store.list_uploaded_indices('filehash')) == [4]
        assert [r.index for r in chunk_store.list_chunks('filehash')] == [4]

    def test_chunk_hash_may_contain_separator(self, chunk_store):
        chunk_store.store_chunk('filehash', 12, 'part-a', b'data')

        [record] = chunk_store.list_chunks('filehash')
        assert record.chunk_hash == 'part-a'
        assert record.index == 12

    def test_missing_sidecar_falls_back_to_name(self, chunk_store):
        chunk_store.store_chunk('filehash', 0, 'c0', b'data')
        sidecar_path(chunk_store.root / 'filehash' / 'c0-0').unlink()

        [record] = chunk_store.list_chunks('filehash')
        assert record == ChunkRecord(index=0, chunk_hash='c0', size=4, checksum='')

    def test_sidecar_with_wrong_size_is_ignored(self, chunk_store):
        chunk_store.store_chunk('filehash', 0, 'c0', b'data')
        (chunk_store.root / 'filehash' / 'c0-0').write_bytes(b'truncated!')

        [record] = chunk_store.list_chunks('filehash')
        assert record.size == 10
        assert record.checksum == ''


class TestReadAndDelete:
    def test_read_chunk_streaming_in_pieces(self, chunk_store):
        record = chunk_store.store_chunk('filehash', 0, 'c0', b'abcdefghij')

        pieces = list(chunk_store.read_chunk_streaming('filehash', record, piece_size=4))
        assert pieces == [b'abcd', b'efgh', b'ij']

    def test_delete_session(self, chunk_store):
        chunk_store.store_chunk('filehash', 0, 'c0', b'data')

        assert chunk_store.delete_session('filehash') is True
        assert not chunk_store.session_exists('filehash')
        assert list(chunk_store.list_uploaded_indices('filehash')) == []

    def test_delete_missing_session_is_noop(self, chunk_store):
        assert chunk_store.delete_session('never-created') is False


class TestManifestHelpers:
    @pytest.mark.parametrize('name, expected', [
        ('abc-0', ('abc', 0)),
        ('abc-10', ('abc', 10)),
        ('a-b-c-3', ('a-b-c', 3)),
        ('abc-007', None),
        ('abc', None),
        ('abc-1.json', None),
        ('.abc-1.ff.part', None),
        ('-1', None),
    ])
    def test_parse_chunk_name(self, name, expected):
        assert parse_chunk_name(name) == expected

    def test_validate_key_accepts_hex_digest(self):
        digest = compute_checksum(b'content')
        assert validate_key(digest, 'hash') == digest

    def test_record_name(self):
        assert ChunkRecord(index=7, chunk_hash='ff', size=1).name == 'ff-7'


class TestConcurrentStores:
    def test_parallel_chunks_of_one_session_merge_exactly(self, chunk_store, merge_engine):
        data = os.urandom(16 * 1024 + 123)
        content_hash = compute_checksum(data)
        pieces = [data[offset:offset + 1024] for offset in range(0, len(data), 1024)]
        errors = []

        def send(index, piece):
            try:
                chunk_store.store_chunk(content_hash, index, compute_checksum(piece), piece)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=send, args=(i, p)) for i, p in enumerate(pieces)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert sorted(chunk_store.list_uploaded_indices(content_hash)) == list(range(len(pieces)))

        view = merge_engine.merge(content_hash, 'parallel.bin', len(data), 'application/octet-stream',
                                  total_chunks=len(pieces))

        with open(view.storage_path, 'rb') as f:
            assert f.read() == data
        assert not chunk_store.session_exists(content_hash)

    def test_parallel_writes_of_same_chunk_leave_one_copy(self, chunk_store):
        payload = b'same bytes' * 1000
        chunk_hash = compute_checksum(payload)

        threads = [
            threading.Thread(target=chunk_store.store_chunk, args=('filehash', 0, chunk_hash, payload))
            for _ in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        records = chunk_store.list_chunks('filehash')
        assert len(records) == 1
        assert records[0].checksum == compute_checksum(payload)
        assert (chunk_store.root / 'filehash' / f'{chunk_hash}-0').read_bytes() == payload
        leftovers = [p.name for p in (chunk_store.root / 'filehash').iterdir() if p.name.startswith('.')]
        assert leftovers == []
