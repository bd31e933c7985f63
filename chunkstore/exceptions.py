"""Exceptions raised by the on-disk chunk store."""


class ChunkStoreError(Exception):
    """
    Base exception class for chunk storage errors.
    """
    pass


class InvalidChunkKeyError(ChunkStoreError, ValueError):
    """
    Raised when a content hash or chunk hash cannot be used as a storage name
    (empty, too long, or containing path separators).
    """
    pass


class StorageWriteError(ChunkStoreError):
    """
    Raised when a chunk or artifact cannot be written (disk full, permissions,
    session directory removed underneath the writer).
    """
    pass


class StorageReadError(ChunkStoreError):
    """
    Raised when stored bytes cannot be read back or fail checksum verification.
    """
    pass
