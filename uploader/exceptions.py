"""Custom exception classes for the upload server."""

from chunkstore.exceptions import (
    ChunkStoreError,
    InvalidChunkKeyError,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    "UploadException",
    "InvalidInputError",
    "SessionNotFoundError",
    "SessionIncompleteError",
    "PersistenceError",
    "DuplicateContentError",
    "FileTooLargeError",
    "FileRecordNotFoundError",
    "ChunkStoreError",
    "InvalidChunkKeyError",
    "StorageReadError",
    "StorageWriteError",
    "error_code_for",
]


class UploadException(Exception):
    """
    Base exception class for all upload-related errors.
    """
    pass


class InvalidInputError(UploadException):
    """
    Raised when a request is missing a hash, index, chunk hash or size,
    or carries one in the wrong shape.
    """
    pass


class SessionNotFoundError(UploadException):
    """
    Raised when a merge is requested for a content hash with no stored chunks.
    """
    pass


class SessionIncompleteError(UploadException):
    """
    Raised when stored chunks do not cover the declared file (missing
    indices, size mismatch, or chunk count mismatch).
    """
    pass


class PersistenceError(UploadException):
    """
    Raised when the metadata repository rejects a file record.
    """
    pass


class DuplicateContentError(PersistenceError):
    """
    Raised when a file record for the content hash already exists.
    """
    pass


class FileTooLargeError(UploadException):
    """
    Raised when a plain upload exceeds the configured size limit.
    """
    pass


class FileRecordNotFoundError(UploadException):
    """
    Raised when a requested file record does not exist.
    """
    pass


_ERROR_CODES = (
    (DuplicateContentError, "DUPLICATE_CONTENT"),
    (PersistenceError, "PERSISTENCE_FAILURE"),
    (InvalidInputError, "INVALID_INPUT"),
    (InvalidChunkKeyError, "INVALID_INPUT"),
    (SessionNotFoundError, "SESSION_NOT_FOUND"),
    (SessionIncompleteError, "SESSION_INCOMPLETE"),
    (FileTooLargeError, "FILE_TOO_LARGE"),
    (FileRecordNotFoundError, "FILE_NOT_FOUND"),
    (StorageWriteError, "STORAGE_WRITE_FAILURE"),
    (StorageReadError, "STORAGE_READ_FAILURE"),
)


def error_code_for(exc: Exception) -> str:
    """
    Map an exception to the error code reported to clients.

    Subclasses are listed before their bases, so the most specific code wins.
    """
    for exc_type, code in _ERROR_CODES:
        if isinstance(exc, exc_type):
            return code
    return "INTERNAL_ERROR"
