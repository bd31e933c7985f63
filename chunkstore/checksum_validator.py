"""SHA-256 helpers shared by the chunk store, the merge and the CLI."""

import hashlib
from typing import BinaryIO

from common.constants import STREAM_PIECE_SIZE_BYTES


def compute_checksum(data: bytes) -> str:
    """Hex SHA-256 of ``data``."""
    return hashlib.sha256(data).hexdigest()


def compute_stream_checksum(stream: BinaryIO, piece_size: int = STREAM_PIECE_SIZE_BYTES) -> str:
    """
    Hex SHA-256 of everything left in ``stream``, read ``piece_size`` bytes
    at a time.
    """
    calculator = IncrementalChecksumCalculator()
    for piece in iter(lambda: stream.read(piece_size), b""):
        calculator.update(piece)
    return calculator.finalize()


class IncrementalChecksumCalculator:
    """
    Running SHA-256 over data seen piece by piece, with a byte count.

    Used while a chunk is written to disk and again while it is copied
    into the merged file, so both sides can be compared without a
    second read.
    """

    def __init__(self):
        self._hasher = hashlib.sha256()
        self._finalized = False
        self.bytes_seen = 0

    def update(self, data: bytes) -> None:
        """
        Raises:
            ValueError: If called after finalize()
        """
        if self._finalized:
            raise ValueError("Cannot update after finalization")
        self._hasher.update(data)
        self.bytes_seen += len(data)

    def finalize(self) -> str:
        self._finalized = True
        return self._hasher.hexdigest()
