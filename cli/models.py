"""Request models for CLI commands."""

from dataclasses import dataclass
from typing import Literal, Optional, Union


@dataclass(frozen=True)
class PushCommand:
    """Upload a local file through the chunked protocol."""
    command: Literal["push"]
    file_path: str
    chunk_size: Optional[int] = None


@dataclass(frozen=True)
class StatusCommand:
    """Report server-side state for a local file."""
    command: Literal["status"]
    file_path: str


@dataclass(frozen=True)
class ListCommand:
    """List stored files."""
    command: Literal["list"]
    page: int = 1


@dataclass(frozen=True)
class DeleteCommand:
    """Delete a stored file by id."""
    command: Literal["delete"]
    file_id: int


CommandRequest = Union[PushCommand, StatusCommand, ListCommand, DeleteCommand]
