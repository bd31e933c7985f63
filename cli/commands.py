"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Optional

from common.logging_config import get_logger
from cli.config import Config
from cli.models import (
    CommandRequest,
    DeleteCommand,
    ListCommand,
    PushCommand,
    StatusCommand,
)
from cli.upload_client import UploadClient

logger = get_logger(__name__)


_client: Optional[UploadClient] = None


def get_client() -> UploadClient:
    """
    Get or create global UploadClient instance.

    Returns:
        UploadClient instance
    """
    global _client
    if _client is None:
        logger.debug("Creating new UploadClient instance")
        config = Config(Path.home() / '.chunkup' / 'config.json')
        _client = UploadClient(config)
    return _client


def handle_push(cmd: PushCommand, client: Optional[UploadClient] = None) -> str:
    """
    Handle 'push' command.

    Args:
        cmd: PushCommand with file path and optional chunk size
        client: Optional UploadClient for dependency injection (testing)

    Returns:
        Success or error message
    """
    if client is None:
        client = get_client()
    return client.push_file(cmd.file_path, cmd.chunk_size)


def handle_status(cmd: StatusCommand, client: Optional[UploadClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.status(cmd.file_path)


def handle_list(cmd: ListCommand, client: Optional[UploadClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.list_files(cmd.page)


def handle_delete(cmd: DeleteCommand, client: Optional[UploadClient] = None) -> str:
    """
    Handle 'delete' command.

    Args:
        cmd: DeleteCommand with the file id
        client: Optional UploadClient for dependency injection (testing)

    Returns:
        Success or error message
    """
    if client is None:
        client = get_client()
    return client.delete_file(cmd.file_id)


def dispatch_command(cmd_obj: CommandRequest, client: Optional[UploadClient] = None) -> str:
    """Dispatch parsed command to appropriate handler."""
    if isinstance(cmd_obj, PushCommand):
        return handle_push(cmd_obj, client)
    elif isinstance(cmd_obj, StatusCommand):
        return handle_status(cmd_obj, client)
    elif isinstance(cmd_obj, ListCommand):
        return handle_list(cmd_obj, client)
    elif isinstance(cmd_obj, DeleteCommand):
        return handle_delete(cmd_obj, client)
    else:
        return f"Unknown command type: {type(cmd_obj)}"
