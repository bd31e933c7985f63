"""Command parser for CLI input."""

import shlex
from typing import List, Optional

from cli.models import (
    CommandRequest,
    DeleteCommand,
    ListCommand,
    PushCommand,
    StatusCommand,
)
from cli.utils import parse_size


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL or joined argv

    Returns:
        CommandRequest object (one of Push/Status/List/Delete)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    return parse_tokens(tokens)


def parse_tokens(tokens: List[str]) -> CommandRequest:
    """Parse already split tokens (e.g. sys.argv[1:])."""
    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]

    if command_name == "push":
        return _parse_push(tokens[1:])
    elif command_name == "status":
        return _parse_status(tokens[1:])
    elif command_name == "list":
        return _parse_list(tokens[1:])
    elif command_name == "delete":
        return _parse_delete(tokens[1:])
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_push(args: List[str]) -> PushCommand:
    """Parse 'push <file> [--chunk-size N]' command."""
    file_path: Optional[str] = None
    chunk_size: Optional[int] = None

    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--chunk-size":
            if i + 1 >= len(args):
                raise ParseError("--chunk-size requires a value")
            chunk_size = _parse_chunk_size(args[i + 1])
            i += 2
            continue
        if arg.startswith("--chunk-size="):
            chunk_size = _parse_chunk_size(arg.split("=", 1)[1])
        elif arg.startswith("--"):
            raise ParseError(f"Unknown option: {arg}")
        elif file_path is None:
            file_path = arg
        else:
            raise ParseError("push accepts exactly one file")
        i += 1

    if file_path is None:
        raise ParseError("push requires a file path")

    return PushCommand(command="push", file_path=file_path, chunk_size=chunk_size)


def _parse_chunk_size(value: str) -> int:
    try:
        return parse_size(value)
    except ValueError:
        raise ParseError(f"Invalid chunk size: {value}")


def _parse_status(args: List[str]) -> StatusCommand:
    """Parse 'status <file>' command."""
    if len(args) != 1:
        raise ParseError("status requires exactly one file path")
    return StatusCommand(command="status", file_path=args[0])


def _parse_list(args: List[str]) -> ListCommand:
    """Parse 'list [page]' command."""
    if not args:
        return ListCommand(command="list")
    if len(args) > 1:
        raise ParseError("list accepts at most one page number")
    try:
        page = int(args[0])
    except ValueError:
        raise ParseError(f"Invalid page number: {args[0]}")
    if page < 1:
        raise ParseError("page must be >= 1")
    return ListCommand(command="list", page=page)


def _parse_delete(args: List[str]) -> DeleteCommand:
    """Parse 'delete <file_id>' command."""
    if len(args) != 1:
        raise ParseError("delete requires exactly one file id")
    try:
        file_id = int(args[0])
    except ValueError:
        raise ParseError(f"Invalid file id: {args[0]}")
    return DeleteCommand(command="delete", file_id=file_id)
