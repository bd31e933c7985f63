"""CLI entry point.

With arguments, runs one command and exits (``chunkup push big.iso``);
without, starts the interactive REPL.
"""

import os
import sys

from common.logging_config import setup_logging
from cli.commands import dispatch_command
from cli.constants import HELP_TEXT
from cli.parser import ParseError, parse_tokens
from cli.repl import repl_loop


def run_once(args: list) -> int:
    """
    Run a single command given as argv tokens.

    Returns:
        Process exit code
    """
    if args[0] in ("help", "-h", "--help"):
        print(HELP_TEXT)
        return 0
    try:
        cmd_obj = parse_tokens(args)
    except ParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    result = dispatch_command(cmd_obj)
    print(result)
    failed = result.startswith(("Error", "Upload failed", "Status failed", "List failed", "Delete failed"))
    return 1 if failed else 0


def main() -> None:
    """Entry point for CLI."""
    args = sys.argv[1:]
    debug = '--debug' in args
    if debug:
        args = [a for a in args if a != '--debug']

    log_level = 'DEBUG' if debug else os.getenv('LOG_LEVEL', 'WARNING')
    logger = setup_logging('cli', log_level=log_level, stream=sys.stderr)

    if debug:
        logger.info("Debug logging enabled")

    logger.info("CLI starting...")
    try:
        if args:
            sys.exit(run_once(args))
        repl_loop()
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        logger.info("CLI exiting")


if __name__ == "__main__":
    main()
