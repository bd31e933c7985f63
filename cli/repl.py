"""Interactive prompt_toolkit shell around the command handlers."""

import os
import sys
from typing import Callable, Dict, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from cli.commands import dispatch_command
from cli.completer import ChunkupCompleter
from cli.constants import HELP_TEXT, LOGO, PROMPT_TEXT, STYLE, WELCOME_HELP, WELCOME_TITLE
from cli.parser import ParseError, parse_command


class ExitRepl(Exception):
    """Raised by the 'exit' built-in to leave the loop."""


def clear_screen() -> None:
    os.system("cls" if sys.platform == "win32" else "clear")


def welcome_banner() -> str:
    return f"{LOGO}\n{WELCOME_TITLE}\n{WELCOME_HELP}"


def _builtin_exit() -> str:
    raise ExitRepl()


def _builtin_clear() -> str:
    clear_screen()
    return welcome_banner()


BUILTINS: Dict[str, Callable[[], str]] = {
    "exit": _builtin_exit,
    "quit": _builtin_exit,
    "help": lambda: HELP_TEXT,
    "clear": _builtin_clear,
}


def handle_line(line: str, dispatch: Callable = dispatch_command) -> Optional[str]:
    """
    Run one line of REPL input.

    Returns:
        Text to print, or None for a blank line

    Raises:
        ExitRepl: If the line asks to leave the shell
    """
    stripped = line.strip()
    if not stripped:
        return None

    builtin = BUILTINS.get(stripped.lower())
    if builtin is not None:
        return builtin()

    try:
        return dispatch(parse_command(stripped))
    except ParseError as e:
        return f"Error: {e}"


def repl_loop() -> None:
    """Read commands until 'exit' or end of input."""
    session: PromptSession = PromptSession(
        completer=ChunkupCompleter(),
        history=InMemoryHistory(),
        style=STYLE,
    )

    clear_screen()
    print(welcome_banner())

    while True:
        try:
            output = handle_line(session.prompt([("class:prompt", PROMPT_TEXT)]))
        except KeyboardInterrupt:
            continue
        except (EOFError, ExitRepl):
            print("Goodbye!")
            break

        if output is not None:
            print(output)
