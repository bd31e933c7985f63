"""Completer for the CLI: command names and local file paths."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS, PATH_COMMANDS


class ChunkupCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Local path completion for the argument of 'push' and 'status'
    """

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        if tokens[0].lower() not in PATH_COMMANDS:
            return

        # only the first argument is a path
        arg_count = len(tokens) - 1 if not is_typing_new_token else len(tokens)
        if arg_count > 1:
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        yield from self._complete_paths(current_word)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_paths(self, partial: str) -> Iterable[Completion]:
        """
        Complete entries of the directory named by ``partial``.

        Directories are offered with a trailing slash; hidden entries only
        when the partial name starts with a dot.
        """
        if partial.endswith("/"):
            directory, prefix = Path(partial), ""
        else:
            directory, prefix = Path(partial).parent, Path(partial).name

        try:
            entries = sorted(directory.iterdir())
        except OSError:
            return

        for entry in entries:
            if not entry.name.startswith(prefix):
                continue
            if entry.name.startswith(".") and not prefix.startswith("."):
                continue
            if partial.endswith("/"):
                candidate = partial + entry.name
            elif str(directory) == ".":
                candidate = ("./" if partial.startswith("./") else "") + entry.name
            else:
                candidate = str(directory / entry.name)
            if entry.is_dir():
                candidate += "/"
            yield Completion(candidate, start_position=-len(partial))
