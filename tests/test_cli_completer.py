"""Tests for ChunkupCompleter."""

import pytest

from prompt_toolkit.document import Document

from cli.completer import ChunkupCompleter
from cli.constants import COMMANDS


@pytest.fixture
def completer():
    return ChunkupCompleter()


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """
    Create a working directory with files to complete and chdir into it.
    """
    (tmp_path / "video.mp4").write_text("content")
    (tmp_path / "notes.txt").write_text("content")
    (tmp_path / ".secret").write_text("content")
    (tmp_path / "backups").mkdir()
    (tmp_path / "backups" / "db.tar").write_text("content")
    monkeypatch.chdir(tmp_path)
    return tmp_path


def get_completions_list(completer, text):
    """Helper to get list of completion texts from completer."""
    doc = Document(text, len(text))
    return [c.text for c in completer.get_completions(doc, None)]


class TestCommandCompletion:
    def test_empty_input_shows_all_commands(self, completer):
        completions = get_completions_list(completer, "")
        for cmd in COMMANDS:
            assert cmd in completions

    def test_partial_command_filters(self, completer):
        completions = get_completions_list(completer, "p")
        assert completions == ["push"]

    def test_command_completion_case_insensitive(self, completer):
        assert "status" in get_completions_list(completer, "ST")


class TestPathCompletion:
    def test_push_lists_working_directory(self, completer, workdir):
        completions = get_completions_list(completer, "push ")
        assert "video.mp4" in completions
        assert "notes.txt" in completions
        assert "backups/" in completions
        assert ".secret" not in completions

    def test_partial_name_filters(self, completer, workdir):
        assert get_completions_list(completer, "status no") == ["notes.txt"]

    def test_descends_into_directory(self, completer, workdir):
        assert get_completions_list(completer, "push backups/") == ["backups/db.tar"]

    def test_hidden_files_with_dot_prefix(self, completer, workdir):
        assert ".secret" in get_completions_list(completer, "push .s")

    def test_only_first_argument_completed(self, completer, workdir):
        assert get_completions_list(completer, "push video.mp4 ") == []

    def test_other_commands_not_completed(self, completer, workdir):
        assert get_completions_list(completer, "list ") == []
        assert get_completions_list(completer, "delete ") == []

    def test_missing_directory(self, completer, workdir):
        assert get_completions_list(completer, "push nowhere/x") == []
