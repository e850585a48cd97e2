"""Tests for RelayCompleter."""

import pytest
from prompt_toolkit.document import Document

from cli.completer import RelayCompleter
from cli.constants import COMMANDS


@pytest.fixture
def completer():
    """Create a RelayCompleter instance."""
    return RelayCompleter()


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """
    Create a working directory with files to complete.

    Returns:
        Path to the temporary working directory
    """
    (tmp_path / "report.pdf").write_text("content")
    (tmp_path / "readme.txt").write_text("content")
    (tmp_path / "photos").mkdir()
    monkeypatch.chdir(tmp_path)
    return tmp_path


def get_completions_list(completer, text):
    """Helper to get list of completion texts from completer."""
    doc = Document(text, len(text))
    return [c.text for c in completer.get_completions(doc, None)]


def get_completions_display(completer, text):
    """Helper to get list of completion display texts from completer."""
    doc = Document(text, len(text))
    return [c.display_text for c in completer.get_completions(doc, None)]


class TestCommandCompletion:
    """Tests for command name completion."""

    def test_empty_input_shows_all_commands(self, completer):
        """Empty input should suggest all commands."""
        completions = get_completions_list(completer, "")
        for cmd in COMMANDS:
            assert cmd in completions

    def test_partial_command_filters(self, completer):
        """Partial command should filter to matching commands."""
        completions = get_completions_list(completer, "cl")
        assert sorted(completions) == ["cleanup", "clear"]

    def test_command_completion_is_case_insensitive(self, completer):
        """Upper-case input still matches commands."""
        assert get_completions_list(completer, "SE") == ["send"]


class TestSendPathCompletion:
    """Tests for local file completion after 'send'."""

    def test_lists_files_in_working_directory(self, completer, workdir):
        """'send ' offers entries of the current directory."""
        displayed = get_completions_display(completer, "send ")
        assert "report.pdf" in displayed
        assert "readme.txt" in displayed

    def test_partial_name_filters(self, completer, workdir):
        """A partial name only completes matching entries."""
        displayed = get_completions_display(completer, "send rep")
        assert displayed == ["report.pdf"]

    def test_completion_inserts_remainder(self, completer, workdir):
        """The inserted text finishes the word being typed."""
        assert get_completions_list(completer, "send rep") == ["ort.pdf"]

    def test_no_completion_for_second_argument(self, completer, workdir):
        """send takes a single path."""
        assert get_completions_list(completer, "send report.pdf ") == []

    def test_no_path_completion_for_receive(self, completer, workdir):
        """receive takes a code, not a local path."""
        assert get_completions_list(completer, "receive ") == []
