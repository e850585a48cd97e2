"""Tests for CLI command parsing and one-shot mode."""

from unittest.mock import patch

import pytest

from cli.main import run_once
from cli.models import CleanupCommand, ReceiveCommand, SendCommand
from cli.parser import ParseError, parse_command, parse_tokens


def test_parse_send():
    """Test send takes one file path."""
    assert parse_command('send report.pdf') == SendCommand(file_path='report.pdf')


def test_parse_send_quoted_path():
    """Test quoted paths with spaces stay one argument."""
    assert parse_command('send "my report.pdf"') == SendCommand(file_path='my report.pdf')


def test_parse_receive():
    """Test receive with and without an output path."""
    assert parse_command('receive lq2fA9xZ') == ReceiveCommand(code='lq2fA9xZ')
    assert parse_command('receive lq2fA9xZ out/') == ReceiveCommand(
        code='lq2fA9xZ', output_path='out/'
    )


def test_parse_cleanup():
    """Test cleanup takes no arguments."""
    assert parse_command('cleanup') == CleanupCommand()


@pytest.mark.parametrize('line', [
    '',
    '   ',
    'send',
    'send a.txt b.txt',
    'receive',
    'receive short',
    'receive lq2fA9x!',
    'receive lq2fA9xZ a b',
    'cleanup now',
    'upload a.txt',
    'send "unterminated',
])
def test_parse_errors(line):
    """Test malformed commands raise ParseError."""
    with pytest.raises(ParseError):
        parse_command(line)


def test_parse_tokens():
    """Test pre-split argv tokens are accepted."""
    assert parse_tokens(['send', 'a b.txt']) == SendCommand(file_path='a b.txt')


def test_run_once_success(capsys):
    """Test one-shot mode prints the result and exits 0."""
    with patch('cli.main.dispatch_command', return_value='Cleanup complete: 0 entries removed'):
        status = run_once(['cleanup'])

    assert status == 0
    assert 'Cleanup complete' in capsys.readouterr().out


def test_run_once_error_result(capsys):
    """Test one-shot mode exits 1 when the command reports an error."""
    with patch('cli.main.dispatch_command', return_value='Error: This code has expired.'):
        status = run_once(['receive', 'lq2fA9xZ'])

    assert status == 1


def test_run_once_bad_usage(capsys):
    """Test one-shot mode exits 2 on a parse error."""
    status = run_once(['receive'])

    assert status == 2
    assert 'Error' in capsys.readouterr().err


def test_run_once_help(capsys):
    """Test help is printed without contacting the server."""
    assert run_once(['help']) == 0
    assert 'send <file_path>' in capsys.readouterr().out
