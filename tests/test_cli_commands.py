"""Tests for CLI command handlers and dispatch."""

from unittest.mock import Mock, patch

from cli.commands import handle_cleanup, handle_receive, handle_send
from cli.models import CleanupCommand, ReceiveCommand, SendCommand
from cli.relay_client import RelayClient
from cli.repl import dispatch_command, handle_line


def test_handle_send():
    """Test send command handler with mocked client."""
    mock_client = Mock(spec=RelayClient)
    mock_client.send.return_value = "Upload complete: a.txt (5 B)\nDownload code: lq2fA9xZ"

    result = handle_send(SendCommand(file_path='a.txt'), client=mock_client)

    assert 'Download code' in result
    mock_client.send.assert_called_once_with('a.txt')


def test_handle_receive():
    """Test receive command handler with mocked client."""
    mock_client = Mock(spec=RelayClient)
    mock_client.receive.return_value = "Downloaded: a.txt (5 B)"

    cmd = ReceiveCommand(code='lq2fA9xZ', output_path='out/')
    result = handle_receive(cmd, client=mock_client)

    assert 'Downloaded' in result
    mock_client.receive.assert_called_once_with('lq2fA9xZ', 'out/')


def test_handle_receive_default_output():
    """Test receive passes None when no output path is given."""
    mock_client = Mock(spec=RelayClient)
    mock_client.receive.return_value = "Downloaded: a.txt (5 B)"

    handle_receive(ReceiveCommand(code='lq2fA9xZ'), client=mock_client)

    mock_client.receive.assert_called_once_with('lq2fA9xZ', None)


def test_handle_cleanup():
    """Test cleanup command handler with mocked client."""
    mock_client = Mock(spec=RelayClient)
    mock_client.cleanup.return_value = "Cleanup complete: 2 entries removed"

    result = handle_cleanup(CleanupCommand(), client=mock_client)

    assert '2 entries removed' in result
    mock_client.cleanup.assert_called_once_with()


def test_dispatch_routes_commands():
    """Test dispatch sends each command type to its handler."""
    send = Mock(return_value='sent')
    receive = Mock(return_value='received')
    cleanup = Mock(return_value='cleaned')
    handlers = {SendCommand: send, ReceiveCommand: receive, CleanupCommand: cleanup}

    with patch.dict('cli.repl.HANDLERS', handlers):
        assert dispatch_command(SendCommand(file_path='a.txt')) == 'sent'
        assert dispatch_command(ReceiveCommand(code='lq2fA9xZ')) == 'received'
        assert dispatch_command(CleanupCommand()) == 'cleaned'

    send.assert_called_once()
    receive.assert_called_once()
    cleanup.assert_called_once()


def test_dispatch_unknown_command():
    """Test dispatch reports unknown command objects."""
    assert 'Unknown command type' in dispatch_command(object())


def test_handle_line_exit(capsys):
    """Test 'exit' ends the shell."""
    assert handle_line('exit') is False
    assert 'Goodbye' in capsys.readouterr().out


def test_handle_line_help(capsys):
    """Test 'help' prints usage and keeps the shell open."""
    assert handle_line('help') is True
    assert 'receive <code>' in capsys.readouterr().out


def test_handle_line_parse_error(capsys):
    """Test bad input prints an error and keeps the shell open."""
    assert handle_line('receive short') is True
    assert capsys.readouterr().out.startswith('Error:')


def test_handle_line_runs_command(capsys):
    """Test a valid command is dispatched and its result printed."""
    cleanup = Mock(return_value='Cleanup complete: 0 entries removed')

    with patch.dict('cli.repl.HANDLERS', {CleanupCommand: cleanup}):
        assert handle_line('cleanup') is True

    assert 'Cleanup complete' in capsys.readouterr().out
