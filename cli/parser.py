"""Command parser for CLI input."""

import shlex

from common.constants import CODE_LENGTH
from cli.models import CleanupCommand, CommandRequest, ReceiveCommand, SendCommand


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL or command line

    Returns:
        CommandRequest object (one of Send/Receive/Cleanup)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    return parse_tokens(tokens)


def parse_tokens(tokens: list[str]) -> CommandRequest:
    """Parse an already-split token list (e.g. sys.argv[1:])."""
    command_name = tokens[0]

    if command_name == "send":
        return _parse_send(tokens[1:])
    elif command_name == "receive":
        return _parse_receive(tokens[1:])
    elif command_name == "cleanup":
        return _parse_cleanup(tokens[1:])
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_send(args: list[str]) -> SendCommand:
    """Parse 'send <file_path>' command."""
    if len(args) != 1:
        raise ParseError("send requires exactly 1 argument: <file_path>")

    return SendCommand(file_path=args[0])


def _parse_receive(args: list[str]) -> ReceiveCommand:
    """Parse 'receive <code> [output_path]' command."""
    if len(args) < 1 or len(args) > 2:
        raise ParseError("receive requires 1 or 2 arguments: <code> [output_path]")

    code = args[0]
    if len(code) != CODE_LENGTH or not code.isalnum():
        raise ParseError(f"Code must be {CODE_LENGTH} letters or digits")

    output_path = args[1] if len(args) > 1 else None

    return ReceiveCommand(code=code, output_path=output_path)


def _parse_cleanup(args: list[str]) -> CleanupCommand:
    """Parse 'cleanup' command."""
    if args:
        raise ParseError("cleanup takes no arguments")

    return CleanupCommand()
