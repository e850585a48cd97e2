"""Interactive shell for sending and receiving files."""

import os
import sys
from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from cli.commands import handle_cleanup, handle_receive, handle_send
from cli.completer import RelayCompleter
from cli.constants import (
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.models import CleanupCommand, CommandRequest, ReceiveCommand, SendCommand
from cli.parser import ParseError, parse_command

HANDLERS = {
    SendCommand: handle_send,
    ReceiveCommand: handle_receive,
    CleanupCommand: handle_cleanup,
}


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    os.system("cls" if sys.platform == "win32" else "clear")


def show_welcome() -> None:
    """Redraw the logo and the welcome banner."""
    clear_screen()
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


def dispatch_command(cmd_obj: CommandRequest) -> str:
    """Dispatch parsed command to appropriate handler."""
    handler = HANDLERS.get(type(cmd_obj))
    if handler is None:
        return f"Unknown command type: {type(cmd_obj)}"
    return handler(cmd_obj)


def handle_line(line: str) -> bool:
    """
    Execute one line typed at the prompt.

    Args:
        line: Raw user input

    Returns:
        False when the shell should exit
    """
    command = line.strip()
    if not command:
        return True

    if command == "exit":
        print("Goodbye!")
        return False
    if command == "help":
        print(HELP_TEXT)
    elif command == "clear":
        show_welcome()
    else:
        try:
            print(dispatch_command(parse_command(line)))
        except ParseError as e:
            print(f"Error: {e}")
    return True


def repl_loop() -> None:
    """Start interactive REPL with prompt_toolkit."""
    session: PromptSession = PromptSession(
        completer=RelayCompleter(), history=InMemoryHistory(), style=STYLE
    )

    show_welcome()

    while True:
        try:
            if not handle_line(session.prompt([("class:prompt", PROMPT_TEXT)])):
                break
        except KeyboardInterrupt:
            continue
        except EOFError:
            print("\nGoodbye!")
            break
