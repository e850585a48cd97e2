"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["send", "receive", "cleanup", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#2BB5A0 bold",
        "command": "#0088ff bold",
    }
)

TEAL = "\033[38;2;43;181;160m"
GREEN = "\033[32m"
RESET = "\033[0m"

LOGO = f"""{TEAL}
 ██████╗ ███████╗██╗      █████╗ ██╗   ██╗
 ██╔══██╗██╔════╝██║     ██╔══██╗╚██╗ ██╔╝
 ██████╔╝█████╗  ██║     ███████║ ╚████╔╝
 ██╔══██╗██╔══╝  ██║     ██╔══██║  ╚██╔╝
 ██║  ██║███████╗███████╗██║  ██║   ██║
 ╚═╝  ╚═╝╚══════╝╚══════╝╚═╝  ╚═╝   ╚═╝
{RESET}"""

WELCOME_TITLE = "Relay CLI - send a file, share the code"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "relay> "

HELP_TEXT = """Available commands:
  send <file_path>                    Upload a file in chunks and print its download code
  receive <code> [output_path]        Download the file behind a code (defaults to the download directory)
  cleanup                             Ask the server to purge expired files
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit REPL

Codes are 8 characters and stay valid for 60 minutes.
Examples:
  send reports/q3.pdf
  receive lq2fA9xZ
  receive lq2fA9xZ downloads/renamed.pdf
  cleanup"""

DEFAULT_CONFIG_DIR = ".relaydrop"
