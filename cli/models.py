"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class SendCommand:
    """Upload a file and obtain a retrieval code."""

    file_path: str
    command: Literal["send"] = "send"


@dataclass(frozen=True)
class ReceiveCommand:
    """Download the file behind a retrieval code."""

    code: str
    output_path: str | None = None
    command: Literal["receive"] = "receive"


@dataclass(frozen=True)
class CleanupCommand:
    """Ask the server to purge expired files."""

    command: Literal["cleanup"] = "cleanup"


CommandRequest = SendCommand | ReceiveCommand | CleanupCommand
