"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Optional

from common.logging_config import get_logger
from cli.constants import DEFAULT_CONFIG_DIR
from cli.models import CleanupCommand, ReceiveCommand, SendCommand
from cli.config import Config
from cli.relay_client import RelayClient

logger = get_logger(__name__)


_client: Optional[RelayClient] = None


def get_client() -> RelayClient:
    """
    Get or create global RelayClient instance.

    Returns:
        RelayClient instance
    """
    global _client
    if _client is None:
        logger.debug("Creating new RelayClient instance")
        config = Config(Path.home() / DEFAULT_CONFIG_DIR / 'config.json')
        _client = RelayClient(config)
    return _client


def handle_send(cmd: SendCommand, client: Optional[RelayClient] = None) -> str:
    """
    Handle 'send' command.

    Args:
        cmd: SendCommand with file_path
        client: Optional RelayClient for dependency injection (testing)

    Returns:
        Message with the download code, or an error message
    """
    logger.info(f"Executing send command: file_path={cmd.file_path}")
    if client is None:
        client = get_client()
    result = client.send(cmd.file_path)
    logger.debug("Send command completed")
    return result


def handle_receive(cmd: ReceiveCommand, client: Optional[RelayClient] = None) -> str:
    """
    Handle 'receive' command.

    Args:
        cmd: ReceiveCommand with code and optional output_path
        client: Optional RelayClient for dependency injection (testing)

    Returns:
        Success or error message with download results
    """
    logger.info(f"Executing receive command: code={cmd.code} output_path={cmd.output_path}")
    if client is None:
        client = get_client()
    result = client.receive(cmd.code, cmd.output_path)
    logger.debug("Receive command completed")
    return result


def handle_cleanup(cmd: CleanupCommand, client: Optional[RelayClient] = None) -> str:
    """
    Handle 'cleanup' command.

    Args:
        cmd: CleanupCommand
        client: Optional RelayClient for dependency injection (testing)

    Returns:
        Server message with the removed entry count
    """
    if client is None:
        client = get_client()
    return client.cleanup()
