"""Owns the bytes of merged artifacts. Reached only through the relay services."""

import os
from pathlib import Path
from typing import BinaryIO

from common.logging_config import get_logger
from relay.utils import validate_file_name

logger = get_logger(__name__)


class ArtifactStore:
    """
    Directory-backed store of reassembled files, one file per artifact name.
    """

    def __init__(self, artifacts_dir: Path):
        """
        Initialize artifact store.

        Args:
            artifacts_dir: Directory holding merged artifacts
        """
        self.artifacts_dir = Path(artifacts_dir)

    def ensure_directory(self) -> None:
        """Ensure artifacts directory exists."""
        self.artifacts_dir.mkdir(parents=True, exist_ok=True)

    def get_artifact_path(self, name: str) -> Path:
        """
        Get file path for an artifact.

        Raises:
            InvalidFileNameError: If name is unsafe
        """
        return self.artifacts_dir / validate_file_name(name)

    def open_for_write(self, name: str) -> BinaryIO:
        """
        Create or truncate an artifact and open it for writing.

        Truncation makes a retried merge start from an empty file.
        """
        self.ensure_directory()
        return open(self.get_artifact_path(name), "wb")

    def open_for_read(self, name: str) -> BinaryIO:
        """
        Open an artifact for reading.

        Raises:
            FileNotFoundError: If the artifact does not exist
        """
        return open(self.get_artifact_path(name), "rb")

    def size_of(self, name: str) -> int:
        """
        Get size of an artifact in bytes.

        Raises:
            FileNotFoundError: If the artifact does not exist
        """
        return self.get_artifact_path(name).stat().st_size

    def exists(self, name: str) -> bool:
        return self.get_artifact_path(name).is_file()

    def delete(self, name: str) -> bool:
        """
        Delete an artifact.

        Args:
            name: Artifact name

        Returns:
            True if the file was deleted, False if it didn't exist

        Raises:
            OSError: If the file exists but cannot be removed
        """
        try:
            os.unlink(self.get_artifact_path(name))
        except FileNotFoundError:
            return False
        logger.debug(f"Deleted artifact {name}")
        return True
