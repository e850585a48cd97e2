"""Resolves retrieval codes to streamed artifacts."""

import os
import time
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional

from common.constants import RETENTION_WINDOW_SECONDS, STREAM_PIECE_SIZE
from common.logging_config import get_logger
from relay.codes import is_valid_code
from relay.exceptions import (
    ArtifactMissingError,
    ArtifactReadError,
    CodeExpiredError,
    CodeNotFoundError,
)
from relay.storage.artifact_store import ArtifactStore
from relay.storage.code_registry import CodeRegistry

logger = get_logger(__name__)


class ArtifactStream:
    """
    Single-pass iterator over an already-open artifact.

    The file handle is opened before the download starts, so a sweep that
    unlinks the artifact mid-download does not cut the stream short. If the
    bytes read end up different from the declared size, iteration ends with
    ArtifactReadError instead of a silently truncated body.
    """

    def __init__(
        self,
        handle: BinaryIO,
        declared_size: int,
        label: str,
        piece_size: int = STREAM_PIECE_SIZE,
    ):
        self._handle: Optional[BinaryIO] = handle
        self.declared_size = declared_size
        self.label = label
        self.piece_size = piece_size
        self.bytes_read = 0

    def __iter__(self) -> "ArtifactStream":
        return self

    def __next__(self) -> bytes:
        if self._handle is None:
            raise StopIteration

        try:
            piece = self._handle.read(self.piece_size)
        except OSError as e:
            self.close()
            logger.error(
                f"Read failed for {self.label} after {self.bytes_read}/{self.declared_size} bytes: {e}"
            )
            raise ArtifactReadError(f"Failed to read {self.label}") from e

        if piece:
            self.bytes_read += len(piece)
            if self.bytes_read > self.declared_size:
                self.close()
                logger.error(f"Artifact {self.label} grew while streaming")
                raise ArtifactReadError(f"Artifact {self.label} changed while streaming")
            return piece

        self.close()
        if self.bytes_read != self.declared_size:
            logger.error(
                f"Artifact {self.label} ended early: {self.bytes_read}/{self.declared_size} bytes"
            )
            raise ArtifactReadError(f"Artifact {self.label} ended before its declared size")

        logger.debug(f"Streamed {self.label}: {self.bytes_read} bytes")
        raise StopIteration

    @property
    def closed(self) -> bool:
        return self._handle is None

    def close(self) -> None:
        """Close the underlying file. Safe to call more than once."""
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "ArtifactStream":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


@dataclass(frozen=True)
class RetrievedArtifact:
    """
    A resolved download: metadata plus the byte stream.
    """
    code: str
    name: str
    size: int
    created_at: float
    expires_at: float
    stream: ArtifactStream


class RetrievalService:
    """
    Read-only access to artifacts through the code registry.

    Expired entries are reported, never deleted here; deletion belongs to the
    expiry sweeper.
    """

    def __init__(
        self,
        registry: CodeRegistry,
        artifact_store: ArtifactStore,
        clock: Callable[[], float] = time.time,
        retention_seconds: float = RETENTION_WINDOW_SECONDS,
    ):
        self.registry = registry
        self.artifact_store = artifact_store
        self.clock = clock
        self.retention_seconds = retention_seconds

    def retrieve(self, code: str) -> RetrievedArtifact:
        """
        Resolve a code and open its artifact for streaming.

        Args:
            code: Retrieval code

        Returns:
            RetrievedArtifact; the caller must exhaust or close its stream

        Raises:
            CodeNotFoundError: If the code is unknown
            CodeExpiredError: If the code is past the retention window
            ArtifactMissingError: If the registry entry has no artifact behind it
            ArtifactReadError: If the artifact cannot be opened
        """
        if not is_valid_code(code):
            raise CodeNotFoundError(f"Unknown retrieval code [code={code}]")

        entry = self.registry.resolve(code)

        if entry.is_expired(self.clock(), self.retention_seconds):
            raise CodeExpiredError(f"Retrieval code has expired [code={code}]")

        try:
            handle = self.artifact_store.open_for_read(entry.artifact_name)
        except FileNotFoundError as e:
            logger.error(
                f"Registry entry without artifact [code={code}] artifact={entry.artifact_name}"
            )
            raise ArtifactMissingError(f"File is missing from storage [code={code}]") from e
        except OSError as e:
            logger.error(f"Failed to open artifact {entry.artifact_name}: {e}")
            raise ArtifactReadError(f"Failed to read file [code={code}]") from e

        try:
            size = os.fstat(handle.fileno()).st_size
        except OSError as e:
            handle.close()
            logger.error(f"Failed to stat artifact {entry.artifact_name}: {e}")
            raise ArtifactReadError(f"Failed to read file [code={code}]") from e

        logger.info(f"Retrieving {entry.artifact_name} ({size} bytes) [code={code}]")
        return RetrievedArtifact(
            code=code,
            name=entry.artifact_name,
            size=size,
            created_at=entry.created_at,
            expires_at=entry.expires_at(self.retention_seconds),
            stream=ArtifactStream(handle, size, entry.artifact_name),
        )
