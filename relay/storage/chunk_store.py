"""Manages uploaded chunk files on disk: write, list in order, open and delete."""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Optional

from common.constants import CHUNK_KEY_SEPARATOR
from common.logging_config import get_logger
from relay.exceptions import ChunkWriteError, EmptyChunkError, InvalidChunkIndexError
from relay.utils import validate_file_name

logger = get_logger(__name__)


@dataclass(frozen=True)
class StoredChunk:
    """
    One persisted chunk.
    """
    file_name: str
    chunk_index: int
    size: int
    path: Path


def chunk_key(file_name: str, chunk_index: int) -> str:
    """
    Build the storage key for a chunk.

    Args:
        file_name: Owning file name
        chunk_index: Sequence index of the chunk

    Returns:
        Key of the form ``<file_name>_chunk-<index>``
    """
    return f"{file_name}{CHUNK_KEY_SEPARATOR}{chunk_index}"


def parse_chunk_key(key: str, file_name: str) -> Optional[int]:
    """
    Recover the chunk index from a key owned by ``file_name``.

    Args:
        key: Storage key (file name on disk)
        file_name: Expected owner

    Returns:
        The index, or None if the key does not belong to ``file_name``
    """
    prefix = f"{file_name}{CHUNK_KEY_SEPARATOR}"
    if not key.startswith(prefix):
        return None
    suffix = key[len(prefix):]
    if not suffix.isdigit() or not suffix.isascii():
        return None
    return int(suffix)


class ChunkStore:
    """
    Directory-backed store of uploaded chunks.

    Writes go through a temporary file and ``os.replace`` so that a chunk is
    either fully present or absent; concurrent writes to the same key resolve
    as last-write-wins.
    """

    def __init__(self, chunks_dir: Path):
        """
        Initialize chunk store.

        Args:
            chunks_dir: Directory holding chunk files
        """
        self.chunks_dir = Path(chunks_dir)

    def ensure_directory(self) -> None:
        """Ensure chunks directory exists."""
        self.chunks_dir.mkdir(parents=True, exist_ok=True)

    def get_chunk_path(self, file_name: str, chunk_index: int) -> Path:
        """
        Get file path for a chunk.

        Args:
            file_name: Owning file name
            chunk_index: Sequence index

        Returns:
            Path object for chunk file
        """
        return self.chunks_dir / chunk_key(file_name, chunk_index)

    def put(self, file_name: str, chunk_index: int, payload: bytes) -> StoredChunk:
        """
        Persist a chunk, replacing any previous upload with the same key.

        Args:
            file_name: Owning file name
            chunk_index: Non-negative sequence index
            payload: Raw chunk bytes

        Returns:
            StoredChunk describing the written file

        Raises:
            EmptyChunkError: If payload is empty
            InvalidChunkIndexError: If chunk_index is negative
            InvalidFileNameError: If file_name is unsafe
            ChunkWriteError: If the write fails
        """
        validate_file_name(file_name)
        if chunk_index < 0:
            raise InvalidChunkIndexError(f"Chunk index must be non-negative, got {chunk_index}")
        if not payload:
            raise EmptyChunkError("Cannot upload an empty chunk")

        filepath = self.get_chunk_path(file_name, chunk_index)
        tmp_name = None
        try:
            self.ensure_directory()
            fd, tmp_name = tempfile.mkstemp(dir=self.chunks_dir, prefix=".upload-")
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.replace(tmp_name, filepath)
            tmp_name = None
        except OSError as e:
            logger.error(f"Failed to write chunk [key={filepath.name}]: {e}")
            raise ChunkWriteError(f"Failed to save chunk {chunk_index} of {file_name}") from e
        finally:
            if tmp_name is not None:
                _unlink_quietly(Path(tmp_name))

        logger.debug(f"Stored chunk [key={filepath.name}] size={len(payload)}")
        return StoredChunk(
            file_name=file_name,
            chunk_index=chunk_index,
            size=len(payload),
            path=filepath,
        )

    def list_chunks(self, file_name: str) -> List[StoredChunk]:
        """
        List chunks owned by ``file_name`` in ascending index order.

        Ordering is numeric, so chunk-2 precedes chunk-10.

        Args:
            file_name: Owning file name

        Returns:
            Sorted list of StoredChunk (empty if none)

        Raises:
            OSError: If the directory cannot be read
        """
        if not self.chunks_dir.exists():
            return []

        chunks = []
        with os.scandir(self.chunks_dir) as entries:
            for entry in entries:
                if not entry.is_file():
                    continue
                index = parse_chunk_key(entry.name, file_name)
                if index is None:
                    continue
                chunks.append(StoredChunk(
                    file_name=file_name,
                    chunk_index=index,
                    size=entry.stat().st_size,
                    path=Path(entry.path),
                ))

        chunks.sort(key=lambda chunk: chunk.chunk_index)
        return chunks

    def open_chunk(self, chunk: StoredChunk) -> BinaryIO:
        """
        Open a chunk for reading.

        Raises:
            FileNotFoundError: If the chunk was consumed by another merge
        """
        return open(chunk.path, "rb")

    def delete_chunk(self, chunk: StoredChunk) -> bool:
        """
        Delete chunk file from disk.

        Args:
            chunk: Chunk to delete

        Returns:
            True if file was deleted, False if it didn't exist
        """
        try:
            chunk.path.unlink()
            return True
        except FileNotFoundError:
            return False

    def list_stale_files(self, older_than: float) -> List[Path]:
        """
        List chunk files last modified before ``older_than``.

        Covers abandoned uploads and leftover temporary files.

        Args:
            older_than: Epoch seconds cutoff

        Returns:
            Paths of stale files
        """
        if not self.chunks_dir.exists():
            return []

        stale = []
        with os.scandir(self.chunks_dir) as entries:
            for entry in entries:
                if entry.is_file() and entry.stat().st_mtime < older_than:
                    stale.append(Path(entry.path))
        return stale


def _unlink_quietly(path: Path) -> None:
    try:
        path.unlink()
    except OSError as e:
        logger.warning(f"Failed to remove temporary file {path.name}: {e}")
