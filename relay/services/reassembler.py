"""Reassembles uploaded chunks into an artifact and registers a retrieval code."""

import shutil
from dataclasses import dataclass
from typing import List, Optional

from common.logging_config import get_logger
from relay.codes import CodeMinter, mint_code
from relay.exceptions import (
    EmptyResultError,
    MergeIOError,
    NoChunksFoundError,
    RegistryIOError,
)
from relay.locks import KeyedLock
from relay.storage.artifact_store import ArtifactStore
from relay.storage.chunk_store import ChunkStore, StoredChunk
from relay.storage.code_registry import CodeRegistry, RegistryEntry
from relay.utils import validate_file_name

logger = get_logger(__name__)

MAX_MINT_ATTEMPTS = 5
COPY_BUFFER_SIZE = 1024 * 1024


@dataclass(frozen=True)
class MergeResult:
    """
    Outcome of a successful merge.
    """
    code: str
    artifact_name: str
    size: int
    chunk_count: int
    created_at: float


class Reassembler:
    """
    Folds a file's chunks, in index order, into one artifact.

    Merges of the same file name are serialized by a per-name lock held across
    listing, folding and registering; a merge that loses the race finds the
    chunks already consumed and fails with NoChunksFoundError. There is no
    rollback: an I/O failure part-way leaves the partial artifact and the
    unconsumed chunks in place. A retry truncates the artifact first, but
    chunks consumed before the failure are gone.
    """

    def __init__(
        self,
        chunk_store: ChunkStore,
        artifact_store: ArtifactStore,
        registry: CodeRegistry,
        minter: CodeMinter = mint_code,
        artifact_locks: Optional[KeyedLock] = None,
    ):
        self.chunk_store = chunk_store
        self.artifact_store = artifact_store
        self.registry = registry
        self.minter = minter
        self._merge_locks = artifact_locks if artifact_locks is not None else KeyedLock()

    def merge(self, file_name: str) -> MergeResult:
        """
        Merge all chunks of ``file_name`` and register a retrieval code.

        Args:
            file_name: Name the chunks were uploaded under

        Returns:
            MergeResult with the new code

        Raises:
            InvalidFileNameError: If file_name is missing or unsafe
            NoChunksFoundError: If no chunks exist for file_name
            EmptyResultError: If the merged artifact has zero bytes
            MergeIOError: If any disk operation fails
        """
        validate_file_name(file_name)

        with self._merge_locks.hold(file_name):
            try:
                chunks = self.chunk_store.list_chunks(file_name)
            except OSError as e:
                logger.error(f"Failed to list chunks [file_name={file_name}]: {e}")
                raise MergeIOError(f"Failed to list chunks for {file_name}") from e

            if not chunks:
                raise NoChunksFoundError(f"No chunks found for {file_name}")

            logger.info(f"Merging {len(chunks)} chunks [file_name={file_name}]")
            size = self._fold(file_name, chunks)

            if size == 0:
                try:
                    self.artifact_store.delete(file_name)
                except OSError as e:
                    logger.error(f"Failed to delete empty artifact [file_name={file_name}]: {e}")
                    raise MergeIOError(f"Failed to delete empty artifact {file_name}") from e
                raise EmptyResultError(f"Merged file {file_name} is empty")

            entry = self._register(file_name)

        logger.info(
            f"Merged {file_name}: {size} bytes from {len(chunks)} chunks [code={entry.code}]"
        )
        return MergeResult(
            code=entry.code,
            artifact_name=file_name,
            size=size,
            chunk_count=len(chunks),
            created_at=entry.created_at,
        )

    def _fold(self, file_name: str, chunks: List[StoredChunk]) -> int:
        """
        Truncate the artifact, append every chunk in order and delete each
        chunk once it has been appended.

        Returns:
            Size of the resulting artifact in bytes
        """
        current = None
        try:
            with self.artifact_store.open_for_write(file_name) as out:
                for chunk in chunks:
                    current = chunk
                    with self.chunk_store.open_chunk(chunk) as src:
                        shutil.copyfileobj(src, out, COPY_BUFFER_SIZE)
                    self.chunk_store.delete_chunk(chunk)
                return out.tell()
        except OSError as e:
            key = current.path.name if current is not None else file_name
            logger.error(f"Merge failed [file_name={file_name}] [key={key}]: {e}")
            raise MergeIOError(f"Failed to merge chunks for {file_name}") from e

    def _register(self, file_name: str) -> RegistryEntry:
        for attempt in range(1, MAX_MINT_ATTEMPTS + 1):
            code = self.minter()
            try:
                entry = self.registry.register_new(code, file_name)
            except RegistryIOError as e:
                raise MergeIOError(f"Failed to register code for {file_name}") from e
            if entry is not None:
                return entry
            logger.warning(f"Minted code already in use, retrying ({attempt}/{MAX_MINT_ATTEMPTS})")

        raise MergeIOError(f"Could not mint a unique code for {file_name}")
