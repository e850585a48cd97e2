"""Deletes expired artifacts, their registry entries and abandoned chunks."""

import time
from typing import Callable, Optional

from common.constants import RETENTION_WINDOW_SECONDS
from common.logging_config import get_logger
from relay.exceptions import RelayException
from relay.locks import KeyedLock
from relay.storage.artifact_store import ArtifactStore
from relay.storage.chunk_store import ChunkStore
from relay.storage.code_registry import CodeRegistry, RegistryEntry

logger = get_logger(__name__)


class ExpirySweeper:
    """
    One sweep scans a registry snapshot and removes every entry older than
    the retention window, together with its artifact.

    Failures are isolated per entry: a failed delete is logged and the entry
    stays registered for the next sweep. An artifact still referenced by a
    live code (the same file name merged again later) is kept.
    """

    def __init__(
        self,
        registry: CodeRegistry,
        artifact_store: ArtifactStore,
        chunk_store: Optional[ChunkStore] = None,
        artifact_locks: Optional[KeyedLock] = None,
        clock: Callable[[], float] = time.time,
        retention_seconds: float = RETENTION_WINDOW_SECONDS,
    ):
        self.registry = registry
        self.artifact_store = artifact_store
        self.chunk_store = chunk_store
        self.artifact_locks = artifact_locks if artifact_locks is not None else KeyedLock()
        self.clock = clock
        self.retention_seconds = retention_seconds

    def sweep(self) -> int:
        """
        Run one sweep.

        Returns:
            Number of registry entries removed by this call
        """
        now = self.clock()

        try:
            entries = self.registry.list_all()
        except (OSError, RelayException) as e:
            logger.error(f"Sweep aborted, registry unreadable: {e}")
            return 0

        expired = [entry for entry in entries if entry.is_expired(now, self.retention_seconds)]
        if expired:
            logger.info(f"Starting sweep for {len(expired)} expired entries")

        removed = 0
        for entry in expired:
            try:
                if self._clean_entry(entry):
                    removed += 1
            except (OSError, RelayException) as e:
                logger.warning(
                    f"Failed to clean [code={entry.code}] artifact={entry.artifact_name}: {e}"
                )

        stale_chunks = self.sweep_stale_chunks(now)

        logger.info(f"Sweep complete: {removed} entries removed, {stale_chunks} stale chunks removed")
        return removed

    def sweep_stale_chunks(self, now: Optional[float] = None) -> int:
        """
        Delete chunk files older than the retention window.

        These belong to uploads whose merge never happened.

        Returns:
            Number of chunk files removed
        """
        if self.chunk_store is None:
            return 0
        if now is None:
            now = self.clock()

        try:
            stale = self.chunk_store.list_stale_files(now - self.retention_seconds)
        except OSError as e:
            logger.error(f"Failed to scan chunk directory: {e}")
            return 0

        removed = 0
        for path in stale:
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Failed to delete stale chunk {path.name}: {e}")
        return removed

    def _clean_entry(self, entry: RegistryEntry) -> bool:
        """
        Delete the artifact of an expired entry and unregister it.

        Holds the artifact's name lock so a merge of the same name cannot
        register a fresh code for the artifact between the reference check
        and the delete.

        Returns:
            True if this call removed the registry entry
        """
        with self.artifact_locks.hold(entry.artifact_name):
            if self._still_referenced(entry):
                logger.debug(
                    f"Keeping artifact {entry.artifact_name}, still referenced by a live code"
                )
            elif not self.artifact_store.delete(entry.artifact_name):
                logger.debug(f"Artifact {entry.artifact_name} already gone")

            return self.registry.remove(entry.code, created_at=entry.created_at)

    def _still_referenced(self, entry: RegistryEntry) -> bool:
        now = self.clock()
        return any(
            other.artifact_name == entry.artifact_name
            and other.code != entry.code
            and not other.is_expired(now, self.retention_seconds)
            for other in self.registry.list_all()
        )
