"""Service locator for the relay's storage objects and services."""

import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from relay import config
from relay.locks import KeyedLock
from relay.services.expiry_sweeper import ExpirySweeper
from relay.services.reassembler import Reassembler
from relay.services.retrieval_service import RetrievalService
from relay.storage.artifact_store import ArtifactStore
from relay.storage.chunk_store import ChunkStore
from relay.storage.code_registry import CodeRegistry


@dataclass
class RelayServices:
    """
    Everything that touches the data directory, built once per process.
    """
    data_dir: Path
    chunk_store: ChunkStore
    artifact_store: ArtifactStore
    registry: CodeRegistry
    reassembler: Reassembler
    retrieval: RetrievalService
    sweeper: ExpirySweeper

    def ensure_directories(self) -> None:
        self.chunk_store.ensure_directory()
        self.artifact_store.ensure_directory()


def build_services(data_dir: Path, clock: Callable[[], float] = time.time) -> RelayServices:
    """
    Wire the stores and services for one data directory.

    Args:
        data_dir: Root directory for chunks, artifacts and the registry file
        clock: Source of epoch seconds shared by every component

    Returns:
        RelayServices bundle
    """
    data_dir = Path(data_dir)
    chunk_store = ChunkStore(data_dir / config.CHUNKS_DIR_NAME)
    artifact_store = ArtifactStore(data_dir / config.ARTIFACTS_DIR_NAME)
    registry = CodeRegistry(data_dir / config.REGISTRY_FILE_NAME, clock=clock)
    artifact_locks = KeyedLock()

    return RelayServices(
        data_dir=data_dir,
        chunk_store=chunk_store,
        artifact_store=artifact_store,
        registry=registry,
        reassembler=Reassembler(
            chunk_store,
            artifact_store,
            registry,
            artifact_locks=artifact_locks,
        ),
        retrieval=RetrievalService(registry, artifact_store, clock=clock),
        sweeper=ExpirySweeper(
            registry,
            artifact_store,
            chunk_store=chunk_store,
            artifact_locks=artifact_locks,
            clock=clock,
        ),
    )


_services: Optional[RelayServices] = None
_services_lock = threading.Lock()


def set_services(services: Optional[RelayServices]) -> None:
    """Set global relay services instance (None clears it)"""
    global _services
    with _services_lock:
        _services = services


def get_services() -> RelayServices:
    """
    Get global relay services instance, building it from config on first use.

    Also serves as the FastAPI dependency for routes.
    """
    global _services
    with _services_lock:
        if _services is None:
            _services = build_services(config.DATA_DIR)
        return _services
