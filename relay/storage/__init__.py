"""Storage layer: chunks, artifacts and the code registry."""

from relay.storage.artifact_store import ArtifactStore
from relay.storage.chunk_store import ChunkStore, StoredChunk
from relay.storage.code_registry import CodeRegistry, RegistryEntry

__all__ = [
    "ArtifactStore",
    "ChunkStore",
    "StoredChunk",
    "CodeRegistry",
    "RegistryEntry",
]
