"""Service layer for relay business logic."""

from relay.services.expiry_sweeper import ExpirySweeper
from relay.services.reassembler import MergeResult, Reassembler
from relay.services.retrieval_service import ArtifactStream, RetrievalService, RetrievedArtifact

__all__ = [
    "ExpirySweeper",
    "MergeResult",
    "Reassembler",
    "ArtifactStream",
    "RetrievalService",
    "RetrievedArtifact",
]
