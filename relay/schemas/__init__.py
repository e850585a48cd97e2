"""Pydantic schemas for API requests and responses."""

from relay.schemas.transfer import (
    UploadChunkResponse,
    MergeFileResponse,
    CleanupResponse,
)
from relay.schemas.common import ErrorResponse

__all__ = [
    "UploadChunkResponse",
    "MergeFileResponse",
    "CleanupResponse",
    "ErrorResponse",
]
