"""Pydantic schemas for the chunk upload, merge, download and cleanup endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class UploadChunkResponse(BaseModel):
    """Response model for a stored chunk."""
    model_config = ConfigDict(populate_by_name=True)

    message: str
    chunk_index: int = Field(alias="chunkIndex")
    file_name: str = Field(alias="fileName")
    size: int


class MergeFileResponse(BaseModel):
    """Response model for a completed merge."""
    code: str
    size: int
    expires_at: float


class CleanupResponse(BaseModel):
    """Response model for a cleanup sweep."""
    message: str
    removed: int
