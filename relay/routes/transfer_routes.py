"""Chunk upload, merge, download and cleanup API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool

from common.logging_config import get_logger
from relay.schemas.common import ErrorResponse
from relay.schemas.transfer import CleanupResponse, MergeFileResponse, UploadChunkResponse
from relay.service_locator import RelayServices, get_services
from relay.utils import content_disposition, validate_file_name

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Transfer"])


@router.post(
    "/upload-chunk",
    response_model=UploadChunkResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def upload_chunk(
    chunk: UploadFile = File(...),
    chunk_index: int = Form(..., alias="chunkIndex"),
    file_name: Optional[str] = Form(None, alias="fileName"),
    services: RelayServices = Depends(get_services),
):
    """
    Store one chunk of a file.

    Parameters:
        - chunk: Chunk bytes (multipart/form-data)
        - chunkIndex: Zero-based position of the chunk in the file
        - fileName: Name of the file the chunk belongs to

    Returns:
        - message, chunkIndex, fileName and size of the stored chunk

    Raises:
        - 400: Empty chunk, negative index or invalid file name
        - 422: Missing chunk or chunkIndex
        - 500: Chunk could not be written
    """
    validate_file_name(file_name)
    payload = await chunk.read()

    stored = await run_in_threadpool(
        services.chunk_store.put, file_name, chunk_index, payload
    )

    return UploadChunkResponse(
        message="Chunk uploaded",
        chunk_index=stored.chunk_index,
        file_name=stored.file_name,
        size=stored.size,
    )


@router.post(
    "/merge-file",
    response_model=MergeFileResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def merge_file(
    file_name: Optional[str] = Query(None, alias="fileName"),
    services: RelayServices = Depends(get_services),
):
    """
    Reassemble uploaded chunks and issue a retrieval code.

    Parameters:
        - fileName: Name the chunks were uploaded under (query)

    Returns:
        - code: 8-character retrieval code
        - size: Size of the merged file in bytes
        - expires_at: Epoch seconds after which the code stops working

    Raises:
        - 400: Missing file name, no chunks found or merged file empty
        - 500: Merge failed part-way
    """
    validate_file_name(file_name)

    result = await run_in_threadpool(services.reassembler.merge, file_name)

    return MergeFileResponse(
        code=result.code,
        size=result.size,
        expires_at=result.created_at + services.retrieval.retention_seconds,
    )


@router.get(
    "/download/{code}",
    response_class=StreamingResponse,
    responses={
        404: {"model": ErrorResponse},
        410: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def download_file(
    code: str,
    services: RelayServices = Depends(get_services),
):
    """
    Download the file behind a retrieval code.

    Parameters:
        - code: Retrieval code (path)

    Returns:
        - StreamingResponse with the file bytes

    Raises:
        - 404: Unknown code
        - 410: Code expired
        - 500: File missing or unreadable
    """
    artifact = await run_in_threadpool(services.retrieval.retrieve, code)

    return StreamingResponse(
        artifact.stream,
        media_type="application/octet-stream",
        headers={
            "Content-Disposition": content_disposition(artifact.name),
            "Content-Length": str(artifact.size),
        },
        background=BackgroundTask(artifact.stream.close),
    )


@router.get("/cleanup", response_model=CleanupResponse)
async def cleanup(services: RelayServices = Depends(get_services)):
    """
    Remove expired codes and their files.

    Returns:
        - message: "<n> entries removed"
        - removed: n

    Individual delete failures are logged and skipped; this endpoint always
    answers 200.
    """
    removed = await run_in_threadpool(services.sweeper.sweep)
    logger.info(f"Cleanup requested: {removed} entries removed")

    return CleanupResponse(message=f"{removed} entries removed", removed=removed)
