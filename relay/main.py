"""Entry point for the relay server."""

import os
import time

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from relay.config import RELAY_HOST, RELAY_PORT
from relay.exceptions import (
    RelayException,
    ClientInputError,
    EmptyChunkError,
    InvalidFileNameError,
    MissingFileNameError,
    InvalidChunkIndexError,
    CodeNotFoundError,
    NoChunksFoundError,
    EmptyResultError,
    CodeExpiredError,
    StorageInconsistencyError,
    StorageIOError,
)
from relay.routes.transfer_routes import router as transfer_router
from relay.service_locator import get_services
from relay.sweep_task import PeriodicSweepTask
from relay.utils import generate_request_id

logger = setup_logging('relay')

app = FastAPI(
    title="Relay File Drop",
    description="Temporary file relay: chunked upload, code-based download",
    version="1.0.0"
)

sweep_task = PeriodicSweepTask(lambda: get_services().sweeper)

CLIENT_ERROR_CODES = {
    EmptyChunkError: "EMPTY_CHUNK",
    MissingFileNameError: "MISSING_FILE_NAME",
    InvalidFileNameError: "INVALID_FILE_NAME",
    InvalidChunkIndexError: "INVALID_CHUNK_INDEX",
}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = request.headers.get("X-Request-ID") or generate_request_id()
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("startup")
async def startup_event():
    """
    Prepare the data directory and start the periodic sweep.
    """
    logger.info("Relay service starting up...")

    services = get_services()
    services.ensure_directories()
    logger.info(f"Data directory ready at {services.data_dir}")

    await sweep_task.start()


@app.on_event("shutdown")
async def shutdown_event():
    """
    Stop background work on application shutdown.
    """
    logger.info("Relay service shutting down...")

    await sweep_task.stop()


def _error_response(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "code": code}
    )


@app.exception_handler(ClientInputError)
async def client_input_error_handler(request: Request, exc: ClientInputError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    code = CLIENT_ERROR_CODES.get(type(exc), "INVALID_REQUEST")
    logger.warning(
        f"Client input error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, str(exc), code)


@app.exception_handler(CodeNotFoundError)
async def code_not_found_handler(request: Request, exc: CodeNotFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Code not found: [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(status.HTTP_404_NOT_FOUND, "File not found", "CODE_NOT_FOUND")


@app.exception_handler(NoChunksFoundError)
async def no_chunks_found_handler(request: Request, exc: NoChunksFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"No chunks found: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, str(exc), "NO_CHUNKS_FOUND")


@app.exception_handler(EmptyResultError)
async def empty_result_handler(request: Request, exc: EmptyResultError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Empty merge result: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, str(exc), "EMPTY_RESULT")


@app.exception_handler(CodeExpiredError)
async def code_expired_handler(request: Request, exc: CodeExpiredError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Code expired: [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(status.HTTP_410_GONE, "Download code has expired", "CODE_EXPIRED")


@app.exception_handler(StorageInconsistencyError)
async def storage_inconsistency_handler(request: Request, exc: StorageInconsistencyError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Storage inconsistency: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc), "ARTIFACT_MISSING")


@app.exception_handler(StorageIOError)
async def storage_io_error_handler(request: Request, exc: StorageIOError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Storage I/O error: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc), "STORAGE_ERROR")


@app.exception_handler(RelayException)
async def relay_exception_handler(request: Request, exc: RelayException):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Relay exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc), "INTERNAL_ERROR")


app.include_router(transfer_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "Relay File Drop API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Health check endpoint for Docker healthcheck.
    Returns 200 if service is alive.
    """
    return {"status": "healthy", "service": "relay"}


@app.get("/ready")
async def ready_check():
    """
    Readiness check endpoint.
    Verifies the data directory is present and writable.
    """
    services = get_services()

    try:
        services.ensure_directories()
        writable = os.access(services.data_dir, os.W_OK)
        storage_status = "ok" if writable else "error: data directory not writable"
    except OSError as e:
        storage_status = f"error: {str(e)}"

    ready = storage_status == "ok"
    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content={
            "ready": ready,
            "storage": storage_status
        }
    )


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "relay.main:app",
        host=RELAY_HOST,
        port=RELAY_PORT,
    )


if __name__ == "__main__":
    main()
