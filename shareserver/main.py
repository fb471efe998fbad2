"""Entry point for the share server."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from filestore import share_storage
from shareserver.cleanup_task import PartialUploadCleaner
from shareserver.config import SERVER_HOST, SERVER_PORT
from shareserver.database import init_database
from shareserver.exceptions import (
    ShareDropException,
    ShareNotFoundError,
    SharedFileNotFoundError,
    ShareLockedError,
    InvalidShareStateError,
    InvalidShareIdError,
    UnexpectedChunkIndexError,
    MaxShareSizeExceededError,
    InvalidChunkError,
    StorageIOError,
)
from shareserver.routes.config_routes import router as config_router
from shareserver.routes.file_routes import router as file_router
from shareserver.routes.share_routes import router as share_router

logger = setup_logging('shareserver')

app = FastAPI(
    title="ShareDrop Server",
    description="Chunked, resumable file uploads into size-limited shares",
    version="1.0.0"
)

cleanup_task = PartialUploadCleaner()


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

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
    Initialize database and share storage, start partial upload cleanup.
    """
    logger.info("Share server starting up...")

    init_database()
    logger.info("Database initialized")

    share_storage.SHARES_DIR.mkdir(parents=True, exist_ok=True)
    logger.info(f"Share storage at {share_storage.SHARES_DIR}")

    await cleanup_task.start()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Share server shutting down...")
    await cleanup_task.stop()


def _error_response(request: Request, status_code: int, code: str, exc: Exception, **extra) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', 'unknown')
    if status_code >= 500:
        logger.error(f"{code}: {exc} [request_id={request_id}] path={request.url.path}", exc_info=exc)
    else:
        logger.warning(f"{code}: {exc} [request_id={request_id}] path={request.url.path}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "code": code, **extra}
    )


@app.exception_handler(ShareNotFoundError)
async def share_not_found_handler(request: Request, exc: ShareNotFoundError):
    return _error_response(request, status.HTTP_404_NOT_FOUND, "SHARE_NOT_FOUND", exc)


@app.exception_handler(SharedFileNotFoundError)
async def file_not_found_handler(request: Request, exc: SharedFileNotFoundError):
    return _error_response(request, status.HTTP_404_NOT_FOUND, "FILE_NOT_FOUND", exc)


@app.exception_handler(ShareLockedError)
async def share_locked_handler(request: Request, exc: ShareLockedError):
    return _error_response(request, status.HTTP_400_BAD_REQUEST, "SHARE_LOCKED", exc)


@app.exception_handler(InvalidShareStateError)
async def invalid_share_state_handler(request: Request, exc: InvalidShareStateError):
    return _error_response(request, status.HTTP_400_BAD_REQUEST, "INVALID_SHARE_STATE", exc)


@app.exception_handler(InvalidShareIdError)
async def invalid_share_id_handler(request: Request, exc: InvalidShareIdError):
    return _error_response(request, status.HTTP_400_BAD_REQUEST, "INVALID_SHARE_ID", exc)


@app.exception_handler(UnexpectedChunkIndexError)
async def unexpected_chunk_index_handler(request: Request, exc: UnexpectedChunkIndexError):
    return _error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "UNEXPECTED_CHUNK_INDEX",
        exc,
        expected_chunk_index=exc.expected_chunk_index,
    )


@app.exception_handler(MaxShareSizeExceededError)
async def max_share_size_handler(request: Request, exc: MaxShareSizeExceededError):
    return _error_response(request, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "MAX_SHARE_SIZE_EXCEEDED", exc)


@app.exception_handler(InvalidChunkError)
async def invalid_chunk_handler(request: Request, exc: InvalidChunkError):
    return _error_response(request, status.HTTP_400_BAD_REQUEST, "INVALID_CHUNK", exc)


@app.exception_handler(StorageIOError)
async def storage_io_handler(request: Request, exc: StorageIOError):
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "STORAGE_IO_ERROR", exc)


@app.exception_handler(ShareDropException)
async def sharedrop_exception_handler(request: Request, exc: ShareDropException):
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", exc)


app.include_router(config_router)
app.include_router(share_router)
app.include_router(file_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "ShareDrop Server API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Health check endpoint for Docker healthcheck.
    """
    return {"status": "healthy", "service": "shareserver"}


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "shareserver.main:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
    )


if __name__ == "__main__":
    main()
