"""Entry point for the upload server."""

import time
import uuid
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from common.logging_config import setup_logging
from uploader import config
from uploader.database import get_db_connection, init_database
from uploader.exceptions import (
    ChunkStoreError,
    DuplicateContentError,
    FileRecordNotFoundError,
    FileTooLargeError,
    InvalidChunkKeyError,
    InvalidInputError,
    PersistenceError,
    SessionIncompleteError,
    SessionNotFoundError,
    StorageReadError,
    StorageWriteError,
    UploadException,
    error_code_for,
)
from uploader.routes import file_router, upload_router
from uploader.schemas.common import ErrorResponse
from uploader.service_locator import get_file_service, get_upload_coordinator

logger = setup_logging('uploader')
setup_logging('chunkstore')

app = FastAPI(
    title="Chunked Upload Server",
    description="Resumable, content-addressed chunked file uploads",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
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
    Initialize database and storage directories on application startup.
    """
    logger.info("Upload server starting up...")

    init_database()
    logger.info(f"Database initialized at {config.DATABASE_PATH}")

    Path(config.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    Path(config.CHUNK_DIR).mkdir(parents=True, exist_ok=True)
    logger.info(f"Storing files in {config.UPLOAD_DIR}, chunks in {config.CHUNK_DIR}")

    get_upload_coordinator()
    get_file_service()


def _error_response(request: Request, exc: Exception, status_code: int) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', 'unknown')
    code = error_code_for(exc)
    message = f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}"
    if status_code >= 500:
        logger.error(message, exc_info=exc)
    else:
        logger.warning(message)
    return JSONResponse(status_code=status_code, content=ErrorResponse(detail=str(exc), code=code).model_dump())


def _validation_detail(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()) if p not in ("body", "query", "form"))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "invalid request"


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _error_response(request, InvalidInputError(_validation_detail(exc)), status.HTTP_400_BAD_REQUEST)


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return _error_response(request, exc, status.HTTP_400_BAD_REQUEST)


@app.exception_handler(InvalidChunkKeyError)
async def invalid_chunk_key_handler(request: Request, exc: InvalidChunkKeyError):
    return _error_response(request, exc, status.HTTP_400_BAD_REQUEST)


@app.exception_handler(SessionNotFoundError)
async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND)


@app.exception_handler(SessionIncompleteError)
async def session_incomplete_handler(request: Request, exc: SessionIncompleteError):
    return _error_response(request, exc, status.HTTP_409_CONFLICT)


@app.exception_handler(DuplicateContentError)
async def duplicate_content_handler(request: Request, exc: DuplicateContentError):
    return _error_response(request, exc, status.HTTP_409_CONFLICT)


@app.exception_handler(PersistenceError)
async def persistence_handler(request: Request, exc: PersistenceError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR)


@app.exception_handler(FileTooLargeError)
async def file_too_large_handler(request: Request, exc: FileTooLargeError):
    return _error_response(request, exc, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)


@app.exception_handler(FileRecordNotFoundError)
async def file_not_found_handler(request: Request, exc: FileRecordNotFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND)


@app.exception_handler(StorageWriteError)
async def storage_write_handler(request: Request, exc: StorageWriteError):
    return _error_response(request, exc, status.HTTP_507_INSUFFICIENT_STORAGE)


@app.exception_handler(StorageReadError)
async def storage_read_handler(request: Request, exc: StorageReadError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR)


@app.exception_handler(ChunkStoreError)
async def chunk_store_handler(request: Request, exc: ChunkStoreError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR)


@app.exception_handler(UploadException)
async def upload_exception_handler(request: Request, exc: UploadException):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR)


app.include_router(upload_router)
app.include_router(file_router)

app.mount(
    config.PUBLIC_URL_PREFIX,
    StaticFiles(directory=config.UPLOAD_DIR, check_dir=False),
    name="uploads",
)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "Chunked Upload Server API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Health check endpoint for Docker healthcheck.
    Returns 200 if service is alive.
    """
    return {"status": "healthy", "service": "uploader"}


@app.get("/ready")
async def ready_check():
    """
    Readiness check endpoint.
    Verifies database and storage directories.
    """
    try:
        with get_db_connection() as conn:
            conn.execute("SELECT 1 FROM files LIMIT 1")
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {str(e)}"

    missing = [d for d in (config.UPLOAD_DIR, config.CHUNK_DIR) if not Path(d).is_dir()]
    storage_status = "ok" if not missing else f"error: missing {', '.join(missing)}"

    ready = db_status == "ok" and storage_status == "ok"
    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content={
            "ready": ready,
            "database": db_status,
            "storage": storage_status
        }
    )


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "uploader.main:app",
        host=config.SERVER_HOST,
        port=config.SERVER_PORT,
    )


if __name__ == "__main__":
    main()
