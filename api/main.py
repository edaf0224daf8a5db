from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog.router import router as catalog_router
from catalog.store import DocumentStore
from core.config import Settings
from core.errors import (
    CorruptStore,
    InvalidPath,
    NotFound,
    SaveFailed,
    SectionNotFound,
    ServiceNotFound,
    StorageError,
    StoreUnavailable,
    TooLarge,
    UploadFailed,
)
from core.logging import setup_logging
from core.middleware import MULTIPART_OVERHEAD_BYTES, RequestSizeLimitMiddleware
from uploads.manager import UploadManager
from uploads.router import router as uploads_router

logger = logging.getLogger(__name__)

# Most specific first: NotFound must win over InvalidPath.
ERROR_STATUS: tuple[tuple[type[StorageError], int], ...] = (
    (NotFound, 404),
    (ServiceNotFound, 404),
    (SectionNotFound, 404),
    (InvalidPath, 400),
    (TooLarge, 413),
    (StoreUnavailable, 503),
    (CorruptStore, 500),
    (SaveFailed, 500),
    (UploadFailed, 500),
)


def status_for(exc: StorageError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def storage_error_handler(_: Request, exc: StorageError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("storage_error type=%s detail=%s", type(exc).__name__, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Build storage once per process; a bad directory stops startup.
        store = DocumentStore(settings.catalog_path)
        store.open()
        uploads = UploadManager(
            settings.uploads_path,
            max_bytes=settings.max_upload_bytes,
            url_prefix=settings.upload_url_prefix,
        )
        uploads.ensure_directory()

        app.state.settings = settings
        app.state.store = store
        app.state.uploads = uploads
        logger.info(
            "storage_ready catalog=%s uploads=%s max_upload_bytes=%s",
            store.path,
            uploads.directory,
            uploads.max_bytes,
        )
        yield

    app = FastAPI(lifespan=lifespan)

    # Last added runs first: CORS wraps the size limit.
    app.add_middleware(
        RequestSizeLimitMiddleware,
        max_bytes=settings.max_upload_bytes + MULTIPART_OVERHEAD_BYTES,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StorageError, storage_error_handler)

    app.include_router(catalog_router, tags=["catalog"])
    app.include_router(uploads_router, tags=["uploads"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=Settings.from_env().port)
