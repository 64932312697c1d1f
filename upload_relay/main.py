import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from upload_relay.api.routes import router
from upload_relay.core.config import Settings
from upload_relay.core.config import settings as default_settings
from upload_relay.core.exceptions import StorageError
from upload_relay.core.exceptions import UploadValidationError
from upload_relay.core.logging import LOGGING_CONFIG
from upload_relay.core.logging import setup_logging
from upload_relay.core.security import BlacklistMiddleware
from upload_relay.core.static import AssetStaticFiles
from upload_relay.services.blacklist import BlacklistRefresher
from upload_relay.services.blacklist import BlacklistStore
from upload_relay.services.notifier import AuditNotifier

setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Prepares storage and the blacklist before the first connection, tears down on exit."""
    settings: Settings = app.state.settings

    settings.upload_dir.mkdir(parents=True, exist_ok=True)

    store = BlacklistStore(settings.blacklist_path)
    store.load()
    app.state.blacklist = store

    refresher = BlacklistRefresher(store, settings.blacklist_refresh_interval)
    refresher.start()

    notifier: AuditNotifier = app.state.notifier or AuditNotifier(
        settings.discord_webhook_url,
        timeout=settings.webhook_timeout,
    )
    app.state.notifier = notifier

    logger.info("Upload relay started. Storing uploads in %s", settings.upload_dir.resolve())
    try:
        yield
    finally:
        await refresher.stop()
        await notifier.aclose()
        logger.info("Upload relay stopped")


async def upload_validation_handler(_request: Request, exc: UploadValidationError) -> PlainTextResponse:
    return PlainTextResponse(str(exc), status_code=status.HTTP_400_BAD_REQUEST)


async def storage_error_handler(_request: Request, exc: StorageError) -> PlainTextResponse:
    logger.error(f"Storage error: {str(exc)} (cause: {exc.__cause__!r})")
    return PlainTextResponse("Upload failed.", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.error(f"HTTP exception: {exc.detail} (status: {exc.status_code})")
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code, headers=exc.headers)


def create_app(settings: Settings | None = None, notifier: AuditNotifier | None = None) -> FastAPI:
    """Builds the relay application.

    Args:
        settings: Configuration to use; defaults to the environment-backed settings.
        notifier: Audit notifier to use instead of one built from ``settings``.
    """
    settings = settings or default_settings

    app = FastAPI(title="Upload Relay", lifespan=lifespan)
    app.state.settings = settings
    app.state.notifier = notifier
    app.state.blacklist = None

    app.add_exception_handler(UploadValidationError, upload_validation_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Wraps every route and mount below, static files included
    app.add_middleware(BlacklistMiddleware)

    @app.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
    async def health_check() -> dict[str, str]:
        logger.debug("Health check endpoint called")
        return {"status": "ok"}

    app.include_router(router)

    # The upload directory is created in the lifespan, before the first request
    app.mount(settings.uploads_url_prefix, StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")

    if settings.public_dir.is_dir():
        app.mount("/", AssetStaticFiles(directory=settings.public_dir), name="static")
    else:
        logger.warning("Public assets directory %s not found; static assets will not be served", settings.public_dir)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serves the relay with uvicorn."""
    logger.info(f"Upload relay listening at http://localhost:{default_settings.port}")
    uvicorn.run(
        app,
        host=default_settings.host,
        port=default_settings.port,
        log_config=LOGGING_CONFIG,
        proxy_headers=default_settings.trust_proxy,
    )


if __name__ == "__main__":
    run()
