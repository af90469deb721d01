import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Settings
from database import CONNECTED, DISCONNECTED, ERROR, MongoStore
from errors import PortfolioError
from logging_config import configure_logging, get_logger
from middleware import BodySizeLimitMiddleware
from routes import create_api_router, error_response
from schemas import MESSAGE, PROJECT
from static import SPAStaticFiles, bundle_available

logger = get_logger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]
CORS_HEADERS = ["Content-Type", "Authorization"]


def register_connection_logging(store: MongoStore) -> None:
    store.add_listener(CONNECTED, lambda: logger.info("mongodb_connected"))
    store.add_listener(ERROR, lambda error: logger.error("mongodb_error", error=str(error)))
    store.add_listener(DISCONNECTED, lambda: logger.warning("mongodb_disconnected"))


def create_app(settings: Settings, store: MongoStore) -> FastAPI:
    """Wire middleware, API routes and the frontend bundle around `store`.

    The store is expected to be connected already; it is closed when the
    application shuts down.
    """

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        try:
            yield
        finally:
            store.close()

    app = FastAPI(title="Portfolio API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )

    @app.exception_handler(RequestValidationError)
    async def malformed_request(_: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("malformed_request", errors=str(exc.errors())[:500])
        return error_response(400, "Malformed request body")

    app.include_router(create_api_router(store, PROJECT, MESSAGE))

    # Mounted last so API routes win over the catch-all.
    if bundle_available(settings.static_dir):
        app.mount("/", SPAStaticFiles(directory=settings.static_dir), name="frontend")
    else:
        logger.warning("frontend_bundle_missing", static_dir=settings.static_dir)

    return app


def run() -> None:
    """Start the server. Exits with status 1 if MongoDB cannot be reached."""
    import uvicorn

    try:
        settings = Settings.from_env()
    except PortfolioError as e:
        configure_logging()
        logger.error("server_startup_failed", error=str(e))
        sys.exit(1)

    configure_logging(level=settings.log_level, format=settings.log_format)

    store = MongoStore(
        settings.mongodb_uri,
        settings.database_name,
        timeout_ms=settings.mongodb_timeout_ms,
    )
    register_connection_logging(store)

    try:
        store.connect()
    except PortfolioError as e:
        logger.error("server_startup_failed", error=str(e))
        sys.exit(1)

    logger.info("mongodb_connection_successful", database=store.database_name)

    app = create_app(settings, store)
    logger.info("server_starting", host=settings.host, port=settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
