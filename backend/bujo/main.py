"""HTTP server entry point: document store under the api prefix, static site elsewhere."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from bujo.config import Settings, settings as default_settings
from bujo.site import register_site_routes
from bujo.store import DocumentServer

logger = logging.getLogger(__name__)


def build_document_server(s: Settings) -> DocumentServer:
    return DocumentServer(
        database_uri=s.DATABASE_URI,
        cloud=s.CLOUD,
        app_id=s.APP_ID,
        master_key=s.MASTER_KEY,
        server_url=s.SERVER_URL,
    )


def create_app(settings: Optional[Settings] = None, api=None) -> FastAPI:
    """
    Build the server.

    ``api`` is any ASGI application to mount under ``API_PREFIX``; by default
    a DocumentServer built from the settings. Requests under the prefix are
    handed to it untouched.
    """
    s = settings or default_settings
    api = api if api is not None else build_document_server(s)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application startup and shutdown events."""
        startup = getattr(api, "startup", None)
        if startup is not None:
            await startup()
        logger.info(f"bujo server running on port {s.PORT}.")
        yield
        shutdown = getattr(api, "shutdown", None)
        if shutdown is not None:
            await shutdown()

    app = FastAPI(
        title="bujo",
        description="Journal backend: document store API and static site.",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.api = api

    # Mount first so the api prefix wins over the single-segment file route
    app.mount(s.API_PREFIX, api, name="api")

    register_site_routes(app, s.SITE_DIR, s.FONTS_SUBDIR, s.INDEX_DOCUMENT)
    return app


def run():
    """Console entry point: serve on the configured port."""
    logging.basicConfig(
        level=default_settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        create_app(),
        host=default_settings.HOST,
        port=default_settings.PORT,
        log_level=default_settings.LOG_LEVEL,
    )


if __name__ == "__main__":
    run()
