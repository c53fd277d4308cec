"""The document store as a mountable ASGI application."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from bujo.store.auth import Unauthorized
from bujo.store.cloud import load_cloud
from bujo.store.database import init_db, make_engine, make_sessionmaker
from bujo.store.documents import DocumentService
from bujo.store.errors import StoreError, INVALID_JSON, INVALID_QUERY
from bujo.store.routers import batch, classes, functions, schemas
from bujo.store.schemas import HealthResponse

logger = logging.getLogger(__name__)


@dataclass
class StoreConfig:
    database_uri: str
    cloud: Optional[str]
    app_id: str
    master_key: str
    server_url: str

    @property
    def mount_path(self) -> str:
        """Path component of the public server URL, e.g. ``/parse``."""
        return urlparse(self.server_url).path.rstrip("/")


class DocumentServer:
    """
    Schema-less document store exposed over HTTP.

    Construct it from its configuration and mount it on any ASGI host;
    tables are created on ``startup()`` or, failing that, on the first
    request.
    """

    def __init__(
        self,
        database_uri: str,
        app_id: str,
        master_key: str,
        server_url: str,
        cloud: Optional[str] = None,
    ):
        self.config = StoreConfig(
            database_uri=database_uri,
            cloud=cloud,
            app_id=app_id,
            master_key=master_key,
            server_url=server_url.rstrip("/"),
        )
        self.engine = make_engine(database_uri)
        self.cloud = load_cloud(cloud)
        self.service = DocumentService(make_sessionmaker(self.engine), self.cloud)
        self.app = self._build_app()
        self._ready = False
        self._ready_lock = asyncio.Lock()

    def _build_app(self) -> FastAPI:
        app = FastAPI(
            title="bujo document store",
            description="Schema-less object storage, queries and cloud functions.",
            version="1.0.0",
        )
        app.state.config = self.config
        app.state.service = self.service

        @app.exception_handler(StoreError)
        async def store_error_handler(request: Request, exc: StoreError):
            return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

        @app.exception_handler(Unauthorized)
        async def unauthorized_handler(request: Request, exc: Unauthorized):
            return JSONResponse(status_code=403, content={"error": "unauthorized"})

        @app.exception_handler(RequestValidationError)
        async def validation_error_handler(request: Request, exc: RequestValidationError):
            # Body problems are invalid JSON; anything else is a bad query parameter.
            errors = exc.errors()
            first = errors[0] if errors else {}
            location = first.get("loc", ())
            code = INVALID_JSON if location and location[0] == "body" else INVALID_QUERY
            field = ".".join(str(part) for part in location[1:]) or "body"
            error = StoreError(code, f"{field}: {first.get('msg', 'invalid request')}")
            return JSONResponse(status_code=error.status_code, content=error.to_dict())

        @app.get("/health", response_model=HealthResponse, tags=["Health"])
        async def health_check():
            return HealthResponse(status="ok")

        app.include_router(classes.router)
        app.include_router(functions.router)
        app.include_router(batch.router)
        app.include_router(schemas.router)
        return app

    async def startup(self):
        """Create tables once; safe to call repeatedly."""
        if self._ready:
            return
        async with self._ready_lock:
            if not self._ready:
                await init_db(self.engine)
                self._ready = True
                logger.info(f"Document store ready at {self.config.server_url}")

    async def shutdown(self):
        await self.engine.dispose()
        self._ready = False

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http":
            await self.startup()
        await self.app(scope, receive, send)
