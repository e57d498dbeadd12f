# api/main.py
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from api.routes import books, challenges, links, reading_lists, shelves
from api.routes import cache as cache_routes
from core.cache import CacheStore, MemoryCacheStore
from core.config import Settings
from core.exceptions import (
    ConflictAlreadyLinked, NotFound, ShelfmateError, Unauthorized, UpstreamFailure, ValidationError
)
from core.sa.database import Database
from core.utils.log import configure_logging

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    Unauthorized: status.HTTP_401_UNAUTHORIZED,
    NotFound: status.HTTP_404_NOT_FOUND,
    ConflictAlreadyLinked: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UpstreamFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def handle_domain_error(request: Request, exc: ShelfmateError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


def create_app(
    database: Optional[Database] = None,
    cache: Optional[CacheStore] = None,
    settings: Optional[Settings] = None
) -> FastAPI:
    """Build the API with its database and cache.

    Tests pass their own ``database`` and ``cache``; otherwise both are
    built from the environment.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(title="Shelfmate")
    app.state.settings = settings
    app.state.database = database or Database(settings.database_url)
    app.state.cache = cache or MemoryCacheStore(default_ttl=settings.cache_default_ttl)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ShelfmateError, handle_domain_error)

    for module in (books, shelves, reading_lists, links, challenges, cache_routes):
        app.include_router(module.router)

    @app.get("/")
    def root():
        return {"message": "Shelfmate API"}

    return app


def run() -> None:
    """Entry point for ``shelfmate-api``."""
    settings = Settings.from_env()
    app = create_app(settings=settings)
    app.state.database.init_db()
    uvicorn.run(app, host="0.0.0.0", port=8000)
