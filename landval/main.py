# landval/main.py
"""
FastAPI entrypoint for the land valuation API.

Notes:
- Loads .env once (via load_settings)
- Builds a single FastAPI app around one Database pool object
- Every route is served at both the bare path and under /api
- Sets up CORS and a {"message": ...} error envelope
"""

import logging
import os
from contextlib import asynccontextmanager
from functools import partial
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from landval.config import Settings, load_settings
from landval.db import Database
from landval.errors import ValuationError
from landval.models import create_reference_tables
from landval.routes.cities import router as cities_router
from landval.routes.valuation import router as valuation_router

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Startup / shutdown: the pool lives exactly as long as the app
# -----------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    db: Database = app.state.db

    db.open()
    if settings.init_schema:
        await db.run_sync(partial(create_reference_tables, city_tables=settings.city_tables))
        logger.info("reference tables ensured (cities: %s)", ", ".join(settings.city_tables) or "-")
    try:
        yield
    finally:
        await db.close()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="Land Valuation API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = Database(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(ValuationError)
    async def valuation_error(request: Request, exc: ValuationError):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.error("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"message": "Internal server error"})

    app.include_router(valuation_router)
    app.include_router(cities_router)

    # ----------------------------------------------------------------------
    # Simple root endpoints to verify the backend runs
    # ----------------------------------------------------------------------
    @app.get("/")
    @app.get("/api")
    async def root():
        return {"message": "Server is running!"}

    @app.get("/health")
    @app.get("/api/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run(
        "landval.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
    )


if __name__ == "__main__":
    main()
