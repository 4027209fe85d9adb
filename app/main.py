"""FastAPI application entry point."""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.dependencies import get_api_key
from app.routes import partners, validation
from app.routes.health import get_db_info
from app.schemas.common import HealthResponse
from config import Settings, get_settings
from db.connection import get_engine
from db.models import Base
from migrations.migrate import migrate
from unipass.services._types import DbInfoDict
from unipass.services.errors import InvalidOfferError

logger: logging.Logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = get_settings()
    logger.info("DB: %s", settings.database.db_info_for_logging())

    if settings.database._use_postgres():
        Base.metadata.create_all(get_engine())
    else:
        migrate()
    yield


def create_app() -> FastAPI:
    settings: Settings = get_settings()
    app: FastAPI = FastAPI(
        title="UniPass Eligibility Service",
        version="0.1.0",
        lifespan=_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    @app.exception_handler(InvalidOfferError)
    async def _on_invalid_offer(request: Request, exc: InvalidOfferError) -> JSONResponse:
        logger.error("Offer configuration error: %s", exc)
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc), "type": type(exc).__name__, "offerId": exc.offer_id},
        )

    @app.exception_handler(Exception)
    async def _on_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"detail": str(exc), "type": type(exc).__name__},
        )

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/health/db", dependencies=[Depends(get_api_key)])
    def health_db() -> DbInfoDict:
        return get_db_info()

    app.include_router(validation.router)
    app.include_router(partners.router)

    return app


app: FastAPI = create_app()


def start() -> None:
    """Entry point for unipass-api."""
    project_root: Path = Path(__file__).resolve().parent.parent
    os.chdir(project_root)

    for candidate in (project_root / ".env", project_root.parent / ".env"):
        if candidate.exists():
            load_dotenv(candidate, override=False)

    reload: bool = os.environ.get("UNIPASS_RELOAD", "false").lower() in ("1", "true", "yes")
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("UNIPASS_PORT", "8000")),
        reload=reload,
    )
