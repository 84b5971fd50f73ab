from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.routers import profile_scraping_router
from app.config import get_server_settings
from app.services.profile_scraping_service import (
    ProfileScrapingService,
    get_profile_scraping_service,
)


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = get_server_settings().log_level
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Ensure the downloads directory exists; close every browser session on exit."""
    service = get_profile_scraping_service()
    service.downloads_dir.mkdir(parents=True, exist_ok=True)
    logging.getLogger(__name__).info("Exports will be written to %s", service.downloads_dir)
    try:
        yield
    finally:
        await service.shutdown()
        logging.getLogger(__name__).info("All browser sessions closed")


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [
        f"{'.'.join(str(part) for part in error.get('loc', ()) if part != 'body')}: {error.get('msg')}"
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": "; ".join(messages) or "Invalid request."},
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _configure_logging()

    application = FastAPI(
        title="Profile Harvester API",
        version="1.0.0",
        lifespan=_lifespan,
    )
    application.add_exception_handler(RequestValidationError, _validation_error_handler)

    application.include_router(profile_scraping_router)

    @application.get("/health")
    async def healthcheck(
        service: ProfileScrapingService = Depends(get_profile_scraping_service),
    ) -> dict[str, object]:
        return {
            "status": "ok",
            "activeSessions": len(await service.active_sessions()),
        }

    return application


app = create_app()
