"""
app/api/routers/profile_scraping.py

Session lifecycle, scrape job and export download endpoints.

Failures are reported as ``{"success": false, "error": "..."}`` with a status
code matching the failure; the browser UI reads the body, not the code.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import FileResponse, JSONResponse

from app.scraping.errors import (
    LoginPageNotLoadedError,
    LoginTimeoutError,
    ProfileScrapingError,
    SearchNotLoadedError,
    SessionBusyError,
    SessionNotFoundError,
    UnsupportedBrowserError,
)
from app.schemas.profile_scraping import (
    ActiveSessionsResponse,
    CloseSessionRequest,
    ErrorResponse,
    ScrapeRequest,
    ScrapeResponse,
    ScrapeSummaryResponse,
    StartSessionRequest,
    StartSessionResponse,
    SuccessResponse,
)
from app.services.profile_scraping_service import (
    ProfileScrapingService,
    get_profile_scraping_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profile-scraping"])

_ERROR_STATUS: dict[type[ProfileScrapingError], int] = {
    SessionNotFoundError: status.HTTP_404_NOT_FOUND,
    LoginTimeoutError: status.HTTP_408_REQUEST_TIMEOUT,
    SearchNotLoadedError: status.HTTP_502_BAD_GATEWAY,
    LoginPageNotLoadedError: status.HTTP_502_BAD_GATEWAY,
    SessionBusyError: status.HTTP_409_CONFLICT,
    UnsupportedBrowserError: status.HTTP_400_BAD_REQUEST,
}

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(by_alias=True),
    )


def _scraping_error_response(exc: ProfileScrapingError) -> JSONResponse:
    status_code = _ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return error_response(status_code, str(exc))


@router.post(
    "/start-session",
    response_model=StartSessionResponse,
    responses={
        **_ERROR_RESPONSES,
        status.HTTP_408_REQUEST_TIMEOUT: {"model": ErrorResponse},
        status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse},
    },
)
async def start_session(
    payload: StartSessionRequest,
    service: ProfileScrapingService = Depends(get_profile_scraping_service),
) -> StartSessionResponse | JSONResponse:
    """
    Open a browser on the login page and wait for the operator to sign in.
    """

    try:
        session_id = await service.start_session(
            browser=payload.browser,
            session_id=payload.session_id,
        )
    except ProfileScrapingError as exc:
        return _scraping_error_response(exc)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Session start failed browser=%r", payload.browser)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Failed to start session: {exc}")

    return StartSessionResponse(session_id=session_id)


@router.post(
    "/scrape",
    response_model=ScrapeResponse,
    responses={
        **_ERROR_RESPONSES,
        status.HTTP_409_CONFLICT: {"model": ErrorResponse},
        status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse},
    },
)
async def scrape(
    payload: ScrapeRequest,
    service: ProfileScrapingService = Depends(get_profile_scraping_service),
) -> ScrapeResponse | JSONResponse:
    """
    Collect profiles for a search query on an existing session and export them.
    """

    try:
        summary = await service.scrape(
            session_id=payload.session_id,
            search_query=payload.search_query,
            target_count=payload.target_count,
            filename=payload.filename,
        )
    except ProfileScrapingError as exc:
        return _scraping_error_response(exc)
    except ValueError as exc:
        return error_response(status.HTTP_400_BAD_REQUEST, str(exc))
    except Exception as exc:  # noqa: BLE001
        logger.exception("Scrape job failed session=%r query=%r", payload.session_id, payload.search_query)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Scraping failed: {exc}")

    result = summary.result
    return ScrapeResponse(
        profiles_count=result.collected_count,
        success_count=result.success_count,
        failed_count=result.failed_count,
        filename=summary.filename,
        download_url=summary.download_url,
        summary=ScrapeSummaryResponse(
            search_query=result.search_query,
            profiles_scraped=result.collected_count,
            successful_profiles=result.success_count,
            failed_profiles=result.failed_count,
            target_count=result.requested_count,
            timestamp=result.timestamp,
        ),
    )


@router.post("/close-session", response_model=SuccessResponse)
async def close_session(
    payload: CloseSessionRequest,
    service: ProfileScrapingService = Depends(get_profile_scraping_service),
) -> SuccessResponse:
    await service.close_session(payload.session_id)
    return SuccessResponse()


@router.get("/sessions", response_model=ActiveSessionsResponse)
async def list_sessions(
    service: ProfileScrapingService = Depends(get_profile_scraping_service),
) -> ActiveSessionsResponse:
    return ActiveSessionsResponse(sessions=await service.active_sessions())


@router.get("/download/{filename}", response_model=None)
async def download(
    filename: str,
    service: ProfileScrapingService = Depends(get_profile_scraping_service),
) -> FileResponse | JSONResponse:
    path = service.resolve_download(filename)
    if path is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "File not found"},
        )
    return FileResponse(
        path,
        filename=path.name,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
