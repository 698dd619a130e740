"""
FastAPI application entry point for the portfolio backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse

from portfolio.config import get_settings
from portfolio.errors import (
    AuthenticationFailed,
    NotFound,
    PermissionDenied,
    PortfolioError,
    SessionRequired,
    TransportFailure,
    UploadInProgress,
    ValidationFailure,
)
from portfolio.routes import router
from portfolio.schemas import ErrorResponse
from portfolio.session_guard import LOGIN_PATH

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    NotFound: 404,
    PermissionDenied: 403,
    ValidationFailure: 422,
    TransportFailure: 502,
    UploadInProgress: 409,
    AuthenticationFailed: 401,
}


def register_error_handlers(app: FastAPI) -> None:
    """Map contract failures onto HTTP responses."""

    @app.exception_handler(SessionRequired)
    async def session_required(request: Request, exc: SessionRequired):
        return RedirectResponse(LOGIN_PATH, status_code=303)

    @app.exception_handler(PortfolioError)
    async def portfolio_error(request: Request, exc: PortfolioError):
        status_code = next(
            (code for cls, code in ERROR_STATUS_CODES.items() if isinstance(exc, cls)),
            500,
        )
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(detail=exc.message).model_dump(),
        )


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Portfolio Backend (FastAPI)", version="0.1.0")
    app.include_router(router, prefix=settings.api_prefix)
    register_error_handlers(app)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()
