"""
FastAPI service for CV assessment.

Exposes sessions, the CV database, suitable-position notifications and
knowledge-base questions over HTTP. Domain errors raised by the services are mapped to status codes here:
not found → 404, conflicts and busy sessions → 409, invalid input → 422 and
failed LLM collaborators → 502.
"""

import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cv_assessment import __version__
from cv_assessment.common.config import Config
from cv_assessment.common.error_handling import (
    AlignmentError,
    AssessmentError,
    CandidateNotFoundError,
    ConflictError,
    ExtractionError,
    ParseError,
    QueryError,
    SessionBusyError,
    SessionNotFoundError,
    SummaryError,
)
from cv_assessment.common.logger import setup_logging

from .config import get_settings, validate_config_on_startup
from .dependencies import ServiceContainer, get_services
from .models import HealthResponse
from .routes import (
    cv_database_router,
    knowledge_base_router,
    sessions_router,
    suitable_positions_router,
)

logger = logging.getLogger(__name__)

# Most specific class wins; AssessmentError catches the rest
ERROR_STATUS_CODES = {
    SessionNotFoundError: 404,
    CandidateNotFoundError: 404,
    ConflictError: 409,
    SessionBusyError: 409,
    ExtractionError: 502,
    AlignmentError: 502,
    SummaryError: 502,
    ParseError: 502,
    QueryError: 502,
    AssessmentError: 502,
    ValueError: 422,
    IndexError: 422,
}


async def _domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code = 500
    for exc_type in type(exc).__mro__:
        if exc_type in ERROR_STATUS_CODES:
            status_code = ERROR_STATUS_CODES[exc_type]
            break
    logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="CV Assessment", version=__version__)

    if settings.cors_origins_list:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins_list,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    for exc_type in ERROR_STATUS_CODES:
        app.add_exception_handler(exc_type, _domain_error_handler)

    app.include_router(sessions_router)
    app.include_router(cv_database_router)
    app.include_router(suitable_positions_router)
    app.include_router(knowledge_base_router)

    @app.on_event("startup")
    async def startup() -> None:
        setup_logging(settings.log_level, settings.log_format)
        validate_config_on_startup()
        Config.validate()
        logger.info(Config.summary())

    @app.get("/health", response_model=HealthResponse)
    async def health_check(services: ServiceContainer = Depends(get_services)) -> HealthResponse:
        """Health check endpoint for container orchestration."""
        return HealthResponse(
            status="healthy",
            sessions=len(services.store.sessions),
            cv_records=len(services.store.cv_database),
            timestamp=datetime.now(timezone.utc),
        )

    return app


app = create_app()
