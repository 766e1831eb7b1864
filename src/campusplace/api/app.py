from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from campusplace.api.routes import router as api_router
from campusplace.api.schemas import ErrorResponse
from campusplace.config import get_settings
from campusplace.core.errors import (
    AlreadyApplied,
    DeadlinePassed,
    InvalidTransition,
    MissingFeedback,
    NotEligible,
    NotFound,
    PlacementError,
    ReferentialIntegrityError,
    VisitInactive,
)
from campusplace.db.init import init_database
from campusplace.logging_config import configure_logging

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: dict[type[PlacementError], int] = {
    NotFound: 404,
    AlreadyApplied: 409,
    InvalidTransition: 409,
    ReferentialIntegrityError: 409,
    NotEligible: 403,
    DeadlinePassed: 400,
    VisitInactive: 400,
    MissingFeedback: 400,
}


def status_code_for(exc: PlacementError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 400


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def _startup() -> None:
        init_database()

    @app.exception_handler(PlacementError)
    async def _placement_error(_request: Request, exc: PlacementError) -> JSONResponse:
        body = ErrorResponse.model_validate(exc.to_dict())
        return JSONResponse(body.model_dump(), status_code=status_code_for(exc))

    @app.exception_handler(IntegrityError)
    async def _integrity_error(_request: Request, exc: IntegrityError) -> JSONResponse:
        logger.warning("Integrity error: %s", exc.orig)
        body = ErrorResponse(error="Conflict", message="record conflicts with existing data")
        return JSONResponse(body.model_dump(), status_code=409)

    @app.exception_handler(ValueError)
    async def _value_error(_request: Request, exc: ValueError) -> JSONResponse:
        body = ErrorResponse(error="BadRequest", message=str(exc))
        return JSONResponse(body.model_dump(), status_code=400)

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(api_router)
    return app
