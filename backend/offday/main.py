# backend/offday/main.py
from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from offday.db import healthcheck
from offday.auth import get_caller
from offday.errors import OffdayError, Unauthorized
from offday.routers.requests import router as requests_router
from offday.routers.users import router as users_router

logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(OffdayError)
    def offday_error(request: Request, exc: OffdayError):
        if exc.status_code >= 500:
            logger.error(f"[api] {request.method} {request.url.path}: {exc.message}")
        else:
            logger.warning(f"[api] {request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    def invalid_input(request: Request, exc: RequestValidationError):
        # FastAPI parses the body before it resolves dependencies, so identity
        # is checked here too; every route that validates input needs a caller
        try:
            get_caller(request.headers.get("authorization"))
        except Unauthorized as e:
            return offday_error(request, e)
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid input", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(SQLAlchemyError)
    def storage_error(request: Request, exc: SQLAlchemyError):
        logger.exception(f"[api] storage failure on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def build_app() -> FastAPI:
    app = FastAPI(title="Offday API")

    # CORS (adjust origins as you need)
    frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[frontend_origin],
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1|0\.0\.0\.0)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    _register_error_handlers(app)

    # Health
    @app.get("/health")
    def health():
        return healthcheck()

    app.include_router(requests_router)
    app.include_router(users_router)

    return app


app = build_app()
