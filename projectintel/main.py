"""
ASGI entry point: `uvicorn projectintel.main:app`.
"""
import logging
import os
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException

# .env must be loaded before settings are instantiated
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv()

from projectintel.api import admin, health, projects
from projectintel.core.config import settings, validate_config
from projectintel.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    request_validation_handler,
    unhandled_exception_handler,
)
from projectintel.core.logging import LOGGER_NAME, configure_logging
from projectintel.core.middleware.request_id import RequestIdMiddleware
from projectintel.core.validation import validate_env

logger = logging.getLogger(LOGGER_NAME)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.started_at = time.time()
    logger.info("app.startup", extra={"env": settings.ENV})
    try:
        yield
    finally:
        logger.info("app.shutdown", extra={"uptime_s": round(time.time() - app.state.started_at, 1)})


def create_app() -> FastAPI:
    configure_logging(settings.ENV)
    validate_env()
    validate_config()

    application = FastAPI(title="Project Intelligence Catalog", lifespan=lifespan)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Added last so it wraps CORS and every route
    application.add_middleware(RequestIdMiddleware)

    application.add_exception_handler(AppError, app_error_handler)
    application.add_exception_handler(HTTPException, http_error_handler)
    application.add_exception_handler(RequestValidationError, request_validation_handler)
    application.add_exception_handler(Exception, unhandled_exception_handler)

    application.include_router(health.root_router)
    application.include_router(admin.router)
    application.include_router(projects.router)
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("projectintel.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
