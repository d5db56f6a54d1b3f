"""
FastAPI application for the companion chatbot.

create_app() wires routers, CORS and error handlers. Services are built from
settings in the lifespan hook unless a prebuilt container is passed in.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import chat, user
from api.services import Services, build_services
from config.settings import Settings, settings
from core import RateLimitExceeded, ValidationException, configure_logging, get_logger
from schemas import HealthResponse

logger = get_logger(__name__)

APOLOGY = "I apologize, but I encountered an error. Please try again."


def create_app(services: Optional[Services] = None, app_settings: Settings = settings) -> FastAPI:
    """
    Build the application.

    Args:
        services: Prebuilt service container (tests); built from settings when None
        app_settings: Settings used for CORS, logging and service construction
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(app_settings.LOG_LEVEL, json_output=app_settings.is_production)
        owned = app.state.services is None
        if owned:
            app.state.services = await build_services(app_settings)
        logger.info(
            "Companion API started",
            environment=app_settings.ENVIRONMENT,
            llm_enabled=app.state.services.llm is not None,
        )
        yield
        logger.info("Shutting down...")
        if owned:
            await app.state.services.close()

    app = FastAPI(title="Companion Chatbot API", version="1.0.0", lifespan=lifespan)
    app.state.services = services

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials="*" not in app_settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(chat.router)
    app.include_router(user.router)

    # ==================== Health ====================

    @app.get("/health", response_model=HealthResponse)
    @app.get("/api/health", response_model=HealthResponse)
    async def health_check(request: Request):
        current: Services = request.app.state.services
        if current.cache is None:
            cache_status = "disabled"
        else:
            cache_status = "connected" if await current.cache.ping() else "unreachable"

        return HealthResponse(
            status="OK",
            timestamp=datetime.utcnow(),
            environment=app_settings.ENVIRONMENT,
            services={
                "database": "sql" if current.db is not None else "memory",
                "cache": cache_status,
                "llm": "enabled" if current.llm is not None else "fallback",
            },
        )

    # ==================== Error Handlers ====================

    @app.exception_handler(ValidationException)
    async def validation_exception_handler(request: Request, exc: ValidationException):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "INVALID_INPUT",
                "message": "Invalid request",
                "context": {"errors": jsonable_encoder(exc.errors())},
            },
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"error": exc.error_code, "message": exc.message, "retryAfter": exc.retry_after},
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception", path=request.url.path, error=str(exc), exc_info=True)
        error = "Failed to process message" if request.url.path.endswith("/chat/message") else "Internal server error"
        content = {"error": error, "message": APOLOGY}
        if not app_settings.is_production:
            content["details"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    return app


app = create_app()
