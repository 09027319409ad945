"""
Origo - Project brief generation service
Main FastAPI Application
"""

import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from origo.config import get_settings
from origo.errors import GenerationError, RateLimitedError
from origo.services import GenerationPipeline, build_pipeline

logger = logging.getLogger(__name__)


def _is_serverless() -> bool:
    """Check if running in serverless environment"""
    return bool(os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Skip heavy initialization in serverless
    if not _is_serverless():
        from origo.utils import init_db, close_db, close_redis
        await init_db()
        yield
        await close_db()
        await close_redis()
    else:
        yield


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or uuid.uuid4().hex


def create_app(pipeline: Optional[GenerationPipeline] = None, use_lifespan: bool = True) -> FastAPI:
    """Factory function to create FastAPI app"""
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    application = FastAPI(
        title="Origo API",
        description="""
        Project brief generation

        Turn a short prompt into a structured project document.

        ## Features
        - Plan-based generation: single agent, merged drafts, or coordinated synthesis
        - Idea mode: five-section package (presentation, MVP, POC, estimate, brief)
        - Per-account rate limiting and credit metering
        """,
        version="1.0.0",
        lifespan=lifespan if use_lifespan else None,
        docs_url="/docs",
        redoc_url="/redoc" if settings.is_development else None,
    )
    application.state.pipeline = pipeline or build_pipeline(settings)

    # CORS middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.middleware("http")
    async def assign_request_id(request: Request, call_next):
        request.state.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        response = await call_next(request)
        response.headers["X-Request-ID"] = request.state.request_id
        return response

    @application.exception_handler(GenerationError)
    async def generation_error_handler(request: Request, exc: GenerationError):
        """Known pipeline errors carry their own status and code"""
        request_id = _request_id(request)
        logger.info("[%s] %s: %s", request_id, exc.code, exc.message)
        content = {
            "error": exc.message,
            "code": exc.code,
            "request_id": request_id,
            **exc.details,
        }
        headers = {}
        if isinstance(exc, RateLimitedError):
            content["retry_after"] = exc.retry_after
            content["reset_at"] = exc.reset_at.isoformat()
            headers = {
                "Retry-After": str(exc.retry_after),
                "X-RateLimit-Limit": str(exc.limit),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": exc.reset_at.isoformat(),
            }
        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    @application.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Malformed input: report the first problem only"""
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(
            status_code=400,
            content={
                "error": message.removeprefix("Value error, "),
                "code": "VALIDATION_ERROR",
                "request_id": _request_id(request),
            },
        )

    # Global exception handler
    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors"""
        request_id = _request_id(request)
        logger.exception("[%s] Unhandled error", request_id)
        if get_settings().DEBUG:
            return JSONResponse(
                status_code=500,
                content={
                    "detail": str(exc),
                    "type": type(exc).__name__,
                    "request_id": request_id,
                },
            )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "request_id": request_id},
        )

    # Import and include API routes
    from origo.api.routes import api_router
    application.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")

    # Health check
    @application.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "version": "1.0.0",
            "environment": settings.APP_ENV,
        }

    return application


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()

    uvicorn.run(
        "origo.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        workers=1 if settings.is_development else settings.WORKERS,
    )
