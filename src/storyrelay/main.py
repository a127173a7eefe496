"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from storyrelay.agents.orchestrator import get_orchestrator, shutdown_orchestrator
from storyrelay.api.dependencies import OrchestratorDep
from storyrelay.api.dev import router as dev_router
from storyrelay.api.v1.router import router as api_router
from storyrelay.config import get_settings
from storyrelay.errors import RelayError, StoryPipelineError, ValidationError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting StoryRelay application...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Summary backend: {settings.summary_backend}")

    await get_orchestrator().start()

    yield

    await shutdown_orchestrator()
    logger.info("Shutting down StoryRelay application...")


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.warning(f"Rejected {request.url.path}: {exc.message}")
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def story_pipeline_error_handler(
    request: Request, exc: StoryPipelineError
) -> JSONResponse:
    logger.error(f"Error in {request.url.path}: {exc.details} (step={exc.step})")
    body = {
        "success": False,
        "error": exc.message,
        "details": exc.details,
        "failedStep": exc.step,
    }
    if exc.summary_id is not None:
        body["summaryId"] = exc.summary_id
    return JSONResponse(body, status_code=exc.status_code)


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    logger.error(f"Error in {request.url.path}: {exc}")
    return JSONResponse(
        {"error": exc.message, "details": exc.details},
        status_code=exc.status_code,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning(f"Malformed body for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        {"error": "Invalid request body", "details": str(exc.errors())},
        status_code=400,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error in {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        {"error": "Internal server error", "details": str(exc)},
        status_code=500,
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    docs_kwargs = {}
    if settings.is_production:
        docs_kwargs = {"docs_url": None, "redoc_url": None, "openapi_url": None}

    app = FastAPI(
        title="StoryRelay",
        description="Chat relay between a story-aware agent server and a web client",
        version="0.1.0",
        lifespan=lifespan,
        **docs_kwargs,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(StoryPipelineError, story_pipeline_error_handler)
    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include routers
    app.include_router(api_router)

    # Dev-only router
    if not settings.is_production:
        app.include_router(dev_router)

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        """Liveness check."""
        return "StoryRelay is running"

    @app.get("/health")
    async def health_check(orchestrator: OrchestratorDep) -> JSONResponse:
        """Health check reporting whether an agent ID is cached."""
        try:
            agent_id = await orchestrator.identity_store.load()
        except RelayError:
            return JSONResponse(
                {"status": "unhealthy", "agent_id_cached": False},
                status_code=503,
            )
        return JSONResponse({"status": "healthy", "agent_id_cached": agent_id is not None})

    return app


# Create app instance
app = create_app()


def run() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    uvicorn.run("storyrelay.main:app", host="0.0.0.0", port=settings.port)
