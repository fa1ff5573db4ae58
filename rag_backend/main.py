"""
FastAPI application entry point.

Initializes FastAPI app, registers routers, adds middleware, and configures lifespan.

Dependencies: fastapi, rag_backend.api, rag_backend.observability, rag_backend.configs
System role: Application initialization and configuration
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rag_backend.api import api_router
from rag_backend.configs import get_settings
from rag_backend.core.document_processing.scheduler import InlinePipelineScheduler
from rag_backend.dependencies import ServiceContainer, get_container, set_container
from rag_backend.observability.logger import configure_logging
from rag_backend.observability.middleware import (
    CorrelationMiddleware,
    RequestLoggingMiddleware,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Configures logging and builds the request-path services once at startup.
    In-process pipeline runs are cancelled on shutdown; their documents are
    left in processing for the watchdog.
    """
    configure_logging(get_settings().log_level)
    logger.info(f"{__name__}:lifespan - Logging configured")

    container = get_container()
    try:
        container.warm_up()
    except Exception as e:
        logger.exception(f"{__name__}:lifespan - Failed to initialize services: {type(e).__name__}: {e}")
        raise

    yield

    scheduler = container.scheduler
    if isinstance(scheduler, InlinePipelineScheduler):
        await scheduler.shutdown()
    logger.info(f"{__name__}:lifespan - Application shutdown")


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        container: Services to use instead of the default container

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()
    if container is not None:
        set_container(container)

    app = FastAPI(
        title="RAG Document Backend",
        description="Document ingestion, embedding and retrieval API",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Added first = innermost; request logs carry the correlation id
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rag_backend.main:app",
        host="localhost",
        port=8082,
        reload=True,
    )
