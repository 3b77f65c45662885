"""
Support Desk AI - Main Application
==================================

AI-assisted customer support ticketing.

Tickets are classified, prioritized and embedded in the background as soon
as they are submitted. Agents then generate reply drafts grounded in
similar past tickets, edit them, and approve or escalate.

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, prompts and workflow rules
- Infrastructure: Database, LLM, vector store, scheduler
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

# Configuration and Core
from support_desk import __version__
from support_desk.config import settings
from support_desk.core import ApplicationException, ConfigurationException, VectorStoreException

# Infrastructure
from support_desk.infrastructure.database import init_database, close_database, create_tables
from support_desk.infrastructure.llm import create_llm_client
from support_desk.infrastructure.scheduler import BackgroundTaskRunner

# Tickets module
from support_desk.tickets.application import create_ticket_service
from support_desk.tickets.infrastructure import SQLAlchemyTicketRepository, SimilarityIndexAdapter
from support_desk.tickets.interfaces import tickets_router

# Shared
from support_desk.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from support_desk.shared.infrastructure.grafana import get_grafana_exporter
from support_desk.shared.infrastructure.logging import setup_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database and create tables
    3. Initialize the similarity index (Milvus)
    4. Initialize LLM client
    5. Start the background task runner
    6. Wire the ticket service

    SHUTDOWN:
    1. Stop the background task runner
    2. Close database connections

    The service starts in degraded mode when the database or Milvus is
    unreachable; the affected endpoints fail until they come back.
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment, settings.app_name)
    logger.info("Starting Support Desk AI", extra={
        "version": settings.app_version,
        "environment": settings.environment,
        "llm_provider": "mock" if settings.mock_llm else settings.llm_provider,
    })

    logger.info("Initializing database")
    init_database()

    # Tables are created on startup; use migrations for production schemas
    app.state.database_ready = False
    try:
        await create_tables()
        app.state.database_ready = True
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Database not available - running in degraded mode: {e}")

    logger.info("Initializing Milvus similarity index")
    similarity_index = SimilarityIndexAdapter()
    try:
        await similarity_index.initialize()
    except VectorStoreException as e:
        logger.warning(f"Similarity index not available: {e.message}")
    app.state.similarity_index = similarity_index

    logger.info("Initializing LLM client")
    try:
        llm_client = create_llm_client()
    except ConfigurationException as e:
        logger.warning(f"LLM client initialization failed: {e.message}")
        llm_client = None
    app.state.llm_client = llm_client

    task_runner = BackgroundTaskRunner()
    await task_runner.start()
    app.state.task_runner = task_runner

    if get_grafana_exporter().is_enabled():
        logger.info("Grafana OTLP exporter enabled")
    else:
        logger.info("Grafana OTLP exporter not configured - metrics will not be exported")

    if llm_client is not None:
        app.state.ticket_service = create_ticket_service(
            llm_client=llm_client,
            repository=SQLAlchemyTicketRepository(),
            similarity_index=similarity_index,
            task_runner=task_runner,
        )
    else:
        app.state.ticket_service = None
        logger.warning("Ticket service not available - no LLM client")

    logger.info("Support Desk AI started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Support Desk AI")
    await task_runner.stop()
    await close_database()
    logger.info("Support Desk AI shutdown complete")


def create_app() -> FastAPI:
    """Build the FastAPI application with middleware, handlers and routes."""
    application = FastAPI(
        title="Support Desk AI API",
        description="""
    ## AI-Assisted Customer Support Ticketing

    **Endpoints** (`/api/v1/tickets`):
    - `POST /` - Submit a ticket; classification runs in the background
    - `GET /` - List tickets with status/category filters and pagination
    - `GET /stats` - Ticket counts per workflow status
    - `GET /{id}/enhanced` - Ticket with similar tickets and suggested actions
    - `POST /{id}/generateDraft` - Draft a reply from similar tickets
    - `PUT /{id}/edit`, `/approve`, `/escalate` - Review workflow

    **Workflow:** New → Processed → AI-Drafted → Pending Review → Sent, with
    Escalated reachable from any open state and Processing Failed when the
    background pipeline fails.
    """,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # === CORS Middleware ===
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Last added runs first: correlation ID must be set before logging
    application.add_middleware(LoggingMiddleware)
    application.add_middleware(CorrelationIDMiddleware)

    application.add_exception_handler(ApplicationException, application_exception_handler)
    application.add_exception_handler(StarletteHTTPException, http_exception_handler)
    application.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    application.add_exception_handler(Exception, global_exception_handler)

    application.include_router(tickets_router)
    application.add_api_route("/", root, methods=["GET"], tags=["Root"])
    application.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    return application


async def root():
    """Root endpoint with API information."""
    return {
        "service": "Support Desk AI",
        "version": __version__,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "tickets": "/api/v1/tickets",
    }


async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.

    Reports database state, similarity index size, LLM client
    availability and background runner state.
    """
    state = request.app.state
    task_runner = getattr(state, "task_runner", None)
    checks = {
        "database": "connected" if getattr(state, "database_ready", False) else "unavailable",
        "llm_client": "available" if getattr(state, "llm_client", None) else "not_configured",
        "task_runner": "running" if task_runner and task_runner.is_running else "stopped",
        "similarity_index": "unavailable",
    }

    similarity_index = getattr(state, "similarity_index", None)
    if similarity_index is not None:
        try:
            count = await similarity_index.indexed_count()
            checks["similarity_index"] = f"available ({count} tickets)"
        except VectorStoreException as e:
            checks["similarity_index"] = f"error: {e.message}"

    healthy = checks["database"] == "connected" and checks["llm_client"] == "available"
    return {
        "status": "healthy" if healthy else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks
    }


app = create_app()


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        "support_desk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
