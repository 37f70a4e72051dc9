"""
FastAPI Application

Main FastAPI application for DBChat with:
- Lifespan management for pipeline initialization
- CORS middleware for frontend integration
- Global exception handlers mapping pipeline errors to HTTP statuses
- Health and database endpoints

Usage:
    uvicorn dbchat.api.main:app --reload --port 8000
"""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dbchat import __version__
from dbchat.agents.executor import QueryExecutorAgent
from dbchat.agents.generator import SQLGeneratorAgent
from dbchat.agents.safety import SafetyGate
from dbchat.api.routes import database, health
from dbchat.config import get_settings
from dbchat.connectors import ConnectionError as ConnectorConnectionError
from dbchat.connectors import QueryError, QueryTimeoutError
from dbchat.introspection.introspector import SchemaIntrospector
from dbchat.models.agent import AgentError, GenerationError, IntrospectionError, UnsafeQueryError
from dbchat.models.api import ErrorResponse
from dbchat.pipeline.orchestrator import DatabaseQueryPipeline
from dbchat.pipeline.session_context import ConversationStore

logger = logging.getLogger(__name__)

# Global state for pipeline and components
app_state: dict[str, Any] = {
    "pipeline": None,
    "introspector": None,
    "gate": None,
    "executor": None,
    "conversations": None,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Lifespan context manager for startup and shutdown.

    Initializes:
    - Schema introspector, safety gate and query executor
    - Conversation store
    - Pipeline orchestrator (only when an LLM provider is configured)
    """
    config = get_settings()
    logger.info("Starting DBChat API server...")

    try:
        app_state["introspector"] = SchemaIntrospector(settings=config.database)
        app_state["gate"] = SafetyGate()
        app_state["executor"] = QueryExecutorAgent(settings=config, gate=app_state["gate"])
        app_state["conversations"] = ConversationStore(config.pipeline.max_conversations)

        logger.info("Initializing pipeline orchestrator...")
        try:
            generator = SQLGeneratorAgent(settings=config)
        except ValueError as e:
            logger.warning(f"SQL generation disabled: {e}")
            app_state["pipeline"] = None
        else:
            app_state["pipeline"] = DatabaseQueryPipeline(
                settings=config,
                introspector=app_state["introspector"],
                generator=generator,
                gate=app_state["gate"],
                executor=app_state["executor"],
            )

        if config.database.url is None:
            logger.info("DATABASE_URL not set; requests must carry a connection string.")

        logger.info("DBChat API server started successfully")

        yield  # Application runs here

    finally:
        logger.info("Shutting down DBChat API server...")
        for key in app_state:
            app_state[key] = None
        logger.info("DBChat API server shut down complete")


# Create FastAPI app
app = FastAPI(
    title="DBChat API",
    description="Natural language questions over PostgreSQL databases",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for frontend
cors_origins_env = os.getenv("CORS_ORIGINS", "")
cors_origins = (
    [origin.strip() for origin in cors_origins_env.split(",") if origin.strip()]
    if cors_origins_env
    else ["http://localhost:3000", "http://localhost:5173"]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(
    status_code: int, error: str, message: str, agent: str | None = None
) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, agent=agent)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


# Exception handlers
@app.exception_handler(UnsafeQueryError)
async def unsafe_query_handler(request: Request, exc: UnsafeQueryError) -> JSONResponse:
    """Reject statements that are not a single read-only SELECT."""
    logger.warning(f"Unsafe query rejected: {exc.message}")
    return _error_response(
        status.HTTP_400_BAD_REQUEST, "unsafe_query", exc.message, exc.agent
    )


@app.exception_handler(IntrospectionError)
async def introspection_error_handler(request: Request, exc: IntrospectionError) -> JSONResponse:
    """Handle schema introspection failures."""
    logger.error(f"Introspection error: {exc.message}")
    return _error_response(
        status.HTTP_502_BAD_GATEWAY, "introspection_error", exc.message, exc.agent
    )


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError) -> JSONResponse:
    """Handle SQL generation failures."""
    logger.error(f"Generation error: {exc.message}")
    return _error_response(
        status.HTTP_502_BAD_GATEWAY, "generation_error", exc.message, exc.agent
    )


@app.exception_handler(AgentError)
async def agent_error_handler(request: Request, exc: AgentError) -> JSONResponse:
    """Handle any other agent errors."""
    logger.error(
        f"Agent error: {exc}",
        extra={"agent": exc.agent, "recoverable": exc.recoverable},
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "agent_error", exc.message, exc.agent
    )


@app.exception_handler(ConnectorConnectionError)
async def connection_error_handler(
    request: Request, exc: ConnectorConnectionError
) -> JSONResponse:
    """Handle database connection errors."""
    logger.error(f"Database connection error: {exc}")
    return _error_response(status.HTTP_502_BAD_GATEWAY, "connection_error", str(exc))


@app.exception_handler(QueryTimeoutError)
async def query_timeout_handler(request: Request, exc: QueryTimeoutError) -> JSONResponse:
    """Handle statement and query timeouts."""
    logger.error(f"Query timeout: {exc}")
    return _error_response(status.HTTP_504_GATEWAY_TIMEOUT, "query_timeout", str(exc))


@app.exception_handler(QueryError)
async def query_error_handler(request: Request, exc: QueryError) -> JSONResponse:
    """Handle query execution errors."""
    logger.error(f"Query execution error: {exc}")
    return _error_response(status.HTTP_502_BAD_GATEWAY, "query_error", str(exc))


# Include routers
app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(
    database.router,
    prefix="/api/v1",
    tags=["database"],
    responses={
        400: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)


# Root endpoint
@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "name": "DBChat API",
        "version": __version__,
        "description": "Natural language questions over PostgreSQL databases",
        "docs": "/docs",
    }
