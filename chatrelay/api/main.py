"""
FastAPI Application Entry Point.

This module creates and configures the FastAPI application instance.
It handles:
1. Application initialization
2. Router registration
3. Middleware configuration (audit, security headers, CORS)
4. Exception handlers (custom exceptions, request validation)
5. Startup/shutdown events

Run with: uvicorn chatrelay.api.main:app --reload
"""
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chatrelay import __version__
from chatrelay.api.routes import chat_router, conversations_router, health_router
from chatrelay.core.audit import AuditMiddleware, SecurityHeadersMiddleware
from chatrelay.core.config import get_settings
from chatrelay.core.exceptions import ChatRelayException, InvalidRequestError, RateLimitExceeded
from chatrelay.core.logging_config import get_logger, setup_logging


# Initialize logging before anything else
settings = get_settings()
setup_logging(settings.log_level, settings.log_dir)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events:
    - Startup: Create conversation tables, report configured providers
    - Shutdown: Close database connections
    """
    # Startup
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode")
    logger.info(f"Providers: {list(settings.configured_providers()) or 'none configured'}")
    logger.info(f"Context window: {settings.context_window} messages")
    logger.info(f"Rate Limit: {settings.rate_limit_per_minute} req/min")
    logger.info(f"Audit Logging: {settings.enable_audit_logging}")

    if settings.memory_persistent:
        from chatrelay.database.init_db import init_conversation_tables
        init_conversation_tables()
        logger.info("Checked/Initialized conversation tables.")

    yield  # Application runs here

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}")

    if settings.memory_persistent:
        from chatrelay.database import reset_database
        reset_database()


# Create FastAPI application
app = FastAPI(
    title="ChatRelay API",
    description="""
    A conversational chat backend that relays to several AI providers.

    ## Features

    - **Provider Fallback**: OpenAI, Anthropic, Gemini, Grok, OpenRouter, Z.AI and Groq,
      tried in configured order ✓
    - **Multi-turn Conversations**: Bounded context from stored history ✓
    - **Persistent Memory**: Conversations survive restarts (MEMORY_PERSISTENT=true) ✓
    - **Conversation Management**: List, search, pin, archive, delete ✓
    - **Rate Limiting**: Abuse prevention ✓
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ============================================================
# Middleware Configuration (Order matters!)
# ============================================================

app.add_middleware(SecurityHeadersMiddleware)

if settings.enable_audit_logging:
    app.add_middleware(AuditMiddleware)
    logger.info("Audit logging middleware enabled")

if settings.is_development():
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.warning("CORS configured for development (all origins allowed)")


# ============================================================
# Exception Handlers
# ============================================================

@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers={"Retry-After": str(exc.retry_after)}
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Render body/query validation failures as 400 invalid_request."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    logger.warning(f"Request validation failed on {request.url.path}: {location or 'body'}")

    error = InvalidRequestError(
        f"Invalid request: {first.get('msg', 'malformed body')}",
        field=location or None,
    )
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(ChatRelayException)
async def chatrelay_exception_handler(request: Request, exc: ChatRelayException):
    """Handle all custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Handle uncaught exceptions globally.

    Detailed error information is only included in development mode.
    """
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "details": str(exc) if settings.is_development() else None,
            "timestamp": datetime.utcnow().isoformat()
        }
    )


# ============================================================
# Routers
# ============================================================

app.include_router(health_router)
app.include_router(chat_router)
app.include_router(conversations_router)


@app.get("/", include_in_schema=False)
async def root():
    """Service banner."""
    return {
        "message": "ChatRelay API",
        "version": __version__,
        "documentation": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "chatrelay.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development()
    )
