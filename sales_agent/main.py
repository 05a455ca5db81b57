"""
FastAPI application bootstrap with: \n
- Lifespan-managed schema creation and completion gateway construction \n
- CORS configured for the frontend \n
- Exception handlers rendering every error as `{"error": message}` \n

Environment contract (from `settings`): \n
- INIT_MODE: if 'runtime', create tables and build the completion gateway during app startup. \n
- FRONTEND_URL: allowed CORS origin. \n
- LOG_LEVEL: root logging level. \n
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sales_agent.api.errors import TurnError
from sales_agent.api.fast_api import router
from sales_agent.api.llm_pipeline import build_gateway
from sales_agent.database.config.config import settings
from sales_agent.database.core.funcs import create_schema
import logging
from contextlib import asynccontextmanager

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger("uvicorn")
"""Logger instance for capturing and emitting Uvicorn server logs."""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    App lifespan manager.

    Notes
    ------------
    - On startup (before yielding):
        * If INIT_MODE == 'runtime':
            - Create missing tables.
            - Build the completion gateway and attach it to `app.state`.
    - On shutdown (after yielding):
        * Drop the gateway reference.
    """
    if settings.INIT_MODE == "runtime":
        logger.info("⚙️  Creating schema and completion gateway...")
        create_schema()
        app.state.gateway = build_gateway()
        logger.info("✅ Completion gateway ready (model=%s).", settings.COMPLETION_MODEL)
    else:
        logger.info("⏭️  Skipping runtime init (INIT_MODE=%s).", settings.INIT_MODE)

    try:
        yield
    finally:
        if getattr(app.state, "gateway", None) is not None:
            app.state.gateway = None
            logger.info("🛑 Completion gateway released.")
        else:
            logger.info("🛑 App shutting down (no gateway to release).")


# Instantiate the FastAPI app with lifespan handler
app = FastAPI(lifespan=lifespan)
"""Instatiates a FastAPI application object
    The lifespan=lifespan argument registers a custom startup/shutdown lifecycle manager that:\n
        - On startup: creates tables and the completion gateway if INIT_MODE == 'runtime'.\n
        - On shutdown: releases the gateway. \n
"""

# -----------------------
# CORS configuration
# -----------------------
url = settings.FRONTEND_URL
"""The allowed frontend origin (URL) used for CORS configuration."""

app.add_middleware(
    CORSMiddleware,
    allow_origins=[url],      # Frontend origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------
# Error rendering
# -----------------------
@app.exception_handler(TurnError)
async def turn_error_handler(request: Request, exc: TurnError):
    """Render a failed chat turn; the detail stays in the log."""
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.detail or exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed JSON or wrongly typed fields are client errors with the common error shape."""
    logger.warning("Malformed request on %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Malformed request body."})


# -----------------------
# API routes
# -----------------------
app.include_router(router)
