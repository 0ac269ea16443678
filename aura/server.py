"""FastAPI server for the A.U.R.A. agent.

Run with:
    uv run uvicorn aura.server:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from aura.agent import AuraAgent
from aura.api.routes import router
from aura.config import CORS_ORIGINS, SERVER_HOST, SERVER_PORT
from aura.services.fasterbook_client import close_fasterbook_client
from aura.services.image_generation import close_image_generation_client
from aura.services.metrics import metrics

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan: initialise / tear-down shared resources ────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Start-up: compile the LangGraph agent once and store it in app state.

    Shutdown: close the shared HTTP clients and flush buffered metrics.
    """
    logger.info("Compiling LangGraph agent…")
    application.state.agent = AuraAgent()
    logger.info("Agent ready.")
    yield
    await close_fasterbook_client()
    await close_image_generation_client()
    metrics.flush()


# ── FastAPI application ──────────────────────────────────────────────
app = FastAPI(
    title="A.U.R.A. Agent",
    description=(
        "Conversational assistant grounded in uploaded documents, with a "
        "FasterBook agent mode for food orders and movie tickets."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS (needed for the web frontend) ──────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request-ID middleware ────────────────────────────────────────────
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> Response:
    """Attach a unique request ID to every request for log correlation.

    The ID is echoed in the ``X-Request-ID`` response header.
    """
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    logger.info(
        "[%s] %s %s", request_id, request.method, request.url.path,
    )
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ── Register routes ──────────────────────────────────────────────────
app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "A.U.R.A. Agent",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health",
    }


# ── CLI entry point ──────────────────────────────────────────────────

if __name__ == "__main__":
    logger.info("Starting A.U.R.A. API server on %s:%d", SERVER_HOST, SERVER_PORT)
    uvicorn.run(
        "aura.server:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=True,
    )
