"""FastAPI main application for the research assistant settings surface."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from research_assistant import __version__
from research_assistant.config import Config
from research_assistant.logging_config import setup_logging
from research_assistant.plugin import activate

from .routes import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    setup_logging(Config.LOG_LEVEL)
    app.state.plugin = await activate()
    logger.info("Research assistant starting up")
    yield
    await app.state.plugin.deactivate()
    logger.info("Research assistant shut down cleanly")


# Create FastAPI app
app = FastAPI(
    title="AI Research Assistant API",
    description="Settings and credential management for the AI Research Assistant",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for the settings frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(settings.router, prefix="/api/settings", tags=["Settings"])


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}
