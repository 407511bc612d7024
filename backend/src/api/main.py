"""FastAPI application main entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

load_dotenv()

from .middleware import register_error_handlers
from .routes import canvas, stories, system
from ..services.config import get_config
from ..services.seed import init_and_seed

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler to run startup tasks."""
    system.install_memory_handler()
    config = get_config()
    logger.info("Running startup: initializing story database...")
    try:
        init_and_seed(seed=config.seed_demo_story)
        logger.info("Startup complete: story database ready at %s", config.database_path)
    except Exception as exc:
        logger.exception("Startup failed: %s", exc)
        logger.error("App starting without demo story due to initialization error")
    yield


app = FastAPI(
    title="Storyweaver API",
    description="Branching story graph editor backend",
    version="0.1.0",
    lifespan=lifespan,
)

config = get_config()

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(stories.router, tags=["stories"])
app.include_router(canvas.router, tags=["canvas"])
app.include_router(system.router, tags=["system"])


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


__all__ = ["app"]
