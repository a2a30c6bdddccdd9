"""
FastAPI Production Application

Main entry point for the Supply-Chain Order API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
import structlog

from scm.config import get_settings
from scm.config.logging import configure_logging
from scm.database.connection import init_database, close_database
from scm.serving.api import create_api_app

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()

    logger.info("Starting Supply-Chain Order API", environment=settings.app_env)

    await init_database(create_tables=settings.is_development)

    yield

    logger.info("Shutting down...")
    await close_database()


app = create_api_app(lifespan=lifespan)


@app.get("/api/v1/info")
async def api_info():
    """API information endpoint."""
    return {
        "name": "Supply-Chain Order API",
        "version": settings.version,
        "environment": settings.app_env,
        "documentation": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
