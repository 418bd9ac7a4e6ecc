"""
Tank Copilot API

Run with:
    uvicorn tank_copilot.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tank_copilot.errors import register_exception_handlers
from tank_copilot.logging_config import configure_structlog, get_logger
from tank_copilot.routers.analytics_router import router as analytics_router
from tank_copilot.settings import get_settings

logger = logging.getLogger("tank_copilot")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    level = getattr(logging, settings.app.log_level.upper(), logging.INFO)
    get_logger("tank_copilot", level, log_to_file=settings.app.log_to_file)
    configure_structlog(level)

    logger.info(f"🚀 Tank Copilot API v{settings.app.version} starting")
    for warning in settings.validate():
        logger.warning(warning)
    yield
    logger.info("🛑 Tank Copilot API shutting down")


app = FastAPI(
    title="Tank Copilot API",
    description="Consumption analytics and predictive refill for fuel and water tanks",
    version=get_settings().app.version,
    lifespan=lifespan,
)

register_exception_handlers(app)
app.include_router(analytics_router)
