"""
FastAPI Main Application
Serves the fleet occupancy timeline to the reporting dashboard
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fleet_timeline import __version__
from fleet_timeline.api.routes import health, timeline
from fleet_timeline.config import settings
from fleet_timeline.core.logging import get_logger, setup_logging
from fleet_timeline.infrastructure.db.database import close_db, init_db

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Opens and closes the database
    """
    logger.info("Starting fleet timeline service (env=%s)", settings.APP_ENV)
    logger.info("Database: %s", settings.DATABASE_URL)

    await init_db()
    logger.info(
        "Timeline: orphan policy=%s, lookback=%d months, cache ttl=%ds",
        settings.ORPHAN_RENTAL_POLICY.value,
        settings.DEFAULT_LOOKBACK_MONTHS,
        settings.TIMELINE_CACHE_TTL_SECONDS,
    )

    yield

    logger.info("Shutting down fleet timeline service")
    await timeline.series_cache.close()
    await close_db()
    logger.info("Database connections closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Fleet Occupancy Timeline",
        description="Daily fleet size, occupancy and stock for rental dashboards",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(timeline.router, prefix="/api/v1/timeline", tags=["Fleet Timeline"])
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "fleet_timeline.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )
