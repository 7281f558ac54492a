"""
Fleet Timeline API Routes
Daily and bucketed occupancy series for the dashboard charts
"""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_timeline.config import settings
from fleet_timeline.domain.errors import DataSourceError, FleetTimelineError
from fleet_timeline.domain.schemas.timeline import (
    AggregatedSeriesResponse,
    ClassStockResponse,
    DailySeriesResponse,
    VehicleClassLegendSchema,
)
from fleet_timeline.domain.services.timeline_engine import FleetTimelineEngine
from fleet_timeline.infrastructure.cache.redis_cache import RedisSeriesCache
from fleet_timeline.infrastructure.db.database import get_db
from fleet_timeline.infrastructure.db.repositories.rental_repository import RentalRepository
from fleet_timeline.infrastructure.db.repositories.vehicle_repository import (
    VehicleClassRepository,
    VehicleRepository,
)
from fleet_timeline.reports.csv_export import export_csv
from fleet_timeline.utils.time import today_in

logger = logging.getLogger(__name__)
router = APIRouter()

# Shared across requests; disabled unless TIMELINE_CACHE_TTL_SECONDS > 0
series_cache = RedisSeriesCache(
    url=settings.REDIS_URL,
    ttl_seconds=settings.TIMELINE_CACHE_TTL_SECONDS,
)


def get_timeline_engine(db: AsyncSession = Depends(get_db)) -> FleetTimelineEngine:
    return FleetTimelineEngine(
        vehicle_class_repo=VehicleClassRepository(db),
        vehicle_repo=VehicleRepository(db),
        rental_repo=RentalRepository(db),
        today=lambda: today_in(settings.TIMEZONE),
        orphan_policy=settings.ORPHAN_RENTAL_POLICY,
        lookback_months=settings.DEFAULT_LOOKBACK_MONTHS,
        cache=series_cache if series_cache.enabled else None,
    )


def _to_http(exc: Exception, action: str) -> HTTPException:
    if isinstance(exc, ValueError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, DataSourceError):
        logger.error("Data source unavailable while %s: %s", action, exc)
        return HTTPException(status_code=503, detail="Data source unavailable")
    logger.error("Error while %s: %s", action, exc, exc_info=exc)
    return HTTPException(status_code=500, detail="Internal server error")


@router.get(
    "/daily",
    response_model=DailySeriesResponse,
    summary="Daily fleet occupancy",
    description="Fleet size, vehicles on rent (overall and per class) and stock for every day",
)
async def daily_series(
    min_date: Optional[date] = Query(None, description="First day, defaults to start of history"),
    max_date: Optional[date] = Query(None, description="Last day, defaults to today"),
    engine: FleetTimelineEngine = Depends(get_timeline_engine),
):
    try:
        series = await engine.get_daily_series(min_date=min_date, max_date=max_date)
    except FleetTimelineError as e:
        raise _to_http(e, "building daily series")
    return DailySeriesResponse.from_domain(series)


@router.get(
    "/aggregated",
    response_model=AggregatedSeriesResponse,
    summary="Bucketed fleet occupancy",
    description=(
        "Daily series re-bucketed by week, month or year. Fleet and stock are "
        "the bucket's last day; rented counts are summed over the bucket's days."
    ),
)
async def aggregated_series(
    granularity: str = Query("week", description="day, week, month or year"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    engine: FleetTimelineEngine = Depends(get_timeline_engine),
):
    try:
        series = await engine.get_aggregated_series(granularity, date_from, date_to)
    except FleetTimelineError as e:
        raise _to_http(e, "aggregating series")
    return AggregatedSeriesResponse.from_domain(series)


@router.get(
    "/classes",
    response_model=List[VehicleClassLegendSchema],
    summary="Vehicle class legend",
)
async def vehicle_class_legend(engine: FleetTimelineEngine = Depends(get_timeline_engine)):
    try:
        legend = await engine.get_vehicle_class_legend()
    except FleetTimelineError as e:
        raise _to_http(e, "loading class legend")
    return [VehicleClassLegendSchema.from_domain(entry) for entry in legend]


@router.get(
    "/stock",
    response_model=ClassStockResponse,
    summary="Current stock per vehicle class",
)
async def class_stock(engine: FleetTimelineEngine = Depends(get_timeline_engine)):
    try:
        snapshot = await engine.get_class_stock_snapshot()
    except FleetTimelineError as e:
        raise _to_http(e, "loading class stock")
    return ClassStockResponse.from_domain(snapshot)


@router.get(
    "/export.csv",
    summary="Bucketed fleet occupancy as CSV",
    response_class=Response,
)
async def export_series_csv(
    granularity: str = Query("week"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    engine: FleetTimelineEngine = Depends(get_timeline_engine),
):
    try:
        series = await engine.get_aggregated_series(granularity, date_from, date_to)
    except FleetTimelineError as e:
        raise _to_http(e, "exporting series")

    return Response(
        content=export_csv(series.records, series.legend),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="fleet_occupancy.csv"'},
    )
