"""
Redis cache for computed daily series.

Entries are JSON documents written with an expiry, so Redis drops them on
its own once TIMELINE_CACHE_TTL_SECONDS has passed.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from fleet_timeline.domain.models import (
    ClassLegendEntry,
    DailyRecord,
    DailySeries,
    TimelineDiagnostics,
)

logger = logging.getLogger(__name__)


def series_to_json(series: DailySeries) -> Dict[str, Any]:
    return {
        "start": series.start.isoformat(),
        "end": series.end.isoformat(),
        "records": [
            {
                "date": r.date.isoformat(),
                "label": r.label,
                "total_fleet": r.total_fleet,
                "total_rented": r.total_rented,
                "total_stock": r.total_stock,
                # JSON object keys are strings
                "rented_by_class": {str(k): v for k, v in r.rented_by_class.items()},
                "rented_unclassified": r.rented_unclassified,
            }
            for r in series.records
        ],
        "legend": [
            {
                "id": e.id,
                "name": e.name,
                "color": e.color,
                "series_key": e.series_key,
                "stock_key": e.stock_key,
            }
            for e in series.legend
        ],
        "diagnostics": {
            "vehicles_read": series.diagnostics.vehicles_read,
            "rentals_read": series.diagnostics.rentals_read,
            "orphaned_rentals": series.diagnostics.orphaned_rentals,
            "inverted_rentals": series.diagnostics.inverted_rentals,
            "rentals_outside_lifetime": series.diagnostics.rentals_outside_lifetime,
            "inverted_vehicles": series.diagnostics.inverted_vehicles,
            "used_fallback_window": series.diagnostics.used_fallback_window,
        },
    }


def series_from_json(payload: Dict[str, Any]) -> DailySeries:
    records = [
        DailyRecord(
            date=date.fromisoformat(r["date"]),
            label=r["label"],
            total_fleet=r["total_fleet"],
            total_rented=r["total_rented"],
            total_stock=r["total_stock"],
            rented_by_class={int(k): v for k, v in r["rented_by_class"].items()},
            rented_unclassified=r["rented_unclassified"],
        )
        for r in payload["records"]
    ]
    return DailySeries(
        start=date.fromisoformat(payload["start"]),
        end=date.fromisoformat(payload["end"]),
        records=records,
        legend=[ClassLegendEntry(**e) for e in payload["legend"]],
        diagnostics=TimelineDiagnostics(**payload["diagnostics"]),
    )


class RedisSeriesCache:
    def __init__(
        self,
        url: str,
        ttl_seconds: int,
        prefix: str = "timeline:",
        client: Optional[redis.Redis] = None,
    ):
        self._client = client if client is not None else redis.Redis.from_url(url, decode_responses=True)
        self._ttl_seconds = ttl_seconds
        self._prefix = prefix

    @property
    def enabled(self) -> bool:
        return self._ttl_seconds > 0

    def _key(self, start: date, end: date) -> str:
        return f"{self._prefix}daily:{start.isoformat()}:{end.isoformat()}"

    async def get(self, start: date, end: date) -> Optional[DailySeries]:
        if not self.enabled:
            return None
        try:
            raw = await self._client.get(self._key(start, end))
            if raw is None:
                return None
            return series_from_json(json.loads(raw))
        except (RedisError, ValueError, KeyError, TypeError) as exc:
            logger.debug("Redis series get failed: %s", exc)
            return None

    async def put(self, series: DailySeries) -> None:
        if not self.enabled:
            return
        try:
            await self._client.set(
                self._key(series.start, series.end),
                json.dumps(series_to_json(series)),
                ex=self._ttl_seconds,
            )
        except RedisError as exc:
            logger.debug("Redis series set failed: %s", exc)

    async def close(self) -> None:
        try:
            await self._client.aclose()
        except RedisError:
            return
