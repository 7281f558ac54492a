"""
FLEET TIMELINE ENGINE - ASYNC
Orchestrates the occupancy timeline from a handful of bulk reads

RESPONSIBILITIES:
- Resolve the date range (earliest creation / rental start, or a lookback window)
- Fetch classes, vehicles and rentals once each
- Run the fleet reconstructor and the occupancy classifier once over the range
- Merge into the daily series, re-bucket on request

RULES:
❌ No query inside any per-day or per-record loop
❌ No partial series when a read fails
✅ Granularity validated before any read
✅ Same input snapshot, same output
"""

import logging
from datetime import date
from typing import Callable, List, Optional, Protocol, Tuple, Union

from fleet_timeline.domain.errors import DataSourceError, InvalidDateRange
from fleet_timeline.domain.models import (
    AggregatedSeries,
    ClassLegendEntry,
    ClassStockSnapshot,
    DailySeries,
    Granularity,
    OrphanRentalPolicy,
    Rental,
    TimelineDiagnostics,
    Vehicle,
    VehicleClass,
)
from fleet_timeline.domain.services.class_registry import VehicleClassRegistry
from fleet_timeline.domain.services.daily_series import DailySeriesBuilder
from fleet_timeline.domain.services.fleet_totals import FleetTotalsReconstructor
from fleet_timeline.domain.services.granularity import GranularityAggregator
from fleet_timeline.domain.services.rental_occupancy import RentalOccupancyClassifier
from fleet_timeline.domain.services.stock_snapshot import build_class_stock_snapshot
from fleet_timeline.utils.time import subtract_months

logger = logging.getLogger(__name__)


class VehicleClassRepository(Protocol):
    """Protocol for vehicle class data access - ASYNC"""

    async def list_all(self) -> List[VehicleClass]:
        """All vehicle classes"""
        ...


class VehicleRepository(Protocol):
    """Protocol for vehicle data access - ASYNC"""

    async def list_lifecycles(self) -> List[Vehicle]:
        """All vehicles, retired ones included"""
        ...

    async def earliest_created_at(self) -> Optional[date]:
        """Creation day of the oldest vehicle"""
        ...

    async def list_current_stock(self) -> List[Vehicle]:
        """Active vehicles with their current status"""
        ...


class RentalRepository(Protocol):
    """Protocol for rental data access - ASYNC"""

    async def list_intersecting(self, min_date: date, max_date: date) -> List[Rental]:
        """Rentals covering at least one day of [min_date, max_date]"""
        ...

    async def earliest_start_date(self) -> Optional[date]:
        """Start day of the oldest rental"""
        ...


class SeriesStore(Protocol):
    """Protocol for a daily series cache - ASYNC"""

    async def get(self, start: date, end: date) -> Optional[DailySeries]:
        ...

    async def put(self, series: DailySeries) -> None:
        ...


class FleetTimelineEngine:
    """
    Fleet Timeline Engine - ASYNC
    Stateless between calls apart from the optional series cache
    """

    def __init__(
        self,
        vehicle_class_repo: VehicleClassRepository,
        vehicle_repo: VehicleRepository,
        rental_repo: RentalRepository,
        today: Callable[[], date] = date.today,
        orphan_policy: OrphanRentalPolicy = OrphanRentalPolicy.EXCLUDE,
        lookback_months: int = 36,
        cache: Optional[SeriesStore] = None,
    ):
        """Initialize with repository dependencies"""
        self.vehicle_class_repo = vehicle_class_repo
        self.vehicle_repo = vehicle_repo
        self.rental_repo = rental_repo
        self.today = today
        self.orphan_policy = orphan_policy
        self.lookback_months = lookback_months
        self.cache = cache
        self.aggregator = GranularityAggregator()

    async def resolve_start(self, end: date) -> Tuple[date, bool]:
        """
        Earliest vehicle creation or rental start, clamped to `end`

        Returns:
            (start, used_fallback) where used_fallback is True when there
            is no history and the lookback window was applied
        """
        earliest_vehicle = await self.vehicle_repo.earliest_created_at()
        earliest_rental = await self.rental_repo.earliest_start_date()

        candidates = [d for d in (earliest_vehicle, earliest_rental) if d is not None]
        if not candidates:
            return subtract_months(end, self.lookback_months), True

        return min(min(candidates), end), False

    async def get_daily_series(
        self,
        min_date: Optional[date] = None,
        max_date: Optional[date] = None,
    ) -> DailySeries:
        """
        Daily series for [min_date, max_date]

        Args:
            min_date: Range start; defaults to the start of recorded history
            max_date: Range end; defaults to today

        Returns:
            DailySeries with one record per day

        Raises:
            InvalidDateRange: If min_date is after max_date
            DataSourceError: If any bulk read fails
        """
        end = max_date or self.today()
        if min_date is not None and min_date > end:
            raise InvalidDateRange(min_date, end)

        diagnostics = TimelineDiagnostics()
        try:
            if min_date is None:
                start, diagnostics.used_fallback_window = await self.resolve_start(end)
            else:
                start = min_date

            if self.cache is not None:
                cached = await self.cache.get(start, end)
                if cached is not None:
                    logger.debug("Daily series cache hit for %s..%s", start, end)
                    return cached

            logger.info("Building daily fleet series for %s..%s", start, end)

            classes = await self.vehicle_class_repo.list_all()
            vehicles = await self.vehicle_repo.list_lifecycles()
            rentals = await self.rental_repo.list_intersecting(start, end)
        except DataSourceError:
            logger.error("Daily fleet series aborted: bulk read failed", exc_info=True)
            raise

        diagnostics.vehicles_read = len(vehicles)
        diagnostics.rentals_read = len(rentals)

        registry = VehicleClassRegistry(classes)
        fleet = FleetTotalsReconstructor(start, end).reconstruct(vehicles)
        occupancy = RentalOccupancyClassifier(
            start, end, registry, orphan_policy=self.orphan_policy
        ).classify(rentals, vehicles)
        records = DailySeriesBuilder().build(fleet, occupancy)

        diagnostics.inverted_vehicles = fleet.inverted_vehicles
        diagnostics.orphaned_rentals = occupancy.orphaned_rentals
        diagnostics.inverted_rentals = occupancy.inverted_rentals
        diagnostics.rentals_outside_lifetime = occupancy.rentals_outside_lifetime

        series = DailySeries(
            start=start,
            end=end,
            records=records,
            legend=registry.legend(),
            diagnostics=diagnostics,
        )

        logger.info(
            "Finished daily fleet series: %d day(s), %d vehicle(s), %d rental(s), %d skipped",
            len(records), len(vehicles), len(rentals), diagnostics.skipped_records,
        )

        if self.cache is not None:
            await self.cache.put(series)
        return series

    async def get_aggregated_series(
        self,
        granularity: Union[Granularity, str],
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> AggregatedSeries:
        """
        Bucketed series over the full history, filtered to [date_from, date_to]

        The legend is the one the daily series was built with, so bucket
        class ids always resolve against it.

        Raises:
            InvalidGranularity: Before any read, if granularity is unknown
            InvalidDateRange: If date_from is after date_to
        """
        granularity = Granularity.parse(granularity)
        if date_from is not None and date_to is not None and date_from > date_to:
            raise InvalidDateRange(date_from, date_to)

        series = await self.get_daily_series()
        return AggregatedSeries(
            granularity=granularity,
            records=self.aggregator.aggregate(series.records, granularity, date_from, date_to),
            legend=series.legend,
        )

    async def get_vehicle_class_legend(self) -> List[ClassLegendEntry]:
        """Colour and series key for every vehicle class"""
        classes = await self.vehicle_class_repo.list_all()
        return VehicleClassRegistry(classes).legend()

    async def get_class_stock_snapshot(self) -> ClassStockSnapshot:
        """Current total / available / unavailable vehicles per class"""
        classes = await self.vehicle_class_repo.list_all()
        vehicles = await self.vehicle_repo.list_current_stock()
        snapshot = build_class_stock_snapshot(classes, vehicles)
        logger.info(
            "Class stock snapshot: %d class(es), %d available",
            len(snapshot.entries), snapshot.grand_total_available,
        )
        return snapshot
