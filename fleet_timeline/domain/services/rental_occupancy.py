"""
RENTAL OCCUPANCY CLASSIFIER
Rental intervals -> vehicles on rent per day, per class

RESPONSIBILITIES:
- Resolve each rental to its vehicle and the vehicle's class
- Merge each vehicle's coverage intervals so overlapping rentals count once
- Emit +1 / -1 deltas per class and prefix-sum them over the range

RULES:
- A rental covers day d when start_date <= d and (end_date is None or end_date >= d)
- Open-ended rentals cover every day through the end of the range
- Coverage is clipped to the vehicle's active lifetime, so the number
  rented never exceeds the fleet on any day
- Rentals for unknown vehicles are never counted
- Rentals for vehicles without a known class follow OrphanRentalPolicy
- Work is O(rentals log rentals + days x classes); the rental set is
  never re-scanned per day
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from fleet_timeline.domain.errors import InvalidDateRange
from fleet_timeline.domain.models import OrphanRentalPolicy, Rental, Vehicle
from fleet_timeline.domain.services.class_registry import VehicleClassRegistry

logger = logging.getLogger(__name__)

Interval = Tuple[date, date]


@dataclass(frozen=True)
class OccupancyCounts:
    """Vehicles on rent per day, index 0 is `start`"""
    start: date
    end: date
    by_class: Dict[int, List[int]]
    unclassified: List[int]
    totals: List[int]

    # Skipped / clipped record counts
    orphaned_rentals: int = 0
    inverted_rentals: int = 0
    rentals_outside_lifetime: int = 0

    def rented_on(self, day: date) -> int:
        return self.totals[(day - self.start).days]

    def class_counts_on(self, day: date) -> Dict[int, int]:
        index = (day - self.start).days
        return {class_id: counts[index] for class_id, counts in self.by_class.items()}


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """
    Union of closed day intervals

    Touching intervals (one ends the day before the next starts) are joined.
    """
    merged: List[Interval] = []
    for lo, hi in sorted(intervals):
        if merged and lo <= merged[-1][1] + timedelta(days=1):
            if hi > merged[-1][1]:
                merged[-1] = (merged[-1][0], hi)
        else:
            merged.append((lo, hi))
    return merged


@dataclass
class _VehicleCoverage:
    bucket: int
    intervals: List[Interval] = field(default_factory=list)


class RentalOccupancyClassifier:
    """
    Rental Occupancy Classifier
    Counts distinct vehicles on rent per day and class in one pass
    """

    def __init__(
        self,
        start: date,
        end: date,
        registry: VehicleClassRegistry,
        orphan_policy: OrphanRentalPolicy = OrphanRentalPolicy.EXCLUDE,
    ):
        if start > end:
            raise InvalidDateRange(start, end)
        self.start = start
        self.end = end
        self.day_count = (end - start).days + 1
        self.registry = registry
        self.orphan_policy = orphan_policy

    @property
    def _unclassified_bucket(self) -> int:
        # Last row of the accumulator
        return len(self.registry)

    def _clip(self, rental: Rental, vehicle: Vehicle) -> Optional[Interval]:
        """Covered days of a rental inside both the range and the vehicle's lifetime"""
        lo = max(rental.start_date, vehicle.created_at, self.start)
        hi = rental.end_date if rental.end_date is not None else self.end
        hi = min(hi, self.end)
        if vehicle.retired_at is not None:
            hi = min(hi, vehicle.retired_at - timedelta(days=1))
        if lo > hi:
            return None
        return lo, hi

    def classify(
        self,
        rentals: Iterable[Rental],
        vehicles: Iterable[Vehicle],
    ) -> OccupancyCounts:
        """
        Build per-class occupancy counts

        Args:
            rentals: Rentals that may intersect the range
            vehicles: All vehicles, retired ones included

        Returns:
            OccupancyCounts covering [start, end]
        """
        vehicles_by_id: Dict[int, Vehicle] = {v.id: v for v in vehicles}
        coverage: Dict[int, _VehicleCoverage] = {}
        orphaned = inverted = outside_lifetime = 0

        for rental in rentals:
            if rental.end_date is not None and rental.end_date < rental.start_date:
                inverted += 1
                continue

            # Not touching the range at all
            if rental.start_date > self.end:
                continue
            if rental.end_date is not None and rental.end_date < self.start:
                continue

            vehicle = vehicles_by_id.get(rental.vehicle_id)
            if vehicle is None:
                orphaned += 1
                continue

            bucket = self.registry.index_of(vehicle.vehicle_class_id)
            if bucket is None:
                orphaned += 1
                if self.orphan_policy is OrphanRentalPolicy.EXCLUDE:
                    continue
                bucket = self._unclassified_bucket

            interval = self._clip(rental, vehicle)
            if interval is None:
                outside_lifetime += 1
                continue

            coverage.setdefault(vehicle.id, _VehicleCoverage(bucket=bucket)).intervals.append(interval)

        if orphaned:
            logger.warning(
                "%d rental(s) reference a vehicle without a known class (policy=%s)",
                orphaned, self.orphan_policy.value,
            )
        if inverted:
            logger.warning("Skipped %d rental(s) ending before they start", inverted)
        if outside_lifetime:
            logger.warning(
                "Skipped %d rental(s) outside their vehicle's active lifetime",
                outside_lifetime,
            )

        counts = self._accumulate(coverage)
        class_ids = self.registry.class_ids

        by_class = {
            class_id: [int(v) for v in counts[row]]
            for row, class_id in enumerate(class_ids)
        }
        unclassified = [int(v) for v in counts[self._unclassified_bucket]]
        totals = [int(v) for v in counts.sum(axis=0)]

        return OccupancyCounts(
            start=self.start,
            end=self.end,
            by_class=by_class,
            unclassified=unclassified,
            totals=totals,
            orphaned_rentals=orphaned,
            inverted_rentals=inverted,
            rentals_outside_lifetime=outside_lifetime,
        )

    def _accumulate(self, coverage: Dict[int, _VehicleCoverage]) -> np.ndarray:
        """
        Delta accumulator of shape (classes + 1, days) prefix-summed along days

        One extra column absorbs the closing delta of intervals ending on `end`.
        """
        opens_r: List[int] = []
        opens_c: List[int] = []
        closes_r: List[int] = []
        closes_c: List[int] = []

        for vehicle_coverage in coverage.values():
            for lo, hi in merge_intervals(vehicle_coverage.intervals):
                opens_r.append(vehicle_coverage.bucket)
                opens_c.append((lo - self.start).days)
                closes_r.append(vehicle_coverage.bucket)
                closes_c.append((hi - self.start).days + 1)

        deltas = np.zeros((len(self.registry) + 1, self.day_count + 1), dtype=np.int64)
        np.add.at(deltas, (np.asarray(opens_r, dtype=np.intp), np.asarray(opens_c, dtype=np.intp)), 1)
        np.subtract.at(deltas, (np.asarray(closes_r, dtype=np.intp), np.asarray(closes_c, dtype=np.intp)), 1)

        logger.debug(
            "Occupancy: %d coverage interval(s) across %d class bucket(s) over %d days",
            len(opens_c), len(set(opens_r)), self.day_count,
        )

        return np.cumsum(deltas[:, : self.day_count], axis=1)
