"""
FLEET TOTALS RECONSTRUCTOR
Vehicle creation/retirement events -> fleet size for every day in range

RESPONSIBILITIES:
- Count vehicles already active when the range starts (baseline)
- Emit +1 on creation day, -1 on retirement day for events inside the range
- Prefix-sum the deltas once over the whole range

RULES:
- A vehicle counts from its creation day (inclusive) until its retirement
  day (exclusive): the retirement day itself is already without it
- Created and retired on the same day: never counted
- Retired before created: skipped and reported
- Work is O(vehicles + days), never O(vehicles x days)
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List

import numpy as np

from fleet_timeline.domain.errors import InvalidDateRange
from fleet_timeline.domain.models import Vehicle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FleetTotals:
    """Fleet size per day, index 0 is `start`"""
    start: date
    end: date
    baseline: int
    totals: List[int]
    inverted_vehicles: int = 0

    def total_on(self, day: date) -> int:
        if not self.start <= day <= self.end:
            raise KeyError(day)
        return self.totals[(day - self.start).days]


class FleetTotalsReconstructor:
    """
    Fleet Totals Reconstructor
    Rebuilds the per-day fleet size from sparse lifecycle events
    """

    def __init__(self, start: date, end: date):
        if start > end:
            raise InvalidDateRange(start, end)
        self.start = start
        self.end = end
        self.day_count = (end - start).days + 1

    def baseline(self, vehicles: Iterable[Vehicle]) -> int:
        """
        Vehicles active on the first day without an event inside the range

        created before start and not retired on or before start
        """
        return sum(
            1
            for v in vehicles
            if v.created_at < self.start
            and (v.retired_at is None or v.retired_at > self.start)
            and (v.retired_at is None or v.retired_at >= v.created_at)
        )

    def reconstruct(self, vehicles: Iterable[Vehicle]) -> FleetTotals:
        """
        Build the fleet size series

        Args:
            vehicles: All vehicles, retired ones included

        Returns:
            FleetTotals covering [start, end]
        """
        vehicles = list(vehicles)
        baseline = self.baseline(vehicles)

        plus_idx: List[int] = []
        minus_idx: List[int] = []
        inverted = 0

        for vehicle in vehicles:
            created, retired = vehicle.created_at, vehicle.retired_at

            if retired is not None and retired < created:
                inverted += 1
                continue
            if created > self.end:
                continue
            if retired is not None and retired <= self.start:
                continue

            # Vehicles created before start are already in the baseline
            if created >= self.start:
                plus_idx.append((created - self.start).days)
            if retired is not None and retired <= self.end:
                minus_idx.append((retired - self.start).days)

        if inverted:
            logger.warning(
                "Skipped %d vehicle(s) retired before they were created", inverted
            )

        deltas = np.zeros(self.day_count, dtype=np.int64)
        np.add.at(deltas, np.asarray(plus_idx, dtype=np.intp), 1)
        np.subtract.at(deltas, np.asarray(minus_idx, dtype=np.intp), 1)
        totals = baseline + np.cumsum(deltas)

        logger.debug(
            "Fleet totals: baseline=%d, %d creation and %d retirement events over %d days",
            baseline, len(plus_idx), len(minus_idx), self.day_count,
        )

        return FleetTotals(
            start=self.start,
            end=self.end,
            baseline=baseline,
            totals=[int(value) for value in totals],
            inverted_vehicles=inverted,
        )
