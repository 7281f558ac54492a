"""
DAILY SERIES BUILDER
Merges fleet totals and occupancy counts into one record per day
"""

from datetime import date
from typing import List

from fleet_timeline.domain.models import DailyRecord
from fleet_timeline.domain.services.fleet_totals import FleetTotals
from fleet_timeline.domain.services.rental_occupancy import OccupancyCounts
from fleet_timeline.utils.time import iter_days


def day_label(day: date) -> str:
    """Jan 05, '26"""
    return day.strftime("%b %d, '%y")


class DailySeriesBuilder:
    """Combines the two per-day series, ordered by date ascending"""

    def build(self, fleet: FleetTotals, occupancy: OccupancyCounts) -> List[DailyRecord]:
        if fleet.start != occupancy.start or fleet.end != occupancy.end:
            raise ValueError("Fleet totals and occupancy counts cover different ranges")

        records: List[DailyRecord] = []
        for index, day in enumerate(iter_days(fleet.start, fleet.end)):
            fleet_total = fleet.totals[index]
            rented = occupancy.totals[index]
            records.append(
                DailyRecord(
                    date=day,
                    label=day_label(day),
                    total_fleet=fleet_total,
                    total_rented=rented,
                    total_stock=fleet_total - rented,
                    rented_by_class={
                        class_id: counts[index]
                        for class_id, counts in occupancy.by_class.items()
                    },
                    rented_unclassified=occupancy.unclassified[index],
                )
            )
        return records
