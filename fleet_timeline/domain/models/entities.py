"""
Domain Models - Entities
Pure domain objects with no infrastructure dependencies
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from fleet_timeline.domain.errors import InvalidGranularity


class Granularity(str, Enum):
    """Bucket size for re-aggregating the daily series"""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @classmethod
    def parse(cls, value: object) -> "Granularity":
        """Accept an enum member or its (case-insensitive) string value"""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidGranularity(value)


class OrphanRentalPolicy(str, Enum):
    """What to do with rentals whose vehicle has no known class"""
    EXCLUDE = "exclude"
    COUNT_IN_TOTAL = "count_in_total"


# Inputs (owned by external collaborators)

@dataclass(frozen=True)
class VehicleClass:
    """Vehicle class - Immutable"""
    id: int
    name: str


@dataclass(frozen=True)
class Vehicle:
    """
    Vehicle lifecycle - Immutable

    Active from created_at (inclusive) until retired_at (exclusive).
    """
    id: int
    vehicle_class_id: Optional[int]
    created_at: date
    retired_at: Optional[date] = None

    # Current state, only used by the stock snapshot
    status_rentable: Optional[bool] = None
    current_rental_id: Optional[int] = None

    def is_active_on(self, day: date) -> bool:
        """Check if the vehicle counts towards the fleet on `day`"""
        if day < self.created_at:
            return False
        return self.retired_at is None or day < self.retired_at

    @property
    def is_unavailable(self) -> bool:
        """Not rentable right now: status says so, or it is out on a rental"""
        return self.status_rentable is False or self.current_rental_id is not None


@dataclass(frozen=True)
class Rental:
    """Rental interval - Immutable. end_date None means still ongoing."""
    id: int
    vehicle_id: int
    start_date: date
    end_date: Optional[date] = None

    @property
    def is_open_ended(self) -> bool:
        return self.end_date is None


# Outputs (pure computation results)

@dataclass(frozen=True)
class ClassLegendEntry:
    """Display configuration for one vehicle class"""
    id: int
    name: str
    color: str
    series_key: str
    stock_key: str


@dataclass(frozen=True)
class DailyRecord:
    """Fleet occupancy for one day - Immutable"""
    date: date
    label: str
    total_fleet: int
    total_rented: int
    total_stock: int
    rented_by_class: Dict[int, int] = field(default_factory=dict)
    rented_unclassified: int = 0

    def __post_init__(self):
        if self.total_fleet < 0:
            raise ValueError(f"Total fleet cannot be negative on {self.date}")
        if not 0 <= self.total_rented <= self.total_fleet:
            raise ValueError(
                f"Rented count {self.total_rented} outside [0, {self.total_fleet}] on {self.date}"
            )
        if self.total_stock != self.total_fleet - self.total_rented:
            raise ValueError(f"Stock must equal fleet minus rented on {self.date}")
        if sum(self.rented_by_class.values()) + self.rented_unclassified != self.total_rented:
            raise ValueError(f"Per-class rented counts do not add up on {self.date}")


@dataclass(frozen=True)
class AggregatedRecord:
    """
    One bucket of the re-aggregated series - Immutable

    total_fleet / total_stock are the bucket's last-day snapshot;
    total_rented / rented_by_class / rented_unclassified are summed over
    the bucket's days (occupancy-days).
    """
    bucket_key: str
    label: str
    period_start: date
    period_end: date
    day_count: int
    total_fleet: int
    total_stock: int
    total_rented: int
    rented_by_class: Dict[int, int] = field(default_factory=dict)
    rented_unclassified: int = 0


@dataclass
class TimelineDiagnostics:
    """Counts surfaced for records the engine skipped or clipped"""
    vehicles_read: int = 0
    rentals_read: int = 0
    orphaned_rentals: int = 0
    inverted_rentals: int = 0
    rentals_outside_lifetime: int = 0
    inverted_vehicles: int = 0
    used_fallback_window: bool = False

    @property
    def skipped_records(self) -> int:
        return (
            self.orphaned_rentals
            + self.inverted_rentals
            + self.rentals_outside_lifetime
            + self.inverted_vehicles
        )


@dataclass(frozen=True)
class DailySeries:
    """Daily series for [start, end] with the legend it was built against"""
    start: date
    end: date
    records: List[DailyRecord]
    legend: List[ClassLegendEntry]
    diagnostics: TimelineDiagnostics

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class AggregatedSeries:
    """Bucketed series with the legend of the daily series it came from"""
    granularity: Granularity
    records: List[AggregatedRecord]
    legend: List[ClassLegendEntry]

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class ClassStockEntry:
    """Current stock of one vehicle class - Immutable"""
    id: int
    label: str
    total: int
    available: int
    unavailable: int
    stock_key: str
    fill: str


@dataclass(frozen=True)
class ClassStockSnapshot:
    """Current stock across classes"""
    entries: List[ClassStockEntry]

    @property
    def grand_total_available(self) -> int:
        return sum(entry.available for entry in self.entries)

    @property
    def class_key_map(self) -> Dict[int, str]:
        return {entry.id: entry.stock_key for entry in self.entries}
