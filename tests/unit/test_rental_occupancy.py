from datetime import date

import pytest

from fleet_timeline.domain.errors import InvalidDateRange
from fleet_timeline.domain.models import OrphanRentalPolicy, Rental, Vehicle, VehicleClass
from fleet_timeline.domain.services.class_registry import VehicleClassRegistry
from fleet_timeline.domain.services.rental_occupancy import (
    RentalOccupancyClassifier,
    merge_intervals,
)


START = date(2026, 1, 1)
END = date(2026, 1, 31)
SCOOTER, CAR = 1, 2


def _day(n: int) -> date:
    return date(2026, 1, n)


@pytest.fixture
def registry():
    return VehicleClassRegistry([
        VehicleClass(id=SCOOTER, name="Scooter"),
        VehicleClass(id=CAR, name="Car"),
    ])


@pytest.fixture
def vehicles():
    return [
        Vehicle(id=10, vehicle_class_id=SCOOTER, created_at=date(2025, 1, 1)),
        Vehicle(id=11, vehicle_class_id=SCOOTER, created_at=date(2025, 1, 1)),
        Vehicle(id=20, vehicle_class_id=CAR, created_at=date(2025, 1, 1)),
    ]


def _classifier(registry, policy=OrphanRentalPolicy.EXCLUDE):
    return RentalOccupancyClassifier(START, END, registry, orphan_policy=policy)


def _rented_days(counts):
    return [i + 1 for i, value in enumerate(counts) if value]


@pytest.mark.unit
class TestCoverage:

    def test_closed_and_open_ended_rentals(self, registry, vehicles):
        rentals = [
            Rental(id=1, vehicle_id=10, start_date=_day(3), end_date=_day(5)),
            Rental(id=2, vehicle_id=10, start_date=_day(10)),
        ]

        occupancy = _classifier(registry).classify(rentals, vehicles)

        expected_days = [3, 4, 5] + list(range(10, 32))
        assert _rented_days(occupancy.totals) == expected_days
        assert occupancy.by_class[SCOOTER] == occupancy.totals
        assert occupancy.by_class[CAR] == [0] * 31

    def test_overlapping_rentals_of_one_vehicle_count_once(self, registry, vehicles):
        rentals = [
            Rental(id=1, vehicle_id=10, start_date=_day(3), end_date=_day(8)),
            Rental(id=2, vehicle_id=10, start_date=_day(5), end_date=_day(12)),
            Rental(id=3, vehicle_id=10, start_date=_day(6), end_date=_day(7)),
        ]

        occupancy = _classifier(registry).classify(rentals, vehicles)

        assert max(occupancy.totals) == 1
        assert _rented_days(occupancy.totals) == list(range(3, 13))

    def test_distinct_vehicles_and_classes(self, registry, vehicles):
        rentals = [
            Rental(id=1, vehicle_id=10, start_date=_day(1), end_date=_day(10)),
            Rental(id=2, vehicle_id=11, start_date=_day(5), end_date=_day(6)),
            Rental(id=3, vehicle_id=20, start_date=_day(6), end_date=_day(6)),
        ]

        occupancy = _classifier(registry).classify(rentals, vehicles)

        assert occupancy.class_counts_on(_day(5)) == {SCOOTER: 2, CAR: 0}
        assert occupancy.class_counts_on(_day(6)) == {SCOOTER: 2, CAR: 1}
        assert occupancy.rented_on(_day(6)) == 3
        assert occupancy.rented_on(_day(11)) == 0

    def test_rental_ending_on_last_day_and_starting_before_range(self, registry, vehicles):
        rentals = [
            Rental(id=1, vehicle_id=10, start_date=date(2025, 12, 20), end_date=_day(2)),
            Rental(id=2, vehicle_id=20, start_date=_day(30), end_date=END),
        ]

        occupancy = _classifier(registry).classify(rentals, vehicles)

        assert _rented_days(occupancy.by_class[SCOOTER]) == [1, 2]
        assert _rented_days(occupancy.by_class[CAR]) == [30, 31]

    def test_rentals_outside_range_ignored(self, registry, vehicles):
        rentals = [
            Rental(id=1, vehicle_id=10, start_date=date(2025, 11, 1), end_date=date(2025, 11, 5)),
            Rental(id=2, vehicle_id=10, start_date=date(2026, 2, 3)),
        ]

        occupancy = _classifier(registry).classify(rentals, vehicles)

        assert occupancy.totals == [0] * 31
        assert occupancy.rentals_outside_lifetime == 0


@pytest.mark.unit
class TestLifetimeClipping:

    def test_clipped_to_creation_and_retirement(self, registry):
        vehicles = [
            Vehicle(id=10, vehicle_class_id=SCOOTER, created_at=_day(5), retired_at=_day(15)),
        ]
        rentals = [Rental(id=1, vehicle_id=10, start_date=_day(1))]

        occupancy = _classifier(registry).classify(rentals, vehicles)

        assert _rented_days(occupancy.totals) == list(range(5, 15))

    def test_rental_entirely_outside_lifetime_is_reported(self, registry):
        vehicles = [Vehicle(id=10, vehicle_class_id=SCOOTER, created_at=_day(20))]
        rentals = [Rental(id=1, vehicle_id=10, start_date=_day(2), end_date=_day(4))]

        occupancy = _classifier(registry).classify(rentals, vehicles)

        assert occupancy.totals == [0] * 31
        assert occupancy.rentals_outside_lifetime == 1


@pytest.mark.unit
class TestBadRecords:

    def test_orphan_excluded_by_default(self, registry):
        vehicles = [Vehicle(id=30, vehicle_class_id=None, created_at=date(2025, 1, 1))]
        rentals = [Rental(id=1, vehicle_id=30, start_date=_day(2), end_date=_day(3))]

        occupancy = _classifier(registry).classify(rentals, vehicles)

        assert occupancy.totals == [0] * 31
        assert occupancy.unclassified == [0] * 31
        assert occupancy.orphaned_rentals == 1

    def test_orphan_counted_in_total_when_configured(self, registry):
        vehicles = [Vehicle(id=30, vehicle_class_id=99, created_at=date(2025, 1, 1))]
        rentals = [Rental(id=1, vehicle_id=30, start_date=_day(2), end_date=_day(3))]

        occupancy = _classifier(registry, OrphanRentalPolicy.COUNT_IN_TOTAL).classify(rentals, vehicles)

        assert _rented_days(occupancy.totals) == [2, 3]
        assert occupancy.unclassified == occupancy.totals
        assert occupancy.by_class == {SCOOTER: [0] * 31, CAR: [0] * 31}
        assert occupancy.orphaned_rentals == 1

    def test_unknown_vehicle_never_counted(self, registry, vehicles):
        rentals = [Rental(id=1, vehicle_id=404, start_date=_day(2), end_date=_day(3))]

        occupancy = _classifier(registry, OrphanRentalPolicy.COUNT_IN_TOTAL).classify(rentals, vehicles)

        assert occupancy.totals == [0] * 31
        assert occupancy.orphaned_rentals == 1

    def test_inverted_rental_skipped(self, registry, vehicles):
        rentals = [Rental(id=1, vehicle_id=10, start_date=_day(9), end_date=_day(4))]

        occupancy = _classifier(registry).classify(rentals, vehicles)

        assert occupancy.totals == [0] * 31
        assert occupancy.inverted_rentals == 1

    def test_no_classes_at_all(self, vehicles):
        occupancy = _classifier(VehicleClassRegistry([])).classify(
            [Rental(id=1, vehicle_id=10, start_date=_day(1))], vehicles
        )

        assert occupancy.by_class == {}
        assert occupancy.totals == [0] * 31

    def test_inverted_range_rejected(self, registry):
        with pytest.raises(InvalidDateRange):
            RentalOccupancyClassifier(END, START, registry)


@pytest.mark.unit
class TestMergeIntervals:

    def test_nested_overlapping_and_touching(self):
        merged = merge_intervals([
            (_day(10), _day(12)),
            (_day(1), _day(5)),
            (_day(2), _day(3)),
            (_day(6), _day(7)),
            (_day(20), _day(20)),
        ])

        assert merged == [(_day(1), _day(7)), (_day(10), _day(12)), (_day(20), _day(20))]

    def test_empty(self):
        assert merge_intervals([]) == []
