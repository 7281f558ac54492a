"""
Current stock per vehicle class.

A vehicle is unavailable when its status is not rentable or it is linked
to a current rental. Vehicles without a status are not unrentable.
"""

from collections import Counter
from typing import Iterable, List

from fleet_timeline.domain.models import ClassStockEntry, ClassStockSnapshot, Vehicle, VehicleClass
from fleet_timeline.domain.services.class_registry import STOCK_PALETTE, VehicleClassRegistry


def build_class_stock_snapshot(
    classes: Iterable[VehicleClass],
    vehicles: Iterable[Vehicle],
) -> ClassStockSnapshot:
    """
    Count total / available / unavailable vehicles per class

    Args:
        classes: All vehicle classes
        vehicles: Active (non-retired) vehicles with their current state
    """
    registry = VehicleClassRegistry(classes, palette=STOCK_PALETTE)

    totals: Counter = Counter()
    unavailable: Counter = Counter()
    for vehicle in vehicles:
        if vehicle.retired_at is not None:
            continue
        totals[vehicle.vehicle_class_id] += 1
        if vehicle.is_unavailable:
            unavailable[vehicle.vehicle_class_id] += 1

    entries: List[ClassStockEntry] = []
    for legend in registry.legend():
        total = totals[legend.id]
        entries.append(
            ClassStockEntry(
                id=legend.id,
                label=legend.name,
                total=total,
                available=total - unavailable[legend.id],
                unavailable=unavailable[legend.id],
                stock_key=legend.stock_key,
                fill=legend.color,
            )
        )
    return ClassStockSnapshot(entries=entries)
