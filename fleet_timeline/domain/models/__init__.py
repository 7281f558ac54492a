"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    # Enums
    Granularity,
    OrphanRentalPolicy,

    # Inputs
    Rental,
    Vehicle,
    VehicleClass,

    # Outputs
    AggregatedRecord,
    AggregatedSeries,
    ClassLegendEntry,
    ClassStockEntry,
    ClassStockSnapshot,
    DailyRecord,
    DailySeries,
    TimelineDiagnostics,
)

__all__ = [
    # Enums
    "Granularity",
    "OrphanRentalPolicy",

    # Inputs
    "Rental",
    "Vehicle",
    "VehicleClass",

    # Outputs
    "AggregatedRecord",
    "AggregatedSeries",
    "ClassLegendEntry",
    "ClassStockEntry",
    "ClassStockSnapshot",
    "DailyRecord",
    "DailySeries",
    "TimelineDiagnostics",
]
