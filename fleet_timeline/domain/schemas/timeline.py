from datetime import date
from typing import Dict, List, Mapping

from pydantic import BaseModel

from fleet_timeline.domain.models import (
    AggregatedRecord,
    AggregatedSeries,
    ClassLegendEntry,
    ClassStockSnapshot,
    DailyRecord,
    DailySeries,
    TimelineDiagnostics,
)


class VehicleClassLegendSchema(BaseModel):
    id: int
    name: str
    color: str
    series_key: str
    stock_key: str

    @classmethod
    def from_domain(cls, entry: ClassLegendEntry) -> "VehicleClassLegendSchema":
        return cls(
            id=entry.id,
            name=entry.name,
            color=entry.color,
            series_key=entry.series_key,
            stock_key=entry.stock_key,
        )


class DiagnosticsSchema(BaseModel):
    vehicles_read: int
    rentals_read: int
    orphaned_rentals: int
    inverted_rentals: int
    rentals_outside_lifetime: int
    inverted_vehicles: int
    skipped_records: int
    used_fallback_window: bool

    @classmethod
    def from_domain(cls, diagnostics: TimelineDiagnostics) -> "DiagnosticsSchema":
        return cls(
            vehicles_read=diagnostics.vehicles_read,
            rentals_read=diagnostics.rentals_read,
            orphaned_rentals=diagnostics.orphaned_rentals,
            inverted_rentals=diagnostics.inverted_rentals,
            rentals_outside_lifetime=diagnostics.rentals_outside_lifetime,
            inverted_vehicles=diagnostics.inverted_vehicles,
            skipped_records=diagnostics.skipped_records,
            used_fallback_window=diagnostics.used_fallback_window,
        )


def _keyed(counts: Mapping[int, int], series_keys: Mapping[int, str]) -> Dict[str, int]:
    return {series_keys.get(cid, str(cid)): value for cid, value in counts.items()}


class DailyRecordSchema(BaseModel):
    date: date
    label: str
    total_fleet: int
    total_rented: int
    total_stock: int
    rented_by_class: Dict[str, int]
    rented_unclassified: int


class DailySeriesResponse(BaseModel):
    start: date
    end: date
    records: List[DailyRecordSchema]
    vehicle_classes: List[VehicleClassLegendSchema]
    diagnostics: DiagnosticsSchema

    @classmethod
    def from_domain(cls, series: DailySeries) -> "DailySeriesResponse":
        series_keys = {entry.id: entry.series_key for entry in series.legend}
        return cls(
            start=series.start,
            end=series.end,
            records=[_daily_schema(r, series_keys) for r in series.records],
            vehicle_classes=[VehicleClassLegendSchema.from_domain(e) for e in series.legend],
            diagnostics=DiagnosticsSchema.from_domain(series.diagnostics),
        )


def _daily_schema(record: DailyRecord, series_keys: Mapping[int, str]) -> DailyRecordSchema:
    return DailyRecordSchema(
        date=record.date,
        label=record.label,
        total_fleet=record.total_fleet,
        total_rented=record.total_rented,
        total_stock=record.total_stock,
        rented_by_class=_keyed(record.rented_by_class, series_keys),
        rented_unclassified=record.rented_unclassified,
    )


class AggregatedRecordSchema(BaseModel):
    bucket_key: str
    label: str
    period_start: date
    period_end: date
    day_count: int
    total_fleet: int
    total_stock: int
    total_rented: int
    rented_by_class: Dict[str, int]
    rented_unclassified: int

    @classmethod
    def from_domain(
        cls, record: AggregatedRecord, series_keys: Mapping[int, str]
    ) -> "AggregatedRecordSchema":
        return cls(
            bucket_key=record.bucket_key,
            label=record.label,
            period_start=record.period_start,
            period_end=record.period_end,
            day_count=record.day_count,
            total_fleet=record.total_fleet,
            total_stock=record.total_stock,
            total_rented=record.total_rented,
            rented_by_class=_keyed(record.rented_by_class, series_keys),
            rented_unclassified=record.rented_unclassified,
        )


class AggregatedSeriesResponse(BaseModel):
    granularity: str
    records: List[AggregatedRecordSchema]
    vehicle_classes: List[VehicleClassLegendSchema]

    @classmethod
    def from_domain(cls, series: AggregatedSeries) -> "AggregatedSeriesResponse":
        series_keys = {entry.id: entry.series_key for entry in series.legend}
        return cls(
            granularity=series.granularity.value,
            records=[AggregatedRecordSchema.from_domain(r, series_keys) for r in series.records],
            vehicle_classes=[VehicleClassLegendSchema.from_domain(e) for e in series.legend],
        )


class ClassStockSchema(BaseModel):
    id: int
    label: str
    total: int
    available: int
    unavailable: int
    vehicle_class_key: str
    fill: str


class ClassStockResponse(BaseModel):
    chart_data: List[ClassStockSchema]
    vehicle_class_id_to_key_name: Dict[int, str]
    grand_total_available_vehicles: int

    @classmethod
    def from_domain(cls, snapshot: ClassStockSnapshot) -> "ClassStockResponse":
        return cls(
            chart_data=[
                ClassStockSchema(
                    id=e.id,
                    label=e.label,
                    total=e.total,
                    available=e.available,
                    unavailable=e.unavailable,
                    vehicle_class_key=e.stock_key,
                    fill=e.fill,
                )
                for e in snapshot.entries
            ],
            vehicle_class_id_to_key_name=snapshot.class_key_map,
            grand_total_available_vehicles=snapshot.grand_total_available,
        )
