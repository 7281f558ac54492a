from datetime import datetime

import pytest

from fleet_timeline.domain.services.class_registry import HISTORY_PALETTE
from fleet_timeline.infrastructure.db.models import (
    RentalModel,
    VehicleClassModel,
    VehicleModel,
    VehicleStatusModel,
)


@pytest.fixture()
async def seeded(db_session):
    """Two classes, three vehicles (one retired Feb 1), two rentals; today is Mar 31"""
    db_session.add_all([
        VehicleClassModel(id=1, name="Scooter"),
        VehicleClassModel(id=2, name="Car"),
        VehicleStatusModel(id=1, status_name="Ready", is_rentable=True),
    ])
    await db_session.flush()
    db_session.add_all([
        VehicleModel(id=1, vehicle_class_id=1, current_status_id=1,
                     created_at=datetime(2026, 1, 1, 10, 0)),
        VehicleModel(id=2, vehicle_class_id=2, current_status_id=1, current_rental_id=2,
                     created_at=datetime(2026, 1, 15, 10, 0)),
        VehicleModel(id=3, vehicle_class_id=1, created_at=datetime(2026, 1, 1, 12, 0),
                     deleted_at=datetime(2026, 2, 1, 9, 0)),
    ])
    await db_session.flush()
    db_session.add_all([
        RentalModel(id=1, vehicle_id=1, start_date=datetime(2026, 1, 10, 9, 0),
                    end_date=datetime(2026, 1, 20, 12, 0)),
        RentalModel(id=2, vehicle_id=2, start_date=datetime(2026, 3, 1, 8, 0)),
    ])
    await db_session.commit()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}

    resp = await client.get("/ready")
    assert resp.json()["db_connected"] is True


@pytest.mark.asyncio
@pytest.mark.integration
async def test_daily_series(client, seeded):
    resp = await client.get("/api/v1/timeline/daily")
    assert resp.status_code == 200
    data = resp.json()

    assert data["start"] == "2026-01-01"
    assert data["end"] == "2026-03-31"
    assert len(data["records"]) == 90

    by_day = {r["date"]: r for r in data["records"]}
    assert by_day["2026-01-01"]["total_fleet"] == 2
    assert by_day["2026-01-15"]["total_fleet"] == 3
    assert by_day["2026-01-15"]["rented_by_class"] == {"totalClassScooter": 1, "totalClassCar": 0}
    assert by_day["2026-01-15"]["label"] == "Jan 15, '26"
    assert by_day["2026-02-01"]["total_fleet"] == 2
    assert by_day["2026-03-31"]["total_rented"] == 1
    assert by_day["2026-03-31"]["total_stock"] == 1
    assert data["diagnostics"]["skipped_records"] == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_daily_series_explicit_range(client, seeded):
    resp = await client.get(
        "/api/v1/timeline/daily", params={"min_date": "2026-01-10", "max_date": "2026-01-12"}
    )
    assert resp.status_code == 200
    records = resp.json()["records"]
    assert [r["total_rented"] for r in records] == [1, 1, 1]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_daily_series_rejects_inverted_range(client, seeded):
    resp = await client.get(
        "/api/v1/timeline/daily", params={"min_date": "2026-02-10", "max_date": "2026-01-12"}
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_aggregated_by_month(client, seeded):
    resp = await client.get("/api/v1/timeline/aggregated", params={"granularity": "Month"})
    assert resp.status_code == 200
    data = resp.json()

    assert data["granularity"] == "month"
    assert [r["bucket_key"] for r in data["records"]] == ["2026-01", "2026-02", "2026-03"]
    january, february, march = data["records"]
    assert (january["total_fleet"], january["total_rented"], january["total_stock"]) == (3, 11, 3)
    assert (february["total_fleet"], february["total_rented"]) == (2, 0)
    assert march["rented_by_class"] == {"totalClassScooter": 0, "totalClassCar": 31}
    assert march["day_count"] == 31


@pytest.mark.asyncio
@pytest.mark.integration
async def test_aggregated_filtered_range(client, seeded):
    resp = await client.get(
        "/api/v1/timeline/aggregated",
        params={"granularity": "month", "date_from": "2026-02-01", "date_to": "2026-02-28"},
    )
    assert resp.status_code == 200
    assert [r["label"] for r in resp.json()["records"]] == ["Feb 26"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_aggregated_rejects_unknown_granularity(client, seeded):
    resp = await client.get("/api/v1/timeline/aggregated", params={"granularity": "decade"})
    assert resp.status_code == 422
    assert "decade" in resp.json()["detail"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_class_legend(client, seeded):
    resp = await client.get("/api/v1/timeline/classes")
    assert resp.status_code == 200
    legend = resp.json()

    assert [e["series_key"] for e in legend] == ["totalClassScooter", "totalClassCar"]
    assert legend[0]["color"] == HISTORY_PALETTE[0]
    assert legend[1]["stock_key"] == "class_car"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_class_stock(client, seeded):
    resp = await client.get("/api/v1/timeline/stock")
    assert resp.status_code == 200
    data = resp.json()

    scooter, car = data["chart_data"]
    assert (scooter["total"], scooter["available"], scooter["unavailable"]) == (1, 1, 0)
    assert (car["total"], car["available"], car["unavailable"]) == (1, 0, 1)
    assert data["vehicle_class_id_to_key_name"] == {"1": "class_scooter", "2": "class_car"}
    assert data["grand_total_available_vehicles"] == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_export_csv(client, seeded):
    resp = await client.get("/api/v1/timeline/export.csv", params={"granularity": "month"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "fleet_occupancy.csv" in resp.headers["content-disposition"]

    lines = resp.text.strip().split("\n")
    assert lines[0] == '"Date","Total Fleet","Total Rented","Total Stock","Scooter","Car"'
    assert lines[1] == '"Jan 26",3,11,3,11,0'
    assert len(lines) == 4


@pytest.mark.asyncio
@pytest.mark.integration
async def test_empty_database_uses_lookback_window(client):
    resp = await client.get("/api/v1/timeline/daily")
    assert resp.status_code == 200
    data = resp.json()

    assert data["start"] == "2023-03-31"
    assert data["diagnostics"]["used_fallback_window"] is True
    assert all(r["total_fleet"] == 0 for r in data["records"])


@pytest.mark.asyncio
@pytest.mark.integration
async def test_per_class_counts_survive_similar_class_names(client, db_session):
    db_session.add_all([
        VehicleClassModel(id=1, name="Big Bike"),
        VehicleClassModel(id=2, name="BigBike"),
    ])
    await db_session.flush()
    db_session.add_all([
        VehicleModel(id=1, vehicle_class_id=1, created_at=datetime(2026, 3, 1)),
        VehicleModel(id=2, vehicle_class_id=2, created_at=datetime(2026, 3, 1)),
    ])
    await db_session.flush()
    db_session.add_all([
        RentalModel(id=1, vehicle_id=1, start_date=datetime(2026, 3, 10)),
        RentalModel(id=2, vehicle_id=2, start_date=datetime(2026, 3, 10)),
    ])
    await db_session.commit()

    resp = await client.get("/api/v1/timeline/daily", params={"min_date": "2026-03-31"})
    assert resp.status_code == 200
    data = resp.json()

    record = data["records"][0]
    assert record["total_rented"] == 2
    assert record["rented_by_class"] == {"totalClassBigBike": 1, "totalClassBigBike_2": 1}
    assert sum(record["rented_by_class"].values()) == record["total_rented"]
    assert len({e["series_key"] for e in data["vehicle_classes"]}) == 2

    resp = await client.get("/api/v1/timeline/aggregated", params={"granularity": "month"})
    march = resp.json()["records"][-1]
    assert sum(march["rented_by_class"].values()) == march["total_rented"] == 44
