"""
Vehicle Repositories
Bulk reads of vehicle classes and vehicle lifecycles
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import func, select

from fleet_timeline.domain.models import Vehicle, VehicleClass
from fleet_timeline.infrastructure.db.models import (
    VehicleClassModel,
    VehicleModel,
    VehicleStatusModel,
)
from fleet_timeline.infrastructure.db.repositories.base import BaseRepository
from fleet_timeline.utils.time import as_day


class VehicleClassRepository(BaseRepository):
    """Repository for VehicleClass"""

    async def list_all(self) -> List[VehicleClass]:
        """
        Get all vehicle classes

        Returns:
            Classes ordered by id
        """
        result = await self._execute(
            "vehicle_classes.list_all",
            select(VehicleClassModel.id, VehicleClassModel.name).order_by(VehicleClassModel.id),
        )
        return [VehicleClass(id=row.id, name=row.name) for row in result.all()]


class VehicleRepository(BaseRepository):
    """Repository for Vehicle lifecycles"""

    async def list_lifecycles(self) -> List[Vehicle]:
        """
        Get every vehicle with its creation and retirement day

        Retired (soft-deleted) vehicles are included.

        Returns:
            List of Vehicles
        """
        result = await self._execute(
            "vehicles.list_lifecycles",
            select(
                VehicleModel.id,
                VehicleModel.vehicle_class_id,
                VehicleModel.created_at,
                VehicleModel.deleted_at,
            ).order_by(VehicleModel.id),
        )
        return [
            Vehicle(
                id=row.id,
                vehicle_class_id=row.vehicle_class_id,
                created_at=as_day(row.created_at),
                retired_at=as_day(row.deleted_at),
            )
            for row in result.all()
        ]

    async def earliest_created_at(self) -> Optional[date]:
        """
        Get creation day of the oldest vehicle

        Returns:
            Day or None when there are no vehicles
        """
        result = await self._execute(
            "vehicles.earliest_created_at",
            select(func.min(VehicleModel.created_at)),
        )
        return as_day(result.scalar())

    async def list_current_stock(self) -> List[Vehicle]:
        """
        Get active vehicles with their current status and rental link

        Returns:
            List of Vehicles, status_rentable None when no status is set
        """
        result = await self._execute(
            "vehicles.list_current_stock",
            select(
                VehicleModel.id,
                VehicleModel.vehicle_class_id,
                VehicleModel.created_at,
                VehicleModel.current_rental_id,
                VehicleStatusModel.is_rentable,
            )
            .outerjoin(VehicleStatusModel, VehicleModel.current_status_id == VehicleStatusModel.id)
            .where(VehicleModel.deleted_at.is_(None))
            .order_by(VehicleModel.id),
        )
        return [
            Vehicle(
                id=row.id,
                vehicle_class_id=row.vehicle_class_id,
                created_at=as_day(row.created_at),
                status_rentable=row.is_rentable,
                current_rental_id=row.current_rental_id,
            )
            for row in result.all()
        ]
